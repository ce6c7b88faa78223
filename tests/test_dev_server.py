# tests/test_dev_server.py

from __future__ import annotations

import asyncio
import json
import socket
import urllib.request
from pathlib import Path

import pytest
from tornado.websocket import websocket_connect

from assetpipe.core.errors import ServerBindError
from assetpipe.serve.dev_server import CLIENT_SCRIPT, RELOAD_PATH, DevServer, ServerState, inject_client


@pytest.fixture()
def server(tmp_path: Path):
    root = tmp_path / "dist"
    root.mkdir()
    (root / "index.html").write_text("<html><body><p>hi</p></body></html>", encoding="utf-8")
    (root / "site.css").write_text("p{color:red}", encoding="utf-8")
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_text("<html><body>docs</body></html>", encoding="utf-8")
    srv = DevServer(root, host="127.0.0.1", port=0)
    srv.start()
    yield srv
    srv.stop()


def _get(url: str) -> tuple[str, str]:
    with urllib.request.urlopen(url, timeout=5) as resp:
        return resp.headers.get("Content-Type", ""), resp.read().decode("utf-8")


def test_inject_client_goes_before_closing_body() -> None:
    out = inject_client("<html><BODY>x</BODY></html>")
    assert out == "<html><BODY>x" + CLIENT_SCRIPT + "</BODY></html>"


def test_inject_client_appends_without_body() -> None:
    assert inject_client("<p>x</p>") == "<p>x</p>" + CLIENT_SCRIPT


def test_index_is_served_with_reload_client(server: DevServer) -> None:
    assert server.state == ServerState.RUNNING
    assert server.port != 0

    content_type, body = _get(server.url)

    assert content_type.startswith("text/html")
    assert body.startswith("<html><body><p>hi</p>")
    assert RELOAD_PATH in body


def test_other_files_are_served_unchanged(server: DevServer) -> None:
    _, body = _get(server.url + "site.css")
    assert body == "p{color:red}"


def test_reload_reaches_connected_clients(server: DevServer) -> None:
    async def receive() -> dict:
        conn = await websocket_connect(f"ws://127.0.0.1:{server.port}{RELOAD_PATH}")
        try:
            for _ in range(250):
                if server.client_count:
                    break
                await asyncio.sleep(0.02)
            server.reload("css/*.css")
            msg = await asyncio.wait_for(conn.read_message(), timeout=5)
        finally:
            conn.close()
        return json.loads(msg)

    assert asyncio.run(receive()) == {"command": "reload", "path": "css/*.css"}


def test_port_conflict_raises_bind_error(tmp_path: Path) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        port = busy.getsockname()[1]

        srv = DevServer(tmp_path / "dist", host="127.0.0.1", port=port)
        with pytest.raises(ServerBindError) as exc:
            srv.start()

    assert exc.value.port == port
    assert srv.state == ServerState.STOPPED


def test_reload_before_start_is_a_noop(tmp_path: Path) -> None:
    srv = DevServer(tmp_path / "dist", port=0)
    srv.reload("index.html")
    assert srv.broadcasts == 0
    assert srv.state == ServerState.UNINITIALIZED


def test_stop_releases_the_port(tmp_path: Path) -> None:
    srv = DevServer(tmp_path / "dist", host="127.0.0.1", port=0)
    srv.start()
    port = srv.port
    srv.stop()
    assert srv.state == ServerState.STOPPED

    again = DevServer(tmp_path / "dist", host="127.0.0.1", port=port)
    again.start()
    again.stop()


def test_directory_index_is_served_with_reload_client(server: DevServer) -> None:
    _, body = _get(server.url + "docs/")
    assert body.startswith("<html><body>docs")
    assert RELOAD_PATH in body


def test_directory_without_slash_redirects(server: DevServer) -> None:
    with urllib.request.urlopen(server.url + "docs", timeout=5) as resp:
        assert resp.geturl() == server.url + "docs/"
        assert "docs" in resp.read().decode("utf-8")


def test_head_reports_length_of_injected_page(server: DevServer) -> None:
    expected = inject_client("<html><body><p>hi</p></body></html>").encode("utf-8")
    req = urllib.request.Request(server.url + "index.html", method="HEAD")

    with urllib.request.urlopen(req, timeout=5) as resp:
        assert resp.status == 200
        assert resp.headers["Content-Length"] == str(len(expected))
        assert resp.headers.get("Etag") is None
        assert resp.read() == b""
