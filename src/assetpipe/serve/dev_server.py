# src/assetpipe/serve/dev_server.py

"""
Development server.

Serves the build output directory as static files and keeps a WebSocket open to
every browser tab; reload() pushes {"command": "reload"} to all of them. HTML
pages get a small client script injected before </body> so no browser extension
is needed.

The server is an explicitly owned resource: start() binds the port and runs the
tornado IO loop on a background thread, stop() releases it. reload() may be
called from any thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from enum import StrEnum
from pathlib import Path

from tornado.httpserver import HTTPServer
from tornado.ioloop import IOLoop
from tornado.netutil import bind_sockets
from tornado.web import Application, StaticFileHandler
from tornado.websocket import WebSocketClosedError, WebSocketHandler

from ..core.errors import ServerBindError

logger = logging.getLogger(__name__)

RELOAD_PATH = "/__reload"

CLIENT_SCRIPT = (
    "<script>(function(){"
    "var proto=location.protocol==='https:'?'wss://':'ws://';"
    "function connect(){"
    "var ws=new WebSocket(proto+location.host+'" + RELOAD_PATH + "');"
    "ws.onmessage=function(e){try{if(JSON.parse(e.data).command==='reload'){location.reload();}}catch(_){}};"
    "ws.onclose=function(){setTimeout(connect,1000);};"
    "}"
    "connect();"
    "})();</script>"
)

_HTML_SUFFIXES = {".html", ".htm"}


class ServerState(StrEnum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    STOPPED = "stopped"


def inject_client(html: str) -> str:
    idx = html.lower().rfind("</body>")
    if idx == -1:
        return html + CLIENT_SCRIPT
    return html[:idx] + CLIENT_SCRIPT + html[idx:]


class _ReloadSocket(WebSocketHandler):
    def initialize(self, server: DevServer) -> None:
        self._server = server

    def check_origin(self, origin: str) -> bool:
        # Local dev server: pages may be opened via 127.0.0.1, localhost or a LAN address.
        return True

    def open(self) -> None:
        self._server._clients.add(self)
        logger.debug("Reload client connected (%d total)", len(self._server._clients))

    def on_message(self, message) -> None:
        # Clients only listen.
        return

    def on_close(self) -> None:
        self._server._clients.discard(self)
        logger.debug("Reload client disconnected (%d left)", len(self._server._clients))


class _LiveStaticHandler(StaticFileHandler):
    """StaticFileHandler that injects the reload client into HTML pages."""

    # True while answering with an injected page rather than the file on disk.
    _injected = False

    def set_extra_headers(self, path: str) -> None:
        self.set_header("Cache-Control", "no-store")

    def compute_etag(self) -> str | None:
        # Injected pages are rendered per request and have no absolute_path.
        if self._injected:
            return None
        return super().compute_etag()

    def _html_target(self, path: str) -> Path | None:
        root = Path(self.root).resolve()
        target = (root / path).resolve()
        if target != root and root not in target.parents:
            return None
        if target.is_dir() and self.default_filename:
            target = target / self.default_filename
        if target.suffix.lower() in _HTML_SUFFIXES and target.is_file():
            return target
        return None

    async def get(self, path: str, include_body: bool = True) -> None:
        target = self._html_target(path)
        if target is None:
            await super().get(path, include_body=include_body)
            return

        if path and (Path(self.root) / path).is_dir() and not self.request.path.endswith("/"):
            # Same as StaticFileHandler: directories are addressed with a trailing slash.
            self.redirect(self.request.path + "/", permanent=True)
            return

        self._injected = True
        self.path = path
        self.absolute_path = str(target)
        body = inject_client(target.read_text(encoding="utf-8", errors="replace"))
        self.set_header("Content-Type", "text/html; charset=UTF-8")
        self.set_header("Cache-Control", "no-store")
        if include_body:
            self.finish(body)
        else:
            self.set_header("Content-Length", str(len(body.encode("utf-8"))))
            self.finish()


class DevServer:
    def __init__(self, root: Path, *, host: str = "127.0.0.1", port: int = 3000) -> None:
        self.root = Path(root)
        self.host = host
        self.port = int(port)
        self.state = ServerState.UNINITIALIZED
        self.broadcasts = 0

        self._clients: set[_ReloadSocket] = set()
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._startup_error: OSError | None = None
        self._loop: IOLoop | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def _make_app(self) -> Application:
        return Application(
            [
                (RELOAD_PATH, _ReloadSocket, {"server": self}),
                (r"/(.*)", _LiveStaticHandler, {"path": str(self.root), "default_filename": "index.html"}),
            ]
        )

    # ---- lifecycle ----

    def start(self, *, timeout: float = 10.0) -> None:
        """Bind the port and serve in the background. Raises ServerBindError if the port is taken."""
        if self.state != ServerState.UNINITIALIZED:
            raise RuntimeError(f"DevServer cannot start from state {self.state.value}")

        self.root.mkdir(parents=True, exist_ok=True)
        self._thread = threading.Thread(target=self._serve, name="dev-server", daemon=True)
        self._thread.start()

        if not self._ready.wait(timeout):
            raise ServerBindError(self.host, self.port, TimeoutError("server did not start in time"))
        if self._startup_error is not None:
            self._thread.join(timeout=timeout)
            self.state = ServerState.STOPPED
            raise ServerBindError(self.host, self.port, self._startup_error) from self._startup_error

        self.state = ServerState.RUNNING
        logger.info("Serving %s at %s", self.root, self.url)

    def _serve(self) -> None:
        asyncio.run(self._main())

    async def _main(self) -> None:
        self._loop = IOLoop.current()
        self._stop_event = asyncio.Event()
        try:
            sockets = bind_sockets(self.port, address=self.host)
        except OSError as e:
            self._startup_error = e
            self._ready.set()
            return

        http = HTTPServer(self._make_app())
        http.add_sockets(sockets)
        # Port 0 asks the OS for a free port; report the real one.
        self.port = sockets[0].getsockname()[1]
        self._ready.set()

        try:
            await self._stop_event.wait()
        finally:
            http.stop()
            for client in list(self._clients):
                client.close()
            try:
                await asyncio.wait_for(http.close_all_connections(), timeout=2.0)
            except asyncio.TimeoutError:
                logger.debug("Dev server connections did not close in time")

    def stop(self, *, timeout: float = 5.0) -> None:
        if self.state != ServerState.RUNNING:
            return
        assert self._loop is not None and self._stop_event is not None
        self._loop.add_callback(self._stop_event.set)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self.state = ServerState.STOPPED
        logger.info("Dev server stopped")

    # ---- broadcast ----

    def reload(self, path: str | None = None) -> None:
        """Tell every connected client to reload. Thread safe; no-op unless running."""
        if self.state != ServerState.RUNNING or self._loop is None:
            logger.debug("Reload requested while server is %s", self.state.value)
            return
        self._loop.add_callback(self._broadcast, path)

    def _broadcast(self, path: str | None) -> None:
        message = json.dumps({"command": "reload", "path": path or ""})
        self.broadcasts += 1
        for client in list(self._clients):
            try:
                client.write_message(message)
            except WebSocketClosedError:
                self._clients.discard(client)
        logger.debug("Reload sent to %d client(s)", len(self._clients))
