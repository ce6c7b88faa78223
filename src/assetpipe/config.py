# src/assetpipe/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole pipeline (normal "settings layer").
- Nothing is read from disk at import time; get_settings() loads lazily.
- Relative paths are resolved against the project root once, here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "ASSETPIPE"

DEFAULT_PORT = 3000


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path, *, root: Path) -> Path:
    raw = os.getenv(name)
    p = default if raw is None or raw.strip() == "" else Path(raw).expanduser()
    return p if p.is_absolute() else root / p


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Project layout ----
    root: Path
    dist_dir: Path
    css_glob: str
    js_glob: str
    entry_document: Path
    images_dir: Path
    fonts_dir: Path

    # ---- Transform options ----
    css_bundle: str
    js_bundle: str
    keep_license_comments: bool
    image_quality: int

    # ---- Dev server / watch ----
    host: str
    port: int
    watch_debounce: float
    parallel_workers: int

    # ---- Logging ----
    log_level: str
    log_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        root = Path(_env(_k("ROOT"), ".")).expanduser().resolve()

        dist_dir = _env_path(_k("DIST_DIR"), Path("dist"), root=root)
        entry_document = _env_path(_k("ENTRY_DOCUMENT"), Path("index.html"), root=root)
        images_dir = _env_path(_k("IMAGES_DIR"), Path("assets/images"), root=root)
        fonts_dir = _env_path(_k("FONTS_DIR"), Path("assets/fonts"), root=root)
        log_dir = _env_path(_k("LOG_DIR"), Path(".local/assetpipe"), root=root)

        # Globs stay relative to root: they double as watch patterns.
        css_glob = _env(_k("CSS_GLOB"), "css/*.css")
        js_glob = _env(_k("JS_GLOB"), "js/*.js")

        image_quality = min(95, max(1, _env_int(_k("IMAGE_QUALITY"), 85)))

        return Settings(
            root=root,
            dist_dir=dist_dir,
            css_glob=css_glob,
            js_glob=js_glob,
            entry_document=entry_document,
            images_dir=images_dir,
            fonts_dir=fonts_dir,
            css_bundle=_env(_k("CSS_BUNDLE"), "").strip(),
            js_bundle=_env(_k("JS_BUNDLE"), "").strip(),
            keep_license_comments=_env_bool(_k("KEEP_LICENSE_COMMENTS"), True),
            image_quality=image_quality,
            host=_env(_k("HOST"), "127.0.0.1"),
            port=_env_int(_k("PORT"), DEFAULT_PORT),
            watch_debounce=max(0.0, _env_float(_k("WATCH_DEBOUNCE"), 0.1)),
            parallel_workers=max(1, _env_int(_k("PARALLEL_WORKERS"), 4)),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            log_dir=log_dir,
        )

    def relative(self, path: Path) -> str:
        """Path relative to the project root, posix-style (used for watch patterns)."""
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        # .env next to the working directory; real environment wins.
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
