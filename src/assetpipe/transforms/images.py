# src/assetpipe/transforms/images.py

from __future__ import annotations

import io
import logging
from pathlib import Path

from PIL import Image, features

from ..core.errors import CapabilityUnavailableError, TransformFailure

logger = logging.getLogger(__name__)

# Formats we re-encode; everything else (svg, gif, webp, ico, ...) is copied verbatim.
_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
}

_REQUIRED_CODECS = ("jpg", "zlib")


class ImageOptimizer:
    """
    Pillow-backed recompression for raster images.

    Initialization is explicit: call ensure_ready() once at start-up (before the
    first build or the dev server), so a Pillow build without JPEG/PNG support
    fails fast instead of in the middle of a watch session.
    """

    def __init__(self, *, quality: int = 85) -> None:
        self.quality = int(quality)
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_ready(self) -> None:
        if self._ready:
            return
        Image.init()
        missing = [c for c in _REQUIRED_CODECS if not features.check_codec(c)]
        if missing:
            raise CapabilityUnavailableError(
                "Pillow is installed without codec support for: " + ", ".join(missing)
            )
        self._ready = True
        logger.debug("Image optimizer ready (quality=%d)", self.quality)

    def optimize(self, path: Path, data: bytes) -> bytes:
        """Return the smaller of `data` and its re-encoded form (animations come back as-is)."""
        if not self._ready:
            raise RuntimeError("ImageOptimizer.ensure_ready() must be called before optimize()")

        fmt = _FORMATS.get(path.suffix.lower())
        if fmt is None:
            return data

        buf = io.BytesIO()
        try:
            with Image.open(io.BytesIO(data)) as im:
                if getattr(im, "is_animated", False):
                    # Re-saving keeps only the first frame.
                    return data
                im.load()
                # Orientation and color profile are part of the picture, not overhead.
                keep = {k: im.info[k] for k in ("exif", "icc_profile") if im.info.get(k)}
                if fmt == "JPEG":
                    frame = im if im.mode in ("RGB", "L", "CMYK") else im.convert("RGB")
                    frame.save(
                        buf, "JPEG", quality=self.quality, optimize=True, progressive=True, **keep
                    )
                else:
                    im.save(buf, "PNG", optimize=True, **keep)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise TransformFailure("asset-copy", f"cannot optimize image: {e}", path=path) from e

        out = buf.getvalue()
        if len(out) < len(data):
            logger.debug("Optimized %s: %d -> %d bytes", path.name, len(data), len(out))
            return out
        return data
