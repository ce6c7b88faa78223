"""assetpipe: static asset build pipeline (minify, copy, watch, serve with live reload)."""

__version__ = "0.1.0"
