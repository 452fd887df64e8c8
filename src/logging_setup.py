"""Root logging configuration."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger. Unknown level names fall back to INFO."""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric)
    if not any(getattr(h, "_altair_router", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._altair_router = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
