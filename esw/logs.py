from __future__ import annotations

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)-5s: %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: str | None) -> int:
    return _LEVELS.get((name or "").strip().lower(), logging.INFO)


def setup_logging(level: str | None = "info") -> None:
    """Send all esw logging to stdout, one line per event."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(parse_level(level))
    # Per-request httpx logging would drown the watch output.
    logging.getLogger("httpx").setLevel(logging.WARNING)
