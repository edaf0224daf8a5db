"""
Root logger setup.

Modules log through `logging.getLogger(__name__)` with key=value event
messages; this only attaches a console handler once per process.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    numeric_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root.setLevel(numeric_level)

    if root.handlers:
        # Already configured (uvicorn, pytest, repeated create_app calls).
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
