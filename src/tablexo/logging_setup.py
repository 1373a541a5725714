"""Root logger configuration for the TableXO server."""

import logging

from . import config


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)
    root.addHandler(stream_handler)

    # Per-request access lines are noise next to game logs; keep warnings.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
