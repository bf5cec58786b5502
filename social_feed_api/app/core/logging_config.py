"""
Root logger setup for the API process.

Every module logs through ``logging.getLogger(__name__)``; this module
only decides where those records go.  ``create_app`` calls
``setup_logging`` with ``LOG_LEVEL`` and ``LOG_FILE`` from settings.
"""

import logging
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Send log records to stderr and, if ``logfile`` is set, to that file.

    An unknown ``level`` name falls back to ``INFO``.  Nothing happens
    when the root logger already has handlers, so building several apps
    in one process keeps a single set of handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # request lines from uvicorn only at WARNING and above
    logging.getLogger("uvicorn.access").setLevel(max(numeric_level, logging.WARNING))
