"""Package logger for SmartMark.

The TUI owns the terminal, so log records go to a rotating file under
``~/.smartmark`` instead of stderr.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_PATH = Path.home() / ".smartmark" / "smartmark.log"

logger = logging.getLogger("smartmark")


def setup_logging(path: Path | None = None, *, debug: bool = False) -> Path:
    """Attach a rotating file handler to the package logger.

    Safe to call more than once; an existing handler for the same file is
    reused.  Returns the log file path.
    """
    path = path or LOG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in logger.handlers:
        if (
            isinstance(handler, RotatingFileHandler)
            and Path(handler.baseFilename) == path.resolve()
        ):
            return path

    handler = RotatingFileHandler(
        path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
    return path
