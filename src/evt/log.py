"""File logging for the app.

The TUI owns the terminal, so log records go to a file next to the store.
Records never include variable values.
"""

import logging
from pathlib import Path

LOG_PATH = Path("~/.config/evt/evt.log").expanduser()

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a single file handler to the ``evt`` logger and return it."""
    logger = logging.getLogger("evt")
    logger.setLevel(level)
    if any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        return logger
    try:
        LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger
