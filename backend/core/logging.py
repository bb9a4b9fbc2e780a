# backend/core/logging.py

import logging
import os
import sys


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers and the level they are capped at
QUIET_LOGGERS = {
    "httpx": logging.WARNING,  # one INFO line per assistant request
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def setup_logging(level_name: str | None = None) -> None:
    """
    Configure the root logger once per process.

    Level comes from `level_name`, else LOG_LEVEL, else INFO. Output goes to
    stdout in DEFAULT_FORMAT. When uvicorn has already installed handlers only
    the level is adjusted.
    """
    level_name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)

    for name, cap in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(cap, level))


def get_logger(name: str | None = None) -> logging.Logger:
    """Module logger, e.g. `logger = get_logger(__name__)`."""
    return logging.getLogger(name)
