"""
Centralized logging manager for the application.

Every component obtains its logger through `get_logger()`. The application
logger owns a single console `StreamHandler`; component loggers are children
of it that tag each message with their prefix (e.g. ``[DeckManager]``) and
propagate to the shared handler.

Usage:
- Use get_logger() to obtain a logger instance.
- Pass ``prefix`` to tag messages from a component.
"""

import logging
import os
import re
import sys

from study_deck.config import settings

APP_LOGGER_NAME: str = "Study_Deck"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", getattr(settings, "LOG_LEVEL", "INFO")).upper()
LOG_FORMAT: str = "[%(asctime)s] %(levelname)s in %(name)s: %(message)s"


def _ensure_console_handler(logger: logging.Logger, formatter: logging.Formatter) -> bool:
    """
    Ensure logger has a StreamHandler for console output.

    Args:
        logger: The logger instance to check and modify
        formatter: The formatter to apply to the StreamHandler

    Returns:
        bool: True if a new StreamHandler was added, False if one already existed
    """
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stdout:
            return False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logger.level)
    logger.addHandler(console_handler)
    return True


class PrefixFilter(logging.Filter):
    """Prepend a component prefix to every record passing through a logger."""

    def __init__(self, prefix: str):
        super().__init__()
        self.prefix = prefix

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "_prefix_applied", False):
            record.msg = f"{self.prefix} {record.msg}"
            record._prefix_applied = True
        return True


def _child_name(name: str, prefix: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", prefix).strip("_")
    return f"{name}.{slug}" if slug else name


def get_logger(name: str = APP_LOGGER_NAME, prefix: str = "") -> logging.Logger:
    """
    Return the application logger, or a prefixed child of it.

    Args:
        name: Base logger name. Loggers outside the application tree get their own console handler.
        prefix: Optional tag such as ``[DATABASE]`` prepended to each message.

    Returns:
        logging.Logger: Configured logger.
    """
    base = logging.getLogger(name)
    base.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)
    if _ensure_console_handler(base, formatter):
        base.debug("[LoggingManager] Console StreamHandler attached to logger '%s'", name)

    if not prefix:
        return base

    logger = logging.getLogger(_child_name(name, prefix))
    if not any(isinstance(f, PrefixFilter) for f in logger.filters):
        logger.addFilter(PrefixFilter(prefix))
    return logger
