"""Logging configuration for the encounter pricing tool."""
import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install a single stderr handler on the package logger."""
    global _configured
    if _configured:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    package_logger = logging.getLogger("encounter_pricing")
    package_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a module logger. Handlers are installed by configure_logging()."""
    return logging.getLogger(name)
