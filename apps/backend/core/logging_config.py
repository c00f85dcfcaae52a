"""
Logging Configuration
=====================

Environment-controlled logging setup for routelens entry points.
Controlled via environment variables:
  - DEBUG=true          Enable debug mode
  - DEBUG_LEVEL=1|2|3   Log verbosity (1=INFO, 2/3=DEBUG)
  - DEBUG_LOG_FILE=path Optional plain-text file output

Library modules only create ``logging.getLogger(__name__)`` loggers; nothing
is configured on import. Call ``configure_logging()`` once from the entry point.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

ROOT_LOGGER_NAMES = ("core", "frameworks", "analysis", "monorepo", "runners")

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"


# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    DEBUG = "\033[36m"  # Cyan
    INFO = "\033[32m"  # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"  # Red
    CRITICAL = "\033[1m\033[31m"  # Bold red


class ColorFormatter(logging.Formatter):
    """Formatter that colors the level name for console output."""

    def format(self, record: logging.LogRecord) -> str:
        color = getattr(Colors, record.levelname, "")
        original = record.levelname
        if color:
            record.levelname = f"{color}{original}{Colors.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _get_debug_enabled() -> bool:
    """Check if debug mode is enabled via environment variable."""
    return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes", "on")


def _get_debug_level() -> int:
    """Get debug verbosity level (1-3)."""
    try:
        level = int(os.environ.get("DEBUG_LEVEL", "1"))
        return max(1, min(3, level))  # Clamp to 1-3
    except ValueError:
        return 1


def _get_log_file() -> Path | None:
    log_file = os.environ.get("DEBUG_LOG_FILE")
    if log_file:
        return Path(log_file)
    return None


def resolve_log_level() -> int:
    """Map DEBUG / DEBUG_LEVEL to a stdlib logging level."""
    if not _get_debug_enabled():
        return logging.WARNING
    return logging.INFO if _get_debug_level() == 1 else logging.DEBUG


def configure_logging(level: int | None = None) -> int:
    """
    Attach console (and optional file) handlers to the routelens loggers.

    Safe to call more than once; previously attached handlers are replaced.

    Args:
        level: Explicit level, overriding the environment

    Returns:
        The effective logging level
    """
    effective = level if level is not None else resolve_log_level()

    console = logging.StreamHandler()
    console.setFormatter(ColorFormatter(LOG_FORMAT, DATE_FORMAT))
    handlers: list[logging.Handler] = [console]

    log_file = _get_log_file()
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handlers.append(file_handler)

    for name in ROOT_LOGGER_NAMES:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            if getattr(handler, "_routelens", False):
                logger.removeHandler(handler)
                handler.close()
        for handler in handlers:
            handler._routelens = True  # type: ignore[attr-defined]
            logger.addHandler(handler)
        logger.setLevel(effective)
        logger.propagate = False

    return effective
