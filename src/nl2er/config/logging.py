"""Logging configuration for nl2er."""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO
from .settings import get_settings

PACKAGE_LOGGER = "nl2er"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the ``nl2er`` package logger.

    Extraction fallbacks, dropped relationships and repair warnings are all
    reported through this logger. Calling it again replaces (and closes) the
    handlers of the previous call, so each CLI command can reconfigure it.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for file logging
        format_string: Optional custom format string
        stream: Console stream, stdout when omitted

    Returns:
        The package logger

    Raises:
        ValueError: If the level name is unknown
    """
    settings = get_settings()
    log_level = _resolve_level(level or settings.log_level)
    log_file_path = log_file or settings.log_file
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)
    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)
        old.close()

    package_logger.addHandler(_handler(logging.StreamHandler(stream or sys.stdout), log_level, formatter))
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        package_logger.addHandler(
            _handler(logging.FileHandler(log_file_path, encoding="utf-8"), log_level, formatter)
        )

    # Records stop at the package logger
    package_logger.propagate = False
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``nl2er`` namespace, configuring logging on first use.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not logging.getLogger(PACKAGE_LOGGER).handlers:
        setup_logging()

    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
