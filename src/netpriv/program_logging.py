"""Logging configuration for netpriv.

Device output ends up in log messages (prompts in errors, command output at
DEBUG), so every handler set up here strips terminal escape sequences and
carriage returns before a record is written.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .program_constants import ANSI_PATTERN, LOG_BACKUP_COUNT, LOG_MAX_BYTES

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


class DeviceOutputFilter(logging.Filter):
    """Removes ANSI escapes and stray ``\\r`` from the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = ANSI_PATTERN.sub("", message).replace("\r", "")
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def _to_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _add_handler(
    logger: logging.Logger, handler: logging.Handler, fmt: str, level: int
) -> None:
    handler.setFormatter(logging.Formatter(fmt))
    handler.setLevel(level)
    handler.addFilter(DeviceOutputFilter())
    logger.addHandler(handler)


def setup_logging(
    level: str | int = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    console_level: Optional[str | int] = None,
) -> logging.Logger:
    """Set up logging for netpriv.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. If None, no file logging.
        console_output: Whether to log to console
        console_level: Level for the console handler. If None, WARNING, or
            DEBUG when `level` is DEBUG.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("netpriv")

    # Clear any existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    numeric_level = _to_level(level)
    if console_level is None:
        console_threshold = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    else:
        console_threshold = _to_level(console_level)
    # The logger must let through whatever either handler wants.
    logger.setLevel(min(numeric_level, console_threshold) if console_output else numeric_level)

    if console_output:
        _add_handler(logger, logging.StreamHandler(sys.stderr), CONSOLE_FORMAT, console_threshold)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        _add_handler(logger, file_handler, FILE_FORMAT, numeric_level)

    return logger


def get_logger(name: str = "") -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (will be prefixed with 'netpriv.')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"netpriv.{name}")
    return logging.getLogger("netpriv")


def log_command_execution(command: str, level: str, success: bool) -> None:
    """Log command execution details.

    Args:
        command: The command that was sent to the device
        level: The privilege level the command ran at
        success: Whether the output was free of failure markers
    """
    logger = get_logger("commands")
    if success:
        logger.info(f"Command executed successfully: '{command}' at {level}")
    else:
        logger.warning(f"Command failed: '{command}' at {level}")


def log_privilege_change(old_level: str, new_level: str) -> None:
    """Log privilege level changes.

    Args:
        old_level: Previous privilege level
        new_level: New privilege level
    """
    logger = get_logger("controller")
    logger.info(f"Privilege level changed: {old_level} -> {new_level}")


def log_startup() -> None:
    """Log application startup."""
    get_logger("main").info("netpriv starting up")


def log_shutdown() -> None:
    """Log application shutdown."""
    get_logger("main").info("netpriv shutting down")
