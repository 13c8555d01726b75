"""Centralized logging configuration for the catalog service."""

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    format_string: str | None = None,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If provided, logs to both file and console
        format_string: Custom log format string. Uses DEFAULT_FORMAT if not provided
        quiet_loggers: Logger names raised to WARNING unless level is DEBUG
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True,
    )

    if level.upper() != "DEBUG":
        for name in quiet_loggers:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level} level")
    if log_file:
        logger.info(f"Logging to file: {log_file}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
