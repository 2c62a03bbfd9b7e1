"""Logging configuration for Lot Allocator.

This module provides structured logging setup with configurable output format.
"""

import logging
import sys
from typing import Any


def setup_logging(
    level: str = "INFO",
    log_format: str | None = None,
) -> None:
    """Configure logging for the application.

    Sets up the root logger with specified level and format.
    Logs are written to stderr so command output on stdout stays clean.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom format string. If None, uses default format.

    Example:
        >>> from lot_allocator.utils.logging import setup_logging
        >>> setup_logging(level="DEBUG")
    """
    if log_format is None:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        stream=sys.stderr,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any,
) -> None:
    """Log a message with structured context.

    Context is appended to the message in key=value format.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        **context: Additional context fields

    Example:
        >>> logger = get_logger(__name__)
        >>> log_with_context(
        ...     logger, "info", "Lots purchased",
        ...     ticker="SBER", lots=3, cost=900.0
        ... )
        # Logs: "Lots purchased | ticker=SBER lots=3 cost=900.0"
    """
    log_func = getattr(logger, level.lower())

    if context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        full_message = f"{message} | {context_str}"
    else:
        full_message = message

    log_func(full_message)
