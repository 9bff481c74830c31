"""Logging configuration for the Monad MCP server."""

import logging
import sys
from typing import Optional, TextIO

# Default log format
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> None:
    """Configure global logging settings.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format string
        stream: Output stream. Defaults to stdout; the stdio transport
            passes stderr because stdout carries protocol frames.
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if log_format is None:
        log_format = DEFAULT_LOG_FORMAT

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        stream=stream or sys.stdout,
        force=True
    )

    # Set third-party loggers to a higher level to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger
    """
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger,
                     level: str,
                     message: str,
                     **context) -> None:
    """Log a message with additional context information.

    The context is appended as ``key=value`` pairs and also attached to the
    record under ``extra["context"]`` for structured handlers.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        context: Additional context information as keyword arguments
    """
    context = {k: v for k, v in context.items() if v is not None}
    log_method = getattr(logger, level.lower(), logger.info)
    if context:
        context_str = ", ".join(f"{k}={v!r}" for k, v in context.items())
        log_method(f"{message} [{context_str}]", extra={"context": context})
    else:
        log_method(message, extra={"context": context})
