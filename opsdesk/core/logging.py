"""
Centralized logging configuration using structlog.

This module configures structured logging for the entire application,
including custom processors for request context (correlation_id, user_id, request_path).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from opsdesk.core.config import settings


# Claim names that must never reach a log line
REDACTED_KEYS = ("password", "hashed_password", "token", "access_token", "authorization")


def add_correlation_id(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add correlation_id to log context if present."""
    correlation_id = event_dict.get("correlation_id")
    if correlation_id:
        event_dict["correlation_id"] = str(correlation_id)
    return event_dict


def add_user_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add user_id to log context if present."""
    user_id = event_dict.get("user_id")
    if user_id:
        event_dict["user_id"] = str(user_id)
    return event_dict


def redact_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential material passed as log fields."""
    for key in REDACTED_KEYS:
        if key in event_dict:
            event_dict[key] = "***"
    return event_dict


def configure_logging() -> None:
    """
    Configure structlog for the application.

    Sets up processors including:
    - TimeStamper with ISO format
    - Log level addition
    - Exception formatting
    - Request context processors (correlation_id, user_id)
    - Secret redaction
    - JSON or Console rendering based on settings

    Uses LOG_LEVEL and LOG_FORMAT from environment variables via settings.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_correlation_id,
        add_user_context,
        redact_secrets,
    ]

    if settings.log_format.lower() == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)


def bind_request_context(**kwargs: Any) -> None:
    """
    Bind request-scoped context variables (correlation_id, user_id, request_path).

    Args:
        **kwargs: Key-value pairs to bind to logging context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
