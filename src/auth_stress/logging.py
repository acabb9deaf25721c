"""Structured logging configuration.

Console output for local runs, JSON lines for CI pipelines that collect
harness logs.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

APP_NAME = "auth-stress"

_environment = "development"


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to all log entries."""
    event_dict["app"] = APP_NAME
    event_dict["environment"] = _environment
    return event_dict


def mask_sensitive_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask sensitive fields in log entries.

    Fields like 'password', 'token', 'secret' will be masked with '***'.
    Boolean flags such as ``has_token`` are left readable.
    """
    sensitive_fields = {"password", "token", "secret", "api_key"}

    for key, value in event_dict.items():
        if isinstance(value, bool):
            continue
        if any(sensitive in key.lower() for sensitive in sensitive_fields):
            event_dict[key] = "***MASKED***"

    return event_dict


def configure_logging(env: str = "development", level: str = "INFO") -> None:
    """Configure structured logging for the harness.

    - Development: Human-readable console output
    - Anything else: JSON-formatted logs

    Args:
        env: Environment name
        level: Logging level name (DEBUG, INFO, ...)
    """
    global _environment
    _environment = env

    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        mask_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if env == "development":
        processors = [*shared_processors, structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("scenario_started", scenario="register", total_requests=50)
    """
    return structlog.get_logger(name)
