"""Structured logging for requestkit.

Library modules get their loggers from get_logger(), which wraps the stdlib
logger of the same name in a structlog BoundLogger. Events therefore honour
the host application's stdlib levels and handlers, and are rendered by
whatever structlog configuration is active when they are emitted.

Applications and scripts that want requestkit's own rendering call
setup_logging() once at startup.

Event names are snake_case, context is passed as key/value pairs:

    log = get_logger(__name__, component="connector")
    log.info("exchange_completed", method="GET", status_code=200)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict

APP_NAME = "requestkit"


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every entry with the library name."""
    event_dict["app"] = APP_NAME
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_logs: bool = True,
    include_timestamp: bool = True,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: If True, output JSON. If False, use the console renderer.
        include_timestamp: Whether to include ISO timestamps.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )
    logging.getLogger(APP_NAME).setLevel(log_level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    name: str,
    component: str | None = None,
    **initial_context: Any,
) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to a stdlib logger.

    Args:
        name: Logger name (typically __name__ of the calling module).
        component: Component within the library (connector, request, ...).
        **initial_context: Additional key/value pairs bound to every event.
    """
    context: dict[str, Any] = {}
    if component:
        context["component"] = component
    context.update(initial_context)

    # Stays lazy: processors are resolved on first use, after setup_logging().
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
        **context,
    )
