"""Structured logging for the clinic client.

Library modules only call ``get_logger``; applications (the console, a
service embedding the client) call ``setup_structured_logging`` once.

Pattern: structlog over the standard library, JSON lines by default,
with the logged-in user bound into every line through contextvars.
"""
import logging
import sys
import uuid
from typing import Optional

import structlog


def setup_structured_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: JSON lines (default) or human-readable console output
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdout belongs to the console UI
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module (pass ``__name__``)."""
    return structlog.get_logger(name)


def generate_request_id() -> str:
    """Request ID sent as X-Request-ID and bound into the request's log lines."""
    return f"req-{uuid.uuid4().hex[:12]}"


def bind_user_context(user_id: Optional[str], role: Optional[str] = None) -> None:
    """Tag subsequent log lines with the logged-in user, or drop the tags."""
    if user_id is None:
        structlog.contextvars.unbind_contextvars("user_id", "role")
        return
    structlog.contextvars.bind_contextvars(user_id=user_id, role=role)
