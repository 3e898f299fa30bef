"""
Structured logging configuration using structlog.

Standardized log format:
{
    "ts": "2025-11-18T04:30:00.123456Z",
    "level": "info",
    "service": "event-ingest",
    "correlation_id": "uuid-v4",
    "event": "event.accepted",
    "module": "event_ingest.handler",
    "func_name": "handle_post_event",
    "lineno": 42,
    ...additional context...
}

Loggers built here write through ``PrintLogger``, which serializes each
rendered line under a per-file lock, so one handle can be shared by
concurrent requests. Lines from different requests carry no ordering
guarantee.
"""
import structlog
import logging
from typing import Any


def service_name_adder(service_name: str):
    """Build a processor that stamps ``service`` on every log entry."""

    def add_service_name(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict["service"] = service_name
        return event_dict

    return add_service_name


def setup_logging(
    json_output: bool = True,
    service_name: str = "event-ingest",
    level: str = "INFO",
):
    """
    Configure structured logging with standardized fields.

    Args:
        json_output: If True, output JSON logs. If False, use console format.
        service_name: Name of the service (for multi-service deployments).
        level: Minimum level name, e.g. "INFO".
    """
    log_level = logging.getLevelName(level.upper())

    shared_processors = [
        # Add contextvars (includes correlation_id from middleware)
        structlog.contextvars.merge_contextvars,
        service_name_adder(service_name),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
    )

    # Silence uvicorn's default logging to avoid duplicate logs
    logging.getLogger("uvicorn.error").handlers = []
    logging.getLogger("uvicorn.access").handlers = []


def get_logger(*args: Any, **initial_values: Any):
    """Get a configured structlog logger."""
    return structlog.get_logger(*args, **initial_values)
