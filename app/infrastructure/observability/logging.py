"""
Structured logging for the hiring assistant backend.

Every entry is a single JSON line carrying the level, logger name, an ISO
timestamp, the service name and whatever request context is bound for the
current task (the HTTP middleware binds ``request_id``).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.stdlib import LoggerFactory

SERVICE_NAME = "interviewpilot-backend"

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "psycopg.pool", "uvicorn.access")


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog through stdlib logging and render JSON to stdout."""
    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelName(log_level.upper())
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level if isinstance(level, int) else logging.INFO,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _add_service_name(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    """Attach values to every log entry emitted by the current request."""
    clear_contextvars()
    bind_contextvars(**values)


def clear_request_context() -> None:
    clear_contextvars()


def log_request(method: str, path: str, status_code: int, duration_ms: float, user_id: str = None):
    """One line per HTTP request; 4xx/5xx at warning level."""
    fields = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }
    if user_id:
        fields["user_id"] = user_id

    logger = get_logger("http")
    if status_code >= 400:
        logger.warning("HTTP request failed", **fields)
    else:
        logger.info("HTTP request completed", **fields)
