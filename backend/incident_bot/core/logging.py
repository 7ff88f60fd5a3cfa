"""
Incident Bot - Logging Infrastructure

Structured logging on structlog:
- JSON lines in production, coloured console output in development
- request_id / incident_id picked up from context variables
- Slack tokens scrubbed from every event before rendering
"""

from __future__ import annotations

import logging
import re
import sys
import time
from contextvars import ContextVar
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, ParamSpec

import structlog
from structlog.types import Processor

from incident_bot.core.config import get_settings

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
incident_id_context: ContextVar[Optional[str]] = ContextVar("incident_id", default=None)

P = ParamSpec("P")
R = TypeVar("R")

_SLACK_TOKEN = re.compile(r"xox[abposr]-[A-Za-z0-9-]+")

# chatty at INFO: one line per outbound request
_NOISY_LOGGERS = ("httpx", "httpcore")


def add_context_variables(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Attach the current request and incident ids, if any."""
    for key, var in (("request_id", request_id_context), ("incident_id", incident_id_context)):
        value = var.get()
        if value:
            event_dict.setdefault(key, value)
    return event_dict


def redact_slack_tokens(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Mask bot/user tokens that end up in error strings or payload dumps."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "xox" in value:
            event_dict[key] = _SLACK_TOKEN.sub("xox?-***", value)
    return event_dict


def get_log_level(settings: Any) -> int:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def get_processors(settings: Any) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_variables,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_slack_tokens,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def configure_logging() -> None:
    """
    Configure structlog and the stdlib root logger.

    Called once from the application lifespan; safe to call again in tests.
    """
    settings = get_settings()
    level = get_log_level(settings)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=get_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger bound to ``name``.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("incident_declared", incident_id="123", severity="P1")
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Scope request_id / incident_id to a block of work.

    Worker threads do not inherit the request's context variables, so
    handlers re-enter a LogContext on the thread that runs the work.

    Example:
        >>> with LogContext(incident_id=str(incident.id)):
        ...     log.info("channel_provisioned")
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        incident_id: Optional[str] = None,
    ):
        self._values = ((request_id_context, request_id), (incident_id_context, incident_id))
        self._tokens: list = []

    def __enter__(self) -> "LogContext":
        self._tokens = [(var, var.set(value)) for var, value in self._values if value]
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []


def log_execution_time(
    log: structlog.stdlib.BoundLogger,
    operation: str,
    **extra_fields: Any
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Log ``<operation>_completed`` or ``<operation>_failed`` with the elapsed time.

    Exceptions are logged and re-raised.
    """
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()

            def elapsed_ms() -> float:
                return round((time.perf_counter() - started) * 1000, 2)

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(
                    f"{operation}_failed",
                    duration_ms=elapsed_ms(),
                    error=str(e),
                    error_type=type(e).__name__,
                    **extra_fields
                )
                raise
            log.info(f"{operation}_completed", duration_ms=elapsed_ms(), **extra_fields)
            return result
        return wrapper
    return decorator
