"""Structured logging utilities for PageGate.

Async-safe structured logging built on structlog. Every entry carries the
request_id of the HTTP request being served (when there is one), so gate
decisions and registry failures can be correlated per visitor request.

Secrets are never passed to a logger call. Log the tenant and handle only.
``redact_sensitive_fields`` masks the known secret-bearing keys anyway, so a
slip in a call site cannot put a visitor secret or admin key on stdout.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

# Bound per request by RequestIdMiddleware.
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Event keys whose values are replaced before rendering.
SENSITIVE_LOG_FIELDS: frozenset[str] = frozenset(
    {"secret", "secret_hash", "admin_key", "access_token", "password"}
)
REDACTED = "[redacted]"


def add_request_id(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask values of SENSITIVE_LOG_FIELDS, whatever the call site passed."""
    for key in SENSITIVE_LOG_FIELDS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def build_processors(json_output: bool) -> list[Processor]:
    """Processor chain shared by every PageGate logger."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        redact_sensitive_fields,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog for the process.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive).
        json_output: JSON lines when True, human-readable console output otherwise.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "pagegate") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def clear_request_id() -> None:
    request_id_var.set(None)


# Sensible defaults until main.py reconfigures from the environment.
configure_logging()
