"""
Structured JSON logging with correlation IDs and a security audit channel.

Audit records describe who did what to which newsroom entity:

- ``actor``: the authenticated user (id, username, role), if any
- ``entity``: the article, comment, category, media item or user acted on
- ``request``: method, path, client IP and user agent of the HTTP request
"""

import logging
import re
import sys
import uuid
from typing import Any, Optional
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)

AUDIT_LOGGER_NAME = "security.audit"
CORRELATION_HEADER = "X-Correlation-ID"

# Client-supplied IDs end up in every log line, so only plain tokens are kept
_CORRELATION_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Record attributes folded into nested objects by the formatter
_NESTED_FIELDS = {
    "actor": ("user_id", "username", "role"),
    "entity": ("entity_type", "entity_id"),
    "request": ("request_method", "request_path", "ip_address", "user_agent"),
}


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to log records."""

    def filter(self, record):
        record.correlation_id = correlation_id_var.get() or "none"
        return True


class NewsdeskJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that groups audit context into actor, entity and request objects."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", "none")
        log_record["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        for group, fields in _NESTED_FIELDS.items():
            values = {}
            for field in fields:
                if field in log_record:
                    values[field] = log_record.pop(field)
            if values:
                log_record[group] = values


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure structured JSON logging and return the security audit logger."""

    formatter = NewsdeskJsonFormatter("%(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Route uvicorn loggers through the same handler
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(console_handler)
        uvicorn_logger.propagate = False

    security_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    security_logger.setLevel(logging.INFO)

    return security_logger


def resolve_correlation_id(value: Optional[str]) -> str:
    """Keep a well-formed incoming correlation ID, otherwise mint a new one."""
    if value and _CORRELATION_ID_RE.match(value):
        return value
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag each request, its log lines and its response with a correlation ID."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))

        token = correlation_id_var.set(correlation_id)
        request.state.correlation_id = correlation_id
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request, considering proxies."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def audit_fields(
    actor: Any = None,
    request: Optional[Request] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
) -> dict:
    """
    Flatten audit context into log record attributes.

    ``actor`` is anything with ``id``, ``username`` and ``role``: a token
    identity or a user record.
    """
    fields = {}

    if actor is not None:
        fields["user_id"] = str(actor.id)
        fields["username"] = actor.username
        role = getattr(actor, "role", None)
        if role is not None:
            fields["role"] = getattr(role, "value", role)

    if request is not None:
        fields["request_method"] = request.method
        fields["request_path"] = request.url.path
        fields["ip_address"] = get_client_ip(request)
        user_agent = request.headers.get("user-agent")
        if user_agent:
            fields["user_agent"] = user_agent

    if entity_type:
        fields["entity_type"] = entity_type
    if entity_id:
        fields["entity_id"] = str(entity_id)

    return fields


def log_security_event(
    event_type: str,
    message: str,
    level: int = logging.INFO,
    actor: Any = None,
    request: Optional[Request] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    event_category: str = "security",
    **extra_fields
):
    """
    Write one record to the security audit log.

    Args:
        event_type: Dotted event name, e.g. "article.deleted" or "auth.login.failure"
        message: Human-readable message
        level: Logging level (default: INFO)
        actor: Identity or user responsible, None for anonymous callers
        request: Incoming HTTP request, for method, path, IP and user agent
        entity_type: Kind of newsroom record acted on ("article", "comment", ...)
        entity_id: ID of that record
        event_category: Event category (default: "security")
        **extra_fields: Event-specific fields, e.g. ``comments_removed``
    """
    extra = {
        "event_type": event_type,
        "event_category": event_category,
    }
    extra.update(audit_fields(actor, request, entity_type, entity_id))
    extra.update(extra_fields)

    logging.getLogger(AUDIT_LOGGER_NAME).log(level, message, extra=extra)
