"""Structured JSON logging configuration."""

import ipaddress
import json
import logging
import re
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.core.config import Settings

# Context variable for request ID tracking
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Sensitive fields to redact from logs
SENSITIVE_FIELDS = {
    "password",
    "api_key",
    "website_key",
    "secret",
    "salt",
    "token",
    "authorization",
    "x-api-key",
    "raw_ip",
    "ip_address",
    "client_ip",
}

# Runs of characters an IPv4 or IPv6 address can be made of
_IP_CANDIDATE = re.compile(r"[0-9A-Fa-f:.]{7,45}")

IP_PLACEHOLDER = "[IP]"


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_var.get()


def scrub_ip_addresses(text: str) -> str:
    """Replace every literal IP address in text with a placeholder.

    Visitor addresses must never reach the logs, not even inside an
    exception message coming from a driver.
    """

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        try:
            ipaddress.ip_address(token)
        except ValueError:
            return token
        return IP_PLACEHOLDER

    return _IP_CANDIDATE.sub(_replace, text)


def redact_sensitive_data(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively redact sensitive fields from a dictionary.

    String values that survive redaction still have IP literals scrubbed.

    Args:
        data: Dictionary to redact

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    redacted: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            redacted[key] = "[REDACTED]"
        elif isinstance(value, dict):
            redacted[key] = redact_sensitive_data(value)
        elif isinstance(value, list):
            redacted[key] = [
                redact_sensitive_data(item) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, str):
            redacted[key] = scrub_ip_addresses(value)
        else:
            redacted[key] = value
    return redacted


# Attributes every LogRecord has; anything else was passed through `extra`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": scrub_ip_addresses(record.getMessage()),
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        if record.pathname:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": scrub_ip_addresses(str(exc_value)) if exc_value else None,
                "traceback": scrub_ip_addresses(self.formatException(record.exc_info)),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extra_fields:
            log_data["extra"] = redact_sensitive_data(extra_fields)

        return json.dumps(log_data, default=str)


def _elapsed_ms(start_time: datetime) -> float:
    return round((datetime.now(UTC) - start_time).total_seconds() * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request with a request ID.

    The client address is never logged; consent capture requests carry
    visitor IPs.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(request_id)

        logger = logging.getLogger("consent_registry.request")
        start_time = datetime.now(UTC)
        request_fields = {"method": request.method, "path": request.url.path}

        logger.info(
            "Request started",
            extra={
                **request_fields,
                "query": str(request.query_params) if request.query_params else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Request failed",
                extra={
                    **request_fields,
                    "duration_ms": _elapsed_ms(start_time),
                    "error": str(e),
                },
            )
            raise
        else:
            logger.info(
                "Request completed",
                extra={
                    **request_fields,
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(start_time),
                },
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_var.set(None)


def setup_logging(settings: Settings) -> None:
    """Send JSON logs to stdout at the configured level.

    Replaces any handlers already on the root logger.
    """
    log_level = getattr(logging, settings.app_log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(JSONFormatter())
    stdout_handler.setLevel(log_level)
    root_logger.addHandler(stdout_handler)

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("rq.worker").setLevel(logging.INFO)

    logging.getLogger("consent_registry").setLevel(log_level)


def setup_request_logging(app: FastAPI) -> None:
    """Add request logging middleware to FastAPI application."""
    app.add_middleware(RequestLoggingMiddleware)
