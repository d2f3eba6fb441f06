"""JSON logging for the wardrobe core.

Every record carries the correlation id of the operation that emitted it so
one upload, suggestion or turnaround can be followed across modules. Image
payloads and personal fields never reach the log stream.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Optional

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "wardrobe_correlation_id", default=None
)

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

# Wardrobe fields whose values are photos or free text written by the user.
SENSITIVE_FIELDS = frozenset(
    {"email", "image", "body_photo", "photo_ref", "reference_photo", "description", "comment", "notes"}
)
_EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+")
_STRING_LIMIT = 256


def _new_id() -> str:
    return uuid.uuid4().hex


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields are scrubbed and inlined."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "event": getattr(record, "event", message),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and key not in payload
        }
        payload.update(redact_for_log(extras))
        return json.dumps(payload)


def configure_logging(level: int | str | None = None) -> None:
    """Route the root logger through a single JSON stream handler.

    ``LOG_LEVEL`` from the environment is used when no level is given.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler], force=True)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def _scrub_text(text: str) -> str:
    if _EMAIL.search(text):
        return _EMAIL.sub("[redacted-email]", text)
    prefix = text[:5].lower()
    if prefix == "data:":
        return "[redacted-image]"
    if prefix.startswith("http"):
        return "[redacted-url]"
    if len(text) > _STRING_LIMIT:
        return f"{text[:_STRING_LIMIT]}...[truncated]"
    return text


def redact_for_log(value: Any) -> Any:
    """Return a JSON-safe copy of ``value`` without photos, emails or URLs.

    Mapping keys listed in :data:`SENSITIVE_FIELDS` are masked whatever their
    value, raw bytes are reduced to their length and long strings are cut.
    """

    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _scrub_text(value)
    if isinstance(value, (bytes, bytearray)):
        return f"[{len(value)} bytes]"
    if isinstance(value, dict):
        return {
            key: "[redacted]" if key in SENSITIVE_FIELDS else redact_for_log(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [redact_for_log(item) for item in value]
    return str(value)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (or keep the bound one, or mint one) and return it."""

    if not correlation_id:
        correlation_id = CORRELATION_ID.get() or _new_id()
    CORRELATION_ID.set(correlation_id)
    return correlation_id


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    bound = correlation_id or _new_id()
    token = CORRELATION_ID.set(bound)
    try:
        yield bound
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with scrubbed ``fields`` attached as record attributes."""

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    extra = redact_for_log(fields)
    extra.update(event=event, correlation_id=correlation_id)
    logger.log(level, event, exc_info=exc_info, extra=extra)


@contextlib.contextmanager
def operation_context(name: str) -> Iterator[str]:
    """Run one named operation under the current correlation id, or a fresh one."""

    with correlation_context(CORRELATION_ID.get()) as correlation_id:
        log_event(logging.getLogger(__name__), logging.DEBUG, "operation_started", operation=name)
        yield correlation_id


__all__ = [
    "JsonFormatter",
    "SENSITIVE_FIELDS",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
