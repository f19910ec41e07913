"""Structured logging configuration with call correlation."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

_request_id: ContextVar[str | None] = ContextVar("tokenapi_request_id", default=None)

# Extra attributes copied from ``logger.info(..., extra={...})`` into the payload
EXTRA_KEYS = ("event", "user_name", "outcome", "failure_kind")


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting logic
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        return True


def current_request_id() -> str | None:
    """Return the correlation id bound to the running call, if any."""
    return _request_id.get()


@contextmanager
def bind_request_id(request_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of a block.

    An existing binding is reused so nested service calls share one id; a
    new UUID4 is generated when neither the caller nor an outer scope
    provides one.

    :param request_id: Explicit correlation id (e.g. from the host request).
    :returns: Context manager yielding the effective id.
    """
    effective = request_id or _request_id.get() or str(uuid4())
    token = _request_id.set(effective)
    try:
        yield effective
    finally:
        _request_id.reset(token)


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root logger with JSON-formatted stdout output."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    level_value: int | str = level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level_value = resolved if isinstance(resolved, int) else level.upper()
    root.setLevel(level_value)


__all__ = ["configure_logging", "bind_request_id", "current_request_id"]
