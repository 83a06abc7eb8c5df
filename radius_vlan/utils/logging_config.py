"""Structured logging configuration helpers."""

from __future__ import annotations

import json
import logging
import socket
import time
import traceback
from collections.abc import Iterable, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

__all__ = [
    "configure_logging",
    "get_structured_logger",
    "bind_context",
    "clear_context",
    "logging_context",
    "parse_level",
    "StructuredJSONFormatter",
    "StructuredLoggerAdapter",
]

SERVICE_NAME = "radius_vlan"

_STANDARD_ATTRS: Iterable[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "context",
        "taskName",
    }
)

# Per-request fields (correlation id, client ip) bound by the request handler.
_context: ContextVar[dict[str, Any]] = ContextVar(
    "radius_vlan_logging_context", default={}
)
_logging_configured = False


@lru_cache(maxsize=1)
def _get_host() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def _json_default(value: Any) -> str:
    return repr(value)


class StructuredJSONFormatter(logging.Formatter):
    """Formatter that renders log records as one JSON object per line."""

    def __init__(self, *, utc: bool = True) -> None:
        super().__init__()
        self.utc = utc

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC if self.utc else None).isoformat(),
            "t_monotonic_ms": int(time.monotonic() * 1000),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "host": _get_host(),
        }

        evt = getattr(record, "event", None)
        if evt:
            payload["event"] = evt

        context = getattr(record, "context", None) or _context.get()
        for key, value in dict(context or {}).items():
            payload.setdefault(key, value)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            if payload.get(key) not in (None, ""):
                continue
            payload[key] = value

        if record.exc_info:
            payload["error"] = {
                "type": str(getattr(record.exc_info[0], "__name__", "")),
                "message": str(record.exc_info[1]),
                "stack": "".join(traceback.format_exception(*record.exc_info)).strip(),
            }
        elif record.exc_text:
            payload["error"] = {"message": record.exc_text}

        return json.dumps(payload, default=_json_default, ensure_ascii=True)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter turning keyword arguments into structured fields.

    ``logger.warning("msg", event="radius.x", client_ip=ip)`` puts ``event``
    and ``client_ip`` on the record. The static context given to
    :func:`get_structured_logger` and the per-request context bound with
    :func:`bind_context` are merged under ``context``.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.setdefault("extra", {})

        custom_fields = [
            key
            for key in list(kwargs.keys())
            if key not in {"exc_info", "stack_info", "stacklevel", "extra"}
        ]
        for key in custom_fields:
            extra.setdefault(key, kwargs.pop(key))

        context_data = _context.get()
        if context_data or self.extra:
            extra.setdefault("context", {**dict(context_data), **dict(self.extra or {})})
        return msg, kwargs


def parse_level(level: str | int | None, default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    if isinstance(level, int):
        return level
    if not level:
        return default
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(
    level: int = logging.INFO,
    *,
    stream: Any | None = None,
    handlers: Iterable[logging.Handler] | None = None,
    formatter: logging.Formatter | None = None,
    reset: bool = True,
) -> None:
    """Configure root logging with structured JSON output."""

    global _logging_configured

    formatter = formatter or StructuredJSONFormatter()
    resolved_handlers: Iterable[logging.Handler] = handlers or (
        logging.StreamHandler(stream),
    )

    root = logging.getLogger()
    if reset:
        root.handlers = []

    for handler in resolved_handlers:
        if handler.level == logging.NOTSET:
            handler.setLevel(level)
        if handler.formatter is None:
            handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(level)
    _logging_configured = True


def get_structured_logger(name: str, **context: Any) -> StructuredLoggerAdapter:
    """Return a structured logger adapter with optional static context."""
    if not _logging_configured:
        configure_logging()
    static = {k: v for k, v in context.items() if v is not None}
    return StructuredLoggerAdapter(logging.getLogger(name), static)


def bind_context(**kwargs: Any) -> Token:
    """Bind key/value pairs to the contextual log scope."""
    current = dict(_context.get())
    current.update({k: v for k, v in kwargs.items() if v is not None})
    return _context.set(current)


def clear_context(token: Token | None = None) -> None:
    """Clear contextual information, optionally using a context token."""
    if token is not None:
        _context.reset(token)
    else:
        _context.set({})


@contextmanager
def logging_context(**kwargs: Any):
    """Context manager that binds log context for the enclosed block."""
    token = bind_context(**kwargs)
    try:
        yield
    finally:
        clear_context(token)
