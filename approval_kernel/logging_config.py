"""
Structured logging for the approval workflow.

Responsibility:
    One JSON object per log line for every logger under ``approval_kernel``
    (services, selectors, configuration and the ``approval_kernel.engines``
    loggers used by the pure engines).  Request-scoped fields such as the
    request type and the acting employee are carried in ``LogContext`` and
    stamped onto every line emitted while they are bound.

Conventions:
    - The message is a snake_case event name (``approval_advanced``);
      details go in ``extra={...}``.
    - Context fields win over ``extra`` keys of the same name.
    - Typed kernel errors logged with ``exc_info`` contribute their
      ``code`` and public attributes as ``exc_*`` fields.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Iterator, TextIO
from uuid import UUID

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

LOGGER_NAMESPACE = "approval_kernel"

_CONTEXT_FIELDS = (
    "correlation_id",
    "request_type",
    "request_id",
    "employee_id",
    "actor_id",
)

_context_vars: dict[str, ContextVar[Any]] = {
    name: ContextVar(f"approval_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """Request-scoped log fields, safe across threads and asyncio tasks."""

    fields = _CONTEXT_FIELDS

    @staticmethod
    def set(**values: Any) -> None:
        """Set the given fields; None values leave the current value alone."""
        for name, value in values.items():
            if value is not None:
                _context_vars[name].set(value)

    @staticmethod
    def get_all() -> dict[str, Any]:
        return {
            name: var.get()
            for name, var in _context_vars.items()
            if var.get() is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**values: Any) -> Iterator[type[LogContext]]:
        """
        Bind fields for the duration of a ``with`` block.

        Values are stringified; None values and unknown names are skipped.
        Previous values are restored on exit, also when the block raises.
        """
        tokens = [
            (_context_vars[name], _context_vars[name].set(str(value)))
            for name, value in values.items()
            if value is not None and name in _context_vars
        ]
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


class _PayloadEncoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, UUID):
            return str(obj)
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Renders a record as ``{"ts", "level", "logger", "message", ...}``."""

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        }
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **extras,
            **LogContext.get_all(),
        }

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_PayloadEncoder, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``approval_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_setup_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``approval_kernel`` logger.

    Calling it again while a handler is installed does nothing; use
    ``reset_logging`` first to reconfigure.
    """
    global _installed_handler
    with _setup_lock:
        if _installed_handler is not None:
            return
        _installed_handler = handler or logging.StreamHandler(stream or sys.stderr)
        _installed_handler.setFormatter(StructuredFormatter())

        namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
        namespace_logger.setLevel(level)
        namespace_logger.propagate = False
        namespace_logger.addHandler(_installed_handler)


def reset_logging() -> None:
    """Remove the installed handler and restore the WARNING level (tests only)."""
    global _installed_handler
    with _setup_lock:
        _installed_handler = None
        namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
        namespace_logger.handlers.clear()
        namespace_logger.setLevel(logging.WARNING)
