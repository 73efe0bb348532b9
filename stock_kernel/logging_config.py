"""
Structured JSON logging for the stock kernel.

Every service logs an event name as the message and its data through
``extra=``.  Keys must not collide with LogRecord attributes (``name``,
``msg``, ``args`` ...); use ``product_name``, ``unit_name`` and so on.

Request-scoped fields (correlation, actor, count, product) travel in a
single ContextVar and are stamped onto every line emitted while bound.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from typing import Any, Iterator

CONTEXT_FIELDS = ("correlation_id", "actor_id", "count_id", "product_id")

_context: ContextVar[dict[str, str]] = ContextVar("stock_log_context", default={})


class LogContext:
    """Request-scoped log fields, safe across threads and tasks."""

    @staticmethod
    def set(**fields: Any) -> None:
        """Set the given fields; None values and unknown names are skipped."""
        current = dict(_context.get())
        current.update(_accepted(fields))
        _context.set(current)

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of a block, then restore the previous set."""
        token = _context.set({**_context.get(), **_accepted(fields)})
        try:
            yield LogContext
        finally:
            _context.reset(token)


def _accepted(fields: dict[str, Any]) -> dict[str, str]:
    return {
        key: str(value)
        for key, value in fields.items()
        if key in CONTEXT_FIELDS and value is not None
    }


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_RECORD_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _encode(obj: Any) -> str:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    # Decimal costs and values stay exact.
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_KEYS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_encode)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        to_dict = getattr(exc, "to_dict", None)
        if callable(to_dict):
            error = to_dict()
            fields["exc_code"] = error["code"]
            fields["exc_kind"] = error["kind"]
            for key, value in error["details"].items():
                fields[f"exc_{key}"] = value
        return fields


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT = "stock_kernel"


def get_logger(name: str) -> logging.Logger:
    """Logger under the stock_kernel namespace, e.g. ``services.lot_ledger``."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the stock_kernel logger.  Later calls are no-ops."""
    root = logging.getLogger(_ROOT)
    if getattr(root, "_stock_configured", False):
        return
    root._stock_configured = True  # type: ignore[attr-defined]

    root.setLevel(level)
    root.propagate = False
    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Drop handlers and the configured flag.  Tests only."""
    root = logging.getLogger(_ROOT)
    root._stock_configured = False  # type: ignore[attr-defined]
    root.handlers.clear()
    root.setLevel(logging.WARNING)
