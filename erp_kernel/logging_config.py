"""
Structured JSON logging for the ERP accounting engine.

Every record is one JSON line: ``ts``, ``level``, ``logger``, ``message``,
the bound context fields (which invoice or product the write path is
working on), any ``extra`` payload, and for errors the exception type plus
the structured attributes of ``ErpKernelError`` subclasses as ``exc_*``.

Loggers live under the ``erp_kernel`` namespace (``get_logger("engines.aging")``
-> ``erp_kernel.engines.aging``). ``configure_logging`` installs one handler
on that namespace and stops propagation; repeated calls are no-ops until
``reset_logging``.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator
from uuid import UUID

_LOGGER_PREFIX = "erp_kernel"

# ---------------------------------------------------------------------------
# Bound context
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = (
    "correlation_id",
    "request_id",
    "actor_id",
    "invoice_id",
    "product_id",
)

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"erp_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """
    Context-variable fields stamped onto every record.

    ``invoice_id`` is bound by ``InvoicingService.record_sale`` and
    ``product_id`` by ``InventoryValuationService.allocate_cogs``, so the
    FIFO allocator's warnings can be traced back to the sale that caused them.
    """

    @staticmethod
    def _var(name: str) -> ContextVar[str | None]:
        try:
            return _context_vars[name]
        except KeyError:
            raise ValueError(f"Unknown log context field: {name}") from None

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set the given fields; ``None`` leaves a field unchanged."""
        for name, value in fields.items():
            var = cls._var(name)
            if value is not None:
                var.set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: value
            for name, var in _context_vars.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _context_vars.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        tokens = [
            (cls._var(name), cls._var(name).set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    # Money stays exact in logs: Decimal is written as its string form
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for key, value in vars(exc).items():
        if not key.startswith("_") and key not in ("args", "code"):
            fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the erp_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_setup_lock = threading.Lock()
_handler_installed = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``erp_kernel`` namespace.

    ``level`` accepts a ``logging`` constant or a name such as ``"debug"``
    (as read from the settings file). Only the first call has any effect.
    """
    global _handler_installed
    with _setup_lock:
        if _handler_installed:
            return
        _handler_installed = True

    if isinstance(level, str):
        level = level.upper()

    namespace = logging.getLogger(_LOGGER_PREFIX)
    namespace.setLevel(level)
    namespace.propagate = False

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    namespace.addHandler(target)


def reset_logging() -> None:
    """Undo ``configure_logging``. Tests only."""
    global _handler_installed
    with _setup_lock:
        _handler_installed = False
    namespace = logging.getLogger(_LOGGER_PREFIX)
    namespace.handlers.clear()
    namespace.setLevel(logging.WARNING)
