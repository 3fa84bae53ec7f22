"""
Structured JSON logging for the fulfillment kernel.

Every logger lives under the ``fulfillment_kernel`` namespace and emits one
JSON object per line.  Request-scoped ids (merchant, order, inbound request,
correlation) are carried by ``LogContext`` and merged into every record, so
call sites only pass the event name and an ``extra=`` payload::

    logger = get_logger("modules.orders.service")
    with LogContext.bind(order_id=order.id, merchant_id=order.merchant_id):
        logger.info("order_transition_applied", extra={"to_state": "dispatched"})
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
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "merchant_id",
    "order_id",
    "request_id",
    "trace_id",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar(
    "fulfillment_log_context", default=_EMPTY
)


def _merged(updates: Mapping[str, str | None]) -> Mapping[str, str]:
    current = dict(_context.get())
    for name, value in updates.items():
        if name in CONTEXT_FIELDS and value is not None:
            current[name] = value
    return MappingProxyType(current)


class LogContext:
    """
    Context-local ids attached to every log record.

    Backed by one ``ContextVar`` holding a read-only snapshot, so threads and
    asyncio tasks each see their own ids.  Names outside ``CONTEXT_FIELDS``
    and ``None`` values are ignored.
    """

    @staticmethod
    def set(**fields: str | None) -> None:
        """Merge ``fields`` into the current context."""
        _context.set(_merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """Set ``fields`` for the duration of a ``with`` block."""
        token = _context.set(_merged(fields))
        try:
            yield LogContext
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _jsonable(value: Any) -> Any:
    """Fallback encoder for values ``json`` cannot serialise natively."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        # Money and weights keep their scale: "17.00", "1.200".
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, UUID):
        return str(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Kernel errors expose their context as public attributes.
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_jsonable)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

ROOT_LOGGER = "fulfillment_kernel"

_state_lock = threading.Lock()
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Logger named ``fulfillment_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``fulfillment_kernel`` root logger.

    Only the first call has an effect.  Records do not propagate to the
    process root logger, so host logging setups are left alone.
    """
    global _configured
    with _state_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging``. FOR TESTING ONLY."""
    global _configured
    with _state_lock:
        _configured = False
    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
