"""
Structured JSON logging for the retail kernel.

Every record under the ``retail_kernel`` logger is written as one JSON line.
Besides the record's own ``extra`` fields, a line carries whatever
request-scoped fields are bound in LogContext at the time: the HTTP request
and actor, the operation's correlation id, and the shop and document being
worked on.  A stock movement logged deep inside the inventory ledger can
therefore be traced back to the billing serial and request that caused it.

Kernel errors logged with ``exc_info`` contribute their code, kind and
structured details as ``exc_*`` fields.

Usage:
    logger = get_logger("services.inventory_ledger")
    with LogContext.bind(shop_slug="tienda-centro", serial_number="FAC-2024-000001"):
        logger.info("stock_delta_applied", extra={"new_quantity": Decimal("7")})
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
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from retail_kernel.exceptions import RetailKernelError

_LOGGER_PREFIX = "retail_kernel"

# Output order of the context fields in a log line
CONTEXT_FIELDS = (
    "request_id",
    "actor_id",
    "correlation_id",
    "shop_slug",
    "document_id",
    "serial_number",
)

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"retail_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _context_vars[name]
    except KeyError:
        raise ValueError(f"Unknown log context field: {name}") from None


class LogContext:
    """
    Request-scoped log fields.

    Values live in ContextVars, so each thread and each asyncio task sees
    its own.  Values are stored as strings; None means "not set" and is
    never written.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        ctx = {}
        for name in CONTEXT_FIELDS:
            value = _context_vars[name].get()
            if value is not None:
                ctx[name] = value
        return ctx

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Set fields for the duration of the block, then restore the previous values."""
        tokens = []
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                tokens.append((var, var.set(str(value))))
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _jsonable(value: Any) -> Any:
    # Money and quantities keep their exact digits
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, RetailKernelError):
        fields["exc_code"] = exc.code
        fields["exc_kind"] = exc.kind.value
        for key, value in exc.details.items():
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
        }
        payload.update(LogContext.get_all())

        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_jsonable)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the retail_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the retail_kernel logger.

    Only the first call has an effect until reset_logging().  level may be
    a logging constant or a level name in any case (the config's log_level).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = level.upper()

    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(h)


def reset_logging() -> None:
    """Remove handlers and allow configure_logging() again. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(_LOGGER_PREFIX)
    for h in list(kernel_logger.handlers):
        if isinstance(h.formatter, StructuredFormatter):
            kernel_logger.removeHandler(h)
    kernel_logger.setLevel(logging.WARNING)
