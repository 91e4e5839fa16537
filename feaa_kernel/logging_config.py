"""
Structured logging for the FEAA ordering system.

Responsibility:
    Renders every record under the ``feaa`` logger namespace as a single
    JSON object per line.  A line carries the envelope (ts, level, logger,
    message), the session fields bound through ``LogContext``, the record's
    ``extra`` fields and, when a failure is logged, an ``exc_*`` section
    built from the exception's ``log_fields()``.

Architecture position:
    Kernel -- imported by every layer.  Imports only
    ``feaa_kernel.exceptions``.

Invariants enforced:
    - Session fields are limited to ``SESSION_FIELDS`` and held as strings.
    - A bound session field wins over an ``extra`` key of the same name, so
      a line logged inside ``finalise_order`` always names the order being
      finalised.
    - Money (Decimal) is written as its exact string, never as a float.
    - ``configure_logging`` installs at most one handler.

Failure modes:
    - ValueError from ``LogContext.set`` / ``bind`` for a field outside
      ``SESSION_FIELDS``.
"""

__all__ = [
    "SESSION_FIELDS",
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
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from feaa_kernel.exceptions import FeaaError

SESSION_FIELDS = frozenset({"session_id", "order_id", "client_id", "actor_id"})

_EMPTY: Mapping[str, str] = MappingProxyType({})
_session: ContextVar[Mapping[str, str]] = ContextVar("feaa_log_session", default=_EMPTY)


class LogContext:
    """
    Session fields attached to every record logged in the current context.

    Backed by one ContextVar holding an immutable mapping, so threads and
    tasks each see their own fields and ``bind`` restores exactly the
    mapping that was active on entry.
    """

    @staticmethod
    def _merged(fields: Mapping[str, object]) -> Mapping[str, str]:
        unknown = set(fields) - SESSION_FIELDS
        if unknown:
            raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_session.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: object) -> None:
        """Add or replace fields; None values leave a field untouched."""
        _session.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_session.get())

    @classmethod
    def clear(cls) -> None:
        _session.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: object) -> Iterator[None]:
        """Bind fields for the duration of a ``with`` block."""
        token = _session.set(cls._merged(fields))
        try:
            yield
        finally:
            _session.reset(token)


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------

_RECORD_ATTRS: frozenset[str] = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _json_default(obj: Any) -> Any:
    """Encode the non-JSON types ordering code logs: money, dates, channels, id sets."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        for key, value in {**extras, **LogContext.get_all()}.items():
            payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info))

        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, exc_info: Any) -> dict[str, Any]:
        exc = exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        if isinstance(exc, FeaaError):
            fields["exc_code"] = exc.code
            for name, value in exc.log_fields().items():
                fields[f"exc_{name}"] = value
        # transport and database failures arrive wrapped
        if exc.__cause__ is not None:
            fields["exc_cause"] = f"{type(exc.__cause__).__name__}: {exc.__cause__}"
        fields["traceback"] = self.formatException(exc_info)
        return fields


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT_LOGGER = "feaa"
_installed: logging.Handler | None = None
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the feaa namespace."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """
    Install the JSON handler on the ``feaa`` logger.

    Only the first call has any effect; every call returns the handler
    that is installed.
    """
    global _installed
    with _lock:
        if _installed is None:
            installed = handler if handler is not None else logging.StreamHandler(
                stream or sys.stderr
            )
            installed.setFormatter(StructuredFormatter())
            root = logging.getLogger(_ROOT_LOGGER)
            root.setLevel(level)
            root.propagate = False
            root.addHandler(installed)
            _installed = installed
        return _installed


def reset_logging() -> None:
    """Remove the installed handler and hand the namespace back to the root logger."""
    global _installed
    with _lock:
        root = logging.getLogger(_ROOT_LOGGER)
        if _installed is not None:
            root.removeHandler(_installed)
            _installed = None
        root.setLevel(logging.NOTSET)
        root.propagate = True
