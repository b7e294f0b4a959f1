"""
payroll_kernel.logging_config -- one JSON object per log line.

Each line carries the timestamp, level, logger name and event name, then
the period context bound by the orchestrator, then the record's ``extra``
fields. Amounts are integer pence and pass through unchanged. ``Decimal``
rates are written as strings so no digits are lost, enums as their
values and dates in ISO form.

A ``PayrollKernelError`` logged with ``exc_info`` adds its ``code`` and
its structured attributes (``exc_raw_code``, ``exc_errors``, ...), so a
rejected input can be found by error code without parsing messages.

Usage:
    from payroll_kernel.logging_config import get_logger

    logger = get_logger("engines.student_loan")
    logger.debug("student_loan_calculated", extra={"deduction": 8258})
"""

from __future__ import annotations

import contextlib
import functools
import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO

from payroll_kernel.exceptions import PayrollKernelError

ROOT_LOGGER_NAME = "payroll_kernel"

_CONTEXT_FIELDS: dict[str, ContextVar[str | None]] = {
    "correlation_id": ContextVar("payroll_correlation_id", default=None),
    "period_number": ContextVar("payroll_period_number", default=None),
}


def _known_fields(fields: dict[str, object]) -> dict[str, object]:
    unknown = sorted(set(fields) - set(_CONTEXT_FIELDS))
    if unknown:
        raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
    return fields


class LogContext:
    """
    Fields stamped on every record emitted during a calculation.

    ``correlation_id`` is set by the caller to group the records of one
    request. ``period_number`` is bound by the orchestrator around each
    period it calculates. Values are stored as strings; ``None`` leaves a
    field untouched.
    """

    @staticmethod
    def set(**fields: object) -> None:
        for name, value in _known_fields(fields).items():
            if value is not None:
                _CONTEXT_FIELDS[name].set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        values = {name: var.get() for name, var in _CONTEXT_FIELDS.items()}
        return {name: value for name, value in values.items() if value is not None}

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT_FIELDS.values():
            var.set(None)

    @staticmethod
    @contextlib.contextmanager
    def bind(**fields: object) -> Iterator[None]:
        """Set fields for the body of a ``with`` block, then restore them."""
        tokens = [
            (_CONTEXT_FIELDS[name], _CONTEXT_FIELDS[name].set(str(value)))
            for name, value in _known_fields(fields).items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Payload encoding


@functools.singledispatch
def _encode(value: Any) -> Any:
    return str(value)


@_encode.register(Decimal)
def _(value: Decimal) -> str:
    return str(value)


@_encode.register(Enum)
def _(value: Enum) -> Any:
    return value.value


@_encode.register(date)
def _(value: date) -> str:
    return value.isoformat()


_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {"exc_type": type(exc).__name__, "exc_message": str(exc)}
    if isinstance(exc, PayrollKernelError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                line.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            line.update(_exception_fields(record.exc_info[1]))
            line["traceback"] = self.formatException(record.exc_info)

        return json.dumps(line, default=_encode)


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("engines.income_tax")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_setup_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """
    Send ``payroll_kernel`` records through one JSON handler.

    The first call installs the handler and sets the level. Later calls
    change nothing and return the handler already installed.
    """
    global _installed_handler
    with _setup_lock:
        if _installed_handler is None:
            if handler is None:
                handler = logging.StreamHandler(stream or sys.stderr)
            handler.setFormatter(StructuredFormatter())
            root = logging.getLogger(ROOT_LOGGER_NAME)
            root.setLevel(level)
            root.propagate = False
            root.addHandler(handler)
            _installed_handler = handler
        return _installed_handler


def reset_logging() -> None:
    """Remove the installed handler so tests can configure afresh."""
    global _installed_handler
    with _setup_lock:
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if _installed_handler is not None:
            root.removeHandler(_installed_handler)
            _installed_handler = None
        root.setLevel(logging.NOTSET)
        root.propagate = True


__all__ = [
    "LogContext",
    "ROOT_LOGGER_NAME",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]
