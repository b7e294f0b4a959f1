"""
payroll_engines.tracer -- ``PAYROLL_ENGINE_TRACE`` records for calculator calls.

Every decorated calculator method logs one trace record per call naming
the engine, its version, how long it took and a fingerprint of the
inputs that determine its answer. Two calls with the same gross pay,
frequency, code and prior totals share a fingerprint, so a payslip line
can be matched to the calculation that produced it.

The fingerprint is the first 16 hex digits of a SHA-256 over a sorted
JSON rendering of the chosen arguments. Enums contribute their values,
dataclasses such as ``CumulativeTaxState`` their fields, and arguments
the caller left out contribute ``null``.

Usage:
    @traced_engine("student_loan", "1.0", fingerprint_fields=("gross_pay_in_pence", "plan"))
    def calculate_student_loan_deduction(self, gross_pay_in_pence, pay_frequency, plan):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import json
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_EVENT = "PAYROLL_ENGINE_TRACE"


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _plain(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if value is None or isinstance(value, (bool, int, str)):
        return value
    return str(value)


def input_fingerprint(arguments: Mapping[str, Any], fields: tuple[str, ...]) -> str:
    """16-hex-digit SHA-256 prefix identifying the named argument values."""
    chosen = {name: _plain(arguments.get(name)) for name in fields}
    canonical = json.dumps(chosen, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorate a calculator method so each call logs a trace record.

    Arguments are matched to parameter names before fingerprinting, so
    ``calc(300000, "monthly")`` and ``calc(gross_pay_in_pence=300000,
    pay_frequency="monthly")`` trace identically. The wrapped method's
    result and exceptions pass through untouched; a call that raises
    logs no trace.
    """

    def decorate(method: Callable[..., Any]) -> Callable[..., Any]:
        signature = inspect.signature(method)

        @functools.wraps(method)
        def traced(*args: Any, **kwargs: Any) -> Any:
            arguments = signature.bind_partial(*args, **kwargs).arguments
            started = time.perf_counter()
            result = method(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            logger.info(
                TRACE_EVENT,
                extra={
                    "trace_type": TRACE_EVENT,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": input_fingerprint(arguments, fingerprint_fields),
                    "duration_ms": round(elapsed_ms, 3),
                    "function": method.__qualname__,
                },
            )
            return result

        return traced

    return decorate


__all__ = ["TRACE_EVENT", "input_fingerprint", "traced_engine"]
