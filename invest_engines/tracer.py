"""
invest_engines.tracer -- Engine invocation tracer emitting INVEST_ENGINE_TRACE.

Responsibility:
    ``@traced_engine`` wraps an engine method and, after each call, logs
    one INVEST_ENGINE_TRACE record naming the engine, its version, a
    fingerprint of the selected inputs and the call duration.  Two calls
    with equal inputs share a fingerprint, so a trace can be matched to a
    later recomputation.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; never alters arguments or results.

Invariants enforced:
    - Fingerprints are deterministic: Decimals are normalised, enums
      reduce to their value, mappings are key-sorted and dataclasses are
      expanded field by field.  SHA-256, first 16 hex characters.
    - Positional and keyword spellings of a call fingerprint the same.

Failure modes:
    - A listed field the call does not supply (a defaulted parameter) is
      recorded as "null".
    - An engine exception propagates and no trace record is written.

Usage:
    from invest_engines.tracer import traced_engine

    @traced_engine("projection", "1.0", fingerprint_fields=("principal",))
    def project(self, principal, monthly_rate, period_months, cycle):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from invest_kernel.logging_config import get_logger

TRACE_MESSAGE = "INVEST_ENGINE_TRACE"

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable text form of an engine input."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, Decimal):
        return str(value.normalize())
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = (
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}(" + ",".join(parts) + ")"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """SHA-256 prefix over ``field=value`` pairs of the listed fields."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorator that emits INVEST_ENGINE_TRACE for an engine call.

    Args:
        engine_name: Engine identifier (e.g. "withdrawal").
        engine_version: Engine version (e.g. "1.0").
        fingerprint_fields: Parameter names included in the fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                arguments = signature.bind_partial(*args, **kwargs).arguments
                fingerprint = compute_input_fingerprint(fingerprint_fields, arguments)

            started = time.monotonic()
            result = func(*args, **kwargs)

            _logger.info(TRACE_MESSAGE, extra={
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator
