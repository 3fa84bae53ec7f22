"""
fulfillment_engines.tracer -- ``@traced_engine`` and FULFILLMENT_ENGINE_TRACE.

Responsibility:
    Wrap pure fee and weight functions so every call leaves a DEBUG trace:
    engine name and version, a fingerprint of the inputs that determine the
    result, the fee schedule the call priced against, the Decimal result
    and the duration.  Two calls with the same fingerprint and schedule must
    return the same amount, which is what makes a disputed merchant charge
    reproducible.

Architecture position:
    Engines -- infrastructure for the calculation layer.  Emits a log record
    and nothing else; arguments are never mutated.

Invariants enforced:
    - The fingerprint is SHA-256 over canonical JSON (sorted keys, Decimals
      normalised so ``1.0`` and ``1.00`` agree), truncated to 16 hex chars.
    - Fingerprint fields missing from a call are hashed as ``null``.

Usage:
    @traced_engine("dispatch_fee", "1.0", ("actual_weight_kg", "packing_type"))
    def dispatch_fee(actual_weight_kg, volumetric_weight_kg, packing_type, schedule=...):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

# Child of the kernel root logger, so configure_logging() applies here
# without the engines importing kernel logging.
_logger = logging.getLogger("fulfillment_kernel.engines.tracer")

TRACE_MESSAGE = "FULFILLMENT_ENGINE_TRACE"


def _canonical(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value.normalize()) if value.is_finite() else str(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """16-hex SHA-256 prefix over the named ``arguments``."""
    selected = {name: arguments.get(name) for name in fingerprint_fields}
    canonical = json.dumps(
        selected, sort_keys=True, separators=(",", ":"), default=_canonical
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _schedule_tag(arguments: Mapping[str, Any]) -> str | None:
    schedule = arguments.get("schedule")
    if schedule is None:
        return None
    return f"{schedule.schedule_id}@{schedule.version}"


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorator emitting FULFILLMENT_ENGINE_TRACE for each call.

    Args:
        engine_name: Engine identifier, e.g. ``"dispatch_fee"``.
        engine_version: Bumped when the formula changes.
        fingerprint_fields: Parameter names, positional or keyword, hashed
            into ``input_fingerprint``.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind_partial(*args, **kwargs)
            bound.apply_defaults()
            arguments = bound.arguments

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    TRACE_MESSAGE,
                    extra={
                        "trace_type": TRACE_MESSAGE,
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": compute_input_fingerprint(
                            fingerprint_fields, arguments
                        ),
                        "fee_schedule": _schedule_tag(arguments),
                        "result": result if isinstance(result, Decimal) else None,
                        "duration_ms": round(elapsed_ms, 3),
                        "function": func.__qualname__,
                    },
                )
            return result

        wrapper.engine_name = engine_name  # type: ignore[attr-defined]
        wrapper.engine_version = engine_version  # type: ignore[attr-defined]
        return wrapper

    return decorator
