"""
Pure domain layer.

Value objects and helpers with NO dependencies on I/O, persistence or
module code.  All workflow objects are immutable and deterministic.
"""

from fulfillment_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fulfillment_kernel.domain.values import (
    MONEY_PLACES,
    WEIGHT_PLACES,
    ZERO,
    optional_decimal,
    round_money,
    round_weight,
    to_decimal,
)
from fulfillment_kernel.domain.workflow import Transition, TransitionResult, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "MONEY_PLACES",
    "WEIGHT_PLACES",
    "ZERO",
    "optional_decimal",
    "round_money",
    "round_weight",
    "to_decimal",
    "Transition",
    "TransitionResult",
    "Workflow",
]
