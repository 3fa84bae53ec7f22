"""
Configuration Validator (``fulfillment_config.validator``).

Responsibility
--------------
Validates a ``FeeScheduleDef`` before it is bridged into the runtime
``FeeSchedule``, collecting every problem instead of stopping at the
first one.

Invariants enforced
-------------------
* Every tier names a known packing type, at most once.
* The default packing type has a tier.
* Aliases point at known packing types.
* Amounts are non-negative; step and divisor are positive.

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``) -> the schedule
  MUST NOT be used.
* Validation warnings -> usable, but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fulfillment_config.schema import FeeScheduleDef
from fulfillment_engines.fees import PackingType

_KNOWN_TYPES = frozenset(t.value for t in PackingType)


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_fee_schedule(schedule: FeeScheduleDef) -> ConfigValidationResult:
    """Validate a parsed fee schedule definition."""
    result = ConfigValidationResult()

    _validate_tiers(schedule, result)
    _validate_aliases(schedule, result)
    _validate_amounts(schedule, result)

    return result


def _validate_tiers(schedule: FeeScheduleDef, result: ConfigValidationResult) -> None:
    seen: set[str] = set()
    for tier in schedule.tiers:
        if tier.packing_type not in _KNOWN_TYPES:
            result.add_error(f"Unknown packing type in tiers: '{tier.packing_type}'")
        if tier.packing_type in seen:
            result.add_error(f"Duplicate tier for packing type '{tier.packing_type}'")
        seen.add(tier.packing_type)
        if tier.base_fee < 0 or tier.increment_fee < 0:
            result.add_error(f"Tier '{tier.packing_type}' has a negative fee")

    if schedule.default_packing_type not in seen:
        result.add_error(
            f"Default packing type '{schedule.default_packing_type}' has no tier"
        )

    for missing in sorted(_KNOWN_TYPES - seen):
        result.add_warning(
            f"No tier for packing type '{missing}'; it will be priced as "
            f"'{schedule.default_packing_type}'"
        )


def _validate_aliases(schedule: FeeScheduleDef, result: ConfigValidationResult) -> None:
    for label, target in schedule.aliases:
        if target not in _KNOWN_TYPES:
            result.add_error(f"Alias '{label}' points at unknown packing type '{target}'")


def _validate_amounts(schedule: FeeScheduleDef, result: ConfigValidationResult) -> None:
    if schedule.weight_step_kg <= 0:
        result.add_error("weight_step_kg must be positive")
    if schedule.volumetric_divisor <= 0:
        result.add_error("volumetric_divisor must be positive")
    if schedule.base_weight_kg < 0:
        result.add_error("base_weight_kg must be non-negative")
    for name in ("inbound_rate_per_step", "order_unit_price", "tracking_fee", "box_cutting_fee"):
        if getattr(schedule, name) < 0:
            result.add_error(f"{name} must be non-negative")
