"""
fulfillment_config -- single public entrypoint for the warehouse price list.

Responsibility:
    Provides the ONLY way to obtain a fee schedule at runtime through
    ``get_active_schedule()``.  YAML loading, validation and bridging are
    internal steps never exposed to lifecycle code.

Architecture position:
    Configuration -- sits above ``fulfillment_engines`` and below
    ``fulfillment_services``.  Engines MUST NEVER import from
    ``fulfillment_config``; ``bridges.py`` translates the parsed definition
    into the engine's ``FeeSchedule``.

Failure modes:
    - ``FileNotFoundError`` -- the schedule file does not exist.
    - ``FeeScheduleValidationError`` -- the schedule failed validation.

Audit relevance:
    Every successful ``get_active_schedule()`` call emits a
    ``FULFILLMENT_CONFIG_TRACE`` log entry with the schedule id, version
    and checksum, tying every computed fee to the price list in force.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fulfillment_config.bridges import to_fee_schedule
from fulfillment_config.loader import load_fee_schedule
from fulfillment_config.validator import validate_fee_schedule
from fulfillment_engines.fees import FeeSchedule
from fulfillment_kernel.exceptions import FeeScheduleValidationError

_logger = logging.getLogger("fulfillment_kernel.config")

DEFAULT_SCHEDULE_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_schedule(path: Path | str | None = None) -> FeeSchedule:
    """The ONLY public configuration entrypoint.

    Args:
        path: Fee schedule YAML file.  Defaults to the shipped
            ``sets/default.yaml``.

    Raises:
        FeeScheduleValidationError: if validation reports any error.
    """
    source = Path(path) if path is not None else DEFAULT_SCHEDULE_PATH
    definition = load_fee_schedule(source)

    validation = validate_fee_schedule(definition)
    for warning in validation.warnings:
        _logger.warning("fee_schedule_warning", extra={"detail": warning})
    if not validation.is_valid:
        _logger.error(
            "fee_schedule_invalid",
            extra={"path": str(source), "errors": validation.errors},
        )
        raise FeeScheduleValidationError(validation.errors)

    schedule = to_fee_schedule(definition)
    _logger.info(
        "FULFILLMENT_CONFIG_TRACE",
        extra={
            "trace_type": "FULFILLMENT_CONFIG_TRACE",
            "schedule_id": definition.schedule_id,
            "schedule_version": definition.version,
            "checksum": definition.checksum,
            "tier_count": len(definition.tiers),
            "path": str(source),
        },
    )
    return schedule


__all__ = ["DEFAULT_SCHEDULE_PATH", "get_active_schedule"]
