"""Utility modules for the fulfillment kernel."""

from fulfillment_kernel.utils.idempotency import (
    generate_idempotency_key,
    parse_idempotency_key,
)
from fulfillment_kernel.utils.ids import (
    IdFactory,
    generate_entity_id,
    sequential_id_factory,
)

__all__ = [
    "IdFactory",
    "generate_entity_id",
    "generate_idempotency_key",
    "parse_idempotency_key",
    "sequential_id_factory",
]
