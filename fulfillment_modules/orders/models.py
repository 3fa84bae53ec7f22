"""
Order Domain Models (``fulfillment_modules.orders.models``).

Responsibility
--------------
Frozen value objects for merchant orders and their lines, plus the item
coercion shared by orders and inbound/outbound requests.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  ``OrderLifecycle``
replaces an ``Order`` with ``dataclasses.replace`` on every transition;
nothing mutates an order in place.

Invariants
----------
- ``OrderItem.quantity`` is a positive int; a weight override is
  non-negative.
- ``Order.items`` is non-empty; ``box_fee`` is non-negative.
- Timestamps are ``None`` until the corresponding status is reached.

Failure Modes
-------------
- ``OrderItem`` raises ``InvalidQuantityError`` / ``InvalidFieldValueError``.
- ``coerce_items`` raises ``EmptyItemsError`` for an empty line list.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from fulfillment_kernel.domain.values import ZERO, optional_decimal
from fulfillment_kernel.exceptions import (
    EmptyItemsError,
    InvalidFieldValueError,
    InvalidQuantityError,
)
from fulfillment_modules.inventory.helpers import validate_quantity


class OrderStatus(str, Enum):
    """Order lifecycle states."""
    PENDING = "pending"
    PACKED = "packed"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURN = "return"


class ReturnType(str, Enum):
    """Why goods came back: RTO stock is resellable, damaged stock is not."""
    RTO = "RTO"
    DAMAGED = "Damaged"

    @classmethod
    def parse(cls, value: ReturnType | str) -> ReturnType:
        if isinstance(value, ReturnType):
            return value
        text = str(value).strip()
        for member in cls:
            if member.value.lower() == text.lower():
                return member
        raise InvalidFieldValueError("return_type", value, "expected RTO or Damaged")


@dataclass(frozen=True)
class OrderItem:
    """One product line of an order or request."""
    product_id: str
    quantity: int
    weight_kg: Decimal | None = None

    def __post_init__(self):
        if not self.product_id:
            raise InvalidFieldValueError("product_id", self.product_id, "required")
        qty = validate_quantity(self.quantity)
        if qty == 0:
            raise InvalidQuantityError(self.quantity)
        object.__setattr__(self, "quantity", qty)
        try:
            weight = optional_decimal(self.weight_kg, "weight_kg")
        except ValueError:
            raise InvalidFieldValueError("weight_kg", self.weight_kg, "not a number") from None
        if weight is not None and weight < 0:
            raise InvalidFieldValueError("weight_kg", weight, "must be non-negative")
        object.__setattr__(self, "weight_kg", weight)


def _item(raw: Any) -> OrderItem:
    if isinstance(raw, OrderItem):
        return raw
    if isinstance(raw, Mapping):
        weight = raw.get("weightKg", raw.get("weight_kg"))
        return OrderItem(
            product_id=str(raw.get("productId") or raw.get("product_id") or ""),
            quantity=raw.get("quantity"),
            weight_kg=None if weight == "" else weight,
        )
    if isinstance(raw, tuple):
        return OrderItem(*raw)
    raise InvalidFieldValueError("items", raw, "expected OrderItem, mapping or tuple")


def coerce_items(items: Iterable[Any], entity_type: str = "order") -> tuple[OrderItem, ...]:
    """Normalise host lines into ``OrderItem`` values; at least one is required."""
    coerced = tuple(_item(raw) for raw in items or ())
    if not coerced:
        raise EmptyItemsError(entity_type)
    return coerced


@dataclass(frozen=True)
class Order:
    """
    A merchant order (or a return, when ``status`` is ``return``).

    ``price`` is the flat legacy price fixed at creation;
    ``packing_fee`` is the fee charged at dispatch.
    """
    id: str
    merchant_id: str
    items: tuple[OrderItem, ...]
    status: OrderStatus
    price: Decimal
    created_at: datetime
    packed_at: datetime | None = None
    dispatched_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    packed_weight_kg: Decimal | None = None
    tracking_code: str | None = None
    box_fee: Decimal = ZERO
    box_cutting: bool = False
    return_type: ReturnType | None = None
    packing_fee: Decimal | None = None

    def __post_init__(self):
        if not self.items:
            raise ValueError(f"Order {self.id} has no items")
        if self.box_fee < 0:
            raise ValueError(f"box_fee must be non-negative, got {self.box_fee}")

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_return(self) -> bool:
        return self.status is OrderStatus.RETURN
