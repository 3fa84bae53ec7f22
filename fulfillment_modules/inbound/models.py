"""
Inbound Domain Models (``fulfillment_modules.inbound.models``).

Stock movement requests raised by merchants: ``inbound`` brings goods into
the warehouse, ``outbound`` takes them out (e.g. back to the merchant).
Both share one workflow and one frozen request type; lines reuse
``OrderItem``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from fulfillment_kernel.domain.values import ZERO
from fulfillment_kernel.exceptions import InvalidFieldValueError
from fulfillment_modules.orders.models import OrderItem


class InboundStatus(str, Enum):
    """Request lifecycle states."""
    PENDING = "pending"
    INITIATED_PICKUP = "initiated_pickup"
    PICKED_UP = "picked_up"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestType(str, Enum):
    """Direction of the stock movement."""
    INBOUND = "inbound"
    OUTBOUND = "outbound"

    @classmethod
    def parse(cls, value: RequestType | str) -> RequestType:
        if isinstance(value, RequestType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidFieldValueError(
                "request_type", value, "expected inbound or outbound"
            ) from None


@dataclass(frozen=True)
class InboundRequest:
    """
    An inbound or outbound request.

    ``total_weight_kg`` is reported to 3 decimals; ``fee`` is the inbound
    fee of the exact total (always 0 for outbound).  ``inventory_applied``
    turns true exactly once, on completion.
    """
    id: str
    merchant_id: str
    request_type: RequestType
    items: tuple[OrderItem, ...]
    status: InboundStatus
    total_weight_kg: Decimal
    fee: Decimal
    created_at: datetime
    pickup_initiated_at: datetime | None = None
    picked_up_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    inventory_applied: bool = False

    def __post_init__(self):
        if not self.items:
            raise ValueError(f"Request {self.id} has no items")
        if self.fee < ZERO:
            raise ValueError(f"fee must be non-negative, got {self.fee}")

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_outbound(self) -> bool:
        return self.request_type is RequestType.OUTBOUND
