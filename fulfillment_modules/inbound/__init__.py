"""Inbound and outbound stock requests."""

from fulfillment_modules.inbound.models import (
    InboundRequest,
    InboundStatus,
    RequestType,
)
from fulfillment_modules.inbound.service import InboundLifecycle
from fulfillment_modules.inbound.workflows import INBOUND_WORKFLOW

__all__ = [
    "INBOUND_WORKFLOW",
    "InboundLifecycle",
    "InboundRequest",
    "InboundStatus",
    "RequestType",
]
