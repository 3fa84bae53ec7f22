"""
Order Workflows.

State machine for the order lifecycle.  ``return`` is terminal and has no
inbound transition: returns are created directly in that state.
"""

from fulfillment_kernel.domain.workflow import Transition, Workflow
from fulfillment_kernel.logging_config import get_logger

logger = get_logger("modules.orders.workflows")


ORDER_WORKFLOW = Workflow(
    name="order",
    description="Merchant order fulfillment",
    initial_state="pending",
    states=(
        "pending",
        "packed",
        "dispatched",
        "delivered",
        "cancelled",
        "return",
    ),
    transitions=(
        Transition("pending", "packed", action="mark_packed"),
        Transition(
            "packed",
            "dispatched",
            action="dispatch",
            applies_inventory=True,
            records_fee=True,
        ),
        Transition("dispatched", "delivered", action="mark_delivered"),
        Transition("pending", "cancelled", action="cancel"),
        Transition("packed", "cancelled", action="cancel"),
    ),
    terminal_states=("delivered", "cancelled", "return"),
)

# Line items may change only before stock leaves the warehouse.
EDITABLE_STATES: frozenset[str] = frozenset({"pending", "packed"})

logger.info(
    "order_workflow_defined",
    extra={
        "workflow": ORDER_WORKFLOW.name,
        "states": list(ORDER_WORKFLOW.states),
    },
)
