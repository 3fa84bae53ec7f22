"""
Inbound Workflows.

One state machine shared by inbound and outbound requests.  Completion is
allowed from any open state so the warehouse can receive goods that were
dropped off without a pickup.
"""

from fulfillment_kernel.domain.workflow import Transition, Workflow
from fulfillment_kernel.logging_config import get_logger

logger = get_logger("modules.inbound.workflows")


INBOUND_WORKFLOW = Workflow(
    name="inbound_request",
    description="Inbound / outbound stock request processing",
    initial_state="pending",
    states=(
        "pending",
        "initiated_pickup",
        "picked_up",
        "completed",
        "cancelled",
    ),
    transitions=(
        Transition("pending", "initiated_pickup", action="initiate_pickup"),
        Transition("initiated_pickup", "picked_up", action="mark_picked_up"),
        Transition(
            "pending", "completed", action="complete",
            applies_inventory=True, records_fee=True,
        ),
        Transition(
            "initiated_pickup", "completed", action="complete",
            applies_inventory=True, records_fee=True,
        ),
        Transition(
            "picked_up", "completed", action="complete",
            applies_inventory=True, records_fee=True,
        ),
        Transition("pending", "cancelled", action="cancel"),
        Transition("initiated_pickup", "cancelled", action="cancel"),
    ),
    terminal_states=("completed", "cancelled"),
)

logger.info(
    "inbound_workflow_defined",
    extra={
        "workflow": INBOUND_WORKFLOW.name,
        "states": list(INBOUND_WORKFLOW.states),
    },
)
