"""
fulfillment_services -- Package init and public API.

Responsibility:
    Stateful coordination shared by the lifecycle modules: workflow
    transition resolution (``workflow_executor``) and the host-owned
    aggregate of all fulfillment state (``app_state``).

Architecture position:
    Services -- above fulfillment_kernel, fulfillment_engines and
    fulfillment_config.

    ``workflow_executor`` depends on the kernel only, because the
    lifecycles in fulfillment_modules import it.  ``app_state`` wires the
    modules together and is imported from its own module
    (``from fulfillment_services.app_state import AppState``) so that
    importing this package never pulls in fulfillment_modules.
"""

from fulfillment_services.workflow_executor import (
    OUTCOME_NO_TRANSITION,
    OUTCOME_SUCCESS,
    OUTCOME_UNKNOWN_ACTION,
    TRACE_TYPE_WORKFLOW_TRANSITION,
    WorkflowExecutor,
)

__all__ = [
    "OUTCOME_NO_TRANSITION",
    "OUTCOME_SUCCESS",
    "OUTCOME_UNKNOWN_ACTION",
    "TRACE_TYPE_WORKFLOW_TRANSITION",
    "WorkflowExecutor",
]
