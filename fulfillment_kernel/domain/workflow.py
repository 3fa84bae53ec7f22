"""
Canonical workflow types (``fulfillment_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for entity state machines.  Orders and inbound/outbound
requests each declare exactly one ``Workflow`` -- an explicit transition
table -- instead of re-checking string statuses at every call site.
``TransitionResult`` is the typed outcome every lifecycle operation
returns to the host.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``fulfillment_modules`` or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fulfillment_kernel.exceptions import FulfillmentKernelError


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    Contract: frozen.  ``applies_inventory=True`` marks a transition whose
    commit is coupled to an inventory ledger mutation; ``records_fee=True``
    marks one that emits a fee transaction.
    """
    from_state: str
    to_state: str
    action: str
    applies_inventory: bool = False
    records_fee: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an entity lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in states of {self.name}"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Transition {t.from_state}->{t.to_state} ({t.action}) "
                    f"references unknown state in {self.name}"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Terminal state '{t.from_state}' has outgoing transition "
                    f"'{t.action}' in {self.name}"
                )

    def find_transition(self, current_state: str, action: str) -> Transition | None:
        """Return the transition for ``action`` out of ``current_state``, if any."""
        for t in self.transitions:
            if t.from_state == current_state and t.action == action:
                return t
        return None

    def allowed_actions(self, current_state: str) -> tuple[str, ...]:
        """Actions that may fire from ``current_state``, in table order."""
        return tuple(
            t.action for t in self.transitions if t.from_state == current_state
        )

    @property
    def actions(self) -> frozenset[str]:
        return frozenset(t.action for t in self.transitions)


@dataclass(frozen=True)
class TransitionResult:
    """Typed outcome of a lifecycle operation.

    Contract:
        ``success=False`` carries at least one typed error in ``errors``
        and guarantees that no entity or inventory state was changed.

    Attributes:
        entity: The entity snapshot after the operation (before it, on
            failure; ``None`` when the entity does not exist).
        inventory_deltas: Ledger changes committed by the transition.
        low_stock: Low-stock alerts raised by decrements.
        fee_transaction: Fee recorded as the transition's side-output.
        already_applied: Idempotent repeat -- nothing was changed.
    """

    success: bool
    action: str
    entity_id: str | None = None
    from_state: str | None = None
    new_state: str | None = None
    entity: Any = None
    errors: tuple[FulfillmentKernelError, ...] = ()
    inventory_deltas: tuple[Any, ...] = ()
    low_stock: tuple[Any, ...] = ()
    fee_transaction: Any = None
    already_applied: bool = False
    reason: str = ""

    @property
    def error(self) -> FulfillmentKernelError | None:
        """First error, or ``None`` on success."""
        return self.errors[0] if self.errors else None

    @property
    def error_codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)
