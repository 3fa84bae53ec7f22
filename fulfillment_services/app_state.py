"""
fulfillment_services.app_state -- Host-owned fulfillment state.

Responsibility:
    Wires the catalog, inventory ledger, fee journal, workflow executor and
    both lifecycle coordinators around a single clock, id factory and fee
    schedule.  There are no module-level singletons: the host creates an
    ``AppState``, keeps it, and passes it where it is needed.

Architecture position:
    Services layer -- the composition root.  Imports from every other
    package; nothing in the library imports it.

Usage:
    state = AppState.create(products=[...], inventory=[...])
    order = state.orders.create("m1", [("p1", 2)]).entity
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fulfillment_config import get_active_schedule
from fulfillment_engines.fees import FeeSchedule
from fulfillment_kernel.domain.clock import Clock, SystemClock
from fulfillment_kernel.logging_config import get_logger
from fulfillment_kernel.utils.ids import IdFactory, generate_entity_id
from fulfillment_modules.billing.journal import FeeJournal
from fulfillment_modules.billing.models import MerchantStatement
from fulfillment_modules.catalog.models import Product, ProductCatalog
from fulfillment_modules.inbound.service import InboundLifecycle
from fulfillment_modules.inventory.ledger import InventoryLedger
from fulfillment_modules.inventory.models import InventoryRecord
from fulfillment_modules.orders.service import OrderLifecycle
from fulfillment_services.workflow_executor import OutcomeSink, WorkflowExecutor

logger = get_logger("services.app_state")


def _product(raw: Product | Mapping[str, Any]) -> Product:
    return raw if isinstance(raw, Product) else Product.from_record(raw)


def _record(raw: InventoryRecord | Mapping[str, Any]) -> InventoryRecord:
    return raw if isinstance(raw, InventoryRecord) else InventoryRecord.from_record(raw)


@dataclass
class AppState:
    """Everything a host needs to run fulfillment, in one object."""

    catalog: ProductCatalog
    ledger: InventoryLedger
    journal: FeeJournal
    executor: WorkflowExecutor
    orders: OrderLifecycle
    inbound: InboundLifecycle
    schedule: FeeSchedule
    clock: Clock

    @classmethod
    def create(
        cls,
        products: Iterable[Product | Mapping[str, Any]] = (),
        inventory: Iterable[InventoryRecord | Mapping[str, Any]] = (),
        schedule: FeeSchedule | None = None,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        outcome_sink: OutcomeSink | None = None,
    ) -> AppState:
        """
        Build a fully wired state.

        Products and inventory records may be domain objects or host
        records with camelCase keys.  Without ``schedule`` the shipped
        default price list is loaded through ``get_active_schedule()``.
        """
        clock = clock or SystemClock()
        new_id = id_factory or generate_entity_id
        schedule = schedule or get_active_schedule()

        catalog = ProductCatalog(_product(p) for p in products)
        ledger = InventoryLedger((_record(r) for r in inventory), clock=clock)
        journal = FeeJournal(clock=clock, id_factory=new_id)
        executor = WorkflowExecutor(clock=clock, outcome_sink=outcome_sink)

        common: dict[str, Any] = {
            "catalog": catalog,
            "ledger": ledger,
            "journal": journal,
            "executor": executor,
            "schedule": schedule,
            "clock": clock,
            "id_factory": new_id,
        }
        state = cls(
            catalog=catalog,
            ledger=ledger,
            journal=journal,
            executor=executor,
            orders=OrderLifecycle(**common),
            inbound=InboundLifecycle(**common),
            schedule=schedule,
            clock=clock,
        )
        logger.info(
            "app_state_created",
            extra={
                "product_count": len(catalog),
                "inventory_records": len(ledger.records()),
                "schedule_id": schedule.schedule_id,
                "schedule_version": schedule.version,
            },
        )
        return state

    def statement(self, merchant_id: str, period: str | None = None) -> MerchantStatement:
        return self.journal.statement(merchant_id, period)
