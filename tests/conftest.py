"""
Pytest fixtures for the fulfillment test suite.

Provides:
- Structured logging configured once per session
- ``captured_logs`` for asserting on emitted JSON log records
- A deterministic clock and id factory
- A sample product catalog and a fully wired ``AppState``
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from fulfillment_engines.fees import DEFAULT_FEE_SCHEDULE
from fulfillment_kernel.domain.clock import DeterministicClock
from fulfillment_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fulfillment_kernel.utils.ids import sequential_id_factory
from fulfillment_modules.billing.journal import FeeJournal
from fulfillment_modules.catalog.models import Product, ProductCatalog
from fulfillment_modules.inventory.ledger import InventoryLedger
from fulfillment_modules.inventory.models import InventoryRecord
from fulfillment_services.app_state import AppState
from fulfillment_services.workflow_executor import WorkflowExecutor


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fulfillment_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orders):
            orders.dispatch(order_id)
            logs = captured_logs()
            assert any(r["message"] == "order_transition_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fulfillment_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def id_factory():
    return sequential_id_factory()


@pytest.fixture
def products():
    """
    p1: 0.4 kg, no dimensions, normal      -> dispatch fee 7
    p2: 1.8 kg, no dimensions, normal      -> dispatch fee 13
    p3: 0.8 kg, 30x20x10 cm (1.2 kg vol), fragile -> dispatch fee 19
    p4: 0.3 kg, explicit packing fee 5, transport 2, warehousing 10/kg
    """
    return [
        Product("p1", "m1", name="Mug", weight_kg=Decimal("0.4")),
        Product("p2", "m1", name="Kettle", weight_kg=Decimal("1.8")),
        Product(
            "p3", "m1", name="Vase",
            weight_kg=Decimal("0.8"),
            length_cm=Decimal("30"), breadth_cm=Decimal("20"), height_cm=Decimal("10"),
            packing_type="fragile",
        ),
        Product(
            "p4", "m2", name="Soap",
            weight_kg=Decimal("0.3"),
            item_packing_fee=Decimal("5"),
            transportation_fee=Decimal("2"),
            warehousing_rate_per_kg=Decimal("10"),
        ),
    ]


@pytest.fixture
def catalog(products):
    return ProductCatalog(products)


@pytest.fixture
def ledger(deterministic_clock):
    return InventoryLedger(
        [
            InventoryRecord("p1", "m1", quantity=5),
            InventoryRecord("p2", "m1", quantity=1, min_stock_level=1),
            InventoryRecord("p3", "m1", quantity=10, min_stock_level=2, max_stock_level=8),
        ],
        clock=deterministic_clock,
    )


@pytest.fixture
def journal(deterministic_clock, id_factory):
    return FeeJournal(clock=deterministic_clock, id_factory=id_factory)


@pytest.fixture
def trace_records():
    return []


@pytest.fixture
def executor(deterministic_clock, trace_records):
    return WorkflowExecutor(clock=deterministic_clock, outcome_sink=trace_records.append)


@pytest.fixture
def app_state(products, deterministic_clock, id_factory):
    return AppState.create(
        products=products,
        inventory=[
            InventoryRecord("p1", "m1", quantity=5),
            InventoryRecord("p2", "m1", quantity=1, min_stock_level=1),
        ],
        schedule=DEFAULT_FEE_SCHEDULE,
        clock=deterministic_clock,
        id_factory=id_factory,
    )
