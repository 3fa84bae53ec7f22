"""
Inventory Ledger (``fulfillment_modules.inventory.ledger``).

Responsibility
--------------
Owns the per-(product, merchant) stock records and is the ONLY component
allowed to change a quantity.  Every committed change is appended to the
movement log and returned to the caller as an ``InventoryDelta`` so the
host can persist it.

Architecture
------------
Layer: **Modules** -- stateful, in-memory, synchronous.  The host
serialises access; the ledger holds no locks.

Invariants
----------
- NON_NEGATIVE_STOCK -- no operation commits a quantity below zero.  A
  missing record counts as 0 available.
- ALL_OR_NOTHING -- ``reserve_many`` / ``restore_many`` check every line
  before committing any of them; duplicate product lines are aggregated
  first.
- Low-stock is a signal, not a side effect: decrements that leave
  ``quantity <= min_stock_level`` (with a non-zero minimum) return a
  ``LowStockAlert`` in the result.

Failure Modes
-------------
Public methods never raise for business errors.  ``InsufficientStockError``,
``InvalidQuantityError`` and ``InvalidFieldValueError`` are raised
internally and returned as ``LedgerResult(success=False, errors=...)``.

Usage::

    ledger = InventoryLedger([InventoryRecord("p1", "m1", quantity=5)])
    result = ledger.reserve("p1", "m1", 2, reference="ord-1")
    result.deltas      # (InventoryDelta("p1", "m1", -2, 3),)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from fulfillment_kernel.domain.clock import Clock, SystemClock
from fulfillment_kernel.exceptions import (
    FulfillmentKernelError,
    InsufficientStockError,
    InvalidFieldValueError,
    InventoryRecordNotFoundError,
)
from fulfillment_kernel.invariants import KernelInvariant
from fulfillment_kernel.logging_config import get_logger
from fulfillment_modules.inventory.helpers import (
    classify_stock_level,
    is_low_stock,
    parse_reason,
    signed_adjustment,
    validate_quantity,
)
from fulfillment_modules.inventory.models import (
    DEFAULT_LOCATION,
    AdjustmentReason,
    InventoryDelta,
    InventoryRecord,
    LedgerResult,
    LowStockAlert,
    MovementType,
    StockLevelLine,
    StockMovement,
)

logger = get_logger("modules.inventory.ledger")

Key = tuple[str, str]


def _line(line: Any) -> tuple[str, Any]:
    """Accept ``(product_id, quantity)`` pairs or item objects."""
    if isinstance(line, tuple):
        return line[0], line[1]
    return line.product_id, line.quantity


class InventoryLedger:
    """
    In-memory stock ledger keyed by ``(product_id, merchant_id)``.

    Contract
    --------
    Every mutating method returns a ``LedgerResult``.  On failure nothing
    is committed and every violation found is listed in ``errors``.

    Non-goals
    ---------
    - Persistence.  The host writes the returned deltas.
    - Alert delivery.  Low-stock alerts are returned, never sent.
    """

    def __init__(
        self,
        records: Iterable[InventoryRecord] = (),
        clock: Clock | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._records: dict[Key, InventoryRecord] = {}
        self._movements: list[StockMovement] = []
        for record in records:
            self._records[record.key] = record

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, product_id: str, merchant_id: str) -> InventoryRecord | None:
        return self._records.get((product_id, merchant_id))

    def require(self, product_id: str, merchant_id: str) -> InventoryRecord:
        record = self._records.get((product_id, merchant_id))
        if record is None:
            raise InventoryRecordNotFoundError(product_id, merchant_id)
        return record

    def quantity(self, product_id: str, merchant_id: str) -> int:
        record = self._records.get((product_id, merchant_id))
        return record.quantity if record is not None else 0

    def records(self, merchant_id: str | None = None) -> list[InventoryRecord]:
        return [
            r for r in self._records.values()
            if merchant_id is None or r.merchant_id == merchant_id
        ]

    def movements(
        self,
        product_id: str | None = None,
        merchant_id: str | None = None,
        reference: str | None = None,
    ) -> list[StockMovement]:
        return [
            m for m in self._movements
            if (product_id is None or m.product_id == product_id)
            and (merchant_id is None or m.merchant_id == merchant_id)
            and (reference is None or m.reference == reference)
        ]

    def stock_report(self, merchant_id: str | None = None) -> list[StockLevelLine]:
        """Current level of every record, classified low / over / ok."""
        return [
            StockLevelLine(
                product_id=r.product_id,
                merchant_id=r.merchant_id,
                quantity=r.quantity,
                min_stock_level=r.min_stock_level,
                max_stock_level=r.max_stock_level,
                location=r.location,
                status=classify_stock_level(
                    r.quantity, r.min_stock_level, r.max_stock_level
                ),
            )
            for r in self.records(merchant_id)
        ]

    # =========================================================================
    # Single-line mutations
    # =========================================================================

    def reserve(
        self,
        product_id: str,
        merchant_id: str,
        quantity: int,
        reference: str | None = None,
    ) -> LedgerResult:
        """Decrement stock; fails when the result would be negative."""
        try:
            qty = validate_quantity(quantity)
            self._check_available(product_id, merchant_id, qty)
        except FulfillmentKernelError as exc:
            return self._reject("reserve", (exc,), reference)
        delta, alert = self._commit(
            product_id, merchant_id, -qty, MovementType.ISSUE,
            reason="reserve", reference=reference,
        )
        return self._accept("reserve", (delta,), (alert,) if alert else (), reference)

    def restore(
        self,
        product_id: str,
        merchant_id: str,
        quantity: int,
        reference: str | None = None,
    ) -> LedgerResult:
        """Increment stock, creating the record if absent."""
        try:
            qty = validate_quantity(quantity)
        except FulfillmentKernelError as exc:
            return self._reject("restore", (exc,), reference)
        delta, _ = self._commit(
            product_id, merchant_id, qty, MovementType.RECEIPT,
            reason="restore", reference=reference,
        )
        return self._accept("restore", (delta,), (), reference)

    def adjust(
        self,
        product_id: str,
        merchant_id: str,
        quantity: int,
        notes: str = "",
    ) -> LedgerResult:
        """Set the quantity directly (stock count)."""
        try:
            qty = validate_quantity(quantity)
        except FulfillmentKernelError as exc:
            return self._reject("adjust", (exc,), None)
        change = qty - self.quantity(product_id, merchant_id)
        delta, alert = self._commit(
            product_id, merchant_id, change, MovementType.ADJUSTMENT,
            reason="count", notes=notes,
        )
        return self._accept("adjust", (delta,), (alert,) if alert else (), None)

    def apply_adjustment(
        self,
        product_id: str,
        merchant_id: str,
        quantity_change: int,
        reason: AdjustmentReason | str = AdjustmentReason.ADJUSTMENT,
        notes: str = "",
    ) -> LedgerResult:
        """
        Operator stock correction.

        The sign comes from ``reason`` (see ``signed_adjustment``); a plain
        ``adjustment`` may go either way.  The result may not be negative.
        """
        try:
            change = validate_quantity(
                quantity_change, "quantity_change", allow_negative=True
            )
            parsed = parse_reason(reason)
            signed = signed_adjustment(parsed, change)
            if signed < 0:
                self._check_available(product_id, merchant_id, -signed)
        except FulfillmentKernelError as exc:
            return self._reject("apply_adjustment", (exc,), None)
        delta, alert = self._commit(
            product_id, merchant_id, signed, MovementType.ADJUSTMENT,
            reason=parsed.value, notes=notes,
        )
        return self._accept(
            "apply_adjustment", (delta,), (alert,) if alert else (), None
        )

    def set_thresholds(
        self,
        product_id: str,
        merchant_id: str,
        min_stock_level: int | None = None,
        max_stock_level: int | None = None,
        location: str | None = None,
    ) -> LedgerResult:
        """Update thresholds and location, creating an empty record if absent."""
        current = self._records.get((product_id, merchant_id)) or InventoryRecord(
            product_id, merchant_id, location=DEFAULT_LOCATION
        )
        try:
            new_min = (
                validate_quantity(min_stock_level, "min_stock_level")
                if min_stock_level is not None else current.min_stock_level
            )
            new_max = (
                validate_quantity(max_stock_level, "max_stock_level")
                if max_stock_level is not None else current.max_stock_level
            )
            if new_max > 0 and new_min > new_max:
                raise InvalidFieldValueError(
                    "max_stock_level", new_max, "must not be below min_stock_level"
                )
        except FulfillmentKernelError as exc:
            return self._reject("set_thresholds", (exc,), None)

        record = replace(
            current,
            min_stock_level=new_min,
            max_stock_level=new_max,
            location=location or current.location,
            updated_at=self._clock.now(),
        )
        self._records[record.key] = record
        logger.info(
            "inventory_thresholds_set",
            extra={
                "product_id": product_id,
                "merchant_id": merchant_id,
                "min_stock_level": new_min,
                "max_stock_level": new_max,
            },
        )
        return LedgerResult(success=True, operation="set_thresholds", record=record)

    # =========================================================================
    # Multi-line mutations (all-or-nothing)
    # =========================================================================

    def reserve_many(
        self,
        merchant_id: str,
        lines: Iterable[Any],
        reference: str | None = None,
    ) -> LedgerResult:
        """
        Decrement every line or none.

        Every product whose aggregated quantity exceeds its stock is
        reported; nothing is committed unless all lines fit.
        """
        try:
            totals = self._aggregate(lines)
        except FulfillmentKernelError as exc:
            return self._reject("reserve_many", (exc,), reference)

        errors: list[FulfillmentKernelError] = []
        for product_id, qty in totals.items():
            try:
                self._check_available(product_id, merchant_id, qty)
            except InsufficientStockError as exc:
                errors.append(exc)
        if errors:
            return self._reject("reserve_many", tuple(errors), reference)

        deltas: list[InventoryDelta] = []
        alerts: list[LowStockAlert] = []
        for product_id, qty in totals.items():
            delta, alert = self._commit(
                product_id, merchant_id, -qty, MovementType.ISSUE,
                reason="reserve", reference=reference,
            )
            deltas.append(delta)
            if alert is not None:
                alerts.append(alert)
        return self._accept("reserve_many", tuple(deltas), tuple(alerts), reference)

    def restore_many(
        self,
        merchant_id: str,
        lines: Iterable[Any],
        reference: str | None = None,
    ) -> LedgerResult:
        """Increment every line, creating records as needed."""
        try:
            totals = self._aggregate(lines)
        except FulfillmentKernelError as exc:
            return self._reject("restore_many", (exc,), reference)

        deltas = tuple(
            self._commit(
                product_id, merchant_id, qty, MovementType.RECEIPT,
                reason="restore", reference=reference,
            )[0]
            for product_id, qty in totals.items()
        )
        return self._accept("restore_many", deltas, (), reference)

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _aggregate(lines: Iterable[Any]) -> dict[str, int]:
        totals: dict[str, int] = {}
        for line in lines:
            product_id, quantity = _line(line)
            qty = validate_quantity(quantity)
            totals[product_id] = totals.get(product_id, 0) + qty
        return totals

    def _check_available(self, product_id: str, merchant_id: str, qty: int) -> None:
        available = self.quantity(product_id, merchant_id)
        if available - qty < 0:
            raise InsufficientStockError(product_id, merchant_id, qty, available)

    def _commit(
        self,
        product_id: str,
        merchant_id: str,
        change: int,
        movement_type: MovementType,
        reason: str = "",
        reference: str | None = None,
        notes: str = "",
    ) -> tuple[InventoryDelta, LowStockAlert | None]:
        now = self._clock.now()
        current = self._records.get((product_id, merchant_id))
        if current is None:
            current = InventoryRecord(product_id, merchant_id)
        new_quantity = current.quantity + change
        record = replace(current, quantity=new_quantity, updated_at=now)
        self._records[record.key] = record
        self._movements.append(
            StockMovement(
                product_id=product_id,
                merchant_id=merchant_id,
                movement_type=movement_type,
                quantity_change=change,
                resulting_quantity=new_quantity,
                occurred_at=now,
                reason=reason,
                reference=reference,
                notes=notes,
            )
        )

        alert = None
        if change < 0 and is_low_stock(new_quantity, record.min_stock_level):
            alert = LowStockAlert(
                product_id, merchant_id, new_quantity, record.min_stock_level
            )
            logger.warning(
                "inventory_low_stock",
                extra={
                    "product_id": product_id,
                    "merchant_id": merchant_id,
                    "quantity": new_quantity,
                    "min_stock_level": record.min_stock_level,
                },
            )
        return InventoryDelta(product_id, merchant_id, change, new_quantity), alert

    def _accept(
        self,
        operation: str,
        deltas: tuple[InventoryDelta, ...],
        alerts: tuple[LowStockAlert, ...],
        reference: str | None,
    ) -> LedgerResult:
        logger.info(
            "inventory_committed",
            extra={
                "operation": operation,
                "reference": reference,
                "changes": [
                    {"product_id": d.product_id, "change": d.quantity_change,
                     "new_quantity": d.new_quantity}
                    for d in deltas
                ],
            },
        )
        record = None
        if len(deltas) == 1:
            record = self.get(deltas[0].product_id, deltas[0].merchant_id)
        return LedgerResult(
            success=True,
            operation=operation,
            deltas=deltas,
            low_stock=alerts,
            record=record,
        )

    def _reject(
        self,
        operation: str,
        errors: tuple[FulfillmentKernelError, ...],
        reference: str | None,
    ) -> LedgerResult:
        invariant = (
            KernelInvariant.ALL_OR_NOTHING if operation.endswith("_many")
            else KernelInvariant.NON_NEGATIVE_STOCK
        )
        logger.warning(
            "inventory_operation_rejected",
            extra={
                "operation": operation,
                "reference": reference,
                "invariant": invariant.value,
                "error_codes": [e.code for e in errors],
                "errors": [str(e) for e in errors],
            },
        )
        return LedgerResult(success=False, operation=operation, errors=errors)
