"""
stock_services.lot_ledger_service -- Purchase lot writes and FIFO consumption.

Responsibility:
    Create, edit and delete purchase lots behind the year lock, and apply
    a target remaining quantity to a product's lots (consume_to_target),
    which is how a confirmed physical count overwrites book quantities.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes YearLockService (lock gating) and the pure
    allocate_remaining_newest_first engine function.  Reads go through
    LotSelector.

Invariants enforced:
    - quantity > 0, unit_cost > 0, purchase date within the policy window,
      checked before anything is written.
    - A lot dated in a locked year cannot be created, edited, moved or
      deleted, and no lot can be moved into a locked year.
    - A quantity edit keeps what was already consumed:
      new_remaining = max(0, new_quantity - (old_quantity - old_remaining)).
    - Only untouched lots (remaining == quantity) can be deleted.
    - consume_to_target locks every lot of the product (SELECT ... FOR
      UPDATE) before computing, validates the whole allocation, then
      writes.  A failure leaves every lot as it was.
    - Flush-only.

Failure modes:
    - InvalidQuantityError, InvalidUnitCostError, InvalidPurchaseDateError,
      InvalidTargetQuantityError for bad input.
    - YearLockedError naming the locked year.
    - LotNotFoundError, ProductNotFoundError, SupplierNotFoundError.
    - LotConsumedError on deleting a consumed lot.
    - RemainingQuantityInvariantError if an allocation would leave
      [0, quantity].  Never expected.

Audit relevance:
    lot_created, lot_updated, lot_deleted and fifo_consumption_applied are
    logged with lot and product ids, quantities and years.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_engines.valuation import (
    LotLayer,
    RemainingAllocation,
    allocate_remaining_newest_first,
)
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import PurchaseLotInfo
from stock_kernel.domain.policy import LotValidationPolicy
from stock_kernel.domain.snapshots import ProductSnapshot, SupplierSnapshot
from stock_kernel.exceptions import (
    InvalidTargetQuantityError,
    InvalidUnitCostError,
    LotConsumedError,
    LotNotFoundError,
    ProductNotFoundError,
    RemainingQuantityInvariantError,
    SupplierNotFoundError,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Product, Supplier
from stock_kernel.models.purchase_lot import PurchaseLot
from stock_kernel.selectors.lot_selector import LotSelector, fifo_order_by
from stock_kernel.services.base import BaseService
from stock_kernel.services.year_lock_service import YearLockService

logger = get_logger("services.lot_ledger")


@dataclass(frozen=True, slots=True)
class ConsumptionSummary:
    """What one consume_to_target call did to a product's lots."""

    product_id: int
    target_remaining: int
    allocations: tuple[RemainingAllocation, ...]

    @property
    def previous_total(self) -> int:
        return sum(a.previous_remaining for a in self.allocations)

    @property
    def new_total(self) -> int:
        return sum(a.new_remaining for a in self.allocations)

    @property
    def lots_changed(self) -> int:
        return sum(1 for a in self.allocations if a.changed)

    @property
    def clamped(self) -> bool:
        return self.new_total < self.target_remaining


class LotLedgerService(BaseService[PurchaseLot]):
    """
    Write side of the lot ledger.

    Contract:
        Public methods return frozen DTOs and flush within the caller's
        transaction.  The clock supplies "today" for the purchase-date
        window; the policy supplies the limits.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: LotValidationPolicy | None = None,
        year_locks: YearLockService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._policy = policy or LotValidationPolicy()
        self._year_locks = year_locks or YearLockService(session, self._clock)
        self._lots = LotSelector(session)

    # =========================================================================
    # Reads
    # =========================================================================

    def list_fifo(self, product_id: int) -> list[PurchaseLotInfo]:
        return self._lots.list_fifo(product_id)

    def current_quantity(self, product_id: int) -> int:
        return self._lots.current_quantity(product_id)

    def get_lot(self, lot_id: int) -> PurchaseLotInfo:
        return self._lots.get_lot(lot_id)

    # =========================================================================
    # Lot CRUD
    # =========================================================================

    def create_lot(
        self,
        product_id: int,
        supplier_id: int,
        purchase_date: date,
        quantity: int,
        unit_cost: Decimal | str | int,
    ) -> PurchaseLotInfo:
        """
        Record a purchase.

        Postconditions:
            - remaining_quantity == quantity.
            - product_snapshot and supplier_snapshot hold the catalog state
              as of now.
        """
        self._policy.validate_quantity(quantity)
        cost = self._validate_unit_cost(unit_cost)
        self._policy.validate_purchase_date(purchase_date, self._clock.today())

        year = purchase_date.year
        self._year_locks.ensure_unlocked(
            year, f"Cannot create purchase for locked year {year}"
        )

        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        supplier = self.session.get(Supplier, supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(supplier_id)

        lot = PurchaseLot(
            product_id=product_id,
            supplier_id=supplier_id,
            purchase_date=purchase_date,
            year=year,
            quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=cost,
            product_snapshot=ProductSnapshot.from_product(product).to_dict(),
            supplier_snapshot=SupplierSnapshot.from_supplier(supplier).to_dict(),
        )
        self.session.add(lot)
        self.session.flush()
        self.session.refresh(lot)

        logger.info("lot_created", extra={
            "lot_id": lot.id,
            "product_id": product_id,
            "supplier_id": supplier_id,
            "purchase_date": purchase_date.isoformat(),
            "quantity": quantity,
            "unit_cost": str(cost),
        })
        return PurchaseLotInfo.from_model(lot)

    def update_lot(
        self,
        lot_id: int,
        *,
        purchase_date: date | None = None,
        quantity: int | None = None,
        unit_cost: Decimal | str | int | None = None,
    ) -> PurchaseLotInfo:
        """
        Edit the purchase facts of a lot in an unlocked year.

        Changing quantity preserves the consumed amount; remaining is
        clamped at zero when the new quantity is below what was consumed.
        """
        lot = self._get_lot_for_update(lot_id)

        self._year_locks.ensure_unlocked(
            lot.year, f"Cannot update purchase from locked year {lot.year}"
        )

        if quantity is not None:
            self._policy.validate_quantity(quantity)
        cost = self._validate_unit_cost(unit_cost) if unit_cost is not None else None
        if purchase_date is not None:
            self._policy.validate_purchase_date(purchase_date, self._clock.today())
            if purchase_date.year != lot.year:
                self._year_locks.ensure_unlocked(
                    purchase_date.year,
                    f"Cannot move purchase to locked year {purchase_date.year}",
                )

        changes: dict[str, object] = {}
        if quantity is not None and quantity != lot.quantity:
            consumed = lot.quantity - lot.remaining_quantity
            new_remaining = max(0, quantity - consumed)
            changes["quantity"] = (lot.quantity, quantity)
            changes["remaining_quantity"] = (lot.remaining_quantity, new_remaining)
            lot.quantity = quantity
            lot.remaining_quantity = new_remaining
        if cost is not None and cost != lot.unit_cost:
            changes["unit_cost"] = (str(lot.unit_cost), str(cost))
            lot.unit_cost = cost
        if purchase_date is not None and purchase_date != lot.purchase_date:
            changes["purchase_date"] = (
                lot.purchase_date.isoformat(),
                purchase_date.isoformat(),
            )
            lot.purchase_date = purchase_date
            lot.year = purchase_date.year

        self.session.flush()

        logger.info("lot_updated", extra={
            "lot_id": lot_id,
            "product_id": lot.product_id,
            "changes": {k: [str(v[0]), str(v[1])] for k, v in changes.items()},
        })
        return PurchaseLotInfo.from_model(lot)

    def delete_lot(self, lot_id: int) -> None:
        """Delete an untouched lot from an unlocked year."""
        lot = self._get_lot_for_update(lot_id)

        self._year_locks.ensure_unlocked(
            lot.year, f"Cannot delete purchase from locked year {lot.year}"
        )
        if not lot.is_untouched:
            logger.warning("lot_delete_rejected", extra={
                "lot_id": lot_id,
                "quantity": lot.quantity,
                "remaining_quantity": lot.remaining_quantity,
            })
            raise LotConsumedError(lot_id, lot.quantity, lot.remaining_quantity)

        product_id = lot.product_id
        self.session.delete(lot)
        self.session.flush()

        logger.info("lot_deleted", extra={
            "lot_id": lot_id,
            "product_id": product_id,
        })

    # =========================================================================
    # FIFO consumption
    # =========================================================================

    def consume_to_target(
        self,
        product_id: int,
        target_remaining: int,
    ) -> ConsumptionSummary:
        """
        Make ``target_remaining`` the product's total remaining quantity.

        Every lot of the product is considered, including lots already at
        zero.  Lots are filled newest first up to their original quantity;
        older lots absorb the consumption.  A target above the total
        original quantity restores every lot to full and stops there.
        """
        if (
            isinstance(target_remaining, bool)
            or not isinstance(target_remaining, int)
            or target_remaining < 0
        ):
            logger.warning("fifo_consumption_rejected", extra={
                "product_id": product_id,
                "target_remaining": str(target_remaining),
            })
            raise InvalidTargetQuantityError(product_id, target_remaining)

        rows = self.session.execute(
            select(PurchaseLot)
            .where(PurchaseLot.product_id == product_id)
            .order_by(*fifo_order_by())
            .with_for_update(of=PurchaseLot)
        ).scalars().all()
        by_id = {row.id: row for row in rows}

        layers = [
            LotLayer(
                lot_id=row.id,
                purchase_date=row.purchase_date,
                quantity=row.quantity,
                remaining_quantity=row.remaining_quantity,
                unit_cost=Decimal(row.unit_cost),
            )
            for row in rows
        ]
        allocations = allocate_remaining_newest_first(layers, target_remaining)

        for allocation in allocations:
            if not 0 <= allocation.new_remaining <= allocation.quantity:
                raise RemainingQuantityInvariantError(
                    allocation.lot_id,
                    allocation.quantity,
                    allocation.new_remaining,
                )

        for allocation in allocations:
            if allocation.changed:
                by_id[allocation.lot_id].remaining_quantity = allocation.new_remaining
        self.session.flush()

        summary = ConsumptionSummary(
            product_id=product_id,
            target_remaining=target_remaining,
            allocations=allocations,
        )
        logger.info("fifo_consumption_applied", extra={
            "product_id": product_id,
            "target_remaining": target_remaining,
            "previous_total": summary.previous_total,
            "new_total": summary.new_total,
            "lots_considered": len(allocations),
            "lots_changed": summary.lots_changed,
            "clamped": summary.clamped,
        })
        return summary

    # =========================================================================
    # Internal
    # =========================================================================

    def _get_lot_for_update(self, lot_id: int) -> PurchaseLot:
        lot = self.session.execute(
            select(PurchaseLot)
            .where(PurchaseLot.id == lot_id)
            .with_for_update(of=PurchaseLot)
        ).scalar_one_or_none()
        if lot is None:
            raise LotNotFoundError(lot_id)
        return lot

    @staticmethod
    def _validate_unit_cost(unit_cost: Decimal | str | int) -> Decimal:
        if isinstance(unit_cost, float):
            unit_cost = str(unit_cost)
        try:
            cost = Decimal(unit_cost)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidUnitCostError(unit_cost) from exc
        if not cost.is_finite() or cost <= 0:
            raise InvalidUnitCostError(unit_cost)
        return cost
