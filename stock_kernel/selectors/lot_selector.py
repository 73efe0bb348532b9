"""
Module: stock_kernel.selectors.lot_selector
Responsibility: Read access to purchase lots in FIFO order.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - FIFO order is purchase_date ascending, then id ascending.  Every read
      that feeds valuation or consumption goes through fifo_order_by() so
      equal purchase dates always resolve the same way.
    - list_fifo returns only lots with remaining stock.  Consumption reads
      every lot itself, under a row lock, in the same order.
"""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import PurchaseLotInfo
from stock_kernel.exceptions import LotNotFoundError
from stock_kernel.models.purchase_lot import PurchaseLot
from stock_kernel.selectors.base import BaseSelector


def fifo_order_by() -> tuple:
    return (PurchaseLot.purchase_date.asc(), PurchaseLot.id.asc())


class LotSelector(BaseSelector[PurchaseLot]):
    """Read-only queries over purchase lots."""

    def __init__(self, session: Session):
        super().__init__(session)

    def get_lot(self, lot_id: int) -> PurchaseLotInfo:
        lot = self.session.get(PurchaseLot, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        return PurchaseLotInfo.from_model(lot)

    def list_fifo(self, product_id: int) -> list[PurchaseLotInfo]:
        """Lots of ``product_id`` with remaining stock, oldest first."""
        rows = self.session.execute(
            select(PurchaseLot)
            .where(
                PurchaseLot.product_id == product_id,
                PurchaseLot.remaining_quantity > 0,
            )
            .order_by(*fifo_order_by())
        ).scalars().all()
        return [PurchaseLotInfo.from_model(row) for row in rows]

    def current_quantity(self, product_id: int) -> int:
        total = self.session.execute(
            select(func.coalesce(func.sum(PurchaseLot.remaining_quantity), 0)).where(
                PurchaseLot.product_id == product_id,
                PurchaseLot.remaining_quantity > 0,
            )
        ).scalar_one()
        return int(total)

    def quantities_by_product(self) -> dict[int, int]:
        """Current quantity for every product that has stock."""
        rows = self.session.execute(
            select(PurchaseLot.product_id, func.sum(PurchaseLot.remaining_quantity))
            .where(
                PurchaseLot.product_id.is_not(None),
                PurchaseLot.remaining_quantity > 0,
            )
            .group_by(PurchaseLot.product_id)
            .order_by(PurchaseLot.product_id)
        ).all()
        return {product_id: int(total) for product_id, total in rows}

    def list_lots(
        self,
        product_id: int | None = None,
        supplier_id: int | None = None,
        year: int | None = None,
        has_remaining: bool | None = None,
        purchased_from: date | None = None,
        purchased_to: date | None = None,
    ) -> list[PurchaseLotInfo]:
        """Filtered lot listing, oldest first."""
        stmt = select(PurchaseLot)
        if product_id is not None:
            stmt = stmt.where(PurchaseLot.product_id == product_id)
        if supplier_id is not None:
            stmt = stmt.where(PurchaseLot.supplier_id == supplier_id)
        if year is not None:
            stmt = stmt.where(PurchaseLot.year == year)
        if has_remaining is True:
            stmt = stmt.where(PurchaseLot.remaining_quantity > 0)
        elif has_remaining is False:
            stmt = stmt.where(PurchaseLot.remaining_quantity == 0)
        if purchased_from is not None:
            stmt = stmt.where(PurchaseLot.purchase_date >= purchased_from)
        if purchased_to is not None:
            stmt = stmt.where(PurchaseLot.purchase_date <= purchased_to)
        rows = self.session.execute(stmt.order_by(*fifo_order_by())).scalars().all()
        return [PurchaseLotInfo.from_model(row) for row in rows]

    def latest_purchase_year(self) -> int | None:
        return self.session.execute(select(func.max(PurchaseLot.year))).scalar()
