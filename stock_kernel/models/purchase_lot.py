"""
Module: stock_kernel.models.purchase_lot
Responsibility: ORM persistence for purchase lots.  Each lot is one purchase
    event (quantity received at a unit cost on a date) plus its mutable
    consumption state (remaining_quantity).
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    L1 -- quantity > 0 (enforced at service layer and by CHECK constraint).
    L2 -- unit_cost > 0 (enforced at service layer and by CHECK constraint).
    L3 -- 0 <= remaining_quantity <= quantity (CHECK constraint; services
          compute new values through the FIFO engine which never leaves
          the range).
    L4 -- FIFO ordering support.  (product_id, purchase_date, id) index gives
          a strict, stable oldest-first order.  id breaks purchase_date ties.
    L5 -- year == purchase_date.year, denormalized for lock checks and
          year filters.
    L6 -- product_snapshot and supplier_snapshot are written once at creation
          and never updated.

Failure modes:
    - IntegrityError if a CHECK constraint is violated by a direct write that
      bypassed LotLedgerService.

Audit relevance:
    remaining_quantity is the book quantity that year-end counts start from,
    and it is overwritten by the physical count on confirmation.  Lots in a
    locked year cannot be created, edited or deleted.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TimestampedBase

if TYPE_CHECKING:
    from stock_kernel.models.catalog import Product, Supplier


class PurchaseLot(TimestampedBase):
    """
    Persistent storage for purchase lots.

    Contract:
        quantity, purchase_date and unit_cost describe the purchase and only
        change through an explicit lot edit (unlocked years only).
        remaining_quantity changes through FIFO consumption or through the
        consumed-preserving adjustment on a quantity edit.

    Non-goals:
        - This model does NOT validate L1/L2 before flush; that is the
          responsibility of LotLedgerService.
    """

    __tablename__ = "purchase_lots"

    __table_args__ = (
        # Query: FIFO read for a product (oldest first, id tie-break)
        Index("idx_purchase_lot_fifo", "product_id", "purchase_date", "id"),
        # Query: lock checks and year filters
        Index("idx_purchase_lot_year", "year"),
        # Query: valuation by supplier
        Index("idx_purchase_lot_supplier", "supplier_id"),
        CheckConstraint("quantity > 0", name="ck_purchase_lot_quantity_positive"),
        CheckConstraint("unit_cost > 0", name="ck_purchase_lot_unit_cost_positive"),
        CheckConstraint(
            "remaining_quantity >= 0 AND remaining_quantity <= quantity",
            name="ck_purchase_lot_remaining_range",
        ),
    )

    product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )

    supplier_id: Mapped[int | None] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
    )

    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    # INVARIANT L5: denormalized purchase_date.year
    year: Mapped[int] = mapped_column(nullable=False)

    # INVARIANT L1
    quantity: Mapped[int] = mapped_column(nullable=False)

    # INVARIANT L3
    remaining_quantity: Mapped[int] = mapped_column(nullable=False)

    # INVARIANT L2
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    # INVARIANT L6: frozen at creation
    product_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    supplier_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    product: Mapped[Product | None] = relationship(lazy="joined")
    supplier: Mapped[Supplier | None] = relationship(lazy="joined")

    @property
    def is_untouched(self) -> bool:
        """True when nothing has been consumed from this lot."""
        return self.remaining_quantity == self.quantity

    @property
    def remaining_value(self) -> Decimal:
        return self.remaining_quantity * self.unit_cost

    def __repr__(self) -> str:
        return (
            f"<PurchaseLot {self.id}: product={self.product_id} "
            f"{self.remaining_quantity}/{self.quantity} @ {self.unit_cost} "
            f"({self.purchase_date})>"
        )
