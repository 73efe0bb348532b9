"""
Module: stock_kernel.models.year_end_count
Responsibility: ORM persistence for year-end physical counts and their
    per-product count lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    Y1 -- At most one count per (year, revision) (uq_year_end_count_revision).
    Y2 -- Revisions per year start at 1 and strictly increase (service layer).
    Y3 -- Transitions are DRAFT -> CONFIRMED only.  CONFIRMED is terminal for
          a revision; confirmed_at is set exactly once.
    Y4 -- At most one item per (count, product) (uq_count_item_product).
    Y5 -- expected_quantity is frozen at initiation; variance and value are
          derived from counted_quantity and recomputed on every update.

Failure modes:
    - IntegrityError on duplicate (year, revision) if two initiations race.

Audit relevance:
    A confirmed count is the evidence behind a locked year: its counted
    quantities are what overwrote the lot ledger's remaining quantities.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TimestampedBase

if TYPE_CHECKING:
    from stock_kernel.models.catalog import Product


class CountStatus(str, Enum):
    """Lifecycle status of a year-end count revision.

    Contract: DRAFT -> CONFIRMED.  Unlocking the year does not reopen a
    confirmed revision; it allows a new revision to be initiated.
    """

    DRAFT = "draft"
    CONFIRMED = "confirmed"


class YearEndCount(TimestampedBase):
    """One physical count revision for a year."""

    __tablename__ = "year_end_counts"

    __table_args__ = (
        UniqueConstraint("year", "revision", name="uq_year_end_count_revision"),
        Index("idx_year_end_count_status", "status"),
    )

    year: Mapped[int] = mapped_column(nullable=False)

    revision: Mapped[int] = mapped_column(nullable=False, default=1)

    status: Mapped[str] = mapped_column(
        String(20),
        default=CountStatus.DRAFT.value,
        nullable=False,
    )

    confirmed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    items: Mapped[list[YearEndCountItem]] = relationship(
        back_populates="count",
        cascade="all, delete-orphan",
        order_by="YearEndCountItem.id",
    )

    @property
    def is_draft(self) -> bool:
        return self.status == CountStatus.DRAFT.value

    @property
    def is_confirmed(self) -> bool:
        return self.status == CountStatus.CONFIRMED.value

    def __repr__(self) -> str:
        return f"<YearEndCount {self.id}: {self.year} r{self.revision} {self.status}>"


class YearEndCountItem(TimestampedBase):
    """Expected vs counted quantity for one product in one count revision."""

    __tablename__ = "year_end_count_items"

    __table_args__ = (
        UniqueConstraint(
            "year_end_count_id", "product_id", name="uq_count_item_product"
        ),
        Index("idx_count_item_product", "product_id"),
    )

    year_end_count_id: Mapped[int] = mapped_column(
        ForeignKey("year_end_counts.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"),
        nullable=False,
    )

    # INVARIANT Y5: frozen at initiation
    expected_quantity: Mapped[int] = mapped_column(nullable=False)

    counted_quantity: Mapped[int | None] = mapped_column(nullable=True)

    # counted_quantity - expected_quantity
    variance: Mapped[int | None] = mapped_column(nullable=True)

    # FIFO value of counted_quantity
    value: Mapped[Decimal | None] = mapped_column(nullable=True)

    count: Mapped[YearEndCount] = relationship(back_populates="items")
    product: Mapped[Product] = relationship(lazy="joined")

    @property
    def is_counted(self) -> bool:
        return self.counted_quantity is not None

    def __repr__(self) -> str:
        return (
            f"<YearEndCountItem {self.id}: product={self.product_id} "
            f"expected={self.expected_quantity} counted={self.counted_quantity}>"
        )
