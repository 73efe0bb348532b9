"""
Module: stock_kernel.models.catalog
Responsibility: ORM persistence for the reference entities that purchase lots
    point at: units of measure, suppliers, and products.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Unit.name is unique (uq_unit_name).
    - Supplier.name is unique (uq_supplier_name).
    - Product.name is unique (uq_product_name).  Count imports resolve
      products by name, so the lookup must be unambiguous.

Audit relevance:
    These rows are live and editable.  Historical lots never read product or
    supplier details from here alone; they carry frozen snapshots (see
    models/purchase_lot.py) so renames and deletions do not rewrite history.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TimestampedBase


class Unit(TimestampedBase):
    """Unit of measure (pieces, kg, m2)."""

    __tablename__ = "units"

    __table_args__ = (UniqueConstraint("name", name="uq_unit_name"),)

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<Unit {self.id}: {self.name}>"


class Supplier(TimestampedBase):
    """Supplier with contact details captured into lot snapshots."""

    __tablename__ = "suppliers"

    __table_args__ = (UniqueConstraint("name", name="uq_supplier_name"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Supplier {self.id}: {self.name}>"


class Product(TimestampedBase):
    """
    Product stocked in purchase lots.

    Contract:
        A product has one unit and one default supplier.  Deleting a product
        leaves its lots in place with product_id set to NULL; the lots keep
        rendering through their product_snapshot.
    """

    __tablename__ = "products"

    __table_args__ = (UniqueConstraint("name", name="uq_product_name"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id"),
        nullable=False,
    )

    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id"),
        nullable=False,
    )

    unit: Mapped[Unit] = relationship(lazy="joined")
    supplier: Mapped[Supplier] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Product {self.id}: {self.name}>"
