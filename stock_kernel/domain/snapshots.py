"""
Snapshots -- frozen copies of product and supplier state taken when a lot
is written.

Responsibility:
    Capture the reference data a purchase lot needs to render correctly
    forever: product name, description and unit, and the supplier's
    contact details.  The snapshot is serialized into the lot row and never
    refreshed, so renaming or deleting a product does not rewrite history.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.  ``from_product`` and
    ``from_supplier`` accept any object with the right attributes (ORM rows
    in practice) and only read from them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

UNKNOWN_NAME = "Unknown"


@dataclass(frozen=True, slots=True)
class UnitSnapshot:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class ProductSnapshot:
    """Product as it looked when the lot was purchased."""

    id: int
    name: str
    description: str
    unit: UnitSnapshot
    supplier_id_ref: int | None

    @classmethod
    def from_product(cls, product: Any) -> ProductSnapshot:
        return cls(
            id=product.id,
            name=product.name,
            description=product.description or "",
            unit=UnitSnapshot(id=product.unit.id, name=product.unit.name),
            supplier_id_ref=product.supplier_id,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProductSnapshot:
        unit = data.get("unit") or {}
        return cls(
            id=data.get("id", 0),
            name=data.get("name", UNKNOWN_NAME),
            description=data.get("description", ""),
            unit=UnitSnapshot(id=unit.get("id", 0), name=unit.get("name", "")),
            supplier_id_ref=data.get("supplier_id_ref"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SupplierSnapshot:
    """Supplier contact details as they were when the lot was purchased."""

    id: int
    name: str
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    tax_id: str = ""

    @classmethod
    def from_supplier(cls, supplier: Any) -> SupplierSnapshot:
        return cls(
            id=supplier.id,
            name=supplier.name,
            contact_person=supplier.contact_person or "",
            email=supplier.email or "",
            phone=supplier.phone or "",
            address=supplier.address or "",
            city=supplier.city or "",
            country=supplier.country or "",
            tax_id=supplier.tax_id or "",
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SupplierSnapshot:
        return cls(
            id=data.get("id", 0),
            name=data.get("name", UNKNOWN_NAME),
            contact_person=data.get("contact_person", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            city=data.get("city", ""),
            country=data.get("country", ""),
            tax_id=data.get("tax_id", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def display_name(live: Any, snapshot: Mapping[str, Any] | None) -> str:
    """Name from the live row when it still exists, else from the snapshot."""
    if live is not None and getattr(live, "name", None):
        return live.name
    if snapshot:
        return snapshot.get("name") or UNKNOWN_NAME
    return UNKNOWN_NAME
