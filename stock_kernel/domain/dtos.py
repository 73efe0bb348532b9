"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable records that leave the kernel: purchase lots,
    catalog entries, year-end counts and their items, lock markers, unlock
    audit entries, the tagged per-year lock state, and valuation results.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of database access.  from_model() class methods exist as boundary
    converters but are only invoked from services and selectors.

Invariants enforced:
    - Every DTO is a frozen dataclass; collections are tuples.
    - Display names always resolve: live row first, then the snapshot
      captured at write time, then "Unknown".
    - CountItemInfo.status is derived from counted_quantity and variance,
      never stored.

Audit relevance:
    YearLockState carries the unlock history of its year on both variants,
    so a caller that reads lock state always sees how the year got there.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Union

from stock_kernel.domain.snapshots import (
    UNKNOWN_NAME,
    ProductSnapshot,
    SupplierSnapshot,
    display_name,
)

if TYPE_CHECKING:
    from stock_kernel.models.catalog import Product as ProductModel
    from stock_kernel.models.catalog import Supplier as SupplierModel
    from stock_kernel.models.catalog import Unit as UnitModel
    from stock_kernel.models.purchase_lot import PurchaseLot as PurchaseLotModel
    from stock_kernel.models.year_end_count import YearEndCount as YearEndCountModel
    from stock_kernel.models.year_end_count import (
        YearEndCountItem as YearEndCountItemModel,
    )
    from stock_kernel.models.year_lock import LockedYear as LockedYearModel
    from stock_kernel.models.year_lock import YearUnlockAudit as YearUnlockAuditModel


# =============================================================================
# Catalog
# =============================================================================


@dataclass(frozen=True, slots=True)
class UnitInfo:
    id: int
    name: str

    @classmethod
    def from_model(cls, model: UnitModel) -> UnitInfo:
        return cls(id=model.id, name=model.name)


@dataclass(frozen=True, slots=True)
class SupplierInfo:
    id: int
    name: str
    contact_person: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    tax_id: str | None = None
    notes: str | None = None

    @classmethod
    def from_model(cls, model: SupplierModel) -> SupplierInfo:
        return cls(
            id=model.id,
            name=model.name,
            contact_person=model.contact_person,
            email=model.email,
            phone=model.phone,
            address=model.address,
            city=model.city,
            country=model.country,
            tax_id=model.tax_id,
            notes=model.notes,
        )


@dataclass(frozen=True, slots=True)
class ProductInfo:
    id: int
    name: str
    description: str | None
    unit_id: int
    unit_name: str
    supplier_id: int
    supplier_name: str

    @classmethod
    def from_model(cls, model: ProductModel) -> ProductInfo:
        return cls(
            id=model.id,
            name=model.name,
            description=model.description,
            unit_id=model.unit_id,
            unit_name=model.unit.name,
            supplier_id=model.supplier_id,
            supplier_name=model.supplier.name,
        )


# =============================================================================
# Purchase lots
# =============================================================================


@dataclass(frozen=True, slots=True)
class PurchaseLotInfo:
    """A purchase lot with names resolved for display."""

    id: int
    product_id: int | None
    supplier_id: int | None
    product_name: str
    supplier_name: str
    purchase_date: date
    year: int
    quantity: int
    remaining_quantity: int
    unit_cost: Decimal
    product_snapshot: ProductSnapshot
    supplier_snapshot: SupplierSnapshot

    @property
    def consumed_quantity(self) -> int:
        return self.quantity - self.remaining_quantity

    @property
    def remaining_value(self) -> Decimal:
        return self.remaining_quantity * self.unit_cost

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.unit_cost

    @classmethod
    def from_model(cls, model: PurchaseLotModel) -> PurchaseLotInfo:
        return cls(
            id=model.id,
            product_id=model.product_id,
            supplier_id=model.supplier_id,
            product_name=display_name(model.product, model.product_snapshot),
            supplier_name=display_name(model.supplier, model.supplier_snapshot),
            purchase_date=model.purchase_date,
            year=model.year,
            quantity=model.quantity,
            remaining_quantity=model.remaining_quantity,
            unit_cost=Decimal(model.unit_cost),
            product_snapshot=ProductSnapshot.from_dict(model.product_snapshot or {}),
            supplier_snapshot=SupplierSnapshot.from_dict(model.supplier_snapshot or {}),
        )


# =============================================================================
# Year-end counts
# =============================================================================


class VarianceStatus(str, Enum):
    """How a counted quantity compares with the book quantity."""

    PENDING = "pending"
    EXACT = "exact"
    SURPLUS = "surplus"
    SHORTAGE = "shortage"

    @classmethod
    def of(cls, counted_quantity: int | None, variance: int | None) -> VarianceStatus:
        if counted_quantity is None:
            return cls.PENDING
        if not variance:
            return cls.EXACT
        return cls.SURPLUS if variance > 0 else cls.SHORTAGE


@dataclass(frozen=True, slots=True)
class CountItemInfo:
    id: int
    product_id: int
    product_name: str
    supplier_name: str
    expected_quantity: int
    counted_quantity: int | None
    variance: int | None
    value: Decimal | None

    @property
    def is_counted(self) -> bool:
        return self.counted_quantity is not None

    @property
    def status(self) -> VarianceStatus:
        return VarianceStatus.of(self.counted_quantity, self.variance)

    @classmethod
    def from_model(cls, model: YearEndCountItemModel) -> CountItemInfo:
        product = model.product
        return cls(
            id=model.id,
            product_id=model.product_id,
            product_name=product.name if product is not None else UNKNOWN_NAME,
            supplier_name=(
                product.supplier.name
                if product is not None and product.supplier is not None
                else UNKNOWN_NAME
            ),
            expected_quantity=model.expected_quantity,
            counted_quantity=model.counted_quantity,
            variance=model.variance,
            value=Decimal(model.value) if model.value is not None else None,
        )


@dataclass(frozen=True, slots=True)
class YearEndCountInfo:
    id: int
    year: int
    revision: int
    status: str
    confirmed_at: datetime | None
    items: tuple[CountItemInfo, ...]

    @property
    def is_confirmed(self) -> bool:
        return self.status == "confirmed"

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def counted_count(self) -> int:
        return sum(1 for item in self.items if item.is_counted)

    @property
    def uncounted_items(self) -> tuple[CountItemInfo, ...]:
        return tuple(item for item in self.items if not item.is_counted)

    def item_for(self, product_id: int) -> CountItemInfo | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    @classmethod
    def from_model(cls, model: YearEndCountModel) -> YearEndCountInfo:
        items = sorted(
            (CountItemInfo.from_model(item) for item in model.items),
            key=lambda item: (item.product_name, item.product_id),
        )
        return cls(
            id=model.id,
            year=model.year,
            revision=model.revision,
            status=model.status,
            confirmed_at=model.confirmed_at,
            items=tuple(items),
        )


# =============================================================================
# Year locks
# =============================================================================


@dataclass(frozen=True, slots=True)
class LockedYearInfo:
    year: int
    locked_at: datetime

    @classmethod
    def from_model(cls, model: LockedYearModel) -> LockedYearInfo:
        return cls(year=model.year, locked_at=model.locked_at)


@dataclass(frozen=True, slots=True)
class UnlockAuditInfo:
    id: int
    year: int
    unlocked_at: datetime
    reason_category: str
    description: str

    @classmethod
    def from_model(cls, model: YearUnlockAuditModel) -> UnlockAuditInfo:
        return cls(
            id=model.id,
            year=model.year,
            unlocked_at=model.unlocked_at,
            reason_category=model.reason_category,
            description=model.description,
        )


@dataclass(frozen=True, slots=True)
class LockedYearState:
    """The year is locked.  Earlier unlocks of it, if any, are attached."""

    year: int
    locked_at: datetime
    unlock_history: tuple[UnlockAuditInfo, ...] = ()

    @property
    def is_locked(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class UnlockedYearState:
    """The year is open.  A year that was locked before carries its history."""

    year: int
    unlock_history: tuple[UnlockAuditInfo, ...] = ()

    @property
    def is_locked(self) -> bool:
        return False

    @property
    def was_unlocked(self) -> bool:
        return bool(self.unlock_history)


YearLockState = Union[LockedYearState, UnlockedYearState]


# =============================================================================
# Valuation
# =============================================================================


@dataclass(frozen=True, slots=True)
class LotValuation:
    """Remaining stock of one lot, priced at its own unit cost."""

    lot_id: int
    purchase_date: date
    year: int
    quantity: int
    unit_cost: Decimal
    supplier_name: str = UNKNOWN_NAME

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class ProductValuation:
    """Quantity and FIFO value of one product's stock."""

    product_id: int | None
    product_name: str
    quantity: int
    value: Decimal
    lots: tuple[LotValuation, ...] = ()


@dataclass(frozen=True, slots=True)
class InventoryAggregate:
    """Per-product valuations plus grand totals."""

    products: tuple[ProductValuation, ...]
    supplier_id: int | None = None

    @property
    def total_quantity(self) -> int:
        return sum(p.quantity for p in self.products)

    @property
    def total_value(self) -> Decimal:
        return sum((p.value for p in self.products), Decimal("0"))
