"""SQLAlchemy ORM models for the stock kernel."""

from stock_kernel.models.catalog import Product, Supplier, Unit
from stock_kernel.models.purchase_lot import PurchaseLot
from stock_kernel.models.year_end_count import (
    CountStatus,
    YearEndCount,
    YearEndCountItem,
)
from stock_kernel.models.year_lock import LockedYear, UnlockReason, YearUnlockAudit

__all__ = [
    "Unit",
    "Supplier",
    "Product",
    "PurchaseLot",
    "CountStatus",
    "YearEndCount",
    "YearEndCountItem",
    "LockedYear",
    "UnlockReason",
    "YearUnlockAudit",
]
