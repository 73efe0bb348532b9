"""
Pure domain layer.

This module contains value objects and domain rules with NO dependencies
on:
- ORM (SQLAlchemy)
- Database
- Time (the Clock is injected)

All domain objects are immutable.
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.dtos import (
    CountItemInfo,
    InventoryAggregate,
    LockedYearInfo,
    LockedYearState,
    LotValuation,
    ProductInfo,
    ProductValuation,
    PurchaseLotInfo,
    SupplierInfo,
    UnitInfo,
    UnlockAuditInfo,
    UnlockedYearState,
    VarianceStatus,
    YearEndCountInfo,
    YearLockState,
)
from stock_kernel.domain.policy import LotValidationPolicy
from stock_kernel.domain.snapshots import (
    UNKNOWN_NAME,
    ProductSnapshot,
    SupplierSnapshot,
    UnitSnapshot,
    display_name,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "LotValidationPolicy",
    "UNKNOWN_NAME",
    "UnitSnapshot",
    "ProductSnapshot",
    "SupplierSnapshot",
    "display_name",
    "UnitInfo",
    "SupplierInfo",
    "ProductInfo",
    "PurchaseLotInfo",
    "VarianceStatus",
    "CountItemInfo",
    "YearEndCountInfo",
    "LockedYearInfo",
    "UnlockAuditInfo",
    "LockedYearState",
    "UnlockedYearState",
    "YearLockState",
    "LotValuation",
    "ProductValuation",
    "InventoryAggregate",
]
