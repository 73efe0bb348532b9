"""Kernel write services (flush-only)."""

from stock_kernel.services.base import BaseService
from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.year_lock_service import YearLockService

__all__ = [
    "BaseService",
    "CatalogService",
    "YearLockService",
]
