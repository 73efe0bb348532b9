"""Read-only selectors returning frozen DTOs."""

from stock_kernel.selectors.base import BaseSelector
from stock_kernel.selectors.count_selector import CountSelector
from stock_kernel.selectors.lot_selector import LotSelector

__all__ = [
    "BaseSelector",
    "CountSelector",
    "LotSelector",
]
