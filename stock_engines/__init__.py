"""
Stock Engines - Pure calculation layer.

Engines take value objects and return value objects.  They never touch a
database session, ORM model or configuration; services in stock_services
convert rows to engine inputs and write engine outputs back.
"""

from stock_engines.valuation import (
    FifoValuation,
    LotLayer,
    RemainingAllocation,
    allocate_remaining_newest_first,
    value_oldest_first,
    value_remaining,
)

__all__ = [
    "LotLayer",
    "RemainingAllocation",
    "FifoValuation",
    "allocate_remaining_newest_first",
    "value_oldest_first",
    "value_remaining",
]
