"""
Valuation - Pure FIFO walks over purchase lot layers.

Pure domain types and functions only.  The stateful lot ledger and
valuation services live in stock_services.
"""

from stock_engines.valuation.fifo import (
    allocate_remaining_newest_first,
    fifo_order,
    value_oldest_first,
    value_remaining,
)
from stock_engines.valuation.lot_layer import (
    FifoValuation,
    LayerValuation,
    LotLayer,
    RemainingAllocation,
)

__all__ = [
    "LotLayer",
    "RemainingAllocation",
    "LayerValuation",
    "FifoValuation",
    "fifo_order",
    "value_oldest_first",
    "value_remaining",
    "allocate_remaining_newest_first",
]
