"""
stock_engines.valuation.lot_layer -- Value objects for the FIFO engine.

Responsibility:
    Define the immutable inputs and outputs of the FIFO walks: a LotLayer
    (one purchase lot as the engine sees it), a RemainingAllocation (the
    new remaining quantity decided for one lot), and the FifoValuation
    result with its per-lot breakdown.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.logging_config.  ORM rows are converted
    to LotLayer by the services that own the session.

Invariants enforced:
    - LotLayer.quantity > 0 and 0 <= remaining_quantity <= quantity.
    - LotLayer.unit_cost > 0.
    - sort_key is (purchase_date, lot_id), a strict total order over lots
      of one product.

Failure modes:
    - ValueError from LotLayer.__post_init__ on any of the above.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from stock_kernel.logging_config import get_logger

logger = get_logger("engines.valuation.lot_layer")


@dataclass(frozen=True, slots=True)
class LotLayer:
    """One purchase lot: what was bought and what is left of it."""

    lot_id: int
    purchase_date: date
    quantity: int
    remaining_quantity: int
    unit_cost: Decimal

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            logger.error("lot_layer_invalid_quantity", extra={
                "lot_id": self.lot_id,
                "quantity": self.quantity,
            })
            raise ValueError(f"Lot quantity must be positive, got {self.quantity}")
        if not 0 <= self.remaining_quantity <= self.quantity:
            logger.error("lot_layer_invalid_remaining", extra={
                "lot_id": self.lot_id,
                "quantity": self.quantity,
                "remaining_quantity": self.remaining_quantity,
            })
            raise ValueError(
                f"Remaining quantity {self.remaining_quantity} outside "
                f"[0, {self.quantity}] for lot {self.lot_id}"
            )
        if self.unit_cost <= 0:
            raise ValueError(f"Lot unit cost must be positive, got {self.unit_cost}")

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.purchase_date, self.lot_id)

    @property
    def consumed_quantity(self) -> int:
        return self.quantity - self.remaining_quantity

    @property
    def remaining_value(self) -> Decimal:
        return self.remaining_quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class RemainingAllocation:
    """New remaining quantity decided for one lot by a consumption pass."""

    lot_id: int
    quantity: int
    previous_remaining: int
    new_remaining: int

    @property
    def changed(self) -> bool:
        return self.new_remaining != self.previous_remaining

    @property
    def consumed(self) -> int:
        """Units removed by this pass (negative when stock was restored)."""
        return self.previous_remaining - self.new_remaining


@dataclass(frozen=True, slots=True)
class LayerValuation:
    """The part of one lot drawn into a valuation."""

    lot_id: int
    purchase_date: date
    quantity: int
    unit_cost: Decimal

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class FifoValuation:
    """
    Result of pricing a quantity against lots, oldest cost first.

    ``unvalued_quantity`` is the part of the requested quantity that no lot
    could cover; it contributes nothing to ``value``.
    """

    requested_quantity: int
    layers: tuple[LayerValuation, ...]

    @property
    def quantity(self) -> int:
        return sum(layer.quantity for layer in self.layers)

    @property
    def value(self) -> Decimal:
        return sum((layer.value for layer in self.layers), Decimal("0"))

    @property
    def unvalued_quantity(self) -> int:
        return self.requested_quantity - self.quantity

    @property
    def is_fully_valued(self) -> bool:
        return self.unvalued_quantity == 0
