"""
stock_engines.valuation.fifo -- The two FIFO walks.

Responsibility:
    Pure functions over LotLayer sequences:

    value_oldest_first
        "Spend" walk.  Prices a quantity by drawing on lots with stock
        left, oldest first.  Answers what N units are worth.

    allocate_remaining_newest_first
        "Keep" walk.  Given the total quantity that should survive (a
        physical count), decides each lot's new remaining quantity by
        filling lots newest first up to their original quantity.
        Whatever is not kept is, by construction, consumed from the
        oldest lots.

    The walks run in opposite directions over the same order and are
    deliberately kept as separate functions.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - FIFO order is (purchase_date, lot_id) ascending; reverse FIFO is the
      exact reverse.  Input order never matters.
    - allocate_remaining_newest_first visits every lot, including lots
      already at zero, and never assigns more than a lot's quantity.
      A target above the total original quantity is clamped: every lot is
      restored to full.
    - sum(new_remaining) == min(target, sum(quantity)).

Failure modes:
    - ValueError on negative quantity or target.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from stock_engines.valuation.lot_layer import (
    FifoValuation,
    LayerValuation,
    LotLayer,
    RemainingAllocation,
)
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.valuation.fifo")


def fifo_order(layers: Iterable[LotLayer]) -> tuple[LotLayer, ...]:
    """Oldest first, lot id breaking purchase-date ties."""
    return tuple(sorted(layers, key=lambda layer: layer.sort_key))


def value_oldest_first(layers: Iterable[LotLayer], quantity: int) -> FifoValuation:
    """
    Price ``quantity`` units against remaining stock, oldest cost first.

    Lots with nothing remaining are skipped.  When stock runs out before
    ``quantity`` is covered, the rest is reported as unvalued.
    """
    if quantity < 0:
        raise ValueError(f"Quantity to value cannot be negative, got {quantity}")

    drawn: list[LayerValuation] = []
    remaining_to_value = quantity
    for layer in fifo_order(layers):
        if remaining_to_value <= 0:
            break
        if layer.remaining_quantity <= 0:
            continue
        take = min(remaining_to_value, layer.remaining_quantity)
        drawn.append(LayerValuation(
            lot_id=layer.lot_id,
            purchase_date=layer.purchase_date,
            quantity=take,
            unit_cost=layer.unit_cost,
        ))
        remaining_to_value -= take

    result = FifoValuation(requested_quantity=quantity, layers=tuple(drawn))
    if not result.is_fully_valued:
        logger.debug("fifo_valuation_short", extra={
            "requested_quantity": quantity,
            "unvalued_quantity": result.unvalued_quantity,
        })
    return result


def value_remaining(layers: Iterable[LotLayer]) -> FifoValuation:
    """Value everything still in stock, with a per-lot breakdown."""
    ordered = fifo_order(layers)
    total = sum(layer.remaining_quantity for layer in ordered)
    return value_oldest_first(ordered, total)


def allocate_remaining_newest_first(
    layers: Sequence[LotLayer],
    target_remaining: int,
) -> tuple[RemainingAllocation, ...]:
    """
    Redistribute remaining stock so ``target_remaining`` units survive.

    Lots are visited newest first.  Each keeps ``min(lot.quantity, left)``
    where ``left`` is the part of the target not yet placed; once the
    target is placed every older lot drops to zero.  Allocations are
    returned in FIFO order.
    """
    if target_remaining < 0:
        raise ValueError(
            f"Target remaining quantity cannot be negative, got {target_remaining}"
        )

    allocations: list[RemainingAllocation] = []
    left = target_remaining
    for layer in reversed(fifo_order(layers)):
        keep = min(layer.quantity, left)
        left -= keep
        allocations.append(RemainingAllocation(
            lot_id=layer.lot_id,
            quantity=layer.quantity,
            previous_remaining=layer.remaining_quantity,
            new_remaining=keep,
        ))

    if left > 0:
        logger.info("fifo_target_clamped", extra={
            "target_remaining": target_remaining,
            "unplaced_quantity": left,
        })

    allocations.reverse()
    return tuple(allocations)
