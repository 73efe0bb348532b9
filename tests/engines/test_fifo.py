"""
Tests for the pure FIFO walks in stock_engines.valuation.

Covers:
- value_oldest_first: oldest cost first, empty lots skipped, short stock
- value_remaining: totals and per-lot breakdown
- allocate_remaining_newest_first: newest lots kept first, every lot
  visited, clamping above the original quantity, FIFO-ordered output
- Property tests for conservation and ordering
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stock_engines.valuation import (
    LotLayer,
    allocate_remaining_newest_first,
    fifo_order,
    value_oldest_first,
    value_remaining,
)


def _layer(lot_id, purchase_date, quantity, remaining=None, unit_cost="1.00"):
    return LotLayer(
        lot_id=lot_id,
        purchase_date=purchase_date,
        quantity=quantity,
        remaining_quantity=quantity if remaining is None else remaining,
        unit_cost=Decimal(unit_cost),
    )


@st.composite
def layer_lists(draw, min_size=0, max_size=8):
    """Lots with distinct ids, random dates (ties allowed) and remaining."""
    size = draw(st.integers(min_value=min_size, max_value=max_size))
    ids = draw(st.lists(
        st.integers(min_value=1, max_value=10_000),
        min_size=size,
        max_size=size,
        unique=True,
    ))
    layers = []
    for lot_id in ids:
        quantity = draw(st.integers(min_value=1, max_value=500))
        remaining = draw(st.integers(min_value=0, max_value=quantity))
        offset = draw(st.integers(min_value=0, max_value=30))
        cents = draw(st.integers(min_value=1, max_value=100_000))
        layers.append(LotLayer(
            lot_id=lot_id,
            purchase_date=date(2022, 1, 1) + timedelta(days=offset),
            quantity=quantity,
            remaining_quantity=remaining,
            unit_cost=Decimal(cents) / 100,
        ))
    return layers


class TestLotLayer:
    """LotLayer rejects impossible lots."""

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError, match="quantity must be positive"):
            _layer(1, date(2023, 1, 1), 0)

    def test_remaining_above_quantity_rejected(self):
        with pytest.raises(ValueError, match="outside"):
            _layer(1, date(2023, 1, 1), 5, remaining=6)

    def test_negative_remaining_rejected(self):
        with pytest.raises(ValueError, match="outside"):
            _layer(1, date(2023, 1, 1), 5, remaining=-1)

    def test_non_positive_cost_rejected(self):
        with pytest.raises(ValueError, match="unit cost"):
            _layer(1, date(2023, 1, 1), 5, unit_cost="0")

    def test_derived_fields(self):
        layer = _layer(1, date(2023, 1, 1), 10, remaining=4, unit_cost="2.50")
        assert layer.consumed_quantity == 6
        assert layer.remaining_value == Decimal("10.00")


class TestFifoOrder:

    def test_orders_by_date_then_id(self):
        layers = [
            _layer(7, date(2023, 3, 1), 1),
            _layer(3, date(2023, 1, 1), 1),
            _layer(2, date(2023, 3, 1), 1),
        ]
        assert [layer.lot_id for layer in fifo_order(layers)] == [3, 2, 7]


class TestValueOldestFirst:

    def test_draws_oldest_cost_first(self):
        layers = [
            _layer(3, date(2023, 3, 1), 50, unit_cost="2.00"),
            _layer(1, date(2023, 1, 1), 20, unit_cost="1.00"),
            _layer(2, date(2023, 2, 1), 30, unit_cost="1.50"),
        ]
        result = value_oldest_first(layers, 60)

        assert result.value == Decimal("85.00")
        assert [(d.lot_id, d.quantity) for d in result.layers] == [
            (1, 20), (2, 30), (3, 10),
        ]
        assert result.is_fully_valued

    def test_skips_lots_with_nothing_remaining(self):
        layers = [
            _layer(1, date(2023, 1, 1), 10, remaining=0, unit_cost="9.99"),
            _layer(2, date(2023, 2, 1), 10, unit_cost="1.00"),
        ]
        result = value_oldest_first(layers, 5)

        assert result.value == Decimal("5.00")
        assert [d.lot_id for d in result.layers] == [2]

    def test_uses_remaining_not_original_quantity(self):
        layers = [
            _layer(1, date(2023, 1, 1), 10, remaining=3, unit_cost="1.00"),
            _layer(2, date(2023, 2, 1), 10, unit_cost="2.00"),
        ]
        assert value_oldest_first(layers, 5).value == Decimal("7.00")

    def test_short_stock_reports_unvalued_quantity(self):
        layers = [_layer(1, date(2023, 1, 1), 10, unit_cost="1.50")]
        result = value_oldest_first(layers, 25)

        assert result.value == Decimal("15.00")
        assert result.quantity == 10
        assert result.unvalued_quantity == 15
        assert not result.is_fully_valued

    def test_zero_quantity_is_worth_nothing(self):
        layers = [_layer(1, date(2023, 1, 1), 10)]
        result = value_oldest_first(layers, 0)
        assert result.value == Decimal("0")
        assert result.layers == ()

    def test_no_lots(self):
        result = value_oldest_first([], 4)
        assert result.value == Decimal("0")
        assert result.unvalued_quantity == 4

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError):
            value_oldest_first([], -1)


class TestValueRemaining:

    def test_values_every_remaining_unit(self):
        layers = [
            _layer(1, date(2023, 1, 1), 20, unit_cost="1.00"),
            _layer(2, date(2023, 2, 1), 30, remaining=10, unit_cost="1.50"),
            _layer(3, date(2023, 3, 1), 50, remaining=0, unit_cost="2.00"),
        ]
        result = value_remaining(layers)

        assert result.quantity == 30
        assert result.value == Decimal("35.00")
        assert result.is_fully_valued


class TestAllocateRemainingNewestFirst:

    def test_newest_lots_survive(self):
        layers = [
            _layer(1, date(2022, 1, 15), 10, remaining=8, unit_cost="1.00"),
            _layer(2, date(2023, 1, 20), 5, unit_cost="1.50"),
        ]
        allocations = allocate_remaining_newest_first(layers, 11)

        assert [(a.lot_id, a.new_remaining) for a in allocations] == [(1, 6), (2, 5)]
        assert [a.changed for a in allocations] == [True, False]

    def test_zero_target_empties_everything(self):
        layers = [
            _layer(1, date(2022, 1, 15), 10, remaining=6),
            _layer(2, date(2023, 1, 20), 5),
        ]
        allocations = allocate_remaining_newest_first(layers, 0)
        assert all(a.new_remaining == 0 for a in allocations)

    def test_visits_lots_already_at_zero(self):
        # An emptied lot can be refilled when the count says stock exists.
        layers = [
            _layer(1, date(2022, 1, 15), 10, remaining=0),
            _layer(2, date(2023, 1, 20), 5, remaining=0),
        ]
        allocations = allocate_remaining_newest_first(layers, 7)
        assert [(a.lot_id, a.new_remaining) for a in allocations] == [(1, 2), (2, 5)]

    def test_target_above_total_quantity_is_clamped(self):
        layers = [
            _layer(1, date(2022, 1, 15), 10, remaining=2),
            _layer(2, date(2023, 1, 20), 5, remaining=1),
        ]
        allocations = allocate_remaining_newest_first(layers, 100)

        assert [(a.lot_id, a.new_remaining) for a in allocations] == [(1, 10), (2, 5)]
        assert sum(a.consumed for a in allocations) == -12

    def test_same_date_ties_broken_by_id(self):
        layers = [
            _layer(9, date(2023, 5, 1), 4),
            _layer(4, date(2023, 5, 1), 4),
        ]
        allocations = allocate_remaining_newest_first(layers, 5)
        # Lot 9 is newer; it keeps all 4 and lot 4 keeps 1.
        assert [(a.lot_id, a.new_remaining) for a in allocations] == [(4, 1), (9, 4)]

    def test_negative_target_rejected(self):
        with pytest.raises(ValueError):
            allocate_remaining_newest_first([], -3)

    def test_no_lots(self):
        assert allocate_remaining_newest_first([], 5) == ()


class TestFifoProperties:
    """Properties that hold for any lot set."""

    @given(layers=layer_lists(), target=st.integers(min_value=0, max_value=5_000))
    @settings(max_examples=200, deadline=None)
    def test_allocation_conserves_min_of_target_and_capacity(self, layers, target):
        allocations = allocate_remaining_newest_first(layers, target)
        capacity = sum(layer.quantity for layer in layers)

        assert len(allocations) == len(layers)
        assert sum(a.new_remaining for a in allocations) == min(target, capacity)
        assert all(0 <= a.new_remaining <= a.quantity for a in allocations)

    @given(layers=layer_lists(min_size=1), target=st.integers(min_value=0, max_value=5_000))
    @settings(max_examples=200, deadline=None)
    def test_allocation_keeps_newest_first(self, layers, target):
        allocations = allocate_remaining_newest_first(layers, target)

        # Once a lot is not full, every older lot is empty.
        seen_partial = False
        for allocation in reversed(allocations):
            if seen_partial:
                assert allocation.new_remaining == 0
            elif allocation.new_remaining < allocation.quantity:
                seen_partial = True

    @given(layers=layer_lists(), target=st.integers(min_value=0, max_value=5_000))
    @settings(max_examples=100, deadline=None)
    def test_allocation_returned_in_fifo_order(self, layers, target):
        allocations = allocate_remaining_newest_first(layers, target)
        expected = [layer.lot_id for layer in fifo_order(layers)]
        assert [a.lot_id for a in allocations] == expected

    @given(layers=layer_lists())
    @settings(max_examples=100, deadline=None)
    def test_allocating_current_total_after_full_restore_is_stable(self, layers):
        full = [
            LotLayer(
                lot_id=layer.lot_id,
                purchase_date=layer.purchase_date,
                quantity=layer.quantity,
                remaining_quantity=layer.quantity,
                unit_cost=layer.unit_cost,
            )
            for layer in layers
        ]
        total = sum(layer.quantity for layer in full)
        allocations = allocate_remaining_newest_first(full, total)
        assert not any(a.changed for a in allocations)

    @given(layers=layer_lists(), quantity=st.integers(min_value=0, max_value=5_000))
    @settings(max_examples=200, deadline=None)
    def test_valuation_never_exceeds_stock(self, layers, quantity):
        result = value_oldest_first(layers, quantity)
        on_hand = sum(layer.remaining_quantity for layer in layers)

        assert result.quantity == min(quantity, on_hand)
        assert result.quantity + result.unvalued_quantity == quantity
        assert result.value == sum(
            (d.quantity * d.unit_cost for d in result.layers), Decimal("0")
        )

    @given(layers=layer_lists())
    @settings(max_examples=100, deadline=None)
    def test_value_remaining_matches_per_lot_sum(self, layers):
        result = value_remaining(layers)
        assert result.value == sum(
            (layer.remaining_value for layer in layers), Decimal("0")
        )
