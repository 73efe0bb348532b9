"""
stock_services.valuation_service -- FIFO inventory valuation.

Responsibility:
    Price stock from purchase lots.  Two questions are answered:

    value_at_current_fifo(product_id)
        What is the stock on hand worth?  Every remaining unit at its own
        lot's cost.
    value_for_counted_quantity(product_id, counted_quantity)
        What would ``counted_quantity`` units be worth if priced against
        the lots that have stock, oldest cost first?  Used to price a
        physical count before the count is applied to the ledger.

    aggregate() rolls current values up per product with a grand total.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Reads lots through LotSelector and prices them with the pure
    value_oldest_first / value_remaining engine functions.  Never writes.

Invariants enforced:
    - Valuation walks lots oldest first over lots with remaining > 0.
    - value_at_current_fifo(p).value == sum(remaining x unit_cost).
    - Lots whose product was deleted are left out of the aggregate.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_engines.valuation import LotLayer, value_oldest_first, value_remaining
from stock_kernel.domain.dtos import (
    InventoryAggregate,
    LotValuation,
    ProductValuation,
    PurchaseLotInfo,
)
from stock_kernel.domain.snapshots import UNKNOWN_NAME
from stock_kernel.logging_config import get_logger
from stock_kernel.models.purchase_lot import PurchaseLot
from stock_kernel.selectors.lot_selector import LotSelector, fifo_order_by

logger = get_logger("services.valuation")


def _layer(lot: PurchaseLotInfo) -> LotLayer:
    return LotLayer(
        lot_id=lot.id,
        purchase_date=lot.purchase_date,
        quantity=lot.quantity,
        remaining_quantity=lot.remaining_quantity,
        unit_cost=lot.unit_cost,
    )


class ValuationService:
    """
    Read-only FIFO valuation over the lot ledger.

    Contract:
        Receives a Session via constructor injection.  All results are
        frozen DTOs or Decimals.
    """

    def __init__(self, session: Session):
        self.session = session
        self._lots = LotSelector(session)

    def value_at_current_fifo(self, product_id: int) -> ProductValuation:
        lots = self._lots.list_fifo(product_id)
        valuation = value_remaining(_layer(lot) for lot in lots)
        return ProductValuation(
            product_id=product_id,
            product_name=lots[0].product_name if lots else UNKNOWN_NAME,
            quantity=valuation.quantity,
            value=valuation.value,
            lots=tuple(_lot_valuation(lot) for lot in lots),
        )

    def value_for_counted_quantity(
        self,
        product_id: int,
        counted_quantity: int,
    ) -> Decimal:
        """
        Price ``counted_quantity`` oldest cost first against current stock.

        Units beyond the stock on hand contribute nothing.
        """
        lots = self._lots.list_fifo(product_id)
        valuation = value_oldest_first((_layer(lot) for lot in lots), counted_quantity)
        if not valuation.is_fully_valued:
            logger.info("counted_quantity_exceeds_stock", extra={
                "product_id": product_id,
                "counted_quantity": counted_quantity,
                "unvalued_quantity": valuation.unvalued_quantity,
            })
        return valuation.value

    def aggregate(self, supplier_id: int | None = None) -> InventoryAggregate:
        """Per-product quantity and value, optionally for one supplier's lots."""
        stmt = select(PurchaseLot).where(
            PurchaseLot.remaining_quantity > 0,
            PurchaseLot.product_id.is_not(None),
        )
        if supplier_id is not None:
            stmt = stmt.where(PurchaseLot.supplier_id == supplier_id)
        rows = self.session.execute(stmt.order_by(*fifo_order_by())).scalars().all()

        grouped: dict[int, list[PurchaseLotInfo]] = defaultdict(list)
        for row in rows:
            grouped[row.product_id].append(PurchaseLotInfo.from_model(row))

        products = []
        for product_id, lots in grouped.items():
            valuation = value_remaining(_layer(lot) for lot in lots)
            products.append(ProductValuation(
                product_id=product_id,
                product_name=lots[0].product_name,
                quantity=valuation.quantity,
                value=valuation.value,
                lots=tuple(_lot_valuation(lot) for lot in lots),
            ))
        products.sort(key=lambda p: (p.product_name, p.product_id))

        aggregate = InventoryAggregate(products=tuple(products), supplier_id=supplier_id)
        logger.debug("inventory_aggregated", extra={
            "supplier_id": supplier_id,
            "products": len(products),
            "total_quantity": aggregate.total_quantity,
            "total_value": str(aggregate.total_value),
        })
        return aggregate


def _lot_valuation(lot: PurchaseLotInfo) -> LotValuation:
    return LotValuation(
        lot_id=lot.id,
        purchase_date=lot.purchase_date,
        year=lot.year,
        quantity=lot.remaining_quantity,
        unit_cost=lot.unit_cost,
        supplier_name=lot.supplier_name,
    )
