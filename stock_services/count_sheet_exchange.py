"""
stock_services.count_sheet_exchange -- Boundary for count-sheet files.

Responsibility:
    Give sheet writers the rows they print (product, supplier, expected
    quantity) and apply rows parsed from a filled-in sheet through
    YearEndCountService.update_item.  File formats stay outside; this
    module only sees rows.

Architecture position:
    Services -- thin adapter over YearEndCountService and the catalog.

Invariants enforced:
    - Import resolves product names exactly.  One bad row never aborts the
      rest: stock errors are recorded per row and counted as failed.
    - Anything that is not a StockKernelError propagates.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.exceptions import StockKernelError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.catalog import Product
from stock_services._count_types import (
    CountImportResult,
    CountImportRow,
    CountSheetRow,
)
from stock_services.year_end_count_service import YearEndCountService

logger = get_logger("services.count_sheet_exchange")


class CountSheetExchange:
    """Export rows for, and import rows from, a year-end count sheet."""

    def __init__(self, session: Session, counts: YearEndCountService):
        self.session = session
        self._counts = counts

    def count_sheet_rows(self, count_id: int) -> list[CountSheetRow]:
        sheet = self._counts.get_count_sheet(count_id)
        return [
            CountSheetRow(
                product_name=item.product_name,
                supplier_name=item.supplier_name,
                expected_quantity=item.expected_quantity,
            )
            for item in sheet.items
        ]

    def import_counts(
        self,
        count_id: int,
        rows: Iterable[CountImportRow],
    ) -> CountImportResult:
        successful = 0
        errors: list[str] = []

        with LogContext.bind(count_id=count_id):
            for row in rows:
                product_id = self.session.execute(
                    select(Product.id).where(Product.name == row.product_name)
                ).scalar_one_or_none()
                if product_id is None:
                    errors.append(f"Product not found: {row.product_name}")
                    continue
                try:
                    self._counts.update_item(count_id, product_id, row.actual_count)
                except StockKernelError as exc:
                    errors.append(f"{row.product_name}: {exc.message}")
                    continue
                successful += 1

            logger.info("count_import_completed", extra={
                "successful": successful,
                "failed": len(errors),
            })

        return CountImportResult(
            successful=successful,
            failed=len(errors),
            errors=tuple(errors),
        )
