"""
stock_services._count_types -- DTOs for the year-end count workflow.

Responsibility:
    Frozen results produced by YearEndCountService and the count-sheet
    exchange: sheet progress, variance summary, year-end report with lot
    breakdown, revision comparison, the pending-count reminder, import
    results and export rows.

Architecture position:
    Services -- these types live next to the workflow that builds them.
    They depend only on kernel DTOs.

Invariants enforced:
    - All DTOs are frozen; totals are derived properties, never stored.
    - CountProgress.percentage rounds half up and is 0 for an empty count.
    - Report total_variance is total_counted - total_expected, so uncounted
      items count as zero on the counted side.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from stock_kernel.domain.dtos import (
    CountItemInfo,
    LockedYearInfo,
    YearEndCountInfo,
)
from stock_services.lot_ledger_service import ConsumptionSummary


def _sum_decimal(values) -> Decimal:
    return sum((v for v in values if v is not None), Decimal("0"))


@dataclass(frozen=True, slots=True)
class CountProgress:
    total: int
    counted: int

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        ratio = Decimal(self.counted) * 100 / Decimal(self.total)
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True, slots=True)
class CountSheet:
    """A count with its items in product-name order and its progress."""

    count: YearEndCountInfo
    progress: CountProgress

    @property
    def items(self) -> tuple[CountItemInfo, ...]:
        return self.count.items


@dataclass(frozen=True, slots=True)
class VarianceSummary:
    count_id: int
    year: int
    revision: int
    items: tuple[CountItemInfo, ...]

    @property
    def total_products(self) -> int:
        return len(self.items)

    @property
    def counted_products(self) -> int:
        return sum(1 for item in self.items if item.is_counted)

    @property
    def total_expected(self) -> int:
        return sum(item.expected_quantity for item in self.items)

    @property
    def total_counted(self) -> int:
        return sum(item.counted_quantity or 0 for item in self.items)

    @property
    def total_variance(self) -> int:
        return sum(item.variance or 0 for item in self.items)

    @property
    def total_value(self) -> Decimal:
        return _sum_decimal(item.value for item in self.items)


@dataclass(frozen=True, slots=True)
class LotBreakdownLine:
    lot_id: int
    purchase_date: date
    year: int
    quantity: int
    remaining_quantity: int
    unit_cost: Decimal
    supplier_name: str

    @property
    def lot_value(self) -> Decimal:
        return self.remaining_quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class ReportLine:
    item: CountItemInfo
    lots: tuple[LotBreakdownLine, ...]

    @property
    def product_id(self) -> int:
        return self.item.product_id

    @property
    def product_name(self) -> str:
        return self.item.product_name


@dataclass(frozen=True, slots=True)
class YearEndReport:
    count_id: int
    year: int
    revision: int
    status: str
    confirmed_at: datetime | None
    lines: tuple[ReportLine, ...]

    @property
    def total_expected(self) -> int:
        return sum(line.item.expected_quantity for line in self.lines)

    @property
    def total_counted(self) -> int:
        return sum(line.item.counted_quantity or 0 for line in self.lines)

    @property
    def total_variance(self) -> int:
        return self.total_counted - self.total_expected

    @property
    def total_value(self) -> Decimal:
        return _sum_decimal(line.item.value for line in self.lines)


@dataclass(frozen=True, slots=True)
class RevisionSide:
    expected_quantity: int
    counted_quantity: int | None
    variance: int | None
    value: Decimal | None

    @classmethod
    def of(cls, item: CountItemInfo | None) -> RevisionSide | None:
        if item is None:
            return None
        return cls(
            expected_quantity=item.expected_quantity,
            counted_quantity=item.counted_quantity,
            variance=item.variance,
            value=item.value,
        )


@dataclass(frozen=True, slots=True)
class RevisionComparisonLine:
    """One product across two revisions.  A side is None when absent."""

    product_id: int
    product_name: str
    revision1: RevisionSide | None
    revision2: RevisionSide | None

    @property
    def counted_difference(self) -> int | None:
        if (
            self.revision1 is None
            or self.revision2 is None
            or self.revision1.counted_quantity is None
            or self.revision2.counted_quantity is None
        ):
            return None
        return self.revision2.counted_quantity - self.revision1.counted_quantity

    @property
    def value_difference(self) -> Decimal | None:
        if (
            self.revision1 is None
            or self.revision2 is None
            or self.revision1.value is None
            or self.revision2.value is None
        ):
            return None
        return self.revision2.value - self.revision1.value


@dataclass(frozen=True, slots=True)
class RevisionComparison:
    year: int
    revision1: YearEndCountInfo
    revision2: YearEndCountInfo
    lines: tuple[RevisionComparisonLine, ...]


@dataclass(frozen=True, slots=True)
class PendingCountReminder:
    """
    Whether purchases exist in a year later than the last confirmed count.

    latest_count_year is 0 when no count was ever confirmed.
    """

    needs_count: bool
    pending_year: int | None
    latest_purchase_year: int | None
    latest_count_year: int


@dataclass(frozen=True, slots=True)
class CountConfirmation:
    count: YearEndCountInfo
    locked_year: LockedYearInfo
    consumptions: tuple[ConsumptionSummary, ...]

    @property
    def message(self) -> str:
        return (
            f"Year {self.count.year} confirmed and locked. "
            f"All lot quantities updated using FIFO."
        )


@dataclass(frozen=True, slots=True)
class CountSheetRow:
    """Export row handed to sheet writers."""

    product_name: str
    supplier_name: str
    expected_quantity: int


@dataclass(frozen=True, slots=True)
class CountImportRow:
    """Parsed import row: a product name and the quantity counted."""

    product_name: str
    actual_count: int


@dataclass(frozen=True, slots=True)
class CountImportResult:
    successful: int
    failed: int
    errors: tuple[str, ...]
