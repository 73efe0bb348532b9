"""
Stock Services - Stateful orchestration over engines and kernel.

    LotLedgerService      purchase lot CRUD and FIFO consumption
    ValuationService      FIFO valuation of stock on hand and of counts
    YearEndCountService   draft -> confirmed count workflow, reports
    CountSheetExchange    count-sheet export rows and row import
"""

from stock_services._count_types import (
    CountConfirmation,
    CountImportResult,
    CountImportRow,
    CountProgress,
    CountSheet,
    CountSheetRow,
    LotBreakdownLine,
    PendingCountReminder,
    ReportLine,
    RevisionComparison,
    RevisionComparisonLine,
    RevisionSide,
    VarianceSummary,
    YearEndReport,
)
from stock_services.count_sheet_exchange import CountSheetExchange
from stock_services.lot_ledger_service import ConsumptionSummary, LotLedgerService
from stock_services.valuation_service import ValuationService
from stock_services.year_end_count_service import YearEndCountService

__all__ = [
    "LotLedgerService",
    "ConsumptionSummary",
    "ValuationService",
    "YearEndCountService",
    "CountSheetExchange",
    "CountConfirmation",
    "CountImportResult",
    "CountImportRow",
    "CountProgress",
    "CountSheet",
    "CountSheetRow",
    "LotBreakdownLine",
    "PendingCountReminder",
    "ReportLine",
    "RevisionComparison",
    "RevisionComparisonLine",
    "RevisionSide",
    "VarianceSummary",
    "YearEndReport",
]
