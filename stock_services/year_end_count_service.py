"""
stock_services.year_end_count_service -- Year-end physical count workflow.

Responsibility:
    Drive a count revision from DRAFT to CONFIRMED: snapshot book
    quantities at initiation, take counted quantities with immediate
    variance and FIFO value, and on confirmation apply every count to the
    lot ledger and lock the year.  Also serves the read side of counts:
    sheets with progress, variance summaries, year-end reports, revision
    comparison and the pending-count reminder.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes LotLedgerService (consume_to_target), ValuationService
    (value_for_counted_quantity), YearLockService (lock, unlock) and the
    Count/Lot selectors.

Invariants enforced:
    - initiate refuses a locked year.  Revisions per year are
      max(existing) + 1, starting at 1.
    - Items are created only for products with stock on hand; the expected
      quantity is frozen at that moment.
    - update_item is legal only on a DRAFT count.  variance and value are
      recomputed on every update.
    - confirm requires every item counted, refuses a confirmed count and a
      year that is already locked, and checks all of that before the first
      write.  Consumption, the lock row and the status change are flushed
      in the caller's transaction, so a failure rolls all of them back.
    - Counts are read with SELECT ... FOR UPDATE on the write paths so
      concurrent confirms of one count serialize.

Failure modes:
    - CountNotFoundError, CountItemNotFoundError.
    - CountAlreadyConfirmedError, CountIncompleteError, YearLockedError.
    - InvalidCountedQuantityError.
    - Everything YearLockService.unlock raises.

Audit relevance:
    count_initiated, count_item_updated and count_confirmed are logged with
    count id, year and revision.  Confirmation is the moment physical
    reality overwrites book quantities; the consumption summaries returned
    from confirm show exactly which lots changed.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import (
    CountItemInfo,
    LockedYearInfo,
    UnlockAuditInfo,
    YearEndCountInfo,
)
from stock_kernel.domain.policy import LotValidationPolicy
from stock_kernel.exceptions import (
    CountAlreadyConfirmedError,
    CountIncompleteError,
    CountItemNotFoundError,
    CountNotFoundError,
    InvalidCountedQuantityError,
    YearLockedError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.year_end_count import (
    CountStatus,
    YearEndCount,
    YearEndCountItem,
)
from stock_kernel.selectors.count_selector import CountSelector
from stock_kernel.selectors.lot_selector import LotSelector
from stock_kernel.services.base import BaseService
from stock_kernel.services.year_lock_service import YearLockService
from stock_services._count_types import (
    CountConfirmation,
    CountProgress,
    CountSheet,
    LotBreakdownLine,
    PendingCountReminder,
    ReportLine,
    RevisionComparison,
    RevisionComparisonLine,
    RevisionSide,
    VarianceSummary,
    YearEndReport,
)
from stock_services.lot_ledger_service import LotLedgerService
from stock_services.valuation_service import ValuationService

logger = get_logger("services.year_end_count")


class YearEndCountService(BaseService[YearEndCount]):
    """
    Year-end count state machine: DRAFT -> CONFIRMED.

    Contract:
        Receives a Session and an optional Clock.  Collaborators default
        to instances sharing the same session and clock; tests may inject
        their own.  Every public method returns frozen DTOs.

    Non-goals:
        - Does NOT parse or write count sheets.  CountSheetExchange adapts
          parsed rows to update_item.
        - Does NOT reopen a confirmed revision.  After an unlock a new
          revision is initiated instead.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: LotValidationPolicy | None = None,
        year_locks: YearLockService | None = None,
        ledger: LotLedgerService | None = None,
        valuation: ValuationService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._year_locks = year_locks or YearLockService(session, self._clock)
        self._ledger = ledger or LotLedgerService(
            session, self._clock, policy, self._year_locks
        )
        self._valuation = valuation or ValuationService(session)
        self._counts = CountSelector(session)
        self._lots = LotSelector(session)

    # =========================================================================
    # Transitions
    # =========================================================================

    def initiate(self, year: int) -> YearEndCountInfo:
        """
        Open a new DRAFT revision for ``year``.

        Postconditions:
            - revision == previous highest revision + 1 (1 for the first).
            - One item per product with stock, expected_quantity frozen.
        """
        self._year_locks.ensure_unlocked(
            year, f"Year {year} is locked. Cannot create new count."
        )

        revision = self._counts.max_revision(year) + 1
        quantities = self._lots.quantities_by_product()

        count = YearEndCount(
            year=year,
            revision=revision,
            status=CountStatus.DRAFT.value,
        )
        for product_id, quantity in quantities.items():
            if quantity > 0:
                count.items.append(YearEndCountItem(
                    product_id=product_id,
                    expected_quantity=quantity,
                ))
        self.session.add(count)
        self.session.flush()

        logger.info("count_initiated", extra={
            "count_id": count.id,
            "year": year,
            "revision": revision,
            "items": len(count.items),
        })
        return YearEndCountInfo.from_model(count)

    def update_item(
        self,
        count_id: int,
        product_id: int,
        counted_quantity: int,
    ) -> CountItemInfo:
        """
        Record a counted quantity (auto-save).

        variance = counted - expected; value prices the counted quantity
        oldest cost first against current stock.
        """
        with LogContext.bind(count_id=count_id, product_id=product_id):
            count = self._get_count_for_update(count_id)
            if count.is_confirmed:
                logger.warning("count_item_update_rejected", extra={
                    "reason": "confirmed",
                })
                raise CountAlreadyConfirmedError(
                    count_id, "Cannot update confirmed year-end count"
                )

            item = self._find_item(count, product_id)
            if item is None:
                raise CountItemNotFoundError(count_id, product_id)

            if (
                isinstance(counted_quantity, bool)
                or not isinstance(counted_quantity, int)
                or counted_quantity < 0
            ):
                raise InvalidCountedQuantityError(product_id, counted_quantity)

            item.counted_quantity = counted_quantity
            item.variance = counted_quantity - item.expected_quantity
            item.value = self._valuation.value_for_counted_quantity(
                product_id, counted_quantity
            )
            self.session.flush()

            logger.info("count_item_updated", extra={
                "expected_quantity": item.expected_quantity,
                "counted_quantity": counted_quantity,
                "variance": item.variance,
                "value": str(item.value),
            })
            return CountItemInfo.from_model(item)

    def confirm(self, count_id: int) -> CountConfirmation:
        """
        Apply the count to the ledger and lock its year.

        Postconditions:
            - For every item, the product's total remaining quantity equals
              the counted quantity (clamped to what its lots can hold).
            - A LockedYear row exists for the count's year.
            - status is CONFIRMED and confirmed_at is the clock time.
        """
        with LogContext.bind(count_id=count_id):
            count = self._get_count_for_update(count_id)
            if count.is_confirmed:
                raise CountAlreadyConfirmedError(count_id)

            if self._year_locks.is_locked(count.year):
                logger.warning("count_confirm_rejected", extra={
                    "reason": "year_locked",
                    "year": count.year,
                })
                raise YearLockedError(
                    count.year, f"Year {count.year} is already locked"
                )

            snapshot = YearEndCountInfo.from_model(count)
            uncounted = snapshot.uncounted_items
            if uncounted:
                logger.warning("count_confirm_rejected", extra={
                    "reason": "incomplete",
                    "uncounted": len(uncounted),
                })
                raise CountIncompleteError(
                    count_id, [item.product_name for item in uncounted]
                )

            consumptions = tuple(
                self._ledger.consume_to_target(item.product_id, item.counted_quantity)
                for item in count.items
            )

            locked = self._year_locks.lock_year(count.year)

            count.status = CountStatus.CONFIRMED.value
            count.confirmed_at = self._clock.now()
            self.session.flush()

            logger.info("count_confirmed", extra={
                "year": count.year,
                "revision": count.revision,
                "items": len(count.items),
                "confirmed_at": count.confirmed_at.isoformat(),
            })
            return CountConfirmation(
                count=YearEndCountInfo.from_model(count),
                locked_year=locked,
                consumptions=consumptions,
            )

    def unlock(
        self,
        year: int,
        reason_category: str,
        description: str,
    ) -> UnlockAuditInfo:
        """Reopen the most recently locked year so a new revision can be taken."""
        return self._year_locks.unlock(year, reason_category, description)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_count(self, count_id: int) -> YearEndCountInfo:
        return self._counts.get_count(count_id)

    def get_by_year(self, year: int, revision: int | None = None) -> YearEndCountInfo:
        return self._counts.get_by_year(year, revision)

    def get_all_revisions(self, year: int) -> list[YearEndCountInfo]:
        return self._counts.get_all_revisions(year)

    def list_counts(self) -> list[YearEndCountInfo]:
        return self._counts.list_counts()

    def get_locked_years(self) -> list[LockedYearInfo]:
        return self._year_locks.get_locked_years()

    def get_unlock_history(self, year: int) -> list[UnlockAuditInfo]:
        return self._year_locks.get_unlock_history(year)

    def most_recent_locked(self) -> int | None:
        return self._year_locks.most_recent_locked()

    def get_count_sheet(self, count_id: int) -> CountSheet:
        count = self._counts.get_count(count_id)
        return CountSheet(
            count=count,
            progress=CountProgress(total=count.item_count, counted=count.counted_count),
        )

    def calculate_variances(self, count_id: int) -> VarianceSummary:
        count = self._counts.get_count(count_id)
        return VarianceSummary(
            count_id=count.id,
            year=count.year,
            revision=count.revision,
            items=count.items,
        )

    def generate_report(self, count_id: int) -> YearEndReport:
        """Count items with the lots currently holding each product's stock."""
        count = self._counts.get_count(count_id)
        lines = []
        for item in count.items:
            lots = tuple(
                LotBreakdownLine(
                    lot_id=lot.id,
                    purchase_date=lot.purchase_date,
                    year=lot.year,
                    quantity=lot.quantity,
                    remaining_quantity=lot.remaining_quantity,
                    unit_cost=lot.unit_cost,
                    supplier_name=lot.supplier_name,
                )
                for lot in self._lots.list_fifo(item.product_id)
            )
            lines.append(ReportLine(item=item, lots=lots))
        return YearEndReport(
            count_id=count.id,
            year=count.year,
            revision=count.revision,
            status=count.status,
            confirmed_at=count.confirmed_at,
            lines=tuple(lines),
        )

    def compare_revisions(
        self,
        year: int,
        revision1: int,
        revision2: int,
    ) -> RevisionComparison:
        """Per-product side-by-side of two revisions of one year."""
        first = self._counts.get_by_year(year, revision1)
        second = self._counts.get_by_year(year, revision2)

        names: dict[int, str] = {}
        for item in first.items + second.items:
            names.setdefault(item.product_id, item.product_name)

        lines = tuple(
            RevisionComparisonLine(
                product_id=product_id,
                product_name=name,
                revision1=RevisionSide.of(first.item_for(product_id)),
                revision2=RevisionSide.of(second.item_for(product_id)),
            )
            for product_id, name in sorted(names.items(), key=lambda kv: (kv[1], kv[0]))
        )
        return RevisionComparison(
            year=year,
            revision1=first,
            revision2=second,
            lines=lines,
        )

    def pending_count_check(self) -> PendingCountReminder:
        """
        Is a count due?

        Compares the latest year with any purchase against the latest year
        with a confirmed count.  Advisory only; nothing is blocked.
        """
        latest_purchase_year = self._lots.latest_purchase_year()
        latest_count_year = self._counts.latest_confirmed_year() or 0

        needs_count = (
            latest_purchase_year is not None
            and latest_purchase_year > latest_count_year
        )
        return PendingCountReminder(
            needs_count=needs_count,
            pending_year=latest_purchase_year if needs_count else None,
            latest_purchase_year=latest_purchase_year,
            latest_count_year=latest_count_year,
        )

    # =========================================================================
    # Internal
    # =========================================================================

    def _get_count_for_update(self, count_id: int) -> YearEndCount:
        count = self.session.execute(
            select(YearEndCount)
            .where(YearEndCount.id == count_id)
            .with_for_update()
        ).scalar_one_or_none()
        if count is None:
            raise CountNotFoundError(count_id=count_id)
        return count

    @staticmethod
    def _find_item(count: YearEndCount, product_id: int) -> YearEndCountItem | None:
        for item in count.items:
            if item.product_id == product_id:
                return item
        return None
