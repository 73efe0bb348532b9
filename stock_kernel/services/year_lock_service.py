"""
YearLockService -- year lock lifecycle and the unlock audit trail.

Responsibility:
    Answers whether a year is locked, creates the lock when a year-end
    count is confirmed, and performs audited unlocks.  Every lot mutation
    and every count initiation asks this service first.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by LotLedgerService before create/update/delete and by
    YearEndCountService for initiate, confirm and unlock.

Invariants enforced:
    - One LockedYear row per year; existence of the row is the lock.
    - Unlock is strictly last-in-first-out: only the most recently locked
      (highest) year may be unlocked while others stay locked.
    - Unlock requires a reason from UnlockReason and a non-blank
      description.  The audit row is written before the lock row is
      removed, inside the caller's transaction.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - YearLockedError: lock_year() on a year that is already locked, or
      ensure_unlocked() on a locked year.
    - YearNotLockedError: unlock() of a year with no lock row.
    - UnlockOrderError: unlock() of a year older than the most recent lock.
    - InvalidUnlockReasonError / MissingUnlockDescriptionError: bad input.

Audit relevance:
    year_locked and year_unlocked are logged with the year, the reason
    category and the clock time.  Rejected unlocks are logged at WARNING.
    YearUnlockAudit rows are append-only and are never removed here.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import (
    LockedYearInfo,
    LockedYearState,
    UnlockAuditInfo,
    UnlockedYearState,
    YearLockState,
)
from stock_kernel.exceptions import (
    InvalidUnlockReasonError,
    MissingUnlockDescriptionError,
    UnlockOrderError,
    YearLockedError,
    YearNotLockedError,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.year_lock import LockedYear, UnlockReason, YearUnlockAudit
from stock_kernel.services.base import BaseService

logger = get_logger("services.year_lock")

UNLOCK_REASONS: tuple[str, ...] = tuple(reason.value for reason in UnlockReason)


class YearLockService(BaseService[LockedYear]):
    """
    Service for year locks.

    Contract:
        Read methods return booleans, ints or frozen DTOs.  lock_year and
        unlock flush within the caller's transaction.

    Non-goals:
        - Does NOT touch purchase lots or counts.  Confirming a count and
          consuming stock is YearEndCountService's job.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # =========================================================================
    # Queries
    # =========================================================================

    def is_locked(self, year: int) -> bool:
        return self._get_lock(year) is not None

    def most_recent_locked(self) -> int | None:
        """Highest locked year, or None when no year is locked."""
        return self.session.execute(select(func.max(LockedYear.year))).scalar()

    def ensure_unlocked(self, year: int, message: str | None = None) -> None:
        """
        Raises:
            YearLockedError: ``year`` is locked.  ``message`` overrides the
                default text so callers can say which mutation was refused.
        """
        if self.is_locked(year):
            logger.warning("year_locked_rejection", extra={"year": year})
            raise YearLockedError(year, message)

    def get_locked_years(self) -> list[LockedYearInfo]:
        """All locked years, most recent first."""
        rows = self.session.execute(
            select(LockedYear).order_by(LockedYear.year.desc())
        ).scalars().all()
        return [LockedYearInfo.from_model(row) for row in rows]

    def get_unlock_history(self, year: int) -> list[UnlockAuditInfo]:
        """Unlock audit entries for ``year``, oldest first."""
        rows = self.session.execute(
            select(YearUnlockAudit)
            .where(YearUnlockAudit.year == year)
            .order_by(YearUnlockAudit.unlocked_at, YearUnlockAudit.id)
        ).scalars().all()
        return [UnlockAuditInfo.from_model(row) for row in rows]

    def get_lock_state(self, year: int) -> YearLockState:
        history = tuple(self.get_unlock_history(year))
        lock = self._get_lock(year)
        if lock is None:
            return UnlockedYearState(year=year, unlock_history=history)
        return LockedYearState(
            year=year,
            locked_at=lock.locked_at,
            unlock_history=history,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def lock_year(self, year: int) -> LockedYearInfo:
        """
        Create the lock row for ``year``.

        Raises:
            YearLockedError: ``year`` is already locked.
        """
        if self.is_locked(year):
            raise YearLockedError(year, f"Year {year} is already locked")

        lock = LockedYear(year=year, locked_at=self._clock.now())
        self.session.add(lock)
        self.session.flush()

        logger.info("year_locked", extra={
            "year": year,
            "locked_at": lock.locked_at.isoformat(),
        })
        return LockedYearInfo.from_model(lock)

    def unlock(
        self,
        year: int,
        reason_category: str | UnlockReason,
        description: str,
    ) -> UnlockAuditInfo:
        """
        Reopen the most recently locked year.

        Preconditions are all checked before anything is written.

        Postconditions:
            - A YearUnlockAudit row exists for this unlock.
            - The LockedYear row for ``year`` is gone.

        Raises:
            YearNotLockedError, UnlockOrderError, InvalidUnlockReasonError,
            MissingUnlockDescriptionError.
        """
        lock = self._get_lock(year, for_update=True)
        if lock is None:
            logger.warning("year_unlock_rejected", extra={
                "year": year,
                "reason": "not_locked",
            })
            raise YearNotLockedError(year)

        most_recent = self.most_recent_locked()
        if most_recent is not None and year != most_recent:
            logger.warning("year_unlock_rejected", extra={
                "year": year,
                "reason": "not_most_recent",
                "most_recent_year": most_recent,
            })
            raise UnlockOrderError(year, most_recent)

        if isinstance(reason_category, UnlockReason):
            reason_category = reason_category.value
        if reason_category not in UNLOCK_REASONS:
            raise InvalidUnlockReasonError(reason_category, UNLOCK_REASONS)

        if not description or not description.strip():
            raise MissingUnlockDescriptionError(year)

        audit = YearUnlockAudit(
            year=year,
            unlocked_at=self._clock.now(),
            reason_category=reason_category,
            description=description.strip(),
        )
        self.session.add(audit)
        self.session.flush()

        self.session.delete(lock)
        self.session.flush()

        logger.info("year_unlocked", extra={
            "year": year,
            "reason_category": reason_category,
            "audit_id": audit.id,
            "unlocked_at": audit.unlocked_at.isoformat(),
        })
        return UnlockAuditInfo.from_model(audit)

    # =========================================================================
    # Internal
    # =========================================================================

    def _get_lock(self, year: int, for_update: bool = False) -> LockedYear | None:
        stmt = select(LockedYear).where(LockedYear.year == year)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()
