"""
Module: stock_kernel.models.year_lock
Responsibility: ORM persistence for locked years and the append-only unlock
    audit log.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    K1 -- At most one LockedYear row per year (uq_locked_year).  Existence of
          the row IS the lock: lots dated in that year are immutable and no
          new count revision may be initiated for it.
    K2 -- YearUnlockAudit rows are append-only.  Nothing updates or deletes
          them.
    K3 -- Both tables key off bare year integers, not foreign keys into
          year_end_counts.  A year is locked independent of which revision
          caused it.

Audit relevance:
    Every unlock leaves a YearUnlockAudit row with a reason category and a
    free-text description written before the LockedYear row is removed.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TimestampedBase


class UnlockReason(str, Enum):
    """Fixed set of reasons accepted for unlocking a year."""

    DATA_ERROR = "data_error"
    RECOUNT_REQUIRED = "recount_required"
    AUDIT_ADJUSTMENT = "audit_adjustment"
    OTHER = "other"


class LockedYear(TimestampedBase):
    """Lock marker for a year closed by a confirmed count."""

    __tablename__ = "locked_years"

    __table_args__ = (UniqueConstraint("year", name="uq_locked_year"),)

    year: Mapped[int] = mapped_column(nullable=False)

    locked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LockedYear {self.year}>"


class YearUnlockAudit(TimestampedBase):
    """Append-only record of one unlock."""

    __tablename__ = "year_unlock_audits"

    __table_args__ = (Index("idx_year_unlock_audit_year", "year"),)

    year: Mapped[int] = mapped_column(nullable=False)

    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    reason_category: Mapped[str] = mapped_column(String(30), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<YearUnlockAudit {self.year}: {self.reason_category}>"
