"""
Module: stock_kernel.selectors.count_selector
Responsibility: Read access to year-end counts and their items.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - get_by_year without a revision returns the highest revision.
    - Revisions of a year are listed ascending; the overall listing is
      year descending, then revision descending.
    - Items inside a YearEndCountInfo are sorted by product name.

Failure modes:
    - CountNotFoundError for a missing id or (year, revision).
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import YearEndCountInfo
from stock_kernel.exceptions import CountNotFoundError
from stock_kernel.models.year_end_count import CountStatus, YearEndCount
from stock_kernel.selectors.base import BaseSelector


class CountSelector(BaseSelector[YearEndCount]):
    """Read-only queries over year-end counts."""

    def __init__(self, session: Session):
        super().__init__(session)

    def get_count(self, count_id: int) -> YearEndCountInfo:
        count = self.session.get(YearEndCount, count_id)
        if count is None:
            raise CountNotFoundError(count_id=count_id)
        return YearEndCountInfo.from_model(count)

    def get_by_year(self, year: int, revision: int | None = None) -> YearEndCountInfo:
        stmt = select(YearEndCount).where(YearEndCount.year == year)
        if revision is None:
            stmt = stmt.order_by(YearEndCount.revision.desc()).limit(1)
        else:
            stmt = stmt.where(YearEndCount.revision == revision)
        count = self.session.execute(stmt).scalars().first()
        if count is None:
            raise CountNotFoundError(year=year, revision=revision)
        return YearEndCountInfo.from_model(count)

    def get_all_revisions(self, year: int) -> list[YearEndCountInfo]:
        rows = self.session.execute(
            select(YearEndCount)
            .where(YearEndCount.year == year)
            .order_by(YearEndCount.revision.asc())
        ).scalars().all()
        return [YearEndCountInfo.from_model(row) for row in rows]

    def list_counts(self) -> list[YearEndCountInfo]:
        rows = self.session.execute(
            select(YearEndCount).order_by(
                YearEndCount.year.desc(),
                YearEndCount.revision.desc(),
            )
        ).scalars().all()
        return [YearEndCountInfo.from_model(row) for row in rows]

    def max_revision(self, year: int) -> int:
        """Highest revision recorded for ``year``, 0 when there is none."""
        value = self.session.execute(
            select(func.max(YearEndCount.revision)).where(YearEndCount.year == year)
        ).scalar()
        return int(value or 0)

    def latest_confirmed_year(self) -> int | None:
        return self.session.execute(
            select(func.max(YearEndCount.year)).where(
                YearEndCount.status == CountStatus.CONFIRMED.value
            )
        ).scalar()
