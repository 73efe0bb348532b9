"""
Policy -- input limits applied to purchase lots.

Responsibility:
    Holds the validation limits for lot writes as a frozen value object so
    services receive them by injection instead of reading configuration.
    ``stock_config.bridges`` builds one from the YAML settings.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

from stock_kernel.exceptions import InvalidPurchaseDateError, InvalidQuantityError

# Keeps quantity x cost products well inside Numeric(38, 9).
DEFAULT_MAX_QUANTITY = 9_007_199_254_740


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(frozen=True, slots=True)
class LotValidationPolicy:
    """Limits for purchase dates and quantities."""

    min_purchase_year: int = 2000
    max_future_months: int = 12
    max_quantity: int = DEFAULT_MAX_QUANTITY

    def validate_purchase_date(self, purchase_date: date, today: date) -> None:
        """
        Raises:
            InvalidPurchaseDateError: before min_purchase_year, or more than
                max_future_months after ``today``.
        """
        if purchase_date.year < self.min_purchase_year:
            raise InvalidPurchaseDateError(
                purchase_date,
                f"Purchase date cannot be before year {self.min_purchase_year}",
            )
        horizon = add_months(today, self.max_future_months)
        if purchase_date > horizon:
            raise InvalidPurchaseDateError(
                purchase_date,
                f"Purchase date cannot be more than {self.max_future_months} "
                f"months in the future",
            )

    def validate_quantity(self, quantity: int, field_name: str = "Quantity") -> None:
        """
        Raises:
            InvalidQuantityError: not an int, <= 0, or above max_quantity.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantityError(quantity, f"{field_name} must be an integer")
        if quantity <= 0:
            raise InvalidQuantityError(quantity, f"{field_name} must be greater than 0")
        if quantity > self.max_quantity:
            raise InvalidQuantityError(
                quantity,
                f"{field_name} exceeds maximum allowed value ({self.max_quantity})",
            )
