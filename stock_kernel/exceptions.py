"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The API layer must turn every domain failure into a distinct client
response.  Parsing message strings for that is fragile, so:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Every exception belongs to exactly one KIND, which fixes its HTTP status
  4. Exceptions carry structured DATA (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockKernelError (base)
    |
    +-- InvalidArgumentError                       kind=invalid_argument  400
    |   +-- InvalidQuantityError
    |   +-- InvalidUnitCostError
    |   +-- InvalidTargetQuantityError
    |   +-- InvalidCountedQuantityError
    |   +-- InvalidPurchaseDateError
    |   +-- InvalidUnlockReasonError
    |   +-- MissingUnlockDescriptionError
    |   +-- InvalidNameError
    |   +-- UnknownFieldError
    |
    +-- NotFoundError                              kind=not_found         404
    |   +-- LotNotFoundError
    |   +-- ProductNotFoundError
    |   +-- SupplierNotFoundError
    |   +-- UnitNotFoundError
    |   +-- CountNotFoundError
    |   +-- CountItemNotFoundError
    |
    +-- ConflictError                              kind=conflict          409
    |   +-- YearLockedError
    |   +-- CountAlreadyConfirmedError
    |   +-- CountIncompleteError
    |   +-- YearNotLockedError
    |   +-- UnlockOrderError
    |   +-- LotConsumedError
    |   +-- DuplicateNameError
    |   +-- ProductReferencedError
    |   +-- EntityInUseError
    |
    +-- InvariantViolationError                    kind=invariant_violation 500
        +-- RemainingQuantityInvariantError

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        ledger.create_lot(...)
    except YearLockedError as e:
        return {"error": e.code, "year": e.year}, e.http_status

    try:
        workflow.confirm(count_id)
    except CountIncompleteError as e:
        notify_user(f"Still to count: {', '.join(e.product_names)}")

InvariantViolationError is never expected in correct operation.  It marks a
defensive check that fired; treat it as a server error and investigate.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Coarse error category, one per HTTP status family."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVARIANT_VIOLATION = "invariant_violation"


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses have `code`, `kind` and `http_status` class attributes.
    """

    code: str = "STOCK_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.INVARIANT_VIOLATION
    http_status: int = 500

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for API error bodies."""
        details = {
            k: v for k, v in vars(self).items() if not k.startswith("_")
        }
        return {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "details": details,
        }


# =============================================================================
# InvalidArgument
# =============================================================================


class InvalidArgumentError(StockKernelError):
    """Base for rejected input values."""

    code: str = "INVALID_ARGUMENT"
    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT
    http_status: int = 400


class InvalidQuantityError(InvalidArgumentError):
    """Lot quantity is not a positive integer or exceeds the allowed maximum."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, reason: str = "Quantity must be greater than 0"):
        self.quantity = quantity
        super().__init__(reason)


class InvalidUnitCostError(InvalidArgumentError):
    """Unit cost is zero or negative."""

    code: str = "INVALID_UNIT_COST"

    def __init__(self, unit_cost: Any):
        self.unit_cost = str(unit_cost)
        super().__init__("Unit cost must be greater than 0")


class InvalidTargetQuantityError(InvalidArgumentError):
    """Consumption target is negative."""

    code: str = "INVALID_TARGET_QUANTITY"

    def __init__(self, product_id: int, target_quantity: int):
        self.product_id = product_id
        self.target_quantity = target_quantity
        super().__init__("Target quantity cannot be negative")


class InvalidCountedQuantityError(InvalidArgumentError):
    """Physical count is negative or not an integer."""

    code: str = "INVALID_COUNTED_QUANTITY"

    def __init__(self, product_id: int, counted_quantity: Any):
        self.product_id = product_id
        self.counted_quantity = counted_quantity
        super().__init__("Counted quantity must be a non-negative integer")


class InvalidPurchaseDateError(InvalidArgumentError):
    """Purchase date is before the earliest allowed year or too far ahead."""

    code: str = "INVALID_PURCHASE_DATE"

    def __init__(self, purchase_date: Any, reason: str):
        self.purchase_date = str(purchase_date)
        super().__init__(reason)


class InvalidUnlockReasonError(InvalidArgumentError):
    """Unlock reason category is not one of the fixed categories."""

    code: str = "INVALID_UNLOCK_REASON"

    def __init__(self, reason_category: str, allowed: tuple[str, ...]):
        self.reason_category = reason_category
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid reason category '{reason_category}'. "
            f"Must be one of: {', '.join(allowed)}"
        )


class MissingUnlockDescriptionError(InvalidArgumentError):
    """Unlock description is empty or whitespace."""

    code: str = "MISSING_UNLOCK_DESCRIPTION"

    def __init__(self, year: int):
        self.year = year
        super().__init__("Description is required")


class InvalidNameError(InvalidArgumentError):
    code: str = "INVALID_NAME"

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} name cannot be empty")


class UnknownFieldError(InvalidArgumentError):
    """Keyword fields passed for an entity that has no such columns."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, entity: str, fields: list[str]):
        self.entity = entity
        self.fields = fields
        super().__init__(f"Unknown {entity.lower()} fields: {', '.join(fields)}")


# =============================================================================
# NotFound
# =============================================================================


class NotFoundError(StockKernelError):
    """Base for missing entities."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND
    http_status: int = 404


class LotNotFoundError(NotFoundError):
    code: str = "LOT_NOT_FOUND"

    def __init__(self, lot_id: int):
        self.lot_id = lot_id
        super().__init__("Purchase lot not found")


class ProductNotFoundError(NotFoundError):
    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product: int | str):
        self.product = product
        super().__init__(f"Product not found: {product}")


class SupplierNotFoundError(NotFoundError):
    code: str = "SUPPLIER_NOT_FOUND"

    def __init__(self, supplier_id: int):
        self.supplier_id = supplier_id
        super().__init__(f"Supplier not found: {supplier_id}")


class UnitNotFoundError(NotFoundError):
    code: str = "UNIT_NOT_FOUND"

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__(f"Unit not found: {unit_id}")


class CountNotFoundError(NotFoundError):
    """Year-end count id (or year/revision pair) does not exist."""

    code: str = "COUNT_NOT_FOUND"

    def __init__(
        self,
        count_id: int | None = None,
        year: int | None = None,
        revision: int | None = None,
    ):
        self.count_id = count_id
        self.year = year
        self.revision = revision
        if year is None:
            message = "Year-end count not found"
        elif revision is None:
            message = f"Year-end count for {year} not found"
        else:
            message = f"Year-end count for {year} revision {revision} not found"
        super().__init__(message)


class CountItemNotFoundError(NotFoundError):
    code: str = "COUNT_ITEM_NOT_FOUND"

    def __init__(self, count_id: int, product_id: int):
        self.count_id = count_id
        self.product_id = product_id
        super().__init__("Count item not found for this product")


# =============================================================================
# Conflict
# =============================================================================


class ConflictError(StockKernelError):
    """Base for operations rejected by the current state."""

    code: str = "CONFLICT"
    kind: ErrorKind = ErrorKind.CONFLICT
    http_status: int = 409


class YearLockedError(ConflictError):
    """The year targeted by a mutation is locked by a confirmed count."""

    code: str = "YEAR_LOCKED"

    def __init__(self, year: int, message: str | None = None):
        self.year = year
        super().__init__(message or f"Year {year} is locked")


class CountAlreadyConfirmedError(ConflictError):
    code: str = "COUNT_ALREADY_CONFIRMED"

    def __init__(self, count_id: int, message: str = "Year-end count already confirmed"):
        self.count_id = count_id
        super().__init__(message)


class CountIncompleteError(ConflictError):
    """Confirmation attempted while some products are still uncounted."""

    code: str = "COUNT_INCOMPLETE"

    def __init__(self, count_id: int, product_names: list[str]):
        self.count_id = count_id
        self.product_names = product_names
        super().__init__(
            f"Cannot confirm count. {len(product_names)} products not counted: "
            f"{', '.join(product_names)}"
        )


class YearNotLockedError(ConflictError):
    code: str = "YEAR_NOT_LOCKED"

    def __init__(self, year: int):
        self.year = year
        super().__init__(f"Year {year} is not locked")


class UnlockOrderError(ConflictError):
    """Unlock attempted on a year older than the most recently locked one."""

    code: str = "UNLOCK_ORDER"

    def __init__(self, year: int, most_recent_year: int):
        self.year = year
        self.most_recent_year = most_recent_year
        super().__init__(
            f"Can only unlock most recently locked year ({most_recent_year})"
        )


class LotConsumedError(ConflictError):
    """Deletion attempted on a lot that has been partially or fully consumed."""

    code: str = "LOT_CONSUMED"

    def __init__(self, lot_id: int, quantity: int, remaining_quantity: int):
        self.lot_id = lot_id
        self.quantity = quantity
        self.remaining_quantity = remaining_quantity
        super().__init__(
            "Cannot delete partially consumed purchase lot. "
            "Remaining quantity must equal original quantity."
        )


class DuplicateNameError(ConflictError):
    code: str = "DUPLICATE_NAME"

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f"{entity} with this name already exists: {name}")


class ProductReferencedError(ConflictError):
    code: str = "PRODUCT_REFERENCED"

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__("Cannot delete product referenced in year-end counts")


class EntityInUseError(ConflictError):
    """A unit or supplier still has products pointing at it."""

    code: str = "ENTITY_IN_USE"

    def __init__(self, entity: str, entity_id: int, product_count: int):
        self.entity = entity
        self.entity_id = entity_id
        self.product_count = product_count
        super().__init__(
            f"Cannot delete {entity.lower()} with {product_count} product(s). "
            "Reassign products first."
        )


# =============================================================================
# InvariantViolation
# =============================================================================


class InvariantViolationError(StockKernelError):
    """Base for defensive checks that must never fire in correct operation."""

    code: str = "INVARIANT_VIOLATION"
    kind: ErrorKind = ErrorKind.INVARIANT_VIOLATION
    http_status: int = 500


class RemainingQuantityInvariantError(InvariantViolationError):
    """A lot's remaining quantity would leave [0, quantity]."""

    code: str = "REMAINING_QUANTITY_INVARIANT"

    def __init__(self, lot_id: int | None, quantity: int, remaining_quantity: int):
        self.lot_id = lot_id
        self.quantity = quantity
        self.remaining_quantity = remaining_quantity
        super().__init__(
            f"Lot {lot_id}: remaining quantity {remaining_quantity} "
            f"outside [0, {quantity}]"
        )
