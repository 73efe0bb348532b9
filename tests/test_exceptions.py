"""Tests for the typed exception hierarchy: codes, kinds, HTTP status, payloads."""

import pytest

from stock_kernel.exceptions import (
    ConflictError,
    CountIncompleteError,
    CountNotFoundError,
    ErrorKind,
    InvalidArgumentError,
    InvalidUnlockReasonError,
    InvariantViolationError,
    LotConsumedError,
    NotFoundError,
    RemainingQuantityInvariantError,
    StockKernelError,
    UnlockOrderError,
    YearLockedError,
)


class TestKinds:

    @pytest.mark.parametrize("base, kind, status", [
        (InvalidArgumentError, ErrorKind.INVALID_ARGUMENT, 400),
        (NotFoundError, ErrorKind.NOT_FOUND, 404),
        (ConflictError, ErrorKind.CONFLICT, 409),
        (InvariantViolationError, ErrorKind.INVARIANT_VIOLATION, 500),
    ])
    def test_every_subclass_inherits_its_family(self, base, kind, status):
        subclasses = base.__subclasses__()
        assert subclasses
        for cls in [base, *subclasses]:
            assert cls.kind is kind
            assert cls.http_status == status

    def test_codes_are_unique(self):
        seen = {}
        pending = [StockKernelError]
        while pending:
            cls = pending.pop()
            assert cls.code not in seen, f"{cls.__name__} reuses {seen.get(cls.code)}"
            seen[cls.code] = cls.__name__
            pending.extend(cls.__subclasses__())

    def test_incomplete_count_is_a_conflict(self):
        assert issubclass(CountIncompleteError, ConflictError)


class TestPayloads:

    def test_to_dict(self):
        error = YearLockedError(2022, "Cannot delete purchase from locked year 2022")

        assert error.to_dict() == {
            "code": "YEAR_LOCKED",
            "kind": "conflict",
            "message": "Cannot delete purchase from locked year 2022",
            "details": {"year": 2022},
        }

    def test_default_locked_message(self):
        assert str(YearLockedError(2021)) == "Year 2021 is locked"

    def test_unlock_order_message(self):
        error = UnlockOrderError(2022, 2023)
        assert error.message == "Can only unlock most recently locked year (2023)"
        assert error.to_dict()["details"] == {"year": 2022, "most_recent_year": 2023}

    def test_invalid_reason_lists_allowed(self):
        error = InvalidUnlockReasonError("bored", ("data_error", "other"))
        assert str(error) == (
            "Invalid reason category 'bored'. Must be one of: data_error, other"
        )

    @pytest.mark.parametrize("kwargs, message", [
        ({"count_id": 5}, "Year-end count not found"),
        ({"year": 2023}, "Year-end count for 2023 not found"),
        ({"year": 2023, "revision": 2}, "Year-end count for 2023 revision 2 not found"),
    ])
    def test_count_not_found_messages(self, kwargs, message):
        assert str(CountNotFoundError(**kwargs)) == message

    def test_lot_consumed_details(self):
        error = LotConsumedError(4, 10, 7)
        assert error.to_dict()["details"] == {
            "lot_id": 4,
            "quantity": 10,
            "remaining_quantity": 7,
        }

    def test_invariant_error_is_server_side(self):
        error = RemainingQuantityInvariantError(1, 5, 6)
        assert error.http_status == 500
        assert "outside [0, 5]" in error.message
