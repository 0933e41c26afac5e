"""Unit tests for error classes and helpers."""

from decimal import Decimal

import pytest

from household_ledger.lib.errors import (
    AccountNotFoundError,
    AlreadyCompletedError,
    BudgetConflictError,
    ConflictError,
    InsufficientFundsError,
    InvalidCurrencyError,
    LedgerError,
    MissingExchangeRateError,
    NotFoundError,
    ValidationError,
    WrongCardTypeError,
    format_error_message,
    get_error_color,
    to_error_payload,
)


@pytest.mark.unit
class TestErrorHierarchy:
    """Test suite for error classification."""

    def test_validation_errors(self):
        """Input problems map to 400."""
        error = InsufficientFundsError(Decimal("100"), Decimal("100.01"), "account Wallet")
        assert isinstance(error, ValidationError)
        assert error.status_code == 400
        assert error.kind == "InsufficientFunds"
        assert "requested 100.01, available 100" in error.message

    def test_not_found_errors(self):
        """Missing entities map to 404."""
        error = AccountNotFoundError("acc-1")
        assert isinstance(error, NotFoundError)
        assert error.status_code == 404
        assert error.message == "Account not found: acc-1"

    def test_conflict_errors(self):
        """State conflicts map to 409."""
        for error in (AlreadyCompletedError("s-1"), BudgetConflictError("c-1")):
            assert isinstance(error, ConflictError)
            assert error.status_code == 409

    def test_all_derive_from_ledger_error(self):
        """Callers can catch LedgerError at the boundary."""
        assert isinstance(WrongCardTypeError("c", "PREPAID", "CREDIT"), LedgerError)
        assert isinstance(MissingExchangeRateError("USD", "JPY"), LedgerError)


@pytest.mark.unit
class TestErrorHelpers:
    """Test suite for formatting helpers."""

    def test_format_error_message(self):
        """Ledger errors show their message; others their type."""
        assert format_error_message(InvalidCurrencyError("XYZ", "Not used")) == (
            "Invalid currency code: 'XYZ'. Not used"
        )
        assert format_error_message(KeyError("x")) == "KeyError: 'x'"

    def test_colors(self):
        """Each family has its own colour."""
        assert get_error_color(MissingExchangeRateError("USD", "JPY")) == "yellow"
        assert get_error_color(ValidationError("bad")) == "red"
        assert get_error_color(AccountNotFoundError("a")) == "magenta"
        assert get_error_color(AlreadyCompletedError("s")) == "orange1"
        assert get_error_color(RuntimeError("boom")) == "red"

    def test_error_payload(self):
        """Known errors expose message and kind."""
        status, body = to_error_payload(AccountNotFoundError("acc-1"))
        assert status == 404
        assert body == {"error": "Account not found: acc-1", "kind": "AccountNotFound"}

    def test_unexpected_error_payload_hides_details(self):
        """Unknown exceptions become a generic 500."""
        status, body = to_error_payload(RuntimeError("db password leaked"))
        assert status == 500
        assert body == {"error": "Internal server error", "kind": "Unexpected"}
