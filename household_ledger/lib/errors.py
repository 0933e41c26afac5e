"""Custom exception classes for household-ledger.

Every error carries a stable ``kind`` and an HTTP-style ``status_code`` so the
boundary layer (CLI or web handler) can translate failures without knowing
about individual exception classes.
"""

from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """Base exception for all household-ledger errors."""

    kind = "LedgerError"
    status_code = 500

    def __init__(self, message: str):
        """Initialize with error message."""
        self.message = message
        super().__init__(message)


class ValidationError(LedgerError):
    """Input validation errors."""

    kind = "ValidationError"
    status_code = 400


class NotFoundError(LedgerError):
    """Referenced entity is missing or not owned by the caller."""

    kind = "NotFound"
    status_code = 404


class ConflictError(LedgerError):
    """Operation conflicts with the current state of an entity."""

    kind = "Conflict"
    status_code = 409


class ConfigurationError(LedgerError):
    """Configuration errors."""

    kind = "ConfigurationError"
    status_code = 500


# Currency and exchange rate errors


class MissingExchangeRateError(ValidationError):
    """Cross-currency operation attempted without a rate."""

    kind = "MissingExchangeRate"

    def __init__(self, from_currency: str, to_currency: str):
        """
        Initialize with the currency pair that has no rate.

        Args:
            from_currency: Currency being converted
            to_currency: Currency the amount is expressed in after conversion
        """
        self.from_currency = from_currency
        self.to_currency = to_currency
        message = f"Exchange rate required for {from_currency} to {to_currency}"
        super().__init__(message)


class InvalidExchangeRateError(ValidationError):
    """Exchange rate is zero or negative."""

    kind = "InvalidExchangeRate"

    def __init__(self, rate: Any, pair: str = ""):
        """
        Initialize with the rejected rate.

        Args:
            rate: The invalid rate value
            pair: Optional currency pair label (e.g. "USD/JPY")
        """
        message = f"Exchange rate must be positive, got {rate}"
        if pair:
            message += f" for {pair}"
        super().__init__(message)


class InvalidCurrencyError(ValidationError):
    """Unknown currency code, or currency does not match the account."""

    kind = "InvalidCurrency"

    def __init__(self, currency: str, custom_message: str = ""):
        """
        Initialize with invalid currency.

        Args:
            currency: The invalid currency code
            custom_message: Optional custom error message
        """
        self.currency = currency
        if custom_message:
            message = f"Invalid currency code: '{currency}'. {custom_message}"
        else:
            message = (
                f"Invalid currency code: '{currency}'. "
                f"Must be a registered ISO 4217 code (e.g., JPY, USD, EUR)."
            )
        super().__init__(message)


# Balance errors


class InsufficientFundsError(ValidationError):
    """Requested amount exceeds the available balance."""

    kind = "InsufficientFunds"

    def __init__(self, available: Decimal, requested: Decimal, source: str = "account"):
        """
        Initialize with balance details.

        Args:
            available: Balance available at the source
            requested: Amount that was requested
            source: What the money was drawn from ("account", "prepaid card", ...)
        """
        self.available = available
        self.requested = requested
        message = f"Insufficient balance in {source}: requested {requested}, available {available}"
        super().__init__(message)


class CreditLimitExceededError(ValidationError):
    """Credit card usage would exceed the credit limit."""

    kind = "CreditLimitExceeded"

    def __init__(self, limit: Decimal, usage: Decimal, requested: Decimal):
        """Initialize with the limit, current usage and requested amount."""
        message = (
            f"Credit limit exceeded: limit {limit}, current usage {usage}, requested {requested}"
        )
        super().__init__(message)


class MonthlyLimitExceededError(ValidationError):
    """Postpay card usage would exceed the monthly limit."""

    kind = "MonthlyLimitExceeded"

    def __init__(self, limit: Decimal, usage: Decimal, requested: Decimal):
        """Initialize with the limit, current usage and requested amount."""
        message = (
            f"Monthly limit exceeded: limit {limit}, current usage {usage}, requested {requested}"
        )
        super().__init__(message)


# Card errors


class InvalidCardConfigurationError(ValidationError):
    """Card-type policy violated at creation or update time."""

    kind = "InvalidCardConfiguration"

    def __init__(self, field: str, reason: str):
        """
        Initialize with the offending field.

        Args:
            field: Name of the missing or invalid field
            reason: Human readable explanation
        """
        self.field = field
        super().__init__(f"Invalid card configuration ({field}): {reason}")


class WrongCardTypeError(ValidationError):
    """Operation requires a different card type."""

    kind = "WrongCardType"

    def __init__(self, card_id: str, expected: str, actual: str):
        """Initialize with expected and actual card types."""
        message = f"Card {card_id} is a {actual} card, expected {expected}"
        super().__init__(message)


# Scheduling errors


class UnsupportedFrequencyError(ValidationError):
    """Recurrence frequency outside the known set."""

    kind = "UnsupportedFrequency"

    def __init__(self, frequency: Any):
        """Initialize with the unknown frequency."""
        super().__init__(f"Unsupported frequency: {frequency}")


class AlreadyCompletedError(ConflictError):
    """Scheduled transaction has already been completed."""

    kind = "AlreadyCompleted"

    def __init__(self, scheduled_transaction_id: str):
        """Initialize with the scheduled transaction id."""
        super().__init__(f"Scheduled transaction {scheduled_transaction_id} is already completed")


class InvalidStatusTransitionError(ConflictError):
    """Requested status change is not allowed from the current status."""

    kind = "InvalidStatusTransition"

    def __init__(self, entity: str, current: str, target: str):
        """Initialize with entity label and both statuses."""
        super().__init__(f"Cannot move {entity} from {current} to {target}")


# Not found errors


class AccountNotFoundError(NotFoundError):
    """Account not found."""

    kind = "AccountNotFound"

    def __init__(self, account_id: str):
        """
        Initialize with account ID.

        Args:
            account_id: The account ID that wasn't found
        """
        super().__init__(f"Account not found: {account_id}")


class CardNotFoundError(NotFoundError):
    """Card not found."""

    kind = "CardNotFound"

    def __init__(self, card_id: str):
        """Initialize with card ID."""
        super().__init__(f"Card not found: {card_id}")


class CategoryNotFoundError(NotFoundError):
    """Category not found."""

    kind = "CategoryNotFound"

    def __init__(self, category_id: str):
        """Initialize with category ID."""
        super().__init__(f"Category not found: {category_id}")


class ScheduledTransactionNotFoundError(NotFoundError):
    """Scheduled transaction not found."""

    kind = "ScheduledTransactionNotFound"

    def __init__(self, scheduled_transaction_id: str):
        """Initialize with scheduled transaction ID."""
        super().__init__(f"Scheduled transaction not found: {scheduled_transaction_id}")


class PostpayPaymentNotFoundError(NotFoundError):
    """Postpay payment not found."""

    kind = "PostpayPaymentNotFound"

    def __init__(self, payment_id: str):
        """Initialize with payment ID."""
        super().__init__(f"Postpay payment not found: {payment_id}")


class BudgetNotFoundError(NotFoundError):
    """Budget not found."""

    kind = "BudgetNotFound"

    def __init__(self, budget_id: str):
        """Initialize with budget ID."""
        super().__init__(f"Budget not found: {budget_id}")


class UserNotFoundError(NotFoundError):
    """User not found."""

    kind = "UserNotFound"

    def __init__(self, identifier: str):
        """Initialize with user id or email."""
        super().__init__(
            f"User not found: {identifier}. Create one with: household-ledger user create"
        )


# Conflict errors


class DuplicateAccountError(ConflictError):
    """An active account with the same name already exists."""

    kind = "DuplicateAccount"

    def __init__(self, name: str):
        """Initialize with the duplicated name."""
        super().__init__(f"Account with this name already exists: {name}")


class BudgetConflictError(ConflictError):
    """An active budget for the category overlaps the requested period."""

    kind = "BudgetConflict"

    def __init__(self, category_id: str):
        """Initialize with the category id."""
        super().__init__(
            f"A budget for category {category_id} already exists for the specified period"
        )


# Error message helpers


def format_error_message(error: Exception) -> str:
    """
    Format exception into user-friendly error message.

    Args:
        error: The exception to format

    Returns:
        Formatted error message
    """
    if isinstance(error, LedgerError):
        return error.message

    # Generic errors
    error_type = type(error).__name__
    return f"{error_type}: {str(error)}"


def get_error_color(error: Exception) -> str:
    """
    Get Rich color for error type.

    Args:
        error: The exception

    Returns:
        Rich color name
    """
    if isinstance(error, MissingExchangeRateError):
        return "yellow"
    elif isinstance(error, ValidationError):
        return "red"
    elif isinstance(error, NotFoundError):
        return "magenta"
    elif isinstance(error, ConflictError):
        return "orange1"
    elif isinstance(error, ConfigurationError):
        return "orange1"
    else:
        return "red"


def to_error_payload(error: Exception) -> tuple[int, dict[str, str]]:
    """
    Translate an exception into a status code and JSON-ready body.

    Unknown exceptions map to 500 without leaking their message.

    Args:
        error: The exception raised by a service operation

    Returns:
        Tuple of (status_code, {"error": message, "kind": kind})
    """
    if isinstance(error, LedgerError):
        return error.status_code, {"error": error.message, "kind": error.kind}
    return 500, {"error": "Internal server error", "kind": "Unexpected"}
