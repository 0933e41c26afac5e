"""
Input validation utilities.

Provides validation functions for user inputs including currency codes,
amounts, percentages and dates.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from household_ledger.lib.errors import InvalidCurrencyError, ValidationError


def validate_currency(currency: str, valid_currencies: Optional[set[str]] = None) -> str:
    """
    Validate ISO 4217 currency code.

    Args:
        currency: Currency code to validate
        valid_currencies: Optional set of registered currencies. When omitted only
                          the format is checked.

    Returns:
        Normalized currency code (uppercase, trimmed)

    Raises:
        InvalidCurrencyError: If currency code is invalid

    Examples:
        >>> validate_currency("usd")
        'USD'
        >>> validate_currency("  JPY  ")
        'JPY'
        >>> validate_currency("YEN!")
        Traceback (most recent call last):
        ...
        InvalidCurrencyError: Invalid currency code: 'YEN!'. Currency code must be exactly 3 letters
    """
    currency = currency.upper().strip()

    if not re.match(r"^[A-Z]{3}$", currency):
        raise InvalidCurrencyError(currency, "Currency code must be exactly 3 letters")

    if valid_currencies is not None and currency not in valid_currencies:
        raise InvalidCurrencyError(currency, "Currency is not registered")

    return currency


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """
    Convert a user-supplied number to Decimal without going through binary floats.

    Args:
        value: Number as Decimal, int, float or string

    Returns:
        Decimal value

    Raises:
        ValidationError: If the value is not a finite number

    Examples:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("1,234.50")
        Decimal('1234.50')
    """
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).replace(",", "").strip()
        try:
            result = Decimal(text)
        except InvalidOperation as e:
            raise ValidationError(f"Invalid amount: {value!r}") from e

    if not result.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")

    return result


def validate_positive_amount(
    amount: Union[Decimal, int, float, str], field: str = "Amount"
) -> Decimal:
    """
    Validate that an amount is strictly positive.

    Args:
        amount: Amount to validate
        field: Field label used in the error message

    Returns:
        Validated amount as Decimal

    Raises:
        ValidationError: If amount is zero or negative

    Examples:
        >>> validate_positive_amount("150.50")
        Decimal('150.50')
        >>> validate_positive_amount(0)
        Traceback (most recent call last):
        ...
        ValidationError: Amount must be positive, got 0
    """
    value = to_decimal(amount)
    if value <= 0:
        raise ValidationError(f"{field} must be positive, got {value}")
    return value


def validate_date(date_value: Union[date, datetime, str]) -> date:
    """
    Parse and validate a calendar date.

    Args:
        date_value: Date object, datetime object, or ISO-8601 string

    Returns:
        Validated date

    Raises:
        ValidationError: If the string cannot be parsed

    Examples:
        >>> validate_date("2024-01-31")
        datetime.date(2024, 1, 31)
        >>> validate_date("2024-01-31T09:30:00")
        datetime.date(2024, 1, 31)
    """
    if isinstance(date_value, datetime):
        return date_value.date()
    if isinstance(date_value, date):
        return date_value

    text = date_value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in ["%Y/%m/%d", "%m/%d/%Y"]:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise ValidationError(f"Invalid date format: {date_value}")
