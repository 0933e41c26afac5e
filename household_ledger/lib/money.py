"""
Currency-bound decimal money value.

All arithmetic, comparison and display formatting of monetary amounts goes
through ``Money``. Intermediate results are never rounded below
``MONEY_PRECISION`` significant digits; rounding to the currency's fraction
digits only happens in ``format``/``quantize``.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Optional, Union

from household_ledger.lib.config import (
    CURRENCY_FRACTION_DIGITS,
    CURRENCY_SYMBOLS,
    DEFAULT_LOCALE,
    LOCALE_CONVENTIONS,
    MONEY_PRECISION,
)
from household_ledger.lib.errors import (
    InvalidExchangeRateError,
    MissingExchangeRateError,
    ValidationError,
)
from household_ledger.lib.validators import to_decimal

MONEY_CONTEXT = Context(prec=MONEY_PRECISION, rounding=ROUND_HALF_UP)

Number = Union[Decimal, int, float, str]


def currency_decimals(currency: str) -> int:
    """Return display fraction digits for a currency (2 when unknown)."""
    return CURRENCY_FRACTION_DIGITS.get(currency.upper(), 2)


def _coerce_rate(rate: Number, pair: str) -> Decimal:
    value = to_decimal(rate)
    if value <= 0:
        raise InvalidExchangeRateError(rate, pair)
    return value


@dataclass(frozen=True)
class Money:
    """
    Immutable (amount, currency) pair.

    Same-currency arithmetic is exact. Mixing currencies requires the caller to
    pass the rate that converts the *other* operand into this value's currency;
    without one a ``MissingExchangeRateError`` is raised.

    Attributes:
        amount: Decimal magnitude
        currency: ISO 4217 code, upper case

    Example:
        >>> Money("100", "USD").add(Money("50", "EUR"), rate="1.10")
        Money(amount=Decimal('155.00'), currency='USD')
    """

    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "currency", self.currency.upper().strip())

    @classmethod
    def zero(cls, currency: str) -> "Money":
        """Return a zero amount in ``currency``."""
        return cls(Decimal("0"), currency)

    def _operand(self, other: "Money", rate: Optional[Number]) -> Decimal:
        """Express ``other`` in this value's currency."""
        if other.currency == self.currency:
            return other.amount
        if rate is None:
            raise MissingExchangeRateError(other.currency, self.currency)
        factor = _coerce_rate(rate, f"{other.currency}/{self.currency}")
        return MONEY_CONTEXT.multiply(other.amount, factor)

    def add(self, other: "Money", rate: Optional[Number] = None) -> "Money":
        """Return self + other (other converted with ``rate`` when currencies differ)."""
        return Money(MONEY_CONTEXT.add(self.amount, self._operand(other, rate)), self.currency)

    def subtract(self, other: "Money", rate: Optional[Number] = None) -> "Money":
        """Return self - other (other converted with ``rate`` when currencies differ)."""
        return Money(
            MONEY_CONTEXT.subtract(self.amount, self._operand(other, rate)), self.currency
        )

    def multiply(self, multiplier: Number) -> "Money":
        """Scale the amount."""
        return Money(MONEY_CONTEXT.multiply(self.amount, to_decimal(multiplier)), self.currency)

    def divide(self, divisor: Number) -> "Money":
        """Divide the amount.

        Raises:
            ValidationError: If divisor is zero
        """
        value = to_decimal(divisor)
        if value == 0:
            raise ValidationError("Cannot divide a money amount by zero")
        return Money(MONEY_CONTEXT.divide(self.amount, value), self.currency)

    def negated(self) -> "Money":
        """Return the amount with its sign flipped."""
        return Money(-self.amount, self.currency)

    def convert_to(self, currency: str, rate: Optional[Number] = None) -> "Money":
        """
        Convert to another currency.

        Converting to the current currency returns ``self`` unchanged whatever
        rate is supplied.

        Raises:
            MissingExchangeRateError: If currencies differ and no rate is given
        """
        target = currency.upper().strip()
        if target == self.currency:
            return self
        if rate is None:
            raise MissingExchangeRateError(self.currency, target)
        factor = _coerce_rate(rate, f"{self.currency}/{target}")
        return Money(MONEY_CONTEXT.multiply(self.amount, factor), target)

    def equals(self, other: "Money") -> bool:
        """True when both currency and magnitude match."""
        return self.currency == other.currency and self.amount == other.amount

    def greater_than(self, other: "Money", rate: Optional[Number] = None) -> bool:
        """Compare against ``other`` (converted with ``rate`` when currencies differ)."""
        return self.amount > self._operand(other, rate)

    def less_than(self, other: "Money", rate: Optional[Number] = None) -> bool:
        """Compare against ``other`` (converted with ``rate`` when currencies differ)."""
        return self.amount < self._operand(other, rate)

    def is_zero(self) -> bool:
        return self.amount.is_zero()

    def is_negative(self) -> bool:
        return self.amount < 0

    def quantize(self, digits: Optional[int] = None) -> "Money":
        """Round half-up to ``digits`` fraction digits (currency default when omitted)."""
        if digits is None:
            digits = currency_decimals(self.currency)
        exponent = Decimal(1).scaleb(-digits)
        return Money(
            self.amount.quantize(exponent, rounding=ROUND_HALF_UP, context=MONEY_CONTEXT),
            self.currency,
        )

    def format(self, locale: str = DEFAULT_LOCALE) -> str:
        """
        Render the amount for display.

        Uses the currency's fraction digits with half-up rounding. Unknown
        currencies fall back to ``"<amount> <CODE>"`` and never raise; unknown
        locales use the default locale's conventions.

        Examples:
            >>> Money("1234.5", "USD").format("en-US")
            '$1,234.50'
            >>> Money("1234.5", "JPY").format()
            '¥1,235'
            >>> Money("12.5", "XTS").format()
            '12.5 XTS'
        """
        digits = CURRENCY_FRACTION_DIGITS.get(self.currency)
        if digits is None:
            return f"{format(self.amount, 'f')} {self.currency}"

        group_sep, decimal_sep, symbol_after = LOCALE_CONVENTIONS.get(
            locale, LOCALE_CONVENTIONS[DEFAULT_LOCALE]
        )
        rounded = self.quantize(digits).amount
        text = f"{abs(rounded):,.{digits}f}"
        text = text.replace(",", "\0").replace(".", decimal_sep).replace("\0", group_sep)
        sign = "-" if rounded < 0 else ""
        symbol = CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")

        if symbol_after:
            return f"{sign}{text} {symbol.strip()}"
        return f"{sign}{symbol}{text}"

    def as_dict(self) -> dict[str, str]:
        """JSON-ready representation with the amount as a string."""
        return {"amount": format(self.amount, "f"), "currency": self.currency}

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __neg__(self) -> "Money":
        return self.negated()

    def __str__(self) -> str:
        return f"{format(self.amount, 'f')} {self.currency}"


def format_currency(amount: Number, currency: str, locale: str = DEFAULT_LOCALE) -> str:
    """Format a bare amount in ``currency`` for display."""
    return Money(to_decimal(amount), currency).format(locale)
