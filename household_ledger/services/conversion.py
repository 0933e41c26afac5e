"""Currency conversion service: aggregates and orders multi-currency amounts."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from household_ledger.lib.errors import MissingExchangeRateError
from household_ledger.lib.money import MONEY_CONTEXT, Money
from household_ledger.services.exchange_rates import ExchangeRateTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    """
    Best-effort aggregate in one currency.

    Attributes:
        total: Sum of every amount that could be converted
        skipped_currencies: Codes left out for lack of a rate (sorted)
    """

    total: Money
    skipped_currencies: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return not self.skipped_currencies


class CurrencyConversionService:
    """Converts, sums and ranks Money values against one rate table snapshot."""

    def __init__(self, rate_table: ExchangeRateTable) -> None:
        self.rate_table = rate_table

    def sum(self, amounts: Iterable[Money], base_currency: str) -> AggregateResult:
        """
        Sum ``amounts`` in ``base_currency``.

        Amounts whose currency has no rate to the base are left out and their
        codes reported in ``skipped_currencies``; this never raises for a
        missing rate.
        """
        total = Money.zero(base_currency)
        skipped: set[str] = set()

        for amount in amounts:
            converted = self.rate_table.convert(amount, total.currency)
            if converted is None:
                skipped.add(amount.currency)
                continue
            total = total.add(converted)

        if skipped:
            logger.debug(
                f"Skipped {', '.join(sorted(skipped))} while summing in {total.currency}: no rate"
            )
        return AggregateResult(total=total, skipped_currencies=tuple(sorted(skipped)))

    def sort_by_value(self, amounts: Iterable[Money], base_currency: str) -> list[Money]:
        """
        Order ``amounts`` by their value in ``base_currency``, largest first.

        An amount with no rate is ranked by its raw magnitude. The sort is
        stable, so equal values keep their input order.
        """

        def sort_key(amount: Money) -> Decimal:
            converted = self.rate_table.convert(amount, base_currency)
            return converted.amount if converted is not None else amount.amount

        return sorted(amounts, key=sort_key, reverse=True)

    def percentage(self, part: Money, total: Money) -> Decimal:
        """
        Share of ``total`` represented by ``part``, in percent.

        Returns 0 when ``total`` is exactly zero.

        Raises:
            MissingExchangeRateError: If ``part`` cannot be converted into the
                                      currency of ``total``
        """
        if total.is_zero():
            return Decimal(0)

        converted = self.rate_table.convert(part, total.currency)
        if converted is None:
            raise MissingExchangeRateError(part.currency, total.currency)

        return MONEY_CONTEXT.multiply(
            MONEY_CONTEXT.divide(converted.amount, total.amount), Decimal(100)
        )
