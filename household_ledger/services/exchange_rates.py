"""Exchange rate table and rate persistence.

``ExchangeRateTable`` is a pure in-memory snapshot keyed by ordered currency
pair. Every inserted entry also yields its reciprocal, so a table built from
``USD->JPY 150`` answers ``JPY->USD`` as well.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from household_ledger.lib.errors import InvalidCurrencyError, InvalidExchangeRateError
from household_ledger.lib.money import MONEY_CONTEXT, Money
from household_ledger.models import Currency, ExchangeRate
from household_ledger.services.schemas import ExchangeRateEntry, parse_fields

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class _StoredRate:
    rate: Decimal
    observed_at: datetime
    direct: bool


def _as_aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ExchangeRateTable:
    """
    Directed currency-pair to rate mapping.

    ``update_rates`` rebuilds the whole mapping and swaps it in one step;
    the published mapping is never mutated in place.

    Example:
        >>> table = ExchangeRateTable()
        >>> entry = ExchangeRateEntry(from_currency="USD", to_currency="JPY", rate="150")
        >>> table.update_rates([entry])
        >>> table.has_rate("JPY", "USD")
        True
    """

    def __init__(self, entries: Iterable[Any] = ()) -> None:
        self._rates: dict[tuple[str, str], _StoredRate] = {}
        entries = list(entries)
        if entries:
            self.update_rates(entries)

    @staticmethod
    def _place(
        rates: dict[tuple[str, str], _StoredRate], key: tuple[str, str], candidate: _StoredRate
    ) -> None:
        """Keep the latest observation per pair; direct beats reciprocal on ties."""
        current = rates.get(key)
        if current is None:
            rates[key] = candidate
        elif candidate.observed_at > current.observed_at:
            rates[key] = candidate
        elif (
            candidate.observed_at == current.observed_at
            and candidate.direct
            and not current.direct
        ):
            rates[key] = candidate

    def update_rates(self, entries: Iterable[Any]) -> None:
        """
        Replace the table with ``entries``.

        Args:
            entries: Objects with ``from_currency``, ``to_currency``, ``rate`` and
                     optional ``observed_at`` (ExchangeRateEntry, ExchangeRate rows, ...)

        Raises:
            InvalidExchangeRateError: If any rate is zero or negative
        """
        rates: dict[tuple[str, str], _StoredRate] = {}

        for entry in entries:
            from_currency = entry.from_currency.upper()
            to_currency = entry.to_currency.upper()
            rate = Decimal(str(entry.rate))
            if rate <= 0:
                raise InvalidExchangeRateError(entry.rate, f"{from_currency}/{to_currency}")
            if from_currency == to_currency:
                continue

            observed_at = _as_aware(getattr(entry, "observed_at", None))
            self._place(rates, (from_currency, to_currency), _StoredRate(rate, observed_at, True))
            self._place(
                rates,
                (to_currency, from_currency),
                _StoredRate(MONEY_CONTEXT.divide(Decimal(1), rate), observed_at, False),
            )

        self._rates = rates
        logger.debug(f"Exchange rate table rebuilt with {len(rates)} directed pairs")

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """Rate converting one unit of ``from_currency`` into ``to_currency``, or None."""
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return Decimal(1)
        stored = self._rates.get((from_currency, to_currency))
        return stored.rate if stored else None

    def has_rate(self, from_currency: str, to_currency: str) -> bool:
        return self.get_rate(from_currency, to_currency) is not None

    def convert(self, amount: Money, to_currency: str) -> Optional[Money]:
        """Convert ``amount`` into ``to_currency``; None when no rate is known."""
        rate = self.get_rate(amount.currency, to_currency)
        if rate is None:
            return None
        return amount.convert_to(to_currency, rate)

    def available_pairs(self) -> list[tuple[str, str]]:
        """Directed pairs with a known rate, sorted."""
        return sorted(self._rates)

    def __len__(self) -> int:
        return len(self._rates)


def calculate_rate_change(
    current: Union[Decimal, str], previous: Union[Decimal, str]
) -> tuple[Decimal, Decimal]:
    """
    Absolute and percentage change between two observations of a rate.

    Args:
        current: Latest rate
        previous: Earlier rate

    Returns:
        Tuple of (change, change_percent); the percentage is 0 when previous is 0
    """
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    change = MONEY_CONTEXT.subtract(current, previous)
    if previous == 0:
        return change, Decimal(0)
    percent = MONEY_CONTEXT.multiply(MONEY_CONTEXT.divide(change, previous), Decimal(100))
    return change, percent


def record_exchange_rates(
    session: Session, entries: Sequence[Union[ExchangeRateEntry, dict[str, Any]]]
) -> list[ExchangeRate]:
    """
    Persist a batch of observed rates.

    A pair appearing more than once in the batch is stored once (first wins).

    Args:
        session: Database session
        entries: Rate entries or raw dicts

    Returns:
        Persisted ExchangeRate rows

    Raises:
        InvalidCurrencyError: If a currency is not registered
        InvalidExchangeRateError: If a rate is not positive
    """
    parsed = [parse_fields(ExchangeRateEntry, entry) for entry in entries]

    registered = set(
        session.execute(select(Currency.code).where(Currency.is_active.is_(True))).scalars()
    )

    unique: dict[tuple[str, str], ExchangeRateEntry] = {}
    for entry in parsed:
        for code in (entry.from_currency, entry.to_currency):
            if code not in registered:
                raise InvalidCurrencyError(code, "Currency is not registered")
        if entry.rate <= 0:
            raise InvalidExchangeRateError(
                entry.rate, f"{entry.from_currency}/{entry.to_currency}"
            )
        unique.setdefault((entry.from_currency, entry.to_currency), entry)

    now = datetime.now(timezone.utc)
    rows = [
        ExchangeRate(
            from_currency=entry.from_currency,
            to_currency=entry.to_currency,
            rate=entry.rate,
            observed_at=entry.observed_at or now,
            source=entry.source,
        )
        for entry in unique.values()
    ]
    session.add_all(rows)
    session.flush()

    if len(unique) < len(parsed):
        logger.info(f"Dropped {len(parsed) - len(unique)} duplicate rate entries from batch")
    logger.info(f"Recorded {len(rows)} exchange rates")
    return rows


def load_rate_table(session: Session) -> ExchangeRateTable:
    """Build a rate table snapshot from every stored rate (latest observation wins)."""
    rows = session.execute(select(ExchangeRate)).scalars().all()
    return ExchangeRateTable(rows)


def list_latest_rates(session: Session) -> list[ExchangeRate]:
    """Latest stored row per directed pair, ordered by pair."""
    latest: dict[tuple[str, str], ExchangeRate] = {}
    rows = session.execute(
        select(ExchangeRate).order_by(ExchangeRate.observed_at.desc())
    ).scalars()
    for row in rows:
        latest.setdefault((row.from_currency, row.to_currency), row)
    return [latest[key] for key in sorted(latest)]
