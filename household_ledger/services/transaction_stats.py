"""Transaction statistics over a reporting period.

Aggregates recorded transactions for one user: income and expense totals,
breakdowns by category and by account, the largest expense categories and
day-by-day movement. Amounts are never converted; every figure is grouped by
currency so totals in different currencies are not added together.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional, Union

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]
from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.errors import ValidationError
from household_ledger.lib.validators import validate_currency, validate_date
from household_ledger.models import Account, Category, Transaction, TransactionType
from household_ledger.services.ledger_service import get_owned_account

TOP_CATEGORY_LIMIT = 10


class StatsPeriod(str, enum.Enum):
    """Reporting windows ending today."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


_PERIOD_STEPS = {
    StatsPeriod.WEEK: timedelta(days=7),
    StatsPeriod.MONTH: relativedelta(months=1),
    StatsPeriod.YEAR: relativedelta(years=1),
}


@dataclass
class CurrencyTotals:
    """Totals for one currency.

    Attributes:
        currency: ISO currency code
        income: Sum of INCOME amounts
        expense: Sum of EXPENSE amounts
        transfers: Sum of TRANSFER amounts
        count: Number of transactions
    """

    currency: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    transfers: Decimal = Decimal("0")
    count: int = 0

    @property
    def net_income(self) -> Decimal:
        return self.income - self.expense


@dataclass
class CategoryBreakdown:
    """Amount booked to one category (``None`` for uncategorized) per type and currency."""

    category_id: Optional[str]
    category_name: Optional[str]
    type: TransactionType
    currency: str
    amount: Decimal
    count: int


@dataclass
class AccountBreakdown:
    """Balance movement of one account: INCOME and TRANSFER add, EXPENSE subtracts."""

    account_id: str
    account_name: str
    currency: str
    net_change: Decimal
    count: int


@dataclass
class DailyTotal:
    day: date
    type: TransactionType
    currency: str
    amount: Decimal
    count: int


@dataclass
class TransactionStats:
    """Statistics for ``start_date`` through ``end_date`` (both inclusive).

    Attributes:
        start_date: First day covered
        end_date: Last day covered
        currency: Currency filter, if any
        account_id: Account filter, if any
        totals: One entry per currency, ordered by code
        by_category: Category amounts, largest first
        by_account: Per-account movement, ordered by account name
        top_expense_categories: Up to 10 categorized expense groups, largest first
        daily: Per-day amounts, newest day first
    """

    start_date: date
    end_date: date
    currency: Optional[str] = None
    account_id: Optional[str] = None
    totals: list[CurrencyTotals] = field(default_factory=list)
    by_category: list[CategoryBreakdown] = field(default_factory=list)
    by_account: list[AccountBreakdown] = field(default_factory=list)
    top_expense_categories: list[CategoryBreakdown] = field(default_factory=list)
    daily: list[DailyTotal] = field(default_factory=list)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def transaction_count(self) -> int:
        return sum(t.count for t in self.totals)

    def totals_for(self, currency: str) -> CurrencyTotals:
        """Totals for ``currency``; zeros when nothing was booked in it."""
        for totals in self.totals:
            if totals.currency == currency:
                return totals
        return CurrencyTotals(currency=currency)


def resolve_period(
    period: Union[StatsPeriod, str] = StatsPeriod.MONTH,
    start_date: Union[date, datetime, str, None] = None,
    end_date: Union[date, datetime, str, None] = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """
    Date range for a report.

    An explicit ``start_date``/``end_date`` pair wins over ``period``;
    otherwise the range runs from one period before ``today`` up to ``today``.

    Raises:
        ValidationError: Unknown period, only one bound given, or start after end
    """
    if (start_date is None) != (end_date is None):
        raise ValidationError("Custom ranges need both a start and an end date")

    if start_date is not None and end_date is not None:
        start, end = validate_date(start_date), validate_date(end_date)
        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}")
        return start, end

    try:
        step = _PERIOD_STEPS[StatsPeriod(period)]
    except ValueError as e:
        raise ValidationError(
            f"Unknown period {period!r}. Use one of: {', '.join(p.value for p in StatsPeriod)}"
        ) from e

    end = today or date.today()
    return end - step, end


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def transaction_stats(
    session: Session,
    user: AuthenticatedUser,
    period: Union[StatsPeriod, str] = StatsPeriod.MONTH,
    start_date: Union[date, datetime, str, None] = None,
    end_date: Union[date, datetime, str, None] = None,
    currency: Optional[str] = None,
    account_id: Optional[str] = None,
    today: Optional[date] = None,
) -> TransactionStats:
    """
    Aggregate the user's transactions over a period.

    Args:
        session: Database session
        user: Caller
        period: week, month or year ending ``today`` (ignored for custom ranges)
        start_date: Custom range start (requires ``end_date``)
        end_date: Custom range end (requires ``start_date``)
        currency: Only transactions in this currency
        account_id: Only transactions on this account (deactivated accounts included)
        today: Reference date for ``period`` (default: today)

    Raises:
        ValidationError: Invalid range or currency code
        AccountNotFoundError: If the account is not the user's
    """
    start, end = resolve_period(period, start_date, end_date, today)

    conditions = [
        Transaction.user_id == user.id,
        Transaction.date >= start,
        Transaction.date <= end,
    ]
    if currency:
        currency = validate_currency(currency)
        conditions.append(Transaction.currency == currency)
    if account_id:
        account_id = get_owned_account(session, user, account_id).id
        conditions.append(Transaction.account_id == account_id)

    stats = TransactionStats(
        start_date=start, end_date=end, currency=currency, account_id=account_id
    )

    amount = func.sum(Transaction.amount)
    count = func.count(Transaction.id)

    totals: dict[str, CurrencyTotals] = {}
    for code, transaction_type, total, n in session.execute(
        select(Transaction.currency, Transaction.type, amount, count)
        .where(*conditions)
        .group_by(Transaction.currency, Transaction.type)
    ):
        entry = totals.setdefault(code, CurrencyTotals(currency=code))
        if transaction_type == TransactionType.INCOME:
            entry.income = _decimal(total)
        elif transaction_type == TransactionType.EXPENSE:
            entry.expense = _decimal(total)
        else:
            entry.transfers = _decimal(total)
        entry.count += n
    stats.totals = [totals[code] for code in sorted(totals)]

    by_category = (
        select(
            Transaction.category_id,
            Category.name,
            Transaction.type,
            Transaction.currency,
            amount,
            count,
        )
        .select_from(Transaction)
        .outerjoin(Category, Transaction.category_id == Category.id)
        .where(*conditions)
        .group_by(Transaction.category_id, Category.name, Transaction.type, Transaction.currency)
        .order_by(amount.desc())
    )
    stats.by_category = [
        CategoryBreakdown(category_id, name, t, code, _decimal(total), n)
        for category_id, name, t, code, total, n in session.execute(by_category)
    ]

    top = (
        by_category.where(
            Transaction.type == TransactionType.EXPENSE,
            Transaction.category_id.is_not(None),
        )
        .limit(TOP_CATEGORY_LIMIT)
    )
    stats.top_expense_categories = [
        CategoryBreakdown(category_id, name, t, code, _decimal(total), n)
        for category_id, name, t, code, total, n in session.execute(top)
    ]

    signed = func.sum(
        case(
            (Transaction.type == TransactionType.EXPENSE, -Transaction.amount),
            else_=Transaction.amount,
        )
    )
    stats.by_account = [
        AccountBreakdown(acc_id, name, code, _decimal(net), n)
        for acc_id, name, code, net, n in session.execute(
            select(Account.id, Account.name, Account.currency, signed, count)
            .select_from(Transaction)
            .join(Account, Transaction.account_id == Account.id)
            .where(*conditions)
            .group_by(Account.id, Account.name, Account.currency)
            .order_by(Account.name)
        )
    ]

    stats.daily = [
        DailyTotal(day, t, code, _decimal(total), n)
        for day, t, code, total, n in session.execute(
            select(Transaction.date, Transaction.type, Transaction.currency, amount, count)
            .where(*conditions)
            .group_by(Transaction.date, Transaction.type, Transaction.currency)
            .order_by(Transaction.date.desc(), Transaction.type)
        )
    ]

    return stats
