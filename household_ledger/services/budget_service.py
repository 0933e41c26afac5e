"""Category budgets and spending progress."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.errors import BudgetConflictError, BudgetNotFoundError, ValidationError
from household_ledger.lib.money import Money
from household_ledger.models import Budget, Transaction, TransactionType
from household_ledger.services.conversion import CurrencyConversionService
from household_ledger.services.exchange_rates import ExchangeRateTable
from household_ledger.services.ledger_service import get_owned_category, require_currency
from household_ledger.services.schemas import BudgetCreate, parse_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetProgress:
    """
    Spending against a budget.

    Attributes:
        budget: The budget
        spent: EXPENSE total in the budget currency
        remaining: amount - spent (negative when overspent)
        percent_used: spent / amount * 100, rounded half-up to an integer
        skipped_currencies: Expense currencies with no rate to the budget currency
    """

    budget: Budget
    spent: Money
    remaining: Money
    percent_used: int
    skipped_currencies: tuple[str, ...] = ()


def create_budget(
    session: Session, user: AuthenticatedUser, fields: Union[BudgetCreate, dict[str, Any]]
) -> Budget:
    """
    Create a budget for one category.

    Raises:
        CategoryNotFoundError: If the category is not the user's
        InvalidCurrencyError: If the currency is not registered
        BudgetConflictError: If an active budget for the category overlaps the period
    """
    data = parse_fields(BudgetCreate, fields)
    if data.end_date < data.start_date:
        raise ValidationError("Budget end date must not be before its start date")

    category = get_owned_category(session, user, data.category_id)
    currency = require_currency(session, data.currency)

    overlapping = session.execute(
        select(Budget.id).where(
            Budget.user_id == user.id,
            Budget.category_id == category.id,
            Budget.is_active.is_(True),
            Budget.start_date <= data.end_date,
            Budget.end_date >= data.start_date,
        )
    ).first()
    if overlapping:
        logger.warning(f"Rejected overlapping budget for category {category.id}")
        raise BudgetConflictError(category.id)

    budget = Budget(
        user_id=user.id,
        category_id=category.id,
        name=data.name,
        amount=data.amount,
        currency=currency,
        start_date=data.start_date,
        end_date=data.end_date,
    )
    session.add(budget)
    session.flush()
    logger.info(f"Created budget {budget.id} ({budget.amount} {currency}) for {category.name!r}")
    return budget


def list_budgets(
    session: Session, user: AuthenticatedUser, include_inactive: bool = False
) -> list[Budget]:
    stmt = select(Budget).where(Budget.user_id == user.id)
    if not include_inactive:
        stmt = stmt.where(Budget.is_active.is_(True))
    return list(session.execute(stmt.order_by(Budget.start_date, Budget.name)).scalars())


def get_budget(session: Session, user: AuthenticatedUser, budget_id: str) -> Budget:
    budget = session.execute(
        select(Budget).where(Budget.id == budget_id, Budget.user_id == user.id)
    ).scalar_one_or_none()
    if budget is None:
        raise BudgetNotFoundError(budget_id)
    return budget


def budget_progress(
    session: Session,
    user: AuthenticatedUser,
    budget_id: str,
    rate_table: Optional[ExchangeRateTable] = None,
) -> BudgetProgress:
    """
    Spending in the budget's category over its period.

    Expenses in other currencies are converted with ``rate_table``; those
    without a rate are left out and reported in ``skipped_currencies``.
    """
    budget = get_budget(session, user, budget_id)
    expenses = session.execute(
        select(Transaction).where(
            Transaction.user_id == user.id,
            Transaction.category_id == budget.category_id,
            Transaction.type == TransactionType.EXPENSE,
            Transaction.date >= budget.start_date,
            Transaction.date <= budget.end_date,
        )
    ).scalars()

    service = CurrencyConversionService(rate_table or ExchangeRateTable())
    spent = service.sum((t.money for t in expenses), budget.currency)

    limit = budget.money
    remaining = limit.subtract(spent.total)
    percent = service.percentage(spent.total, limit).quantize(Decimal(1), rounding=ROUND_HALF_UP)

    return BudgetProgress(
        budget=budget,
        spent=spent.total,
        remaining=remaining,
        percent_used=int(percent),
        skipped_currencies=spent.skipped_currencies,
    )
