"""Integration tests for budgets."""

from datetime import date
from decimal import Decimal

import pytest

from household_ledger.lib.errors import (
    BudgetConflictError,
    BudgetNotFoundError,
    CategoryNotFoundError,
    ValidationError,
)
from household_ledger.models import TransactionType
from household_ledger.services.budget_service import (
    budget_progress,
    create_budget,
    list_budgets,
)
from household_ledger.services.exchange_rates import ExchangeRateTable
from household_ledger.services.ledger_service import record_transaction
from household_ledger.services.schemas import ExchangeRateEntry


def _budget(session, user, category, **fields):
    payload = {
        "name": "May groceries",
        "category_id": category.id,
        "amount": Decimal("40000"),
        "currency": "JPY",
        "start_date": date(2024, 5, 1),
        "end_date": date(2024, 5, 31),
    }
    payload.update(fields)
    return create_budget(session, user, payload)


def _spend(session, user, account, category, amount, on=date(2024, 5, 15)):
    return record_transaction(
        session,
        user,
        {
            "account_id": account.id,
            "type": TransactionType.EXPENSE,
            "amount": amount,
            "currency": account.currency,
            "date": on,
            "category_id": category.id,
        },
    )


@pytest.mark.integration
class TestBudgets:
    """Test suite for budget creation and progress."""

    def test_create_and_list(self, session, user, groceries):
        """Budgets are listed by start date."""
        budget = _budget(session, user, groceries)
        assert list_budgets(session, user) == [budget]
        assert budget.money.format() == "¥40,000"

    def test_overlapping_period_rejected(self, session, user, groceries):
        """Two active budgets for one category cannot overlap."""
        _budget(session, user, groceries)
        with pytest.raises(BudgetConflictError):
            _budget(
                session, user, groceries, start_date=date(2024, 5, 31), end_date=date(2024, 6, 30)
            )
        _budget(session, user, groceries, start_date=date(2024, 6, 1), end_date=date(2024, 6, 30))

    def test_end_before_start(self, session, user, groceries):
        """Periods must not be inverted."""
        with pytest.raises(ValidationError):
            _budget(session, user, groceries, end_date=date(2024, 4, 30))

    def test_foreign_category(self, session, other_user, groceries):
        """Budgets need the caller's category."""
        with pytest.raises(CategoryNotFoundError):
            _budget(session, other_user, groceries, currency="USD")

    def test_progress(self, session, user, checking, groceries):
        """Spending inside the period counts; percent rounds half up."""
        budget = _budget(session, user, groceries)
        _spend(session, user, checking, groceries, 10000)
        _spend(session, user, checking, groceries, 200)
        _spend(session, user, checking, groceries, 9999, on=date(2024, 6, 1))

        progress = budget_progress(session, user, budget.id)
        assert progress.spent.amount == Decimal("10200")
        assert progress.remaining.amount == Decimal("29800")
        assert progress.percent_used == 26
        assert progress.skipped_currencies == ()

    def test_progress_converts_foreign_spending(
        self, session, user, checking, usd_account, groceries
    ):
        """USD expenses count at the table rate; missing rates are reported."""
        budget = _budget(session, user, groceries)
        _spend(session, user, checking, groceries, 1000)
        _spend(session, user, usd_account, groceries, Decimal("10"))

        table = ExchangeRateTable(
            [ExchangeRateEntry(from_currency="USD", to_currency="JPY", rate=Decimal("150"))]
        )
        progress = budget_progress(session, user, budget.id, table)
        assert progress.spent.amount == Decimal("2500")

        without_rates = budget_progress(session, user, budget.id)
        assert without_rates.spent.amount == Decimal("1000")
        assert without_rates.skipped_currencies == ("USD",)

    def test_overspent(self, session, user, checking, groceries):
        """Remaining goes negative once the budget is exceeded."""
        budget = _budget(session, user, groceries, amount=Decimal("1000"))
        _spend(session, user, checking, groceries, 1500)
        progress = budget_progress(session, user, budget.id)
        assert progress.remaining.amount == Decimal("-500")
        assert progress.percent_used == 150

    def test_unknown_budget(self, session, user):
        """Missing budgets raise BudgetNotFoundError."""
        with pytest.raises(BudgetNotFoundError):
            budget_progress(session, user, "missing")
