"""Integration tests for scheduled transactions."""

from datetime import date
from decimal import Decimal

import pytest

from household_ledger.lib.errors import (
    AlreadyCompletedError,
    InvalidCurrencyError,
    InvalidStatusTransitionError,
    ScheduledTransactionNotFoundError,
    ValidationError,
)
from household_ledger.models import Frequency, ScheduledStatus, TransactionType
from household_ledger.services.scheduled_service import (
    cancel_scheduled_transaction,
    complete_scheduled_transaction,
    create_scheduled_transaction,
    due_within,
    list_scheduled_transactions,
    mark_overdue,
)


def _schedule(session, user, account, **fields):
    payload = {
        "account_id": account.id,
        "type": TransactionType.EXPENSE,
        "amount": Decimal("80000"),
        "currency": account.currency,
        "due_date": date(2024, 1, 31),
        "description": "Rent",
    }
    payload.update(fields)
    return create_scheduled_transaction(session, user, payload)


@pytest.mark.integration
class TestCreateScheduled:
    """Test suite for planning transactions."""

    def test_defaults(self, session, user, checking):
        """New items are PENDING with a three-day reminder."""
        scheduled = _schedule(session, user, checking)
        assert scheduled.status == ScheduledStatus.PENDING
        assert scheduled.reminder_days == 3
        assert not scheduled.is_reminder_sent

    def test_recurring_requires_frequency(self, session, user, checking):
        """is_recurring without a frequency is rejected."""
        with pytest.raises(ValidationError, match="frequency"):
            _schedule(session, user, checking, is_recurring=True)

    def test_end_before_due(self, session, user, checking):
        """The recurrence cannot end before it starts."""
        with pytest.raises(ValidationError, match="End date"):
            _schedule(
                session,
                user,
                checking,
                is_recurring=True,
                frequency=Frequency.MONTHLY,
                end_date=date(2024, 1, 1),
            )

    def test_currency_matches_account(self, session, user, checking):
        """Scheduled amounts use the account currency."""
        with pytest.raises(InvalidCurrencyError):
            _schedule(session, user, checking, currency="USD")

    def test_unknown_frequency(self, session, user, checking):
        """Frequencies outside the known set are rejected."""
        with pytest.raises(ValidationError):
            _schedule(session, user, checking, is_recurring=True, frequency="HOURLY")


@pytest.mark.integration
class TestCompleteScheduled:
    """Test suite for executing scheduled transactions."""

    def test_complete_one_off(self, session, user, checking):
        """Completion writes the transaction and moves the balance."""
        scheduled = _schedule(session, user, checking)
        transaction, next_occurrence = complete_scheduled_transaction(
            session, user, scheduled.id, today=date(2024, 1, 30)
        )

        assert next_occurrence is None
        assert scheduled.status == ScheduledStatus.COMPLETED
        assert scheduled.completed_at is not None
        assert checking.balance == Decimal("20000")
        assert transaction.description == "Rent (scheduled)"
        assert transaction.date == date(2024, 1, 30)
        assert transaction.scheduled_transaction_id == scheduled.id
        assert f"Scheduled transaction ID: {scheduled.id}" in transaction.notes

    def test_complete_income(self, session, user, checking):
        """Income schedules add to the balance."""
        scheduled = _schedule(
            session, user, checking, type=TransactionType.INCOME, description="Salary"
        )
        complete_scheduled_transaction(session, user, scheduled.id, today=date(2024, 1, 31))
        assert checking.balance == Decimal("180000")

    def test_monthly_recurrence_clamps_to_month_end(self, session, user, checking):
        """January 31st recurs on February 29th in a leap year."""
        scheduled = _schedule(
            session, user, checking, is_recurring=True, frequency=Frequency.MONTHLY
        )
        _, next_occurrence = complete_scheduled_transaction(
            session, user, scheduled.id, today=date(2024, 1, 31)
        )
        assert next_occurrence.due_date == date(2024, 2, 29)
        assert next_occurrence.status == ScheduledStatus.PENDING
        assert next_occurrence.frequency == Frequency.MONTHLY
        assert next_occurrence.amount == scheduled.amount

    def test_recurrence_stops_after_end_date(self, session, user, checking):
        """No next occurrence beyond end_date."""
        scheduled = _schedule(
            session,
            user,
            checking,
            is_recurring=True,
            frequency=Frequency.MONTHLY,
            end_date=date(2024, 2, 15),
        )
        _, next_occurrence = complete_scheduled_transaction(session, user, scheduled.id)
        assert next_occurrence is None

    def test_complete_twice(self, session, user, checking):
        """A completed item cannot be completed again and the balance moves once."""
        scheduled = _schedule(session, user, checking)
        complete_scheduled_transaction(session, user, scheduled.id)
        with pytest.raises(AlreadyCompletedError):
            complete_scheduled_transaction(session, user, scheduled.id)
        assert checking.balance == Decimal("20000")

    def test_complete_cancelled(self, session, user, checking):
        """Cancelled items cannot be completed."""
        scheduled = _schedule(session, user, checking)
        cancel_scheduled_transaction(session, user, scheduled.id)
        with pytest.raises(InvalidStatusTransitionError):
            complete_scheduled_transaction(session, user, scheduled.id)
        assert checking.balance == Decimal("100000")

    def test_other_users_item(self, session, user, other_user, checking):
        """Items are only visible to their owner."""
        scheduled = _schedule(session, user, checking)
        with pytest.raises(ScheduledTransactionNotFoundError):
            complete_scheduled_transaction(session, other_user, scheduled.id)


@pytest.mark.integration
class TestCancelScheduled:
    """Test suite for cancelling."""

    def test_cancel_pending(self, session, user, checking):
        """Cancelling moves no money."""
        scheduled = _schedule(session, user, checking)
        cancel_scheduled_transaction(session, user, scheduled.id)
        assert scheduled.status == ScheduledStatus.CANCELLED
        assert checking.balance == Decimal("100000")

    def test_cancel_completed(self, session, user, checking):
        """Completed items stay completed."""
        scheduled = _schedule(session, user, checking)
        complete_scheduled_transaction(session, user, scheduled.id)
        with pytest.raises(InvalidStatusTransitionError):
            cancel_scheduled_transaction(session, user, scheduled.id)


@pytest.mark.integration
class TestListingAndOverdue:
    """Test suite for status queries."""

    @pytest.fixture
    def items(self, session, user, checking):
        past = _schedule(session, user, checking, due_date=date(2024, 5, 1), description="Gas")
        soon = _schedule(session, user, checking, due_date=date(2024, 5, 12), description="Water")
        later = _schedule(session, user, checking, due_date=date(2024, 7, 1), description="Tax")
        return past, soon, later

    def test_overdue_filter_includes_stale_pending(self, session, user, items):
        """PENDING items past due are listed as overdue."""
        past, soon, later = items
        today = date(2024, 5, 10)
        overdue = list_scheduled_transactions(session, user, ScheduledStatus.OVERDUE, today)
        pending = list_scheduled_transactions(session, user, ScheduledStatus.PENDING, today)
        assert overdue == [past]
        assert pending == [soon, later]

    def test_mark_overdue_persists_status(self, session, user, items):
        """mark_overdue stores OVERDUE on stale items."""
        past, soon, _ = items
        assert mark_overdue(session, user, date(2024, 5, 10)) == 1
        assert past.status == ScheduledStatus.OVERDUE
        assert soon.status == ScheduledStatus.PENDING

    def test_overdue_item_can_still_be_completed(self, session, user, checking, items):
        """Persisted OVERDUE items are completable."""
        past, _, _ = items
        mark_overdue(session, user, date(2024, 5, 10))
        complete_scheduled_transaction(session, user, past.id, today=date(2024, 5, 10))
        assert past.status == ScheduledStatus.COMPLETED

    def test_due_within(self, session, user, items):
        """Upcoming window is inclusive on both ends."""
        _, soon, _ = items
        assert due_within(session, user, 2, date(2024, 5, 10)) == [soon]
        assert due_within(session, user, 1, date(2024, 5, 10)) == []
