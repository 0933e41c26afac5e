"""Unit tests for reminder and overdue notification messages."""

from datetime import date
from decimal import Decimal

import pytest

from household_ledger.models import (
    Account,
    AccountType,
    Category,
    CategoryType,
    ScheduledTransaction,
    TransactionType,
)
from household_ledger.services.reminder_service import (
    RELAXED_COLOR,
    SOON_COLOR,
    URGENT_COLOR,
    build_overdue_notification,
    build_reminder_notification,
)


@pytest.fixture
def rent():
    """Unsaved scheduled rent payment due 2024-06-10."""
    scheduled = ScheduledTransaction(
        id="sched-1",
        amount=Decimal("80000"),
        currency="JPY",
        type=TransactionType.EXPENSE,
        description="Rent",
        due_date=date(2024, 6, 10),
        reminder_days=3,
        notes="Transfer to landlord",
    )
    scheduled.account = Account(
        name="Main Bank", type=AccountType.CHECKING, currency="JPY", balance=Decimal("0")
    )
    scheduled.category = Category(name="Housing", type=CategoryType.EXPENSE)
    return scheduled


@pytest.mark.unit
class TestReminderNotification:
    """Test suite for build_reminder_notification."""

    def test_title_and_body(self, rent):
        """Title carries the type icon; body lists amount, account and category."""
        notification = build_reminder_notification(rent, date(2024, 6, 8))
        assert notification.title == "💸 Reminder: Rent"
        assert "**Amount:** ¥80,000" in notification.message
        assert "**Account:** Main Bank" in notification.message
        assert "**Category:** Housing" in notification.message
        assert "**Notes:** Transfer to landlord" in notification.message

    @pytest.mark.parametrize(
        "today,text,color",
        [
            (date(2024, 6, 10), "⚠️ Due today", URGENT_COLOR),
            (date(2024, 6, 9), "⚠️ Due tomorrow", URGENT_COLOR),
            (date(2024, 6, 7), "📅 3 days left", SOON_COLOR),
            (date(2024, 6, 3), "📅 7 days left", RELAXED_COLOR),
        ],
    )
    def test_urgency(self, rent, today, text, color):
        """Urgency text and colour depend on days until due."""
        notification = build_reminder_notification(rent, today)
        assert notification.message.startswith(text)
        assert notification.payload["color"] == color

    def test_payload(self, rent):
        """Payload carries ids and display fields."""
        payload = build_reminder_notification(rent, date(2024, 6, 8)).payload
        assert payload["scheduled_transaction_id"] == "sched-1"
        assert payload["days_until_due"] == 2
        assert [f["name"] for f in payload["fields"]] == ["Amount", "Due", "Account"]
        assert "timestamp" in payload

    def test_locale(self, rent):
        """Amounts follow the requested locale."""
        rent.currency = "EUR"
        rent.amount = Decimal("1234.5")
        notification = build_reminder_notification(rent, date(2024, 6, 8), locale="de-DE")
        assert "**Amount:** 1.234,50 €" in notification.message

    def test_income_icon(self, rent):
        """Income reminders use the income icon."""
        rent.type = TransactionType.INCOME
        rent.description = "Salary"
        assert build_reminder_notification(rent, date(2024, 6, 8)).title == "💰 Reminder: Salary"


@pytest.mark.unit
class TestOverdueNotification:
    """Test suite for build_overdue_notification."""

    def test_days_overdue(self, rent):
        """Overdue alerts count days past the due date."""
        notification = build_overdue_notification(rent, date(2024, 6, 14))
        assert notification.title == "🚨 Rent is overdue"
        assert "**Overdue:** 4 days" in notification.message
        assert notification.payload["days_overdue"] == 4
        assert notification.payload["color"] == URGENT_COLOR

    def test_not_yet_due_counts_zero(self, rent):
        """Days overdue never goes negative."""
        assert build_overdue_notification(rent, date(2024, 6, 1)).payload["days_overdue"] == 0
