"""Reminder queries and notification messages for scheduled transactions.

This module only finds due items and builds plain notification values;
delivering them (webhook, email) is left to the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from household_ledger.lib.config import (
    DEFAULT_LOCALE,
    REMINDER_LOOKAHEAD_DAYS,
    SOON_DAYS_THRESHOLD,
    URGENT_DAYS_THRESHOLD,
)
from household_ledger.lib.context import AuthenticatedUser
from household_ledger.models import ScheduledStatus, ScheduledTransaction, TransactionType

logger = logging.getLogger(__name__)

URGENT_COLOR = "#ff4444"
SOON_COLOR = "#ffaa44"
RELAXED_COLOR = "#36a64f"

TYPE_ICONS = {
    TransactionType.INCOME: "💰",
    TransactionType.EXPENSE: "💸",
    TransactionType.TRANSFER: "🔄",
}


@dataclass(frozen=True)
class Notification:
    """
    A message ready for an external sender.

    Attributes:
        title: One-line headline
        message: Multi-line body (markdown)
        payload: Structured extras (color, fields, timestamp, ids)
    """

    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)


def _with_relations(stmt: Any) -> Any:
    return stmt.options(
        selectinload(ScheduledTransaction.account), selectinload(ScheduledTransaction.category)
    )


def get_pending_reminders(
    session: Session, today: Optional[date] = None, user: Optional[AuthenticatedUser] = None
) -> list[ScheduledTransaction]:
    """
    PENDING items whose reminder is due and not yet sent.

    An item qualifies when it is due within the next 30 days (today included)
    and ``today`` has reached ``due_date - reminder_days``.
    """
    today = today or date.today()
    stmt = select(ScheduledTransaction).where(
        ScheduledTransaction.status == ScheduledStatus.PENDING,
        ScheduledTransaction.is_reminder_sent.is_(False),
        ScheduledTransaction.due_date >= today,
        ScheduledTransaction.due_date <= today + timedelta(days=REMINDER_LOOKAHEAD_DAYS),
    )
    if user is not None:
        stmt = stmt.where(ScheduledTransaction.user_id == user.id)

    candidates = session.execute(
        _with_relations(stmt).order_by(ScheduledTransaction.due_date)
    ).scalars()
    due = [s for s in candidates if today >= s.due_date - timedelta(days=s.reminder_days)]
    logger.debug(f"{len(due)} reminders due on {today}")
    return due


def _as_naive_utc(moment: datetime) -> datetime:
    # timestamps are stored as naive UTC
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def get_overdue_transactions(
    session: Session, since: Optional[datetime] = None, user: Optional[AuthenticatedUser] = None
) -> list[ScheduledTransaction]:
    """Items persisted as OVERDUE and updated since ``since`` (default: the last 24 hours)."""
    if since is None:
        since = datetime.now(timezone.utc) - timedelta(days=1)
    stmt = select(ScheduledTransaction).where(
        ScheduledTransaction.status == ScheduledStatus.OVERDUE,
        ScheduledTransaction.updated_at >= _as_naive_utc(since),
    )
    if user is not None:
        stmt = stmt.where(ScheduledTransaction.user_id == user.id)
    return list(
        session.execute(_with_relations(stmt).order_by(ScheduledTransaction.due_date)).scalars()
    )


def _urgency(days_until_due: int) -> tuple[str, str]:
    if days_until_due <= URGENT_DAYS_THRESHOLD:
        color = URGENT_COLOR
    elif days_until_due <= SOON_DAYS_THRESHOLD:
        color = SOON_COLOR
    else:
        color = RELAXED_COLOR

    if days_until_due <= 0:
        text = "⚠️ Due today"
    elif days_until_due == 1:
        text = "⚠️ Due tomorrow"
    else:
        text = f"📅 {days_until_due} days left"
    return text, color


def build_reminder_notification(
    scheduled: ScheduledTransaction, today: Optional[date] = None, locale: str = DEFAULT_LOCALE
) -> Notification:
    """Reminder message for an upcoming scheduled transaction."""
    today = today or date.today()
    amount = scheduled.money.format(locale)
    due = scheduled.due_date.strftime("%Y-%m-%d (%A)")
    days_until_due = (scheduled.due_date - today).days
    urgency, color = _urgency(days_until_due)

    lines = [urgency, "", f"**Amount:** {amount}", f"**Due:** {due}"]
    lines.append(f"**Account:** {scheduled.account.name}")
    if scheduled.category is not None:
        lines.append(f"**Category:** {scheduled.category.name}")
    if scheduled.notes:
        lines.append(f"**Notes:** {scheduled.notes}")

    icon = TYPE_ICONS.get(scheduled.type, "📋")
    return Notification(
        title=f"{icon} Reminder: {scheduled.description}",
        message="\n".join(lines),
        payload={
            "scheduled_transaction_id": scheduled.id,
            "color": color,
            "days_until_due": days_until_due,
            "fields": [
                {"name": "Amount", "value": amount, "inline": True},
                {"name": "Due", "value": due, "inline": True},
                {"name": "Account", "value": scheduled.account.name, "inline": True},
            ],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def build_overdue_notification(
    scheduled: ScheduledTransaction, today: Optional[date] = None, locale: str = DEFAULT_LOCALE
) -> Notification:
    """Alert for a scheduled transaction that has passed its due date."""
    today = today or date.today()
    amount = scheduled.money.format(locale)
    due = scheduled.due_date.strftime("%Y-%m-%d")
    days_overdue = max((today - scheduled.due_date).days, 0)

    message = "\n".join(
        [
            f"**Overdue:** {days_overdue} days",
            f"**Due:** {due}",
            f"**Amount:** {amount}",
            f"**Account:** {scheduled.account.name}",
            "",
            "Please take care of this as soon as possible.",
        ]
    )
    return Notification(
        title=f"🚨 {scheduled.description} is overdue",
        message=message,
        payload={
            "scheduled_transaction_id": scheduled.id,
            "color": URGENT_COLOR,
            "days_overdue": days_overdue,
            "fields": [
                {"name": "Amount", "value": amount, "inline": True},
                {"name": "Overdue", "value": f"{days_overdue} days", "inline": True},
                {"name": "Account", "value": scheduled.account.name, "inline": True},
            ],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def mark_reminder_sent(session: Session, scheduled: ScheduledTransaction) -> None:
    """Flag the reminder as delivered so it is not produced again."""
    scheduled.is_reminder_sent = True
    session.flush()
    logger.info(f"Reminder sent for scheduled transaction {scheduled.id}")
