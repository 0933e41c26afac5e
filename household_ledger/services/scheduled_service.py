"""Scheduled transaction service.

Completing a scheduled transaction materializes it as a real transaction
(moving the account balance) and, for recurring schedules, plans the next
occurrence by calendar arithmetic.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Union

from dateutil.relativedelta import relativedelta  # type: ignore[import-untyped]
from sqlalchemy import select
from sqlalchemy.orm import Session

from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.errors import (
    AlreadyCompletedError,
    InvalidCurrencyError,
    InvalidStatusTransitionError,
    LedgerError,
    ScheduledTransactionNotFoundError,
    UnsupportedFrequencyError,
    ValidationError,
)
from household_ledger.models import (
    Frequency,
    ScheduledStatus,
    ScheduledTransaction,
    Transaction,
)
from household_ledger.services.ledger_service import (
    get_owned_account,
    get_owned_category,
    post_transaction,
    require_currency,
)
from household_ledger.services.schemas import ScheduledTransactionCreate, parse_fields

logger = logging.getLogger(__name__)

_STEPS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.YEARLY: relativedelta(years=1),
}


def next_due_date(due_date: date, frequency: Union[Frequency, str]) -> date:
    """
    Next occurrence after ``due_date``.

    Month and year steps clamp to the last day of a shorter month:
    2024-01-31 MONTHLY gives 2024-02-29, 2023-01-31 gives 2023-02-28.

    Raises:
        UnsupportedFrequencyError: If ``frequency`` is not a known Frequency
    """
    try:
        step = _STEPS[Frequency(frequency)]
    except (ValueError, KeyError) as e:
        raise UnsupportedFrequencyError(frequency) from e
    return due_date + step


def effective_status(
    scheduled: ScheduledTransaction, today: Optional[date] = None
) -> ScheduledStatus:
    """Status as seen on ``today``: a PENDING item past its due date reads OVERDUE."""
    today = today or date.today()
    if scheduled.status == ScheduledStatus.PENDING and scheduled.due_date < today:
        return ScheduledStatus.OVERDUE
    return scheduled.status


def create_scheduled_transaction(
    session: Session,
    user: AuthenticatedUser,
    fields: Union[ScheduledTransactionCreate, dict[str, Any]],
) -> ScheduledTransaction:
    """
    Plan a transaction.

    Raises:
        AccountNotFoundError / CategoryNotFoundError: If references are not the user's
        InvalidCurrencyError: If the currency is unregistered or not the account's
        ValidationError: If a recurring item has no frequency or ends before it starts
    """
    data = parse_fields(ScheduledTransactionCreate, fields)

    account = get_owned_account(session, user, data.account_id, active_only=True)
    if data.category_id:
        get_owned_category(session, user, data.category_id)
    currency = require_currency(session, data.currency)
    if currency != account.currency:
        raise InvalidCurrencyError(currency, f"Account {account.id} holds {account.currency}")

    if data.is_recurring and data.frequency is None:
        raise ValidationError("Recurring scheduled transactions require a frequency")
    if data.end_date is not None and data.end_date < data.due_date:
        raise ValidationError("End date must not be before the due date")

    scheduled = ScheduledTransaction(
        user_id=user.id,
        account_id=account.id,
        category_id=data.category_id,
        amount=data.amount,
        currency=currency,
        type=data.type,
        description=data.description,
        due_date=data.due_date,
        frequency=data.frequency,
        is_recurring=data.is_recurring,
        end_date=data.end_date,
        reminder_days=data.reminder_days,
        notes=data.notes,
    )
    session.add(scheduled)
    session.flush()
    logger.info(f"Scheduled {scheduled.type.value} {scheduled.id} due {scheduled.due_date}")
    return scheduled


def get_scheduled_transaction(
    session: Session, user: AuthenticatedUser, scheduled_id: str, for_update: bool = False
) -> ScheduledTransaction:
    stmt = select(ScheduledTransaction).where(
        ScheduledTransaction.id == scheduled_id, ScheduledTransaction.user_id == user.id
    )
    if for_update:
        stmt = stmt.with_for_update()
    scheduled = session.execute(stmt).scalar_one_or_none()
    if scheduled is None:
        raise ScheduledTransactionNotFoundError(scheduled_id)
    return scheduled


def list_scheduled_transactions(
    session: Session,
    user: AuthenticatedUser,
    status: Optional[ScheduledStatus] = None,
    today: Optional[date] = None,
) -> list[ScheduledTransaction]:
    """
    List scheduled transactions ordered by due date.

    Filtering by OVERDUE matches both persisted OVERDUE items and PENDING
    items whose due date has passed.
    """
    today = today or date.today()
    stmt = select(ScheduledTransaction).where(ScheduledTransaction.user_id == user.id)
    if status == ScheduledStatus.OVERDUE:
        stmt = stmt.where(
            (ScheduledTransaction.status == ScheduledStatus.OVERDUE)
            | (
                (ScheduledTransaction.status == ScheduledStatus.PENDING)
                & (ScheduledTransaction.due_date < today)
            )
        )
    elif status == ScheduledStatus.PENDING:
        stmt = stmt.where(
            ScheduledTransaction.status == ScheduledStatus.PENDING,
            ScheduledTransaction.due_date >= today,
        )
    elif status is not None:
        stmt = stmt.where(ScheduledTransaction.status == status)
    return list(session.execute(stmt.order_by(ScheduledTransaction.due_date)).scalars())


def mark_overdue(session: Session, user: AuthenticatedUser, today: Optional[date] = None) -> int:
    """Persist OVERDUE on every PENDING item due before ``today``; returns how many changed."""
    today = today or date.today()
    stale = session.execute(
        select(ScheduledTransaction).where(
            ScheduledTransaction.user_id == user.id,
            ScheduledTransaction.status == ScheduledStatus.PENDING,
            ScheduledTransaction.due_date < today,
        )
    ).scalars().all()

    count = 0
    for scheduled in stale:
        scheduled.status = ScheduledStatus.OVERDUE
        count += 1
    session.flush()
    if count:
        logger.info(f"Marked {count} scheduled transactions overdue")
    return count


def complete_scheduled_transaction(
    session: Session,
    user: AuthenticatedUser,
    scheduled_id: str,
    today: Optional[date] = None,
) -> tuple[Transaction, Optional[ScheduledTransaction]]:
    """
    Execute a scheduled transaction.

    Writes the transaction (same balance effect as recording it), marks the
    schedule COMPLETED and, for recurring items whose next date does not pass
    ``end_date``, creates the next PENDING occurrence.

    Returns:
        Tuple of (materialized transaction, next occurrence or None)

    Raises:
        ScheduledTransactionNotFoundError: If missing or not the user's
        AlreadyCompletedError: If already COMPLETED
        InvalidStatusTransitionError: If CANCELLED
        UnsupportedFrequencyError: If the recurrence frequency is unknown
        AccountNotFoundError: If the account is gone or inactive
    """
    today = today or date.today()

    try:
        scheduled = get_scheduled_transaction(session, user, scheduled_id, for_update=True)
        if scheduled.status == ScheduledStatus.COMPLETED:
            raise AlreadyCompletedError(scheduled.id)
        if scheduled.status == ScheduledStatus.CANCELLED:
            raise InvalidStatusTransitionError(
                "scheduled transaction", scheduled.status.value, ScheduledStatus.COMPLETED.value
            )

        upcoming = None
        if scheduled.is_recurring and scheduled.frequency:
            upcoming = next_due_date(scheduled.due_date, scheduled.frequency)
            if scheduled.end_date is not None and upcoming > scheduled.end_date:
                upcoming = None

        account = get_owned_account(
            session, user, scheduled.account_id, active_only=True, for_update=True
        )
    except LedgerError as e:
        logger.warning(f"Rejected completion of scheduled transaction {scheduled_id}: {e.message}")
        raise

    notes = f"Scheduled transaction ID: {scheduled.id}"
    if scheduled.notes:
        notes += f"\n{scheduled.notes}"

    transaction = post_transaction(
        session,
        user,
        account,
        scheduled.type,
        scheduled.money,
        today,
        f"{scheduled.description} (scheduled)",
        category_id=scheduled.category_id,
        scheduled_transaction_id=scheduled.id,
        notes=notes,
    )

    scheduled.status = ScheduledStatus.COMPLETED
    scheduled.completed_at = datetime.now(timezone.utc)

    next_occurrence = None
    if upcoming is not None:
        next_occurrence = ScheduledTransaction(
            user_id=scheduled.user_id,
            account_id=scheduled.account_id,
            category_id=scheduled.category_id,
            amount=scheduled.amount,
            currency=scheduled.currency,
            type=scheduled.type,
            description=scheduled.description,
            due_date=upcoming,
            frequency=scheduled.frequency,
            is_recurring=True,
            end_date=scheduled.end_date,
            reminder_days=scheduled.reminder_days,
            notes=scheduled.notes,
        )
        session.add(next_occurrence)

    session.flush()
    logger.info(
        f"Completed scheduled transaction {scheduled.id}"
        + (f"; next due {next_occurrence.due_date}" if next_occurrence else "")
    )
    return transaction, next_occurrence


def cancel_scheduled_transaction(
    session: Session, user: AuthenticatedUser, scheduled_id: str
) -> ScheduledTransaction:
    """Cancel a PENDING or OVERDUE item. No balance moves."""
    scheduled = get_scheduled_transaction(session, user, scheduled_id, for_update=True)
    if scheduled.status not in (ScheduledStatus.PENDING, ScheduledStatus.OVERDUE):
        logger.warning(f"Rejected cancel of {scheduled.id} in status {scheduled.status.value}")
        raise InvalidStatusTransitionError(
            "scheduled transaction", scheduled.status.value, ScheduledStatus.CANCELLED.value
        )
    scheduled.status = ScheduledStatus.CANCELLED
    session.flush()
    logger.info(f"Cancelled scheduled transaction {scheduled.id}")
    return scheduled


def due_within(
    session: Session, user: AuthenticatedUser, days: int, today: Optional[date] = None
) -> list[ScheduledTransaction]:
    """PENDING items due between ``today`` and ``today + days`` inclusive."""
    today = today or date.today()
    return list(
        session.execute(
            select(ScheduledTransaction)
            .where(
                ScheduledTransaction.user_id == user.id,
                ScheduledTransaction.status == ScheduledStatus.PENDING,
                ScheduledTransaction.due_date >= today,
                ScheduledTransaction.due_date <= today + timedelta(days=days),
            )
            .order_by(ScheduledTransaction.due_date)
        ).scalars()
    )
