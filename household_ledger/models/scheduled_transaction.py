"""
Scheduled transaction model.

A template for a future (optionally recurring) transaction. Completing it
materializes a real ``Transaction`` and, for recurring schedules, spawns the
next PENDING occurrence.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.lib.db import Base
from household_ledger.lib.money import Money
from household_ledger.models.transaction import TransactionType

if TYPE_CHECKING:
    from household_ledger.models.account import Account
    from household_ledger.models.category import Category


class Frequency(str, enum.Enum):
    """Recurrence frequency."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class ScheduledStatus(str, enum.Enum):
    """Lifecycle status of a scheduled transaction."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class ScheduledTransaction(Base):  # type: ignore[misc,valid-type]
    """
    A planned transaction.

    Attributes:
        id: Unique identifier
        user_id: Owner
        account_id: Account the transaction will move
        category_id: Optional category
        amount: Positive amount
        currency: Currency of amount
        type: INCOME, EXPENSE or TRANSFER
        description: Short description
        due_date: When the transaction is due
        frequency: Recurrence frequency (None for one-off)
        is_recurring: Whether completion spawns the next occurrence
        end_date: Last date an occurrence may fall on (None = open ended)
        status: PENDING, COMPLETED, OVERDUE or CANCELLED
        reminder_days: Days before due date to send a reminder
        is_reminder_sent: Whether the reminder was produced
        completed_at: When the schedule was completed
        notes: Optional notes
    """

    __tablename__ = "scheduled_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    type: Mapped[TransactionType] = mapped_column(Enum(TransactionType), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    frequency: Mapped[Frequency | None] = mapped_column(Enum(Frequency), nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[ScheduledStatus] = mapped_column(
        Enum(ScheduledStatus),
        nullable=False,
        default=ScheduledStatus.PENDING,
        index=True,
    )

    reminder_days: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    is_reminder_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    account: Mapped["Account"] = relationship("Account", back_populates="scheduled_transactions")
    category: Mapped[Optional["Category"]] = relationship("Category")

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_scheduled_amount_positive"),
        CheckConstraint("reminder_days >= 0", name="check_reminder_days_non_negative"),
    )

    @property
    def money(self) -> Money:
        """Amount as a Money value."""
        return Money(self.amount, self.currency)

    def __repr__(self) -> str:
        return (
            f"<ScheduledTransaction(id={self.id!r}, due={self.due_date}, "
            f"status={self.status.value!r}, amount={self.amount} {self.currency})>"
        )
