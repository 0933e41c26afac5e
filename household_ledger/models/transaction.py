"""
Transaction model for recorded account movements.

Transactions are append-only. Recording one applies exactly one signed
balance delta to its account (+amount for INCOME and TRANSFER, -amount for
EXPENSE); TRANSFER rows written by card charges and auto-transfers are
records of deltas applied explicitly by the card service.
"""

import datetime as dt
import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    TIMESTAMP,
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.lib.db import Base
from household_ledger.lib.money import Money

if TYPE_CHECKING:
    from household_ledger.models.account import Account
    from household_ledger.models.card import Card
    from household_ledger.models.category import Category


class TransactionType(str, enum.Enum):
    """Enumeration of transaction types."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


def signed_delta(transaction_type: TransactionType, amount: Money) -> Money:
    """Balance change produced by a transaction of ``transaction_type``."""
    if transaction_type == TransactionType.EXPENSE:
        return amount.negated()
    return amount


class Transaction(Base):  # type: ignore[misc,valid-type]
    """
    Represents a recorded income, expense or transfer.

    Attributes:
        id: Unique identifier
        user_id: Owner
        account_id: Account whose balance the transaction moved
        card_id: Card used (optional)
        category_id: Category (optional)
        scheduled_transaction_id: Scheduled transaction this was materialized from
        type: INCOME, EXPENSE or TRANSFER
        amount: Always positive; direction comes from ``type``
        currency: Currency of ``amount`` (equals the account currency)
        description: Short description
        date: Transaction date
        exchange_rate: Optional rate to the user's base currency
        base_currency_amount: Optional amount in the user's base currency
        tags: Free-form tags
        notes: Optional notes
    """

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Foreign keys
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

    card_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("cards.id"),
        nullable=True,
        index=True,
    )

    category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    scheduled_transaction_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("scheduled_transactions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Transaction details
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(20, 8),
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    exchange_rate: Mapped[Decimal | None] = mapped_column(Numeric(20, 10), nullable=True)

    base_currency_amount: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)

    tags: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    account: Mapped["Account"] = relationship("Account", back_populates="transactions")
    card: Mapped[Optional["Card"]] = relationship("Card")
    category: Mapped[Optional["Category"]] = relationship("Category")

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_transaction_amount_positive"),
        Index("ix_transactions_card_type_date", "card_id", "type", "date"),
    )

    @property
    def money(self) -> Money:
        """Amount as a Money value."""
        return Money(self.amount, self.currency)

    @property
    def balance_delta(self) -> Money:
        """Signed effect of this transaction on its account balance."""
        return signed_delta(self.type, self.money)

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id!r}, type={self.type.value!r}, "
            f"amount={self.amount} {self.currency}, date={self.date})>"
        )
