"""
Account model for cash and bank accounts.

An account holds a single-currency balance. The balance only moves through
the ledger services (transactions, card charges and payments, scheduled
transaction completions), never by direct assignment.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import TIMESTAMP, Boolean, Date, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.lib.db import Base
from household_ledger.lib.money import Money

if TYPE_CHECKING:
    from household_ledger.models.card import Card
    from household_ledger.models.scheduled_transaction import ScheduledTransaction
    from household_ledger.models.transaction import Transaction


class AccountType(str, enum.Enum):
    """Enumeration of account types."""

    CASH = "CASH"
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    FIXED_DEPOSIT = "FIXED_DEPOSIT"


class Account(Base):  # type: ignore[misc,valid-type]
    """
    Represents a wallet or bank account owned by a user.

    Attributes:
        id: Unique identifier
        user_id: Owner
        name: User-friendly name, unique among the user's active accounts
        type: Account type
        currency: Currency of the balance
        balance: Current balance (same currency as the account)
        description: Optional free text
        is_active: False once soft-deactivated
        fixed_deposit_rate: Annual interest rate in percent (FIXED_DEPOSIT only)
        fixed_deposit_maturity: Maturity date (FIXED_DEPOSIT only)
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    type: Mapped[AccountType] = mapped_column(
        Enum(AccountType),
        nullable=False,
        index=True,
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    balance: Mapped[Decimal] = mapped_column(
        Numeric(20, 8),
        nullable=False,
        default=Decimal("0"),
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    fixed_deposit_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    fixed_deposit_maturity: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Audit fields
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

    # Relationships
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        back_populates="account",
    )

    cards: Mapped[list["Card"]] = relationship(
        "Card",
        back_populates="account",
        foreign_keys="Card.account_id",
    )

    scheduled_transactions: Mapped[list["ScheduledTransaction"]] = relationship(
        "ScheduledTransaction",
        back_populates="account",
    )

    @property
    def balance_money(self) -> Money:
        """Balance as a Money value in the account currency."""
        return Money(self.balance if self.balance is not None else Decimal("0"), self.currency)

    def __repr__(self) -> str:
        """Return string representation of account."""
        return (
            f"<Account(id={self.id!r}, "
            f"name={self.name!r}, "
            f"type={self.type.value!r}, "
            f"balance={self.balance} {self.currency})>"
        )
