"""
Card model.

Cards draw on an owning account. Type-specific fields:

- CREDIT: ``credit_limit`` bounds the current month's usage.
- DEBIT: optional auto-transfer from ``linked_account_id`` keeps
  ``balance`` topped up to ``min_balance``.
- PREPAID: carries its own ``balance``, loaded by charges from an account.
- POSTPAY: ``monthly_limit`` bounds usage; settlement is tracked with
  ``PostpayPayment`` records.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import TIMESTAMP, Boolean, Date, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.lib.db import Base

if TYPE_CHECKING:
    from household_ledger.models.account import Account


class CardType(str, enum.Enum):
    """Enumeration of card types."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    PREPAID = "PREPAID"
    POSTPAY = "POSTPAY"


class Card(Base):  # type: ignore[misc,valid-type]
    """A payment card attached to one of the user's accounts."""

    __tablename__ = "cards"

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

    linked_account_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[CardType] = mapped_column(Enum(CardType), nullable=False, index=True)
    brand: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_four_digits: Mapped[str] = mapped_column(String(4), nullable=False)

    # CREDIT
    credit_limit: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    billing_date: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_date: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # DEBIT / PREPAID
    balance: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    auto_transfer_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    min_balance: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)

    # POSTPAY
    monthly_limit: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    settlement_day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    account: Mapped["Account"] = relationship(
        "Account",
        back_populates="cards",
        foreign_keys=[account_id],
    )

    linked_account: Mapped[Optional["Account"]] = relationship(
        "Account",
        foreign_keys=[linked_account_id],
    )

    def __repr__(self) -> str:
        return (
            f"<Card(id={self.id!r}, name={self.name!r}, "
            f"type={self.type.value!r}, last4={self.last_four_digits!r})>"
        )
