"""
Postpay payment model.

Tracks charges on a POSTPAY card that settle on a due date. These records
are obligations only; they never move account balances.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import TIMESTAMP, CheckConstraint, Date, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from household_ledger.lib.db import Base

if TYPE_CHECKING:
    from household_ledger.models.card import Card


class PostpayPaymentStatus(str, enum.Enum):
    """Settlement status."""

    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class PostpayPayment(Base):  # type: ignore[misc,valid-type]
    """A charge awaiting settlement on a postpay card."""

    __tablename__ = "postpay_payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    card_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("cards.id"),
        nullable=False,
        index=True,
    )

    charge_amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    charge_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    status: Mapped[PostpayPaymentStatus] = mapped_column(
        Enum(PostpayPaymentStatus),
        nullable=False,
        default=PostpayPaymentStatus.PENDING,
        index=True,
    )

    paid_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(20, 8), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    card: Mapped["Card"] = relationship("Card")

    __table_args__ = (CheckConstraint("charge_amount > 0", name="check_charge_amount_positive"),)

    def __repr__(self) -> str:
        return (
            f"<PostpayPayment(id={self.id!r}, due={self.due_date}, "
            f"status={self.status.value!r}, amount={self.charge_amount} {self.currency})>"
        )
