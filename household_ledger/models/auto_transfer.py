"""Record of a debit card auto-transfer."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import TIMESTAMP, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.lib.db import Base


class AutoTransfer(Base):  # type: ignore[misc,valid-type]
    """
    Money moved from a debit card's linked account into its owning account.

    Attributes:
        card_id: Debit card that triggered the transfer
        from_account_id: Linked account that was debited
        to_account_id: Card's owning account that was credited
        amount: Amount moved
        currency: Currency of amount
        reason: Human readable reason
        status: Always COMPLETED once persisted
        executed_at: When the transfer ran
    """

    __tablename__ = "auto_transfers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    card_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cards.id"), nullable=False, index=True
    )
    from_account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    to_account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="COMPLETED")
    executed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<AutoTransfer(card_id={self.card_id!r}, amount={self.amount} {self.currency})>"
