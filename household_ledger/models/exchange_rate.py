"""
Exchange rate model for currency conversions.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import TIMESTAMP, CheckConstraint, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.lib.db import Base


class ExchangeRate(Base):  # type: ignore[misc,valid-type]
    """
    An observed rate for one directed currency pair.

    Rows form a history; conversions use only the latest observation per
    pair (see ``ExchangeRateTable``).
    """

    __tablename__ = "exchange_rates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    from_currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        comment="Source currency ISO 4217 code (e.g., USD)",
    )

    to_currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        comment="Target currency ISO 4217 code (e.g., JPY)",
    )

    # Numeric(20, 10): small reciprocal-style rates (JPY->USD) need the extra scale
    rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=10),
        nullable=False,
        comment="Units of to_currency per one unit of from_currency",
    )

    observed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    source: Mapped[str] = mapped_column(String(50), nullable=False, default="manual")

    __table_args__ = (
        CheckConstraint("rate > 0", name="check_rate_positive"),
        Index("ix_exchange_rates_pair_time", "from_currency", "to_currency", "observed_at"),
    )

    def __repr__(self) -> str:
        """String representation showing the conversion rate."""
        return (
            f"ExchangeRate({self.from_currency}/{self.to_currency} "
            f"= {self.rate} at {self.observed_at})"
        )
