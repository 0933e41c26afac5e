"""Currency registry model."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.lib.db import Base


class Currency(Base):  # type: ignore[misc,valid-type]
    """
    A currency the ledger accepts.

    Any operation that takes a currency code rejects codes that are not
    registered here.
    """

    __tablename__ = "currencies"

    code: Mapped[str] = mapped_column(
        String(3),
        primary_key=True,
        comment="ISO 4217 currency code (e.g., JPY, USD)",
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    symbol: Mapped[str] = mapped_column(String(10), nullable=False)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Currency({self.code})>"
