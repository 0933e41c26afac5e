"""
User model.

Owns every other ledger entity. The base currency drives aggregate
reporting (net balance totals, dashboard summaries).
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import TIMESTAMP, String
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.lib.db import Base


class User(Base):  # type: ignore[misc,valid-type]
    """
    A ledger owner.

    Attributes:
        id: Unique identifier
        email: Login email (unique)
        name: Display name
        base_currency: Currency used for aggregates and reports
        created_at: When the user was created
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    base_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="JPY")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        """Return string representation of user."""
        return f"<User(id={self.id!r}, email={self.email!r})>"
