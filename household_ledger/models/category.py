"""Transaction category model."""

import enum
from uuid import uuid4

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from household_ledger.lib.db import Base


class CategoryType(str, enum.Enum):
    """Whether a category groups income or expenses."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(Base):  # type: ignore[misc,valid-type]
    """User-defined category attached to transactions and budgets."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[CategoryType] = mapped_column(
        Enum(CategoryType), nullable=False, default=CategoryType.EXPENSE
    )
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id!r}, name={self.name!r})>"
