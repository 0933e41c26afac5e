"""Request context passed explicitly into every service operation."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from household_ledger.models.user import User


@dataclass(frozen=True)
class AuthenticatedUser:
    """The caller on whose behalf an operation runs.

    Services never look the user up from ambient state; ownership checks
    filter every query on ``id``.
    """

    id: str
    email: str
    base_currency: str

    @classmethod
    def from_user(cls, user: "User") -> "AuthenticatedUser":
        """Build the context from a persisted user."""
        return cls(id=user.id, email=user.email, base_currency=user.base_currency)
