"""Card-type policy.

Pure validation gate run before a card is created or updated. It never
touches the store; ownership of referenced accounts is checked by the card
service.
"""

from decimal import Decimal
from typing import Any, Optional

from household_ledger.lib.errors import InvalidCardConfigurationError
from household_ledger.models import CardType


def _positive(value: Optional[Decimal]) -> bool:
    return value is not None and Decimal(str(value)) > 0


def validate_card_configuration(card_type: CardType, fields: dict[str, Any]) -> dict[str, Any]:
    """
    Check type-specific card fields and fill defaults.

    Rules:
        CREDIT   credit_limit > 0
        DEBIT    linked_account_id when auto_transfer_enabled
        PREPAID  balance defaults to 0
        POSTPAY  monthly_limit > 0

    Args:
        card_type: Card type being created or updated
        fields: Proposed card fields (merged with current values on update)

    Returns:
        A copy of ``fields`` with defaults applied

    Raises:
        InvalidCardConfigurationError: Naming the offending field
    """
    result = dict(fields)
    card_type = CardType(card_type)

    if card_type == CardType.CREDIT:
        if not _positive(result.get("credit_limit")):
            raise InvalidCardConfigurationError(
                "credit_limit", "credit cards require a positive credit limit"
            )

    elif card_type == CardType.DEBIT:
        if result.get("auto_transfer_enabled") and not result.get("linked_account_id"):
            raise InvalidCardConfigurationError(
                "linked_account_id", "auto transfer requires a linked account"
            )
        if result.get("balance") is None:
            result["balance"] = Decimal("0")

    elif card_type == CardType.PREPAID:
        if result.get("balance") is None:
            result["balance"] = Decimal("0")
        elif Decimal(str(result["balance"])) < 0:
            raise InvalidCardConfigurationError("balance", "prepaid balance cannot be negative")

    elif card_type == CardType.POSTPAY:
        if not _positive(result.get("monthly_limit")):
            raise InvalidCardConfigurationError(
                "monthly_limit", "postpay cards require a positive monthly limit"
            )

    return result
