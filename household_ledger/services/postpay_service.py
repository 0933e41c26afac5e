"""Postpay payment tracking.

Postpay payments are settlement obligations for POSTPAY cards. They never
move account or card balances.
"""

import logging
from datetime import date
from typing import Any, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.errors import PostpayPaymentNotFoundError, WrongCardTypeError
from household_ledger.models import CardType, PostpayPayment, PostpayPaymentStatus
from household_ledger.services.ledger_service import get_owned_card, require_currency
from household_ledger.services.schemas import (
    PostpayPaymentCreate,
    PostpayPaymentUpdate,
    parse_fields,
)

logger = logging.getLogger(__name__)


def create_postpay_payment(
    session: Session,
    user: AuthenticatedUser,
    fields: Union[PostpayPaymentCreate, dict[str, Any]],
) -> PostpayPayment:
    """
    Track a charge on a postpay card.

    Raises:
        CardNotFoundError: If the card is not the user's
        WrongCardTypeError: If the card is not POSTPAY
        InvalidCurrencyError: If the currency is not registered
    """
    data = parse_fields(PostpayPaymentCreate, fields)
    card = get_owned_card(session, user, data.card_id)
    if card.type != CardType.POSTPAY:
        raise WrongCardTypeError(card.id, CardType.POSTPAY.value, card.type.value)
    currency = require_currency(session, data.currency)

    payment = PostpayPayment(
        user_id=user.id,
        card_id=card.id,
        charge_amount=data.charge_amount,
        currency=currency,
        charge_date=data.charge_date,
        description=data.description,
        due_date=data.due_date,
        notes=data.notes,
    )
    session.add(payment)
    session.flush()
    logger.info(f"Tracking postpay payment {payment.id} on card {card.id} due {payment.due_date}")
    return payment


def list_postpay_payments(
    session: Session,
    user: AuthenticatedUser,
    card_id: Optional[str] = None,
    status: Optional[PostpayPaymentStatus] = None,
    upcoming: bool = False,
    today: Optional[date] = None,
) -> list[PostpayPayment]:
    """List payments ordered by due date; ``upcoming`` keeps those due today or later."""
    stmt = select(PostpayPayment).where(PostpayPayment.user_id == user.id)
    if card_id:
        stmt = stmt.where(PostpayPayment.card_id == card_id)
    if status is not None:
        stmt = stmt.where(PostpayPayment.status == status)
    if upcoming:
        stmt = stmt.where(PostpayPayment.due_date >= (today or date.today()))
    return list(session.execute(stmt.order_by(PostpayPayment.due_date)).scalars())


def update_postpay_payment(
    session: Session,
    user: AuthenticatedUser,
    payment_id: str,
    fields: Union[PostpayPaymentUpdate, dict[str, Any]],
) -> PostpayPayment:
    """Update settlement status and paid details."""
    data = parse_fields(PostpayPaymentUpdate, fields)
    payment = session.execute(
        select(PostpayPayment).where(
            PostpayPayment.id == payment_id, PostpayPayment.user_id == user.id
        )
    ).scalar_one_or_none()
    if payment is None:
        raise PostpayPaymentNotFoundError(payment_id)

    changes = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(payment, key, value)
    session.flush()
    logger.info(f"Updated postpay payment {payment.id}: {', '.join(sorted(changes))}")
    return payment
