"""Card service: card lifecycle, prepaid charges, card payments and debit auto-transfers.

Balance rules:
- A prepaid charge moves money from a source account onto the card's own
  balance (source -amount, card +amount). A TRANSFER row records it.
- A payment writes an EXPENSE on the card's account. CREDIT, DEBIT and
  POSTPAY payments reduce that account's balance. DEBIT and PREPAID payments
  also reduce the card balance; a PREPAID payment draws only on the card, whose
  funds already left the source account when it was charged.
- A debit auto-transfer tops the card up from its linked account
  (linked -transfer, card account +transfer, card balance +transfer).
- Card balances, prepaid source accounts and auto-transfer linked accounts
  are drawn down with the guarded increment and never go below zero.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.db import increment_balance
from household_ledger.lib.errors import (
    CreditLimitExceededError,
    InsufficientFundsError,
    InvalidCardConfigurationError,
    InvalidCurrencyError,
    LedgerError,
    MonthlyLimitExceededError,
    ValidationError,
    WrongCardTypeError,
)
from household_ledger.lib.money import Money
from household_ledger.lib.validators import validate_positive_amount
from household_ledger.models import (
    Account,
    AutoTransfer,
    Card,
    CardType,
    PostpayPayment,
    Transaction,
    TransactionType,
)
from household_ledger.services.card_policy import validate_card_configuration
from household_ledger.services.ledger_service import (
    DeletionOutcome,
    apply_balance_delta,
    get_owned_account,
    get_owned_card,
    get_owned_category,
    post_transaction,
    require_currency,
)
from household_ledger.services.schemas import CardCreate, CardUpdate, parse_fields

logger = logging.getLogger(__name__)


@dataclass
class CardDetail:
    """
    Card with its usage figures.

    Attributes:
        card: The card
        monthly_usage: EXPENSE total on the card since the first day of the month
        available_credit: credit_limit - monthly_usage (CREDIT cards only)
        recent_transactions: Latest 10 transactions on the card
        recent_auto_transfers: Latest 5 auto-transfers (DEBIT cards)
    """

    card: Card
    monthly_usage: Money
    available_credit: Optional[Money] = None
    recent_transactions: list[Transaction] = field(default_factory=list)
    recent_auto_transfers: list[AutoTransfer] = field(default_factory=list)


def _month_start(today: date) -> date:
    return today.replace(day=1)


def monthly_usage(session: Session, card: Card, today: Optional[date] = None) -> Decimal:
    """Sum of EXPENSE transactions on ``card`` dated from the first of the current month."""
    today = today or date.today()
    total = session.scalar(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.card_id == card.id,
            Transaction.type == TransactionType.EXPENSE,
            Transaction.date >= _month_start(today),
        )
    )
    return Decimal(str(total or 0))


def _check_linked_account(
    session: Session, user: AuthenticatedUser, account: Account, linked_account_id: Optional[str]
) -> None:
    if not linked_account_id:
        return
    linked = get_owned_account(session, user, linked_account_id, active_only=True)
    if linked.id == account.id:
        raise InvalidCardConfigurationError(
            "linked_account_id", "linked account must differ from the card's account"
        )
    if linked.currency != account.currency:
        raise InvalidCurrencyError(
            linked.currency, f"Linked account must hold {account.currency} like the card's account"
        )


# Lifecycle


def create_card(
    session: Session, user: AuthenticatedUser, fields: Union[CardCreate, dict[str, Any]]
) -> Card:
    """
    Issue a card against one of the user's accounts.

    Raises:
        AccountNotFoundError: If the account or linked account is not the user's
        InvalidCardConfigurationError: If the card-type policy rejects the fields
    """
    data = parse_fields(CardCreate, fields)
    values = validate_card_configuration(data.type, data.model_dump())

    account = get_owned_account(session, user, data.account_id, active_only=True)
    _check_linked_account(session, user, account, data.linked_account_id)

    card = Card(user_id=user.id, **values)
    session.add(card)
    session.flush()
    logger.info(f"Created {card.type.value} card {card.id} on account {account.id}")
    return card


def update_card(
    session: Session,
    user: AuthenticatedUser,
    card_id: str,
    fields: Union[CardUpdate, dict[str, Any]],
) -> Card:
    """Edit a card; the merged result must still satisfy the card-type policy."""
    data = parse_fields(CardUpdate, fields)
    card = get_owned_card(session, user, card_id)
    changes = data.model_dump(exclude_unset=True)

    merged = {
        "credit_limit": card.credit_limit,
        "balance": card.balance,
        "linked_account_id": card.linked_account_id,
        "auto_transfer_enabled": card.auto_transfer_enabled,
        "monthly_limit": card.monthly_limit,
    }
    merged.update(changes)
    validate_card_configuration(card.type, merged)

    if "linked_account_id" in changes:
        account = get_owned_account(session, user, card.account_id)
        _check_linked_account(session, user, account, changes["linked_account_id"])

    for key, value in changes.items():
        setattr(card, key, value)
    session.flush()
    logger.info(f"Updated card {card.id}: {', '.join(sorted(changes))}")
    return card


def list_cards(
    session: Session,
    user: AuthenticatedUser,
    include_inactive: bool = False,
    card_type: Optional[CardType] = None,
) -> list[Card]:
    stmt = select(Card).where(Card.user_id == user.id)
    if not include_inactive:
        stmt = stmt.where(Card.is_active.is_(True))
    if card_type is not None:
        stmt = stmt.where(Card.type == card_type)
    return list(session.execute(stmt.order_by(Card.created_at.desc())).scalars())


def get_card_detail(
    session: Session, user: AuthenticatedUser, card_id: str, today: Optional[date] = None
) -> CardDetail:
    card = get_owned_card(session, user, card_id)
    currency = card.account.currency
    usage = Money(monthly_usage(session, card, today), currency)

    available = None
    if card.type == CardType.CREDIT and card.credit_limit is not None:
        available = Money(card.credit_limit, currency).subtract(usage)

    transactions = session.execute(
        select(Transaction)
        .where(Transaction.card_id == card.id)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        .limit(10)
    ).scalars()
    transfers = session.execute(
        select(AutoTransfer)
        .where(AutoTransfer.card_id == card.id)
        .order_by(AutoTransfer.executed_at.desc())
        .limit(5)
    ).scalars()

    return CardDetail(
        card=card,
        monthly_usage=usage,
        available_credit=available,
        recent_transactions=list(transactions),
        recent_auto_transfers=list(transfers),
    )


def delete_card(session: Session, user: AuthenticatedUser, card_id: str) -> DeletionOutcome:
    """Delete a card, or deactivate it when transactions or settlement records reference it."""
    card = get_owned_card(session, user, card_id)

    references = 0
    for model in (Transaction, PostpayPayment, AutoTransfer):
        references += (
            session.scalar(select(func.count(model.id)).where(model.card_id == card.id)) or 0
        )

    if references:
        card.is_active = False
        session.flush()
        logger.info(f"Deactivated card {card.id} ({references} references)")
        return DeletionOutcome.DEACTIVATED

    session.delete(card)
    session.flush()
    logger.info(f"Deleted card {card_id}")
    return DeletionOutcome.DELETED


# Balance movements


def charge_prepaid_card(
    session: Session,
    user: AuthenticatedUser,
    card_id: str,
    amount: Union[Decimal, str, int],
    from_account_id: str,
    on: Optional[date] = None,
) -> Transaction:
    """
    Load a prepaid card from one of the user's accounts.

    Charging exactly the source balance is allowed and leaves it at zero.

    Returns:
        The TRANSFER record written on the source account

    Raises:
        WrongCardTypeError: If the card is not PREPAID
        InsufficientFundsError: If the source account holds less than ``amount``
    """
    try:
        card = get_owned_card(session, user, card_id, for_update=True)
        if card.type != CardType.PREPAID:
            raise WrongCardTypeError(card.id, CardType.PREPAID.value, card.type.value)

        charge = validate_positive_amount(amount, "Charge amount")
        source = get_owned_account(
            session, user, from_account_id, active_only=True, for_update=True
        )
        if source.id == card.account_id:
            raise ValidationError("Source account must differ from the card's own account")

        card_currency = card.account.currency
        if source.currency != card_currency:
            raise InvalidCurrencyError(
                source.currency, f"Card {card.id} is loaded in {card_currency}"
            )

        if source.balance < charge:
            raise InsufficientFundsError(source.balance, charge, f"account {source.name}")
    except LedgerError as e:
        logger.warning(f"Rejected prepaid charge on card {card_id}: {e.message}")
        raise

    money = Money(charge, source.currency)
    apply_balance_delta(session, source, money.negated(), require_funds=True)
    increment_balance(session, Card, card.id, money.amount)
    session.refresh(card)

    record = post_transaction(
        session,
        user,
        source,
        TransactionType.TRANSFER,
        money,
        on or date.today(),
        f"Prepaid card charge: {card.name}",
        apply_to_balance=False,
        card_id=card.id,
    )
    logger.info(f"Charged prepaid card {card.id} with {money}")
    return record


def execute_auto_transfer(
    session: Session,
    user: AuthenticatedUser,
    card: Card,
    required: Money,
    on: Optional[date] = None,
) -> Optional[AutoTransfer]:
    """
    Top up a debit card from its linked account so it can cover ``required``.

    Moves ``required - card balance + min_balance``. Nothing happens when that
    is zero or less.

    Raises:
        InvalidCardConfigurationError: If the card has no enabled auto-transfer
        InsufficientFundsError: If the linked account cannot cover the transfer
    """
    if card.type != CardType.DEBIT:
        raise WrongCardTypeError(card.id, CardType.DEBIT.value, card.type.value)
    if not card.auto_transfer_enabled or not card.linked_account_id:
        raise InvalidCardConfigurationError(
            "auto_transfer_enabled", "auto transfer is not enabled for this card"
        )

    current = Money(card.balance or 0, required.currency)
    minimum = Money(card.min_balance or 0, required.currency)
    transfer = required.subtract(current).add(minimum)
    if transfer.is_zero() or transfer.is_negative():
        return None

    linked = get_owned_account(
        session, user, card.linked_account_id, active_only=True, for_update=True
    )
    target = get_owned_account(session, user, card.account_id, active_only=True, for_update=True)
    if linked.currency != required.currency:
        raise InvalidCurrencyError(linked.currency, f"Card {card.id} pays in {required.currency}")
    if linked.balance_money.less_than(transfer):
        raise InsufficientFundsError(
            linked.balance, transfer.amount, f"linked account {linked.name}"
        )

    apply_balance_delta(session, linked, transfer.negated(), require_funds=True)
    apply_balance_delta(session, target, transfer)
    increment_balance(session, Card, card.id, transfer.amount)
    session.refresh(card)

    auto_transfer = AutoTransfer(
        user_id=user.id,
        card_id=card.id,
        from_account_id=linked.id,
        to_account_id=target.id,
        amount=transfer.amount,
        currency=transfer.currency,
        reason=f"Debit card auto transfer: {card.name}",
        status="COMPLETED",
    )
    session.add(auto_transfer)
    session.flush()

    on = on or date.today()
    notes = f"Auto Transfer ID: {auto_transfer.id}"
    post_transaction(
        session,
        user,
        linked,
        TransactionType.TRANSFER,
        transfer,
        on,
        f"Auto transfer (out): {linked.name} -> {card.name}",
        apply_to_balance=False,
        notes=notes,
    )
    post_transaction(
        session,
        user,
        target,
        TransactionType.TRANSFER,
        transfer,
        on,
        f"Auto transfer (in): {linked.name} -> {card.name}",
        apply_to_balance=False,
        notes=notes,
    )

    logger.info(f"Auto-transferred {transfer} from {linked.id} to card {card.id}")
    return auto_transfer


def pay_card(
    session: Session,
    user: AuthenticatedUser,
    card_id: str,
    amount: Union[Decimal, str, int],
    currency: str,
    description: str,
    category_id: Optional[str] = None,
    today: Optional[date] = None,
) -> Transaction:
    """
    Pay with a card.

    Per card type:
        CREDIT   monthly usage + amount must not exceed credit_limit
        DEBIT    card balance must cover amount, topping up via auto-transfer if enabled
        PREPAID  card balance must cover amount
        POSTPAY  monthly usage + amount must not exceed monthly_limit

    Returns:
        The EXPENSE transaction

    Raises:
        CardNotFoundError: If the card is missing, inactive or not the user's
        AccountNotFoundError: If the card's account is missing or inactive
        InvalidCurrencyError: If ``currency`` differs from the card's account
        CreditLimitExceededError / MonthlyLimitExceededError / InsufficientFundsError
    """
    today = today or date.today()

    try:
        card = get_owned_card(session, user, card_id, active_only=True, for_update=True)

        payment = validate_positive_amount(amount, "Payment amount")
        account = get_owned_account(
            session, user, card.account_id, active_only=True, for_update=True
        )
        code = require_currency(session, currency)
        if code != account.currency:
            raise InvalidCurrencyError(code, f"Card {card.id} pays in {account.currency}")
        if category_id:
            get_owned_category(session, user, category_id)

        money = Money(payment, code)

        if card.type == CardType.CREDIT and card.credit_limit is not None:
            usage = monthly_usage(session, card, today)
            if usage + payment > card.credit_limit:
                raise CreditLimitExceededError(card.credit_limit, usage, payment)

        elif card.type == CardType.DEBIT:
            card_balance = card.balance or Decimal("0")
            if card_balance < payment:
                if not card.auto_transfer_enabled:
                    raise InsufficientFundsError(card_balance, payment, f"debit card {card.name}")
                execute_auto_transfer(session, user, card, money, today)
                session.refresh(account)

        elif card.type == CardType.PREPAID:
            card_balance = card.balance or Decimal("0")
            if card_balance < payment:
                raise InsufficientFundsError(card_balance, payment, f"prepaid card {card.name}")

        elif card.type == CardType.POSTPAY and card.monthly_limit is not None:
            usage = monthly_usage(session, card, today)
            if usage + payment > card.monthly_limit:
                raise MonthlyLimitExceededError(card.monthly_limit, usage, payment)
    except LedgerError as e:
        logger.warning(f"Rejected payment on card {card_id}: {e.message}")
        raise

    if card.type in (CardType.DEBIT, CardType.PREPAID):
        applied = increment_balance(session, Card, card.id, -payment, floor=payment)
        session.refresh(card)
        if not applied:
            raise InsufficientFundsError(card.balance, payment, f"card {card.name}")

    transaction = post_transaction(
        session,
        user,
        account,
        TransactionType.EXPENSE,
        money,
        today,
        description,
        apply_to_balance=card.type != CardType.PREPAID,
        card_id=card.id,
        category_id=category_id,
    )
    logger.info(f"Paid {money} with {card.type.value} card {card.id}")
    return transaction
