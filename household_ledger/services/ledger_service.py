"""Ledger service: currencies, users, categories, accounts and transactions.

Every operation takes the caller's session as its first argument and leaves
committing to the caller (``run_atomic`` / ``db_session``). Preconditions are
checked before any balance is touched, so a rejected operation never leaves a
partial update behind.
"""

import enum
import logging
from datetime import date
from typing import Any, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from household_ledger.lib.config import (
    CURRENCY_FRACTION_DIGITS,
    CURRENCY_NAMES,
    CURRENCY_SYMBOLS,
    DEFAULT_BASE_CURRENCY,
)
from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.db import increment_balance
from household_ledger.lib.errors import (
    AccountNotFoundError,
    CardNotFoundError,
    CategoryNotFoundError,
    DuplicateAccountError,
    InsufficientFundsError,
    InvalidCurrencyError,
    UserNotFoundError,
    ValidationError,
)
from household_ledger.lib.money import Money
from household_ledger.lib.validators import validate_currency
from household_ledger.models import (
    Account,
    AccountType,
    Card,
    Category,
    CategoryType,
    Currency,
    ScheduledTransaction,
    Transaction,
    TransactionType,
    User,
    signed_delta,
)
from household_ledger.services.conversion import AggregateResult, CurrencyConversionService
from household_ledger.services.exchange_rates import ExchangeRateTable
from household_ledger.services.schemas import (
    AccountCreate,
    AccountUpdate,
    TransactionCreate,
    parse_fields,
)

logger = logging.getLogger(__name__)


class DeletionOutcome(str, enum.Enum):
    """What a delete request ended up doing."""

    DELETED = "DELETED"
    DEACTIVATED = "DEACTIVATED"


# Currencies


def ensure_default_currencies(session: Session) -> list[Currency]:
    """Register every currency of the formatting table that is not registered yet."""
    existing = set(session.execute(select(Currency.code)).scalars())
    created = []
    for code, digits in CURRENCY_FRACTION_DIGITS.items():
        if code in existing:
            continue
        currency = Currency(
            code=code,
            name=CURRENCY_NAMES.get(code, code),
            symbol=CURRENCY_SYMBOLS.get(code, code).strip(),
            decimals=digits,
        )
        session.add(currency)
        created.append(currency)

    if created:
        session.flush()
        logger.info(f"Registered currencies: {', '.join(c.code for c in created)}")
    return created


def list_currencies(session: Session, active_only: bool = True) -> list[Currency]:
    stmt = select(Currency).order_by(Currency.code)
    if active_only:
        stmt = stmt.where(Currency.is_active.is_(True))
    return list(session.execute(stmt).scalars())


def require_currency(session: Session, code: str) -> str:
    """
    Normalise ``code`` and check that it is registered.

    Raises:
        InvalidCurrencyError: If the code is malformed or not registered
    """
    code = validate_currency(code)
    currency = session.get(Currency, code)
    if currency is None or not currency.is_active:
        raise InvalidCurrencyError(code, "Currency is not registered")
    return code


# Users


def create_user(
    session: Session, email: str, name: Optional[str] = None, base_currency: Optional[str] = None
) -> User:
    """Create a user. The base currency must be registered."""
    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValidationError(f"Invalid email address: {email!r}")
    if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
        raise ValidationError(f"User already exists: {email}")

    currency = require_currency(session, base_currency or DEFAULT_BASE_CURRENCY)
    user = User(email=email, name=name, base_currency=currency)
    session.add(user)
    session.flush()
    logger.info(f"Created user {user.id} with base currency {currency}")
    return user


def get_user_by_email(session: Session, email: str) -> User:
    user = session.execute(
        select(User).where(User.email == email.strip().lower())
    ).scalar_one_or_none()
    if user is None:
        logger.warning(f"No user registered for {email}")
        raise UserNotFoundError(email)
    return user


def authenticate(session: Session, email: str) -> AuthenticatedUser:
    """Resolve an email into the context object every service expects."""
    return AuthenticatedUser.from_user(get_user_by_email(session, email))


# Categories


def create_category(
    session: Session,
    user: AuthenticatedUser,
    name: str,
    category_type: Union[CategoryType, str],
    color: str = "#6B7280",
) -> Category:
    name = name.strip()
    if not name:
        raise ValidationError("Category name is required")
    category = Category(user_id=user.id, name=name, type=CategoryType(category_type), color=color)
    session.add(category)
    session.flush()
    logger.info(f"Created category {category.name!r} for user {user.id}")
    return category


def list_categories(
    session: Session, user: AuthenticatedUser, category_type: Optional[CategoryType] = None
) -> list[Category]:
    stmt = select(Category).where(Category.user_id == user.id)
    if category_type is not None:
        stmt = stmt.where(Category.type == category_type)
    return list(session.execute(stmt.order_by(Category.type, Category.name)).scalars())


def get_owned_category(session: Session, user: AuthenticatedUser, category_id: str) -> Category:
    category = session.execute(
        select(Category).where(Category.id == category_id, Category.user_id == user.id)
    ).scalar_one_or_none()
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


# Lookups shared by the mutation services


def get_owned_account(
    session: Session,
    user: AuthenticatedUser,
    account_id: str,
    active_only: bool = False,
    for_update: bool = False,
) -> Account:
    """
    Load an account owned by ``user``.

    Args:
        session: Database session
        user: Caller
        account_id: Account ID
        active_only: Treat deactivated accounts as missing
        for_update: Lock the row for the rest of the transaction

    Raises:
        AccountNotFoundError: If missing, owned by someone else, or inactive
                              while ``active_only`` is set
    """
    stmt = select(Account).where(Account.id == account_id, Account.user_id == user.id)
    if for_update:
        stmt = stmt.with_for_update()
    account = session.execute(stmt).scalar_one_or_none()
    if account is None or (active_only and not account.is_active):
        raise AccountNotFoundError(account_id)
    return account


def get_owned_card(
    session: Session,
    user: AuthenticatedUser,
    card_id: str,
    active_only: bool = False,
    for_update: bool = False,
) -> Card:
    """Load a card owned by ``user``; with ``active_only`` a deactivated card counts as missing."""
    stmt = select(Card).where(Card.id == card_id, Card.user_id == user.id)
    if for_update:
        stmt = stmt.with_for_update()
    card = session.execute(stmt).scalar_one_or_none()
    if card is None or (active_only and not card.is_active):
        raise CardNotFoundError(card_id)
    return card


def apply_balance_delta(
    session: Session, account: Account, delta: Money, require_funds: bool = False
) -> None:
    """
    Add ``delta`` to ``account``'s balance through the atomic increment.

    With ``require_funds`` a withdrawal only applies while the stored balance
    still covers it; the check and the write are one statement.

    Raises:
        InvalidCurrencyError: If the delta is not in the account currency
        InsufficientFundsError: If ``require_funds`` is set and the balance is short
    """
    if delta.currency != account.currency:
        raise InvalidCurrencyError(
            delta.currency, f"Account {account.id} holds {account.currency}"
        )
    floor = -delta.amount if require_funds and delta.is_negative() else None
    applied = increment_balance(session, Account, account.id, delta.amount, floor=floor)
    session.refresh(account)
    if not applied:
        raise InsufficientFundsError(account.balance, -delta.amount, f"account {account.name}")
    logger.info(f"Account {account.id} balance {delta.amount:+} {delta.currency}")


def post_transaction(
    session: Session,
    user: AuthenticatedUser,
    account: Account,
    transaction_type: TransactionType,
    amount: Money,
    on: date,
    description: str = "",
    apply_to_balance: bool = True,
    **extra: Any,
) -> Transaction:
    """
    Insert a transaction row and, unless told otherwise, apply its signed delta.

    Card charges and auto-transfers move balances explicitly and write their
    TRANSFER rows with ``apply_to_balance=False``.
    """
    if amount.currency != account.currency:
        raise InvalidCurrencyError(
            amount.currency, f"Account {account.id} holds {account.currency}"
        )

    transaction = Transaction(
        user_id=user.id,
        account_id=account.id,
        type=transaction_type,
        amount=amount.amount,
        currency=amount.currency,
        date=on,
        description=description,
        **extra,
    )
    session.add(transaction)
    session.flush()

    if apply_to_balance:
        apply_balance_delta(session, account, signed_delta(transaction_type, amount))

    return transaction


# Accounts


def _check_unique_name(
    session: Session, user: AuthenticatedUser, name: str, exclude_id: Optional[str] = None
) -> None:
    stmt = select(Account.id).where(
        Account.user_id == user.id, Account.name == name, Account.is_active.is_(True)
    )
    if exclude_id:
        stmt = stmt.where(Account.id != exclude_id)
    if session.execute(stmt).first():
        raise DuplicateAccountError(name)


def create_account(
    session: Session, user: AuthenticatedUser, fields: Union[AccountCreate, dict[str, Any]]
) -> Account:
    """
    Open an account.

    FIXED_DEPOSIT accounts require ``fixed_deposit_rate`` and
    ``fixed_deposit_maturity``; other types may not carry them.

    Raises:
        InvalidCurrencyError: If the currency is not registered
        DuplicateAccountError: If an active account already uses the name
        ValidationError: On invalid fixed-deposit fields
    """
    data = parse_fields(AccountCreate, fields)
    currency = require_currency(session, data.currency)

    if data.type == AccountType.FIXED_DEPOSIT:
        if data.fixed_deposit_rate is None or data.fixed_deposit_maturity is None:
            raise ValidationError(
                "Fixed deposit accounts require fixed_deposit_rate and fixed_deposit_maturity"
            )
    elif data.fixed_deposit_rate is not None or data.fixed_deposit_maturity is not None:
        raise ValidationError("Fixed deposit fields are only allowed on FIXED_DEPOSIT accounts")

    _check_unique_name(session, user, data.name)

    account = Account(
        user_id=user.id,
        name=data.name,
        type=data.type,
        currency=currency,
        balance=data.balance,
        description=data.description,
        fixed_deposit_rate=data.fixed_deposit_rate,
        fixed_deposit_maturity=data.fixed_deposit_maturity,
    )
    session.add(account)
    session.flush()
    logger.info(
        f"Created {account.type.value} account {account.id} "
        f"with opening balance {account.balance} {currency}"
    )
    return account


def update_account(
    session: Session,
    user: AuthenticatedUser,
    account_id: str,
    fields: Union[AccountUpdate, dict[str, Any]],
) -> Account:
    """Edit account details. Balances only move through transactions."""
    data = parse_fields(AccountUpdate, fields)
    account = get_owned_account(session, user, account_id)
    changes = data.model_dump(exclude_unset=True)

    fixed_fields = {"fixed_deposit_rate", "fixed_deposit_maturity"} & changes.keys()
    if fixed_fields and account.type != AccountType.FIXED_DEPOSIT:
        raise ValidationError("Fixed deposit fields are only allowed on FIXED_DEPOSIT accounts")

    if changes.get("name") and changes["name"] != account.name:
        _check_unique_name(session, user, changes["name"], exclude_id=account.id)

    for key, value in changes.items():
        setattr(account, key, value)
    session.flush()
    logger.info(f"Updated account {account.id}: {', '.join(sorted(changes))}")
    return account


def get_account(session: Session, user: AuthenticatedUser, account_id: str) -> Account:
    return get_owned_account(session, user, account_id)


def list_accounts(
    session: Session,
    user: AuthenticatedUser,
    include_inactive: bool = False,
    account_type: Optional[AccountType] = None,
    currency: Optional[str] = None,
) -> list[Account]:
    stmt = select(Account).where(Account.user_id == user.id)
    if not include_inactive:
        stmt = stmt.where(Account.is_active.is_(True))
    if account_type is not None:
        stmt = stmt.where(Account.type == account_type)
    if currency:
        stmt = stmt.where(Account.currency == currency.upper())
    return list(session.execute(stmt.order_by(Account.created_at, Account.name)).scalars())


def delete_account(session: Session, user: AuthenticatedUser, account_id: str) -> DeletionOutcome:
    """
    Delete an account, or deactivate it when anything references it.

    Transactions, scheduled transactions and cards (owned or linked) all
    count as history.
    """
    account = get_owned_account(session, user, account_id)

    references = (
        session.scalar(
            select(func.count(Transaction.id)).where(Transaction.account_id == account.id)
        )
        or 0
    )
    references += (
        session.scalar(
            select(func.count(ScheduledTransaction.id)).where(
                ScheduledTransaction.account_id == account.id
            )
        )
        or 0
    )
    references += (
        session.scalar(
            select(func.count(Card.id)).where(
                (Card.account_id == account.id) | (Card.linked_account_id == account.id)
            )
        )
        or 0
    )

    if references:
        account.is_active = False
        session.flush()
        logger.info(f"Deactivated account {account.id} ({references} references)")
        return DeletionOutcome.DEACTIVATED

    session.delete(account)
    session.flush()
    logger.info(f"Deleted account {account_id}")
    return DeletionOutcome.DELETED


def summarize_balances(
    session: Session, user: AuthenticatedUser, rate_table: ExchangeRateTable
) -> AggregateResult:
    """Total of the user's active account balances in their base currency."""
    accounts = list_accounts(session, user)
    service = CurrencyConversionService(rate_table)
    return service.sum((account.balance_money for account in accounts), user.base_currency)


# Transactions


def record_transaction(
    session: Session, user: AuthenticatedUser, fields: Union[TransactionCreate, dict[str, Any]]
) -> Transaction:
    """
    Record a transaction and move its account balance.

    INCOME and TRANSFER add the amount, EXPENSE subtracts it.

    Raises:
        AccountNotFoundError: Account missing, not owned, or inactive
        CardNotFoundError: Card given but not owned by the user, or deactivated
        CategoryNotFoundError: Category given but not owned by the user
        InvalidCurrencyError: Currency unregistered or different from the account's
    """
    try:
        data = parse_fields(TransactionCreate, fields)
        account = get_owned_account(
            session, user, data.account_id, active_only=True, for_update=True
        )
        if data.card_id:
            get_owned_card(session, user, data.card_id, active_only=True)
        if data.category_id:
            get_owned_category(session, user, data.category_id)
        currency = require_currency(session, data.currency)
    except (ValidationError, AccountNotFoundError, CardNotFoundError, CategoryNotFoundError) as e:
        logger.warning(f"Rejected transaction for user {user.id}: {e.message}")
        raise

    return post_transaction(
        session,
        user,
        account,
        data.type,
        Money(data.amount, currency),
        data.date,
        data.description,
        card_id=data.card_id,
        category_id=data.category_id,
        exchange_rate=data.exchange_rate,
        base_currency_amount=data.base_currency_amount,
        tags=data.tags,
        notes=data.notes,
    )


def list_transactions(
    session: Session,
    user: AuthenticatedUser,
    account_id: Optional[str] = None,
    card_id: Optional[str] = None,
    category_id: Optional[str] = None,
    transaction_type: Optional[TransactionType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = None,
) -> list[Transaction]:
    """List the user's transactions, newest first."""
    stmt = select(Transaction).where(Transaction.user_id == user.id)
    if account_id:
        stmt = stmt.where(Transaction.account_id == account_id)
    if card_id:
        stmt = stmt.where(Transaction.card_id == card_id)
    if category_id:
        stmt = stmt.where(Transaction.category_id == category_id)
    if transaction_type is not None:
        stmt = stmt.where(Transaction.type == transaction_type)
    if start_date:
        stmt = stmt.where(Transaction.date >= start_date)
    if end_date:
        stmt = stmt.where(Transaction.date <= end_date)
    stmt = stmt.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    return list(session.execute(stmt).scalars())
