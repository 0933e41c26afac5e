"""
SQLAlchemy models for the household-ledger application.

All models inherit from the Base declarative class defined in household_ledger.lib.db.
"""

from household_ledger.models.account import Account, AccountType
from household_ledger.models.auto_transfer import AutoTransfer
from household_ledger.models.budget import Budget
from household_ledger.models.card import Card, CardType
from household_ledger.models.category import Category, CategoryType
from household_ledger.models.currency import Currency
from household_ledger.models.exchange_rate import ExchangeRate
from household_ledger.models.postpay_payment import PostpayPayment, PostpayPaymentStatus
from household_ledger.models.scheduled_transaction import (
    Frequency,
    ScheduledStatus,
    ScheduledTransaction,
)
from household_ledger.models.transaction import Transaction, TransactionType, signed_delta
from household_ledger.models.user import User

__all__ = [
    # Core models
    "User",
    "Account",
    "Card",
    "Category",
    "Transaction",
    "ScheduledTransaction",
    # Card side records
    "AutoTransfer",
    "PostpayPayment",
    # Planning
    "Budget",
    # Currency
    "Currency",
    "ExchangeRate",
    # Enums
    "AccountType",
    "CardType",
    "CategoryType",
    "TransactionType",
    "Frequency",
    "ScheduledStatus",
    "PostpayPaymentStatus",
    # Helpers
    "signed_delta",
]
