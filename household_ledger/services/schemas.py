"""Pydantic models for inbound service payloads.

Services accept either one of these models or a plain dict of fields; dicts
are parsed with ``parse_fields`` so pydantic failures surface as the ledger
``ValidationError`` kind.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from household_ledger.lib.errors import ValidationError
from household_ledger.lib.validators import validate_currency
from household_ledger.models import (
    AccountType,
    CardType,
    Frequency,
    PostpayPaymentStatus,
    TransactionType,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_fields(schema: type[SchemaT], fields: Union[SchemaT, dict[str, Any]]) -> SchemaT:
    """
    Coerce a payload into ``schema``.

    Args:
        schema: Pydantic model class
        fields: Model instance or dict of raw fields

    Returns:
        Validated model instance

    Raises:
        ValidationError: If the payload does not satisfy the schema
    """
    if isinstance(fields, schema):
        return fields
    try:
        return schema.model_validate(fields)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {schema.__name__} data: {details}") from e


class _Payload(BaseModel):
    class Config:
        """Pydantic configuration."""

        str_strip_whitespace = True
        extra = "forbid"

    @field_validator("currency", mode="before", check_fields=False)
    @classmethod
    def normalize_currency(cls, v: Any) -> Any:
        """Upper-case and format-check currency codes."""
        if isinstance(v, str):
            return validate_currency(v)
        return v


class AccountCreate(_Payload):
    """Fields for opening an account."""

    name: str = Field(min_length=1, max_length=100)
    type: AccountType
    currency: str
    balance: Decimal = Decimal("0")  # Opening balance
    description: Optional[str] = None
    fixed_deposit_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    fixed_deposit_maturity: Optional[date] = None


class AccountUpdate(_Payload):
    """Editable account fields. The balance is deliberately absent."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    fixed_deposit_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    fixed_deposit_maturity: Optional[date] = None


class CardCreate(_Payload):
    """Fields for issuing a card against an account."""

    name: str = Field(min_length=1, max_length=100)
    type: CardType
    account_id: str
    last_four_digits: str = Field(pattern=r"^\d{4}$")
    brand: Optional[str] = None
    credit_limit: Optional[Decimal] = None
    billing_date: Optional[int] = Field(default=None, ge=1, le=31)
    payment_date: Optional[int] = Field(default=None, ge=1, le=31)
    balance: Optional[Decimal] = None
    linked_account_id: Optional[str] = None
    auto_transfer_enabled: bool = False
    min_balance: Optional[Decimal] = Field(default=None, ge=0)
    monthly_limit: Optional[Decimal] = None
    settlement_day: Optional[int] = Field(default=None, ge=1, le=31)
    expiry_date: Optional[date] = None


class CardUpdate(_Payload):
    """Editable card fields. The card type and balance cannot be changed."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    brand: Optional[str] = None
    last_four_digits: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    credit_limit: Optional[Decimal] = None
    billing_date: Optional[int] = Field(default=None, ge=1, le=31)
    payment_date: Optional[int] = Field(default=None, ge=1, le=31)
    linked_account_id: Optional[str] = None
    auto_transfer_enabled: Optional[bool] = None
    min_balance: Optional[Decimal] = Field(default=None, ge=0)
    monthly_limit: Optional[Decimal] = None
    settlement_day: Optional[int] = Field(default=None, ge=1, le=31)
    expiry_date: Optional[date] = None
    is_active: Optional[bool] = None


class TransactionCreate(_Payload):
    """Fields for recording a transaction."""

    account_id: str
    type: TransactionType
    amount: Decimal = Field(gt=0)
    currency: str
    date: date
    description: str = ""
    card_id: Optional[str] = None
    category_id: Optional[str] = None
    exchange_rate: Optional[Decimal] = Field(default=None, gt=0)
    base_currency_amount: Optional[Decimal] = None
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = None


class ScheduledTransactionCreate(_Payload):
    """Fields for planning a future (optionally recurring) transaction."""

    account_id: str
    type: TransactionType
    amount: Decimal = Field(gt=0)
    currency: str
    due_date: date
    description: str = ""
    category_id: Optional[str] = None
    frequency: Optional[Frequency] = None
    is_recurring: bool = False
    end_date: Optional[date] = None
    reminder_days: int = Field(default=3, ge=0, le=365)
    notes: Optional[str] = None


class PostpayPaymentCreate(_Payload):
    """Fields for tracking a postpay card charge."""

    card_id: str
    charge_amount: Decimal = Field(gt=0)
    currency: str
    charge_date: date
    description: str = Field(min_length=1)
    due_date: date
    notes: Optional[str] = None


class PostpayPaymentUpdate(_Payload):
    """Settlement fields of a postpay payment."""

    status: Optional[PostpayPaymentStatus] = None
    paid_at: Optional[datetime] = None
    paid_amount: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None


class BudgetCreate(_Payload):
    """Fields for a category budget."""

    name: str = Field(min_length=1, max_length=100)
    category_id: str
    amount: Decimal = Field(gt=0)
    currency: str
    start_date: date
    end_date: date


class ExchangeRateEntry(_Payload):
    """One observed exchange rate."""

    from_currency: str
    to_currency: str
    rate: Decimal
    observed_at: Optional[datetime] = None
    source: str = "manual"

    @field_validator("from_currency", "to_currency", mode="before")
    @classmethod
    def normalize_pair(cls, v: Any) -> Any:
        """Upper-case and format-check both currencies."""
        if isinstance(v, str):
            return validate_currency(v)
        return v
