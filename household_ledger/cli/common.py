"""Helpers shared by the CLI command groups."""

import functools
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar

import click
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from household_ledger.lib.config import USER_ENV_VAR
from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.errors import LedgerError, format_error_message, get_error_color
from household_ledger.lib.money import format_currency
from household_ledger.services.ledger_service import authenticate

console = Console()

F = TypeVar("F", bound=Callable[..., Any])

DATE = click.DateTime(formats=["%Y-%m-%d"])


def user_option(func: F) -> F:
    """Add the ``--user`` option (falls back to HOUSEHOLD_LEDGER_USER)."""
    return click.option(
        "--user",
        "user_email",
        envvar=USER_ENV_VAR,
        required=True,
        help=f"Acting user's email (or set {USER_ENV_VAR})",
    )(func)


def handle_errors(func: F) -> F:
    """Print ledger and database errors in colour and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except LedgerError as e:
            color = get_error_color(e)
            console.print(f"[{color}]✗ Error: {format_error_message(e)}[/{color}]")
            raise SystemExit(1) from e
        except SQLAlchemyError as e:
            console.print(f"[red]Database error: {e}[/red]")
            raise SystemExit(1) from e

    return wrapper  # type: ignore[return-value]


def current_user(session: Session, user_email: str) -> AuthenticatedUser:
    return authenticate(session, user_email)


def as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def money(amount: Optional[Decimal], currency: str) -> str:
    """Display an amount; missing amounts render as a dash."""
    if amount is None:
        return "-"
    return format_currency(amount, currency)
