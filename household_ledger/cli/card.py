"""Card subcommands."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import click
from rich.table import Table
from sqlalchemy.orm import Session

from household_ledger.cli.common import (
    DATE,
    as_date,
    console,
    current_user,
    handle_errors,
    money,
    user_option,
)
from household_ledger.lib.db import db_session, run_atomic
from household_ledger.models import Card, CardType, Transaction
from household_ledger.services.card_service import (
    charge_prepaid_card,
    create_card,
    delete_card,
    get_card_detail,
    list_cards,
    pay_card,
)
from household_ledger.services.ledger_service import DeletionOutcome


@click.group()
def card() -> None:
    """Manage credit, debit, prepaid and postpay cards."""
    pass


@card.command()
@user_option
@click.option("--name", required=True, help="Card name")
@click.option(
    "--type",
    "card_type",
    type=click.Choice([t.value for t in CardType], case_sensitive=False),
    required=True,
)
@click.option("--account", "account_id", required=True, help="Account the card draws on")
@click.option("--last4", "last_four_digits", required=True, help="Last four digits")
@click.option("--brand", default=None)
@click.option("--credit-limit", type=Decimal, default=None, help="CREDIT: credit limit")
@click.option("--monthly-limit", type=Decimal, default=None, help="POSTPAY: monthly limit")
@click.option("--linked-account", "linked_account_id", default=None, help="DEBIT: top-up source")
@click.option("--auto-transfer", is_flag=True, help="DEBIT: top up from the linked account")
@click.option("--min-balance", type=Decimal, default=None, help="DEBIT: balance to keep")
@click.option("--expiry", type=DATE, default=None)
@handle_errors
def create(
    user_email: str,
    name: str,
    card_type: str,
    account_id: str,
    last_four_digits: str,
    brand: Optional[str],
    credit_limit: Optional[Decimal],
    monthly_limit: Optional[Decimal],
    linked_account_id: Optional[str],
    auto_transfer: bool,
    min_balance: Optional[Decimal],
    expiry: Optional[datetime],
) -> None:
    """Issue a card."""
    fields = {
        "name": name,
        "type": card_type.upper(),
        "account_id": account_id,
        "last_four_digits": last_four_digits,
        "brand": brand,
        "credit_limit": credit_limit,
        "monthly_limit": monthly_limit,
        "linked_account_id": linked_account_id,
        "auto_transfer_enabled": auto_transfer,
        "min_balance": min_balance,
        "expiry_date": as_date(expiry),
    }

    def operation(session: Session) -> Card:
        return create_card(session, current_user(session, user_email), fields)

    created = run_atomic(operation)
    console.print("[green]Card created successfully![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"{created.type.value} **** {created.last_four_digits}")


@card.command("list")
@user_option
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated cards")
@handle_errors
def list_cards_cmd(user_email: str, include_inactive: bool) -> None:
    """List cards."""
    with db_session() as session:
        cards = list_cards(
            session, current_user(session, user_email), include_inactive=include_inactive
        )

        if not cards:
            console.print("[yellow]No cards found. Create one with 'card create'.[/yellow]")
            return

        table = Table(title="Cards")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Type", style="yellow")
        table.add_column("Number")
        table.add_column("Balance", style="magenta", justify="right")
        table.add_column("Account")

        for c in cards:
            table.add_row(
                c.id,
                c.name,
                c.type.value,
                f"**** {c.last_four_digits}",
                money(c.balance, c.account.currency),
                c.account.name,
            )
        console.print(table)


@card.command()
@user_option
@click.argument("card_id")
@handle_errors
def show(user_email: str, card_id: str) -> None:
    """Show card details and this month's usage."""
    with db_session() as session:
        detail = get_card_detail(session, current_user(session, user_email), card_id)
        c = detail.card
        currency = c.account.currency

        console.print(f"\n[bold cyan]Card: {c.name}[/bold cyan] ({c.type.value})")
        console.print(f"ID: {c.id}")
        console.print(f"Number: **** {c.last_four_digits}")
        console.print(f"Account: {c.account.name}")
        console.print(f"Monthly Usage: {detail.monthly_usage.format()}")
        if c.credit_limit is not None:
            console.print(f"Credit Limit: {money(c.credit_limit, currency)}")
        if detail.available_credit is not None:
            console.print(f"Available Credit: {detail.available_credit.format()}")
        if c.monthly_limit is not None:
            console.print(f"Monthly Limit: {money(c.monthly_limit, currency)}")
        if c.type in (CardType.DEBIT, CardType.PREPAID):
            console.print(f"Card Balance: {money(c.balance, currency)}")

        if detail.recent_transactions:
            console.print("\n[bold]Recent Transactions:[/bold]")
            for t in detail.recent_transactions:
                console.print(f"├─ {t.date} {t.type.value} {money(t.amount, t.currency)}")


@card.command()
@user_option
@click.argument("card_id")
@click.option("--amount", type=Decimal, required=True, help="Amount to load")
@click.option("--from-account", "from_account_id", required=True, help="Source account ID")
@handle_errors
def charge(user_email: str, card_id: str, amount: Decimal, from_account_id: str) -> None:
    """Load a prepaid card from an account."""

    def operation(session: Session) -> Transaction:
        return charge_prepaid_card(
            session, current_user(session, user_email), card_id, amount, from_account_id
        )

    record = run_atomic(operation)
    console.print(f"[green]Charged {money(record.amount, record.currency)} onto the card.[/green]")


@card.command()
@user_option
@click.argument("card_id")
@click.option("--amount", type=Decimal, required=True)
@click.option("--currency", required=True)
@click.option("--description", required=True)
@click.option("--category", "category_id", default=None, help="Category ID")
@handle_errors
def pay(
    user_email: str,
    card_id: str,
    amount: Decimal,
    currency: str,
    description: str,
    category_id: Optional[str],
) -> None:
    """Pay with a card."""

    def operation(session: Session) -> Transaction:
        return pay_card(
            session,
            current_user(session, user_email),
            card_id,
            amount,
            currency,
            description,
            category_id,
        )

    expense = run_atomic(operation)
    console.print(f"[green]Paid {money(expense.amount, expense.currency)}.[/green]")
    console.print(f"Transaction ID: {expense.id}")


@card.command()
@user_option
@click.argument("card_id")
@handle_errors
def delete(user_email: str, card_id: str) -> None:
    """Delete a card (deactivates it when it has history)."""

    def operation(session: Session) -> DeletionOutcome:
        return delete_card(session, current_user(session, user_email), card_id)

    outcome = run_atomic(operation)
    if outcome == DeletionOutcome.DEACTIVATED:
        console.print("[yellow]Card has history and was deactivated.[/yellow]")
    else:
        console.print("[green]Card deleted.[/green]")
