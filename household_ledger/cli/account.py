"""Account subcommands."""

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
from household_ledger.models import Account, AccountType
from household_ledger.services.ledger_service import (
    DeletionOutcome,
    create_account,
    delete_account,
    get_account,
    list_accounts,
    list_transactions,
)


@click.group()
def account() -> None:
    """Manage cash and bank accounts."""
    pass


@account.command()
@user_option
@click.option("--name", required=True, help="Account name")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    required=True,
)
@click.option("--currency", required=True, help="Account currency (JPY, USD, ...)")
@click.option("--balance", type=Decimal, default=Decimal("0"), help="Opening balance")
@click.option("--description", default=None)
@click.option("--rate", "fixed_deposit_rate", type=Decimal, default=None, help="Fixed deposit %")
@click.option("--maturity", "fixed_deposit_maturity", type=DATE, default=None)
@handle_errors
def create(
    user_email: str,
    name: str,
    account_type: str,
    currency: str,
    balance: Decimal,
    description: Optional[str],
    fixed_deposit_rate: Optional[Decimal],
    fixed_deposit_maturity: Optional[datetime],
) -> None:
    """Open a new account."""
    fields = {
        "name": name,
        "type": account_type.upper(),
        "currency": currency,
        "balance": balance,
        "description": description,
    }
    if fixed_deposit_rate is not None:
        fields["fixed_deposit_rate"] = fixed_deposit_rate
    if fixed_deposit_maturity is not None:
        fields["fixed_deposit_maturity"] = as_date(fixed_deposit_maturity)

    def operation(session: Session) -> Account:
        return create_account(session, current_user(session, user_email), fields)

    created = run_atomic(operation)
    console.print("[green]Account created successfully![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"Name: {created.name}")
    console.print(f"Balance: {money(created.balance, created.currency)}")


@account.command("list")
@user_option
@click.option("--all", "include_inactive", is_flag=True, help="Include deactivated accounts")
@handle_errors
def list_accounts_cmd(user_email: str, include_inactive: bool) -> None:
    """List accounts with balances."""
    with db_session() as session:
        accounts = list_accounts(
            session, current_user(session, user_email), include_inactive=include_inactive
        )

        if not accounts:
            console.print("[yellow]No accounts found. Create one with 'account create'.[/yellow]")
            return

        table = Table(title="Accounts")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Type", style="yellow")
        table.add_column("Balance", style="magenta", justify="right")
        table.add_column("Active")

        for a in accounts:
            table.add_row(
                a.id,
                a.name,
                a.type.value,
                money(a.balance, a.currency),
                "yes" if a.is_active else "no",
            )
        console.print(table)


@account.command()
@user_option
@click.argument("account_id")
@handle_errors
def show(user_email: str, account_id: str) -> None:
    """Show account details and recent transactions."""
    with db_session() as session:
        user = current_user(session, user_email)
        a = get_account(session, user, account_id)

        console.print(f"\n[bold cyan]Account: {a.name}[/bold cyan]")
        console.print(f"ID: {a.id}")
        console.print(f"Type: {a.type.value}")
        console.print(f"Balance: {money(a.balance, a.currency)}")
        if a.fixed_deposit_rate is not None:
            console.print(f"Fixed Deposit Rate: {a.fixed_deposit_rate}%")
            console.print(f"Maturity: {a.fixed_deposit_maturity}")
        if not a.is_active:
            console.print("[yellow]Deactivated[/yellow]")

        transactions = list_transactions(session, user, account_id=a.id, limit=10)
        if transactions:
            console.print("\n[bold]Recent Transactions:[/bold]")
            table = Table()
            table.add_column("Date", style="cyan")
            table.add_column("Type", style="yellow")
            table.add_column("Amount", style="magenta", justify="right")
            table.add_column("Description")
            for t in transactions:
                table.add_row(
                    str(t.date), t.type.value, money(t.amount, t.currency), t.description
                )
            console.print(table)


@account.command()
@user_option
@click.argument("account_id")
@handle_errors
def delete(user_email: str, account_id: str) -> None:
    """Delete an account (deactivates it when it has history)."""

    def operation(session: Session) -> DeletionOutcome:
        return delete_account(session, current_user(session, user_email), account_id)

    outcome = run_atomic(operation)
    if outcome == DeletionOutcome.DEACTIVATED:
        console.print("[yellow]Account has history and was deactivated.[/yellow]")
    else:
        console.print("[green]Account deleted.[/green]")
