"""Transaction subcommands."""

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
from household_ledger.models import Transaction, TransactionType
from household_ledger.services.ledger_service import list_transactions, record_transaction
from household_ledger.services.transaction_stats import StatsPeriod, transaction_stats


@click.group()
def transaction() -> None:
    """Record and browse transactions."""
    pass


@transaction.command()
@user_option
@click.option("--account", "account_id", required=True, help="Account ID")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
    required=True,
)
@click.option("--amount", type=Decimal, required=True, help="Positive amount")
@click.option("--currency", required=True, help="Currency (must match the account)")
@click.option("--date", "on", type=DATE, default=None, help="Transaction date (default: today)")
@click.option("--description", default="", help="Description")
@click.option("--category", "category_id", default=None, help="Category ID")
@click.option("--card", "card_id", default=None, help="Card ID")
@click.option("--notes", default=None)
@handle_errors
def record(
    user_email: str,
    account_id: str,
    transaction_type: str,
    amount: Decimal,
    currency: str,
    on: Optional[datetime],
    description: str,
    category_id: Optional[str],
    card_id: Optional[str],
    notes: Optional[str],
) -> None:
    """Record an income, expense or transfer."""
    fields = {
        "account_id": account_id,
        "type": transaction_type.upper(),
        "amount": amount,
        "currency": currency,
        "date": as_date(on) or datetime.now().date(),
        "description": description,
        "category_id": category_id,
        "card_id": card_id,
        "notes": notes,
    }

    def operation(session: Session) -> Transaction:
        return record_transaction(session, current_user(session, user_email), fields)

    created = run_atomic(operation)
    console.print("[green]Transaction recorded![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"{created.type.value}: {money(created.amount, created.currency)}")


@transaction.command("list")
@user_option
@click.option("--account", "account_id", default=None, help="Filter by account")
@click.option("--card", "card_id", default=None, help="Filter by card")
@click.option("--from", "start", type=DATE, default=None, help="Start date")
@click.option("--to", "end", type=DATE, default=None, help="End date")
@click.option("--limit", type=int, default=50, show_default=True)
@handle_errors
def list_transactions_cmd(
    user_email: str,
    account_id: Optional[str],
    card_id: Optional[str],
    start: Optional[datetime],
    end: Optional[datetime],
    limit: int,
) -> None:
    """List transactions, newest first."""
    with db_session() as session:
        transactions = list_transactions(
            session,
            current_user(session, user_email),
            account_id=account_id,
            card_id=card_id,
            start_date=as_date(start),
            end_date=as_date(end),
            limit=limit,
        )

        if not transactions:
            console.print("[yellow]No transactions found.[/yellow]")
            return

        table = Table(title="Transactions")
        table.add_column("Date", style="cyan")
        table.add_column("Type", style="yellow")
        table.add_column("Amount", style="magenta", justify="right")
        table.add_column("Description")
        table.add_column("Account", style="green")

        for t in transactions:
            sign = "-" if t.type == TransactionType.EXPENSE else "+"
            table.add_row(
                str(t.date),
                t.type.value,
                f"{sign}{money(t.amount, t.currency)}",
                t.description,
                t.account.name,
            )
        console.print(table)


@transaction.command()
@user_option
@click.option(
    "--period",
    type=click.Choice([p.value for p in StatsPeriod], case_sensitive=False),
    default=StatsPeriod.MONTH.value,
    show_default=True,
    help="Window ending today",
)
@click.option("--from", "start", type=DATE, default=None, help="Custom range start")
@click.option("--to", "end", type=DATE, default=None, help="Custom range end")
@click.option("--currency", default=None, help="Only this currency")
@click.option("--account", "account_id", default=None, help="Only this account")
@click.option("--daily", is_flag=True, help="Show day-by-day totals")
@handle_errors
def stats(
    user_email: str,
    period: str,
    start: Optional[datetime],
    end: Optional[datetime],
    currency: Optional[str],
    account_id: Optional[str],
    daily: bool,
) -> None:
    """Summarize income and spending over a period."""
    with db_session() as session:
        report = transaction_stats(
            session,
            current_user(session, user_email),
            period=period.lower(),
            start_date=as_date(start),
            end_date=as_date(end),
            currency=currency,
            account_id=account_id,
        )

    console.print(
        f"\n[bold]Transaction Statistics[/bold] "
        f"({report.start_date} to {report.end_date}, {report.days} days)\n"
    )
    if not report.totals:
        console.print("[yellow]No transactions in this period.[/yellow]")
        return

    totals = Table(title="Totals")
    totals.add_column("Currency", style="cyan")
    totals.add_column("Income", style="green", justify="right")
    totals.add_column("Expense", style="red", justify="right")
    totals.add_column("Net", style="magenta", justify="right")
    totals.add_column("Count", justify="right")
    for t in report.totals:
        totals.add_row(
            t.currency,
            money(t.income, t.currency),
            money(t.expense, t.currency),
            money(t.net_income, t.currency),
            str(t.count),
        )
    console.print(totals)

    if report.top_expense_categories:
        top = Table(title="Top Expense Categories")
        top.add_column("Category", style="cyan")
        top.add_column("Amount", style="red", justify="right")
        top.add_column("Count", justify="right")
        for c in report.top_expense_categories:
            top.add_row(c.category_name or "-", money(c.amount, c.currency), str(c.count))
        console.print(top)

    accounts = Table(title="By Account")
    accounts.add_column("Account", style="green")
    accounts.add_column("Net Change", style="magenta", justify="right")
    accounts.add_column("Count", justify="right")
    for a in report.by_account:
        accounts.add_row(a.account_name, money(a.net_change, a.currency), str(a.count))
    console.print(accounts)

    if daily:
        days = Table(title="Daily")
        days.add_column("Date", style="cyan")
        days.add_column("Type", style="yellow")
        days.add_column("Amount", justify="right")
        days.add_column("Count", justify="right")
        for d in report.daily:
            days.add_row(str(d.day), d.type.value, money(d.amount, d.currency), str(d.count))
        console.print(days)
