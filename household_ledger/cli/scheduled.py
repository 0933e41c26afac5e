"""Scheduled transaction subcommands."""

from datetime import date, datetime
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
from household_ledger.models import (
    Frequency,
    ScheduledStatus,
    ScheduledTransaction,
    Transaction,
    TransactionType,
)
from household_ledger.services.scheduled_service import (
    cancel_scheduled_transaction,
    complete_scheduled_transaction,
    create_scheduled_transaction,
    due_within,
    effective_status,
    list_scheduled_transactions,
)

STATUS_STYLES = {
    ScheduledStatus.PENDING: "cyan",
    ScheduledStatus.OVERDUE: "red",
    ScheduledStatus.COMPLETED: "green",
    ScheduledStatus.CANCELLED: "dim",
}


@click.group()
def scheduled() -> None:
    """Plan future and recurring transactions."""
    pass


@scheduled.command()
@user_option
@click.option("--account", "account_id", required=True, help="Account ID")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
    required=True,
)
@click.option("--amount", type=Decimal, required=True)
@click.option("--currency", required=True)
@click.option("--due", type=DATE, required=True, help="Due date (YYYY-MM-DD)")
@click.option("--description", default="")
@click.option("--category", "category_id", default=None, help="Category ID")
@click.option(
    "--frequency",
    type=click.Choice([f.value for f in Frequency], case_sensitive=False),
    default=None,
    help="Repeat with this frequency",
)
@click.option("--until", "end_date", type=DATE, default=None, help="Last date for repeats")
@click.option("--reminder-days", type=int, default=3, show_default=True)
@handle_errors
def create(
    user_email: str,
    account_id: str,
    transaction_type: str,
    amount: Decimal,
    currency: str,
    due: datetime,
    description: str,
    category_id: Optional[str],
    frequency: Optional[str],
    end_date: Optional[datetime],
    reminder_days: int,
) -> None:
    """Schedule a transaction."""
    fields = {
        "account_id": account_id,
        "type": transaction_type.upper(),
        "amount": amount,
        "currency": currency,
        "due_date": due.date(),
        "description": description,
        "category_id": category_id,
        "frequency": frequency.upper() if frequency else None,
        "is_recurring": frequency is not None,
        "end_date": as_date(end_date),
        "reminder_days": reminder_days,
    }

    def operation(session: Session) -> ScheduledTransaction:
        return create_scheduled_transaction(session, current_user(session, user_email), fields)

    created = run_atomic(operation)
    console.print("[green]Transaction scheduled![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"Due: {created.due_date}")


@scheduled.command("list")
@user_option
@click.option(
    "--status",
    type=click.Choice([s.value for s in ScheduledStatus], case_sensitive=False),
    default=None,
)
@click.option(
    "--upcoming",
    "upcoming_days",
    type=click.IntRange(min=0),
    default=None,
    help="Only pending items due within this many days",
)
@handle_errors
def list_scheduled_cmd(
    user_email: str, status: Optional[str], upcoming_days: Optional[int]
) -> None:
    """List scheduled transactions by due date."""
    if status and upcoming_days is not None:
        raise click.UsageError("--status and --upcoming cannot be combined")

    today = date.today()
    with db_session() as session:
        acting = current_user(session, user_email)
        if upcoming_days is not None:
            items = due_within(session, acting, upcoming_days, today)
        else:
            items = list_scheduled_transactions(
                session,
                acting,
                status=ScheduledStatus(status.upper()) if status else None,
                today=today,
            )

        if not items:
            console.print("[yellow]No scheduled transactions found.[/yellow]")
            return

        table = Table(title="Scheduled Transactions")
        table.add_column("ID", style="cyan")
        table.add_column("Due")
        table.add_column("Type", style="yellow")
        table.add_column("Amount", style="magenta", justify="right")
        table.add_column("Description")
        table.add_column("Repeats")
        table.add_column("Status")

        for s in items:
            current = effective_status(s, today)
            style = STATUS_STYLES[current]
            table.add_row(
                s.id,
                str(s.due_date),
                s.type.value,
                money(s.amount, s.currency),
                s.description,
                s.frequency.value if s.frequency else "-",
                f"[{style}]{current.value}[/{style}]",
            )
        console.print(table)


@scheduled.command()
@user_option
@click.argument("scheduled_id")
@handle_errors
def complete(user_email: str, scheduled_id: str) -> None:
    """Execute a scheduled transaction now."""

    def operation(
        session: Session,
    ) -> tuple[Transaction, Optional[ScheduledTransaction]]:
        return complete_scheduled_transaction(
            session, current_user(session, user_email), scheduled_id
        )

    created, next_occurrence = run_atomic(operation)
    console.print("[green]Scheduled transaction completed![/green]")
    console.print(f"Transaction ID: {created.id}")
    if next_occurrence is not None:
        console.print(f"Next occurrence due {next_occurrence.due_date} ({next_occurrence.id})")


@scheduled.command()
@user_option
@click.argument("scheduled_id")
@handle_errors
def cancel(user_email: str, scheduled_id: str) -> None:
    """Cancel a scheduled transaction."""

    def operation(session: Session) -> ScheduledTransaction:
        return cancel_scheduled_transaction(
            session, current_user(session, user_email), scheduled_id
        )

    run_atomic(operation)
    console.print("[green]Scheduled transaction cancelled.[/green]")
