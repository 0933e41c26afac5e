"""Household summary command."""

from datetime import date

import click

from household_ledger.cli.common import console, current_user, handle_errors, user_option
from household_ledger.lib.db import db_session
from household_ledger.models import ScheduledStatus
from household_ledger.services.exchange_rates import load_rate_table
from household_ledger.services.ledger_service import list_accounts, summarize_balances
from household_ledger.services.reminder_service import (
    build_reminder_notification,
    get_pending_reminders,
)
from household_ledger.services.scheduled_service import list_scheduled_transactions


@click.command()
@user_option
@handle_errors
def summary(user_email: str) -> None:
    """Show total balance in the base currency, overdue items and reminders."""
    today = date.today()
    with db_session() as session:
        user = current_user(session, user_email)
        rate_table = load_rate_table(session)
        totals = summarize_balances(session, user, rate_table)
        accounts = list_accounts(session, user)

        console.print(f"\n[bold cyan]Household Summary ({user.email})[/bold cyan]")
        console.print(f"├─ Accounts: {len(accounts)}")
        console.print(f"└─ Total Balance: [bold]{totals.total.format()}[/bold]")
        if totals.skipped_currencies:
            console.print(
                f"[yellow]Not included (no exchange rate to {user.base_currency}): "
                f"{', '.join(totals.skipped_currencies)}[/yellow]"
            )

        overdue = list_scheduled_transactions(session, user, ScheduledStatus.OVERDUE, today)
        if overdue:
            console.print(f"\n[bold red]Overdue ({len(overdue)}):[/bold red]")
            for s in overdue:
                console.print(f"├─ {s.due_date} {s.description} {s.money.format()}")

        reminders = get_pending_reminders(session, today, user)
        if reminders:
            console.print("\n[bold]Reminders:[/bold]")
            for s in reminders:
                notification = build_reminder_notification(s, today)
                console.print(f"├─ {notification.title}")
