"""Budget subcommands."""

from datetime import datetime
from decimal import Decimal

import click
from rich.table import Table
from sqlalchemy.orm import Session

from household_ledger.cli.common import DATE, console, current_user, handle_errors, user_option
from household_ledger.lib.db import db_session, run_atomic
from household_ledger.models import Budget
from household_ledger.services.budget_service import budget_progress, create_budget, list_budgets
from household_ledger.services.exchange_rates import load_rate_table


@click.group()
def budget() -> None:
    """Manage category budgets."""
    pass


@budget.command()
@user_option
@click.option("--name", required=True)
@click.option("--category", "category_id", required=True, help="Category ID")
@click.option("--amount", type=Decimal, required=True)
@click.option("--currency", required=True)
@click.option("--start", type=DATE, required=True)
@click.option("--end", type=DATE, required=True)
@handle_errors
def create(
    user_email: str,
    name: str,
    category_id: str,
    amount: Decimal,
    currency: str,
    start: datetime,
    end: datetime,
) -> None:
    """Create a budget for a category and period."""
    fields = {
        "name": name,
        "category_id": category_id,
        "amount": amount,
        "currency": currency,
        "start_date": start.date(),
        "end_date": end.date(),
    }

    def operation(session: Session) -> Budget:
        return create_budget(session, current_user(session, user_email), fields)

    created = run_atomic(operation)
    console.print("[green]Budget created successfully![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"{created.name}: {created.money.format()}")
    console.print(f"Period: {created.start_date} - {created.end_date}")


@budget.command("list")
@user_option
@handle_errors
def list_budgets_cmd(user_email: str) -> None:
    """List active budgets with spending progress."""
    with db_session() as session:
        user = current_user(session, user_email)
        budgets = list_budgets(session, user)

        if not budgets:
            console.print("[yellow]No budgets found. Create one with 'budget create'.[/yellow]")
            return

        rate_table = load_rate_table(session)
        table = Table(title="Budgets")
        table.add_column("Name", style="green")
        table.add_column("Period")
        table.add_column("Budget", justify="right")
        table.add_column("Spent", style="magenta", justify="right")
        table.add_column("Remaining", justify="right")
        table.add_column("Used", justify="right")

        for b in budgets:
            progress = budget_progress(session, user, b.id, rate_table)
            color = "red" if progress.percent_used > 100 else "green"
            table.add_row(
                b.name,
                f"{b.start_date} - {b.end_date}",
                b.money.format(),
                progress.spent.format(),
                progress.remaining.format(),
                f"[{color}]{progress.percent_used}%[/{color}]",
            )
        console.print(table)
