"""User and category subcommands."""

from typing import Optional

import click
from rich.table import Table
from sqlalchemy.orm import Session

from household_ledger.cli.common import console, current_user, handle_errors, user_option
from household_ledger.lib.db import db_session, run_atomic
from household_ledger.models import Category, CategoryType
from household_ledger.services.ledger_service import (
    create_category,
    create_user,
    list_categories,
)


@click.group()
def user() -> None:
    """Manage ledger users."""
    pass


@user.command("create")
@click.option("--email", required=True, help="Login email")
@click.option("--name", default=None, help="Display name")
@click.option("--base-currency", default=None, help="Reporting currency (default: JPY)")
@handle_errors
def create_user_cmd(email: str, name: Optional[str], base_currency: Optional[str]) -> None:
    """Create a user."""
    created = run_atomic(create_user, email, name, base_currency)
    console.print("[green]User created successfully![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"Email: {created.email}")
    console.print(f"Base Currency: {created.base_currency}")


@click.group()
def category() -> None:
    """Manage income and expense categories."""
    pass


@category.command("create")
@user_option
@click.option("--name", required=True, help="Category name")
@click.option(
    "--type",
    "category_type",
    type=click.Choice([t.value for t in CategoryType], case_sensitive=False),
    required=True,
)
@click.option("--color", default="#6B7280", help="Display colour")
@handle_errors
def create_category_cmd(user_email: str, name: str, category_type: str, color: str) -> None:
    """Create a category."""

    def operation(session: Session) -> Category:
        return create_category(
            session, current_user(session, user_email), name, category_type.upper(), color
        )

    created = run_atomic(operation)
    console.print("[green]Category created successfully![/green]")
    console.print(f"ID: {created.id}")
    console.print(f"Name: {created.name} ({created.type.value})")


@category.command("list")
@user_option
@handle_errors
def list_categories_cmd(user_email: str) -> None:
    """List categories."""
    with db_session() as session:
        categories = list_categories(session, current_user(session, user_email))

        if not categories:
            console.print("[yellow]No categories found. Add one with 'category create'.[/yellow]")
            return

        table = Table(title="Categories")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Type", style="yellow")
        for c in categories:
            table.add_row(c.id, c.name, c.type.value)
        console.print(table)
