"""Exchange rate subcommands."""

from decimal import Decimal

import click
from rich.table import Table
from sqlalchemy.orm import Session

from household_ledger.cli.common import console, handle_errors
from household_ledger.lib.db import db_session, run_atomic
from household_ledger.lib.errors import MissingExchangeRateError
from household_ledger.lib.money import Money
from household_ledger.models import ExchangeRate
from household_ledger.services.exchange_rates import (
    list_latest_rates,
    load_rate_table,
    record_exchange_rates,
)


@click.group()
def rates() -> None:
    """Record and use exchange rates."""
    pass


@rates.command()
@click.argument("from_currency")
@click.argument("to_currency")
@click.argument("rate", type=Decimal)
@click.option("--source", default="manual", show_default=True)
@handle_errors
def add(from_currency: str, to_currency: str, rate: Decimal, source: str) -> None:
    """Record a rate: one FROM_CURRENCY buys RATE TO_CURRENCY."""
    entry = {
        "from_currency": from_currency,
        "to_currency": to_currency,
        "rate": rate,
        "source": source,
    }

    def operation(session: Session) -> list[ExchangeRate]:
        return record_exchange_rates(session, [entry])

    (stored,) = run_atomic(operation)
    console.print(
        f"[green]Recorded 1 {stored.from_currency} = {stored.rate} {stored.to_currency}[/green]"
    )


@rates.command("list")
@handle_errors
def list_rates_cmd() -> None:
    """Show the latest rate per currency pair."""
    with db_session() as session:
        latest = list_latest_rates(session)

        if not latest:
            console.print("[yellow]No exchange rates recorded. Add one with 'rates add'.[/yellow]")
            return

        table = Table(title="Exchange Rates")
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Rate", style="magenta", justify="right")
        table.add_column("Observed")
        table.add_column("Source", style="dim")
        for r in latest:
            table.add_row(
                r.from_currency,
                r.to_currency,
                f"{r.rate:f}",
                r.observed_at.strftime("%Y-%m-%d %H:%M"),
                r.source,
            )
        console.print(table)


@rates.command()
@click.argument("amount", type=Decimal)
@click.argument("from_currency")
@click.argument("to_currency")
@handle_errors
def convert(amount: Decimal, from_currency: str, to_currency: str) -> None:
    """Convert AMOUNT from one currency to another using the latest rates."""
    with db_session() as session:
        table = load_rate_table(session)

    source = Money(amount, from_currency)
    converted = table.convert(source, to_currency)
    if converted is None:
        raise MissingExchangeRateError(source.currency, to_currency.upper())
    console.print(f"{source.format()} = [bold]{converted.format()}[/bold]")
