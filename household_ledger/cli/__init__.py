"""CLI entry point for household-ledger."""

import logging
import sys
import traceback

import click
from rich.console import Console

from household_ledger import __version__
from household_ledger.cli import (
    account,
    budget,
    card,
    rates,
    scheduled,
    summary,
    transaction,
    user,
)
from household_ledger.cli import init as init_cmd
from household_ledger.lib.errors import LedgerError, format_error_message, get_error_color
from household_ledger.lib.logging_config import setup_logging

console = Console()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
@click.pass_context
def main(ctx: click.Context, debug: bool, log_file: str | None) -> None:
    """Household Ledger - Track accounts, cards and schedules in several currencies."""
    ctx.ensure_object(dict)
    ctx.obj["DEBUG"] = debug
    setup_logging(logging.DEBUG if debug else logging.WARNING, log_file=log_file)


def handle_exception(
    exc_type: type[BaseException], exc_value: BaseException, exc_traceback: object
) -> None:
    """
    Global exception handler for CLI.

    Formats exceptions with Rich colors and provides user-friendly messages.
    """
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)  # type: ignore[arg-type]
        return

    color = get_error_color(exc_value) if isinstance(exc_value, Exception) else "red"
    message = (
        format_error_message(exc_value) if isinstance(exc_value, Exception) else str(exc_value)
    )
    console.print(f"\n[{color}]✗ Error: {message}[/{color}]\n")

    debug_mode = "--debug" in sys.argv
    if not isinstance(exc_value, LedgerError):
        console.print("[dim]Unexpected error occurred. Use --debug for full traceback.[/dim]")
    if debug_mode:
        console.print("[dim]Traceback:[/dim]")
        traceback.print_exception(exc_value)

    sys.exit(1)


sys.excepthook = handle_exception


@main.command()
def version() -> None:
    """Show version information."""
    click.echo(f"household-ledger version {__version__}")


main.add_command(init_cmd.init)
main.add_command(user.user)
main.add_command(user.category)
main.add_command(account.account)
main.add_command(card.card)
main.add_command(transaction.transaction)
main.add_command(scheduled.scheduled)
main.add_command(rates.rates)
main.add_command(budget.budget)
main.add_command(summary.summary)


if __name__ == "__main__":
    main()
