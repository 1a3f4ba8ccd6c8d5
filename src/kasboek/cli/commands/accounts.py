"""Account commands for kasboek CLI."""

import logging
from typing import Annotated

import typer

from .common import CLI_ERRORS, open_ledger

app = typer.Typer(help="Manage account names", no_args_is_help=True)
logger = logging.getLogger(__name__)


@app.command("list")
def list_accounts() -> None:
    """List account numbers seen in transactions with their friendly names."""
    try:
        with open_ledger() as ledger:
            rows = [
                (number, ledger.get_account_name(number))
                for number in ledger.unique_account_numbers()
            ]
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not rows:
        print("No accounts found")
        return

    for number, name in rows:
        print(f"{number:<24} {name}")


@app.command("name")
def name_account(
    account_number: Annotated[str, typer.Argument(help="Account number (IBAN)")],
    name: Annotated[str, typer.Argument(help="Friendly name, empty to clear")],
) -> None:
    """Give an account number a friendly name.

    Example:
        kasboek accounts name NL01BANK0123456789 Betaalrekening
    """
    try:
        with open_ledger() as ledger:
            ledger.set_account_name(account_number, name)
            ledger.save_account_names()
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Saved name for {account_number}")
