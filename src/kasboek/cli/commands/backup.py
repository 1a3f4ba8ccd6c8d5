"""Backup, restore and demo data commands for kasboek CLI."""

import logging
from datetime import date
from pathlib import Path

import typer

from kasboek.config import get_current_profile, get_export_path
from kasboek.utils.file import read_text_file

from .common import CLI_ERRORS, open_ledger

app = typer.Typer(help="Backup, restore and demo data", no_args_is_help=True)
logger = logging.getLogger(__name__)


@app.command("export")
def export_backup(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Backup file (default: profile exports dir)"
    ),
) -> None:
    """Write all transactions to a JSON backup file."""
    try:
        with open_ledger() as ledger:
            content = ledger.export_backup()
            count = len(ledger.transactions)

        if output is None:
            output = get_export_path() / f"backup_{date.today().isoformat()}.json"
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Backed up {count} transaction(s) to {output}")


@app.command("restore")
def restore_backup(
    backup_file: Path = typer.Argument(..., help="JSON backup to restore"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Replace ALL stored transactions with those from a JSON backup."""
    if not yes and not typer.confirm(
        "This overwrites all current transactions with the backup. Continue?",
        default=False,
    ):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        content = read_text_file(backup_file)
        with open_ledger() as ledger:
            count = ledger.restore_backup(content)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Restored {count} transaction(s)")


@app.command("demo")
def load_demo_data(
    seed: int | None = typer.Option(None, "--seed", help="Random seed for repeatable data"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Wipe ALL data of the active profile and load generated demo data."""
    profile = get_current_profile()
    if not yes and not typer.confirm(
        f"Delete all data of profile '{profile}' and replace it with demo data?",
        default=False,
    ):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        with open_ledger() as ledger:
            count = ledger.load_dummy_data(seed=seed)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Loaded demo data: {count} transactions, 3 rules")
