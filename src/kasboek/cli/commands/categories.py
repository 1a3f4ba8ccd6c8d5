"""Category commands for kasboek CLI."""

import logging
from typing import Annotated

import typer

from .common import CLI_ERRORS, open_ledger

app = typer.Typer(help="Manage categories", no_args_is_help=True)
logger = logging.getLogger(__name__)


@app.command("list")
def list_categories() -> None:
    """List used and manually added categories with their transaction counts."""
    try:
        with open_ledger() as ledger:
            categories = ledger.all_categories()
            manual = set(ledger.manual_categories)
            counts: dict[str, int] = {}
            for tx in ledger.transactions:
                counts[tx.category] = counts.get(tx.category, 0) + 1
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    for category in categories:
        marker = " (manual)" if category in manual else ""
        print(f"{category:<24} {counts.get(category, 0):>5}{marker}")


@app.command("add")
def add_category(
    name: Annotated[str, typer.Argument(help="New category name")],
) -> None:
    """Add a category that has no transactions yet."""
    try:
        with open_ledger() as ledger:
            added = ledger.add_manual_category(name)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Category '{added}' added")


@app.command("delete")
def delete_category(
    name: Annotated[str, typer.Argument(help="Manual category to remove")],
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")
    ] = False,
) -> None:
    """Remove a manual category. Existing transactions are not changed."""
    if not yes and not typer.confirm(f"Delete category '{name}'?", default=False):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        with open_ledger() as ledger:
            ledger.delete_manual_category(name)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Category '{name}' deleted")


@app.command("rename")
def rename_category(
    old: Annotated[str, typer.Argument(help="Current category name")],
    new: Annotated[str, typer.Argument(help="New category name")],
) -> None:
    """Rename a category on all transactions, rules and the manual list."""
    try:
        with open_ledger() as ledger:
            count = ledger.rename_category(old, new)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Renamed '{old}' to '{new}' ({count} transaction(s) updated)")
