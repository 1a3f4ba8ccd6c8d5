"""Main CLI application for kasboek.

This module provides the unified entry point for all kasboek CLI operations,
organizing commands into groups for transactions, imports, rules, reports and
configuration.
"""

import logging
from typing import Annotated

import typer

from ..config import set_current_profile
from ..logging import setup_logging
from ..utils.user_config import get_default_profile
from .commands import (
    accounts,
    backup,
    categories,
    config,
    imports,
    reports,
    rules,
    templates,
    transactions,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="kasboek",
    help="Kasboek: personal bookkeeping for bank CSV exports",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Profile to use (e.g., alice, household). Default: configured default",
            envvar="KASBOEK_PROFILE",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose debug logging",
        ),
    ] = False,
) -> None:
    """Global options for kasboek CLI.

    Each profile keeps its own data in data/<profile>/ and may have its own
    .env.<profile> file and saved API connection.

    Examples:
      kasboek --profile=alice tx list
      kasboek -p household report matrix --offset -6

    Can also be set via KASBOEK_PROFILE environment variable.
    """
    setup_logging(cli_mode=True, verbose=verbose)

    selected = profile or get_default_profile() or "default"
    try:
        set_current_profile(selected)
    except ValueError as e:
        logger.error(f"❌ Invalid profile: {selected}")
        raise typer.BadParameter(str(e)) from e

    logger.debug(f"👤 Using profile: {selected}")


# Add command groups
app.add_typer(config.app, name="config", help="User configuration management")
app.add_typer(transactions.app, name="tx", help="Manage transactions")
app.add_typer(imports.app, name="import", help="Import bank CSV exports")
app.add_typer(rules.app, name="rules", help="Manage categorization rules")
app.add_typer(categories.app, name="categories", help="Manage categories")
app.add_typer(accounts.app, name="accounts", help="Manage account names")
app.add_typer(templates.app, name="templates", help="Manage CSV mapping templates")
app.add_typer(reports.app, name="report", help="Reports and charts")
app.add_typer(backup.app, name="backup", help="Backup, restore and demo data")


def main() -> None:
    """Entry point for the kasboek CLI application."""
    app()


if __name__ == "__main__":
    main()
