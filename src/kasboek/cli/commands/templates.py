"""CSV mapping template commands for kasboek CLI."""

import logging
from typing import Annotated

import typer

from .common import CLI_ERRORS, open_ledger

app = typer.Typer(help="Manage CSV mapping templates", no_args_is_help=True)
logger = logging.getLogger(__name__)


@app.command("list")
def list_templates() -> None:
    """List saved mapping templates."""
    try:
        with open_ledger() as ledger:
            names = [template.name for template in ledger.templates]
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not names:
        print("No templates saved")
    for name in sorted(names):
        print(name)


@app.command("show")
def show_template(
    name: Annotated[str, typer.Argument(help="Template name")],
) -> None:
    """Show the column indexes of a template."""
    try:
        with open_ledger() as ledger:
            mapping = ledger.load_mapping_template(name)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"📋 Template: {name}")
    for field_name, value in mapping.model_dump().items():
        print(f"   {field_name}: {'-' if value is None else value}")


@app.command("delete")
def delete_template(
    name: Annotated[str, typer.Argument(help="Template name")],
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")
    ] = False,
) -> None:
    """Delete a saved mapping template."""
    if not yes and not typer.confirm(f"Delete template '{name}'?", default=False):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        with open_ledger() as ledger:
            ledger.delete_mapping_template(name)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Template '{name}' deleted")
