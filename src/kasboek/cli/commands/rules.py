"""Categorization rule commands for kasboek CLI."""

import logging
from typing import Annotated

import typer

from kasboek.exceptions import LedgerValidationError

from .common import CLI_ERRORS, open_ledger

app = typer.Typer(help="Manage keyword categorization rules", no_args_is_help=True)
logger = logging.getLogger(__name__)


@app.command("list")
def list_rules() -> None:
    """List rules in evaluation order (the first match wins)."""
    try:
        with open_ledger() as ledger:
            rules = list(ledger.rules)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    if not rules:
        print("No rules defined")
        return

    for rule in rules:
        rename = f'  -> "{rule.new_description}"' if rule.new_description else ""
        print(f"{rule.id}  '{rule.keyword}' => {rule.category}{rename}")


@app.command("add")
def add_rule(
    keyword: Annotated[str, typer.Argument(help="Text to look for in descriptions")],
    category: Annotated[str, typer.Argument(help="Category to assign")],
    new_description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="Replace the description as well"),
    ] = None,
    apply: Annotated[
        bool,
        typer.Option("--apply", help="Also apply the rule to existing transactions"),
    ] = False,
) -> None:
    """Add a rule. Matching is a case-insensitive substring match.

    Examples:
        kasboek rules add "albert heijn" Boodschappen
        kasboek rules add netflix Abonnementen -d "Netflix Abonnement" --apply
    """
    try:
        with open_ledger() as ledger:
            rule = ledger.add_rule(keyword, category, new_description)
            print(f"✅ Added rule '{rule.keyword}' => {rule.category} (id={rule.id})")
            if apply:
                count = ledger.apply_rule_to_existing(rule)
                print(f"✅ Updated {count} existing transaction(s)")
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e


@app.command("delete")
def delete_rule(
    rule_id: Annotated[str, typer.Argument(help="Id of the rule")],
) -> None:
    """Delete a rule. Transactions it already categorized are kept as they are."""
    try:
        with open_ledger() as ledger:
            ledger.delete_rule(rule_id)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Deleted rule {rule_id}")


@app.command("apply")
def apply_rule(
    rule_id: Annotated[str, typer.Argument(help="Id of the rule")],
) -> None:
    """Apply a rule to all existing transactions that match it."""
    try:
        with open_ledger() as ledger:
            rule = next((r for r in ledger.rules if r.id == rule_id), None)
            if rule is None:
                raise LedgerValidationError(f"Rule not found: {rule_id}")
            count = ledger.apply_rule_to_existing(rule)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Rule applied: {count} transaction(s) updated")
