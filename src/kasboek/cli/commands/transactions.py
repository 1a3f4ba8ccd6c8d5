"""Transaction commands: list, add, edit, delete, bulk edit and CSV export."""

import logging
from datetime import date
from pathlib import Path

import typer

from kasboek.config import get_export_path
from kasboek.filters import ALL, TransactionFilter
from kasboek.models import DEFAULT_CATEGORY, Transaction

from .common import CLI_ERRORS, format_amount, open_ledger

app = typer.Typer(help="Manage transactions", no_args_is_help=True)
logger = logging.getLogger(__name__)


def _build_filter(
    search: str,
    category: str,
    type_: str,
    account: str,
    date_from: str,
    date_to: str,
) -> TransactionFilter:
    if type_ not in (ALL, "income", "expense"):
        raise typer.BadParameter("--type must be income, expense or ALL")
    return TransactionFilter(
        search=search,
        category=category,
        type=type_,
        account=account,
        date_from=date_from,
        date_to=date_to,
    )


def _print_transaction(tx: Transaction, account_name: str) -> None:
    tags = f"  [{', '.join(tx.tags)}]" if tx.tags else ""
    print(
        f"{tx.date}  {format_amount(tx.signed_amount):>14}  {tx.category:<18} "
        f"{tx.description}  ({account_name}){tags}  id={tx.id}"
    )


@app.command("list")
def list_transactions(
    search: str = typer.Option("", "--search", "-s", help="Text in description, category or tags"),
    category: str = typer.Option(ALL, "--category", "-c", help="Only this category"),
    type_: str = typer.Option(ALL, "--type", "-t", help="income, expense or ALL"),
    account: str = typer.Option(ALL, "--account", "-a", help="Only this account number"),
    date_from: str = typer.Option("", "--from", help="Start date (YYYY-MM-DD, inclusive)"),
    date_to: str = typer.Option("", "--to", help="End date (YYYY-MM-DD, inclusive)"),
    limit: int = typer.Option(0, "--limit", "-n", help="Show at most N rows (0 = all)"),
) -> None:
    """List transactions, newest first.

    Examples:
        kasboek tx list --search albert --from 2025-01-01
        kasboek tx list --type expense --category Boodschappen -n 20
    """
    transaction_filter = _build_filter(search, category, type_, account, date_from, date_to)

    try:
        with open_ledger() as ledger:
            matching = transaction_filter.apply(ledger.transactions)
            shown = matching[:limit] if limit > 0 else matching
            for tx in shown:
                _print_transaction(tx, ledger.get_account_name(tx.account_number))
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"\n{len(shown)} of {len(matching)} matching transaction(s)")


@app.command("add")
def add_transaction(
    description: str = typer.Argument(..., help="Transaction description"),
    amount: float = typer.Argument(..., help="Amount (positive)"),
    tx_date: str = typer.Option(
        date.today().isoformat(), "--date", "-d", help="Booking date (YYYY-MM-DD)"
    ),
    type_: str = typer.Option("expense", "--type", "-t", help="income or expense"),
    category: str = typer.Option(DEFAULT_CATEGORY, "--category", "-c", help="Category"),
    account: str | None = typer.Option(None, "--account", "-a", help="Account number"),
    balance: float | None = typer.Option(None, "--balance", help="Balance after booking"),
    tags: list[str] | None = typer.Option(None, "--tag", help="Tag (repeatable)"),
) -> None:
    """Add a transaction. Categorization rules are applied to it.

    Example:
        kasboek tx add "Albert Heijn 1234" 23.45 --date 2025-03-01 --tag boodschappen
    """
    try:
        tx = Transaction(
            date=tx_date,
            description=description,
            amount=amount,
            type=type_,
            category=category,
            account_number=account,
            current_balance=balance,
            tags=tags or [],
        )
        with open_ledger() as ledger:
            saved = ledger.save_transaction(tx, is_new=True)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Added transaction {saved.id}: {saved.description} ({saved.category})")


@app.command("edit")
def edit_transaction(
    transaction_id: str = typer.Argument(..., help="Id of the transaction"),
    description: str | None = typer.Option(None, "--description", help="New description"),
    amount: float | None = typer.Option(None, "--amount", help="New amount"),
    tx_date: str | None = typer.Option(None, "--date", "-d", help="New booking date"),
    type_: str | None = typer.Option(None, "--type", "-t", help="income or expense"),
    category: str | None = typer.Option(None, "--category", "-c", help="New category"),
    account: str | None = typer.Option(None, "--account", "-a", help="New account number"),
    tags: list[str] | None = typer.Option(None, "--tag", help="Replace tags (repeatable)"),
) -> None:
    """Edit fields of an existing transaction.

    Example:
        kasboek tx edit 3f2c... --category Vervoer --tag zakelijk
    """
    changes = {
        "description": description,
        "amount": amount,
        "date": tx_date,
        "type": type_,
        "category": category,
        "account_number": account,
        "tags": tags,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        logger.error("❌ Nothing to change")
        raise typer.Exit(1)

    try:
        with open_ledger() as ledger:
            current = ledger.get_transaction(transaction_id)
            updated = Transaction.model_validate(
                {**current.model_dump(), **changes}
            )
            saved = ledger.save_transaction(updated, is_new=False)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Updated transaction {saved.id}")


@app.command("delete")
def delete_transaction(
    transaction_id: str = typer.Argument(..., help="Id of the transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete a single transaction."""
    if not yes and not typer.confirm("Delete this transaction?", default=False):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        with open_ledger() as ledger:
            ledger.delete_transaction(transaction_id)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Deleted transaction {transaction_id}")


@app.command("delete-all")
def delete_all_transactions(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Permanently delete ALL transactions of the active profile."""
    if not yes and not typer.confirm(
        "Permanently delete ALL transactions? This cannot be undone.", default=False
    ):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        with open_ledger() as ledger:
            count = len(ledger.transactions)
            ledger.delete_all_transactions()
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Deleted {count} transaction(s)")


@app.command("bulk-edit")
def bulk_edit(
    set_category: str | None = typer.Option(None, "--set-category", help="New category"),
    set_description: str | None = typer.Option(
        None, "--set-description", help="New description (rules run again)"
    ),
    search: str = typer.Option("", "--search", "-s", help="Text in description, category or tags"),
    category: str = typer.Option(ALL, "--category", "-c", help="Only this category"),
    type_: str = typer.Option(ALL, "--type", "-t", help="income, expense or ALL"),
    account: str = typer.Option(ALL, "--account", "-a", help="Only this account number"),
    date_from: str = typer.Option("", "--from", help="Start date (YYYY-MM-DD, inclusive)"),
    date_to: str = typer.Option("", "--to", help="End date (YYYY-MM-DD, inclusive)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Change category and/or description of every matching transaction.

    Example:
        kasboek tx bulk-edit --search "ah to go" --set-category Boodschappen
    """
    transaction_filter = _build_filter(search, category, type_, account, date_from, date_to)

    try:
        with open_ledger() as ledger:
            count = len(transaction_filter.apply(ledger.transactions))
            if not yes and not typer.confirm(
                f"Update {count} transaction(s)?", default=False
            ):
                print("❌ Cancelled")
                return
            updated = ledger.bulk_edit(
                transaction_filter, category=set_category, description=set_description
            )
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"✅ Updated {updated} transaction(s)")


@app.command("export")
def export_transactions(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file, '-' for stdout (default: profile exports dir)"
    ),
    search: str = typer.Option("", "--search", "-s", help="Text in description, category or tags"),
    category: str = typer.Option(ALL, "--category", "-c", help="Only this category"),
    type_: str = typer.Option(ALL, "--type", "-t", help="income, expense or ALL"),
    account: str = typer.Option(ALL, "--account", "-a", help="Only this account number"),
    date_from: str = typer.Option("", "--from", help="Start date (YYYY-MM-DD, inclusive)"),
    date_to: str = typer.Option("", "--to", help="End date (YYYY-MM-DD, inclusive)"),
) -> None:
    """Export the matching transactions as a semicolon-separated CSV.

    Examples:
        kasboek tx export --from 2025-01-01 --to 2025-12-31
        kasboek tx export --category Huur -o - | less
    """
    transaction_filter = _build_filter(search, category, type_, account, date_from, date_to)

    try:
        with open_ledger() as ledger:
            content = ledger.export_filtered_csv(transaction_filter)

        if output is not None and str(output) == "-":
            print(content)
            return

        if output is None:
            output = get_export_path() / f"transactions_filtered_{date.today().isoformat()}.csv"
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content + "\n", encoding="utf-8")
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    logger.info(f"✅ Exported transactions to {output}")
