"""CSV import commands for kasboek CLI.

This module provides commands for previewing bank CSV exports and importing
them with a column mapping, either given on the command line or loaded from a
saved mapping template.
"""

import logging
from pathlib import Path

import typer

from kasboek.config import get_settings
from kasboek.importers.csv_importer import read_csv_file
from kasboek.models import CsvMapping
from kasboek.utils.file import copy_to_raw

from .common import CLI_ERRORS, open_ledger

app = typer.Typer(help="Import bank CSV exports", no_args_is_help=True)
logger = logging.getLogger(__name__)


@app.command("preview")
def preview_csv(
    file_path: Path = typer.Argument(..., help="Bank CSV export to inspect"),
) -> None:
    """Show the header and first data row with their column indexes.

    Use the indexes with ``kasboek import csv --date-col ... --amount-col ...``.
    """
    try:
        preview = read_csv_file(file_path)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"Separator: {preview.separator!r}   Data rows: {len(preview.data_rows)}\n")
    for index, header in enumerate(preview.headers):
        sample = preview.preview_row[index] if index < len(preview.preview_row) else ""
        print(f"  [{index}] {header:<30} {sample}")


@app.command("csv")
def import_csv(
    file_path: Path = typer.Argument(..., help="Bank CSV export to import"),
    template: str | None = typer.Option(
        None, "--template", "-t", help="Use a saved column mapping template"
    ),
    date_col: int = typer.Option(0, "--date-col", help="Column index of the date"),
    desc_col: int = typer.Option(1, "--desc-col", help="Column index of the description"),
    amount_col: int = typer.Option(2, "--amount-col", help="Column index of the amount"),
    category_col: int | None = typer.Option(
        None, "--category-col", help="Column index of the category"
    ),
    account_col: int | None = typer.Option(
        None, "--account-col", help="Column index of the account number"
    ),
    balance_col: int | None = typer.Option(
        None, "--balance-col", help="Column index of the balance after booking"
    ),
    save_template: str | None = typer.Option(
        None, "--save-template", help="Save the mapping under this template name"
    ),
    archive: bool = typer.Option(
        True, "--archive/--no-archive", help="Copy the file into the profile's raw dir"
    ),
) -> None:
    """Import transactions from a bank CSV export.

    Categorization rules are applied to every imported row. Rows with too few
    columns or an unreadable amount or date are skipped.

    Examples:
        kasboek import csv ing.csv --date-col 0 --desc-col 1 --amount-col 6 --account-col 2
        kasboek import csv ing.csv --template ING
        kasboek import csv rabo.csv --amount-col 6 --balance-col 7 --save-template Rabo
    """
    try:
        preview = read_csv_file(file_path)

        with open_ledger() as ledger:
            if template:
                mapping = ledger.load_mapping_template(template)
                logger.info(f"Using mapping template '{template}'")
            else:
                mapping = CsvMapping(
                    date_col=date_col,
                    desc_col=desc_col,
                    amount_col=amount_col,
                    category_col=category_col,
                    account_col=account_col,
                    balance_col=balance_col,
                )

            if save_template:
                ledger.save_mapping_template(save_template, mapping)
                print(f"✅ Saved mapping template '{save_template}'")

            result = ledger.import_csv(preview, mapping)

        settings = get_settings()
        if archive and settings.data.archive_imports:
            copy_to_raw(file_path, file_path.suffix.lstrip(".") or "csv", settings.raw_data_path)
    except CLI_ERRORS as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    for error in result.errors:
        logger.debug(error)

    print(f"✅ Imported {result.imported} transaction(s) ({result.skipped} skipped)")
