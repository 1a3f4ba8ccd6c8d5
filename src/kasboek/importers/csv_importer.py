"""Bank CSV export importer.

Bank exports differ in separator, number notation and date layout. This module
sniffs the separator, parses Dutch (``1.234,56``) as well as English
(``1,234.56``) amounts and several date formats, and turns mapped columns into
categorized transactions.
"""

import csv
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from kasboek.categorization import apply_rules
from kasboek.exceptions import CsvFormatError, InvalidAmountError, InvalidDateError
from kasboek.models import (
    UNCATEGORIZED,
    UNKNOWN_DESCRIPTION,
    CategorizationRule,
    CsvMapping,
    Transaction,
)
from kasboek.utils.file import read_text_file

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_NUMERIC_PREFIX = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

# Tried in order once the bank-specific layouts above did not match
_FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%b %d %Y",
    "%b %d, %Y",
)


@dataclass
class CsvPreview:
    """Raw rows of a CSV export, header row first."""

    rows: list[list[str]]
    separator: str = ","

    @property
    def headers(self) -> list[str]:
        return self.rows[0] if self.rows else []

    @property
    def preview_row(self) -> list[str]:
        return self.rows[1] if len(self.rows) > 1 else []

    @property
    def data_rows(self) -> list[list[str]]:
        return self.rows[1:]


@dataclass
class ImportResult:
    """Outcome of converting CSV rows into transactions."""

    transactions: list[Transaction] = field(default_factory=list)
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return len(self.transactions)


def _clean_value(value: str) -> str:
    return value.strip().strip('"').strip()


def read_csv_text(text: str) -> CsvPreview:
    """Split a CSV export into trimmed, unquoted rows.

    The separator is ``;`` when the header line contains one, ``,`` otherwise.

    Raises:
        CsvFormatError: If there is no header plus at least one data row
    """
    text = text.lstrip("\ufeff")
    lines = [line for line in re.split(r"\r?\n", text) if line.strip()]
    if len(lines) < 2:
        raise CsvFormatError("Empty or invalid CSV file: expected a header and data")

    separator = ";" if ";" in lines[0] else ","
    rows = [
        [_clean_value(value) for value in row]
        for row in csv.reader(lines, delimiter=separator)
    ]

    logger.debug(f"Read {len(rows)} CSV row(s) with separator {separator!r}")
    return CsvPreview(rows=rows, separator=separator)


def read_csv_file(file_path: Path | str) -> CsvPreview:
    """Read and split a CSV export from disk."""
    return read_csv_text(read_text_file(file_path))


def parse_smart_number(text: str | None) -> float:
    """Parse an amount written in Dutch or English notation.

    If the last comma comes after the last dot, the comma is the decimal mark
    (``1.234,56``); otherwise commas are thousands separators (``1,234.56``).

    Examples:
        >>> parse_smart_number("€ 1.234,56")
        1234.56
        >>> parse_smart_number("-1,234.50")
        -1234.5

    Raises:
        InvalidAmountError: If no number can be read
    """
    if not text:
        return 0.0

    value = text.strip().replace("€", "").replace("EUR", "")

    if value.rfind(",") > value.rfind("."):
        clean = value.replace(".", "").replace(",", ".", 1)
    else:
        clean = value.replace(",", "")

    clean = re.sub(r"[^\d.-]", "", clean)
    if clean in ("", "."):
        return 0.0

    match = _NUMERIC_PREFIX.match(clean)
    if match is None:
        raise InvalidAmountError(f"Invalid amount: {text!r}")
    return float(match.group())


def parse_date(text: str | None) -> str:
    """Normalize a bank date to ISO ``YYYY-MM-DD``.

    Recognized layouts, in order: ``YYYY-MM-DD``, ``D-M-YYYY``, ``YYYYMMDD``,
    ISO datetimes, then the formats in ``_FALLBACK_DATE_FORMATS``.

    Raises:
        InvalidDateError: If the text is not a valid date in any known layout
    """
    raw = (text or "").strip()
    if not raw:
        raise InvalidDateError("Missing date")

    try:
        if _ISO_DATE.match(raw):
            return date.fromisoformat(raw).isoformat()

        if m := _DAY_FIRST_DATE.match(raw):
            day, month, year = (int(part) for part in m.groups())
            return date(year, month, day).isoformat()

        if m := _COMPACT_DATE.match(raw):
            year, month, day = (int(part) for part in m.groups())
            return date(year, month, day).isoformat()
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {raw!r}") from e

    try:
        return datetime.fromisoformat(raw).date().isoformat()
    except ValueError:
        pass

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date().isoformat()
        except ValueError:
            continue

    raise InvalidDateError(f"Invalid date format: {raw!r}")


def _cell(row: Sequence[str], index: int | None) -> str | None:
    if index is None:
        return None
    return row[index]


def row_to_transaction(
    row: Sequence[str],
    mapping: CsvMapping,
    rules: Sequence[CategorizationRule] = (),
) -> Transaction:
    """Convert one mapped CSV row into a categorized transaction.

    Raises:
        InvalidAmountError: If the amount or balance cannot be parsed
        InvalidDateError: If the date cannot be parsed
    """
    amount = parse_smart_number(row[mapping.amount_col])
    tx_date = parse_date(row[mapping.date_col])

    balance_text = _cell(row, mapping.balance_col)
    current_balance = parse_smart_number(balance_text) if balance_text else None

    category = _cell(row, mapping.category_col) or UNCATEGORIZED
    account = _cell(row, mapping.account_col) or None

    tx = Transaction(
        date=tx_date,
        description=row[mapping.desc_col] or UNKNOWN_DESCRIPTION,
        amount=abs(amount),
        type="income" if amount >= 0 else "expense",
        category=category,
        account_number=account,
        current_balance=current_balance,
        tags=[],
    )
    return apply_rules(tx, rules)


def build_transactions(
    rows: Sequence[Sequence[str]],
    mapping: CsvMapping,
    rules: Sequence[CategorizationRule] = (),
) -> ImportResult:
    """Convert CSV data rows (header excluded) into transactions.

    Rows that are too short for the mapping, or whose amount or date cannot be
    parsed, are skipped and counted.
    """
    result = ImportResult()

    # Data rows start on line 2 of the file
    for line_number, row in enumerate(rows, start=2):
        if len(row) <= mapping.max_index:
            result.skipped += 1
            result.errors.append(f"Line {line_number}: too few columns ({len(row)})")
            continue

        try:
            result.transactions.append(row_to_transaction(row, mapping, rules))
        except (InvalidAmountError, InvalidDateError) as e:
            logger.warning(f"Skipping line {line_number}: {e}")
            result.skipped += 1
            result.errors.append(f"Line {line_number}: {e}")

    logger.info(
        f"Converted {result.imported} transaction(s), skipped {result.skipped} row(s)"
    )
    return result
