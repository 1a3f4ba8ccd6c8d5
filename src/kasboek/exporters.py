"""CSV export and JSON backup of transactions."""

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from kasboek.exceptions import ExportError
from kasboek.models import Transaction

logger = logging.getLogger(__name__)

CSV_HEADERS = (
    "Date",
    "Account",
    "Description",
    "Amount",
    "Type",
    "Category",
    "Balance",
    "Tags",
)
CSV_SEPARATOR = ";"


def format_decimal_comma(value: float) -> str:
    """Format with two decimals and a comma as decimal mark (``12,50``)."""
    return f"{value:.2f}".replace(".", ",")


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def transaction_to_csv_row(tx: Transaction) -> str:
    amount = format_decimal_comma(tx.amount)
    if tx.type == "expense":
        amount = f"-{amount}"

    balance = (
        format_decimal_comma(tx.current_balance)
        if tx.current_balance is not None
        else ""
    )

    return CSV_SEPARATOR.join(
        [
            tx.date,
            tx.account_number or "",
            _quote(tx.description),
            amount,
            tx.type,
            tx.category,
            balance,
            "|".join(tx.tags),
        ]
    )


def transactions_to_csv(transactions: Sequence[Transaction]) -> str:
    """Render transactions as a semicolon-separated CSV with Dutch decimals.

    Raises:
        ExportError: If there is nothing to export
    """
    if not transactions:
        raise ExportError("There are no transactions to export")

    lines = [CSV_SEPARATOR.join(CSV_HEADERS)]
    lines.extend(transaction_to_csv_row(tx) for tx in transactions)
    logger.debug(f"Rendered {len(transactions)} transaction(s) as CSV")
    return "\n".join(lines)


def transactions_to_json(transactions: Sequence[Transaction]) -> str:
    """Serialize transactions as a JSON backup (a list of wire documents)."""
    documents = [tx.to_document() for tx in transactions]
    return json.dumps(documents, indent=2, ensure_ascii=False)


def transactions_from_json(text: str) -> list[Transaction]:
    """Read a JSON backup produced by :func:`transactions_to_json`.

    Raises:
        ExportError: If the text is not a list of valid transactions
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExportError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ExportError("Backup must contain a list of transactions")

    try:
        return [Transaction.from_document(document) for document in data]
    except (ValidationError, TypeError) as e:
        raise ExportError(f"Backup contains an invalid transaction: {e}") from e
