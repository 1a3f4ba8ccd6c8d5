"""Importers turning bank exports into kasboek transactions."""

from .csv_importer import (
    CsvPreview,
    ImportResult,
    build_transactions,
    parse_date,
    parse_smart_number,
    read_csv_file,
    read_csv_text,
)

__all__ = [
    "CsvPreview",
    "ImportResult",
    "build_transactions",
    "parse_date",
    "parse_smart_number",
    "read_csv_file",
    "read_csv_text",
]
