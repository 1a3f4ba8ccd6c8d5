"""Kasboek: personal bookkeeping for bank CSV exports.

This package provides local-first (DuckDB) or API-backed management of:
- Transactions imported from bank CSV exports (Dutch and English notation)
- Keyword-based auto-categorization rules and reusable CSV column mappings
- Dashboard analytics: category matrix, spending trends and chart series
- CSV export and JSON backup/restore
- A profile-aware CLI for all operations
"""

__version__ = "0.1.0"
