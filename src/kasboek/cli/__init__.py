"""Kasboek CLI package.

Command-line interface for managing transactions, categorization rules,
CSV imports, reports and backups per profile.
"""

from .main import app, main

__all__ = ["app", "main"]
