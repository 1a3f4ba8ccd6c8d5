"""Helpers shared by the CLI command groups."""

from collections.abc import Iterator
from contextlib import contextmanager

from kasboek.exceptions import KasboekError
from kasboek.ledger import Ledger
from kasboek.storage import get_store

# Errors a command reports as "❌ ..." with exit code 1
CLI_ERRORS = (KasboekError, OSError, ValueError)


@contextmanager
def open_ledger() -> Iterator[Ledger]:
    """Open the current profile's store and yield a fully loaded ledger."""
    with get_store() as store:
        ledger = Ledger(store)
        ledger.load_all()
        yield ledger


def format_amount(amount: float) -> str:
    """Format an amount as ``€ 1.234,56``."""
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-€ {text}" if amount < 0 else f"€ {text}"
