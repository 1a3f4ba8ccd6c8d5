"""Shared pytest fixtures for kasboek tests.

This module provides common fixtures and test utilities used across the test
suite: profile cleanup, sample transactions and an in-memory document store.
"""

import shutil
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest

from kasboek.config import clear_settings_cache, set_current_profile
from kasboek.exceptions import StoreError
from kasboek.models import Transaction
from kasboek.storage.base import Document, DocumentStore, without_id


@contextmanager
def temp_profile(profile: str) -> Generator[str, None, None]:
    """Context manager for automatic profile cleanup.

    Example:
        def test_something():
            with temp_profile("alice"):
                set_current_profile("alice")
                # ... test code ...

    Args:
        profile: Profile name to clean up (will be normalized)

    Yields:
        The normalized profile name
    """
    from kasboek.utils.user_config import normalize_profile_name

    normalized = normalize_profile_name(profile)

    try:
        yield normalized
    finally:
        # Don't check exists() because tests may mock it - just try to remove
        for directory in (Path.cwd() / "data" / normalized, Path.cwd() / "logs" / normalized):
            try:
                shutil.rmtree(directory)
            except FileNotFoundError:
                pass


@pytest.fixture(autouse=True)
def clean_profile_state() -> Generator[None, None, None]:
    """Clear the settings cache and reset the current profile to 'test'."""
    clear_settings_cache()
    set_current_profile("test")

    yield

    clear_settings_cache()
    set_current_profile("test")


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store for ledger tests.

    Set ``fail_on`` to an operation name (``add``, ``update``, ``delete``,
    ``delete_bulk``) to make that operation raise ``StoreError``.
    """

    def __init__(self, documents: list[Document] | None = None):
        self.items: dict[str, Document] = {}
        self.fail_on: str | None = None
        self.calls: list[tuple[str, Any]] = []
        for document in documents or []:
            self.add_item(document)
        self.calls.clear()

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_on == operation:
            raise StoreError(f"{operation} failed")

    def get_items(self, item_type: str | None = None) -> list[Document]:
        return [
            dict(doc)
            for doc in self.items.values()
            if item_type is None or doc.get("type") == item_type
        ]

    def add_item(self, document: Document) -> Document:
        self.calls.append(("add", document))
        self._maybe_fail("add")
        item_id = str(uuid4())
        self.items[item_id] = {**without_id(document), "id": item_id}
        return dict(self.items[item_id])

    def update_item(self, document: Document) -> Document:
        self.calls.append(("update", document))
        self._maybe_fail("update")
        item_id = document["id"]
        if item_id not in self.items:
            raise StoreError(f"Item not found: {item_id}")
        self.items[item_id] = {**without_id(document), "id": item_id}
        return dict(self.items[item_id])

    def delete_item(self, item_id: str) -> None:
        self.calls.append(("delete", item_id))
        self._maybe_fail("delete")
        self.items.pop(item_id, None)

    def delete_bulk(self, key: str, value: str) -> None:
        self.calls.append(("delete_bulk", (key, value)))
        self._maybe_fail("delete_bulk")
        self.items = {
            item_id: doc for item_id, doc in self.items.items() if doc.get(key) != value
        }


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    """Empty in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """A small, varied set of transactions."""
    return [
        Transaction(
            id="t1",
            date="2025-03-01",
            description="Albert Heijn 1234",
            amount=45.20,
            type="expense",
            category="Boodschappen",
            account_number="NL01BANK0123456789",
            current_balance=1200.0,
        ),
        Transaction(
            id="t2",
            date="2025-03-25",
            description="Werkgever BV",
            amount=2800.0,
            type="income",
            category="Salaris",
            account_number="NL01BANK0123456789",
            current_balance=4000.0,
        ),
        Transaction(
            id="t3",
            date="2025-02-10",
            description="NETFLIX.COM",
            amount=13.99,
            type="expense",
            category="Abonnementen",
            account_number="NL99SPAR9876543210",
            tags=["streaming"],
        ),
        Transaction(
            id="t4",
            date="2025-01-15",
            description="NS Groep reis",
            amount=22.50,
            type="expense",
            category="Vervoer",
        ),
    ]
