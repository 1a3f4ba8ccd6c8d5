# ruff: noqa: S101
"""Tests for the DuckDB-backed document store."""

from pathlib import Path

import pytest

from kasboek.exceptions import StoreError
from kasboek.storage.local_store import DuckDBDocumentStore


@pytest.fixture
def store(tmp_path: Path) -> DuckDBDocumentStore:
    return DuckDBDocumentStore(tmp_path / "db" / "kasboek.duckdb")


class TestDuckDBDocumentStore:
    """CRUD against a temporary database file."""

    @pytest.mark.unit
    def test_creates_database_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "kasboek.duckdb"
        DuckDBDocumentStore(path)
        assert path.exists()

    @pytest.mark.unit
    def test_add_and_get_items_in_insertion_order(self, store: DuckDBDocumentStore) -> None:
        first = store.add_item({"id": "ignored", "type": "rule", "keyword": "b"})
        store.add_item({"type": "rule", "keyword": "a"})
        store.add_item({"type": "transaction", "date": "2025-01-01"})

        rules = store.get_items("rule")

        assert first["id"] != "ignored"
        assert [r["keyword"] for r in rules] == ["b", "a"]
        assert rules[0]["id"] == first["id"]
        assert len(store.get_items()) == 3
        assert store.count("transaction") == 1

    @pytest.mark.unit
    def test_update_item(self, store: DuckDBDocumentStore) -> None:
        saved = store.add_item({"type": "rule", "keyword": "a"})

        store.update_item({**saved, "keyword": "z"})

        assert store.get_items("rule") == [{"type": "rule", "keyword": "z", "id": saved["id"]}]

    @pytest.mark.unit
    def test_update_missing_item_raises(self, store: DuckDBDocumentStore) -> None:
        with pytest.raises(StoreError, match="not found"):
            store.update_item({"id": "nope", "type": "rule"})
        with pytest.raises(StoreError):
            store.update_item({"type": "rule"})

    @pytest.mark.unit
    def test_delete_item(self, store: DuckDBDocumentStore) -> None:
        saved = store.add_item({"type": "rule"})

        store.delete_item(saved["id"])

        assert store.count() == 0
        with pytest.raises(StoreError):
            store.delete_item(saved["id"])

    @pytest.mark.unit
    def test_delete_bulk_by_type_and_by_field(self, store: DuckDBDocumentStore) -> None:
        store.add_item({"type": "transaction", "category": "Huur"})
        store.add_item({"type": "transaction", "category": "Eten"})
        store.add_item({"type": "rule", "category": "Huur"})

        store.delete_bulk("category", "Huur")
        assert store.count() == 1

        store.delete_bulk("type", "transaction")
        assert store.count() == 0

    @pytest.mark.unit
    def test_data_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "kasboek.duckdb"
        DuckDBDocumentStore(path).add_item({"type": "rule", "keyword": "x"})

        with DuckDBDocumentStore(path) as reopened:
            assert reopened.get_items("rule")[0]["keyword"] == "x"
