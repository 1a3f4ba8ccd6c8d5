"""Document store backed by a local DuckDB file.

Documents are kept as JSON text in a single ``items`` table, next to their
``type`` marker so listings and bulk deletes by type stay in SQL.
"""

import json
import logging
from pathlib import Path
from uuid import uuid4

import duckdb

from kasboek.exceptions import StoreError

from .base import Document, DocumentStore, without_id

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE SEQUENCE IF NOT EXISTS items_seq;
    CREATE TABLE IF NOT EXISTS items (
        id VARCHAR PRIMARY KEY,
        type VARCHAR,
        data VARCHAR NOT NULL,
        seq BIGINT DEFAULT nextval('items_seq'),
        updated_at TIMESTAMP DEFAULT current_timestamp
    );
"""


class DuckDBDocumentStore(DocumentStore):
    """Typed document store persisted in a DuckDB database file."""

    def __init__(self, database_path: Path | str):
        """Initialize the store and create the items table if needed.

        Args:
            database_path: Path to the DuckDB database file
        """
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute(_SCHEMA)
        logger.debug(f"Initialized local document store: {self.database_path}")

    def _connect(self) -> duckdb.DuckDBPyConnection:
        try:
            return duckdb.connect(str(self.database_path))
        except duckdb.Error as e:
            raise StoreError(f"Cannot open database {self.database_path}: {e}") from e

    def _exists(self, conn: duckdb.DuckDBPyConnection, item_id: str) -> bool:
        result = conn.execute(
            "SELECT COUNT(*) FROM items WHERE id = ?", [item_id]
        ).fetchone()
        return bool(result and result[0])

    def get_items(self, item_type: str | None = None) -> list[Document]:
        """List documents in insertion order."""
        with self._connect() as conn:
            if item_type:
                rows = conn.execute(
                    "SELECT id, data FROM items WHERE type = ? ORDER BY seq",
                    [item_type],
                ).fetchall()
            else:
                rows = conn.execute("SELECT id, data FROM items ORDER BY seq").fetchall()

        return [{**json.loads(data), "id": item_id} for item_id, data in rows]

    def add_item(self, document: Document) -> Document:
        """Insert a document under a fresh UUID."""
        body = without_id(document)
        item_id = str(uuid4())

        with self._connect() as conn:
            conn.execute(
                "INSERT INTO items (id, type, data) VALUES (?, ?, ?)",
                [item_id, body.get("type"), json.dumps(body)],
            )

        return {**body, "id": item_id}

    def update_item(self, document: Document) -> Document:
        """Replace an existing document.

        Raises:
            StoreError: If the document has no id or does not exist
        """
        item_id = document.get("id")
        if not item_id:
            raise StoreError("Cannot update an item without an id")
        body = without_id(document)

        with self._connect() as conn:
            if not self._exists(conn, item_id):
                raise StoreError(f"Item not found: {item_id}")
            conn.execute(
                """
                UPDATE items
                SET type = ?, data = ?, updated_at = current_timestamp
                WHERE id = ?
                """,
                [body.get("type"), json.dumps(body), item_id],
            )

        return {**body, "id": item_id}

    def delete_item(self, item_id: str) -> None:
        """Delete a single document.

        Raises:
            StoreError: If the document does not exist
        """
        with self._connect() as conn:
            if not self._exists(conn, item_id):
                raise StoreError(f"Item not found: {item_id}")
            conn.execute("DELETE FROM items WHERE id = ?", [item_id])

    def delete_bulk(self, key: str, value: str) -> None:
        """Delete every document whose field ``key`` equals ``value``."""
        with self._connect() as conn:
            if key == "type":
                conn.execute("DELETE FROM items WHERE type = ?", [value])
            else:
                rows = conn.execute("SELECT id, data FROM items").fetchall()
                doomed = [
                    item_id
                    for item_id, data in rows
                    if str(json.loads(data).get(key)) == value
                ]
                for item_id in doomed:
                    conn.execute("DELETE FROM items WHERE id = ?", [item_id])

        logger.info(f"Bulk deleted items where {key}={value}")

    def count(self, item_type: str | None = None) -> int:
        """Number of stored documents, optionally of one type."""
        with self._connect() as conn:
            if item_type:
                result = conn.execute(
                    "SELECT COUNT(*) FROM items WHERE type = ?", [item_type]
                ).fetchone()
            else:
                result = conn.execute("SELECT COUNT(*) FROM items").fetchone()
        return result[0] if result else 0
