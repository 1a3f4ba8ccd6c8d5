"""Typed document store interface.

A store holds schemaless JSON documents, each tagged with a ``type`` marker
(``transaction``, ``rule``, ...). Documents handed out by a store always carry
their ``id``; documents handed in have it stripped before they are persisted.
"""

from abc import ABC, abstractmethod
from typing import Any

Document = dict[str, Any]


class DocumentStore(ABC):
    """CRUD operations over typed documents."""

    @abstractmethod
    def get_items(self, item_type: str | None = None) -> list[Document]:
        """List documents, optionally only those with the given ``type``."""

    @abstractmethod
    def add_item(self, document: Document) -> Document:
        """Store a new document and return it with its assigned ``id``."""

    @abstractmethod
    def update_item(self, document: Document) -> Document:
        """Replace the document identified by ``document['id']``."""

    @abstractmethod
    def delete_item(self, item_id: str) -> None:
        """Delete a single document."""

    @abstractmethod
    def delete_bulk(self, key: str, value: str) -> None:
        """Delete every document whose field ``key`` equals ``value``."""

    def close(self) -> None:  # noqa: B027 - optional hook
        """Release resources held by the store."""

    def __enter__(self) -> "DocumentStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def without_id(document: Document) -> Document:
    """Return a copy of ``document`` without its ``id`` key."""
    body = dict(document)
    body.pop("id", None)
    return body
