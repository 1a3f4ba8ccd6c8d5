"""Typed document stores for kasboek.

Two backends implement the same interface:
- ``DuckDBDocumentStore``: local, per-profile DuckDB file (default)
- ``ApiDocumentStore``: remote API gateway with JWT bearer authentication,
  used once a connection is saved for the profile
"""

import logging

from kasboek.config import (
    KasboekSettings,
    get_api_config,
    get_settings,
    get_storage_backend,
)

from .api_store import ApiDocumentStore
from .base import Document, DocumentStore
from .local_store import DuckDBDocumentStore

logger = logging.getLogger(__name__)


def get_store(settings: KasboekSettings | None = None) -> DocumentStore:
    """Build the document store configured for the current profile."""
    settings = settings or get_settings()

    if get_storage_backend(settings) == "api":
        api_config = get_api_config(settings)
        logger.debug(f"Using API store for profile '{settings.profile}'")
        return ApiDocumentStore(api_config)

    logger.debug(f"Using local store: {settings.database_path}")
    return DuckDBDocumentStore(settings.database_path)


__all__ = [
    "ApiDocumentStore",
    "Document",
    "DocumentStore",
    "DuckDBDocumentStore",
    "get_store",
]
