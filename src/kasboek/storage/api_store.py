"""Document store backed by the remote API gateway.

The gateway exposes a generic items resource:

    GET    /api/items?type=rule      -> [{"id": ..., "data": {...}}, ...]
    POST   /api/items                -> {"id": ..., "data": {...}}
    PUT    /api/items/{id}           -> {"id": ..., "data": {...}}
    DELETE /api/items/{id}           -> (no body)
    DELETE /api/items?type=rule      -> (no body, bulk delete)

Every request carries the configured JWT as a bearer token.
"""

import logging
from typing import Any

import httpx

from kasboek.config import ApiConfig
from kasboek.exceptions import ApiError, ApiNotConfiguredError, StoreError

from .base import Document, DocumentStore, without_id

logger = logging.getLogger(__name__)


class ApiDocumentStore(DocumentStore):
    """Typed document store talking to the API gateway over HTTP."""

    def __init__(self, config: ApiConfig, client: httpx.Client | None = None):
        """Initialize the store.

        Args:
            config: Gateway URL, token and timeout
            client: Optional pre-built HTTP client (tests inject a mock transport)
        """
        self.config = config
        self.items_url = f"{config.url}/api/items"
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout)
        logger.debug(f"Initialized API document store at {self.items_url}")

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.token}",
        }

    def _call(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        body: Document | None = None,
    ) -> Any:
        if not self.config.is_configured:
            raise ApiNotConfiguredError(
                "API URL or token is not configured. "
                "Run 'kasboek config set-api URL TOKEN' first."
            )

        try:
            response = self._client.request(
                method, url, params=params, json=body, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise StoreError(f"API request failed: {e}") from e

        if not response.is_success:
            raise ApiError(response.status_code, response.text)

        if method == "DELETE":
            return None
        return response.json()

    @staticmethod
    def _unwrap(item: dict[str, Any]) -> Document:
        return {**item.get("data", {}), "id": item["id"]}

    def get_items(self, item_type: str | None = None) -> list[Document]:
        """List items, filtered server-side on ``type``."""
        params = {"type": item_type} if item_type else None
        result = self._call("GET", self.items_url, params=params)
        logger.debug(f"Fetched {len(result)} item(s) of type {item_type or 'any'}")
        return [self._unwrap(item) for item in result]

    def add_item(self, document: Document) -> Document:
        """POST a new item; the gateway assigns the id."""
        result = self._call("POST", self.items_url, body=without_id(document))
        return self._unwrap(result)

    def update_item(self, document: Document) -> Document:
        """PUT the full item (without its id) to ``/api/items/{id}``."""
        item_id = document.get("id")
        if not item_id:
            raise StoreError("Cannot update an item without an id")
        result = self._call(
            "PUT", f"{self.items_url}/{item_id}", body=without_id(document)
        )
        return self._unwrap(result)

    def delete_item(self, item_id: str) -> None:
        """DELETE a single item."""
        self._call("DELETE", f"{self.items_url}/{item_id}")

    def delete_bulk(self, key: str, value: str) -> None:
        """DELETE all items matching ``key=value``."""
        logger.info(f"Bulk deleting items where {key}={value}")
        self._call("DELETE", self.items_url, params={key: value})

    def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            self._client.close()
