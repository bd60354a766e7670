"""
Scryfall API client.

Thin async adapter over httpx for the endpoints the pricing pipeline uses:
bulk data metadata and download, named card lookup, and card search.

API docs: https://scryfall.com/docs/api
"""

import logging
from typing import Any

import httpx

from cardbored.config import settings

logger = logging.getLogger(__name__)


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create the shared HTTP client with Scryfall's required headers."""
    return httpx.AsyncClient(
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "application/json",
        },
        follow_redirects=True,
        timeout=timeout if timeout is not None else settings.http_timeout_seconds,
    )


class ScryfallClient:
    """
    Scryfall endpoints used by the bulk index and live lookup.

    Lookup methods return None when Scryfall answers 404 and raise
    httpx.HTTPStatusError for any other error status. Network failures
    surface as httpx.RequestError.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str | None = None,
        bulk_type: str | None = None,
        bulk_timeout: float | None = None,
    ):
        self._client = client
        self.base_url = (base_url or settings.scryfall_api_url).rstrip("/")
        self.bulk_type = bulk_type or settings.scryfall_bulk_type
        self.bulk_timeout = (
            bulk_timeout if bulk_timeout is not None else settings.bulk_download_timeout_seconds
        )

    async def fetch_bulk_metadata(self) -> dict[str, Any]:
        """
        Fetch the descriptor for the configured bulk dataset.

        Returns:
            Bulk data object with "download_uri", "updated_at", "size", ...

        Raises:
            ValueError: If the descriptor has no download_uri
            httpx.HTTPError: If the request fails
        """
        url = f"{self.base_url}/bulk-data/{self.bulk_type.replace('_', '-')}"
        response = await self._client.get(url)
        response.raise_for_status()

        metadata = response.json()
        if not isinstance(metadata, dict) or not metadata.get("download_uri"):
            raise ValueError(f"Bulk data descriptor for {self.bulk_type} has no download_uri")
        return metadata

    async def fetch_bulk_cards(self, download_uri: str) -> list[dict[str, Any]]:
        """
        Download the bulk card array.

        Raises:
            ValueError: If the payload is not a JSON array
            httpx.HTTPError: If the download fails
        """
        response = await self._client.get(download_uri, timeout=self.bulk_timeout)
        response.raise_for_status()

        cards = response.json()
        if not isinstance(cards, list):
            raise ValueError("Bulk data payload is not a list of cards")
        return cards

    async def get_named(self, name: str, fuzzy: bool = False) -> dict[str, Any] | None:
        """
        Look up a card by name with /cards/named.

        Args:
            name: Card name
            fuzzy: Use Scryfall's fuzzy matching instead of exact

        Returns:
            Card object, or None if no card matched.

        Raises:
            ValueError: If the response body is not a card object
        """
        params = {"fuzzy" if fuzzy else "exact": name}
        response = await self._client.get(f"{self.base_url}/cards/named", params=params)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()

        card = response.json()
        if not isinstance(card, dict):
            raise ValueError("Named card response is not a JSON object")
        return card

    async def search_first(self, query: str) -> dict[str, Any] | None:
        """
        Run a full-text card search and return the first-ranked result.

        Newest printings rank first; one result per card.

        Raises:
            ValueError: If the response body is not a search result list
        """
        params = {
            "q": query,
            "unique": "cards",
            "order": "released",
            "dir": "desc",
        }
        response = await self._client.get(f"{self.base_url}/cards/search", params=params)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Search response is not a JSON object")

        results = payload.get("data") or []
        if not isinstance(results, list):
            raise ValueError("Search response data is not a list")
        if not results:
            return None

        first = results[0]
        if not isinstance(first, dict):
            raise ValueError("Search result is not a card object")
        return first
