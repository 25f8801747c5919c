"""Google Books provider, used as the book-domain fallback."""

from __future__ import annotations

from typing import Any

from catalog_api.core.config import settings
from catalog_api.core.errors import MisconfigurationError
from catalog_api.providers.base import UNTITLED, BaseProvider, CatalogItem, CatalogSource, MediaType, secure_url
from catalog_api.providers.http import request_json
from catalog_api.utils.datetime import to_date_string

VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"


class GoogleBooksProvider(BaseProvider):
    """Google Books API provider for volume data."""
    source = CatalogSource.GOOGLE_BOOKS

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    def _require_api_key(self) -> str:
        api_key = self._api_key or settings.google_books_api_key
        if not api_key:
            raise MisconfigurationError("GOOGLE_BOOKS_API_KEY not set")
        return api_key

    def normalize(self, item: dict[str, Any], external_id: str | None = None) -> CatalogItem:
        info = item.get("volumeInfo") or {}
        image_links = info.get("imageLinks") or {}
        return CatalogItem(
            media_type=MediaType.BOOK,
            source=self.source,
            external_id=external_id or str(item.get("id")),
            title=info.get("title") or UNTITLED,
            description=info.get("description"),
            release_date=to_date_string(info.get("publishedDate")),
            poster_url=secure_url(image_links.get("thumbnail")),
            payload=item,
        )

    async def search(self, query: str) -> list[CatalogItem]:
        """Search volumes by free text."""
        api_key = self._require_api_key()
        data = await request_json(
            "GET",
            VOLUMES_URL,
            params={"q": query, "key": api_key, "maxResults": settings.google_books_max_results},
            failure_message="Google Books search failed",
        )
        items = data.get("items") if isinstance(data, dict) else None
        return [self.normalize(item) for item in items or [] if isinstance(item, dict) and item.get("id")]

    async def fetch(self, identifier: str) -> CatalogItem:
        """Fetch a volume record by ID."""
        api_key = self._require_api_key()
        volume_id = self.parse_identifier(identifier)
        data = await request_json(
            "GET",
            f"{VOLUMES_URL}/{volume_id}",
            params={"key": api_key},
            failure_message="Google Books item fetch failed",
        )
        if not isinstance(data, dict):
            data = {}
        external_id = str(data["id"]) if data.get("id") else volume_id
        return self.normalize(data, external_id)
