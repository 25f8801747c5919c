"""Open Library provider for book search and work lookup."""

from __future__ import annotations

from typing import Any

from catalog_api.core.config import settings
from catalog_api.providers.base import (
    UNTITLED,
    BaseProvider,
    CatalogItem,
    CatalogSource,
    MediaType,
    text_value,
)
from catalog_api.providers.http import request_json
from catalog_api.utils.datetime import to_date_string

BASE_URL = "https://openlibrary.org"
COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-L.jpg"
WORKS_PREFIX = "/works/"


def cover_url(cover_id: Any) -> str | None:
    if not cover_id:
        return None
    return COVER_URL.format(cover_id=cover_id)


class OpenLibraryProvider(BaseProvider):
    """Library holdings search; no credentials required."""
    source = CatalogSource.OPENLIBRARY

    def parse_identifier(self, identifier: str) -> str:
        """Normalize to a ``/works/<id>`` key."""
        work_id = super().parse_identifier(identifier)
        if work_id.startswith(WORKS_PREFIX):
            return work_id
        return f"{WORKS_PREFIX}{work_id.lstrip('/')}"

    def normalize_doc(self, doc: dict[str, Any]) -> CatalogItem:
        """Map a ``search.json`` doc."""
        return CatalogItem(
            media_type=MediaType.BOOK,
            source=self.source,
            external_id=str(doc["key"]),
            title=doc.get("title") or UNTITLED,
            description=text_value(doc.get("first_sentence")),
            release_date=to_date_string(doc.get("first_publish_year")),
            poster_url=cover_url(doc.get("cover_i")),
            payload=doc,
        )

    def normalize_work(self, work: dict[str, Any], work_key: str) -> CatalogItem:
        """Map a work document fetched by key."""
        covers = work.get("covers")
        cover_id = covers[0] if isinstance(covers, list) and covers else None
        return CatalogItem(
            media_type=MediaType.BOOK,
            source=self.source,
            external_id=work_key,
            title=work.get("title") or UNTITLED,
            description=text_value(work.get("description")),
            release_date=to_date_string(work.get("first_publish_date")),
            poster_url=cover_url(cover_id),
            payload=work,
        )

    async def search(self, query: str) -> list[CatalogItem]:
        data = await request_json(
            "GET",
            f"{BASE_URL}/search.json",
            params={"q": query, "limit": settings.openlibrary_search_limit},
            failure_message="Open Library search failed",
        )
        docs = data.get("docs") if isinstance(data, dict) else None
        return [self.normalize_doc(doc) for doc in docs or [] if isinstance(doc, dict) and doc.get("key")]

    async def fetch(self, identifier: str) -> CatalogItem:
        work_key = self.parse_identifier(identifier)
        data = await request_json(
            "GET",
            f"{BASE_URL}{work_key}.json",
            failure_message="Open Library item fetch failed",
        )
        return self.normalize_work(data if isinstance(data, dict) else {}, work_key)
