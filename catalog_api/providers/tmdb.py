from __future__ import annotations

from typing import Any

from catalog_api.core.config import settings
from catalog_api.core.errors import MisconfigurationError
from catalog_api.providers.base import UNTITLED, BaseProvider, CatalogItem, CatalogSource, MediaType
from catalog_api.providers.http import request_json
from catalog_api.utils.datetime import to_date_string

API_BASE = "https://api.themoviedb.org/3"
IMAGE_BASE = "https://image.tmdb.org/t/p/w500"


class TMDBProvider(BaseProvider):
    """Film or series lookups against TMDB, bound to one media type."""
    source = CatalogSource.TMDB

    def __init__(self, media_type: MediaType, api_key: str | None = None) -> None:
        if media_type not in (MediaType.MOVIE, MediaType.TV):
            raise ValueError(f"TMDB does not serve {media_type.value} items")
        self.media_type = media_type
        self._api_key = api_key

    @property
    def kind(self) -> str:
        """TMDB path segment for this provider's media type."""
        return self.media_type.value

    def _auth_params(self) -> dict[str, str]:
        api_key = self._api_key or settings.tmdb_api_key
        if not api_key:
            raise MisconfigurationError("TMDB_API_KEY not set")
        return {"api_key": api_key}

    def normalize(self, payload: dict[str, Any], external_id: str | None = None) -> CatalogItem:
        """Map a TMDB movie or tv document, stamping this provider's media type."""
        poster = payload.get("poster_path")
        return CatalogItem(
            media_type=self.media_type,
            source=self.source,
            external_id=external_id or str(payload.get("id")),
            title=payload.get("title") or payload.get("name") or UNTITLED,
            description=payload.get("overview"),
            release_date=to_date_string(payload.get("release_date") or payload.get("first_air_date")),
            poster_url=f"{IMAGE_BASE}{poster}" if poster else None,
            payload=payload,
        )

    async def search(self, query: str) -> list[CatalogItem]:
        params = self._auth_params()
        data = await request_json(
            "GET",
            f"{API_BASE}/search/{self.kind}",
            params={
                "query": query,
                "include_adult": "false",
                "language": "en-US",
                "page": 1,
                **params,
            },
            failure_message="TMDB search failed",
        )
        results = data.get("results") if isinstance(data, dict) else None
        return [
            self.normalize(result)
            for result in results or []
            if isinstance(result, dict) and result.get("id") is not None
        ]

    async def fetch(self, identifier: str) -> CatalogItem:
        params = self._auth_params()
        tmdb_id = self.parse_identifier(identifier)
        data = await request_json(
            "GET",
            f"{API_BASE}/{self.kind}/{tmdb_id}",
            params={"language": "en-US", **params},
            failure_message="TMDB item fetch failed",
        )
        if not isinstance(data, dict):
            data = {}
        external_id = str(data["id"]) if data.get("id") is not None else tmdb_id
        return self.normalize(data, external_id)
