"""IGDB provider for game search and lookup."""

from __future__ import annotations

from typing import Any

from catalog_api.core.config import settings
from catalog_api.core.errors import InvalidRequestError, ItemNotFoundError
from catalog_api.providers.base import UNTITLED, BaseProvider, CatalogItem, CatalogSource, MediaType
from catalog_api.providers.credentials import IGDBCredentialBroker
from catalog_api.providers.http import request_json
from catalog_api.utils.datetime import epoch_to_date_string

COVER_URL = "https://images.igdb.com/igdb/image/upload/t_cover_big/{image_id}.jpg"
FIELDS = "id,name,summary,first_release_date,cover.image_id"


def cover_url(image_id: str | None) -> str | None:
    if not image_id:
        return None
    return COVER_URL.format(image_id=image_id)


def escape_search_term(query: str) -> str:
    """Escape double quotes so the term survives inside an Apicalypse string."""
    return query.replace('"', '\\"')


class IGDBProvider(BaseProvider):
    """IGDB API provider authenticated through a credential broker."""
    source = CatalogSource.IGDB
    _game_url = "https://api.igdb.com/v4/games"

    def __init__(self, broker: IGDBCredentialBroker | None = None) -> None:
        self.broker = broker or IGDBCredentialBroker()

    async def _post(self, body: str, failure_message: str) -> list[dict[str, Any]]:
        """POST an IGDB query; the broker's token is reused even if the API rejects it."""
        client_id = self.broker.ensure_configured()
        token = await self.broker.get_token()
        payload = await request_json(
            "POST",
            self._game_url,
            headers={
                "Client-ID": client_id,
                "Authorization": f"Bearer {token}",
            },
            content=body,
            failure_message=failure_message,
        )
        if isinstance(payload, list):
            return [item for item in payload if isinstance(item, dict)]
        return []

    def normalize(self, payload: dict[str, Any]) -> CatalogItem:
        cover = payload.get("cover") or {}
        return CatalogItem(
            media_type=MediaType.GAME,
            source=self.source,
            external_id=str(payload.get("id")),
            title=payload.get("name") or UNTITLED,
            description=payload.get("summary"),
            release_date=epoch_to_date_string(payload.get("first_release_date")),
            poster_url=cover_url(cover.get("image_id") if isinstance(cover, dict) else None),
            payload=payload,
        )

    async def search(self, query: str) -> list[CatalogItem]:
        """Search IGDB games by name."""
        body = (
            f'search "{escape_search_term(query)}"; fields {FIELDS}; '
            f"limit {settings.igdb_search_limit};"
        )
        data = await self._post(body, "IGDB search failed")
        return [self.normalize(item) for item in data if item.get("id") is not None]

    async def fetch(self, identifier: str) -> CatalogItem:
        """Fetch a game record by numeric IGDB ID."""
        raw_id = self.parse_identifier(identifier)
        try:
            game_id = int(raw_id)
        except ValueError as exc:
            raise InvalidRequestError(f"Invalid IGDB id {raw_id!r}") from exc
        body = f"fields {FIELDS}; where id = {game_id}; limit 1;"
        data = await self._post(body, "IGDB item fetch failed")
        if not data:
            raise ItemNotFoundError("IGDB item not found")
        return self.normalize(data[0])
