"""Catalog search and lookup response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from catalog_api.providers.base import CatalogSource, MediaType
from catalog_api.schema.base import ORMModel


class CatalogItemOut(ORMModel):
    """Canonical item as exposed to API clients."""
    media_type: MediaType = Field(
        validation_alias=AliasChoices("media_type", "type"),
        serialization_alias="type",
    )
    source: CatalogSource
    external_id: str
    title: str
    description: str | None = None
    release_date: str | None = None
    poster_url: str | None = None
    payload: Any = None


class CatalogSearchResult(BaseModel):
    """Search response for a single media type."""
    results: list[CatalogItemOut]


class CatalogSearchAllResult(BaseModel):
    """Fan-out search response grouped by media type."""
    results: dict[MediaType, list[CatalogItemOut]]
    counts: dict[MediaType, int]
