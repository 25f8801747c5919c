"""Canonical catalog item and the provider interface every source implements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

UNTITLED = "Untitled"


class MediaType(str, enum.Enum):
    """Media domains a catalog query can target."""
    MOVIE = "movie"
    TV = "tv"
    GAME = "game"
    BOOK = "book"


class CatalogSource(str, enum.Enum):
    """Upstream catalogs, one tag per provider."""
    TMDB = "tmdb"
    IGDB = "igdb"
    OPENLIBRARY = "openlibrary"
    GOOGLE_BOOKS = "google_books"


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """Provider-agnostic record built from a single upstream document.

    ``external_id`` is only unique together with ``source``.
    """
    media_type: MediaType
    source: CatalogSource
    external_id: str
    title: str
    description: str | None = None
    release_date: str | None = None
    poster_url: str | None = None
    payload: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def secure_url(url: str | None) -> str | None:
    """Upgrade insecure or scheme-relative image URLs to https."""
    if not url:
        return None
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    if url.startswith("//"):
        return "https:" + url
    return url


def text_value(value: Any) -> str | None:
    """Read text fields that arrive either as plain strings or ``{"value": ...}`` objects."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        inner = value.get("value")
        return inner if isinstance(inner, str) else None
    return None


class BaseProvider:
    """Interface for an upstream catalog source."""
    source: CatalogSource

    def parse_identifier(self, identifier: str) -> str:
        """Normalize external identifiers before lookup.

        Identifiers may arrive percent-encoded from the transport boundary.
        """
        return unquote(identifier).strip()

    async def search(self, query: str) -> list[CatalogItem]:
        """Return canonical items for a free-text query, in upstream order."""
        raise NotImplementedError

    async def fetch(self, identifier: str) -> CatalogItem:
        """Fetch a single canonical item by provider identifier."""
        raise NotImplementedError
