"""Provider registry keyed on (media type, source)."""

from __future__ import annotations

from typing import Callable, Dict

from catalog_api.core.errors import UnsupportedDomainError
from catalog_api.providers.base import BaseProvider, CatalogItem, CatalogSource, MediaType
from catalog_api.providers.google_books import GoogleBooksProvider
from catalog_api.providers.igdb import IGDBProvider
from catalog_api.providers.openlibrary import OpenLibraryProvider
from catalog_api.providers.tmdb import TMDBProvider

ProviderKey = tuple[MediaType, CatalogSource]

_FACTORIES: Dict[ProviderKey, Callable[[], BaseProvider]] = {
    (MediaType.MOVIE, CatalogSource.TMDB): lambda: TMDBProvider(MediaType.MOVIE),
    (MediaType.TV, CatalogSource.TMDB): lambda: TMDBProvider(MediaType.TV),
    (MediaType.GAME, CatalogSource.IGDB): IGDBProvider,
    (MediaType.BOOK, CatalogSource.OPENLIBRARY): OpenLibraryProvider,
    (MediaType.BOOK, CatalogSource.GOOGLE_BOOKS): GoogleBooksProvider,
}

# Primary search provider per domain.
SEARCH_SOURCES: Dict[MediaType, CatalogSource] = {
    MediaType.MOVIE: CatalogSource.TMDB,
    MediaType.TV: CatalogSource.TMDB,
    MediaType.GAME: CatalogSource.IGDB,
    MediaType.BOOK: CatalogSource.OPENLIBRARY,
}

SUPPORTED_PAIRS = frozenset(_FACTORIES)

_PROVIDERS: Dict[ProviderKey, BaseProvider] = {}


def get_provider(media_type: MediaType, source: CatalogSource) -> BaseProvider:
    """Return the shared provider instance serving a media type/source pair."""
    key = (media_type, source)
    if key not in _PROVIDERS:
        factory = _FACTORIES.get(key)
        if factory is None:
            raise UnsupportedDomainError("Unsupported type/source")
        _PROVIDERS[key] = factory()
    return _PROVIDERS[key]


def reset_providers() -> None:
    """Drop cached provider instances, including any exchanged IGDB token."""
    _PROVIDERS.clear()


__all__ = [
    "BaseProvider",
    "CatalogItem",
    "CatalogSource",
    "MediaType",
    "SEARCH_SOURCES",
    "SUPPORTED_PAIRS",
    "get_provider",
    "reset_providers",
]
