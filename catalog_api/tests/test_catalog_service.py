"""Aggregator tests for routing, book fallback, and fan-out isolation."""

from __future__ import annotations

import asyncio

import pytest

from catalog_api.core.config import settings
from catalog_api.core.errors import (
    InvalidRequestError,
    MisconfigurationError,
    UnsupportedDomainError,
    UpstreamRequestError,
)
from catalog_api.providers.base import BaseProvider, CatalogSource, MediaType
from catalog_api.providers.google_books import GoogleBooksProvider
from catalog_api.providers.observability import ProviderMonitor
from catalog_api.services.catalog_service import CatalogAggregator
from catalog_api.services.fallback_policy import BookFallbackPolicy
from catalog_api.tests.utils import FakeProvider, make_item


def _books(source: CatalogSource, count: int) -> list:
    return [make_item(MediaType.BOOK, source, f"{source.value}-{index}") for index in range(count)]


def _build(
    *,
    primary_count: int = 5,
    fallback_count: int = 4,
    fallback_enabled: bool = False,
    fallback_provider: BaseProvider | None = None,
    errors: dict[MediaType, Exception] | None = None,
) -> tuple[CatalogAggregator, dict[str, BaseProvider]]:
    errors = errors or {}
    providers = {
        "movie": FakeProvider(
            CatalogSource.TMDB,
            [make_item(MediaType.MOVIE, CatalogSource.TMDB, "603", "The Matrix")],
            error=errors.get(MediaType.MOVIE),
        ),
        "tv": FakeProvider(
            CatalogSource.TMDB,
            [make_item(MediaType.TV, CatalogSource.TMDB, "1399", "Game of Thrones")],
            error=errors.get(MediaType.TV),
        ),
        "game": FakeProvider(
            CatalogSource.IGDB,
            [make_item(MediaType.GAME, CatalogSource.IGDB, "1942", "The Witcher 3")],
            error=errors.get(MediaType.GAME),
        ),
        "openlibrary": FakeProvider(
            CatalogSource.OPENLIBRARY,
            _books(CatalogSource.OPENLIBRARY, primary_count),
            error=errors.get(MediaType.BOOK),
        ),
        "google_books": fallback_provider
        or FakeProvider(CatalogSource.GOOGLE_BOOKS, _books(CatalogSource.GOOGLE_BOOKS, fallback_count)),
    }
    aggregator = CatalogAggregator(
        {
            (MediaType.MOVIE, CatalogSource.TMDB): providers["movie"],
            (MediaType.TV, CatalogSource.TMDB): providers["tv"],
            (MediaType.GAME, CatalogSource.IGDB): providers["game"],
            (MediaType.BOOK, CatalogSource.OPENLIBRARY): providers["openlibrary"],
            (MediaType.BOOK, CatalogSource.GOOGLE_BOOKS): providers["google_books"],
        },
        fallback_policy=BookFallbackPolicy(enabled=fallback_enabled),
        monitor=ProviderMonitor(),
    )
    return aggregator, providers


@pytest.mark.asyncio
async def test_search_routes_by_media_type() -> None:
    aggregator, providers = _build()

    movies = await aggregator.search("movie", "matrix")
    series = await aggregator.search(MediaType.TV, "thrones")
    games = await aggregator.search("game", "witcher")

    assert [item.external_id for item in movies] == ["603"]
    assert all(item.media_type is MediaType.MOVIE for item in movies)
    assert all(item.media_type is MediaType.TV for item in series)
    assert [item.source for item in games] == [CatalogSource.IGDB]
    assert providers["movie"].search_calls == ["matrix"]
    assert providers["tv"].search_calls == ["thrones"]


@pytest.mark.asyncio
async def test_search_rejects_unknown_media_type_and_blank_query() -> None:
    aggregator, _ = _build()

    with pytest.raises(UnsupportedDomainError) as excinfo:
        await aggregator.search("music", "abbey road")
    assert excinfo.value.status_code == 400

    with pytest.raises(InvalidRequestError):
        await aggregator.search("movie", "   ")


@pytest.mark.asyncio
async def test_book_search_without_fallback_returns_primary() -> None:
    aggregator, providers = _build(primary_count=1, fallback_enabled=False)

    results = await aggregator.search("book", "dune")

    assert [item.source for item in results] == [CatalogSource.OPENLIBRARY]
    assert providers["google_books"].search_calls == []


@pytest.mark.asyncio
async def test_book_fallback_replaces_thin_primary_results() -> None:
    aggregator, providers = _build(primary_count=2, fallback_count=4, fallback_enabled=True)

    results = await aggregator.search("book", "dune")

    assert results == providers["google_books"].results
    assert {item.source for item in results} == {CatalogSource.GOOGLE_BOOKS}
    assert providers["openlibrary"].search_calls == ["dune"]
    assert providers["google_books"].search_calls == ["dune"]


@pytest.mark.asyncio
async def test_book_fallback_skipped_when_primary_is_sufficient() -> None:
    aggregator, providers = _build(primary_count=5, fallback_enabled=True)

    results = await aggregator.search("book", "dune")

    assert len(results) == 5
    assert providers["google_books"].search_calls == []


@pytest.mark.asyncio
async def test_book_fallback_threshold_is_exclusive() -> None:
    aggregator, providers = _build(primary_count=3, fallback_enabled=True)

    results = await aggregator.search("book", "dune")

    assert {item.source for item in results} == {CatalogSource.OPENLIBRARY}
    assert providers["google_books"].search_calls == []


@pytest.mark.asyncio
async def test_book_fallback_missing_key_only_fails_when_attempted(
    monkeypatch: pytest.MonkeyPatch, upstream
) -> None:
    monkeypatch.setattr(settings, "google_books_api_key", None)
    sufficient, _ = _build(primary_count=5, fallback_enabled=True, fallback_provider=GoogleBooksProvider())
    thin, _ = _build(primary_count=1, fallback_enabled=True, fallback_provider=GoogleBooksProvider())

    assert len(await sufficient.search("book", "dune")) == 5
    with pytest.raises(MisconfigurationError) as excinfo:
        await thin.search("book", "dune")
    assert excinfo.value.message == "GOOGLE_BOOKS_API_KEY not set"
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_book_fallback_uses_key_of_injected_provider(monkeypatch: pytest.MonkeyPatch, upstream) -> None:
    monkeypatch.setattr(settings, "google_books_api_key", None)
    upstream.add(
        "GET",
        "https://www.googleapis.com/books/v1/volumes",
        json_data={"items": [{"id": "gb-1", "volumeInfo": {"title": "Dune"}}]},
    )
    aggregator, _ = _build(
        primary_count=0,
        fallback_enabled=True,
        fallback_provider=GoogleBooksProvider(api_key="injected"),
    )

    results = await aggregator.search("book", "dune")

    assert [item.external_id for item in results] == ["gb-1"]
    assert upstream.requests[0].url.params["key"] == "injected"


@pytest.mark.asyncio
async def test_book_fallback_reads_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "catalog_google_books_fallback", True)
    monkeypatch.setattr(settings, "books_fallback_threshold", 10)
    policy = BookFallbackPolicy()

    assert policy.enabled is True
    assert policy.should_fall_back(9)
    assert not policy.should_fall_back(10)


@pytest.mark.asyncio
async def test_fetch_routes_by_source() -> None:
    aggregator, providers = _build()

    item = await aggregator.fetch_by_id("book", "google_books", "google_books-1")

    assert item.source is CatalogSource.GOOGLE_BOOKS
    assert providers["google_books"].fetch_calls == ["google_books-1"]
    assert providers["openlibrary"].fetch_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("media_type", "source"),
    [("movie", "igdb"), ("game", "tmdb"), ("book", "tmdb"), ("tv", "openlibrary"), ("book", "goodreads"), ("music", "tmdb")],
)
async def test_fetch_rejects_unsupported_pairs(media_type: str, source: str) -> None:
    aggregator, providers = _build()

    with pytest.raises(UnsupportedDomainError) as excinfo:
        await aggregator.fetch_by_id(media_type, source, "1")

    assert excinfo.value.status_code == 400
    assert all(not provider.fetch_calls for provider in providers.values())


@pytest.mark.asyncio
async def test_fetch_propagates_classified_errors() -> None:
    aggregator, _ = _build(errors={MediaType.GAME: UpstreamRequestError("IGDB item fetch failed")})

    with pytest.raises(UpstreamRequestError):
        await aggregator.fetch_by_id("game", "igdb", "1942")


@pytest.mark.asyncio
async def test_search_all_isolates_failing_domain() -> None:
    aggregator, _ = _build(errors={MediaType.GAME: UpstreamRequestError("IGDB search failed")})

    grouped = await aggregator.search_all("anything")

    assert list(grouped) == [MediaType.MOVIE, MediaType.TV, MediaType.GAME, MediaType.BOOK]
    assert grouped[MediaType.GAME] == []
    assert [item.external_id for item in grouped[MediaType.MOVIE]] == ["603"]
    assert [item.external_id for item in grouped[MediaType.TV]] == ["1399"]
    assert len(grouped[MediaType.BOOK]) == 5


@pytest.mark.asyncio
async def test_search_all_swallows_misconfiguration() -> None:
    aggregator, _ = _build(errors={MediaType.MOVIE: MisconfigurationError("TMDB_API_KEY not set")})

    grouped = await aggregator.search_all("anything", ["movie", "game", "movie"])

    assert list(grouped) == [MediaType.MOVIE, MediaType.GAME]
    assert grouped[MediaType.MOVIE] == []
    assert len(grouped[MediaType.GAME]) == 1


@pytest.mark.asyncio
async def test_search_all_runs_domains_concurrently() -> None:
    started: list[MediaType] = []
    everyone_started = asyncio.Event()

    class BarrierProvider(FakeProvider):
        def __init__(self, media_type: MediaType, source: CatalogSource) -> None:
            super().__init__(source, [make_item(media_type, source, media_type.value)])
            self.media_type = media_type

        async def search(self, query: str):
            started.append(self.media_type)
            if len(started) == 4:
                everyone_started.set()
            await everyone_started.wait()
            return await super().search(query)

    aggregator = CatalogAggregator(
        {
            (MediaType.MOVIE, CatalogSource.TMDB): BarrierProvider(MediaType.MOVIE, CatalogSource.TMDB),
            (MediaType.TV, CatalogSource.TMDB): BarrierProvider(MediaType.TV, CatalogSource.TMDB),
            (MediaType.GAME, CatalogSource.IGDB): BarrierProvider(MediaType.GAME, CatalogSource.IGDB),
            (MediaType.BOOK, CatalogSource.OPENLIBRARY): BarrierProvider(MediaType.BOOK, CatalogSource.OPENLIBRARY),
        },
        fallback_policy=BookFallbackPolicy(enabled=False),
        monitor=ProviderMonitor(),
    )

    grouped = await asyncio.wait_for(aggregator.search_all("barrier"), timeout=2)

    assert sorted(started, key=lambda m: m.value) == sorted(MediaType, key=lambda m: m.value)
    assert all(len(items) == 1 for items in grouped.values())


@pytest.mark.asyncio
async def test_search_all_propagates_cancellation() -> None:
    blocked = asyncio.Event()

    class HangingProvider(FakeProvider):
        async def search(self, query: str):
            blocked.set()
            await asyncio.sleep(60)
            return []

    aggregator, _ = _build()
    aggregator._providers[(MediaType.GAME, CatalogSource.IGDB)] = HangingProvider(CatalogSource.IGDB)

    task = asyncio.create_task(aggregator.search_all("slow"))
    await blocked.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_search_all_requires_query() -> None:
    aggregator, providers = _build()

    with pytest.raises(InvalidRequestError):
        await aggregator.search_all("")

    assert all(not provider.search_calls for provider in providers.values())
