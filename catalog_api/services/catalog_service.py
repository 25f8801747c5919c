"""Catalog aggregation across providers.

Invariants:
- Every call path except ``search_all`` propagates classified errors unchanged.
- ``search_all`` isolates each domain: any error there becomes an empty list.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping

from catalog_api.core.errors import InvalidRequestError, UnsupportedDomainError
from catalog_api.providers import SEARCH_SOURCES, SUPPORTED_PAIRS, ProviderKey, get_provider
from catalog_api.providers.base import BaseProvider, CatalogItem, CatalogSource, MediaType
from catalog_api.providers.observability import ProviderMonitor, provider_monitor
from catalog_api.services.fallback_policy import BookFallbackPolicy
from catalog_api.utils.redaction import redact_secrets

logger = logging.getLogger("catalog_api.services.catalog")


def coerce_media_type(value: MediaType | str | None) -> MediaType:
    try:
        return MediaType(value)
    except ValueError as exc:
        raise UnsupportedDomainError("Invalid type") from exc


def coerce_source(value: CatalogSource | str | None) -> CatalogSource:
    try:
        return CatalogSource(value)
    except ValueError as exc:
        raise UnsupportedDomainError("Unsupported type/source") from exc


def _require_text(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise InvalidRequestError(message)
    return value.strip()


class CatalogAggregator:
    """Entry point routing searches and lookups to the responsible provider."""

    def __init__(
        self,
        providers: Mapping[ProviderKey, BaseProvider] | None = None,
        *,
        fallback_policy: BookFallbackPolicy | None = None,
        monitor: ProviderMonitor | None = None,
    ) -> None:
        self._providers = dict(providers) if providers is not None else None
        self.fallback_policy = fallback_policy or BookFallbackPolicy()
        self.monitor = monitor or provider_monitor

    def provider_for(self, media_type: MediaType, source: CatalogSource) -> BaseProvider:
        if self._providers is None:
            return get_provider(media_type, source)
        try:
            return self._providers[(media_type, source)]
        except KeyError as exc:
            raise UnsupportedDomainError("Unsupported type/source") from exc

    async def _search_provider(self, provider: BaseProvider, media_type: MediaType, query: str) -> list[CatalogItem]:
        return await self.monitor.track(
            provider.source.value,
            "search",
            lambda: provider.search(query),
            context={"media_type": media_type.value, "query": query},
        )

    async def search(self, media_type: MediaType | str, query: str | None) -> list[CatalogItem]:
        """Search the provider responsible for a media type."""
        domain = coerce_media_type(media_type)
        text = _require_text(query, "Missing required query params: type, q")
        primary = self.provider_for(domain, SEARCH_SOURCES[domain])
        if domain is not MediaType.BOOK:
            return await self._search_provider(primary, domain, text)

        async def _primary(q: str) -> list[CatalogItem]:
            return await self._search_provider(primary, domain, q)

        async def _fallback(q: str) -> list[CatalogItem]:
            fallback = self.provider_for(domain, CatalogSource.GOOGLE_BOOKS)
            return await self._search_provider(fallback, domain, q)

        return await self.fallback_policy.run(text, _primary, _fallback)

    async def fetch_by_id(
        self,
        media_type: MediaType | str,
        source: CatalogSource | str,
        external_id: str | None,
    ) -> CatalogItem:
        """Fetch one item, routed by the explicit source tag."""
        domain = coerce_media_type(media_type)
        catalog_source = coerce_source(source)
        if (domain, catalog_source) not in SUPPORTED_PAIRS:
            raise UnsupportedDomainError("Unsupported type/source")
        identifier = _require_text(external_id, "Missing required query params: type, source, external_id")
        provider = self.provider_for(domain, catalog_source)
        return await self.monitor.track(
            catalog_source.value,
            "fetch",
            lambda: provider.fetch(identifier),
            context={"media_type": domain.value, "external_id": identifier},
        )

    async def _search_isolated(self, media_type: MediaType, query: str) -> list[CatalogItem]:
        try:
            return await self.search(media_type, query)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Catalog search for %s failed; returning no results: %s",
                media_type.value,
                redact_secrets(str(exc)),
            )
            return []

    async def search_all(
        self,
        query: str | None,
        media_types: Iterable[MediaType | str] | None = None,
    ) -> dict[MediaType, list[CatalogItem]]:
        """Search several domains concurrently, one result list per domain.

        Implementation notes:
        - Domains are queried in parallel; latency tracks the slowest provider.
        - A failing domain yields ``[]`` and never fails the others.
        """
        text = _require_text(query, "Missing required query params: q")
        domains: list[MediaType] = []
        for candidate in media_types or SEARCH_SOURCES:
            domain = coerce_media_type(candidate)
            if domain not in domains:
                domains.append(domain)
        outcomes = await asyncio.gather(*(self._search_isolated(domain, text) for domain in domains))
        return dict(zip(domains, outcomes))


catalog_aggregator = CatalogAggregator()
