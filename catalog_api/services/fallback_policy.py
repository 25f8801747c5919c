"""Primary/secondary rule for book searches."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from catalog_api.core.config import settings
from catalog_api.providers.base import CatalogItem

logger = logging.getLogger("catalog_api.services.catalog")

SearchFn = Callable[[str], Awaitable[list[CatalogItem]]]


class BookFallbackPolicy:
    """Replace thin primary results with the fallback provider's results.

    The fallback only runs when enabled and the primary returned fewer than
    ``threshold`` items. The fallback provider owns its key, so a missing key
    surfaces from that provider only once the fallback actually runs.
    """

    def __init__(
        self,
        *,
        enabled: bool | None = None,
        threshold: int | None = None,
    ) -> None:
        self._enabled = enabled
        self._threshold = threshold

    @property
    def enabled(self) -> bool:
        return self._enabled if self._enabled is not None else settings.catalog_google_books_fallback

    @property
    def threshold(self) -> int:
        return self._threshold if self._threshold is not None else settings.books_fallback_threshold

    def should_fall_back(self, result_count: int) -> bool:
        return self.enabled and result_count < self.threshold

    async def run(self, query: str, primary: SearchFn, fallback: SearchFn) -> list[CatalogItem]:
        results = await primary(query)
        if not self.should_fall_back(len(results)):
            return results
        logger.info(
            "Primary book search returned %d results (threshold %d); using fallback",
            len(results),
            self.threshold,
        )
        return await fallback(query)
