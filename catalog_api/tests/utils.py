"""Shared helpers for catalog tests."""

from __future__ import annotations

import json
from collections import defaultdict, deque
from typing import Any

import httpx

from catalog_api.core.errors import CatalogError
from catalog_api.providers.base import BaseProvider, CatalogItem, CatalogSource, MediaType
from catalog_api.providers.http import _build_client


class StubUpstream:
    """Queue canned responses per (method, url) and record every request."""

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], deque[httpx.Response]] = defaultdict(deque)
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        *,
        status: int = 200,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        content = json.dumps(json_data if json_data is not None else {}).encode("utf-8")
        self._responses[(method.upper(), url)].append(
            httpx.Response(
                status_code=status,
                content=content,
                headers={"content-type": "application/json", **(headers or {})},
            )
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, f"{request.url.scheme}://{request.url.host}{request.url.path}")
        queued = self._responses.get(key)
        if not queued:
            raise AssertionError(f"No stub response configured for {key}")
        return queued.popleft()

    def build_client(self) -> httpx.AsyncClient:
        return _build_client(transport=httpx.MockTransport(self.handler))

    def urls(self) -> list[str]:
        return [f"{r.url.scheme}://{r.url.host}{r.url.path}" for r in self.requests]

    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]


def make_item(
    media_type: MediaType,
    source: CatalogSource,
    external_id: str,
    title: str | None = None,
) -> CatalogItem:
    return CatalogItem(
        media_type=media_type,
        source=source,
        external_id=external_id,
        title=title or f"{source.value} {external_id}",
    )


class FakeProvider(BaseProvider):
    """In-memory provider recording calls; raises ``error`` when set."""

    def __init__(
        self,
        source: CatalogSource,
        results: list[CatalogItem] | None = None,
        *,
        error: CatalogError | None = None,
    ) -> None:
        self.source = source
        self.results = results or []
        self.error = error
        self.search_calls: list[str] = []
        self.fetch_calls: list[str] = []

    async def search(self, query: str) -> list[CatalogItem]:
        self.search_calls.append(query)
        if self.error:
            raise self.error
        return list(self.results)

    async def fetch(self, identifier: str) -> CatalogItem:
        self.fetch_calls.append(identifier)
        if self.error:
            raise self.error
        for item in self.results:
            if item.external_id == self.parse_identifier(identifier):
                return item
        raise AssertionError(f"unknown id {identifier}")
