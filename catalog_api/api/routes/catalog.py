from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from catalog_api.api.deps import get_catalog_aggregator
from catalog_api.core.errors import CatalogError
from catalog_api.schema.catalog import CatalogItemOut, CatalogSearchAllResult, CatalogSearchResult
from catalog_api.services.catalog_service import CatalogAggregator

router = APIRouter()


def _http_error(exc: CatalogError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.get("/search", response_model=CatalogSearchResult)
async def search_catalog(
    media_type: str | None = Query(default=None, alias="type"),
    q: str | None = Query(default=None),
    aggregator: CatalogAggregator = Depends(get_catalog_aggregator),
) -> CatalogSearchResult:
    if not media_type or not q:
        raise HTTPException(status_code=400, detail="Missing required query params: type, q")
    try:
        items = await aggregator.search(media_type, q)
    except CatalogError as exc:
        raise _http_error(exc) from exc
    return CatalogSearchResult(results=[CatalogItemOut.model_validate(item) for item in items])


@router.get("/search/all", response_model=CatalogSearchAllResult)
async def search_all_catalogs(
    q: str | None = Query(default=None),
    types: List[str] | None = Query(default=None),
    aggregator: CatalogAggregator = Depends(get_catalog_aggregator),
) -> CatalogSearchAllResult:
    if not q:
        raise HTTPException(status_code=400, detail="Missing required query params: q")
    try:
        grouped = await aggregator.search_all(q, types)
    except CatalogError as exc:
        raise _http_error(exc) from exc
    results = {
        media_type: [CatalogItemOut.model_validate(item) for item in items]
        for media_type, items in grouped.items()
    }
    counts = {media_type: len(items) for media_type, items in grouped.items()}
    return CatalogSearchAllResult(results=results, counts=counts)


@router.get("/item", response_model=CatalogItemOut)
async def get_catalog_item(
    media_type: str | None = Query(default=None, alias="type"),
    source: str | None = Query(default=None),
    external_id: str | None = Query(default=None),
    aggregator: CatalogAggregator = Depends(get_catalog_aggregator),
) -> CatalogItemOut:
    if not media_type or not source or not external_id:
        raise HTTPException(
            status_code=400,
            detail="Missing required query params: type, source, external_id",
        )
    try:
        item = await aggregator.fetch_by_id(media_type, source, external_id)
    except CatalogError as exc:
        raise _http_error(exc) from exc
    return CatalogItemOut.model_validate(item)
