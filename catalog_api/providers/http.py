from __future__ import annotations

import logging
from typing import Any

import httpx

from catalog_api.core.config import settings
from catalog_api.core.errors import UpstreamRequestError
from catalog_api.utils.redaction import redact_secrets

logger = logging.getLogger("catalog_api.providers")


def _build_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    # Open Library answers merged works with a redirect to the surviving key.
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
        transport=transport,
    )


async def request_json(
    method: str,
    url: str,
    *,
    failure_message: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    content: str | None = None,
) -> Any:
    """Issue a single upstream request and decode its JSON body.

    Any transport error, non-2xx status, or undecodable body is raised as an
    ``UpstreamRequestError``. Requests are never retried here.
    """
    try:
        async with _build_client() as client:
            response = await client.request(method, url, headers=headers, params=params, content=content)
    except httpx.HTTPError as exc:
        logger.warning("%s: %s", failure_message, redact_secrets(f"{type(exc).__name__} {exc}"))
        raise UpstreamRequestError(failure_message) from exc

    if not response.is_success:
        logger.warning(
            "%s: HTTP %s from %s",
            failure_message,
            response.status_code,
            redact_secrets(str(response.request.url)),
        )
        raise UpstreamRequestError(failure_message)

    try:
        return response.json()
    except ValueError as exc:
        logger.warning("%s: invalid JSON from %s", failure_message, redact_secrets(str(response.request.url)))
        raise UpstreamRequestError(failure_message) from exc
