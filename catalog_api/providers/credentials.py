"""Bearer token broker for the IGDB client-credentials flow.

The broker has two states: unauthenticated (nothing cached) and
authenticated (static token configured, or a token obtained from the
identity endpoint). Exchanged tokens are kept in memory without an expiry
and are never refreshed, even after the games API rejects them; only an
explicit ``reset()`` or a process restart clears them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from catalog_api.core.config import settings
from catalog_api.core.errors import MisconfigurationError, UpstreamRequestError
from catalog_api.providers.http import request_json

logger = logging.getLogger("catalog_api.providers")


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CachedCredential:
    """Token obtained from the identity endpoint."""
    token: str
    obtained_at: datetime


class TokenStore(Protocol):
    def get(self) -> CachedCredential | None: ...

    def set(self, credential: CachedCredential) -> None: ...

    def clear(self) -> None: ...


class InMemoryTokenStore:
    """Process-lifetime store holding at most one credential."""

    def __init__(self) -> None:
        self._credential: CachedCredential | None = None

    def get(self) -> CachedCredential | None:
        return self._credential

    def set(self, credential: CachedCredential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class IGDBCredentialBroker:
    """Resolve the bearer token used for IGDB requests."""
    token_url = "https://id.twitch.tv/oauth2/token"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        access_token: str | None = None,
        *,
        store: TokenStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._access_token = access_token
        self.store = store if store is not None else InMemoryTokenStore()
        self._clock = clock

    @property
    def client_id(self) -> str | None:
        return self._client_id or settings.igdb_client_id

    @property
    def client_secret(self) -> str | None:
        return self._client_secret or settings.igdb_client_secret

    @property
    def static_token(self) -> str | None:
        return self._access_token or settings.igdb_access_token

    @property
    def is_authenticated(self) -> bool:
        return bool(self.static_token) or self.store.get() is not None

    def ensure_configured(self) -> str:
        """Return the client id, failing before any network call when credentials are incomplete."""
        client_id = self.client_id
        if not client_id or not (self.client_secret or self.static_token):
            raise MisconfigurationError("IGDB credentials not set")
        return client_id

    async def get_token(self) -> str:
        """Return the static or cached token, exchanging client credentials on first need."""
        client_id = self.ensure_configured()
        static = self.static_token
        if static:
            return static
        cached = self.store.get()
        if cached is not None:
            return cached.token

        data = await request_json(
            "POST",
            self.token_url,
            params={
                "client_id": client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
            failure_message="IGDB token request failed",
        )
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise UpstreamRequestError("IGDB token request failed")
        self.store.set(CachedCredential(token=token, obtained_at=self._clock()))
        logger.info("Obtained IGDB access token via client credentials")
        return token

    def reset(self) -> None:
        """Forget any exchanged token."""
        self.store.clear()
