"""Client-credentials access token cache."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from loguru import logger

from errors import UpstreamUnavailableError
from http_fetcher import HttpFetcher
from models import CachedToken

# Tokens are treated as expired this long before the provider says they are.
EXPIRY_MARGIN_SECONDS = 60


def _now_ms() -> int:
    return int(time.time() * 1000)


class ClientCredentialTokenCache:
    """Obtain and cache an app-level bearer token.

    The cache is either empty or holds one :class:`CachedToken`. The slot is
    replaced as a whole, so two callers refreshing at the same time simply race
    and the last writer wins.
    """

    def __init__(
        self,
        token_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        fetcher: HttpFetcher,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.fetcher = fetcher
        self.clock = clock
        self._token: Optional[CachedToken] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_token(self) -> Optional[str]:
        """Return a valid token, or ``None`` if one cannot be obtained right now."""
        if not self.configured:
            return None

        now = self.clock()
        with self._lock:
            cached = self._token
        if cached and cached.is_valid(now):
            return cached.value

        try:
            data = self.fetcher.fetch(
                self.token_url,
                method="POST",
                body={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
            )
        except UpstreamUnavailableError as exc:
            logger.warning(f"[token] client-credentials exchange failed: {exc}")
            self.invalidate()
            return None

        value = data.get("access_token") if isinstance(data, dict) else None
        if not value or not isinstance(value, str):
            logger.warning("[token] token endpoint returned no access_token")
            self.invalidate()
            return None

        try:
            expires_in = int(data.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0
        token = CachedToken(
            value=value,
            expires_at_epoch_ms=now + max(0, expires_in - EXPIRY_MARGIN_SECONDS) * 1000,
        )
        with self._lock:
            self._token = token
        logger.debug(f"[token] refreshed, valid for {max(0, expires_in - EXPIRY_MARGIN_SECONDS)}s")
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
