"""
AccessTokenCache — short-lived in-memory cache for provider access tokens.

Refreshes are single-flight per key: concurrent callers needing the same
token wait on the key's lock and reuse the token fetched by whoever got
there first.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TOKEN_REFRESH_BUFFER = 300  # refresh 5 minutes before expiry

TokenFetcher = Callable[[], Awaitable[tuple[str, float]]]


@dataclass
class _CachedToken:
    token: str
    expires_at: float
    buffer: float


class AccessTokenCache:
    """Access tokens keyed by credential scope (e.g. ``corp_id:agent_id``)."""

    def __init__(
        self,
        refresh_buffer: float = TOKEN_REFRESH_BUFFER,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.refresh_buffer = refresh_buffer
        self._clock = clock
        self._tokens: dict[str, _CachedToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _valid(self, key: str) -> str | None:
        cached = self._tokens.get(key)
        if cached and self._clock() < cached.expires_at - cached.buffer:
            return cached.token
        return None

    async def get(self, key: str, fetch: TokenFetcher) -> str:
        """Return a valid token for ``key``, calling ``fetch`` if needed.

        ``fetch`` returns ``(token, expires_in_seconds)``.
        """
        token = self._valid(key)
        if token:
            return token

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another caller may have refreshed while we waited
            token = self._valid(key)
            if token:
                return token

            token, expires_in = await fetch()
            # short-lived tokens would otherwise be stale on arrival
            self._tokens[key] = _CachedToken(
                token=token,
                expires_at=self._clock() + expires_in,
                buffer=min(self.refresh_buffer, expires_in / 2),
            )
            logger.info("Access token refreshed for %s (expires in %ss)", key, expires_in)
            return token

    def invalidate(self, key: str) -> None:
        if self._tokens.pop(key, None) is not None:
            logger.info("Access token invalidated for %s", key)

    def clear(self) -> None:
        self._tokens.clear()
