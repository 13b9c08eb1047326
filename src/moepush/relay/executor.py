"""
DeliveryExecutor — performs the outbound HTTP call for a channel.

Maps provider responses onto outcomes: 2xx is a delivery, any other
status is a DeliveryError, and network failures are TransportErrors.
No retries happen here.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx
from pydantic import BaseModel, Field

from moepush.errors import DeliveryError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

_BOT_TOKEN_RE = re.compile(r"/bot[^/]+")


def redact_url(url: str) -> str:
    """Strip the query string and bot tokens so a URL is safe to log."""
    parts = urlsplit(url)
    path = _BOT_TOKEN_RE.sub("/bot***", parts.path)
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def merge_query(url: str, params: dict[str, str]) -> tuple[str, dict[str, str] | None]:
    """Fold a URL's own query string into ``params``.

    httpx replaces, rather than extends, the URL query when ``params`` is
    given, which would drop e.g. a webhook's ``access_token``.
    """
    if not params:
        return url, None
    parts = urlsplit(url)
    merged = {**dict(httpx.URL(url).params), **params}
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment)), merged


class OutboundRequest(BaseModel):
    """A fully built provider call."""

    method: str = "POST"
    url: str
    params: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    payload: Any = None


class DeliveryResponse(BaseModel):
    status_code: int
    body: str = ""

    def json_body(self) -> Any:
        """Decoded body, or None when the provider did not answer with JSON."""
        try:
            return json.loads(self.body)
        except (TypeError, ValueError):
            return None


class DeliveryExecutor:
    """Sends OutboundRequests with a bounded timeout."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = client
        self._owns_client = False
        self.calls = 0

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True

    async def disconnect(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    async def execute(self, request: OutboundRequest) -> DeliveryResponse:
        self.calls += 1
        safe_url = redact_url(request.url)
        url, params = merge_query(request.url, request.params)
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            resp = await client.request(
                request.method,
                url,
                params=params,
                headers=request.headers or None,
                json=request.payload,
                timeout=self.timeout,
            )
            body = resp.text
        except httpx.TimeoutException as exc:
            raise TransportError(safe_url, f"timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(safe_url, str(exc) or type(exc).__name__) from exc
        finally:
            if not self._client:
                await client.aclose()

        response = DeliveryResponse(status_code=resp.status_code, body=body)
        logger.debug("%s %s -> %d", request.method, safe_url, response.status_code)
        if not 200 <= response.status_code < 300:
            raise DeliveryError(response.status_code, response.body)
        return response
