"""
PushService — one push invocation from endpoint lookup to delivery.

Stages run in order: lookup, context, interpolate, parse, dispatch. The
first failing stage ends the push; its PushError is turned into a failed
PushResult here, at the boundary, so callers always get a result back.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, Field

from moepush.config import RelayConfig
from moepush.errors import (
    Cancelled,
    DeliveryError,
    EndpointDisabledError,
    EndpointNotFoundError,
    ErrorKind,
    PushError,
    Stage,
    elide,
)
from moepush.relay.context import build_push_context
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse
from moepush.relay.registry import ChannelRegistry, default_registry
from moepush.relay.template import parse_rendered, render_template
from moepush.relay.tokens import AccessTokenCache
from moepush.store import EndpointStore

logger = logging.getLogger(__name__)


class PushResult(BaseModel):
    """Outcome of a single push, as surfaced to the caller."""

    endpoint_id: str
    success: bool
    message: str
    error_kind: Optional[ErrorKind] = None
    stage: Optional[Stage] = None
    status_code: Optional[int] = None  # provider HTTP status, when one was received
    detail: Optional[str] = None  # provider response body, size-capped

    @property
    def http_status(self) -> int:
        """Status for the route layer: 4xx for misconfiguration, 5xx for outages."""
        if self.success:
            return 200
        if self.error_kind == ErrorKind.ENDPOINT_NOT_FOUND:
            return 404
        if self.error_kind == ErrorKind.ENDPOINT_DISABLED:
            return 403
        if self.error_kind == ErrorKind.CANCELLED:
            return 504
        if self.error_kind is not None and self.error_kind.is_client_error:
            return 400
        return 502

    @classmethod
    def from_error(
        cls, endpoint_id: str, error: PushError, body_limit: int = 256
    ) -> PushResult:
        status_code = detail = None
        if isinstance(error, DeliveryError):
            status_code = error.status_code
            detail = elide(error.body, body_limit)
        return cls(
            endpoint_id=endpoint_id,
            success=False,
            message=error.message,
            error_kind=error.kind,
            stage=error.stage,
            status_code=status_code,
            detail=detail,
        )


class GroupPushResult(BaseModel):
    """Per-endpoint outcomes of a group push."""

    group_id: str
    results: dict[str, PushResult] = Field(default_factory=dict)
    error: Optional[PushResult] = None

    @property
    def success(self) -> bool:
        return self.error is None and all(r.success for r in self.results.values())

    @property
    def failed(self) -> list[str]:
        return [eid for eid, r in self.results.items() if not r.success]


@dataclass
class _Progress:
    stage: Stage = Stage.LOOKUP


class PushService:
    """Renders an endpoint's rule against an inbound request and delivers it."""

    def __init__(
        self,
        store: EndpointStore,
        *,
        registry: ChannelRegistry | None = None,
        executor: DeliveryExecutor | None = None,
        config: RelayConfig | None = None,
    ) -> None:
        self.config = config or RelayConfig()
        self.store = store
        self.token_cache = AccessTokenCache(refresh_buffer=self.config.token_refresh_buffer)
        self.registry = registry or default_registry(self.token_cache)
        self.executor = executor or DeliveryExecutor(timeout=self.config.timeout)

    async def connect(self) -> None:
        await self.executor.connect()

    async def disconnect(self) -> None:
        await self.executor.disconnect()

    async def push(
        self,
        endpoint_id: str,
        body: Any,
        headers: Mapping[str, str] | None = None,
        *,
        deadline: float | None = None,
    ) -> PushResult:
        """Push ``body`` to an endpoint.

        ``deadline`` (seconds) bounds the whole invocation; exceeding it
        aborts the in-flight call and yields a ``cancelled`` result. Task
        cancellation itself propagates to the caller.
        """
        progress = _Progress()
        try:
            if deadline is None:
                response = await self._run(endpoint_id, body, headers, progress)
            else:
                response = await asyncio.wait_for(
                    self._run(endpoint_id, body, headers, progress), timeout=deadline
                )
        except asyncio.TimeoutError:
            return self._failed(endpoint_id, Cancelled(progress.stage))
        except PushError as exc:
            return self._failed(endpoint_id, exc)

        logger.info("Push %s delivered (HTTP %d)", endpoint_id, response.status_code)
        return PushResult(
            endpoint_id=endpoint_id,
            success=True,
            message="Push delivered",
            status_code=response.status_code,
            detail=elide(response.body, self.config.log_body_limit),
        )

    async def push_group(
        self,
        group_id: str,
        body: Any,
        headers: Mapping[str, str] | None = None,
        *,
        deadline: float | None = None,
    ) -> GroupPushResult:
        """Push to every endpoint of a group concurrently."""
        group = await self.store.get_group(group_id)
        if group is None:
            error = self._failed(group_id, EndpointNotFoundError(group_id))
            return GroupPushResult(group_id=group_id, error=error)

        # a repeated id is pushed once
        endpoint_ids = list(dict.fromkeys(group.endpoint_ids))
        results = await asyncio.gather(*[
            self.push(endpoint_id, body, headers, deadline=deadline)
            for endpoint_id in endpoint_ids
        ])
        outcome = GroupPushResult(
            group_id=group_id,
            results={r.endpoint_id: r for r in results},
        )
        if outcome.failed:
            logger.warning(
                "Group %s: %d of %d pushes failed",
                group_id, len(outcome.failed), len(results),
            )
        return outcome

    async def _run(
        self,
        endpoint_id: str,
        body: Any,
        headers: Mapping[str, str] | None,
        progress: _Progress,
    ) -> DeliveryResponse:
        progress.stage = Stage.LOOKUP
        endpoint = await self.store.get_endpoint(endpoint_id)
        if endpoint is None or endpoint.channel is None:
            raise EndpointNotFoundError(endpoint_id)
        if not endpoint.is_active:
            raise EndpointDisabledError(endpoint_id)

        progress.stage = Stage.CONTEXT
        context = build_push_context(body, headers)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Push %s inbound body: %s",
                endpoint_id,
                elide(json.dumps(body, ensure_ascii=False, default=str), self.config.log_body_limit),
            )

        progress.stage = Stage.INTERPOLATE
        rendered = render_template(endpoint.rule, context.template_vars())

        progress.stage = Stage.PARSE
        message = parse_rendered(rendered)

        progress.stage = Stage.DISPATCH
        channel = endpoint.channel
        return await self.registry.dispatch(
            channel.type, message, channel.credentials, self.executor
        )

    def _failed(self, endpoint_id: str, error: PushError) -> PushResult:
        logger.warning(
            "Push %s failed at %s [%s]: %s",
            endpoint_id, error.stage.value, error.kind.value,
            elide(error.message, self.config.log_body_limit),
        )
        return PushResult.from_error(endpoint_id, error, self.config.log_body_limit)
