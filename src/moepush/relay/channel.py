"""
Channel — abstract base class for all provider variants.

Each variant (webhook, DingTalk, Feishu, WeCom, Telegram, ...) inherits
from this ABC and implements `build_request()`, and optionally
`check_response()` for providers that report errors inside a 2xx body.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from moepush.errors import DeliveryError, MessageFieldError, MissingCredentialError
from moepush.models import ChannelCredentials
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse, OutboundRequest


class Channel(ABC):
    """Base class for provider variants."""

    type: str = "unnamed"
    required_credentials: tuple[str, ...] = ()
    required_message_fields: tuple[str, ...] = ()

    def check_credentials(self, credentials: ChannelCredentials) -> None:
        """Raise MissingCredentialError for the first empty required field."""
        for field in self.required_credentials:
            value = getattr(credentials, field, None)
            if not value or not str(value).strip():
                raise MissingCredentialError(field, self.type)

    def check_message(self, message: Any) -> None:
        if not isinstance(message, dict):
            raise MessageFieldError("<root>", self.type)
        for field in self.required_message_fields:
            if field not in message:
                raise MessageFieldError(field, self.type)

    @abstractmethod
    async def build_request(
        self,
        message: dict[str, Any],
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        """Construct the authenticated provider call for ``message``."""
        ...

    def check_response(
        self, response: DeliveryResponse, credentials: ChannelCredentials
    ) -> None:
        """Inspect a 2xx response for provider-level errors. No-op by default."""

    async def send(
        self,
        message: Any,
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> DeliveryResponse:
        self.check_credentials(credentials)
        self.check_message(message)
        request = await self.build_request(message, credentials, executor)
        response = await executor.execute(request)
        self.check_response(response, credentials)
        return response


def raise_for_error_code(response: DeliveryResponse, key: str) -> None:
    """Raise DeliveryError when a JSON body carries a non-zero ``key``."""
    data = response.json_body()
    if isinstance(data, dict) and data.get(key, 0) != 0:
        message = data.get("errmsg") or data.get("msg") or ""
        raise DeliveryError(
            response.status_code,
            response.body,
            reason=f"provider error {key}={data[key]} {message}".rstrip(),
        )
