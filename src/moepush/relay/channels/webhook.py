"""
Generic webhook channel — POST the rendered message to any URL.
"""

from __future__ import annotations

from typing import Any

from moepush.models import ChannelCredentials, ChannelType
from moepush.relay.channel import Channel
from moepush.relay.executor import DeliveryExecutor, OutboundRequest


class WebhookChannel(Channel):
    """Generic JSON webhook; the message is forwarded unchanged."""

    type: str = ChannelType.WEBHOOK.value
    required_credentials = ("webhook",)

    def check_message(self, message: Any) -> None:
        # Any JSON value is a valid webhook body
        return None

    async def build_request(
        self,
        message: Any,
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        return OutboundRequest(
            url=credentials.webhook,
            headers={"Content-Type": "application/json"},
            payload=message,
        )
