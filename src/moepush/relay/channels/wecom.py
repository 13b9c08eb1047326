"""
WeCom group bot channel — POST to the bot's webhook URL.

The webhook URL carries the bot key, so no extra signing is needed.
WeCom reports failures as a non-zero ``errcode`` in a 200 response.
"""

from __future__ import annotations

from typing import Any

from moepush.models import ChannelCredentials, ChannelType
from moepush.relay.channel import Channel, raise_for_error_code
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse, OutboundRequest


class WecomChannel(Channel):
    """WeCom (enterprise WeChat) group robot."""

    type: str = ChannelType.WECOM.value
    required_credentials = ("webhook",)
    required_message_fields = ("msgtype",)

    async def build_request(
        self,
        message: dict[str, Any],
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        return OutboundRequest(url=credentials.webhook, payload=message)

    def check_response(
        self, response: DeliveryResponse, credentials: ChannelCredentials
    ) -> None:
        raise_for_error_code(response, "errcode")
