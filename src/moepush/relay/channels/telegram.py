"""
Telegram channel — messages via the Bot API.

The rendered message supplies the ``sendMessage`` fields (``text``,
``parse_mode``, ...); ``chat_id`` comes from the channel credentials.
"""

from __future__ import annotations

from typing import Any

from moepush.errors import DeliveryError
from moepush.models import ChannelCredentials, ChannelType
from moepush.relay.channel import Channel
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse, OutboundRequest

_BASE_URL = "https://api.telegram.org/bot{token}"


class TelegramChannel(Channel):
    """Telegram bot identified by bot token and target chat id."""

    type: str = ChannelType.TELEGRAM.value
    required_credentials = ("bot_token", "chat_id")
    required_message_fields = ("text",)

    def __init__(self, base_url: str = _BASE_URL) -> None:
        self.base_url = base_url

    async def build_request(
        self,
        message: dict[str, Any],
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        url = self.base_url.format(token=credentials.bot_token)
        return OutboundRequest(
            url=f"{url}/sendMessage",
            payload={**message, "chat_id": credentials.chat_id},
        )

    def check_response(
        self, response: DeliveryResponse, credentials: ChannelCredentials
    ) -> None:
        data = response.json_body()
        if isinstance(data, dict) and data.get("ok") is False:
            raise DeliveryError(
                response.status_code,
                response.body,
                reason=f"Telegram error: {data.get('description', 'unknown')}",
            )
