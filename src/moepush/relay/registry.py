"""
ChannelRegistry — selects the channel variant for a stored channel type.

The table is fixed at construction: adding a provider means registering
a new Channel subclass.
"""

from __future__ import annotations

import logging
from typing import Any

from moepush.errors import UnsupportedChannelTypeError
from moepush.models import ChannelCredentials
from moepush.relay.channel import Channel
from moepush.relay.channels import (
    DingTalkChannel,
    FeishuChannel,
    TelegramChannel,
    WebhookChannel,
    WecomAppChannel,
    WecomChannel,
)
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse
from moepush.relay.tokens import AccessTokenCache

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Channel variants keyed by type tag."""

    def __init__(self, channels: list[Channel] | None = None) -> None:
        self.channels: dict[str, Channel] = {}
        for channel in channels or []:
            self.register(channel)

    def register(self, channel: Channel) -> None:
        if channel.type in self.channels:
            raise ValueError(f"Channel type already registered: {channel.type}")
        self.channels[channel.type] = channel

    def get(self, channel_type: str) -> Channel:
        try:
            return self.channels[channel_type]
        except KeyError:
            raise UnsupportedChannelTypeError(channel_type) from None

    def types(self) -> list[str]:
        return sorted(self.channels)

    async def dispatch(
        self,
        channel_type: str,
        message: Any,
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> DeliveryResponse:
        """Send ``message`` through the variant registered for ``channel_type``."""
        channel = self.get(channel_type)
        logger.debug("Dispatching via %s channel", channel.type)
        return await channel.send(message, credentials, executor)


def default_registry(token_cache: AccessTokenCache | None = None) -> ChannelRegistry:
    """Registry with every built-in variant."""
    return ChannelRegistry([
        WebhookChannel(),
        WecomChannel(),
        DingTalkChannel(),
        FeishuChannel(),
        WecomAppChannel(token_cache=token_cache),
        TelegramChannel(),
    ])
