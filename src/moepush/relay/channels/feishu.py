"""
Feishu (Lark) channel — custom bot with signature verification.

Feishu signs with HMAC-SHA256 keyed by ``"{timestamp}\\n{secret}"`` over
an empty message; ``timestamp`` (seconds) and ``sign`` go in the body.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Any

from moepush.models import ChannelCredentials, ChannelType
from moepush.relay.channel import Channel, raise_for_error_code
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse, OutboundRequest


def sign(secret: str, timestamp: int) -> str:
    key = f"{timestamp}\n{secret}".encode("utf-8")
    digest = hmac.new(key, b"", hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


class FeishuChannel(Channel):
    """Feishu custom bot with the signing security setting."""

    type: str = ChannelType.FEISHU.value
    required_credentials = ("webhook", "secret")
    required_message_fields = ("msg_type",)

    async def build_request(
        self,
        message: dict[str, Any],
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        timestamp = int(time.time())
        payload = {
            **message,
            "timestamp": str(timestamp),
            "sign": sign(credentials.secret, timestamp),
        }
        return OutboundRequest(url=credentials.webhook, payload=payload)

    def check_response(
        self, response: DeliveryResponse, credentials: ChannelCredentials
    ) -> None:
        raise_for_error_code(response, "code")
