"""
DingTalk channel — custom robot with signed requests.

The signature is HMAC-SHA256 over ``"{timestamp}\\n{secret}"`` keyed by
the secret, base64-encoded, and sent with the millisecond timestamp as
query parameters on the webhook URL.
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


def sign(secret: str, timestamp_ms: int) -> str:
    string_to_sign = f"{timestamp_ms}\n{secret}"
    digest = hmac.new(
        secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class DingTalkChannel(Channel):
    """DingTalk custom robot with the "sign" security setting."""

    type: str = ChannelType.DINGTALK.value
    required_credentials = ("webhook", "secret")
    required_message_fields = ("msgtype",)

    async def build_request(
        self,
        message: dict[str, Any],
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        timestamp = int(time.time() * 1000)
        return OutboundRequest(
            url=credentials.webhook,
            # httpx url-encodes the base64 signature
            params={"timestamp": str(timestamp), "sign": sign(credentials.secret, timestamp)},
            payload=message,
        )

    def check_response(
        self, response: DeliveryResponse, credentials: ChannelCredentials
    ) -> None:
        raise_for_error_code(response, "errcode")
