"""
WeCom application channel — send as a corp app agent.

Sending requires an access token exchanged for the corp id and app
secret. Tokens are cached per ``corp_id:agent_id`` and refreshed ahead of
the provider's expiry; a token the provider rejects is dropped so the
next push fetches a fresh one.
"""

from __future__ import annotations

import logging
from typing import Any

from moepush.errors import DeliveryError
from moepush.models import ChannelCredentials, ChannelType
from moepush.relay.channel import Channel, raise_for_error_code
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse, OutboundRequest
from moepush.relay.tokens import AccessTokenCache

logger = logging.getLogger(__name__)

WECOM_BASE = "https://qyapi.weixin.qq.com/cgi-bin"
TOKEN_URL = f"{WECOM_BASE}/gettoken"
SEND_URL = f"{WECOM_BASE}/message/send"

# invalid credential, invalid access_token, access_token expired
_STALE_TOKEN_CODES = {40001, 40014, 42001}

_RECIPIENT_FIELDS = ("touser", "toparty", "totag")


def token_key(credentials: ChannelCredentials) -> str:
    return f"{credentials.corp_id}:{credentials.agent_id}"


class WecomAppChannel(Channel):
    """WeCom self-built application message."""

    type: str = ChannelType.WECOM_APP.value
    required_credentials = ("corp_id", "agent_id", "secret")
    required_message_fields = ("msgtype",)

    def __init__(self, token_cache: AccessTokenCache | None = None) -> None:
        self.token_cache = token_cache or AccessTokenCache()

    async def _fetch_token(
        self, credentials: ChannelCredentials, executor: DeliveryExecutor
    ) -> tuple[str, float]:
        response = await executor.execute(
            OutboundRequest(
                method="GET",
                url=TOKEN_URL,
                params={"corpid": credentials.corp_id, "corpsecret": credentials.secret},
            )
        )
        raise_for_error_code(response, "errcode")
        data = response.json_body()
        if not isinstance(data, dict) or not data.get("access_token"):
            raise DeliveryError(
                response.status_code, response.body, reason="no access_token in token response"
            )
        return data["access_token"], float(data.get("expires_in", 7200))

    async def build_request(
        self,
        message: dict[str, Any],
        credentials: ChannelCredentials,
        executor: DeliveryExecutor,
    ) -> OutboundRequest:
        token = await self.token_cache.get(
            token_key(credentials),
            lambda: self._fetch_token(credentials, executor),
        )
        try:
            agent_id: Any = int(credentials.agent_id)
        except ValueError:
            agent_id = credentials.agent_id

        payload = dict(message)
        if not any(field in payload for field in _RECIPIENT_FIELDS):
            payload["touser"] = "@all"
        payload["agentid"] = agent_id
        return OutboundRequest(url=SEND_URL, params={"access_token": token}, payload=payload)

    def check_response(
        self, response: DeliveryResponse, credentials: ChannelCredentials
    ) -> None:
        data = response.json_body()
        if isinstance(data, dict) and data.get("errcode") in _STALE_TOKEN_CODES:
            logger.warning(
                "WeCom rejected access token for %s (errcode=%s)",
                token_key(credentials),
                data["errcode"],
            )
            self.token_cache.invalidate(token_key(credentials))
        raise_for_error_code(response, "errcode")
