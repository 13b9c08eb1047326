"""
Data model for endpoints, channels and endpoint groups.

These are read-only inputs to the relay: storage and CRUD live elsewhere.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EndpointStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class ChannelType(str, Enum):
    WEBHOOK = "webhook"
    WECOM = "wecom"
    DINGTALK = "dingtalk"
    FEISHU = "feishu"
    WECOM_APP = "wecom_app"
    TELEGRAM = "telegram"


class ChannelCredentials(BaseModel):
    """Credential bundle for a channel.

    Only the fields the channel type needs are meaningful; completeness is
    checked when a message is dispatched, not here.
    """

    model_config = ConfigDict(populate_by_name=True)

    webhook: Optional[str] = None
    secret: Optional[str] = None
    corp_id: Optional[str] = Field(default=None, alias="corpId")
    agent_id: Optional[str] = Field(default=None, alias="agentId")
    bot_token: Optional[str] = Field(default=None, alias="botToken")
    chat_id: Optional[str] = Field(default=None, alias="chatId")


class Channel(BaseModel):
    """A configured destination: provider type plus credentials."""

    id: str
    name: str = ""
    type: str  # webhook, wecom, dingtalk, feishu, wecom_app, telegram
    credentials: ChannelCredentials = Field(default_factory=ChannelCredentials)


class Endpoint(BaseModel):
    """An inbound push target bound to exactly one channel."""

    id: str
    name: str = ""
    status: EndpointStatus = EndpointStatus.ACTIVE
    rule: str
    channel: Optional[Channel] = None

    @property
    def is_active(self) -> bool:
        return self.status == EndpointStatus.ACTIVE


class EndpointGroup(BaseModel):
    """A named set of endpoints pushed to together."""

    id: str
    name: str = ""
    endpoint_ids: list[str] = Field(default_factory=list)
