"""Built-in channel variants."""

from moepush.relay.channels.dingtalk import DingTalkChannel
from moepush.relay.channels.feishu import FeishuChannel
from moepush.relay.channels.telegram import TelegramChannel
from moepush.relay.channels.webhook import WebhookChannel
from moepush.relay.channels.wecom import WecomChannel
from moepush.relay.channels.wecom_app import WecomAppChannel

__all__ = [
    "DingTalkChannel",
    "FeishuChannel",
    "TelegramChannel",
    "WebhookChannel",
    "WecomAppChannel",
    "WecomChannel",
]
