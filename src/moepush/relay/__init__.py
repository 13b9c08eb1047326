"""
Relay core for moepush.

Builds the push context for an inbound request, renders the endpoint's
rule into a provider message, and delivers it through the channel
variant registered for the endpoint's channel type.
"""

from moepush.relay.channel import Channel
from moepush.relay.context import PushContext, build_push_context
from moepush.relay.executor import DeliveryExecutor, DeliveryResponse, OutboundRequest
from moepush.relay.push import GroupPushResult, PushResult, PushService
from moepush.relay.registry import ChannelRegistry, default_registry
from moepush.relay.template import parse_rendered, render_message, render_template
from moepush.relay.tokens import AccessTokenCache

__all__ = [
    "AccessTokenCache",
    "Channel",
    "ChannelRegistry",
    "DeliveryExecutor",
    "DeliveryResponse",
    "GroupPushResult",
    "OutboundRequest",
    "PushContext",
    "PushResult",
    "PushService",
    "build_push_context",
    "default_registry",
    "parse_rendered",
    "render_message",
    "render_template",
]
