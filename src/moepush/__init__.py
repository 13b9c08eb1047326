"""
moepush — relay inbound webhook calls to chat and notification providers.

A push renders the endpoint's rule against the inbound request and
delivers the resulting message through the endpoint's channel.
"""

__version__ = "0.1.0"
