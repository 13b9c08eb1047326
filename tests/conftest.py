"""Pytest configuration and fixtures."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from moepush.models import Channel, ChannelCredentials, Endpoint, EndpointStatus
from moepush.relay.executor import DeliveryExecutor


def make_response(status_code: int = 200, body="ok") -> MagicMock:
    """Stand-in for an httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = body if isinstance(body, str) else json.dumps(body)
    return resp


@pytest.fixture
def http_client():
    """Mocked httpx.AsyncClient answering 200 "ok" to every request."""
    client = AsyncMock()
    client.request = AsyncMock(return_value=make_response())
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def executor(http_client):
    return DeliveryExecutor(client=http_client)


@pytest.fixture
def webhook_endpoint():
    """Active endpoint relaying ``msg`` to a generic webhook."""
    return Endpoint(
        id="ep-1",
        name="alerts",
        status=EndpointStatus.ACTIVE,
        rule='{"text":"{{body.data.msg}}"}',
        channel=Channel(
            id="ch-1",
            type="webhook",
            credentials=ChannelCredentials(webhook="https://example.com/hook"),
        ),
    )
