"""Tests for configuration loading and the YAML endpoint store."""

from pathlib import Path

import pytest
import yaml

from moepush.config import (
    MOEPUSH_CONFIG_FILE,
    MOEPUSH_HOME,
    MoepushConfig,
    RelayConfig,
    load_config,
    save_config,
)
from moepush.models import EndpointStatus
from moepush.store import load_store, store_from_dict


class TestPathConstants:
    def test_home(self):
        assert isinstance(MOEPUSH_HOME, Path)
        assert MOEPUSH_HOME.name == ".moepush"

    def test_config_file_in_home(self):
        assert MOEPUSH_CONFIG_FILE.parent == MOEPUSH_HOME
        assert MOEPUSH_CONFIG_FILE.name == "config.yaml"


class TestRelayConfig:
    def test_defaults(self):
        cfg = RelayConfig()
        assert cfg.timeout == 10.0
        assert cfg.token_refresh_buffer == 300
        assert cfg.log_body_limit == 256
        assert cfg.endpoints_file is None


class TestLoadSave:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "absent.yaml")
        assert cfg == MoepushConfig()

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        save_config(MoepushConfig(relay=RelayConfig(timeout=3.5)), path)
        assert load_config(path).relay.timeout == 3.5

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"relay": {"log_body_limit": 64}}))
        cfg = load_config(path)
        assert cfg.relay.log_body_limit == 64
        assert cfg.relay.timeout == 10.0

    def test_invalid_file_falls_back(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("relay: {timeout: [not, a, number]}")
        cfg = load_config(path)
        assert cfg.relay.timeout == 10.0
        assert "Ignoring unreadable config" in caplog.text


_ENDPOINTS = {
    "channels": [
        {"id": "tg", "type": "telegram", "credentials": {"botToken": "1:A", "chatId": "9"}},
        {"id": "hook", "type": "webhook", "credentials": {"webhook": "https://example.com"}},
    ],
    "endpoints": [
        {"id": "ep-1", "rule": '{"text":"{{body.data.msg}}"}', "channel": "tg"},
        {"id": "ep-2", "rule": "{}", "channel": "hook", "status": "disabled"},
        {"id": "ep-3", "rule": "{}", "channel": "gone"},
    ],
    "groups": [{"id": "g", "name": "all", "endpoint_ids": ["ep-1", "ep-2"]}],
}


class TestEndpointStore:
    @pytest.mark.asyncio
    async def test_store_from_dict(self):
        store = store_from_dict(_ENDPOINTS)

        ep1 = await store.get_endpoint("ep-1")
        assert ep1.channel.type == "telegram"
        assert ep1.channel.credentials.chat_id == "9"

        ep2 = await store.get_endpoint("ep-2")
        assert ep2.status == EndpointStatus.DISABLED

        ep3 = await store.get_endpoint("ep-3")
        assert ep3.channel is None

        group = await store.get_group("g")
        assert group.endpoint_ids == ["ep-1", "ep-2"]
        assert await store.get_endpoint("nope") is None

    @pytest.mark.asyncio
    async def test_load_store(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        path.write_text(yaml.dump(_ENDPOINTS))
        store = load_store(path)
        assert set(store.endpoints) == {"ep-1", "ep-2", "ep-3"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        path.write_text("")
        assert load_store(path).endpoints == {}
