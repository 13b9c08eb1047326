"""
Endpoint lookup.

The relay only reads endpoints; persistence belongs to whatever implements
EndpointStore. InMemoryEndpointStore backs tests and the CLI, loaded from
a YAML file with ``channels``, ``endpoints`` and ``groups`` sections.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol

import yaml

from moepush.models import Channel, Endpoint, EndpointGroup


class EndpointStore(Protocol):
    async def get_endpoint(self, endpoint_id: str) -> Optional[Endpoint]: ...

    async def get_group(self, group_id: str) -> Optional[EndpointGroup]: ...


class InMemoryEndpointStore:
    """Dict-backed EndpointStore."""

    def __init__(
        self,
        endpoints: list[Endpoint] | None = None,
        groups: list[EndpointGroup] | None = None,
    ) -> None:
        self.endpoints: dict[str, Endpoint] = {e.id: e for e in endpoints or []}
        self.groups: dict[str, EndpointGroup] = {g.id: g for g in groups or []}

    def add(self, endpoint: Endpoint) -> None:
        self.endpoints[endpoint.id] = endpoint

    def add_group(self, group: EndpointGroup) -> None:
        self.groups[group.id] = group

    async def get_endpoint(self, endpoint_id: str) -> Optional[Endpoint]:
        return self.endpoints.get(endpoint_id)

    async def get_group(self, group_id: str) -> Optional[EndpointGroup]:
        return self.groups.get(group_id)


def store_from_dict(data: dict[str, Any]) -> InMemoryEndpointStore:
    """Build a store from parsed YAML.

    Endpoints reference their channel by id; an unknown reference leaves
    the endpoint without a channel, which lookups report as not found.
    """
    channels = {c["id"]: Channel(**c) for c in data.get("channels") or []}
    store = InMemoryEndpointStore()
    for raw in data.get("endpoints") or []:
        raw = dict(raw)
        channel_id = raw.pop("channel", None)
        store.add(Endpoint(**raw, channel=channels.get(channel_id)))
    for raw in data.get("groups") or []:
        store.add_group(EndpointGroup(**raw))
    return store


def load_store(path: Path) -> InMemoryEndpointStore:
    """Load an endpoints YAML file."""
    data = yaml.safe_load(Path(path).read_text()) or {}
    return store_from_dict(data)
