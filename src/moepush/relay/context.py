"""
Push context — the variables a rule can reference.

Rules address the context under ``body``, e.g. ``{{body.data.msg}}``,
``{{body.timestamp}}`` or ``{{body.metadata.ip}}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

UNKNOWN = "unknown"


class PushMetadata(BaseModel):
    source: str = UNKNOWN
    ip: str = UNKNOWN


class PushContext(BaseModel):
    """Per-invocation context built from the inbound request. Never persisted."""

    timestamp: str
    data: Any = None
    metadata: PushMetadata = Field(default_factory=PushMetadata)

    def template_vars(self) -> dict[str, Any]:
        return {
            "body": {
                "timestamp": self.timestamp,
                "data": self.data,
                "metadata": self.metadata.model_dump(),
            }
        }


def _header(headers: Mapping[str, str], name: str) -> str:
    for key, value in headers.items():
        if key.lower() == name:
            return (value or "").strip()
    return ""


def _client_ip(headers: Mapping[str, str]) -> str:
    forwarded = _header(headers, "x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return _header(headers, "x-real-ip") or UNKNOWN


def _rfc3339(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_push_context(
    body: Any,
    headers: Mapping[str, str] | None = None,
    now: datetime | None = None,
) -> PushContext:
    """Assemble the push context. Missing headers default to ``"unknown"``."""
    headers = headers or {}
    return PushContext(
        timestamp=_rfc3339(now or datetime.now(timezone.utc)),
        data=body,
        metadata=PushMetadata(
            source=_header(headers, "user-agent") or UNKNOWN,
            ip=_client_ip(headers),
        ),
    )
