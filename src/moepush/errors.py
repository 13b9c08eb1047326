"""
Error taxonomy for a push invocation.

Every failure is terminal for the invocation that raised it. Each error
records the stage it came from and its kind, so callers can tell a broken
endpoint configuration from a provider or network outage.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

RENDERED_PREVIEW_LIMIT = 200
BODY_PREVIEW_LIMIT = 500


class Stage(str, Enum):
    LOOKUP = "lookup"
    CONTEXT = "context"
    INTERPOLATE = "interpolate"
    PARSE = "parse"
    DISPATCH = "dispatch"
    DELIVER = "deliver"


class ErrorKind(str, Enum):
    ENDPOINT_NOT_FOUND = "endpoint_not_found"
    ENDPOINT_DISABLED = "endpoint_disabled"
    TEMPLATE_RESOLUTION = "template_resolution"
    INVALID_RENDERED_MESSAGE = "invalid_rendered_message"
    MISSING_CREDENTIAL = "missing_credential"
    UNSUPPORTED_CHANNEL_TYPE = "unsupported_channel_type"
    TRANSPORT = "transport"
    DELIVERY = "delivery"
    CANCELLED = "cancelled"

    @property
    def is_client_error(self) -> bool:
        """True when the endpoint owner has to fix their configuration."""
        return self not in (ErrorKind.TRANSPORT, ErrorKind.DELIVERY, ErrorKind.CANCELLED)


def elide(text: str, limit: int) -> str:
    """Cap ``text`` at ``limit`` characters, marking how much was dropped."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [{len(text) - limit} more chars]"


class PushError(Exception):
    """Base class for all push failures."""

    kind: ErrorKind
    stage: Stage

    def __init__(self, message: str, *, stage: Stage | None = None) -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "stage": self.stage.value,
            "message": self.message,
        }


class EndpointNotFoundError(PushError):
    kind = ErrorKind.ENDPOINT_NOT_FOUND
    stage = Stage.LOOKUP

    def __init__(self, endpoint_id: str) -> None:
        self.endpoint_id = endpoint_id
        super().__init__(f"Endpoint not found: {endpoint_id}")


class EndpointDisabledError(PushError):
    kind = ErrorKind.ENDPOINT_DISABLED
    stage = Stage.LOOKUP

    def __init__(self, endpoint_id: str) -> None:
        self.endpoint_id = endpoint_id
        super().__init__(f"Endpoint is disabled: {endpoint_id}")


class TemplateResolutionError(PushError):
    kind = ErrorKind.TEMPLATE_RESOLUTION
    stage = Stage.INTERPOLATE

    def __init__(self, path: str, reason: str = "path not found in context") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot resolve placeholder {{{{{path}}}}}: {reason}")


class InvalidRenderedMessageError(PushError):
    kind = ErrorKind.INVALID_RENDERED_MESSAGE
    stage = Stage.PARSE

    def __init__(self, rendered: str, reason: str) -> None:
        self.rendered = elide(rendered, RENDERED_PREVIEW_LIMIT)
        self.reason = reason
        super().__init__(f"Rendered message is not valid JSON ({reason}): {self.rendered}")


class MessageFieldError(InvalidRenderedMessageError):
    """The rendered message lacks a field the channel needs."""

    stage = Stage.DISPATCH

    def __init__(self, field: str, channel_type: str) -> None:
        self.field = field
        self.channel_type = channel_type
        self.rendered = ""
        self.reason = f"missing field '{field}'"
        PushError.__init__(
            self, f"Message for {channel_type} channel is missing field '{field}'"
        )


class MissingCredentialError(PushError):
    kind = ErrorKind.MISSING_CREDENTIAL
    stage = Stage.DISPATCH

    def __init__(self, field: str, channel_type: str) -> None:
        self.field = field
        self.channel_type = channel_type
        super().__init__(f"{channel_type} channel is missing credential '{field}'")


class UnsupportedChannelTypeError(PushError):
    kind = ErrorKind.UNSUPPORTED_CHANNEL_TYPE
    stage = Stage.DISPATCH

    def __init__(self, channel_type: str) -> None:
        self.channel_type = channel_type
        super().__init__(f"Unsupported channel type: {channel_type!r}")


class TransportError(PushError):
    kind = ErrorKind.TRANSPORT
    stage = Stage.DELIVER

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Transport failure calling {url}: {reason}")


class DeliveryError(PushError):
    kind = ErrorKind.DELIVERY
    stage = Stage.DELIVER

    def __init__(self, status_code: int, body: str, reason: str = "") -> None:
        self.status_code = status_code
        self.body = body
        detail = reason or f"provider returned HTTP {status_code}"
        super().__init__(f"Delivery failed: {detail}: {elide(body, BODY_PREVIEW_LIMIT)}")


class Cancelled(PushError):
    kind = ErrorKind.CANCELLED

    def __init__(self, stage: Stage) -> None:
        super().__init__(f"Push cancelled during {stage.value}", stage=stage)
