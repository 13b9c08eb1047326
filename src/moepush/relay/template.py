"""
Safe rule interpolation.

A rule is a hand-written JSON skeleton with ``{{path.to.value}}``
placeholders. Placeholders are plain lookups into the push context: there
are no expressions, calls or filters, and nothing outside the supplied
variables is reachable.

Substitution is a single pass, so values that themselves contain ``{{``
are never expanded again. Strings are escaped for embedding inside a JSON
string literal; every other value is written as compact JSON.
"""

from __future__ import annotations

import json
import re
from typing import Any

from moepush.errors import InvalidRenderedMessageError, TemplateResolutionError

_PLACEHOLDER_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_PATH_RE = re.compile(r"^[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)*$")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def resolve_path(variables: dict[str, Any], path: str) -> Any:
    """Walk ``variables`` along a dotted path.

    Numeric segments index into lists; on objects they are ordinary keys.
    Raises TemplateResolutionError naming the path when the walk fails.
    """
    current: Any = variables
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                raise TemplateResolutionError(path, f"no key '{segment}'")
            current = current[segment]
        elif isinstance(current, list):
            if not segment.isdigit():
                raise TemplateResolutionError(path, f"'{segment}' is not a list index")
            index = int(segment)
            if index >= len(current):
                raise TemplateResolutionError(
                    path, f"index {index} out of range (length {len(current)})"
                )
            current = current[index]
        else:
            raise TemplateResolutionError(
                path, f"cannot look up '{segment}' in a {_json_type(current)}"
            )
    return current


def encode_value(value: Any) -> str:
    """Text to splice into the rule for a resolved value."""
    if isinstance(value, str):
        # Escaped contents of a JSON string literal, without the quotes
        return json.dumps(value, ensure_ascii=False)[1:-1]
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def render_template(rule: str, variables: dict[str, Any]) -> str:
    """Replace every placeholder in ``rule`` with its value from ``variables``."""

    def replace(match: re.Match[str]) -> str:
        path = match.group(1).strip()
        if not path:
            raise TemplateResolutionError(path, "empty placeholder")
        if not _PATH_RE.match(path):
            raise TemplateResolutionError(
                path, "only dotted lookups like body.data.field are allowed"
            )
        value = resolve_path(variables, path)
        try:
            return encode_value(value)
        except (TypeError, ValueError) as exc:
            raise TemplateResolutionError(path, f"value is not JSON-serializable: {exc}") from exc

    return _PLACEHOLDER_RE.sub(replace, rule)


def parse_rendered(rendered: str) -> Any:
    """Parse a rendered rule into the provider-bound message."""
    try:
        return json.loads(rendered)
    except json.JSONDecodeError as exc:
        raise InvalidRenderedMessageError(
            rendered, f"{exc.msg} at line {exc.lineno} column {exc.colno}"
        ) from exc


def render_message(rule: str, variables: dict[str, Any]) -> Any:
    return parse_rendered(render_template(rule, variables))
