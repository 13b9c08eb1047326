"""Tests for rule interpolation and rendered-message parsing."""

import json

import pytest

from moepush.errors import InvalidRenderedMessageError, Stage, TemplateResolutionError
from moepush.relay.template import (
    encode_value,
    parse_rendered,
    render_message,
    render_template,
    resolve_path,
)


def _vars(data) -> dict:
    return {
        "body": {
            "timestamp": "2024-05-01T12:00:00.000Z",
            "data": data,
            "metadata": {"source": "curl/8.0", "ip": "10.0.0.1"},
        }
    }


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


class TestResolvePath:
    def test_nested_keys(self):
        assert resolve_path(_vars({"a": {"b": 3}}), "body.data.a.b") == 3

    def test_list_index(self):
        assert resolve_path(_vars({"items": ["x", "y"]}), "body.data.items.1") == "y"

    def test_numeric_key_on_object(self):
        assert resolve_path(_vars({"0": "zero"}), "body.data.0") == "zero"

    def test_missing_key_names_path(self):
        with pytest.raises(TemplateResolutionError) as exc_info:
            resolve_path(_vars({}), "body.data.msg")
        assert exc_info.value.path == "body.data.msg"
        assert "msg" in exc_info.value.reason

    def test_index_out_of_range(self):
        with pytest.raises(TemplateResolutionError, match="out of range"):
            resolve_path(_vars({"items": []}), "body.data.items.0")

    def test_descend_into_scalar(self):
        with pytest.raises(TemplateResolutionError, match="string"):
            resolve_path(_vars({"msg": "hi"}), "body.data.msg.length")

    def test_none_value_resolves(self):
        assert resolve_path(_vars({"x": None}), "body.data.x") is None


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRenderTemplate:
    def test_string_substitution(self):
        rendered = render_template('{"text":"{{body.data.msg}}"}', _vars({"msg": "hello"}))
        assert rendered == '{"text":"hello"}'

    def test_whitespace_inside_braces(self):
        rendered = render_template('{"text":"{{ body.data.msg }}"}', _vars({"msg": "hi"}))
        assert rendered == '{"text":"hi"}'

    def test_metadata_and_timestamp(self):
        rendered = render_template(
            '{"ip":"{{body.metadata.ip}}","at":"{{body.timestamp}}"}', _vars({})
        )
        assert json.loads(rendered) == {"ip": "10.0.0.1", "at": "2024-05-01T12:00:00.000Z"}

    @pytest.mark.parametrize("value", [
        'a"b',
        "back\\slash",
        "line\nbreak\ttab",
        "\x00\x1f control",
        "unicode 你好 ✓",
        '"}, "injected": {"x": "',
    ])
    def test_strings_stay_inside_json_literal(self, value):
        message = render_message('{"text":"{{body.data.v}}"}', _vars({"v": value}))
        assert message == {"text": value}

    @pytest.mark.parametrize("value", [
        {"nested": [1, 2, {"k": "v"}]},
        [1, "two", None],
        42,
        3.5,
        True,
        None,
    ])
    def test_non_strings_substitute_as_json(self, value):
        message = render_message('{"value":{{body.data.v}}}', _vars({"v": value}))
        assert message == {"value": value}

    def test_matches_manual_substitution(self):
        data = {"title": "Build #12", "ok": False, "tags": ["ci", "main"]}
        rule = '{"msgtype":"text","text":{"content":"{{body.data.title}}"},"ok":{{body.data.ok}},"tags":{{body.data.tags}}}'
        expected = {
            "msgtype": "text",
            "text": {"content": "Build #12"},
            "ok": False,
            "tags": ["ci", "main"],
        }
        assert render_message(rule, _vars(data)) == expected

    @pytest.mark.parametrize("path", [
        "body.data.missing",
        "body.nope",
        "other",
        "body.data.items.5",
        "body.metadata.ip.x",
    ])
    def test_every_unresolved_path_fails(self, path):
        rule = '{"text":"{{%s}}"}' % path
        with pytest.raises(TemplateResolutionError) as exc_info:
            render_template(rule, _vars({"items": [1]}))
        assert exc_info.value.path == path
        assert exc_info.value.stage == Stage.INTERPOLATE

    @pytest.mark.parametrize("expr", [
        "__import__('os').system('id')",
        "body.data.msg + 1",
        "body.data.msg | upper",
        "body['data']",
        "body.data.msg()",
        "",
    ])
    def test_expressions_are_rejected(self, expr):
        with pytest.raises(TemplateResolutionError):
            render_template("{{%s}}" % expr, _vars({"msg": "x"}))

    def test_substituted_placeholders_are_not_expanded(self):
        variables = _vars({"msg": "{{body.metadata.ip}}", "secret": "s3cr3t"})
        rendered = render_template('{"text":"{{body.data.msg}}"}', variables)
        assert json.loads(rendered) == {"text": "{{body.metadata.ip}}"}

    def test_text_without_placeholders_is_unchanged(self):
        rule = '{"text": "static { braces }"}'
        assert render_template(rule, _vars({})) == rule


class TestEncodeValue:
    def test_string_has_no_quotes(self):
        assert encode_value('say "hi"') == 'say \\"hi\\"'

    def test_object_is_compact(self):
        assert encode_value({"a": 1, "b": [True]}) == '{"a":1,"b":[true]}'

    def test_non_ascii_preserved(self):
        assert encode_value("café") == "café"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseRendered:
    def test_valid_json(self):
        assert parse_rendered('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_trailing_comma(self):
        with pytest.raises(InvalidRenderedMessageError) as exc_info:
            parse_rendered('{"text":"hello",}')
        err = exc_info.value
        assert err.stage == Stage.PARSE
        assert err.rendered == '{"text":"hello",}'
        assert "line 1" in err.reason

    def test_offending_string_truncated(self):
        with pytest.raises(InvalidRenderedMessageError) as exc_info:
            parse_rendered("{" + "x" * 1000)
        assert len(exc_info.value.rendered) < 300
        assert "more chars" in exc_info.value.rendered
