"""Tests for push context construction."""

from datetime import datetime, timedelta, timezone

from moepush.relay.context import build_push_context


class TestBuildPushContext:
    def test_defaults_without_headers(self):
        ctx = build_push_context({"msg": "hi"})
        assert ctx.data == {"msg": "hi"}
        assert ctx.metadata.source == "unknown"
        assert ctx.metadata.ip == "unknown"

    def test_timestamp_is_rfc3339_utc(self):
        now = datetime(2024, 5, 1, 14, 30, 15, 123456, tzinfo=timezone(timedelta(hours=2)))
        ctx = build_push_context({}, now=now)
        assert ctx.timestamp == "2024-05-01T12:30:15.123Z"

    def test_timestamp_defaults_to_now(self):
        ctx = build_push_context({})
        parsed = datetime.fromisoformat(ctx.timestamp.replace("Z", "+00:00"))
        assert abs((datetime.now(timezone.utc) - parsed).total_seconds()) < 5

    def test_user_agent_case_insensitive(self):
        ctx = build_push_context({}, {"User-Agent": "GitHub-Hookshot/abc"})
        assert ctx.metadata.source == "GitHub-Hookshot/abc"

    def test_forwarded_for_wins(self):
        ctx = build_push_context({}, {
            "x-forwarded-for": "203.0.113.7, 10.0.0.1",
            "x-real-ip": "10.0.0.2",
        })
        assert ctx.metadata.ip == "203.0.113.7"

    def test_real_ip_fallback(self):
        ctx = build_push_context({}, {"x-forwarded-for": "", "X-Real-IP": "10.0.0.2"})
        assert ctx.metadata.ip == "10.0.0.2"

    def test_body_preserved_unchanged(self):
        body = [{"a": 1.5, "b": None, "c": [True, "x"]}]
        ctx = build_push_context(body)
        assert ctx.template_vars()["body"]["data"] == body

    def test_template_vars_layout(self):
        ctx = build_push_context({"k": "v"}, {"user-agent": "ua", "x-real-ip": "1.2.3.4"})
        variables = ctx.template_vars()
        assert set(variables) == {"body"}
        assert set(variables["body"]) == {"timestamp", "data", "metadata"}
        assert variables["body"]["metadata"] == {"source": "ua", "ip": "1.2.3.4"}
