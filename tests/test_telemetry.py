"""Tests for telemetry safe defaults.

Telemetry must stay a no-op when disabled: recorders accept calls, spans are
inert, and the metrics endpoint renders nothing.
"""

import pytest

from chat_action.telemetry import init_telemetry
from chat_action.telemetry.middleware import TelemetryMiddleware
from chat_action.telemetry.otel import get_current_trace_id, init_tracer, start_span
from chat_action.telemetry.prom import (
    generate_metrics_text,
    record_action_error,
    record_action_execution,
    record_external_api_call,
    record_http_request,
    record_oauth_event,
)


class TestDisabled:
    def test_init_is_noop(self, monkeypatch):
        monkeypatch.setenv("TELEMETRY_ENABLED", "false")
        init_telemetry()
        init_tracer()

    def test_recorders_accept_calls(self):
        record_http_request("POST", "/actions/google_hangouts_chat/execute", 200, 0.01)
        record_external_api_call("google_chat", "list_spaces", 0.2)
        record_action_execution("google_hangouts_chat", "ok", 0.3)
        record_action_error("google_hangouts_chat", "remote_error")
        record_oauth_event("google", "tokens_issued")

        assert generate_metrics_text() == ""

    def test_span_is_inert(self):
        with start_span("action.execute", {"action.name": "google_hangouts_chat"}) as span:
            span.set_attribute("action.success", True)

        assert get_current_trace_id() == ""

    def test_span_reraises(self):
        with pytest.raises(RuntimeError):
            with start_span("action.execute"):
                raise RuntimeError("boom")


class TestEndpointNormalization:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/", "/"),
            ("/health", "/health"),
            ("/actions/google_hangouts_chat/form", "/actions/google_hangouts_chat/form"),
            ("/actions/google_hangouts_chat/oauth_redirect", "/actions/google_hangouts_chat/oauth_redirect"),
            ("/actions/google_hangouts_chat/form/extra", "/other"),
            ("/wp-admin/login.php", "/other"),
        ],
    )
    def test_normalize(self, path, expected):
        assert TelemetryMiddleware._normalize_endpoint(path) == expected
