"""Prometheus metrics for the chat action service.

All instrumentation sits behind the TELEMETRY_ENABLED flag. When the flag is
false or prometheus-client cannot be imported, every recorder is a no-op.

Metrics:
- http_request_duration_seconds / http_requests_total: host-facing endpoints
- external_api_calls_total / external_api_duration_seconds: Google Chat calls
- action_exec_total / action_latency_seconds: execute outcomes
- action_error_total: execute failures by reason
- oauth_events_total: OAuth round-trip events
"""

from __future__ import annotations

import logging
import os

_LOG = logging.getLogger(__name__)

_PROM_AVAILABLE = False
_METRICS_INITIALIZED = False

_http_request_duration = None
_http_requests_total = None
_external_api_calls = None
_external_api_duration = None
_action_exec_total = None
_action_latency_seconds = None
_action_error_total = None
_oauth_events = None


def _is_enabled() -> bool:
    """Check if telemetry is enabled via environment variable."""
    return str(os.getenv("TELEMETRY_ENABLED", "false")).lower() in {"1", "true", "yes"}


def _ready() -> bool:
    return _PROM_AVAILABLE and _METRICS_INITIALIZED


def init_prometheus() -> None:
    """Register metrics with the default registry.

    Idempotent. No-op when telemetry is disabled or prometheus-client is missing.
    """
    global _PROM_AVAILABLE, _METRICS_INITIALIZED
    global _http_request_duration, _http_requests_total
    global _external_api_calls, _external_api_duration
    global _action_exec_total, _action_latency_seconds, _action_error_total
    global _oauth_events

    if not _is_enabled():
        _LOG.debug("Telemetry disabled, skipping Prometheus init")
        return

    if _METRICS_INITIALIZED:
        return

    try:
        from prometheus_client import Counter, Histogram
    except ImportError:
        _LOG.warning("prometheus-client not installed, metrics disabled")
        return

    _PROM_AVAILABLE = True

    _http_request_duration = Histogram(
        "http_request_duration_seconds",
        "HTTP request latency in seconds",
        ["method", "endpoint", "status_code"],
        buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    )
    _http_requests_total = Counter(
        "http_requests_total",
        "Total HTTP requests by method, endpoint, and status code",
        ["method", "endpoint", "status_code"],
    )

    _external_api_calls = Counter(
        "external_api_calls_total",
        "Total external API calls by service",
        ["service", "operation"],
    )
    _external_api_duration = Histogram(
        "external_api_duration_seconds",
        "External API call latency in seconds",
        ["service", "operation"],
        buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    )

    _action_exec_total = Counter(
        "action_exec_total",
        "Total action executions by action and status",
        ["action", "status"],
    )
    _action_latency_seconds = Histogram(
        "action_latency_seconds",
        "Action execution latency in seconds",
        ["action"],
        buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    )
    _action_error_total = Counter(
        "action_error_total",
        "Total action errors by action and reason",
        ["action", "reason"],
    )

    _oauth_events = Counter(
        "oauth_events_total",
        "OAuth flow events by provider and event type",
        ["provider", "event"],
    )

    _METRICS_INITIALIZED = True
    _LOG.info("Prometheus metrics initialized")


def record_http_request(method: str, endpoint: str, status_code: int, duration_seconds: float) -> None:
    """Record one host-facing HTTP request."""
    if not _ready():
        return

    try:
        _http_request_duration.labels(method=method, endpoint=endpoint, status_code=status_code).observe(
            duration_seconds
        )
        _http_requests_total.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
    except Exception as exc:
        _LOG.warning("Failed to record HTTP request metric: %s", exc)


def record_external_api_call(service: str, operation: str, duration_seconds: float) -> None:
    """Record one outbound call.

    Args:
        service: Remote service (google_chat)
        operation: Operation name (list_spaces, create_message)
        duration_seconds: Call duration in seconds
    """
    if not _ready():
        return

    try:
        _external_api_calls.labels(service=service, operation=operation).inc()
        _external_api_duration.labels(service=service, operation=operation).observe(duration_seconds)
    except Exception as exc:
        _LOG.warning("Failed to record external API metric: %s", exc)


def record_action_execution(action: str, status: str, duration_seconds: float) -> None:
    """Record an execute outcome (status: ok | failed | reset)."""
    if not _ready():
        return

    try:
        _action_exec_total.labels(action=action, status=status).inc()
        _action_latency_seconds.labels(action=action).observe(duration_seconds)
    except Exception as exc:
        _LOG.warning("Failed to record action execution metric: %s", exc)


def record_action_error(action: str, reason: str) -> None:
    """Record an execute failure (reason: remote_error, precondition, session_invalid)."""
    if not _ready():
        return

    try:
        _action_error_total.labels(action=action, reason=reason).inc()
    except Exception as exc:
        _LOG.warning("Failed to record action error metric: %s", exc)


def record_oauth_event(provider: str, event: str) -> None:
    """Record an OAuth flow event (authorize_started, tokens_issued, invalid_state, ...)."""
    if not _ready():
        return

    try:
        _oauth_events.labels(provider=provider, event=event).inc()
    except Exception as exc:
        _LOG.warning("Failed to record OAuth event metric: %s", exc)


def generate_metrics_text() -> str:
    """Render metrics in Prometheus text exposition format ("" when disabled)."""
    if not _ready():
        return ""

    from prometheus_client import REGISTRY, generate_latest

    return generate_latest(REGISTRY).decode("utf-8")
