"""OpenTelemetry tracing for the chat action service.

Tracing is active only when TELEMETRY_ENABLED is true and TELEMETRY_BACKEND
is otel or hybrid. Otherwise start_span() hands out a no-op span.

Exporters (OTEL_EXPORTER):
- console: Print spans to stdout
- otlp: Send spans to OTEL_ENDPOINT
- none: Sample but do not export
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

_LOG = logging.getLogger(__name__)

_TRACER: Any | None = None


class _NoOpSpan:
    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_status(self, status: Any) -> None:
        pass

    def record_exception(self, exc: BaseException) -> None:
        pass


def _is_enabled() -> bool:
    enabled = str(os.getenv("TELEMETRY_ENABLED", "false")).lower() in {"1", "true", "yes"}
    backend = os.getenv("TELEMETRY_BACKEND", "noop").lower()
    return enabled and backend in {"otel", "hybrid"}


def init_tracer(service_name: str | None = None) -> None:
    """Install a global tracer provider.

    Environment variables:
    - OTEL_EXPORTER: console|otlp|none (default: console)
    - OTEL_ENDPOINT: OTLP endpoint URL
    - OTEL_SERVICE_NAME: Service name (default: google-hangouts-chat-action)
    - OTEL_TRACE_SAMPLE: Sample rate 0.0-1.0 (default: 0.02)

    Idempotent. No-op when disabled or OpenTelemetry is not installed.
    """
    global _TRACER

    if not _is_enabled() or _TRACER is not None:
        return

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
        from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio
    except ImportError as exc:
        _LOG.warning("OpenTelemetry not installed; tracing will be no-op: %s", exc)
        return

    service = service_name or os.getenv("OTEL_SERVICE_NAME", "google-hangouts-chat-action")
    exporter_type = os.getenv("OTEL_EXPORTER", "console").lower()
    sample_rate = float(os.getenv("OTEL_TRACE_SAMPLE", "0.02"))

    provider = TracerProvider(
        resource=Resource.create({"service.name": service, "deployment.environment": os.getenv("ENV", "dev")}),
        sampler=ParentBasedTraceIdRatio(sample_rate),
    )

    endpoint = os.getenv("OTEL_ENDPOINT")
    if exporter_type == "otlp" and endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        except ImportError as exc:
            _LOG.error("OTLP exporter not available, falling back to console: %s", exc)
            provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type != "none":
        if exporter_type != "console":
            _LOG.warning("OTEL_EXPORTER=%s without usable endpoint, using console", exporter_type)
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _TRACER = trace.get_tracer(__name__)
    _LOG.info("OTel tracer initialized: exporter=%s, sample_rate=%.2f", exporter_type, sample_rate)


def get_current_trace_id() -> str:
    """Current trace ID as 32-char hex, or "" when no span is active."""
    if _TRACER is None:
        return ""

    from opentelemetry import trace

    context = trace.get_current_span().get_span_context()
    return format(context.trace_id, "032x") if context.is_valid else ""


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Any]:
    """Open a span around a block.

    Example:
        with start_span("action.execute", {"action.name": "google_hangouts_chat"}) as span:
            span.set_attribute("action.success", True)
    """
    if _TRACER is None:
        yield _NoOpSpan()
        return

    from opentelemetry.trace import Status, StatusCode

    with _TRACER.start_as_current_span(name, attributes=attributes or {}) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
