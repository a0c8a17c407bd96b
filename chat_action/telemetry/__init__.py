"""Telemetry for the chat action service (noop by default).

Backends (TELEMETRY_BACKEND, only read when TELEMETRY_ENABLED=true):
- noop: nothing recorded (default)
- prom: Prometheus metrics
- otel: OpenTelemetry traces
- hybrid: both
"""
from __future__ import annotations

import logging
import os

_LOG = logging.getLogger(__name__)


def init_telemetry() -> None:
    """Initialize the configured telemetry backend. Safe to call repeatedly."""
    enabled = str(os.getenv("TELEMETRY_ENABLED", "false")).lower() in {"1", "true", "yes"}

    if not enabled:
        _LOG.debug("Telemetry disabled (TELEMETRY_ENABLED=false)")
        return

    backend = os.getenv("TELEMETRY_BACKEND", "noop").lower()

    if backend in {"prom", "hybrid"}:
        from .prom import init_prometheus

        init_prometheus()

    if backend in {"otel", "hybrid"}:
        from .otel import init_tracer

        init_tracer()

    if backend not in {"prom", "otel", "hybrid", "noop"}:
        _LOG.warning("Unknown telemetry backend '%s', using noop", backend)
    else:
        _LOG.info("Telemetry initialized: backend=%s", backend)


__all__ = ["init_telemetry"]
