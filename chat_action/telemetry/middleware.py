"""FastAPI middleware recording request metrics and spans for every route."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .otel import get_current_trace_id, start_span
from .prom import record_http_request

_LOG = logging.getLogger(__name__)

# /actions/<name>/<verb> keeps its shape; anything deeper is collapsed
_ACTION_ROUTE = re.compile(r"^/actions/[^/]+/(form|execute|oauth|oauth_redirect|oauth_check)$")


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Track latency and status for host and browser requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        status_code = 500
        endpoint = self._normalize_endpoint(request.url.path)

        with start_span("http.server", {"http.method": request.method, "http.route": endpoint}) as span:
            try:
                response = await call_next(request)
                status_code = response.status_code
                span.set_attribute("http.status_code", status_code)
                return response
            except Exception as exc:
                _LOG.error("Exception in request handler (trace_id=%s): %s", get_current_trace_id(), exc, exc_info=True)
                raise
            finally:
                record_http_request(
                    method=request.method,
                    endpoint=endpoint,
                    status_code=status_code,
                    duration_seconds=time.perf_counter() - start_time,
                )

    @staticmethod
    def _normalize_endpoint(path: str) -> str:
        """Bound metric label cardinality.

        Action names are registry-controlled and kept; unknown paths collapse
        to "/other".
        """
        if path in {"/", "/health", "/metrics"} or _ACTION_ROUTE.match(path):
            return path
        return "/other"
