"""
FastAPI middleware for automatic Prometheus metrics collection.

Tracks request counts by endpoint, method and status code, and request
latency histograms.
"""

import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from mission_engine.observability.metrics import (
    http_requests_total,
    http_request_duration_seconds,
)

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """
    Normalize request path to reduce cardinality.

    /api/v1/missions/12/accept -> /api/v1/missions/{id}/accept
    """
    if path in ["/metrics", "/health", "/"]:
        return path

    parts = path.strip("/").split("/")
    return "/" + "/".join("{id}" if part.isdigit() else part for part in parts)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for HTTP requests"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
            http_request_duration_seconds.labels(method=method, endpoint=path).observe(
                time.time() - start_time
            )


def setup_metrics_middleware(app) -> None:
    """Add Prometheus metrics middleware to a FastAPI application"""
    from mission_engine.config import ENABLE_METRICS

    if not ENABLE_METRICS:
        logger.info("Metrics collection is disabled (ENABLE_METRICS=false)")
        return

    app.add_middleware(PrometheusMiddleware)
    logger.info("Prometheus metrics middleware added to FastAPI")
