"""
Prometheus metrics definitions for the mission engine.

Categories:
- HTTP/API metrics: Request counts and latency
- Mission lifecycle metrics: Accepts, completions, abandons, conflicts
- Auto-update metrics: Outcomes and duration of tracking-triggered recomputes
- Store metrics: Optimistic-concurrency retries

Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import logging
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# =============================================================================
# HTTP/API Metrics
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests received",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# =============================================================================
# Mission Lifecycle Metrics
# =============================================================================

mission_transitions_total = Counter(
    "mission_transitions_total",
    "Mission instance lifecycle transitions",
    ["transition", "category"],  # transition: accepted/completed/abandoned
)

mission_conflicts_total = Counter(
    "mission_conflicts_total",
    "Rejected mission accepts by status of the existing instance",
    ["existing_status"],
)

mission_points_awarded_total = Counter(
    "mission_points_awarded_total",
    "Points awarded on mission completion",
    ["category"],
)

# =============================================================================
# Auto-update Metrics
# =============================================================================

auto_updates_total = Counter(
    "mission_auto_updates_total",
    "Tracking-triggered mission recomputes",
    ["metric_key", "outcome"],  # outcome: success/timeout/error/unknown_metric
)

auto_update_duration_seconds = Histogram(
    "mission_auto_update_duration_seconds",
    "Time spent recomputing missions after a tracking write",
    ["metric_key"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)

# =============================================================================
# Store Metrics
# =============================================================================

store_retries_total = Counter(
    "mission_store_retries_total",
    "Retried store operations",
    ["operation", "reason"],  # reason: stale_write
)

errors_total = Counter(
    "errors_total",
    "Total errors by type and component",
    ["error_type", "component"],
)
