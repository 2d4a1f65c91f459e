"""Observability: Prometheus metrics for the mission engine"""
from mission_engine.observability.metrics import (
    http_requests_total,
    http_request_duration_seconds,
    mission_transitions_total,
    mission_conflicts_total,
    mission_points_awarded_total,
    auto_updates_total,
    auto_update_duration_seconds,
    store_retries_total,
    errors_total,
)

__all__ = [
    "http_requests_total",
    "http_request_duration_seconds",
    "mission_transitions_total",
    "mission_conflicts_total",
    "mission_points_awarded_total",
    "auto_updates_total",
    "auto_update_duration_seconds",
    "store_retries_total",
    "errors_total",
]
