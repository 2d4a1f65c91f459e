"""Resilience patterns for store access

Optimistic-concurrency retries with exponential backoff for the instance store.
"""

from mission_engine.resilience.retry import (
    calculate_backoff,
    is_retryable_error,
    retry_with_backoff,
)

__all__ = [
    "calculate_backoff",
    "is_retryable_error",
    "retry_with_backoff",
]
