"""Retry logic with exponential backoff and jitter

Used for the instance store's optimistic concurrency:
1. Only retries lost compare-and-swap races (StaleWriteError)
2. Uses exponential backoff with jitter so racing writers spread out
3. Gives up after max retries to avoid infinite loops

StoreUnavailableError is not retried here. Interactive calls
surface it as retryable to the client; tracking-triggered recomputes defer it
to the next tracking event.
"""

import asyncio
import random
import logging
from typing import Awaitable, Callable, Any, TypeVar

from mission_engine.config import MAX_SAVE_RETRIES
from mission_engine.exceptions import StaleWriteError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Retry configuration
BASE_DELAY = 0.01  # seconds
MAX_DELAY = 0.5  # seconds
JITTER = 0.1  # 10% random jitter


def is_retryable_error(exc: Exception) -> bool:
    """
    Determine if error is a lost write race that should be retried.

    Args:
        exc: The exception to check

    Returns:
        True if the read-modify-write should run again
    """
    return isinstance(exc, StaleWriteError)


def calculate_backoff(attempt: int) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Formula: delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY) + jitter
    Jitter is random value between -10% and +10% of delay

    Args:
        attempt: The retry attempt number (0-indexed)

    Returns:
        Delay in seconds
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    return max(delay + jitter_amount, 0.0)


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = MAX_SAVE_RETRIES,
    **kwargs: Any
) -> T:
    """
    Retry an async read-modify-write with exponential backoff.

    func must re-read whatever it modifies on every call, otherwise a retry
    just replays the stale write.

    Args:
        func: Async function to retry
        max_retries: Maximum number of retry attempts
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        Last exception if all retries exhausted or non-retryable error
    """
    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(
                    f"[RETRY] All {max_retries} retries exhausted for {func.__name__}"
                )
                raise

            backoff = calculate_backoff(attempt)

            from mission_engine.observability.metrics import store_retries_total
            store_retries_total.labels(operation=func.__name__, reason="stale_write").inc()

            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {func.__name__} "
                f"after {backoff:.3f}s (error: {type(e).__name__})"
            )
            await asyncio.sleep(backoff)

    raise RuntimeError("Retry logic failed unexpectedly")
