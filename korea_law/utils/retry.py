"""
Retry utilities with exponential backoff.

One wrapper used by every registry call. The caller decides which faults
are worth another attempt through ``is_retryable``.
"""
import logging
import time
from typing import Callable, Optional, TypeVar

import requests

from korea_law.core.config import RETRYABLE_STATUS_CODES, calculate_backoff_delay
from korea_law.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable_error(error: Exception) -> bool:
    """
    Decide whether a failed registry call may be retried.

    Retryable: timeouts, connection resets, HTTP 408/429/5xx and any
    UpstreamError flagged ``retryable``. Everything else fails fast.

    Args:
        error: The exception raised by the call

    Returns:
        True if another attempt may succeed
    """
    if isinstance(error, UpstreamError):
        return error.retryable
    if isinstance(error, (requests.Timeout, requests.ConnectionError)):
        return True
    if isinstance(error, requests.HTTPError):
        response = error.response
        # No response at all means the request never completed
        if response is None:
            return True
        return response.status_code in RETRYABLE_STATUS_CODES
    return False


def fetch_with_retry(
    fetch_fn: Callable[[], T],
    max_retries: int = 3,
    operation_name: str = "operation",
    is_retryable: Optional[Callable[[Exception], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Execute a function with exponential backoff retry logic.

    Args:
        fetch_fn: Function to execute (should return data or raise exception)
        max_retries: Maximum number of attempts, including the first one
        operation_name: Name of the operation for logging
        is_retryable: Predicate on the raised exception; defaults to
                      is_retryable_error
        sleep: Sleep function (replaced in tests)

    Returns:
        Result of fetch_fn()

    Raises:
        Exception: The non-retryable exception, or the last one once the
                   attempt ceiling is reached
    """
    is_retryable = is_retryable or is_retryable_error
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            return fetch_fn()
        except Exception as e:
            if not is_retryable(e):
                logger.error(f"{operation_name} failed (not retryable): {e}")
                raise
            if attempt >= attempts - 1:
                logger.error(f"{operation_name} failed after {attempts} attempts: {e}")
                raise
            delay = calculate_backoff_delay(attempt)
            logger.warning(f"{operation_name} failed (attempt {attempt + 1}/{attempts}): {e}")
            logger.info(f"Exponential backoff: {delay}s...")
            sleep(delay)

    raise RuntimeError(f"{operation_name}: retry loop exited without a result")
