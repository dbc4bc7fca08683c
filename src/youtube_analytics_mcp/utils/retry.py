# ABOUTME: Retry logic with exponential backoff for YouTube API calls
# ABOUTME: Retries rate limits and transient server errors, never quota exhaustion

import time
import logging
from typing import Any, Callable, Optional, TypeVar
from functools import wraps

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_STATUSES = (429, 500, 503)
RATE_LIMIT_REASONS = ('rateLimitExceeded', 'userRateLimitExceeded')


def error_reasons(error: HttpError) -> list:
    """Extract the ``reason`` strings from a Google API error payload."""
    details = getattr(error, 'error_details', None) or []
    reasons = [d.get('reason') for d in details if isinstance(d, dict) and d.get('reason')]
    if not reasons:
        content = error.content or b''
        if isinstance(content, bytes):
            content = content.decode('utf-8', errors='replace')
        reasons = [r for r in RATE_LIMIT_REASONS + ('quotaExceeded',) if r in content]
    return reasons


def is_retryable_error(error: Exception) -> bool:
    """Check if an error is retryable.

    Args:
        error: Exception to check

    Returns:
        True for 429/500/503 and for 403 rate-limit errors
    """
    if not isinstance(error, HttpError):
        return False

    status = error.resp.status
    if status in RETRYABLE_STATUSES:
        return True
    if status == 403:
        return any(reason in RATE_LIMIT_REASONS for reason in error_reasons(error))
    return False


def retry_with_backoff(
    func: Optional[Callable[..., T]] = None,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
) -> Callable[..., T]:
    """Retry a function with exponential backoff on retryable errors.

    Usable bare (``@retry_with_backoff``) or with arguments
    (``@retry_with_backoff(max_retries=5)``).

    Args:
        func: Function to retry
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds
        backoff_factor: Multiplier for delay on each retry

    Returns:
        Wrapped function

    Raises:
        HttpError: If the error is not retryable or all retries are exhausted
    """
    if func is None:
        def decorator(f: Callable[..., T]) -> Callable[..., T]:
            return retry_with_backoff(
                f,
                max_retries=max_retries,
                initial_delay=initial_delay,
                backoff_factor=backoff_factor,
            )
        return decorator

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        delay = initial_delay
        attempt = 0

        while True:
            try:
                return func(*args, **kwargs)
            except HttpError as e:
                # Don't retry client errors, quota exhaustion, or the last attempt
                if not is_retryable_error(e) or attempt >= max_retries:
                    raise

                logger.warning(
                    f"Attempt {attempt + 1}/{max_retries + 1} failed with "
                    f"status {e.resp.status}. Retrying in {delay}s..."
                )
                time.sleep(delay)
                delay *= backoff_factor
                attempt += 1

    return wrapper
