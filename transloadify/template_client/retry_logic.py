"""Retry logic with exponential backoff for Transloadit API rate limits.

Transloadit signals rate limiting with HTTP 429 or 413 and the error code
RATE_LIMIT_REACHED. Calls are retried with exponential backoff (1s, 2s, 4s);
all other errors fail fast.
"""

import time
import logging
from typing import Callable, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3

RATE_LIMIT_STATUS_CODES = (413, 429)


class RateLimitedError(Exception):
    """Internal signal raised by the client when a response is rate limited.

    Never escapes retry_on_rate_limit: it is either retried or converted to
    APIAccessError.
    """

    def __init__(self, status_code: int, retry_in: float = 0):
        super().__init__(f"Rate limit hit (HTTP {status_code})")
        self.status_code = status_code
        self.retry_in = retry_in


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on rate limit with exponential backoff.

    Executes the given function with the provided arguments, retrying up to 3 times
    with exponential backoff (1s, 2s, 4s) when a rate limit error is encountered.
    If the service supplied a longer ``retry_in`` hint, that wait is used instead.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If rate limit persists after 3 retries
        Other exceptions: Passed through immediately without retry

    Example:
        >>> result = retry_on_rate_limit(client.get_template, "abc123")
    """
    for retry_num in range(MAX_RETRIES + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise

            if retry_num >= MAX_RETRIES:
                logger.error(
                    f"Rate limit persisted after {MAX_RETRIES} retries, giving up"
                )
                raise APIAccessError("Template API failure (after 3 retries)") from e

            wait_time = max(2 ** retry_num, getattr(e, 'retry_in', 0) or 0)
            logger.info(
                f"Rate limit hit, retrying in {wait_time}s "
                f"(retry {retry_num + 1}/{MAX_RETRIES})"
            )
            time.sleep(wait_time)

    raise APIAccessError("Template API failure (after 3 retries)")


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if an exception represents a rate limit error.

    Args:
        exception: The exception to check

    Returns:
        True if this appears to be a rate limit error, False otherwise
    """
    if isinstance(exception, RateLimitedError):
        return True

    error_msg = str(exception).lower()
    rate_limit_patterns = [
        'rate_limit_reached',
        'too many requests',
        'rate limit exceeded',
        'rate limit hit',
    ]
    if any(pattern in error_msg for pattern in rate_limit_patterns):
        return True

    if getattr(exception, 'status_code', None) in RATE_LIMIT_STATUS_CODES:
        return True

    response = getattr(exception, 'response', None)
    if response is not None and getattr(response, 'status_code', None) in RATE_LIMIT_STATUS_CODES:
        return True

    return False
