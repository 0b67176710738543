"""
Retry with exponential backoff for transient failures.
"""

import functools
import logging
import time
from typing import Callable, Optional, Tuple, Type

from ..errors import ApiError, HttpError, S3Error


logger = logging.getLogger(__name__)


def is_transient(error: Exception) -> bool:
    """
    Decide whether an error is worth retrying.

    Transport failures and S3 errors are retried, as are API rate limiting
    (429) and server errors (5xx). Other API errors, auth failures among
    them, are raised immediately.
    """
    if isinstance(error, ApiError):
        return error.is_transient
    return isinstance(error, (HttpError, S3Error))


def retry(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    factor: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (ApiError, HttpError, S3Error),
    sleep: Optional[Callable[[float], None]] = None,
):
    """
    Return a decorator that retries a call on transient failures.

    The call is repeated as is, so it should be safe to repeat.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    attempt += 1
                    if attempt >= max_attempts or not is_transient(e):
                        raise
                    delay = base_delay * (factor ** (attempt - 1))
                    logger.warning(
                        "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                        func.__name__, attempt, max_attempts, e, delay,
                    )
                    (sleep or time.sleep)(delay)
        return wrapper
    return decorator
