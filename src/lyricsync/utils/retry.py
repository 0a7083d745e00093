"""Retry utility with exponential backoff for external API calls."""

import time
from typing import Callable, TypeVar, Any, Type, Tuple

from ..utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

# Default retry settings
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_BACKOFF_FACTOR = 2.0


def retry_request(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep_fn: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """
    Execute a function with retry logic and exponential backoff.

    Calls are strictly sequential; a retry starts only after the previous
    attempt has failed and the backoff delay has elapsed.

    Args:
        func: Function to execute
        *args: Positional arguments for the function
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay between retries
        exceptions: Exception types that trigger a retry
        sleep_fn: Sleep implementation (injectable for tests)
        **kwargs: Keyword arguments for the function

    Returns:
        Result of the function call

    Raises:
        The last exception if all retries fail
    """
    delay = base_delay

    for attempt in range(max_retries + 1):
        try:
            return func(*args, **kwargs)
        except exceptions as e:
            if attempt >= max_retries:
                raise
            logger.debug(f"Retry {attempt + 1}/{max_retries}: {e}")
            sleep_fn(delay)
            delay = min(delay * DEFAULT_BACKOFF_FACTOR, DEFAULT_MAX_DELAY)

    raise RuntimeError("Unexpected state in retry logic")
