"""Performance monitoring utilities."""

import time
import functools
from typing import Callable, Any, Optional

from .logging import get_logger

logger = get_logger(__name__)


def timing_decorator(func: Callable) -> Callable:
    """Decorator to time function execution."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start_time
            logger.info(f"⏱️  {func.__name__} completed in {duration:.2f}s")
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"⏱️  {func.__name__} failed after {duration:.2f}s: {e}")
            raise
    return wrapper


class PerformanceMonitor:
    """Context manager for timing operations.

    ``elapsed_ms`` is available once the block exits, whether it
    completed or raised.
    """

    def __init__(
        self,
        operation_name: str,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.operation_name = operation_name
        self.clock = clock or time.perf_counter
        self.start_time = 0.0
        self.elapsed_ms: Optional[float] = None
        self.failed = False

    def __enter__(self):
        self.start_time = self.clock()
        self.elapsed_ms = None
        logger.info(f"🚀 Starting {self.operation_name}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = self.clock() - self.start_time
        self.elapsed_ms = duration * 1000.0
        self.failed = exc_type is not None
        if exc_type is None:
            logger.info(f"✅ {self.operation_name} completed in {duration:.2f}s")
        else:
            logger.error(f"❌ {self.operation_name} failed after {duration:.2f}s")
