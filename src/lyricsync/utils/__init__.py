"""Utility modules."""

from .logging import setup_logging, get_logger
from .performance import PerformanceMonitor, timing_decorator
from .retry import retry_request

__all__ = [
    "setup_logging",
    "get_logger",
    "PerformanceMonitor",
    "timing_decorator",
    "retry_request",
]
