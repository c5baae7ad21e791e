"""
Shared utilities module

Domain-agnostic helpers used across the application.
"""

from .cache import CacheEntry, CacheStats, MemoryCache
from .logger import (
    ColoredFormatter,
    ContextLogger,
    JSONFormatter,
    configure_logging,
    get_logger,
    setup_logging,
)

__all__ = [
    # Cache
    "CacheEntry",
    "CacheStats",
    "MemoryCache",
    # Logging
    "ColoredFormatter",
    "ContextLogger",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
    "setup_logging",
]
