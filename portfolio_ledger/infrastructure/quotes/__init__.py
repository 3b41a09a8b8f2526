"""
Quote provider infrastructure.

This module provides a static in-memory quote source and a caching,
rate-limiting wrapper for any upstream provider.
"""

from .cached_provider import CachedQuoteProvider, QuoteCacheStatistics
from .static_provider import StaticQuoteProvider

__all__ = ["CachedQuoteProvider", "QuoteCacheStatistics", "StaticQuoteProvider"]
