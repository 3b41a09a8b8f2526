"""
Caching, rate-limited quote provider.

Wraps an upstream provider with a TTL cache and a fixed-window request
budget. All state is per instance, so each test or process can choose its
own TTL and limits.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import RLock

from cachetools import TTLCache
from loguru import logger

from portfolio_ledger.core.constants import (
    DEFAULT_QUOTE_CACHE_SIZE,
    DEFAULT_QUOTE_CACHE_TTL_SECONDS,
    DEFAULT_QUOTE_RATE_LIMIT,
    DEFAULT_QUOTE_RATE_LIMIT_WINDOW_SECONDS,
)
from portfolio_ledger.core.exceptions import RateLimitExceededError
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider, Quote


@dataclass
class QuoteCacheStatistics:
    """Counters for cache effectiveness and upstream load."""

    hits: int = 0
    misses: int = 0
    upstream_calls: int = 0
    rate_limited: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from cache."""
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class CachedQuoteProvider(IQuoteProvider):
    """TTL cache and rate limiter in front of an upstream quote provider.

    Only found quotes are cached; misses and upstream errors always reach
    the upstream on the next lookup (subject to the rate limit).

    Thread Safety:
        Cache and counters are guarded by an RLock. Upstream calls are made
        outside the lock so one slow symbol does not block the others.
    """

    def __init__(
        self,
        upstream: IQuoteProvider,
        ttl_seconds: float = DEFAULT_QUOTE_CACHE_TTL_SECONDS,
        rate_limit: int = DEFAULT_QUOTE_RATE_LIMIT,
        rate_limit_window_seconds: float = DEFAULT_QUOTE_RATE_LIMIT_WINDOW_SECONDS,
        cache_size: int = DEFAULT_QUOTE_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the provider.

        Args:
            upstream: Provider actually queried on cache misses
            ttl_seconds: How long a quote stays fresh
            rate_limit: Upstream requests allowed per window
            rate_limit_window_seconds: Length of the rate-limit window
            cache_size: Maximum number of cached symbols
            clock: Monotonic time source (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive")
        if rate_limit <= 0:
            raise ValueError("Rate limit must be positive")
        if rate_limit_window_seconds <= 0:
            raise ValueError("Rate limit window must be positive")

        self._upstream = upstream
        self._cache: TTLCache[str, Quote] = TTLCache(
            maxsize=cache_size, ttl=ttl_seconds, timer=clock
        )
        self._clock = clock
        self._rate_limit = rate_limit
        self._window_seconds = rate_limit_window_seconds
        self._window_started = clock()
        self._window_requests = 0
        self._lock = RLock()
        self.statistics = QuoteCacheStatistics()

    def _reserve_upstream_request(self, symbol: str) -> None:
        """Count one upstream request against the current window."""
        now = self._clock()
        if now - self._window_started >= self._window_seconds:
            self._window_started = now
            self._window_requests = 0

        if self._window_requests >= self._rate_limit:
            self.statistics.rate_limited += 1
            logger.warning(
                f"Quote rate limit reached: {self._window_requests}/{self._rate_limit}"
            )
            raise RateLimitExceededError(symbol, self._rate_limit, self._window_seconds)

        self._window_requests += 1
        self.statistics.upstream_calls += 1

    def get_quote(self, symbol: str) -> Quote | None:
        key = symbol.strip().upper()
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self.statistics.hits += 1
                return cached
            self.statistics.misses += 1
            self._reserve_upstream_request(key)

        quote = self._upstream.get_quote(key)
        if quote is not None:
            with self._lock:
                self._cache[key] = quote
        return quote

    def invalidate(self, symbol: str | None = None) -> None:
        """Drop one cached symbol, or the whole cache."""
        with self._lock:
            if symbol is None:
                self._cache.clear()
            else:
                self._cache.pop(symbol.strip().upper(), None)
