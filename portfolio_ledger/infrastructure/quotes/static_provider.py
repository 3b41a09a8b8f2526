"""
Static quote provider.

Serves quotes from an in-memory table. Used for paper portfolios, local
development, and tests, where failures for individual symbols can be
injected.
"""

from collections.abc import Mapping
from decimal import Decimal
from threading import RLock

from portfolio_ledger.core.constants import UNKNOWN_COMPANY, UNKNOWN_SECTOR
from portfolio_ledger.core.exceptions import QuoteProviderError
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider, Quote
from portfolio_ledger.core.types import to_decimal


class StaticQuoteProvider(IQuoteProvider):
    """Thread-safe table of quotes keyed by symbol."""

    def __init__(self, quotes: Mapping[str, Quote] | None = None) -> None:
        self._quotes: dict[str, Quote] = {}
        self._failures: dict[str, str] = {}
        self._lock = RLock()
        self.request_count = 0
        for quote in (quotes or {}).values():
            self._quotes[quote.symbol.upper()] = quote

    def set_quote(
        self,
        symbol: str,
        price: Decimal | float | str,
        company_name: str = UNKNOWN_COMPANY,
        sector: str = UNKNOWN_SECTOR,
    ) -> Quote:
        """Add or replace the quote for a symbol."""
        normalized = symbol.strip().upper()
        quote = Quote(
            symbol=normalized,
            current_price=to_decimal(price),
            company_name=company_name,
            sector=sector,
        )
        with self._lock:
            self._quotes[normalized] = quote
            self._failures.pop(normalized, None)
        return quote

    def remove_quote(self, symbol: str) -> None:
        """Forget a symbol so lookups return None."""
        with self._lock:
            self._quotes.pop(symbol.strip().upper(), None)

    def fail_symbol(self, symbol: str, reason: str = "upstream unavailable") -> None:
        """Make lookups of a symbol raise QuoteProviderError."""
        with self._lock:
            self._failures[symbol.strip().upper()] = reason

    def get_quote(self, symbol: str) -> Quote | None:
        normalized = symbol.strip().upper()
        with self._lock:
            self.request_count += 1
            if normalized in self._failures:
                raise QuoteProviderError(normalized, self._failures[normalized])
            return self._quotes.get(normalized)
