"""
Market-data interfaces.

The quote provider is an external collaborator; the ledger depends only on
this contract so that tests can inject a deterministic fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from portfolio_ledger.core.constants import UNKNOWN_COMPANY, UNKNOWN_SECTOR


@dataclass(frozen=True)
class Quote:
    """Latest price and company metadata for a symbol."""

    symbol: str
    current_price: Decimal
    company_name: str = UNKNOWN_COMPANY
    sector: str = UNKNOWN_SECTOR
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class IQuoteProvider(ABC):
    """Abstract interface for quote lookups."""

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote | None:
        """Get the latest quote for a symbol.

        Returns:
            The quote, or None if the symbol is unknown

        Raises:
            QuoteProviderError: If the provider is unavailable or fails
        """
