"""Abstract interfaces for storage and market-data collaborators."""

from .quotes import IQuoteProvider, Quote
from .storage import ILedgerStore, IPortfolioStore, IPositionStore, ITransactionLog, IUnitOfWork

__all__ = [
    "IQuoteProvider",
    "Quote",
    "ILedgerStore",
    "IPortfolioStore",
    "IPositionStore",
    "ITransactionLog",
    "IUnitOfWork",
]
