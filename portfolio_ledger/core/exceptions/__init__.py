"""Exception hierarchy for the ledger."""

from .ledger import (
    ConcurrencyConflictError,
    ConfigurationError,
    DefaultPortfolioDeletionError,
    DuplicatePortfolioError,
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidOrderParametersError,
    LedgerException,
    PortfolioError,
    PortfolioLimitError,
    PortfolioNotFoundError,
    PositionNotFoundError,
    QuoteProviderError,
    RateLimitExceededError,
    StorageError,
    ValidationError,
)

__all__ = [
    "LedgerException",
    "ValidationError",
    "InvalidOrderParametersError",
    "PortfolioError",
    "InsufficientFundsError",
    "InsufficientQuantityError",
    "PositionNotFoundError",
    "PortfolioNotFoundError",
    "DuplicatePortfolioError",
    "PortfolioLimitError",
    "DefaultPortfolioDeletionError",
    "ConcurrencyConflictError",
    "StorageError",
    "QuoteProviderError",
    "RateLimitExceededError",
    "ConfigurationError",
]
