"""
Custom exception hierarchy for the portfolio ledger.

This module defines domain-specific exceptions for better error handling.
Each exception exposes a stable ``error_kind`` and a ``to_dict`` payload
so callers can report precise reasons without parsing messages.
"""

from decimal import Decimal
from typing import Any


class LedgerException(Exception):
    """Base exception for all ledger-related errors."""

    error_kind = "ledger_error"

    def details(self) -> dict[str, Any]:
        """Structured details for the error (empty by default)."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for API responses."""
        return {"error": self.error_kind, "message": str(self), "details": self.details()}


class ValidationError(LedgerException):
    """Raised when input validation fails."""

    error_kind = "validation_error"


class InvalidOrderParametersError(ValidationError):
    """Raised when an order has a non-positive quantity or price, or a negative commission."""

    error_kind = "invalid_order_parameters"

    def __init__(self, parameter: str, value: Any, reason: str):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {parameter}: {reason}, got {value}")

    def details(self) -> dict[str, Any]:
        return {"parameter": self.parameter, "value": str(self.value), "reason": self.reason}


class ConfigurationError(LedgerException):
    """Raised when configuration is invalid."""

    error_kind = "configuration_error"


class PortfolioError(LedgerException):
    """Raised when portfolio operations fail."""

    error_kind = "portfolio_error"


class InsufficientFundsError(PortfolioError):
    """Raised when the cash balance cannot cover a BUY."""

    error_kind = "insufficient_funds"

    def __init__(self, required: Decimal, available: Decimal, operation: str = "operation"):
        self.required = required
        self.available = available
        self.shortfall = required - available
        self.operation = operation
        super().__init__(
            f"Insufficient funds for {operation}: required={required:.2f}, "
            f"available={available:.2f}, shortfall={self.shortfall:.2f}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "required": str(self.required),
            "available": str(self.available),
            "shortfall": str(self.shortfall),
        }


class InsufficientQuantityError(PortfolioError):
    """Raised when a SELL asks for more than the position holds."""

    error_kind = "insufficient_quantity"

    def __init__(self, symbol: str, requested: Decimal, held: Decimal):
        self.symbol = symbol
        self.requested = requested
        self.held = held
        super().__init__(
            f"Insufficient quantity for {symbol}: requested={requested}, held={held}"
        )

    def details(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "requested": str(self.requested), "held": str(self.held)}


class PositionNotFoundError(PortfolioError):
    """Raised when trying to operate on a non-existent position."""

    error_kind = "position_not_found"

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Position not found for symbol: {symbol}")

    def details(self) -> dict[str, Any]:
        return {"symbol": self.symbol}


class PortfolioNotFoundError(PortfolioError):
    """Raised when a portfolio does not exist or is not owned by the caller."""

    error_kind = "portfolio_not_found"

    def __init__(self, portfolio_id: str):
        self.portfolio_id = portfolio_id
        super().__init__(f"Portfolio not found: {portfolio_id}")

    def details(self) -> dict[str, Any]:
        return {"portfolio_id": self.portfolio_id}


class DuplicatePortfolioError(PortfolioError):
    """Raised when an owner already has a portfolio with the requested name."""

    error_kind = "duplicate_portfolio"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A portfolio named '{name}' already exists")


class PortfolioLimitError(PortfolioError):
    """Raised when an owner reaches the maximum number of portfolios."""

    error_kind = "portfolio_limit"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Cannot create more than {limit} portfolios per owner")


class DefaultPortfolioDeletionError(PortfolioError):
    """Raised when deleting the owner's only (default) portfolio."""

    error_kind = "default_portfolio_deletion"

    def __init__(self, portfolio_id: str):
        self.portfolio_id = portfolio_id
        super().__init__(f"Cannot delete the only default portfolio: {portfolio_id}")


class ConcurrencyConflictError(LedgerException):
    """Raised when a concurrent write invalidated the state read by a unit of work.

    Nothing was committed; the caller may retry the whole operation.
    """

    error_kind = "concurrency_conflict"

    def __init__(self, portfolio_id: str, expected_version: int, actual_version: int):
        self.portfolio_id = portfolio_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Concurrent modification of portfolio {portfolio_id}: "
            f"expected version {expected_version}, found {actual_version}"
        )


class StorageError(LedgerException):
    """Raised when the atomic write cannot be committed. Nothing was applied."""

    error_kind = "storage_error"


class QuoteProviderError(LedgerException):
    """Raised when the quote provider is unavailable or fails."""

    error_kind = "quote_provider_error"

    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Quote unavailable for {symbol}: {reason}")

    def details(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "reason": self.reason}


class RateLimitExceededError(QuoteProviderError):
    """Raised when the upstream request budget for the current window is spent."""

    error_kind = "rate_limit_exceeded"

    def __init__(self, symbol: str, limit: int, window_seconds: float):
        self.limit = limit
        self.window_seconds = window_seconds
        super().__init__(symbol, f"rate limit of {limit} requests per {window_seconds:g}s reached")
