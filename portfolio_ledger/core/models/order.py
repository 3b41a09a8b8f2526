"""
Order request and result models.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from portfolio_ledger.core.enums import TransactionType
from portfolio_ledger.core.models.portfolio import Portfolio
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.models.transaction import Transaction
from portfolio_ledger.core.types import ZERO
from portfolio_ledger.core.utils.validation import (
    validate_non_negative,
    validate_positive,
    validate_symbol,
    validate_transaction_type,
)


@dataclass(frozen=True)
class OrderRequest:
    """A validated buy/sell instruction for one portfolio."""

    portfolio_id: str
    symbol: str
    transaction_type: TransactionType
    quantity: Decimal
    price: Decimal
    commission: Decimal = ZERO

    @classmethod
    def build(
        cls,
        portfolio_id: str,
        symbol: Any,
        transaction_type: Any,
        quantity: Any,
        price: Any,
        commission: Any = ZERO,
    ) -> "OrderRequest":
        """Validate raw order parameters and build a request.

        Raises:
            InvalidOrderParametersError: If any parameter is invalid. Values are
                never clamped.
        """
        return cls(
            portfolio_id=portfolio_id,
            symbol=validate_symbol(symbol),
            transaction_type=validate_transaction_type(transaction_type),
            quantity=validate_positive(quantity, "quantity"),
            price=validate_positive(price, "price"),
            commission=validate_non_negative(commission, "commission"),
        )


@dataclass(frozen=True)
class OrderResult:
    """Outcome of a successfully applied order.

    ``position`` is None when a SELL closed the position.
    """

    transaction: Transaction
    position: Position | None
    portfolio: Portfolio
    realized_gain: Decimal = ZERO

    @property
    def position_closed(self) -> bool:
        """Check if the order closed its position."""
        return self.position is None

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "transaction": self.transaction.to_dict(),
            "position": self.position.to_dict() if self.position is not None else None,
            "portfolio": self.portfolio.to_dict(),
            "realized_gain": self.realized_gain,
            "position_closed": self.position_closed,
        }
