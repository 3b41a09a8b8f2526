"""
Position domain model.

One position exists per (portfolio, symbol) while quantity is positive.
Average cost moves only on BUY; SELL locks in realized P&L against it.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from portfolio_ledger.core.constants import UNKNOWN_COMPANY, UNKNOWN_SECTOR
from portfolio_ledger.core.exceptions import InsufficientQuantityError, ValidationError
from portfolio_ledger.core.types import (
    COST_BASIS_DECIMALS,
    ZERO,
    calculate_market_value,
    calculate_percentage,
    calculate_realized_gain,
    calculate_unrealized_pnl,
    initial_average_cost,
    round_money,
    weighted_average_cost,
)


@dataclass
class Position:
    """Represents an open holding of one symbol within a portfolio.

    ``realized_pnl`` covers only the lifetime of this record: a position
    sold down to zero is deleted, and a later BUY opens a fresh record
    starting from zero. Lifetime realized P&L is derived from the
    transaction log instead.
    """

    portfolio_id: str
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal | None = None
    market_value: Decimal = ZERO
    unrealized_pnl: Decimal = ZERO
    realized_pnl: Decimal = ZERO
    company_name: str = UNKNOWN_COMPANY
    sector: str = UNKNOWN_SECTOR
    opened_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Validate position data after initialization."""
        if self.quantity <= ZERO:
            raise ValidationError(f"Position quantity must be positive, got {self.quantity}")
        if self.average_cost < ZERO:
            raise ValidationError(f"Average cost must be non-negative, got {self.average_cost}")
        if self.current_price is not None and self.current_price <= ZERO:
            raise ValidationError(f"Current price must be positive, got {self.current_price}")

    @property
    def cost_basis(self) -> Decimal:
        """Total cost of the held quantity at average cost."""
        return round_money(self.quantity * self.average_cost)

    @property
    def pnl_percent(self) -> Decimal:
        """Unrealized P&L as a percentage of cost basis."""
        return calculate_percentage(self.unrealized_pnl, self.cost_basis)

    def revalue(self, current_price: Decimal, timestamp: datetime | None = None) -> None:
        """Mark the position to a new price.

        Only derived fields change; average cost and realized P&L are untouched.

        Args:
            current_price: Latest known price
            timestamp: Time of the update (default now)
        """
        if current_price <= ZERO:
            raise ValidationError(f"Current price must be positive, got {current_price}")
        self.current_price = current_price
        self.market_value = calculate_market_value(self.quantity, current_price)
        self.unrealized_pnl = calculate_unrealized_pnl(
            self.quantity, self.average_cost, current_price
        )
        self.updated_at = timestamp if timestamp is not None else datetime.now(UTC)

    def apply_buy(
        self,
        quantity: Decimal,
        price: Decimal,
        basis_cost: Decimal,
        cost_basis_decimals: int = COST_BASIS_DECIMALS,
        timestamp: datetime | None = None,
    ) -> None:
        """Add to the position and recompute the weighted average cost.

        Args:
            quantity: Quantity bought
            price: Execution price, which also becomes the current price
            basis_cost: Amount of the purchase attributed to the cost basis
            cost_basis_decimals: Precision of the average cost
            timestamp: Time of the update (default now)
        """
        self.average_cost = weighted_average_cost(
            self.quantity,
            self.average_cost,
            quantity,
            basis_cost,
            cost_basis_decimals,
            price=price,
        )
        self.quantity = self.quantity + quantity
        self.revalue(price, timestamp)

    def apply_sell(
        self, quantity: Decimal, price: Decimal, timestamp: datetime | None = None
    ) -> Decimal:
        """Reduce the position and lock in realized P&L.

        When the whole quantity is sold the caller deletes the record; the
        fields of this instance are then left as they were before the sale.

        Args:
            quantity: Quantity sold
            price: Execution price
            timestamp: Time of the update (default now)

        Returns:
            Realized gain of this sale

        Raises:
            InsufficientQuantityError: If quantity exceeds the held quantity
        """
        if quantity > self.quantity:
            raise InsufficientQuantityError(self.symbol, quantity, self.quantity)

        realized_gain = calculate_realized_gain(quantity, self.average_cost, price)
        remaining = self.quantity - quantity
        if remaining > ZERO:
            self.quantity = remaining
            self.realized_pnl = self.realized_pnl + realized_gain
            self.revalue(price, timestamp)
        return realized_gain

    def closes_with(self, quantity: Decimal) -> bool:
        """Check if selling ``quantity`` leaves nothing held."""
        return self.quantity - quantity == ZERO

    def copy(self) -> "Position":
        """Return an independent copy of this position."""
        return dataclasses.replace(self)

    @classmethod
    def open(
        cls,
        portfolio_id: str,
        symbol: str,
        quantity: Decimal,
        price: Decimal,
        basis_cost: Decimal,
        company_name: str = UNKNOWN_COMPANY,
        sector: str = UNKNOWN_SECTOR,
        cost_basis_decimals: int = COST_BASIS_DECIMALS,
        timestamp: datetime | None = None,
    ) -> "Position":
        """Factory method to open a position from a first BUY.

        Args:
            portfolio_id: Owning portfolio
            symbol: Normalized ticker symbol
            quantity: Quantity bought
            price: Execution price
            basis_cost: Amount of the purchase attributed to the cost basis
            company_name: Informational company name
            sector: Informational sector
            cost_basis_decimals: Precision of the average cost
            timestamp: Time of the purchase (default now)

        Returns:
            New Position priced at the execution price
        """
        moment = timestamp if timestamp is not None else datetime.now(UTC)
        position = cls(
            portfolio_id=portfolio_id,
            symbol=symbol,
            quantity=quantity,
            average_cost=initial_average_cost(quantity, price, basis_cost, cost_basis_decimals),
            company_name=company_name,
            sector=sector,
            opened_at=moment,
            updated_at=moment,
        )
        position.revalue(price, moment)
        return position

    def to_dict(self) -> dict[str, Any]:
        """Convert position to dictionary."""
        return {
            "portfolio_id": self.portfolio_id,
            "symbol": self.symbol,
            "company_name": self.company_name,
            "sector": self.sector,
            "quantity": self.quantity,
            "average_cost": self.average_cost,
            "current_price": self.current_price,
            "market_value": self.market_value,
            "unrealized_pnl": self.unrealized_pnl,
            "realized_pnl": self.realized_pnl,
            "opened_at": self.opened_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
