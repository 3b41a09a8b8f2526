"""
Portfolio domain model.

A portfolio owns a cash balance and, through the position store, a set of
positions. Its current value and total P&L are derived fields refreshed by
the ledger engine and the valuation refresher.
"""

import dataclasses
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from portfolio_ledger.core.enums import PortfolioKind
from portfolio_ledger.core.exceptions import ValidationError
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.types import ZERO, round_money


@dataclass
class Portfolio:
    """Cash balance and derived valuation of one investment portfolio.

    ``initial_capital`` never changes after creation. ``version`` is bumped
    by the store on every committed write and backs the optimistic
    concurrency check of a unit of work.
    """

    owner_id: str
    name: str
    initial_capital: Decimal
    cash_balance: Decimal
    kind: PortfolioKind = PortfolioKind.PAPER
    description: str | None = None
    current_value: Decimal = ZERO
    total_pnl: Decimal = ZERO
    is_default: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    version: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        """Validate portfolio data after initialization."""
        if self.initial_capital <= ZERO:
            raise ValidationError(f"Initial capital must be positive, got {self.initial_capital}")
        if self.cash_balance < ZERO:
            raise ValidationError(f"Cash balance must be non-negative, got {self.cash_balance}")

    @classmethod
    def create(
        cls,
        owner_id: str,
        name: str,
        initial_capital: Decimal,
        kind: PortfolioKind = PortfolioKind.PAPER,
        description: str | None = None,
        is_default: bool = False,
        created_at: datetime | None = None,
    ) -> "Portfolio":
        """Factory method for a new portfolio funded with its initial capital."""
        capital = round_money(initial_capital)
        moment = created_at if created_at is not None else datetime.now(UTC)
        return cls(
            owner_id=owner_id,
            name=name,
            initial_capital=capital,
            cash_balance=capital,
            kind=kind,
            description=description,
            current_value=capital,
            is_default=is_default,
            created_at=moment,
            updated_at=moment,
        )

    def debit(self, amount: Decimal) -> None:
        """Remove cash; the balance may never go negative."""
        if amount > self.cash_balance:
            raise ValidationError(
                f"Debit of {amount} exceeds cash balance {self.cash_balance}"
            )
        self.cash_balance = self.cash_balance - amount

    def credit(self, amount: Decimal) -> None:
        """Add cash."""
        self.cash_balance = self.cash_balance + amount

    def recompute_valuation(
        self, positions: Iterable[Position], timestamp: datetime | None = None
    ) -> None:
        """Recompute current value and total P&L from the given positions.

        current value = cash balance + sum of position market values
        total P&L = current value - initial capital
        """
        market_value = sum((position.market_value for position in positions), ZERO)
        self.current_value = round_money(self.cash_balance + market_value)
        self.total_pnl = self.current_value - self.initial_capital
        self.updated_at = timestamp if timestamp is not None else datetime.now(UTC)

    def copy(self) -> "Portfolio":
        """Return an independent copy of this portfolio."""
        return dataclasses.replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert portfolio to dictionary."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "kind": self.kind.value,
            "initial_capital": self.initial_capital,
            "cash_balance": self.cash_balance,
            "current_value": self.current_value,
            "total_pnl": self.total_pnl,
            "is_default": self.is_default,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
