"""
Transaction domain model.

Transactions are the append-only audit trail of the ledger: one row per
executed BUY or SELL, never updated or deleted by the engine.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from portfolio_ledger.core.enums import TransactionType
from portfolio_ledger.core.exceptions import ValidationError
from portfolio_ledger.core.types import ZERO, calculate_notional_value, round_money


@dataclass(frozen=True)
class Transaction:
    """Represents an executed buy or sell."""

    portfolio_id: str
    symbol: str
    transaction_type: TransactionType
    quantity: Decimal
    price: Decimal
    commission: Decimal
    total_amount: Decimal
    timestamp: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        """Validate transaction data after initialization."""
        if self.quantity <= ZERO:
            raise ValidationError(f"Quantity must be positive, got {self.quantity}")
        if self.price <= ZERO:
            raise ValidationError(f"Price must be positive, got {self.price}")
        if self.commission < ZERO:
            raise ValidationError(f"Commission must be non-negative, got {self.commission}")

    @staticmethod
    def calculate_total_amount(
        transaction_type: TransactionType, quantity: Decimal, price: Decimal, commission: Decimal
    ) -> Decimal:
        """Calculate the cash amount of a transaction.

        BUY: quantity x price + commission (cash spent).
        SELL: quantity x price - commission (cash received).
        """
        notional = calculate_notional_value(quantity, price)
        if transaction_type.is_buy:
            return round_money(notional + commission)
        return round_money(notional - commission)

    @classmethod
    def record(
        cls,
        portfolio_id: str,
        symbol: str,
        transaction_type: TransactionType,
        quantity: Decimal,
        price: Decimal,
        commission: Decimal,
        timestamp: datetime | None = None,
    ) -> "Transaction":
        """Factory method creating a transaction with its total amount computed."""
        return cls(
            portfolio_id=portfolio_id,
            symbol=symbol,
            transaction_type=transaction_type,
            quantity=quantity,
            price=price,
            commission=commission,
            total_amount=cls.calculate_total_amount(transaction_type, quantity, price, commission),
            timestamp=timestamp if timestamp is not None else datetime.now(UTC),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert transaction to dictionary."""
        return {
            "id": self.id,
            "portfolio_id": self.portfolio_id,
            "symbol": self.symbol,
            "transaction_type": self.transaction_type.value,
            "quantity": self.quantity,
            "price": self.price,
            "commission": self.commission,
            "total_amount": self.total_amount,
            "timestamp": self.timestamp.isoformat(),
        }
