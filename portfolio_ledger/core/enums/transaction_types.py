"""
Transaction type enumerations.

This module defines the order sides the ledger accepts.
"""

from enum import StrEnum


class TransactionType(StrEnum):
    """
    Allowed transaction types.

    A BUY opens or adds to a position and spends cash; a SELL reduces or
    closes a position and returns cash.
    """

    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def from_string(cls, value: str) -> "TransactionType":
        """
        Convert string to TransactionType enum, with case-insensitive matching.

        Args:
            value: String representation of the transaction type

        Returns:
            Corresponding TransactionType enum value

        Raises:
            ValueError: If the transaction type is not supported
        """
        value_upper = value.strip().upper()

        for transaction_type in cls:
            if transaction_type.value == value_upper:
                return transaction_type

        raise ValueError(
            f"Unsupported transaction type: {value}. "
            f"Supported types: {', '.join([t.value for t in cls])}"
        )

    @property
    def is_buy(self) -> bool:
        """Check if transaction spends cash."""
        return self == self.BUY
