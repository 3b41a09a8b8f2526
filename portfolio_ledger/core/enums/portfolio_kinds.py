"""
Portfolio kind enumerations.
"""

from enum import StrEnum


class PortfolioKind(StrEnum):
    """
    Allowed portfolio kinds.

    Both kinds follow the same accounting rules; neither allows margin.
    """

    PAPER = "paper"  # Simulated money
    REAL = "real"  # Mirrors a real brokerage account

    @classmethod
    def from_string(cls, value: str) -> "PortfolioKind":
        """
        Convert string to PortfolioKind enum, with case-insensitive matching.

        Raises:
            ValueError: If the kind is not supported
        """
        value_lower = value.strip().lower()

        for kind in cls:
            if kind.value == value_lower:
                return kind

        raise ValueError(
            f"Unsupported portfolio kind: {value}. "
            f"Supported kinds: {', '.join([k.value for k in cls])}"
        )
