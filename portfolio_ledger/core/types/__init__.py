"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    COST_BASIS_DECIMALS,
    HUNDRED,
    MONEY_DECIMALS,
    PERCENTAGE_DECIMALS,
    ZERO,
    calculate_market_value,
    calculate_notional_value,
    calculate_percentage,
    calculate_realized_gain,
    calculate_unrealized_pnl,
    cost_precision,
    decimal_places,
    initial_average_cost,
    round_cost,
    round_money,
    round_percentage,
    to_decimal,
    weighted_average_cost,
)

__all__ = [
    # Utility functions
    "to_decimal",
    "round_money",
    "round_cost",
    "round_percentage",
    "calculate_notional_value",
    "calculate_market_value",
    "calculate_unrealized_pnl",
    "calculate_realized_gain",
    "calculate_percentage",
    "weighted_average_cost",
    "initial_average_cost",
    "cost_precision",
    "decimal_places",
    # Constants
    "MONEY_DECIMALS",
    "COST_BASIS_DECIMALS",
    "PERCENTAGE_DECIMALS",
    "ZERO",
    "HUNDRED",
]
