"""
Validation utilities for core domain models.

Provides consistent validation across the application. Order parameters
raise ``InvalidOrderParametersError`` so callers can tell a malformed
order from other validation failures.
"""

from decimal import Decimal
from typing import Any

from portfolio_ledger.core.constants import MAX_SYMBOL_LENGTH
from portfolio_ledger.core.enums import TransactionType
from portfolio_ledger.core.exceptions import InvalidOrderParametersError, ValidationError
from portfolio_ledger.core.types import ZERO, to_decimal


def validate_symbol(symbol: Any, param_name: str = "symbol") -> str:
    """Validate and normalize a ticker symbol.

    Args:
        symbol: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The stripped, upper-cased symbol

    Raises:
        InvalidOrderParametersError: If symbol is empty, too long, or not a string
    """
    if not isinstance(symbol, str):
        raise InvalidOrderParametersError(param_name, symbol, "must be a string")
    normalized = symbol.strip().upper()
    if not normalized:
        raise InvalidOrderParametersError(param_name, symbol, "must not be empty")
    if len(normalized) > MAX_SYMBOL_LENGTH:
        raise InvalidOrderParametersError(
            param_name, symbol, f"must be at most {MAX_SYMBOL_LENGTH} characters"
        )
    return normalized


def _coerce(value: Any, param_name: str) -> Decimal:
    try:
        return to_decimal(value)
    except (TypeError, ValueError) as e:
        raise InvalidOrderParametersError(param_name, value, "must be a finite number") from e


def validate_positive(value: Any, param_name: str) -> Decimal:
    """Validate that a numeric value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value as Decimal

    Raises:
        InvalidOrderParametersError: If value is not a positive number
    """
    amount = _coerce(value, param_name)
    if amount <= ZERO:
        raise InvalidOrderParametersError(param_name, value, "must be positive")
    return amount


def validate_non_negative(value: Any, param_name: str) -> Decimal:
    """Validate that a numeric value is zero or positive.

    Raises:
        InvalidOrderParametersError: If value is negative or not a number
    """
    amount = _coerce(value, param_name)
    if amount < ZERO:
        raise InvalidOrderParametersError(param_name, value, "must be non-negative")
    return amount


def validate_transaction_type(value: Any) -> TransactionType:
    """Validate an order side, accepting the enum or its string form.

    Raises:
        InvalidOrderParametersError: If the side is not BUY or SELL
    """
    if isinstance(value, TransactionType):
        return value
    if isinstance(value, str):
        try:
            return TransactionType.from_string(value)
        except ValueError as e:
            raise InvalidOrderParametersError(
                "transaction_type", value, "must be BUY or SELL"
            ) from e
    raise InvalidOrderParametersError("transaction_type", value, "must be BUY or SELL")


def validate_range(value: float, minimum: float, maximum: float, param_name: str) -> float:
    """Validate that a value lies within an inclusive range.

    Raises:
        ValidationError: If value is outside ``[minimum, maximum]``
    """
    if value < minimum or value > maximum:
        raise ValidationError(f"{param_name} must be between {minimum} and {maximum}, got {value}")
    return value


def validate_name(name: Any, minimum: int, maximum: int, param_name: str = "name") -> str:
    """Validate a display name and strip surrounding whitespace.

    Raises:
        ValidationError: If the name is not a string or its length is out of bounds
    """
    if not isinstance(name, str):
        raise ValidationError(f"{param_name} must be a string, got {type(name).__name__}")
    stripped = name.strip()
    if not minimum <= len(stripped) <= maximum:
        raise ValidationError(
            f"{param_name} must be between {minimum} and {maximum} characters, got {len(stripped)}"
        )
    return stripped
