"""
Utility decorators for logging ledger operations.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from portfolio_ledger.core.exceptions import (
    ConcurrencyConflictError,
    PortfolioError,
    ValidationError,
)

_CONTEXT_PARAMS = (
    "portfolio_id",
    "owner_id",
    "symbol",
    "transaction_type",
    "quantity",
    "price",
    "commission",
    "period",
)

# Failures the caller can correct or retry; logged below ERROR
_EXPECTED_ERRORS = (ValidationError, PortfolioError, ConcurrencyConflictError)


def _serialize_parameter_value(value: Any) -> Any:
    """Serialize parameter value for logging."""
    if isinstance(value, Enum):
        return str(value.value)
    elif hasattr(value, "quantize"):
        return str(value)  # Handle Decimal types
    else:
        return value


def _extract_operation_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Extract ledger context from function arguments."""
    sig = inspect.signature(func)
    bound_args = sig.bind(*args, **kwargs)
    bound_args.apply_defaults()

    context: dict[str, Any] = {"correlation_id": str(uuid.uuid4())[:8]}
    for param_name, value in bound_args.arguments.items():
        if param_name in _CONTEXT_PARAMS:
            context[param_name] = _serialize_parameter_value(value)
    return context


def _execute_with_logging(
    func: Callable[..., Any],
    context: dict[str, Any],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> Any:
    """Execute function with start, success, and failure logging."""
    func_name = func.__qualname__
    bound_logger = logger.bind(**context)
    bound_logger.debug(f"Ledger operation started: {func_name}")
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
    except _EXPECTED_ERRORS as e:
        execution_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
        bound_logger.bind(error_type=type(e).__name__, execution_time_ms=execution_time_ms).warning(
            f"Ledger operation rejected: {func_name}: {e}"
        )
        raise
    except Exception as e:
        execution_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
        bound_logger.bind(error_type=type(e).__name__, execution_time_ms=execution_time_ms).error(
            f"Ledger operation failed: {func_name}: {e}"
        )
        raise

    execution_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    bound_logger.bind(execution_time_ms=execution_time_ms).info(
        f"Ledger operation completed: {func_name}"
    )
    return result


F = TypeVar("F", bound=Callable[..., Any])


def log_ledger_operation(func: F) -> F:
    """Decorator to log ledger operations with correlation IDs and timing."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = _extract_operation_context(func, args, kwargs)
        return _execute_with_logging(func, context, args, kwargs)

    return wrapper  # type: ignore
