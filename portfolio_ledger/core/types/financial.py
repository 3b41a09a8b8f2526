"""
Financial data types for ledger calculations.

All money and quantities are ``decimal.Decimal``. Binary floats cannot
represent cents exactly, and a ledger must conserve cash to the cent over
any sequence of orders, so every value entering the engine is converted
with ``to_decimal`` and every stored amount is quantized with the
rounding helpers below.

Precision:
- Money (cash, totals, P&L, market value): 2 decimal places
- Average cost: ``COST_BASIS_DECIMALS`` decimal places
- Quantities: exact Decimal (fractional shares allowed)
- Percentages: 4 decimal places
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMALS = 2
COST_BASIS_DECIMALS = 2
PERCENTAGE_DECIMALS = 4

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _quantum(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def to_decimal(value: str | int | float | Decimal) -> Decimal:
    """Convert various numeric types to Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Args:
        value: Numeric value to convert

    Returns:
        Decimal representation of the value

    Raises:
        ValueError: If value is not numeric or not finite

    Examples:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal('45.00')
        Decimal('45.00')
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected a numeric value, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Expected a numeric value, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Expected a finite value, got {value!r}")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round a money amount to cents."""
    return amount.quantize(_quantum(MONEY_DECIMALS), rounding=ROUND_HALF_UP)


def round_cost(cost: Decimal, decimals: int = COST_BASIS_DECIMALS) -> Decimal:
    """Round an average cost per unit to the cost-basis precision."""
    return cost.quantize(_quantum(decimals), rounding=ROUND_HALF_UP)


def round_percentage(percentage: Decimal) -> Decimal:
    """Round a percentage to the reporting precision."""
    return percentage.quantize(_quantum(PERCENTAGE_DECIMALS), rounding=ROUND_HALF_UP)


def calculate_notional_value(quantity: Decimal, price: Decimal) -> Decimal:
    """Calculate quantity x price in money precision."""
    return round_money(quantity * price)


def calculate_market_value(quantity: Decimal, current_price: Decimal) -> Decimal:
    """Calculate the market value of a holding."""
    return round_money(quantity * current_price)


def calculate_unrealized_pnl(
    quantity: Decimal, average_cost: Decimal, current_price: Decimal
) -> Decimal:
    """Calculate unrealized P&L: market value minus quantity at average cost.

    Args:
        quantity: Held quantity
        average_cost: Average cost per unit
        current_price: Latest known price

    Returns:
        Unrealized P&L in money precision
    """
    return calculate_market_value(quantity, current_price) - round_money(quantity * average_cost)


def calculate_realized_gain(quantity: Decimal, average_cost: Decimal, price: Decimal) -> Decimal:
    """Calculate the gain locked in by selling ``quantity`` at ``price``."""
    return round_money((price - average_cost) * quantity)


def decimal_places(value: Decimal) -> int:
    """Number of digits after the decimal point in ``value`` as written."""
    exponent = value.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def cost_precision(decimals: int, *values: Decimal) -> int:
    """Precision of an average cost: never coarser than the prices it averages."""
    return max([decimals, *(decimal_places(value) for value in values)])


def initial_average_cost(
    quantity: Decimal,
    price: Decimal,
    basis_cost: Decimal,
    decimals: int = COST_BASIS_DECIMALS,
) -> Decimal:
    """Calculate the average cost of a newly opened holding.

    A purchase whose basis is exactly quantity x price keeps the execution
    price as its average cost. Otherwise (commission folded into the basis)
    the per-unit basis is rounded to the cost-basis precision, or to the
    precision of the price when that is finer.

    Examples:
        >>> initial_average_cost(Decimal("1"), Decimal("0.515"), Decimal("0.515"))
        Decimal('0.515')
    """
    if basis_cost == quantity * price:
        return price
    return round_cost(basis_cost / quantity, cost_precision(decimals, price))


def weighted_average_cost(
    old_quantity: Decimal,
    old_average_cost: Decimal,
    added_quantity: Decimal,
    added_cost: Decimal,
    decimals: int = COST_BASIS_DECIMALS,
    price: Decimal | None = None,
) -> Decimal:
    """Calculate the quantity-weighted average cost after adding to a holding.

    ``added_cost`` must be the unrounded basis of the purchase; only the
    resulting average is quantized.

    Args:
        old_quantity: Quantity held before the purchase
        old_average_cost: Average cost before the purchase
        added_quantity: Quantity purchased
        added_cost: Total cost of the purchase attributed to the basis
        decimals: Cost-basis precision
        price: Execution price of the purchase, whose precision is kept when finer

    Returns:
        New average cost per unit

    Raises:
        ValueError: If the resulting quantity is not positive
    """
    new_quantity = old_quantity + added_quantity
    if new_quantity <= ZERO:
        raise ValueError(f"Resulting quantity must be positive, got {new_quantity}")
    total_cost = old_quantity * old_average_cost + added_cost
    prices = [old_average_cost] if price is None else [old_average_cost, price]
    return round_cost(total_cost / new_quantity, cost_precision(decimals, *prices))


def calculate_percentage(part: Decimal, whole: Decimal) -> Decimal:
    """Calculate ``part / whole * 100``; zero when ``whole`` is not positive."""
    if whole <= ZERO:
        return ZERO
    return round_percentage(part / whole * HUNDRED)
