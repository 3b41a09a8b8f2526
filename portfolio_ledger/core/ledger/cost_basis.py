"""Cost-basis helpers shared by the engine and the transaction-log replay."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from portfolio_ledger.core.enums import CommissionPolicy
from portfolio_ledger.core.models.transaction import Transaction
from portfolio_ledger.core.types import (
    COST_BASIS_DECIMALS,
    ZERO,
    calculate_realized_gain,
    initial_average_cost,
    weighted_average_cost,
)


class CostBasisCalculator:
    """Applies the configured commission policy to BUY cost."""

    @staticmethod
    def basis_cost(
        policy: CommissionPolicy, quantity: Decimal, price: Decimal, commission: Decimal
    ) -> Decimal:
        """Amount of a BUY that enters the average cost.

        Args:
            policy: Commission policy in force
            quantity: Quantity bought
            price: Execution price
            commission: Commission charged

        Returns:
            Unrounded quantity x price, plus commission when the policy includes it
        """
        notional = quantity * price
        if policy.includes_commission:
            return notional + commission
        return notional


@dataclass
class _ReplayHolding:
    quantity: Decimal = ZERO
    average_cost: Decimal = ZERO

class LedgerReplay:
    """Re-derives lifetime realized P&L from the transaction log.

    Positions are deleted when sold down to zero, so their realized P&L
    does not survive a closure. Replaying BUYs and SELLs in order with the
    engine's average-cost rules recovers the full history.
    """

    def __init__(
        self,
        commission_policy: CommissionPolicy = CommissionPolicy.EXCLUDE_FROM_COST_BASIS,
        cost_basis_decimals: int = COST_BASIS_DECIMALS,
    ) -> None:
        self.commission_policy = commission_policy
        self.cost_basis_decimals = cost_basis_decimals

    def realized_pnl_by_symbol(self, transactions: Iterable[Transaction]) -> dict[str, Decimal]:
        """Realized P&L per symbol over the given transactions, oldest first."""
        holdings: dict[str, _ReplayHolding] = {}
        realized: dict[str, Decimal] = {}

        for transaction in sorted(transactions, key=lambda t: t.timestamp):
            holding = holdings.setdefault(transaction.symbol, _ReplayHolding())
            realized.setdefault(transaction.symbol, ZERO)

            if transaction.transaction_type.is_buy:
                basis = CostBasisCalculator.basis_cost(
                    self.commission_policy,
                    transaction.quantity,
                    transaction.price,
                    transaction.commission,
                )
                if holding.quantity == ZERO:
                    holding.average_cost = initial_average_cost(
                        transaction.quantity, transaction.price, basis, self.cost_basis_decimals
                    )
                else:
                    holding.average_cost = weighted_average_cost(
                        holding.quantity,
                        holding.average_cost,
                        transaction.quantity,
                        basis,
                        self.cost_basis_decimals,
                        price=transaction.price,
                    )
                holding.quantity += transaction.quantity
            else:
                realized[transaction.symbol] += calculate_realized_gain(
                    transaction.quantity, holding.average_cost, transaction.price
                )
                holding.quantity -= transaction.quantity
                if holding.quantity <= ZERO:
                    holdings[transaction.symbol] = _ReplayHolding()

        return realized

    def realized_pnl(self, transactions: Iterable[Transaction]) -> Decimal:
        """Total realized P&L over the given transactions."""
        return sum(self.realized_pnl_by_symbol(transactions).values(), ZERO)
