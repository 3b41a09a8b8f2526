"""
Ledger engine.

Applies one BUY or SELL to a portfolio's cash balance and a single
position. The transaction row, the position row, and the portfolio row are
written in one unit of work keyed by portfolio id, so concurrent orders on
the same portfolio are serialized and a rejected or failed order leaves
no trace.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from portfolio_ledger.core.constants import (
    DEFAULT_QUOTE_TIMEOUT_SECONDS,
    UNKNOWN_COMPANY,
    UNKNOWN_SECTOR,
)
from portfolio_ledger.core.enums import CommissionPolicy, TransactionType
from portfolio_ledger.core.exceptions import (
    InsufficientFundsError,
    InsufficientQuantityError,
    PositionNotFoundError,
)
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider
from portfolio_ledger.core.interfaces.storage import ILedgerStore, IUnitOfWork
from portfolio_ledger.core.ledger.cost_basis import CostBasisCalculator
from portfolio_ledger.core.models.order import OrderRequest, OrderResult
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.models.transaction import Transaction
from portfolio_ledger.core.types import COST_BASIS_DECIMALS, ZERO
from portfolio_ledger.core.utils.decorators import log_ledger_operation


def _utc_now() -> datetime:
    return datetime.now(UTC)


class LedgerEngine:
    """Validates and applies buy/sell instructions atomically.

    Average cost moves only on BUY (quantity-weighted; commission included
    only under ``CommissionPolicy.INCLUDE_IN_COST_BASIS``). A SELL locks in
    ``(price - average cost) x quantity`` as realized P&L and deletes the
    position when nothing is left.
    """

    def __init__(
        self,
        store: ILedgerStore,
        quote_provider: IQuoteProvider | None = None,
        commission_policy: CommissionPolicy = CommissionPolicy.EXCLUDE_FROM_COST_BASIS,
        cost_basis_decimals: int = COST_BASIS_DECIMALS,
        quote_timeout_seconds: float = DEFAULT_QUOTE_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Ledger storage
            quote_provider: Optional source of company name and sector for new positions
            commission_policy: Whether BUY commission enters the average cost
            cost_basis_decimals: Precision of the average cost
            quote_timeout_seconds: Longest wait for the company lookup of a new position
            clock: Source of transaction timestamps
        """
        self.store = store
        self.quote_provider = quote_provider
        self.commission_policy = commission_policy
        self.cost_basis_decimals = cost_basis_decimals
        self.quote_timeout_seconds = quote_timeout_seconds
        self._clock = clock

    @log_ledger_operation
    def apply_order(
        self,
        portfolio_id: str,
        symbol: str,
        transaction_type: TransactionType | str,
        quantity: Any,
        price: Any,
        commission: Any = ZERO,
    ) -> OrderResult:
        """Apply a buy or sell order to a portfolio.

        Args:
            portfolio_id: Target portfolio
            symbol: Ticker symbol
            transaction_type: BUY or SELL
            quantity: Quantity to trade, positive
            price: Execution price per unit, positive
            commission: Commission charged, non-negative

        Returns:
            The recorded transaction, the resulting position (None if closed),
            and the updated portfolio

        Raises:
            InvalidOrderParametersError: If any parameter is invalid
            PortfolioNotFoundError: If the portfolio does not exist
            InsufficientFundsError: If cash cannot cover the order
            PositionNotFoundError: If selling a symbol with no open position
            InsufficientQuantityError: If selling more than held
            ConcurrencyConflictError: If a concurrent write invalidated the order
            StorageError: If the atomic write failed; nothing was committed
        """
        order = OrderRequest.build(
            portfolio_id, symbol, transaction_type, quantity, price, commission
        )

        metadata = None
        if order.transaction_type.is_buy:
            metadata = self._lookup_company(order)

        with self.store.unit_of_work(order.portfolio_id) as uow:
            timestamp = self._clock()
            if order.transaction_type.is_buy:
                result = self._apply_buy(uow, order, timestamp, metadata)
            else:
                result = self._apply_sell(uow, order, timestamp)

        logger.info(
            f"{order.transaction_type.value} {order.quantity} {order.symbol} @ {order.price} "
            f"in portfolio {order.portfolio_id}: cash={result.portfolio.cash_balance}"
        )
        return result

    def _lookup_company(self, order: OrderRequest) -> tuple[str, str] | None:
        """Fetch company name and sector for a symbol not yet held.

        Best effort: provider errors and slow lookups never fail the order.
        """
        if self.quote_provider is None:
            return None
        if self.store.get_position(order.portfolio_id, order.symbol) is not None:
            return None
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="company")
        try:
            future = executor.submit(self.quote_provider.get_quote, order.symbol)
            quote = future.result(timeout=self.quote_timeout_seconds)
        except TimeoutError:
            logger.warning(
                f"Company lookup for {order.symbol} timed out after {self.quote_timeout_seconds}s"
            )
            return None
        except Exception as e:
            logger.warning(f"Company lookup failed for {order.symbol}: {type(e).__name__}: {e}")
            return None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        if quote is None:
            return None
        return quote.company_name or UNKNOWN_COMPANY, quote.sector or UNKNOWN_SECTOR

    def _apply_buy(
        self,
        uow: IUnitOfWork,
        order: OrderRequest,
        timestamp: datetime,
        metadata: tuple[str, str] | None,
    ) -> OrderResult:
        portfolio = uow.portfolio
        total_amount = Transaction.calculate_total_amount(
            TransactionType.BUY, order.quantity, order.price, order.commission
        )
        if portfolio.cash_balance < total_amount:
            raise InsufficientFundsError(
                required=total_amount,
                available=portfolio.cash_balance,
                operation=f"buying {order.quantity} {order.symbol} at {order.price}",
            )

        basis_cost = CostBasisCalculator.basis_cost(
            self.commission_policy, order.quantity, order.price, order.commission
        )
        position = uow.get_position(order.symbol)
        if position is None:
            company_name, sector = metadata or (UNKNOWN_COMPANY, UNKNOWN_SECTOR)
            position = Position.open(
                portfolio_id=order.portfolio_id,
                symbol=order.symbol,
                quantity=order.quantity,
                price=order.price,
                basis_cost=basis_cost,
                company_name=company_name,
                sector=sector,
                cost_basis_decimals=self.cost_basis_decimals,
                timestamp=timestamp,
            )
        else:
            position.apply_buy(
                order.quantity, order.price, basis_cost, self.cost_basis_decimals, timestamp
            )

        transaction = self._record(order, timestamp)
        portfolio.debit(transaction.total_amount)

        uow.append_transaction(transaction)
        uow.save_position(position)
        portfolio.recompute_valuation(uow.list_positions(), timestamp)
        uow.save_portfolio(portfolio)

        return OrderResult(
            transaction=transaction, position=position.copy(), portfolio=portfolio.copy()
        )

    def _apply_sell(
        self, uow: IUnitOfWork, order: OrderRequest, timestamp: datetime
    ) -> OrderResult:
        portfolio = uow.portfolio
        position = uow.get_position(order.symbol)
        if position is None:
            raise PositionNotFoundError(order.symbol)
        if order.quantity > position.quantity:
            raise InsufficientQuantityError(order.symbol, order.quantity, position.quantity)

        transaction = self._record(order, timestamp)
        # Commission larger than the proceeds is paid from cash, which may not go negative
        if portfolio.cash_balance + transaction.total_amount < ZERO:
            raise InsufficientFundsError(
                required=-transaction.total_amount,
                available=portfolio.cash_balance,
                operation=f"paying commission on selling {order.quantity} {order.symbol}",
            )

        closes = position.closes_with(order.quantity)
        realized_gain = position.apply_sell(order.quantity, order.price, timestamp)
        if closes:
            uow.delete_position(order.symbol)
        else:
            uow.save_position(position)

        portfolio.credit(transaction.total_amount)
        uow.append_transaction(transaction)
        portfolio.recompute_valuation(uow.list_positions(), timestamp)
        uow.save_portfolio(portfolio)

        return OrderResult(
            transaction=transaction,
            position=None if closes else position.copy(),
            portfolio=portfolio.copy(),
            realized_gain=realized_gain,
        )

    def _record(self, order: OrderRequest, timestamp: datetime) -> Transaction:
        return Transaction.record(
            portfolio_id=order.portfolio_id,
            symbol=order.symbol,
            transaction_type=order.transaction_type,
            quantity=order.quantity,
            price=order.price,
            commission=order.commission,
            timestamp=timestamp,
        )

