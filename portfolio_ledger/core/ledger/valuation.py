"""
Valuation refresher.

Marks a portfolio's positions to the latest quotes. Only derived fields
change (current price, market value, unrealized P&L, and the portfolio's
current value and total P&L); average cost, realized P&L, quantities, and
cash are never written here.
"""

import math
import time
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from decimal import Decimal

from loguru import logger

from portfolio_ledger.core.constants import DEFAULT_QUOTE_TIMEOUT_SECONDS, DEFAULT_QUOTE_WORKERS
from portfolio_ledger.core.exceptions import PortfolioNotFoundError, QuoteProviderError
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider, Quote
from portfolio_ledger.core.interfaces.storage import ILedgerStore
from portfolio_ledger.core.models.report import RefreshResult
from portfolio_ledger.core.types import ZERO
from portfolio_ledger.core.utils.decorators import log_ledger_operation


_POLL_SECONDS = 0.05


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ValuationRefresher:
    """Refreshes market values of a portfolio's positions from a quote provider.

    Quote failures are isolated per symbol: a missing quote, a provider
    error, a non-positive price, or a timeout skips that symbol and the rest
    of the batch proceeds.
    """

    def __init__(
        self,
        store: ILedgerStore,
        quote_provider: IQuoteProvider,
        timeout_seconds: float = DEFAULT_QUOTE_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_QUOTE_WORKERS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("Quote timeout must be positive")
        if max_workers < 1:
            raise ValueError("Worker count must be at least 1")
        self.store = store
        self.quote_provider = quote_provider
        self.timeout_seconds = timeout_seconds
        self.max_workers = max_workers
        self._clock = clock

    @log_ledger_operation
    def refresh(self, portfolio_id: str) -> RefreshResult:
        """Refresh every position of a portfolio from the latest quotes.

        Args:
            portfolio_id: Portfolio to refresh

        Returns:
            Counts of updated and skipped positions and the new totals

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist
        """
        if self.store.get_portfolio(portfolio_id) is None:
            raise PortfolioNotFoundError(portfolio_id)

        symbols = [position.symbol for position in self.store.list_positions(portfolio_id)]
        prices, skipped = self._fetch_prices(symbols)

        updated_count = 0
        for symbol, price in prices.items():
            # Re-read inside the scope so a concurrent BUY's average cost is respected
            with self.store.unit_of_work(portfolio_id) as uow:
                position = uow.get_position(symbol)
                if position is None:
                    logger.debug(f"Position {symbol} closed during refresh, skipping")
                    skipped.append(symbol)
                    continue
                position.revalue(price, self._clock())
                uow.save_position(position)
                updated_count += 1

        with self.store.unit_of_work(portfolio_id) as uow:
            positions = uow.list_positions()
            portfolio = uow.portfolio
            portfolio.recompute_valuation(positions, self._clock())
            uow.save_portfolio(portfolio)

        if skipped:
            logger.warning(
                f"Refresh of portfolio {portfolio_id} skipped {len(skipped)} symbol(s): "
                f"{', '.join(sorted(skipped))}"
            )

        return RefreshResult(
            portfolio_id=portfolio_id,
            updated_count=updated_count,
            skipped_count=len(skipped),
            skipped_symbols=sorted(skipped),
            current_value=portfolio.current_value,
            total_market_value=sum((p.market_value for p in positions), ZERO),
            total_unrealized_pnl=sum((p.unrealized_pnl for p in positions), ZERO),
        )

    def _fetch_prices(self, symbols: Iterable[str]) -> tuple[dict[str, Decimal], list[str]]:
        """Fetch prices concurrently, bounding each quote by the timeout.

        A symbol's clock starts when a worker picks it up, so symbols queued
        behind others still get the full timeout. Symbols that never start
        because timed-out quotes keep every worker busy are skipped once the
        whole batch could have run at the timeout.

        Returns:
            Prices of successfully quoted symbols and the list of skipped symbols
        """
        symbols = list(symbols)
        if not symbols:
            return {}, []

        workers = min(self.max_workers, len(symbols))
        start_deadline = time.monotonic() + self.timeout_seconds * math.ceil(
            len(symbols) / workers
        )
        started: dict[str, float] = {}
        prices: dict[str, Decimal] = {}
        skipped: list[str] = []

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quote")
        try:
            futures: dict[Future[Quote | None], str] = {
                executor.submit(self._timed_quote, symbol, started): symbol for symbol in symbols
            }
            pending = set(futures)
            while pending:
                done, pending = wait(
                    pending,
                    timeout=self._next_wait(futures, pending, started, start_deadline),
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    symbol = futures[future]
                    price = self._price_from(symbol, future)
                    if price is None:
                        skipped.append(symbol)
                    else:
                        prices[symbol] = price

                now = time.monotonic()
                for future in list(pending):
                    if future.done():
                        continue
                    symbol = futures[future]
                    started_at = started.get(symbol)
                    if started_at is not None and now - started_at >= self.timeout_seconds:
                        logger.warning(
                            f"Quote for {symbol} timed out after {self.timeout_seconds}s"
                        )
                    elif started_at is None and now >= start_deadline:
                        logger.warning(f"Quote for {symbol} never started, no worker was free")
                    else:
                        continue
                    pending.discard(future)
                    skipped.append(symbol)
        finally:
            # Do not wait for slow quotes; their results are discarded
            executor.shutdown(wait=False, cancel_futures=True)

        return prices, skipped

    def _timed_quote(self, symbol: str, started: dict[str, float]) -> Quote | None:
        started[symbol] = time.monotonic()
        return self.quote_provider.get_quote(symbol)

    def _next_wait(
        self,
        futures: "dict[Future[Quote | None], str]",
        pending: "set[Future[Quote | None]]",
        started: dict[str, float],
        start_deadline: float,
    ) -> float:
        """Seconds until the earliest deadline among pending quotes."""
        deadlines = [start_deadline]
        for future in pending:
            started_at = started.get(futures[future])
            if started_at is not None:
                deadlines.append(started_at + self.timeout_seconds)
        # Quotes that start while waiting are picked up on the next poll
        return max(min(min(deadlines) - time.monotonic(), _POLL_SECONDS), 0.0)

    @staticmethod
    def _price_from(symbol: str, future: "Future[Quote | None]") -> Decimal | None:
        try:
            quote = future.result()
        except QuoteProviderError as e:
            logger.warning(f"Quote provider failed for {symbol}: {e}")
            return None
        except Exception as e:
            logger.warning(f"Unexpected quote error for {symbol}: {type(e).__name__}: {e}")
            return None

        if quote is None:
            logger.warning(f"No quote available for {symbol}")
            return None
        if quote.current_price <= ZERO:
            logger.warning(f"Ignoring non-positive price {quote.current_price} for {symbol}")
            return None
        return quote.current_price
