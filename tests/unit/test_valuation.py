"""
Unit tests for ValuationRefresher.
Testing mark-to-market, per-symbol failure isolation, and idempotence.
"""

import threading
import time
from decimal import Decimal

import pytest

from portfolio_ledger.core.exceptions import PortfolioNotFoundError
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider, Quote
from portfolio_ledger.core.ledger import LedgerEngine, ValuationRefresher
from portfolio_ledger.core.models import Portfolio
from portfolio_ledger.infrastructure.quotes import StaticQuoteProvider
from portfolio_ledger.infrastructure.storage import InMemoryLedgerStore


class BlockingQuoteProvider(IQuoteProvider):
    """Delegates to another provider but blocks on selected symbols."""

    def __init__(self, delegate: IQuoteProvider, blocked: set[str]) -> None:
        self.delegate = delegate
        self.blocked = blocked
        self.release = threading.Event()

    def get_quote(self, symbol: str) -> Quote | None:
        if symbol in self.blocked:
            self.release.wait(timeout=5)
        return self.delegate.get_quote(symbol)


class SlowQuoteProvider(IQuoteProvider):
    """Delegates to another provider after a fixed delay per quote."""

    def __init__(self, delegate: IQuoteProvider, delay_seconds: float) -> None:
        self.delegate = delegate
        self.delay_seconds = delay_seconds

    def get_quote(self, symbol: str) -> Quote | None:
        time.sleep(self.delay_seconds)
        return self.delegate.get_quote(symbol)


@pytest.fixture
def holdings(engine: LedgerEngine, portfolio: Portfolio) -> Portfolio:
    """Portfolio holding AAPL, MSFT, and JPM bought below the quoted prices."""
    engine.apply_order(portfolio.id, "AAPL", "BUY", 10, 180)
    engine.apply_order(portfolio.id, "MSFT", "BUY", 5, 400)
    engine.apply_order(portfolio.id, "JPM", "BUY", 20, 200)
    return portfolio


class TestValuationRefresher:
    """Test suite for ValuationRefresher."""

    def test_should_mark_positions_to_latest_quotes(
        self, refresher: ValuationRefresher, store: InMemoryLedgerStore, holdings: Portfolio
    ) -> None:
        """Test prices, market values, and unrealized P&L are refreshed."""
        # Act
        result = refresher.refresh(holdings.id)

        # Assert
        assert result.updated_count == 3
        assert result.skipped_count == 0
        aapl = store.get_position(holdings.id, "AAPL")
        assert aapl.current_price == Decimal("190.00")
        assert aapl.market_value == Decimal("1900.00")
        assert aapl.unrealized_pnl == Decimal("100.00")
        assert aapl.average_cost == Decimal("180.00")
        jpm = store.get_position(holdings.id, "JPM")
        assert jpm.unrealized_pnl == Decimal("-100.00")
        assert result.total_unrealized_pnl == Decimal("100.00") + Decimal("50.00") - Decimal(
            "100.00"
        )

    def test_should_update_portfolio_value_but_not_cash(
        self, refresher: ValuationRefresher, store: InMemoryLedgerStore, holdings: Portfolio
    ) -> None:
        """Test current value and total P&L follow market values; cash is untouched."""
        # Arrange
        cash_before = store.get_portfolio(holdings.id).cash_balance

        # Act
        result = refresher.refresh(holdings.id)

        # Assert
        portfolio = store.get_portfolio(holdings.id)
        assert portfolio.cash_balance == cash_before
        assert portfolio.current_value == cash_before + result.total_market_value
        assert portfolio.total_pnl == portfolio.current_value - portfolio.initial_capital
        assert result.current_value == portfolio.current_value

    def test_should_be_idempotent_with_unchanged_quotes(
        self, refresher: ValuationRefresher, store: InMemoryLedgerStore, holdings: Portfolio
    ) -> None:
        """Test two refreshes in a row produce identical valuations."""
        # Arrange
        refresher.refresh(holdings.id)
        first = {
            p.symbol: (p.market_value, p.unrealized_pnl) for p in store.list_positions(holdings.id)
        }

        # Act
        refresher.refresh(holdings.id)

        # Assert
        second = {
            p.symbol: (p.market_value, p.unrealized_pnl) for p in store.list_positions(holdings.id)
        }
        assert second == first

    def test_should_skip_failing_and_unknown_symbols(
        self,
        refresher: ValuationRefresher,
        quotes: StaticQuoteProvider,
        store: InMemoryLedgerStore,
        holdings: Portfolio,
    ) -> None:
        """Test provider errors and missing quotes skip only their symbol."""
        # Arrange
        quotes.fail_symbol("MSFT", "upstream 503")
        quotes.remove_quote("JPM")

        # Act
        result = refresher.refresh(holdings.id)

        # Assert
        assert result.updated_count == 1
        assert result.skipped_count == 2
        assert result.skipped_symbols == ["JPM", "MSFT"]
        assert store.get_position(holdings.id, "AAPL").current_price == Decimal("190.00")
        assert store.get_position(holdings.id, "MSFT").current_price == Decimal("400")

    def test_should_skip_non_positive_prices(
        self,
        refresher: ValuationRefresher,
        quotes: StaticQuoteProvider,
        holdings: Portfolio,
    ) -> None:
        """Test a zero price is treated as a failed quote."""
        # Arrange
        quotes.set_quote("AAPL", "0")

        # Act
        result = refresher.refresh(holdings.id)

        # Assert
        assert "AAPL" in result.skipped_symbols
        assert result.updated_count == 2

    def test_should_skip_symbols_whose_quote_times_out(
        self,
        store: InMemoryLedgerStore,
        quotes: StaticQuoteProvider,
        holdings: Portfolio,
    ) -> None:
        """Test one slow quote does not block or fail the rest of the batch."""
        # Arrange
        slow = BlockingQuoteProvider(quotes, blocked={"MSFT"})
        refresher = ValuationRefresher(store, slow, timeout_seconds=0.2, max_workers=3)

        # Act
        try:
            result = refresher.refresh(holdings.id)
        finally:
            slow.release.set()

        # Assert
        assert result.skipped_symbols == ["MSFT"]
        assert result.updated_count == 2

    def test_should_time_each_quote_from_its_own_start(
        self,
        engine: LedgerEngine,
        store: InMemoryLedgerStore,
        quotes: StaticQuoteProvider,
        holdings: Portfolio,
    ) -> None:
        """Test quotes queued behind a busy worker still get the full timeout."""
        # Arrange
        quotes.set_quote("KO", "60", company_name="Coca-Cola Co.", sector="Consumer Staples")
        engine.apply_order(holdings.id, "KO", "BUY", 10, 55)
        slow = SlowQuoteProvider(quotes, delay_seconds=0.15)
        refresher = ValuationRefresher(store, slow, timeout_seconds=0.25, max_workers=1)

        # Act
        result = refresher.refresh(holdings.id)

        # Assert
        assert result.skipped_symbols == []
        assert result.updated_count == 4
        assert store.get_position(holdings.id, "KO").current_price == Decimal("60")

    def test_should_log_skipped_symbols(
        self,
        refresher: ValuationRefresher,
        quotes: StaticQuoteProvider,
        holdings: Portfolio,
        log_messages: list[str],
    ) -> None:
        """Test each skipped symbol is logged at WARNING."""
        # Arrange
        quotes.fail_symbol("JPM", "connection refused")

        # Act
        refresher.refresh(holdings.id)

        # Assert
        assert any(
            message.startswith("WARNING") and "JPM" in message and "connection refused" in message
            for message in log_messages
        )

    def test_should_handle_portfolio_without_positions(
        self, refresher: ValuationRefresher, portfolio: Portfolio
    ) -> None:
        """Test an empty portfolio refreshes to its cash balance."""
        result = refresher.refresh(portfolio.id)

        assert result.updated_count == 0
        assert result.current_value == Decimal("100000.00")

    def test_should_raise_for_unknown_portfolio(self, refresher: ValuationRefresher) -> None:
        """Test refreshing a missing portfolio fails."""
        with pytest.raises(PortfolioNotFoundError):
            refresher.refresh("missing")
