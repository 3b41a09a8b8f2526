"""
Integration tests for the full ledger flow.
Testing order sequences end to end, concurrent orders, and the HTTP surface.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import httpx
import pytest

from portfolio_ledger.api.main import create_app
from portfolio_ledger.core.config import LedgerSettings
from portfolio_ledger.core.exceptions import (
    InsufficientFundsError,
    LedgerException,
    PositionNotFoundError,
)
from portfolio_ledger.core.ledger import (
    LedgerEngine,
    PerformanceReporter,
    PortfolioService,
    ValuationRefresher,
)
from portfolio_ledger.core.models import Portfolio
from portfolio_ledger.infrastructure.quotes import StaticQuoteProvider
from portfolio_ledger.infrastructure.storage import InMemoryLedgerStore


class TestOrderLifecycle:
    """Buy, add, and sell a position, then report on it."""

    def test_should_follow_buy_buy_sell_sequence(
        self,
        engine: LedgerEngine,
        reporter: PerformanceReporter,
        store: InMemoryLedgerStore,
        portfolio: Portfolio,
    ) -> None:
        """Test cash, cost basis, realized gain, and the report across three orders."""
        # Act & Assert: first BUY opens the position
        first = engine.apply_order(portfolio.id, "X", "BUY", 1000, "45.00")
        assert first.portfolio.cash_balance == Decimal("55000.00")
        assert first.position.quantity == Decimal("1000")
        assert first.position.average_cost == Decimal("45.00")

        # Second BUY averages the cost
        second = engine.apply_order(portfolio.id, "X", "BUY", 500, "50.00")
        assert second.position.average_cost == Decimal("46.67")
        assert second.portfolio.cash_balance == Decimal("30000.00")

        # SELL of the whole quantity closes the position
        sell = engine.apply_order(portfolio.id, "X", "SELL", 1500, "52.00", commission=10)
        assert sell.realized_gain == Decimal("7995.00")
        assert sell.position_closed is True
        assert store.get_position(portfolio.id, "X") is None
        assert store.get_portfolio(portfolio.id).cash_balance == Decimal("107990.00")

        # The lifetime report still sees the closed round trip
        summary = reporter.report(portfolio.id, "ALL").summary
        assert summary.total_invested == Decimal("70000.00")
        assert summary.total_withdrawn == Decimal("77990.00")
        assert summary.realized_pnl == Decimal("7995.00")

    def test_should_leave_state_unchanged_when_selling_unheld_symbol(
        self, engine: LedgerEngine, store: InMemoryLedgerStore, portfolio: Portfolio
    ) -> None:
        """Test a SELL without a position fails and writes nothing."""
        # Arrange
        engine.apply_order(portfolio.id, "AAPL", "BUY", 10, 180)
        before = store.get_portfolio(portfolio.id)

        # Act
        with pytest.raises(PositionNotFoundError):
            engine.apply_order(portfolio.id, "MSFT", "SELL", 1, 400)

        # Assert
        after = store.get_portfolio(portfolio.id)
        assert after.cash_balance == before.cash_balance
        assert after.version == before.version
        assert [p.symbol for p in store.list_positions(portfolio.id)] == ["AAPL"]
        assert len(store.list_transactions(portfolio.id)) == 1

    def test_should_reconcile_after_refresh(
        self,
        engine: LedgerEngine,
        refresher: ValuationRefresher,
        reporter: PerformanceReporter,
        portfolio: Portfolio,
    ) -> None:
        """Test value, P&L, and cash agree across engine, refresher, and reporter."""
        # Arrange
        engine.apply_order(portfolio.id, "AAPL", "BUY", 10, 180, commission=1)
        engine.apply_order(portfolio.id, "MSFT", "BUY", 5, 400, commission=1)
        engine.apply_order(portfolio.id, "MSFT", "SELL", 2, 405, commission=1)

        # Act
        refresh = refresher.refresh(portfolio.id)
        summary = reporter.report(portfolio.id, "ALL").summary

        # Assert
        assert summary.current_value == refresh.current_value
        assert summary.current_value == summary.cash_balance + refresh.total_market_value
        assert summary.total_commissions == Decimal("3")
        assert summary.realized_pnl == Decimal("10.00")
        assert summary.unrealized_pnl == Decimal("100.00") + Decimal("30.00")
        assert summary.total_pnl == Decimal("137.00")
        assert (
            summary.realized_pnl + summary.unrealized_pnl - summary.total_commissions
            == summary.total_pnl
        )


class TestConcurrentOrders:
    """Orders racing on the same or different portfolios."""

    def test_should_let_exactly_one_of_two_racing_buys_succeed(
        self, engine: LedgerEngine, store: InMemoryLedgerStore, portfolio: Portfolio
    ) -> None:
        """Test two BUYs that together exceed cash are serialized; one fails."""
        # Arrange
        engine.apply_order(portfolio.id, "X", "BUY", 1000, "45.00")
        engine.apply_order(portfolio.id, "X", "BUY", 500, "50.00")
        engine.apply_order(portfolio.id, "X", "SELL", 1500, "52.00", commission=10)
        barrier = threading.Barrier(2)

        def buy(symbol: str) -> LedgerException | None:
            barrier.wait()
            try:
                engine.apply_order(portfolio.id, symbol, "BUY", 10000, "10.00")
            except LedgerException as e:
                return e
            return None

        # Act
        with ThreadPoolExecutor(max_workers=2) as executor:
            outcomes = list(executor.map(buy, ["Y", "Z"]))

        # Assert
        failures = [outcome for outcome in outcomes if outcome is not None]
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientFundsError)
        assert store.get_portfolio(portfolio.id).cash_balance == Decimal("7990.00")
        assert len(store.list_positions(portfolio.id)) == 1
        assert len(store.list_transactions(portfolio.id)) == 4

    def test_should_conserve_cash_under_concurrent_orders(
        self, engine: LedgerEngine, store: InMemoryLedgerStore, portfolio: Portfolio
    ) -> None:
        """Test cash equals capital minus buys plus sells after many racing orders."""
        # Arrange
        orders = [("AAPL", "BUY", 2, "180.10")] * 20 + [("MSFT", "BUY", 1, "399.99")] * 10

        def place(order: tuple[str, str, int, str]) -> None:
            symbol, side, quantity, price = order
            engine.apply_order(portfolio.id, symbol, side, quantity, price, commission="0.5")

        # Act
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(place, orders))

        # Assert
        transactions = store.list_transactions(portfolio.id)
        spent = sum((t.total_amount for t in transactions), Decimal("0"))
        assert len(transactions) == 30
        assert store.get_portfolio(portfolio.id).cash_balance == Decimal("100000.00") - spent
        assert store.get_position(portfolio.id, "AAPL").quantity == Decimal("40")
        assert store.get_portfolio(portfolio.id).version == 30

    def test_should_keep_portfolios_independent(
        self, service: PortfolioService, engine: LedgerEngine, store: InMemoryLedgerStore
    ) -> None:
        """Test orders on different portfolios do not interfere."""
        # Arrange
        first = service.create_portfolio("user-1", "First", 10000)
        second = service.create_portfolio("user-2", "Second", 10000)

        def trade(portfolio_id: str) -> None:
            for _ in range(10):
                engine.apply_order(portfolio_id, "X", "BUY", 1, 100)

        # Act
        with ThreadPoolExecutor(max_workers=2) as executor:
            list(executor.map(trade, [first.id, second.id]))

        # Assert
        for portfolio_id in (first.id, second.id):
            assert store.get_portfolio(portfolio_id).cash_balance == Decimal("9000.00")
            assert store.get_position(portfolio_id, "X").quantity == Decimal("10")


class TestAsyncApi:
    """The HTTP surface driven through an async client."""

    @pytest.mark.asyncio
    async def test_should_trade_and_report_over_http(self, quotes: StaticQuoteProvider) -> None:
        """Test create, order, sync, and performance over ASGI."""
        # Arrange
        app = create_app(
            settings=LedgerSettings(log_level="WARNING"),
            store=InMemoryLedgerStore(),
            quote_provider=quotes,
        )
        headers = {"X-User-Id": "user-1"}
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            # Act
            created = await client.post(
                "/api/portfolios",
                json={"name": "Async", "initial_capital": 50000},
                headers=headers,
            )
            portfolio_id = created.json()["id"]
            order = await client.post(
                f"/api/portfolios/{portfolio_id}/orders",
                json={"symbol": "MSFT", "transaction_type": "BUY", "quantity": 5, "price": 400},
                headers=headers,
            )
            sync = await client.post(f"/api/portfolios/{portfolio_id}/sync", headers=headers)
            report = await client.get(
                f"/api/portfolios/{portfolio_id}/performance",
                params={"period": "ALL"},
                headers=headers,
            )

        # Assert
        assert created.status_code == 201
        assert order.status_code == 201
        assert order.json()["position"]["company_name"] == "Microsoft Corporation"
        assert Decimal(sync.json()["total_market_value"]) == Decimal("2050.00")
        summary = report.json()["summary"]
        assert Decimal(summary["current_value"]) == Decimal("50050.00")
        assert Decimal(summary["total_pnl"]) == Decimal("50.00")
