"""
Shared fixtures for ledger tests.
"""

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from loguru import logger

from portfolio_ledger.core.ledger import (
    LedgerEngine,
    PerformanceReporter,
    PortfolioService,
    ValuationRefresher,
)
from portfolio_ledger.core.models import Portfolio
from portfolio_ledger.infrastructure.quotes import StaticQuoteProvider
from portfolio_ledger.infrastructure.storage import InMemoryLedgerStore


class SteppingClock:
    """Deterministic clock advancing by a fixed step on every call."""

    def __init__(
        self,
        start: datetime = datetime(2024, 3, 15, 12, 0, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        moment = self.current
        self.current = self.current + self.step
        return moment

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


@pytest.fixture
def clock() -> SteppingClock:
    """Clock shared by the services under test."""
    return SteppingClock()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    """Fresh in-memory ledger store."""
    return InMemoryLedgerStore()


@pytest.fixture
def quotes() -> StaticQuoteProvider:
    """Quote provider with a few known symbols."""
    provider = StaticQuoteProvider()
    provider.set_quote("AAPL", "190.00", "Apple Inc.", "Technology")
    provider.set_quote("MSFT", "410.00", "Microsoft Corporation", "Technology")
    provider.set_quote("JPM", "195.00", "JPMorgan Chase & Co.", "Financial Services")
    return provider


@pytest.fixture
def service(store: InMemoryLedgerStore, clock: SteppingClock) -> PortfolioService:
    """Portfolio management service."""
    return PortfolioService(store, clock=clock)


@pytest.fixture
def engine(
    store: InMemoryLedgerStore, quotes: StaticQuoteProvider, clock: SteppingClock
) -> LedgerEngine:
    """Ledger engine with the default commission policy."""
    return LedgerEngine(store, quote_provider=quotes, clock=clock)


@pytest.fixture
def refresher(
    store: InMemoryLedgerStore, quotes: StaticQuoteProvider, clock: SteppingClock
) -> ValuationRefresher:
    """Valuation refresher with a short timeout."""
    return ValuationRefresher(store, quotes, timeout_seconds=2.0, max_workers=4, clock=clock)


@pytest.fixture
def reporter(store: InMemoryLedgerStore, clock: SteppingClock) -> PerformanceReporter:
    """Performance reporter."""
    return PerformanceReporter(store, clock=clock)


@pytest.fixture
def portfolio(service: PortfolioService) -> Portfolio:
    """Paper portfolio funded with 100,000, created before the first order."""
    return service.create_portfolio("user-1", "Growth", Decimal("100000"))


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru messages with their level, e.g. ``WARNING | ...``."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.rstrip("\n")),
        level="DEBUG",
        format="{level} | {message}",
    )
    yield messages
    logger.remove(handler_id)
