"""
Service wiring and request dependencies for the API.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from portfolio_ledger.core.config import LedgerSettings
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider
from portfolio_ledger.core.interfaces.storage import ILedgerStore
from portfolio_ledger.core.ledger import (
    LedgerEngine,
    PerformanceReporter,
    PortfolioService,
    ValuationRefresher,
)
from portfolio_ledger.infrastructure.quotes import CachedQuoteProvider


@dataclass
class LedgerServices:
    """Ledger services sharing one store and one quote provider."""

    portfolios: PortfolioService
    engine: LedgerEngine
    refresher: ValuationRefresher
    reporter: PerformanceReporter

    @classmethod
    def build(
        cls, settings: LedgerSettings, store: ILedgerStore, quote_provider: IQuoteProvider
    ) -> "LedgerServices":
        """Wire the services, putting the quote cache and rate limiter in front of the provider."""
        quotes = CachedQuoteProvider(
            quote_provider,
            ttl_seconds=settings.quote_cache_ttl_seconds,
            rate_limit=settings.quote_rate_limit,
            rate_limit_window_seconds=settings.quote_rate_limit_window_seconds,
            cache_size=settings.quote_cache_size,
        )
        return cls(
            portfolios=PortfolioService(store),
            engine=LedgerEngine(
                store,
                quote_provider=quotes,
                commission_policy=settings.commission_policy,
                cost_basis_decimals=settings.cost_basis_decimals,
                quote_timeout_seconds=settings.quote_timeout_seconds,
            ),
            refresher=ValuationRefresher(
                store,
                quotes,
                timeout_seconds=settings.quote_timeout_seconds,
                max_workers=settings.quote_workers,
            ),
            reporter=PerformanceReporter(
                store,
                commission_policy=settings.commission_policy,
                cost_basis_decimals=settings.cost_basis_decimals,
            ),
        )


def get_services(request: Request) -> LedgerServices:
    """Get the services attached to the application."""
    return request.app.state.services


def get_owner_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Get the caller identity from the ``X-User-Id`` header."""
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


Services = Annotated[LedgerServices, Depends(get_services)]
OwnerId = Annotated[str, Depends(get_owner_id)]
