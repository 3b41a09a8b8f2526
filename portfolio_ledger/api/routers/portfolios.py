"""
Portfolio API endpoints.

Every portfolio-scoped endpoint checks that the portfolio belongs to the
caller named by ``X-User-Id``; foreign portfolios are reported as not found.
"""

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from portfolio_ledger.core.constants import (
    DEFAULT_TRANSACTIONS_PAGE_SIZE,
    MAX_TRANSACTIONS_PAGE_SIZE,
    RECENT_TRANSACTIONS_LIMIT,
)
from portfolio_ledger.core.enums import ReportPeriod, TransactionType

from ..dependencies import OwnerId, Services
from ..schemas.api_models import (
    CreatePortfolioRequest,
    ErrorResponse,
    OrderRequestBody,
    OrderResponse,
    PerformanceResponse,
    PortfolioDetailResponse,
    PortfolioResponse,
    RefreshResponse,
    TransactionPageResponse,
    UpdatePortfolioRequest,
)

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }
)


@router.get("", response_model=list[PortfolioResponse])
def list_portfolios(services: Services, owner_id: OwnerId) -> list[dict]:
    """List the caller's portfolios, default first."""
    return [p.to_dict() for p in services.portfolios.list_portfolios(owner_id)]


@router.post("", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
def create_portfolio(
    request: CreatePortfolioRequest, services: Services, owner_id: OwnerId
) -> dict:
    """Create a portfolio funded with its initial capital."""
    portfolio = services.portfolios.create_portfolio(
        owner_id=owner_id,
        name=request.name,
        initial_capital=request.initial_capital,
        kind=request.kind,
        description=request.description,
    )
    return portfolio.to_dict()


@router.get("/{portfolio_id}", response_model=PortfolioDetailResponse)
def get_portfolio(portfolio_id: str, services: Services, owner_id: OwnerId) -> dict:
    """Get a portfolio with its positions and most recent transactions."""
    portfolio = services.portfolios.get_portfolio(portfolio_id, owner_id)
    positions = services.portfolios.list_positions(portfolio_id)
    recent = services.portfolios.list_transactions(
        portfolio_id, limit=RECENT_TRANSACTIONS_LIMIT
    )
    return {
        "portfolio": portfolio.to_dict(),
        "positions": [position.to_dict() for position in positions],
        "recent_transactions": [transaction.to_dict() for transaction in recent.items],
    }


@router.put("/{portfolio_id}", response_model=PortfolioResponse)
def update_portfolio(
    portfolio_id: str, request: UpdatePortfolioRequest, services: Services, owner_id: OwnerId
) -> dict:
    """Rename or re-describe a portfolio."""
    portfolio = services.portfolios.update_portfolio(
        portfolio_id, owner_id, name=request.name, description=request.description
    )
    return portfolio.to_dict()


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_portfolio(portfolio_id: str, services: Services, owner_id: OwnerId) -> Response:
    """Delete a portfolio with its positions and transactions."""
    services.portfolios.delete_portfolio(portfolio_id, owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{portfolio_id}/default", response_model=PortfolioResponse)
def set_default_portfolio(portfolio_id: str, services: Services, owner_id: OwnerId) -> dict:
    """Make a portfolio the caller's default."""
    return services.portfolios.set_default(portfolio_id, owner_id).to_dict()


@router.post(
    "/{portfolio_id}/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
def submit_order(
    portfolio_id: str, request: OrderRequestBody, services: Services, owner_id: OwnerId
) -> dict:
    """Apply a buy or sell order to the portfolio."""
    services.portfolios.get_portfolio(portfolio_id, owner_id)
    result = services.engine.apply_order(
        portfolio_id,
        request.symbol,
        request.transaction_type,
        request.quantity,
        request.price,
        request.commission,
    )
    return result.to_dict()


@router.get("/{portfolio_id}/transactions", response_model=TransactionPageResponse)
def list_transactions(
    portfolio_id: str,
    services: Services,
    owner_id: OwnerId,
    symbol: str | None = None,
    transaction_type: Annotated[TransactionType | None, Query(alias="type")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[
        int, Query(ge=1, le=MAX_TRANSACTIONS_PAGE_SIZE)
    ] = DEFAULT_TRANSACTIONS_PAGE_SIZE,
) -> dict:
    """Get one page of the transaction log, newest first."""
    services.portfolios.get_portfolio(portfolio_id, owner_id)
    return services.portfolios.list_transactions(
        portfolio_id, symbol=symbol, transaction_type=transaction_type, page=page, limit=limit
    ).to_dict()


@router.post("/{portfolio_id}/sync", response_model=RefreshResponse)
def sync_portfolio(portfolio_id: str, services: Services, owner_id: OwnerId) -> dict:
    """Refresh position valuations from the latest quotes."""
    services.portfolios.get_portfolio(portfolio_id, owner_id)
    return services.refresher.refresh(portfolio_id).to_dict()


@router.get("/{portfolio_id}/performance", response_model=PerformanceResponse)
def get_performance(
    portfolio_id: str,
    services: Services,
    owner_id: OwnerId,
    period: ReportPeriod = ReportPeriod.M1,
) -> dict:
    """Get the portfolio's performance report for a period."""
    services.portfolios.get_portfolio(portfolio_id, owner_id)
    return services.reporter.report(portfolio_id, period).to_dict()
