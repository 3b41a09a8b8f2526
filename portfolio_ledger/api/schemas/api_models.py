"""
Pydantic schemas for API request/response models.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from portfolio_ledger.core.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_INITIAL_CAPITAL,
    MAX_PORTFOLIO_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
    MIN_INITIAL_CAPITAL,
    MIN_ORDER_PRICE,
    MIN_ORDER_QUANTITY,
    MIN_PORTFOLIO_NAME_LENGTH,
)
from portfolio_ledger.core.enums import PortfolioKind, TransactionType


class CreatePortfolioRequest(BaseModel):
    """Request model for portfolio creation."""

    name: str = Field(
        ..., min_length=MIN_PORTFOLIO_NAME_LENGTH, max_length=MAX_PORTFOLIO_NAME_LENGTH
    )
    initial_capital: Decimal = Field(
        ...,
        ge=Decimal(str(MIN_INITIAL_CAPITAL)),
        le=Decimal(str(MAX_INITIAL_CAPITAL)),
        description="Starting cash balance",
    )
    kind: PortfolioKind = Field(default=PortfolioKind.PAPER, description="Paper or real money")
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)


class UpdatePortfolioRequest(BaseModel):
    """Request model for renaming or re-describing a portfolio."""

    name: str | None = Field(
        default=None, min_length=MIN_PORTFOLIO_NAME_LENGTH, max_length=MAX_PORTFOLIO_NAME_LENGTH
    )
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)


class OrderRequestBody(BaseModel):
    """Request model for a buy or sell order."""

    symbol: str = Field(..., min_length=1, max_length=MAX_SYMBOL_LENGTH)
    transaction_type: TransactionType = Field(..., description="BUY or SELL")
    quantity: Decimal = Field(..., ge=Decimal(str(MIN_ORDER_QUANTITY)))
    price: Decimal = Field(..., ge=Decimal(str(MIN_ORDER_PRICE)))
    commission: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        """Upper-case the ticker symbol."""
        return v.strip().upper()

    @field_validator("transaction_type", mode="before")
    @classmethod
    def normalize_transaction_type(cls, v: object) -> object:
        """Accept the order side in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PortfolioResponse(BaseModel):
    """Response model for a portfolio."""

    id: str
    owner_id: str
    name: str
    description: str | None = None
    kind: PortfolioKind
    initial_capital: Decimal
    cash_balance: Decimal
    current_value: Decimal
    total_pnl: Decimal
    is_default: bool
    created_at: datetime
    updated_at: datetime


class PositionResponse(BaseModel):
    """Response model for an open position."""

    symbol: str
    company_name: str
    sector: str
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal | None = None
    market_value: Decimal
    unrealized_pnl: Decimal
    realized_pnl: Decimal
    opened_at: datetime
    updated_at: datetime


class TransactionResponse(BaseModel):
    """Response model for a transaction log entry."""

    id: str
    symbol: str
    transaction_type: TransactionType
    quantity: Decimal
    price: Decimal
    commission: Decimal
    total_amount: Decimal
    timestamp: datetime


class PortfolioDetailResponse(BaseModel):
    """Response model for a portfolio with its positions and recent transactions."""

    portfolio: PortfolioResponse
    positions: list[PositionResponse]
    recent_transactions: list[TransactionResponse]


class OrderResponse(BaseModel):
    """Response model for an applied order."""

    transaction: TransactionResponse
    position: PositionResponse | None = None
    portfolio: PortfolioResponse
    realized_gain: Decimal
    position_closed: bool


class PaginationInfo(BaseModel):
    """Pagination block of a transaction page."""

    page: int
    limit: int
    total: int
    pages: int


class TransactionPageResponse(BaseModel):
    """Response model for a page of transactions."""

    items: list[TransactionResponse]
    pagination: PaginationInfo


class RefreshResponse(BaseModel):
    """Response model for a valuation refresh."""

    portfolio_id: str
    updated_count: int
    skipped_count: int
    skipped_symbols: list[str]
    current_value: Decimal
    total_market_value: Decimal
    total_unrealized_pnl: Decimal


class SummaryResponse(BaseModel):
    """Summary block of a performance report."""

    initial_capital: Decimal
    current_value: Decimal
    cash_balance: Decimal
    total_invested: Decimal
    total_withdrawn: Decimal
    realized_pnl: Decimal
    position_realized_pnl: Decimal
    unrealized_pnl: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    total_commissions: Decimal


class PerformerResponse(BaseModel):
    """One ranked position."""

    symbol: str
    company_name: str
    pnl: Decimal
    pnl_percent: Decimal


class SectorAllocationResponse(BaseModel):
    """Market value share of one sector."""

    sector: str
    value: Decimal
    percentage: Decimal


class PerformanceBlock(BaseModel):
    """Performers and sector allocation."""

    top_performers: list[PerformerResponse]
    worst_performers: list[PerformerResponse]
    sector_allocation: list[SectorAllocationResponse]


class TransactionCountsResponse(BaseModel):
    """Transaction counts inside the report window."""

    total: int
    buys: int
    sells: int


class PerformanceResponse(BaseModel):
    """Response model for a performance report."""

    portfolio_id: str
    period: str
    start: datetime
    end: datetime
    summary: SummaryResponse
    performance: PerformanceBlock
    transactions: TransactionCountsResponse


class ErrorResponse(BaseModel):
    """Response model for ledger errors."""

    error: str
    message: str
    details: dict = Field(default_factory=dict)
