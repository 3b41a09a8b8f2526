"""
Read-side result models: valuation refresh results, performance reports,
and transaction pages.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from portfolio_ledger.core.enums import ReportPeriod
from portfolio_ledger.core.models.transaction import Transaction


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a valuation refresh."""

    portfolio_id: str
    updated_count: int
    skipped_count: int
    skipped_symbols: list[str]
    current_value: Decimal
    total_market_value: Decimal
    total_unrealized_pnl: Decimal

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class ReportSummary:
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


@dataclass(frozen=True)
class PerformerEntry:
    """One ranked position in the top/worst performer lists."""

    symbol: str
    company_name: str
    pnl: Decimal
    pnl_percent: Decimal


@dataclass(frozen=True)
class SectorAllocation:
    """Market value held in one sector and its share of total market value."""

    sector: str
    value: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class TransactionCounts:
    """Transaction counts inside the report window."""

    total: int
    buys: int
    sells: int


@dataclass(frozen=True)
class PerformanceReport:
    """Performance of a portfolio over a report period."""

    portfolio_id: str
    period: ReportPeriod
    start: datetime
    end: datetime
    summary: ReportSummary
    top_performers: list[PerformerEntry] = field(default_factory=list)
    worst_performers: list[PerformerEntry] = field(default_factory=list)
    sector_allocation: list[SectorAllocation] = field(default_factory=list)
    transactions: TransactionCounts = field(default_factory=lambda: TransactionCounts(0, 0, 0))

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "portfolio_id": self.portfolio_id,
            "period": self.period.value,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "summary": dataclasses.asdict(self.summary),
            "performance": {
                "top_performers": [dataclasses.asdict(entry) for entry in self.top_performers],
                "worst_performers": [dataclasses.asdict(entry) for entry in self.worst_performers],
                "sector_allocation": [
                    dataclasses.asdict(allocation) for allocation in self.sector_allocation
                ],
            },
            "transactions": dataclasses.asdict(self.transactions),
        }


@dataclass(frozen=True)
class TransactionPage:
    """One page of a portfolio's transaction log, newest first."""

    items: list[Transaction]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        """Total number of pages."""
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert page to dictionary."""
        return {
            "items": [transaction.to_dict() for transaction in self.items],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
            },
        }
