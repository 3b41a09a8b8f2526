"""Domain models for portfolios, positions, transactions, and reports."""

from .order import OrderRequest, OrderResult
from .portfolio import Portfolio
from .position import Position
from .report import (
    PerformanceReport,
    PerformerEntry,
    RefreshResult,
    ReportSummary,
    SectorAllocation,
    TransactionCounts,
    TransactionPage,
)
from .transaction import Transaction

__all__ = [
    "OrderRequest",
    "OrderResult",
    "Portfolio",
    "Position",
    "Transaction",
    "PerformanceReport",
    "PerformerEntry",
    "RefreshResult",
    "ReportSummary",
    "SectorAllocation",
    "TransactionCounts",
    "TransactionPage",
]
