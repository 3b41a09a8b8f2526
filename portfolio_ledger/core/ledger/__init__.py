"""
Ledger services.

This module provides the ledger engine, the valuation refresher, the
performance reporter, and portfolio management.
"""

from .cost_basis import CostBasisCalculator, LedgerReplay
from .engine import LedgerEngine
from .performance import PerformanceReporter
from .portfolios import PortfolioService
from .valuation import ValuationRefresher

__all__ = [
    "CostBasisCalculator",
    "LedgerEngine",
    "LedgerReplay",
    "PerformanceReporter",
    "PortfolioService",
    "ValuationRefresher",
]
