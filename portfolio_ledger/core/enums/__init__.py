"""
Core enumerations for the ledger.

This module provides centralized enumerations for domain concepts
like transaction types, portfolio kinds, report periods, and
commission policies.
"""

from .commission_policy import CommissionPolicy
from .portfolio_kinds import PortfolioKind
from .report_periods import ReportPeriod
from .transaction_types import TransactionType

__all__ = ["CommissionPolicy", "PortfolioKind", "ReportPeriod", "TransactionType"]
