"""
Portfolio ledger engine.

Records buy/sell transactions against investment portfolios, maintains
per-symbol positions with a weighted average cost basis, and reports
realized and unrealized profit and loss.
"""

__version__ = "1.0.0"
