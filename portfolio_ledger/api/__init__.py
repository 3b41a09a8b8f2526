"""
HTTP API for the portfolio ledger.
"""
