"""Concrete storage and market-data adapters."""
