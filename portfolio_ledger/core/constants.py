"""
Core constants and limits.

Defines system-wide constants and resource limits for portfolios,
orders, quotes, and reports.
"""

# Portfolio Limits
MAX_PORTFOLIOS_PER_OWNER = 10
MIN_INITIAL_CAPITAL = 1000.0
MAX_INITIAL_CAPITAL = 100000000.0  # 100M
MIN_PORTFOLIO_NAME_LENGTH = 2
MAX_PORTFOLIO_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500

# Order Limits
MAX_SYMBOL_LENGTH = 20
MIN_ORDER_QUANTITY = 0.0001  # HTTP layer only, the engine accepts any positive quantity
MIN_ORDER_PRICE = 0.01  # HTTP layer only

# Placeholders used when the quote provider has no company metadata
UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_SECTOR = "Unknown"

# Quote Provider
DEFAULT_QUOTE_CACHE_TTL_SECONDS = 30.0
DEFAULT_QUOTE_CACHE_SIZE = 1000
DEFAULT_QUOTE_RATE_LIMIT = 100  # Upstream requests per window
DEFAULT_QUOTE_RATE_LIMIT_WINDOW_SECONDS = 60.0
DEFAULT_QUOTE_TIMEOUT_SECONDS = 10.0
DEFAULT_QUOTE_WORKERS = 5

# Reports
TOP_PERFORMERS_LIMIT = 5
DEFAULT_TRANSACTIONS_PAGE_SIZE = 50
MAX_TRANSACTIONS_PAGE_SIZE = 500
RECENT_TRANSACTIONS_LIMIT = 50
