"""
Portfolio management.

Creation, renaming, default switching, and deletion of an owner's
portfolios, plus read access to positions and the paginated transaction
log. Owner-level rules (portfolio limit, unique names, exactly one
default) are checked inside the store's owner scope.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from portfolio_ledger.core.constants import (
    DEFAULT_TRANSACTIONS_PAGE_SIZE,
    MAX_DESCRIPTION_LENGTH,
    MAX_INITIAL_CAPITAL,
    MAX_PORTFOLIO_NAME_LENGTH,
    MAX_PORTFOLIOS_PER_OWNER,
    MAX_TRANSACTIONS_PAGE_SIZE,
    MIN_INITIAL_CAPITAL,
    MIN_PORTFOLIO_NAME_LENGTH,
)
from portfolio_ledger.core.enums import PortfolioKind, TransactionType
from portfolio_ledger.core.exceptions import (
    DefaultPortfolioDeletionError,
    DuplicatePortfolioError,
    PortfolioLimitError,
    PortfolioNotFoundError,
    ValidationError,
)
from portfolio_ledger.core.interfaces.storage import ILedgerStore
from portfolio_ledger.core.models.portfolio import Portfolio
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.models.report import TransactionPage
from portfolio_ledger.core.types import to_decimal
from portfolio_ledger.core.utils.decorators import log_ledger_operation
from portfolio_ledger.core.utils.validation import (
    validate_name,
    validate_range,
    validate_symbol,
    validate_transaction_type,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _validate_description(description: str | None) -> str | None:
    if description is None:
        return None
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"description must be at most {MAX_DESCRIPTION_LENGTH} characters, "
            f"got {len(description)}"
        )
    return description


class PortfolioService:
    """Owner-facing portfolio management on top of a ledger store."""

    def __init__(self, store: ILedgerStore, clock: Callable[[], datetime] = _utc_now) -> None:
        self.store = store
        self._clock = clock

    @log_ledger_operation
    def create_portfolio(
        self,
        owner_id: str,
        name: str,
        initial_capital: Any,
        kind: PortfolioKind | str = PortfolioKind.PAPER,
        description: str | None = None,
    ) -> Portfolio:
        """Create a portfolio funded with its initial capital.

        The owner's first portfolio becomes the default.

        Raises:
            ValidationError: If name, capital, or description are out of bounds
            PortfolioLimitError: If the owner already has the maximum number of portfolios
            DuplicatePortfolioError: If the owner already has a portfolio with this name
        """
        name = validate_name(name, MIN_PORTFOLIO_NAME_LENGTH, MAX_PORTFOLIO_NAME_LENGTH)
        description = _validate_description(description)
        try:
            capital = to_decimal(initial_capital)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"initial_capital must be a number, got {initial_capital}"
            ) from e
        validate_range(capital, MIN_INITIAL_CAPITAL, MAX_INITIAL_CAPITAL, "initial_capital")
        if not isinstance(kind, PortfolioKind):
            try:
                kind = PortfolioKind.from_string(str(kind))
            except ValueError as e:
                raise ValidationError(str(e)) from e

        with self.store.owner_scope(owner_id):
            existing = self.store.list_portfolios(owner_id)
            if len(existing) >= MAX_PORTFOLIOS_PER_OWNER:
                raise PortfolioLimitError(MAX_PORTFOLIOS_PER_OWNER)
            self._ensure_unique_name(existing, name)

            portfolio = Portfolio.create(
                owner_id=owner_id,
                name=name,
                initial_capital=capital,
                kind=kind,
                description=description,
                is_default=not existing,
                created_at=self._clock(),
            )
            self.store.add_portfolio(portfolio)

        logger.info(
            f"Created {kind.value} portfolio '{name}' ({portfolio.id}) "
            f"for owner {owner_id} with capital {portfolio.initial_capital}"
        )
        return portfolio

    def get_portfolio(self, portfolio_id: str, owner_id: str | None = None) -> Portfolio:
        """Get a portfolio, optionally checking that it belongs to an owner.

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist or is not the owner's
        """
        portfolio = self.store.get_portfolio(portfolio_id)
        if portfolio is None or (owner_id is not None and portfolio.owner_id != owner_id):
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    def list_portfolios(self, owner_id: str) -> list[Portfolio]:
        """List an owner's portfolios, the default first, then by creation time."""
        portfolios = self.store.list_portfolios(owner_id)
        return sorted(portfolios, key=lambda p: (not p.is_default, p.created_at, p.name))

    @log_ledger_operation
    def update_portfolio(
        self,
        portfolio_id: str,
        owner_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Portfolio:
        """Rename or re-describe a portfolio.

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist or is not the owner's
            DuplicatePortfolioError: If another portfolio of the owner has the new name
        """
        if name is not None:
            name = validate_name(name, MIN_PORTFOLIO_NAME_LENGTH, MAX_PORTFOLIO_NAME_LENGTH)
        description = _validate_description(description)

        with self.store.owner_scope(owner_id):
            self.get_portfolio(portfolio_id, owner_id)
            if name is not None:
                others = [p for p in self.store.list_portfolios(owner_id) if p.id != portfolio_id]
                self._ensure_unique_name(others, name)

            with self.store.unit_of_work(portfolio_id) as uow:
                portfolio = uow.portfolio
                if name is not None:
                    portfolio.name = name
                if description is not None:
                    portfolio.description = description
                portfolio.updated_at = self._clock()
                uow.save_portfolio(portfolio)

        return self.get_portfolio(portfolio_id, owner_id)

    @log_ledger_operation
    def set_default(self, portfolio_id: str, owner_id: str) -> Portfolio:
        """Make a portfolio the owner's only default.

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist or is not the owner's
        """
        with self.store.owner_scope(owner_id):
            self.get_portfolio(portfolio_id, owner_id)
            self.store.set_default_portfolio(owner_id, portfolio_id)
        return self.get_portfolio(portfolio_id, owner_id)

    @log_ledger_operation
    def delete_portfolio(self, portfolio_id: str, owner_id: str) -> None:
        """Delete a portfolio with its positions and transactions.

        Deleting the default promotes the oldest remaining portfolio.

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist or is not the owner's
            DefaultPortfolioDeletionError: If it is the owner's only portfolio
        """
        with self.store.owner_scope(owner_id):
            portfolio = self.get_portfolio(portfolio_id, owner_id)
            if portfolio.is_default:
                others = [p for p in self.store.list_portfolios(owner_id) if p.id != portfolio_id]
                if not others:
                    raise DefaultPortfolioDeletionError(portfolio_id)
                successor = min(others, key=lambda p: (p.created_at, p.name))
                self.store.set_default_portfolio(owner_id, successor.id)
                logger.info(f"Promoted portfolio {successor.id} to default for owner {owner_id}")
            self.store.delete_portfolio(portfolio_id)

        logger.info(f"Deleted portfolio {portfolio_id} for owner {owner_id}")

    def list_positions(self, portfolio_id: str) -> list[Position]:
        """List a portfolio's open positions ordered by symbol.

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist
        """
        self.get_portfolio(portfolio_id)
        return sorted(self.store.list_positions(portfolio_id), key=lambda p: p.symbol)

    def list_transactions(
        self,
        portfolio_id: str,
        symbol: str | None = None,
        transaction_type: TransactionType | str | None = None,
        page: int = 1,
        limit: int = DEFAULT_TRANSACTIONS_PAGE_SIZE,
    ) -> TransactionPage:
        """Get one page of the transaction log, newest first.

        Args:
            portfolio_id: Portfolio to read
            symbol: Only transactions of this symbol
            transaction_type: Only BUYs or only SELLs
            page: 1-based page number
            limit: Page size

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist
            ValidationError: If a filter or the paging values are invalid
        """
        if page < 1:
            raise ValidationError(f"page must be at least 1, got {page}")
        validate_range(limit, 1, MAX_TRANSACTIONS_PAGE_SIZE, "limit")
        symbol = validate_symbol(symbol) if symbol is not None else None
        side = validate_transaction_type(transaction_type) if transaction_type else None

        self.get_portfolio(portfolio_id)
        transactions = [
            t
            for t in reversed(self.store.list_transactions(portfolio_id))
            if (symbol is None or t.symbol == symbol)
            and (side is None or t.transaction_type == side)
        ]

        offset = (page - 1) * limit
        return TransactionPage(
            items=transactions[offset : offset + limit],
            page=page,
            limit=limit,
            total=len(transactions),
        )

    @staticmethod
    def _ensure_unique_name(portfolios: list[Portfolio], name: str) -> None:
        if any(p.name.casefold() == name.casefold() for p in portfolios):
            raise DuplicatePortfolioError(name)
