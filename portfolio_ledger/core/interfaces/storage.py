"""
Storage interfaces.

The ledger never talks to a storage technology directly. Reads go through
the store; every mutation of a portfolio's cash, positions, or transaction
log goes through a unit of work scoped to that portfolio, which applies all
staged writes together or none of them.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from types import TracebackType

from portfolio_ledger.core.models.portfolio import Portfolio
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.models.transaction import Transaction


class IUnitOfWork(ABC):
    """Transactional write scope for a single portfolio.

    Used as a context manager: a clean exit commits, an exception rolls
    back and propagates. While open, the scope serializes with every other
    unit of work on the same portfolio.
    """

    portfolio: Portfolio

    @abstractmethod
    def get_position(self, symbol: str) -> Position | None:
        """Get a copy of a position, including writes staged in this scope."""

    @abstractmethod
    def list_positions(self) -> list[Position]:
        """List copies of all positions, including writes staged in this scope."""

    @abstractmethod
    def save_position(self, position: Position) -> None:
        """Stage an insert or update of a position."""

    @abstractmethod
    def delete_position(self, symbol: str) -> None:
        """Stage the deletion of a position."""

    @abstractmethod
    def append_transaction(self, transaction: Transaction) -> None:
        """Stage a new transaction log entry."""

    @abstractmethod
    def save_portfolio(self, portfolio: Portfolio) -> None:
        """Stage an update of the portfolio row."""

    @abstractmethod
    def commit(self) -> None:
        """Apply all staged writes atomically.

        Raises:
            ConcurrencyConflictError: If the portfolio changed since the scope opened
            StorageError: If the writes cannot be applied; nothing is applied
        """

    @abstractmethod
    def rollback(self) -> None:
        """Discard all staged writes."""

    @abstractmethod
    def __enter__(self) -> "IUnitOfWork":
        """Open the scope."""

    @abstractmethod
    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Commit on success, roll back on error, and release the scope."""


class IPortfolioStore(ABC):
    """Portfolio rows."""

    @abstractmethod
    def get_portfolio(self, portfolio_id: str) -> Portfolio | None:
        """Get a copy of a portfolio."""

    @abstractmethod
    def list_portfolios(self, owner_id: str) -> list[Portfolio]:
        """List copies of an owner's portfolios."""

    @abstractmethod
    def add_portfolio(self, portfolio: Portfolio) -> None:
        """Insert a new portfolio."""

    @abstractmethod
    def delete_portfolio(self, portfolio_id: str) -> None:
        """Delete a portfolio with its positions and transactions."""

    @abstractmethod
    def set_default_portfolio(self, owner_id: str, portfolio_id: str) -> None:
        """Make one portfolio the owner's only default, atomically."""

    @abstractmethod
    def owner_scope(self, owner_id: str) -> AbstractContextManager[None]:
        """Serialize owner-level operations (create, delete, default switching)."""


class IPositionStore(ABC):
    """Position rows, unique on (portfolio id, symbol)."""

    @abstractmethod
    def get_position(self, portfolio_id: str, symbol: str) -> Position | None:
        """Get a copy of a position."""

    @abstractmethod
    def list_positions(self, portfolio_id: str) -> list[Position]:
        """List copies of a portfolio's positions."""


class ITransactionLog(ABC):
    """Append-only transaction log, ordered by timestamp."""

    @abstractmethod
    def list_transactions(self, portfolio_id: str) -> list[Transaction]:
        """List a portfolio's transactions, oldest first."""


class ILedgerStore(IPortfolioStore, IPositionStore, ITransactionLog):
    """Complete storage contract used by the ledger services."""

    @abstractmethod
    def unit_of_work(self, portfolio_id: str) -> IUnitOfWork:
        """Create a write scope for one portfolio.

        Entering the scope raises PortfolioNotFoundError if the portfolio
        does not exist.
        """
