"""
In-memory ledger store.

Portfolios, positions, and transactions live in dictionaries guarded by
one re-entrant lock per portfolio. A unit of work holds its portfolio's
lock from entry to exit, stages every write on private copies, and applies
them in a single step on commit, so readers never observe a transaction
without its position and cash updates.
"""

from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import UTC, datetime
from threading import RLock
from types import TracebackType

from loguru import logger

from portfolio_ledger.core.exceptions import (
    ConcurrencyConflictError,
    LedgerException,
    PortfolioNotFoundError,
    StorageError,
    ValidationError,
)
from portfolio_ledger.core.interfaces.storage import ILedgerStore, IUnitOfWork
from portfolio_ledger.core.models.portfolio import Portfolio
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.models.transaction import Transaction

CommitHook = Callable[[str], None]


class InMemoryUnitOfWork(IUnitOfWork):
    """Write scope over one portfolio of an ``InMemoryLedgerStore``."""

    def __init__(self, store: "InMemoryLedgerStore", portfolio_id: str) -> None:
        self._store = store
        self._portfolio_id = portfolio_id
        self._lock = store._lock_for(portfolio_id)
        self._staged_positions: dict[str, Position | None] = {}
        self._staged_transactions: list[Transaction] = []
        self._portfolio_dirty = False
        self._expected_version = -1
        self._active = False
        self._committed = False

    def __enter__(self) -> "InMemoryUnitOfWork":
        self._lock.acquire()
        try:
            current = self._store._portfolios.get(self._portfolio_id)
            if current is None:
                raise PortfolioNotFoundError(self._portfolio_id)
        except BaseException:
            self._lock.release()
            raise
        self.portfolio = current.copy()
        self._expected_version = current.version
        self._active = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if exc_type is not None:
                self.rollback()
            elif not self._committed:
                self.commit()
        finally:
            self._active = False
            self._lock.release()

    def _require_active(self) -> None:
        if not self._active:
            raise StorageError("Unit of work is not active")

    def get_position(self, symbol: str) -> Position | None:
        self._require_active()
        if symbol in self._staged_positions:
            staged = self._staged_positions[symbol]
            return staged.copy() if staged is not None else None
        stored = self._store._positions.get(self._portfolio_id, {}).get(symbol)
        return stored.copy() if stored is not None else None

    def list_positions(self) -> list[Position]:
        self._require_active()
        merged = dict(self._store._positions.get(self._portfolio_id, {}))
        for symbol, staged in self._staged_positions.items():
            if staged is None:
                merged.pop(symbol, None)
            else:
                merged[symbol] = staged
        return [position.copy() for position in merged.values()]

    def save_position(self, position: Position) -> None:
        self._require_active()
        if position.portfolio_id != self._portfolio_id:
            raise ValidationError(
                f"Position belongs to portfolio {position.portfolio_id}, "
                f"not {self._portfolio_id}"
            )
        self._staged_positions[position.symbol] = position.copy()

    def delete_position(self, symbol: str) -> None:
        self._require_active()
        self._staged_positions[symbol] = None

    def append_transaction(self, transaction: Transaction) -> None:
        self._require_active()
        if transaction.portfolio_id != self._portfolio_id:
            raise ValidationError(
                f"Transaction belongs to portfolio {transaction.portfolio_id}, "
                f"not {self._portfolio_id}"
            )
        self._staged_transactions.append(transaction)

    def save_portfolio(self, portfolio: Portfolio) -> None:
        self._require_active()
        if portfolio.id != self._portfolio_id:
            raise ValidationError(f"Cannot save portfolio {portfolio.id} in this unit of work")
        self.portfolio = portfolio.copy()
        self._portfolio_dirty = True

    @property
    def has_changes(self) -> bool:
        """Check if anything is staged."""
        return bool(self._portfolio_dirty or self._staged_positions or self._staged_transactions)

    def commit(self) -> None:
        self._require_active()
        if self._committed:
            raise StorageError("Unit of work already committed")
        if not self.has_changes:
            self._committed = True
            return

        current = self._store._portfolios.get(self._portfolio_id)
        if current is None:
            raise PortfolioNotFoundError(self._portfolio_id)
        if current.version != self._expected_version:
            raise ConcurrencyConflictError(
                self._portfolio_id, self._expected_version, current.version
            )

        try:
            self._store._run_commit_hook(self._portfolio_id)
        except LedgerException:
            raise
        except Exception as e:
            raise StorageError(
                f"Failed to commit writes for portfolio {self._portfolio_id}: {e}"
            ) from e

        self._store._apply(
            self._portfolio_id,
            self.portfolio if self._portfolio_dirty else None,
            self._staged_positions,
            self._staged_transactions,
        )
        self._committed = True
        self._clear()

    def rollback(self) -> None:
        if self.has_changes:
            logger.debug(f"Rolling back staged writes for portfolio {self._portfolio_id}")
        self._clear()

    def _clear(self) -> None:
        self._staged_positions = {}
        self._staged_transactions = []
        self._portfolio_dirty = False


class InMemoryLedgerStore(ILedgerStore):
    """Thread-safe in-memory implementation of the ledger storage contract.

    Thread Safety:
        Each portfolio has its own RLock; units of work on different
        portfolios never block each other. Owner-level operations use a
        separate per-owner lock. All reads return copies.
    """

    def __init__(self) -> None:
        self._portfolios: dict[str, Portfolio] = {}
        self._positions: dict[str, dict[str, Position]] = {}
        self._transactions: dict[str, list[Transaction]] = {}
        self._portfolio_locks: dict[str, RLock] = {}
        self._owner_locks: dict[str, RLock] = {}
        self._registry_lock = RLock()
        self._commit_hook: CommitHook | None = None

    def set_commit_hook(self, hook: CommitHook | None) -> None:
        """Install a callable run before every commit is applied.

        An exception from the hook aborts the commit with nothing applied,
        which is how storage failures are simulated.
        """
        self._commit_hook = hook

    def _run_commit_hook(self, portfolio_id: str) -> None:
        if self._commit_hook is not None:
            self._commit_hook(portfolio_id)

    def _lock_for(self, portfolio_id: str) -> RLock:
        with self._registry_lock:
            lock = self._portfolio_locks.get(portfolio_id)
            if lock is None:
                lock = RLock()
                self._portfolio_locks[portfolio_id] = lock
            return lock

    def _owner_lock_for(self, owner_id: str) -> RLock:
        with self._registry_lock:
            lock = self._owner_locks.get(owner_id)
            if lock is None:
                lock = RLock()
                self._owner_locks[owner_id] = lock
            return lock

    def _apply(
        self,
        portfolio_id: str,
        portfolio: Portfolio | None,
        staged_positions: dict[str, Position | None],
        staged_transactions: list[Transaction],
    ) -> None:
        """Apply staged writes. Caller holds the portfolio lock."""
        positions = self._positions.setdefault(portfolio_id, {})
        for symbol, position in staged_positions.items():
            if position is None:
                positions.pop(symbol, None)
            else:
                positions[symbol] = position.copy()

        self._transactions.setdefault(portfolio_id, []).extend(staged_transactions)

        current = self._portfolios[portfolio_id]
        updated = portfolio.copy() if portfolio is not None else current.copy()
        updated.version = current.version + 1
        if portfolio is None:
            updated.updated_at = datetime.now(UTC)
        self._portfolios[portfolio_id] = updated

    # Unit of work
    def unit_of_work(self, portfolio_id: str) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self, portfolio_id)

    # Portfolios
    def get_portfolio(self, portfolio_id: str) -> Portfolio | None:
        with self._lock_for(portfolio_id):
            portfolio = self._portfolios.get(portfolio_id)
            return portfolio.copy() if portfolio is not None else None

    def list_portfolios(self, owner_id: str) -> list[Portfolio]:
        with self._registry_lock:
            portfolio_ids = [
                portfolio_id
                for portfolio_id, portfolio in self._portfolios.items()
                if portfolio.owner_id == owner_id
            ]
        portfolios = [self.get_portfolio(portfolio_id) for portfolio_id in portfolio_ids]
        return [portfolio for portfolio in portfolios if portfolio is not None]

    def add_portfolio(self, portfolio: Portfolio) -> None:
        with self._registry_lock:
            if portfolio.id in self._portfolios:
                raise StorageError(f"Portfolio {portfolio.id} already exists")
            self._portfolios[portfolio.id] = portfolio.copy()
            self._positions[portfolio.id] = {}
            self._transactions[portfolio.id] = []
        logger.debug(f"Stored portfolio {portfolio.id} for owner {portfolio.owner_id}")

    def delete_portfolio(self, portfolio_id: str) -> None:
        with self._lock_for(portfolio_id), self._registry_lock:
            if portfolio_id not in self._portfolios:
                raise PortfolioNotFoundError(portfolio_id)
            del self._portfolios[portfolio_id]
            self._positions.pop(portfolio_id, None)
            self._transactions.pop(portfolio_id, None)
        logger.debug(f"Deleted portfolio {portfolio_id} with its positions and transactions")

    def set_default_portfolio(self, owner_id: str, portfolio_id: str) -> None:
        with self._owner_lock_for(owner_id):
            with self._registry_lock:
                target = self._portfolios.get(portfolio_id)
                if target is None or target.owner_id != owner_id:
                    raise PortfolioNotFoundError(portfolio_id)
                owned_ids = sorted(
                    candidate_id
                    for candidate_id, candidate in self._portfolios.items()
                    if candidate.owner_id == owner_id
                )

            # Lock every affected portfolio, in id order, so no reader sees two defaults
            with ExitStack() as stack:
                for candidate_id in owned_ids:
                    stack.enter_context(self._lock_for(candidate_id))
                for candidate_id in owned_ids:
                    candidate = self._portfolios.get(candidate_id)
                    if candidate is None:
                        continue
                    should_be_default = candidate_id == portfolio_id
                    if candidate.is_default != should_be_default:
                        updated = candidate.copy()
                        updated.is_default = should_be_default
                        updated.version = candidate.version + 1
                        updated.updated_at = datetime.now(UTC)
                        self._portfolios[candidate_id] = updated

    @contextmanager
    def owner_scope(self, owner_id: str) -> Iterator[None]:
        with self._owner_lock_for(owner_id):
            yield

    # Positions
    def get_position(self, portfolio_id: str, symbol: str) -> Position | None:
        with self._lock_for(portfolio_id):
            position = self._positions.get(portfolio_id, {}).get(symbol)
            return position.copy() if position is not None else None

    def list_positions(self, portfolio_id: str) -> list[Position]:
        with self._lock_for(portfolio_id):
            return [position.copy() for position in self._positions.get(portfolio_id, {}).values()]

    # Transactions
    def list_transactions(self, portfolio_id: str) -> list[Transaction]:
        with self._lock_for(portfolio_id):
            transactions = list(self._transactions.get(portfolio_id, []))
        return sorted(transactions, key=lambda transaction: transaction.timestamp)
