"""
Unit tests for the in-memory ledger store.
Testing unit-of-work atomicity, rollback, optimistic conflicts, and defaults.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from portfolio_ledger.core.enums import TransactionType
from portfolio_ledger.core.exceptions import (
    ConcurrencyConflictError,
    PortfolioNotFoundError,
    StorageError,
    ValidationError,
)
from portfolio_ledger.core.models import Portfolio, Position, Transaction
from portfolio_ledger.infrastructure.storage import InMemoryLedgerStore

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def _portfolio(owner_id: str = "user-1", name: str = "Growth") -> Portfolio:
    return Portfolio.create(owner_id, name, Decimal("10000"), created_at=NOW)


def _buy(portfolio_id: str, symbol: str = "X") -> Transaction:
    return Transaction.record(
        portfolio_id, symbol, TransactionType.BUY, Decimal("10"), Decimal("100"), Decimal("0"), NOW
    )


class TestUnitOfWork:
    """Test suite for InMemoryUnitOfWork."""

    def test_should_apply_all_staged_writes_on_commit(self) -> None:
        """Test transaction, position, and portfolio are applied together."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        # Act
        with store.unit_of_work(portfolio.id) as uow:
            uow.append_transaction(_buy(portfolio.id))
            uow.save_position(
                Position.open(portfolio.id, "X", Decimal("10"), Decimal("100"), Decimal("1000"))
            )
            updated = uow.portfolio
            updated.debit(Decimal("1000"))
            uow.save_portfolio(updated)

        # Assert
        assert store.get_portfolio(portfolio.id).cash_balance == Decimal("9000.00")
        assert store.get_position(portfolio.id, "X").quantity == Decimal("10")
        assert len(store.list_transactions(portfolio.id)) == 1
        assert store.get_portfolio(portfolio.id).version == 1

    def test_should_roll_back_everything_on_exception(self) -> None:
        """Test an exception inside the scope leaves no partial state."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        # Act
        with pytest.raises(RuntimeError, match="boom"):
            with store.unit_of_work(portfolio.id) as uow:
                uow.append_transaction(_buy(portfolio.id))
                updated = uow.portfolio
                updated.debit(Decimal("1000"))
                uow.save_portfolio(updated)
                raise RuntimeError("boom")

        # Assert
        assert store.list_transactions(portfolio.id) == []
        assert store.get_portfolio(portfolio.id).cash_balance == Decimal("10000.00")
        assert store.get_portfolio(portfolio.id).version == 0

    def test_should_see_own_staged_writes(self) -> None:
        """Test reads inside the scope include staged positions and deletions."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)
        position = Position.open(portfolio.id, "X", Decimal("1"), Decimal("5"), Decimal("5"))

        # Act & Assert
        with store.unit_of_work(portfolio.id) as uow:
            uow.save_position(position)
            assert uow.get_position("X") == position
            assert store.get_position(portfolio.id, "X") is None
            uow.delete_position("X")
            assert uow.get_position("X") is None
            assert uow.list_positions() == []

    def test_should_raise_conflict_when_portfolio_changed_underneath(self) -> None:
        """Test the optimistic version check rejects a stale scope."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        # Act & Assert
        with pytest.raises(ConcurrencyConflictError) as exc_info:
            with store.unit_of_work(portfolio.id) as outer:
                with store.unit_of_work(portfolio.id) as inner:
                    inner.append_transaction(_buy(portfolio.id, "Y"))
                outer.append_transaction(_buy(portfolio.id, "X"))

        assert exc_info.value.expected_version == 0
        assert exc_info.value.actual_version == 1
        symbols = [t.symbol for t in store.list_transactions(portfolio.id)]
        assert symbols == ["Y"]

    def test_should_wrap_commit_failure_in_storage_error(self) -> None:
        """Test a failing commit applies nothing."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        def failing_hook(portfolio_id: str) -> None:
            raise ConnectionError("database went away")

        store.set_commit_hook(failing_hook)

        # Act & Assert
        with pytest.raises(StorageError, match="database went away"):
            with store.unit_of_work(portfolio.id) as uow:
                uow.append_transaction(_buy(portfolio.id))

        assert store.list_transactions(portfolio.id) == []

    def test_should_fail_to_open_for_missing_portfolio(self) -> None:
        """Test entering a scope for an unknown portfolio raises."""
        store = InMemoryLedgerStore()

        with pytest.raises(PortfolioNotFoundError):
            with store.unit_of_work("missing"):
                pass

    def test_should_reject_rows_of_other_portfolios(self) -> None:
        """Test a scope only writes its own portfolio."""
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        with pytest.raises(ValidationError, match="belongs to portfolio"):
            with store.unit_of_work(portfolio.id) as uow:
                uow.append_transaction(_buy("other"))

    def test_should_not_bump_version_without_changes(self) -> None:
        """Test an empty scope is a no-op."""
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        with store.unit_of_work(portfolio.id):
            pass

        assert store.get_portfolio(portfolio.id).version == 0


class TestInMemoryLedgerStore:
    """Test suite for InMemoryLedgerStore."""

    def test_should_return_copies(self) -> None:
        """Test mutating a read result does not change stored state."""
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)

        read = store.get_portfolio(portfolio.id)
        read.cash_balance = Decimal("0")

        assert store.get_portfolio(portfolio.id).cash_balance == Decimal("10000.00")

    def test_should_cascade_portfolio_deletion(self) -> None:
        """Test deleting a portfolio removes its positions and transactions."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)
        with store.unit_of_work(portfolio.id) as uow:
            uow.append_transaction(_buy(portfolio.id))

        # Act
        store.delete_portfolio(portfolio.id)

        # Assert
        assert store.get_portfolio(portfolio.id) is None
        assert store.list_transactions(portfolio.id) == []
        assert store.list_positions(portfolio.id) == []

    def test_should_keep_exactly_one_default(self) -> None:
        """Test switching the default clears the flag elsewhere."""
        # Arrange
        store = InMemoryLedgerStore()
        first = _portfolio(name="First")
        first.is_default = True
        second = _portfolio(name="Second")
        other_owner = _portfolio(owner_id="user-2", name="Theirs")
        other_owner.is_default = True
        for portfolio in (first, second, other_owner):
            store.add_portfolio(portfolio)

        # Act
        store.set_default_portfolio("user-1", second.id)

        # Assert
        defaults = [p.name for p in store.list_portfolios("user-1") if p.is_default]
        assert defaults == ["Second"]
        assert store.get_portfolio(other_owner.id).is_default is True

    def test_should_refuse_default_of_foreign_portfolio(self) -> None:
        """Test an owner cannot make another owner's portfolio default."""
        store = InMemoryLedgerStore()
        theirs = _portfolio(owner_id="user-2")
        store.add_portfolio(theirs)

        with pytest.raises(PortfolioNotFoundError):
            store.set_default_portfolio("user-1", theirs.id)

    def test_should_list_transactions_oldest_first(self) -> None:
        """Test the log is ordered by timestamp."""
        # Arrange
        store = InMemoryLedgerStore()
        portfolio = _portfolio()
        store.add_portfolio(portfolio)
        later = Transaction.record(
            portfolio.id,
            "LATE",
            TransactionType.BUY,
            Decimal("1"),
            Decimal("1"),
            Decimal("0"),
            datetime(2024, 3, 16, tzinfo=UTC),
        )

        # Act
        with store.unit_of_work(portfolio.id) as uow:
            uow.append_transaction(later)
            uow.append_transaction(_buy(portfolio.id, "EARLY"))

        # Assert
        assert [t.symbol for t in store.list_transactions(portfolio.id)] == ["EARLY", "LATE"]
