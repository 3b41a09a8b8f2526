"""
Unit tests for enumerations.
Testing string conversion, cash direction, and report period windows.
"""

from datetime import UTC, datetime, timedelta

import pytest

from portfolio_ledger.core.enums import (
    CommissionPolicy,
    PortfolioKind,
    ReportPeriod,
    TransactionType,
)


class TestTransactionType:
    """Test suite for TransactionType enum."""

    def test_should_parse_case_insensitively(self) -> None:
        """Test from_string accepts any case."""
        assert TransactionType.from_string("buy") == TransactionType.BUY
        assert TransactionType.from_string(" Sell ") == TransactionType.SELL

    def test_should_reject_unknown_side(self) -> None:
        """Test unsupported sides raise ValueError."""
        with pytest.raises(ValueError, match="Unsupported transaction type"):
            TransactionType.from_string("SHORT")

    def test_should_flag_buy_side(self) -> None:
        """Test only BUY spends cash."""
        assert TransactionType.BUY.is_buy
        assert not TransactionType.SELL.is_buy


class TestPortfolioKind:
    """Test suite for PortfolioKind enum."""

    def test_should_parse_kind(self) -> None:
        """Test from_string is case-insensitive."""
        assert PortfolioKind.from_string("PAPER") == PortfolioKind.PAPER
        assert PortfolioKind.from_string(" Real ") == PortfolioKind.REAL

    def test_should_reject_unknown_kind(self) -> None:
        """Test unsupported kinds raise ValueError."""
        with pytest.raises(ValueError, match="Unsupported portfolio kind"):
            PortfolioKind.from_string("margin")


class TestCommissionPolicy:
    """Test suite for CommissionPolicy enum."""

    def test_should_report_whether_commission_enters_cost_basis(self) -> None:
        """Test the includes_commission flag."""
        assert not CommissionPolicy.EXCLUDE_FROM_COST_BASIS.includes_commission
        assert CommissionPolicy.INCLUDE_IN_COST_BASIS.includes_commission


class TestReportPeriod:
    """Test suite for ReportPeriod windows."""

    NOW = datetime(2024, 3, 31, 15, 30, tzinfo=UTC)
    CREATED = datetime(2023, 6, 1, tzinfo=UTC)

    @pytest.mark.parametrize(
        ("period", "expected_start"),
        [
            (ReportPeriod.D1, datetime(2024, 3, 30, 15, 30, tzinfo=UTC)),
            (ReportPeriod.W1, datetime(2024, 3, 24, 15, 30, tzinfo=UTC)),
            (ReportPeriod.M1, datetime(2024, 2, 29, 15, 30, tzinfo=UTC)),
            (ReportPeriod.M3, datetime(2023, 12, 31, 15, 30, tzinfo=UTC)),
            (ReportPeriod.M6, datetime(2023, 9, 30, 15, 30, tzinfo=UTC)),
            (ReportPeriod.Y1, datetime(2023, 3, 31, 15, 30, tzinfo=UTC)),
            (ReportPeriod.YTD, datetime(2024, 1, 1, tzinfo=UTC)),
            (ReportPeriod.ALL, datetime(2023, 6, 1, tzinfo=UTC)),
        ],
    )
    def test_should_compute_window_start(
        self, period: ReportPeriod, expected_start: datetime
    ) -> None:
        """Test each period's start, clamping calendar months to month end."""
        # Act
        start, end = period.window(self.NOW, self.CREATED)

        # Assert
        assert start == expected_start
        assert end == self.NOW

    def test_should_parse_period_case_insensitively(self) -> None:
        """Test from_string accepts lower case."""
        assert ReportPeriod.from_string("ytd") == ReportPeriod.YTD
        assert ReportPeriod.from_string("1m") == ReportPeriod.M1

    def test_should_reject_unknown_period(self) -> None:
        """Test unsupported periods raise ValueError."""
        with pytest.raises(ValueError, match="Unsupported report period"):
            ReportPeriod.from_string("2W")

    def test_should_span_one_day_for_daily_window(self) -> None:
        """Test the 1D window length."""
        start, end = ReportPeriod.D1.window(self.NOW, self.CREATED)
        assert end - start == timedelta(days=1)
