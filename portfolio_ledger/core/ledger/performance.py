"""
Performance reporter.

Aggregates a portfolio's transaction log and current position snapshot
into a performance report for a look-back period. The report is read-only
and never mutates ledger state.
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from decimal import Decimal

import pandas as pd

from portfolio_ledger.core.constants import TOP_PERFORMERS_LIMIT, UNKNOWN_SECTOR
from portfolio_ledger.core.enums import CommissionPolicy, ReportPeriod, TransactionType
from portfolio_ledger.core.exceptions import PortfolioNotFoundError
from portfolio_ledger.core.interfaces.storage import ILedgerStore
from portfolio_ledger.core.ledger.cost_basis import LedgerReplay
from portfolio_ledger.core.models.portfolio import Portfolio
from portfolio_ledger.core.models.position import Position
from portfolio_ledger.core.models.report import (
    PerformanceReport,
    PerformerEntry,
    ReportSummary,
    SectorAllocation,
    TransactionCounts,
)
from portfolio_ledger.core.models.transaction import Transaction
from portfolio_ledger.core.types import (
    COST_BASIS_DECIMALS,
    ZERO,
    calculate_percentage,
    round_money,
)
from portfolio_ledger.core.utils.decorators import log_ledger_operation

TRANSACTION_COLUMNS = ["symbol", "transaction_type", "total_amount", "commission", "timestamp"]
POSITION_COLUMNS = [
    "symbol",
    "company_name",
    "sector",
    "market_value",
    "unrealized_pnl",
    "realized_pnl",
    "pnl_percent",
    "rank",
]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _decimal_sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def transactions_to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build a frame of the transaction log with UTC timestamps.

    Money columns stay as ``Decimal`` objects so sums are exact.
    """
    frame = pd.DataFrame(
        [
            {
                "symbol": t.symbol,
                "transaction_type": t.transaction_type.value,
                "total_amount": t.total_amount,
                "commission": t.commission,
                "timestamp": t.timestamp,
            }
            for t in transactions
        ],
        columns=TRANSACTION_COLUMNS,
    )
    frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True)
    return frame


def positions_to_frame(positions: Iterable[Position]) -> pd.DataFrame:
    """Build a frame of the position snapshot.

    ``rank`` is a float copy of the P&L percentage used only for ordering.
    """
    rows = []
    for position in positions:
        pnl_percent = position.pnl_percent
        rows.append(
            {
                "symbol": position.symbol,
                "company_name": position.company_name,
                "sector": position.sector or UNKNOWN_SECTOR,
                "market_value": position.market_value,
                "unrealized_pnl": position.unrealized_pnl,
                "realized_pnl": position.realized_pnl,
                "pnl_percent": pnl_percent,
                "rank": float(pnl_percent),
            }
        )
    return pd.DataFrame(rows, columns=POSITION_COLUMNS)


class PerformanceReporter:
    """Builds performance reports for a portfolio over a report period."""

    def __init__(
        self,
        store: ILedgerStore,
        commission_policy: CommissionPolicy = CommissionPolicy.EXCLUDE_FROM_COST_BASIS,
        cost_basis_decimals: int = COST_BASIS_DECIMALS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.replay = LedgerReplay(commission_policy, cost_basis_decimals)
        self._clock = clock

    @log_ledger_operation
    def report(
        self,
        portfolio_id: str,
        period: ReportPeriod | str = ReportPeriod.M1,
        now: datetime | None = None,
    ) -> PerformanceReport:
        """Summarize a portfolio's performance over a period.

        Args:
            portfolio_id: Portfolio to report on
            period: Report period or its string form (``1D``, ``1M``, ``ALL``...)
            now: End of the window; defaults to the current time. Naive values are UTC.

        Returns:
            Performance report with summary, performers, sector allocation,
            and transaction counts

        Raises:
            PortfolioNotFoundError: If the portfolio does not exist
            ValueError: If the period string is not supported
        """
        if isinstance(period, str) and not isinstance(period, ReportPeriod):
            period = ReportPeriod.from_string(period)

        portfolio = self.store.get_portfolio(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)

        end = now if now is not None else self._clock()
        if end.tzinfo is None:
            end = end.replace(tzinfo=UTC)
        start, end = period.window(end, portfolio.created_at)

        transactions = self.store.list_transactions(portfolio_id)
        positions = self.store.list_positions(portfolio_id)

        log_frame = transactions_to_frame(transactions)
        position_frame = positions_to_frame(positions)

        in_window = log_frame[
            (log_frame["timestamp"] >= pd.Timestamp(start))
            & (log_frame["timestamp"] <= pd.Timestamp(end))
        ]

        summary = self._summarize(portfolio, transactions, log_frame, in_window, position_frame)
        top, worst = self._rank_performers(position_frame)

        return PerformanceReport(
            portfolio_id=portfolio_id,
            period=period,
            start=start,
            end=end,
            summary=summary,
            top_performers=top,
            worst_performers=worst,
            sector_allocation=self._allocate_sectors(position_frame),
            transactions=self._count_transactions(in_window),
        )

    def _summarize(
        self,
        portfolio: Portfolio,
        transactions: list[Transaction],
        log_frame: pd.DataFrame,
        in_window: pd.DataFrame,
        position_frame: pd.DataFrame,
    ) -> ReportSummary:
        buys = in_window[in_window["transaction_type"] == TransactionType.BUY.value]
        sells = in_window[in_window["transaction_type"] == TransactionType.SELL.value]

        total_pnl = portfolio.current_value - portfolio.initial_capital
        return ReportSummary(
            initial_capital=portfolio.initial_capital,
            current_value=portfolio.current_value,
            cash_balance=portfolio.cash_balance,
            total_invested=_decimal_sum(buys["total_amount"]),
            total_withdrawn=_decimal_sum(sells["total_amount"]),
            realized_pnl=round_money(self.replay.realized_pnl(transactions)),
            position_realized_pnl=_decimal_sum(position_frame["realized_pnl"]),
            unrealized_pnl=_decimal_sum(position_frame["unrealized_pnl"]),
            total_pnl=total_pnl,
            total_pnl_percent=calculate_percentage(total_pnl, portfolio.initial_capital),
            total_commissions=_decimal_sum(log_frame["commission"]),
        )

    @staticmethod
    def _rank_performers(
        position_frame: pd.DataFrame,
    ) -> tuple[list[PerformerEntry], list[PerformerEntry]]:
        if position_frame.empty:
            return [], []

        def entries(frame: pd.DataFrame) -> list[PerformerEntry]:
            return [
                PerformerEntry(
                    symbol=row.symbol,
                    company_name=row.company_name,
                    pnl=row.unrealized_pnl,
                    pnl_percent=row.pnl_percent,
                )
                for row in frame.head(TOP_PERFORMERS_LIMIT).itertuples(index=False)
            ]

        best = position_frame.sort_values(["rank", "symbol"], ascending=[False, True])
        worst = position_frame.sort_values(["rank", "symbol"], ascending=[True, True])
        return entries(best), entries(worst)

    @staticmethod
    def _allocate_sectors(position_frame: pd.DataFrame) -> list[SectorAllocation]:
        if position_frame.empty:
            return []

        total_value = _decimal_sum(position_frame["market_value"])
        by_sector = position_frame.groupby("sector", sort=True)["market_value"].agg(_decimal_sum)

        allocations = [
            SectorAllocation(
                sector=str(sector),
                value=value,
                percentage=calculate_percentage(value, total_value),
            )
            for sector, value in by_sector.items()
        ]
        allocations.sort(key=lambda allocation: allocation.value, reverse=True)
        return allocations

    @staticmethod
    def _count_transactions(in_window: pd.DataFrame) -> TransactionCounts:
        counts = in_window["transaction_type"].value_counts()
        return TransactionCounts(
            total=len(in_window),
            buys=int(counts.get(TransactionType.BUY.value, 0)),
            sells=int(counts.get(TransactionType.SELL.value, 0)),
        )
