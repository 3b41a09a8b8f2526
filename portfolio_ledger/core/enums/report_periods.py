"""
Report period enumerations.

This module defines the look-back windows supported by the performance
reporter and how each maps to a start timestamp.
"""

import calendar
from datetime import datetime, timedelta
from enum import StrEnum


def _months_back(moment: datetime, months: int) -> datetime:
    """Shift a datetime back by calendar months, clamping the day to month end."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class ReportPeriod(StrEnum):
    """
    Allowed report periods.

    ALL spans from portfolio creation to now; the others are fixed
    look-back windows ending now.
    """

    D1 = "1D"
    W1 = "1W"
    M1 = "1M"
    M3 = "3M"
    M6 = "6M"
    Y1 = "1Y"
    YTD = "YTD"
    ALL = "ALL"

    @classmethod
    def from_string(cls, value: str) -> "ReportPeriod":
        """
        Convert string to ReportPeriod enum, with case-insensitive matching.

        Raises:
            ValueError: If the period is not supported
        """
        value_upper = value.strip().upper()

        for period in cls:
            if period.value == value_upper:
                return period

        raise ValueError(
            f"Unsupported report period: {value}. "
            f"Supported periods: {', '.join([p.value for p in cls])}"
        )

    def window(self, now: datetime, created_at: datetime) -> tuple[datetime, datetime]:
        """
        Get the inclusive (start, end) window for this period.

        Args:
            now: End of the window
            created_at: Portfolio creation time, used by ALL

        Returns:
            Tuple of start and end datetimes
        """
        if self == self.D1:
            start = now - timedelta(days=1)
        elif self == self.W1:
            start = now - timedelta(days=7)
        elif self == self.M1:
            start = _months_back(now, 1)
        elif self == self.M3:
            start = _months_back(now, 3)
        elif self == self.M6:
            start = _months_back(now, 6)
        elif self == self.Y1:
            start = _months_back(now, 12)
        elif self == self.YTD:
            start = datetime(now.year, 1, 1, tzinfo=now.tzinfo)
        else:
            start = created_at
        return start, now
