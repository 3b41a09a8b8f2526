"""
Commission policy enumerations.

The default charges commission to cash but keeps it out of the
average cost. The alternative folds BUY commission into the cost basis.
"""

from enum import StrEnum


class CommissionPolicy(StrEnum):
    """How BUY commission interacts with the average cost basis."""

    EXCLUDE_FROM_COST_BASIS = "exclude"
    INCLUDE_IN_COST_BASIS = "include"

    @property
    def includes_commission(self) -> bool:
        """Check if BUY commission is folded into the average cost."""
        return self == self.INCLUDE_IN_COST_BASIS
