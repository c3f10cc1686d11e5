"""Symbolic chart/analytics ranges ("1M" ... "ALL") to concrete dates.

"ALL" is a fixed ten-year lookback, not "since the first transaction": it
resolves identically for every portfolio, so cached ranges stay comparable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd

from folio.config.defaults import DEFAULT_RANGE_YEARS, RANGE_OFFSETS

RANGE_TOKENS = (*RANGE_OFFSETS, "ALL")


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-date window."""

    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self) -> dict[str, str]:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }


def resolve_range(token: str, today: date | datetime | None = None) -> DateRange:
    """Map a range token to ``DateRange(today - offset, today)``.

    Month and year offsets are calendar offsets clamped to month end
    (2024-03-31 minus 1M is 2024-02-29).  Unknown tokens, and "ALL", fall
    back to a ten-year window.
    """
    if today is None:
        today = date.today()
    if isinstance(today, datetime):
        today = today.date()

    months, years = RANGE_OFFSETS.get(
        (token or "").strip().upper(), (0, DEFAULT_RANGE_YEARS)
    )
    start = pd.Timestamp(today) - pd.DateOffset(months=months, years=years)
    return DateRange(start_date=start.date(), end_date=today)
