"""Return statistics over a portfolio value series.

Computes:
  - Daily simple returns
  - Total, annualized, YTD and rolling (1Y/3Y/5Y) returns
  - Calendar month/year returns, best and worst periods
  - Win rate and time-weighted return net of external cash flows

All functions take a float ``pd.Series`` on a sorted DatetimeIndex and never
raise on sparse data: zero denominators collapse to 0, missing windows to None.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Iterable

import numpy as np
import pandas as pd

from folio.config.defaults import LOOKBACK_PAD_DAYS


# ---------------------------------------------------------------------------
# Daily returns
# ---------------------------------------------------------------------------

def daily_returns(values: pd.Series) -> pd.Series:
    """``r_t = v_t / v_{t-1} - 1``; returns from a zero prior value are dropped."""
    values = values.astype(float)
    returns = (values / values.shift(1) - 1).iloc[1:]
    return returns.replace([np.inf, -np.inf], np.nan).dropna()


# ---------------------------------------------------------------------------
# Point-to-point returns
# ---------------------------------------------------------------------------

def total_return(values: pd.Series) -> float:
    if len(values) < 2:
        return 0.0
    first = float(values.iloc[0])
    if first <= 0:
        return 0.0
    return float(values.iloc[-1]) / first - 1


def days_in_range(values: pd.Series) -> int:
    if len(values) < 2:
        return 0
    return int((values.index[-1] - values.index[0]).days)


def annualize(total: float, days: int) -> float:
    """Scale a period return to 365 days: ``(1 + total)^(365/days) - 1``."""
    if days <= 0:
        return 0.0
    growth = 1 + total
    if growth <= 0:
        return -1.0
    try:
        return float(growth ** (365.0 / days) - 1)
    except OverflowError:
        # a large move over a few days has no finite annual equivalent
        return math.inf


def annualized_return(values: pd.Series) -> float:
    return annualize(total_return(values), days_in_range(values))


def ytd_return(values: pd.Series, as_of: date | None = None) -> float | None:
    """Return since January 1 of ``as_of``'s year (default: last series date)."""
    if values.empty:
        return None
    year = as_of.year if as_of is not None else values.index[-1].year
    window = values[values.index >= pd.Timestamp(year=year, month=1, day=1)]
    if as_of is not None:
        window = window[window.index <= pd.Timestamp(as_of)]
    if len(window) < 2:
        return None
    return total_return(window)


def rolling_returns(
    values: pd.Series,
    windows: Iterable[int] = (1, 3, 5),
    tolerance_days: int = LOOKBACK_PAD_DAYS,
) -> dict[str, float | None]:
    """Annualized trailing returns keyed ``"1Y"``, ``"3Y"``, ...

    Each window starts at the last value on or before ``last_date - N
    years``.  When the anchor itself is not a trading day the series may
    open just after it; a first point within ``tolerance_days`` of the
    anchor stands in for it.  Otherwise a series that begins after the
    anchor yields None.
    """
    out: dict[str, float | None] = {}
    for years in windows:
        key = f"{years}Y"
        if len(values) < 2:
            out[key] = None
            continue
        anchor = values.index[-1] - pd.DateOffset(years=years)
        head = values[values.index <= anchor]
        if not head.empty:
            start = head.index[-1]
        elif values.index[0] - anchor <= pd.Timedelta(days=tolerance_days):
            start = values.index[0]
        else:
            out[key] = None
            continue
        window = values[values.index >= start]
        out[key] = annualize(total_return(window), days_in_range(window))
    return out


# ---------------------------------------------------------------------------
# Calendar periods
# ---------------------------------------------------------------------------

def _compound(returns: pd.Series) -> float:
    return float((1 + returns).prod() - 1)


def month_returns(returns: pd.Series) -> pd.Series:
    """Compounded return per calendar month, indexed by ``"YYYY-MM"``."""
    if returns.empty:
        return pd.Series(dtype=float)
    labels = returns.index.strftime("%Y-%m")
    return returns.groupby(labels, sort=True).apply(_compound)


def year_returns(returns: pd.Series) -> pd.Series:
    """Compounded return per calendar year, indexed by ``"YYYY"``."""
    if returns.empty:
        return pd.Series(dtype=float)
    labels = returns.index.strftime("%Y")
    return returns.groupby(labels, sort=True).apply(_compound)


def _period_entry(period: str, value: float) -> dict[str, Any]:
    start = f"{period}-01" if len(period) == 7 else f"{period}-01-01"
    return {"period": period, "startDate": start, "return": float(value)}


def best_worst_periods(returns: pd.Series) -> dict[str, dict[str, Any] | None]:
    """Best and worst calendar month and year; ties go to the earliest."""
    out: dict[str, dict[str, Any] | None] = {}
    for name, grouped in (("Month", month_returns(returns)), ("Year", year_returns(returns))):
        if grouped.empty:
            out[f"best{name}"] = None
            out[f"worst{name}"] = None
            continue
        best, worst = grouped.idxmax(), grouped.idxmin()
        out[f"best{name}"] = _period_entry(best, grouped[best])
        out[f"worst{name}"] = _period_entry(worst, grouped[worst])
    return out


def monthly_return_table(returns: pd.Series) -> list[dict[str, Any]]:
    return [
        {"month": month, "return": float(value)}
        for month, value in month_returns(returns).items()
    ]


def win_rate(returns: pd.Series) -> float:
    """Percent of daily returns that are positive."""
    if returns.empty:
        return 0.0
    return float((returns > 0).sum() * 100 / len(returns))


# ---------------------------------------------------------------------------
# Time-weighted return
# ---------------------------------------------------------------------------

def time_weighted_return(
    values: pd.Series,
    cash_flows: pd.Series | None = None,
) -> float:
    """Chain sub-period returns with external flows removed.

    ``r_t = (V_t - CF_t) / V_{t-1} - 1`` where ``CF_t`` is the net flow
    booked on day t.  Without flows this is the plain total return.
    """
    if len(values) < 2:
        return 0.0
    if cash_flows is None:
        return total_return(values)

    flows = cash_flows.reindex(values.index).fillna(0.0)
    if not flows.iloc[1:].any():
        return total_return(values)

    prev = values.shift(1)
    sub = ((values - flows) / prev - 1).iloc[1:]
    sub = sub.replace([np.inf, -np.inf], np.nan).dropna()
    return _compound(sub)
