"""Portfolio value and benchmark series on a shared date axis.

Rebuilds the daily value of a portfolio from its ledgers and historical
prices (quantity held on each day x that day's close, forward-filled over
non-trading days) and pairs it with a benchmark close series.

Alignment policy: the benchmark's trading dates define the axis when a
benchmark is available, otherwise the union of the assets' price dates.
Both series are forward-filled onto that axis and any date still missing
a value in either one is dropped from both, so the analytics always see
two series with identical dates.

The price feed is any object with::

    historical_series(symbol, start_date, end_date) -> [(date, price), ...]
    benchmark_series(benchmark_id, start_date, end_date) -> [(date, price), ...]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from folio.config.defaults import LOOKBACK_PAD_DAYS
from folio.engine.ranges import DateRange
from folio.portfolio.ledger import Asset, Transaction, sort_ledger
from folio.portfolio.positions import UNPRICED_FALLBACK

logger = logging.getLogger(__name__)


def _empty(name: str | None = None) -> pd.Series:
    return pd.Series(dtype=float, index=pd.DatetimeIndex([]), name=name)


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass
class TimeSeries:
    """Aligned inputs for the analytics module."""

    portfolio: pd.Series = field(default_factory=lambda: _empty("portfolio"))
    benchmark: pd.Series | None = None
    cash_flows: pd.Series = field(default_factory=_empty)
    """Net Buy - Sell notional entering the holdings, per axis date."""
    date_range: DateRange | None = None
    benchmark_symbol: str | None = None

    @property
    def is_sufficient(self) -> bool:
        return len(self.portfolio) >= 2

    @property
    def has_benchmark(self) -> bool:
        return self.benchmark is not None and len(self.benchmark) >= 2

    def to_records(self) -> list[dict[str, Any]]:
        """[{date, value, benchmark}] rows for charting/export."""
        rows = []
        for ts, value in self.portfolio.items():
            row: dict[str, Any] = {"date": ts.date().isoformat(), "value": float(value)}
            if self.benchmark is not None and ts in self.benchmark.index:
                row["benchmark"] = float(self.benchmark.loc[ts])
            rows.append(row)
        return rows


# ---------------------------------------------------------------------------
# Series helpers
# ---------------------------------------------------------------------------

def to_series(points: Iterable[tuple[Any, float]], name: str | None = None) -> pd.Series:
    """Build a float series on a normalized, sorted, de-duplicated DatetimeIndex."""
    pairs = [(d, v) for d, v in points if v is not None]
    if not pairs:
        return _empty(name)

    index = pd.to_datetime([d for d, _ in pairs])
    if index.tz is not None:
        index = index.tz_localize(None)
    series = pd.Series(
        [float(v) for _, v in pairs], index=index.normalize(), name=name, dtype=float
    )
    series = series[~series.index.duplicated(keep="last")].sort_index()
    return series.replace([np.inf, -np.inf], np.nan).dropna()


def _onto_axis(series: pd.Series, axis: pd.DatetimeIndex) -> pd.Series:
    """Forward-fill *series* onto *axis*; dates before its first point are NaN."""
    if series.empty:
        return pd.Series(np.nan, index=axis, dtype=float)
    return series.reindex(series.index.union(axis)).ffill().reindex(axis)


def align_series(
    portfolio: pd.Series,
    benchmark: pd.Series | None,
) -> tuple[pd.Series, pd.Series | None]:
    """Put *benchmark* on *portfolio*'s dates and drop dates either lacks."""
    portfolio = portfolio.dropna()
    if benchmark is None:
        return portfolio, None

    bench = _onto_axis(benchmark.dropna(), portfolio.index)
    keep = bench.notna()
    return portfolio[keep], bench[keep]


def quantity_series(
    transactions: Sequence[Transaction],
    axis: pd.DatetimeIndex,
) -> pd.Series:
    """Units held at the end of each axis date (0 before the first trade)."""
    trades = [t for t in sort_ledger(transactions) if t.signed_quantity]
    if not trades:
        return pd.Series(0.0, index=axis)

    deltas = pd.Series(
        [t.signed_quantity for t in trades],
        index=pd.DatetimeIndex([t.date for t in trades]).normalize(),
    )
    held = deltas.groupby(level=0).sum().cumsum()
    return _onto_axis(held, axis).fillna(0.0)


def cash_flow_series(
    transactions: Iterable[Transaction],
    axis: pd.DatetimeIndex,
) -> pd.Series:
    """Net external flow into the holdings per axis date.

    Buys add their notional, sells subtract it.  A trade on a non-axis day
    is booked on the next axis date; trades before the axis are already in
    the opening value and are skipped.
    """
    flows = pd.Series(0.0, index=axis)
    if len(axis) == 0:
        return flows

    for txn in transactions:
        if not txn.notional:
            continue
        day = pd.Timestamp(txn.date).normalize()
        if day < axis[0]:
            continue
        pos = axis.searchsorted(day, side="left")
        if pos >= len(axis):
            continue
        flows.iloc[pos] += txn.notional * (1 if txn.signed_quantity > 0 else -1)
    return flows


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def _price_history(
    asset: Asset,
    feed: Any,
    fetch_start: date,
    end: date,
) -> pd.Series:
    if not asset.symbol or asset.is_cash:
        return _empty()
    points = feed.historical_series(asset.symbol, fetch_start, end)
    series = to_series(points or [], name=asset.symbol)
    if series.empty:
        logger.info("No price history for %s; valuing at static price", asset.symbol)
    return series


def portfolio_value_series(
    assets: Sequence[Asset],
    ledgers: Mapping[Any, Sequence[Transaction]],
    histories: Mapping[Any, pd.Series],
    axis: pd.DatetimeIndex,
    live_prices: Mapping[str, float] | None = None,
) -> pd.Series:
    """Sum quantity x price per asset on *axis*.

    Assets without price history are valued at their static price (1.0 if
    unset).  A date on which some held asset has no price yet comes back
    NaN so the caller can drop it rather than report a partial value.
    """
    total = pd.Series(0.0, index=axis)
    for asset in assets:
        ledger = ledgers.get(asset.id, [])
        qty = quantity_series(ledger, axis)

        history = histories.get(asset.id)
        if history is not None and not history.empty:
            price = _onto_axis(history, axis)
        else:
            price = pd.Series(asset.current_price or UNPRICED_FALLBACK, index=axis)

        if live_prices and asset.symbol in live_prices and len(axis):
            price.iloc[-1] = live_prices[asset.symbol]

        value = qty * price
        value[(qty == 0) & price.isna()] = 0.0
        total = total + value
    return total


def build_time_series(
    assets: Sequence[Asset],
    ledgers: Mapping[Any, Sequence[Transaction]],
    date_range: DateRange,
    feed: Any,
    benchmark_symbol: str | None = None,
    live_prices: Mapping[str, float] | None = None,
) -> TimeSeries:
    """Reconstruct the portfolio value series and its benchmark for a range.

    Parameters:
        assets: Static asset records of one portfolio.
        ledgers: asset id -> that asset's transactions.
        date_range: Resolved window; the series never starts before the
            first transaction.
        feed: Price feed (see module docstring).
        benchmark_symbol: Benchmark to pair with, or None to skip.
        live_prices: symbol -> current price, applied to the last point when
            the window ends on the final axis date.

    Returns:
        TimeSeries with identically-dated portfolio/benchmark series.
        Check ``is_sufficient`` before computing analytics.
    """
    empty = TimeSeries(date_range=date_range, benchmark_symbol=benchmark_symbol)

    all_txns = [t for a in assets for t in ledgers.get(a.id, [])]
    if not all_txns:
        logger.info("No transactions in range; series is empty")
        return empty

    first_day = min(t.date for t in all_txns).date()
    start = max(date_range.start_date, first_day)
    end = date_range.end_date
    if start > end:
        return empty
    fetch_start = start - timedelta(days=LOOKBACK_PAD_DAYS)

    histories = {a.id: _price_history(a, feed, fetch_start, end) for a in assets}

    bench_raw = None
    if benchmark_symbol:
        bench_raw = to_series(
            feed.benchmark_series(benchmark_symbol, fetch_start, end) or [],
            name=benchmark_symbol,
        )
        if bench_raw.empty:
            logger.info("No benchmark data for %s", benchmark_symbol)
            bench_raw = None

    lo, hi = pd.Timestamp(start), pd.Timestamp(end)
    if bench_raw is not None:
        axis = bench_raw.index
    else:
        axis = pd.DatetimeIndex([])
        for history in histories.values():
            if not history.empty:
                axis = axis.union(history.index)
        if len(axis) == 0:
            axis = pd.bdate_range(lo, hi)
    axis = axis[(axis >= lo) & (axis <= hi)]
    if live_prices and len(axis) and axis[-1] < hi:
        axis = axis.append(pd.DatetimeIndex([hi]))

    values = portfolio_value_series(assets, ledgers, histories, axis, live_prices)
    values = values.dropna()
    portfolio, benchmark = align_series(values, bench_raw)

    return TimeSeries(
        portfolio=portfolio.rename("portfolio"),
        benchmark=benchmark.rename(benchmark_symbol) if benchmark is not None else None,
        cash_flows=cash_flow_series(all_txns, portfolio.index),
        date_range=date_range,
        benchmark_symbol=benchmark_symbol,
    )
