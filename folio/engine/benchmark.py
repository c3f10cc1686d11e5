"""Portfolio vs. benchmark comparison on aligned daily returns."""

from __future__ import annotations

import math
from typing import Any

import numpy as np
import pandas as pd

from folio.engine.returns import year_returns


def _joined(rp: pd.Series, rb: pd.Series) -> pd.DataFrame:
    frame = pd.concat([rp.rename("p"), rb.rename("b")], axis=1, join="inner")
    return frame.dropna()


def correlation(rp: pd.Series, rb: pd.Series) -> float:
    """Pearson correlation; 0 when either side has no variance."""
    frame = _joined(rp, rb)
    if len(frame) < 2:
        return 0.0
    if frame["p"].std(ddof=1) == 0 or frame["b"].std(ddof=1) == 0:
        return 0.0
    return float(np.corrcoef(frame["p"], frame["b"])[0, 1])


def tracking_error(rp: pd.Series, rb: pd.Series, trading_days: int = 252) -> float:
    frame = _joined(rp, rb)
    if len(frame) < 2:
        return 0.0
    diff = frame["p"] - frame["b"]
    return float(diff.std(ddof=1) * math.sqrt(trading_days))


def information_ratio(alpha: float, te: float) -> float:
    if te == 0:
        return 0.0
    return alpha / te


def cumulative_outperformance(rp: pd.Series, rb: pd.Series) -> float:
    """Compounded growth difference ``prod(1+r_p) - prod(1+r_b)``."""
    frame = _joined(rp, rb)
    return float((1 + frame["p"]).prod() - (1 + frame["b"]).prod())


def capture_ratios(rp: pd.Series, rb: pd.Series) -> tuple[float, float]:
    """Up/down capture in percent.

    Mean portfolio return on days the benchmark rose (fell), divided by the
    benchmark's mean return on those days.  0 when there are no such days.
    """
    frame = _joined(rp, rb)
    out = []
    for mask in (frame["b"] > 0, frame["b"] < 0):
        sub = frame[mask]
        bench_mean = sub["b"].mean() if len(sub) else 0.0
        if not len(sub) or bench_mean == 0:
            out.append(0.0)
        else:
            out.append(float(sub["p"].mean() * 100 / bench_mean))
    return out[0], out[1]


def yearly_comparison(rp: pd.Series, rb: pd.Series) -> list[dict[str, Any]]:
    frame = _joined(rp, rb)
    port = year_returns(frame["p"])
    bench = year_returns(frame["b"])
    rows = []
    for year in port.index:
        p, b = float(port[year]), float(bench[year])
        rows.append({
            "year": int(year),
            "portfolioReturn": p,
            "benchmarkReturn": b,
            "outperformance": p - b,
        })
    return rows
