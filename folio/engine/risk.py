"""Risk statistics on daily portfolio returns.

Volatility, maximum drawdown, Sharpe ratio, parametric Value at Risk and
Expected Shortfall, downside deviation and beta against a benchmark.

VaR and CVaR are parametric (normal) estimates expressed as positive loss
magnitudes and floored at zero:

    VaR_h  = -(h*mu - z*sigma*sqrt(h))
    CVaR_1 = -mu + sigma * phi(Phi^-1(1-alpha)) / (1-alpha)
"""

from __future__ import annotations

import math
from typing import TypedDict

import numpy as np
import pandas as pd
from scipy import stats

from folio.config.defaults import RISK_LEVEL_THRESHOLDS


class ValueAtRisk(TypedDict):
    daily: float
    monthly: float


def classify_risk_level(
    volatility: float,
    low: float = RISK_LEVEL_THRESHOLDS["low"],
    medium: float = RISK_LEVEL_THRESHOLDS["medium"],
) -> str:
    """Label annualized volatility as "Low", "Medium" or "High"."""
    if volatility < low:
        return "Low"
    if volatility < medium:
        return "Medium"
    return "High"


def max_drawdown(values: pd.Series | np.ndarray) -> float:
    """Largest peak-to-trough decline as a positive fraction of the peak."""
    arr = np.asarray(values, dtype=float)
    if len(arr) < 2:
        return 0.0
    peaks = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - arr) / peaks, 0.0)
    return float(np.max(drawdowns))


def beta(portfolio_returns: pd.Series, benchmark_returns: pd.Series) -> float:
    """Sample ``cov(r_p, r_b) / var(r_b)``; 0 when the benchmark is flat."""
    joined = pd.concat([portfolio_returns, benchmark_returns], axis=1, join="inner").dropna()
    if len(joined) < 2:
        return 0.0
    rp = joined.iloc[:, 0].to_numpy()
    rb = joined.iloc[:, 1].to_numpy()
    var_b = float(np.var(rb, ddof=1))
    if var_b == 0:
        return 0.0
    return float(np.cov(rp, rb, ddof=1)[0, 1] / var_b)


class RiskCalculator:
    """Return-based risk metrics with fixed conventions.

    Usage::

        calc = RiskCalculator(trading_days=252, confidence=0.95)
        vol = calc.volatility(returns)

    Parameters:
        trading_days: Periods per year for annualization (default 252).
        confidence: VaR/CVaR confidence level in (0.5, 1).
        z: One-sided z-score used for VaR (1.645 at 95%).
        horizon_days: Trading days in the "monthly" VaR horizon.
    """

    def __init__(
        self,
        trading_days: int = 252,
        confidence: float = 0.95,
        z: float = 1.645,
        horizon_days: int = 21,
    ) -> None:
        if trading_days <= 0:
            raise ValueError(f"trading_days must be positive, got {trading_days}")
        if not 0.5 < confidence < 1.0:
            raise ValueError(f"confidence must be in (0.5, 1.0), got {confidence}")
        if horizon_days <= 0:
            raise ValueError(f"horizon_days must be positive, got {horizon_days}")
        self.trading_days = trading_days
        self.confidence = confidence
        self.z = z
        self.horizon_days = horizon_days

    @staticmethod
    def _clean(returns: pd.Series | np.ndarray) -> np.ndarray:
        arr = np.asarray(returns, dtype=float)
        return arr[np.isfinite(arr)]

    def volatility(self, returns: pd.Series | np.ndarray) -> float:
        """Annualized sample standard deviation; 0 with fewer than 2 returns."""
        arr = self._clean(returns)
        if len(arr) < 2:
            return 0.0
        return float(np.std(arr, ddof=1) * math.sqrt(self.trading_days))

    def downside_deviation(self, returns: pd.Series | np.ndarray) -> float:
        """Annualized deviation of returns below their mean."""
        arr = self._clean(returns)
        if len(arr) < 2:
            return 0.0
        shortfall = np.minimum(arr - arr.mean(), 0.0)
        return float(np.sqrt(np.mean(shortfall ** 2)) * math.sqrt(self.trading_days))

    def sharpe_ratio(self, annualized_return: float, volatility: float, risk_free_rate: float) -> float:
        if volatility == 0:
            return 0.0
        return (annualized_return - risk_free_rate) / volatility

    def value_at_risk(self, returns: pd.Series | np.ndarray) -> ValueAtRisk:
        arr = self._clean(returns)
        if len(arr) < 2:
            return ValueAtRisk(daily=0.0, monthly=0.0)
        mu = float(np.mean(arr))
        sigma = float(np.std(arr, ddof=1))
        h = self.horizon_days
        daily = -(mu - self.z * sigma)
        monthly = -(h * mu - self.z * sigma * math.sqrt(h))
        return ValueAtRisk(daily=max(daily, 0.0), monthly=max(monthly, 0.0))

    def conditional_value_at_risk(self, returns: pd.Series | np.ndarray) -> float:
        """One-day parametric expected shortfall at ``confidence``."""
        arr = self._clean(returns)
        if len(arr) < 2:
            return 0.0
        mu = float(np.mean(arr))
        sigma = float(np.std(arr, ddof=1))
        if sigma < 1e-12:
            return max(-mu, 0.0)
        phi_z = stats.norm.pdf(stats.norm.ppf(1 - self.confidence))
        return max(float(-mu + sigma * phi_z / (1 - self.confidence)), 0.0)
