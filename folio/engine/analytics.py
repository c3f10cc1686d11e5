"""Performance and risk analytics report.

Turns an aligned portfolio value series (and optionally a benchmark close
series on the same dates) into an :class:`AnalyticsReport`:

  - performance: total/annualized/YTD/rolling returns, best and worst
    calendar periods, alpha, monthly returns, win rate, time-weighted return
  - risk: volatility, max drawdown, Sharpe, VaR/CVaR, beta, risk level
  - benchmark: correlation, tracking error, information ratio, cumulative
    outperformance, capture ratios, year-by-year comparison

Sparse data never raises.  With fewer than two aligned points the report is
``available=False`` with ``reason="insufficient_history"``; a benchmark with
fewer than two aligned points is treated as absent (``has_benchmark_data``).

Usage::

    engine = AnalyticsEngine(config.analytics)
    report = engine.compute(portfolio_values, benchmark_closes)
    if report.available:
        print(report.risk.volatility)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

import pandas as pd

from folio.config.schema import AnalyticsConfig, FolioConfig
from folio.engine import benchmark as bench_stats
from folio.engine import returns as ret
from folio.engine.risk import RiskCalculator, ValueAtRisk, beta, classify_risk_level, max_drawdown
from folio.engine.series import TimeSeries, align_series, to_series

logger = logging.getLogger(__name__)

INSUFFICIENT_HISTORY = "insufficient_history"


# ---------------------------------------------------------------------------
# Report types
# ---------------------------------------------------------------------------

@dataclass
class PerformanceMetrics:
    total_return: float = 0.0
    annualized_return: float = 0.0
    ytd_return: float | None = None
    rolling_returns: dict[str, float | None] = field(default_factory=dict)
    best_worst_periods: dict[str, dict[str, Any] | None] = field(default_factory=dict)
    alpha: float | None = None
    monthly_returns: list[dict[str, Any]] = field(default_factory=list)
    win_rate: float = 0.0
    time_weighted_return: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalReturn": self.total_return,
            "annualizedReturn": self.annualized_return,
            "ytdReturn": self.ytd_return,
            "rollingReturns": dict(self.rolling_returns),
            "bestWorstPeriods": dict(self.best_worst_periods),
            "alpha": self.alpha,
            "monthlyReturns": list(self.monthly_returns),
            "winRate": self.win_rate,
            "timeWeightedReturn": self.time_weighted_return,
        }


@dataclass
class RiskMetrics:
    volatility: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    value_at_risk: ValueAtRisk = field(
        default_factory=lambda: ValueAtRisk(daily=0.0, monthly=0.0)
    )
    conditional_value_at_risk: float = 0.0
    beta: float | None = None
    risk_level: str = "Low"
    downside_deviation: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "volatility": self.volatility,
            "maxDrawdown": self.max_drawdown,
            "sharpeRatio": self.sharpe_ratio,
            "valueAtRisk": dict(self.value_at_risk),
            "conditionalValueAtRisk": self.conditional_value_at_risk,
            "beta": self.beta,
            "riskLevel": self.risk_level,
            "downsideDeviation": self.downside_deviation,
        }


@dataclass
class BenchmarkComparisons:
    symbol: str | None = None
    benchmark_return: float = 0.0
    benchmark_annualized_return: float = 0.0
    correlation: float = 0.0
    tracking_error: float = 0.0
    information_ratio: float = 0.0
    cumulative_outperformance: float = 0.0
    up_capture: float = 0.0
    down_capture: float = 0.0
    yearly_comparison: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "benchmarkReturn": self.benchmark_return,
            "benchmarkAnnualizedReturn": self.benchmark_annualized_return,
            "correlation": self.correlation,
            "trackingError": self.tracking_error,
            "informationRatio": self.information_ratio,
            "cumulativeOutperformance": self.cumulative_outperformance,
            "upCapture": self.up_capture,
            "downCapture": self.down_capture,
            "yearlyComparison": list(self.yearly_comparison),
        }


@dataclass
class AnalyticsReport:
    """Analytics for one portfolio over one window."""

    available: bool = False
    reason: str | None = None
    has_benchmark_data: bool = False
    performance: PerformanceMetrics | None = None
    risk: RiskMetrics | None = None
    benchmark: BenchmarkComparisons | None = None
    data_points: int = 0
    start_date: date | None = None
    end_date: date | None = None

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "dataPoints": self.data_points,
            "dateRange": {
                "start": self.start_date.isoformat() if self.start_date else None,
                "end": self.end_date.isoformat() if self.end_date else None,
            },
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "reason": self.reason,
            "hasBenchmarkData": self.has_benchmark_data,
            "performanceMetrics": self.performance.to_dict() if self.performance else None,
            "riskMetrics": self.risk.to_dict() if self.risk else None,
            "benchmarkComparisons": (
                self.benchmark.to_dict()
                if self.has_benchmark_data and self.benchmark
                else None
            ),
            "metadata": self.metadata,
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def _as_series(values: pd.Series | Iterable[tuple[Any, float]] | None) -> pd.Series | None:
    if values is None:
        return None
    if isinstance(values, pd.Series):
        series = values.astype(float).dropna()
        series.index = pd.DatetimeIndex(pd.to_datetime(series.index)).normalize()
        return series.sort_index()
    return to_series(values)


class AnalyticsEngine:
    """Analytics bound to one configuration.

    Parameters:
        config: ``AnalyticsConfig`` (or a full ``FolioConfig``); defaults
            are used when None.
    """

    def __init__(self, config: AnalyticsConfig | FolioConfig | None = None) -> None:
        if isinstance(config, FolioConfig):
            config = config.analytics
        self.config = config or AnalyticsConfig()
        self.risk_calc = RiskCalculator(
            trading_days=self.config.trading_days,
            confidence=self.config.var_confidence,
            z=self.config.var_z,
            horizon_days=self.config.monthly_horizon_days,
        )

    def compute_series(self, series: TimeSeries, as_of: date | None = None) -> AnalyticsReport:
        """Report for a :class:`TimeSeries` from the series builder."""
        return self.compute(
            series.portfolio,
            series.benchmark,
            cash_flows=series.cash_flows,
            as_of=as_of,
            benchmark_symbol=series.benchmark_symbol,
        )

    def compute(
        self,
        portfolio_series: pd.Series | Iterable[tuple[Any, float]],
        benchmark_series: pd.Series | Iterable[tuple[Any, float]] | None = None,
        *,
        cash_flows: pd.Series | None = None,
        as_of: date | None = None,
        benchmark_symbol: str | None = None,
    ) -> AnalyticsReport:
        cfg = self.config
        values = _as_series(portfolio_series)
        bench = _as_series(benchmark_series) if cfg.benchmark_enabled else None

        if bench is not None:
            aligned_values, aligned_bench = align_series(values, bench)
            if len(aligned_bench) >= 2:
                values, bench = aligned_values, aligned_bench
            else:
                bench = None

        if len(values) < 2:
            logger.info("Analytics unavailable: %d data point(s)", len(values))
            return AnalyticsReport(
                available=False,
                reason=INSUFFICIENT_HISTORY,
                data_points=len(values),
                start_date=values.index[0].date() if len(values) else None,
                end_date=values.index[-1].date() if len(values) else None,
            )

        has_benchmark = bench is not None
        rp = ret.daily_returns(values)
        rb = ret.daily_returns(bench) if has_benchmark else None

        # Performance
        total = ret.total_return(values)
        annualized = ret.annualized_return(values)
        bench_annualized = ret.annualized_return(bench) if has_benchmark else None
        alpha = annualized - bench_annualized if has_benchmark else None

        performance = PerformanceMetrics(
            total_return=total,
            annualized_return=annualized,
            ytd_return=ret.ytd_return(values, as_of),
            rolling_returns=ret.rolling_returns(values, cfg.rolling_windows),
            best_worst_periods=ret.best_worst_periods(rp),
            alpha=alpha,
            monthly_returns=ret.monthly_return_table(rp),
            win_rate=ret.win_rate(rp),
            time_weighted_return=ret.time_weighted_return(values, cash_flows),
        )

        # Risk
        calc = self.risk_calc
        volatility = calc.volatility(rp)
        risk = RiskMetrics(
            volatility=volatility,
            max_drawdown=max_drawdown(values),
            sharpe_ratio=calc.sharpe_ratio(annualized, volatility, cfg.risk_free_rate),
            value_at_risk=calc.value_at_risk(rp),
            conditional_value_at_risk=calc.conditional_value_at_risk(rp),
            beta=beta(rp, rb) if has_benchmark else None,
            risk_level=classify_risk_level(
                volatility, cfg.risk_levels.low, cfg.risk_levels.medium
            ),
            downside_deviation=calc.downside_deviation(rp),
        )

        # Benchmark
        comparison = None
        if has_benchmark:
            te = bench_stats.tracking_error(rp, rb, cfg.trading_days)
            up, down = bench_stats.capture_ratios(rp, rb)
            comparison = BenchmarkComparisons(
                symbol=benchmark_symbol or cfg.benchmark_symbol,
                benchmark_return=ret.total_return(bench),
                benchmark_annualized_return=bench_annualized,
                correlation=bench_stats.correlation(rp, rb),
                tracking_error=te,
                information_ratio=bench_stats.information_ratio(alpha, te),
                cumulative_outperformance=bench_stats.cumulative_outperformance(rp, rb),
                up_capture=up,
                down_capture=down,
                yearly_comparison=bench_stats.yearly_comparison(rp, rb),
            )

        return AnalyticsReport(
            available=True,
            has_benchmark_data=has_benchmark,
            performance=performance,
            risk=risk,
            benchmark=comparison,
            data_points=len(values),
            start_date=values.index[0].date(),
            end_date=values.index[-1].date(),
        )


def compute_analytics(
    portfolio_series: pd.Series | Iterable[tuple[Any, float]],
    benchmark_series: pd.Series | Iterable[tuple[Any, float]] | None = None,
    *,
    config: AnalyticsConfig | FolioConfig | None = None,
    cash_flows: pd.Series | None = None,
    as_of: date | None = None,
) -> AnalyticsReport:
    """Compute an :class:`AnalyticsReport` with a one-off engine.

    Parameters:
        portfolio_series: Portfolio values, as a Series on a DatetimeIndex or
            ``(date, value)`` pairs.
        benchmark_series: Benchmark closes in the same form, or None.
        config: Analytics configuration (defaults when None).
        cash_flows: Net external flow per date for the time-weighted return.
        as_of: Reference date for the YTD window (default: last date).
    """
    return AnalyticsEngine(config).compute(
        portfolio_series,
        benchmark_series,
        cash_flows=cash_flows,
        as_of=as_of,
    )
