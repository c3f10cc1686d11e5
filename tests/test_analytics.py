"""Tests for returns, risk, benchmark statistics and the analytics report."""

from __future__ import annotations

import json
import math
from datetime import date

import numpy as np
import pandas as pd
import pytest

from folio.config.schema import AnalyticsConfig, FolioConfig
from folio.engine import benchmark as bench_stats
from folio.engine import returns as ret
from folio.engine.analytics import (
    INSUFFICIENT_HISTORY,
    AnalyticsEngine,
    AnalyticsReport,
    compute_analytics,
)
from folio.engine.risk import RiskCalculator, beta, classify_risk_level, max_drawdown


def _series(values, start="2024-01-01", freq="D") -> pd.Series:
    return pd.Series(values, index=pd.date_range(start, periods=len(values), freq=freq), dtype=float)


def _dated(pairs) -> pd.Series:
    return pd.Series([v for _, v in pairs], index=pd.to_datetime([d for d, _ in pairs]), dtype=float)


# ---------------------------------------------------------------------------
# Risk level
# ---------------------------------------------------------------------------

class TestRiskLevel:

    @pytest.mark.parametrize("vol,label", [
        (0.12, "Low"),
        (0.20, "Medium"),
        (0.30, "High"),
        (0.15, "Medium"),
        (0.25, "High"),
        (0.0, "Low"),
    ])
    def test_bands(self, vol, label):
        assert classify_risk_level(vol) == label

    def test_custom_bands(self):
        assert classify_risk_level(0.30, low=0.5, medium=0.6) == "Low"


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------

class TestReturns:

    def test_daily_returns(self):
        r = ret.daily_returns(_series([100, 110, 99]))
        assert list(r.round(10)) == [0.1, -0.1]

    def test_zero_denominator_dropped(self):
        r = ret.daily_returns(_series([0, 10, 20]))
        assert len(r) == 1
        assert r.iloc[0] == 1.0

    def test_total_return(self):
        assert ret.total_return(_series([100, 90, 121])) == pytest.approx(0.21)

    def test_total_return_nonpositive_first(self):
        assert ret.total_return(_series([0, 10])) == 0.0
        assert ret.total_return(_series([-5, 10])) == 0.0

    def test_annualize(self):
        assert ret.annualize(0.21, 365) == pytest.approx(0.21)
        assert ret.annualize(0.21, 730) == pytest.approx(0.1)
        assert ret.annualize(0.5, 0) == 0.0
        assert ret.annualize(-1.0, 100) == -1.0

    def test_ytd_uses_last_date_year(self):
        values = _dated([
            ("2023-12-28", 100.0), ("2023-12-29", 200.0),
            ("2024-01-02", 210.0), ("2024-01-03", 231.0),
        ])
        assert ret.ytd_return(values) == pytest.approx(0.1)

    def test_ytd_explicit_as_of(self):
        values = _dated([("2023-06-01", 100.0), ("2023-07-01", 150.0), ("2024-01-02", 120.0)])
        assert ret.ytd_return(values, as_of=date(2023, 12, 31)) == pytest.approx(0.5)

    def test_ytd_single_point_is_none(self):
        values = _dated([("2023-12-28", 100.0), ("2024-01-02", 110.0)])
        assert ret.ytd_return(values) is None

    def test_rolling_one_year_matches_total(self):
        values = _series(np.linspace(100, 130, 367))
        rolling = ret.rolling_returns(values, [1, 3, 5])
        one_year = values[values.index >= values.index[-1] - pd.DateOffset(years=1)]
        assert rolling["1Y"] == pytest.approx(ret.annualized_return(one_year))
        assert rolling["3Y"] is None
        assert rolling["5Y"] is None

    def test_rolling_short_history(self):
        assert ret.rolling_returns(_series([100, 101]), [1]) == {"1Y": None}

    def test_rolling_anchor_on_weekend(self):
        # 2026-10-19 less one year is a Sunday; trading resumes the next day
        index = pd.bdate_range("2025-10-20", "2026-10-19")
        values = pd.Series(np.linspace(100, 112, len(index)), index=index)
        rolling = ret.rolling_returns(values, [1, 3])
        assert rolling["1Y"] == pytest.approx(ret.annualized_return(values))
        assert rolling["3Y"] is None

    def test_rolling_late_start_beyond_tolerance(self):
        index = pd.bdate_range("2025-11-03", "2026-10-19")
        values = pd.Series(np.linspace(100, 112, len(index)), index=index)
        assert ret.rolling_returns(values, [1]) == {"1Y": None}

    def test_rolling_tolerance_is_configurable(self):
        index = pd.bdate_range("2025-10-20", "2026-10-19")
        values = pd.Series(np.linspace(100, 112, len(index)), index=index)
        assert ret.rolling_returns(values, [1], tolerance_days=0) == {"1Y": None}

    def test_best_worst_periods(self):
        values = _dated([
            ("2024-01-01", 100.0), ("2024-01-31", 110.0),
            ("2024-02-29", 99.0), ("2024-03-29", 118.8),
        ])
        periods = ret.best_worst_periods(ret.daily_returns(values))

        assert periods["bestMonth"]["period"] == "2024-03"
        assert periods["bestMonth"]["startDate"] == "2024-03-01"
        assert periods["bestMonth"]["return"] == pytest.approx(0.2)
        assert periods["worstMonth"]["period"] == "2024-02"
        assert periods["worstMonth"]["return"] == pytest.approx(-0.1)
        assert periods["bestYear"]["startDate"] == "2024-01-01"
        assert periods["bestYear"]["return"] == pytest.approx(0.188)

    def test_best_worst_empty(self):
        periods = ret.best_worst_periods(pd.Series(dtype=float))
        assert periods == {"bestMonth": None, "worstMonth": None, "bestYear": None, "worstYear": None}

    def test_win_rate(self):
        r = ret.daily_returns(_series([100, 110, 99, 120]))
        assert ret.win_rate(r) == pytest.approx(200 / 3)
        assert ret.win_rate(pd.Series(dtype=float)) == 0.0

    def test_twr_without_flows_is_total_return(self):
        values = _series([100, 90, 121])
        assert ret.time_weighted_return(values) == ret.total_return(values)
        zero_flows = pd.Series(0.0, index=values.index)
        assert ret.time_weighted_return(values, zero_flows) == ret.total_return(values)

    def test_twr_removes_deposits(self):
        values = _series([100, 210, 220])
        flows = pd.Series([0.0, 100.0, 0.0], index=values.index)
        expected = 1.1 * (220 / 210) - 1
        assert ret.time_weighted_return(values, flows) == pytest.approx(expected)


# ---------------------------------------------------------------------------
# Risk
# ---------------------------------------------------------------------------

class TestRiskCalculator:

    def test_volatility(self):
        r = np.array([0.01, -0.02, 0.015, 0.0])
        expected = np.std(r, ddof=1) * math.sqrt(252)
        assert RiskCalculator().volatility(r) == pytest.approx(expected)

    def test_volatility_short(self):
        assert RiskCalculator().volatility([0.01]) == 0.0

    def test_sharpe_guard(self):
        calc = RiskCalculator()
        assert calc.sharpe_ratio(0.1, 0.0, 0.0) == 0.0
        assert calc.sharpe_ratio(0.12, 0.2, 0.02) == pytest.approx(0.5)

    def test_value_at_risk(self):
        r = np.array([0.01, -0.02, 0.015, 0.0, -0.01])
        mu, sigma = r.mean(), r.std(ddof=1)
        var = RiskCalculator().value_at_risk(r)
        assert var["daily"] == pytest.approx(-(mu - 1.645 * sigma))
        assert var["monthly"] == pytest.approx(-(21 * mu - 1.645 * sigma * math.sqrt(21)))

    def test_value_at_risk_floored(self):
        var = RiskCalculator().value_at_risk([0.05, 0.0501, 0.0499])
        assert var["daily"] == 0.0

    def test_cvar_exceeds_var(self):
        np.random.seed(42)
        r = np.random.normal(0.0005, 0.01, 500)
        calc = RiskCalculator()
        assert calc.conditional_value_at_risk(r) > calc.value_at_risk(r)["daily"] > 0

    def test_downside_deviation_nonnegative(self):
        np.random.seed(1)
        assert RiskCalculator().downside_deviation(np.random.normal(0, 0.01, 100)) > 0
        assert RiskCalculator().downside_deviation([0.01]) == 0.0

    @pytest.mark.parametrize("kwargs", [
        {"trading_days": 0},
        {"confidence": 0.4},
        {"confidence": 1.0},
        {"horizon_days": 0},
    ])
    def test_invalid_params(self, kwargs):
        with pytest.raises(ValueError):
            RiskCalculator(**kwargs)


class TestDrawdownAndBeta:

    def test_max_drawdown(self):
        assert max_drawdown(_series([100, 110, 99, 121])) == pytest.approx(0.1)

    def test_max_drawdown_monotonic(self):
        assert max_drawdown(_series([1, 2, 3])) == 0.0

    def test_beta_of_levered_benchmark(self):
        np.random.seed(3)
        rb = pd.Series(np.random.normal(0, 0.01, 50), index=pd.date_range("2024-01-01", periods=50))
        assert beta(2 * rb, rb) == pytest.approx(2.0)

    def test_beta_flat_benchmark(self):
        idx = pd.date_range("2024-01-01", periods=5)
        assert beta(pd.Series([0.01, 0.02, -0.01, 0.0, 0.01], index=idx), pd.Series(0.0, index=idx)) == 0.0


# ---------------------------------------------------------------------------
# Benchmark comparisons
# ---------------------------------------------------------------------------

class TestBenchmarkStats:

    @pytest.fixture
    def returns_pair(self):
        np.random.seed(11)
        idx = pd.date_range("2024-01-01", periods=60)
        rb = pd.Series(np.random.normal(0.0005, 0.01, 60), index=idx)
        rp = rb * 1.5 + np.random.normal(0, 0.002, 60)
        return rp, rb

    def test_identical_series(self, returns_pair):
        _, rb = returns_pair
        assert bench_stats.correlation(rb, rb) == pytest.approx(1.0)
        assert bench_stats.tracking_error(rb, rb) == 0.0
        assert bench_stats.cumulative_outperformance(rb, rb) == pytest.approx(0.0)

    def test_correlation_flat_side(self, returns_pair):
        rp, rb = returns_pair
        assert bench_stats.correlation(rp, rb * 0) == 0.0

    def test_information_ratio_guard(self):
        assert bench_stats.information_ratio(0.05, 0.0) == 0.0
        assert bench_stats.information_ratio(0.05, 0.1) == pytest.approx(0.5)

    def test_cumulative_outperformance_compounded(self):
        idx = pd.date_range("2024-01-01", periods=2)
        rp = pd.Series([0.1, 0.1], index=idx)
        rb = pd.Series([0.0, 0.0], index=idx)
        assert bench_stats.cumulative_outperformance(rp, rb) == pytest.approx(0.21)

    def test_capture_ratios(self):
        idx = pd.date_range("2024-01-01", periods=4)
        rb = pd.Series([0.01, -0.01, 0.02, -0.02], index=idx)
        up, down = bench_stats.capture_ratios(rb * 2, rb)
        assert up == pytest.approx(200.0)
        assert down == pytest.approx(200.0)

    def test_yearly_comparison(self, returns_pair):
        rp, rb = returns_pair
        rows = bench_stats.yearly_comparison(rp, rb)
        assert [row["year"] for row in rows] == [2024]
        assert rows[0]["outperformance"] == pytest.approx(
            rows[0]["portfolioReturn"] - rows[0]["benchmarkReturn"]
        )


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class TestComputeAnalytics:

    def test_insufficient_history(self):
        report = compute_analytics(_series([100.0]))
        assert not report.available
        assert report.reason == INSUFFICIENT_HISTORY
        assert report.performance is None
        assert report.data_points == 1
        d = report.to_dict()
        assert d["performanceMetrics"] is None
        assert d["riskMetrics"] is None

    def test_empty_series(self):
        report = compute_analytics(pd.Series(dtype=float))
        assert not report.available
        assert report.metadata["dateRange"] == {"start": None, "end": None}

    def test_basic_report(self):
        values = _series([100, 110, 99, 121])
        report = compute_analytics(values)

        assert report.available
        assert report.reason is None
        assert not report.has_benchmark_data
        assert report.performance.total_return == pytest.approx(0.21)
        assert report.performance.annualized_return == pytest.approx(1.21 ** (365 / 3) - 1)
        assert report.performance.alpha is None
        assert report.risk.max_drawdown == pytest.approx(0.1)
        assert report.risk.beta is None
        assert report.benchmark is None
        assert report.metadata == {
            "dataPoints": 4,
            "dateRange": {"start": "2024-01-01", "end": "2024-01-04"},
        }

    def test_accepts_pairs(self):
        report = compute_analytics([(date(2024, 1, 1), 100.0), (date(2024, 1, 2), 105.0)])
        assert report.performance.total_return == pytest.approx(0.05)

    def test_flat_series(self):
        report = compute_analytics(_series([100.0] * 30))
        assert report.risk.volatility == 0.0
        assert report.risk.sharpe_ratio == 0.0
        assert report.risk.value_at_risk == {"daily": 0.0, "monthly": 0.0}
        assert report.risk.risk_level == "Low"

    def test_with_benchmark(self, aapl_prices, spy_prices):
        report = compute_analytics(aapl_prices, spy_prices)

        assert report.has_benchmark_data
        perf, risk, bench = report.performance, report.risk, report.benchmark
        assert perf.alpha == pytest.approx(perf.annualized_return - bench.benchmark_annualized_return)
        assert risk.beta is not None
        assert -1.0 <= bench.correlation <= 1.0
        assert bench.information_ratio == pytest.approx(perf.alpha / bench.tracking_error)
        assert bench.symbol == "SPY"

    def test_benchmark_vs_itself(self, spy_prices):
        report = compute_analytics(spy_prices, spy_prices)
        assert report.risk.beta == pytest.approx(1.0)
        assert report.benchmark.correlation == pytest.approx(1.0)
        assert report.benchmark.tracking_error == 0.0
        assert report.benchmark.information_ratio == 0.0
        assert report.performance.alpha == 0.0

    def test_benchmark_disabled_by_config(self, aapl_prices, spy_prices):
        cfg = AnalyticsConfig(benchmark_enabled=False)
        report = compute_analytics(aapl_prices, spy_prices, config=cfg)
        assert not report.has_benchmark_data
        assert report.performance.alpha is None
        assert report.risk.beta is None
        assert report.to_dict()["benchmarkComparisons"] is None

    def test_benchmark_with_one_aligned_point_ignored(self):
        values = _series([100, 110, 121])
        bench = _series([400], start="2024-01-03")
        report = compute_analytics(values, bench)
        assert report.available
        assert report.data_points == 3
        assert not report.has_benchmark_data

    def test_unaligned_benchmark_is_aligned(self):
        values = _series([100, 110, 121, 133.1])
        bench = _series([400, 404, 408], start="2024-01-02")
        report = compute_analytics(values, bench)
        assert report.has_benchmark_data
        assert report.data_points == 3

    def test_risk_free_rate(self, aapl_prices):
        base = compute_analytics(aapl_prices)
        shifted = compute_analytics(aapl_prices, config=AnalyticsConfig(risk_free_rate=0.05))
        assert shifted.risk.sharpe_ratio == pytest.approx(
            base.risk.sharpe_ratio - 0.05 / base.risk.volatility
        )

    def test_custom_risk_bands(self, aapl_prices):
        cfg = AnalyticsConfig(risk_levels={"low": 5.0, "medium": 6.0})
        assert compute_analytics(aapl_prices, config=cfg).risk.risk_level == "Low"

    def test_time_weighted_return_uses_flows(self):
        values = _series([100, 210, 220])
        flows = pd.Series([0.0, 100.0, 0.0], index=values.index)
        report = compute_analytics(values, cash_flows=flows)
        assert report.performance.total_return == pytest.approx(1.2)
        assert report.performance.time_weighted_return == pytest.approx(1.1 * 220 / 210 - 1)

    def test_to_dict_is_json_serializable(self, aapl_prices, spy_prices):
        d = compute_analytics(aapl_prices, spy_prices).to_dict()
        assert set(d) == {
            "available", "reason", "hasBenchmarkData", "performanceMetrics",
            "riskMetrics", "benchmarkComparisons", "metadata",
        }
        assert "valueAtRisk" in d["riskMetrics"]
        assert "cumulativeOutperformance" in d["benchmarkComparisons"]
        json.dumps(d)


class TestAnalyticsEngine:

    def test_accepts_full_config(self):
        engine = AnalyticsEngine(FolioConfig(analytics={"trading_days": 365}))
        assert engine.config.trading_days == 365
        assert engine.risk_calc.trading_days == 365

    def test_defaults(self):
        engine = AnalyticsEngine()
        assert engine.config.risk_free_rate == 0.0
        assert isinstance(engine.compute(_series([1.0, 2.0])), AnalyticsReport)

    def test_repeatable(self, aapl_prices, spy_prices):
        engine = AnalyticsEngine()
        a = engine.compute(aapl_prices, spy_prices).to_dict()
        b = engine.compute(aapl_prices, spy_prices).to_dict()
        assert json.dumps(a, sort_keys=True) == json.dumps(b, sort_keys=True)
