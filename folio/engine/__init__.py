"""Valuation and analytics engine.

Public API:
  resolve_range      -- range token -> DateRange
  build_time_series  -- ledgers + price feed -> aligned TimeSeries
  compute_analytics  -- value series (+ benchmark) -> AnalyticsReport
  AnalyticsEngine    -- analytics bound to a configuration
  AnalyticsCache     -- LRU of reports keyed by ledger/price/range
  value_portfolio    -- parallel per-asset valuation -> PortfolioTotals
"""

from folio.engine.analytics import AnalyticsEngine, AnalyticsReport, compute_analytics
from folio.engine.cache import AnalyticsCache, AnalyticsCacheKey
from folio.engine.ranges import DateRange, resolve_range
from folio.engine.series import TimeSeries, build_time_series
from folio.engine.valuation import portfolio_analytics, value_portfolio

__all__ = [
    "AnalyticsCache",
    "AnalyticsCacheKey",
    "AnalyticsEngine",
    "AnalyticsReport",
    "DateRange",
    "TimeSeries",
    "build_time_series",
    "compute_analytics",
    "portfolio_analytics",
    "resolve_range",
    "value_portfolio",
]
