"""Default values for valuation and analytics.

The risk-level bands and the 95% parametric VaR multiplier are part of the
reporting contract; change them through config rather than here.
"""

# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
ANALYTICS_DEFAULTS = {
    "risk_free_rate": 0.0,       # annual, same units as annualized return
    "trading_days": 252,         # annualization factor for daily returns
    "var_confidence": 0.95,
    "var_z": 1.645,              # one-sided 95% normal quantile
    "monthly_horizon_days": 21,  # trading days per month for monthly VaR
    "benchmark_enabled": True,
    "benchmark_symbol": "SPY",
}

# Annualized volatility bands: < low -> Low, < medium -> Medium, else High
RISK_LEVEL_THRESHOLDS = {
    "low": 0.15,
    "medium": 0.25,
}

# Trailing windows (years) reported as rolling returns
ROLLING_WINDOWS = [1, 3, 5]

# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
ASSET_TYPES = (
    "stock",
    "bond",
    "commodity",
    "real estate",
    "cash",
    "crypto",
    "other",
)

TRANSACTION_TYPES = ("buy", "sell", "dividend")

# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------
# token -> (months, years) offset back from today
RANGE_OFFSETS = {
    "1M": (1, 0),
    "3M": (3, 0),
    "6M": (6, 0),
    "1Y": (0, 1),
    "2Y": (0, 2),
    "5Y": (0, 5),
}

# Anything unmatched, "ALL" included, looks back this many years
DEFAULT_RANGE_YEARS = 10

# Extra calendar days fetched before a window so its first day can be
# forward-filled across weekends and market holidays. Also the slack
# allowed between a rolling window anchor and the first point after it.
LOOKBACK_PAD_DAYS = 7

# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------
YFINANCE_DEFAULTS = {
    "history_interval": "1d",
}

VALUATION_DEFAULTS = {
    "max_workers": 8,
}

CACHE_DEFAULTS = {
    "enabled": True,
    "max_entries": 256,
}
