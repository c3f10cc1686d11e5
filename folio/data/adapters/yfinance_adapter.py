"""yfinance price feed: current quotes and daily close history."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Callable

import pandas as pd
import yfinance as yf

from folio.config.schema import YFinanceConfig

logger = logging.getLogger(__name__)


def yf_symbol(symbol: str) -> str:
    """Map a ledger symbol to Yahoo's form (BRK.B -> BRK-B)."""
    return symbol.strip().upper().replace(".", "-")


def _close_pairs(hist: pd.DataFrame | None) -> list[tuple[date, float]]:
    if hist is None or hist.empty or "Close" not in hist.columns:
        return []
    closes = hist["Close"].dropna()
    return [(ts.date(), float(value)) for ts, value in closes.items()]


class YFinancePriceFeed:
    """Price feed backed by ``yfinance.Ticker``.

    Network and parsing failures are logged and come back as ``None`` (for
    quotes) or an empty list (for series); callers treat both as "no data".

    Parameters:
        config: yfinance settings (history interval).
        ticker_factory: Callable returning a ticker object for a symbol;
            defaults to ``yfinance.Ticker``.
    """

    def __init__(
        self,
        config: YFinanceConfig | None = None,
        ticker_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self.config = config or YFinanceConfig()
        self._ticker = ticker_factory or yf.Ticker

    def current_price(self, symbol: str) -> float | None:
        """Most recent close, or None when unavailable."""
        try:
            hist = self._ticker(yf_symbol(symbol)).history(period="5d")
        except Exception as e:
            logger.warning("Price fetch failed for %s: %s", symbol, e)
            return None
        pairs = _close_pairs(hist)
        if not pairs:
            logger.debug("No recent price for %s", symbol)
            return None
        return pairs[-1][1]

    def historical_series(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[tuple[date, float]]:
        """Daily closes in ``[start_date, end_date]``, oldest first."""
        try:
            hist = self._ticker(yf_symbol(symbol)).history(
                start=start_date.isoformat(),
                # yfinance treats end as exclusive
                end=(end_date + timedelta(days=1)).isoformat(),
                interval=self.config.history_interval,
                auto_adjust=True,
            )
        except Exception as e:
            logger.warning("History fetch failed for %s: %s", symbol, e)
            return []
        pairs = _close_pairs(hist)
        logger.debug("Fetched %d closes for %s", len(pairs), symbol)
        return [(d, p) for d, p in pairs if start_date <= d <= end_date]

    def benchmark_series(
        self,
        benchmark_id: str,
        start_date: date,
        end_date: date,
    ) -> list[tuple[date, float]]:
        """Benchmark closes; benchmarks are ordinary tickers (e.g. SPY)."""
        return self.historical_series(benchmark_id, start_date, end_date)

    def price_timestamp(self) -> str:
        """Freshness token for cache keys: daily closes change once a day."""
        return date.today().isoformat()
