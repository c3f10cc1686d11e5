"""Valuation pipeline: ledger store + price feed -> positions, totals, analytics.

Per-asset valuation is independent, so :func:`value_portfolio` fans the
assets out to a thread pool and joins them before the portfolio totals are
summed.  Ledger writes made through this module invalidate the analytics
cache for the affected portfolio.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Any, Mapping

from folio.config.defaults import VALUATION_DEFAULTS
from folio.config.schema import FolioConfig
from folio.engine.analytics import AnalyticsEngine, AnalyticsReport
from folio.engine.cache import AnalyticsCache, AnalyticsCacheKey
from folio.engine.ranges import resolve_range
from folio.engine.series import build_time_series
from folio.portfolio.allocation import PortfolioTotals, compute_portfolio_totals
from folio.portfolio.ledger import Asset
from folio.portfolio.positions import PositionState, compute_position
from folio.storage import queries
from folio.storage.store import LedgerStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Current state
# ---------------------------------------------------------------------------

def value_asset(store: LedgerStore, feed: Any, asset: Asset) -> PositionState:
    """Replay one asset's ledger at its live price (stored price as fallback).

    Cash is held at its stored price and never quoted, even with a symbol.
    """
    transactions = store.list_transactions(asset.id)
    price = None
    if feed is not None and asset.symbol and not asset.is_cash:
        price = feed.current_price(asset.symbol)
        if price is None:
            logger.debug("No live price for %s; using stored price", asset.symbol)
    return compute_position(asset, transactions, price)


def value_portfolio(
    store: LedgerStore,
    feed: Any,
    portfolio_id: int,
    *,
    max_workers: int = VALUATION_DEFAULTS["max_workers"],
) -> PortfolioTotals:
    """Value every asset in parallel, then aggregate.

    Parameters:
        store: Ledger store.
        feed: Price feed with ``current_price(symbol)``, or None to value
            at stored prices only.
        portfolio_id: Portfolio to value.
        max_workers: Thread pool size for the per-asset fan-out.

    Returns:
        PortfolioTotals with positions in the store's asset order.

    Raises:
        NotFoundError: the portfolio does not exist.
    """
    portfolio = store.get_portfolio(portfolio_id)
    assets = store.list_assets(portfolio_id)
    if not assets:
        return compute_portfolio_totals(portfolio, [])

    positions: list[PositionState | None] = [None] * len(assets)
    workers = max(1, min(max_workers, len(assets)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(value_asset, store, feed, asset): i
            for i, asset in enumerate(assets)
        }
        for future in as_completed(futures):
            positions[futures[future]] = future.result()

    logger.debug("Valued %d assets for portfolio %s", len(assets), portfolio_id)
    return compute_portfolio_totals(portfolio, positions)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

def _price_timestamp(feed: Any, today: date) -> str:
    stamp = getattr(feed, "price_timestamp", None)
    return stamp() if callable(stamp) else today.isoformat()


def portfolio_analytics(
    store: LedgerStore,
    feed: Any,
    portfolio_id: int,
    range_token: str = "1Y",
    *,
    config: FolioConfig | None = None,
    cache: AnalyticsCache | None = None,
    today: date | None = None,
    live_prices: Mapping[str, float] | None = None,
) -> AnalyticsReport:
    """Analytics for a portfolio over a symbolic range, cached when possible."""
    config = config or FolioConfig()
    today = today or date.today()
    date_range = resolve_range(range_token, today)
    analytics_cfg = config.analytics

    def compute() -> AnalyticsReport:
        assets = store.list_assets(portfolio_id)
        ledgers = {a.id: store.list_transactions(a.id) for a in assets}
        series = build_time_series(
            assets,
            ledgers,
            date_range,
            feed,
            benchmark_symbol=(
                analytics_cfg.benchmark_symbol if analytics_cfg.benchmark_enabled else None
            ),
            live_prices=live_prices,
        )
        return AnalyticsEngine(analytics_cfg).compute_series(series, as_of=date_range.end_date)

    # Live prices are not part of the key; those reports are never cached.
    if cache is None or live_prices:
        store.get_portfolio(portfolio_id)
        return compute()

    key = AnalyticsCacheKey(
        portfolio_id=portfolio_id,
        ledger_version=store.ledger_version(portfolio_id),
        price_timestamp=_price_timestamp(feed, today),
        range_token=(range_token or "").strip().upper(),
    )
    return cache.get_or_compute(key, compute)


# ---------------------------------------------------------------------------
# Ledger writes
# ---------------------------------------------------------------------------

def _invalidate(cache: AnalyticsCache | None, portfolio_id: int) -> None:
    if cache is not None:
        cache.invalidate(portfolio_id)


def record_transaction(
    store: LedgerStore,
    asset_id: int,
    record: Mapping[str, Any],
    cache: AnalyticsCache | None = None,
) -> int:
    """Validate and store a transaction, then drop stale analytics."""
    txn_id = queries.add_transaction(store.db, asset_id, record)
    _invalidate(cache, queries.portfolio_id_for_asset(store.db, asset_id))
    return txn_id


def amend_transaction(
    store: LedgerStore,
    txn_id: int,
    changes: Mapping[str, Any],
    cache: AnalyticsCache | None = None,
) -> None:
    portfolio_id = queries.portfolio_id_for_transaction(store.db, txn_id)
    queries.update_transaction(store.db, txn_id, changes)
    _invalidate(cache, portfolio_id)


def remove_transaction(
    store: LedgerStore,
    txn_id: int,
    cache: AnalyticsCache | None = None,
) -> None:
    portfolio_id = queries.portfolio_id_for_transaction(store.db, txn_id)
    queries.delete_transaction(store.db, txn_id)
    _invalidate(cache, portfolio_id)


def remove_asset(
    store: LedgerStore,
    asset_id: int,
    cache: AnalyticsCache | None = None,
) -> None:
    portfolio_id = queries.portfolio_id_for_asset(store.db, asset_id)
    queries.delete_asset(store.db, asset_id)
    _invalidate(cache, portfolio_id)
