"""Helpers shared by the CLI commands."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Generator

import click

if TYPE_CHECKING:
    from folio.config.schema import FolioConfig
    from folio.engine.cache import AnalyticsCache
    from folio.storage.store import LedgerStore


def get_config(ctx: click.Context) -> "FolioConfig":
    """Config for this invocation, loaded once."""
    from folio.config.loader import load_config

    obj = ctx.ensure_object(dict)
    if obj.get("config") is None:
        obj["config"] = load_config(obj.get("config_path"))
    return obj["config"]


def get_cache(ctx: click.Context) -> "AnalyticsCache":
    """Analytics cache for this invocation.

    It lives only as long as one command, so writes need not invalidate it;
    the ledger version in the key keeps long-lived callers consistent.
    """
    from folio.engine.cache import AnalyticsCache

    obj = ctx.ensure_object(dict)
    if obj.get("cache") is None:
        cfg = get_config(ctx).cache
        obj["cache"] = AnalyticsCache(max_entries=cfg.max_entries, enabled=cfg.enabled)
    return obj["cache"]


@contextmanager
def open_store(ctx: click.Context) -> Generator["LedgerStore", None, None]:
    """Open the configured database (migrated) as a LedgerStore.

    Folio errors raised inside the block are printed and exit with status 1.
    """
    from folio.config.loader import resolve_path
    from folio.exceptions import FolioError
    from folio.storage.database import Database
    from folio.storage.migrations import ensure_schema
    from folio.storage.store import LedgerStore

    config = get_config(ctx)
    with Database(resolve_path(config.database.path)) as db:
        ensure_schema(db)
        try:
            yield LedgerStore(db)
        except FolioError as e:
            click.echo(f"Error: {e.message}", err=True)
            raise SystemExit(1) from e


def make_feed(ctx: click.Context):
    """Configured price feed, or None when yfinance is disabled."""
    from folio.data.adapters.yfinance_adapter import YFinancePriceFeed

    cfg = get_config(ctx).price_feed.yfinance
    if not cfg.enabled:
        return None
    return YFinancePriceFeed(cfg)


def fmt_money(value: float) -> str:
    return f"${value:,.2f}"


def fmt_pct(value: float | None, scale: float = 100.0) -> str:
    """Format a fraction (or, with scale=1, a percent) as ``12.34%``."""
    if value is None:
        return "n/a"
    return f"{value * scale:.2f}%"
