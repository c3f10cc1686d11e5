"""Shared test fixtures for Folio.

Provides reusable fixtures for the database, config, ledger records,
deterministic price series and an in-memory price feed across all test
modules.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from folio.config.schema import FolioConfig
from folio.portfolio.ledger import Asset, Buy, Dividend, Portfolio, Sell
from folio.storage import queries
from folio.storage.database import Database
from folio.storage.migrations import ensure_schema
from folio.storage.store import LedgerStore

# ---------------------------------------------------------------------------
# Core infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
def test_config(tmp_path: Path) -> FolioConfig:
    """Default config with a temp database path."""
    return FolioConfig(database={"path": str(tmp_path / "test.db")})


@pytest.fixture
def test_db(tmp_path: Path) -> Database:
    """File database with schema applied."""
    db = Database(tmp_path / "test.db")
    ensure_schema(db)
    yield db
    db.close()


@pytest.fixture
def memory_db() -> Database:
    """In-memory database for fast unit tests."""
    db = Database(":memory:")
    ensure_schema(db)
    yield db
    db.close()


@pytest.fixture
def store(memory_db: Database) -> LedgerStore:
    return LedgerStore(memory_db)


# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------

@pytest.fixture
def portfolio() -> Portfolio:
    return Portfolio(id=1, user_id="u1", name="Core", description="Long-term holdings")


@pytest.fixture
def stock_asset() -> Asset:
    return Asset(id=1, portfolio_id=1, name="Apple", type="stock", symbol="AAPL")


@pytest.fixture
def cash_asset() -> Asset:
    return Asset(id=2, portfolio_id=1, name="Savings", type="cash")


@pytest.fixture
def buy_then_sell() -> list:
    """Buy 10 @ 100, then sell 4 @ 150."""
    return [
        Buy(date=datetime(2024, 1, 2), quantity=10, price=100, seq=1),
        Sell(date=datetime(2024, 3, 1), quantity=4, price=150, seq=2),
    ]


@pytest.fixture
def seeded(store: LedgerStore) -> dict:
    """Portfolio with two listed stocks and one cash asset.

    AAPL: buy 10 @ 100 (2024-01-02), sell 4 @ 150 (2024-06-03), dividend 5
    MSFT: buy 5 @ 200 (2024-01-02)
    Cash: buy 1000 @ 1 (2024-01-02), no symbol
    """
    db = store.db
    pid = queries.create_portfolio(db, "u1", "Core", "Long-term holdings")
    aapl = queries.create_asset(db, pid, "Apple", type="stock", symbol="AAPL", current_price=110.0)
    msft = queries.create_asset(db, pid, "Microsoft", type="stock", symbol="MSFT", current_price=210.0)
    cash = queries.create_asset(db, pid, "Savings", type="cash")

    queries.add_transaction(db, aapl, {"type": "buy", "date": "2024-01-02", "quantity": 10, "price": 100})
    queries.add_transaction(db, aapl, {"type": "sell", "date": "2024-06-03", "quantity": 4, "price": 150})
    queries.add_transaction(db, aapl, {"type": "dividend", "date": "2024-08-15", "amount": 5})
    queries.add_transaction(db, msft, {"type": "buy", "date": "2024-01-02", "quantity": 5, "price": 200})
    queries.add_transaction(db, cash, {"type": "buy", "date": "2024-01-02", "quantity": 1000, "price": 1})

    return {"portfolio_id": pid, "aapl": aapl, "msft": msft, "cash": cash}


# ---------------------------------------------------------------------------
# Price series generators (deterministic)
# ---------------------------------------------------------------------------

@pytest.fixture
def trading_days() -> pd.DatetimeIndex:
    """Business days of 2024."""
    return pd.bdate_range("2024-01-01", "2024-12-31")


def random_walk(index: pd.DatetimeIndex, start: float, drift: float, vol: float, seed: int) -> pd.Series:
    np.random.seed(seed)
    values = start * np.cumprod(1 + np.random.normal(drift, vol, len(index)))
    return pd.Series(values, index=index)


@pytest.fixture
def aapl_prices(trading_days) -> pd.Series:
    """AAPL closes over 2024 (seed=42)."""
    return random_walk(trading_days, 100.0, 0.0005, 0.01, seed=42)


@pytest.fixture
def msft_prices(trading_days) -> pd.Series:
    """MSFT closes over 2024 (seed=7)."""
    return random_walk(trading_days, 200.0, 0.0004, 0.012, seed=7)


@pytest.fixture
def spy_prices(trading_days) -> pd.Series:
    """SPY closes over 2024 (seed=99)."""
    return random_walk(trading_days, 450.0, 0.0004, 0.008, seed=99)


# ---------------------------------------------------------------------------
# Price feed
# ---------------------------------------------------------------------------

class FakePriceFeed:
    """In-memory price feed serving fixed series; records every request."""

    def __init__(
        self,
        series: dict[str, pd.Series] | None = None,
        current: dict[str, float] | None = None,
        stamp: str = "2024-12-31",
    ) -> None:
        self.series = series or {}
        self.current = current or {}
        self.stamp = stamp
        self.calls: list[tuple] = []

    def _slice(self, symbol: str, start: date, end: date) -> list[tuple[date, float]]:
        s = self.series.get(symbol)
        if s is None:
            return []
        window = s[(s.index >= pd.Timestamp(start)) & (s.index <= pd.Timestamp(end))]
        return [(ts.date(), float(v)) for ts, v in window.items()]

    def current_price(self, symbol: str) -> float | None:
        self.calls.append(("current", symbol))
        return self.current.get(symbol)

    def historical_series(self, symbol, start_date, end_date):
        self.calls.append(("history", symbol, start_date, end_date))
        return self._slice(symbol, start_date, end_date)

    def benchmark_series(self, benchmark_id, start_date, end_date):
        self.calls.append(("benchmark", benchmark_id, start_date, end_date))
        return self._slice(benchmark_id, start_date, end_date)

    def price_timestamp(self) -> str:
        return self.stamp


@pytest.fixture
def fake_feed(aapl_prices, msft_prices, spy_prices) -> FakePriceFeed:
    return FakePriceFeed(
        series={"AAPL": aapl_prices, "MSFT": msft_prices, "SPY": spy_prices},
        current={"AAPL": 120.0, "MSFT": 220.0},
    )


@pytest.fixture
def dividend() -> Dividend:
    return Dividend(date=datetime(2024, 5, 1), amount=12.5, seq=3)


@pytest.fixture
def feed_factory():
    """The FakePriceFeed class, for tests that need custom series."""
    return FakePriceFeed
