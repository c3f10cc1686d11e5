"""Property-based tests using Hypothesis.

Tests universal invariants that should hold for ANY valid input:
- Allocations sum to 100 whenever the portfolio has value
- Replaying a ledger is order-independent and deterministic
- Analytics never raise, and bounded metrics stay in bounds
- Range tokens always resolve to a window ending today
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta

import pandas as pd
from hypothesis import given, settings
from hypothesis import strategies as st

from folio.engine.analytics import compute_analytics
from folio.engine.ranges import resolve_range
from folio.engine.returns import daily_returns
from folio.engine.risk import max_drawdown
from folio.portfolio.allocation import compute_portfolio_totals
from folio.portfolio.ledger import Asset, Buy, Dividend, Portfolio, Sell
from folio.portfolio.positions import compute_position

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

quantities = st.floats(min_value=0.001, max_value=1e6, allow_nan=False, allow_infinity=False)
prices = st.floats(min_value=0.01, max_value=1e5, allow_nan=False, allow_infinity=False)
day_offsets = st.integers(min_value=0, max_value=3650)

price_lists = st.lists(
    st.floats(min_value=1.0, max_value=10000.0, allow_nan=False, allow_infinity=False),
    min_size=0,
    max_size=300,
)

BASE = datetime(2015, 1, 1)


@st.composite
def transactions(draw, min_size: int = 0, max_size: int = 30):
    """Random Buy/Sell/Dividend ledgers with unique insertion sequences."""
    n = draw(st.integers(min_value=min_size, max_value=max_size))
    out = []
    for seq in range(1, n + 1):
        when = BASE + timedelta(days=draw(day_offsets))
        kind = draw(st.sampled_from(["buy", "sell", "dividend"]))
        if kind == "buy":
            out.append(Buy(when, draw(quantities), draw(prices), seq=seq))
        elif kind == "sell":
            out.append(Sell(when, draw(quantities), draw(prices), seq=seq))
        else:
            out.append(Dividend(when, draw(prices), seq=seq))
    return out


ASSET = Asset(id=1, portfolio_id=1, name="Asset")
PORTFOLIO = Portfolio(id=1, user_id="u1", name="P")


# ---------------------------------------------------------------------------
# Position replay properties
# ---------------------------------------------------------------------------

class TestPositionProperties:
    @given(ledger=transactions(), data=st.data())
    def test_replay_order_independent(self, ledger, data):
        """Any permutation of the same ledger gives the same position."""
        shuffled = data.draw(st.permutations(ledger))
        assert compute_position(ASSET, ledger, 10.0) == compute_position(ASSET, shuffled, 10.0)

    @given(ledger=transactions(), price=prices)
    def test_quantity_is_buys_minus_sells(self, ledger, price):
        bought = sum(t.quantity for t in ledger if isinstance(t, Buy))
        sold = sum(t.quantity for t in ledger if isinstance(t, Sell))
        state = compute_position(ASSET, ledger, price)
        assert math.isclose(state.quantity, bought - sold, rel_tol=1e-9, abs_tol=1e-6)

    @given(ledger=transactions(), price=prices)
    def test_no_buys_means_zero_ratios(self, ledger, price):
        without_buys = [t for t in ledger if not isinstance(t, Buy)]
        state = compute_position(ASSET, without_buys, price)
        assert state.cost_basis == 0.0
        assert state.avg_buy_price == 0.0
        assert state.change_percent == 0.0

    @given(ledger=transactions(), price=prices)
    def test_cost_basis_never_negative(self, ledger, price):
        assert compute_position(ASSET, ledger, price).cost_basis >= 0.0


# ---------------------------------------------------------------------------
# Allocation properties
# ---------------------------------------------------------------------------

class TestAllocationProperties:
    @given(holdings=st.lists(st.tuples(quantities, prices), min_size=1, max_size=20))
    def test_allocation_sums_to_100(self, holdings):
        positions = [
            compute_position(
                Asset(id=i, portfolio_id=1, name=f"A{i}"),
                [Buy(BASE, qty, price, seq=1)],
                price,
            )
            for i, (qty, price) in enumerate(holdings)
        ]
        totals = compute_portfolio_totals(PORTFOLIO, positions)
        assert math.isclose(sum(p.allocation for p in totals.positions), 100.0, rel_tol=1e-9)
        assert all(0.0 <= p.allocation <= 100.0 + 1e-9 for p in totals.positions)

    @given(n=st.integers(min_value=0, max_value=10))
    def test_zero_value_portfolio_allocates_nothing(self, n):
        positions = [
            compute_position(Asset(id=i, portfolio_id=1, name=f"A{i}"), [], 5.0)
            for i in range(n)
        ]
        totals = compute_portfolio_totals(PORTFOLIO, positions)
        assert all(p.allocation == 0.0 for p in totals.positions)
        assert totals.change_percent == 0.0


# ---------------------------------------------------------------------------
# Analytics properties
# ---------------------------------------------------------------------------

class TestAnalyticsProperties:
    @given(values=price_lists)
    @settings(max_examples=50, deadline=None)
    def test_never_raises(self, values):
        series = pd.Series(values, index=pd.bdate_range("2023-01-02", periods=len(values)), dtype=float)
        report = compute_analytics(series)
        assert report.available == (len(values) >= 2)
        assert report.data_points == len(values)

    @given(values=price_lists, bench=price_lists)
    @settings(max_examples=50, deadline=None)
    def test_bounded_metrics(self, values, bench):
        index = pd.bdate_range("2023-01-02", periods=len(values))
        series = pd.Series(values, index=index, dtype=float)
        bench_series = pd.Series(bench[: len(values)], index=index[: len(bench)], dtype=float)
        report = compute_analytics(series, bench_series)
        if not report.available:
            return

        risk = report.risk
        assert risk.volatility >= 0.0
        assert 0.0 <= risk.max_drawdown <= 1.0
        assert risk.value_at_risk["daily"] >= 0.0
        assert risk.value_at_risk["monthly"] >= 0.0
        assert risk.conditional_value_at_risk >= 0.0
        assert risk.risk_level in {"Low", "Medium", "High"}
        assert 0.0 <= report.performance.win_rate <= 100.0
        if report.has_benchmark_data:
            assert -1.0 - 1e-9 <= report.benchmark.correlation <= 1.0 + 1e-9

    @given(values=price_lists)
    @settings(deadline=None)
    def test_returns_are_finite(self, values):
        series = pd.Series(values, index=pd.bdate_range("2023-01-02", periods=len(values)), dtype=float)
        returns = daily_returns(series)
        assert len(returns) == max(len(values) - 1, 0)
        assert returns.map(math.isfinite).all()

    @given(values=price_lists)
    def test_drawdown_bounded(self, values):
        assert 0.0 <= max_drawdown(values) <= 1.0


# ---------------------------------------------------------------------------
# Range properties
# ---------------------------------------------------------------------------

class TestRangeProperties:
    @given(
        token=st.text(max_size=5),
        today=st.dates(min_value=date(1990, 1, 1), max_value=date(2100, 12, 31)),
    )
    @settings(deadline=None)
    def test_always_resolves(self, token, today):
        r = resolve_range(token, today)
        assert r.end_date == today
        assert r.start_date <= today

    @given(today=st.dates(min_value=date(1990, 1, 1), max_value=date(2100, 12, 31)))
    def test_all_is_widest(self, today):
        widest = resolve_range("ALL", today).start_date
        for token in ("1M", "3M", "6M", "1Y", "2Y", "5Y"):
            assert resolve_range(token, today).start_date >= widest
