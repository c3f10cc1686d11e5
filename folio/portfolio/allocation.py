"""Portfolio totals and allocation breakdowns.

Computes:
  - Portfolio cost basis, current value, change and change percent
  - Per-asset allocation (% of current portfolio value)
  - Value-weighted allocation by asset type
  - Count-based diversification by asset type
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Sequence

from folio.portfolio.ledger import Portfolio
from folio.portfolio.positions import PositionState

# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortfolioTotals:
    """Derived portfolio fields plus the allocated positions."""

    portfolio: Portfolio
    cost_basis: float = 0.0
    current_value: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    assets_count: int = 0
    positions: tuple[PositionState, ...] = field(default_factory=tuple)

    @property
    def total_dividends(self) -> float:
        return sum(p.total_dividends for p in self.positions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "portfolioId": self.portfolio.id,
            "name": self.portfolio.name,
            "description": self.portfolio.description,
            "costBasis": self.cost_basis,
            "currentValue": self.current_value,
            "change": self.change,
            "changePercent": self.change_percent,
            "assetsCount": self.assets_count,
            "assets": [p.to_dict() for p in self.positions],
        }


# ---------------------------------------------------------------------------
# Portfolio aggregation
# ---------------------------------------------------------------------------

def compute_portfolio_totals(
    portfolio: Portfolio,
    positions: Sequence[PositionState],
) -> PortfolioTotals:
    """Sum per-asset positions into portfolio totals and set allocations.

    Parameters:
        portfolio: Static portfolio record.
        positions: One PositionState per asset (order is kept for display).

    Returns:
        PortfolioTotals whose positions carry ``allocation`` in percent.
        Allocations sum to 100 when the portfolio has value, else all are 0.
    """
    cost_basis = sum(p.cost_basis for p in positions)
    current_value = sum(p.current_value for p in positions)
    change = current_value - cost_basis

    allocated = tuple(
        replace(
            p,
            allocation=p.current_value * 100 / current_value if current_value else 0.0,
        )
        for p in positions
    )

    return PortfolioTotals(
        portfolio=portfolio,
        cost_basis=cost_basis,
        current_value=current_value,
        change=change,
        change_percent=change * 100 / cost_basis if cost_basis > 0 else 0.0,
        assets_count=len(positions),
        positions=allocated,
    )


# ---------------------------------------------------------------------------
# Type breakdowns
# ---------------------------------------------------------------------------

def allocation_by_type(positions: Sequence[PositionState]) -> dict[str, float]:
    """Value share per asset type, in percent (0 for all when total is 0)."""
    values: dict[str, float] = {}
    for p in positions:
        values[p.asset.type] = values.get(p.asset.type, 0.0) + p.current_value

    total = sum(values.values())
    return {
        asset_type: value * 100 / total if total else 0.0
        for asset_type, value in values.items()
    }


def asset_type_counts(positions: Sequence[PositionState]) -> dict[str, int]:
    """Number of assets per type."""
    return dict(Counter(p.asset.type for p in positions))


def asset_diversification(positions: Sequence[PositionState]) -> dict[str, float]:
    """Share of the asset count per type, in percent."""
    counts = asset_type_counts(positions)
    n = len(positions)
    if n == 0:
        return {}
    return {asset_type: count * 100 / n for asset_type, count in counts.items()}
