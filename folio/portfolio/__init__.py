"""Ledger records and current-state aggregation.

Public API::

    from folio.portfolio import (
        Buy, Sell, Dividend, Asset, Portfolio,
        parse_transaction,
        PositionState, compute_position,
        PortfolioTotals, compute_portfolio_totals,
    )
"""

from folio.portfolio.allocation import (
    PortfolioTotals,
    allocation_by_type,
    asset_diversification,
    compute_portfolio_totals,
)
from folio.portfolio.ledger import (
    Asset,
    Buy,
    Dividend,
    Portfolio,
    Sell,
    Transaction,
    parse_transaction,
    sort_ledger,
)
from folio.portfolio.positions import PositionState, compute_position

__all__ = [
    "Asset",
    "Buy",
    "Dividend",
    "Portfolio",
    "Sell",
    "Transaction",
    "parse_transaction",
    "sort_ledger",
    "PositionState",
    "compute_position",
    "PortfolioTotals",
    "allocation_by_type",
    "asset_diversification",
    "compute_portfolio_totals",
]
