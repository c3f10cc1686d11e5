"""Per-asset position state replayed from the transaction ledger.

Cost basis here is the lifetime amount spent on buys.  Sells reduce the
quantity but never the cost basis, so ``change`` after a partial sale
compares today's value of the remaining shares against everything ever
deployed.  Sells are not checked against holdings: a ledger may go short.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from folio.portfolio.ledger import Asset, Buy, Dividend, Sell, Transaction, sort_ledger

# Price used for assets with no known price, so they still show up.
UNPRICED_FALLBACK = 1.0


@dataclass(frozen=True)
class PositionState:
    """Derived state of one asset at valuation time."""

    asset: Asset
    quantity: float = 0.0
    cost_basis: float = 0.0
    avg_buy_price: float = 0.0
    current_price: float = UNPRICED_FALLBACK
    current_value: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    total_dividends: float = 0.0
    total_fees: float = 0.0
    transaction_count: int = 0
    is_priced: bool = False
    allocation: float = 0.0
    """Share of the portfolio's current value in percent; set by the portfolio pass."""

    @property
    def symbol(self) -> str | None:
        return self.asset.symbol

    def to_dict(self) -> dict[str, Any]:
        return {
            "assetId": self.asset.id,
            "name": self.asset.name,
            "symbol": self.asset.symbol,
            "type": self.asset.type,
            "quantity": self.quantity,
            "costBasis": self.cost_basis,
            "avgBuyPrice": self.avg_buy_price,
            "currentPrice": self.current_price,
            "currentValue": self.current_value,
            "change": self.change,
            "changePercent": self.change_percent,
            "totalDividends": self.total_dividends,
            "isPriced": self.is_priced,
            "allocation": self.allocation,
        }


def compute_position(
    asset: Asset,
    transactions: Iterable[Transaction],
    current_price: float | None = None,
) -> PositionState:
    """Replay an asset's ledger into its current position.

    Parameters:
        asset: Static asset record.
        transactions: The asset's well-formed transactions, any order.
        current_price: Live price; falls back to ``asset.current_price``,
            then to 1.0 with ``is_priced=False``.

    Returns:
        PositionState with quantity, cost basis, value and gain/loss.
    """
    bought = 0.0
    sold = 0.0
    cost_basis = 0.0
    dividends = 0.0
    fees = 0.0
    count = 0

    for txn in sort_ledger(transactions):
        count += 1
        fees += txn.fees
        if isinstance(txn, Buy):
            bought += txn.quantity
            cost_basis += txn.quantity * txn.price
        elif isinstance(txn, Sell):
            sold += txn.quantity
        elif isinstance(txn, Dividend):
            dividends += txn.amount

    price = current_price if current_price is not None else asset.current_price
    is_priced = bool(price)
    if not is_priced:
        price = UNPRICED_FALLBACK

    quantity = bought - sold
    current_value = quantity * price
    change = current_value - cost_basis

    return PositionState(
        asset=asset,
        quantity=quantity,
        cost_basis=cost_basis,
        avg_buy_price=cost_basis / bought if bought > 0 else 0.0,
        current_price=price,
        current_value=current_value,
        change=change,
        change_percent=change * 100 / cost_basis if cost_basis > 0 else 0.0,
        total_dividends=dividends,
        total_fees=fees,
        transaction_count=count,
        is_priced=is_priced,
    )
