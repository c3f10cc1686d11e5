"""Ledger store: typed read access to portfolios, assets and transactions."""

from __future__ import annotations

from typing import Any, Mapping

from folio.portfolio.ledger import Asset, Portfolio, Transaction, parse_transaction, sort_ledger
from folio.storage import queries
from folio.storage.database import Database


def row_to_portfolio(row: Mapping[str, Any]) -> Portfolio:
    return Portfolio(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row.get("description") or "",
    )


def row_to_asset(row: Mapping[str, Any]) -> Asset:
    return Asset(
        id=row["id"],
        portfolio_id=row["portfolio_id"],
        name=row["name"],
        type=row["type"],
        symbol=row.get("symbol"),
        current_price=row.get("current_price"),
        currency=row.get("currency"),
        notes=row.get("notes"),
    )


def row_to_transaction(row: Mapping[str, Any]) -> Transaction:
    return parse_transaction({**row, "seq": row["id"]})


class LedgerStore:
    """Domain-typed view over the ledger database.

    Usage::

        store = LedgerStore(db)
        for asset in store.list_assets(portfolio_id):
            txns = store.list_transactions(asset.id)
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def get_portfolio(self, portfolio_id: int) -> Portfolio:
        return row_to_portfolio(queries.get_portfolio(self.db, portfolio_id))

    def list_portfolios(self, user_id: str | None = None) -> list[Portfolio]:
        return [row_to_portfolio(r) for r in queries.list_portfolios(self.db, user_id)]

    def get_asset(self, asset_id: int) -> Asset:
        return row_to_asset(queries.get_asset(self.db, asset_id))

    def list_assets(self, portfolio_id: int) -> list[Asset]:
        return [row_to_asset(r) for r in queries.list_assets(self.db, portfolio_id)]

    def list_transactions(self, asset_id: int) -> list[Transaction]:
        """The asset's ledger in replay order."""
        rows = queries.list_transactions(self.db, asset_id)
        return sort_ledger(row_to_transaction(r) for r in rows)

    def ledgers(self, portfolio_id: int) -> dict[int, list[Transaction]]:
        """asset id -> transactions, for every asset in the portfolio."""
        return {
            asset.id: self.list_transactions(asset.id)
            for asset in self.list_assets(portfolio_id)
        }

    def ledger_version(self, portfolio_id: int) -> tuple[int, str | None, int]:
        return queries.ledger_version(self.db, portfolio_id)
