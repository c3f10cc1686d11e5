"""Named query functions for the ledger database.

Reads return plain dicts (one per row); lookups by id raise
:class:`~folio.exceptions.NotFoundError` instead of returning None.
Transaction writes go through :func:`~folio.portfolio.ledger.parse_transaction`
so a malformed record never reaches the table.
"""

from __future__ import annotations

from typing import Any, Mapping

from folio.exceptions import NotFoundError
from folio.portfolio.ledger import Dividend, parse_transaction, validate_asset_type
from folio.storage.database import Database

_NOW = "strftime('%Y-%m-%d %H:%M:%f', 'now')"


def _require(row: Any, entity: str, entity_id: Any) -> dict[str, Any]:
    if row is None:
        raise NotFoundError(entity, entity_id)
    return dict(row)


# ---------------------------------------------------------------------------
# Portfolios
# ---------------------------------------------------------------------------

def create_portfolio(db: Database, user_id: str, name: str, description: str = "") -> int:
    """Insert a portfolio and return its id."""
    with db.transaction() as cur:
        cur.execute(
            "INSERT INTO portfolios (user_id, name, description) VALUES (?, ?, ?)",
            (user_id, name, description or ""),
        )
        return cur.lastrowid


def get_portfolio(db: Database, portfolio_id: int) -> dict[str, Any]:
    row = db.fetchone("SELECT * FROM portfolios WHERE id = ?", (portfolio_id,))
    return _require(row, "portfolio", portfolio_id)


def list_portfolios(db: Database, user_id: str | None = None) -> list[dict[str, Any]]:
    if user_id is None:
        rows = db.fetchall("SELECT * FROM portfolios ORDER BY id")
    else:
        rows = db.fetchall(
            "SELECT * FROM portfolios WHERE user_id = ? ORDER BY id", (user_id,)
        )
    return [dict(r) for r in rows]


def update_portfolio(
    db: Database,
    portfolio_id: int,
    *,
    name: str | None = None,
    description: str | None = None,
) -> None:
    current = get_portfolio(db, portfolio_id)
    with db.transaction() as cur:
        cur.execute(
            f"UPDATE portfolios SET name = ?, description = ?, updated_at = {_NOW} WHERE id = ?",
            (
                name if name is not None else current["name"],
                description if description is not None else current["description"],
                portfolio_id,
            ),
        )


def delete_portfolio(db: Database, portfolio_id: int) -> None:
    """Delete a portfolio with its assets and transactions."""
    get_portfolio(db, portfolio_id)
    with db.transaction() as cur:
        cur.execute("DELETE FROM portfolios WHERE id = ?", (portfolio_id,))


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

ASSET_FIELDS = ("name", "type", "symbol", "current_price", "currency", "notes")


def create_asset(
    db: Database,
    portfolio_id: int,
    name: str,
    *,
    type: str = "stock",
    symbol: str | None = None,
    current_price: float | None = None,
    currency: str | None = None,
    notes: str | None = None,
) -> int:
    """Insert an asset into an existing portfolio and return its id."""
    get_portfolio(db, portfolio_id)
    with db.transaction() as cur:
        cur.execute(
            """INSERT INTO assets (
                portfolio_id, name, type, symbol, current_price, currency, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                portfolio_id,
                name,
                validate_asset_type(type),
                symbol.upper() if symbol else None,
                current_price,
                currency,
                notes,
            ),
        )
        return cur.lastrowid


def get_asset(db: Database, asset_id: int) -> dict[str, Any]:
    row = db.fetchone("SELECT * FROM assets WHERE id = ?", (asset_id,))
    return _require(row, "asset", asset_id)


def list_assets(db: Database, portfolio_id: int) -> list[dict[str, Any]]:
    """Assets of a portfolio in creation order."""
    get_portfolio(db, portfolio_id)
    rows = db.fetchall(
        "SELECT * FROM assets WHERE portfolio_id = ? ORDER BY id", (portfolio_id,)
    )
    return [dict(r) for r in rows]


def update_asset(db: Database, asset_id: int, **fields: Any) -> None:
    unknown = set(fields) - set(ASSET_FIELDS)
    if unknown:
        raise ValueError(f"Unknown asset field(s): {', '.join(sorted(unknown))}")
    if not fields:
        return
    get_asset(db, asset_id)
    if "type" in fields:
        fields["type"] = validate_asset_type(fields["type"])
    if fields.get("symbol"):
        fields["symbol"] = fields["symbol"].upper()

    assignments = ", ".join(f"{k} = ?" for k in fields)
    with db.transaction() as cur:
        cur.execute(
            f"UPDATE assets SET {assignments}, updated_at = {_NOW} WHERE id = ?",
            (*fields.values(), asset_id),
        )


def update_asset_price(db: Database, asset_id: int, price: float | None) -> None:
    update_asset(db, asset_id, current_price=price)


def delete_asset(db: Database, asset_id: int) -> None:
    get_asset(db, asset_id)
    with db.transaction() as cur:
        cur.execute("DELETE FROM assets WHERE id = ?", (asset_id,))


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

def _txn_columns(record: Mapping[str, Any]) -> tuple:
    txn = parse_transaction(record)
    if isinstance(txn, Dividend):
        quantity, price = None, txn.amount
    else:
        quantity, price = txn.quantity, txn.price
    return (txn.kind.value, txn.date.isoformat(), quantity, price, txn.fees)


def add_transaction(db: Database, asset_id: int, record: Mapping[str, Any]) -> int:
    """Validate and insert a transaction; returns its id.

    Raises:
        NotFoundError: the asset does not exist.
        MalformedTransactionError: the record fails validation.
    """
    get_asset(db, asset_id)
    columns = _txn_columns(record)
    with db.transaction() as cur:
        cur.execute(
            """INSERT INTO transactions (asset_id, type, date, quantity, price, fees, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (asset_id, *columns, record.get("notes")),
        )
        return cur.lastrowid


def get_transaction(db: Database, txn_id: int) -> dict[str, Any]:
    row = db.fetchone("SELECT * FROM transactions WHERE id = ?", (txn_id,))
    return _require(row, "transaction", txn_id)


def list_transactions(db: Database, asset_id: int) -> list[dict[str, Any]]:
    """An asset's transactions by date, then insertion order."""
    get_asset(db, asset_id)
    rows = db.fetchall(
        "SELECT * FROM transactions WHERE asset_id = ? ORDER BY date, id", (asset_id,)
    )
    return [dict(r) for r in rows]


def update_transaction(db: Database, txn_id: int, changes: Mapping[str, Any]) -> None:
    """Apply *changes* over the stored record and re-validate the result."""
    merged = {**get_transaction(db, txn_id), **changes}
    columns = _txn_columns(merged)
    with db.transaction() as cur:
        cur.execute(
            f"""UPDATE transactions
            SET type = ?, date = ?, quantity = ?, price = ?, fees = ?, notes = ?,
                updated_at = {_NOW}
            WHERE id = ?""",
            (*columns, merged.get("notes"), txn_id),
        )


def delete_transaction(db: Database, txn_id: int) -> None:
    get_transaction(db, txn_id)
    with db.transaction() as cur:
        cur.execute("DELETE FROM transactions WHERE id = ?", (txn_id,))


def portfolio_id_for_asset(db: Database, asset_id: int) -> int:
    return get_asset(db, asset_id)["portfolio_id"]


def portfolio_id_for_transaction(db: Database, txn_id: int) -> int:
    row = db.fetchone(
        """SELECT a.portfolio_id FROM transactions t
        JOIN assets a ON a.id = t.asset_id WHERE t.id = ?""",
        (txn_id,),
    )
    return _require(row, "transaction", txn_id)["portfolio_id"]


# ---------------------------------------------------------------------------
# Versioning
# ---------------------------------------------------------------------------

def ledger_version(db: Database, portfolio_id: int) -> tuple[int, str | None, int]:
    """``(transaction count, latest updated_at, revision)`` for a portfolio.

    ``revision`` is bumped by triggers on every asset or transaction write,
    so deletes and same-millisecond edits still change the version.
    """
    revision = get_portfolio(db, portfolio_id)["revision"]
    row = db.fetchone(
        """SELECT COUNT(t.id) AS n, MAX(t.updated_at) AS last_update
        FROM transactions t JOIN assets a ON a.id = t.asset_id
        WHERE a.portfolio_id = ?""",
        (portfolio_id,),
    )
    return (int(row["n"]), row["last_update"], int(revision))
