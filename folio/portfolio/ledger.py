"""Ledger records: portfolios, assets and their transaction history.

A transaction is one of three immutable variants -- :class:`Buy`,
:class:`Sell` or :class:`Dividend` -- each carrying only the fields its kind
needs.  Loose records (rows, JSON, CLI input) enter through
:func:`parse_transaction`, which is the single place malformed input is
rejected; everything downstream assumes well-formed variants.

Every computation that replays a ledger does so in :func:`sort_ledger`
order: event ``date`` ascending, ties broken by insertion order (``seq``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Iterable, Mapping, Union

from folio.config.defaults import ASSET_TYPES
from folio.exceptions import MalformedTransactionError


class TransactionKind(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


# ---------------------------------------------------------------------------
# Transaction variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Buy:
    """Shares acquired at ``price`` per unit."""

    date: datetime
    quantity: float
    price: float
    fees: float = 0.0
    id: int | None = None
    seq: int = 0

    kind: ClassVar[TransactionKind] = TransactionKind.BUY

    @property
    def notional(self) -> float:
        return self.quantity * self.price

    @property
    def signed_quantity(self) -> float:
        return self.quantity


@dataclass(frozen=True)
class Sell:
    """Shares disposed of at ``price`` per unit."""

    date: datetime
    quantity: float
    price: float
    fees: float = 0.0
    id: int | None = None
    seq: int = 0

    kind: ClassVar[TransactionKind] = TransactionKind.SELL

    @property
    def notional(self) -> float:
        return self.quantity * self.price

    @property
    def signed_quantity(self) -> float:
        return -self.quantity


@dataclass(frozen=True)
class Dividend:
    """Cash received; does not change the share count."""

    date: datetime
    amount: float
    fees: float = 0.0
    id: int | None = None
    seq: int = 0

    kind: ClassVar[TransactionKind] = TransactionKind.DIVIDEND

    @property
    def price(self) -> float:
        """Stored amount under the legacy column name."""
        return self.amount

    @property
    def notional(self) -> float:
        return 0.0

    @property
    def signed_quantity(self) -> float:
        return 0.0


Transaction = Union[Buy, Sell, Dividend]


# ---------------------------------------------------------------------------
# Static records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Asset:
    """Static asset record; derived fields live on PositionState."""

    id: int
    portfolio_id: int
    name: str
    type: str = "stock"
    symbol: str | None = None
    current_price: float | None = None
    currency: str | None = None
    notes: str | None = None

    @property
    def is_cash(self) -> bool:
        return self.type == "cash"


@dataclass(frozen=True)
class Portfolio:
    """Static portfolio record; totals live on PortfolioTotals."""

    id: int
    user_id: str
    name: str
    description: str = ""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def to_datetime(value: Any) -> datetime:
    """Normalize a ledger timestamp to a naive UTC datetime.

    Accepts datetimes, dates, ISO-8601 strings and epoch milliseconds.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        raise TypeError(f"Unsupported date value: {value!r}")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _number(record: Mapping[str, Any], key: str, kind: str) -> float:
    raw = record.get(key)
    if raw is None:
        raise MalformedTransactionError(
            f"{kind} transaction requires {key}",
            details={"field": key, "type": kind},
        )
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedTransactionError(
            f"{kind} transaction has non-numeric {key}: {raw!r}",
            details={"field": key, "type": kind},
        ) from e
    if not math.isfinite(value) or value < 0:
        raise MalformedTransactionError(
            f"{kind} transaction has invalid {key}: {raw!r}",
            details={"field": key, "type": kind},
        )
    return value


def parse_transaction(record: Mapping[str, Any]) -> Transaction:
    """Build a transaction variant from a loose record.

    Parameters:
        record: Mapping with ``type`` (buy/sell/dividend), ``date`` and the
            kind's numeric fields.  Dividends take their cash amount from
            ``amount`` or, as stored by older clients, ``price``.

    Raises:
        MalformedTransactionError: unknown type, missing date, a Buy/Sell
            without quantity or price, a Dividend without an amount, or
            negative/non-finite numbers (fees included).
    """
    raw_type = str(record.get("type") or "").strip().lower()
    try:
        kind = TransactionKind(raw_type)
    except ValueError as e:
        raise MalformedTransactionError(
            f"Unknown transaction type: {record.get('type')!r}",
            details={"field": "type"},
        ) from e

    if record.get("date") is None:
        raise MalformedTransactionError(
            f"{kind.value} transaction requires date", details={"field": "date"}
        )
    try:
        when = to_datetime(record["date"])
    except (TypeError, ValueError) as e:
        raise MalformedTransactionError(
            f"Invalid transaction date: {record['date']!r}", details={"field": "date"}
        ) from e

    fees = 0.0 if record.get("fees") is None else _number(record, "fees", kind.value)
    txn_id = record.get("id")
    seq = int(record.get("seq") or 0)

    if kind is TransactionKind.DIVIDEND:
        key = "amount" if record.get("amount") is not None else "price"
        return Dividend(
            date=when,
            amount=_number(record, key, kind.value),
            fees=fees,
            id=txn_id,
            seq=seq,
        )

    cls = Buy if kind is TransactionKind.BUY else Sell
    return cls(
        date=when,
        quantity=_number(record, "quantity", kind.value),
        price=_number(record, "price", kind.value),
        fees=fees,
        id=txn_id,
        seq=seq,
    )


def transaction_to_dict(txn: Transaction) -> dict[str, Any]:
    """Flatten a variant back into the loose record shape."""
    out: dict[str, Any] = {
        "id": txn.id,
        "type": txn.kind.value,
        "date": txn.date.isoformat(),
        "fees": txn.fees,
    }
    if isinstance(txn, Dividend):
        out["quantity"] = None
        out["price"] = txn.amount
    else:
        out["quantity"] = txn.quantity
        out["price"] = txn.price
    return out


def sort_ledger(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Chronological replay order: date ascending, then insertion order."""
    return sorted(transactions, key=lambda t: (t.date, t.seq))


def validate_asset_type(asset_type: str) -> str:
    normalized = asset_type.strip().lower()
    if normalized not in ASSET_TYPES:
        raise ValueError(
            f"asset type must be one of {', '.join(ASSET_TYPES)}; got {asset_type!r}"
        )
    return normalized
