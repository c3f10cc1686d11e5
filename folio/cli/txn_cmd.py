"""Transaction CLI commands: add, list, remove."""

from __future__ import annotations

from datetime import datetime

import click

from folio.cli.common import fmt_money, open_store
from folio.config.defaults import TRANSACTION_TYPES


@click.group("txn")
def txn_group() -> None:
    """Record and inspect transactions."""
    pass


@txn_group.command("add")
@click.argument("asset_id", type=int)
@click.argument("txn_type", type=click.Choice(TRANSACTION_TYPES, case_sensitive=False))
@click.option("--date", "when", default=None, help="ISO date/time (default: now)")
@click.option("--quantity", type=float, default=None, help="Units (buy/sell)")
@click.option("--price", type=float, default=None, help="Price per unit (buy/sell)")
@click.option("--amount", type=float, default=None, help="Cash received (dividend)")
@click.option("--fees", type=float, default=None)
@click.option("--notes", default=None)
@click.pass_context
def txn_add(
    ctx: click.Context,
    asset_id: int,
    txn_type: str,
    when: str | None,
    quantity: float | None,
    price: float | None,
    amount: float | None,
    fees: float | None,
    notes: str | None,
) -> None:
    """Record a buy, sell or dividend."""
    from folio.engine.valuation import record_transaction

    record = {
        "type": txn_type,
        "date": when or datetime.now().replace(microsecond=0).isoformat(),
        "quantity": quantity,
        "price": price,
        "amount": amount,
        "fees": fees,
        "notes": notes,
    }
    with open_store(ctx) as store:
        txn_id = record_transaction(store, asset_id, record)
    click.echo(f"Recorded {txn_type.lower()} {txn_id} on asset {asset_id}.")


@txn_group.command("list")
@click.argument("asset_id", type=int)
@click.pass_context
def txn_list(ctx: click.Context, asset_id: int) -> None:
    """List an asset's transactions in replay order."""
    from folio.portfolio.ledger import Dividend

    with open_store(ctx) as store:
        transactions = store.list_transactions(asset_id)

    if not transactions:
        click.echo("No transactions.")
        return

    click.echo(f"{'ID':<6} {'Date':<20} {'Type':<9} {'Qty':>10} {'Price':>12} {'Fees':>10}")
    click.echo("-" * 72)
    for t in transactions:
        qty = "" if isinstance(t, Dividend) else f"{t.quantity:.4f}"
        click.echo(
            f"{t.id:<6} {t.date.isoformat(sep=' '):<20} {t.kind.value:<9} "
            f"{qty:>10} {fmt_money(t.price):>12} {fmt_money(t.fees):>10}"
        )


@txn_group.command("remove")
@click.argument("txn_id", type=int)
@click.pass_context
def txn_remove(ctx: click.Context, txn_id: int) -> None:
    """Delete a transaction."""
    from folio.engine.valuation import remove_transaction

    with open_store(ctx) as store:
        remove_transaction(store, txn_id)
    click.echo(f"Removed transaction {txn_id}.")
