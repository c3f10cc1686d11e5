"""Asset CLI commands: add, list, price, remove."""

from __future__ import annotations

import click

from folio.cli.common import fmt_money, make_feed, open_store
from folio.config.defaults import ASSET_TYPES


@click.group("asset")
def asset_group() -> None:
    """Manage the assets in a portfolio."""
    pass


@asset_group.command("add")
@click.argument("portfolio_id", type=int)
@click.argument("name")
@click.option(
    "--type", "asset_type",
    type=click.Choice(ASSET_TYPES, case_sensitive=False),
    default="stock",
    show_default=True,
)
@click.option("--symbol", default=None, help="Ticker for price lookups (e.g. AAPL)")
@click.option("--price", type=float, default=None, help="Static price for unlisted assets")
@click.option("--currency", default=None)
@click.option("--notes", default=None)
@click.pass_context
def asset_add(
    ctx: click.Context,
    portfolio_id: int,
    name: str,
    asset_type: str,
    symbol: str | None,
    price: float | None,
    currency: str | None,
    notes: str | None,
) -> None:
    """Add an asset to a portfolio."""
    from folio.storage.queries import create_asset

    with open_store(ctx) as store:
        asset_id = create_asset(
            store.db,
            portfolio_id,
            name,
            type=asset_type,
            symbol=symbol,
            current_price=price,
            currency=currency,
            notes=notes,
        )
    click.echo(f"Added asset {asset_id}: {name}")


@asset_group.command("list")
@click.argument("portfolio_id", type=int)
@click.pass_context
def asset_list(ctx: click.Context, portfolio_id: int) -> None:
    """List a portfolio's assets."""
    with open_store(ctx) as store:
        assets = store.list_assets(portfolio_id)

    if not assets:
        click.echo("No assets.")
        return

    click.echo(f"{'ID':<6} {'Name':<28} {'Type':<12} {'Symbol':<8} {'Price':>12}")
    click.echo("-" * 70)
    for a in assets:
        price = fmt_money(a.current_price) if a.current_price is not None else "-"
        click.echo(
            f"{a.id:<6} {a.name[:27]:<28} {a.type:<12} {(a.symbol or ''):<8} {price:>12}"
        )


@asset_group.command("price")
@click.argument("asset_id", type=int)
@click.argument("price", type=float, required=False)
@click.pass_context
def asset_price(ctx: click.Context, asset_id: int, price: float | None) -> None:
    """Set an asset's stored price, or refresh it from the price feed."""
    from folio.storage.queries import update_asset_price

    with open_store(ctx) as store:
        asset = store.get_asset(asset_id)
        if price is None:
            feed = make_feed(ctx)
            if not asset.symbol or feed is None:
                click.echo("Asset has no symbol (or the feed is disabled); pass PRICE.", err=True)
                raise SystemExit(1)
            price = feed.current_price(asset.symbol)
            if price is None:
                click.echo(f"No price available for {asset.symbol}.", err=True)
                raise SystemExit(1)
        update_asset_price(store.db, asset_id, price)
    click.echo(f"{asset.name}: {fmt_money(price)}")


@asset_group.command("remove")
@click.argument("asset_id", type=int)
@click.pass_context
def asset_remove(ctx: click.Context, asset_id: int) -> None:
    """Remove an asset and its transactions."""
    from folio.engine.valuation import remove_asset

    with open_store(ctx) as store:
        remove_asset(store, asset_id)
    click.echo(f"Removed asset {asset_id}.")
