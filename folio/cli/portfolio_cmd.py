"""Portfolio CLI commands: create, list, show, delete."""

from __future__ import annotations

import json

import click

from folio.cli.common import fmt_money, fmt_pct, get_config, make_feed, open_store

DEFAULT_USER = "local"


@click.group("portfolio")
def portfolio_group() -> None:
    """Manage portfolios."""
    pass


@portfolio_group.command("create")
@click.argument("name")
@click.option("--description", "-d", default="", help="Free-text description")
@click.option("--user", envvar="FOLIO_USER", default=DEFAULT_USER, show_default=True)
@click.pass_context
def portfolio_create(ctx: click.Context, name: str, description: str, user: str) -> None:
    """Create a portfolio."""
    from folio.storage.queries import create_portfolio

    with open_store(ctx) as store:
        portfolio_id = create_portfolio(store.db, user, name, description)
    click.echo(f"Created portfolio {portfolio_id}: {name}")


@portfolio_group.command("list")
@click.option("--user", envvar="FOLIO_USER", default=None, help="Only this user's portfolios")
@click.pass_context
def portfolio_list(ctx: click.Context, user: str | None) -> None:
    """List portfolios."""
    with open_store(ctx) as store:
        portfolios = store.list_portfolios(user)

    if not portfolios:
        click.echo("No portfolios.")
        return

    click.echo(f"{'ID':<6} {'Name':<30} {'User':<12} Description")
    click.echo("-" * 72)
    for p in portfolios:
        click.echo(f"{p.id:<6} {p.name[:29]:<30} {p.user_id[:11]:<12} {p.description}")


@portfolio_group.command("show")
@click.argument("portfolio_id", type=int)
@click.option("--offline", is_flag=True, help="Use stored prices; skip the price feed")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def portfolio_show(ctx: click.Context, portfolio_id: int, offline: bool, as_json: bool) -> None:
    """Show positions and totals for a portfolio."""
    from folio.engine.valuation import value_portfolio

    config = get_config(ctx)
    feed = None if offline else make_feed(ctx)
    with open_store(ctx) as store:
        totals = value_portfolio(
            store, feed, portfolio_id, max_workers=config.valuation.max_workers
        )

    if as_json:
        click.echo(json.dumps(totals.to_dict(), indent=2))
        return

    click.echo(f"Portfolio {totals.portfolio.id}: {totals.portfolio.name}")
    click.echo(
        f"{'Asset':<24} {'Symbol':<8} {'Qty':>10} {'Cost':>14} "
        f"{'Value':>14} {'Change':>10} {'Alloc':>8}"
    )
    click.echo("-" * 94)
    for p in totals.positions:
        price_flag = "" if p.is_priced else "*"
        click.echo(
            f"{p.asset.name[:23]:<24} {(p.symbol or ''):<8} {p.quantity:>10.4f} "
            f"{fmt_money(p.cost_basis):>14} {fmt_money(p.current_value) + price_flag:>14} "
            f"{fmt_pct(p.change_percent, 1):>10} {fmt_pct(p.allocation, 1):>8}"
        )
    click.echo("-" * 94)
    click.echo(f"  Cost basis:    {fmt_money(totals.cost_basis)}")
    click.echo(f"  Current value: {fmt_money(totals.current_value)}")
    click.echo(
        f"  Change:        {fmt_money(totals.change)} ({fmt_pct(totals.change_percent, 1)})"
    )
    if any(not p.is_priced for p in totals.positions):
        click.echo("  * no price available; valued at 1.00 per unit")


@portfolio_group.command("delete")
@click.argument("portfolio_id", type=int)
@click.confirmation_option(prompt="Delete this portfolio and all of its assets?")
@click.pass_context
def portfolio_delete(ctx: click.Context, portfolio_id: int) -> None:
    """Delete a portfolio with its assets and transactions."""
    from folio.storage.queries import delete_portfolio

    with open_store(ctx) as store:
        delete_portfolio(store.db, portfolio_id)
    click.echo(f"Deleted portfolio {portfolio_id}.")
