"""Top-level CLI entry point for Folio."""

from __future__ import annotations

import logging

import click

from folio import __version__


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option(
    "--config",
    type=click.Path(),
    default=None,
    envvar="FOLIO_CONFIG",
    help="Path to config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Folio -- portfolio valuation and performance analytics."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# Register sub-commands
from folio.cli.analytics_cmd import analytics_cmd  # noqa: E402
from folio.cli.asset_cmd import asset_group  # noqa: E402
from folio.cli.portfolio_cmd import portfolio_group  # noqa: E402
from folio.cli.txn_cmd import txn_group  # noqa: E402

cli.add_command(analytics_cmd, "analytics")
cli.add_command(asset_group, "asset")
cli.add_command(portfolio_group, "portfolio")
cli.add_command(txn_group, "txn")


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the data directory and ledger database."""
    from folio.cli.common import get_config
    from folio.config.loader import resolve_path
    from folio.storage.database import Database
    from folio.storage.migrations import ensure_schema

    config = get_config(ctx)
    db_path = resolve_path(config.database.path)
    click.echo(f"  Database: {db_path}")

    with Database(db_path) as db:
        version = ensure_schema(db)
    click.echo(f"  Schema version: {version}")

    click.echo("\nFolio initialized.")
    click.echo("Next steps:")
    click.echo('  1. Run: folio portfolio create "Retirement"')
    click.echo("  2. Run: folio asset add PORTFOLIO_ID \"Apple\" --symbol AAPL")
    click.echo("  3. Run: folio txn add ASSET_ID buy --quantity 10 --price 150")
