"""Analytics CLI command: performance, risk and benchmark report."""

from __future__ import annotations

import json

import click

from folio.cli.common import fmt_pct, get_cache, get_config, make_feed, open_store
from folio.engine.ranges import RANGE_TOKENS


@click.command("analytics")
@click.argument("portfolio_id", type=int)
@click.option(
    "--range", "range_token",
    type=click.Choice(RANGE_TOKENS, case_sensitive=False),
    default="1Y",
    show_default=True,
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def analytics_cmd(ctx: click.Context, portfolio_id: int, range_token: str, as_json: bool) -> None:
    """Performance and risk analytics for a portfolio."""
    from folio.engine.valuation import portfolio_analytics

    config = get_config(ctx)
    feed = make_feed(ctx)
    if feed is None:
        click.echo("Price feed is disabled; analytics need price history.", err=True)
        raise SystemExit(1)

    with open_store(ctx) as store:
        report = portfolio_analytics(
            store,
            feed,
            portfolio_id,
            range_token,
            config=config,
            cache=get_cache(ctx),
        )

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    meta = report.metadata
    click.echo(
        f"Portfolio {portfolio_id} | {range_token.upper()} | "
        f"{meta['dateRange']['start']} .. {meta['dateRange']['end']} "
        f"({meta['dataPoints']} points)"
    )
    if not report.available:
        click.echo("Not enough price history for analytics in this range.")
        return

    perf, risk = report.performance, report.risk
    click.echo("\nPerformance")
    click.echo(f"  Total return:       {fmt_pct(perf.total_return)}")
    click.echo(f"  Annualized return:  {fmt_pct(perf.annualized_return)}")
    click.echo(f"  YTD return:         {fmt_pct(perf.ytd_return)}")
    click.echo(f"  Time-weighted:      {fmt_pct(perf.time_weighted_return)}")
    for window, value in perf.rolling_returns.items():
        click.echo(f"  Rolling {window:<11} {fmt_pct(value)}")
    click.echo(f"  Win rate:           {fmt_pct(perf.win_rate, 1)}")
    for label, key in (("Best month", "bestMonth"), ("Worst month", "worstMonth"),
                       ("Best year", "bestYear"), ("Worst year", "worstYear")):
        entry = perf.best_worst_periods.get(key)
        if entry:
            click.echo(f"  {label + ':':<19} {entry['period']} {fmt_pct(entry['return'])}")

    click.echo("\nRisk")
    click.echo(f"  Volatility:         {fmt_pct(risk.volatility)} ({risk.risk_level})")
    click.echo(f"  Max drawdown:       {fmt_pct(risk.max_drawdown)}")
    click.echo(f"  Sharpe ratio:       {risk.sharpe_ratio:.2f}")
    click.echo(f"  VaR (1d / 1m):      {fmt_pct(risk.value_at_risk['daily'])} / "
               f"{fmt_pct(risk.value_at_risk['monthly'])}")
    click.echo(f"  CVaR (1d):          {fmt_pct(risk.conditional_value_at_risk)}")

    if report.has_benchmark_data:
        bench = report.benchmark
        click.echo(f"\nVs. {bench.symbol}")
        click.echo(f"  Alpha:              {fmt_pct(perf.alpha)}")
        click.echo(f"  Beta:               {risk.beta:.2f}")
        click.echo(f"  Correlation:        {bench.correlation:.2f}")
        click.echo(f"  Tracking error:     {fmt_pct(bench.tracking_error)}")
        click.echo(f"  Information ratio:  {bench.information_ratio:.2f}")
        click.echo(f"  Outperformance:     {fmt_pct(bench.cumulative_outperformance)}")
    else:
        click.echo("\nNo benchmark data for this range.")
