"""Property ranking command."""

import click
from propfin.domain.dashboard import DashboardService
from propfin.domain.entities import PropertyPerformance, PropertyRollup
from propfin.domain.errors import DomainError
from propfin.domain.metrics import build_performance
from propfin.cli.date_filters import period_options, resolve_cli_period
from propfin.cli.error_handling import handle_domain_error
from propfin.cli.formatting import format_currency, format_percent

TREND_MARKERS = {"up": "^", "down": "v", "stable": "-"}


def _display_performances(title: str, performances: tuple[PropertyPerformance, ...]) -> None:
    click.echo(title)
    click.echo("*" * 90)
    if not performances:
        click.echo("    (none)")
    for p in performances:
        click.echo(
            f"    {p.property_name[:28]:<28} {p.home_category[:12]:<12} "
            f"{format_currency(p.income):>14} {format_currency(p.net_income):>14} "
            f"{format_percent(p.roi):>9} {TREND_MARKERS[p.trend.value]:>3}"
        )
    click.echo()


def _display_rollups(rollups: list[PropertyRollup]) -> None:
    click.echo("Transactions by Property")
    click.echo("*" * 90)
    if not rollups:
        click.echo("    (none)")
    for rollup in rollups:
        name = rollup.property_name or rollup.property_id
        click.echo(
            f"    {name[:28]:<28} income {format_currency(rollup.income):>14} "
            f"expenses {format_currency(rollup.expenses):>14} "
            f"net {format_currency(rollup.net_income):>14}"
        )
        for txn in rollup.transactions:
            description = (txn.description or txn.raw_category)[:30]
            click.echo(
                f"        {txn.date.isoformat()}  {txn.id:<12} {description:<30} "
                f"{format_currency(txn.amount):>14}"
            )
    click.echo()


@click.command("properties")
@period_options
@click.option("--all", "show_all", is_flag=True, help="List every property, best ROI first")
@click.option(
    "--drill-down", is_flag=True, help="List the transactions recorded against each property"
)
@click.pass_context
def properties(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    show_all: bool,
    drill_down: bool,
):
    """Rank properties by ROI into top performers and needs attention."""
    config = ctx.obj["config"]
    service = DashboardService(ctx.obj["db"], config)
    period = resolve_cli_period(
        ctx,
        preset=preset,
        start_date=start_date,
        end_date=end_date,
        reference_date=reference_date,
        rolling_window_days=config.rolling_window_days,
    )

    try:
        report = service.build_report(period)
        transactions, fetched = service.fetch(period) if show_all or drill_down else ([], [])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if drill_down:
        names = {p.property_id: p.property_name for p in fetched}
        rollups = service.summary.aggregate_by_property(
            transactions, period=period, property_names=names
        )
        click.echo(f"\nProperty Transactions: {period.start_date} to {period.end_date}")
        _display_rollups(rollups)

    if not report.ranking.top_performers:
        click.echo("No properties found.")
        return

    header = (
        f"    {'Property':<28} {'Home Type':<12} {'Income':>14} {'Net Income':>14} "
        f"{'ROI':>9} {'':>3}"
    )
    click.echo(f"\nProperty ROI: {period.start_date} to {period.end_date}")
    click.echo(header)
    click.echo("-" * 90)

    if show_all:
        performances = sorted(
            build_performance(fetched, config.roi_threshold), key=lambda p: p.roi, reverse=True
        )
        _display_performances("All Properties", tuple(performances))
        return

    _display_performances(
        f"Top Performers (top {config.cohort_size})", report.ranking.top_performers
    )
    _display_performances(
        f"Needs Attention (ROI below {config.roi_threshold:g}%)", report.ranking.needs_attention
    )
    _display_performances(
        f"Top by Income (top {config.cohort_size})", report.ranking.top_by_income
    )


def register_commands(cli):
    """Register property ranking command with main CLI."""
    cli.add_command(properties)
