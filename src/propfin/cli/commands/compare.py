"""Period comparison and report commands."""

import click
from propfin.domain.dashboard import DashboardService
from propfin.domain.entities import MetricKind
from propfin.domain.errors import DomainError
from propfin.cli.date_filters import (
    period_options,
    resolve_cli_period,
    resolve_cli_period_pair,
)
from propfin.cli.error_handling import handle_domain_error
from propfin.cli.formatting import format_change, format_metric, format_percent

ROI_LABELS = {
    "average": "Average ROI",
    "pm": "PM ROI",
    "arbitrage": "Arbitrage ROI",
    "owned": "Owned ROI",
}


@click.command("compare")
@period_options
@click.option("--previous-start-date", help="Start date of the compared period (custom only)")
@click.option("--previous-end-date", help="End date of the compared period (custom only)")
@click.pass_context
def compare(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    previous_start_date: str | None,
    previous_end_date: str | None,
):
    """Compare a period with the period before it.

    Named presets compare with the immediately preceding period of the same
    length; custom periods compare with --previous-start-date/--previous-end-date.
    """
    config = ctx.obj["config"]
    service = DashboardService(ctx.obj["db"], config)
    pair = resolve_cli_period_pair(
        ctx,
        preset=preset,
        start_date=start_date,
        end_date=end_date,
        reference_date=reference_date,
        previous_start_date=previous_start_date,
        previous_end_date=previous_end_date,
        rolling_window_days=config.rolling_window_days,
    )

    try:
        rows = service.compare_periods(pair)
    except DomainError as e:
        handle_domain_error(ctx, e)

    current, previous = pair.current, pair.previous
    click.echo(f"\nCurrent:  {current.start_date} to {current.end_date}")
    click.echo(f"Previous: {previous.start_date} to {previous.end_date}")
    click.echo("-" * 88)
    click.echo(
        f"{'Metric':<18} {'Current':>15} {'Previous':>15} {'Change':>16} {'Change %':>10} {'':>8}"
    )
    click.echo("-" * 88)
    for row in rows:
        if row.change == 0:
            verdict = ""
        else:
            verdict = "better" if row.is_improvement else "worse"
        click.echo(
            f"{row.label:<18} {format_metric(row.current, row.kind):>15} "
            f"{format_metric(row.previous, row.kind):>15} "
            f"{format_change(row.change, row.kind):>16} "
            f"{format_percent(row.change_percent):>10} {verdict:>8}"
        )


@click.command("report")
@period_options
@click.pass_context
def report(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
):
    """Show headline figures and ROI per home type.

    For named presets the ROI change is measured against the preceding
    period; custom periods show no change.
    """
    config = ctx.obj["config"]
    service = DashboardService(ctx.obj["db"], config)

    previous = None
    if preset == "custom" or start_date or end_date:
        period = resolve_cli_period(
            ctx,
            preset=preset,
            start_date=start_date,
            end_date=end_date,
            reference_date=reference_date,
            rolling_window_days=config.rolling_window_days,
        )
    else:
        pair = resolve_cli_period_pair(
            ctx,
            preset=preset,
            start_date=None,
            end_date=None,
            reference_date=reference_date,
            previous_start_date=None,
            previous_end_date=None,
            rolling_window_days=config.rolling_window_days,
        )
        period, previous = pair.current, pair.previous

    try:
        result = service.build_report(period, previous=previous)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nReport: {period.start_date} to {period.end_date}")
    if result.is_empty:
        click.echo("No records found for this period.")
        return

    metrics = result.metrics
    click.echo("-" * 60)
    click.echo(f"{'Total Income':<30} {format_metric(metrics.income, MetricKind.CURRENCY):>20}")
    click.echo(f"{'Total Expenses':<30} {format_metric(metrics.expenses, MetricKind.CURRENCY):>20}")
    click.echo(f"{'Net Income':<30} {format_metric(metrics.net_income, MetricKind.CURRENCY):>20}")
    click.echo(f"{'Profit Margin':<30} {format_percent(metrics.profit_margin):>20}")
    click.echo(f"{'Properties':<30} {metrics.property_count:>20}")
    click.echo("-" * 60)
    for key, label in ROI_LABELS.items():
        roi = result.roi[key]
        change = format_change(roi.change, MetricKind.PERCENTAGE) if previous else ""
        click.echo(f"{label:<30} {format_percent(roi.value):>20} {change:>8}")


def register_commands(cli):
    """Register comparison commands with main CLI."""
    cli.add_command(compare)
    cli.add_command(report)
