"""Monthly series command."""

import click
from propfin.domain.dashboard import DashboardService
from propfin.domain.errors import DomainError
from propfin.cli.date_filters import period_options, resolve_cli_period
from propfin.cli.error_handling import handle_domain_error
from propfin.cli.formatting import format_currency


@click.command("monthly")
@period_options
@click.option(
    "--home-type",
    type=click.Choice(["pm", "arbitrage", "owned", "shared"]),
    help="Only include properties of this home type",
)
@click.pass_context
def monthly(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    home_type: str | None,
):
    """Show income, expenses and net income per month."""
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
        report = service.build_report(period, filters={"home_category": home_type})
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report.monthly_series:
        click.echo("No monthly figures found.")
        return

    click.echo(f"{'Month':<10} {'Income':>16} {'Expenses':>16} {'Net':>16}")
    click.echo("-" * 61)
    for point in report.monthly_series:
        click.echo(
            f"{point.month:<10} {format_currency(point.income):>16} "
            f"{format_currency(point.expenses):>16} {format_currency(point.net_income):>16}"
        )


def register_commands(cli):
    """Register monthly command with main CLI."""
    cli.add_command(monthly)
