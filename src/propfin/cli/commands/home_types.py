"""Home type (business model) commands."""

import click
from propfin.domain.dashboard import DashboardService
from propfin.domain.entities import HomeCategory
from propfin.domain.errors import DomainError
from propfin.cli.date_filters import period_options, resolve_cli_period
from propfin.cli.error_handling import handle_domain_error
from propfin.cli.formatting import format_currency

LABELS = {
    HomeCategory.PM: "Property Management",
    HomeCategory.ARBITRAGE: "Arbitrage",
    HomeCategory.OWNED: "Owned",
    HomeCategory.SHARED: "Shared",
}


@click.command("home-types")
@period_options
@click.option("--list-properties", is_flag=True, help="List the properties in each home type")
@click.option("--by-month", is_flag=True, help="Show the monthly trend of each home type")
@click.pass_context
def home_types(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    list_properties: bool,
    by_month: bool,
):
    """Show income, expenses and net income per home type."""
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
        properties = service.fetch(period)[1] if by_month else []
    except DomainError as e:
        handle_domain_error(ctx, e)

    breakdown = report.home_categories
    if not any(totals.property_count for _, totals in breakdown.items()):
        click.echo("No properties found.")
    else:
        click.echo(f"\nHome Types: {period.start_date} to {period.end_date}")
        click.echo("-" * 88)
        click.echo(
            f"{'Home Type':<22} {'Props':>5} {'Income':>14} {'Expenses':>14} "
            f"{'Net':>14} {'Per Property':>14}"
        )
        click.echo("-" * 88)
        for bucket, totals in breakdown.items():
            click.echo(
                f"{LABELS[bucket]:<22} {totals.property_count:>5} "
                f"{format_currency(totals.income):>14} {format_currency(totals.expenses):>14} "
                f"{format_currency(totals.net):>14} {format_currency(totals.per_property):>14}"
            )
            if list_properties:
                for rollup in totals.properties:
                    name = (rollup.property_name or rollup.property_id)[:24]
                    click.echo(
                        f"    {name:<24} {format_currency(rollup.income):>14} "
                        f"{format_currency(rollup.expenses):>14} "
                        f"{format_currency(rollup.net_income):>14}"
                    )

    if breakdown.skipped_labels:
        click.echo(
            f"\nSkipped unknown home types: {', '.join(repr(label) for label in breakdown.skipped_labels)}",
            err=True,
        )

    if by_month and properties:
        series = service.summary.build_monthly_series_by_home_category(properties)
        for bucket in HomeCategory:
            points = series[bucket.value]
            if not points:
                continue
            click.echo(f"\n{LABELS[bucket]}")
            click.echo("*" * 60)
            for point in points:
                click.echo(
                    f"  {point.month:<10} {format_currency(point.income):>14} "
                    f"{format_currency(point.expenses):>14} {format_currency(point.net_income):>14}"
                )


def register_commands(cli):
    """Register home type commands with main CLI."""
    cli.add_command(home_types)
