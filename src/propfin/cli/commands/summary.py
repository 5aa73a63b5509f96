"""Category summary commands."""

import click
from propfin.domain.category import CategoryMapper
from propfin.domain.dashboard import DashboardService
from propfin.domain.entities import AggregatedCategory, CategoryBreakdown
from propfin.domain.errors import DomainError
from propfin.cli.date_filters import period_options, resolve_cli_period
from propfin.cli.error_handling import handle_domain_error
from propfin.cli.formatting import format_currency, format_percent


def _display_rows(
    title: str,
    rows: tuple[AggregatedCategory, ...],
    subtotal,
    show_accounts: bool,
    drill_down: bool,
) -> None:
    if not rows:
        return
    click.echo(title)
    click.echo("*" * 80)
    for row in rows:
        name = row.name if row.mapped else f"{row.name} (unmapped)"
        click.echo(
            f"    {name:<40} {format_currency(row.amount):>16} "
            f"{format_percent(row.percentage):>8} {row.transaction_count:>8}"
        )
        if show_accounts and row.mapped:
            for account in row.original_accounts:
                click.echo(f"        <- {account}")
        if drill_down:
            for txn in row.transactions:
                description = (txn.description or "")[:30]
                click.echo(
                    f"        {txn.date.isoformat()}  {txn.id:<12} {description:<30} "
                    f"{format_currency(txn.amount):>14}"
                )
    click.echo("-" * 80)
    click.echo(f"{title + ' Subtotal':<44} {format_currency(subtotal):>16}")
    click.echo("=" * 80)
    click.echo()


def _display_breakdown(breakdown: CategoryBreakdown, show_accounts: bool, drill_down: bool) -> None:
    period = breakdown.period
    click.echo(f"\nCategory Summary: {period.start_date} to {period.end_date}")
    click.echo("-" * 80)
    click.echo(f"{'Category':<44} {'Total':>16} {'Share':>8} {'Txns':>8}")
    click.echo("-" * 80)

    _display_rows("Income", breakdown.income, breakdown.income_total, show_accounts, drill_down)
    _display_rows("Expense", breakdown.expenses, breakdown.expense_total, show_accounts, drill_down)

    net = breakdown.income_total + breakdown.expense_total
    click.echo(f"{'Net':<44} {format_currency(net):>16}")

    if breakdown.unmapped_accounts:
        click.echo(f"\nUnmapped accounts ({len(breakdown.unmapped_accounts)}):")
        for account in breakdown.unmapped_accounts:
            click.echo(f"  {account}")
    if breakdown.excluded_accounts:
        click.echo(f"\nExcluded bank/personal accounts: {len(breakdown.excluded_accounts)}")


@click.command("categories")
@period_options
@click.option("--show-accounts", is_flag=True, help="List the raw accounts behind each category")
@click.option("--drill-down", is_flag=True, help="List the transactions behind each category")
@click.pass_context
def categories(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    show_accounts: bool,
    drill_down: bool,
):
    """Show income and expenses by category."""
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
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not report.categories.income and not report.categories.expenses:
        click.echo("No transactions found.")
        return

    _display_breakdown(report.categories, show_accounts, drill_down)


@click.command("mapping")
@period_options
@click.pass_context
def mapping(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
):
    """Show how each raw account maps into the internal categories."""
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
        transactions, _ = service.fetch(period)
    except DomainError as e:
        handle_domain_error(ctx, e)

    mappings = service.mapper.build_mapping(transactions)
    if not mappings:
        click.echo("No transactions found.")
        return

    click.echo(f"{'Account':<36} {'Category':<22} {'Txns':>6} {'Total':>14}")
    click.echo("-" * 80)
    for m in mappings:
        if m.excluded:
            target = "(excluded)"
        elif m.is_mixed:
            target = "(mixed)"
        else:
            target = m.internal_category or "(unmapped)"
        click.echo(
            f"{m.qb_category[:36]:<36} {target:<22} {m.transaction_count:>6} "
            f"{format_currency(m.total_amount):>14}"
        )
        if m.is_mixed:
            for category in m.categories:
                click.echo(f"    -> {category}")
            if m.unmapped_count:
                click.echo(f"    -> (unmapped: {m.unmapped_count} transactions)")


@click.command("unmapped")
@period_options
@click.pass_context
def unmapped(
    ctx,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
):
    """List raw accounts that no category rule recognizes."""
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
        transactions, _ = service.fetch(period)
    except DomainError as e:
        handle_domain_error(ctx, e)

    accounts = service.mapper.unmapped_accounts(transactions)
    if not accounts:
        click.echo("All accounts are mapped.")
        return

    click.echo(f"Unmapped accounts ({len(accounts)}):")
    for account in accounts:
        click.echo(f"  {account}")


@click.command("validate-rules")
@click.pass_context
def validate_rules(ctx):
    """Check the category rule table against the taxonomy."""
    report = CategoryMapper(ctx.obj["config"]).validate_rules()

    click.echo(f"Patterns: {report['total_patterns']}")
    click.echo(f"Standard categories: {len(report['standard_categories'])}")
    for standard in report["standard_without_taxonomy"]:
        click.echo(f"  No taxonomy entry for standard category: {standard}")
    for internal in report["unknown_internal"]:
        click.echo(f"  Unknown internal category: {internal}")
    for internal in report["internal_without_rules"]:
        click.echo(f"  No rule maps to: {internal}")

    if report["valid"]:
        click.echo("Rules are valid.")
    else:
        click.echo("Error: Rules are not valid.", err=True)
        ctx.exit(1)


def register_commands(cli):
    """Register category summary commands with main CLI."""
    cli.add_command(categories)
    cli.add_command(mapping)
    cli.add_command(unmapped)
    cli.add_command(validate_rules)
