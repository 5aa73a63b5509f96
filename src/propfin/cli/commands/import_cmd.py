"""CSV import commands."""

import click
from propfin.domain.csv_import import CSVImportService
from propfin.domain.errors import DomainError
from propfin.domain.ingest import SignConvention
from propfin.cli.error_handling import handle_domain_error


def _echo_result(result: dict, noun: str) -> None:
    click.echo(f"\nImport complete:")
    click.echo(f"  Imported: {result['imported']} {noun}")
    click.echo(f"  Skipped: {result['skipped']} duplicates")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


@click.command("import-transactions")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option(
    "--sign-convention",
    type=click.Choice([c.value for c in SignConvention]),
    default=SignConvention.SIGNED.value,
    show_default=True,
    help="signed: negative amounts are expenses; type-flag: amounts are magnitudes "
    "and the type column says income or expense",
)
@click.pass_context
def import_transactions(ctx, csv_file: str, sign_convention: str):
    """Import transactions from a CSV file.

    Required columns: id, date, amount, category. Optional: description,
    type, property_id, vendor.
    """
    db = ctx.obj["db"]
    service = CSVImportService(db)

    try:
        result = service.import_transactions(
            csv_file_path=csv_file, convention=SignConvention(sign_convention)
        )
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
    _echo_result(result, "transactions")


@click.command("import-properties")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--replace", is_flag=True, help="Overwrite months that are already stored")
@click.pass_context
def import_properties(ctx, csv_file: str, replace: bool):
    """Import property-month figures from a CSV file.

    Required columns: property_id, property_name, month (YYYY-MM). Optional:
    home_category, gross_revenue, total_expenses, net_income, lifetime_total.
    """
    db = ctx.obj["db"]
    service = CSVImportService(db)

    try:
        result = service.import_properties(csv_file_path=csv_file, replace=replace)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
    _echo_result(result, "property months")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_transactions)
    cli.add_command(import_properties)
