"""Main CLI entry point."""

import logging

import click
from propfin.config import load_config
from propfin.database.factories import create_sqlite_database
from propfin.domain.errors import DomainError

# Import and register all commands at module level
from propfin.cli.commands import (
    import_cmd,
    summary,
    home_types,
    properties,
    monthly,
    compare,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PROPFIN_DB_PATH environment variable)",
    envvar="PROPFIN_DB_PATH",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    help="Path to JSON engine configuration (overrides PROPFIN_CONFIG environment variable)",
    envvar="PROPFIN_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, config_path: str | None, verbose: bool):
    """Propfin - Property-management financial reporting.

    Import transactions and property figures, then report categorized
    income and expenses, home-type totals, property ROI rankings and
    period-over-period comparisons.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["config"] = load_config(config_path)
        except DomainError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
import_cmd.register_commands(cli)
summary.register_commands(cli)
home_types.register_commands(cli)
properties.register_commands(cli)
monthly.register_commands(cli)
compare.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
