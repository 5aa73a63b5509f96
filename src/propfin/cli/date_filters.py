"""CLI helpers for period resolution."""

import functools

import click

from propfin.domain.entities import PeriodPair, PeriodRange
from propfin.domain.errors import DomainError
from propfin.domain.period import (
    SUPPORTED_PRESETS,
    PeriodPreset,
    resolve_comparison_pair,
    resolve_preset,
)
from propfin.cli.error_handling import handle_domain_error

DEFAULT_PRESET = PeriodPreset.LAST_30_DAYS.value


def period_options(func):
    """Add the --preset, --start-date, --end-date and --reference-date options."""

    @click.option(
        "--preset",
        type=click.Choice(SUPPORTED_PRESETS, case_sensitive=False),
        help=f"Named period (default: {DEFAULT_PRESET}, or custom when dates are given)",
    )
    @click.option("--start-date", help="Start date for a custom period (YYYY-MM-DD)")
    @click.option("--end-date", help="End date for a custom period (YYYY-MM-DD)")
    @click.option(
        "--reference-date",
        help="Date presets are relative to (default: today)",
    )
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


def _preset_for(ctx, preset: str | None, start_date: str | None, end_date: str | None) -> str:
    if preset is None:
        return PeriodPreset.CUSTOM.value if (start_date or end_date) else DEFAULT_PRESET
    if preset != PeriodPreset.CUSTOM.value and (start_date or end_date):
        click.echo(
            "Error: --start-date and --end-date can only be combined with --preset custom.",
            err=True,
        )
        ctx.exit(1)
    return preset


def resolve_cli_period(
    ctx,
    *,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    rolling_window_days: int,
) -> PeriodRange:
    """Resolve CLI period options into a resolved PeriodRange."""
    preset = _preset_for(ctx, preset, start_date, end_date)
    try:
        period = resolve_preset(
            preset,
            reference_date=reference_date,
            start_date=start_date,
            end_date=end_date,
            rolling_window_days=rolling_window_days,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not period.is_resolved:
        click.echo("Error: A custom period needs both --start-date and --end-date.", err=True)
        ctx.exit(1)
    return period


def resolve_cli_period_pair(
    ctx,
    *,
    preset: str | None,
    start_date: str | None,
    end_date: str | None,
    reference_date: str | None,
    previous_start_date: str | None,
    previous_end_date: str | None,
    rolling_window_days: int,
) -> PeriodPair:
    """Resolve CLI period options into a period and the period it is compared with."""
    preset = _preset_for(ctx, preset, start_date, end_date)
    if preset != PeriodPreset.CUSTOM.value and (previous_start_date or previous_end_date):
        click.echo(
            "Error: --previous-start-date and --previous-end-date can only be combined "
            "with a custom period.",
            err=True,
        )
        ctx.exit(1)

    try:
        if preset == PeriodPreset.CUSTOM.value:
            pair = resolve_comparison_pair(
                preset,
                current=resolve_preset(preset, start_date=start_date, end_date=end_date),
                previous=resolve_preset(
                    preset, start_date=previous_start_date, end_date=previous_end_date
                ),
            )
        else:
            pair = resolve_comparison_pair(
                preset,
                reference_date=reference_date,
                rolling_window_days=rolling_window_days,
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not (pair.current.is_resolved and pair.previous.is_resolved):
        click.echo(
            "Error: A custom comparison needs --start-date, --end-date, "
            "--previous-start-date and --previous-end-date.",
            err=True,
        )
        ctx.exit(1)
    return pair
