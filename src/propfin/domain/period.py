"""Period preset resolution.

Turns a named preset into a concrete inclusive date range relative to a
reference date, and pairs a period with the immediately preceding period of
the same granularity for comparisons.
"""

from datetime import date, timedelta
from enum import Enum
from typing import Optional

from propfin.config import DEFAULT_ROLLING_WINDOW_DAYS
from propfin.domain.entities import PeriodPair, PeriodRange
from propfin.domain.errors import (
    InvalidDateError,
    ValidationError,
    invalid_date,
    unknown_preset,
)
from propfin.utils.date_parser import (
    DateLike,
    month_end,
    month_start,
    quarter_end,
    quarter_start,
    to_date,
    year_end,
    year_start,
)


class PeriodPreset(str, Enum):
    """Named date-range shorthands."""

    LAST_30_DAYS = "last-30-days"
    THIS_MONTH = "this-month"
    LAST_MONTH = "last-month"
    THIS_QUARTER = "this-quarter"
    LAST_QUARTER = "last-quarter"
    LAST_3_MONTHS = "last-3-months"
    LAST_6_MONTHS = "last-6-months"
    THIS_YEAR = "this-year"
    LAST_YEAR = "last-year"
    MONTH_VS_MONTH = "month-vs-month"
    QUARTER_VS_QUARTER = "quarter-vs-quarter"
    YEAR_VS_YEAR = "year-vs-year"
    CUSTOM = "custom"


SUPPORTED_PRESETS = [preset.value for preset in PeriodPreset]

# Presets that step by whole calendar months: (months back to the first
# month of the period, length in months)
_MONTH_BLOCKS = {
    PeriodPreset.THIS_MONTH: (0, 1),
    PeriodPreset.MONTH_VS_MONTH: (0, 1),
    PeriodPreset.LAST_MONTH: (1, 1),
    PeriodPreset.LAST_3_MONTHS: (2, 3),
    PeriodPreset.LAST_6_MONTHS: (5, 6),
}

_QUARTER_OFFSETS = {
    PeriodPreset.THIS_QUARTER: 0,
    PeriodPreset.QUARTER_VS_QUARTER: 0,
    PeriodPreset.LAST_QUARTER: -1,
}

_YEAR_OFFSETS = {
    PeriodPreset.THIS_YEAR: 0,
    PeriodPreset.YEAR_VS_YEAR: 0,
    PeriodPreset.LAST_YEAR: -1,
}


def parse_preset(preset: str | PeriodPreset) -> PeriodPreset:
    """Normalize a preset name.

    Raises:
        ValidationError: If the preset is not recognized
    """
    if isinstance(preset, PeriodPreset):
        return preset
    try:
        return PeriodPreset(str(preset).strip().lower())
    except ValueError:
        raise ValidationError(unknown_preset(str(preset), SUPPORTED_PRESETS))


def _reference(reference_date: DateLike | None) -> date:
    if reference_date is None:
        return date.today()
    return to_date(reference_date)


def _optional_date(value: DateLike | None) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_date(value)


def _resolve(preset: PeriodPreset, ref: date, window_days: int, shift: int) -> PeriodRange:
    """Resolve a non-custom preset, `shift` periods before the current one."""
    if preset == PeriodPreset.LAST_30_DAYS:
        length = window_days + 1
        end = ref - timedelta(days=length * shift)
        return PeriodRange(end - timedelta(days=window_days), end)

    if preset in _MONTH_BLOCKS:
        back, length = _MONTH_BLOCKS[preset]
        first = -back - length * shift
        return PeriodRange(month_start(ref, first), month_end(ref, first + length - 1))

    if preset in _QUARTER_OFFSETS:
        offset = _QUARTER_OFFSETS[preset] - shift
        return PeriodRange(quarter_start(ref, offset), quarter_end(ref, offset))

    offset = _YEAR_OFFSETS[preset] - shift
    return PeriodRange(year_start(ref, offset), year_end(ref, offset))


def resolve_preset(
    preset: str | PeriodPreset,
    reference_date: DateLike | None = None,
    start_date: DateLike | None = None,
    end_date: DateLike | None = None,
    rolling_window_days: int = DEFAULT_ROLLING_WINDOW_DAYS,
) -> PeriodRange:
    """Resolve a preset into a concrete period.

    Args:
        preset: Preset name (e.g. "this-month", "last-quarter", "custom")
        reference_date: Date the preset is relative to (defaults to today)
        start_date: Explicit start, used only by "custom"
        end_date: Explicit end, used only by "custom"
        rolling_window_days: Days looked back by "last-30-days"

    Returns:
        PeriodRange. For "custom" either bound may be None, in which case the
        range is not resolved.

    Raises:
        ValidationError: If the preset is unknown
        InvalidDateError: If a date is malformed or out of range
        InvalidDateRangeError: If explicit custom dates are inverted
    """
    preset = parse_preset(preset)

    if preset == PeriodPreset.CUSTOM:
        return PeriodRange(_optional_date(start_date), _optional_date(end_date))

    ref = _reference(reference_date)
    try:
        return _resolve(preset, ref, rolling_window_days, shift=0)
    except (ValueError, OverflowError) as e:
        if isinstance(e, ValidationError):
            raise
        raise InvalidDateError(invalid_date(ref, e))


def resolve_comparison_pair(
    preset: str | PeriodPreset,
    reference_date: DateLike | None = None,
    current: PeriodRange | None = None,
    previous: PeriodRange | None = None,
    rolling_window_days: int = DEFAULT_ROLLING_WINDOW_DAYS,
) -> PeriodPair:
    """Resolve a preset into a period and the period immediately before it.

    Month, quarter and year granularities pair period N with N-1, e.g.
    "last-quarter" in Q1 pairs Q4 of the previous year with Q3. Only
    "custom" compares arbitrary periods, supplied by the caller.

    Raises:
        ValidationError: If the preset is unknown
        InvalidDateError: If the reference date is malformed or out of range
    """
    preset = parse_preset(preset)

    if preset == PeriodPreset.CUSTOM:
        return PeriodPair(
            current=current or PeriodRange(None, None),
            previous=previous or PeriodRange(None, None),
        )

    ref = _reference(reference_date)
    try:
        return PeriodPair(
            current=_resolve(preset, ref, rolling_window_days, shift=0),
            previous=_resolve(preset, ref, rolling_window_days, shift=1),
        )
    except (ValueError, OverflowError) as e:
        if isinstance(e, ValidationError):
            raise
        raise InvalidDateError(invalid_date(ref, e))
