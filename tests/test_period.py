"""Tests for period preset resolution."""

from datetime import date, datetime

import pytest

from propfin.domain.entities import PeriodRange
from propfin.domain.errors import InvalidDateError, InvalidDateRangeError, ValidationError
from propfin.domain.period import (
    SUPPORTED_PRESETS,
    PeriodPreset,
    parse_preset,
    resolve_comparison_pair,
    resolve_preset,
)

REFERENCE = date(2025, 5, 14)


@pytest.mark.parametrize(
    "preset, expected",
    [
        ("last-30-days", (date(2025, 4, 14), date(2025, 5, 14))),
        ("this-month", (date(2025, 5, 1), date(2025, 5, 31))),
        ("last-month", (date(2025, 4, 1), date(2025, 4, 30))),
        ("this-quarter", (date(2025, 4, 1), date(2025, 6, 30))),
        ("last-quarter", (date(2025, 1, 1), date(2025, 3, 31))),
        ("last-3-months", (date(2025, 3, 1), date(2025, 5, 31))),
        ("last-6-months", (date(2024, 12, 1), date(2025, 5, 31))),
        ("this-year", (date(2025, 1, 1), date(2025, 12, 31))),
        ("last-year", (date(2024, 1, 1), date(2024, 12, 31))),
        ("month-vs-month", (date(2025, 5, 1), date(2025, 5, 31))),
        ("quarter-vs-quarter", (date(2025, 4, 1), date(2025, 6, 30))),
        ("year-vs-year", (date(2025, 1, 1), date(2025, 12, 31))),
    ],
)
def test_resolve_preset(preset, expected):
    period = resolve_preset(preset, reference_date=REFERENCE)
    assert (period.start_date, period.end_date) == expected


def test_last_quarter_wraps_to_previous_year():
    period = resolve_preset("last-quarter", reference_date=date(2025, 2, 10))
    assert period.start_date == date(2024, 10, 1)
    assert period.end_date == date(2024, 12, 31)


def test_last_month_in_january():
    period = resolve_preset("last-month", reference_date=date(2025, 1, 31))
    assert period.start_date == date(2024, 12, 1)
    assert period.end_date == date(2024, 12, 31)


@pytest.mark.parametrize("preset", [p for p in SUPPORTED_PRESETS if p != "custom"])
@pytest.mark.parametrize(
    "reference",
    [date(2024, 1, 1), date(2024, 2, 29), date(2025, 3, 31), date(2025, 12, 31)],
)
def test_resolved_presets_are_ordered(preset, reference):
    period = resolve_preset(preset, reference_date=reference)
    assert period.is_resolved
    assert period.start_date <= period.end_date


def test_reference_date_accepts_strings_and_datetimes():
    from_string = resolve_preset("this-month", reference_date="2025-05-14")
    from_datetime = resolve_preset("this-month", reference_date=datetime(2025, 5, 14, 8, 30))
    assert from_string == from_datetime == resolve_preset("this-month", reference_date=REFERENCE)


def test_reference_date_defaults_to_today():
    period = resolve_preset("this-year")
    assert period.start_date == date(date.today().year, 1, 1)


def test_malformed_reference_date_raises():
    with pytest.raises(InvalidDateError):
        resolve_preset("this-month", reference_date="not a date")


def test_unknown_preset_raises():
    with pytest.raises(ValidationError) as excinfo:
        resolve_preset("next-decade", reference_date=REFERENCE)
    assert "Supported presets" in str(excinfo.value)


def test_parse_preset_normalizes_case():
    assert parse_preset(" This-Month ") == PeriodPreset.THIS_MONTH
    assert parse_preset(PeriodPreset.LAST_YEAR) == PeriodPreset.LAST_YEAR


def test_custom_returns_explicit_dates():
    period = resolve_preset("custom", start_date="2025-01-10", end_date="2025-02-20")
    assert period == PeriodRange(date(2025, 1, 10), date(2025, 2, 20))


def test_custom_allows_partial_dates():
    period = resolve_preset("custom", start_date="2025-01-10")
    assert period.start_date == date(2025, 1, 10)
    assert period.end_date is None
    assert not period.is_resolved

    empty = resolve_preset("custom", start_date="", end_date=None)
    assert not empty.is_resolved


def test_custom_inverted_dates_raise():
    with pytest.raises(InvalidDateRangeError):
        resolve_preset("custom", start_date="2025-03-01", end_date="2025-02-01")


def test_month_vs_month_pairs_full_calendar_months():
    pair = resolve_comparison_pair("month-vs-month", reference_date=date(2025, 3, 15))
    assert pair.current == PeriodRange(date(2025, 3, 1), date(2025, 3, 31))
    assert pair.previous == PeriodRange(date(2025, 2, 1), date(2025, 2, 28))


def test_quarter_vs_quarter_wraps_year():
    pair = resolve_comparison_pair("quarter-vs-quarter", reference_date=date(2025, 1, 15))
    assert pair.current == PeriodRange(date(2025, 1, 1), date(2025, 3, 31))
    assert pair.previous == PeriodRange(date(2024, 10, 1), date(2024, 12, 31))


def test_last_quarter_pair_is_adjacent():
    pair = resolve_comparison_pair("last-quarter", reference_date=date(2025, 2, 1))
    assert pair.current == PeriodRange(date(2024, 10, 1), date(2024, 12, 31))
    assert pair.previous == PeriodRange(date(2024, 7, 1), date(2024, 9, 30))


def test_year_vs_year_pair():
    pair = resolve_comparison_pair("year-vs-year", reference_date=REFERENCE)
    assert pair.previous == PeriodRange(date(2024, 1, 1), date(2024, 12, 31))


def test_rolling_window_pair_is_contiguous_and_equal_length():
    pair = resolve_comparison_pair("last-30-days", reference_date=REFERENCE)
    assert pair.current.days == pair.previous.days == 31
    assert (pair.current.start_date - pair.previous.end_date).days == 1


def test_block_pairs_are_contiguous():
    pair = resolve_comparison_pair("last-6-months", reference_date=REFERENCE)
    assert pair.current == PeriodRange(date(2024, 12, 1), date(2025, 5, 31))
    assert pair.previous == PeriodRange(date(2024, 6, 1), date(2024, 11, 30))


@pytest.mark.parametrize(
    "preset",
    ["this-month", "last-month", "month-vs-month", "this-quarter", "this-year", "last-3-months"],
)
def test_pairs_have_same_granularity(preset):
    pair = resolve_comparison_pair(preset, reference_date=date(2024, 3, 31))
    # Same number of whole calendar months on both sides
    def months(period):
        return (
            (period.end_date.year - period.start_date.year) * 12
            + period.end_date.month
            - period.start_date.month
        )

    assert months(pair.current) == months(pair.previous)
    assert pair.current.start_date.day == pair.previous.start_date.day == 1
    assert pair.previous.end_date < pair.current.start_date


def test_custom_pair_uses_caller_periods():
    current = PeriodRange(date(2025, 3, 1), date(2025, 3, 10))
    previous = PeriodRange(date(2024, 3, 1), date(2024, 3, 10))
    pair = resolve_comparison_pair("custom", current=current, previous=previous)
    assert pair.current is current
    assert pair.previous is previous


def test_custom_pair_without_periods_is_unresolved():
    pair = resolve_comparison_pair("custom")
    assert not pair.current.is_resolved
    assert not pair.previous.is_resolved


def test_rolling_window_is_configurable():
    period = resolve_preset("last-30-days", reference_date=REFERENCE, rolling_window_days=7)
    assert period.start_date == date(2025, 5, 7)
    assert period.days == 8
