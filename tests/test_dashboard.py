"""Tests for DashboardService and RequestSequencer."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from propfin.config import EngineConfig
from propfin.database.base import DataSourceError
from propfin.domain.dashboard import DashboardService, RequestSequencer
from propfin.domain.entities import PeriodPair, PeriodRange, PeriodMetrics
from propfin.domain.errors import (
    InvalidDateRangeError,
    SourceUnavailableError,
    ValidationError,
)

JANUARY = PeriodRange(date(2025, 1, 1), date(2025, 1, 31))
FEBRUARY = PeriodRange(date(2025, 2, 1), date(2025, 2, 28))


class FailingSource:
    """Record source whose queries always fail."""

    def __init__(self, error):
        self.error = error

    def fetch_transactions(self, start_date=None, end_date=None):
        raise self.error

    def fetch_properties(self, start_date=None, end_date=None):
        raise self.error


def test_build_report_categories(seeded_db):
    report = DashboardService(seeded_db).build_report(JANUARY)

    categories = report.categories
    assert categories.income_total == Decimal("1500")
    # Bank account row is excluded
    assert categories.expense_total == Decimal("-250")
    assert categories.unmapped_accounts == ("Mystery Account",)
    assert categories.excluded_accounts == ("Chase Bank Checking",)
    assert not report.is_empty


def test_build_report_home_categories_and_ranking(seeded_db):
    report = DashboardService(seeded_db).build_report(JANUARY)

    assert report.home_categories.pm.income == Decimal("1000")
    assert report.home_categories.arbitrage.net == Decimal("50")
    # Lake Cabin only has February figures
    assert report.home_categories.owned.property_count == 0

    assert [p.property_id for p in report.ranking.top_performers] == ["P1", "P2"]
    assert [p.property_id for p in report.ranking.needs_attention] == ["P2"]
    assert [point.month for point in report.monthly_series] == ["2025-01"]


def test_build_report_metrics(seeded_db):
    metrics = DashboardService(seeded_db).build_report(JANUARY).metrics

    assert metrics.income == pytest.approx(1500.0)
    assert metrics.expenses == pytest.approx(250.0)
    assert metrics.net_income == pytest.approx(1250.0)
    assert metrics.property_count == 2


def test_build_report_empty_period(seeded_db):
    period = PeriodRange(date(2024, 6, 1), date(2024, 6, 30))
    report = DashboardService(seeded_db).build_report(period)

    assert report.is_empty
    assert report.metrics == PeriodMetrics()
    assert report.categories.income == ()
    assert report.ranking.top_performers == ()


def test_build_report_roi_change_against_previous(seeded_db):
    report = DashboardService(seeded_db).build_report(FEBRUARY, previous=JANUARY)

    # PM ROI: February 700/800, January 700/1000
    assert report.roi["pm"].value == pytest.approx(87.5)
    assert report.roi["pm"].change == pytest.approx(17.5)


def test_build_report_is_memoized(seeded_db):
    service = DashboardService(seeded_db)

    first = service.build_report(JANUARY)
    assert service.build_report(JANUARY) is first
    assert service.build_report(FEBRUARY) is not first

    service.clear_cache()
    assert service.build_report(JANUARY) is not first


def test_cache_is_keyed_by_filters(seeded_db):
    service = DashboardService(seeded_db)

    unfiltered = service.build_report(JANUARY)
    filtered = service.build_report(JANUARY, filters={"home_category": "pm"})

    assert filtered is not unfiltered
    assert service.build_report(JANUARY, filters={"home_category": "PM"}) is filtered


def test_home_category_filter(seeded_db):
    report = DashboardService(seeded_db).build_report(
        JANUARY, filters={"home_category": "pm"}
    )

    assert report.categories.income_total == Decimal("1000")
    assert report.categories.expense_total == Decimal("-200")
    assert [p.property_id for p in report.ranking.top_performers] == ["P1"]


def test_property_filter(seeded_db):
    report = DashboardService(seeded_db).build_report(
        JANUARY, filters={"property_id": "P2"}
    )

    assert report.categories.income_total == Decimal("500")
    assert report.categories.expenses == ()
    assert report.home_categories.arbitrage.property_count == 1


def test_empty_filter_values_are_ignored(seeded_db):
    service = DashboardService(seeded_db)
    report = service.build_report(JANUARY, filters={"home_category": None})
    assert report is service.build_report(JANUARY)


@pytest.mark.parametrize(
    "filters",
    [{"vendor": "Acme"}, {"home_category": "timeshare"}],
)
def test_invalid_filters(seeded_db, filters):
    with pytest.raises(ValidationError):
        DashboardService(seeded_db).build_report(JANUARY, filters=filters)


def test_unresolved_period_is_rejected(seeded_db):
    with pytest.raises(InvalidDateRangeError):
        DashboardService(seeded_db).build_report(PeriodRange(date(2025, 1, 1), None))


@pytest.mark.parametrize(
    "error",
    [DataSourceError("timeout"), SQLAlchemyError("connection lost"), OSError("disk gone")],
)
def test_source_failure_is_not_empty_result(error):
    service = DashboardService(FailingSource(error))

    with pytest.raises(SourceUnavailableError, match="Record source unavailable"):
        service.build_report(JANUARY)


def test_config_is_applied(seeded_db):
    config = EngineConfig(roi_threshold=5.0, cohort_size=1)
    report = DashboardService(seeded_db, config).build_report(JANUARY)

    assert [p.property_id for p in report.ranking.top_performers] == ["P1"]
    assert report.ranking.needs_attention == ()


def test_compare_periods(seeded_db):
    rows = DashboardService(seeded_db).compare_periods(PeriodPair(FEBRUARY, JANUARY))
    by_metric = {row.metric: row for row in rows}

    assert by_metric["income"].current == pytest.approx(800.0)
    assert by_metric["income"].previous == pytest.approx(1500.0)
    assert not by_metric["income"].is_improvement
    assert by_metric["expenses"].current == pytest.approx(100.0)
    assert by_metric["expenses"].is_improvement


class TestRequestSequencer:
    def test_latest_result_is_applied(self):
        sequencer = RequestSequencer()
        token = sequencer.begin()

        assert sequencer.complete(token, "report")
        assert sequencer.result == "report"

    def test_stale_result_is_discarded(self):
        sequencer = RequestSequencer()
        first = sequencer.begin()
        second = sequencer.begin()

        assert sequencer.complete(second, "new")
        assert not sequencer.complete(first, "old")
        assert sequencer.result == "new"
        assert not sequencer.is_current(first)
