"""Dashboard orchestration.

Fetches the records for a period, runs the aggregation pipeline and memoizes
the resulting report. Aggregation itself is pure; only fetching can fail.
"""

import logging
from typing import Any, Hashable, Optional

from sqlalchemy.exc import SQLAlchemyError

from propfin.config import EngineConfig
from propfin.database.base import Database, DataSourceError
from propfin.domain.category import CategoryMapper
from propfin.domain.comparison import compare, metrics_from_breakdowns
from propfin.domain.entities import (
    ComparisonRow,
    DashboardReport,
    HomeCategory,
    PeriodPair,
    PeriodRange,
    Property,
    Transaction,
)
from propfin.domain.errors import (
    InvalidDateRangeError,
    SourceUnavailableError,
    ValidationError,
    source_unavailable,
    unresolved_range,
)
from propfin.domain.metrics import rank_properties, roi_metrics
from propfin.domain.summary import SummaryService

logger = logging.getLogger(__name__)

SUPPORTED_FILTERS = ("home_category", "property_id")

CacheKey = tuple[Hashable, ...]


class RequestSequencer:
    """Discards results of requests that were superseded before completing.

    Every request takes a token from begin(); only the result of the most
    recent token is applied.
    """

    def __init__(self):
        self._latest = 0
        self.result: Any = None

    def begin(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    def complete(self, token: int, result: Any) -> bool:
        """Apply a result if its request is still the latest.

        Returns:
            True if the result was applied, False if it was stale
        """
        if not self.is_current(token):
            logger.debug("Discarding stale result for request %s (latest %s)", token, self._latest)
            return False
        self.result = result
        return True


class DashboardService:
    """Service building dashboard reports from the record store."""

    def __init__(self, db: Database, config: Optional[EngineConfig] = None):
        """Initialize dashboard service.

        Args:
            db: Record source
            config: Engine configuration
        """
        self.db = db
        self.config = config or EngineConfig()
        self.mapper = CategoryMapper(self.config)
        self.summary = SummaryService(self.mapper, self.config)
        self._cache: dict[CacheKey, DashboardReport] = {}

    def clear_cache(self) -> None:
        """Drop all memoized reports."""
        self._cache.clear()

    def _normalize_filters(self, filters: Optional[dict[str, Any]]) -> dict[str, Any]:
        normalized = {}
        for key, value in (filters or {}).items():
            if key not in SUPPORTED_FILTERS:
                raise ValidationError(
                    f"Unknown filter '{key}'. Supported filters: {', '.join(SUPPORTED_FILTERS)}"
                )
            if value is None or value == "":
                continue
            if key == "home_category":
                try:
                    value = HomeCategory(str(value).strip().lower()).value
                except ValueError:
                    raise ValidationError(
                        f"Unknown home category filter '{value}'. "
                        f"Supported: {', '.join(c.value for c in HomeCategory)}"
                    )
            normalized[key] = value
        return normalized

    def _cache_key(
        self,
        period: PeriodRange,
        filters: dict[str, Any],
        previous: Optional[PeriodRange] = None,
    ) -> CacheKey:
        prior = (previous.start_date, previous.end_date) if previous else None
        return (period.start_date, period.end_date, tuple(sorted(filters.items())), prior)

    def fetch(self, period: PeriodRange) -> tuple[list[Transaction], list[Property]]:
        """Fetch transactions and properties for a period.

        Raises:
            InvalidDateRangeError: If the period is not resolved
            SourceUnavailableError: If the record source fails
        """
        if not period.is_resolved:
            raise InvalidDateRangeError(unresolved_range(period.start_date, period.end_date))
        try:
            transactions = self.db.fetch_transactions(period.start_date, period.end_date)
            properties = self.db.fetch_properties(period.start_date, period.end_date)
        except (DataSourceError, SQLAlchemyError, OSError) as e:
            raise SourceUnavailableError(source_unavailable("fetching records", e)) from e
        return transactions, properties

    def _apply_filters(
        self,
        transactions: list[Transaction],
        properties: list[Property],
        filters: dict[str, Any],
    ) -> tuple[list[Transaction], list[Property]]:
        if "home_category" in filters:
            bucket = HomeCategory(filters["home_category"])
            properties = [
                p for p in properties if self.summary.home_category_for(p.home_category) == bucket
            ]
            property_ids = {p.property_id for p in properties}
            transactions = [t for t in transactions if t.property_id in property_ids]
        if "property_id" in filters:
            properties = [p for p in properties if p.property_id == filters["property_id"]]
            transactions = [t for t in transactions if t.property_id == filters["property_id"]]
        return transactions, properties

    def build_report(
        self,
        period: PeriodRange,
        previous: Optional[PeriodRange] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> DashboardReport:
        """Build the dashboard report for a period.

        Reports are memoized per (start, end, filters) until clear_cache().

        Args:
            period: Resolved period to report on
            previous: Optional prior period; ROI changes are measured against it
            filters: Optional "home_category" and/or "property_id" filters.
                Transactions without a property are left out when filtering.

        Returns:
            DashboardReport, with is_empty set when the period has no records

        Raises:
            InvalidDateRangeError: If a period is not resolved
            SourceUnavailableError: If the record source fails
            ValidationError: If a filter is not recognized
        """
        filters = self._normalize_filters(filters)
        key = self._cache_key(period, filters, previous)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Report cache hit for %s..%s", period.start_date, period.end_date)
            return cached

        transactions, properties = self._apply_filters(*self.fetch(period), filters)

        previous_homes = None
        if previous is not None:
            _, prev_properties = self._apply_filters(*self.fetch(previous), filters)
            previous_homes = self.summary.aggregate_by_home_category(prev_properties)

        categories = self.summary.aggregate_by_category(transactions, period)
        home_categories = self.summary.aggregate_by_home_category(properties)

        report = DashboardReport(
            period=period,
            categories=categories,
            home_categories=home_categories,
            ranking=rank_properties(
                properties, self.config.roi_threshold, self.config.cohort_size
            ),
            monthly_series=tuple(self.summary.build_monthly_series(properties)),
            roi=roi_metrics(home_categories, previous_homes),
            metrics=metrics_from_breakdowns(categories, home_categories),
            is_empty=not transactions and not properties,
        )
        if report.is_empty:
            logger.info("No records for %s..%s", period.start_date, period.end_date)

        self._cache[key] = report
        return report

    def compare_periods(
        self,
        pair: PeriodPair,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[ComparisonRow]:
        """Compare the headline metrics of two periods.

        Raises:
            InvalidDateRangeError: If either period is not resolved
            SourceUnavailableError: If the record source fails
        """
        current = self.build_report(pair.current, filters=filters)
        previous = self.build_report(pair.previous, filters=filters)
        return compare(current.metrics, previous.metrics)
