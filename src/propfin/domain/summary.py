"""Summary aggregation domain service."""

import logging
import re
from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from propfin.config import EngineConfig
from propfin.domain.category import CategoryMapper
from propfin.domain.entities import (
    AggregatedCategory,
    CategoryBreakdown,
    HomeCategory,
    HomeCategoryBreakdown,
    HomeCategoryTotals,
    MonthlyPoint,
    PeriodRange,
    Property,
    PropertyRollup,
    Transaction,
    TransactionType,
)
from propfin.domain.errors import InvalidDateRangeError, unresolved_range
from propfin.domain.metrics import percentage_of_total

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def normalize_home_category_key(label: Optional[str]) -> str:
    """Lower-case a home category label and replace whitespace with hyphens."""
    return re.sub(r"\s+", "-", (label or "").strip().lower())


class SummaryService:
    """Service for folding transactions and properties into report totals."""

    def __init__(
        self,
        mapper: Optional[CategoryMapper] = None,
        config: Optional[EngineConfig] = None,
    ):
        """Initialize summary service.

        Args:
            mapper: Category mapper (built from config if omitted)
            config: Engine configuration
        """
        self.config = config or (mapper.config if mapper else EngineConfig())
        self.mapper = mapper or CategoryMapper(self.config)

    def filter_by_period(
        self, transactions: Iterable[Transaction], period: Optional[PeriodRange]
    ) -> list[Transaction]:
        """Keep transactions dated inside the period (inclusive).

        Raises:
            InvalidDateRangeError: If the period is not resolved
        """
        if period is None:
            return list(transactions)
        if not period.is_resolved:
            raise InvalidDateRangeError(unresolved_range(period.start_date, period.end_date))
        return [txn for txn in transactions if period.contains(txn.date)]

    def aggregate_by_category(
        self,
        transactions: Sequence[Transaction],
        period: Optional[PeriodRange] = None,
    ) -> CategoryBreakdown:
        """Aggregate transactions into income and expense category rows.

        Bank and personal accounts are left out entirely. Unmapped accounts
        keep their raw name as the row name and are listed separately.

        Args:
            transactions: Normalized transactions
            period: Optional period filter

        Returns:
            CategoryBreakdown with rows sorted by absolute amount

        Raises:
            InvalidDateRangeError: If the period is not resolved
        """
        in_period = self.filter_by_period(transactions, period)

        groups: dict[tuple[TransactionType, str], dict[str, Any]] = {}
        excluded: set[str] = set()
        unmapped: set[str] = set()

        for txn in in_period:
            account = (txn.raw_category or "").strip()
            classification = self.mapper.classify_transaction(txn)
            if classification.is_bank_or_personal_account:
                excluded.add(account)
                continue

            if classification.internal_category is None:
                unmapped.add(account)
                name, mapped = account, False
            else:
                name, mapped = classification.internal_category, True

            group = groups.setdefault(
                (txn.type, name),
                {"amount": ZERO, "accounts": [], "transactions": [], "mapped": mapped},
            )
            group["amount"] += txn.amount
            group["transactions"].append(txn)
            if account not in group["accounts"]:
                group["accounts"].append(account)

        if excluded:
            logger.debug("Excluded bank/personal accounts: %s", ", ".join(sorted(excluded)))

        income = self._build_rows(groups, TransactionType.INCOME)
        expenses = self._build_rows(groups, TransactionType.EXPENSE)

        return CategoryBreakdown(
            period=period,
            income=income,
            expenses=expenses,
            income_total=sum((row.amount for row in income), ZERO),
            expense_total=sum((row.amount for row in expenses), ZERO),
            unmapped_accounts=tuple(sorted(unmapped)),
            excluded_accounts=tuple(sorted(excluded)),
        )

    def _build_rows(
        self,
        groups: dict[tuple[TransactionType, str], dict[str, Any]],
        txn_type: TransactionType,
    ) -> tuple[AggregatedCategory, ...]:
        """Convert grouped totals of one type into sorted rows."""
        selected = {name: data for (t, name), data in groups.items() if t == txn_type}
        absolute_total = sum((abs(data["amount"]) for data in selected.values()), ZERO)

        rows = [
            AggregatedCategory(
                name=name,
                amount=data["amount"],
                transaction_count=len(data["transactions"]),
                type=txn_type,
                original_accounts=tuple(sorted(data["accounts"])),
                transactions=tuple(data["transactions"]),
                percentage=percentage_of_total(abs(data["amount"]), absolute_total),
                mapped=data["mapped"],
            )
            for name, data in selected.items()
        ]
        rows.sort(key=lambda row: (-abs(row.amount), row.name))
        return tuple(rows)

    def home_category_for(self, label: Optional[str]) -> Optional[HomeCategory]:
        """Bucket a home category label, or None if no rule matches."""
        key = normalize_home_category_key(label)
        if not key:
            return None
        for pattern, bucket in self.config.home_category_rules:
            if pattern in key:
                return HomeCategory(bucket)
        return None

    def aggregate_by_home_category(self, properties: Iterable[Property]) -> HomeCategoryBreakdown:
        """Bucket properties into PM / Arbitrage / Owned / Shared totals.

        Labels no rule recognizes are skipped and reported, not guessed.

        Args:
            properties: Properties with period totals

        Returns:
            HomeCategoryBreakdown
        """
        buckets: dict[HomeCategory, list[Property]] = defaultdict(list)
        skipped: list[str] = []

        for prop in properties:
            bucket = self.home_category_for(prop.home_category)
            if bucket is None:
                logger.warning(
                    "Skipping property %s with unknown home category '%s'",
                    prop.property_id,
                    prop.home_category,
                )
                if prop.home_category not in skipped:
                    skipped.append(prop.home_category)
                continue
            buckets[bucket].append(prop)

        totals = {
            bucket.value: self._home_category_totals(buckets.get(bucket, []))
            for bucket in HomeCategory
        }
        return HomeCategoryBreakdown(**totals, skipped_labels=tuple(skipped))

    def _home_category_totals(self, properties: list[Property]) -> HomeCategoryTotals:
        if not properties:
            return HomeCategoryTotals()

        income = sum((p.total_revenue for p in properties), ZERO)
        expenses = sum((p.total_expenses for p in properties), ZERO)
        net = income - expenses
        rollups = sorted(
            (
                PropertyRollup(
                    property_id=p.property_id,
                    property_name=p.property_name,
                    income=p.total_revenue,
                    expenses=p.total_expenses,
                )
                for p in properties
            ),
            key=lambda r: (-r.income, r.property_name or ""),
        )
        return HomeCategoryTotals(
            income=income,
            expenses=expenses,
            net=net,
            property_count=len(properties),
            per_property=net / len(properties),
            properties=tuple(rollups),
        )

    def monthly_figures_for(self, prop: Property) -> dict[str, tuple[Decimal, Decimal]]:
        """Return {month: (income, expenses)} for one property.

        When any month lacks gross revenue or expense figures, the property's
        totals are spread evenly over its months (total / month count). This
        is an approximation, not a reconstruction of the real monthly values.
        """
        if not prop.monthly_data:
            return {}

        complete = all(
            m.gross_revenue is not None and m.total_expenses is not None
            for m in prop.monthly_data
        )
        if complete:
            figures: dict[str, tuple[Decimal, Decimal]] = {}
            for m in prop.monthly_data:
                income, expenses = figures.get(m.month, (ZERO, ZERO))
                figures[m.month] = (income + m.gross_revenue, expenses + m.total_expenses)
            return figures

        return self.even_monthly_average(prop)

    def even_monthly_average(self, prop: Property) -> dict[str, tuple[Decimal, Decimal]]:
        """Spread a property's totals evenly over the months it reported."""
        months = sorted({m.month for m in prop.monthly_data})
        month_count = len(months) or 1
        income = prop.total_revenue / month_count
        expenses = prop.total_expenses / month_count
        return {month: (income, expenses) for month in months}

    def build_monthly_series(self, properties: Sequence[Property]) -> list[MonthlyPoint]:
        """Sum income and expenses per month across properties.

        Every month any property reported is present in the result; a
        property with no figures for a month contributes zero to it.

        Args:
            properties: Properties with monthly figures

        Returns:
            MonthlyPoint list in month order
        """
        all_months: set[str] = set()
        for prop in properties:
            all_months.update(m.month for m in prop.monthly_data)

        series = {month: [ZERO, ZERO] for month in all_months}
        for prop in properties:
            for month, (income, expenses) in self.monthly_figures_for(prop).items():
                series[month][0] += income
                series[month][1] += expenses

        return [
            MonthlyPoint(month=month, income=values[0], expenses=values[1])
            for month, values in sorted(series.items())
        ]

    def build_monthly_series_by_home_category(
        self, properties: Sequence[Property]
    ) -> dict[str, list[MonthlyPoint]]:
        """Monthly series per home category bucket.

        Each bucket's series covers the months seen in that bucket.
        Properties with unknown labels are left out.
        """
        grouped: dict[HomeCategory, list[Property]] = defaultdict(list)
        for prop in properties:
            bucket = self.home_category_for(prop.home_category)
            if bucket is not None:
                grouped[bucket].append(prop)

        return {
            bucket.value: self.build_monthly_series(grouped.get(bucket, []))
            for bucket in HomeCategory
        }

    def aggregate_by_property(
        self,
        transactions: Sequence[Transaction],
        period: Optional[PeriodRange] = None,
        property_names: Optional[dict[str, str]] = None,
    ) -> list[PropertyRollup]:
        """Roll transactions up per property.

        Expenses are reported as positive magnitudes. Transactions without a
        property, and bank or personal accounts, are left out.

        Raises:
            InvalidDateRangeError: If the period is not resolved
        """
        property_names = property_names or {}
        grouped: dict[str, list[Transaction]] = defaultdict(list)
        for txn in self.filter_by_period(transactions, period):
            if not txn.property_id:
                continue
            if self.mapper.classify_transaction(txn).is_bank_or_personal_account:
                continue
            grouped[txn.property_id].append(txn)

        rollups = []
        for property_id, txns in grouped.items():
            income = sum((t.amount for t in txns if t.type == TransactionType.INCOME), ZERO)
            expenses = -sum((t.amount for t in txns if t.type == TransactionType.EXPENSE), ZERO)
            rollups.append(
                PropertyRollup(
                    property_id=property_id,
                    property_name=property_names.get(property_id),
                    income=income,
                    expenses=expenses,
                    transactions=tuple(txns),
                )
            )
        rollups.sort(key=lambda r: (-r.net_income, r.property_id))
        return rollups
