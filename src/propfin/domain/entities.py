"""Domain model entities for propfin.

These are pure data classes representing business concepts, independent of
database schema. Source records (transactions, properties) are immutable once
ingested; every derived structure is built fresh per query and never mutated.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from propfin.domain.errors import (
    InvalidDateRangeError,
    ValidationError,
    inverted_range,
)


class TransactionType(str, Enum):
    """Direction of a transaction after sign normalization."""

    INCOME = "income"
    EXPENSE = "expense"


class HomeCategory(str, Enum):
    """Business-model bucket a property is reported under."""

    PM = "pm"
    ARBITRAGE = "arbitrage"
    OWNED = "owned"
    SHARED = "shared"


class Trend(str, Enum):
    """Snapshot ROI classification of a property."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class MetricKind(str, Enum):
    """How a compared metric should be formatted by callers."""

    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    COUNT = "count"


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    Amounts follow one sign convention: income is zero or positive, expenses
    are negative. The type must agree with the sign.
    """

    id: str
    date: date
    description: Optional[str]
    amount: Decimal
    raw_category: str
    type: TransactionType
    property_id: Optional[str] = None
    vendor: Optional[str] = None

    def __post_init__(self):
        if self.type == TransactionType.EXPENSE and self.amount > 0:
            raise ValidationError(
                f"Transaction {self.id}: expense amount must not be positive ({self.amount})"
            )
        if self.type == TransactionType.INCOME and self.amount < 0:
            raise ValidationError(
                f"Transaction {self.id}: income amount must not be negative ({self.amount})"
            )


@dataclass(frozen=True)
class MonthlyFigures:
    """One month of a property's reported figures."""

    month: str
    net_income: Decimal
    gross_revenue: Optional[Decimal] = None
    total_expenses: Optional[Decimal] = None


@dataclass(frozen=True)
class Property:
    """Property domain entity with its monthly figures."""

    property_id: str
    property_name: str
    home_category: str
    total_revenue: Decimal
    total_expenses: Decimal
    monthly_data: tuple[MonthlyFigures, ...] = ()
    lifetime_total: Decimal = Decimal("0")

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses


@dataclass(frozen=True)
class PeriodRange:
    """Inclusive date range.

    Either bound may be missing only for a custom range that the caller has
    not finished entering; such a range is not resolved and must not be used
    as a query window.
    """

    start_date: Optional[date]
    end_date: Optional[date]

    def __post_init__(self):
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise InvalidDateRangeError(inverted_range(self.start_date, self.end_date))

    @property
    def is_resolved(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def days(self) -> int:
        """Number of days covered, inclusive. Zero when unresolved."""
        if not self.is_resolved:
            return 0
        return (self.end_date - self.start_date).days + 1

    def contains(self, value: date) -> bool:
        if self.start_date is not None and value < self.start_date:
            return False
        if self.end_date is not None and value > self.end_date:
            return False
        return True

    def to_dict(self) -> dict[str, str]:
        return {
            "startDate": self.start_date.isoformat() if self.start_date else "",
            "endDate": self.end_date.isoformat() if self.end_date else "",
        }


@dataclass(frozen=True)
class PeriodPair:
    """A period and the period it is compared against."""

    current: PeriodRange
    previous: PeriodRange


@dataclass(frozen=True)
class Classification:
    """Result of classifying a raw account name."""

    internal_category: Optional[str]
    standard_category: Optional[str] = None
    is_bank_or_personal_account: bool = False


@dataclass(frozen=True)
class CategoryMapping:
    """Raw account to internal category mapping observed in a query."""

    qb_category: str
    internal_category: Optional[str]
    transaction_count: int
    total_amount: Decimal
    excluded: bool = False
    categories: tuple[str, ...] = ()
    unmapped_count: int = 0

    @property
    def is_mixed(self) -> bool:
        """True when the account's transactions do not all land in one row."""
        return len(self.categories) + (1 if self.unmapped_count else 0) > 1


@dataclass(frozen=True)
class AggregatedCategory:
    """Category total with the exact transactions that produced it."""

    name: str
    amount: Decimal
    transaction_count: int
    type: TransactionType
    original_accounts: tuple[str, ...]
    transactions: tuple[Transaction, ...]
    percentage: float = 0.0
    mapped: bool = True


@dataclass(frozen=True)
class CategoryBreakdown:
    """Income and expense category rows for one period."""

    period: Optional[PeriodRange]
    income: tuple[AggregatedCategory, ...]
    expenses: tuple[AggregatedCategory, ...]
    income_total: Decimal
    expense_total: Decimal
    unmapped_accounts: tuple[str, ...] = ()
    excluded_accounts: tuple[str, ...] = ()


@dataclass(frozen=True)
class PropertyRollup:
    """Per-property income and expense totals."""

    property_id: str
    income: Decimal
    expenses: Decimal
    property_name: Optional[str] = None
    transactions: tuple[Transaction, ...] = ()

    @property
    def net_income(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True)
class HomeCategoryTotals:
    """Totals for one home category bucket."""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    property_count: int = 0
    per_property: Decimal = Decimal("0")
    properties: tuple[PropertyRollup, ...] = ()


@dataclass(frozen=True)
class HomeCategoryBreakdown:
    """Totals for every home category bucket."""

    pm: HomeCategoryTotals = field(default_factory=HomeCategoryTotals)
    arbitrage: HomeCategoryTotals = field(default_factory=HomeCategoryTotals)
    owned: HomeCategoryTotals = field(default_factory=HomeCategoryTotals)
    shared: HomeCategoryTotals = field(default_factory=HomeCategoryTotals)
    skipped_labels: tuple[str, ...] = ()

    def get(self, category: HomeCategory) -> HomeCategoryTotals:
        return getattr(self, category.value)

    def items(self) -> list[tuple[HomeCategory, HomeCategoryTotals]]:
        return [(category, self.get(category)) for category in HomeCategory]


@dataclass(frozen=True)
class MonthlyPoint:
    """Income and expenses for one calendar month."""

    month: str
    income: Decimal
    expenses: Decimal

    @property
    def net_income(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True)
class ROIMetric:
    """ROI percentage and its percentage-point change vs the prior period."""

    value: float
    change: float = 0.0


@dataclass(frozen=True)
class PropertyPerformance:
    """ROI snapshot of a single property."""

    property_id: str
    property_name: str
    home_category: str
    income: Decimal
    expenses: Decimal
    net_income: Decimal
    roi: float
    trend: Trend


@dataclass(frozen=True)
class PropertyRanking:
    """Best and worst ROI cohorts, plus the highest earners."""

    top_performers: tuple[PropertyPerformance, ...]
    needs_attention: tuple[PropertyPerformance, ...]
    top_by_income: tuple[PropertyPerformance, ...] = ()


@dataclass(frozen=True)
class PeriodMetrics:
    """Headline figures for one period, used for comparisons."""

    income: float = 0.0
    expenses: float = 0.0
    net_income: float = 0.0
    profit_margin: float = 0.0
    property_count: int = 0


@dataclass(frozen=True)
class ComparisonRow:
    """Change of one metric between two periods."""

    metric: str
    label: str
    kind: MetricKind
    current: float
    previous: float
    change: float
    change_percent: float
    inverse_colors: bool = False
    is_improvement: bool = False


@dataclass(frozen=True)
class DashboardReport:
    """Everything the dashboard shows for one period."""

    period: PeriodRange
    categories: CategoryBreakdown
    home_categories: HomeCategoryBreakdown
    ranking: PropertyRanking
    monthly_series: tuple[MonthlyPoint, ...]
    roi: dict[str, ROIMetric]
    metrics: PeriodMetrics
    is_empty: bool = False
