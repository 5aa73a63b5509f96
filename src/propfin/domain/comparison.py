"""Period-over-period comparison."""

from dataclasses import dataclass
from typing import Optional

from propfin.domain.entities import (
    CategoryBreakdown,
    ComparisonRow,
    HomeCategoryBreakdown,
    MetricKind,
    PeriodMetrics,
)
from propfin.domain.metrics import compute_profit_margin


@dataclass(frozen=True)
class MetricDefinition:
    """A compared metric and how its direction should be read."""

    name: str
    label: str
    kind: MetricKind
    inverse: bool = False


METRICS = (
    MetricDefinition("income", "Total Income", MetricKind.CURRENCY),
    MetricDefinition("expenses", "Total Expenses", MetricKind.CURRENCY, inverse=True),
    MetricDefinition("net_income", "Net Income", MetricKind.CURRENCY),
    MetricDefinition("profit_margin", "Profit Margin", MetricKind.PERCENTAGE),
    MetricDefinition("property_count", "Properties", MetricKind.COUNT),
)


def change_percent(current: float, previous: float) -> float:
    """Relative change against the magnitude of the previous value."""
    if previous == 0:
        return 0.0
    return (current - previous) / abs(previous) * 100


def compare_values(definition: MetricDefinition, current: float, previous: float) -> ComparisonRow:
    change = current - previous
    return ComparisonRow(
        metric=definition.name,
        label=definition.label,
        kind=definition.kind,
        current=current,
        previous=previous,
        change=change,
        change_percent=change_percent(current, previous),
        inverse_colors=definition.inverse,
        is_improvement=change < 0 if definition.inverse else change > 0,
    )


def compare(current: PeriodMetrics, previous: PeriodMetrics) -> list[ComparisonRow]:
    """Compare two periods metric by metric.

    The arithmetic is the same for every metric kind. Expense-like metrics
    set inverse_colors, and for them a decrease is the improvement.

    Args:
        current: Metrics of the current period
        previous: Metrics of the period compared against

    Returns:
        One ComparisonRow per metric
    """
    return [
        compare_values(
            definition,
            float(getattr(current, definition.name)),
            float(getattr(previous, definition.name)),
        )
        for definition in METRICS
    ]


def metrics_from_breakdowns(
    categories: CategoryBreakdown,
    home_categories: Optional[HomeCategoryBreakdown] = None,
) -> PeriodMetrics:
    """Headline metrics for a period.

    Expenses are reported as a positive magnitude.
    """
    income = categories.income_total
    expenses = abs(categories.expense_total)
    property_count = 0
    if home_categories is not None:
        property_count = sum(totals.property_count for _, totals in home_categories.items())

    return PeriodMetrics(
        income=float(income),
        expenses=float(expenses),
        net_income=float(income - expenses),
        profit_margin=compute_profit_margin(income, expenses),
        property_count=property_count,
    )
