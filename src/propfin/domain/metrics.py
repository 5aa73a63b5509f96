"""Derived metrics and property ranking.

Every ratio here resolves a zero denominator to 0 instead of raising or
producing NaN/Infinity.
"""

from decimal import Decimal
from typing import Iterable, Optional

from propfin.config import DEFAULT_COHORT_SIZE, DEFAULT_ROI_THRESHOLD
from propfin.domain.entities import (
    HomeCategory,
    HomeCategoryBreakdown,
    Property,
    PropertyPerformance,
    PropertyRanking,
    ROIMetric,
    Trend,
)

Number = Decimal | int | float

ROI_BUCKETS = (HomeCategory.PM, HomeCategory.ARBITRAGE, HomeCategory.OWNED)


def _ratio(numerator: Number, denominator: Number) -> float:
    if not denominator:
        return 0.0
    return float(Decimal(str(numerator)) / Decimal(str(denominator)) * 100)


def compute_roi(income: Number, net_income: Number) -> float:
    """Net income as a percentage of income.

    Args:
        income: Total income
        net_income: Income minus expenses

    Returns:
        ROI percentage, or 0 when income is not positive
    """
    if income is None or income <= 0:
        return 0.0
    return _ratio(net_income, income)


def compute_profit_margin(income: Number, expenses: Number) -> float:
    """Profit margin percentage; same formula as ROI over total income."""
    if income is None or income <= 0:
        return 0.0
    return compute_roi(income, Decimal(str(income)) - Decimal(str(expenses)))


def percentage_of_total(amount: Number, total: Number) -> float:
    """Share of amount in total, as a percentage. 0 for a zero total."""
    return _ratio(amount, total)


def classify_trend(roi: float, threshold: float = DEFAULT_ROI_THRESHOLD) -> Trend:
    """Snapshot classification of a single ROI value.

    This is not a time-series trend: it only compares one value against the
    threshold and zero.
    """
    if roi >= threshold:
        return Trend.UP
    if roi < 0:
        return Trend.DOWN
    return Trend.STABLE


def build_performance(
    properties: Iterable[Property], threshold: float = DEFAULT_ROI_THRESHOLD
) -> list[PropertyPerformance]:
    """Compute ROI and trend for each property, in input order."""
    performances = []
    for prop in properties:
        roi = compute_roi(prop.total_revenue, prop.net_income)
        performances.append(
            PropertyPerformance(
                property_id=prop.property_id,
                property_name=prop.property_name,
                home_category=prop.home_category,
                income=prop.total_revenue,
                expenses=prop.total_expenses,
                net_income=prop.net_income,
                roi=roi,
                trend=classify_trend(roi, threshold),
            )
        )
    return performances


def rank_performances(
    performances: Iterable[PropertyPerformance],
    threshold: float = DEFAULT_ROI_THRESHOLD,
    cohort_size: int = DEFAULT_COHORT_SIZE,
) -> PropertyRanking:
    """Split performances into top performers and properties needing attention.

    Only properties with positive income are ranked; a vacant property has
    no meaningful ROI.

    Args:
        performances: Property performances
        threshold: ROI below which a property may need attention
        cohort_size: Size of each cohort

    Returns:
        PropertyRanking. needs_attention holds the lowest-ROI properties
        below the threshold, worst first. top_by_income holds the highest
        earners regardless of ROI.
    """
    earning = [p for p in performances if p.income > 0]
    ordered = sorted(earning, key=lambda p: p.roi, reverse=True)
    top = ordered[:cohort_size]

    below = [p for p in ordered if p.roi < threshold]
    worst = below[-cohort_size:] if cohort_size > 0 else []
    worst.reverse()

    by_income = sorted(earning, key=lambda p: p.income, reverse=True)[:cohort_size]

    return PropertyRanking(
        top_performers=tuple(top),
        needs_attention=tuple(worst),
        top_by_income=tuple(by_income),
    )


def rank_properties(
    properties: Iterable[Property],
    threshold: float = DEFAULT_ROI_THRESHOLD,
    cohort_size: int = DEFAULT_COHORT_SIZE,
) -> PropertyRanking:
    """Rank properties by ROI into top performer and needs-attention cohorts."""
    return rank_performances(
        build_performance(properties, threshold), threshold, cohort_size
    )


def _breakdown_rois(breakdown: HomeCategoryBreakdown) -> dict[str, float]:
    # Shared is overhead spread across properties; it stays out of the average
    rois = {}
    income = Decimal("0")
    net = Decimal("0")
    for bucket in ROI_BUCKETS:
        totals = breakdown.get(bucket)
        income += totals.income
        net += totals.net
        rois[bucket.value] = compute_roi(totals.income, totals.net)
    rois["average"] = compute_roi(income, net)
    return rois


def roi_metrics(
    current: HomeCategoryBreakdown,
    previous: Optional[HomeCategoryBreakdown] = None,
) -> dict[str, ROIMetric]:
    """ROI per home category with the percentage-point change vs a prior period.

    Args:
        current: Home category breakdown for the period
        previous: Breakdown for the prior period, if one was fetched

    Returns:
        Dict keyed by "average", "pm", "arbitrage" and "owned"
    """
    now = _breakdown_rois(current)
    before = _breakdown_rois(previous) if previous is not None else None

    metrics = {}
    for key in ("average", "pm", "arbitrage", "owned"):
        change = now[key] - before[key] if before is not None else 0.0
        metrics[key] = ROIMetric(value=now[key], change=change)
    return metrics
