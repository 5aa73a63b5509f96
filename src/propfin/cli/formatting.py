"""Plain-text formatting of report values."""

from decimal import Decimal

from propfin.domain.entities import MetricKind

Number = Decimal | int | float


def format_currency(amount: Number) -> str:
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_metric(value: Number, kind: MetricKind) -> str:
    """Format a value the way its metric kind is displayed."""
    if kind == MetricKind.CURRENCY:
        return format_currency(value)
    if kind == MetricKind.PERCENTAGE:
        return format_percent(value)
    return f"{int(value):,}"


def format_change(change: Number, kind: MetricKind) -> str:
    """Signed change; percentage metrics change in percentage points."""
    sign = "+" if change > 0 else ""
    if kind == MetricKind.CURRENCY:
        return f"+{format_currency(change)}" if change > 0 else format_currency(change)
    if kind == MetricKind.PERCENTAGE:
        return f"{sign}{change:.1f} pp"
    return f"{sign}{int(change):,}"
