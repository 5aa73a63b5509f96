"""Normalization of raw source records into domain entities.

Source data is inconsistent about expense signs: some exports store expenses
as negative amounts, others store a positive magnitude plus a type flag. Every
record passes through here exactly once, and from then on income is never
negative and expenses are never positive.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from propfin.domain.entities import MonthlyFigures, Property, Transaction, TransactionType
from propfin.domain.errors import ValidationError
from propfin.utils.amount_parser import parse_amount
from propfin.utils.date_parser import month_key, parse_month, to_date


class SignConvention(str, Enum):
    """How a source encodes expense amounts."""

    SIGNED = "signed"
    TYPE_FLAG = "type-flag"


_TYPE_ALIASES = {
    "income": TransactionType.INCOME,
    "revenue": TransactionType.INCOME,
    "deposit": TransactionType.INCOME,
    "credit": TransactionType.INCOME,
    "expense": TransactionType.EXPENSE,
    "expenses": TransactionType.EXPENSE,
    "bill": TransactionType.EXPENSE,
    "purchase": TransactionType.EXPENSE,
    "debit": TransactionType.EXPENSE,
}


def parse_transaction_type(value: Any) -> Optional[TransactionType]:
    """Parse a source type flag. Returns None when the flag is empty.

    Raises:
        ValidationError: If the flag is not recognized
    """
    if value is None:
        return None
    if isinstance(value, TransactionType):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    if text not in _TYPE_ALIASES:
        raise ValidationError(f"Unknown transaction type '{value}'")
    return _TYPE_ALIASES[text]


def normalize_amount(
    amount: Decimal,
    type_flag: Optional[TransactionType],
    convention: SignConvention = SignConvention.SIGNED,
) -> tuple[Decimal, TransactionType]:
    """Bring an amount to the engine's sign convention.

    Args:
        amount: Amount as stored by the source
        type_flag: Source type flag, if any
        convention: How the source encodes expenses

    Returns:
        Tuple of (signed amount, type derived from the sign)

    Raises:
        ValidationError: If the type-flag convention is used without a flag
    """
    if convention == SignConvention.TYPE_FLAG:
        if type_flag is None:
            raise ValidationError("Type flag required for type-flag sign convention")
        signed = -amount if type_flag == TransactionType.EXPENSE else amount
    else:
        signed = amount

    if signed < 0:
        return signed, TransactionType.EXPENSE
    if signed > 0:
        return signed, TransactionType.INCOME
    return Decimal("0"), type_flag or TransactionType.INCOME


def _text(record: Mapping[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_transaction(
    record: Mapping[str, Any],
    convention: SignConvention = SignConvention.SIGNED,
) -> Transaction:
    """Build a Transaction from a flat source record.

    Expected keys: id, date, amount, category; optional: description, type,
    property_id, vendor. Dates and amounts may be strings.

    Raises:
        ValidationError: If a required field is missing or malformed
    """
    txn_id = _text(record, "id")
    if not txn_id:
        raise ValidationError("Missing transaction id")

    raw_date = record.get("date")
    if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
        raise ValidationError(f"Transaction {txn_id}: missing date")
    txn_date = to_date(raw_date)

    raw_amount = record.get("amount")
    amount = raw_amount if isinstance(raw_amount, Decimal) else parse_amount(raw_amount)

    type_flag = parse_transaction_type(record.get("type"))
    signed, txn_type = normalize_amount(amount, type_flag, convention)

    return Transaction(
        id=txn_id,
        date=txn_date,
        description=_text(record, "description"),
        amount=signed,
        raw_category=_text(record, "category") or "",
        type=txn_type,
        property_id=_text(record, "property_id"),
        vendor=_text(record, "vendor"),
    )


def _optional_amount(record: Mapping[str, Any], key: str) -> Optional[Decimal]:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, Decimal):
        return value
    return parse_amount(value)


def normalize_monthly_figures(record: Mapping[str, Any]) -> MonthlyFigures:
    """Build MonthlyFigures from a flat property-month record.

    Expense figures are magnitudes here; a negative value is flipped.
    Missing net income is derived from revenue and expenses.

    Raises:
        ValidationError: If the month is malformed or no figures are given
    """
    month = month_key(parse_month(record.get("month")))
    gross = _optional_amount(record, "gross_revenue")
    expenses = _optional_amount(record, "total_expenses")
    if expenses is not None:
        expenses = abs(expenses)
    net = _optional_amount(record, "net_income")

    if net is None:
        if gross is None and expenses is None:
            raise ValidationError(f"Month {month}: no figures given")
        net = (gross or Decimal("0")) - (expenses or Decimal("0"))

    return MonthlyFigures(
        month=month,
        net_income=net,
        gross_revenue=gross,
        total_expenses=expenses,
    )


def build_property(
    property_id: str,
    property_name: str,
    home_category: str,
    monthly_data: list[MonthlyFigures],
    lifetime_total: Optional[Decimal] = None,
) -> Property:
    """Build a Property whose totals are derived from its monthly figures.

    Months without a revenue figure contribute net income plus expenses
    to revenue.
    """
    ordered = tuple(sorted(monthly_data, key=lambda m: m.month))
    revenue = Decimal("0")
    expenses = Decimal("0")
    for month in ordered:
        month_expenses = month.total_expenses or Decimal("0")
        expenses += month_expenses
        if month.gross_revenue is not None:
            revenue += month.gross_revenue
        else:
            revenue += month.net_income + month_expenses

    if lifetime_total is None:
        lifetime_total = sum((m.net_income for m in ordered), Decimal("0"))

    return Property(
        property_id=property_id,
        property_name=property_name,
        home_category=home_category,
        total_revenue=revenue,
        total_expenses=expenses,
        monthly_data=ordered,
        lifetime_total=lifetime_total,
    )
