"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so schema changes stay out of the
domain services.
"""

from decimal import Decimal
from typing import Iterable, Optional

from propfin.domain import entities as domain
from propfin.domain.ingest import build_property
from propfin.database.models import (
    Property as ORMProperty,
    PropertyMonth as ORMPropertyMonth,
    Transaction as ORMTransaction,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.source_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        amount=_decimal(orm_transaction.amount),
        raw_category=orm_transaction.raw_category or "",
        type=domain.TransactionType(orm_transaction.type),
        property_id=orm_transaction.property_id,
        vendor=orm_transaction.vendor,
    )


def transaction_to_orm(txn: domain.Transaction) -> ORMTransaction:
    """Convert a domain Transaction into a new SQLAlchemy row."""
    return ORMTransaction(
        source_id=txn.id,
        date=txn.date,
        amount=txn.amount,
        type=txn.type.value,
        raw_category=txn.raw_category,
        description=txn.description,
        vendor=txn.vendor,
        property_id=txn.property_id,
    )


def month_to_domain(orm_month: ORMPropertyMonth) -> domain.MonthlyFigures:
    """Convert SQLAlchemy PropertyMonth model to domain MonthlyFigures."""
    return domain.MonthlyFigures(
        month=orm_month.month,
        net_income=_decimal(orm_month.net_income),
        gross_revenue=_decimal(orm_month.gross_revenue),
        total_expenses=_decimal(orm_month.total_expenses),
    )


def property_to_domain(
    orm_property: ORMProperty,
    months: Optional[Iterable[ORMPropertyMonth]] = None,
) -> domain.Property:
    """Convert SQLAlchemy Property model to domain Property entity.

    Totals are derived from the given months, which default to all months
    stored for the property.
    """
    if months is None:
        months = orm_property.months
    return build_property(
        property_id=orm_property.property_id,
        property_name=orm_property.property_name,
        home_category=orm_property.home_category or "",
        monthly_data=[month_to_domain(m) for m in months],
        lifetime_total=_decimal(orm_property.lifetime_total),
    )
