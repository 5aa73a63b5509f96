"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from propfin.domain.entities import (
    MonthlyFigures,
    Property,
    Transaction,
)


class DataSourceError(Exception):
    """A record source query failed.

    Implementations raise this (chained to the underlying driver error) so
    callers never mistake a failed fetch for an empty result.
    """


class Database(ABC):
    """Abstract database interface for propfin."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(self, transaction: Transaction) -> int:
        """Store a normalized transaction. Returns row ID."""
        pass

    @abstractmethod
    def transaction_exists(self, source_id: str) -> bool:
        """Check if a transaction with the given source id is stored."""
        pass

    @abstractmethod
    def get_transaction(self, source_id: str) -> Optional[Transaction]:
        """Get transaction by source id."""
        pass

    @abstractmethod
    def fetch_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """Fetch transactions dated within the inclusive range.

        Raises:
            DataSourceError: If the query fails
        """
        pass

    # Property operations
    @abstractmethod
    def upsert_property(
        self,
        property_id: str,
        property_name: str,
        home_category: str,
        lifetime_total: Optional[Decimal] = None,
    ) -> int:
        """Create or update a property. Returns row ID."""
        pass

    @abstractmethod
    def set_property_month(self, property_id: str, figures: MonthlyFigures) -> None:
        """Store one month of figures for a property, replacing any existing month."""
        pass

    @abstractmethod
    def get_property(self, property_id: str) -> Optional[Property]:
        """Get property by id, with all of its months."""
        pass

    @abstractmethod
    def fetch_properties(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Property]:
        """Fetch properties that reported figures for a month overlapping the range.

        Each property's monthly data and totals cover only those months.

        Raises:
            DataSourceError: If the query fails
        """
        pass
