"""Shared pytest fixtures for propfin tests."""

import tempfile
import os
from pathlib import Path
from datetime import date
from decimal import Decimal
import pytest

from propfin.database.factories import create_sqlite_database
from propfin.domain.entities import MonthlyFigures, Transaction, TransactionType
from propfin.domain.ingest import build_property


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def make_transaction():
    """Build sign-consistent transactions with short defaults."""
    counter = {"n": 0}

    def _make(
        amount,
        category="Rental Income",
        txn_date=date(2025, 1, 15),
        property_id=None,
        description=None,
        vendor=None,
        txn_id=None,
    ):
        counter["n"] += 1
        amount = Decimal(str(amount))
        return Transaction(
            id=txn_id or f"T{counter['n']:03d}",
            date=txn_date,
            description=description,
            amount=amount,
            raw_category=category,
            type=TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME,
            property_id=property_id,
            vendor=vendor,
        )

    return _make


@pytest.fixture
def make_property():
    """Build properties from (month, gross, expenses) triples."""

    def _make(property_id, home_category, months, name=None):
        figures = [
            MonthlyFigures(
                month=month,
                net_income=Decimal(str(gross)) - Decimal(str(expenses)),
                gross_revenue=Decimal(str(gross)),
                total_expenses=Decimal(str(expenses)),
            )
            for month, gross, expenses in months
        ]
        return build_property(property_id, name or f"Property {property_id}", home_category, figures)

    return _make


@pytest.fixture
def seeded_db(temp_db, make_transaction):
    """A database with January and February 2025 records."""
    transactions = [
        make_transaction(1000, "Rental Income", date(2025, 1, 5), "P1", txn_id="J1"),
        make_transaction(500, "Airbnb Revenue", date(2025, 1, 20), "P2", txn_id="J2"),
        make_transaction(-200, "Cleaning Services", date(2025, 1, 21), "P1", txn_id="J3"),
        make_transaction(-50, "Mystery Account", date(2025, 1, 22), txn_id="J4"),
        make_transaction(-75, "Chase Bank Checking", date(2025, 1, 23), txn_id="J5"),
        make_transaction(800, "Rental Income", date(2025, 2, 3), "P1", txn_id="F1"),
        make_transaction(-100, "Utilities:Electric", date(2025, 2, 10), "P1", txn_id="F2"),
    ]
    for txn in transactions:
        temp_db.create_transaction(txn)

    properties = [
        ("P1", "Beach House", "Property Management",
         [("2025-01", "1000", "300"), ("2025-02", "800", "100")]),
        ("P2", "City Loft", "Arbitrage", [("2025-01", "500", "450")]),
        ("P3", "Lake Cabin", "Owned", [("2025-02", "600", "200")]),
    ]
    for property_id, name, home_category, months in properties:
        temp_db.upsert_property(property_id, name, home_category)
        for month, gross, expenses in months:
            temp_db.set_property_month(
                property_id,
                MonthlyFigures(
                    month=month,
                    net_income=Decimal(gross) - Decimal(expenses),
                    gross_revenue=Decimal(gross),
                    total_expenses=Decimal(expenses),
                ),
            )
    return temp_db


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
