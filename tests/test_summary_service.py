"""Tests for summary aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from propfin.domain.entities import (
    HomeCategory,
    MonthlyFigures,
    PeriodRange,
    Property,
    TransactionType,
)
from propfin.domain.errors import InvalidDateRangeError
from propfin.domain.summary import SummaryService, normalize_home_category_key


@pytest.fixture
def summary_service():
    return SummaryService()


def test_category_totals_sum_exactly(summary_service, make_transaction):
    transactions = [
        make_transaction(100, "Rental Income"),
        make_transaction(200, "Airbnb Revenue"),
        make_transaction(50, "Booking Revenue"),
        make_transaction(-30, "Cleaning"),
        make_transaction(-20, "Utilities"),
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    assert breakdown.income_total == Decimal("350")
    assert breakdown.expense_total == Decimal("-50")
    assert [row.name for row in breakdown.income] == ["Revenue"]
    assert breakdown.income[0].transaction_count == 3
    assert breakdown.income[0].original_accounts == (
        "Airbnb Revenue",
        "Booking Revenue",
        "Rental Income",
    )


def test_row_transactions_are_exactly_the_summed_subset(summary_service, make_transaction):
    transactions = [
        make_transaction(100, "Rental Income"),
        make_transaction(-30, "Cleaning"),
        make_transaction(-45, "Housekeeping"),
        make_transaction(-5, "Mystery Account"),
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    for row in breakdown.income + breakdown.expenses:
        assert sum(t.amount for t in row.transactions) == row.amount
        assert len(row.transactions) == row.transaction_count
    assert sum(row.transaction_count for row in breakdown.income + breakdown.expenses) == 4


def test_excluded_accounts_are_removed(summary_service, make_transaction):
    transactions = [
        make_transaction(100, "Rental Income"),
        make_transaction(-500, "Chase Checking"),
        make_transaction(250, "Transfer from Savings"),
        make_transaction(-20, "Owner Card (0561)"),
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    assert breakdown.income_total == Decimal("100")
    assert breakdown.expense_total == Decimal("0")
    assert breakdown.expenses == ()
    assert breakdown.excluded_accounts == (
        "Chase Checking",
        "Owner Card (0561)",
        "Transfer from Savings",
    )


def test_unmapped_accounts_keep_raw_name(summary_service, make_transaction):
    transactions = [
        make_transaction(-40, "Mystery Account"),
        make_transaction(-10, "Mystery Account"),
        make_transaction(-60, "Cleaning"),
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    rows = {row.name: row for row in breakdown.expenses}
    assert rows["Mystery Account"].amount == Decimal("-50")
    assert not rows["Mystery Account"].mapped
    assert rows["Cleaning"].mapped
    assert breakdown.unmapped_accounts == ("Mystery Account",)
    assert "Other Operating" not in rows


def test_income_and_expense_rows_are_not_netted(summary_service, make_transaction):
    transactions = [
        make_transaction(-100, "Cleaning"),
        make_transaction(15, "Cleaning"),  # refund
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    assert breakdown.income[0].name == "Cleaning"
    assert breakdown.income[0].amount == Decimal("15")
    assert breakdown.expenses[0].name == "Cleaning"
    assert breakdown.expenses[0].amount == Decimal("-100")


def test_rows_sorted_by_absolute_amount_then_name(summary_service, make_transaction):
    transactions = [
        make_transaction(-30, "Marketing"),
        make_transaction(-100, "Cleaning"),
        make_transaction(-30, "Insurance"),
        make_transaction(-60, "Maintenance"),
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    assert [row.name for row in breakdown.expenses] == [
        "Cleaning",
        "Maintenance",
        "Insurance",
        "Marketing",
    ]


def test_percentages_are_within_type(summary_service, make_transaction):
    transactions = [
        make_transaction(300, "Rental Income"),
        make_transaction(-75, "Cleaning"),
        make_transaction(-25, "Insurance"),
    ]

    breakdown = summary_service.aggregate_by_category(transactions)

    assert breakdown.income[0].percentage == pytest.approx(100.0)
    assert [row.percentage for row in breakdown.expenses] == [
        pytest.approx(75.0),
        pytest.approx(25.0),
    ]


def test_zero_totals_give_zero_percentages(summary_service, make_transaction):
    breakdown = summary_service.aggregate_by_category([make_transaction(0, "Rental Income")])
    assert breakdown.income[0].percentage == 0.0


def test_period_filter_is_inclusive(summary_service, make_transaction):
    transactions = [
        make_transaction(10, "Rental Income", date(2024, 12, 31)),
        make_transaction(20, "Rental Income", date(2025, 1, 1)),
        make_transaction(30, "Rental Income", date(2025, 1, 31)),
        make_transaction(40, "Rental Income", date(2025, 2, 1)),
    ]
    period = PeriodRange(date(2025, 1, 1), date(2025, 1, 31))

    breakdown = summary_service.aggregate_by_category(transactions, period)

    assert breakdown.income_total == Decimal("50")
    assert breakdown.period == period


def test_unresolved_period_raises(summary_service, make_transaction):
    with pytest.raises(InvalidDateRangeError):
        summary_service.aggregate_by_category(
            [make_transaction(10)], PeriodRange(date(2025, 1, 1), None)
        )


def test_empty_input(summary_service):
    breakdown = summary_service.aggregate_by_category([])
    assert breakdown.income == ()
    assert breakdown.expenses == ()
    assert breakdown.income_total == Decimal("0")


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Property Management", HomeCategory.PM),
        ("property   management", HomeCategory.PM),
        ("PM", HomeCategory.PM),
        ("Arbitrage", HomeCategory.ARBITRAGE),
        ("Owned", HomeCategory.OWNED),
        ("Company Owned", HomeCategory.OWNED),
        ("Shared", HomeCategory.SHARED),
        ("Partnership", HomeCategory.SHARED),
        ("Vacation Rental", None),
        ("", None),
        (None, None),
    ],
)
def test_home_category_for(summary_service, label, expected):
    assert summary_service.home_category_for(label) == expected


def test_normalize_home_category_key():
    assert normalize_home_category_key("  Property \t Management ") == "property-management"


def test_aggregate_by_home_category(summary_service, make_property):
    properties = [
        make_property("P1", "Property Management", [("2025-01", 1000, 300)]),
        make_property("P2", "PM", [("2025-01", 2000, 500)]),
        make_property("P3", "Arbitrage", [("2025-01", 800, 900)]),
        make_property("P4", "Timeshare", [("2025-01", 50, 0)]),
    ]

    breakdown = summary_service.aggregate_by_home_category(properties)

    pm = breakdown.get(HomeCategory.PM)
    assert pm.income == Decimal("3000")
    assert pm.expenses == Decimal("800")
    assert pm.net == Decimal("2200")
    assert pm.property_count == 2
    assert pm.per_property == Decimal("1100")
    assert [p.property_id for p in pm.properties] == ["P2", "P1"]

    arbitrage = breakdown.arbitrage
    assert arbitrage.net == Decimal("-100")
    assert arbitrage.per_property == Decimal("-100")

    assert breakdown.owned.property_count == 0
    assert breakdown.owned.per_property == Decimal("0")
    assert breakdown.skipped_labels == ("Timeshare",)


def test_unknown_home_category_logs_warning(summary_service, make_property, caplog):
    with caplog.at_level("WARNING", logger="propfin.domain.summary"):
        summary_service.aggregate_by_home_category(
            [make_property("P9", "Timeshare", [("2025-01", 50, 0)])]
        )
    assert "Timeshare" in caplog.text


def test_monthly_series_unions_months(summary_service, make_property):
    x = make_property("X", "PM", [("2025-01", 100, 10), ("2025-03", 300, 30)])
    y = make_property("Y", "PM", [("2025-01", 1000, 100), ("2025-02", 2000, 200)])

    series = summary_service.build_monthly_series([x, y])

    assert [point.month for point in series] == ["2025-01", "2025-02", "2025-03"]
    by_month = {point.month: point for point in series}
    assert by_month["2025-01"].income == Decimal("1100")
    # X has no February figures and contributes zero
    assert by_month["2025-02"].income == Decimal("2000")
    assert by_month["2025-02"].expenses == Decimal("200")
    assert by_month["2025-03"].income == Decimal("300")
    assert by_month["2025-03"].net_income == Decimal("270")


def test_monthly_series_averages_incomplete_properties(summary_service):
    prop = Property(
        property_id="Z",
        property_name="Net Only",
        home_category="Owned",
        total_revenue=Decimal("900"),
        total_expenses=Decimal("300"),
        monthly_data=(
            MonthlyFigures("2025-01", Decimal("200")),
            MonthlyFigures("2025-02", Decimal("200")),
            MonthlyFigures("2025-03", Decimal("200")),
        ),
    )

    series = summary_service.build_monthly_series([prop])

    assert [(p.month, p.income, p.expenses) for p in series] == [
        ("2025-01", Decimal("300"), Decimal("100")),
        ("2025-02", Decimal("300"), Decimal("100")),
        ("2025-03", Decimal("300"), Decimal("100")),
    ]


def test_monthly_series_empty(summary_service):
    assert summary_service.build_monthly_series([]) == []


def test_monthly_series_by_home_category(summary_service, make_property):
    properties = [
        make_property("P1", "PM", [("2025-01", 100, 10)]),
        make_property("P2", "Arbitrage", [("2025-02", 200, 20)]),
        make_property("P3", "Unknown", [("2025-03", 300, 30)]),
    ]

    series = summary_service.build_monthly_series_by_home_category(properties)

    assert set(series) == {"pm", "arbitrage", "owned", "shared"}
    assert [p.month for p in series["pm"]] == ["2025-01"]
    assert [p.month for p in series["arbitrage"]] == ["2025-02"]
    assert series["owned"] == []


def test_aggregate_by_property(summary_service, make_transaction):
    transactions = [
        make_transaction(1000, "Rental Income", property_id="P1"),
        make_transaction(-200, "Cleaning", property_id="P1"),
        make_transaction(300, "Rental Income", property_id="P2"),
        make_transaction(-50, "Cleaning"),
        make_transaction(-75, "Amex", property_id="P2"),
    ]

    rollups = summary_service.aggregate_by_property(
        transactions, property_names={"P1": "Beach House"}
    )

    assert [r.property_id for r in rollups] == ["P1", "P2"]
    assert rollups[0].property_name == "Beach House"
    assert rollups[0].income == Decimal("1000")
    assert rollups[0].expenses == Decimal("200")
    assert rollups[0].net_income == Decimal("800")
    assert len(rollups[0].transactions) == 2
    assert rollups[1].expenses == Decimal("0")
    assert rollups[1].property_name is None


def test_derived_structures_are_fresh_per_call(summary_service, make_transaction):
    transactions = [make_transaction(100, "Rental Income")]
    first = summary_service.aggregate_by_category(transactions)
    second = summary_service.aggregate_by_category(transactions)
    assert first == second
    assert first is not second
    assert first.income[0].type == TransactionType.INCOME
