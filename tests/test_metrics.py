"""Tests for the metrics aggregator."""

import pytest
from datetime import date
from decimal import Decimal

from moneymigo.analytics.metrics import (
    Granularity,
    average,
    budgets_with_spent,
    category_breakdown,
    days_in_month,
    filter_between,
    filter_recent,
    financial_baseline,
    goal_progress,
    goal_progress_from_savings,
    summarize,
    time_series,
    top_categories,
    total_of,
    trailing_months,
)
from moneymigo.models import BudgetPeriod, TransactionType

from tests.factories import TODAY, budget, expense, goal, income, txn


class TestSummaries:

    def test_empty_list_is_all_zero(self):
        totals = summarize([])
        assert totals.income == Decimal("0")
        assert totals.expense == Decimal("0")
        assert totals.net == Decimal("0")
        assert totals.transaction_count == 0

    def test_net_is_income_minus_expense(self):
        transactions = [
            income(5000),
            expense(1200),
            expense(300, category="Transportation"),
            txn(100, TransactionType.TRANSFER, category="Transfer"),
            txn(700, TransactionType.INVESTMENT, category="Stocks"),
        ]
        totals = summarize(transactions)
        assert totals.income == Decimal("5000")
        assert totals.expense == Decimal("1500")
        assert totals.net == totals.income - totals.expense == Decimal("3500")
        assert totals.transaction_count == 5

    @pytest.mark.parametrize(
        "transactions",
        [
            [],
            [income(10)],
            [expense(10)],
            [income("0.01"), expense("99.99"), expense("0.50")],
        ],
    )
    def test_net_identity_holds(self, transactions):
        totals = summarize(transactions)
        assert totals.net == totals.income - totals.expense

    def test_average_of_empty_is_zero(self):
        assert average([]) == Decimal("0")

    def test_average(self):
        assert average([Decimal("10"), Decimal("20")]) == Decimal("15")


class TestCategoryBreakdown:

    def test_category_totals_sum_to_total_expense(self):
        transactions = [
            expense(120, category="Food & Dining"),
            expense(80, category="Food & Dining"),
            expense(450, category="Shopping"),
            expense("19.99", category="Entertainment"),
            income(3000),
        ]
        breakdown = category_breakdown(transactions)
        assert sum(breakdown.values()) == total_of(transactions, TransactionType.EXPENSE)
        assert breakdown["Food & Dining"] == Decimal("200")

    def test_ordered_largest_first(self):
        transactions = [
            expense(10, category="A"),
            expense(30, category="B"),
            expense(20, category="C"),
        ]
        assert list(category_breakdown(transactions)) == ["B", "C", "A"]
        assert top_categories(transactions, limit=2) == [("B", Decimal("30")), ("C", Decimal("20"))]

    def test_income_breakdown(self):
        transactions = [income(1000, category="Salary"), income(200, category="Gift")]
        breakdown = category_breakdown(transactions, TransactionType.INCOME)
        assert breakdown == {"Salary": Decimal("1000"), "Gift": Decimal("200")}


class TestTimeSeries:

    def test_monthly_buckets_ascending(self):
        transactions = [
            expense(50, on=date(2024, 6, 2)),
            income(1000, on=date(2024, 4, 30)),
            expense(25, on=date(2024, 6, 20)),
        ]
        series = time_series(transactions, Granularity.MONTH)
        assert [s.label for s in series] == ["2024-04", "2024-06"]
        assert series[1].expense == Decimal("75")
        assert series[0].net == Decimal("1000")

    def test_weekly_buckets_start_monday(self):
        transactions = [
            expense(10, on=date(2024, 6, 10)),  # Monday
            expense(20, on=date(2024, 6, 16)),  # Sunday, same ISO week
            expense(40, on=date(2024, 6, 17)),  # next Monday
        ]
        series = time_series(transactions, Granularity.WEEK)
        assert [s.label for s in series] == ["2024-W24", "2024-W25"]
        assert series[0].period_start == date(2024, 6, 10)
        assert series[0].expense == Decimal("30")

    def test_daily_buckets(self):
        transactions = [expense(10, on=date(2024, 6, 1)), income(5, on=date(2024, 6, 1))]
        series = time_series(transactions, Granularity.DAY)
        assert len(series) == 1
        assert series[0].net == Decimal("-5")

    def test_trailing_months_includes_empty_months(self):
        transactions = [income(100, on=date(2024, 6, 1)), expense(40, on=date(2024, 5, 3))]
        series = trailing_months(transactions, TODAY, months=3)
        assert [s.label for s in series] == ["2024-04", "2024-05", "2024-06"]
        assert series[0].income == Decimal("0")
        assert series[1].expense == Decimal("40")

    def test_trailing_months_across_year_boundary(self):
        series = trailing_months([], date(2024, 1, 10), months=2)
        assert [s.label for s in series] == ["2023-12", "2024-01"]


class TestFilters:

    def test_recent_window_is_newest_first(self):
        transactions = [
            expense(1, on=date(2024, 5, 15)),
            expense(2, on=date(2024, 5, 16)),
            expense(3, on=date(2024, 6, 14)),
        ]
        recent = filter_recent(transactions, TODAY, days=30)
        assert [t.amount for t in recent] == [Decimal("3"), Decimal("2")]

    def test_between_is_inclusive_and_open_ended(self):
        transactions = [expense(n, on=date(2024, 6, n)) for n in (1, 10, 20)]
        assert [t.date.day for t in filter_between(transactions, date(2024, 6, 10), date(2024, 6, 20))] == [10, 20]
        assert [t.date.day for t in filter_between(transactions, date_to=date(2024, 6, 10))] == [1, 10]
        assert len(filter_between(transactions)) == 3

    def test_days_in_month(self):
        assert days_in_month(date(2024, 2, 10)) == 29
        assert days_in_month(date(2023, 12, 31)) == 31

    def test_financial_baseline_averages_over_months_with_data(self):
        transactions = [
            income(3000, on=date(2024, 5, 1)),
            income(3000, on=date(2024, 6, 1)),
            expense(1000, on=date(2024, 6, 2)),
        ]
        baseline = financial_baseline(transactions)
        assert baseline.months_of_data == 2
        assert baseline.monthly_income == Decimal("3000")
        assert baseline.monthly_expense == Decimal("500")
        assert baseline.monthly_net_savings == Decimal("2500")

    def test_financial_baseline_of_nothing(self):
        baseline = financial_baseline([])
        assert baseline.months_of_data == 1
        assert baseline.monthly_net_savings == Decimal("0")


class TestBudgetsAndGoals:

    def test_monthly_budget_spent_counts_current_month_category(self):
        transactions = [
            expense(100, category="Food & Dining"),
            expense(50, category="Food & Dining", on=date(2024, 6, 1)),
            expense(999, category="Food & Dining", on=date(2024, 5, 31)),
            expense(70, category="Shopping"),
            income(5000, category="Food & Dining"),
        ]
        [result] = budgets_with_spent([budget(500)], transactions, TODAY)
        assert result.spent == Decimal("150")

    def test_weekly_budget_uses_iso_week(self):
        transactions = [
            expense(30, on=date(2024, 6, 9)),   # previous Sunday
            expense(20, on=date(2024, 6, 12)),
        ]
        weekly = budget(100, period=BudgetPeriod.WEEKLY)
        [result] = budgets_with_spent([weekly], transactions, TODAY)
        assert result.spent == Decimal("20")

    def test_budgets_with_spent_returns_copies(self):
        original = budget(100)
        budgets_with_spent([original], [expense(40)], TODAY)
        assert original.spent == Decimal("0")

    def test_goal_progress_zero(self):
        assert goal_progress(goal(1000, 0)) == 0.0

    def test_goal_progress_complete(self):
        assert goal_progress(goal(1000, 1000)) == 100.0

    def test_goal_progress_never_exceeds_100(self):
        assert goal_progress(goal(1000, 2500)) == 100.0

    def test_goal_progress_partial(self):
        assert goal_progress(goal(1000, 250)) == pytest.approx(25.0)

    def test_progress_from_negative_savings_is_zero(self):
        transactions = [income(1000), expense(1500)]
        assert goal_progress_from_savings(goal(1000), transactions) == 0.0

    def test_progress_from_savings(self):
        transactions = [income(1000), expense(500)]
        assert goal_progress_from_savings(goal(1000), transactions) == pytest.approx(50.0)
