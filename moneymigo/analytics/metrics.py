"""
Metrics Aggregator

Pure functions that fold a user's transactions into totals, category
breakdowns and time-bucketed trends. Nothing here touches storage or
the network; callers fetch records first and pass them in.

INVARIANTS:
- net == income - expense for every input, including the empty list
- category totals of one transaction type sum to that type's total
- averages over nothing are 0, never a ZeroDivisionError
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

from moneymigo.models.finance import (
    Budget,
    BudgetPeriod,
    Goal,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")


class Granularity(str, Enum):
    """Bucket size for time series."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Totals(BaseModel):
    """Scalar totals over a set of transactions."""

    income: Decimal = ZERO
    expense: Decimal = ZERO
    net: Decimal = ZERO
    transaction_count: int = 0


class PeriodSummary(BaseModel):
    """Income, expense and net for one time bucket."""

    period_start: date
    label: str
    income: Decimal = ZERO
    expense: Decimal = ZERO
    net: Decimal = ZERO


class FinancialBaseline(BaseModel):
    """Per-month averages used by the scenario view."""

    months_of_data: int
    monthly_income: Decimal
    monthly_expense: Decimal
    monthly_net_savings: Decimal


# =============================================================================
# BASIC FOLDS
# =============================================================================

def total_of(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> Decimal:
    """Sum the amounts of one transaction type."""
    return sum(
        (t.amount for t in transactions if t.type == transaction_type),
        ZERO,
    )


def summarize(transactions: Sequence[Transaction]) -> Totals:
    """Income, expense and net balance. Transfers and investments count toward neither."""
    income = total_of(transactions, TransactionType.INCOME)
    expense = total_of(transactions, TransactionType.EXPENSE)
    return Totals(
        income=income,
        expense=expense,
        net=income - expense,
        transaction_count=len(transactions),
    )


def average(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return ZERO
    return sum(values, ZERO) / Decimal(len(values))


def category_breakdown(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType = TransactionType.EXPENSE,
) -> dict[str, Decimal]:
    """
    Sum amounts per category for one transaction type.

    Every transaction of that type lands in exactly one bucket, so the
    values sum to total_of(transactions, transaction_type). Ordered by
    amount, largest first.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == transaction_type:
            totals[t.category] += t.amount
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


def top_categories(
    transactions: Iterable[Transaction],
    limit: int = 5,
    transaction_type: TransactionType = TransactionType.EXPENSE,
) -> list[tuple[str, Decimal]]:
    """The `limit` largest categories of a transaction type."""
    return list(category_breakdown(transactions, transaction_type).items())[:limit]


# =============================================================================
# DATE FILTERS
# =============================================================================

def month_start(day: date) -> date:
    return day.replace(day=1)


def days_in_month(day: date) -> int:
    first = month_start(day)
    if first.month == 12:
        next_month = first.replace(year=first.year + 1, month=1)
    else:
        next_month = first.replace(month=first.month + 1)
    return (next_month - first).days


def previous_month_start(day: date) -> date:
    return month_start(month_start(day) - timedelta(days=1))


def week_start(day: date) -> date:
    """Monday of the ISO week containing `day`."""
    return day - timedelta(days=day.weekday())


def filter_between(
    transactions: Iterable[Transaction],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[Transaction]:
    """Transactions dated within [date_from, date_to], both optional."""
    return [
        t for t in transactions
        if (date_from is None or t.date >= date_from)
        and (date_to is None or t.date <= date_to)
    ]


def filter_month(transactions: Iterable[Transaction], day: date) -> list[Transaction]:
    """Transactions in the calendar month containing `day`."""
    return [
        t for t in transactions
        if t.date.year == day.year and t.date.month == day.month
    ]


def filter_recent(
    transactions: Iterable[Transaction],
    today: date,
    days: int = 30,
) -> list[Transaction]:
    """Transactions dated within the last `days` days, newest first."""
    cutoff = today - timedelta(days=days)
    recent = [t for t in transactions if t.date >= cutoff]
    recent.sort(key=lambda t: (t.date, t.created_at), reverse=True)
    return recent


# =============================================================================
# TIME SERIES
# =============================================================================

def _bucket(day: date, granularity: Granularity) -> tuple[date, str]:
    if granularity == Granularity.DAY:
        return day, day.isoformat()
    if granularity == Granularity.WEEK:
        start = week_start(day)
        iso = start.isocalendar()
        return start, f"{iso[0]}-W{iso[1]:02d}"
    start = month_start(day)
    return start, start.strftime("%Y-%m")


def time_series(
    transactions: Iterable[Transaction],
    granularity: Granularity = Granularity.MONTH,
) -> list[PeriodSummary]:
    """
    Income / expense / net per period, oldest first.

    Only periods that contain at least one transaction are returned;
    use trailing_months for a gap-free monthly chart.
    """
    buckets: dict[date, PeriodSummary] = {}
    for t in transactions:
        start, label = _bucket(t.date, granularity)
        summary = buckets.get(start)
        if summary is None:
            summary = buckets[start] = PeriodSummary(period_start=start, label=label)
        if t.type == TransactionType.INCOME:
            summary.income += t.amount
        elif t.type == TransactionType.EXPENSE:
            summary.expense += t.amount

    for summary in buckets.values():
        summary.net = summary.income - summary.expense

    return [buckets[key] for key in sorted(buckets)]


def trailing_months(
    transactions: Iterable[Transaction],
    today: date,
    months: int = 6,
) -> list[PeriodSummary]:
    """The last `months` calendar months ending with today's, empty months included."""
    by_month = {s.period_start: s for s in time_series(transactions, Granularity.MONTH)}

    starts = []
    cursor = month_start(today)
    for _ in range(months):
        starts.append(cursor)
        cursor = previous_month_start(cursor)

    result = []
    for start in reversed(starts):
        result.append(
            by_month.get(start)
            or PeriodSummary(period_start=start, label=start.strftime("%Y-%m"))
        )
    return result


def financial_baseline(transactions: Sequence[Transaction]) -> FinancialBaseline:
    """Average monthly income and expense over the distinct months with data."""
    months = len({(t.date.year, t.date.month) for t in transactions}) or 1
    totals = summarize(transactions)
    divisor = Decimal(months)
    monthly_income = totals.income / divisor
    monthly_expense = totals.expense / divisor
    return FinancialBaseline(
        months_of_data=months,
        monthly_income=monthly_income,
        monthly_expense=monthly_expense,
        monthly_net_savings=monthly_income - monthly_expense,
    )


# =============================================================================
# BUDGETS AND GOALS
# =============================================================================

def budget_window(budget: Budget, today: date) -> tuple[date, date]:
    """Inclusive date range the budget's limit applies to right now."""
    if budget.period == BudgetPeriod.WEEKLY:
        start = week_start(today)
        return start, start + timedelta(days=6)
    start = month_start(today)
    return start, start + timedelta(days=days_in_month(today) - 1)


def budgets_with_spent(
    budgets: Iterable[Budget],
    transactions: Sequence[Transaction],
    today: date,
) -> list[Budget]:
    """
    Copies of `budgets` with `spent` recomputed from expense transactions
    in each budget's category and current window.
    """
    result = []
    for budget in budgets:
        start, end = budget_window(budget, today)
        spent = sum(
            (
                t.amount for t in transactions
                if t.type == TransactionType.EXPENSE
                and t.category == budget.category
                and start <= t.date <= end
            ),
            ZERO,
        )
        result.append(budget.model_copy(update={"spent": spent}))
    return result


def _clamped_percent(numerator: Decimal, denominator: Decimal) -> float:
    if denominator <= 0:
        return 0.0
    percent = float(numerator / denominator) * 100
    return max(0.0, min(percent, 100.0))


def goal_progress(goal: Goal) -> float:
    """Percent of the target saved so far, clamped to [0, 100]."""
    return _clamped_percent(goal.current_amount, goal.target_amount)


def goal_progress_from_savings(goal: Goal, transactions: Sequence[Transaction]) -> float:
    """Progress when the goal is funded by aggregate savings rather than manual updates."""
    savings = max(summarize(transactions).net, ZERO)
    return _clamped_percent(savings, goal.target_amount)
