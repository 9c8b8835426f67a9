"""Savings streaks and achievement badges."""

from datetime import date, timedelta
from decimal import Decimal
from typing import Sequence

from pydantic import BaseModel

from moneymigo.analytics.metrics import (
    ZERO,
    filter_month,
    previous_month_start,
    total_of,
)
from moneymigo.models.finance import Transaction, TransactionType


STREAK_WINDOW_DAYS = 30
STREAK_MASTER_DAYS = 7
BIG_SAVER_AMOUNT = Decimal("10000")
CONSISTENT_TRACKER_COUNT = 20
EXPENSE_CUT_RATIO = Decimal("0.8")
CRYPTO_KEYWORDS = ("crypto", "bitcoin", "ethereum")


class Badge(BaseModel):
    id: str
    name: str
    description: str
    unlocked: bool


class GamificationSummary(BaseModel):
    savings_streak: int
    total_savings: Decimal
    monthly_savings_average: Decimal
    badges: list[Badge]

    @property
    def unlocked_badges(self) -> list[Badge]:
        return [b for b in self.badges if b.unlocked]


def cash_balance(transactions: Sequence[Transaction]) -> Decimal:
    """Income minus every other outflow; transfers and investments count as spent."""
    return sum(
        (t.amount if t.type == TransactionType.INCOME else -t.amount for t in transactions),
        ZERO,
    )


def _daily_net(transactions: Sequence[Transaction], day: date) -> tuple[int, Decimal]:
    todays = [t for t in transactions if t.date == day]
    return len(todays), cash_balance(todays)


def savings_streak(
    transactions: Sequence[Transaction],
    today: date,
    window: int = STREAK_WINDOW_DAYS,
) -> int:
    """
    Consecutive days, counting back from today, that have at least one
    transaction and a non-negative daily net.
    """
    streak = 0
    day = today
    for _ in range(window):
        count, net = _daily_net(transactions, day)
        if count == 0 or net < 0:
            break
        streak += 1
        day -= timedelta(days=1)
    return streak


def monthly_savings_average(transactions: Sequence[Transaction]) -> Decimal:
    """Total savings spread over roughly one month per 30 transactions, never negative."""
    total = cash_balance(transactions)
    periods = max(Decimal(1), Decimal(len(transactions)) / Decimal(30))
    return max(ZERO, total / periods)


def _cut_expenses(transactions: Sequence[Transaction], today: date) -> bool:
    previous = total_of(
        filter_month(transactions, previous_month_start(today)), TransactionType.EXPENSE
    )
    current = total_of(filter_month(transactions, today), TransactionType.EXPENSE)
    return previous > 0 and current <= previous * EXPENSE_CUT_RATIO


def summarize_gamification(
    transactions: Sequence[Transaction],
    today: date,
) -> GamificationSummary:
    total = cash_balance(transactions)
    streak = savings_streak(transactions, today)
    mentions_crypto = any(
        keyword in t.description.lower()
        for t in transactions
        for keyword in CRYPTO_KEYWORDS
    )

    badges = [
        Badge(
            id="first-save",
            name="First Save",
            description="Made your first positive transaction",
            unlocked=total > 0,
        ),
        Badge(
            id="streak-master",
            name="Streak Master",
            description=f"Maintained a {STREAK_MASTER_DAYS}-day savings streak",
            unlocked=streak >= STREAK_MASTER_DAYS,
        ),
        Badge(
            id="big-saver",
            name="Big Saver",
            description=f"Saved over {BIG_SAVER_AMOUNT:,}",
            unlocked=total >= BIG_SAVER_AMOUNT,
        ),
        Badge(
            id="consistent-tracker",
            name="Consistent Tracker",
            description=f"Added {CONSISTENT_TRACKER_COUNT}+ transactions",
            unlocked=len(transactions) >= CONSISTENT_TRACKER_COUNT,
        ),
        Badge(
            id="expense-cutter",
            name="Expense Cutter",
            description="Reduced monthly expenses by 20%",
            unlocked=_cut_expenses(transactions, today),
        ),
        Badge(
            id="crypto-explorer",
            name="Crypto Explorer",
            description="Made crypto-related transactions",
            unlocked=mentions_crypto,
        ),
    ]

    return GamificationSummary(
        savings_streak=streak,
        total_savings=total,
        monthly_savings_average=monthly_savings_average(transactions),
        badges=badges,
    )
