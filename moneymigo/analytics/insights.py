"""
Rule-Based Insight Engine

Deterministic observations computed from the user's own numbers. These
are what the insight cards show when no AI key is configured, and they
are stored so the user can mark them as read.
"""

from datetime import date
from decimal import Decimal
from typing import Sequence

from moneymigo.analytics.forecast import forecast_month
from moneymigo.analytics.metrics import (
    category_breakdown,
    filter_month,
    total_of,
)
from moneymigo.models.finance import Goal, Priority, Transaction, TransactionType
from moneymigo.models.records import Insight, InsightType


# Last N transactions treated as "about three months" of history
HISTORY_SAMPLE_SIZE = 100
HISTORY_MONTHS = Decimal("3")
HIGH_SPENDING_RATIO = Decimal("1.2")
TRENDING_HIGHER_RATIO = Decimal("1.1")
STAGNANT_GOAL_RATIO = Decimal("0.1")
SAVING_OPPORTUNITY_THRESHOLD = Decimal("500")
DAILY_TIP_FACTOR = Decimal("0.9")


def generate_rule_insights(
    user_id: str,
    transactions: Sequence[Transaction],
    goals: Sequence[Goal],
    today: date,
    currency: str = "₹",
) -> list[Insight]:
    """Every rule that fires produces one Insight; no transactions, no insights."""
    if not transactions:
        return []

    insights: list[Insight] = []

    history = sorted(transactions, key=lambda t: t.date, reverse=True)[:HISTORY_SAMPLE_SIZE]
    avg_monthly_spending = total_of(history, TransactionType.EXPENSE) / HISTORY_MONTHS

    current = filter_month(transactions, today)
    current_spending = total_of(current, TransactionType.EXPENSE)
    forecast = forecast_month(transactions, today)

    if current_spending > avg_monthly_spending * HIGH_SPENDING_RATIO:
        insights.append(Insight(
            user_id=user_id,
            insight_type=InsightType.SPENDING_PATTERN,
            title="Higher Than Usual Spending",
            description=(
                f"You've spent {currency}{current_spending:,.2f} this month, which is "
                f"more than 20% above your recent average. Consider reviewing your "
                f"recent purchases."
            ),
            actionable=True,
            suggested_actions=[
                "Review recent transactions",
                "Set spending alerts",
                "Create a monthly budget",
            ],
            priority=Priority.HIGH,
            category="spending",
        ))

    if (
        forecast.last_month_expense > 0
        and forecast.projected_expense > forecast.last_month_expense * TRENDING_HIGHER_RATIO
    ):
        insights.append(Insight(
            user_id=user_id,
            insight_type=InsightType.RISK_ALERT,
            title="Spending Alert",
            description=(
                f"Your spending is trending "
                f"{forecast.change_vs_last_month_percent:.0f}% higher than last month."
            ),
            actionable=True,
            suggested_actions=["Pause non-essential purchases", "Check category budgets"],
            priority=Priority.HIGH,
            category="spending",
        ))

    if forecast.projected_savings > 0:
        insights.append(Insight(
            user_id=user_id,
            insight_type=InsightType.POSITIVE_TREND,
            title="Great Progress!",
            description=(
                f"You're on track to save {currency}{forecast.projected_savings:,.2f} "
                f"this month."
            ),
            priority=Priority.LOW,
            category="savings",
        ))

    stagnant = [
        goal for goal in goals
        if goal.current_amount / goal.target_amount < STAGNANT_GOAL_RATIO
        and goal.deadline > today
    ]
    if stagnant:
        insights.append(Insight(
            user_id=user_id,
            insight_type=InsightType.GOAL_PROGRESS,
            title="Goals Need Attention",
            description=(
                f"{len(stagnant)} of your goals have less than 10% progress. "
                f"Consider adjusting your strategy."
            ),
            actionable=True,
            suggested_actions=[
                "Increase monthly contributions",
                "Extend deadlines",
                "Break goals into smaller steps",
            ],
            priority=Priority.MEDIUM,
            category="goals",
        ))

    breakdown = category_breakdown(current, TransactionType.EXPENSE)
    if breakdown:
        top_category, top_amount = next(iter(breakdown.items()))
        if top_amount > SAVING_OPPORTUNITY_THRESHOLD:
            insights.append(Insight(
                user_id=user_id,
                insight_type=InsightType.SAVING_OPPORTUNITY,
                title=f"Optimize {top_category} Spending",
                description=(
                    f"You've spent {currency}{top_amount:,.2f} on {top_category} this "
                    f"month. Small reductions here could boost your savings significantly."
                ),
                actionable=True,
                suggested_actions=[
                    "Find alternatives",
                    "Set category budget",
                    "Track daily expenses",
                ],
                priority=Priority.MEDIUM,
                category="optimization",
            ))

    if forecast.average_daily_expense > 0:
        target = forecast.average_daily_expense * DAILY_TIP_FACTOR
        insights.append(Insight(
            user_id=user_id,
            insight_type=InsightType.SPENDING_TIP,
            title="Daily Spending Tip",
            description=(
                f"Your average daily spending is {currency}{forecast.average_daily_expense:,.0f}. "
                f"Try to keep it under {currency}{target:,.0f} to improve savings."
            ),
            actionable=True,
            priority=Priority.LOW,
            category="tips",
        ))

    return insights
