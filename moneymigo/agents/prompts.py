"""
Insight Prompt Builder

Serializes a user's aggregated numbers into the natural-language prompt
sent to Gemini. The numbers are computed here, deterministically, by
the metrics aggregator; the model only narrates them.

All three request types share one context block and differ only in
the closing instructions.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field

from moneymigo.analytics.metrics import (
    category_breakdown,
    filter_recent,
    summarize,
)
from moneymigo.models.finance import Budget, Goal, Transaction, TransactionType


RECENT_TRANSACTIONS_IN_PROMPT = 10


class AIRequestType(str, Enum):
    """The three things the AI is asked to write."""
    INSIGHTS = "insights"
    STORY = "story"
    PREDICTIONS = "predictions"


class FinancialSnapshot(BaseModel):
    """Everything the prompt builder needs about one user."""

    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)


def _money(amount: Decimal, currency: str) -> str:
    return f"{currency}{amount:,.2f}"


def _lines(items: Sequence[str]) -> str:
    return "\n".join(items) if items else "- None recorded"


def build_context(
    snapshot: FinancialSnapshot,
    today: date,
    currency: str = "₹",
    recent_days: int = 30,
) -> str:
    """The shared 'Financial Data Analysis' block."""
    transactions = snapshot.transactions
    totals = summarize(transactions)
    recent = filter_recent(transactions, today, days=recent_days)

    income_sources = [
        f"- {category}: {_money(amount, currency)}"
        for category, amount in category_breakdown(transactions, TransactionType.INCOME).items()
    ]
    expense_categories = [
        f"- {category}: {_money(amount, currency)}"
        for category, amount in category_breakdown(transactions, TransactionType.EXPENSE).items()
    ]
    budgets = [
        f"- {b.category}: {_money(b.spent, currency)} / {_money(b.limit, currency)} "
        f"({float(b.spent / b.limit) * 100:.1f}%)"
        for b in snapshot.budgets
    ]
    goals = [
        f"- {g.title}: {_money(g.current_amount, currency)} / "
        f"{_money(g.target_amount, currency)} by {g.deadline.isoformat()}"
        for g in snapshot.goals
    ]
    pattern = [
        f"- {t.date.isoformat()}: {t.type.value} {_money(t.amount, currency)} "
        f"({t.category}) - {t.description}"
        for t in recent[:RECENT_TRANSACTIONS_IN_PROMPT]
    ]

    return f"""
Financial Data Analysis:
- Total Income: {_money(totals.income, currency)}
- Total Expenses: {_money(totals.expense, currency)}
- Net Balance: {_money(totals.net, currency)}
- Total Transactions: {totals.transaction_count}
- Recent Transactions ({recent_days} days): {len(recent)}

Income Sources:
{_lines(income_sources)}

Expense Categories:
{_lines(expense_categories)}

Budgets:
{_lines(budgets)}

Goals:
{_lines(goals)}

Recent Transaction Pattern:
{_lines(pattern)}
"""


INSIGHTS_INSTRUCTIONS = """Based on this financial data, provide detailed AI-powered insights including:
1. Spending pattern analysis
2. Income vs expense trends
3. Budget performance evaluation
4. Recommendations for financial improvement
5. Potential risk alerts
6. Next month predictions with specific numbers

Please provide actionable insights in a structured format with bullet points and specific monetary recommendations. Keep the tone professional but friendly. Use the {currency} currency format."""

STORY_INSTRUCTIONS = """Create a weekly financial storyline made of daily cards based on this data. Each card should include:

Date (e.g., Sept 17, Wednesday)
Narrative: A short, friendly 1-2 sentence story about the user's income/expenses for the day. Use emojis to make it casual.
Tip/Prediction: One helpful suggestion or forecast.

Here is an example structure for one day:

📅 Sept 17, Wednesday
💰 You kicked off the week strong! Salary of {currency}50,000 credited.
✨ Tip: Consider saving 5% right away to lock in progress.

Use the income and expense details above. Don't use asterisks (*) or hash symbols (#) in the output. Focus on the user's actual transaction patterns and provide encouraging, practical advice.

Write in a warm, encouraging tone as if you're a financial advisor who knows the user well. Use the {currency} currency format and make each daily card engaging and actionable."""

PREDICTIONS_INSTRUCTIONS = """Based on the current financial patterns, provide specific predictions for:
1. Next month's likely expenses by category (with amounts)
2. Projected savings for the next 3 months
3. Goal achievement timeline predictions
4. Budget overspend risks with percentages
5. Income stability analysis
6. Recommended actions to improve financial health

Provide specific numbers and percentages. Be realistic but optimistic. Use the {currency} currency format."""

_INSTRUCTIONS = {
    AIRequestType.INSIGHTS: INSIGHTS_INSTRUCTIONS,
    AIRequestType.STORY: STORY_INSTRUCTIONS,
    AIRequestType.PREDICTIONS: PREDICTIONS_INSTRUCTIONS,
}


def build_prompt(
    snapshot: FinancialSnapshot,
    request_type: AIRequestType,
    today: date,
    currency: str = "₹",
    recent_days: int = 30,
) -> str:
    """Context block plus the instructions for `request_type`."""
    context = build_context(snapshot, today, currency=currency, recent_days=recent_days)
    instructions = _INSTRUCTIONS[AIRequestType(request_type)].format(currency=currency)
    return f"{context}\n{instructions}"
