"""Analytics package: pure functions over a user's records."""

from moneymigo.analytics.forecast import (
    MonthForecast,
    build_predictions,
    forecast_month,
    impact_score,
    project_month_expense,
    project_savings,
)
from moneymigo.analytics.gamification import (
    Badge,
    GamificationSummary,
    cash_balance,
    savings_streak,
    summarize_gamification,
)
from moneymigo.analytics.insights import generate_rule_insights
from moneymigo.analytics.metrics import (
    FinancialBaseline,
    Granularity,
    PeriodSummary,
    Totals,
    average,
    budgets_with_spent,
    category_breakdown,
    filter_recent,
    financial_baseline,
    goal_progress,
    goal_progress_from_savings,
    summarize,
    time_series,
    top_categories,
    trailing_months,
)
from moneymigo.analytics.profile import (
    ProfileUpdate,
    compute_profile,
    story_event_for,
)

__all__ = [
    # Metrics
    "FinancialBaseline",
    "Granularity",
    "PeriodSummary",
    "Totals",
    "average",
    "budgets_with_spent",
    "category_breakdown",
    "filter_recent",
    "financial_baseline",
    "goal_progress",
    "goal_progress_from_savings",
    "summarize",
    "time_series",
    "top_categories",
    "trailing_months",
    # Forecast
    "MonthForecast",
    "build_predictions",
    "forecast_month",
    "impact_score",
    "project_month_expense",
    "project_savings",
    # Profile
    "ProfileUpdate",
    "compute_profile",
    "story_event_for",
    # Gamification
    "Badge",
    "GamificationSummary",
    "cash_balance",
    "savings_streak",
    "summarize_gamification",
    # Insights
    "generate_rule_insights",
]
