"""
Rule-Based Forecaster

Linear extrapolation of month-to-date spending and the per-transaction
impact score. Deterministic and stateless: the same inputs always give
the same projection, and "today" is always passed in by the caller.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel

from moneymigo.analytics.metrics import (
    ZERO,
    days_in_month,
    filter_month,
    financial_baseline,
    goal_progress,
    previous_month_start,
    total_of,
)
from moneymigo.models.finance import (
    IMPACT_SCORE_MAX,
    IMPACT_SCORE_MIN,
    Goal,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import (
    Prediction,
    PredictionTimeframe,
    PredictionType,
)


# Amount that moves the impact score by one point, per transaction type
INCOME_IMPACT_DIVISOR = Decimal("1000")
EXPENSE_IMPACT_DIVISOR = Decimal("500")
INVESTMENT_IMPACT_CAP = 8.0
PREDICTION_TITLE_MAX_LENGTH = 200


class MonthForecast(BaseModel):
    """Where the current month is heading, based on spending so far."""

    as_of: date
    days_in_month: int
    days_elapsed: int
    month_to_date_income: Decimal
    month_to_date_expense: Decimal
    last_month_expense: Decimal
    projected_expense: Decimal
    projected_savings: Decimal
    average_daily_expense: Decimal
    change_vs_last_month_percent: Optional[float] = None

    @property
    def is_trending_higher(self) -> bool:
        return self.projected_expense > self.last_month_expense


def project_month_expense(
    month_to_date_expense: Decimal,
    days_in_month: int,
    days_elapsed: int,
) -> Decimal:
    """
    Naive linear projection of the month's total spend.

    projected = mtd * (days_in_month / days_elapsed), and 0 before any
    day of the month has elapsed.
    """
    if days_elapsed <= 0:
        return ZERO
    return Decimal(month_to_date_expense) * Decimal(days_in_month) / Decimal(days_elapsed)


def project_savings(income: Decimal, projected_expense: Decimal) -> Decimal:
    return Decimal(income) - Decimal(projected_expense)


def clamp_impact(score: float) -> float:
    return max(IMPACT_SCORE_MIN, min(IMPACT_SCORE_MAX, score))


def impact_score(transaction_type: TransactionType, amount: Decimal) -> float:
    """
    How much one transaction moves financial health, in [-10, 10].

    Income earns a point per 1000, expenses cost a point per 500,
    investments earn like income but cap at 8, transfers are neutral.
    """
    amount = Decimal(amount)
    if transaction_type == TransactionType.INCOME:
        score = min(IMPACT_SCORE_MAX, float(amount / INCOME_IMPACT_DIVISOR))
    elif transaction_type == TransactionType.EXPENSE:
        score = max(IMPACT_SCORE_MIN, float(-amount / EXPENSE_IMPACT_DIVISOR))
    elif transaction_type == TransactionType.INVESTMENT:
        score = min(INVESTMENT_IMPACT_CAP, float(amount / INCOME_IMPACT_DIVISOR))
    else:
        score = 0.0
    return round(clamp_impact(score), 2)


def forecast_month(transactions: Sequence[Transaction], today: date) -> MonthForecast:
    """Project the current month from the transactions recorded so far."""
    current = filter_month(transactions, today)
    previous = filter_month(transactions, previous_month_start(today))

    mtd_income = total_of(current, TransactionType.INCOME)
    mtd_expense = total_of(current, TransactionType.EXPENSE)
    last_month_expense = total_of(previous, TransactionType.EXPENSE)

    month_days = days_in_month(today)
    elapsed = today.day
    projected = project_month_expense(mtd_expense, month_days, elapsed)

    change = None
    if last_month_expense > 0:
        change = (float(projected / last_month_expense) - 1) * 100

    return MonthForecast(
        as_of=today,
        days_in_month=month_days,
        days_elapsed=elapsed,
        month_to_date_income=mtd_income,
        month_to_date_expense=mtd_expense,
        last_month_expense=last_month_expense,
        projected_expense=projected,
        projected_savings=project_savings(mtd_income, projected),
        average_daily_expense=mtd_expense / Decimal(elapsed) if elapsed else ZERO,
        change_vs_last_month_percent=change,
    )


def months_to_goal(goal: Goal, monthly_savings: Decimal) -> Optional[int]:
    """Whole months until the goal is funded at the given rate; None if never."""
    remaining = goal.target_amount - goal.current_amount
    if remaining <= 0:
        return 0
    if monthly_savings <= 0:
        return None
    months, rest = divmod(remaining, monthly_savings)
    return int(months) + (1 if rest else 0)


def _timeframe_for(months: int) -> PredictionTimeframe:
    if months <= 1:
        return PredictionTimeframe.ONE_MONTH
    if months <= 3:
        return PredictionTimeframe.THREE_MONTHS
    if months <= 6:
        return PredictionTimeframe.SIX_MONTHS
    return PredictionTimeframe.ONE_YEAR


def build_predictions(
    user_id: str,
    transactions: Sequence[Transaction],
    goals: Sequence[Goal],
    today: date,
    currency: str = "₹",
) -> list[Prediction]:
    """
    Turn the month forecast and savings baseline into Prediction records.

    Confidence grows with the share of the month already observed.
    """
    forecast = forecast_month(transactions, today)
    observed = forecast.days_elapsed / forecast.days_in_month
    month_confidence = round(observed * 100, 1)

    predictions = [
        Prediction(
            user_id=user_id,
            prediction_type=PredictionType.SPENDING_TREND,
            title="Projected spending this month",
            description=(
                f"At your current pace you will spend about "
                f"{currency}{forecast.projected_expense:,.2f} this month."
            ),
            confidence=month_confidence,
            timeframe=PredictionTimeframe.ONE_MONTH,
            predicted_value=forecast.projected_expense.quantize(Decimal("0.01")),
            factors=[
                f"{forecast.days_elapsed} of {forecast.days_in_month} days observed",
                f"{currency}{forecast.month_to_date_expense:,.2f} spent so far",
            ],
        ),
        Prediction(
            user_id=user_id,
            prediction_type=PredictionType.SAVINGS_POTENTIAL,
            title="Projected savings this month",
            description=(
                f"Income so far minus projected spending leaves "
                f"{currency}{forecast.projected_savings:,.2f}."
            ),
            confidence=month_confidence,
            timeframe=PredictionTimeframe.ONE_MONTH,
            predicted_value=forecast.projected_savings.quantize(Decimal("0.01")),
            factors=["Month-to-date income", "Projected monthly spending"],
        ),
    ]

    baseline = financial_baseline(transactions)
    for goal in goals:
        months = months_to_goal(goal, baseline.monthly_net_savings)
        if months is None:
            description = (
                f"'{goal.title}' is not on track: average monthly savings are not positive."
            )
            timeframe = PredictionTimeframe.ONE_YEAR
            confidence = 0.0
        else:
            on_time = months <= max(0, (goal.deadline - today).days) / 30
            description = (
                f"'{goal.title}' would be reached in about {months} month(s) "
                f"at {currency}{baseline.monthly_net_savings:,.2f} saved per month"
                f"{'' if on_time else ', after its deadline'}."
            )
            timeframe = _timeframe_for(months)
            confidence = round(min(baseline.months_of_data, 6) / 6 * 100, 1)
        predictions.append(
            Prediction(
                user_id=user_id,
                prediction_type=PredictionType.GOAL_COMPLETION,
                title=f"Goal: {goal.title}"[:PREDICTION_TITLE_MAX_LENGTH],
                description=description,
                confidence=confidence,
                timeframe=timeframe,
                predicted_value=Decimal(months) if months is not None else None,
                factors=[
                    f"{goal_progress(goal):.1f}% funded",
                    f"{baseline.months_of_data} month(s) of history",
                ],
            )
        )

    return predictions
