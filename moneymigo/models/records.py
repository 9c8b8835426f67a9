"""
Derived Records for MoneyMigo

Insights, story events and predictions are produced by the analytics
layer, never typed in by the user. They are append-only: the only user
mutation is marking an insight as read.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from moneymigo.models.finance import Mood, Priority


class InsightType(str, Enum):
    """Kinds of rule-based observations."""
    SPENDING_PATTERN = "spending_pattern"
    SAVING_OPPORTUNITY = "saving_opportunity"
    RISK_ALERT = "risk_alert"
    GOAL_PROGRESS = "goal_progress"
    POSITIVE_TREND = "positive_trend"
    SPENDING_TIP = "spending_tip"


class StoryEventType(str, Enum):
    MILESTONE = "milestone"
    SETBACK = "setback"
    BREAKTHROUGH = "breakthrough"
    HABIT_FORMED = "habit_formed"


class StoryImpact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class PredictionType(str, Enum):
    GOAL_COMPLETION = "goal_completion"
    SPENDING_TREND = "spending_trend"
    SAVINGS_POTENTIAL = "savings_potential"


class PredictionTimeframe(str, Enum):
    ONE_MONTH = "1_month"
    THREE_MONTHS = "3_months"
    SIX_MONTHS = "6_months"
    ONE_YEAR = "1_year"


class PredictionStatus(str, Enum):
    ACTIVE = "active"
    ACHIEVED = "achieved"
    MISSED = "missed"
    UPDATED = "updated"


class Insight(BaseModel):
    """A short derived observation shown on the insight cards."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    insight_type: InsightType
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=1000)
    actionable: bool = False
    suggested_actions: list[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    category: str = Field(default="general", max_length=100)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    is_read: bool = False


class StoryEvent(BaseModel):
    """A key moment in the user's financial journey."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=1000)
    event_type: StoryEventType
    impact: StoryImpact
    date: date
    related_goal_id: Optional[UUID] = None
    emotional_context: Optional[Mood] = None
    lessons_learned: list[str] = Field(default_factory=list)


class Prediction(BaseModel):
    """A forecast produced by the rule-based forecaster."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    prediction_type: PredictionType
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=1000)
    confidence: float = Field(..., ge=0.0, le=100.0)
    timeframe: PredictionTimeframe
    predicted_value: Optional[Decimal] = None
    factors: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    status: PredictionStatus = PredictionStatus.ACTIVE
