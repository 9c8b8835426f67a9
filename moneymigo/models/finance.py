"""
Core Data Models for MoneyMigo

These models define the strict schemas for user-entered financial records.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for any storage backend

DESIGN DECISION: Every record carries its owner's user_id. Ownership is
checked by the storage layer, never inferred by business logic.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Kind of money movement."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"
    INVESTMENT = "investment"


class Mood(str, Enum):
    """How the user felt when recording a transaction."""
    HAPPY = "happy"
    STRESSED = "stressed"
    CONFIDENT = "confident"
    WORRIED = "worried"


class BudgetPeriod(str, Enum):
    """Window a budget limit applies to."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class Priority(str, Enum):
    """Priority used by goals and insights."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AvatarType(str, Enum):
    """Avatar stage derived from the financial health score."""
    THRIVING = "thriving"
    STABLE = "stable"
    GROWING = "growing"
    REBUILDING = "rebuilding"


class SpendingPersonality(str, Enum):
    SAVER = "saver"
    SPENDER = "spender"
    BALANCED = "balanced"
    IMPULSIVE = "impulsive"


class RiskTolerance(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class GoalOrientation(str, Enum):
    SHORT_TERM = "short-term"
    LONG_TERM = "long-term"
    MIXED = "mixed"


# =============================================================================
# BUDGETS AND GOALS
# =============================================================================

class Budget(BaseModel):
    """
    A per-category spending ceiling.

    `spent` is never authoritative in storage; it is recomputed from
    transactions by analytics.metrics.budgets_with_spent.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    limit: Annotated[Decimal, Field(gt=0, decimal_places=2)]
    spent: Annotated[Decimal, Field(ge=0, decimal_places=2)] = Decimal("0")
    period: BudgetPeriod = BudgetPeriod.MONTHLY

    @property
    def utilization_percent(self) -> float:
        """Spent as a share of the limit, capped at 100."""
        return min(float(self.spent / self.limit) * 100, 100.0)

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.limit


class Goal(BaseModel):
    """A savings target with a deadline."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    target_amount: Annotated[Decimal, Field(gt=0, decimal_places=2)]
    current_amount: Annotated[Decimal, Field(ge=0, decimal_places=2)] = Decimal("0")
    deadline: date
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = Field(default=None, max_length=100)

    def days_left(self, today: date) -> int:
        return (self.deadline - today).days


# =============================================================================
# FINANCIAL PROFILE / AVATAR
# =============================================================================

class FinancialDNA(BaseModel):
    """Behavioural traits inferred from transaction history."""

    spending_personality: SpendingPersonality = SpendingPersonality.BALANCED
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    goal_orientation: GoalOrientation = GoalOrientation.MIXED
    consistency_score: float = Field(default=50.0, ge=0.0, le=100.0)


class FinancialProfile(BaseModel):
    """
    Gamified summary of a user's financial health. One per user.

    Recomputed from history by analytics.profile.compute_profile.
    """

    user_id: str = Field(..., min_length=1)
    avatar_level: int = Field(
        default=AVATAR_LEVEL_MIN,
        ge=AVATAR_LEVEL_MIN,
        le=AVATAR_LEVEL_MAX,
    )
    avatar_type: AvatarType = AvatarType.GROWING
    financial_dna: FinancialDNA = Field(default_factory=FinancialDNA)
    goal_ids: list[UUID] = Field(default_factory=list)
    monthly_income: Optional[Annotated[Decimal, Field(ge=0, decimal_places=2)]] = None
    last_updated: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("goal_ids")
    @classmethod
    def dedupe_goal_ids(cls, v: list[UUID]) -> list[UUID]:
        return list(dict.fromkeys(v))
