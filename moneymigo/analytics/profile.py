"""
Financial profile scoring and story events.

The avatar is a gamified read-out of a health score:

    health = 50
           + sum(min(progress_ratio * 20, 20) for each goal)
           + mean(impact_score of recent transactions) * 5

Level, type and consistency score are all clamped views of that number.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel

from moneymigo.models.finance import (
    AVATAR_LEVEL_MAX,
    AVATAR_LEVEL_MIN,
    AvatarType,
    FinancialProfile,
    Goal,
    SpendingPersonality,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import StoryEvent, StoryEventType, StoryImpact


BASE_HEALTH_SCORE = 50.0
GOAL_CONTRIBUTION_CAP = 20.0
IMPACT_WEIGHT = 5.0
PERSONALITY_THRESHOLD = 2.0


class ProfileUpdate(BaseModel):
    """Result of a profile refresh."""

    profile: FinancialProfile
    health_score: float


def health_score(goals: Sequence[Goal], recent: Sequence[Transaction]) -> float:
    score = BASE_HEALTH_SCORE
    for goal in goals:
        ratio = float(goal.current_amount / goal.target_amount)
        score += min(ratio * GOAL_CONTRIBUTION_CAP, GOAL_CONTRIBUTION_CAP)
    score += average_impact(recent) * IMPACT_WEIGHT
    return score


def average_impact(transactions: Sequence[Transaction]) -> float:
    if not transactions:
        return 0.0
    return sum(t.impact_score for t in transactions) / len(transactions)


def avatar_level_for(score: float) -> int:
    return max(AVATAR_LEVEL_MIN, min(AVATAR_LEVEL_MAX, math.floor(score / 10)))


def avatar_type_for(score: float) -> AvatarType:
    if score >= 80:
        return AvatarType.THRIVING
    if score >= 60:
        return AvatarType.STABLE
    if score >= 40:
        return AvatarType.GROWING
    return AvatarType.REBUILDING


def personality_for(avg_impact: float) -> SpendingPersonality:
    if avg_impact > PERSONALITY_THRESHOLD:
        return SpendingPersonality.SAVER
    if avg_impact < -PERSONALITY_THRESHOLD:
        return SpendingPersonality.SPENDER
    return SpendingPersonality.BALANCED


def compute_profile(
    profile: FinancialProfile,
    goals: Sequence[Goal],
    recent: Sequence[Transaction],
    now: Optional[datetime] = None,
) -> ProfileUpdate:
    """
    Recompute avatar and DNA from goals and the most recent transactions.

    Only spending personality and consistency score are derived; risk
    tolerance and goal orientation stay as the user set them.
    """
    score = health_score(goals, recent)
    dna = profile.financial_dna.model_copy(update={
        "spending_personality": personality_for(average_impact(recent)),
        "consistency_score": max(0.0, min(100.0, score)),
    })
    updated = profile.model_copy(update={
        "avatar_level": avatar_level_for(score),
        "avatar_type": avatar_type_for(score),
        "financial_dna": dna,
        "goal_ids": [goal.id for goal in goals],
        "last_updated": now or datetime.utcnow(),
    })
    return ProfileUpdate(profile=updated, health_score=score)


def story_event_for(
    transaction: Transaction,
    threshold: float = 5.0,
    currency: str = "₹",
) -> Optional[StoryEvent]:
    """A breakthrough or setback when a single transaction moves health sharply."""
    if abs(transaction.impact_score) <= threshold:
        return None

    positive = transaction.impact_score > 0
    verb = "Earned" if transaction.type == TransactionType.INCOME else (
        "Invested" if transaction.type == TransactionType.INVESTMENT else "Spent"
    )
    amount = f"{currency}{Decimal(transaction.amount):,.2f}"
    return StoryEvent(
        user_id=transaction.user_id,
        title="Financial Boost!" if positive else "Significant Expense",
        description=f"{verb} {amount} on {transaction.category}",
        event_type=StoryEventType.BREAKTHROUGH if positive else StoryEventType.SETBACK,
        impact=StoryImpact.POSITIVE if positive else StoryImpact.NEGATIVE,
        date=transaction.date,
        emotional_context=transaction.mood,
    )
