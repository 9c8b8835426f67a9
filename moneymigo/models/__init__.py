"""
Data Models Package

This package contains all Pydantic models used in MoneyMigo.
All data flowing through the system must conform to these schemas.
"""

from moneymigo.models.finance import (
    AVATAR_LEVEL_MAX,
    AVATAR_LEVEL_MIN,
    IMPACT_SCORE_MAX,
    IMPACT_SCORE_MIN,
    AvatarType,
    Budget,
    BudgetPeriod,
    FinancialDNA,
    FinancialProfile,
    Goal,
    GoalOrientation,
    Mood,
    Priority,
    RiskTolerance,
    SpendingPersonality,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import (
    Insight,
    InsightType,
    Prediction,
    PredictionStatus,
    PredictionTimeframe,
    PredictionType,
    StoryEvent,
    StoryEventType,
    StoryImpact,
)
from moneymigo.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "AVATAR_LEVEL_MAX",
    "AVATAR_LEVEL_MIN",
    "IMPACT_SCORE_MAX",
    "IMPACT_SCORE_MIN",
    "AvatarType",
    "Budget",
    "BudgetPeriod",
    "FinancialDNA",
    "FinancialProfile",
    "Goal",
    "GoalOrientation",
    "Mood",
    "Priority",
    "RiskTolerance",
    "SpendingPersonality",
    "Transaction",
    "TransactionType",
    # Derived records
    "Insight",
    "InsightType",
    "Prediction",
    "PredictionStatus",
    "PredictionTimeframe",
    "PredictionType",
    "StoryEvent",
    "StoryEventType",
    "StoryImpact",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
