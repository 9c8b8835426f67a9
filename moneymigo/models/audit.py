"""
Audit Models for MoneyMigo

Every mutation, AI call outcome and storage failure is recorded as a
structured event. This provides:
1. Traceability of user actions per user id
2. Debugging information when the AI endpoint or a backend misbehaves
3. A single vocabulary of event names for log queries

DESIGN DECISION: Audit events are append-only log records.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Planning
    BUDGET_SAVED = "budget_saved"
    BUDGET_DELETED = "budget_deleted"
    GOAL_SAVED = "goal_saved"
    GOAL_DELETED = "goal_deleted"

    # Derived records
    PROFILE_REFRESHED = "profile_refreshed"
    STORY_EVENT_RECORDED = "story_event_recorded"
    INSIGHTS_GENERATED = "insights_generated"
    PREDICTIONS_GENERATED = "predictions_generated"

    # AI client
    AI_REQUEST_SUCCEEDED = "ai_request_succeeded"
    AI_REQUEST_RETRIED = "ai_request_retried"
    AI_FALLBACK_RETURNED = "ai_fallback_returned"

    # Storage
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who and what
    user_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'ai_request')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(txn)
        event = AuditEventBuilder.ai_fallback_returned("insights", 3, "503 overloaded")
    """

    @staticmethod
    def transaction_added(
        user_id: str,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        impact_score: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Recorded {transaction_type} of {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
                "impact_score": impact_score,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: UUID,
    ) -> AuditEvent:
        verb = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {verb}",
            is_user_action=True,
        )

    @staticmethod
    def story_event_recorded(
        user_id: str,
        story_event_id: UUID,
        title: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORY_EVENT_RECORDED,
            user_id=user_id,
            entity_type="story_event",
            entity_id=story_event_id,
            description=f"Story event recorded: {title}",
        )

    @staticmethod
    def profile_refreshed(
        user_id: str,
        avatar_level: int,
        avatar_type: str,
        health_score: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_REFRESHED,
            user_id=user_id,
            entity_type="profile",
            description=f"Avatar now level {avatar_level} ({avatar_type})",
            details={
                "avatar_level": avatar_level,
                "avatar_type": avatar_type,
                "health_score": health_score,
            },
        )

    @staticmethod
    def derived_records_generated(
        event_type: AuditEventType,
        user_id: str,
        count: int,
    ) -> AuditEvent:
        kind = "insights" if event_type == AuditEventType.INSIGHTS_GENERATED else "predictions"
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=kind,
            description=f"Generated {count} {kind}",
            details={"count": count},
        )

    @staticmethod
    def ai_request_succeeded(
        request_type: str,
        attempts: int,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_REQUEST_SUCCEEDED,
            user_id=user_id,
            entity_type="ai_request",
            description=f"AI {request_type} generated after {attempts} attempt(s)",
            details={
                "request_type": request_type,
                "attempts": attempts,
            },
        )

    @staticmethod
    def ai_request_retried(
        request_type: str,
        attempt: int,
        sleep_seconds: float,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_REQUEST_RETRIED,
            severity=AuditSeverity.WARNING,
            entity_type="ai_request",
            description=f"AI {request_type} attempt {attempt} failed, retrying",
            details={
                "request_type": request_type,
                "attempt": attempt,
                "sleep_seconds": round(sleep_seconds, 3),
            },
            error_message=error_message,
        )

    @staticmethod
    def ai_fallback_returned(
        request_type: str,
        attempts: int,
        error_message: Optional[str],
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_FALLBACK_RETURNED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="ai_request",
            description=f"AI {request_type} unavailable, canned response returned",
            details={
                "request_type": request_type,
                "attempts": attempts,
            },
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_type: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Storage error during {operation}: {error_type}",
            details={
                "operation": operation,
                "error_type": error_type,
            },
            error_message=error_message,
        )
