"""
Audit Logger

DESIGN DECISION: Every mutation, AI outcome and storage failure is
logged as a structured JSON event. This provides:
1. Per-user traceability of edits
2. Visibility into how often the AI endpoint falls back
3. A trail for "offline" and permission incidents

The audit logger:
- Never raises; a logging failure must not break a user action
- Exposes a sync emit() for callbacks (e.g. tenacity hooks) and an
  async log() for service code
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from moneymigo.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's stdlib loggers to stderr at `level`."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, logger_name: str = "moneymigo.audit"):
        self._logger = structlog.get_logger(logger_name)

    def emit(self, event: AuditEvent) -> bool:
        """
        Write an audit event to the structured log.

        Returns False instead of raising if the log write fails.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity.value == "error":
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    async def log(self, event: AuditEvent) -> bool:
        return self.emit(event)

    async def log_transaction_added(
        self,
        user_id: str,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        impact_score: float,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_added(
            user_id=user_id,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            impact_score=impact_score,
        ))

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.record_changed(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
        ))

    async def log_story_event(self, user_id: str, story_event_id: UUID, title: str) -> None:
        await self.log(AuditEventBuilder.story_event_recorded(
            user_id=user_id,
            story_event_id=story_event_id,
            title=title,
        ))

    async def log_profile_refreshed(
        self,
        user_id: str,
        avatar_level: int,
        avatar_type: str,
        health_score: float,
    ) -> None:
        await self.log(AuditEventBuilder.profile_refreshed(
            user_id=user_id,
            avatar_level=avatar_level,
            avatar_type=avatar_type,
            health_score=health_score,
        ))

    async def log_generated(
        self,
        event_type: AuditEventType,
        user_id: str,
        count: int,
    ) -> None:
        await self.log(AuditEventBuilder.derived_records_generated(
            event_type=event_type,
            user_id=user_id,
            count=count,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error: Exception,
        user_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            user_id=user_id,
        ))
