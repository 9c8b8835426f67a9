"""Audit logging package."""

from moneymigo.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
