"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
an in-memory backend for demo mode and tests, and Google Sheets for
hosted use. Both sit behind the same interfaces.
"""

from moneymigo.services.storage.interface import (
    BudgetGoalStorageInterface,
    InsightStorageInterface,
    LedgerStorage,
    NotFoundError,
    PermissionDeniedError,
    ProfileStorageInterface,
    StorageError,
    StorageUnavailableError,
    TransactionStorageInterface,
)
from moneymigo.services.storage.memory import InMemoryLedgerStorage
from moneymigo.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    SheetSpec,
    record_to_row,
    row_to_record,
    translate_error,
)

__all__ = [
    # Interfaces
    "BudgetGoalStorageInterface",
    "InsightStorageInterface",
    "LedgerStorage",
    "ProfileStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    "StorageUnavailableError",
    # In-memory implementation
    "InMemoryLedgerStorage",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "SheetSpec",
    "record_to_row",
    "row_to_record",
    "translate_error",
]
