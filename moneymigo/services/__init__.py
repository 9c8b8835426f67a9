"""Services package."""

from moneymigo.services.storage import (
    BudgetGoalStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    InsightStorageInterface,
    LedgerStorage,
    NotFoundError,
    PermissionDeniedError,
    ProfileStorageInterface,
    StorageError,
    StorageUnavailableError,
    TransactionStorageInterface,
)

__all__ = [
    # Storage services
    "BudgetGoalStorageInterface",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
    "InsightStorageInterface",
    "LedgerStorage",
    "NotFoundError",
    "PermissionDeniedError",
    "ProfileStorageInterface",
    "StorageError",
    "StorageUnavailableError",
    "TransactionStorageInterface",
]
