"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for the demo and for testing
3. Keep business logic decoupled from storage implementation

Every call is an explicit async request/response. There are no
change subscriptions: the service layer re-reads after writing.

OWNERSHIP: every read, update and delete takes the caller's user_id.
A record that belongs to someone else behaves exactly like a record
that does not exist (NotFoundError / None).
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from moneymigo.models.finance import (
    Budget,
    FinancialProfile,
    Goal,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import Insight, Prediction, StoryEvent


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert a new transaction.

        Returns:
            The stored transaction

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, user_id: str, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve one of the user's transactions, or None."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace an existing transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist for this user
        """
        pass

    @abstractmethod
    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        """
        Delete a transaction.

        Returns:
            True if deleted, False if the user had no such transaction
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: str,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """
        List the user's transactions, newest first.

        Args:
            user_id: Owner of the transactions
            transaction_type: Filter by type
            category: Filter by exact category
            date_from: Transactions on or after this date
            date_to: Transactions on or before this date
            limit: Maximum number of results
        """
        pass


class BudgetGoalStorageInterface(ABC):
    """Budgets and savings goals. Both are small per-user collections."""

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """Insert or replace a budget (matched by id and owner)."""
        pass

    @abstractmethod
    async def delete_budget(self, user_id: str, budget_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_budgets(self, user_id: str) -> list[Budget]:
        pass

    @abstractmethod
    async def save_goal(self, goal: Goal) -> Goal:
        """Insert or replace a goal (matched by id and owner)."""
        pass

    @abstractmethod
    async def get_goal(self, user_id: str, goal_id: UUID) -> Optional[Goal]:
        pass

    @abstractmethod
    async def delete_goal(self, user_id: str, goal_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_goals(self, user_id: str) -> list[Goal]:
        """List the user's goals, nearest deadline first."""
        pass


class ProfileStorageInterface(ABC):
    """One FinancialProfile per user."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[FinancialProfile]:
        pass

    @abstractmethod
    async def save_profile(self, profile: FinancialProfile) -> FinancialProfile:
        """Insert or replace the profile for profile.user_id."""
        pass


class InsightStorageInterface(ABC):
    """
    Derived records: insights, story events and predictions.

    These are append-only apart from marking an insight as read.
    """

    @abstractmethod
    async def save_insights(self, insights: list[Insight]) -> list[Insight]:
        pass

    @abstractmethod
    async def list_insights(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> list[Insight]:
        """List insights, newest first."""
        pass

    @abstractmethod
    async def mark_insight_read(self, user_id: str, insight_id: UUID) -> Insight:
        """
        Raises:
            NotFoundError: If the insight doesn't exist for this user
        """
        pass

    @abstractmethod
    async def save_story_event(self, event: StoryEvent) -> StoryEvent:
        pass

    @abstractmethod
    async def list_story_events(self, user_id: str, limit: Optional[int] = None) -> list[StoryEvent]:
        """List story events, most recent date first."""
        pass

    @abstractmethod
    async def save_predictions(self, predictions: list[Prediction]) -> list[Prediction]:
        pass

    @abstractmethod
    async def list_predictions(self, user_id: str, limit: Optional[int] = None) -> list[Prediction]:
        """List predictions, newest first."""
        pass


class LedgerStorage(
    TransactionStorageInterface,
    BudgetGoalStorageInterface,
    ProfileStorageInterface,
    InsightStorageInterface,
    ABC,
):
    """A backend that holds every collection of the ledger."""
    pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage (or owned by another user)."""
    pass


class PermissionDeniedError(StorageError):
    """
    The backend refused access. Never retried.

    `remediation` is a message the UI can show as-is.
    """

    def __init__(self, message: str, remediation: str = ""):
        super().__init__(message)
        self.remediation = remediation or (
            "Check that the service account has edit access to the spreadsheet."
        )


class StorageUnavailableError(StorageError):
    """
    Backend unreachable, overloaded or rate limited.

    Raised only after the bounded retries are spent; the UI shows the
    offline state.
    """
    pass
