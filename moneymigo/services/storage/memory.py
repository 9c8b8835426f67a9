"""
In-Memory Storage

Backs the demo mode and the test suite. Holds every collection in
plain dicts keyed by id; records are copied on the way in and out so
callers can't mutate stored state by accident.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from moneymigo.analytics.metrics import filter_between
from moneymigo.models.finance import (
    Budget,
    FinancialProfile,
    Goal,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import Insight, Prediction, StoryEvent
from moneymigo.services.storage.interface import LedgerStorage, NotFoundError


def _newest_transactions_first(transactions: list[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: (t.date, t.created_at), reverse=True)


def _limited(items: list, limit: Optional[int]) -> list:
    return items if limit is None else items[:limit]


class InMemoryLedgerStorage(LedgerStorage):
    """Process-local implementation of every storage interface."""

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}
        self._budgets: dict[UUID, Budget] = {}
        self._goals: dict[UUID, Goal] = {}
        self._profiles: dict[str, FinancialProfile] = {}
        self._insights: dict[UUID, Insight] = {}
        self._story_events: dict[UUID, StoryEvent] = {}
        self._predictions: dict[UUID, Prediction] = {}

    @staticmethod
    def _owned(records: dict, user_id: str, record_id: UUID):
        record = records.get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    # Transactions

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        self._transactions[transaction.id] = transaction.model_copy(deep=True)
        return transaction

    async def get_transaction(self, user_id: str, transaction_id: UUID) -> Optional[Transaction]:
        found = self._owned(self._transactions, user_id, transaction_id)
        return found.model_copy(deep=True) if found else None

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        if self._owned(self._transactions, transaction.user_id, transaction.id) is None:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        self._transactions[transaction.id] = transaction.model_copy(deep=True)
        return transaction

    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        if self._owned(self._transactions, user_id, transaction_id) is None:
            return False
        del self._transactions[transaction_id]
        return True

    async def list_transactions(
        self,
        user_id: str,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        results = []
        for t in filter_between(self._transactions.values(), date_from, date_to):
            if t.user_id != user_id:
                continue
            if transaction_type and t.type != transaction_type:
                continue
            if category and t.category != category:
                continue
            results.append(t.model_copy(deep=True))
        return _limited(_newest_transactions_first(results), limit)

    # Budgets and goals

    async def save_budget(self, budget: Budget) -> Budget:
        existing = self._budgets.get(budget.id)
        if existing is not None and existing.user_id != budget.user_id:
            raise NotFoundError(f"Budget not found: {budget.id}")
        self._budgets[budget.id] = budget.model_copy(deep=True)
        return budget

    async def delete_budget(self, user_id: str, budget_id: UUID) -> bool:
        if self._owned(self._budgets, user_id, budget_id) is None:
            return False
        del self._budgets[budget_id]
        return True

    async def list_budgets(self, user_id: str) -> list[Budget]:
        budgets = [b.model_copy(deep=True) for b in self._budgets.values() if b.user_id == user_id]
        return sorted(budgets, key=lambda b: b.category)

    async def save_goal(self, goal: Goal) -> Goal:
        existing = self._goals.get(goal.id)
        if existing is not None and existing.user_id != goal.user_id:
            raise NotFoundError(f"Goal not found: {goal.id}")
        self._goals[goal.id] = goal.model_copy(deep=True)
        return goal

    async def get_goal(self, user_id: str, goal_id: UUID) -> Optional[Goal]:
        found = self._owned(self._goals, user_id, goal_id)
        return found.model_copy(deep=True) if found else None

    async def delete_goal(self, user_id: str, goal_id: UUID) -> bool:
        if self._owned(self._goals, user_id, goal_id) is None:
            return False
        del self._goals[goal_id]
        return True

    async def list_goals(self, user_id: str) -> list[Goal]:
        goals = [g.model_copy(deep=True) for g in self._goals.values() if g.user_id == user_id]
        return sorted(goals, key=lambda g: g.deadline)

    # Profiles

    async def get_profile(self, user_id: str) -> Optional[FinancialProfile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    async def save_profile(self, profile: FinancialProfile) -> FinancialProfile:
        self._profiles[profile.user_id] = profile.model_copy(deep=True)
        return profile

    # Derived records

    async def save_insights(self, insights: list[Insight]) -> list[Insight]:
        for insight in insights:
            self._insights[insight.id] = insight.model_copy(deep=True)
        return insights

    async def list_insights(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> list[Insight]:
        insights = [
            i.model_copy(deep=True)
            for i in self._insights.values()
            if i.user_id == user_id and not (unread_only and i.is_read)
        ]
        insights.sort(key=lambda i: i.created_at, reverse=True)
        return _limited(insights, limit)

    async def mark_insight_read(self, user_id: str, insight_id: UUID) -> Insight:
        insight = self._owned(self._insights, user_id, insight_id)
        if insight is None:
            raise NotFoundError(f"Insight not found: {insight_id}")
        updated = insight.model_copy(update={"is_read": True})
        self._insights[insight_id] = updated
        return updated.model_copy(deep=True)

    async def save_story_event(self, event: StoryEvent) -> StoryEvent:
        self._story_events[event.id] = event.model_copy(deep=True)
        return event

    async def list_story_events(self, user_id: str, limit: Optional[int] = None) -> list[StoryEvent]:
        events = [e.model_copy(deep=True) for e in self._story_events.values() if e.user_id == user_id]
        events.sort(key=lambda e: e.date, reverse=True)
        return _limited(events, limit)

    async def save_predictions(self, predictions: list[Prediction]) -> list[Prediction]:
        for prediction in predictions:
            self._predictions[prediction.id] = prediction.model_copy(deep=True)
        return predictions

    async def list_predictions(self, user_id: str, limit: Optional[int] = None) -> list[Prediction]:
        predictions = [
            p.model_copy(deep=True) for p in self._predictions.values() if p.user_id == user_id
        ]
        predictions.sort(key=lambda p: p.created_at, reverse=True)
        return _limited(predictions, limit)
