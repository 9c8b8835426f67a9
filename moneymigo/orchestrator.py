"""
Main Orchestrator for MoneyMigo

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger commands (transactions, budgets, goals, profile, insights)
2. AI narration (snapshot -> prompt -> Gemini -> text or fallback)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every number shown to the user comes from the analytics layer
- The AI only narrates a snapshot of the user's own records
- Every mutation and storage failure is audited

Storage calls are explicit request/response: after a write, callers
re-read whatever they display.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from moneymigo.agents import AIResponse, FinancialSnapshot, GeminiInsightClient
from moneymigo.analytics.forecast import (
    MonthForecast,
    build_predictions,
    forecast_month,
    impact_score,
    months_to_goal,
)
from moneymigo.analytics.gamification import GamificationSummary, summarize_gamification
from moneymigo.analytics.insights import generate_rule_insights
from moneymigo.analytics.metrics import (
    FinancialBaseline,
    PeriodSummary,
    Totals,
    budgets_with_spent,
    financial_baseline,
    goal_progress,
    summarize,
    top_categories,
    trailing_months,
)
from moneymigo.analytics.profile import compute_profile, story_event_for
from moneymigo.audit import AuditLogger, configure_logging
from moneymigo.config import AppSettings, Settings, get_settings
from moneymigo.export import export_transactions
from moneymigo.models.audit import AuditEventType
from moneymigo.models.finance import (
    Budget,
    BudgetPeriod,
    FinancialProfile,
    Goal,
    Mood,
    Priority,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import Insight, Prediction, StoryEvent
from moneymigo.services.storage import (
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorage,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger("moneymigo.orchestrator")

RECENT_ON_DASHBOARD = 10


class TransactionRecorded(BaseModel):
    """Result of adding a transaction."""

    transaction: Transaction
    story_event: Optional[StoryEvent] = None


class GoalStatus(BaseModel):
    goal: Goal
    progress_percent: float = Field(ge=0.0, le=100.0)
    days_left: int
    months_to_complete: Optional[int] = None


class DashboardSnapshot(BaseModel):
    """Everything the dashboard shows, computed in one pass."""

    as_of: date
    totals: Totals
    forecast: MonthForecast
    baseline: FinancialBaseline
    monthly_trend: list[PeriodSummary]
    top_categories: list[tuple[str, Decimal]]
    budgets: list[Budget]
    goals: list[GoalStatus]
    recent_transactions: list[Transaction]
    profile: FinancialProfile
    gamification: GamificationSummary


class LedgerService:
    """
    Orchestrates every user command against storage and analytics.

    All reads and writes are scoped by user_id; storage failures are
    audited and re-raised for the UI to show the offline or
    permission state.
    """

    def __init__(
        self,
        storage: LedgerStorage,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._app = app_settings or AppSettings()
        self._clock = clock or date.today

    def today(self) -> date:
        return self._clock()

    async def _call(self, operation: str, user_id: Optional[str], coro) -> Any:
        """Await a storage call, auditing failures before they propagate."""
        try:
            return await coro
        except StorageError as e:
            await self._audit_logger.log_storage_error(operation, e, user_id=user_id)
            raise

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def add_transaction(
        self,
        user_id: str,
        amount: Decimal,
        category: str,
        transaction_type: TransactionType,
        description: str = "",
        transaction_date: Optional[date] = None,
        subcategory: Optional[str] = None,
        mood: Optional[Mood] = None,
        is_recurring: bool = False,
    ) -> TransactionRecorded:
        """
        Record a transaction, scoring its impact.

        A transaction whose |impact| exceeds the story threshold also
        records a breakthrough or setback story event.
        """
        transaction = Transaction(
            user_id=user_id,
            amount=amount,
            category=category,
            subcategory=subcategory,
            description=description,
            date=transaction_date or self.today(),
            type=transaction_type,
            mood=mood,
            impact_score=impact_score(TransactionType(transaction_type), Decimal(amount)),
            is_recurring=is_recurring,
        )
        await self._call("save_transaction", user_id, self._storage.save_transaction(transaction))
        await self._audit_logger.log_transaction_added(
            user_id=user_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            impact_score=transaction.impact_score,
        )

        story_event = story_event_for(
            transaction,
            threshold=self._app.story_event_threshold,
            currency=self._app.currency_symbol,
        )
        if story_event is not None:
            await self.add_story_event(story_event)

        return TransactionRecorded(transaction=transaction, story_event=story_event)

    async def update_transaction(self, user_id: str, transaction_id: UUID, **changes) -> Transaction:
        """
        Apply field changes to one of the user's transactions.

        The impact score is recomputed from the resulting amount and type.

        Raises:
            NotFoundError: no such transaction for this user
            ValidationError: the changes produce an invalid transaction
        """
        existing = await self._call(
            "get_transaction", user_id, self._storage.get_transaction(user_id, transaction_id)
        )
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        changes.pop("id", None)
        changes.pop("user_id", None)
        updated = Transaction.model_validate({**existing.model_dump(), **changes})
        updated.impact_score = impact_score(updated.type, updated.amount)

        await self._call("update_transaction", user_id, self._storage.update_transaction(updated))
        await self._audit_logger.log_record_changed(
            AuditEventType.TRANSACTION_UPDATED, user_id, "transaction", updated.id
        )
        return updated

    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        deleted = await self._call(
            "delete_transaction", user_id, self._storage.delete_transaction(user_id, transaction_id)
        )
        if deleted:
            await self._audit_logger.log_record_changed(
                AuditEventType.TRANSACTION_DELETED, user_id, "transaction", transaction_id
            )
        return deleted

    async def list_transactions(self, user_id: str, **filters) -> list[Transaction]:
        """The user's transactions, newest first. See list_transactions on the storage interface."""
        return await self._call(
            "list_transactions", user_id, self._storage.list_transactions(user_id, **filters)
        )

    async def recent_transactions(self, user_id: str, limit: int = 20) -> list[Transaction]:
        return await self.list_transactions(user_id, limit=limit)

    async def export_csv(self, user_id: str) -> str:
        """All of the user's transactions as CSV, newest first."""
        return export_transactions(await self.list_transactions(user_id))

    # =========================================================================
    # BUDGETS
    # =========================================================================

    async def save_budget(
        self,
        user_id: str,
        category: str,
        limit: Decimal,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
        budget_id: Optional[UUID] = None,
    ) -> Budget:
        """Create a budget, or replace one when budget_id is given."""
        fields = {"user_id": user_id, "category": category, "limit": limit, "period": period}
        if budget_id is not None:
            fields["id"] = budget_id
        budget = Budget(**fields)
        await self._call("save_budget", user_id, self._storage.save_budget(budget))
        await self._audit_logger.log_record_changed(
            AuditEventType.BUDGET_SAVED, user_id, "budget", budget.id
        )
        return budget

    async def delete_budget(self, user_id: str, budget_id: UUID) -> bool:
        deleted = await self._call(
            "delete_budget", user_id, self._storage.delete_budget(user_id, budget_id)
        )
        if deleted:
            await self._audit_logger.log_record_changed(
                AuditEventType.BUDGET_DELETED, user_id, "budget", budget_id
            )
        return deleted

    async def list_budgets(self, user_id: str) -> list[Budget]:
        """Budgets with `spent` recomputed from this period's expenses."""
        budgets = await self._call("list_budgets", user_id, self._storage.list_budgets(user_id))
        transactions = await self.list_transactions(user_id)
        return budgets_with_spent(budgets, transactions, self.today())

    # =========================================================================
    # GOALS
    # =========================================================================

    async def save_goal(
        self,
        user_id: str,
        title: str,
        target_amount: Decimal,
        deadline: date,
        current_amount: Decimal = Decimal("0"),
        priority: Priority = Priority.MEDIUM,
        category: Optional[str] = None,
        goal_id: Optional[UUID] = None,
    ) -> Goal:
        """Create a goal, or replace one when goal_id is given."""
        fields = {
            "user_id": user_id,
            "title": title,
            "target_amount": target_amount,
            "current_amount": current_amount,
            "deadline": deadline,
            "priority": priority,
            "category": category,
        }
        if goal_id is not None:
            fields["id"] = goal_id
        goal = Goal(**fields)
        await self._call("save_goal", user_id, self._storage.save_goal(goal))
        await self._audit_logger.log_record_changed(
            AuditEventType.GOAL_SAVED, user_id, "goal", goal.id
        )
        await self._sync_profile_goals(user_id)
        return goal

    async def contribute_to_goal(self, user_id: str, goal_id: UUID, amount: Decimal) -> Goal:
        """
        Add `amount` to a goal's saved total.

        Raises:
            NotFoundError: no such goal for this user
        """
        goal = await self._call("get_goal", user_id, self._storage.get_goal(user_id, goal_id))
        if goal is None:
            raise NotFoundError(f"Goal not found: {goal_id}")
        updated = Goal.model_validate(
            {**goal.model_dump(), "current_amount": goal.current_amount + Decimal(amount)}
        )
        await self._call("save_goal", user_id, self._storage.save_goal(updated))
        await self._audit_logger.log_record_changed(
            AuditEventType.GOAL_SAVED, user_id, "goal", updated.id
        )
        return updated

    async def delete_goal(self, user_id: str, goal_id: UUID) -> bool:
        deleted = await self._call("delete_goal", user_id, self._storage.delete_goal(user_id, goal_id))
        if deleted:
            await self._audit_logger.log_record_changed(
                AuditEventType.GOAL_DELETED, user_id, "goal", goal_id
            )
            await self._sync_profile_goals(user_id)
        return deleted

    async def list_goals(self, user_id: str) -> list[Goal]:
        return await self._call("list_goals", user_id, self._storage.list_goals(user_id))

    async def goal_statuses(self, user_id: str) -> list[GoalStatus]:
        """Progress, days left and months-to-complete at the current savings rate."""
        goals = await self.list_goals(user_id)
        transactions = await self.list_transactions(user_id)
        monthly_savings = financial_baseline(transactions).monthly_net_savings
        today = self.today()
        return [
            GoalStatus(
                goal=goal,
                progress_percent=goal_progress(goal),
                days_left=goal.days_left(today),
                months_to_complete=months_to_goal(goal, monthly_savings),
            )
            for goal in goals
        ]

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def get_profile(self, user_id: str) -> FinancialProfile:
        """The user's profile, created with defaults on first access."""
        profile = await self._call("get_profile", user_id, self._storage.get_profile(user_id))
        if profile is None:
            profile = FinancialProfile(user_id=user_id)
            await self._call("save_profile", user_id, self._storage.save_profile(profile))
        return profile

    async def update_income(self, user_id: str, monthly_income: Decimal) -> FinancialProfile:
        profile = await self.get_profile(user_id)
        updated = FinancialProfile.model_validate(
            {**profile.model_dump(), "monthly_income": monthly_income}
        )
        return await self._call("save_profile", user_id, self._storage.save_profile(updated))

    async def _sync_profile_goals(self, user_id: str) -> FinancialProfile:
        profile = await self.get_profile(user_id)
        goals = await self.list_goals(user_id)
        updated = profile.model_copy(update={"goal_ids": [g.id for g in goals]})
        return await self._call("save_profile", user_id, self._storage.save_profile(updated))

    async def refresh_profile(self, user_id: str) -> FinancialProfile:
        """Recompute avatar level, avatar type and DNA from goals and recent activity."""
        profile = await self.get_profile(user_id)
        goals = await self.list_goals(user_id)
        recent = await self.list_transactions(user_id, limit=self._app.profile_sample_size)

        update = compute_profile(profile, goals, recent)
        await self._call("save_profile", user_id, self._storage.save_profile(update.profile))
        await self._audit_logger.log_profile_refreshed(
            user_id=user_id,
            avatar_level=update.profile.avatar_level,
            avatar_type=update.profile.avatar_type.value,
            health_score=update.health_score,
        )
        return update.profile

    # =========================================================================
    # STORY, INSIGHTS, PREDICTIONS
    # =========================================================================

    async def add_story_event(self, event: StoryEvent) -> StoryEvent:
        await self._call("save_story_event", event.user_id, self._storage.save_story_event(event))
        await self._audit_logger.log_story_event(event.user_id, event.id, event.title)
        return event

    async def story_timeline(self, user_id: str, limit: Optional[int] = None) -> list[StoryEvent]:
        return await self._call(
            "list_story_events", user_id, self._storage.list_story_events(user_id, limit=limit)
        )

    async def generate_insights(self, user_id: str) -> list[Insight]:
        """Run the insight rules over the user's records and store what fires."""
        transactions = await self.list_transactions(user_id)
        goals = await self.list_goals(user_id)
        insights = generate_rule_insights(
            user_id,
            transactions,
            goals,
            self.today(),
            currency=self._app.currency_symbol,
        )
        if insights:
            await self._call("save_insights", user_id, self._storage.save_insights(insights))
        await self._audit_logger.log_generated(
            AuditEventType.INSIGHTS_GENERATED, user_id, len(insights)
        )
        return insights

    async def list_insights(self, user_id: str, unread_only: bool = False, limit: Optional[int] = None) -> list[Insight]:
        return await self._call(
            "list_insights",
            user_id,
            self._storage.list_insights(user_id, unread_only=unread_only, limit=limit),
        )

    async def mark_insight_read(self, user_id: str, insight_id: UUID) -> Insight:
        return await self._call(
            "mark_insight_read", user_id, self._storage.mark_insight_read(user_id, insight_id)
        )

    async def generate_predictions(self, user_id: str) -> list[Prediction]:
        transactions = await self.list_transactions(user_id)
        goals = await self.list_goals(user_id)
        predictions = build_predictions(
            user_id,
            transactions,
            goals,
            self.today(),
            currency=self._app.currency_symbol,
        )
        await self._call("save_predictions", user_id, self._storage.save_predictions(predictions))
        await self._audit_logger.log_generated(
            AuditEventType.PREDICTIONS_GENERATED, user_id, len(predictions)
        )
        return predictions

    async def list_predictions(self, user_id: str, limit: Optional[int] = None) -> list[Prediction]:
        return await self._call(
            "list_predictions", user_id, self._storage.list_predictions(user_id, limit=limit)
        )

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    async def snapshot(self, user_id: str) -> FinancialSnapshot:
        """The records the AI prompt is built from."""
        return FinancialSnapshot(
            transactions=await self.list_transactions(user_id),
            budgets=await self.list_budgets(user_id),
            goals=await self.list_goals(user_id),
        )

    async def dashboard(self, user_id: str) -> DashboardSnapshot:
        today = self.today()
        transactions = await self.list_transactions(user_id)
        budgets = await self._call("list_budgets", user_id, self._storage.list_budgets(user_id))

        return DashboardSnapshot(
            as_of=today,
            totals=summarize(transactions),
            forecast=forecast_month(transactions, today),
            baseline=financial_baseline(transactions),
            monthly_trend=trailing_months(transactions, today),
            top_categories=top_categories(transactions),
            budgets=budgets_with_spent(budgets, transactions, today),
            goals=await self.goal_statuses(user_id),
            recent_transactions=transactions[:RECENT_ON_DASHBOARD],
            profile=await self.get_profile(user_id),
            gamification=summarize_gamification(transactions, today),
        )


class InsightFlow:
    """
    Orchestrates the AI narration flow.

    CRITICAL BOUNDARIES:
    1. Records -> snapshot (from storage, this user only)
    2. Snapshot -> prompt (deterministic numbers)
    3. Prompt -> Gemini -> text, or canned fallback text

    AIConfigurationError propagates so the UI can point at Settings.
    """

    def __init__(
        self,
        ledger: LedgerService,
        ai_client: GeminiInsightClient,
        app_settings: Optional[AppSettings] = None,
    ):
        self._ledger = ledger
        self._ai_client = ai_client
        self._app = app_settings or AppSettings()

    async def _request(self, user_id: str, generate) -> AIResponse:
        snapshot = await self._ledger.snapshot(user_id)
        return await generate(
            snapshot,
            self._ledger.today(),
            currency=self._app.currency_symbol,
            recent_days=self._app.recent_window_days,
            user_id=user_id,
        )

    async def insights(self, user_id: str) -> AIResponse:
        return await self._request(user_id, self._ai_client.generate_insights)

    async def story(self, user_id: str) -> AIResponse:
        return await self._request(user_id, self._ai_client.generate_story)

    async def predictions(self, user_id: str) -> AIResponse:
        return await self._request(user_id, self._ai_client.generate_predictions)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[LedgerService, InsightFlow, LedgerStorage]:
    """
    Factory function to create all application components.

    Args:
        settings: Root settings; read from the environment when omitted.

    Returns:
        (ledger_service, insight_flow, storage)
    """
    settings = settings or get_settings()
    app = settings.app
    configure_logging(app.log_level)
    audit_logger = AuditLogger()

    storage: LedgerStorage
    if app.storage_backend == "google_sheets":
        try:
            storage = GoogleSheetsLedgerStorage(settings=settings.google_sheets)
        except ValueError as e:
            # Sheets settings missing - continue with the in-memory demo store
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))
            storage = InMemoryLedgerStorage()
    else:
        storage = InMemoryLedgerStorage()

    ledger = LedgerService(storage, audit_logger=audit_logger, app_settings=app)
    ai_client = GeminiInsightClient(settings.gemini, audit_logger=audit_logger)
    insight_flow = InsightFlow(ledger, ai_client, app_settings=app)

    return ledger, insight_flow, storage
