"""Tests for avatar scoring, story events and badges."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from moneymigo.analytics.gamification import (
    cash_balance,
    monthly_savings_average,
    savings_streak,
    summarize_gamification,
)
from moneymigo.analytics.profile import (
    avatar_level_for,
    avatar_type_for,
    compute_profile,
    health_score,
    story_event_for,
)
from moneymigo.models import (
    AvatarType,
    FinancialDNA,
    FinancialProfile,
    Mood,
    RiskTolerance,
    SpendingPersonality,
    StoryEventType,
    StoryImpact,
    TransactionType,
)

from tests.factories import TODAY, USER, expense, goal, income, txn


class TestHealthScore:

    def test_baseline_is_fifty(self):
        assert health_score([], []) == 50.0

    def test_goal_contribution_is_capped(self):
        assert health_score([goal(1000, 5000)], []) == 70.0

    def test_impact_weight(self):
        recent = [income(1, impact=4.0), expense(1, impact=-2.0)]
        assert health_score([], recent) == pytest.approx(55.0)

    @pytest.mark.parametrize(
        "score, level",
        [(-20.0, 1), (0.0, 1), (19.9, 1), (50.0, 5), (82.5, 8), (150.0, 10)],
    )
    def test_avatar_level_is_clamped(self, score, level):
        assert avatar_level_for(score) == level

    @pytest.mark.parametrize(
        "score, avatar_type",
        [
            (85.0, AvatarType.THRIVING),
            (60.0, AvatarType.STABLE),
            (40.0, AvatarType.GROWING),
            (39.9, AvatarType.REBUILDING),
        ],
    )
    def test_avatar_type_thresholds(self, score, avatar_type):
        assert avatar_type_for(score) == avatar_type


class TestComputeProfile:

    def test_thriving_saver(self):
        profile = FinancialProfile(user_id=USER)
        goals = [goal(1000, 1000)]
        recent = [income(2500, impact=2.5), income(2500, impact=2.5)]
        now = datetime(2024, 6, 15, 12, 0)

        update = compute_profile(profile, goals, recent, now=now)

        assert update.health_score == pytest.approx(82.5)
        assert update.profile.avatar_level == 8
        assert update.profile.avatar_type == AvatarType.THRIVING
        assert update.profile.financial_dna.spending_personality == SpendingPersonality.SAVER
        assert update.profile.financial_dna.consistency_score == pytest.approx(82.5)
        assert update.profile.goal_ids == [goals[0].id]
        assert update.profile.last_updated == now

    def test_heavy_spender_is_clamped_low(self):
        profile = FinancialProfile(user_id=USER)
        recent = [expense(6000, impact=-10.0)] * 3
        update = compute_profile(profile, [], recent)
        assert update.profile.avatar_level == 1
        assert update.profile.avatar_type == AvatarType.REBUILDING
        assert update.profile.financial_dna.spending_personality == SpendingPersonality.SPENDER
        assert update.profile.financial_dna.consistency_score == 0.0

    def test_very_high_score_is_clamped(self):
        profile = FinancialProfile(user_id=USER)
        goals = [goal(100, 100, title=f"g{i}") for i in range(3)]
        update = compute_profile(profile, goals, [income(10000, impact=10.0)])
        assert update.profile.avatar_level == 10
        assert update.profile.financial_dna.consistency_score == 100.0

    def test_user_chosen_traits_are_kept(self):
        profile = FinancialProfile(
            user_id=USER,
            financial_dna=FinancialDNA(risk_tolerance=RiskTolerance.AGGRESSIVE),
        )
        update = compute_profile(profile, [], [])
        assert update.profile.financial_dna.risk_tolerance == RiskTolerance.AGGRESSIVE
        assert profile.avatar_level == 1


class TestStoryEvents:

    def test_large_expense_is_a_setback(self):
        t = expense(6000, category="Travel", impact=-10.0)
        event = story_event_for(t)
        assert event.title == "Significant Expense"
        assert event.event_type == StoryEventType.SETBACK
        assert event.impact == StoryImpact.NEGATIVE
        assert event.date == t.date
        assert "Travel" in event.description

    def test_large_income_is_a_breakthrough(self):
        t = income(6000, impact=6.0)
        t.mood = Mood.HAPPY
        event = story_event_for(t, currency="₹")
        assert event.title == "Financial Boost!"
        assert event.event_type == StoryEventType.BREAKTHROUGH
        assert event.description == "Earned ₹6,000.00 on Salary"
        assert event.emotional_context == Mood.HAPPY

    @pytest.mark.parametrize("impact", [0.0, 3.0, -4.9, 5.0, -5.0])
    def test_small_impacts_are_not_story_worthy(self, impact):
        assert story_event_for(expense(10, impact=impact)) is None


class TestGamification:

    def test_streak_counts_back_from_today(self):
        transactions = [
            income(100, on=TODAY),
            expense(10, on=date(2024, 6, 14)),
            income(50, on=date(2024, 6, 14)),
            income(500, on=date(2024, 6, 12)),
        ]
        assert savings_streak(transactions, TODAY) == 2

    def test_negative_day_breaks_streak(self):
        transactions = [expense(100, on=TODAY), income(500, on=date(2024, 6, 14))]
        assert savings_streak(transactions, TODAY) == 0

    def test_transfers_and_investments_count_as_outflows(self):
        transactions = [
            income(1000),
            txn(300, TransactionType.TRANSFER),
            txn(200, TransactionType.INVESTMENT),
        ]
        assert cash_balance(transactions) == Decimal("500")
        assert summarize_gamification(transactions, TODAY).total_savings == Decimal("500")

    def test_transfer_day_can_break_streak(self):
        transactions = [income(100, on=TODAY), txn(150, TransactionType.TRANSFER, on=TODAY)]
        assert savings_streak(transactions, TODAY) == 0

    def test_monthly_savings_average_never_negative(self):
        assert monthly_savings_average([expense(100)]) == Decimal("0")
        assert monthly_savings_average([income(1000), expense(100)]) == Decimal("900")

    def test_badges(self):
        transactions = [
            income(20000, on=date(2024, 5, 1)),
            expense(1000, on=date(2024, 5, 10)),
            expense(700, on=date(2024, 6, 2), description="Bitcoin top-up"),
        ]
        summary = summarize_gamification(transactions, TODAY)
        unlocked = {b.id for b in summary.unlocked_badges}
        assert unlocked == {"first-save", "big-saver", "expense-cutter", "crypto-explorer"}
        assert summary.total_savings == Decimal("18300")

    def test_no_badges_for_new_user(self):
        summary = summarize_gamification([], TODAY)
        assert summary.unlocked_badges == []
        assert summary.savings_streak == 0
