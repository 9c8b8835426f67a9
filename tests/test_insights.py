"""Tests for rule-based insights."""

from datetime import date

from moneymigo.analytics.insights import generate_rule_insights
from moneymigo.models import InsightType, Priority

from tests.factories import TODAY, USER, expense, goal, income


def _titles(insights):
    return [i.title for i in insights]


class TestRuleInsights:

    def test_no_transactions_no_insights(self):
        assert generate_rule_insights(USER, [], [goal(1000)], TODAY) == []

    def test_every_rule_fires(self):
        transactions = [
            income(5000, on=date(2024, 6, 1)),
            expense(600, category="Food & Dining", on=date(2024, 6, 5)),
            expense(100, category="Shopping", on=date(2024, 6, 10)),
            expense(300, category="Shopping", on=date(2024, 5, 20)),
        ]
        goals = [goal(10000, 500)]

        insights = generate_rule_insights(USER, transactions, goals, TODAY)

        assert _titles(insights) == [
            "Higher Than Usual Spending",
            "Spending Alert",
            "Great Progress!",
            "Goals Need Attention",
            "Optimize Food & Dining Spending",
            "Daily Spending Tip",
        ]
        assert all(i.user_id == USER for i in insights)
        assert all(not i.is_read for i in insights)

        alert = insights[1]
        assert alert.insight_type == InsightType.RISK_ALERT
        assert alert.priority == Priority.HIGH
        assert "367%" in alert.description

    def test_spending_alert_needs_last_month_history(self):
        transactions = [income(5000, on=date(2024, 6, 1)), expense(900, on=date(2024, 6, 2))]
        insights = generate_rule_insights(USER, transactions, [], TODAY)
        assert "Spending Alert" not in _titles(insights)

    def test_overdue_goals_are_not_flagged(self):
        transactions = [income(100)]
        goals = [goal(10000, 0, deadline=date(2024, 1, 1))]
        insights = generate_rule_insights(USER, transactions, goals, TODAY)
        assert "Goals Need Attention" not in _titles(insights)

    def test_small_top_category_is_not_an_opportunity(self):
        transactions = [income(5000), expense(200, category="Shopping")]
        insights = generate_rule_insights(USER, transactions, [], TODAY)
        assert not any(i.insight_type == InsightType.SAVING_OPPORTUNITY for i in insights)

    def test_currency_symbol_is_used(self):
        transactions = [income(5000), expense(600)]
        insights = generate_rule_insights(USER, transactions, [], TODAY, currency="$")
        tip = next(i for i in insights if i.insight_type == InsightType.SPENDING_TIP)
        assert "$" in tip.description
        assert "₹" not in tip.description
