"""
MoneyMigo - Source Package

The service layer behind the Living Ledger personal-finance tracker:
transactions, budgets and goals per user, derived dashboards and
forecasts, a gamified financial profile, and AI-written insights.

DESIGN PRINCIPLES:
1. Analytics are pure functions over in-memory records
2. Storage layer is swappable (in-memory demo, Google Sheets)
3. The AI is a narrator, never a source of numbers
4. A flaky AI endpoint degrades to canned text, never to a crash
"""

__version__ = "1.0.0"
__author__ = "MoneyMigo Team"
