"""Small builders shared by the test modules."""

from datetime import date
from decimal import Decimal
from typing import Optional

from moneymigo.models import Budget, BudgetPeriod, Goal, Transaction, TransactionType


USER = "user-1"
OTHER_USER = "user-2"
TODAY = date(2024, 6, 15)


def txn(
    amount,
    transaction_type: TransactionType = TransactionType.EXPENSE,
    category: str = "Food & Dining",
    on: date = TODAY,
    description: str = "",
    user_id: str = USER,
    impact: float = 0.0,
) -> Transaction:
    return Transaction(
        user_id=user_id,
        amount=Decimal(str(amount)),
        category=category,
        description=description,
        date=on,
        type=transaction_type,
        impact_score=impact,
    )


def income(amount, on: date = TODAY, category: str = "Salary", **kwargs) -> Transaction:
    return txn(amount, TransactionType.INCOME, category=category, on=on, **kwargs)


def expense(amount, on: date = TODAY, category: str = "Food & Dining", **kwargs) -> Transaction:
    return txn(amount, TransactionType.EXPENSE, category=category, on=on, **kwargs)


def goal(
    target,
    current=0,
    deadline: date = date(2024, 12, 31),
    title: str = "Emergency Fund",
    user_id: str = USER,
) -> Goal:
    return Goal(
        user_id=user_id,
        title=title,
        target_amount=Decimal(str(target)),
        current_amount=Decimal(str(current)),
        deadline=deadline,
    )


def budget(
    limit,
    category: str = "Food & Dining",
    period: BudgetPeriod = BudgetPeriod.MONTHLY,
    spent=0,
    user_id: Optional[str] = USER,
) -> Budget:
    return Budget(
        user_id=user_id,
        category=category,
        limit=Decimal(str(limit)),
        spent=Decimal(str(spent)),
        period=period,
    )
