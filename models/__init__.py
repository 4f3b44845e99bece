"""
Database models for the finance tracker.
All SQLModel table definitions are centralized here.
"""

from models.transaction import Transaction, TransactionBase, TransactionCreate
from models.budget import Budget, BudgetBase

__all__ = [
    'Transaction',
    'TransactionBase',
    'TransactionCreate',
    'Budget',
    'BudgetBase',
]
