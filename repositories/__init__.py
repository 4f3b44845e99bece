"""
Repositories package for the finance tracker.
Provides data access layer for all database operations.
"""

from repositories.transaction_repository import TransactionRepository
from repositories.budget_repository import BudgetRepository

__all__ = [
    'TransactionRepository',
    'BudgetRepository',
]
