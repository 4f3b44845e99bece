"""
Budget model - a monthly spending limit for one category.
Category names are matched case-insensitively; at most one budget per category.
"""

from typing import Optional
from sqlmodel import SQLModel, Field


class BudgetBase(SQLModel):
    """Fields shared by the table model and request bodies."""
    category: str = Field(index=True)
    monthly_limit: float


class Budget(BudgetBase, table=True):
    """A stored budget."""
    id: Optional[int] = Field(default=None, primary_key=True)
