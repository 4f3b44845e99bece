"""
Budget Repository - data access layer for Budget model.
Lookups compare category names case-insensitively.
"""

from typing import List, Optional
from sqlalchemy import func
from sqlmodel import Session, select

from db_engine import get_engine
from models import Budget


def _matches(category: str):
    return func.lower(Budget.category) == category.strip().lower()


class BudgetRepository:
    """Repository for Budget CRUD operations."""

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Budget]:
        """Retrieve all budgets in insertion order."""
        def _get_all(sess: Session) -> List[Budget]:
            return list(sess.exec(select(Budget).order_by(Budget.id)).all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def save(category: str, monthly_limit: float, session: Optional[Session] = None) -> Budget:
        """
        Save or update the budget for a category.
        An existing budget whose name differs only in case is replaced,
        taking the new spelling.

        Args:
            category: Category name, stored stripped
            monthly_limit: Spending limit per month
            session: Optional existing session for transaction reuse

        Returns:
            The stored Budget object
        """
        def _save(sess: Session) -> Budget:
            budget = sess.exec(select(Budget).where(_matches(category))).first()
            if budget:
                budget.category = category.strip()
                budget.monthly_limit = monthly_limit
            else:
                budget = Budget(category=category.strip(), monthly_limit=monthly_limit)
            sess.add(budget)
            sess.commit()
            sess.refresh(budget)
            return budget

        if session is not None:
            return _save(session)
        else:
            with Session(get_engine()) as session:
                return _save(session)

    @staticmethod
    def delete(category: str, session: Optional[Session] = None) -> bool:
        """
        Delete the budget for a category.

        Returns:
            True if deleted, False if no budget matched
        """
        def _delete(sess: Session) -> bool:
            try:
                budget = sess.exec(select(Budget).where(_matches(category))).first()
                if budget:
                    sess.delete(budget)
                    sess.commit()
                    return True
                return False
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine()) as session:
                return _delete(session)
