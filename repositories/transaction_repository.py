"""
Transaction Repository - data access layer for Transaction model.
Every method accepts an optional session for transaction reuse.
"""

from typing import Iterable, Optional, List
from datetime import date
from sqlalchemy import func
from sqlmodel import Session, select

from db_engine import get_engine
from models import Transaction


class TransactionRepository:
    """Repository for Transaction CRUD operations."""

    @staticmethod
    def add(transaction: Transaction, session: Optional[Session] = None) -> Transaction:
        """
        Insert a transaction and return it with its assigned id.

        Args:
            transaction: Transaction to insert (its id should be unset)
            session: Optional existing session for transaction reuse

        Returns:
            The stored Transaction object
        """
        def _add(sess: Session) -> Transaction:
            sess.add(transaction)
            sess.commit()
            sess.refresh(transaction)
            return transaction

        if session is not None:
            return _add(session)
        else:
            with Session(get_engine()) as session:
                return _add(session)

    @staticmethod
    def add_many(transactions: Iterable[Transaction], session: Optional[Session] = None) -> int:
        """
        Insert several transactions in one commit.

        Returns:
            Number of transactions inserted
        """
        def _add_many(sess: Session) -> int:
            count = 0
            for tx in transactions:
                sess.add(tx)
                count += 1
            sess.commit()
            return count

        if session is not None:
            return _add_many(session)
        else:
            with Session(get_engine()) as session:
                return _add_many(session)

    @staticmethod
    def get_by_id(transaction_id: int, session: Optional[Session] = None) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Args:
            transaction_id: Transaction ID to look up
            session: Optional existing session for transaction reuse

        Returns:
            Transaction object or None if not found
        """
        def _get_by_id(sess: Session) -> Optional[Transaction]:
            return sess.get(Transaction, transaction_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def get_all(session: Optional[Session] = None) -> List[Transaction]:
        """Retrieve all transactions in id order."""
        def _get_all(sess: Session) -> List[Transaction]:
            statement = select(Transaction).order_by(Transaction.id)
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_date_range(start: date, end: date, session: Optional[Session] = None) -> List[Transaction]:
        """
        Retrieve transactions dated between start and end, both inclusive.
        Transactions without a date never match.

        Args:
            start: First day of the range
            end: Last day of the range
            session: Optional existing session for transaction reuse

        Returns:
            List of Transaction objects in id order
        """
        def _get_by_date_range(sess: Session) -> List[Transaction]:
            statement = (
                select(Transaction)
                .where(Transaction.date >= start)
                .where(Transaction.date <= end)
                .order_by(Transaction.id)
            )
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_by_date_range(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_date_range(session)

    @staticmethod
    def count(session: Optional[Session] = None) -> int:
        """Number of stored transactions."""
        def _count(sess: Session) -> int:
            return sess.exec(select(func.count()).select_from(Transaction)).one()

        if session is not None:
            return _count(session)
        else:
            with Session(get_engine()) as session:
                return _count(session)

    @staticmethod
    def delete(transaction_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete a transaction by its ID.

        Args:
            transaction_id: Transaction ID to delete
            session: Optional existing session for transaction reuse

        Returns:
            True if deleted, False if no such transaction exists
        """
        def _delete(sess: Session) -> bool:
            try:
                transaction = sess.get(Transaction, transaction_id)
                if transaction:
                    sess.delete(transaction)
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
