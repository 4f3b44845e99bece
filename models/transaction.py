"""
Transaction model - represents a single financial event.
Amounts are signed: expenses positive, income negative.
"""

import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class TransactionBase(SQLModel):
    """Fields shared by the table model and request bodies. Every field may be absent."""
    date: Optional[datetime.date] = Field(default=None, index=True)
    merchant: Optional[str] = Field(default=None)
    amount: Optional[float] = Field(default=None)
    category: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)


class Transaction(TransactionBase, table=True):
    """A stored transaction. The id is assigned by the database on insert."""
    id: Optional[int] = Field(default=None, primary_key=True)


class TransactionCreate(TransactionBase):
    """Request body for creating a transaction. A supplied id is ignored."""
    id: Optional[int] = None

    def to_transaction(self) -> Transaction:
        return Transaction.model_validate(self.model_dump(exclude={"id"}))
