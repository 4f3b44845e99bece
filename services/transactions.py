"""
Transaction service - business logic between the presentation layers and the store.
Listing, CRUD, monthly summaries and comparisons, weekly buckets, budgets,
CSV export and insights.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Type

import pandas as pd

from models import Budget, Transaction
from repositories import BudgetRepository, TransactionRepository
from services.common import (
    Month,
    amount_of,
    category_of,
    group_sums,
    is_income,
    matches_filters,
    total_amount,
)
from services.insights import InsightStrategy, RuleBasedInsights

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["id", "date", "merchant", "amount", "category", "notes"]

# Share of a budget at which spending is flagged
WARN_RATIO = 0.8
# Pacing differences within a cent count as on pace
PACE_TOLERANCE = 0.01


@dataclass
class MonthlySummary:
    """Net total and per-category sums for one month."""
    month: Month
    total: float
    by_category: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "month": str(self.month),
            "total": self.total,
            "byCategory": dict(self.by_category),
        }


@dataclass
class WeekBucket:
    """Expense total for a run of days within a month (days 1-7, 8-14, ...)."""
    label: str
    start: date
    end: date
    expense: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "label": self.label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "expense": round(self.expense, 2),
        }


@dataclass
class MonthTotals:
    """Income and expense for one month, both as positive magnitudes."""
    income: float = 0.0
    expense: float = 0.0
    count: int = 0

    @property
    def net(self) -> float:
        return self.income - self.expense

    def to_dict(self) -> Dict:
        return {
            "income": round(self.income, 2),
            "expense": round(self.expense, 2),
            "net": round(self.net, 2),
            "count": self.count,
        }


def percent_change(current: float, previous: float) -> Optional[float]:
    """
    Change from previous to current as a percentage of previous.
    None when previous is zero.

    Examples:
        >>> percent_change(150.0, 100.0)
        50.0
        >>> percent_change(-50.0, -100.0)
        50.0
        >>> percent_change(10.0, 0.0) is None
        True
    """
    if abs(previous) < 1e-9:
        return None
    return (current - previous) / abs(previous) * 100


@dataclass
class MonthComparison:
    """A month's totals next to the month before it."""
    month: Month
    current: MonthTotals
    previous: MonthTotals

    def changes(self) -> Dict[str, Dict]:
        result = {}
        for name in ("income", "expense", "net"):
            now, before = getattr(self.current, name), getattr(self.previous, name)
            pct = percent_change(now, before)
            result[name] = {
                "diff": round(now - before, 2),
                "pct": None if pct is None else round(pct, 1),
            }
        return result

    def to_dict(self) -> Dict:
        return {
            "month": str(self.month),
            "previousMonth": str(self.month.previous()),
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict(),
            "changes": self.changes(),
        }


@dataclass
class BudgetAlert:
    """
    Spending against one budget for a month.

    level is "bad" at or over the limit, "warn" from 80% of it, otherwise "ok".
    expected is the share of the limit the elapsed days allow, and delta is
    spending above (positive) or below (negative) that.
    """
    category: str
    limit: float
    spent: float
    expected: float

    @property
    def ratio(self) -> float:
        return self.spent / self.limit if self.limit > 0 else 0.0

    @property
    def level(self) -> str:
        if self.ratio >= 1:
            return "bad"
        if self.ratio >= WARN_RATIO:
            return "warn"
        return "ok"

    @property
    def pct(self) -> int:
        """Percent of the limit used, rounded half up and capped at 100."""
        return min(100, math.floor(self.ratio * 100 + 0.5))

    @property
    def delta(self) -> float:
        return self.spent - self.expected

    @property
    def pace(self) -> str:
        if self.delta > PACE_TOLERANCE:
            return "over"
        if self.delta < -PACE_TOLERANCE:
            return "under"
        return "on"

    def to_dict(self) -> Dict:
        return {
            "category": self.category,
            "limit": self.limit,
            "spent": round(self.spent, 2),
            "ratio": round(self.ratio, 4),
            "level": self.level,
            "pct": self.pct,
            "expected": round(self.expected, 2),
            "delta": round(self.delta, 2),
            "pace": self.pace,
        }


class TransactionService:
    """
    Service for transaction operations.
    The insight strategy and repositories are injected once at process start.
    """

    def __init__(
        self,
        insights: Optional[InsightStrategy] = None,
        repository: Type[TransactionRepository] = TransactionRepository,
        budgets: Type[BudgetRepository] = BudgetRepository
    ):
        self.insights = insights or RuleBasedInsights()
        self.repository = repository
        self.budgets = budgets

    # ==================== Listing & CRUD ====================

    def list_transactions(
        self,
        q: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None
    ) -> List[Transaction]:
        """
        List stored transactions passing every supplied filter, in store order.

        Args:
            q: Case-insensitive text matched against merchant, category and notes
            date_from: Inclusive lower bound on date
            date_to: Inclusive upper bound on date
            category: Case-insensitive category equality

        Returns:
            Matching transactions
        """
        return [
            tx for tx in self.repository.get_all()
            if matches_filters(tx, q=q, date_from=date_from, date_to=date_to, category=category)
        ]

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.repository.get_by_id(transaction_id)

    def create_transaction(self, transaction: Transaction) -> Transaction:
        """Store a new transaction. Any id on the input is discarded."""
        transaction.id = None
        created = self.repository.add(transaction)
        logger.info(f"Created transaction {created.id}")
        return created

    def delete_transaction(self, transaction_id: int) -> bool:
        """Delete by id. Returns False when no such transaction exists."""
        deleted = self.repository.delete(transaction_id)
        if deleted:
            logger.info(f"Deleted transaction {transaction_id}")
        return deleted

    def duplicate_transaction(self, transaction_id: int, on_date: Optional[date] = None) -> Optional[Transaction]:
        """
        Store a copy of an existing transaction under a new id.

        Args:
            transaction_id: Transaction to copy
            on_date: Date for the copy; defaults to today

        Returns:
            The new transaction, or None if the source does not exist
        """
        source = self.repository.get_by_id(transaction_id)
        if source is None:
            return None

        copy = Transaction(
            date=on_date or date.today(),
            merchant=source.merchant,
            amount=source.amount,
            category=source.category,
            notes=source.notes
        )
        return self.create_transaction(copy)

    # ==================== Monthly views ====================

    def month_transactions(self, month: Month) -> List[Transaction]:
        return self.repository.get_by_date_range(month.first_day, month.last_day)

    def monthly_summary(self, month: Month) -> MonthlySummary:
        """
        Total and per-category sums for the month, rounded to cents.
        Categories keep first-encountered order.
        """
        transactions = self.month_transactions(month)
        by_category = group_sums(transactions, category_of)
        return MonthlySummary(
            month=month,
            total=round(total_amount(transactions), 2),
            by_category={name: round(value, 2) for name, value in by_category.items()}
        )

    def monthly_insight(self, month: Month) -> str:
        """Natural-language insight for the month from the injected strategy."""
        current = self.month_transactions(month)
        previous = self.month_transactions(month.previous())
        logger.debug(f"Summarizing {month}: {len(current)} current, {len(previous)} previous transactions")
        return self.insights.summarize(month, current, previous)

    def weekly_buckets(self, month: Month) -> List[WeekBucket]:
        """
        Expense totals per seven-day run of the month; the last run may be short.
        Income transactions are left out and expenses count at their absolute value.
        """
        last = month.last_day.day
        buckets = []
        for index, start_day in enumerate(range(1, last + 1, 7), start=1):
            end_day = min(start_day + 6, last)
            buckets.append(WeekBucket(
                label=f"W{index} ({start_day}-{end_day})",
                start=date(month.year, month.month, start_day),
                end=date(month.year, month.month, end_day)
            ))

        for tx in self.month_transactions(month):
            if is_income(tx):
                continue
            buckets[(tx.date.day - 1) // 7].expense += abs(amount_of(tx))

        return buckets

    def month_totals(self, month: Month) -> MonthTotals:
        """Income and expense magnitudes for the month, split with is_income."""
        totals = MonthTotals()
        for tx in self.month_transactions(month):
            if is_income(tx):
                totals.income += abs(amount_of(tx))
            else:
                totals.expense += abs(amount_of(tx))
            totals.count += 1
        return totals

    def month_comparison(self, month: Month) -> MonthComparison:
        """Income, expense and net for the month against the previous month."""
        return MonthComparison(
            month=month,
            current=self.month_totals(month),
            previous=self.month_totals(month.previous())
        )

    # ==================== Budgets ====================

    def list_budgets(self) -> List[Budget]:
        return self.budgets.get_all()

    def set_budget(self, category: str, monthly_limit: float) -> Budget:
        """
        Create or replace the monthly limit for a category.

        Raises:
            ValueError: If the category is blank or the limit is not a positive number
        """
        if not category or not category.strip():
            raise ValueError("Budget category must not be blank")
        if monthly_limit is None or not math.isfinite(monthly_limit) or monthly_limit <= 0:
            raise ValueError(f"Budget limit must be a positive number, got {monthly_limit}")
        budget = self.budgets.save(category, float(monthly_limit))
        logger.info(f"Saved budget {budget.category}: {budget.monthly_limit:.2f}")
        return budget

    def remove_budget(self, category: str) -> bool:
        """Delete a category's budget. Returns False when none exists."""
        removed = self.budgets.delete(category)
        if removed:
            logger.info(f"Removed budget {category}")
        return removed

    def budget_alerts(self, month: Month, today: Optional[date] = None) -> List[BudgetAlert]:
        """
        Spending against each budget for the month, most used first.

        Spending per category counts non-income transactions at absolute value,
        grouping categories case-insensitively with absent as "Uncategorized".
        The expected spend is prorated over the days elapsed: all of them for a
        past month, up to today for the current month and none for a future one.

        Args:
            month: Month to check
            today: Reference date for pacing; defaults to today

        Returns:
            One BudgetAlert per stored budget, sorted by ratio descending
        """
        today = today or date.today()
        current = Month.of(today)
        total_days = month.last_day.day
        if month == current:
            days_passed = min(today.day, total_days)
        elif month < current:
            days_passed = total_days
        else:
            days_passed = 0

        spent: Dict[str, float] = {}
        for tx in self.month_transactions(month):
            if is_income(tx):
                continue
            key = category_of(tx).strip().lower()
            spent[key] = spent.get(key, 0.0) + abs(amount_of(tx))

        alerts = [
            BudgetAlert(
                category=budget.category,
                limit=budget.monthly_limit,
                spent=spent.get(budget.category.strip().lower(), 0.0),
                expected=budget.monthly_limit * days_passed / total_days
            )
            for budget in self.budgets.get_all()
        ]
        alerts.sort(key=lambda alert: alert.ratio, reverse=True)
        return alerts

    # ==================== Export ====================

    def export_csv(
        self,
        q: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category: Optional[str] = None
    ) -> str:
        """Filtered listing as CSV text with an id,date,merchant,amount,category,notes header."""
        rows = [
            tx.model_dump(include=set(EXPORT_COLUMNS))
            for tx in self.list_transactions(q=q, date_from=date_from, date_to=date_to, category=category)
        ]
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        return df.to_csv(index=False, lineterminator="\n")
