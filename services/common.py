"""
Common utilities and shared functions.
Month arithmetic, tolerant parsing, aggregation helpers and listing filters.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, Optional

from models import Transaction

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNKNOWN_MERCHANT = "Unknown"

# Same bounds as datetime.date
MIN_YEAR = 1
MAX_YEAR = 9999

# Categories that mark a transaction as income regardless of its sign
INCOME_CATEGORIES = frozenset({
    "income", "salary", "paycheck", "deposit", "bonus", "interest", "credit"
})


@dataclass(frozen=True, order=True)
class Month:
    """
    A calendar year-month, the aggregation unit for summaries and insights.
    Renders as "YYYY-MM".
    """
    year: int
    month: int

    def __post_init__(self):
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            raise ValueError(f"Year out of range: {self.year}")
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month number: {self.month}")

    @classmethod
    def parse(cls, label: str) -> "Month":
        """
        Parse a "YYYY-MM" label.

        Raises:
            ValueError: If the label is not a valid year-month
        """
        try:
            year_part, month_part = label.strip().split("-")
            if len(year_part) != 4 or len(month_part) != 2:
                raise ValueError
            return cls(int(year_part), int(month_part))
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid month label: {label!r}, expected YYYY-MM")

    @classmethod
    def of(cls, day: date) -> "Month":
        return cls(day.year, day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def previous(self) -> "Month":
        """The calendar month immediately before this one."""
        if self.month == 1:
            return Month(self.year - 1, 12)
        return Month(self.year, self.month - 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an ISO date string, returning None for blank or malformed input.

    Examples:
        >>> parse_date("2024-03-05")
        datetime.date(2024, 3, 5)
        >>> parse_date("not a date") is None
        True
    """
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable date: {value!r}")
        return None


def amount_of(tx: Transaction) -> float:
    """Amount with absent treated as zero."""
    return tx.amount if tx.amount is not None else 0.0


def category_of(tx: Transaction) -> str:
    return tx.category if tx.category is not None else UNCATEGORIZED


def merchant_of(tx: Transaction) -> str:
    return tx.merchant if tx.merchant is not None else UNKNOWN_MERCHANT


def total_amount(transactions: Iterable[Transaction]) -> float:
    return sum(amount_of(tx) for tx in transactions)


def group_sums(
    transactions: Iterable[Transaction],
    key: Callable[[Transaction], str]
) -> Dict[str, float]:
    """
    Sum amounts per group label.

    Returns:
        Mapping of label to summed amount, in first-encountered order
    """
    sums: Dict[str, float] = {}
    for tx in transactions:
        label = key(tx)
        sums[label] = sums.get(label, 0.0) + amount_of(tx)
    return sums


def top_key(sums: Dict[str, float], default: str = "N/A") -> str:
    """Label with the largest sum; the first-encountered label wins ties."""
    if not sums:
        return default
    return max(sums, key=sums.get)


def is_income(tx: Transaction) -> bool:
    """Income is an income-like category or a negative amount."""
    if tx.category and tx.category.strip().lower() in INCOME_CATEGORIES:
        return True
    return tx.amount is not None and tx.amount < 0


def matches_filters(
    tx: Transaction,
    q: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    category: Optional[str] = None
) -> bool:
    """
    Check a transaction against the listing filters. All filters must hold.

    Args:
        tx: Transaction to check
        q: Case-insensitive substring of merchant, category or notes
        date_from: Inclusive lower date bound; undated transactions fail it
        date_to: Inclusive upper date bound; undated transactions fail it
        category: Case-insensitive exact category match

    Returns:
        True if the transaction passes every supplied filter
    """
    if q and q.strip():
        needle = q.lower()
        haystacks = (tx.merchant, tx.category, tx.notes)
        if not any(h is not None and needle in h.lower() for h in haystacks):
            return False

    if date_from is not None and (tx.date is None or tx.date < date_from):
        return False
    if date_to is not None and (tx.date is None or tx.date > date_to):
        return False

    if category and category.strip():
        if tx.category is None or tx.category.lower() != category.lower():
            return False

    return True
