"""
Services package for the finance tracker.
Provides core business logic separated from presentation and data layers.
"""

from services.common import (
    Month,
    parse_date,
    matches_filters,
    is_income,
)
from services.insights import (
    InsightStrategy,
    RuleBasedInsights,
    OllamaInsights,
    FALLBACK_PREFIX,
    build_insight_strategy,
)
from services.transactions import (
    TransactionService,
    MonthlySummary,
    WeekBucket,
    MonthTotals,
    MonthComparison,
    BudgetAlert,
)
from services.seed import seed_from_csv

__all__ = [
    # Common utilities
    'Month',
    'parse_date',
    'matches_filters',
    'is_income',
    # Insights
    'InsightStrategy',
    'RuleBasedInsights',
    'OllamaInsights',
    'FALLBACK_PREFIX',
    'build_insight_strategy',
    # Services
    'TransactionService',
    'MonthlySummary',
    'WeekBucket',
    'MonthTotals',
    'MonthComparison',
    'BudgetAlert',
    'seed_from_csv',
]
