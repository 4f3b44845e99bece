"""
Monthly spending insights.
Two interchangeable strategies share the InsightStrategy contract: a
deterministic rule-based one, and one that asks a local LLM for the sentence
and falls back to the rule-based text whenever the LLM cannot deliver.
"""

import logging
from typing import List, Optional, Protocol, Sequence

from config import Settings, get_settings
from llm_engine import OllamaClient
from models import Transaction
from prompts import render_monthly_insight_prompt
from services.common import (
    Month,
    category_of,
    group_sums,
    merchant_of,
    top_key,
    total_amount,
)

logger = logging.getLogger(__name__)

FALLBACK_PREFIX = "[LLM offline → fallback] "
MERCHANT_SAMPLE_SIZE = 5


class InsightStrategy(Protocol):
    """Produces a short natural-language summary of one month of spending."""

    def summarize(
        self,
        month: Month,
        current: Sequence[Transaction],
        previous: Sequence[Transaction]
    ) -> str:
        ...


def no_spending_text(month: Month) -> str:
    return f"No spending recorded for {month}."


class RuleBasedInsights:
    """Arithmetic summary: total, trend against last month, top category and merchant."""

    def summarize(
        self,
        month: Month,
        current: Sequence[Transaction],
        previous: Sequence[Transaction]
    ) -> str:
        if not current:
            return no_spending_text(month)

        total = total_amount(current)
        top_category = top_key(group_sums(current, category_of))

        prev_total = total_amount(previous)
        if prev_total == 0:
            trend = "no prior data"
        else:
            change = ((total - prev_total) / prev_total) * 100.0
            trend = f"{change:+.1f}% vs {month.previous()}"

        top_merchant = top_key(group_sums(current, merchant_of))

        return (
            f"{month} total ${total:.2f} ({trend}). "
            f"Top category: {top_category}. Biggest merchant: {top_merchant}."
        )


class OllamaInsights:
    """
    LLM-written summary with guaranteed local fallback.
    The caller never sees an error: any failure yields the rule-based text
    prefixed with FALLBACK_PREFIX.
    """

    def __init__(self, client: OllamaClient, fallback: Optional[RuleBasedInsights] = None):
        self.client = client
        self.fallback = fallback or RuleBasedInsights()

    @staticmethod
    def sample_merchants(transactions: Sequence[Transaction]) -> List[str]:
        """First few merchant names in encounter order, skipping absent ones."""
        names = [tx.merchant for tx in transactions if tx.merchant is not None]
        return names[:MERCHANT_SAMPLE_SIZE]

    def build_prompt(self, month: Month, current: Sequence[Transaction]) -> str:
        return render_monthly_insight_prompt(
            month=str(month),
            total=total_amount(current),
            top_category=top_key(group_sums(current, category_of)),
            merchants=", ".join(self.sample_merchants(current))
        )

    def summarize(
        self,
        month: Month,
        current: Sequence[Transaction],
        previous: Sequence[Transaction]
    ) -> str:
        if not current:
            return no_spending_text(month)

        try:
            prompt = self.build_prompt(month, current)
            return self.client.generate(prompt)
        except Exception as e:
            logger.warning(f"LLM insight for {month} failed, using rule-based fallback: {e}")
            return FALLBACK_PREFIX + self.fallback.summarize(month, current, previous)


def build_insight_strategy(settings: Optional[Settings] = None) -> InsightStrategy:
    """
    Construct the insight strategy selected by configuration.
    Called once at process start; the result is injected into the service layer.
    """
    settings = settings or get_settings()
    if settings.is_ollama_configured:
        logger.info("Using LLM insight strategy")
        client = OllamaClient(
            base_url=settings.ollama_base_url,
            model_name=settings.ollama_model,
            timeout=settings.ollama_timeout
        )
        return OllamaInsights(client)

    logger.info("Using rule-based insight strategy")
    return RuleBasedInsights()
