"""
Expense categorisation into eight sub-buckets.

Real expenses (see ``TransactionClassifier.is_essential_expense``) are split
into housing, food, transportation, utilities, insurance, subscriptions,
healthcare and other, averaged per month, with a confidence score equal to
the share of contributing transactions the provider rated high or very high.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..classification.engine import TransactionClassifier
from ..classification.pattern_matching import match_pattern_dict
from ..classification.rules import TransactionContext
from ..config.analysis_config import ANALYSIS_CONFIG, EXPENSE_CONFIG
from ..models.categories import PfcPrimary
from ..models.transaction import Transaction
from ..patterns.transaction_patterns import (
    EXPENSE_AUTO_LOAN_MARKERS,
    EXPENSE_CATEGORY_PATTERNS,
    EXPENSE_HOUSING_MARKERS,
    EXPENSE_PHARMACY_MARKERS,
    EXPENSE_SUBSCRIPTION_MARKERS,
    EXPENSE_TRAVEL_TRANSPORT_MARKERS,
    INSURANCE_MARKER,
)

logger = logging.getLogger(__name__)


EXPENSE_SUB_BUCKETS = (
    "housing",
    "food",
    "transportation",
    "utilities",
    "insurance",
    "subscriptions",
    "healthcare",
    "other",
)


@dataclass(frozen=True)
class ExpenseBreakdown:
    """Monthly average spend per sub-bucket."""
    housing: float = 0.0
    food: float = 0.0
    transportation: float = 0.0
    utilities: float = 0.0
    insurance: float = 0.0
    subscriptions: float = 0.0
    healthcare: float = 0.0
    other: float = 0.0
    confidence: float = EXPENSE_CONFIG["default_confidence"]
    transaction_count: int = 0

    @classmethod
    def empty(cls) -> "ExpenseBreakdown":
        return cls()

    @property
    def total(self) -> float:
        return sum(self.amount_for(name) for name in EXPENSE_SUB_BUCKETS)

    def amount_for(self, name: str) -> float:
        return getattr(self, name)

    def categories(self) -> List[Tuple[str, float]]:
        """Non-zero sub-buckets in display order."""
        return [
            (name, self.amount_for(name))
            for name in EXPENSE_SUB_BUCKETS
            if self.amount_for(name) > 0
        ]

    @property
    def confidence_level(self) -> str:
        levels = EXPENSE_CONFIG["confidence_levels"]
        if self.confidence >= levels["high"]:
            return "high"
        if self.confidence >= levels["medium"]:
            return "medium"
        return "low"

    @property
    def confidence_message(self) -> str:
        return {
            "high": "Most of your expenses were categorized with high confidence.",
            "medium": "Some expenses may need review to improve accuracy.",
            "low": "Many expenses could not be categorized confidently. Please review them.",
        }[self.confidence_level]


class ExpenseCategorizer:
    """Splits real expenses into sub-buckets."""

    def __init__(
        self,
        classifier: Optional[TransactionClassifier] = None,
        fuzzy_threshold: Optional[int] = None
    ):
        self.classifier = classifier or TransactionClassifier()
        self.fuzzy_threshold = (
            fuzzy_threshold if fuzzy_threshold is not None
            else ANALYSIS_CONFIG["expense_fuzzy_threshold"]
        )

    def categorize_expenses(
        self,
        transactions: Iterable[Transaction],
        months: int
    ) -> ExpenseBreakdown:
        """
        Build the monthly expense breakdown.

        Args:
            transactions: Transactions to consider; non-expenses are skipped
            months: Number of months the transactions span

        Returns:
            ExpenseBreakdown with monthly averages
        """
        if months <= 0:
            logger.debug("Non-positive month count %s, returning empty breakdown", months)
            return ExpenseBreakdown.empty()

        totals: Dict[str, float] = {name: 0.0 for name in EXPENSE_SUB_BUCKETS}
        count = 0
        high_confidence = 0

        for txn in transactions:
            if not self.classifier.is_essential_expense(txn):
                continue
            sub_bucket = self.sub_bucket_for(txn)
            totals[sub_bucket] += txn.amount
            count += 1
            pfc = txn.personal_finance_category
            if pfc is not None and pfc.confidence_level.is_high:
                high_confidence += 1

        if count == 0:
            confidence = EXPENSE_CONFIG["default_confidence"]
        else:
            confidence = high_confidence / count

        logger.debug(
            "Categorised %d expenses over %d months (%d high confidence)",
            count, months, high_confidence
        )

        return ExpenseBreakdown(
            confidence=confidence,
            transaction_count=count,
            **{name: total / months for name, total in totals.items()}
        )

    def sub_bucket_for(self, txn: Transaction) -> str:
        """
        Pick the sub-bucket for one expense.

        Structured categories use a fixed decision table; transactions without
        a recognised primary fall back to keyword matching over legacy labels
        and the name.
        """
        pfc = txn.personal_finance_category
        primary = pfc.known_primary if pfc else None
        if primary is None:
            return self._legacy_sub_bucket(txn)

        if pfc.detailed_contains(INSURANCE_MARKER):
            return "insurance"

        if primary == PfcPrimary.RENT_AND_UTILITIES:
            if pfc.detailed_contains(*EXPENSE_HOUSING_MARKERS):
                return "housing"
            return "utilities"
        if primary == PfcPrimary.HOME_IMPROVEMENT:
            return "housing"
        if primary == PfcPrimary.LOAN_PAYMENTS:
            if pfc.detailed_contains("MORTGAGE"):
                return "housing"
            if pfc.detailed_contains(*EXPENSE_AUTO_LOAN_MARKERS):
                return "transportation"
            return "other"
        if primary == PfcPrimary.FOOD_AND_DRINK:
            return "food"
        if primary == PfcPrimary.TRANSPORTATION:
            return "transportation"
        if primary == PfcPrimary.TRAVEL:
            if pfc.detailed_contains(*EXPENSE_TRAVEL_TRANSPORT_MARKERS, "FLIGHT"):
                return "transportation"
            return "other"
        if primary == PfcPrimary.MEDICAL:
            return "healthcare"
        if primary == PfcPrimary.GENERAL_MERCHANDISE:
            if pfc.detailed_contains(*EXPENSE_PHARMACY_MARKERS):
                return "healthcare"
            return "other"
        if primary in (PfcPrimary.ENTERTAINMENT, PfcPrimary.GENERAL_SERVICES, PfcPrimary.PERSONAL_CARE):
            if pfc.detailed_contains(*EXPENSE_SUBSCRIPTION_MARKERS):
                return "subscriptions"
            return "other"
        return "other"

    def _legacy_sub_bucket(self, txn: Transaction) -> str:
        ctx = TransactionContext.from_transaction(txn)
        text = f"{ctx.labels_text} {ctx.combined_text}".strip()
        match = match_pattern_dict(text, EXPENSE_CATEGORY_PATTERNS, self.fuzzy_threshold)
        if match:
            return match[0]
        return "other"
