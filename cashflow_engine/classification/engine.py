"""
Transaction Classification Engine.

Decides what a transaction means: income, investment contribution, internal
transfer, real expense (essential or discretionary) and which bucket it
belongs to. Each decision is a ``RuleChain`` from ``rules.py`` evaluated in
priority order, so every answer carries the name of the rule that made it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from ..config.analysis_config import ANALYSIS_CONFIG
from ..models.buckets import BucketCategory
from ..models.categories import ConfidenceLevel, PersonalFinanceCategory
from ..models.transaction import Transaction
from .rules import (
    LARGE_INFLOW_RULE,
    RuleChain,
    RuleOutcome,
    TransactionContext,
    build_bucket_chain,
    build_essential_chain,
    build_income_chain,
    build_investment_chain,
    build_transfer_chain,
)

logger = logging.getLogger(__name__)

# Raw-field classification never looks at the date
RAW_TRANSACTION_DATE = date(1970, 1, 1)


@dataclass(frozen=True)
class ClassificationResult:
    """Derived per-transaction fields for display and filtering."""
    transaction_id: str
    bucket: BucketCategory
    rule: str
    reason: str
    is_essential_expense: bool
    is_essential: bool
    is_discretionary: bool
    needs_validation: bool
    confidence_level: ConfidenceLevel = ConfidenceLevel.UNKNOWN

    @property
    def explanation(self) -> str:
        return f"{self.bucket.display_name}: {self.reason} [{self.rule}]"


class TransactionClassifier:
    """
    Classifies transactions into buckets and spending types.

    Stateless apart from configuration; safe to share across threads.
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        bucket_mapping: Optional[Dict[str, BucketCategory]] = None
    ):
        """
        Initialize the classifier.

        Args:
            config: Overrides for ``ANALYSIS_CONFIG`` keys
            bucket_mapping: Optional primary -> bucket overrides, e.g. from
                ``load_bucket_mapping_csv``
        """
        self.config = dict(ANALYSIS_CONFIG)
        if config:
            self.config.update(config)
        self.bucket_mapping = {k.upper(): v for k, v in (bucket_mapping or {}).items()}

        self.income_chain: RuleChain = build_income_chain()
        self.investment_chain: RuleChain = build_investment_chain()
        self.transfer_chain: RuleChain = build_transfer_chain()
        self.essential_chain: RuleChain = build_essential_chain()
        self.bucket_chain: RuleChain = build_bucket_chain()

    # ------------------------------------------------------------------
    # Chain outcomes (with the deciding rule)
    # ------------------------------------------------------------------

    def context(self, txn: Transaction) -> TransactionContext:
        return TransactionContext.from_transaction(txn)

    def _ctx(self, txn) -> TransactionContext:
        if isinstance(txn, TransactionContext):
            return txn
        return TransactionContext.from_transaction(txn)

    def income_outcome(self, txn) -> RuleOutcome:
        return self.income_chain.evaluate(self._ctx(txn), self)

    def investment_outcome(self, txn) -> RuleOutcome:
        return self.investment_chain.evaluate(self._ctx(txn), self)

    def transfer_outcome(self, txn) -> RuleOutcome:
        return self.transfer_chain.evaluate(self._ctx(txn), self)

    def bucket_outcome(self, txn) -> RuleOutcome:
        return self.bucket_chain.evaluate(self._ctx(txn), self)

    # ------------------------------------------------------------------
    # Public predicates
    # ------------------------------------------------------------------

    def is_actual_income(self, txn: Transaction) -> bool:
        """
        Check whether an inflow is real income.

        Layered from most to least trustworthy: structured category, legacy
        category, name keywords, then a blind amount heuristic for records
        with no category data at all.
        """
        return bool(self.income_outcome(txn).value)

    def counts_as_income(self, txn: Transaction) -> bool:
        """
        Check whether an inflow belongs in income totals.

        Real income that is neither an investment contribution nor an
        internal transfer.
        """
        ctx = self._ctx(txn)
        if not self.income_outcome(ctx).value:
            return False
        if self.investment_outcome(ctx).value:
            return False
        return not self.transfer_outcome(ctx).value

    def is_investment_contribution(self, txn: Transaction) -> bool:
        """Check whether a transaction funds an investment or retirement account."""
        return bool(self.investment_outcome(txn).value)

    def is_internal_transfer(self, txn: Transaction) -> bool:
        """Check whether a transaction is a self transfer or debt payment."""
        return bool(self.transfer_outcome(txn).value)

    def is_essential_expense(self, txn: Transaction) -> bool:
        """
        Check whether an outflow counts as a real expense at all.

        True iff the amount is positive and the transaction is neither an
        investment contribution nor an internal transfer.
        """
        if txn.amount <= 0:
            return False
        ctx = self._ctx(txn)
        if self.investment_outcome(ctx).value:
            return False
        if self.transfer_outcome(ctx).value:
            return False
        return True

    def is_essential_spending(self, txn: Transaction) -> bool:
        """Check whether a real expense is a necessary living cost."""
        if not self.is_essential_expense(txn):
            return False
        return bool(self.essential_chain.evaluate(self._ctx(txn), self).value)

    def is_discretionary_spending(self, txn: Transaction) -> bool:
        """Check whether a real expense is optional spending."""
        if not self.is_essential_expense(txn):
            return False
        return not self.essential_chain.evaluate(self._ctx(txn), self).value

    def categorize_to_bucket(self, txn: Transaction) -> BucketCategory:
        """
        Assign exactly one bucket.

        Priority: user override > semantic rules (investment, internal
        transfer, income) > structured category table > legacy keywords >
        amount sign.

        Args:
            txn: Transaction to categorise

        Returns:
            BucketCategory
        """
        return self.bucket_outcome(txn).value

    def categorize_raw(
        self,
        amount: float,
        name: str,
        merchant_name: Optional[str] = None,
        category: Optional[Sequence[str]] = None,
        pfc_primary: Optional[str] = None,
        pfc_detailed: Optional[str] = None,
        confidence_level: Optional[str] = None,
        txn_date: Optional[date] = None,
    ) -> BucketCategory:
        """
        Categorise from raw fields rather than a ``Transaction``.

        Args:
            amount: Signed amount (negative = money in)
            name: Transaction name
            merchant_name: Optional merchant name
            category: Optional legacy category labels
            pfc_primary: Optional structured primary
            pfc_detailed: Optional structured detailed subclass
            confidence_level: Optional structured confidence tier
            txn_date: Optional posting date (placeholder when omitted)

        Returns:
            BucketCategory
        """
        pfc = None
        if pfc_primary:
            pfc = PersonalFinanceCategory(
                primary=pfc_primary.upper(),
                detailed=(pfc_detailed or "").upper(),
                confidence_level=ConfidenceLevel.parse(confidence_level),
            )
        txn = Transaction(
            transaction_id="",
            account_id="",
            amount=float(amount),
            date=txn_date or RAW_TRANSACTION_DATE,
            name=name or "",
            merchant_name=merchant_name,
            category=tuple(category or ()),
            personal_finance_category=pfc,
        )
        return self.categorize_to_bucket(txn)

    def needs_validation(self, txn: Transaction) -> bool:
        """
        Check whether the user should review this transaction.

        User decisions are final. The blind large-inflow income rule is
        always flagged; otherwise the provider's confidence tier decides, and
        a missing structured category means review.
        """
        if txn.has_user_decision:
            return False
        if self.income_outcome(txn).rule == LARGE_INFLOW_RULE:
            return True
        pfc = txn.personal_finance_category
        if pfc is None:
            return True
        return pfc.confidence_level.needs_validation

    # ------------------------------------------------------------------
    # Full classification
    # ------------------------------------------------------------------

    def classify(self, txn: Transaction) -> ClassificationResult:
        """
        Classify a transaction and return all derived fields.

        Args:
            txn: Transaction to classify

        Returns:
            ClassificationResult
        """
        ctx = self._ctx(txn)
        bucket = self.bucket_outcome(ctx)
        essential_expense = self.is_essential_expense(txn)
        essential = False
        if essential_expense:
            essential = bool(self.essential_chain.evaluate(ctx, self).value)

        pfc = txn.personal_finance_category
        result = ClassificationResult(
            transaction_id=txn.transaction_id,
            bucket=bucket.value,
            rule=bucket.rule,
            reason=bucket.reason,
            is_essential_expense=essential_expense,
            is_essential=essential,
            is_discretionary=essential_expense and not essential,
            needs_validation=self.needs_validation(txn),
            confidence_level=pfc.confidence_level if pfc else ConfidenceLevel.UNKNOWN,
        )
        logger.debug(
            "Classified %s (%.2f) as %s via %s",
            txn.transaction_id, txn.amount, result.bucket.value, result.rule
        )
        return result

    def classify_all(self, transactions: Iterable[Transaction]) -> List[ClassificationResult]:
        return [self.classify(txn) for txn in transactions]

    def transactions_in_bucket(
        self,
        transactions: Iterable[Transaction],
        bucket: BucketCategory
    ) -> List[Transaction]:
        return [txn for txn in transactions if self.categorize_to_bucket(txn) == bucket]
