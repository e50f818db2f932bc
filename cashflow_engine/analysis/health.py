"""
Financial health metrics.

Savings behaviour, emergency fund coverage, income stability, debt payments
and spending trends over the recent history, plus a 0-100 health score that
drives allocation recommendations. The score is an internal signal and is
not meant for display.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..classification.engine import TransactionClassifier
from ..config.analysis_config import HEALTH_CONFIG
from ..dates import add_months
from ..models.account import Account, EMERGENCY_FUND_TAG
from ..models.buckets import BucketCategory
from ..models.transaction import Transaction
from .aggregator import AnalysisSnapshot, MonthlyFlow

logger = logging.getLogger(__name__)

SAVINGS_GOAL_TAG = "savings_goal"
SAVINGS_SUBTYPES = ("savings", "money market")


class TrendIndicator(Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"

    @property
    def symbol(self) -> str:
        return {"increasing": "↑", "stable": "→", "decreasing": "↓"}[self.value]


class IncomeStabilityLevel(Enum):
    """Month-to-month income consistency."""
    STABLE = "stable"
    VARIABLE = "variable"
    INCONSISTENT = "inconsistent"

    @property
    def display_text(self) -> str:
        return {
            "stable": "Consistent",
            "variable": "Varies month to month",
            "inconsistent": "Fluctuates significantly",
        }[self.value]

    @property
    def explanation(self) -> str:
        return {
            "stable": "Your income is consistent, making budgeting predictable.",
            "variable": "Your income varies, so plan for fluctuations.",
            "inconsistent": "Your income changes significantly, so a larger emergency fund is recommended.",
        }[self.value]

    @property
    def recommended_emergency_months(self) -> int:
        return {"stable": 6, "variable": 9, "inconsistent": 12}[self.value]


@dataclass(frozen=True)
class FinancialHealthMetrics:
    """Health metrics for one point in time."""
    monthly_savings: float
    savings_trend: TrendIndicator
    emergency_fund_months_covered: float
    emergency_fund_target: float
    monthly_income: float
    income_stability: IncomeStabilityLevel
    monthly_debt_payments: float
    months_to_debt_free: Optional[int]
    discretionary_spending: float
    essential_spending: float
    spending_trend: TrendIndicator
    health_score: float
    savings_rate: float
    debt_to_income_ratio: float
    calculated_at: datetime
    analysis_months: int

    def to_dict(self) -> Dict:
        return {
            "monthly_savings": round(self.monthly_savings, 2),
            "savings_trend": self.savings_trend.value,
            "emergency_fund_months_covered": round(self.emergency_fund_months_covered, 1),
            "emergency_fund_target": round(self.emergency_fund_target, 2),
            "monthly_income": round(self.monthly_income, 2),
            "income_stability": self.income_stability.value,
            "monthly_debt_payments": round(self.monthly_debt_payments, 2),
            "months_to_debt_free": self.months_to_debt_free,
            "discretionary_spending": round(self.discretionary_spending, 2),
            "essential_spending": round(self.essential_spending, 2),
            "spending_trend": self.spending_trend.value,
            "health_score": round(self.health_score, 1),
            "savings_rate": round(self.savings_rate, 3),
            "debt_to_income_ratio": round(self.debt_to_income_ratio, 3),
            "analysis_months": self.analysis_months,
        }


def debt_payoff_months(total_debt: float, monthly_payment: float) -> Optional[int]:
    """Months to clear ``total_debt`` at the current payment rate, ignoring interest."""
    if total_debt <= 0 or monthly_payment <= 0:
        return None
    return int(math.ceil(total_debt / monthly_payment))


def calculate_health_score(
    savings_rate: float,
    emergency_fund_ratio: float,
    debt_to_income: float,
    income_stability: IncomeStabilityLevel,
    config: Optional[Dict] = None
) -> float:
    """
    Overall health score out of 100.

    Components:
        - Savings rate (30): a 50% rate earns full points
        - Emergency fund (25): full points at the target coverage
        - Debt (20): zero payments earn full points, 50%+ of income earns none
        - Income stability (15/10/5)
        - Spending discipline (10 when saving, else 5)
    """
    config = config or HEALTH_CONFIG
    weights = config["score_weights"]

    savings = min(savings_rate * 2, 1.0) * weights["savings"]
    emergency = min(emergency_fund_ratio, 1.0) * weights["emergency_fund"]
    debt = max(1 - debt_to_income * 2, 0.0) * weights["debt"]
    stability = config["stability_points"][income_stability.value]
    spending_key = "saving" if savings_rate > 0 else "not_saving"
    spending = config["spending_points"][spending_key]

    return savings + emergency + debt + stability + spending


class FinancialHealthCalculator:
    """Calculates health metrics from transactions, accounts and an analysis snapshot."""

    def __init__(
        self,
        classifier: Optional[TransactionClassifier] = None,
        now: Optional[datetime] = None,
        config: Optional[Dict] = None
    ):
        self.classifier = classifier or TransactionClassifier()
        self.now = now
        self.config = dict(HEALTH_CONFIG)
        if config:
            self.config.update(config)

    def _now(self) -> datetime:
        if self.now is None:
            return datetime.now()
        if not isinstance(self.now, datetime):
            return datetime.combine(self.now, datetime.min.time())
        return self.now

    def _today(self) -> date:
        return self._now().date()

    @property
    def months(self) -> int:
        return self.config["lookback_months"]

    def recent_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """Non-pending transactions from the lookback window."""
        today = self._today()
        start = add_months(today, -self.months)
        return [txn for txn in transactions if not txn.pending and start <= txn.date <= today]

    def _bucketed(self, transactions: Sequence[Transaction]) -> List[Tuple[Transaction, BucketCategory]]:
        return [(txn, self.classifier.categorize_to_bucket(txn)) for txn in transactions]

    # ------------------------------------------------------------------
    # Savings
    # ------------------------------------------------------------------

    @staticmethod
    def savings_account_ids(accounts: Sequence[Account]) -> set:
        """Savings and money market accounts plus accounts tagged as savings or emergency fund."""
        ids = set()
        for account in accounts:
            subtype = (account.subtype or "").lower()
            if any(marker in subtype for marker in SAVINGS_SUBTYPES):
                ids.add(account.account_id)
            elif account.has_tag(SAVINGS_GOAL_TAG) or account.has_tag(EMERGENCY_FUND_TAG):
                ids.add(account.account_id)
        return ids

    def monthly_savings(
        self,
        transactions: Sequence[Transaction],
        accounts: Sequence[Account],
        flow: MonthlyFlow
    ) -> float:
        """
        Average monthly amount actually saved.

        Money arriving in savings accounts plus investment contributions.
        When neither is seen, positive cash flow is used instead.
        """
        recent = self.recent_transactions(transactions)
        savings_ids = self.savings_account_ids(accounts)

        transfers_in = sum(
            abs(txn.amount) for txn in recent
            if txn.account_id in savings_ids and txn.amount < 0
        )
        contributions = sum(
            abs(txn.amount) for txn, bucket in self._bucketed(recent)
            if bucket == BucketCategory.INVESTED
        )
        saved = (transfers_in + contributions) / self.months
        if saved > 0:
            return saved

        cash_flow = flow.income - flow.essential_expenses
        if cash_flow > 0:
            logger.debug("No savings activity found, using cash flow %.2f", cash_flow)
            return cash_flow
        return 0.0

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    def _split_periods(self, transactions: Sequence[Transaction]):
        today = self._today()
        middle = add_months(today, -self.config["trend_months"])
        start = add_months(today, -self.months)
        bucketed = self._bucketed(
            [txn for txn in transactions if not txn.pending and start <= txn.date <= today]
        )
        recent = [(txn, bucket) for txn, bucket in bucketed if txn.date >= middle]
        older = [(txn, bucket) for txn, bucket in bucketed if txn.date < middle]
        return recent, older

    @staticmethod
    def _net_savings(period) -> float:
        income = sum(abs(txn.amount) for txn, bucket in period if bucket == BucketCategory.INCOME)
        expenses = sum(txn.amount for txn, bucket in period if bucket == BucketCategory.EXPENSES)
        return income - expenses

    @staticmethod
    def _expenses(period) -> float:
        return sum(txn.amount for txn, bucket in period if bucket == BucketCategory.EXPENSES)

    def _trend(self, recent: float, older: float) -> TrendIndicator:
        change = recent - older
        if older == 0 or abs(change) / abs(older) < self.config["trend_threshold"]:
            return TrendIndicator.STABLE
        return TrendIndicator.INCREASING if change > 0 else TrendIndicator.DECREASING

    def savings_trend(self, transactions: Sequence[Transaction]) -> TrendIndicator:
        """Net savings of the last three months against the three before."""
        recent, older = self._split_periods(transactions)
        return self._trend(self._net_savings(recent), self._net_savings(older))

    def spending_trend(self, transactions: Sequence[Transaction]) -> TrendIndicator:
        """Expenses of the last three months against the three before."""
        recent, older = self._split_periods(transactions)
        older_expenses = self._expenses(older)
        if older_expenses <= 0:
            return TrendIndicator.STABLE
        return self._trend(self._expenses(recent), older_expenses)

    # ------------------------------------------------------------------
    # Spending & debt
    # ------------------------------------------------------------------

    def essential_spending(self, transactions: Sequence[Transaction]) -> float:
        total = sum(
            txn.amount for txn in self.recent_transactions(transactions)
            if self.classifier.is_essential_spending(txn)
        )
        return total / self.months

    def discretionary_spending(self, transactions: Sequence[Transaction]) -> float:
        total = sum(
            txn.amount for txn in self.recent_transactions(transactions)
            if self.classifier.is_discretionary_spending(txn)
        )
        return total / self.months

    def monthly_debt_payments(self, transactions: Sequence[Transaction]) -> float:
        total = sum(
            txn.amount for txn, bucket in self._bucketed(self.recent_transactions(transactions))
            if bucket == BucketCategory.DEBT and txn.amount > 0
        )
        return total / self.months

    # ------------------------------------------------------------------
    # Income stability
    # ------------------------------------------------------------------

    def monthly_income_totals(self, transactions: Sequence[Transaction]) -> List[float]:
        """Income per trailing month, most recent first."""
        income = [
            txn for txn in self.recent_transactions(transactions)
            if self.classifier.counts_as_income(txn)
        ]
        today = self._today()
        totals = []
        for offset in range(self.months):
            end = add_months(today, -offset)
            start = add_months(today, -(offset + 1))
            totals.append(sum(abs(txn.amount) for txn in income if start < txn.date <= end))
        return totals

    def income_stability(self, transactions: Sequence[Transaction]) -> IncomeStabilityLevel:
        """Classify the coefficient of variation of monthly income."""
        totals = np.array(self.monthly_income_totals(transactions), dtype=float)
        if len(totals) < 3 or not totals.any():
            return IncomeStabilityLevel.INCONSISTENT

        mean = float(np.mean(totals))
        if mean <= 0:
            return IncomeStabilityLevel.INCONSISTENT
        variation = float(np.std(totals)) / mean

        cutoffs = self.config["stability_cutoffs"]
        if variation < cutoffs["stable"]:
            return IncomeStabilityLevel.STABLE
        if variation < cutoffs["variable"]:
            return IncomeStabilityLevel.VARIABLE
        return IncomeStabilityLevel.INCONSISTENT

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def calculate(
        self,
        snapshot: AnalysisSnapshot,
        transactions: Sequence[Transaction],
        accounts: Sequence[Account]
    ) -> FinancialHealthMetrics:
        """
        Calculate all health metrics.

        Args:
            snapshot: Flow and position from ``FlowAggregator.analyze``
            transactions: All transactions
            accounts: All accounts

        Returns:
            FinancialHealthMetrics
        """
        flow = snapshot.monthly_flow
        position = snapshot.position
        income = flow.income

        savings = self.monthly_savings(transactions, accounts, flow)
        essential = self.essential_spending(transactions)
        emergency_months = position.emergency_fund_balance / essential if essential > 0 else 0.0
        target_months = self.config["emergency_target_months"]

        stability = self.income_stability(transactions)
        debt_payments = self.monthly_debt_payments(transactions)

        savings_rate = savings / income if income > 0 else 0.0
        debt_to_income = debt_payments / income if income > 0 else 0.0
        score = calculate_health_score(
            savings_rate, emergency_months / target_months, debt_to_income, stability, self.config
        )

        metrics = FinancialHealthMetrics(
            monthly_savings=savings,
            savings_trend=self.savings_trend(transactions),
            emergency_fund_months_covered=emergency_months,
            emergency_fund_target=essential * target_months,
            monthly_income=income,
            income_stability=stability,
            monthly_debt_payments=debt_payments,
            months_to_debt_free=debt_payoff_months(position.total_debt, debt_payments),
            discretionary_spending=self.discretionary_spending(transactions),
            essential_spending=essential,
            spending_trend=self.spending_trend(transactions),
            health_score=score,
            savings_rate=savings_rate,
            debt_to_income_ratio=debt_to_income,
            calculated_at=self._now(),
            analysis_months=snapshot.metadata.months_analyzed,
        )
        logger.info(
            "Health: savings=%.2f/month emergency=%.1f months stability=%s score=%.1f",
            savings, emergency_months, stability.value, score
        )
        return metrics
