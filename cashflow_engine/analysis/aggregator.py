"""
Flow & position aggregation.

Turns classified transactions and account balances into read-only snapshots:
``MonthlyFlow`` (average monthly income, expenses and debt minimums),
``FinancialPosition`` (point-in-time cash, debts and investments) and
``AnalysisMetadata``. Every call builds fresh frozen values; nothing is
mutated, so repeated calls on the same inputs and ``now`` are identical.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..classification.engine import TransactionClassifier
from ..config.analysis_config import ANALYSIS_CONFIG, EXPENSE_CONFIG
from ..dates import add_months, whole_months_between
from ..models.account import Account, EMERGENCY_FUND_TAG
from ..models.transaction import Transaction
from .debt_estimator import DebtAccount, DebtMinimumEstimator
from .expense_categorizer import ExpenseBreakdown, ExpenseCategorizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyFlow:
    """Average monthly cash flow."""
    income: float
    essential_expenses: float
    debt_minimums: float
    expense_breakdown: Optional[ExpenseBreakdown] = None

    @property
    def discretionary_income(self) -> float:
        """Income left after expenses and debt minimums; negative means a deficit."""
        return self.income - self.essential_expenses - self.debt_minimums

    @property
    def is_positive(self) -> bool:
        return self.discretionary_income > 0

    @property
    def has_detailed_breakdown(self) -> bool:
        return self.expense_breakdown is not None

    def _share(self, value: float) -> float:
        if self.income <= 0:
            return 0.0
        return value / self.income * 100

    @property
    def expense_percentage(self) -> float:
        return self._share(self.essential_expenses)

    @property
    def debt_percentage(self) -> float:
        return self._share(self.debt_minimums)

    @property
    def discretionary_percentage(self) -> float:
        return self._share(self.discretionary_income)


@dataclass(frozen=True)
class FinancialPosition:
    """Point-in-time balances."""
    liquid_cash: float
    debts: Tuple[DebtAccount, ...]
    investment_balance: float
    monthly_investment_contribution: float
    emergency_fund_balance: float = 0.0

    @property
    def total_debt(self) -> float:
        return sum(debt.balance for debt in self.debts)

    @property
    def total_minimum_payments(self) -> float:
        return sum(debt.minimum_payment for debt in self.debts)

    @property
    def net_worth(self) -> float:
        return self.liquid_cash + self.investment_balance - self.total_debt

    @property
    def has_debt(self) -> bool:
        return self.total_debt > 0

    @property
    def is_investing(self) -> bool:
        return self.monthly_investment_contribution > 0

    def emergency_fund_months(self, monthly_expenses: float) -> float:
        """Months of expenses covered by liquid cash."""
        if monthly_expenses <= 0:
            return 0.0
        return self.liquid_cash / monthly_expenses


@dataclass(frozen=True)
class AnalysisMetadata:
    """What the analysis was based on."""
    months_analyzed: int
    accounts_connected: int
    transactions_analyzed: int
    transactions_needing_validation: int
    overall_confidence: float
    analysis_start: Optional[date]
    analysis_end: Optional[date]
    last_updated: datetime

    @property
    def needs_validation_review(self) -> bool:
        return self.transactions_needing_validation > 0


@dataclass(frozen=True)
class AnalysisSnapshot:
    """Complete result of one analysis run."""
    monthly_flow: MonthlyFlow
    position: FinancialPosition
    expense_breakdown: ExpenseBreakdown
    metadata: AnalysisMetadata

    @property
    def discretionary_income(self) -> float:
        return self.monthly_flow.discretionary_income

    @property
    def is_ready_for_plan(self) -> bool:
        return self.monthly_flow.is_positive and self.metadata.transactions_analyzed > 0


class FlowAggregator:
    """Builds monthly flow, position and metadata from transactions and accounts."""

    def __init__(
        self,
        classifier: Optional[TransactionClassifier] = None,
        lookback_months: Optional[int] = None,
        now: Optional[datetime] = None,
        debt_estimator: Optional[DebtMinimumEstimator] = None
    ):
        """
        Initialize the aggregator.

        Args:
            classifier: Transaction classifier (a default one is built if omitted)
            lookback_months: Months of history to analyse (default 6)
            now: Reference time for the window; the wall clock is read on
                each call when omitted
            debt_estimator: Debt minimum estimator
        """
        self.classifier = classifier or TransactionClassifier()
        self.lookback_months = (
            lookback_months if lookback_months is not None
            else ANALYSIS_CONFIG["lookback_months"]
        )
        self.now = now
        self.debt_estimator = debt_estimator or DebtMinimumEstimator()
        self.expense_categorizer = ExpenseCategorizer(self.classifier)

    def _reference_time(self) -> datetime:
        if self.now is None:
            return datetime.now()
        if not isinstance(self.now, datetime):
            return datetime.combine(self.now, datetime.min.time())
        return self.now

    # ------------------------------------------------------------------
    # Window
    # ------------------------------------------------------------------

    def window_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """
        Non-pending transactions from the lookback window, oldest first.

        Args:
            transactions: All transactions

        Returns:
            Filtered, date-sorted list
        """
        today = self._reference_time().date()
        start = add_months(today, -self.lookback_months)
        window = [
            txn for txn in transactions
            if not txn.pending and start <= txn.date <= today
        ]
        window.sort(key=lambda txn: (txn.date, txn.transaction_id))
        logger.debug(
            "Window %s..%s kept %d of %d transactions",
            start, today, len(window), len(transactions)
        )
        return window

    def calculate_months_analyzed(self, transactions: Sequence[Transaction]) -> int:
        """
        Whole months between the first and last transaction, at least 1.

        Args:
            transactions: Windowed transactions

        Returns:
            Number of months (minimum 1)
        """
        if not transactions:
            return 1
        dates = [txn.date for txn in transactions]
        return max(whole_months_between(min(dates), max(dates)), 1)

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------

    def calculate_monthly_income(self, transactions: Sequence[Transaction], months: int) -> float:
        total = 0.0
        for txn in transactions:
            if self.classifier.counts_as_income(txn):
                total += abs(txn.amount)
        return total / max(months, 1)

    def calculate_debt_minimums(self, accounts: Sequence[Account]) -> float:
        total = 0.0
        for account in accounts:
            if account.is_debt:
                minimum, _ = self.debt_estimator.minimum_payment_for(account)
                total += minimum
        return total

    def calculate_monthly_flow(
        self,
        transactions: Sequence[Transaction],
        accounts: Sequence[Account],
        months: int,
        expense_breakdown: Optional[ExpenseBreakdown] = None
    ) -> MonthlyFlow:
        """
        Average monthly flow over windowed transactions.

        Args:
            transactions: Windowed transactions
            accounts: All accounts
            months: Months analysed
            expense_breakdown: Precomputed breakdown (computed if omitted)

        Returns:
            MonthlyFlow
        """
        if expense_breakdown is None:
            expense_breakdown = self.expense_categorizer.categorize_expenses(transactions, months)
        return MonthlyFlow(
            income=self.calculate_monthly_income(transactions, months),
            essential_expenses=expense_breakdown.total,
            debt_minimums=self.calculate_debt_minimums(accounts),
            expense_breakdown=expense_breakdown,
        )

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    def calculate_position(
        self,
        transactions: Sequence[Transaction],
        accounts: Sequence[Account],
        months: int
    ) -> FinancialPosition:
        """
        Point-in-time position plus the monthly investment contribution rate.

        Args:
            transactions: Windowed transactions
            accounts: All accounts
            months: Months analysed

        Returns:
            FinancialPosition
        """
        liquid_cash = sum(a.spendable_balance for a in accounts if a.is_liquid_cash)
        emergency = sum(
            a.spendable_balance for a in accounts
            if a.is_depository and a.has_tag(EMERGENCY_FUND_TAG)
        )
        investments = sum(a.current_balance or 0.0 for a in accounts if a.is_investment)
        debts = tuple(self.debt_estimator.debt_record(a) for a in accounts if a.is_debt)

        contributions = sum(
            abs(txn.amount) for txn in transactions
            if self.classifier.is_investment_contribution(txn)
        )

        return FinancialPosition(
            liquid_cash=liquid_cash,
            debts=debts,
            investment_balance=investments,
            monthly_investment_contribution=contributions / max(months, 1),
            emergency_fund_balance=emergency,
        )

    # ------------------------------------------------------------------
    # Metadata & snapshot
    # ------------------------------------------------------------------

    def calculate_metadata(
        self,
        transactions: Sequence[Transaction],
        accounts: Sequence[Account],
        months: int,
        expense_breakdown: ExpenseBreakdown
    ) -> AnalysisMetadata:
        needing_validation = sum(1 for txn in transactions if self.classifier.needs_validation(txn))
        if transactions:
            validated_share = 1 - needing_validation / len(transactions)
        else:
            validated_share = EXPENSE_CONFIG["default_confidence"]
        overall = (expense_breakdown.confidence + validated_share) / 2

        return AnalysisMetadata(
            months_analyzed=months,
            accounts_connected=len({a.item_id for a in accounts}),
            transactions_analyzed=len(transactions),
            transactions_needing_validation=needing_validation,
            overall_confidence=overall,
            analysis_start=transactions[0].date if transactions else None,
            analysis_end=transactions[-1].date if transactions else None,
            last_updated=self._reference_time(),
        )

    def analyze(
        self,
        transactions: Sequence[Transaction],
        accounts: Sequence[Account]
    ) -> AnalysisSnapshot:
        """
        Run the full aggregation.

        Args:
            transactions: All transactions (filtered to the window here)
            accounts: All accounts

        Returns:
            AnalysisSnapshot
        """
        window = self.window_transactions(transactions)
        months = self.calculate_months_analyzed(window)
        breakdown = self.expense_categorizer.categorize_expenses(window, months)

        flow = self.calculate_monthly_flow(window, accounts, months, breakdown)
        position = self.calculate_position(window, accounts, months)
        metadata = self.calculate_metadata(window, accounts, months, breakdown)

        logger.debug(
            "Analysis: months=%d income=%.2f expenses=%.2f debt_min=%.2f",
            months, flow.income, flow.essential_expenses, flow.debt_minimums
        )
        return AnalysisSnapshot(
            monthly_flow=flow,
            position=position,
            expense_breakdown=breakdown,
            metadata=metadata,
        )

    def summary_dict(self, snapshot: AnalysisSnapshot) -> Dict:
        """Flatten a snapshot for JSON/CSV export."""
        flow = snapshot.monthly_flow
        position = snapshot.position
        meta = snapshot.metadata
        return {
            "monthly_income": round(flow.income, 2),
            "monthly_expenses": round(flow.essential_expenses, 2),
            "monthly_debt_minimums": round(flow.debt_minimums, 2),
            "discretionary_income": round(flow.discretionary_income, 2),
            "liquid_cash": round(position.liquid_cash, 2),
            "total_debt": round(position.total_debt, 2),
            "investment_balance": round(position.investment_balance, 2),
            "monthly_investment_contribution": round(position.monthly_investment_contribution, 2),
            "net_worth": round(position.net_worth, 2),
            "expense_breakdown": {
                name: round(amount, 2) for name, amount in snapshot.expense_breakdown.categories()
            },
            "expense_confidence": round(snapshot.expense_breakdown.confidence, 3),
            "months_analyzed": meta.months_analyzed,
            "accounts_connected": meta.accounts_connected,
            "transactions_analyzed": meta.transactions_analyzed,
            "transactions_needing_validation": meta.transactions_needing_validation,
            "overall_confidence": round(meta.overall_confidence, 3),
            "is_ready_for_plan": snapshot.is_ready_for_plan,
        }
