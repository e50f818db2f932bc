"""
Cashflow Engine - Personal Cash-Flow Analysis from Plaid Data.

A modular system for classifying bank transactions into financial buckets,
summarising monthly flow and position, and detecting paycheck cadence for
per-payday allocation planning.

Main Components:
    - models: Transaction, Account and Plaid category types
    - patterns: Keyword tables used by the classification rules
    - config: Analysis, detection, debt and scheduling configuration
    - classification: Rule-chain transaction classifier
    - analysis: Expense categorizer, debt estimator, flow aggregator, health metrics, insights
    - income: Paycheck cadence detection and schedule model
    - scheduling: Allocation recommendations, scheduler and execution tracking
"""

from typing import Dict, List, Optional, Sequence, Union
from datetime import datetime

# Models
from .models import (
    Account,
    BucketCategory,
    ConfidenceLevel,
    PersonalFinanceCategory,
    PfcPrimary,
    Transaction,
)

# Classification
from .classification.engine import (
    TransactionClassifier,
    ClassificationResult,
)

# Analysis
from .analysis.aggregator import (
    FlowAggregator,
    MonthlyFlow,
    FinancialPosition,
    AnalysisMetadata,
    AnalysisSnapshot,
)
from .analysis.debt_estimator import DebtAccount, DebtMinimumEstimator
from .analysis.expense_categorizer import ExpenseBreakdown, ExpenseCategorizer
from .analysis.health import FinancialHealthCalculator, FinancialHealthMetrics, IncomeStabilityLevel

# Income detection
from .income.paycheck_detector import PaycheckDetector, DetectionResult
from .income.paycheck_schedule import (
    PaycheckSchedule,
    PaycheckFrequency,
    ScheduleConfidence,
    InvalidScheduleError,
)

# Scheduling
from .scheduling.allocation import (
    AllocationBucketType,
    AllocationStatus,
    ScheduledAllocation,
    InvalidTransitionError,
)
from .scheduling.allocation_scheduler import AllocationScheduler
from .scheduling.execution_tracker import AllocationExecution, AllocationExecutionTracker
from .scheduling.recommendations import AllocationPlan, AllocationRecommender

# Configuration
from .config.analysis_config import (
    ANALYSIS_CONFIG,
    DETECTION_CONFIG,
    DEBT_CONFIG,
    EXPENSE_CONFIG,
    SCHEDULER_CONFIG,
    HEALTH_CONFIG,
    RECOMMENDATION_CONFIG,
)


__version__ = "1.0.0"
__all__ = [
    # Models
    "Account",
    "BucketCategory",
    "ConfidenceLevel",
    "PersonalFinanceCategory",
    "PfcPrimary",
    "Transaction",
    # Classification
    "TransactionClassifier",
    "ClassificationResult",
    # Analysis
    "FlowAggregator",
    "MonthlyFlow",
    "FinancialPosition",
    "AnalysisMetadata",
    "AnalysisSnapshot",
    "DebtAccount",
    "DebtMinimumEstimator",
    "ExpenseBreakdown",
    "ExpenseCategorizer",
    "FinancialHealthCalculator",
    "FinancialHealthMetrics",
    "IncomeStabilityLevel",
    # Income detection
    "PaycheckDetector",
    "DetectionResult",
    "PaycheckSchedule",
    "PaycheckFrequency",
    "ScheduleConfidence",
    "InvalidScheduleError",
    # Scheduling
    "AllocationBucketType",
    "AllocationStatus",
    "ScheduledAllocation",
    "InvalidTransitionError",
    "AllocationScheduler",
    "AllocationExecution",
    "AllocationExecutionTracker",
    "AllocationPlan",
    "AllocationRecommender",
    # Configuration
    "ANALYSIS_CONFIG",
    "DETECTION_CONFIG",
    "DEBT_CONFIG",
    "EXPENSE_CONFIG",
    "SCHEDULER_CONFIG",
    "HEALTH_CONFIG",
    "RECOMMENDATION_CONFIG",
    # Main function
    "run_financial_analysis",
]


def _as_transactions(records: Sequence[Union[Dict, Transaction]]) -> List[Transaction]:
    return [r if isinstance(r, Transaction) else Transaction.from_plaid(r) for r in records]


def _as_accounts(records: Sequence[Union[Dict, Account]]) -> List[Account]:
    return [r if isinstance(r, Account) else Account.from_plaid(r) for r in records]


def run_financial_analysis(
    transactions: Sequence[Union[Dict, Transaction]],
    accounts: Sequence[Union[Dict, Account]],
    now: Optional[datetime] = None,
    lookback_months: Optional[int] = None,
    bucket_mapping: Optional[Dict[str, BucketCategory]] = None,
) -> Dict:
    """
    Main entry point for cash-flow analysis.

    This function orchestrates the complete pipeline:
    1. Convert Plaid records into models
    2. Classify every transaction
    3. Aggregate monthly flow, position and metadata
    4. Detect the paycheck schedule
    5. Calculate health metrics and recommend an allocation split

    Args:
        transactions: Plaid transaction dicts or Transaction instances.
            Amounts follow the Plaid convention (negative = money in).
        accounts: Plaid account dicts or Account instances
        now: Reference time for all relative dates (default: wall clock)
        lookback_months: Months of history to analyse (default 6)
        bucket_mapping: Optional primary -> bucket overrides

    Returns:
        Dictionary containing:
            - snapshot: AnalysisSnapshot
            - summary: Flat dict of the snapshot for export
            - paycheck: DetectionResult
            - health: FinancialHealthMetrics
            - recommendation: AllocationPlan, or None without income
            - classifications: ClassificationResult per transaction
            - needs_review: Transactions flagged for user validation

    Raises:
        KeyError, ValueError: If a raw record is malformed

    Example:
        >>> transactions = [
        ...     {
        ...         "transaction_id": "t1",
        ...         "account_id": "chk",
        ...         "date": "2025-01-15",
        ...         "amount": -3000.0,
        ...         "name": "ACME Corp Payroll",
        ...         "category": ["Payroll"],
        ...     },
        ...     {
        ...         "transaction_id": "t2",
        ...         "account_id": "chk",
        ...         "date": "2025-01-16",
        ...         "amount": 150.0,
        ...         "name": "Whole Foods",
        ...         "personal_finance_category": {
        ...             "primary": "FOOD_AND_DRINK",
        ...             "detailed": "FOOD_AND_DRINK_GROCERIES",
        ...             "confidence_level": "HIGH",
        ...         },
        ...     },
        ... ]
        >>> result = run_financial_analysis(
        ...     transactions=transactions,
        ...     accounts=[],
        ...     now=datetime(2025, 1, 31),
        ... )
        >>> print(result["summary"]["monthly_income"])
        3000.0
    """
    txns = _as_transactions(transactions)
    accts = _as_accounts(accounts)

    classifier = TransactionClassifier(bucket_mapping=bucket_mapping)
    aggregator = FlowAggregator(classifier=classifier, lookback_months=lookback_months, now=now)
    detector_config = {"lookback_months": lookback_months} if lookback_months is not None else None
    detector = PaycheckDetector(classifier=classifier, config=detector_config, now=now)
    health_calculator = FinancialHealthCalculator(classifier=classifier, now=now, config=detector_config)

    classifications = classifier.classify_all(txns)
    snapshot = aggregator.analyze(txns, accts)
    paycheck = detector.detect(txns)
    health = health_calculator.calculate(snapshot, txns, accts)
    recommendation = None
    if snapshot.monthly_flow.income > 0:
        recommendation = AllocationRecommender().recommend_from_analysis(snapshot, health)

    return {
        "snapshot": snapshot,
        "summary": aggregator.summary_dict(snapshot),
        "paycheck": paycheck,
        "health": health,
        "recommendation": recommendation,
        "classifications": classifications,
        "needs_review": [
            txn for txn, result in zip(txns, classifications) if result.needs_validation
        ],
    }
