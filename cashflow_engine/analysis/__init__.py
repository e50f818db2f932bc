"""
Analysis Module for the cashflow engine.

Contains:
- ExpenseCategorizer: real expenses split into eight sub-buckets
- DebtMinimumEstimator: minimum payments and APR defaults per debt account
- FlowAggregator: monthly flow, financial position and metadata snapshots
- insights: drill-down helpers (category totals, trends, contributors)
- FinancialHealthCalculator: savings, stability, debt and spending trend metrics
"""

from .aggregator import (
    FlowAggregator,
    MonthlyFlow,
    FinancialPosition,
    AnalysisMetadata,
    AnalysisSnapshot,
)
from .debt_estimator import (
    DebtAccount,
    DebtMinimumEstimator,
    debt_type_for,
    estimate_minimum_payment,
)
from .expense_categorizer import ExpenseBreakdown, ExpenseCategorizer, EXPENSE_SUB_BUCKETS
from .health import (
    FinancialHealthCalculator,
    FinancialHealthMetrics,
    IncomeStabilityLevel,
    TrendIndicator,
    calculate_health_score,
    debt_payoff_months,
)
from .insights import (
    calculation_explanation,
    contributing_accounts,
    expenses_by_category,
    monthly_trends,
    top_contributors,
    transactions_to_dataframe,
)

__all__ = [
    "FlowAggregator",
    "MonthlyFlow",
    "FinancialPosition",
    "AnalysisMetadata",
    "AnalysisSnapshot",
    "DebtAccount",
    "DebtMinimumEstimator",
    "debt_type_for",
    "estimate_minimum_payment",
    "ExpenseBreakdown",
    "ExpenseCategorizer",
    "EXPENSE_SUB_BUCKETS",
    "FinancialHealthCalculator",
    "FinancialHealthMetrics",
    "IncomeStabilityLevel",
    "TrendIndicator",
    "calculate_health_score",
    "debt_payoff_months",
    "calculation_explanation",
    "contributing_accounts",
    "expenses_by_category",
    "monthly_trends",
    "top_contributors",
    "transactions_to_dataframe",
]
