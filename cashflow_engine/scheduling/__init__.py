"""
Scheduling Module for the cashflow engine.

Contains:
- AllocationScheduler: dated allocation events from a paycheck schedule
- ScheduledAllocation: per-payday allocation with explicit status transitions
- AllocationExecutionTracker: execution records and history queries
- AllocationRecommender: monthly split of income with per-bucket guardrails
"""

from .allocation import (
    AllocationBucketType,
    AllocationStatus,
    ScheduledAllocation,
    PaycheckAllocationGroup,
    InvalidTransitionError,
    group_by_paycheck,
)
from .allocation_scheduler import AllocationScheduler, paychecks_needed
from .execution_tracker import AllocationExecution, AllocationExecutionTracker
from .recommendations import (
    AllocationPlan,
    AllocationRecommender,
    BucketRecommendation,
    DebtPayoff,
    debt_payoff,
    effective_emergency_duration,
    emergency_fund_options,
    max_safe_allocation,
    project_investment_growth,
    recommended_minimum,
    validate_discretionary_spending,
)

__all__ = [
    "AllocationBucketType",
    "AllocationStatus",
    "ScheduledAllocation",
    "PaycheckAllocationGroup",
    "InvalidTransitionError",
    "group_by_paycheck",
    "AllocationScheduler",
    "paychecks_needed",
    "AllocationExecution",
    "AllocationExecutionTracker",
    "AllocationPlan",
    "AllocationRecommender",
    "BucketRecommendation",
    "DebtPayoff",
    "debt_payoff",
    "effective_emergency_duration",
    "emergency_fund_options",
    "max_safe_allocation",
    "project_investment_growth",
    "recommended_minimum",
    "validate_discretionary_spending",
]
