"""
Allocation execution history.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .allocation import AllocationBucketType, ScheduledAllocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationExecution:
    """A completed allocation as the user actually carried it out."""
    bucket_type: AllocationBucketType
    scheduled_amount: float
    actual_amount: float
    paycheck_date: date
    scheduled_allocation_id: str
    completed_at: datetime
    was_automatic: bool = False
    notes: Optional[str] = None
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def variance_from_plan(self) -> float:
        """Positive when more than planned was allocated."""
        return self.actual_amount - self.scheduled_amount

    @property
    def variance_percentage(self) -> float:
        if self.scheduled_amount <= 0:
            return 0.0
        return self.variance_from_plan / self.scheduled_amount * 100

    @property
    def is_different_than_planned(self) -> bool:
        return abs(self.variance_from_plan) > 0.01


class AllocationExecutionTracker:
    """Records executions and answers history questions about them."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now

    def record_execution(
        self,
        allocation: ScheduledAllocation,
        actual_amount: float,
        was_automatic: bool = False,
        notes: Optional[str] = None
    ) -> Tuple[AllocationExecution, ScheduledAllocation]:
        """
        Record a completed allocation.

        Args:
            allocation: The pending allocation being carried out
            actual_amount: What the user actually moved
            was_automatic: True for automatic transfers
            notes: Optional free text

        Returns:
            Tuple of (execution record, allocation marked completed)

        Raises:
            InvalidTransitionError: If the allocation is already completed or skipped
        """
        completed_at = self.now or datetime.now()
        execution = AllocationExecution(
            bucket_type=allocation.bucket_type,
            scheduled_amount=allocation.scheduled_amount,
            actual_amount=actual_amount,
            paycheck_date=allocation.paycheck_date,
            scheduled_allocation_id=allocation.allocation_id,
            completed_at=completed_at,
            was_automatic=was_automatic,
            notes=notes,
        )
        completed = allocation.mark_completed(execution.execution_id, now=completed_at)
        logger.debug(
            "Recorded %s execution: %.2f (planned %.2f)",
            allocation.bucket_type.value, actual_amount, allocation.scheduled_amount
        )
        return execution, completed

    @staticmethod
    def history_for_bucket(
        executions: Sequence[AllocationExecution],
        bucket_type: AllocationBucketType
    ) -> List[AllocationExecution]:
        """Executions for one bucket, most recent first."""
        matching = [e for e in executions if e.bucket_type == bucket_type]
        return sorted(matching, key=lambda e: e.completed_at, reverse=True)

    @staticmethod
    def total_allocated(
        executions: Sequence[AllocationExecution],
        bucket_type: Optional[AllocationBucketType] = None
    ) -> float:
        return sum(
            e.actual_amount for e in executions
            if bucket_type is None or e.bucket_type == bucket_type
        )

    def last_contribution(
        self,
        executions: Sequence[AllocationExecution],
        bucket_type: AllocationBucketType
    ) -> Optional[float]:
        history = self.history_for_bucket(executions, bucket_type)
        return history[0].actual_amount if history else None

    @staticmethod
    def totals_by_bucket(executions: Sequence[AllocationExecution]) -> Dict[AllocationBucketType, float]:
        totals: Dict[AllocationBucketType, float] = defaultdict(float)
        for execution in executions:
            totals[execution.bucket_type] += execution.actual_amount
        return dict(totals)
