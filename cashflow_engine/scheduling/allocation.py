"""
Allocation models: per-payday allocation events and their lifecycle.

Status transitions are explicit calls returning new values:

    upcoming -> reminder sent -> completed | skipped
    upcoming -> completed | skipped

Completed and skipped are terminal. Persisting the values is left to the
caller.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple


class InvalidTransitionError(Exception):
    """Raised on an illegal allocation status change."""
    pass


class AllocationBucketType(Enum):
    """Where a slice of each paycheck goes."""
    ESSENTIAL_SPENDING = "Essential Spending"
    EMERGENCY_FUND = "Emergency Fund"
    DISCRETIONARY_SPENDING = "Discretionary Spending"
    INVESTMENTS = "Investments"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return ALLOCATION_BUCKET_DESCRIPTIONS[self]

    @property
    def sort_order(self) -> int:
        return list(AllocationBucketType).index(self)


ALLOCATION_BUCKET_DESCRIPTIONS = {
    AllocationBucketType.ESSENTIAL_SPENDING: (
        "Core living expenses including housing, utilities, groceries, "
        "transportation, and healthcare"
    ),
    AllocationBucketType.EMERGENCY_FUND: (
        "Safety net for unexpected expenses. Target: 3-6 months of essential expenses"
    ),
    AllocationBucketType.DISCRETIONARY_SPENDING: (
        "Non-essential spending on entertainment, dining out, shopping, and hobbies"
    ),
    AllocationBucketType.INVESTMENTS: (
        "Long-term wealth building through retirement accounts, stocks, and other investments"
    ),
}


class AllocationStatus(Enum):
    UPCOMING = "Upcoming"
    REMINDER_SENT = "Reminder Sent"
    COMPLETED = "Completed"
    SKIPPED = "Skipped"

    @property
    def is_pending(self) -> bool:
        return self in (AllocationStatus.UPCOMING, AllocationStatus.REMINDER_SENT)

    @property
    def is_terminal(self) -> bool:
        return not self.is_pending


def _today(now: Optional[datetime]) -> date:
    now = now if now is not None else datetime.now()
    return now.date() if isinstance(now, datetime) else now


@dataclass(frozen=True)
class ScheduledAllocation:
    """One bucket's share of one paycheck."""
    paycheck_date: date
    bucket_type: AllocationBucketType
    scheduled_amount: float
    status: AllocationStatus = AllocationStatus.UPCOMING
    allocation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None
    linked_execution_id: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status.is_pending

    @property
    def sort_key(self) -> Tuple[date, int]:
        return (self.paycheck_date, self.bucket_type.sort_order)

    def _transition(self, target: AllocationStatus) -> None:
        if self.status.is_terminal:
            raise InvalidTransitionError(
                f"Cannot move allocation {self.allocation_id} from "
                f"{self.status.value} to {target.value}"
            )

    def mark_reminder_sent(self, now: Optional[datetime] = None) -> "ScheduledAllocation":
        self._transition(AllocationStatus.REMINDER_SENT)
        if self.status == AllocationStatus.REMINDER_SENT:
            raise InvalidTransitionError(
                f"Reminder already sent for allocation {self.allocation_id}"
            )
        now = now or datetime.now()
        return replace(
            self, status=AllocationStatus.REMINDER_SENT, reminder_sent_at=now, updated_at=now
        )

    def mark_completed(self, execution_id: str, now: Optional[datetime] = None) -> "ScheduledAllocation":
        """
        Complete the allocation and link the execution record.

        Raises:
            InvalidTransitionError: If the allocation is already completed or skipped
        """
        self._transition(AllocationStatus.COMPLETED)
        return replace(
            self,
            status=AllocationStatus.COMPLETED,
            linked_execution_id=execution_id,
            updated_at=now or datetime.now(),
        )

    def mark_skipped(self, now: Optional[datetime] = None) -> "ScheduledAllocation":
        self._transition(AllocationStatus.SKIPPED)
        return replace(self, status=AllocationStatus.SKIPPED, updated_at=now or datetime.now())

    def with_amount(self, amount: float, now: Optional[datetime] = None) -> "ScheduledAllocation":
        return replace(self, scheduled_amount=amount, updated_at=now or datetime.now())

    def is_due_today(self, now: Optional[datetime] = None) -> bool:
        return self.paycheck_date == _today(now)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return self.is_pending and self.paycheck_date < _today(now)

    def days_until_paycheck(self, now: Optional[datetime] = None) -> int:
        """Calendar days until the paycheck; negative once it has passed."""
        return (self.paycheck_date - _today(now)).days

    @property
    def short_date(self) -> str:
        return f"{self.paycheck_date.strftime('%b')} {self.paycheck_date.day}"


@dataclass(frozen=True)
class PaycheckAllocationGroup:
    """All allocations that share a paycheck date."""
    paycheck_date: date
    allocations: Tuple[ScheduledAllocation, ...]

    @property
    def total_scheduled_amount(self) -> float:
        return sum(a.scheduled_amount for a in self.allocations)

    @property
    def bucket_count(self) -> int:
        return len(self.allocations)

    @property
    def completed_count(self) -> int:
        return sum(1 for a in self.allocations if a.status == AllocationStatus.COMPLETED)

    @property
    def is_fully_completed(self) -> bool:
        return bool(self.allocations) and self.completed_count == len(self.allocations)

    @property
    def has_pending_allocations(self) -> bool:
        return any(a.is_pending for a in self.allocations)

    @property
    def progress_percentage(self) -> float:
        if not self.allocations:
            return 0.0
        return self.completed_count / len(self.allocations) * 100

    @property
    def status_summary(self) -> str:
        if self.is_fully_completed:
            return "All allocations completed"
        if self.has_pending_allocations:
            return f"{self.completed_count} of {self.bucket_count} completed"
        return "Skipped"


def group_by_paycheck(allocations: List[ScheduledAllocation]) -> List[PaycheckAllocationGroup]:
    """Group allocations by paycheck date, earliest first."""
    grouped = {}
    for allocation in sorted(allocations, key=lambda a: a.sort_key):
        grouped.setdefault(allocation.paycheck_date, []).append(allocation)
    return [
        PaycheckAllocationGroup(paycheck_date=day, allocations=tuple(items))
        for day, items in sorted(grouped.items())
    ]
