"""
Allocation Scheduler.

Turns a paycheck schedule plus per-bucket amounts into dated allocation
events, and keeps that list current when the schedule or the amounts change.
All operations return new lists; inputs are never modified.
"""

import logging
import math
import uuid
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Sequence

from ..config.analysis_config import SCHEDULER_CONFIG
from ..dates import add_months
from ..income.paycheck_schedule import PaycheckFrequency, PaycheckSchedule
from .allocation import (
    AllocationBucketType,
    AllocationStatus,
    PaycheckAllocationGroup,
    ScheduledAllocation,
    group_by_paycheck,
)

logger = logging.getLogger(__name__)

BucketAmounts = Mapping[AllocationBucketType, float]


def paychecks_needed(frequency: PaycheckFrequency, months_ahead: int) -> int:
    """Paychecks that cover ``months_ahead`` months, never fewer than one."""
    return max(math.ceil(frequency.paychecks_per_year / 12 * months_ahead), 1)


class AllocationScheduler:
    """Generates and maintains scheduled allocation events."""

    def __init__(self, now: Optional[datetime] = None, config: Optional[Dict] = None):
        self.now = now
        self.config = dict(SCHEDULER_CONFIG)
        if config:
            self.config.update(config)

    def _now(self) -> datetime:
        return self.now if self.now is not None else datetime.now()

    def _today(self) -> date:
        now = self._now()
        return now.date() if isinstance(now, datetime) else now

    def _new_allocation(
        self,
        schedule_id: str,
        paycheck_date: date,
        bucket_type: AllocationBucketType,
        amount: float
    ) -> ScheduledAllocation:
        key = f"{schedule_id}:{paycheck_date.isoformat()}:{bucket_type.name}"
        now = self._now()
        return ScheduledAllocation(
            paycheck_date=paycheck_date,
            bucket_type=bucket_type,
            scheduled_amount=amount,
            status=AllocationStatus.UPCOMING,
            allocation_id=str(uuid.uuid5(uuid.NAMESPACE_OID, key)),
            created_at=now,
            updated_at=now,
        )

    def generate_schedule(
        self,
        schedule: PaycheckSchedule,
        bucket_amounts: BucketAmounts,
        months_ahead: Optional[int] = None,
        start_date: Optional[date] = None
    ) -> List[ScheduledAllocation]:
        """
        Create one allocation per upcoming paycheck and funded bucket.

        Args:
            schedule: Confirmed paycheck schedule
            bucket_amounts: Amount per paycheck for each bucket; zero or
                negative amounts are skipped
            months_ahead: Horizon in months (default from config)
            start_date: First day a paycheck may fall on (default today)

        Returns:
            Allocations sorted by date, then bucket
        """
        months_ahead = self.config["months_ahead"] if months_ahead is None else months_ahead
        start_date = start_date or self._today()

        count = paychecks_needed(schedule.frequency, months_ahead)
        dates = schedule.next_paycheck_dates(start_date, count)
        if not dates:
            logger.warning("No paycheck dates produced for schedule %s", schedule.schedule_id)
            return []

        allocations = [
            self._new_allocation(schedule.schedule_id, day, bucket_type, amount)
            for day in dates
            for bucket_type, amount in bucket_amounts.items()
            if amount > 0
        ]
        allocations.sort(key=lambda a: a.sort_key)
        logger.debug(
            "Generated %d allocations over %d paychecks (%d months)",
            len(allocations), len(dates), months_ahead
        )
        return allocations

    def regenerate_schedule(
        self,
        schedule: PaycheckSchedule,
        bucket_amounts: BucketAmounts,
        existing: Sequence[ScheduledAllocation],
        months_ahead: Optional[int] = None
    ) -> List[ScheduledAllocation]:
        """
        Keep completed/skipped history and replace every pending allocation.

        A paycheck date and bucket that already has history is not scheduled
        again, so allocation ids stay unique.
        """
        history = [a for a in existing if not a.is_pending]
        settled = {(a.paycheck_date, a.bucket_type) for a in history}
        upcoming = [
            a for a in self.generate_schedule(schedule, bucket_amounts, months_ahead=months_ahead)
            if (a.paycheck_date, a.bucket_type) not in settled
        ]
        logger.debug("Regenerated: %d historical + %d upcoming", len(history), len(upcoming))
        return sorted(history + upcoming, key=lambda a: a.sort_key)

    def update_allocation_amounts(
        self,
        allocations: Sequence[ScheduledAllocation],
        bucket_amounts: BucketAmounts
    ) -> List[ScheduledAllocation]:
        """
        Apply new bucket amounts to pending allocations, preserving dates.

        Pending allocations whose bucket no longer has a positive amount are
        dropped. Completed and skipped allocations are returned unchanged.
        """
        now = self._now()
        updated = []
        for allocation in allocations:
            if not allocation.is_pending:
                updated.append(allocation)
                continue
            amount = bucket_amounts.get(allocation.bucket_type, 0.0)
            if amount <= 0:
                continue
            if amount != allocation.scheduled_amount:
                allocation = allocation.with_amount(amount, now=now)
            updated.append(allocation)
        return sorted(updated, key=lambda a: a.sort_key)

    def add_missing_allocations(
        self,
        allocations: Sequence[ScheduledAllocation],
        bucket_type: AllocationBucketType,
        amount: float,
        schedule: PaycheckSchedule
    ) -> List[ScheduledAllocation]:
        """Add a newly funded bucket to every existing future paycheck date."""
        result = list(allocations)
        if amount <= 0:
            return sorted(result, key=lambda a: a.sort_key)

        today = self._today()
        existing_keys = {(a.paycheck_date, a.bucket_type) for a in allocations}
        future_dates = sorted({a.paycheck_date for a in allocations if a.paycheck_date >= today})

        for day in future_dates:
            if (day, bucket_type) not in existing_keys:
                result.append(self._new_allocation(schedule.schedule_id, day, bucket_type, amount))

        logger.debug("Added %d allocations for %s", len(result) - len(allocations), bucket_type.value)
        return sorted(result, key=lambda a: a.sort_key)

    def prune_old_allocations(
        self,
        allocations: Sequence[ScheduledAllocation],
        retention_months: Optional[int] = None
    ) -> List[ScheduledAllocation]:
        """Drop completed/skipped allocations older than the retention window."""
        if retention_months is None:
            retention_months = self.config["retention_months"]
        cutoff = add_months(self._today(), -retention_months)

        kept = [a for a in allocations if a.is_pending or a.paycheck_date >= cutoff]
        removed = len(allocations) - len(kept)
        if removed:
            logger.info("Pruned %d allocations older than %d months", removed, retention_months)
        return kept

    def schedule_preview(
        self,
        schedule: PaycheckSchedule,
        bucket_amounts: BucketAmounts,
        preview_count: Optional[int] = None
    ) -> str:
        """One-line summary, e.g. ``Next paychecks: Nov 15, Nov 29, Dec 13 • $2,400 per payday``."""
        preview_count = preview_count or self.config["preview_dates"]
        dates = schedule.next_paycheck_dates(self._today(), preview_count)
        if not dates:
            return "No upcoming paychecks"

        joined = ", ".join(f"{d.strftime('%b')} {d.day}" for d in dates)
        per_payday = sum(amount for amount in bucket_amounts.values() if amount > 0)
        return f"Next paychecks: {joined} • ${per_payday:,.0f} per payday"

    @staticmethod
    def group_by_paycheck(allocations: Sequence[ScheduledAllocation]) -> List[PaycheckAllocationGroup]:
        return group_by_paycheck(list(allocations))

    def upcoming(self, allocations: Sequence[ScheduledAllocation]) -> List[ScheduledAllocation]:
        today = self._today()
        return [a for a in allocations if a.is_pending and a.paycheck_date >= today]
