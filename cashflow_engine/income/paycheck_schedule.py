"""
Paycheck schedule model and next-date projection.

A schedule is either a detection proposal or a user-confirmed pattern.
Anchors are weekdays (0 = Monday) for weekly/biweekly schedules and days of
the month for semimonthly (exactly two) and monthly (exactly one).
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..dates import add_months, clamp_day, month_start


class InvalidScheduleError(Exception):
    """Raised when a schedule's anchors do not fit its frequency."""
    pass


class PaycheckFrequency(Enum):
    """How often a paycheck arrives."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"

    @property
    def display_name(self) -> str:
        return {
            PaycheckFrequency.WEEKLY: "Weekly",
            PaycheckFrequency.BIWEEKLY: "Bi-weekly",
            PaycheckFrequency.SEMIMONTHLY: "Semi-monthly",
            PaycheckFrequency.MONTHLY: "Monthly",
        }[self]

    @property
    def paychecks_per_year(self) -> int:
        return {
            PaycheckFrequency.WEEKLY: 52,
            PaycheckFrequency.BIWEEKLY: 26,
            PaycheckFrequency.SEMIMONTHLY: 24,
            PaycheckFrequency.MONTHLY: 12,
        }[self]

    @property
    def days_interval(self) -> int:
        """Nominal gap between paychecks."""
        return {
            PaycheckFrequency.WEEKLY: 7,
            PaycheckFrequency.BIWEEKLY: 14,
            PaycheckFrequency.SEMIMONTHLY: 15,
            PaycheckFrequency.MONTHLY: 30,
        }[self]

    @property
    def anchor_count(self) -> int:
        return 2 if self == PaycheckFrequency.SEMIMONTHLY else 1

    @property
    def uses_weekday_anchor(self) -> bool:
        return self in (PaycheckFrequency.WEEKLY, PaycheckFrequency.BIWEEKLY)


class ScheduleConfidence(Enum):
    """How sure we are about a schedule."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MANUAL = "manual"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def rank(self) -> int:
        return {
            ScheduleConfidence.LOW: 1,
            ScheduleConfidence.MEDIUM: 2,
            ScheduleConfidence.HIGH: 3,
            ScheduleConfidence.MANUAL: 4,
        }[self]


WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


@dataclass(frozen=True)
class PaycheckSchedule:
    """A recurring income pattern."""
    frequency: PaycheckFrequency
    estimated_amount: float
    anchor_days: Tuple[int, ...]
    confidence: ScheduleConfidence = ScheduleConfidence.MANUAL
    is_user_confirmed: bool = False
    source_transaction_ids: Tuple[str, ...] = ()
    reference_date: Optional[date] = None
    schedule_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        anchors = tuple(self.anchor_days)
        object.__setattr__(self, "anchor_days", anchors)

        if len(anchors) != self.frequency.anchor_count:
            raise InvalidScheduleError(
                f"{self.frequency.display_name} schedules need exactly "
                f"{self.frequency.anchor_count} anchor(s), got {len(anchors)}"
            )
        if self.frequency.uses_weekday_anchor:
            if not all(0 <= a <= 6 for a in anchors):
                raise InvalidScheduleError(f"Weekday anchors must be 0-6, got {anchors}")
        elif not all(1 <= a <= 31 for a in anchors):
            raise InvalidScheduleError(f"Day-of-month anchors must be 1-31, got {anchors}")

    @property
    def average_monthly_income(self) -> float:
        return self.estimated_amount * self.frequency.paychecks_per_year / 12

    @property
    def description(self) -> str:
        if self.frequency.uses_weekday_anchor:
            return f"{self.frequency.display_name} on {WEEKDAY_NAMES[self.anchor_days[0]]}s"
        days = " and ".join(_ordinal(day) for day in sorted(self.anchor_days))
        return f"{self.frequency.display_name} on the {days}"

    def confirm(self, now: Optional[datetime] = None) -> "PaycheckSchedule":
        """Return a copy accepted by the user as-is."""
        return replace(self, is_user_confirmed=True, updated_at=now or datetime.now())

    def update(
        self,
        frequency: Optional[PaycheckFrequency] = None,
        estimated_amount: Optional[float] = None,
        anchor_days: Optional[Sequence[int]] = None,
        now: Optional[datetime] = None
    ) -> "PaycheckSchedule":
        """
        Return a copy with the user's edits applied.

        Edited schedules are authoritative: confirmed, with manual confidence.

        Raises:
            InvalidScheduleError: If the anchors do not fit the frequency
        """
        return replace(
            self,
            frequency=frequency or self.frequency,
            estimated_amount=self.estimated_amount if estimated_amount is None else estimated_amount,
            anchor_days=tuple(anchor_days) if anchor_days is not None else self.anchor_days,
            confidence=ScheduleConfidence.MANUAL,
            is_user_confirmed=True,
            updated_at=now or datetime.now(),
        )

    def next_paycheck_dates(self, from_date: date, count: int) -> List[date]:
        """
        Project the next paydays on or after ``from_date``.

        Args:
            from_date: First day that may be returned
            count: Number of dates wanted

        Returns:
            Ascending list of ``count`` dates
        """
        if count <= 0:
            return []
        if isinstance(from_date, datetime):
            from_date = from_date.date()

        if self.frequency.uses_weekday_anchor:
            return self._weekday_dates(from_date, count)
        return self._month_day_dates(from_date, count)

    def _weekday_dates(self, from_date: date, count: int) -> List[date]:
        step = self.frequency.days_interval
        weekday = self.anchor_days[0]

        reference = self.reference_date
        if reference is not None and reference.weekday() == weekday:
            if reference >= from_date:
                first = reference - timedelta(days=((reference - from_date).days // step) * step)
            else:
                periods = -(-(from_date - reference).days // step)
                first = reference + timedelta(days=periods * step)
        else:
            first = from_date + timedelta(days=(weekday - from_date.weekday()) % 7)

        return [first + timedelta(days=step * i) for i in range(count)]

    def _month_day_dates(self, from_date: date, count: int) -> List[date]:
        anchors = sorted(self.anchor_days)
        dates: List[date] = []
        month = month_start(from_date)
        while len(dates) < count:
            seen = set()
            for day in anchors:
                candidate = clamp_day(month.year, month.month, day)
                if candidate < from_date or candidate in seen:
                    continue
                seen.add(candidate)
                dates.append(candidate)
                if len(dates) == count:
                    break
            month = add_months(month, 1)
        return dates
