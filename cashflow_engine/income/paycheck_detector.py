"""
Paycheck Cadence Detection.

Finds a recurring paycheck in income history: income deposits above a
minimum amount are grouped by amount similarity, the gaps inside each group
give a frequency, and occurrence count plus gap consistency give a
confidence. The best group becomes a ``PaycheckSchedule`` proposal for the
user to confirm; detection never alters an existing schedule.
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..classification.engine import TransactionClassifier
from ..config.analysis_config import DETECTION_CONFIG
from ..dates import add_months
from ..models.transaction import Transaction
from .paycheck_schedule import PaycheckFrequency, PaycheckSchedule, ScheduleConfidence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaycheckCandidate:
    """A group of similar deposits and how regular it is."""
    transactions: Tuple[Transaction, ...]
    average_amount: float
    amount_std_dev: float
    average_interval: float
    frequency: PaycheckFrequency
    count_score: float
    interval_score: float
    score: float
    confidence: ScheduleConfidence

    @property
    def occurrence_count(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of a detection run."""
    schedule: Optional[PaycheckSchedule]
    confidence: Optional[ScheduleConfidence]
    message: str
    was_detected: bool
    candidates: Tuple[PaycheckCandidate, ...] = ()

    @property
    def needs_user_confirmation(self) -> bool:
        return self.was_detected


class PaycheckDetector:
    """Detects paycheck frequency and timing from income history."""

    def __init__(
        self,
        classifier: Optional[TransactionClassifier] = None,
        config: Optional[Dict] = None,
        now: Optional[datetime] = None
    ):
        """
        Initialize the detector.

        Args:
            classifier: Transaction classifier used to pick income
            config: Overrides for ``DETECTION_CONFIG`` keys
            now: Reference time for the lookback window
        """
        self.classifier = classifier or TransactionClassifier()
        self.config = dict(DETECTION_CONFIG)
        if config:
            self.config.update(config)
        self.now = now

    def _today(self) -> date:
        now = self.now if self.now is not None else datetime.now()
        return now.date() if isinstance(now, datetime) else now

    # ----------------------------
    # Step 1: candidate deposits
    # ----------------------------
    def income_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """Non-pending income above the minimum amount in the window, oldest first."""
        today = self._today()
        start = add_months(today, -self.config["lookback_months"])
        minimum = self.config["minimum_amount"]

        selected = [
            txn for txn in transactions
            if not txn.pending
            and start <= txn.date <= today
            and abs(txn.amount) > minimum
            and self.classifier.counts_as_income(txn)
        ]
        selected.sort(key=lambda txn: (txn.date, txn.transaction_id))
        return selected

    # ----------------------------
    # Step 2: group by amount
    # ----------------------------
    def group_by_amount(self, transactions: Sequence[Transaction]) -> List[List[Transaction]]:
        """
        Greedy grouping: each deposit joins the first group whose running
        average is within tolerance, otherwise it starts a new group.
        """
        tolerance = self.config["amount_tolerance"]
        groups: List[List[Transaction]] = []
        totals: List[float] = []

        for txn in transactions:
            amount = abs(txn.amount)
            for idx, group in enumerate(groups):
                average = totals[idx] / len(group)
                if average > 0 and abs(amount - average) / average <= tolerance:
                    group.append(txn)
                    totals[idx] += amount
                    break
            else:
                groups.append([txn])
                totals.append(amount)

        return groups

    # ----------------------------
    # Steps 3-4: frequency + confidence
    # ----------------------------
    def classify_frequency(self, average_interval: float) -> PaycheckFrequency:
        for bound in self.config["frequency_bounds"]:
            if average_interval < bound["max_days"]:
                return PaycheckFrequency(bound["frequency"])
        return PaycheckFrequency.MONTHLY

    def count_score(self, occurrences: int) -> float:
        for step in self.config["count_scores"]:
            if occurrences >= step["min"]:
                return step["score"]
        return self.config["count_scores"][-1]["score"]

    def interval_score(self, intervals: np.ndarray, frequency: PaycheckFrequency) -> float:
        """
        Score gap consistency as mean absolute deviation from the nominal
        interval, relative to that interval.
        """
        if intervals.size == 0:
            return self.config["variance_floor_score"]
        expected = float(frequency.days_interval)
        variance = float(np.mean(np.abs(intervals - expected))) / expected
        for step in self.config["variance_scores"]:
            if variance < step["max"]:
                return step["score"]
        return self.config["variance_floor_score"]

    def confidence_for(self, score: float) -> ScheduleConfidence:
        cutoffs = self.config["confidence_cutoffs"]
        if score >= cutoffs["high"]:
            return ScheduleConfidence.HIGH
        if score >= cutoffs["medium"]:
            return ScheduleConfidence.MEDIUM
        return ScheduleConfidence.LOW

    def analyze_group(self, group: Sequence[Transaction]) -> Optional[PaycheckCandidate]:
        """
        Score one amount group.

        Args:
            group: Date-sorted deposits of similar amount

        Returns:
            PaycheckCandidate, or None if the group is too small
        """
        if len(group) < max(self.config["minimum_occurrences"], 2):
            return None

        amounts = np.array([abs(txn.amount) for txn in group], dtype=float)
        ordinals = np.array([txn.date.toordinal() for txn in group], dtype=float)
        intervals = np.diff(ordinals)
        average_interval = float(intervals.mean())

        frequency = self.classify_frequency(average_interval)
        count_score = self.count_score(len(group))
        interval_score = self.interval_score(intervals, frequency)
        score = (count_score + interval_score) / 2

        candidate = PaycheckCandidate(
            transactions=tuple(group),
            average_amount=float(amounts.mean()),
            amount_std_dev=float(amounts.std()),
            average_interval=average_interval,
            frequency=frequency,
            count_score=count_score,
            interval_score=interval_score,
            score=score,
            confidence=self.confidence_for(score),
        )
        logger.debug(
            "Group of %d around %.2f: every %.1f days -> %s (score %.2f)",
            candidate.occurrence_count, candidate.average_amount,
            average_interval, frequency.value, score
        )
        return candidate

    # ----------------------------
    # Step 5: anchors
    # ----------------------------
    def anchor_days(self, group: Sequence[Transaction], frequency: PaycheckFrequency) -> Tuple[int, ...]:
        """
        Pick anchor(s) from observed dates.

        Weekly/biweekly use the most common weekday, monthly the most common
        day of month, semimonthly the two most common days of month (sorted).
        Ties go to the earlier weekday/day.
        """
        if frequency.uses_weekday_anchor:
            weekdays = Counter(txn.date.weekday() for txn in group)
            if not weekdays:
                return (self.config["default_weekday"],)
            return (self._most_common(weekdays, 1)[0],)

        days = Counter(txn.date.day for txn in group)
        if frequency == PaycheckFrequency.SEMIMONTHLY:
            if len(days) < 2:
                return tuple(self.config["default_semimonthly_days"])
            return tuple(sorted(self._most_common(days, 2)))

        if not days:
            return (self.config["default_monthly_day"],)
        return (self._most_common(days, 1)[0],)

    @staticmethod
    def _most_common(counter: Counter, n: int) -> List[int]:
        ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
        return [value for value, _ in ranked[:n]]

    # ----------------------------
    # Step 6: pick + build result
    # ----------------------------
    def detect(self, transactions: Sequence[Transaction]) -> DetectionResult:
        """
        Detect the user's paycheck schedule.

        Args:
            transactions: Transaction history (any order)

        Returns:
            DetectionResult with a schedule proposal, or a not-detected
            result explaining why
        """
        income = self.income_transactions(transactions)
        if not income:
            return DetectionResult(
                schedule=None,
                confidence=None,
                message=f"No income transactions found in the last {self.config['lookback_months']} months",
                was_detected=False,
            )

        candidates = []
        for group in self.group_by_amount(income):
            candidate = self.analyze_group(group)
            if candidate is not None:
                candidates.append(candidate)

        if not candidates:
            logger.debug("No recurring group among %d income deposits", len(income))
            return DetectionResult(
                schedule=None,
                confidence=None,
                message="We couldn't detect a consistent paycheck pattern. Please set up manually.",
                was_detected=False,
            )

        best = max(candidates, key=lambda c: (c.confidence.rank, c.occurrence_count))
        schedule = self._build_schedule(best)

        return DetectionResult(
            schedule=schedule,
            confidence=best.confidence,
            message=self.confidence_message(best),
            was_detected=True,
            candidates=tuple(candidates),
        )

    def _build_schedule(self, candidate: PaycheckCandidate) -> PaycheckSchedule:
        source_ids = tuple(txn.transaction_id for txn in candidate.transactions)
        detected_at = self.now if isinstance(self.now, datetime) else None
        return PaycheckSchedule(
            frequency=candidate.frequency,
            estimated_amount=round(candidate.average_amount, 2),
            anchor_days=self.anchor_days(candidate.transactions, candidate.frequency),
            confidence=candidate.confidence,
            is_user_confirmed=False,
            source_transaction_ids=source_ids,
            reference_date=candidate.transactions[-1].date,
            schedule_id=str(uuid.uuid5(uuid.NAMESPACE_OID, "paycheck:" + ",".join(source_ids))),
            created_at=detected_at,
            updated_at=detected_at,
        )

    @staticmethod
    def confidence_message(candidate: PaycheckCandidate) -> str:
        frequency = candidate.frequency.display_name.lower()
        count = candidate.occurrence_count
        if candidate.confidence == ScheduleConfidence.HIGH:
            return (
                f"We detected a consistent {frequency} paycheck pattern with "
                f"{count} deposits averaging ${candidate.average_amount:,.2f}."
            )
        if candidate.confidence == ScheduleConfidence.MEDIUM:
            return (
                f"We found a likely {frequency} pattern with {count} deposits. "
                f"Please verify the details below."
            )
        return (
            f"We detected a possible {frequency} pattern, but with limited data. "
            f"Please review and adjust as needed."
        )
