"""
Test suite for paycheck cadence detection.

Scenarios:
1. Six monthly deposits -> monthly, high confidence
2. Two deposits fourteen days apart -> bi-weekly, medium confidence
3. No qualifying income -> not detected, with the reason
4. A single deposit -> no pattern
"""

import unittest
from datetime import date, datetime

import numpy as np

from cashflow_engine.income import (
    PaycheckDetector,
    PaycheckFrequency,
    ScheduleConfidence,
)
from cashflow_engine.models.categories import ConfidenceLevel, PersonalFinanceCategory
from cashflow_engine.models.transaction import Transaction


WAGES = PersonalFinanceCategory("INCOME", "INCOME_WAGES", ConfidenceLevel.HIGH)


def _deposit(txn_id, d, amount, name="ACME Corp Payroll", pfc=WAGES, pending=False):
    return Transaction(
        transaction_id=txn_id,
        account_id="chk",
        amount=-amount,
        date=d,
        name=name,
        pending=pending,
        personal_finance_category=pfc,
    )


class TestPaycheckDetector(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2025, 7, 1, 9, 0)
        self.detector = PaycheckDetector(now=self.now)

        dates = [
            date(2025, 1, 15), date(2025, 2, 14), date(2025, 3, 17),
            date(2025, 4, 15), date(2025, 5, 15), date(2025, 6, 15),
        ]
        amounts = [3000, 3010, 2990, 3000, 3005, 2995]
        self.monthly = [
            _deposit(f"pay-{i}", d, amt) for i, (d, amt) in enumerate(zip(dates, amounts))
        ]

    def test_monthly_high_confidence(self):
        result = self.detector.detect(self.monthly)

        self.assertTrue(result.was_detected)
        self.assertTrue(result.needs_user_confirmation)
        self.assertEqual(result.confidence, ScheduleConfidence.HIGH)

        schedule = result.schedule
        self.assertEqual(schedule.frequency, PaycheckFrequency.MONTHLY)
        self.assertEqual(schedule.anchor_days, (15,))
        self.assertAlmostEqual(schedule.estimated_amount, 3000.0)
        self.assertFalse(schedule.is_user_confirmed)
        self.assertEqual(schedule.reference_date, date(2025, 6, 15))
        self.assertEqual(len(schedule.source_transaction_ids), 6)
        self.assertIn("consistent monthly paycheck pattern with 6 deposits", result.message)
        self.assertIn("$3,000.00", result.message)
        print(f"✓ {result.message}")

    def test_biweekly_medium_confidence(self):
        deposits = [
            _deposit("a", date(2025, 6, 6), 2000),
            _deposit("b", date(2025, 6, 20), 2000),
        ]
        result = self.detector.detect(deposits)

        self.assertTrue(result.was_detected)
        self.assertEqual(result.schedule.frequency, PaycheckFrequency.BIWEEKLY)
        self.assertEqual(result.confidence, ScheduleConfidence.MEDIUM)
        self.assertEqual(result.schedule.anchor_days, (4,))
        self.assertEqual(
            result.message,
            "We found a likely bi-weekly pattern with 2 deposits. Please verify the details below."
        )

    def test_no_income(self):
        groceries = Transaction(
            transaction_id="g", account_id="chk", amount=150.0, date=date(2025, 6, 1),
            name="Whole Foods",
            personal_finance_category=PersonalFinanceCategory(
                "FOOD_AND_DRINK", "FOOD_AND_DRINK_GROCERIES", ConfidenceLevel.HIGH
            ),
        )
        result = self.detector.detect([groceries])

        self.assertFalse(result.was_detected)
        self.assertIsNone(result.schedule)
        self.assertIsNone(result.confidence)
        self.assertEqual(result.message, "No income transactions found in the last 6 months")

    def test_small_deposits_are_ignored(self):
        deposits = [_deposit(f"s{i}", date(2025, m, 1), 300) for i, m in enumerate(range(2, 7))]
        result = self.detector.detect(deposits)
        self.assertEqual(result.message, "No income transactions found in the last 6 months")

    def test_single_deposit_has_no_pattern(self):
        result = self.detector.detect([_deposit("one", date(2025, 6, 1), 2500)])

        self.assertFalse(result.was_detected)
        self.assertEqual(
            result.message,
            "We couldn't detect a consistent paycheck pattern. Please set up manually."
        )

    def test_window_and_pending_filters(self):
        extra = [
            _deposit("old", date(2024, 11, 15), 3000),
            _deposit("pending", date(2025, 6, 30), 3000, pending=True),
        ]
        income = self.detector.income_transactions(self.monthly + extra)
        ids = [txn.transaction_id for txn in income]

        self.assertEqual(ids, [f"pay-{i}" for i in range(6)])

    def test_best_group_wins(self):
        side_gig = PersonalFinanceCategory("INCOME", "INCOME_OTHER_INCOME", ConfidenceLevel.HIGH)
        extra = [
            _deposit("gig-1", date(2025, 2, 3), 800, name="Upwork", pfc=side_gig),
            _deposit("gig-2", date(2025, 5, 20), 800, name="Upwork", pfc=side_gig),
        ]
        result = self.detector.detect(self.monthly + extra)

        self.assertEqual(len(result.candidates), 2)
        self.assertEqual(result.confidence, ScheduleConfidence.HIGH)
        self.assertAlmostEqual(result.schedule.estimated_amount, 3000.0)

        gig = [c for c in result.candidates if c.average_amount == 800][0]
        self.assertEqual(gig.confidence, ScheduleConfidence.LOW)
        self.assertIn("limited data", self.detector.confidence_message(gig))

    def test_detection_is_repeatable(self):
        first = self.detector.detect(self.monthly)
        second = self.detector.detect(list(reversed(self.monthly)))

        self.assertEqual(first.schedule, second.schedule)
        self.assertEqual(first.schedule.schedule_id, second.schedule.schedule_id)
        self.assertEqual(first.schedule.created_at, self.now)

    def test_projected_dates(self):
        schedule = self.detector.detect(self.monthly).schedule
        self.assertEqual(
            schedule.next_paycheck_dates(self.now.date(), 3),
            [date(2025, 7, 15), date(2025, 8, 15), date(2025, 9, 15)]
        )


class TestDetectionSteps(unittest.TestCase):

    def setUp(self):
        self.detector = PaycheckDetector(now=datetime(2025, 7, 1))

    def test_frequency_bounds(self):
        self.assertEqual(self.detector.classify_frequency(7), PaycheckFrequency.WEEKLY)
        self.assertEqual(self.detector.classify_frequency(14), PaycheckFrequency.BIWEEKLY)
        self.assertEqual(self.detector.classify_frequency(24), PaycheckFrequency.SEMIMONTHLY)
        self.assertEqual(self.detector.classify_frequency(28), PaycheckFrequency.MONTHLY)
        self.assertEqual(self.detector.classify_frequency(31), PaycheckFrequency.MONTHLY)

    def test_count_score(self):
        self.assertEqual(self.detector.count_score(6), 1.0)
        self.assertEqual(self.detector.count_score(4), 0.7)
        self.assertEqual(self.detector.count_score(2), 0.4)

    def test_interval_score(self):
        monthly = PaycheckFrequency.MONTHLY
        self.assertEqual(self.detector.interval_score(np.array([30.0, 31.0, 29.0]), monthly), 1.0)
        self.assertEqual(self.detector.interval_score(np.array([28.0, 33.0]), monthly), 0.7)
        self.assertEqual(self.detector.interval_score(np.array([10.0, 50.0]), monthly), 0.4)

    def test_amount_grouping(self):
        deposits = [
            _deposit("a", date(2025, 3, 1), 2000),
            _deposit("b", date(2025, 3, 5), 900),
            _deposit("c", date(2025, 3, 15), 2150),
            _deposit("d", date(2025, 3, 29), 950),
        ]
        groups = self.detector.group_by_amount(deposits)
        self.assertEqual([[t.transaction_id for t in g] for g in groups], [["a", "c"], ["b", "d"]])

    def test_semimonthly_anchors(self):
        days = [date(2025, 3, 1), date(2025, 3, 15), date(2025, 4, 1), date(2025, 4, 15), date(2025, 5, 2)]
        group = [_deposit(f"x{i}", d, 1500) for i, d in enumerate(days)]
        self.assertEqual(self.detector.anchor_days(group, PaycheckFrequency.SEMIMONTHLY), (1, 15))

    def test_semimonthly_anchor_default(self):
        group = [_deposit("x", date(2025, 3, 7), 1500), _deposit("y", date(2025, 4, 7), 1500)]
        self.assertEqual(self.detector.anchor_days(group, PaycheckFrequency.SEMIMONTHLY), (1, 15))

    def test_anchor_ties_pick_earlier_day(self):
        group = [_deposit("x", date(2025, 3, 20), 1500), _deposit("y", date(2025, 4, 5), 1500)]
        self.assertEqual(self.detector.anchor_days(group, PaycheckFrequency.MONTHLY), (5,))


if __name__ == "__main__":
    unittest.main(verbosity=2)
