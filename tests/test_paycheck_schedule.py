"""
Test suite for the paycheck schedule model and date projection.
"""

import unittest
from datetime import date, datetime

from cashflow_engine.income.paycheck_schedule import (
    InvalidScheduleError,
    PaycheckFrequency,
    PaycheckSchedule,
    ScheduleConfidence,
)


class TestNextPaycheckDates(unittest.TestCase):

    def test_monthly_clamps_to_month_end(self):
        schedule = PaycheckSchedule(PaycheckFrequency.MONTHLY, 4000.0, (31,))
        self.assertEqual(
            schedule.next_paycheck_dates(date(2025, 1, 31), 3),
            [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)]
        )

    def test_semimonthly(self):
        schedule = PaycheckSchedule(PaycheckFrequency.SEMIMONTHLY, 2000.0, (15, 1))
        self.assertEqual(schedule.anchor_days, (15, 1))
        self.assertEqual(
            schedule.next_paycheck_dates(date(2025, 1, 10), 4),
            [date(2025, 1, 15), date(2025, 2, 1), date(2025, 2, 15), date(2025, 3, 1)]
        )

    def test_semimonthly_collapsing_anchors(self):
        schedule = PaycheckSchedule(PaycheckFrequency.SEMIMONTHLY, 2000.0, (30, 31))
        self.assertEqual(
            schedule.next_paycheck_dates(date(2025, 2, 1), 3),
            [date(2025, 2, 28), date(2025, 3, 30), date(2025, 3, 31)]
        )

    def test_weekly_without_reference(self):
        schedule = PaycheckSchedule(PaycheckFrequency.WEEKLY, 800.0, (4,))
        # 2025-01-01 is a Wednesday
        self.assertEqual(
            schedule.next_paycheck_dates(date(2025, 1, 1), 3),
            [date(2025, 1, 3), date(2025, 1, 10), date(2025, 1, 17)]
        )

    def test_biweekly_follows_reference_parity(self):
        schedule = PaycheckSchedule(
            PaycheckFrequency.BIWEEKLY, 2000.0, (4,), reference_date=date(2025, 1, 3)
        )
        self.assertEqual(
            schedule.next_paycheck_dates(date(2025, 1, 20), 3),
            [date(2025, 1, 31), date(2025, 2, 14), date(2025, 2, 28)]
        )

    def test_biweekly_reference_in_future(self):
        schedule = PaycheckSchedule(
            PaycheckFrequency.BIWEEKLY, 2000.0, (4,), reference_date=date(2025, 3, 14)
        )
        self.assertEqual(schedule.next_paycheck_dates(date(2025, 1, 20), 1), [date(2025, 1, 31)])

    def test_dates_are_on_or_after_start(self):
        schedule = PaycheckSchedule(PaycheckFrequency.MONTHLY, 4000.0, (15,))
        dates = schedule.next_paycheck_dates(datetime(2025, 5, 15, 18, 0), 2)
        self.assertEqual(dates, [date(2025, 5, 15), date(2025, 6, 15)])

    def test_zero_count(self):
        schedule = PaycheckSchedule(PaycheckFrequency.MONTHLY, 4000.0, (15,))
        self.assertEqual(schedule.next_paycheck_dates(date(2025, 5, 1), 0), [])


class TestScheduleValidation(unittest.TestCase):

    def test_anchor_count(self):
        with self.assertRaises(InvalidScheduleError):
            PaycheckSchedule(PaycheckFrequency.MONTHLY, 100.0, (1, 15))
        with self.assertRaises(InvalidScheduleError):
            PaycheckSchedule(PaycheckFrequency.SEMIMONTHLY, 100.0, (1,))

    def test_anchor_range(self):
        with self.assertRaises(InvalidScheduleError):
            PaycheckSchedule(PaycheckFrequency.WEEKLY, 100.0, (7,))
        with self.assertRaises(InvalidScheduleError):
            PaycheckSchedule(PaycheckFrequency.MONTHLY, 100.0, (32,))
        with self.assertRaises(InvalidScheduleError):
            PaycheckSchedule(PaycheckFrequency.MONTHLY, 100.0, (0,))


class TestScheduleEditing(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2025, 7, 1, 10, 0)
        self.detected = PaycheckSchedule(
            frequency=PaycheckFrequency.BIWEEKLY,
            estimated_amount=2000.0,
            anchor_days=(4,),
            confidence=ScheduleConfidence.MEDIUM,
            reference_date=date(2025, 6, 20),
        )

    def test_update_is_manual_and_confirmed(self):
        edited = self.detected.update(estimated_amount=2100.0, now=self.now)

        self.assertEqual(edited.estimated_amount, 2100.0)
        self.assertEqual(edited.confidence, ScheduleConfidence.MANUAL)
        self.assertTrue(edited.is_user_confirmed)
        self.assertEqual(edited.updated_at, self.now)
        self.assertEqual(edited.schedule_id, self.detected.schedule_id)
        # Original unchanged
        self.assertEqual(self.detected.confidence, ScheduleConfidence.MEDIUM)
        self.assertFalse(self.detected.is_user_confirmed)

    def test_update_rejects_bad_anchors(self):
        with self.assertRaises(InvalidScheduleError):
            self.detected.update(frequency=PaycheckFrequency.SEMIMONTHLY, now=self.now)

    def test_update_frequency_with_anchors(self):
        edited = self.detected.update(
            frequency=PaycheckFrequency.SEMIMONTHLY, anchor_days=[1, 15], now=self.now
        )
        self.assertEqual(edited.anchor_days, (1, 15))

    def test_confirm_keeps_confidence(self):
        confirmed = self.detected.confirm(now=self.now)
        self.assertTrue(confirmed.is_user_confirmed)
        self.assertEqual(confirmed.confidence, ScheduleConfidence.MEDIUM)

    def test_average_monthly_income(self):
        self.assertAlmostEqual(self.detected.average_monthly_income, 2000.0 * 26 / 12)
        monthly = PaycheckSchedule(PaycheckFrequency.MONTHLY, 4000.0, (1,))
        self.assertAlmostEqual(monthly.average_monthly_income, 4000.0)

    def test_descriptions(self):
        self.assertEqual(self.detected.description, "Bi-weekly on Fridays")
        semi = PaycheckSchedule(PaycheckFrequency.SEMIMONTHLY, 1.0, (15, 1))
        self.assertEqual(semi.description, "Semi-monthly on the 1st and 15th")
        monthly = PaycheckSchedule(PaycheckFrequency.MONTHLY, 1.0, (22,))
        self.assertEqual(monthly.description, "Monthly on the 22nd")


if __name__ == "__main__":
    unittest.main(verbosity=2)
