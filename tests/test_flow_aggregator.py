"""
Test suite for the flow & position aggregator.

Tests the lookback window, the months-analysed calculation, monthly averages,
point-in-time balances and analysis metadata.
"""

import unittest
from datetime import date, datetime

from cashflow_engine.analysis.aggregator import FlowAggregator, MonthlyFlow
from cashflow_engine.models.account import Account
from cashflow_engine.models.buckets import BucketCategory
from cashflow_engine.models.categories import ConfidenceLevel, PersonalFinanceCategory
from cashflow_engine.models.transaction import Transaction


def _pfc(primary, detailed, confidence=ConfidenceLevel.HIGH):
    return PersonalFinanceCategory(primary, detailed, confidence)


class TestFlowAggregator(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2025, 6, 30, 12, 0)
        self.aggregator = FlowAggregator(now=self.now)

        self.transactions = []
        pay_dates = [
            date(2025, 1, 15), date(2025, 2, 14), date(2025, 3, 15),
            date(2025, 4, 15), date(2025, 5, 15), date(2025, 6, 13),
        ]
        for i, d in enumerate(pay_dates):
            self.transactions.append(Transaction(
                transaction_id=f"pay-{i}", account_id="chk", amount=-3000.0, date=d,
                name="ACME Corp Payroll",
                personal_finance_category=_pfc("INCOME", "INCOME_WAGES"),
            ))
        rent_dates = [
            date(2025, 1, 2), date(2025, 2, 1), date(2025, 3, 1),
            date(2025, 4, 1), date(2025, 5, 1), date(2025, 6, 1),
        ]
        for i, d in enumerate(rent_dates):
            self.transactions.append(Transaction(
                transaction_id=f"rent-{i}", account_id="chk", amount=1200.0, date=d,
                name="Oakwood Apartments",
                personal_finance_category=_pfc("RENT_AND_UTILITIES", "RENT_AND_UTILITIES_RENT"),
            ))
        for month in range(1, 6):
            self.transactions.append(Transaction(
                transaction_id=f"grocery-{month}", account_id="chk", amount=300.0,
                date=date(2025, month, 20), name="Whole Foods",
                personal_finance_category=_pfc(
                    "FOOD_AND_DRINK", "FOOD_AND_DRINK_GROCERIES", ConfidenceLevel.VERY_HIGH
                ),
            ))
        # Outside the analysis: pending and too old
        self.transactions.append(Transaction(
            transaction_id="pending", account_id="chk", amount=900.0, date=date(2025, 6, 29),
            name="Whole Foods", pending=True,
            personal_finance_category=_pfc("FOOD_AND_DRINK", "FOOD_AND_DRINK_GROCERIES"),
        ))
        self.transactions.append(Transaction(
            transaction_id="old", account_id="chk", amount=-9000.0, date=date(2024, 10, 1),
            name="ACME Corp Payroll",
            personal_finance_category=_pfc("INCOME", "INCOME_WAGES"),
        ))

        self.accounts = [
            Account("chk", "item-1", "Checking", "depository", "checking",
                    current_balance=5200, available_balance=5000),
            Account("sav", "item-1", "Rainy Day", "depository", "savings",
                    current_balance=10000, available_balance=10000, tags=("emergency_fund",)),
            Account("cd", "item-1", "12 Month CD", "depository", "cd", current_balance=20000),
            Account("card", "item-2", "Visa", "credit", "credit card", current_balance=2000),
            Account("brk", "item-3", "Brokerage", "investment", "brokerage", current_balance=15000),
        ]

    def test_window_filters_pending_and_old(self):
        window = self.aggregator.window_transactions(self.transactions)
        ids = {txn.transaction_id for txn in window}

        self.assertEqual(len(window), 17)
        self.assertNotIn("pending", ids)
        self.assertNotIn("old", ids)
        self.assertEqual(window[0].transaction_id, "rent-0")

    def test_monthly_flow(self):
        snapshot = self.aggregator.analyze(self.transactions, self.accounts)
        flow = snapshot.monthly_flow

        self.assertEqual(snapshot.metadata.months_analyzed, 5)
        self.assertAlmostEqual(flow.income, 3600.0)
        self.assertAlmostEqual(flow.essential_expenses, 1740.0)
        self.assertAlmostEqual(flow.debt_minimums, 50.0)
        self.assertAlmostEqual(flow.discretionary_income, 1810.0)
        self.assertTrue(snapshot.is_ready_for_plan)
        print(f"✓ Discretionary income: ${flow.discretionary_income:,.2f}/month")

    def test_position(self):
        position = self.aggregator.analyze(self.transactions, self.accounts).position

        self.assertEqual(position.liquid_cash, 15000)
        self.assertEqual(position.emergency_fund_balance, 10000)
        self.assertEqual(position.investment_balance, 15000)
        self.assertEqual(position.total_debt, 2000)
        self.assertEqual(position.net_worth, 28000)
        self.assertEqual(len(position.debts), 1)
        self.assertFalse(position.is_investing)

    def test_metadata(self):
        meta = self.aggregator.analyze(self.transactions, self.accounts).metadata

        self.assertEqual(meta.accounts_connected, 3)
        self.assertEqual(meta.transactions_analyzed, 17)
        self.assertEqual(meta.transactions_needing_validation, 0)
        self.assertAlmostEqual(meta.overall_confidence, 1.0)
        self.assertEqual(meta.analysis_start, date(2025, 1, 2))
        self.assertEqual(meta.analysis_end, date(2025, 6, 13))
        self.assertEqual(meta.last_updated, self.now)

    def test_analysis_is_repeatable(self):
        first = self.aggregator.analyze(self.transactions, self.accounts)
        second = self.aggregator.analyze(self.transactions, self.accounts)
        self.assertEqual(first, second)

    def test_summary_dict(self):
        snapshot = self.aggregator.analyze(self.transactions, self.accounts)
        summary = self.aggregator.summary_dict(snapshot)

        self.assertEqual(summary["monthly_income"], 3600.0)
        self.assertEqual(summary["discretionary_income"], 1810.0)
        self.assertEqual(summary["expense_breakdown"], {"housing": 1440.0, "food": 300.0})
        self.assertTrue(summary["is_ready_for_plan"])

    def test_card_payment_inflow_is_not_income(self):
        """A payment received on a card account is a transfer, not income."""
        payment = Transaction(
            transaction_id="card-pay", account_id="card", amount=-500.0, date=date(2025, 6, 2),
            name="CAPITAL ONE CREDIT CARD PAYMENT",
            personal_finance_category=_pfc("LOAN_PAYMENTS", "LOAN_PAYMENTS_CREDIT_CARD_PAYMENT"),
        )
        classifier = self.aggregator.classifier

        self.assertTrue(classifier.is_internal_transfer(payment))
        self.assertFalse(classifier.counts_as_income(payment))
        self.assertNotEqual(classifier.categorize_to_bucket(payment), BucketCategory.INCOME)
        self.assertEqual(classifier.bucket_outcome(payment).rule, "internal_transfer")
        self.assertEqual(self.aggregator.calculate_monthly_income([payment], 1), 0.0)

        snapshot = self.aggregator.analyze(self.transactions + [payment], self.accounts)
        self.assertAlmostEqual(snapshot.monthly_flow.income, 3600.0)


class TestMonthsAnalyzed(unittest.TestCase):
    """At least one month is always reported."""

    def setUp(self):
        self.aggregator = FlowAggregator(now=datetime(2025, 6, 30))

    def _txn(self, txn_id, d):
        return Transaction(transaction_id=txn_id, account_id="chk", amount=10.0, date=d, name="Shop")

    def test_empty(self):
        self.assertEqual(self.aggregator.calculate_months_analyzed([]), 1)

    def test_single_transaction(self):
        self.assertEqual(self.aggregator.calculate_months_analyzed([self._txn("a", date(2025, 3, 3))]), 1)

    def test_same_day(self):
        txns = [self._txn("a", date(2025, 3, 3)), self._txn("b", date(2025, 3, 3))]
        self.assertEqual(self.aggregator.calculate_months_analyzed(txns), 1)

    def test_partial_month_not_counted(self):
        txns = [self._txn("a", date(2025, 3, 15)), self._txn("b", date(2025, 5, 14))]
        self.assertEqual(self.aggregator.calculate_months_analyzed(txns), 1)

    def test_empty_analysis(self):
        snapshot = self.aggregator.analyze([], [])

        self.assertEqual(snapshot.metadata.months_analyzed, 1)
        self.assertEqual(snapshot.monthly_flow.income, 0.0)
        self.assertAlmostEqual(snapshot.metadata.overall_confidence, 0.5)
        self.assertIsNone(snapshot.metadata.analysis_start)
        self.assertFalse(snapshot.is_ready_for_plan)


class TestMonthlyFlow(unittest.TestCase):

    def test_discretionary_identity(self):
        flow = MonthlyFlow(income=5000.0, essential_expenses=3200.5, debt_minimums=450.25)
        self.assertEqual(flow.discretionary_income, 5000.0 - 3200.5 - 450.25)
        self.assertTrue(flow.is_positive)
        self.assertFalse(flow.has_detailed_breakdown)

    def test_deficit(self):
        flow = MonthlyFlow(income=2000.0, essential_expenses=2500.0, debt_minimums=100.0)
        self.assertEqual(flow.discretionary_income, -600.0)
        self.assertFalse(flow.is_positive)

    def test_percentages(self):
        flow = MonthlyFlow(income=4000.0, essential_expenses=2000.0, debt_minimums=400.0)
        self.assertAlmostEqual(flow.expense_percentage, 50.0)
        self.assertAlmostEqual(flow.debt_percentage, 10.0)
        self.assertAlmostEqual(flow.discretionary_percentage, 40.0)
        self.assertEqual(MonthlyFlow(0.0, 100.0, 0.0).expense_percentage, 0.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
