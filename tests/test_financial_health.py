"""
Test suite for financial health metrics.

Tests savings detection, emergency fund coverage, income stability, debt
payments, spending trends and the overall health score.
"""

import unittest
from datetime import date, datetime

from cashflow_engine.analysis.aggregator import FlowAggregator
from cashflow_engine.analysis.health import (
    FinancialHealthCalculator,
    IncomeStabilityLevel,
    TrendIndicator,
    calculate_health_score,
    debt_payoff_months,
)
from cashflow_engine.models.account import Account
from cashflow_engine.models.categories import ConfidenceLevel, PersonalFinanceCategory
from cashflow_engine.models.transaction import Transaction


def _txn(txn_id, d, amount, name, primary, detailed, account_id="chk"):
    return Transaction(
        transaction_id=txn_id,
        account_id=account_id,
        amount=amount,
        date=d,
        name=name,
        personal_finance_category=PersonalFinanceCategory(primary, detailed, ConfidenceLevel.HIGH),
    )


def _payroll(month, amount=3000.0):
    return _txn(f"pay-{month}", date(2025, month, 15), -amount, "ACME Corp Payroll",
                "INCOME", "INCOME_WAGES")


class TestFinancialHealth(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2025, 6, 30, 12, 0)
        self.calculator = FinancialHealthCalculator(now=self.now)
        self.aggregator = FlowAggregator(now=self.now)

        self.transactions = []
        for month in range(1, 7):
            self.transactions.extend([
                _payroll(month),
                _txn(f"rent-{month}", date(2025, month, 1), 1200.0, "Oakwood Apartments",
                     "RENT_AND_UTILITIES", "RENT_AND_UTILITIES_RENT"),
                _txn(f"dinner-{month}", date(2025, month, 20), 100.0, "Olive Garden",
                     "FOOD_AND_DRINK", "FOOD_AND_DRINK_RESTAURANT"),
                _txn(f"save-{month}", date(2025, month, 2), -500.0, "Transfer from Checking",
                     "TRANSFER_IN", "TRANSFER_IN_ACCOUNT_TRANSFER", account_id="sav"),
                _txn(f"card-{month}", date(2025, month, 5), 300.0, "Chase Credit Card Autopay",
                     "LOAN_PAYMENTS", "LOAN_PAYMENTS_CREDIT_CARD_PAYMENT"),
            ])

        self.accounts = [
            Account("chk", "item-1", "Checking", "depository", "checking", current_balance=4000),
            Account("sav", "item-1", "Rainy Day", "depository", "savings",
                    current_balance=6000, tags=("emergency_fund",)),
            Account("card", "item-2", "Visa", "credit", "credit card", current_balance=2400),
        ]

    def _metrics(self, transactions=None):
        transactions = self.transactions if transactions is None else transactions
        snapshot = self.aggregator.analyze(transactions, self.accounts)
        return self.calculator.calculate(snapshot, transactions, self.accounts)

    def test_savings_and_spending(self):
        metrics = self._metrics()

        self.assertAlmostEqual(metrics.monthly_income, 3600.0)
        self.assertAlmostEqual(metrics.monthly_savings, 500.0)
        self.assertAlmostEqual(metrics.essential_spending, 1200.0)
        self.assertAlmostEqual(metrics.discretionary_spending, 100.0)
        self.assertAlmostEqual(metrics.savings_rate, 500.0 / 3600.0)
        print(f"✓ Savings rate: {metrics.savings_rate:.1%}")

    def test_emergency_fund_and_debt(self):
        metrics = self._metrics()

        self.assertAlmostEqual(metrics.emergency_fund_months_covered, 5.0)
        self.assertAlmostEqual(metrics.emergency_fund_target, 7200.0)
        self.assertAlmostEqual(metrics.monthly_debt_payments, 300.0)
        self.assertAlmostEqual(metrics.debt_to_income_ratio, 300.0 / 3600.0)
        self.assertEqual(metrics.months_to_debt_free, 8)

    def test_stable_history(self):
        metrics = self._metrics()

        self.assertEqual(metrics.income_stability, IncomeStabilityLevel.STABLE)
        self.assertEqual(metrics.savings_trend, TrendIndicator.STABLE)
        self.assertEqual(metrics.spending_trend, TrendIndicator.STABLE)
        self.assertAlmostEqual(metrics.health_score, 70.8333, places=3)
        self.assertEqual(metrics.analysis_months, 5)
        self.assertEqual(metrics.calculated_at, self.now)

    def test_spending_spike_changes_trends(self):
        trip = _txn("trip", date(2025, 5, 10), 1000.0, "Delta Air Lines",
                    "TRAVEL", "TRAVEL_FLIGHTS")
        metrics = self._metrics(self.transactions + [trip])

        self.assertEqual(metrics.spending_trend, TrendIndicator.INCREASING)
        self.assertEqual(metrics.savings_trend, TrendIndicator.DECREASING)

    def test_card_payment_inflow_ignored_for_stability(self):
        payment = _txn("card-in", date(2025, 6, 2), -500.0, "CAPITAL ONE CREDIT CARD PAYMENT",
                       "LOAN_PAYMENTS", "LOAN_PAYMENTS_CREDIT_CARD_PAYMENT", account_id="card")
        totals = self.calculator.monthly_income_totals(self.transactions + [payment])
        self.assertEqual(totals, [3000.0] * 6)

    def test_variable_income(self):
        transactions = [t for t in self.transactions if not t.transaction_id.startswith("pay-")]
        transactions += [_payroll(1, 2000.0), _payroll(2, 2000.0)]
        transactions += [_payroll(month) for month in range(3, 7)]

        self.assertEqual(self.calculator.income_stability(transactions), IncomeStabilityLevel.VARIABLE)

    def test_inconsistent_income(self):
        self.assertEqual(
            self.calculator.income_stability([_payroll(6)]),
            IncomeStabilityLevel.INCONSISTENT,
        )
        self.assertEqual(self.calculator.income_stability([]), IncomeStabilityLevel.INCONSISTENT)

    def test_savings_fallback_to_cash_flow(self):
        transactions = [t for t in self.transactions if not t.transaction_id.startswith("save-")]
        snapshot = self.aggregator.analyze(transactions, self.accounts)
        flow = snapshot.monthly_flow

        savings = self.calculator.monthly_savings(transactions, self.accounts, flow)
        self.assertAlmostEqual(savings, flow.income - flow.essential_expenses)

    def test_to_dict(self):
        data = self._metrics().to_dict()
        self.assertEqual(data["income_stability"], "stable")
        self.assertEqual(data["months_to_debt_free"], 8)
        self.assertEqual(data["health_score"], 70.8)


class TestHealthScore(unittest.TestCase):

    def test_weak_finances(self):
        score = calculate_health_score(0.0, 0.0, 0.6, IncomeStabilityLevel.INCONSISTENT)
        self.assertAlmostEqual(score, 10.0)

    def test_strong_finances(self):
        score = calculate_health_score(0.5, 1.5, 0.0, IncomeStabilityLevel.STABLE)
        self.assertAlmostEqual(score, 100.0)

    def test_payoff_months(self):
        self.assertEqual(debt_payoff_months(2400, 300), 8)
        self.assertEqual(debt_payoff_months(1000, 300), 4)
        self.assertIsNone(debt_payoff_months(0, 300))
        self.assertIsNone(debt_payoff_months(1000, 0))

    def test_stability_emergency_months(self):
        self.assertEqual(IncomeStabilityLevel.STABLE.recommended_emergency_months, 6)
        self.assertEqual(IncomeStabilityLevel.VARIABLE.recommended_emergency_months, 9)
        self.assertEqual(IncomeStabilityLevel.INCONSISTENT.recommended_emergency_months, 12)


if __name__ == "__main__":
    unittest.main(verbosity=2)
