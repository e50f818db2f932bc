"""
Test suite for drill-down insights and the top-level analysis entry point.
"""

import unittest
from datetime import date, datetime

import pandas as pd

from cashflow_engine import run_financial_analysis
from cashflow_engine.analysis.health import FinancialHealthMetrics
from cashflow_engine.analysis.insights import (
    calculation_explanation,
    contributing_accounts,
    expenses_by_category,
    monthly_trends,
    top_contributors,
    transactions_to_dataframe,
)
from cashflow_engine.classification.engine import TransactionClassifier
from cashflow_engine.models.account import Account
from cashflow_engine.models.buckets import BucketCategory
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


class TestInsights(unittest.TestCase):

    def setUp(self):
        self.classifier = TransactionClassifier()
        self.transactions = [
            _txn("g1", date(2025, 1, 10), 100.0, "Whole Foods", "FOOD_AND_DRINK", "FOOD_AND_DRINK_GROCERIES"),
            _txn("g2", date(2025, 1, 20), 50.0, "Whole Foods", "FOOD_AND_DRINK", "FOOD_AND_DRINK_GROCERIES"),
            _txn("r1", date(2025, 3, 5), 30.0, "Olive Garden", "FOOD_AND_DRINK", "FOOD_AND_DRINK_RESTAURANT",
                 account_id="card"),
            _txn("rent", date(2025, 3, 1), 1200.0, "Oakwood Apartments", "RENT_AND_UTILITIES",
                 "RENT_AND_UTILITIES_RENT"),
            _txn("pay", date(2025, 3, 15), -3000.0, "ACME Corp Payroll", "INCOME", "INCOME_WAGES"),
        ]
        self.accounts = [
            Account("chk", "item-1", "Checking", "depository", "checking", current_balance=100),
            Account("card", "item-1", "Visa", "credit", "credit card", current_balance=500),
            Account("sav", "item-1", "Savings", "depository", "savings", current_balance=900),
        ]

    def test_expenses_by_category(self):
        totals = expenses_by_category(self.transactions, self.classifier)
        self.assertEqual(totals, {"Rent And Utilities": 1200.0, "Food And Drink": 180.0})
        self.assertEqual(list(totals)[0], "Rent And Utilities")

    def test_dataframe(self):
        df = transactions_to_dataframe(self.transactions, self.classifier)
        self.assertEqual(len(df), 5)
        self.assertEqual(df.loc[df["transaction_id"] == "pay", "bucket"].iloc[0], "income")
        self.assertEqual(transactions_to_dataframe([], self.classifier).shape, (0, 14))

    def test_monthly_trends(self):
        trend = monthly_trends(self.transactions, BucketCategory.EXPENSES, self.classifier)

        self.assertEqual(trend[pd.Timestamp("2025-01-01")], 150.0)
        self.assertEqual(trend[pd.Timestamp("2025-03-01")], 1230.0)
        self.assertTrue(monthly_trends(self.transactions, BucketCategory.DEBT, self.classifier).empty)

    def test_top_contributors(self):
        top = top_contributors(self.transactions, BucketCategory.EXPENSES, self.classifier, limit=2)
        self.assertEqual([t.transaction_id for t in top], ["rent", "g1"])

    def test_contributing_accounts(self):
        accounts = contributing_accounts(
            self.transactions, self.accounts, BucketCategory.EXPENSES, self.classifier
        )
        self.assertEqual([a.account_id for a in accounts], ["chk", "card"])

    def test_every_bucket_is_explained(self):
        for bucket in BucketCategory:
            self.assertTrue(calculation_explanation(bucket))


class TestRunFinancialAnalysis(unittest.TestCase):

    def setUp(self):
        self.transactions = [
            {
                "transaction_id": "t1",
                "account_id": "chk",
                "date": "2025-01-15",
                "amount": -3000.0,
                "name": "ACME Corp Payroll",
                "category": ["Payroll"],
            },
            {
                "transaction_id": "t2",
                "account_id": "chk",
                "date": "2025-01-16",
                "amount": 150.0,
                "name": "Whole Foods",
                "personal_finance_category": {
                    "primary": "FOOD_AND_DRINK",
                    "detailed": "FOOD_AND_DRINK_GROCERIES",
                    "confidence_level": "HIGH",
                },
            },
        ]

    def test_pipeline(self):
        result = run_financial_analysis(self.transactions, accounts=[], now=datetime(2025, 1, 31))
        summary = result["summary"]

        self.assertEqual(summary["monthly_income"], 3000.0)
        self.assertEqual(summary["monthly_expenses"], 150.0)
        self.assertEqual(summary["months_analyzed"], 1)
        self.assertEqual(len(result["classifications"]), 2)
        # Legacy-only payroll carries no provider confidence
        self.assertEqual([t.transaction_id for t in result["needs_review"]], ["t1"])
        self.assertFalse(result["paycheck"].was_detected)
        self.assertIsInstance(result["health"], FinancialHealthMetrics)
        self.assertEqual(result["recommendation"].total_allocated, 3000.0)

    def test_accepts_models(self):
        txns = [Transaction.from_plaid(record) for record in self.transactions]
        accounts = [Account("chk", "item-1", "Checking", "depository", current_balance=500)]
        result = run_financial_analysis(txns, accounts, now=datetime(2025, 1, 31))
        self.assertEqual(result["summary"]["liquid_cash"], 500.0)

    def test_no_income_has_no_recommendation(self):
        expenses = [record for record in self.transactions if record["amount"] > 0]
        result = run_financial_analysis(expenses, accounts=[], now=datetime(2025, 1, 31))

        self.assertEqual(result["summary"]["monthly_income"], 0.0)
        self.assertIsNone(result["recommendation"])
        self.assertEqual(result["health"].savings_rate, 0.0)

    def test_malformed_record(self):
        with self.assertRaises(KeyError):
            run_financial_analysis([{"transaction_id": "x", "date": "2025-01-01"}], [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
