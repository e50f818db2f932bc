"""
Tests for Plaid record ingestion, the confidence policy, calendar helpers and
the bucket mapping loader.
"""

import os
import tempfile
import unittest
from datetime import date, datetime

from cashflow_engine.config.bucket_mapping_loader import (
    get_bucket_for_primary,
    load_bucket_mapping_csv,
)
from cashflow_engine.classification.engine import TransactionClassifier
from cashflow_engine.dates import add_months, parse_date, whole_months_between
from cashflow_engine.models.account import Account
from cashflow_engine.models.buckets import BucketCategory
from cashflow_engine.models.categories import ConfidenceLevel, PfcPrimary, needs_validation
from cashflow_engine.models.transaction import Transaction


class TestConfidencePolicy(unittest.TestCase):
    """Only LOW and UNKNOWN tiers go to review."""

    def test_review_table(self):
        self.assertFalse(needs_validation(ConfidenceLevel.VERY_HIGH))
        self.assertFalse(needs_validation(ConfidenceLevel.HIGH))
        self.assertFalse(needs_validation(ConfidenceLevel.MEDIUM))
        self.assertTrue(needs_validation(ConfidenceLevel.LOW))
        self.assertTrue(needs_validation(ConfidenceLevel.UNKNOWN))

    def test_descriptions(self):
        self.assertEqual(ConfidenceLevel.VERY_HIGH.description, "Very confident (>98%)")
        self.assertEqual(ConfidenceLevel.HIGH.description, "Confident (>90%)")
        self.assertEqual(ConfidenceLevel.UNKNOWN.description, "Uncertain")

    def test_parse(self):
        self.assertEqual(ConfidenceLevel.parse("very_high"), ConfidenceLevel.VERY_HIGH)
        self.assertEqual(ConfidenceLevel.parse(" LOW "), ConfidenceLevel.LOW)
        self.assertEqual(ConfidenceLevel.parse("certain"), ConfidenceLevel.UNKNOWN)
        self.assertEqual(ConfidenceLevel.parse(None), ConfidenceLevel.UNKNOWN)


class TestTransactionFromPlaid(unittest.TestCase):

    def setUp(self):
        self.record = {
            "transaction_id": "tx-1",
            "account_id": "acc-1",
            "amount": "-2500.00",
            "date": "2025-03-14",
            "name": "ACME Corp Payroll",
            "merchant_name": None,
            "category": ["Transfer", "Payroll"],
            "category_id": "21009000",
            "pending": False,
            "personal_finance_category": {
                "primary": "income",
                "detailed": "income_wages",
                "confidence_level": "VERY_HIGH",
            },
            "iso_currency_code": "USD",
        }

    def test_full_record(self):
        txn = Transaction.from_plaid(self.record)

        self.assertEqual(txn.transaction_id, "tx-1")
        self.assertEqual(txn.amount, -2500.0)
        self.assertEqual(txn.date, date(2025, 3, 14))
        self.assertEqual(txn.category, ("Transfer", "Payroll"))
        self.assertTrue(txn.is_inflow)
        self.assertEqual(txn.personal_finance_category.primary, "INCOME")
        self.assertEqual(txn.personal_finance_category.known_primary, PfcPrimary.INCOME)
        self.assertEqual(txn.personal_finance_category.confidence_level, ConfidenceLevel.VERY_HIGH)
        print("✓ Plaid transaction parsed")

    def test_unknown_primary_is_kept(self):
        self.record["personal_finance_category"] = {
            "primary": "SOMETHING_NEW",
            "confidence_level": "weird",
        }
        txn = Transaction.from_plaid(self.record)

        self.assertEqual(txn.personal_finance_category.primary, "SOMETHING_NEW")
        self.assertIsNone(txn.personal_finance_category.known_primary)
        self.assertEqual(txn.personal_finance_category.confidence_level, ConfidenceLevel.UNKNOWN)

    def test_user_fields(self):
        self.record["user_corrected_category"] = "debt"
        txn = Transaction.from_plaid(self.record)
        self.assertEqual(txn.user_corrected_category, BucketCategory.DEBT)
        self.assertTrue(txn.has_user_decision)

    def test_missing_amount(self):
        del self.record["amount"]
        with self.assertRaises(KeyError):
            Transaction.from_plaid(self.record)

    def test_missing_date(self):
        del self.record["date"]
        with self.assertRaises(KeyError):
            Transaction.from_plaid(self.record)

    def test_bad_amount(self):
        self.record["amount"] = "abc"
        with self.assertRaises(ValueError):
            Transaction.from_plaid(self.record)

    def test_bad_date(self):
        self.record["date"] = "2025-13-01"
        with self.assertRaises(ValueError):
            Transaction.from_plaid(self.record)

    def test_validation_is_immutable(self):
        txn = Transaction.from_plaid(self.record)
        validated = txn.mark_validated()
        self.assertFalse(txn.user_validated)
        self.assertTrue(validated.user_validated)


class TestAccountFromPlaid(unittest.TestCase):

    def test_balances_and_tags(self):
        account = Account.from_plaid({
            "account_id": "sav-1",
            "name": "Rainy Day",
            "type": "Depository",
            "subtype": "savings",
            "balances": {"current": 10000, "available": 9800},
            "tags": ["Emergency Fund"],
        }, item_id="item-1")

        self.assertEqual(account.item_id, "item-1")
        self.assertTrue(account.is_liquid_cash)
        self.assertEqual(account.spendable_balance, 9800)
        self.assertTrue(account.has_tag("emergency fund"))
        self.assertTrue(account.has_tag("emergency_fund"))

    def test_cd_is_not_liquid(self):
        account = Account.from_plaid({
            "account_id": "cd-1", "type": "depository", "subtype": "cd",
            "balances": {"current": 5000},
        })
        self.assertFalse(account.is_liquid_cash)

    def test_missing_id(self):
        with self.assertRaises(ValueError):
            Account.from_plaid({"type": "depository", "balances": {"current": 1}})

    def test_bad_balance(self):
        with self.assertRaises(ValueError):
            Account.from_plaid({"account_id": "a", "balances": {"current": "lots"}})


class TestCalendarHelpers(unittest.TestCase):

    def test_add_months_clips_day(self):
        self.assertEqual(add_months(date(2025, 1, 31), 1), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2025, 1, 15), -2), date(2024, 11, 15))

    def test_whole_months_between(self):
        self.assertEqual(whole_months_between(date(2025, 3, 15), date(2025, 5, 14)), 1)
        self.assertEqual(whole_months_between(date(2025, 3, 15), date(2025, 5, 15)), 2)
        self.assertEqual(whole_months_between(date(2025, 1, 31), date(2025, 2, 28)), 1)
        self.assertEqual(whole_months_between(date(2025, 5, 1), date(2025, 5, 1)), 0)

    def test_parse_date(self):
        self.assertEqual(parse_date("2025-01-15T10:00:00"), date(2025, 1, 15))
        self.assertEqual(parse_date(datetime(2025, 1, 15, 8, 30)), date(2025, 1, 15))
        with self.assertRaises(ValueError):
            parse_date(20250115)


class TestBucketMappingLoader(unittest.TestCase):

    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix=".csv")
        os.close(handle)

    def tearDown(self):
        if os.path.exists(self.path):
            os.remove(self.path)

    def _write(self, text):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(text)

    def test_load_mapping(self):
        self._write("primary,bucket\ntravel,disposable\nINCOME,income\n,expenses\n")
        mapping = load_bucket_mapping_csv(self.path)

        self.assertEqual(mapping, {
            "TRAVEL": BucketCategory.DISPOSABLE,
            "INCOME": BucketCategory.INCOME,
        })
        self.assertEqual(get_bucket_for_primary("travel", mapping), BucketCategory.DISPOSABLE)
        self.assertIsNone(get_bucket_for_primary("MEDICAL", mapping))

    def test_unknown_bucket(self):
        self._write("primary,bucket\nTRAVEL,holidays\n")
        with self.assertRaises(ValueError):
            load_bucket_mapping_csv(self.path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_bucket_mapping_csv(self.path + ".missing")

    def test_mapping_drives_classifier(self):
        self._write("primary,bucket\nENTERTAINMENT,disposable\n")
        classifier = TransactionClassifier(bucket_mapping=load_bucket_mapping_csv(self.path))
        bucket = classifier.categorize_raw(
            45, "AMC Theatres", pfc_primary="ENTERTAINMENT",
            pfc_detailed="ENTERTAINMENT_TV_AND_MOVIES", confidence_level="HIGH"
        )
        self.assertEqual(bucket, BucketCategory.DISPOSABLE)


if __name__ == "__main__":
    unittest.main(verbosity=2)
