"""
Data models for the cashflow engine.

Provides:
- Transaction and Account value types with Plaid ingestion
- Plaid Personal Finance Category and the confidence policy table
- Classification buckets
"""

from .account import Account, EMERGENCY_FUND_TAG, normalize_tag
from .buckets import BucketCategory, BUCKET_DISPLAY_NAMES
from .categories import (
    ConfidenceLevel,
    PersonalFinanceCategory,
    PfcPrimary,
    NEEDS_VALIDATION,
    CONFIDENCE_DESCRIPTIONS,
    needs_validation,
)
from .transaction import Transaction

__all__ = [
    "Account",
    "EMERGENCY_FUND_TAG",
    "normalize_tag",
    "BucketCategory",
    "BUCKET_DISPLAY_NAMES",
    "ConfidenceLevel",
    "PersonalFinanceCategory",
    "PfcPrimary",
    "NEEDS_VALIDATION",
    "CONFIDENCE_DESCRIPTIONS",
    "needs_validation",
    "Transaction",
]
