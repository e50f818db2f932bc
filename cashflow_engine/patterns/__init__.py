"""
Transaction Patterns Module.

Contains keyword tables used to classify transactions into buckets,
essential/discretionary spending and expense sub-buckets.
"""

from .transaction_patterns import (
    INCOME_CATEGORY_KEYWORDS,
    INCOME_NAME_KEYWORDS,
    INVESTMENT_PROVIDERS,
    TRANSFER_PATTERNS,
    ESSENTIAL_NAME_KEYWORDS,
    EXPENSE_CATEGORY_PATTERNS,
)

__all__ = [
    "INCOME_CATEGORY_KEYWORDS",
    "INCOME_NAME_KEYWORDS",
    "INVESTMENT_PROVIDERS",
    "TRANSFER_PATTERNS",
    "ESSENTIAL_NAME_KEYWORDS",
    "EXPENSE_CATEGORY_PATTERNS",
]
