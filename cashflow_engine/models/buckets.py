"""Top-level classification buckets."""

from enum import Enum
from typing import Optional


class BucketCategory(Enum):
    """Economic role of a transaction. Each transaction lands in exactly one."""
    INCOME = "income"
    EXPENSES = "expenses"
    DEBT = "debt"
    INVESTED = "invested"
    CASH = "cash"
    DISPOSABLE = "disposable"
    EXCLUDED = "excluded"

    @property
    def display_name(self) -> str:
        return BUCKET_DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["BucketCategory"]:
        if value is None:
            return None
        if isinstance(value, BucketCategory):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


BUCKET_DISPLAY_NAMES = {
    BucketCategory.INCOME: "Avg Monthly Income",
    BucketCategory.EXPENSES: "Avg Monthly Expenses",
    BucketCategory.DEBT: "Total Debt",
    BucketCategory.INVESTED: "Total Invested",
    BucketCategory.CASH: "Total Cash Available",
    BucketCategory.DISPOSABLE: "Available to Spend",
    BucketCategory.EXCLUDED: "Excluded Transfers",
}
