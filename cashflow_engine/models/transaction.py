"""
Transaction model.

Amounts follow the Plaid sign convention: negative is money received,
positive is money spent. Values are immutable; the two user-owned fields are
changed by building a new value via ``with_user_override`` / ``mark_validated``.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Optional, Tuple

from ..dates import parse_date
from .buckets import BucketCategory
from .categories import PersonalFinanceCategory


@dataclass(frozen=True)
class Transaction:
    """One ledger event from the aggregation provider."""
    transaction_id: str
    account_id: str
    amount: float
    date: date
    name: str
    merchant_name: Optional[str] = None
    category: Tuple[str, ...] = ()
    category_id: Optional[str] = None
    pending: bool = False
    personal_finance_category: Optional[PersonalFinanceCategory] = None
    iso_currency_code: Optional[str] = None
    user_validated: bool = False
    user_corrected_category: Optional[BucketCategory] = None

    @property
    def is_inflow(self) -> bool:
        return self.amount < 0

    @property
    def is_outflow(self) -> bool:
        return self.amount > 0

    @property
    def pfc(self) -> Optional[PersonalFinanceCategory]:
        return self.personal_finance_category

    @property
    def has_legacy_category(self) -> bool:
        return any(label and label.strip() for label in self.category)

    @property
    def has_user_decision(self) -> bool:
        return self.user_validated or self.user_corrected_category is not None

    def with_user_override(self, bucket: BucketCategory) -> "Transaction":
        """
        Return a copy carrying the user's bucket choice.

        The override is set exactly once; a second attempt is rejected.

        Raises:
            ValueError: If an override is already present
        """
        if self.user_corrected_category is not None:
            raise ValueError(
                f"Transaction {self.transaction_id} already has a user override"
            )
        return replace(self, user_corrected_category=bucket, user_validated=True)

    def mark_validated(self) -> "Transaction":
        if self.user_validated:
            return self
        return replace(self, user_validated=True)

    @classmethod
    def from_plaid(cls, data: Dict) -> "Transaction":
        """
        Build a transaction from a Plaid transaction object.

        Args:
            data: Raw Plaid dict (``transaction_id``, ``amount``, ``date``, ...)

        Returns:
            Transaction

        Raises:
            KeyError: If ``amount`` or ``date`` is missing
            ValueError: If the amount or date cannot be parsed
        """
        try:
            amount = float(data["amount"])
        except (TypeError, ValueError):
            raise ValueError(f"Invalid transaction amount: {data.get('amount')!r}")

        raw_category = data.get("category") or []
        if isinstance(raw_category, str):
            raw_category = [raw_category]

        name = data.get("name") or data.get("description") or ""
        return cls(
            transaction_id=str(data.get("transaction_id") or data.get("id") or ""),
            account_id=str(data.get("account_id") or ""),
            amount=amount,
            date=parse_date(data["date"]),
            name=name,
            merchant_name=data.get("merchant_name"),
            category=tuple(str(label) for label in raw_category if label),
            category_id=data.get("category_id"),
            pending=bool(data.get("pending", False)),
            personal_finance_category=PersonalFinanceCategory.from_plaid(
                data.get("personal_finance_category")
            ),
            iso_currency_code=data.get("iso_currency_code"),
            user_validated=bool(data.get("user_validated", False)),
            user_corrected_category=BucketCategory.parse(
                data.get("user_corrected_category")
            ),
        )
