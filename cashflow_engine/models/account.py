"""
Account model.

``type`` partitions accounts into depository, credit, loan and investment
groups; ``subtype`` refines debt defaults (student, auto, mortgage, ...).
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


DEPOSITORY = "depository"
CREDIT = "credit"
LOAN = "loan"
INVESTMENT_TYPES = ("investment", "brokerage")

EMERGENCY_FUND_TAG = "emergency_fund"


def normalize_tag(tag: str) -> str:
    return "_".join(str(tag).strip().lower().replace("-", " ").split())


@dataclass(frozen=True)
class Account:
    """A bank, credit, loan or investment account."""
    account_id: str
    item_id: str
    name: str
    type: str
    subtype: Optional[str] = None
    official_name: Optional[str] = None
    mask: Optional[str] = None
    current_balance: Optional[float] = None
    available_balance: Optional[float] = None
    limit: Optional[float] = None
    iso_currency_code: Optional[str] = None
    minimum_payment: Optional[float] = None
    apr: Optional[float] = None
    tags: Tuple[str, ...] = ()

    @property
    def is_depository(self) -> bool:
        return self.type == DEPOSITORY

    @property
    def is_credit(self) -> bool:
        return self.type == CREDIT

    @property
    def is_loan(self) -> bool:
        return self.type == LOAN

    @property
    def is_investment(self) -> bool:
        return self.type in INVESTMENT_TYPES

    @property
    def is_debt(self) -> bool:
        return self.is_credit or self.is_loan

    @property
    def is_liquid_cash(self) -> bool:
        """Depository accounts count as cash, except certificates of deposit."""
        return self.is_depository and (self.subtype or "").lower() != "cd"

    @property
    def spendable_balance(self) -> float:
        if self.available_balance is not None:
            return self.available_balance
        return self.current_balance or 0.0

    def has_tag(self, tag: str) -> bool:
        return normalize_tag(tag) in self.tags

    @classmethod
    def from_plaid(cls, data: Dict, item_id: Optional[str] = None) -> "Account":
        """
        Build an account from a Plaid account object.

        Args:
            data: Raw Plaid dict with ``account_id`` and ``balances``
            item_id: Connection id to use when the record has none

        Returns:
            Account

        Raises:
            ValueError: If the record has no account identifier
        """
        account_id = data.get("account_id") or data.get("id")
        if not account_id:
            raise ValueError("Account record missing 'account_id'")

        balances = data.get("balances") or {}

        def _number(value) -> Optional[float]:
            if value is None:
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid numeric value on account {account_id}: {value!r}")

        return cls(
            account_id=str(account_id),
            item_id=str(data.get("item_id") or item_id or ""),
            name=data.get("name") or "",
            type=str(data.get("type") or "").lower(),
            subtype=(str(data["subtype"]).lower() if data.get("subtype") else None),
            official_name=data.get("official_name"),
            mask=data.get("mask"),
            current_balance=_number(balances.get("current", data.get("balance"))),
            available_balance=_number(balances.get("available")),
            limit=_number(balances.get("limit")),
            iso_currency_code=balances.get("iso_currency_code") or data.get("iso_currency_code"),
            minimum_payment=_number(data.get("minimum_payment")),
            apr=_number(data.get("apr")),
            tags=tuple(normalize_tag(tag) for tag in data.get("tags") or []),
        )
