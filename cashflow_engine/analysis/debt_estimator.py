"""
Debt minimum payment estimation.

Used only when the provider does not report a minimum payment. Rules:

    credit    max(balance x 2.5%, 25)
    student   balance / 120
    auto      balance / 60
    mortgage  (balance / 360) x 1.5
    personal  balance / 36
    other     balance x 1.5%

A non-positive balance always estimates to zero.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..config.analysis_config import DEBT_CONFIG
from ..models.account import Account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebtAccount:
    """Per-account debt record for the financial position."""
    account_id: str
    name: str
    debt_type: str
    balance: float
    apr: float
    minimum_payment: float
    apr_estimated: bool = False
    minimum_payment_estimated: bool = False

    @property
    def monthly_interest(self) -> float:
        return self.balance * self.apr / 12


def debt_type_for(account: Account, config: Dict = DEBT_CONFIG) -> str:
    """
    Resolve the rule key for a debt account.

    Credit accounts are always "credit"; loans map their subtype through
    ``subtype_aliases`` and default to "other".
    """
    if account.is_credit:
        return "credit"
    subtype = (account.subtype or "").lower().replace("_", " ")
    return config["subtype_aliases"].get(subtype, "other")


def estimate_minimum_payment(balance: Optional[float], debt_type: str, config: Dict = DEBT_CONFIG) -> float:
    """
    Estimate a monthly minimum payment.

    Args:
        balance: Outstanding balance
        debt_type: Rule key ("credit", "student", "auto", "mortgage",
            "personal" or "other")
        config: Debt configuration

    Returns:
        Estimated monthly minimum, 0.0 for non-positive balances
    """
    if balance is None or balance <= 0:
        return 0.0

    rules = config["minimum_payment_rules"]
    rule = rules.get(debt_type, rules["other"])

    if "months" in rule:
        payment = balance / rule["months"] * rule.get("multiplier", 1.0)
    else:
        payment = balance * rule["rate"]
    if "floor" in rule:
        payment = max(payment, rule["floor"])
    return payment


class DebtMinimumEstimator:
    """Builds debt records, preferring provider figures over estimates."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or DEBT_CONFIG

    def minimum_payment_for(self, account: Account) -> Tuple[float, bool]:
        """
        Monthly minimum for an account.

        Returns:
            Tuple of (amount, was_estimated)
        """
        if account.minimum_payment is not None:
            return account.minimum_payment, False
        debt_type = debt_type_for(account, self.config)
        return estimate_minimum_payment(account.current_balance, debt_type, self.config), True

    def apr_for(self, account: Account) -> Tuple[float, bool]:
        if account.apr is not None:
            return account.apr, False
        debt_type = debt_type_for(account, self.config)
        defaults = self.config["default_apr"]
        return defaults.get(debt_type, defaults["other"]), True

    def debt_record(self, account: Account) -> DebtAccount:
        minimum, minimum_estimated = self.minimum_payment_for(account)
        apr, apr_estimated = self.apr_for(account)
        record = DebtAccount(
            account_id=account.account_id,
            name=account.name,
            debt_type=debt_type_for(account, self.config),
            balance=max(account.current_balance or 0.0, 0.0),
            apr=apr,
            minimum_payment=minimum,
            apr_estimated=apr_estimated,
            minimum_payment_estimated=minimum_estimated,
        )
        logger.debug(
            "Debt %s: type=%s balance=%.2f minimum=%.2f (estimated=%s)",
            record.account_id, record.debt_type, record.balance,
            record.minimum_payment, minimum_estimated
        )
        return record
