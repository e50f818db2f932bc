"""
Plaid Personal Finance Category (PFC) model and the confidence policy.

The provider attaches a (primary, detailed, confidence_level) triple to each
transaction. Primaries form a closed enum; any primary the enum does not know
is kept verbatim on ``PersonalFinanceCategory.primary`` so classification can
fall back to the amount-sign default for it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ConfidenceLevel(Enum):
    """Provider confidence tier for a structured category."""
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ConfidenceLevel":
        """Parse a provider string; anything unrecognised is UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        return CONFIDENCE_DESCRIPTIONS[self]

    @property
    def needs_validation(self) -> bool:
        return NEEDS_VALIDATION[self]

    @property
    def is_high(self) -> bool:
        return self in (ConfidenceLevel.HIGH, ConfidenceLevel.VERY_HIGH)


# Only LOW and UNKNOWN go to user review.
NEEDS_VALIDATION: Dict[ConfidenceLevel, bool] = {
    ConfidenceLevel.VERY_HIGH: False,
    ConfidenceLevel.HIGH: False,
    ConfidenceLevel.MEDIUM: False,
    ConfidenceLevel.LOW: True,
    ConfidenceLevel.UNKNOWN: True,
}

CONFIDENCE_DESCRIPTIONS: Dict[ConfidenceLevel, str] = {
    ConfidenceLevel.VERY_HIGH: "Very confident (>98%)",
    ConfidenceLevel.HIGH: "Confident (>90%)",
    ConfidenceLevel.MEDIUM: "Moderately confident",
    ConfidenceLevel.LOW: "Low confidence",
    ConfidenceLevel.UNKNOWN: "Uncertain",
}


def needs_validation(level: ConfidenceLevel) -> bool:
    """Return True if a category at this tier should be reviewed by the user."""
    return NEEDS_VALIDATION[level]


class PfcPrimary(Enum):
    """Known Plaid PFC primary categories."""
    INCOME = "INCOME"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    LOAN_PAYMENTS = "LOAN_PAYMENTS"
    BANK_FEES = "BANK_FEES"
    ENTERTAINMENT = "ENTERTAINMENT"
    FOOD_AND_DRINK = "FOOD_AND_DRINK"
    GENERAL_MERCHANDISE = "GENERAL_MERCHANDISE"
    HOME_IMPROVEMENT = "HOME_IMPROVEMENT"
    MEDICAL = "MEDICAL"
    PERSONAL_CARE = "PERSONAL_CARE"
    GENERAL_SERVICES = "GENERAL_SERVICES"
    GOVERNMENT_AND_NON_PROFIT = "GOVERNMENT_AND_NON_PROFIT"
    TRANSPORTATION = "TRANSPORTATION"
    TRAVEL = "TRAVEL"
    RENT_AND_UTILITIES = "RENT_AND_UTILITIES"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["PfcPrimary"]:
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class PersonalFinanceCategory:
    """Structured category attached by the provider."""
    primary: str
    detailed: str = ""
    confidence_level: ConfidenceLevel = ConfidenceLevel.UNKNOWN

    @property
    def known_primary(self) -> Optional[PfcPrimary]:
        """The enum member for ``primary``, or None for unrecognised values."""
        return PfcPrimary.parse(self.primary)

    @property
    def detailed_upper(self) -> str:
        return (self.detailed or "").upper()

    def detailed_contains(self, *markers: str) -> bool:
        detailed = self.detailed_upper
        return any(marker in detailed for marker in markers)

    @classmethod
    def from_plaid(cls, data: Optional[Dict]) -> Optional["PersonalFinanceCategory"]:
        """Build from a Plaid ``personal_finance_category`` object."""
        if not data or not data.get("primary"):
            return None
        return cls(
            primary=str(data["primary"]).strip().upper(),
            detailed=str(data.get("detailed") or "").strip().upper(),
            confidence_level=ConfidenceLevel.parse(data.get("confidence_level")),
        )
