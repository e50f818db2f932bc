"""
Named classification rules.

Every decision the classifier makes is an ordered chain of ``Rule`` objects.
A rule looks at a ``TransactionContext`` and either returns a
``(value, reason)`` tuple, which ends the chain, or None to defer to the next
rule. Chains are evaluated in ascending ``priority``; the chain default
applies when no rule fires.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from ..models.buckets import BucketCategory
from ..models.categories import PersonalFinanceCategory, PfcPrimary
from ..models.transaction import Transaction
from ..patterns.transaction_patterns import (
    ALWAYS_DISCRETIONARY_PRIMARIES,
    ALWAYS_ESSENTIAL_PRIMARIES,
    CONTRIBUTION_PHRASES,
    CONTRIBUTION_TERMS,
    DEBT_SERVICING_TERMS,
    DISCRETIONARY_TRANSPORT_MARKERS,
    ESSENTIAL_FOOD_MARKERS,
    ESSENTIAL_MERCHANDISE_MARKERS,
    ESSENTIAL_NAME_KEYWORDS,
    ESSENTIAL_SERVICE_MARKERS,
    FALLBACK_REJECT_TERMS,
    GENERIC_INCOME_BLOCKERS,
    GENERIC_INCOME_TERMS,
    INCOME_CATEGORY_KEYWORDS,
    INCOME_DISQUALIFIERS,
    INCOME_NAME_KEYWORDS,
    INSURANCE_MARKER,
    INTEREST_DIVIDEND_TERMS,
    INTERNAL_TRANSFER_CATEGORY_IDS,
    INTERNAL_TRANSFER_CATEGORY_KEYWORDS,
    INTERNAL_TRANSFER_DETAILED_MARKERS,
    INVESTMENT_CATEGORY_KEYWORDS,
    INVESTMENT_PROVIDERS,
    TRANSFER_IN_INTERNAL_MARKERS,
    TRANSFER_IN_INVESTMENT_MARKERS,
    TRANSFER_OUT_INVESTMENT_MARKERS,
    TRANSFER_PATTERNS,
)
from .pattern_matching import contains_term, find_term, match_keywords, match_regex_patterns
from .preprocess import combine_name_merchant, normalize_labels


RuleResult = Optional[Tuple[Any, str]]


@dataclass(frozen=True)
class TransactionContext:
    """Normalised views of a transaction, computed once per classification."""
    transaction: Transaction
    name_text: str
    merchant_text: str
    combined_text: str
    labels: Tuple[str, ...]
    pfc: Optional[PersonalFinanceCategory]
    primary: Optional[PfcPrimary]

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionContext":
        name_text, merchant_text, combined = combine_name_merchant(txn.name, txn.merchant_name)
        pfc = txn.personal_finance_category
        return cls(
            transaction=txn,
            name_text=name_text,
            merchant_text=merchant_text,
            combined_text=combined,
            labels=tuple(normalize_labels(txn.category)),
            pfc=pfc,
            primary=pfc.known_primary if pfc else None,
        )

    @property
    def amount(self) -> float:
        return self.transaction.amount

    @property
    def labels_text(self) -> str:
        return " | ".join(self.labels)

    def label_with_term(self, terms: List[str]) -> Optional[str]:
        for label in self.labels:
            if find_term(label, terms):
                return label
        return None


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating a chain: the value and which rule produced it."""
    value: Any
    rule: str
    reason: str


@dataclass(frozen=True)
class Rule:
    """A named, prioritised classification predicate."""
    name: str
    priority: int
    evaluate: Callable[["TransactionContext", Any], RuleResult]
    description: str = ""

    def apply(self, ctx: TransactionContext, classifier=None) -> Optional[RuleOutcome]:
        result = self.evaluate(ctx, classifier)
        if result is None:
            return None
        value, reason = result
        return RuleOutcome(value=value, rule=self.name, reason=reason)


@dataclass
class RuleChain:
    """Ordered rules with a default outcome."""
    name: str
    rules: List[Rule]
    default: Any
    default_reason: str = "No rule matched"
    _ordered: List[Rule] = field(init=False, repr=False)

    def __post_init__(self):
        self._ordered = sorted(self.rules, key=lambda rule: rule.priority)

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self._ordered]

    def get(self, name: str) -> Rule:
        for rule in self._ordered:
            if rule.name == name:
                return rule
        raise KeyError(name)

    def evaluate(self, ctx: TransactionContext, classifier=None) -> RuleOutcome:
        for rule in self._ordered:
            outcome = rule.apply(ctx, classifier)
            if outcome is not None:
                return outcome
        return RuleOutcome(value=self.default, rule="default", reason=self.default_reason)


# ---------------------------------------------------------------------------
# Income
# ---------------------------------------------------------------------------

def _not_an_inflow(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.amount >= 0:
        return (False, "Outflow or zero amount")
    return None


def _structured_income(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary == PfcPrimary.INCOME:
        return (True, f"Structured category {ctx.pfc.detailed or 'INCOME'}")
    return None


def _structured_transfer_in(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary != PfcPrimary.TRANSFER_IN:
        return None
    if ctx.pfc.detailed_contains(*TRANSFER_IN_INTERNAL_MARKERS):
        return None
    if ctx.pfc.detailed_contains(*TRANSFER_IN_INVESTMENT_MARKERS):
        return None
    return (True, f"External transfer in ({ctx.pfc.detailed or 'TRANSFER_IN'})")


def _legacy_income_category(ctx: TransactionContext, classifier) -> RuleResult:
    for label in ctx.labels:
        term = find_term(label, INCOME_CATEGORY_KEYWORDS)
        if term and not contains_term(label, "TRANSFER"):
            return (True, f"Legacy category '{label}' matches {term}")
    return None


def _income_name_keywords(ctx: TransactionContext, classifier) -> RuleResult:
    text = ctx.combined_text
    disqualifier = find_term(text, INCOME_DISQUALIFIERS)
    if disqualifier:
        return (False, f"Name contains {disqualifier}")

    term = find_term(text, INCOME_NAME_KEYWORDS)
    if term:
        return (True, f"Name matches income keyword {term}")

    generic = find_term(text, GENERIC_INCOME_TERMS)
    if generic and not find_term(text, GENERIC_INCOME_BLOCKERS):
        return (True, f"Name matches generic income term {generic}")
    return None


def _interest_or_dividend(ctx: TransactionContext, classifier) -> RuleResult:
    term = find_term(ctx.combined_text, INTEREST_DIVIDEND_TERMS)
    if term:
        return (True, f"Name mentions {term}")
    return None


def _large_uncategorized_inflow(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.pfc is not None or ctx.labels:
        return None
    reject = find_term(ctx.combined_text, FALLBACK_REJECT_TERMS)
    if reject:
        return (False, f"Uncategorised inflow mentions {reject}")
    threshold = classifier.config["large_uncategorized_inflow"] if classifier else 500.0
    if abs(ctx.amount) > threshold:
        return (True, f"Uncategorised inflow above {threshold:.0f}")
    return None


LARGE_INFLOW_RULE = "large_uncategorized_inflow"

INCOME_RULES = [
    Rule("not_an_inflow", 0, _not_an_inflow, "Only inflows can be income"),
    Rule("structured_income", 10, _structured_income, "PFC primary INCOME"),
    Rule("structured_transfer_in", 20, _structured_transfer_in,
         "PFC TRANSFER_IN that is neither own-account nor investment"),
    Rule("legacy_income_category", 30, _legacy_income_category,
         "Legacy label in the income keyword set"),
    Rule("income_name_keywords", 40, _income_name_keywords,
         "Payroll/benefit wording in the name"),
    Rule("interest_or_dividend", 50, _interest_or_dividend,
         "Interest or dividend wording in the name"),
    Rule(LARGE_INFLOW_RULE, 60, _large_uncategorized_inflow,
         "Large inflow with no category data at all"),
]


# ---------------------------------------------------------------------------
# Investment contributions
# ---------------------------------------------------------------------------

def _structured_investment_transfer(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary == PfcPrimary.TRANSFER_OUT and ctx.pfc.detailed_contains(*TRANSFER_OUT_INVESTMENT_MARKERS):
        return (True, f"Transfer out to {ctx.pfc.detailed}")
    return None


def _legacy_investment_category(ctx: TransactionContext, classifier) -> RuleResult:
    label = ctx.label_with_term(INVESTMENT_CATEGORY_KEYWORDS)
    if label:
        return (True, f"Legacy category '{label}'")
    return None


def _investment_provider(ctx: TransactionContext, classifier) -> RuleResult:
    threshold = classifier.config["provider_fuzzy_threshold"] if classifier else 85
    provider = match_keywords(ctx.combined_text, INVESTMENT_PROVIDERS, threshold)
    if not provider:
        return None
    contribution = find_term(ctx.combined_text, CONTRIBUTION_TERMS)
    if contribution:
        return (True, f"{provider[0]} with {contribution}")
    if ctx.amount > 0:
        return (True, f"Outflow to {provider[0]}")
    return None


def _contribution_phrase(ctx: TransactionContext, classifier) -> RuleResult:
    phrase = find_term(ctx.combined_text, CONTRIBUTION_PHRASES)
    if phrase:
        return (True, f"Name mentions {phrase}")
    return None


INVESTMENT_RULES = [
    Rule("structured_investment_transfer", 10, _structured_investment_transfer,
         "PFC TRANSFER_OUT to investment, retirement or savings"),
    Rule("legacy_investment_category", 20, _legacy_investment_category,
         "Legacy label in the investment keyword set"),
    Rule("investment_provider", 30, _investment_provider,
         "Brokerage/retirement provider with contribution wording or outflow"),
    Rule("contribution_phrase", 40, _contribution_phrase,
         "Payroll contribution wording"),
]


# ---------------------------------------------------------------------------
# Internal transfers & debt servicing
# ---------------------------------------------------------------------------

def _structured_internal_transfer(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.pfc and ctx.pfc.detailed_contains(*INTERNAL_TRANSFER_DETAILED_MARKERS):
        return (True, f"Structured subclass {ctx.pfc.detailed}")
    return None


def _legacy_transfer_category(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.transaction.category_id in INTERNAL_TRANSFER_CATEGORY_IDS:
        return (True, f"Legacy category id {ctx.transaction.category_id}")
    label = ctx.label_with_term(INTERNAL_TRANSFER_CATEGORY_KEYWORDS)
    if label:
        return (True, f"Legacy category '{label}'")
    return None


def _transfer_name_phrasing(ctx: TransactionContext, classifier) -> RuleResult:
    text = ctx.combined_text
    term = find_term(text, TRANSFER_PATTERNS["keywords"])
    if term:
        return (True, f"Name matches {term}")
    if match_regex_patterns(text, TRANSFER_PATTERNS["regex_patterns"]):
        return (True, "Name matches transfer pattern")
    return None


TRANSFER_RULES = [
    Rule("structured_internal_transfer", 10, _structured_internal_transfer,
         "Own-account or credit card payment subclass"),
    Rule("legacy_transfer_category", 20, _legacy_transfer_category,
         "Legacy internal transfer label or id"),
    Rule("transfer_name_phrasing", 30, _transfer_name_phrasing,
         "Transfer, autopay or card payment wording"),
]


def is_debt_servicing(ctx: TransactionContext) -> bool:
    """True when an internal transfer pays down a card or loan."""
    if ctx.primary == PfcPrimary.LOAN_PAYMENTS:
        return True
    if ctx.pfc and ctx.pfc.detailed_contains("CREDIT_CARD", "LOAN"):
        return True
    return bool(
        find_term(ctx.combined_text, DEBT_SERVICING_TERMS)
        or ctx.label_with_term(DEBT_SERVICING_TERMS)
    )


# ---------------------------------------------------------------------------
# Essential vs discretionary (applies to real expenses only)
# ---------------------------------------------------------------------------

def _structured_discretionary_primary(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary and ctx.primary.value in ALWAYS_DISCRETIONARY_PRIMARIES:
        return (False, f"{ctx.primary.value} is discretionary")
    return None


def _structured_always_essential(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary and ctx.primary.value in ALWAYS_ESSENTIAL_PRIMARIES:
        return (True, f"{ctx.primary.value} is essential")
    return None


def _structured_insurance(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.pfc and ctx.pfc.detailed_contains(INSURANCE_MARKER):
        return (True, "Insurance")
    return None


def _structured_food(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary != PfcPrimary.FOOD_AND_DRINK:
        return None
    if ctx.pfc.detailed_contains(*ESSENTIAL_FOOD_MARKERS):
        return (True, "Groceries")
    return (False, "Dining out")


def _structured_transportation(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary != PfcPrimary.TRANSPORTATION:
        return None
    if ctx.pfc.detailed_contains(*DISCRETIONARY_TRANSPORT_MARKERS):
        return (False, "Leisure travel")
    return (True, "Transportation")


def _structured_merchandise(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary != PfcPrimary.GENERAL_MERCHANDISE:
        return None
    if ctx.pfc.detailed_contains(*ESSENTIAL_MERCHANDISE_MARKERS):
        return (True, "Pharmacy, healthcare or pet food")
    return (False, "General merchandise")


def _structured_services(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary != PfcPrimary.GENERAL_SERVICES:
        return None
    if ctx.pfc.detailed_contains(*ESSENTIAL_SERVICE_MARKERS):
        return (True, "Essential service")
    return (False, "General service")


def _structured_other_primary(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.primary is not None:
        return (False, f"{ctx.primary.value} is not an essential category")
    return None


def _essential_keywords(ctx: TransactionContext, classifier) -> RuleResult:
    term = find_term(ctx.combined_text, ESSENTIAL_NAME_KEYWORDS)
    if term:
        return (True, f"Name matches essential keyword {term}")
    label = ctx.label_with_term(ESSENTIAL_NAME_KEYWORDS)
    if label:
        return (True, f"Legacy category '{label}' is essential")
    return None


ESSENTIAL_RULES = [
    Rule("structured_discretionary_primary", 10, _structured_discretionary_primary,
         "Travel and entertainment are always discretionary"),
    Rule("structured_always_essential", 20, _structured_always_essential,
         "Rent, utilities, loans, fees, government, medical, home"),
    Rule("structured_insurance", 30, _structured_insurance, "Any insurance subclass"),
    Rule("structured_food", 40, _structured_food, "Groceries essential, restaurants not"),
    Rule("structured_transportation", 50, _structured_transportation,
         "Commuting essential, airline/hotel/vacation not"),
    Rule("structured_merchandise", 60, _structured_merchandise,
         "Pharmacy, healthcare and pet food only"),
    Rule("structured_services", 70, _structured_services,
         "Childcare, education, veterinary and automotive only"),
    Rule("structured_other_primary", 80, _structured_other_primary,
         "Any other known primary is discretionary"),
    Rule("essential_keywords", 90, _essential_keywords,
         "Keyword fallback when no structured category is known"),
]


# ---------------------------------------------------------------------------
# Bucket dispatch
# ---------------------------------------------------------------------------

PFC_BUCKET_MAP = {
    PfcPrimary.INCOME.value: BucketCategory.INCOME,
    PfcPrimary.LOAN_PAYMENTS.value: BucketCategory.DEBT,
    PfcPrimary.BANK_FEES.value: BucketCategory.EXPENSES,
    PfcPrimary.RENT_AND_UTILITIES.value: BucketCategory.EXPENSES,
    PfcPrimary.FOOD_AND_DRINK.value: BucketCategory.EXPENSES,
    PfcPrimary.GENERAL_MERCHANDISE.value: BucketCategory.EXPENSES,
    PfcPrimary.HOME_IMPROVEMENT.value: BucketCategory.EXPENSES,
    PfcPrimary.MEDICAL.value: BucketCategory.EXPENSES,
    PfcPrimary.PERSONAL_CARE.value: BucketCategory.EXPENSES,
    PfcPrimary.GENERAL_SERVICES.value: BucketCategory.EXPENSES,
    PfcPrimary.GOVERNMENT_AND_NON_PROFIT.value: BucketCategory.EXPENSES,
    PfcPrimary.TRANSPORTATION.value: BucketCategory.EXPENSES,
    PfcPrimary.TRAVEL.value: BucketCategory.EXPENSES,
    PfcPrimary.ENTERTAINMENT.value: BucketCategory.EXPENSES,
}


def _sign_bucket(amount: float) -> BucketCategory:
    return BucketCategory.INCOME if amount < 0 else BucketCategory.EXPENSES


def map_structured_to_bucket(pfc: PersonalFinanceCategory, amount: float, mapping=None) -> Tuple[BucketCategory, str]:
    """
    Map a structured category to a bucket.

    Transfers are disambiguated on the detailed subclass. Primaries that are
    neither in the table nor in ``mapping`` fall back to the amount sign.
    """
    primary = (pfc.primary or "").upper()
    if mapping and primary in mapping:
        return mapping[primary], f"Custom mapping for {primary}"

    if primary == PfcPrimary.TRANSFER_IN.value:
        if pfc.detailed_contains("ACCOUNT"):
            return BucketCategory.CASH, "Transfer in between own accounts"
        return BucketCategory.INCOME, "Transfer in"

    if primary == PfcPrimary.TRANSFER_OUT.value:
        if pfc.detailed_contains("INVESTMENT", "RETIREMENT", "SAVINGS"):
            return BucketCategory.INVESTED, "Transfer out to investments or savings"
        if pfc.detailed_contains("LOAN", "CREDIT"):
            return BucketCategory.DEBT, "Transfer out to a loan or card"
        return BucketCategory.EXPENSES, "Transfer out"

    bucket = PFC_BUCKET_MAP.get(primary)
    if bucket is not None:
        return bucket, f"Structured category {primary}"
    return _sign_bucket(amount), f"Unrecognised primary {primary}, using amount sign"


def _user_override(ctx: TransactionContext, classifier) -> RuleResult:
    bucket = ctx.transaction.user_corrected_category
    if bucket is not None:
        return (bucket, "Set by user")
    return None


def _investment_bucket(ctx: TransactionContext, classifier) -> RuleResult:
    outcome = classifier.investment_outcome(ctx)
    if outcome.value:
        return (BucketCategory.INVESTED, outcome.reason)
    return None


def _income_bucket(ctx: TransactionContext, classifier) -> RuleResult:
    outcome = classifier.income_outcome(ctx)
    if outcome.value:
        return (BucketCategory.INCOME, outcome.reason)
    return None


def _transfer_bucket(ctx: TransactionContext, classifier) -> RuleResult:
    outcome = classifier.transfer_outcome(ctx)
    if not outcome.value:
        return None
    if ctx.amount < 0:
        return (BucketCategory.CASH, f"Money moved in: {outcome.reason}")
    if is_debt_servicing(ctx):
        return (BucketCategory.DEBT, f"Debt payment: {outcome.reason}")
    return (BucketCategory.EXCLUDED, f"Self transfer: {outcome.reason}")


def _structured_bucket(ctx: TransactionContext, classifier) -> RuleResult:
    if ctx.pfc is None:
        return None
    mapping = classifier.bucket_mapping if classifier else None
    return map_structured_to_bucket(ctx.pfc, ctx.amount, mapping)


def _legacy_bucket(ctx: TransactionContext, classifier) -> RuleResult:
    if not ctx.labels:
        return None
    for label in ctx.labels:
        if find_term(label, ["CREDIT CARD", "LOAN PAYMENTS", "LOAN", "MORTGAGE"]):
            return (BucketCategory.DEBT, f"Legacy category '{label}'")
        if contains_term(label, "TRANSFER") and find_term(
            ctx.labels_text, ["INVESTMENT", "BROKERAGE", "RETIREMENT"]
        ):
            return (BucketCategory.INVESTED, f"Legacy category '{label}'")
    if ctx.amount > 0:
        return (BucketCategory.EXPENSES, "Legacy categorised outflow")
    return None


def _amount_sign(ctx: TransactionContext, classifier) -> RuleResult:
    bucket = _sign_bucket(ctx.amount)
    return (bucket, "Inflow" if bucket == BucketCategory.INCOME else "Outflow")


BUCKET_RULES = [
    Rule("user_override", 0, _user_override, "The user's choice always wins"),
    Rule("investment_contribution", 10, _investment_bucket, "Contributions are invested"),
    Rule("internal_transfer", 20, _transfer_bucket,
         "Self transfers are cash in, debt payments or excluded"),
    Rule("actual_income", 30, _income_bucket, "Real income"),
    Rule("structured_mapping", 40, _structured_bucket, "PFC primary table"),
    Rule("legacy_keywords", 50, _legacy_bucket, "Legacy label keywords"),
    Rule("amount_sign", 60, _amount_sign, "Negative is income, positive is expense"),
]


def build_income_chain() -> RuleChain:
    return RuleChain("income", INCOME_RULES, default=False,
                     default_reason="No income rule matched")


def build_investment_chain() -> RuleChain:
    return RuleChain("investment", INVESTMENT_RULES, default=False,
                     default_reason="No investment rule matched")


def build_transfer_chain() -> RuleChain:
    return RuleChain("transfer", TRANSFER_RULES, default=False,
                     default_reason="No transfer rule matched")


def build_essential_chain() -> RuleChain:
    return RuleChain("essential", ESSENTIAL_RULES, default=False,
                     default_reason="No essential signal, treated as discretionary")


def build_bucket_chain() -> RuleChain:
    return RuleChain("bucket", BUCKET_RULES, default=BucketCategory.EXPENSES,
                     default_reason="Outflow")
