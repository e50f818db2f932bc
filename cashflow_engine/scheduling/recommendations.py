"""
Allocation recommendations.

Splits monthly income across the allocation buckets, starting from a 50/30/20
baseline adjusted to actual spending, emergency fund shortfall and debt. Also
holds the per-bucket guardrails (recommended minimums, safe maximums and the
discretionary spending limits) used when the user edits a plan.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..analysis.aggregator import AnalysisSnapshot
from ..analysis.health import FinancialHealthMetrics, IncomeStabilityLevel
from ..config.analysis_config import RECOMMENDATION_CONFIG
from ..income.paycheck_schedule import PaycheckFrequency
from .allocation import AllocationBucketType

logger = logging.getLogger(__name__)

ESSENTIAL = AllocationBucketType.ESSENTIAL_SPENDING
EMERGENCY = AllocationBucketType.EMERGENCY_FUND
DISCRETIONARY = AllocationBucketType.DISCRETIONARY_SPENDING
INVESTMENTS = AllocationBucketType.INVESTMENTS

_MINIMUM_KEYS = {
    ESSENTIAL: "essential",
    EMERGENCY: "emergency",
    DISCRETIONARY: "discretionary",
    INVESTMENTS: "investments",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percentage_of(amount: float, monthly_income: float) -> int:
    if monthly_income <= 0:
        return 0
    return round_half_up(amount / monthly_income * 100)


# ---------------------------------------------------------------------------
# Guardrails
# ---------------------------------------------------------------------------

def recommended_minimum_percentage(bucket_type: AllocationBucketType, config: Optional[Dict] = None) -> float:
    config = config or RECOMMENDATION_CONFIG
    return config["minimum_percentages"][_MINIMUM_KEYS[bucket_type]]


def recommended_minimum(bucket_type: AllocationBucketType, monthly_income: float) -> float:
    """Smallest sensible monthly amount for a bucket."""
    return monthly_income * recommended_minimum_percentage(bucket_type) / 100


def max_safe_allocation(
    bucket_type: AllocationBucketType,
    monthly_income: float,
    current_amount: float = 0.0,
    other_buckets: Optional[Iterable[AllocationBucketType]] = None,
    config: Optional[Dict] = None
) -> float:
    """
    Largest amount a bucket can take while the others keep their minimums.

    Essential spending is derived from actual data, so its current amount is
    returned unchanged. Discretionary spending is capped at half of income.
    """
    config = config or RECOMMENDATION_CONFIG
    if monthly_income <= 0:
        return 0.0
    if other_buckets is None:
        other_buckets = list(AllocationBucketType)

    reserved = sum(
        monthly_income * recommended_minimum_percentage(other, config) / 100
        for other in other_buckets if other != bucket_type
    )
    maximum = monthly_income - reserved

    if bucket_type == ESSENTIAL:
        return current_amount
    if bucket_type == DISCRETIONARY:
        limit = monthly_income * config["discretionary_limit_percentage"] / 100
        return min(maximum, limit)
    return max(0.0, maximum)


class SpendingValidationStatus(Enum):
    VALID = "valid"
    WARNING = "warning"
    HARD_LIMIT = "hard_limit"


@dataclass(frozen=True)
class DiscretionarySpendingValidation:
    """Result of checking a discretionary amount against income."""
    status: SpendingValidationStatus
    percentage: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.status != SpendingValidationStatus.HARD_LIMIT

    @property
    def message(self) -> str:
        if self.status == SpendingValidationStatus.WARNING:
            return (
                f"Discretionary spending is at {int(self.percentage)}%. "
                "Consider keeping it below 35% for better financial health."
            )
        if self.status == SpendingValidationStatus.HARD_LIMIT:
            return (
                f"Discretionary spending limit exceeded ({int(self.percentage)}%). "
                "Please reduce to 50% or less of your income."
            )
        return ""


def validate_discretionary_spending(
    amount: float,
    monthly_income: float,
    config: Optional[Dict] = None
) -> DiscretionarySpendingValidation:
    """Warn at 35% of income, block at 50%."""
    config = config or RECOMMENDATION_CONFIG
    if monthly_income <= 0:
        return DiscretionarySpendingValidation(SpendingValidationStatus.VALID)

    percentage = amount / monthly_income * 100
    if percentage >= config["discretionary_limit_percentage"]:
        return DiscretionarySpendingValidation(SpendingValidationStatus.HARD_LIMIT, percentage)
    if percentage >= config["discretionary_warning_percentage"]:
        return DiscretionarySpendingValidation(SpendingValidationStatus.WARNING, percentage)
    return DiscretionarySpendingValidation(SpendingValidationStatus.VALID, percentage)


def effective_emergency_duration(target_amount: Optional[float], essential_spending: float) -> int:
    """Snap an emergency fund target to 3, 6 or 12 months of essential spending."""
    if target_amount is None or essential_spending <= 0:
        return 6
    months = round_half_up(target_amount / essential_spending)
    if months <= 4:
        return 3
    if months <= 9:
        return 6
    return 12


# ---------------------------------------------------------------------------
# Presets, options and projections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PresetOption:
    amount: int
    percentage: float


def preset_options(monthly_income: float, low: float, recommended: float, high: float) -> Dict[str, PresetOption]:
    """Low / recommended / high monthly amounts for the given percentages."""
    return {
        name: PresetOption(round_half_up(monthly_income * pct / 100), pct)
        for name, pct in (("low", low), ("recommended", recommended), ("high", high))
    }


@dataclass(frozen=True)
class EmergencyFundOption:
    """One emergency fund duration with contribution presets."""
    months: int
    target_amount: int
    shortfall: float
    contributions: Dict[str, PresetOption]
    is_recommended: bool


def emergency_fund_options(
    essential_spending: float,
    current_balance: float,
    income_stability: IncomeStabilityLevel,
    monthly_income: float,
    config: Optional[Dict] = None
) -> List[EmergencyFundOption]:
    """
    Options for 3, 6 and 12 months of coverage.

    The shortfall is spread over 24 months (low), 12 or 18 months
    (recommended; 12 when more than half the target is missing) and 8 months
    (high).
    """
    config = config or RECOMMENDATION_CONFIG
    recommended_months = income_stability.recommended_emergency_months

    options = []
    for months in config["emergency_durations"]:
        target = round_half_up(essential_spending * months)
        shortfall = max(0.0, target - current_balance)
        if shortfall > 0:
            period = 12 if shortfall > target * 0.5 else 18
            amounts = {
                "low": round_half_up(shortfall / 24),
                "recommended": round_half_up(shortfall / period),
                "high": round_half_up(shortfall / 8),
            }
        else:
            amounts = {"low": 0, "recommended": 0, "high": 0}
        contributions = {
            name: PresetOption(amount, _percentage_of(amount, monthly_income))
            for name, amount in amounts.items()
        }
        options.append(EmergencyFundOption(
            months=months,
            target_amount=target,
            shortfall=shortfall,
            contributions=contributions,
            is_recommended=months == recommended_months,
        ))
    return options


def project_investment_growth(
    current_balance: float,
    monthly_contribution: float,
    years: int,
    annual_return: Optional[float] = None
) -> int:
    """Future value with monthly compounding and monthly contributions."""
    if annual_return is None:
        annual_return = RECOMMENDATION_CONFIG["annual_return"]
    rate = annual_return / 12
    months = years * 12
    growth = (1 + rate) ** months
    if rate == 0:
        return round_half_up(current_balance + monthly_contribution * months)
    return round_half_up(current_balance * growth + monthly_contribution * (growth - 1) / rate)


@dataclass(frozen=True)
class DebtPayoff:
    """Payoff timeline at a fixed monthly payment."""
    months: Optional[int]
    interest_paid: float
    interest_saved: float

    @property
    def is_payable(self) -> bool:
        return self.months is not None


def _amortize(balance: float, payment: float, monthly_rate: float, max_months: int) -> Tuple[Optional[int], float]:
    months = 0
    interest_total = 0.0
    while balance > 0 and months < max_months:
        interest = balance * monthly_rate
        principal = payment - interest
        if principal <= 0:
            return None, interest_total
        interest_total += interest
        balance -= principal
        months += 1
    if balance > 0:
        return None, interest_total
    return months, interest_total


def debt_payoff(
    total_debt: float,
    monthly_payment: float,
    apr: Optional[float] = None,
    config: Optional[Dict] = None
) -> DebtPayoff:
    """
    Months to clear ``total_debt`` and interest saved against paying only
    the card-style minimum (3% of the balance, at least $25).

    ``months`` is None when the payment never covers the interest.
    """
    config = config or RECOMMENDATION_CONFIG
    if total_debt <= 0:
        return DebtPayoff(months=0, interest_paid=0.0, interest_saved=0.0)
    if monthly_payment <= 0:
        return DebtPayoff(months=None, interest_paid=0.0, interest_saved=0.0)

    apr = config["payoff_apr"] if apr is None else apr
    monthly_rate = apr / 12
    max_months = config["max_payoff_months"]

    months, interest = _amortize(total_debt, monthly_payment, monthly_rate, max_months)
    if months is None:
        return DebtPayoff(months=None, interest_paid=interest, interest_saved=0.0)

    minimum = max(total_debt * config["minimum_payment_rate"], config["minimum_payment_floor"])
    _, minimum_interest = _amortize(total_debt, minimum, monthly_rate, max_months)
    return DebtPayoff(
        months=months,
        interest_paid=interest,
        interest_saved=max(0.0, minimum_interest - interest),
    )


# ---------------------------------------------------------------------------
# Recommendation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BucketRecommendation:
    """Recommended monthly amount for one allocation bucket."""
    bucket_type: AllocationBucketType
    amount: float
    percentage: int
    explanation: str
    target_amount: Optional[float] = None
    months_to_target: Optional[int] = None


@dataclass(frozen=True)
class DebtPaydownRecommendation:
    amount: float
    percentage: int
    total_debt: float
    payoff: DebtPayoff
    presets: Dict[str, PresetOption] = field(default_factory=dict)


@dataclass(frozen=True)
class AllocationPlan:
    """A full split of monthly income."""
    monthly_income: float
    allocations: Tuple[BucketRecommendation, ...]
    emergency_fund_target: float
    emergency_target_months: int
    based_on: str
    debt_paydown: Optional[DebtPaydownRecommendation] = None
    presets: Dict[AllocationBucketType, Dict[str, PresetOption]] = field(default_factory=dict)
    emergency_options: Tuple[EmergencyFundOption, ...] = ()
    investment_projection: Dict[int, int] = field(default_factory=dict)

    def get(self, bucket_type: AllocationBucketType) -> BucketRecommendation:
        for allocation in self.allocations:
            if allocation.bucket_type == bucket_type:
                return allocation
        raise KeyError(bucket_type)

    @property
    def amounts(self) -> Dict[AllocationBucketType, float]:
        return {a.bucket_type: a.amount for a in self.allocations}

    @property
    def total_allocated(self) -> float:
        debt = self.debt_paydown.amount if self.debt_paydown else 0.0
        return sum(a.amount for a in self.allocations) + debt

    def per_paycheck_amounts(self, frequency: PaycheckFrequency) -> Dict[AllocationBucketType, float]:
        """Monthly amounts converted to one paycheck, ready for ``AllocationScheduler``."""
        factor = 12 / frequency.paychecks_per_year
        return {bucket: round(amount * factor, 2) for bucket, amount in self.amounts.items()}


class AllocationRecommender:
    """Builds an ``AllocationPlan`` from income, spending, balances and health metrics."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = dict(RECOMMENDATION_CONFIG)
        if config:
            self.config.update(config)

    def spending_percentages(self, essential_spending: float, discretionary_spending: float) -> Tuple[int, int]:
        """Blend the baseline split with the actual essential/discretionary ratio."""
        baseline = self.config["baseline_percentages"]
        essential_pct = baseline["essential"]
        discretionary_pct = baseline["discretionary"]
        if essential_spending <= 0 or discretionary_spending <= 0:
            return essential_pct, discretionary_pct

        cap = self.config["spending_cap_percentage"]
        ratio = essential_spending / (essential_spending + discretionary_spending)
        essential_pct = round_half_up(0.5 * essential_pct + 0.5 * ratio * cap)
        discretionary_pct = round_half_up(0.5 * discretionary_pct + 0.5 * (1 - ratio) * cap)

        total = essential_pct + discretionary_pct
        if total > cap:
            scale = cap / total
            essential_pct = round_half_up(essential_pct * scale)
            discretionary_pct = round_half_up(discretionary_pct * scale)
        return essential_pct, discretionary_pct

    def savings_period(self, health_score: float, emergency_months: float, debt: float, monthly_income: float) -> int:
        """Months to build the emergency fund; shorter when finances are fragile."""
        periods = self.config["savings_periods"]
        if health_score < 40 or emergency_months < 3:
            return periods["aggressive"]
        if health_score < 70 or emergency_months < 4.5:
            return periods["moderate"]
        if debt > monthly_income * 3:
            return periods["moderate"]
        return periods["standard"]

    @staticmethod
    def _absorb_remainder(amounts: Dict[AllocationBucketType, float], remainder: float) -> None:
        # Largest flexible bucket first; earlier buckets win ties
        order = sorted(amounts, key=lambda bucket: -amounts[bucket])
        for bucket in order:
            adjusted = amounts[bucket] + remainder
            if adjusted >= 0:
                amounts[bucket] = adjusted
                return
            amounts[bucket] = 0
            remainder = adjusted

    def recommend(
        self,
        monthly_income: float,
        essential_spending: float = 0.0,
        discretionary_spending: float = 0.0,
        monthly_expenses: float = 0.0,
        emergency_balance: float = 0.0,
        investment_balance: float = 0.0,
        debt_balance: float = 0.0,
        health: Optional[FinancialHealthMetrics] = None
    ) -> AllocationPlan:
        """
        Recommend monthly amounts per bucket.

        Args:
            monthly_income: Average monthly income (must be positive)
            essential_spending: Monthly essential spending
            discretionary_spending: Monthly discretionary spending
            monthly_expenses: Monthly expenses, used when essential spending is unknown
            emergency_balance: Current emergency fund balance
            investment_balance: Current investment balance
            debt_balance: Current total debt
            health: Health metrics; neutral defaults are used when omitted

        Returns:
            AllocationPlan whose amounts sum to ``monthly_income``

        Raises:
            ValueError: If income is not positive or any other amount is negative
        """
        if monthly_income <= 0:
            raise ValueError("monthly_income must be a positive number")
        for name, value in (
            ("monthly_expenses", monthly_expenses),
            ("emergency_balance", emergency_balance),
            ("debt_balance", debt_balance),
        ):
            if value < 0:
                raise ValueError(f"{name} must be a non-negative number")

        if health is not None:
            health_score = health.health_score
            emergency_months = health.emergency_fund_months_covered
            stability = health.income_stability
        else:
            health_score = self.config["default_health_score"]
            emergency_months = 0.0
            stability = IncomeStabilityLevel.VARIABLE

        essential_base = (
            essential_spending if essential_spending > 0
            else monthly_expenses * self.config["essential_fallback_share"]
        )
        target_months = stability.recommended_emergency_months
        emergency_target = round_half_up(essential_base * target_months)
        shortfall = max(0.0, emergency_target - emergency_balance)

        essential_pct, discretionary_pct = self.spending_percentages(essential_spending, discretionary_spending)
        investment_pct = self.config["baseline_percentages"]["investments"]

        period = self.savings_period(health_score, emergency_months, debt_balance, monthly_income)
        emergency_amount = round_half_up(emergency_target / period)

        include_debt = debt_balance > self.config["debt_paydown_threshold"]
        debt_amount = (
            round_half_up(monthly_income * self.config["debt_paydown_percentage"] / 100)
            if include_debt else 0
        )

        essential_amount = round_half_up(monthly_income * essential_pct / 100)
        discretionary_amount = round_half_up(monthly_income * discretionary_pct / 100)
        investment_amount = round_half_up(monthly_income * investment_pct / 100)
        if include_debt:
            discretionary_amount = max(0, discretionary_amount - debt_amount)

        flexible = {
            EMERGENCY: emergency_amount,
            DISCRETIONARY: discretionary_amount,
            INVESTMENTS: investment_amount,
        }
        remainder = monthly_income - (essential_amount + debt_amount + sum(flexible.values()))
        self._absorb_remainder(flexible, remainder)

        emergency_final = flexible[EMERGENCY]
        months_to_target = 0
        if shortfall > 0 and emergency_final > 0:
            months_to_target = int(math.ceil(shortfall / emergency_final))

        allocations = (
            BucketRecommendation(
                ESSENTIAL, essential_amount, _percentage_of(essential_amount, monthly_income),
                f"Covers essential costs of about ${essential_base:,.0f} a month.",
            ),
            BucketRecommendation(
                EMERGENCY, emergency_final, _percentage_of(emergency_final, monthly_income),
                f"Builds toward {target_months} months of essential costs over about {period} months.",
                target_amount=float(emergency_target),
                months_to_target=months_to_target,
            ),
            BucketRecommendation(
                DISCRETIONARY, flexible[DISCRETIONARY],
                _percentage_of(flexible[DISCRETIONARY], monthly_income),
                "Room for dining out, entertainment, shopping and hobbies.",
            ),
            BucketRecommendation(
                INVESTMENTS, flexible[INVESTMENTS], _percentage_of(flexible[INVESTMENTS], monthly_income),
                "Long-term growth through retirement and brokerage accounts.",
            ),
        )

        debt_paydown = None
        if include_debt:
            low, recommended, high = self.config["debt_presets"]
            debt_paydown = DebtPaydownRecommendation(
                amount=debt_amount,
                percentage=_percentage_of(debt_amount, monthly_income),
                total_debt=debt_balance,
                payoff=debt_payoff(debt_balance, debt_amount, config=self.config),
                presets=preset_options(monthly_income, low, recommended, high),
            )

        disc_low, disc_high = self.config["discretionary_presets"]
        inv_low, inv_high = self.config["investment_presets"]
        presets = {
            DISCRETIONARY: preset_options(monthly_income, disc_low, discretionary_pct, disc_high),
            INVESTMENTS: preset_options(monthly_income, inv_low, investment_pct, inv_high),
        }

        based_on = (
            "50/30/20 rule adjusted for emergency fund priority" if shortfall > 0
            else "50/30/20 rule adjusted for your spending patterns"
        )
        plan = AllocationPlan(
            monthly_income=monthly_income,
            allocations=allocations,
            emergency_fund_target=float(emergency_target),
            emergency_target_months=target_months,
            based_on=based_on,
            debt_paydown=debt_paydown,
            presets=presets,
            emergency_options=tuple(emergency_fund_options(
                essential_base, emergency_balance, stability, monthly_income, self.config
            )),
            investment_projection={
                years: project_investment_growth(
                    investment_balance, flexible[INVESTMENTS], years, self.config["annual_return"]
                )
                for years in self.config["projection_years"]
            },
        )
        logger.info(
            "Recommended plan: essential=%.0f emergency=%.0f discretionary=%.0f investments=%.0f debt=%.0f",
            essential_amount, emergency_final, flexible[DISCRETIONARY], flexible[INVESTMENTS], debt_amount
        )
        return plan

    def recommend_from_analysis(
        self,
        snapshot: AnalysisSnapshot,
        health: Optional[FinancialHealthMetrics] = None
    ) -> AllocationPlan:
        """Recommend from an analysis snapshot and its health metrics."""
        flow = snapshot.monthly_flow
        position = snapshot.position
        return self.recommend(
            monthly_income=flow.income,
            essential_spending=health.essential_spending if health else 0.0,
            discretionary_spending=health.discretionary_spending if health else 0.0,
            monthly_expenses=flow.essential_expenses,
            emergency_balance=position.emergency_fund_balance,
            investment_balance=position.investment_balance,
            debt_balance=position.total_debt,
            health=health,
        )
