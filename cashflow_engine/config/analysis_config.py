"""
Analysis configuration for the cashflow engine.
Contains lookback windows, detection thresholds, debt rules and scheduler defaults.
"""

# Flow & position aggregation
ANALYSIS_CONFIG = {
    # Most recent months of non-pending transactions considered
    "lookback_months": 6,

    # Uncategorised inflows above this are treated as income (last-resort rule)
    "large_uncategorized_inflow": 500.0,

    # rapidfuzz partial_ratio thresholds (0-100)
    "provider_fuzzy_threshold": 85,
    "expense_fuzzy_threshold": 90,
}

# Expense breakdown
EXPENSE_CONFIG = {
    # Used when nothing contributed, meaning "unknown" rather than "zero"
    "default_confidence": 0.5,
    "confidence_levels": {
        "high": 0.85,
        "medium": 0.70,
    },
}

# Paycheck cadence detection
DETECTION_CONFIG = {
    "lookback_months": 6,
    "minimum_amount": 500.0,
    "amount_tolerance": 0.10,
    "minimum_occurrences": 2,

    # Average gap (days) upper bounds, checked in order; anything else is monthly
    "frequency_bounds": [
        {"max_days": 10, "frequency": "weekly"},
        {"max_days": 21, "frequency": "biweekly"},
        {"max_days": 28, "frequency": "semimonthly"},
    ],

    "count_scores": [
        {"min": 6, "score": 1.0},
        {"min": 4, "score": 0.7},
        {"min": 0, "score": 0.4},
    ],
    "variance_scores": [
        {"max": 0.05, "score": 1.0},
        {"max": 0.10, "score": 0.7},
    ],
    "variance_floor_score": 0.4,

    "confidence_cutoffs": {
        "high": 0.85,
        "medium": 0.55,
    },

    # Anchor fallbacks when history has nothing usable
    "default_weekday": 4,  # Friday
    "default_semimonthly_days": [1, 15],
    "default_monthly_day": 1,
}

# Debt minimum payment estimation
DEBT_CONFIG = {
    "minimum_payment_rules": {
        "credit": {"rate": 0.025, "floor": 25.0},
        "student": {"months": 120},
        "auto": {"months": 60},
        "mortgage": {"months": 360, "multiplier": 1.5},
        "personal": {"months": 36},
        "other": {"rate": 0.015},
    },

    # Loan subtypes mapped onto the rule keys above
    "subtype_aliases": {
        "student": "student",
        "auto": "auto",
        "mortgage": "mortgage",
        "home equity": "mortgage",
        "personal": "personal",
        "consumer": "personal",
    },

    # Annual rates used when the provider omits APR
    "default_apr": {
        "credit": 0.2299,
        "student": 0.055,
        "auto": 0.075,
        "mortgage": 0.068,
        "personal": 0.12,
        "other": 0.10,
    },
}

# Allocation scheduling
SCHEDULER_CONFIG = {
    "months_ahead": 3,
    "retention_months": 12,
    "preview_dates": 3,
}

# Financial health metrics
HEALTH_CONFIG = {
    "lookback_months": 6,
    "trend_months": 3,

    # Relative change below this is reported as stable
    "trend_threshold": 0.05,

    # Coefficient of variation of monthly income
    "stability_cutoffs": {
        "stable": 0.15,
        "variable": 0.30,
    },

    "emergency_target_months": 6,

    # Health score weights (points out of 100)
    "score_weights": {
        "savings": 30,
        "emergency_fund": 25,
        "debt": 20,
    },
    "stability_points": {
        "stable": 15,
        "variable": 10,
        "inconsistent": 5,
    },
    "spending_points": {
        "saving": 10,
        "not_saving": 5,
    },
}

# Allocation recommendations
RECOMMENDATION_CONFIG = {
    # Starting split before adjusting to actual spending
    "baseline_percentages": {
        "essential": 50,
        "discretionary": 20,
        "investments": 15,
    },
    "spending_cap_percentage": 70,

    # Minimum share of income per allocation bucket
    "minimum_percentages": {
        "essential": 0,
        "emergency": 10,
        "discretionary": 0,
        "investments": 5,
    },

    "discretionary_warning_percentage": 35,
    "discretionary_limit_percentage": 50,

    # Share of total expenses assumed essential when nothing is tracked
    "essential_fallback_share": 0.6,

    # Months to build the emergency fund, by urgency
    "savings_periods": {
        "aggressive": 12,
        "moderate": 18,
        "standard": 24,
    },

    "debt_paydown_threshold": 1000.0,
    "debt_paydown_percentage": 15,
    "debt_presets": [10, 15, 20],
    "discretionary_presets": [10, 20],
    "investment_presets": [5, 15],
    "emergency_durations": [3, 6, 12],

    # Assumed APR for payoff timelines
    "payoff_apr": 0.18,
    "minimum_payment_rate": 0.03,
    "minimum_payment_floor": 25.0,
    "max_payoff_months": 600,

    "annual_return": 0.07,
    "projection_years": [10, 20, 30],

    # Defaults when no health metrics are available yet
    "default_health_score": 50.0,
}
