"""
Transaction classification patterns.
Keyword tables for Plaid-format transaction data: legacy category labels,
transaction names and PFC detailed-subclass markers.

All terms are upper-case and matched on word boundaries against normalised
text (see ``classification.pattern_matching.contains_term``).
"""

# ---------------------------------------------------------------------------
# Income (credits - negative amounts)
# ---------------------------------------------------------------------------

# Legacy category labels that mark income. Labels are normalised so that
# "Direct Deposit" and "DIRECT_DEPOSIT" both read "DIRECT DEPOSIT".
INCOME_CATEGORY_KEYWORDS = [
    "PAYROLL", "DIRECT DEPOSIT", "INTEREST", "INTEREST EARNED", "DIVIDEND",
    "DIVIDENDS", "TAX REFUND", "UNEMPLOYMENT", "SOCIAL SECURITY", "PENSION",
    "RETIREMENT PENSION", "WAGES", "SALARY",
]

INCOME_NAME_KEYWORDS = [
    "PAYROLL", "SALARY", "WAGES", "PAYCHECK", "DIRECT DEP", "DIR DEP",
    "DIRECTDEP", "PAYROLL DEPOSIT", "NET PAY", "ADP", "GUSTO", "PAYCHEX",
    "UNEMPLOYMENT", "SOCIAL SECURITY", "SSA TREAS", "PENSION", "ANNUITY",
]

# Generic credit wording only counts when nothing suggests a transfer
GENERIC_INCOME_TERMS = ["CREDIT", "DEPOSIT"]
GENERIC_INCOME_BLOCKERS = ["TRANSFER", "PAYMENT TO"]

# Always disqualify a name-based income match
INCOME_DISQUALIFIERS = [
    "REFUND", "RETURN", "RETURNED", "REVERSAL", "REVERSED", "ADJUSTMENT",
    "CASHBACK", "CASH BACK",
]

INTEREST_DIVIDEND_TERMS = ["INTEREST", "DIVIDEND", "DIVIDENDS"]

# Uncategorised inflows mentioning these are never promoted to income
FALLBACK_REJECT_TERMS = [
    "TRANSFER", "XFER", "FUNDING", "SAVINGS", "CONTRIBUTION",
    "INVESTMENT", "RETIREMENT",
]

# PFC TRANSFER_IN detailed subclasses that are not income
TRANSFER_IN_INTERNAL_MARKERS = ["ACCOUNT_TRANSFER"]
TRANSFER_IN_INVESTMENT_MARKERS = ["INVESTMENT", "RETIREMENT"]

# ---------------------------------------------------------------------------
# Investment contributions
# ---------------------------------------------------------------------------

TRANSFER_OUT_INVESTMENT_MARKERS = ["INVESTMENT", "RETIREMENT", "SAVINGS"]

INVESTMENT_CATEGORY_KEYWORDS = [
    "INVESTMENT", "INVESTMENTS", "RETIREMENT", "BROKERAGE", "401K", "IRA",
    "ROTH", "MUTUAL FUNDS",
]

INVESTMENT_PROVIDERS = [
    "VANGUARD", "FIDELITY", "CHARLES SCHWAB", "SCHWAB", "BETTERMENT",
    "WEALTHFRONT", "ROBINHOOD", "ETRADE", "E TRADE", "TD AMERITRADE",
    "MERRILL EDGE", "MERRILL LYNCH", "T ROWE PRICE", "ACORNS", "STASH",
    "M1 FINANCE", "EMPOWER RETIREMENT", "TIAA", "INTERACTIVE BROKERS",
]

CONTRIBUTION_TERMS = [
    "CONTRIBUTION", "CONTRIB", "DEPOSIT", "INVEST", "INVESTMENT", "401K",
    "IRA", "ROTH", "PURCHASE", "BUY", "AUTO INVEST", "RECURRING",
]

CONTRIBUTION_PHRASES = [
    "EMPLOYEE CONTRIBUTION", "EMPLOYER MATCH", "MONTHLY CONTRIBUTION",
]

# ---------------------------------------------------------------------------
# Internal transfers & debt servicing
# ---------------------------------------------------------------------------

INTERNAL_TRANSFER_DETAILED_MARKERS = ["ACCOUNT_TRANSFER", "CREDIT_CARD_PAYMENT"]

INTERNAL_TRANSFER_CATEGORY_KEYWORDS = [
    "INTERNAL ACCOUNT TRANSFER", "ACCOUNT TRANSFER", "CREDIT CARD",
]

# Legacy Plaid category ids: Transfer > Internal Account Transfer,
# Payment > Credit Card
INTERNAL_TRANSFER_CATEGORY_IDS = ["21001000", "16001000"]

TRANSFER_PATTERNS = {
    "keywords": [
        "ONLINE TRANSFER", "INTERNAL TRANSFER", "MOBILE TRANSFER",
        "TRANSFER TO", "TRANSFER FROM", "XFER", "OWN ACCOUNT",
        "BALANCE TRANSFER", "AUTOPAY", "AUTO PAY", "AUTOMATIC PAYMENT",
        "CREDIT CARD PAYMENT", "CARD PAYMENT", "PAYMENT THANK YOU",
        "THANK YOU FOR YOUR PAYMENT",
    ],
    "regex_patterns": [
        r"(?i)\b(tfr|trf)\b\s*(to|from)\b",
        r"(?i)\bpayment\s*-\s*thank\s*you\b",
    ],
    "description": "Internal Transfer / Debt Servicing",
}

DEBT_SERVICING_TERMS = [
    "CREDIT CARD", "CARD PAYMENT", "AUTOPAY", "AUTO PAY", "AUTOMATIC PAYMENT",
    "PAYMENT THANK YOU", "THANK YOU FOR YOUR PAYMENT", "LOAN", "MORTGAGE",
]

# ---------------------------------------------------------------------------
# Essential vs discretionary spending
# ---------------------------------------------------------------------------

ALWAYS_ESSENTIAL_PRIMARIES = [
    "RENT_AND_UTILITIES", "LOAN_PAYMENTS", "BANK_FEES",
    "GOVERNMENT_AND_NON_PROFIT", "MEDICAL", "HOME_IMPROVEMENT",
]

ALWAYS_DISCRETIONARY_PRIMARIES = ["TRAVEL", "ENTERTAINMENT"]

ESSENTIAL_FOOD_MARKERS = ["GROCERIES", "SUPERMARKET", "WAREHOUSE"]
DISCRETIONARY_TRANSPORT_MARKERS = ["AIRLINE", "HOTEL", "VACATION", "CRUISE", "RESORT"]
ESSENTIAL_MERCHANDISE_MARKERS = ["PHARMAC", "HEALTHCARE", "PET_FOOD"]
ESSENTIAL_SERVICE_MARKERS = ["CHILDCARE", "EDUCATION", "VETERINAR", "AUTOMOTIVE"]
INSURANCE_MARKER = "INSURANCE"

ESSENTIAL_NAME_KEYWORDS = [
    "RENT", "MORTGAGE", "LANDLORD", "PROPERTY MANAGEMENT",
    "UTILITY", "UTILITIES", "ELECTRIC", "ELECTRICITY", "WATER", "SEWER",
    "GAS", "GAS STATION", "GAS STATIONS", "FUEL",
    "GROCERY", "GROCERIES", "SUPERMARKET", "SUPERMARKETS",
    "PHARMACY", "PHARMACIES", "DRUGSTORE", "CVS", "WALGREENS",
    "INSURANCE", "TRANSIT", "PUBLIC TRANSPORTATION", "METRO",
    "CHILDCARE", "DAYCARE", "TUITION", "HEALTHCARE", "DOCTOR", "HOSPITAL",
    "DENTIST", "INTERNET", "PHONE",
]

# ---------------------------------------------------------------------------
# Expense sub-buckets
# ---------------------------------------------------------------------------

EXPENSE_SUBSCRIPTION_MARKERS = [
    "SUBSCRIPTION", "STREAMING", "MEMBERSHIP", "GYM", "FITNESS",
]
EXPENSE_HOUSING_MARKERS = ["RENT", "MORTGAGE"]
EXPENSE_TRAVEL_TRANSPORT_MARKERS = ["AIRLINE", "AIRLINES", "TAXI", "RIDE", "TRANSIT"]
EXPENSE_PHARMACY_MARKERS = ["PHARMAC", "HEALTHCARE"]
EXPENSE_AUTO_LOAN_MARKERS = ["CAR_PAYMENT", "AUTO"]

# Legacy keyword fallback, best match wins (regex +2, keyword +1)
EXPENSE_CATEGORY_PATTERNS = {
    "housing": {
        "keywords": [
            "RENT", "MORTGAGE", "LANDLORD", "HOA", "PROPERTY MANAGEMENT",
            "HOME IMPROVEMENT", "APARTMENT",
        ],
        "regex_patterns": [r"(?i)\brent(al)?\s+payment\b", r"(?i)\bmortgage\s+payment\b"],
        "description": "Housing",
    },
    "food": {
        "keywords": [
            "GROCERY", "GROCERIES", "SUPERMARKET", "SUPERMARKETS", "RESTAURANT",
            "RESTAURANTS", "FOOD AND DRINK", "COFFEE", "FAST FOOD",
            "WHOLE FOODS", "TRADER JOE", "SAFEWAY", "KROGER", "STARBUCKS",
        ],
        "regex_patterns": [r"(?i)\bsupermarkets?\s+and\s+groceries\b"],
        "description": "Food",
    },
    "transportation": {
        "keywords": [
            "GAS STATION", "GAS STATIONS", "FUEL", "UBER", "LYFT", "TRANSIT",
            "PUBLIC TRANSPORTATION", "PARKING", "TOLL", "AIRLINES", "TAXI",
            "SHELL", "CHEVRON", "EXXON",
        ],
        "regex_patterns": [r"(?i)\bpublic\s+transportation\s+services\b"],
        "description": "Transportation",
    },
    "utilities": {
        "keywords": [
            "UTILITIES", "UTILITY", "ELECTRIC", "ELECTRICITY", "WATER", "SEWER",
            "INTERNET", "CABLE", "TELECOMMUNICATION SERVICES", "PHONE",
            "COMCAST", "VERIZON",
        ],
        "regex_patterns": [r"(?i)\b(gas|electric)\s+(bill|company|utility)\b"],
        "description": "Utilities",
    },
    "insurance": {
        "keywords": ["INSURANCE", "GEICO", "STATE FARM", "PROGRESSIVE", "ALLSTATE"],
        "regex_patterns": [r"(?i)\binsurance\s+(premium|payment)\b"],
        "description": "Insurance",
    },
    "subscriptions": {
        "keywords": [
            "NETFLIX", "SPOTIFY", "HULU", "DISNEY PLUS", "SUBSCRIPTION",
            "STREAMING", "MEMBERSHIP", "GYM", "GYMS AND FITNESS CENTERS",
        ],
        "regex_patterns": [r"(?i)\b(monthly|annual)\s+(subscription|membership)\b"],
        "description": "Subscriptions",
    },
    "healthcare": {
        "keywords": [
            "PHARMACY", "PHARMACIES", "HEALTHCARE", "MEDICAL", "DOCTOR",
            "DENTIST", "DENTAL", "HOSPITAL", "CVS", "WALGREENS",
        ],
        "regex_patterns": [r"(?i)\bhealthcare\s+services\b"],
        "description": "Healthcare",
    },
}
