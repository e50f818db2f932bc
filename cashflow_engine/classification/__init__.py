"""
Classification Module for the cashflow engine.

Orchestrates transaction classification through:
- Preprocessing (normalisation of names and legacy labels)
- Pattern matching (word-boundary keywords, regex, rapidfuzz)
- Named rule chains (income, investment, transfer, essential, bucket)
"""

from .engine import TransactionClassifier, ClassificationResult
from .preprocess import normalize_text, normalize_labels, combine_name_merchant
from .pattern_matching import (
    contains_term,
    find_term,
    match_keywords,
    match_regex_patterns,
    match_pattern_dict,
)
from .rules import (
    Rule,
    RuleChain,
    RuleOutcome,
    TransactionContext,
    map_structured_to_bucket,
)

__all__ = [
    "TransactionClassifier",
    "ClassificationResult",
    "normalize_text",
    "normalize_labels",
    "combine_name_merchant",
    "contains_term",
    "find_term",
    "match_keywords",
    "match_regex_patterns",
    "match_pattern_dict",
    "Rule",
    "RuleChain",
    "RuleOutcome",
    "TransactionContext",
    "map_structured_to_bucket",
]
