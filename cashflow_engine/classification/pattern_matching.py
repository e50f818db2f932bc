"""
Generic Pattern Matching for Transaction Classification.

Provides reusable keyword and regex matching. Keywords match on word
boundaries so that "RENT" does not fire inside "CURRENT"; rapidfuzz
partial matching catches misspelt merchant names.
"""

import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz


@lru_cache(maxsize=1024)
def _term_regex(term: str):
    return re.compile(r"(?<![A-Z0-9])" + re.escape(term) + r"(?![A-Z0-9])")


def contains_term(text: str, term: str) -> bool:
    """Return True if ``term`` occurs in ``text`` as a whole word or phrase."""
    if not text or not term:
        return False
    return _term_regex(term).search(text) is not None


def find_term(text: str, terms: Iterable[str]) -> Optional[str]:
    """Return the first term found in ``text``, or None."""
    for term in terms:
        if contains_term(text, term):
            return term
    return None


def match_keywords(
    text: str,
    keywords: List[str],
    fuzzy_threshold: Optional[int] = 80
) -> Optional[Tuple[str, float, str]]:
    """
    Match text against a list of keywords.

    Uses whole-word matching first, then rapidfuzz partial matching unless
    ``fuzzy_threshold`` is None.

    Args:
        text: Normalized text to match
        keywords: List of keyword strings
        fuzzy_threshold: Minimum score for fuzzy matching (0-100)

    Returns:
        Tuple of (matched_keyword, confidence, match_method) or None

    Example:
        >>> match_keywords("VANGUARD BUY", ["VANGUARD", "FIDELITY"])
        ("VANGUARD", 1.0, "keyword")
    """
    term = find_term(text, keywords)
    if term:
        return (term, 1.0, "keyword")

    if fuzzy_threshold is None or not text:
        return None

    best_score = 0.0
    best_match = None
    for keyword in keywords:
        score = fuzz.partial_ratio(keyword, text)
        if score > best_score and score >= fuzzy_threshold:
            best_score = score
            best_match = keyword

    if best_match:
        return (best_match, best_score / 100.0, "fuzzy")

    return None


def match_regex_patterns(
    text: str,
    patterns: List[str]
) -> Optional[Tuple[str, float, str]]:
    """
    Match text against a list of regex patterns.

    Args:
        text: Text to match
        patterns: List of regex pattern strings

    Returns:
        Tuple of (matched_pattern, confidence, match_method) or None
    """
    for pattern in patterns:
        if re.search(pattern, text):
            return (pattern, 1.0, "regex")

    return None


def match_pattern_dict(
    text: str,
    pattern_dict: Dict[str, Dict],
    fuzzy_threshold: Optional[int] = 80
) -> Optional[Tuple[str, float, str, Dict]]:
    """
    Match text against a pattern dictionary.

    Pattern dict format:
    {
        "category_name": {
            "keywords": ["KEYWORD1", "KEYWORD2"],
            "regex_patterns": [r"(?i)pattern1", r"(?i)pattern2"],
            "description": "Category Description",
        }
    }

    Scoring: regex matches get +2, keyword matches get +1.
    Returns the best matching category; ties keep the earlier entry.

    Args:
        text: Normalized text to match
        pattern_dict: Dictionary of pattern definitions
        fuzzy_threshold: Minimum score for fuzzy matching

    Returns:
        Tuple of (category_name, confidence, match_method, pattern_info) or None
    """
    best_match = None
    best_score = 0

    for category_name, pattern_info in pattern_dict.items():
        score = 0
        matched_method = None

        regex_patterns = pattern_info.get("regex_patterns", [])
        if regex_patterns and match_regex_patterns(text, regex_patterns):
            score += 2
            matched_method = "regex"

        keywords = pattern_info.get("keywords", [])
        if keywords:
            keyword_match = match_keywords(text, keywords, fuzzy_threshold)
            if keyword_match:
                score += 1
                if not matched_method:
                    matched_method = keyword_match[2]

        if score > best_score:
            best_score = score
            confidence = 0.95 if score >= 2 else 0.85
            best_match = (category_name, confidence, matched_method, pattern_info)

    return best_match
