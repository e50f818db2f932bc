"""
Preprocessing utilities for transaction classification.
Handles text normalisation of names, merchants and legacy category labels.
"""

import re
from typing import Iterable, List, Optional, Tuple


_SEPARATORS = re.compile(r"[_\-*.,#:;()\[\]]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """
    Normalize text for matching.

    Args:
        text: Raw text to normalize

    Returns:
        Upper-case text with punctuation separators folded into single spaces
    """
    if not text:
        return ""
    text = _SEPARATORS.sub(" ", str(text).upper())
    return _WHITESPACE.sub(" ", text).strip()


def combine_name_merchant(name: Optional[str], merchant_name: Optional[str]) -> Tuple[str, str, str]:
    """
    Combine transaction name and merchant name for classification.

    Args:
        name: Transaction name
        merchant_name: Optional merchant name

    Returns:
        Tuple of (normalized_name, normalized_merchant, combined_text)
    """
    text = normalize_text(name)
    merchant_text = normalize_text(merchant_name) if merchant_name else ""
    if merchant_text and merchant_text in text:
        return text, merchant_text, text
    combined_text = f"{text} {merchant_text}".strip()

    return text, merchant_text, combined_text


def normalize_labels(labels: Iterable[str]) -> List[str]:
    """Normalize legacy category labels, dropping empty ones."""
    return [label for label in (normalize_text(raw) for raw in labels) if label]


def legacy_text(labels: Iterable[str]) -> str:
    """Join normalized legacy labels into a single searchable string."""
    return " | ".join(normalize_labels(labels))
