"""
Configuration module for the cashflow engine.

This module contains all configuration dictionaries for analysis, detection,
debt estimation and scheduling.
"""

from .analysis_config import (
    ANALYSIS_CONFIG,
    EXPENSE_CONFIG,
    DETECTION_CONFIG,
    DEBT_CONFIG,
    SCHEDULER_CONFIG,
)
from .bucket_mapping_loader import load_bucket_mapping_csv, get_bucket_for_primary

__all__ = [
    "ANALYSIS_CONFIG",
    "EXPENSE_CONFIG",
    "DETECTION_CONFIG",
    "DEBT_CONFIG",
    "SCHEDULER_CONFIG",
    "load_bucket_mapping_csv",
    "get_bucket_for_primary",
]
