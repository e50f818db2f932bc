"""
Bucket mapping loader.
Loads CSV files that override the structured-primary -> bucket table.
"""

import csv
import logging
from typing import Dict, Optional
from pathlib import Path

from ..models.buckets import BucketCategory

logger = logging.getLogger(__name__)


def load_bucket_mapping_csv(csv_path: str) -> Dict[str, BucketCategory]:
    """
    Load a primary-category to bucket mapping from CSV.

    Args:
        csv_path: Path to CSV file containing the mapping

    Returns:
        Dictionary mapping upper-cased primary codes to buckets

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a row names an unknown bucket

    Example CSV format:
        primary,bucket
        INCOME,income
        TRAVEL,expenses
    """
    mapping = {}

    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Bucket mapping file not found: {csv_path}")

    with open(csv_path, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            primary = (row.get('primary') or '').strip().upper()
            if not primary:
                continue
            bucket = BucketCategory.parse(row.get('bucket'))
            if bucket is None:
                raise ValueError(
                    f"{csv_path}:{line_no}: unknown bucket {row.get('bucket')!r}"
                )
            mapping[primary] = bucket

    logger.debug("Loaded %d bucket mappings from %s", len(mapping), csv_path)
    return mapping


def get_bucket_for_primary(
    primary: str,
    mapping: Dict[str, BucketCategory]
) -> Optional[BucketCategory]:
    """Look up the bucket for a primary code, or None if unmapped."""
    return mapping.get((primary or "").upper())
