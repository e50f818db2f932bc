"""
Income Module for the cashflow engine.

Contains paycheck cadence detection and the paycheck schedule model.
"""

from .paycheck_detector import PaycheckDetector, PaycheckCandidate, DetectionResult
from .paycheck_schedule import (
    PaycheckSchedule,
    PaycheckFrequency,
    ScheduleConfidence,
    InvalidScheduleError,
)

__all__ = [
    "PaycheckDetector",
    "PaycheckCandidate",
    "DetectionResult",
    "PaycheckSchedule",
    "PaycheckFrequency",
    "ScheduleConfidence",
    "InvalidScheduleError",
]
