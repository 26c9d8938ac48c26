"""
Severity level (1-5) and trend direction for a weekly indicator.

Pure functions: callers pass the history they want classified against.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .constants import PERCENTILE_THRESHOLDS, SEVERITY_LEVELS, TREND_LOOKBACK, TREND_THRESHOLD

INCREASING = "increasing"
STABLE = "stable"
DECREASING = "decreasing"

MODERATE = 3


@dataclass(frozen=True)
class SeverityClassification:
    level: int
    trend: str

    @property
    def label(self) -> str:
        return SEVERITY_LEVELS[self.level][0]

    @property
    def color(self) -> str:
        return SEVERITY_LEVELS[self.level][1]

    def as_dict(self) -> dict:
        return {"level": self.level, "label": self.label, "color": self.color, "trend": self.trend}


def percentile(values: Sequence[float], p: float) -> float:
    """Linear interpolation at fractional index p/100 * (n - 1)."""
    return float(np.percentile(values, p))


def calculate_severity_level(current_value: Optional[float], historical_values) -> int:
    """
    Bucket `current_value` against the 20/40/60/80th percentiles of the
    non-null history. Thresholds are inclusive upper bounds.

    Returns 3 (moderate) when the value or the whole history is missing.
    """
    if current_value is None:
        return MODERATE

    valid = [v for v in historical_values if v is not None]
    if not valid:
        return MODERATE

    cut_points = np.percentile(valid, PERCENTILE_THRESHOLDS).tolist()
    for level, cut in enumerate(cut_points, start=1):
        if current_value <= cut:
            return level
    return len(cut_points) + 1


def calculate_trend(current_value: Optional[float], reference_value: Optional[float]) -> str:
    if current_value is None or reference_value is None:
        return STABLE

    if reference_value == 0:
        if current_value > 0:
            return INCREASING
        if current_value < 0:
            return DECREASING
        return STABLE

    change = (current_value - reference_value) / abs(reference_value)
    if change > TREND_THRESHOLD:
        return INCREASING
    if change < -TREND_THRESHOLD:
        return DECREASING
    return STABLE


def classify_series(values: Sequence[Optional[float]]) -> Optional[SeverityClassification]:
    """
    Classify the latest value of a week-ordered series: level against the
    whole series, trend against the value TREND_LOOKBACK periods earlier.
    """
    if not values:
        return None
    current = values[-1]
    reference = values[-1 - TREND_LOOKBACK] if len(values) > TREND_LOOKBACK else None
    return SeverityClassification(
        level=calculate_severity_level(current, values),
        trend=calculate_trend(current, reference),
    )
