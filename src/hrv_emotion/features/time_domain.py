"""Time-domain HRV descriptors.

All functions expect an already cleaned RR series (see
:func:`hrv_emotion.features.cleaning.clean_rr_intervals`) and return 0.0
when the series is too short rather than raising.
"""

from __future__ import annotations

import math
import statistics
from typing import Sequence

_NN50_THRESHOLD_MS = 50.0


def extract_hr_mean(hr_values: Sequence[float]) -> float:
    """Arithmetic mean of raw HR samples; 0.0 for an empty window."""
    if not hr_values:
        return 0.0
    return statistics.fmean(hr_values)


def mean_rr(rr: Sequence[float]) -> float:
    if not rr:
        return 0.0
    return statistics.fmean(rr)


def sdnn(rr: Sequence[float]) -> float:
    """Sample standard deviation (N-1 divisor)."""
    if len(rr) < 2:
        return 0.0
    return statistics.stdev(rr)


def rmssd(rr: Sequence[float]) -> float:
    """Root mean square of successive differences (N-1 divisor)."""
    if len(rr) < 2:
        return 0.0
    squared = sum((b - a) ** 2 for a, b in zip(rr, rr[1:]))
    return math.sqrt(squared / (len(rr) - 1))


def pnn50(rr: Sequence[float]) -> float:
    """Percentage of successive differences larger than 50 ms."""
    if len(rr) < 2:
        return 0.0
    count = sum(1 for a, b in zip(rr, rr[1:]) if abs(b - a) > _NN50_THRESHOLD_MS)
    return 100.0 * count / (len(rr) - 1)


def heart_rate(mean_hr: float | None, mean_rr_ms: float) -> float:
    """Device-reported mean HR when available, else derived from mean RR."""
    if mean_hr is not None:
        return mean_hr
    if mean_rr_ms > 0:
        return 60000.0 / mean_rr_ms
    return 0.0
