"""Non-linear HRV descriptors: Poincaré ratio, sample entropy and DFA."""

from __future__ import annotations

import math
import statistics
from typing import Sequence

from hrv_emotion.features.time_domain import sdnn

DFA_BOX_SIZES: tuple[int, ...] = (4, 6, 8, 10, 12, 14, 16)
_DFA_MIN_LENGTH = 16


def _linear_slope(values: Sequence[float]) -> float:
    """Least-squares slope of *values* against their index."""
    n = len(values)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = statistics.fmean(values)
    numerator = sum((i - x_mean) * (v - y_mean) for i, v in enumerate(values))
    denominator = sum((i - x_mean) ** 2 for i in range(n))
    if denominator == 0:
        return 0.0
    return numerator / denominator


def _regression_slope(x: Sequence[float], y: Sequence[float]) -> float:
    """Least-squares slope of *y* on *x*."""
    if len(x) != len(y) or not x:
        return 0.0
    x_mean = statistics.fmean(x)
    y_mean = statistics.fmean(y)
    numerator = sum((a - x_mean) * (b - y_mean) for a, b in zip(x, y))
    denominator = sum((a - x_mean) ** 2 for a in x)
    if denominator == 0:
        return 0.0
    return numerator / denominator


# ── Poincaré plot ────────────────────────────────────────────


def sd1_sd2_ratio(rr: Sequence[float]) -> float:
    """SD1/SD2 from the Poincaré plot of consecutive RR pairs.

    ``SD1 = sqrt(0.5 * var(diff))`` with the population variance of the
    successive differences; ``SD2 = sqrt(2 * SDNN² - 0.5 * SD1²)`` clamped
    at zero.
    """
    if len(rr) < 3:
        return 0.0
    diffs = [b - a for a, b in zip(rr, rr[1:])]
    sd1 = math.sqrt(0.5 * statistics.pvariance(diffs))
    sd2_squared = 2 * sdnn(rr) ** 2 - 0.5 * sd1**2
    sd2 = math.sqrt(sd2_squared) if sd2_squared > 0 else 0.0
    return sd1 / sd2 if sd2 > 0 else 0.0


# ── Sample entropy ───────────────────────────────────────────


def _count_template_matches(signal: Sequence[float], m: int, r: float) -> int:
    """Pairs i < j whose length-*m* templates lie within Chebyshev distance *r*."""
    limit = len(signal) - m
    count = 0
    for i in range(limit):
        for j in range(i + 1, limit):
            if all(abs(signal[i + k] - signal[j + k]) <= r for k in range(m)):
                count += 1
    return count


def sample_entropy(rr: Sequence[float], m: int = 2, r: float | None = None) -> float:
    """Sample entropy, ``-ln(A / B)`` for template lengths ``m + 1`` and ``m``.

    *r* defaults to 0.2 × SDNN.  Returns 0.0 when the tolerance is zero or
    either match count is zero.
    """
    if len(rr) < m + 2:
        return 0.0
    tolerance = 0.2 * sdnn(rr) if r is None else r
    if tolerance == 0:
        return 0.0

    count_m = _count_template_matches(rr, m, tolerance)
    count_m1 = _count_template_matches(rr, m + 1, tolerance)
    if count_m == 0 or count_m1 == 0:
        return 0.0
    return -math.log(count_m1 / count_m)


# ── Detrended fluctuation analysis ───────────────────────────


def _dfa_fluctuation(profile: Sequence[float], box_size: int) -> float:
    """RMS residual around per-box linear trends for one box size."""
    num_boxes = len(profile) // box_size
    total = 0.0
    for b in range(num_boxes):
        segment = profile[b * box_size:(b + 1) * box_size]
        slope = _linear_slope(segment)
        intercept = statistics.fmean(segment) - slope * (box_size - 1) / 2
        total += sum((y - (intercept + slope * j)) ** 2 for j, y in enumerate(segment))
    return math.sqrt(total / (num_boxes * box_size))


def dfa_alpha1(rr: Sequence[float]) -> float:
    """Short-term DFA scaling exponent over box sizes 4-16 beats."""
    if len(rr) < _DFA_MIN_LENGTH:
        return 0.0

    mean = statistics.fmean(rr)
    profile: list[float] = []
    running = 0.0
    for value in rr:
        running += value - mean
        profile.append(running)

    log_sizes: list[float] = []
    log_fluctuations: list[float] = []
    for box_size in DFA_BOX_SIZES:
        if box_size > len(profile):
            break
        fluctuation = _dfa_fluctuation(profile, box_size)
        if fluctuation > 0:
            log_sizes.append(math.log(box_size))
            log_fluctuations.append(math.log(fluctuation))

    if len(log_sizes) < 2:
        return 0.0
    return _regression_slope(log_sizes, log_fluctuations)
