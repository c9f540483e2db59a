"""Frequency-domain HRV descriptors.

The RR series is resampled onto a uniform 4 Hz grid, tapered with a single
Hann window and transformed with a direct DFT.  This is a one-segment
periodogram, not Welch averaging: windows are short (tens to a few hundred
beats) and the O(n²) transform stays cheap at that size.
"""

from __future__ import annotations

import bisect
import math
from typing import NamedTuple, Sequence

SAMPLING_RATE_HZ = 4.0

VLF_BAND = (0.0033, 0.04)
LF_BAND = (0.04, 0.15)
HF_BAND = (0.15, 0.4)

_MIN_RR_COUNT = 10
_MIN_RESAMPLED_POINTS = 16


class FrequencyBands(NamedTuple):
    vlf: float = 0.0
    lf: float = 0.0
    hf: float = 0.0
    lf_nu: float = 0.0
    hf_nu: float = 0.0
    lf_hf: float = 0.0
    total_power: float = 0.0


def resample_rr(rr_intervals_ms: Sequence[float], sampling_rate: float = SAMPLING_RATE_HZ) -> list[float]:
    """Linearly interpolate RR values onto a uniform time grid.

    Beat *i* starts at the cumulative sum of the preceding intervals.  A grid
    point falling inside beat *i* is interpolated between ``rr[i]`` and
    ``rr[i + 1]``; the final beat holds its own value.
    """
    if not rr_intervals_ms:
        return []

    times = [0.0]
    for rr in rr_intervals_ms:
        times.append(times[-1] + rr)

    dt = 1000.0 / sampling_rate
    num_samples = math.floor(times[-1] / dt)
    if num_samples < 2:
        return []

    last = len(rr_intervals_ms) - 1
    resampled: list[float] = []
    for i in range(num_samples):
        t = i * dt
        idx = max(bisect.bisect_left(times, t) - 1, 0)
        rr0 = rr_intervals_ms[idx]
        rr1 = rr_intervals_ms[idx + 1] if idx < last else rr0
        span = times[idx + 1] - times[idx]
        alpha = (t - times[idx]) / span if span else 0.0
        resampled.append(rr0 + alpha * (rr1 - rr0))
    return resampled


def hann_window(signal: Sequence[float]) -> list[float]:
    n = len(signal)
    if n < 2:
        return list(signal)
    return [x * 0.5 * (1 - math.cos(2 * math.pi * i / (n - 1))) for i, x in enumerate(signal)]


def power_spectrum(signal: Sequence[float]) -> list[float]:
    """One-sided power spectrum ``|X[k]|² / n`` for ``k < n // 2``."""
    n = len(signal)
    psd = [0.0] * (n // 2)
    for k in range(n // 2):
        real = 0.0
        imag = 0.0
        for i, x in enumerate(signal):
            angle = -2 * math.pi * k * i / n
            real += x * math.cos(angle)
            imag += x * math.sin(angle)
        psd[k] = (real * real + imag * imag) / n
    return psd


def band_power(psd: Sequence[float], low: float, high: float, sampling_rate: float = SAMPLING_RATE_HZ) -> float:
    """Integrate bins whose frequency lies in ``[low, high)``."""
    if not psd:
        return 0.0
    resolution = sampling_rate / (2 * len(psd))
    power = sum(p for k, p in enumerate(psd) if low <= k * resolution < high)
    return power * resolution


def frequency_domain(rr_intervals_ms: Sequence[float], raw_count: int | None = None) -> FrequencyBands:
    """Compute VLF/LF/HF band powers and their derived ratios.

    The minimum-length gate applies to *raw_count* when given, which callers
    set to the number of in-range RR values before jump filtering.  Without
    it the length of *rr_intervals_ms* is used.
    """
    count = len(rr_intervals_ms) if raw_count is None else raw_count
    if count < _MIN_RR_COUNT:
        return FrequencyBands()

    resampled = resample_rr(rr_intervals_ms)
    if len(resampled) < _MIN_RESAMPLED_POINTS:
        return FrequencyBands()

    psd = power_spectrum(hann_window(resampled))
    vlf = band_power(psd, *VLF_BAND)
    lf = band_power(psd, *LF_BAND)
    hf = band_power(psd, *HF_BAND)

    lf_hf_sum = lf + hf
    return FrequencyBands(
        vlf=vlf,
        lf=lf,
        hf=hf,
        lf_nu=lf / lf_hf_sum if lf_hf_sum > 0 else 0.0,
        hf_nu=hf / lf_hf_sum if lf_hf_sum > 0 else 0.0,
        lf_hf=lf / hf if hf > 0 else 0.0,
        total_power=vlf + lf + hf,
    )
