"""RR artifact removal and physiological limits."""

from __future__ import annotations

import math
from typing import Iterable

# Physiological limits
MIN_VALID_RR_MS = 300.0  # 200 bpm
MAX_VALID_RR_MS = 2000.0  # 30 bpm
MAX_RR_JUMP_MS = 250.0  # larger beat-to-beat jumps are treated as artifacts
MIN_VALID_HR = 30.0
MAX_VALID_HR = 300.0


def filter_rr_range(rr_intervals_ms: Iterable[float]) -> list[float]:
    """Keep finite RR values within [``MIN_VALID_RR_MS``, ``MAX_VALID_RR_MS``]."""
    return [
        float(rr)
        for rr in rr_intervals_ms
        if math.isfinite(rr) and MIN_VALID_RR_MS <= rr <= MAX_VALID_RR_MS
    ]


def clean_rr_intervals(rr_intervals_ms: Iterable[float]) -> list[float]:
    """Drop out-of-range RR values and artifact jumps.

    A value is dropped when it lies outside
    [``MIN_VALID_RR_MS``, ``MAX_VALID_RR_MS``] or differs from the last
    *retained* value by more than ``MAX_RR_JUMP_MS``.  Dropped values never
    become the jump reference.
    """
    cleaned: list[float] = []
    for rr in filter_rr_range(rr_intervals_ms):
        if cleaned and abs(rr - cleaned[-1]) > MAX_RR_JUMP_MS:
            continue
        cleaned.append(rr)
    return cleaned
