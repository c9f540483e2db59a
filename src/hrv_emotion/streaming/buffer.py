"""Sample validation and the time-bounded sliding window."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta
from typing import Any

from hrv_emotion.features.cleaning import MAX_VALID_HR, MIN_VALID_HR
from hrv_emotion.models import BufferStats, Sample

# Slack allowed when deciding that the window span has been reached.
WINDOW_TOLERANCE = timedelta(seconds=2)


def validate_sample(hr: Any, rr_intervals_ms: Any) -> str | None:
    """Return ``None`` for an acceptable sample, else a rejection reason.

    Only whole-sample checks happen here; per-RR artifacts are removed
    during feature extraction.  Never raises, whatever the input types.
    """
    if isinstance(hr, bool) or not isinstance(hr, (int, float)):
        return f"HR {hr!r} is not a number"
    if not MIN_VALID_HR <= hr <= MAX_VALID_HR:
        return f"HR {hr} outside valid range {MIN_VALID_HR}-{MAX_VALID_HR} bpm"
    if rr_intervals_ms is None:
        return "empty RR intervals"
    if isinstance(rr_intervals_ms, (str, bytes)) or not isinstance(rr_intervals_ms, Sequence):
        return f"RR intervals must be a sequence, got {type(rr_intervals_ms).__name__}"
    if not rr_intervals_ms:
        return "empty RR intervals"
    return None


class SlidingWindowBuffer:
    """Insertion-ordered samples no older than *window* after each trim.

    Timestamps are assumed non-decreasing but this is not enforced: ``trim``
    only removes the expired *prefix*.  The buffer has no locking and must
    have a single owner (see :class:`~hrv_emotion.inference.engine.EmotionEngine`).
    """

    def __init__(self, window: timedelta) -> None:
        if window <= timedelta(0):
            raise ValueError("window must be positive")
        self.window = window
        self._samples: deque[Sample] = deque()

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    # ── Mutation ──────────────────────────────────────────────

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def trim(self, now: datetime) -> int:
        """Drop samples with ``timestamp < now - window``; return how many."""
        cutoff = now - self.window
        removed = 0
        while self._samples and self._samples[0].timestamp < cutoff:
            self._samples.popleft()
            removed += 1
        return removed

    def clear(self) -> None:
        self._samples.clear()

    # ── Queries ───────────────────────────────────────────────

    @property
    def oldest(self) -> Sample | None:
        return self._samples[0] if self._samples else None

    def is_window_complete(self, now: datetime, tolerance: timedelta = WINDOW_TOLERANCE) -> bool:
        """True once the oldest sample spans (almost) the whole window."""
        if not self._samples:
            return False
        return now - self._samples[0].timestamp >= self.window - tolerance

    def snapshot(self) -> tuple[Sample, ...]:
        return tuple(self._samples)

    def hr_values(self) -> list[float]:
        return [s.hr for s in self._samples]

    def rr_intervals(self) -> list[float]:
        return [rr for s in self._samples for rr in s.rr_intervals_ms]

    def rr_count(self) -> int:
        return sum(len(s.rr_intervals_ms) for s in self._samples)

    def motion_totals(self) -> dict[str, float] | None:
        """Key-wise sum of motion maps; ``None`` when no sample has one."""
        totals: dict[str, float] | None = None
        for s in self._samples:
            if s.motion is None:
                continue
            if totals is None:
                totals = {}
            for key, value in s.motion.items():
                totals[key] = totals.get(key, 0.0) + value
        return totals

    def stats(self) -> BufferStats:
        if not self._samples:
            return BufferStats()
        hr = self.hr_values()
        duration = self._samples[-1].timestamp - self._samples[0].timestamp
        return BufferStats(
            count=len(self._samples),
            duration_ms=int(duration.total_seconds() * 1000),
            hr_range=(min(hr), max(hr)),
            rr_count=self.rr_count(),
        )
