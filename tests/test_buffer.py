"""Tests for sample validation and the sliding window buffer."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from hrv_emotion.models import BufferStats, Sample
from hrv_emotion.streaming import WINDOW_TOLERANCE, SlidingWindowBuffer, validate_sample

T0 = datetime(2026, 1, 10, 10, 0, tzinfo=timezone.utc)


def _sample(offset_s: float, hr: float = 70.0, rr=(800.0, 810.0), motion=None) -> Sample:
    return Sample(
        timestamp=T0 + timedelta(seconds=offset_s),
        hr=hr,
        rr_intervals_ms=list(rr),
        motion=motion,
    )


class TestValidateSample:
    def test_accepts_valid(self):
        assert validate_sample(70.0, [800.0]) is None

    @pytest.mark.parametrize("hr", [30.0, 300.0])
    def test_accepts_range_bounds(self, hr):
        assert validate_sample(hr, [800.0]) is None

    @pytest.mark.parametrize("hr", [29.9, 300.1, 350.0, 0.0])
    def test_rejects_out_of_range_hr(self, hr):
        reason = validate_sample(hr, [800.0])
        assert reason is not None
        assert "HR" in reason

    def test_rejects_empty_rr(self):
        assert validate_sample(70.0, []) == "empty RR intervals"

    @pytest.mark.parametrize("hr", [None, "72", True, [72.0]])
    def test_rejects_non_numeric_hr(self, hr):
        reason = validate_sample(hr, [800.0])
        assert reason is not None
        assert "not a number" in reason

    def test_rejects_missing_rr(self):
        assert validate_sample(70.0, None) == "empty RR intervals"

    @pytest.mark.parametrize("rr", ["800", 800.0, {800.0}])
    def test_rejects_non_sequence_rr(self, rr):
        reason = validate_sample(70.0, rr)
        assert reason is not None
        assert "sequence" in reason

    def test_rr_artifacts_are_not_rejected_here(self):
        assert validate_sample(70.0, [100.0, 5000.0]) is None


class TestSlidingWindowBuffer:
    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            SlidingWindowBuffer(timedelta(0))

    def test_append_and_iterate_in_order(self):
        buf = SlidingWindowBuffer(timedelta(seconds=10))
        for offset in (0, 1, 2):
            buf.append(_sample(offset))
        assert len(buf) == 3
        assert [s.timestamp for s in buf] == [T0 + timedelta(seconds=o) for o in (0, 1, 2)]
        assert buf.oldest is not None
        assert buf.oldest.timestamp == T0

    def test_trim_drops_expired_prefix(self):
        buf = SlidingWindowBuffer(timedelta(seconds=10))
        for offset in (0, 5, 10, 15):
            buf.append(_sample(offset))
        removed = buf.trim(T0 + timedelta(seconds=15))
        # Cutoff is t=5; a sample exactly at the cutoff is kept.
        assert removed == 1
        assert [s.timestamp for s in buf][0] == T0 + timedelta(seconds=5)

    def test_trim_is_prefix_only(self):
        buf = SlidingWindowBuffer(timedelta(seconds=10))
        buf.append(_sample(20))
        buf.append(_sample(0))  # out of order, behind a fresh sample
        assert buf.trim(T0 + timedelta(seconds=25)) == 0
        assert len(buf) == 2

    def test_trim_everything(self):
        buf = SlidingWindowBuffer(timedelta(seconds=10))
        buf.append(_sample(0))
        buf.append(_sample(1))
        assert buf.trim(T0 + timedelta(minutes=5)) == 2
        assert len(buf) == 0
        assert buf.oldest is None

    def test_window_complete_uses_tolerance(self):
        buf = SlidingWindowBuffer(timedelta(seconds=10))
        buf.append(_sample(0))
        assert WINDOW_TOLERANCE == timedelta(seconds=2)
        assert not buf.is_window_complete(T0 + timedelta(seconds=7.9))
        assert buf.is_window_complete(T0 + timedelta(seconds=8))
        assert buf.is_window_complete(T0 + timedelta(seconds=8), tolerance=timedelta(0)) is False

    def test_empty_window_is_never_complete(self):
        buf = SlidingWindowBuffer(timedelta(seconds=10))
        assert not buf.is_window_complete(T0 + timedelta(hours=1))

    def test_aggregates(self):
        buf = SlidingWindowBuffer(timedelta(seconds=60))
        buf.append(_sample(0, hr=65.0, rr=(900.0, 910.0)))
        buf.append(_sample(3, hr=80.0, rr=(750.0,)))
        assert buf.hr_values() == [65.0, 80.0]
        assert buf.rr_intervals() == [900.0, 910.0, 750.0]
        assert buf.rr_count() == 3

    def test_motion_totals(self):
        buf = SlidingWindowBuffer(timedelta(seconds=60))
        buf.append(_sample(0, motion={"steps": 10.0}))
        buf.append(_sample(1))
        buf.append(_sample(2, motion={"steps": 5.0, "accel": 0.5}))
        assert buf.motion_totals() == {"steps": 15.0, "accel": 0.5}

    def test_motion_totals_none_without_motion(self):
        buf = SlidingWindowBuffer(timedelta(seconds=60))
        buf.append(_sample(0))
        assert buf.motion_totals() is None

    def test_stats(self):
        buf = SlidingWindowBuffer(timedelta(seconds=60))
        buf.append(_sample(0, hr=72.0, rr=(800.0, 810.0)))
        buf.append(_sample(2.5, hr=68.0, rr=(820.0,)))
        stats = buf.stats()
        assert stats == BufferStats(count=2, duration_ms=2500, hr_range=(68.0, 72.0), rr_count=3)

    def test_stats_empty(self):
        buf = SlidingWindowBuffer(timedelta(seconds=60))
        assert buf.stats() == BufferStats()

    def test_snapshot_is_detached(self):
        buf = SlidingWindowBuffer(timedelta(seconds=60))
        buf.append(_sample(0))
        snap = buf.snapshot()
        buf.clear()
        assert len(snap) == 1
        assert len(buf) == 0
