"""Sample ingestion: validation, the sliding window and async stream helpers."""

from hrv_emotion.streaming.buffer import WINDOW_TOLERANCE, SlidingWindowBuffer, validate_sample

__all__ = ["SlidingWindowBuffer", "WINDOW_TOLERANCE", "validate_sample"]
