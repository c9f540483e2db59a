"""Shared pytest fixtures."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping, Sequence

import pytest

from hrv_emotion.inference.classifier import AsyncClassifier, Classifier
from hrv_emotion.inference.engine import EmotionEngine
from hrv_emotion.models import (
    CANONICAL_FEATURE_NAMES,
    LEGACY_FEATURE_NAMES,
    EmotionConfig,
)

T0 = datetime(2026, 1, 10, 10, 0, tzinfo=timezone.utc)

MOCK_PROBABILITIES = {"Calm": 0.6, "Stressed": 0.3, "Amused": 0.1}


class ManualClock:
    """Deterministic clock for the engine; advanced explicitly by tests."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeClassifier(Classifier):
    def __init__(
        self,
        feature_names: Sequence[str] = LEGACY_FEATURE_NAMES,
        probabilities: Mapping[str, float] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._feature_names = tuple(feature_names)
        self._probabilities = dict(probabilities or MOCK_PROBABILITIES)
        self._error = error
        self.calls: list[dict[str, float]] = []

    @property
    def model_id(self) -> str:
        return "mock_model"

    @property
    def feature_names(self) -> Sequence[str]:
        return self._feature_names

    @property
    def labels(self) -> Sequence[str]:
        return tuple(self._probabilities)

    def predict(self, features: Mapping[str, float]) -> dict[str, float]:
        self.calls.append(dict(features))
        if self._error is not None:
            raise self._error
        return dict(self._probabilities)


class FakeAsyncClassifier(AsyncClassifier):
    def __init__(
        self,
        feature_names: Sequence[str] = LEGACY_FEATURE_NAMES,
        error: Exception | None = None,
    ) -> None:
        self._feature_names = tuple(feature_names)
        self._error = error
        self.calls = 0

    @property
    def model_id(self) -> str:
        return "mock_async_model"

    @property
    def feature_names(self) -> Sequence[str]:
        return self._feature_names

    @property
    def labels(self) -> Sequence[str]:
        return tuple(MOCK_PROBABILITIES)

    async def predict_async(self, features: Mapping[str, float]) -> dict[str, float]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return dict(MOCK_PROBABILITIES)


def modulated_rr(
    freq_hz: float,
    n_beats: int = 150,
    base_ms: float = 800.0,
    amplitude_ms: float = 50.0,
) -> list[float]:
    """RR series whose values oscillate at *freq_hz* in beat time."""
    rr: list[float] = []
    t_ms = 0.0
    for _ in range(n_beats):
        value = base_ms + amplitude_ms * math.sin(2 * math.pi * freq_hz * t_ms / 1000.0)
        rr.append(value)
        t_ms += value
    return rr


# ── Fixtures ──────────────────────────────────────────────────


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def short_config() -> EmotionConfig:
    return EmotionConfig(
        window=timedelta(seconds=10),
        step=timedelta(seconds=5),
        min_rr_count=5,
    )


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def canonical_classifier() -> FakeClassifier:
    return FakeClassifier(feature_names=CANONICAL_FEATURE_NAMES)


@pytest.fixture
def engine(short_config: EmotionConfig, classifier: FakeClassifier, clock: ManualClock) -> EmotionEngine:
    return EmotionEngine(short_config, classifier, clock=clock)


@pytest.fixture
def fill_window(clock: ManualClock) -> Callable[..., None]:
    """Push samples 9, 6, 3 and 0 seconds before ``clock.now``.

    With the 10 s window of ``short_config`` the result is a complete
    window holding 4 samples and 20 RR intervals.
    """

    def _fill(
        engine: EmotionEngine,
        offsets: Sequence[float] = (9, 6, 3, 0),
        hr: Sequence[float] | None = None,
        rr: Sequence[float] = (800.0, 820.0, 810.0, 830.0, 815.0),
        motion: Mapping[str, float] | None = None,
    ) -> None:
        hr_values = hr or [70.0 + i for i in range(len(offsets))]
        for offset, hr_value in zip(offsets, hr_values):
            engine.push(
                hr=hr_value,
                rr_intervals_ms=list(rr),
                timestamp=clock.now - timedelta(seconds=offset),
                motion=motion,
            )

    return _fill


@pytest.fixture
def make_rr() -> Callable[..., list[float]]:
    return modulated_rr


@pytest.fixture
def make_classifier() -> type[FakeClassifier]:
    return FakeClassifier


@pytest.fixture
def make_async_classifier() -> type[FakeAsyncClassifier]:
    return FakeAsyncClassifier
