"""Shared Pydantic models used across the engine."""

from __future__ import annotations

import json
import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from hrv_emotion.config import Settings

# ── Enums ─────────────────────────────────────────────────────


class FeatureSchema(str, Enum):
    """Feature vector layouts a classifier can declare."""

    LEGACY = "legacy"
    CANONICAL = "canonical"

    @property
    def feature_names(self) -> tuple[str, ...]:
        if self is FeatureSchema.LEGACY:
            return LEGACY_FEATURE_NAMES
        return CANONICAL_FEATURE_NAMES


class EngineState(str, Enum):
    """Observable state of an :class:`~hrv_emotion.inference.engine.EmotionEngine`."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"
    READY = "ready"
    EMITTED = "emitted"


LEGACY_FEATURE_NAMES: tuple[str, ...] = ("hr_mean", "sdnn", "rmssd", "pnn50", "mean_rr")

CANONICAL_FEATURE_NAMES: tuple[str, ...] = (
    "RMSSD",
    "Mean_RR",
    "HRV_SDNN",
    "pNN50",
    "HRV_HF",
    "HRV_LF",
    "HRV_HF_nu",
    "HRV_LF_nu",
    "HRV_LFHF",
    "HRV_TP",
    "HRV_SD1SD2",
    "HRV_Sampen",
    "HRV_DFA_alpha1",
    "HR",
)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ── Ingestion ─────────────────────────────────────────────────


class Sample(BaseModel):
    """One ingested reading: HR plus the RR intervals observed with it."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    hr: float = Field(ge=30.0, le=300.0)
    rr_intervals_ms: list[float] = Field(min_length=1)
    motion: dict[str, float] | None = None

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)


class BufferStats(BaseModel):
    """Summary of the samples currently held in the window."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    duration_ms: int = 0
    hr_range: tuple[float, float] = (0.0, 0.0)
    rr_count: int = 0


# ── Configuration ─────────────────────────────────────────────


class EmotionConfig(BaseModel):
    """Engine parameters.  Immutable once constructed."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str = "extratrees_w120s60_binary_v1_0"
    window: timedelta = timedelta(seconds=120)
    step: timedelta = timedelta(seconds=60)
    min_rr_count: int = Field(30, ge=0)
    return_all_probas: bool = True
    hr_baseline: float | None = None
    priors: dict[str, float] | None = None
    feature_schema: FeatureSchema | None = Field(
        None,
        description="Force a schema; None lets the attached classifier decide.",
    )

    @field_validator("window", "step")
    @classmethod
    def _positive_duration(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("duration must be positive")
        return v

    @field_validator("priors")
    @classmethod
    def _finite_priors(cls, v: dict[str, float] | None) -> dict[str, float] | None:
        if v is not None and any(not math.isfinite(w) or w < 0 for w in v.values()):
            raise ValueError("priors must be finite and non-negative")
        return v

    def with_updates(self, **changes: Any) -> EmotionConfig:
        """Return a validated copy with *changes* applied."""
        return EmotionConfig(**{**self.model_dump(), **changes})

    @classmethod
    def from_settings(cls, settings: Settings) -> EmotionConfig:
        return cls(
            model_id=settings.model_id,
            window=timedelta(seconds=settings.window_seconds),
            step=timedelta(seconds=settings.step_seconds),
            min_rr_count=settings.min_rr_count,
            return_all_probas=settings.return_all_probas,
            hr_baseline=settings.hr_baseline,
            feature_schema=settings.feature_schema,
        )

    def __str__(self) -> str:
        return (
            f"EmotionConfig(model_id: {self.model_id}, "
            f"window: {int(self.window.total_seconds())}s, "
            f"step: {int(self.step.total_seconds())}s, min_rr_count: {self.min_rr_count})"
        )


# ── Results ───────────────────────────────────────────────────


class EmotionResult(BaseModel):
    """One inference outcome.

    ``probabilities`` is whatever the classifier produced (after optional
    prior reweighting) and need not sum to 1.  The serialised form is the
    persistence shape: ``timestamp`` (ISO-8601), ``emotion``, ``confidence``,
    ``probabilities``, ``features`` and ``model``.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    emotion: str
    confidence: float = Field(ge=0.0, le=1.0)
    probabilities: dict[str, float] = Field(default_factory=dict)
    features: dict[str, float] = Field(default_factory=dict)
    model: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmotionResult:
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, raw: str) -> EmotionResult:
        return cls.from_dict(json.loads(raw))

    def __str__(self) -> str:
        return (
            f"EmotionResult({self.emotion}: {self.confidence * 100:.1f}%, "
            f"features: {', '.join(self.features)})"
        )
