"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hrv_emotion.models import FeatureSchema

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Runtime configuration for the emotion engine.

    Values are read from ``HRV_EMOTION_*`` environment variables first, then
    from a *.env* file at the project root.  Convert to an engine config with
    :meth:`hrv_emotion.models.EmotionConfig.from_settings`.
    """

    model_config = SettingsConfigDict(
        env_prefix="HRV_EMOTION_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # ── Model ─────────────────────────────────────────────────
    model_id: str = "extratrees_w120s60_binary_v1_0"
    feature_schema: FeatureSchema | None = None

    # ── Windowing ─────────────────────────────────────────────
    window_seconds: float = Field(120.0, gt=0)  # Rolling feature window
    step_seconds: float = Field(60.0, gt=0)  # Emission cadence
    min_rr_count: int = Field(30, ge=0)

    # ── Output ────────────────────────────────────────────────
    return_all_probas: bool = True
    hr_baseline: float | None = None  # Subtracted from the HR feature

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
