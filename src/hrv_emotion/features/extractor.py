"""Feature assembly — cleaned RR/HR windows to named feature vectors.

Two layouts are produced:

- the **legacy** 5-feature schema ``hr_mean, sdnn, rmssd, pnn50, mean_rr``;
- the **canonical** 14-feature schema (time-domain, frequency-domain and
  non-linear descriptors) in the fixed order of
  :data:`hrv_emotion.models.CANONICAL_FEATURE_NAMES`.

Summed motion values, when present, are appended after the schema keys;
a motion key that collides with a schema feature is dropped and logged.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

import structlog

from hrv_emotion.errors import TooFewRRError
from hrv_emotion.features.cleaning import clean_rr_intervals, filter_rr_range
from hrv_emotion.features.frequency import frequency_domain
from hrv_emotion.features.nonlinear import dfa_alpha1, sample_entropy, sd1_sd2_ratio
from hrv_emotion.features.time_domain import (
    extract_hr_mean,
    heart_rate,
    mean_rr,
    pnn50,
    rmssd,
    sdnn,
)
from hrv_emotion.models import FeatureSchema

logger = structlog.get_logger(__name__)


def hr_feature_name(schema: FeatureSchema) -> str:
    """Name of the HR-bearing feature in *schema*."""
    return "hr_mean" if schema is FeatureSchema.LEGACY else "HR"


def _merge_motion(features: dict[str, float], motion: Mapping[str, float] | None) -> dict[str, float]:
    """Append motion values; keys that name a schema feature are ignored."""
    if not motion:
        return features
    collisions = sorted(key for key in motion if key in features)
    if collisions:
        logger.warning("features.motion_key_collision", keys=collisions)
    for key, value in motion.items():
        if key not in features:
            features[key] = value
    return features


def extract_legacy_features(
    hr_values: Sequence[float],
    rr_intervals_ms: Sequence[float],
    motion: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """The 5-feature vector used by the first generation of models."""
    rr = clean_rr_intervals(rr_intervals_ms)
    features = {
        "hr_mean": extract_hr_mean(hr_values),
        "sdnn": sdnn(rr),
        "rmssd": rmssd(rr),
        "pnn50": pnn50(rr),
        "mean_rr": mean_rr(rr),
    }
    return _merge_motion(features, motion)


def extract_canonical_features(
    rr_intervals_ms: Sequence[float],
    mean_hr: float | None = None,
    motion: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """All 14 canonical HRV features.

    *mean_hr* is the mean of device-reported HR samples.  When omitted the
    ``HR`` feature is derived from the mean RR interval.
    """
    in_range = filter_rr_range(rr_intervals_ms)
    rr = clean_rr_intervals(in_range)
    mean_rr_ms = mean_rr(rr)
    bands = frequency_domain(rr, raw_count=len(in_range))

    features = {
        "RMSSD": rmssd(rr),
        "Mean_RR": mean_rr_ms,
        "HRV_SDNN": sdnn(rr),
        "pNN50": pnn50(rr),
        "HRV_HF": bands.hf,
        "HRV_LF": bands.lf,
        "HRV_HF_nu": bands.hf_nu,
        "HRV_LF_nu": bands.lf_nu,
        "HRV_LFHF": bands.lf_hf,
        "HRV_TP": bands.total_power,
        "HRV_SD1SD2": sd1_sd2_ratio(rr),
        "HRV_Sampen": sample_entropy(rr),
        "HRV_DFA_alpha1": dfa_alpha1(rr),
        "HR": heart_rate(mean_hr, mean_rr_ms),
    }
    logger.debug(
        "features.canonical_extracted",
        raw_rr=len(rr_intervals_ms),
        cleaned_rr=len(rr),
    )
    return _merge_motion(features, motion)


def extract_features(
    schema: FeatureSchema,
    hr_values: Sequence[float],
    rr_intervals_ms: Sequence[float],
    motion: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """Build the feature vector for *schema* from one window's samples."""
    if schema is FeatureSchema.LEGACY:
        return extract_legacy_features(hr_values, rr_intervals_ms, motion)
    mean_hr = extract_hr_mean(hr_values) if hr_values else None
    return extract_canonical_features(rr_intervals_ms, mean_hr=mean_hr, motion=motion)


# ── Validation & normalisation ───────────────────────────────


def validate_features(features: Mapping[str, float], required: Iterable[str]) -> bool:
    """True when every *required* feature is present and finite."""
    for name in required:
        value = features.get(name)
        if value is None or not math.isfinite(value):
            return False
    return True


def ensure_min_rr(rr_intervals_ms: Sequence[float], min_count: int) -> None:
    """Raise :class:`TooFewRRError` when fewer than *min_count* intervals are given."""
    if len(rr_intervals_ms) < min_count:
        raise TooFewRRError(min_expected=min_count, actual=len(rr_intervals_ms))


def normalize_features(
    features: Mapping[str, float],
    mu: Mapping[str, float],
    sigma: Mapping[str, float],
) -> dict[str, float]:
    """Z-score features using training statistics.

    Features without both a mean and a std pass through unchanged; a
    non-positive std maps the feature to 0.0.
    """
    normalized: dict[str, float] = {}
    for name, value in features.items():
        if name in mu and name in sigma:
            std = sigma[name]
            normalized[name] = (value - mu[name]) / std if std > 0 else 0.0
        else:
            normalized[name] = value
    return normalized


def hr_to_rr_intervals(hr_bpm: Iterable[float]) -> list[float]:
    """Convert HR samples to equivalent RR intervals; 0.0 for non-positive HR."""
    return [60000.0 / hr if hr > 0 else 0.0 for hr in hr_bpm]
