"""HRV feature extraction.

Submodules
----------
- ``cleaning`` — physiological limits and RR artifact removal
- ``time_domain`` — Mean RR, SDNN, RMSSD, pNN50, HR
- ``frequency`` — 4 Hz resampling, Hann-windowed DFT, VLF/LF/HF band powers
- ``nonlinear`` — Poincaré SD1/SD2, sample entropy, DFA alpha1
- ``extractor`` — legacy / canonical vector assembly and normalisation
"""

from hrv_emotion.features.cleaning import (
    MAX_RR_JUMP_MS,
    MAX_VALID_HR,
    MAX_VALID_RR_MS,
    MIN_VALID_HR,
    MIN_VALID_RR_MS,
    clean_rr_intervals,
    filter_rr_range,
)
from hrv_emotion.features.extractor import (
    ensure_min_rr,
    extract_canonical_features,
    extract_features,
    extract_legacy_features,
    hr_feature_name,
    hr_to_rr_intervals,
    normalize_features,
    validate_features,
)
from hrv_emotion.features.time_domain import extract_hr_mean

__all__ = [
    "MAX_RR_JUMP_MS",
    "MAX_VALID_HR",
    "MAX_VALID_RR_MS",
    "MIN_VALID_HR",
    "MIN_VALID_RR_MS",
    "clean_rr_intervals",
    "ensure_min_rr",
    "extract_canonical_features",
    "extract_features",
    "extract_hr_mean",
    "extract_legacy_features",
    "filter_rr_range",
    "hr_feature_name",
    "hr_to_rr_intervals",
    "normalize_features",
    "validate_features",
]
