"""Result building — raw label probabilities to an :class:`EmotionResult`."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Mapping

from hrv_emotion.errors import BadInputError
from hrv_emotion.models import EmotionResult


def _top_label(probabilities: Mapping[str, float]) -> tuple[str, float]:
    """Highest-probability label; ties keep the earlier label."""
    top_label = ""
    top_probability = 0.0
    for label, probability in probabilities.items():
        if probability > top_probability:
            top_label = label
            top_probability = probability
    return top_label, top_probability


def apply_priors(probabilities: Mapping[str, float], priors: Mapping[str, float]) -> dict[str, float]:
    """Reweight by label priors (missing labels weigh 1.0) and rescale to sum 1.

    The weighted values are always divided by their total, so the result
    stays within [0, 1].  An all-zero weighting is returned unchanged.
    """
    weighted = {label: p * priors.get(label, 1.0) for label, p in probabilities.items()}
    total = sum(weighted.values())
    if total <= 0:
        return weighted
    return {label: w / total for label, w in weighted.items()}


def build_result(
    timestamp: datetime,
    probabilities: Mapping[str, float],
    features: Mapping[str, float],
    model: Mapping[str, Any],
    *,
    priors: Mapping[str, float] | None = None,
    return_all_probas: bool = True,
) -> EmotionResult:
    """Turn a classifier's output into an immutable result record.

    Raises :class:`BadInputError` if any probability is non-finite or
    outside [0, 1], or if a prior is non-finite or negative.
    """
    for label, probability in probabilities.items():
        if not math.isfinite(probability) or not 0.0 <= probability <= 1.0:
            raise BadInputError(
                f"classifier returned invalid probability {probability!r} for {label!r}",
                {"label": label, "probability": probability},
            )

    if priors:
        bad_priors = {label: w for label, w in priors.items() if not math.isfinite(w) or w < 0}
        if bad_priors:
            raise BadInputError(f"invalid priors {bad_priors!r}", {"priors": bad_priors})
    probs = apply_priors(probabilities, priors) if priors else dict(probabilities)
    emotion, confidence = _top_label(probs)
    if not return_all_probas:
        probs = {emotion: confidence} if emotion else {}

    return EmotionResult(
        timestamp=timestamp,
        emotion=emotion,
        confidence=confidence,
        probabilities=probs,
        features=dict(features),
        model=dict(model),
    )
