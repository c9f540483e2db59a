"""Classifier capability — the pluggable prediction contract.

A classifier declares which variant it implements through
:attr:`BaseClassifier.capability`; the engine dispatches on that value and
never inspects concrete types.

- :class:`Classifier` — synchronous ``predict``; usable from both
  ``EmotionEngine.consume`` and ``EmotionEngine.consume_async``.
- :class:`AsyncClassifier` — ``predict_async`` only; usable from
  ``consume_async``.  ``consume`` yields no result for such classifiers.

Probabilities returned by either variant need not sum to 1.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping, Sequence

from hrv_emotion.errors import BadInputError, ModelIncompatibleError
from hrv_emotion.features.extractor import normalize_features

_RENORMALIZE_TOLERANCE = 1e-3
_RENORMALIZE_EPSILON = 1e-8


class ClassifierCapability(str, Enum):
    SYNC = "sync"
    ASYNC = "async"


class BaseClassifier(ABC):
    """Metadata shared by both classifier variants."""

    capability: ClassifierCapability
    model_type: str = "custom"

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier reported in every result's model metadata."""

    @property
    @abstractmethod
    def feature_names(self) -> Sequence[str]:
        """Ordered input feature names the model was trained on."""

    @property
    @abstractmethod
    def labels(self) -> Sequence[str]:
        """Ordered class names."""

    def get_metadata(self) -> dict[str, Any]:
        return {
            "id": self.model_id,
            "type": self.model_type,
            "labels": list(self.labels),
            "feature_names": list(self.feature_names),
            "num_classes": len(self.labels),
            "num_features": len(self.feature_names),
        }


class Classifier(BaseClassifier):
    """Synchronous classifier."""

    capability = ClassifierCapability.SYNC

    @abstractmethod
    def predict(self, features: Mapping[str, float]) -> dict[str, float]:
        """Map a feature vector to label probabilities."""


class AsyncClassifier(BaseClassifier):
    """Classifier whose inference must be awaited."""

    capability = ClassifierCapability.ASYNC

    @abstractmethod
    async def predict_async(self, features: Mapping[str, float]) -> dict[str, float]:
        """Map a feature vector to label probabilities."""


# ── Helpers ───────────────────────────────────────────────────


def feature_vector(features: Mapping[str, float], names: Sequence[str]) -> list[float]:
    """Order *features* by *names*; any missing name is a schema mismatch."""
    missing = [n for n in names if n not in features]
    if missing:
        raise ModelIncompatibleError(expected=list(names), actual=list(features))
    return [float(features[n]) for n in names]


def renormalize(probabilities: Mapping[str, float]) -> dict[str, float]:
    """Scale probabilities to sum to ~1 unless they already do."""
    total = sum(probabilities.values())
    if total > 0 and abs(total - 1.0) > _RENORMALIZE_TOLERANCE:
        return {label: p / (total + _RENORMALIZE_EPSILON) for label, p in probabilities.items()}
    return dict(probabilities)


def _softmax(scores: Sequence[float]) -> list[float]:
    peak = max(scores)
    exps = [math.exp(s - peak) for s in scores]
    total = sum(exps)
    return [e / total for e in exps]


# ── Linear model ─────────────────────────────────────────────


class LinearClassifier(Classifier):
    """Multinomial linear model with softmax output.

    Parameters
    ----------
    model_id : str
        Identifier reported in result metadata.
    feature_names : Sequence[str]
        Ordered inputs; must match one of the extractor schemas to attach.
    labels : Sequence[str]
        Class names, one per row of *weights*.
    weights : Sequence[Sequence[float]]
        ``len(labels)`` rows of ``len(feature_names)`` coefficients.
    biases : Sequence[float]
        One intercept per label.
    mu, sigma : Mapping[str, float] | None
        Training statistics for z-scoring inputs before the dot product.
    """

    model_type = "linear"

    def __init__(
        self,
        model_id: str,
        feature_names: Sequence[str],
        labels: Sequence[str],
        weights: Sequence[Sequence[float]],
        biases: Sequence[float],
        mu: Mapping[str, float] | None = None,
        sigma: Mapping[str, float] | None = None,
    ) -> None:
        if not labels:
            raise BadInputError("linear model needs at least one label")
        if len(weights) != len(labels) or len(biases) != len(labels):
            raise BadInputError(
                "weights/biases do not match labels",
                {"labels": len(labels), "weights": len(weights), "biases": len(biases)},
            )
        for row in weights:
            if len(row) != len(feature_names):
                raise BadInputError(
                    "weight row length does not match feature names",
                    {"features": len(feature_names), "row": len(row)},
                )
        self._model_id = model_id
        self._feature_names = tuple(feature_names)
        self._labels = tuple(labels)
        self._weights = [list(map(float, row)) for row in weights]
        self._biases = [float(b) for b in biases]
        self._mu = dict(mu or {})
        self._sigma = dict(sigma or {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LinearClassifier:
        """Build from a plain mapping, e.g. a decoded metadata document.

        Expected keys: ``model_id``, ``schema.input_names``,
        ``output.class_names``, ``weights``, ``biases`` and optionally
        ``scaler.mu`` / ``scaler.sigma``.
        """
        try:
            scaler = data.get("scaler") or {}
            return cls(
                model_id=data["model_id"],
                feature_names=data["schema"]["input_names"],
                labels=data["output"]["class_names"],
                weights=data["weights"],
                biases=data["biases"],
                mu=scaler.get("mu"),
                sigma=scaler.get("sigma"),
            )
        except (KeyError, TypeError) as exc:
            raise BadInputError(f"invalid linear model description: {exc}") from exc

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def feature_names(self) -> Sequence[str]:
        return self._feature_names

    @property
    def labels(self) -> Sequence[str]:
        return self._labels

    def predict(self, features: Mapping[str, float]) -> dict[str, float]:
        if self._mu and self._sigma:
            features = normalize_features(features, self._mu, self._sigma)
        x = feature_vector(features, self._feature_names)
        scores = [
            sum(w * v for w, v in zip(row, x)) + b
            for row, b in zip(self._weights, self._biases)
        ]
        return dict(zip(self._labels, _softmax(scores)))
