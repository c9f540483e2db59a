"""Inference scheduling, the classifier contract and result building."""

from hrv_emotion.inference.classifier import (
    AsyncClassifier,
    BaseClassifier,
    Classifier,
    ClassifierCapability,
    LinearClassifier,
    feature_vector,
    renormalize,
)
from hrv_emotion.inference.engine import EmotionEngine, resolve_schema
from hrv_emotion.inference.result import build_result

__all__ = [
    "AsyncClassifier",
    "BaseClassifier",
    "Classifier",
    "ClassifierCapability",
    "EmotionEngine",
    "LinearClassifier",
    "build_result",
    "feature_vector",
    "renormalize",
    "resolve_schema",
]
