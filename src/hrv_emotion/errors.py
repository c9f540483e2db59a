"""Error taxonomy for the emotion inference engine.

Only :class:`ModelIncompatibleError` is expected to reach the engine's
caller.  The other kinds describe conditions the engine resolves to
"no result this cycle"; they are raised directly only by caller-level
utilities such as :func:`hrv_emotion.features.ensure_min_rr`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Sequence


class ErrorKind(str, Enum):
    """Tag carried by every :class:`EmotionError`."""

    TOO_FEW_RR = "too_few_rr"
    BAD_INPUT = "bad_input"
    MODEL_INCOMPATIBLE = "model_incompatible"
    FEATURE_EXTRACTION_FAILED = "feature_extraction_failed"


class EmotionError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        return f"EmotionError: {self.message}"


class TooFewRRError(EmotionError):
    """Too few RR intervals for a stable estimate."""

    kind = ErrorKind.TOO_FEW_RR

    def __init__(self, min_expected: int, actual: int) -> None:
        super().__init__(
            f"Too few RR intervals: expected at least {min_expected}, got {actual}",
            {"min_expected": min_expected, "actual": actual},
        )
        self.min_expected = min_expected
        self.actual = actual


class BadInputError(EmotionError):
    """Malformed sample or classifier input/output."""

    kind = ErrorKind.BAD_INPUT

    def __init__(self, reason: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(f"Bad input: {reason}", context)
        self.reason = reason


class ModelIncompatibleError(EmotionError):
    """Classifier declares a feature schema the extractor cannot produce."""

    kind = ErrorKind.MODEL_INCOMPATIBLE

    def __init__(self, expected: Sequence[str], actual: Sequence[str]) -> None:
        super().__init__(
            f"Model incompatible: expected {len(expected)} features {list(expected)}, "
            f"got {len(actual)} features {list(actual)}",
            {"expected": list(expected), "actual": list(actual)},
        )
        self.expected = list(expected)
        self.actual = list(actual)


class FeatureExtractionError(EmotionError):
    """Numeric computation could not produce a usable feature vector."""

    kind = ErrorKind.FEATURE_EXTRACTION_FAILED

    def __init__(self, reason: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(f"Feature extraction failed: {reason}", context)
        self.reason = reason
