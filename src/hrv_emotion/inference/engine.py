"""Emotion inference engine — windowed accumulate / extract / infer / emit.

The engine owns a :class:`SlidingWindowBuffer` and an emission clock.
Callers ``push`` samples as they arrive and poll ``consume`` (or
``consume_async``); a result is produced at most once per ``step`` and only
from an (almost) complete window.

Every "not ready" condition (no classifier, throttled, too little data,
incomplete window, too few RR intervals, failed extraction or inference)
yields an empty list.  Only the structlog event tells them apart.

Concurrency
-----------
The buffer and emission clock are plain instance state without locks.
Calling ``push``/``consume`` concurrently from several threads or tasks is
unsafe; the host must serialise access, for example with a single event
loop or :class:`~hrv_emotion.streaming.pipeline.EmotionStreamPipeline`.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Callable, Mapping, Sequence, cast

import structlog
from pydantic import ValidationError

from hrv_emotion.errors import EmotionError, FeatureExtractionError, ModelIncompatibleError
from hrv_emotion.features.extractor import extract_features, hr_feature_name, validate_features
from hrv_emotion.inference.classifier import (
    AsyncClassifier,
    BaseClassifier,
    Classifier,
    ClassifierCapability,
)
from hrv_emotion.inference.result import build_result
from hrv_emotion.models import (
    BufferStats,
    EmotionConfig,
    EmotionResult,
    EngineState,
    FeatureSchema,
    Sample,
)
from hrv_emotion.streaming.buffer import SlidingWindowBuffer, validate_sample

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_schema(config: EmotionConfig, classifier: BaseClassifier | None) -> FeatureSchema:
    """Pick the feature schema for *classifier* under *config*.

    Raises :class:`ModelIncompatibleError` when the classifier's declared
    inputs do not match the configured schema, or match neither schema.
    """
    if classifier is None:
        return config.feature_schema or FeatureSchema.LEGACY

    declared = tuple(classifier.feature_names)
    if config.feature_schema is not None:
        if declared != config.feature_schema.feature_names:
            raise ModelIncompatibleError(expected=config.feature_schema.feature_names, actual=declared)
        return config.feature_schema

    for schema in FeatureSchema:
        if declared == schema.feature_names:
            return schema
    # Report against the schema with the closer feature count.
    closest = min(FeatureSchema, key=lambda s: abs(len(s.feature_names) - len(declared)))
    raise ModelIncompatibleError(expected=closest.feature_names, actual=declared)


class EmotionEngine:
    """Sliding-window emotion inference with throttled emission.

    Parameters
    ----------
    config : EmotionConfig
        Window, step, RR threshold and output options.
    classifier : BaseClassifier | None
        Prediction capability; without one ``consume`` always returns ``[]``.
    clock : Callable[[], datetime] | None
        Source of "now" (aware UTC).  Defaults to the system clock.
    """

    def __init__(
        self,
        config: EmotionConfig | None = None,
        classifier: BaseClassifier | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or EmotionConfig()
        self._clock = clock or _utc_now
        self._buffer = SlidingWindowBuffer(self.config.window)
        self._last_emission: datetime | None = None
        self._pushed_since_emission = False
        self._classifier: BaseClassifier | None = None
        self._schema = resolve_schema(self.config, None)
        if classifier is not None:
            self.attach_classifier(classifier)

    # ── Classifier ────────────────────────────────────────────

    @property
    def classifier(self) -> BaseClassifier | None:
        return self._classifier

    @property
    def schema(self) -> FeatureSchema:
        return self._schema

    def attach_classifier(self, classifier: BaseClassifier) -> None:
        """Attach *classifier*; raises :class:`ModelIncompatibleError` on schema mismatch."""
        self._schema = resolve_schema(self.config, classifier)
        self._classifier = classifier
        logger.info(
            "engine.classifier_attached",
            model_id=classifier.model_id,
            capability=classifier.capability.value,
            schema=self._schema.value,
        )

    def detach_classifier(self) -> None:
        self._classifier = None
        self._schema = resolve_schema(self.config, None)

    # ── Ingestion ─────────────────────────────────────────────

    def push(
        self,
        hr: float,
        rr_intervals_ms: Sequence[float],
        timestamp: datetime | None = None,
        motion: Mapping[str, float] | None = None,
    ) -> bool:
        """Add one reading to the window.  Returns whether it was accepted.

        Invalid readings are logged and dropped; this never raises for bad
        sample data and never blocks on inference.
        """
        reason = validate_sample(hr, rr_intervals_ms)
        if reason is not None:
            logger.warning("engine.sample_rejected", reason=reason, hr=repr(hr))
            return False

        now = self._clock()
        try:
            # Sample coerces naive timestamps to UTC and copies the RR list.
            sample = Sample(
                timestamp=timestamp if timestamp is not None else now,
                hr=hr,
                rr_intervals_ms=list(rr_intervals_ms),
                motion=motion,
            )
        except ValidationError as exc:
            logger.warning(
                "engine.sample_rejected",
                reason="; ".join(err["msg"] for err in exc.errors()),
                hr=hr,
            )
            return False
        self._buffer.append(sample)
        self._pushed_since_emission = True
        self._buffer.trim(now)
        logger.debug("engine.sample_pushed", hr=hr, rr_count=len(sample.rr_intervals_ms))
        return True

    def push_sample(self, sample: Sample) -> bool:
        return self.push(sample.hr, sample.rr_intervals_ms, sample.timestamp, sample.motion)

    # ── Consumption ───────────────────────────────────────────

    def consume(self) -> list[EmotionResult]:
        """Produce at most one result without suspending.

        An :class:`AsyncClassifier` cannot be served here; use
        :meth:`consume_async` for those.
        """
        now = self._clock()
        prepared = self._prepare(now)
        if prepared is None:
            return []

        classifier, features = prepared
        if classifier.capability is not ClassifierCapability.SYNC:
            logger.warning("engine.async_classifier_in_sync_consume", model_id=classifier.model_id)
            return []

        try:
            probabilities = cast(Classifier, classifier).predict(features)
        except ModelIncompatibleError:
            raise
        except Exception as exc:
            logger.error("engine.inference_failed", model_id=classifier.model_id, error=str(exc))
            return []
        return self._emit(now, classifier, features, probabilities)

    async def consume_async(self) -> list[EmotionResult]:
        """Produce at most one result, awaiting asynchronous classifiers.

        Throttling and readiness rules are identical to :meth:`consume`.
        """
        now = self._clock()
        prepared = self._prepare(now)
        if prepared is None:
            return []

        classifier, features = prepared
        try:
            if classifier.capability is ClassifierCapability.ASYNC:
                probabilities = await cast(AsyncClassifier, classifier).predict_async(features)
            else:
                probabilities = cast(Classifier, classifier).predict(features)
        except ModelIncompatibleError:
            raise
        except Exception as exc:
            logger.error("engine.inference_failed", model_id=classifier.model_id, error=str(exc))
            return []
        return self._emit(now, classifier, features, probabilities)

    def _prepare(self, now: datetime) -> tuple[BaseClassifier, dict[str, float]] | None:
        """Apply the readiness rules; return the classifier and features when inference should run."""
        classifier = self._classifier
        if classifier is None:
            return None

        if self._last_emission is not None and now - self._last_emission < self.config.step:
            logger.debug("engine.throttled", since_last_s=(now - self._last_emission).total_seconds())
            return None

        self._buffer.trim(now)
        if len(self._buffer) < 2:
            return None

        if not self._buffer.is_window_complete(now):
            logger.debug("engine.window_incomplete", buffered=len(self._buffer))
            return None

        rr_count = self._buffer.rr_count()
        if rr_count < self.config.min_rr_count:
            logger.warning("engine.too_few_rr", rr_count=rr_count, min_rr_count=self.config.min_rr_count)
            return None

        try:
            return classifier, self._extract_window_features()
        except EmotionError as exc:
            logger.warning("engine.feature_extraction_failed", error=exc.message, **exc.context)
        except (ArithmeticError, ValueError) as exc:
            logger.warning("engine.feature_extraction_failed", error=str(exc))
        return None

    def _extract_window_features(self) -> dict[str, float]:
        samples = self._buffer.snapshot()
        hr_values = [s.hr for s in samples]
        rr_intervals = [rr for s in samples for rr in s.rr_intervals_ms]
        features = extract_features(
            self._schema,
            hr_values,
            rr_intervals,
            motion=self._buffer.motion_totals(),
        )

        if self.config.hr_baseline is not None:
            name = hr_feature_name(self._schema)
            features[name] = features[name] - self.config.hr_baseline

        if not validate_features(features, features):
            bad = sorted(k for k, v in features.items() if not math.isfinite(v))
            raise FeatureExtractionError("non-finite feature values", {"features": bad})
        return features

    def _emit(
        self,
        now: datetime,
        classifier: BaseClassifier,
        features: dict[str, float],
        probabilities: Mapping[str, float],
    ) -> list[EmotionResult]:
        try:
            result = build_result(
                timestamp=now,
                probabilities=probabilities,
                features=features,
                model=classifier.get_metadata(),
                priors=self.config.priors,
                return_all_probas=self.config.return_all_probas,
            )
        except Exception as exc:
            logger.error("engine.inference_failed", model_id=classifier.model_id, error=str(exc))
            return []

        self._last_emission = now
        self._pushed_since_emission = False
        logger.info(
            "engine.result_emitted",
            emotion=result.emotion,
            confidence=round(result.confidence, 3),
        )
        return [result]

    # ── Introspection ─────────────────────────────────────────

    @property
    def last_emission(self) -> datetime | None:
        return self._last_emission

    @property
    def state(self) -> EngineState:
        if len(self._buffer) == 0:
            return EngineState.IDLE
        if self._last_emission is not None and not self._pushed_since_emission:
            return EngineState.EMITTED
        now = self._clock()
        step_elapsed = self._last_emission is None or now - self._last_emission >= self.config.step
        if len(self._buffer) >= 2 and step_elapsed and self._buffer.is_window_complete(now):
            return EngineState.READY
        return EngineState.ACCUMULATING

    def is_window_complete(self) -> bool:
        return self._buffer.is_window_complete(self._clock())

    def buffer_stats(self) -> BufferStats:
        return self._buffer.stats()

    def clear(self) -> None:
        """Drop all buffered samples and reset the emission clock."""
        self._buffer.clear()
        self._last_emission = None
        self._pushed_since_emission = False
        logger.info("engine.buffer_cleared")
