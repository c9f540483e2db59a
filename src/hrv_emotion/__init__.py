"""On-device emotion inference from heart rate and RR intervals.

Architecture
------------
1. **Ingestion** (`streaming/buffer.py`)
   - Whole-sample validation (HR range, non-empty RR)
   - Time-bounded sliding window with expired-prefix trimming

2. **Feature extraction** (`features/`)
   - RR artifact cleaning
   - Legacy 5-feature or canonical 14-feature HRV vectors
     (time-domain, frequency-domain, Poincaré, sample entropy, DFA)

3. **Inference** (`inference/`)
   - Throttled accumulate / extract / infer / emit engine
   - Pluggable sync or async classifier capability
   - Immutable results with a JSON persistence shape

Outputs are probabilistic estimates, never diagnoses.
"""

from hrv_emotion.errors import (
    BadInputError,
    EmotionError,
    ErrorKind,
    FeatureExtractionError,
    ModelIncompatibleError,
    TooFewRRError,
)
from hrv_emotion.inference import (
    AsyncClassifier,
    Classifier,
    ClassifierCapability,
    EmotionEngine,
    LinearClassifier,
)
from hrv_emotion.models import (
    BufferStats,
    EmotionConfig,
    EmotionResult,
    EngineState,
    FeatureSchema,
    Sample,
)

__all__ = [
    "AsyncClassifier",
    "BadInputError",
    "BufferStats",
    "Classifier",
    "ClassifierCapability",
    "EmotionConfig",
    "EmotionEngine",
    "EmotionError",
    "EmotionResult",
    "EngineState",
    "ErrorKind",
    "FeatureExtractionError",
    "FeatureSchema",
    "LinearClassifier",
    "ModelIncompatibleError",
    "Sample",
    "TooFewRRError",
]
