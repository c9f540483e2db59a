"""Tests for the classifier contract and the linear model."""

from __future__ import annotations

import math

import pytest

from hrv_emotion.errors import BadInputError, ModelIncompatibleError
from hrv_emotion.inference.classifier import (
    AsyncClassifier,
    Classifier,
    ClassifierCapability,
    LinearClassifier,
    feature_vector,
    renormalize,
)
from hrv_emotion.inference.engine import EmotionEngine
from hrv_emotion.models import LEGACY_FEATURE_NAMES


def _linear(**overrides) -> LinearClassifier:
    params = dict(
        model_id="linear_xy",
        feature_names=("x", "y"),
        labels=("Calm", "Stressed"),
        weights=[[1.0, 0.0], [0.0, 1.0]],
        biases=[0.0, 0.0],
    )
    params.update(overrides)
    return LinearClassifier(**params)


class TestHelpers:
    def test_feature_vector_orders_by_name(self):
        assert feature_vector({"b": 2.0, "a": 1.0, "extra": 9.0}, ["a", "b"]) == [1.0, 2.0]

    def test_feature_vector_missing_name(self):
        with pytest.raises(ModelIncompatibleError):
            feature_vector({"a": 1.0}, ["a", "b"])

    def test_renormalize_scales_to_one(self):
        scaled = renormalize({"a": 2.0, "b": 2.0})
        assert scaled["a"] == pytest.approx(0.5)
        assert sum(scaled.values()) == pytest.approx(1.0)

    def test_renormalize_leaves_near_unit_sum(self):
        probs = {"a": 0.6, "b": 0.3995}
        assert renormalize(probs) == probs

    def test_renormalize_all_zero(self):
        assert renormalize({"a": 0.0, "b": 0.0}) == {"a": 0.0, "b": 0.0}


class TestCapability:
    def test_variants_declare_capability(self):
        assert Classifier.capability is ClassifierCapability.SYNC
        assert AsyncClassifier.capability is ClassifierCapability.ASYNC

    def test_abstract_contract(self):
        with pytest.raises(TypeError):
            Classifier()  # type: ignore[abstract]

    def test_metadata(self, classifier):
        assert classifier.get_metadata() == {
            "id": "mock_model",
            "type": "custom",
            "labels": ["Calm", "Stressed", "Amused"],
            "feature_names": list(LEGACY_FEATURE_NAMES),
            "num_classes": 3,
            "num_features": 5,
        }


class TestLinearClassifier:
    def test_softmax_output(self):
        probs = _linear().predict({"x": 2.0, "y": 0.0})
        expected = math.exp(2) / (math.exp(2) + 1)
        assert probs["Calm"] == pytest.approx(expected)
        assert probs["Stressed"] == pytest.approx(1 - expected)

    def test_biases(self):
        probs = _linear(biases=[0.0, math.log(3)]).predict({"x": 0.0, "y": 0.0})
        assert probs["Stressed"] == pytest.approx(0.75)

    def test_normalizes_inputs(self):
        clf = _linear(mu={"x": 10.0, "y": 10.0}, sigma={"x": 5.0, "y": 5.0})
        probs = clf.predict({"x": 20.0, "y": 10.0})  # z-scores (2, 0)
        assert probs["Calm"] == pytest.approx(math.exp(2) / (math.exp(2) + 1))

    def test_missing_feature(self):
        with pytest.raises(ModelIncompatibleError):
            _linear().predict({"x": 1.0})

    @pytest.mark.parametrize(
        "overrides",
        [
            {"labels": ()},
            {"biases": [0.0]},
            {"weights": [[1.0, 0.0]]},
            {"weights": [[1.0], [0.0, 1.0]]},
        ],
    )
    def test_invalid_shapes(self, overrides):
        with pytest.raises(BadInputError):
            _linear(**overrides)

    def test_metadata_type(self):
        meta = _linear().get_metadata()
        assert meta["type"] == "linear"
        assert meta["id"] == "linear_xy"

    def test_from_dict(self):
        clf = LinearClassifier.from_dict(
            {
                "model_id": "linear_v1",
                "schema": {"input_names": ["x", "y"]},
                "output": {"class_names": ["Calm", "Stressed"]},
                "weights": [[0.5, -0.5], [-0.5, 0.5]],
                "biases": [0.0, 0.0],
                "scaler": {"mu": {"x": 0.0}, "sigma": {"x": 1.0}},
            }
        )
        assert clf.model_id == "linear_v1"
        assert tuple(clf.feature_names) == ("x", "y")
        assert tuple(clf.labels) == ("Calm", "Stressed")
        assert clf.predict({"x": 1.0, "y": 1.0}) == pytest.approx({"Calm": 0.5, "Stressed": 0.5})

    def test_from_dict_missing_keys(self):
        with pytest.raises(BadInputError):
            LinearClassifier.from_dict({"model_id": "broken"})

    def test_drives_engine(self, short_config, clock, fill_window):
        clf = LinearClassifier(
            model_id="legacy_linear",
            feature_names=LEGACY_FEATURE_NAMES,
            labels=("Calm", "Stressed"),
            weights=[[0.0, 0.1, 0.1, 0.0, 0.0], [0.05, 0.0, 0.0, 0.0, 0.0]],
            biases=[0.0, 0.0],
            mu={"hr_mean": 70.0, "sdnn": 10.0, "rmssd": 10.0, "pnn50": 0.0, "mean_rr": 800.0},
            sigma={"hr_mean": 10.0, "sdnn": 5.0, "rmssd": 5.0, "pnn50": 10.0, "mean_rr": 100.0},
        )
        engine = EmotionEngine(short_config, clf, clock=clock)
        fill_window(engine)
        (result,) = engine.consume()
        assert result.model["type"] == "linear"
        assert sum(result.probabilities.values()) == pytest.approx(1.0)
        assert result.emotion in ("Calm", "Stressed")
