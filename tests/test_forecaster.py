"""Tests for the forecaster's model slots and prediction contract."""

import numpy as np
import pytest

from skycast.config import WEATHER_LABELS, TrainingConfig
from skycast.exceptions import (
    InsufficientDataError,
    MalformedInputError,
    ModelNotReadyError,
    NumericInstabilityError,
    SkyCastError,
    TrainingInProgressError,
)
from skycast.feature_engineering import build_feature_vector, engineer_features
from skycast.forecaster import ModelSlot, WeatherForecaster


class TestModelSlot:

    def test_starts_empty(self):
        slot = ModelSlot('regressor')

        assert slot.model is None
        assert not slot.is_ready
        assert not slot.is_training

    def test_replace(self):
        slot = ModelSlot('regressor')
        first, second = object(), object()

        slot.replace(first)
        slot.replace(second)

        assert slot.model is second

    def test_second_training_run_rejected(self):
        slot = ModelSlot('classifier')

        with slot.training():
            assert slot.is_training
            with pytest.raises(TrainingInProgressError):
                with slot.training():
                    pass
        assert not slot.is_training


class TestPredictBeforeTraining:

    def test_model_not_ready(self):
        forecaster = WeatherForecaster()

        with pytest.raises(ModelNotReadyError):
            forecaster.predict(build_feature_vector(20, 60, 1010, 5, 0))

    def test_not_ready_is_catchable_as_base_error(self):
        with pytest.raises(SkyCastError):
            WeatherForecaster().predict(np.zeros(11))

    def test_one_model_is_not_enough(self, observations):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))
        features, _, targets = engineer_features(observations)
        forecaster.train_regressor(features, targets)

        assert forecaster.regressor.is_ready
        assert not forecaster.is_ready
        with pytest.raises(ModelNotReadyError):
            forecaster.predict(features[0])


class TestTraining:

    def test_train_all_logs_both_models(self, trained_forecaster):
        log = trained_forecaster.training_log

        assert [entry.model for entry in log] == ['regressor'] * 2 + ['classifier'] * 2
        assert trained_forecaster.is_ready

    def test_train_all_needs_window_plus_one_rows(self, make_observations):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))

        with pytest.raises(InsufficientDataError):
            forecaster.train_all(make_observations(3))
        assert not forecaster.regressor.is_ready

    def test_train_regressor_three_rows(self, make_observations):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))
        features, _, targets = engineer_features(make_observations(3))

        with pytest.raises(InsufficientDataError):
            forecaster.train_regressor(features, targets)

    def test_failed_run_keeps_previous_model(self, observations):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))
        features, _, targets = engineer_features(observations)
        previous = forecaster.train_regressor(features, targets)

        bad_targets = targets.copy()
        bad_targets[:] = np.nan
        with pytest.raises(NumericInstabilityError):
            forecaster.train_regressor(features, bad_targets)

        assert forecaster.regressor.model is previous
        assert not forecaster.regressor.is_training

    def test_retraining_replaces_model(self, observations):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))
        features, class_labels, _ = engineer_features(observations)

        first = forecaster.train_classifier(features, class_labels)
        second = forecaster.train_classifier(features, class_labels)

        assert second is not first
        assert forecaster.classifier.model is second

    def test_concurrent_run_rejected(self, observations):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))
        features, _, targets = engineer_features(observations)

        with forecaster.regressor.training():
            with pytest.raises(TrainingInProgressError):
                forecaster.train_regressor(features, targets)


class TestPredict:

    def test_returns_temperature_and_known_label(self, trained_forecaster):
        result = trained_forecaster.predict(build_feature_vector(20, 60, 1010, 5, 0))

        assert np.isfinite(result.temperature)
        assert result.label in WEATHER_LABELS
        assert 0.0 <= result.confidence <= 1.0

    def test_repeats_vector_for_regressor_window(self, trained_forecaster):
        vector = build_feature_vector(12, 70, 1005, 2, 1)
        window = np.repeat(vector[np.newaxis, np.newaxis, :].astype(np.float32), 3, axis=1)
        expected = trained_forecaster.regressor.model.predict(window, verbose=0)[0, 0]

        result = trained_forecaster.predict(vector)

        assert result.temperature == pytest.approx(float(expected), rel=1e-5)

    def test_prediction_is_repeatable(self, trained_forecaster):
        vector = build_feature_vector(5, 80, 1000, 8, 12)

        assert trained_forecaster.predict(vector) == trained_forecaster.predict(vector)

    @pytest.mark.parametrize("bad", [np.zeros(10), np.zeros(12), np.zeros((3, 11))])
    def test_wrong_shape(self, trained_forecaster, bad):
        with pytest.raises(MalformedInputError):
            trained_forecaster.predict(bad)


class TestQuietCore:

    def test_training_writes_nothing_to_stdout(self, observations, capsys):
        forecaster = WeatherForecaster(TrainingConfig(epochs=1))
        features, class_labels, targets = engineer_features(observations)

        forecaster.train_regressor(features, targets)
        forecaster.train_classifier(features, class_labels)

        assert capsys.readouterr().out == ""

    def test_non_numeric_vector(self, trained_forecaster):
        vector = ['warm'] + [0.0] * 10

        with pytest.raises(MalformedInputError):
            trained_forecaster.predict(vector)
