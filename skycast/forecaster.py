"""Forecaster holding the trained model pair and serving predictions."""

import threading
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence

import numpy as np

from skycast import model_training
from skycast.config import N_FEATURES, TrainingConfig
from skycast.entities import EpochProgress, Observation, PredictionResult
from skycast.exceptions import (
    InsufficientDataError,
    MalformedInputError,
    ModelNotReadyError,
    TrainingInProgressError,
)
from skycast.feature_engineering import engineer_features
from skycast.preprocessing import LABEL_ENCODING


class ModelSlot:
    """
    One trained model reference with its own locks.

    ``_swap_lock`` guards reads and replacement of the reference, so a
    reader sees either the old model or the new one. ``_fit_lock`` marks
    a training run in progress and is never waited on.
    """

    def __init__(self, name: str):
        self.name = name
        self._model = None
        self._swap_lock = threading.Lock()
        self._fit_lock = threading.Lock()

    @property
    def model(self):
        with self._swap_lock:
            return self._model

    @property
    def is_ready(self) -> bool:
        return self.model is not None

    @property
    def is_training(self) -> bool:
        return self._fit_lock.locked()

    def replace(self, model):
        with self._swap_lock:
            self._model = model

    @contextmanager
    def training(self):
        if not self._fit_lock.acquire(blocking=False):
            raise TrainingInProgressError(f"{self.name} is already training")
        try:
            yield self
        finally:
            self._fit_lock.release()


class WeatherForecaster:
    """
    Trains the temperature regressor and weather classifier and combines
    them into a single forecast.

    Each model lives in its own slot. A finished training run replaces the
    slot's model wholesale; a failed or cancelled run leaves it untouched.
    """

    def __init__(self, config: Optional[TrainingConfig] = None):
        self.config = config or TrainingConfig()
        self.regressor = ModelSlot('regressor')
        self.classifier = ModelSlot('classifier')
        self.training_log: List[EpochProgress] = []

    @property
    def is_ready(self) -> bool:
        return self.regressor.is_ready and self.classifier.is_ready

    def train_regressor(self, features, targets,
                        on_epoch_end: Optional[Callable[[EpochProgress], None]] = None,
                        cancel_event: Optional[threading.Event] = None):
        with self.regressor.training():
            model = model_training.train_regressor(
                features, targets, self.config, on_epoch_end, cancel_event
            )
            self.regressor.replace(model)
        return model

    def train_classifier(self, features, class_labels,
                         on_epoch_end: Optional[Callable[[EpochProgress], None]] = None,
                         cancel_event: Optional[threading.Event] = None):
        with self.classifier.training():
            model = model_training.train_classifier(
                features, class_labels, self.config, on_epoch_end, cancel_event
            )
            self.classifier.replace(model)
        return model

    def train_all(self, observations: Sequence[Observation],
                  on_epoch_end: Optional[Callable[[EpochProgress], None]] = None,
                  cancel_event: Optional[threading.Event] = None) -> List[EpochProgress]:
        """
        Engineer features and train both models, regressor first.

        Returns the combined per-epoch log, which is also kept on
        ``training_log``.
        """
        min_rows = self.config.window_size + 1
        if len(observations) < min_rows:
            raise InsufficientDataError(
                f"Need at least {min_rows} observations to train, got {len(observations)}"
            )

        features, class_labels, temperature_targets = engineer_features(observations)
        log: List[EpochProgress] = []

        def record(progress: EpochProgress):
            log.append(progress)
            if on_epoch_end is not None:
                on_epoch_end(progress)

        self.train_regressor(features, temperature_targets, record, cancel_event)
        self.train_classifier(features, class_labels, record, cancel_event)

        self.training_log = log
        return log

    def predict(self, current_features) -> PredictionResult:
        """
        Forecast next-day temperature and weather label.

        The regressor has no real history at inference time, so its window
        is ``current_features`` repeated ``window_size`` times.
        """
        regressor = self.regressor.model
        classifier = self.classifier.model
        if regressor is None or classifier is None:
            raise ModelNotReadyError("Train both models before requesting a forecast")

        try:
            vector = np.asarray(current_features, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"Feature vector must be numeric: {e}") from e
        if vector.shape != (N_FEATURES,):
            raise MalformedInputError(
                f"Expected a feature vector of length {N_FEATURES}, got shape {vector.shape}"
            )

        window = np.repeat(vector[np.newaxis, np.newaxis, :], self.config.window_size, axis=1)
        temperature = float(regressor.predict(window, verbose=0).reshape(-1)[0])

        probabilities = classifier.predict(vector[np.newaxis, :], verbose=0)[0]
        label_index = int(np.argmax(probabilities))

        return PredictionResult(
            temperature=temperature,
            label=LABEL_ENCODING.decode(label_index),
            confidence=float(probabilities[label_index]),
        )
