"""Model definition and training utilities."""

import math
import threading
from typing import Callable, Optional

import numpy as np
from tensorflow import keras
from tensorflow.keras import layers

from skycast.config import N_FEATURES, WEATHER_LABELS, TrainingConfig
from skycast.entities import EpochProgress
from skycast.exceptions import (
    InsufficientDataError,
    NumericInstabilityError,
    TrainingCancelledError,
)
from skycast.feature_engineering import make_windows

ProgressHandler = Callable[[EpochProgress], None]


def build_regressor(config: TrainingConfig, n_features: int = N_FEATURES) -> keras.Sequential:
    """LSTM summarising one lookback window into a next-step temperature."""
    model = keras.Sequential([
        keras.Input(shape=(config.window_size, n_features)),
        layers.LSTM(config.lstm_units, return_sequences=False),
        layers.Dense(1),
    ])
    model.compile(
        optimizer=keras.optimizers.Adam(learning_rate=config.learning_rate),
        loss='mean_squared_error',
    )
    return model


def build_classifier(config: TrainingConfig, n_features: int = N_FEATURES,
                     n_classes: int = len(WEATHER_LABELS)) -> keras.Sequential:
    """Feed-forward network from one feature vector to a label distribution."""
    model = keras.Sequential(
        [keras.Input(shape=(n_features,))]
        + [layers.Dense(units, activation='relu') for units in config.hidden_units]
        + [layers.Dense(n_classes, activation='softmax')]
    )
    model.compile(
        optimizer=keras.optimizers.Adam(learning_rate=config.learning_rate),
        loss='categorical_crossentropy',
        metrics=['accuracy'],
    )
    return model


class EpochProgressCallback(keras.callbacks.Callback):
    """
    Report per-epoch progress and stop on divergence or cancellation.

    The trainer checks ``diverged`` and ``cancelled`` after ``fit`` returns
    and raises the matching error. Cancellation is honoured at every batch
    and after every epoch but the last one.
    """

    def __init__(self, model_name: str, on_epoch_end: Optional[ProgressHandler] = None,
                 cancel_event: Optional[threading.Event] = None):
        super().__init__()
        self.model_name = model_name
        self.on_epoch_end_handler = on_epoch_end
        self.cancel_event = cancel_event
        self.diverged: Optional[EpochProgress] = None
        self.cancelled = False
        self.history = []

    def _check_cancel(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.cancelled = True
            self.model.stop_training = True

    def on_train_batch_end(self, batch, logs=None):
        self._check_cancel()

    def on_epoch_end(self, epoch, logs=None):
        logs = logs or {}
        loss = float(logs.get('loss', float('nan')))
        accuracy = logs.get('accuracy')
        progress = EpochProgress(
            model=self.model_name,
            epoch=epoch,
            loss=loss,
            accuracy=None if accuracy is None else float(accuracy),
        )
        self.history.append(progress)

        if not math.isfinite(loss):
            self.diverged = progress
            self.model.stop_training = True
            return

        if self.on_epoch_end_handler is not None:
            self.on_epoch_end_handler(progress)
        # A completed final epoch is kept even if cancel arrives during the handler
        if epoch < self.params.get('epochs', epoch + 1) - 1:
            self._check_cancel()


def _fit(model, X, y, callback: EpochProgressCallback, config: TrainingConfig):
    if callback.cancel_event is not None and callback.cancel_event.is_set():
        raise TrainingCancelledError(f"{callback.model_name} training cancelled before start")

    model.fit(
        X, y,
        epochs=config.epochs,
        batch_size=config.batch_size,
        verbose=0,
        callbacks=[callback],
    )

    if callback.diverged is not None:
        raise NumericInstabilityError(
            callback.model_name, callback.diverged.epoch, callback.diverged.loss
        )
    if callback.cancelled:
        raise TrainingCancelledError(
            f"{callback.model_name} training cancelled after {len(callback.history)} epoch(s)"
        )
    return model


def train_regressor(
    features: np.ndarray,
    targets: np.ndarray,
    config: TrainingConfig = TrainingConfig(),
    on_epoch_end: Optional[ProgressHandler] = None,
    cancel_event: Optional[threading.Event] = None
) -> keras.Sequential:
    """
    Fit the sequence regressor on next-step temperature targets.

    Parameters:
    -----------
    features : ndarray (n, n_features)
        Feature matrix from engineer_features
    targets : ndarray (n,)
        Temperature of each row
    config : TrainingConfig
        Hyperparameters
    on_epoch_end : callable, optional
        Receives an EpochProgress after every epoch
    cancel_event : threading.Event, optional
        Set it to stop training at the next batch

    Returns:
    --------
    model : keras.Sequential
        The fitted regressor
    """
    X, y = make_windows(features, targets, config.window_size)
    if len(X) == 0:
        raise InsufficientDataError(
            f"Need at least {config.window_size + 1} rows to build one "
            f"{config.window_size}-step window, got {len(features)}"
        )

    if config.seed is not None:
        keras.utils.set_random_seed(config.seed)

    model = build_regressor(config, n_features=X.shape[2])
    callback = EpochProgressCallback('regressor', on_epoch_end, cancel_event)
    return _fit(
        model,
        X.astype(np.float32),
        y.astype(np.float32).reshape(-1, 1),
        callback,
        config,
    )


def train_classifier(
    features: np.ndarray,
    class_labels: np.ndarray,
    config: TrainingConfig = TrainingConfig(),
    on_epoch_end: Optional[ProgressHandler] = None,
    cancel_event: Optional[threading.Event] = None
) -> keras.Sequential:
    """Fit the weather-category classifier on one-hot encoded labels."""
    features = np.asarray(features, dtype=np.float32)
    if len(features) == 0:
        raise InsufficientDataError("Need at least one row to train the classifier")

    if config.seed is not None:
        keras.utils.set_random_seed(config.seed)

    n_classes = len(WEATHER_LABELS)
    y = keras.utils.to_categorical(np.asarray(class_labels, dtype=np.int64), num_classes=n_classes)

    model = build_classifier(config, n_features=features.shape[1], n_classes=n_classes)
    callback = EpochProgressCallback('classifier', on_epoch_end, cancel_event)
    return _fit(model, features, y, callback, config)
