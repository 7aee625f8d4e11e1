"""Configuration settings for the SkyCast forecasting pipeline."""

import random
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

# ============================================================
# RANDOM SEED CONFIGURATION
# ============================================================
RANDOM_STATE = 42
np.random.seed(RANDOM_STATE)
random.seed(RANDOM_STATE)

# ============================================================
# DATA CONFIGURATION
# ============================================================
DATA_PATH = "data/weather_data.csv"

CSV_COLUMNS = [
    'date',
    'temperature_c',
    'humidity',
    'pressure_hpa',
    'wind_speed_mps',
    'precipitation_mm',
    'weather_label',
]
NUMERIC_COLUMNS = CSV_COLUMNS[1:6]
DATE_FORMAT = "%Y-%m-%d"

# Order matters: index i is the encoded class i
WEATHER_LABELS: Tuple[str, ...] = ('clear', 'cloudy', 'rain', 'storm', 'snow')

# ============================================================
# FEATURE ENGINEERING
# ============================================================
FEATURE_COLUMNS = [
    'temperature_c',
    'humidity',
    'pressure_hpa',
    'wind_speed_mps',
    'precipitation_mm',
    'day_of_year',
    'month',
    'weekday',
    'is_weekend',
    'rolling_mean_temp_3',
    'rolling_std_temp_7',
]
N_FEATURES = len(FEATURE_COLUMNS)

ROLLING_MEAN_WINDOW = 3
ROLLING_STD_WINDOW = 7

# Calendar placeholders used when a prediction input carries no date
DEFAULT_CALENDAR_FEATURES = (0.5, 0.5, 0.5, 0.0)

# ============================================================
# MODEL HYPERPARAMETERS
# ============================================================
WINDOW_SIZE = 3
LSTM_UNITS = 32
CLASSIFIER_HIDDEN_UNITS = (16, 8)
LEARNING_RATE = 0.01
EPOCHS = 50
BATCH_SIZE = 8

# ============================================================
# EVALUATION
# ============================================================
# Illustrative figures for the evaluation tab; not computed from data.
REFERENCE_METRICS = {
    'mae': 1.2,
    'rmse': 1.5,
    'accuracy': 0.85,
}


@dataclass(frozen=True)
class TrainingConfig:
    """Hyperparameters shared by both trainers."""

    window_size: int = WINDOW_SIZE
    lstm_units: int = LSTM_UNITS
    hidden_units: Tuple[int, ...] = CLASSIFIER_HIDDEN_UNITS
    learning_rate: float = LEARNING_RATE
    epochs: int = EPOCHS
    batch_size: int = BATCH_SIZE
    seed: Optional[int] = RANDOM_STATE
