"""Feature engineering utilities for weather forecasting."""

from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from skycast.config import (
    DEFAULT_CALENDAR_FEATURES,
    FEATURE_COLUMNS,
    N_FEATURES,
    ROLLING_MEAN_WINDOW,
    ROLLING_STD_WINDOW,
    WINDOW_SIZE,
)
from skycast.entities import Observation
from skycast.preprocessing import LABEL_ENCODING, observations_to_frame


def _calendar_features(dates: pd.Series) -> pd.DataFrame:
    """Normalized day-of-year, month, weekday and the weekend flag."""
    # Sunday = 0 .. Saturday = 6
    weekday_idx = (dates.dt.dayofweek + 1) % 7
    return pd.DataFrame({
        'day_of_year': dates.dt.dayofyear / 366,
        'month': (dates.dt.month - 1) / 12,
        'weekday': weekday_idx / 7,
        'is_weekend': weekday_idx.isin([0, 6]).astype(float),
    }, index=dates.index)


def engineer_features(
    observations: Sequence[Observation]
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Turn raw observations into model-ready arrays.

    Parameters:
    -----------
    observations : sequence of Observation
        Daily observations in any order; they are sorted by date here

    Returns:
    --------
    features : ndarray (n, 11)
        One row per observation, columns in FEATURE_COLUMNS order
    class_labels : ndarray (n,)
        Encoded weather label of each row
    temperature_targets : ndarray (n,)
        Temperature of each row, shifted into next-step targets by make_windows
    """
    if len(observations) == 0:
        return (
            np.empty((0, N_FEATURES), dtype=np.float64),
            np.empty(0, dtype=np.int64),
            np.empty(0, dtype=np.float64),
        )

    df_work = observations_to_frame(list(observations))
    df_work['date'] = pd.to_datetime(df_work['date'])
    df_work = df_work.sort_values('date', kind='stable').reset_index(drop=True)

    df_work = pd.concat([df_work, _calendar_features(df_work['date'])], axis=1)

    # Rolling statistics use only the current and previous rows
    temp = df_work['temperature_c'].astype(float)
    rolling_mean = temp.rolling(ROLLING_MEAN_WINDOW).mean()
    df_work['rolling_mean_temp_3'] = rolling_mean.where(rolling_mean.notna(), temp)
    df_work['rolling_std_temp_7'] = temp.rolling(ROLLING_STD_WINDOW).std(ddof=0).fillna(0.0)

    features = df_work[FEATURE_COLUMNS].to_numpy(dtype=np.float64)
    class_labels = np.array(
        [LABEL_ENCODING.encode(label) for label in df_work['weather_label']],
        dtype=np.int64,
    )
    temperature_targets = temp.to_numpy(dtype=np.float64)

    return features, class_labels, temperature_targets


def make_windows(
    features: np.ndarray,
    targets: np.ndarray,
    size: int = WINDOW_SIZE
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Slice a feature matrix into overlapping lookback windows.

    Window k covers rows k..k+size-1 and its target is the value at row
    k+size, the step right after the window. Returns zero windows when
    there are not more than ``size`` rows.
    """
    features = np.asarray(features, dtype=np.float64)
    targets = np.asarray(targets)
    n_features = features.shape[1] if features.ndim == 2 else N_FEATURES

    n_windows = max(len(features) - size, 0)
    if n_windows == 0:
        return np.empty((0, size, n_features), dtype=np.float64), targets[:0].copy()

    X = np.stack([features[i - size:i] for i in range(size, len(features))])
    y = targets[size:].copy()
    return X, y


def build_feature_vector(
    temperature_c: float,
    humidity: float,
    pressure_hpa: float,
    wind_speed_mps: float,
    precipitation_mm: float,
    on_date: Optional[date] = None
) -> np.ndarray:
    """
    Build a single current-conditions vector for prediction.

    Without a date the calendar features fall back to fixed placeholders.
    There is no history, so the rolling mean is the temperature itself and
    the rolling std is zero.
    """
    if on_date is None:
        calendar = list(DEFAULT_CALENDAR_FEATURES)
    else:
        calendar = _calendar_features(pd.Series(pd.to_datetime([on_date]))).iloc[0].tolist()

    return np.array(
        [temperature_c, humidity, pressure_hpa, wind_speed_mps, precipitation_mm]
        + calendar
        + [temperature_c, 0.0],
        dtype=np.float64,
    )


def features_to_frame(features: np.ndarray, dates: Optional[List[date]] = None) -> pd.DataFrame:
    """Label a feature matrix with its column names."""
    frame = pd.DataFrame(np.asarray(features), columns=FEATURE_COLUMNS)
    if dates is not None:
        frame.insert(0, 'date', pd.to_datetime(pd.Series(dates)))
    return frame
