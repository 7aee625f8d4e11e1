"""Preprocessing utilities: label encoding and CSV loading."""

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

import numpy as np
import pandas as pd

from skycast.config import (
    CSV_COLUMNS,
    DATE_FORMAT,
    N_FEATURES,
    NUMERIC_COLUMNS,
    WEATHER_LABELS,
)
from skycast.entities import Observation
from skycast.exceptions import MalformedInputError


@dataclass(frozen=True)
class LabelEncoding:
    """
    Fixed bidirectional mapping between weather labels and class indices.

    Unknown labels encode to ``default`` (index 0, "clear"), so an unlabeled
    row is indistinguishable from a clear day once encoded.
    """
    labels: Tuple[str, ...]
    default: int = 0
    _index: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        index = {label: i for i, label in enumerate(self.labels)}
        object.__setattr__(self, '_index', MappingProxyType(index))

    def __len__(self):
        return len(self.labels)

    def __contains__(self, label):
        return label in self._index

    @property
    def index(self) -> Mapping[str, int]:
        """Read-only label -> index view."""
        return self._index

    def encode(self, label: str) -> int:
        return self._index.get(label, self.default)

    def decode(self, index: int) -> str:
        if not 0 <= index < len(self.labels):
            raise MalformedInputError(
                f"Class index {index} outside 0..{len(self.labels) - 1}"
            )
        return self.labels[index]


LABEL_ENCODING = LabelEncoding(WEATHER_LABELS)


def load_observations(source, strict: bool = True) -> List[Observation]:
    """
    Parse a weather CSV into observations, keeping upload order.

    Parameters:
    -----------
    source : str, Path or file-like
        Anything ``pd.read_csv`` accepts
    strict : bool
        If True, any malformed row raises. Otherwise malformed rows
        are dropped and reported.

    Returns:
    --------
    observations : list of Observation

    Raises:
    -------
    MalformedInputError
        Missing columns, an unreadable file, or (strict mode) rows with
        unparseable dates or numeric fields.
    """
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Could not read weather data: {e}") from e

    df.columns = [str(col).strip() for col in df.columns]
    missing = [col for col in CSV_COLUMNS if col not in df.columns]
    if missing:
        raise MalformedInputError(f"Missing required columns: {missing}")

    df = df[CSV_COLUMNS].apply(lambda s: s.str.strip())
    df = df[~(df == '').all(axis=1)].reset_index(drop=True)

    dates = pd.to_datetime(df['date'], format=DATE_FORMAT, errors='coerce')
    numeric = df[NUMERIC_COLUMNS].apply(lambda s: pd.to_numeric(s, errors='coerce')).astype(float)
    labels = df['weather_label'].str.lower()

    bad_mask = dates.isna() | ~np.isfinite(numeric.to_numpy()).all(axis=1)
    if bad_mask.any():
        bad_rows = (np.flatnonzero(bad_mask.to_numpy()) + 1).tolist()
        if strict:
            raise MalformedInputError(
                f"{len(bad_rows)} malformed row(s) at data rows {bad_rows[:10]}"
            )
        print(f"⚠ Dropped {len(bad_rows)} malformed row(s): {bad_rows[:10]}")

    keep = ~bad_mask
    observations = [
        Observation(
            date=ts.date(),
            temperature_c=float(row['temperature_c']),
            humidity=float(row['humidity']),
            pressure_hpa=float(row['pressure_hpa']),
            wind_speed_mps=float(row['wind_speed_mps']),
            precipitation_mm=float(row['precipitation_mm']),
            weather_label=label,
        )
        for ts, (_, row), label in zip(dates[keep], numeric[keep].iterrows(), labels[keep])
    ]
    return observations


def observations_to_frame(observations: List[Observation]) -> pd.DataFrame:
    """Convert observations to a DataFrame with the CSV column layout."""
    if not observations:
        return pd.DataFrame(columns=CSV_COLUMNS)
    return pd.DataFrame([asdict(obs) for obs in observations], columns=CSV_COLUMNS)


def summarize_observations(observations: List[Observation]) -> Dict:
    """Headline statistics for the dataset tab."""
    df = observations_to_frame(observations)
    if df.empty:
        return {
            'records': 0,
            'avg_temperature': float('nan'),
            'avg_humidity': float('nan'),
            'missing_values': 0,
            'features': N_FEATURES,
        }

    label_counts = df['weather_label'].value_counts()
    return {
        'records': len(df),
        'avg_temperature': float(df['temperature_c'].mean()),
        'avg_humidity': float(df['humidity'].mean()),
        'missing_values': int(df.isna().sum().sum()),
        'features': N_FEATURES,
        'label_counts': {label: int(label_counts.get(label, 0)) for label in WEATHER_LABELS},
        'unknown_labels': int((~df['weather_label'].isin(WEATHER_LABELS)).sum()),
    }
