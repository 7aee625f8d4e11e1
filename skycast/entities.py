"""Plain records passed between the loader, trainers and forecaster."""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Observation:
    """One day of sensor readings plus its weather category."""

    date: date
    temperature_c: float
    humidity: float
    pressure_hpa: float
    wind_speed_mps: float
    precipitation_mm: float
    weather_label: str


@dataclass(frozen=True)
class EpochProgress:
    """Progress event emitted after each training epoch."""

    model: str
    epoch: int
    loss: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class PredictionResult:
    temperature: float
    label: str
    confidence: float
