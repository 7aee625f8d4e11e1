from datetime import date, timedelta

import pytest

from skycast.config import WEATHER_LABELS, TrainingConfig
from skycast.entities import Observation


def build_observations(n, temps=None, start=date(2024, 1, 1), labels=WEATHER_LABELS):
    """Consecutive daily observations with simple, varied readings."""
    temps = temps if temps is not None else [10.0 + (i % 5) for i in range(n)]
    return [
        Observation(
            date=start + timedelta(days=i),
            temperature_c=float(temps[i]),
            humidity=60.0 + i % 10,
            pressure_hpa=1010.0 + i % 3,
            wind_speed_mps=3.0 + (i % 4) * 0.5,
            precipitation_mm=float(i % 2),
            weather_label=labels[i % len(labels)],
        )
        for i in range(n)
    ]


@pytest.fixture
def make_observations():
    return build_observations


@pytest.fixture
def observations():
    return build_observations(20)


@pytest.fixture
def fast_config():
    """Two-epoch config so Keras tests stay quick."""
    return TrainingConfig(epochs=2, batch_size=8)


@pytest.fixture
def weather_csv():
    return (
        "date,temperature_c,humidity,pressure_hpa,wind_speed_mps,precipitation_mm,weather_label\n"
        "2024-01-02,5.5,70,1012.0,3.1,0.0,Clear\n"
        "\n"
        "2024-01-01,4.0,65,1015.2,2.4,1.2, rain \n"
        "2024-01-03,6.1,80,1009.8,5.0,3.4,storm\n"
    )


@pytest.fixture(scope="module")
def trained_forecaster():
    """Forecaster with both slots filled, shared across a test module."""
    from skycast.forecaster import WeatherForecaster

    forecaster = WeatherForecaster(TrainingConfig(epochs=2))
    forecaster.train_all(build_observations(20))
    return forecaster
