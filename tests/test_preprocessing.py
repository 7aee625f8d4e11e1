"""Tests for label encoding and CSV loading."""

import dataclasses
import io
from datetime import date

import pytest

from skycast.config import WEATHER_LABELS
from skycast.exceptions import MalformedInputError
from skycast.preprocessing import (
    LABEL_ENCODING,
    LabelEncoding,
    load_observations,
    observations_to_frame,
    summarize_observations,
)


class TestLabelEncoding:

    @pytest.mark.parametrize("label", WEATHER_LABELS)
    def test_round_trip(self, label):
        assert LABEL_ENCODING.decode(LABEL_ENCODING.encode(label)) == label

    def test_indices_follow_label_order(self):
        assert [LABEL_ENCODING.encode(label) for label in WEATHER_LABELS] == [0, 1, 2, 3, 4]

    def test_unknown_label_maps_to_first_class(self):
        assert LABEL_ENCODING.encode("hail") == 0
        assert LABEL_ENCODING.encode("") == 0

    def test_decode_out_of_range(self):
        with pytest.raises(MalformedInputError):
            LABEL_ENCODING.decode(5)

    def test_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            LABEL_ENCODING.labels = ("other",)
        with pytest.raises(TypeError):
            LABEL_ENCODING.index["hail"] = 9

    def test_rebuilt_encoding_is_equal(self):
        assert LabelEncoding(WEATHER_LABELS) == LABEL_ENCODING
        assert len(LABEL_ENCODING) == 5
        assert "snow" in LABEL_ENCODING


class TestLoadObservations:

    def test_parses_rows_in_upload_order(self, weather_csv):
        observations = load_observations(io.StringIO(weather_csv))

        assert [obs.date for obs in observations] == [
            date(2024, 1, 2), date(2024, 1, 1), date(2024, 1, 3)
        ]
        assert observations[1].temperature_c == 4.0
        assert observations[1].precipitation_mm == 1.2

    def test_labels_are_normalized(self, weather_csv):
        observations = load_observations(io.StringIO(weather_csv))
        assert [obs.weather_label for obs in observations] == ["clear", "rain", "storm"]

    def test_rejects_unparseable_numeric(self):
        csv = (
            "date,temperature_c,humidity,pressure_hpa,wind_speed_mps,precipitation_mm,weather_label\n"
            "2024-01-01,warm,65,1015.2,2.4,1.2,rain\n"
        )
        with pytest.raises(MalformedInputError, match="malformed row"):
            load_observations(io.StringIO(csv))

    def test_rejects_empty_numeric_instead_of_zero(self):
        csv = (
            "date,temperature_c,humidity,pressure_hpa,wind_speed_mps,precipitation_mm,weather_label\n"
            "2024-01-01,4.0,,1015.2,2.4,1.2,rain\n"
        )
        with pytest.raises(MalformedInputError):
            load_observations(io.StringIO(csv))

    def test_rejects_bad_date(self):
        csv = (
            "date,temperature_c,humidity,pressure_hpa,wind_speed_mps,precipitation_mm,weather_label\n"
            "2024-13-01,4.0,65,1015.2,2.4,1.2,rain\n"
        )
        with pytest.raises(MalformedInputError):
            load_observations(io.StringIO(csv))

    def test_missing_column(self):
        csv = "date,temperature_c\n2024-01-01,4.0\n"
        with pytest.raises(MalformedInputError, match="Missing required columns"):
            load_observations(io.StringIO(csv))

    def test_empty_file(self):
        with pytest.raises(MalformedInputError):
            load_observations(io.StringIO(""))

    def test_lenient_mode_drops_bad_rows(self, capsys):
        csv = (
            "date,temperature_c,humidity,pressure_hpa,wind_speed_mps,precipitation_mm,weather_label\n"
            "2024-01-01,4.0,65,1015.2,2.4,1.2,rain\n"
            "2024-01-02,oops,65,1015.2,2.4,1.2,rain\n"
            "2024-01-03,5.0,66,1014.0,2.0,0.0,clear\n"
        )
        observations = load_observations(io.StringIO(csv), strict=False)

        assert [obs.date.day for obs in observations] == [1, 3]
        assert "Dropped 1 malformed row" in capsys.readouterr().out


class TestSummaries:

    def test_frame_has_csv_layout(self, observations):
        frame = observations_to_frame(observations)
        assert list(frame.columns)[0] == "date"
        assert len(frame) == len(observations)

    def test_empty_frame(self):
        assert observations_to_frame([]).empty

    def test_summary(self, make_observations):
        observations = make_observations(4, temps=[10, 12, 14, 16])
        summary = summarize_observations(observations)

        assert summary['records'] == 4
        assert summary['avg_temperature'] == pytest.approx(13.0)
        assert summary['features'] == 11
        assert summary['missing_values'] == 0
        assert summary['unknown_labels'] == 0
        assert sum(summary['label_counts'].values()) == 4

    def test_summary_of_nothing(self):
        assert summarize_observations([])['records'] == 0
