"""
Unit tests for the climate anomaly provider.

Tests grid snapping, the parametric fallback model, dataset loading and
the memoizing cache.
"""

import json
import shelve
from concurrent.futures import ThreadPoolExecutor

import pandas as pd
import pytest

from weather2045.config import ProjectionConfig
from weather2045.core.anomaly_provider import (
    AnomalyProvider,
    key_to_string,
    latitude_scaling_factor,
    load_anomaly_dataset,
    parametric_anomaly,
    seasonal_scaling_factor,
)
from weather2045.models.weather import Anomaly, GridCell, Scenario


@pytest.fixture
def provider():
    """Provider without a dataset (parametric model only)."""
    return AnomalyProvider()


@pytest.fixture
def json_dataset(tmp_path):
    """Anomaly bundle in the nested JSON format."""
    records = [
        {
            "gridCell": {"latitude": 40.0, "longitude": -75.0},
            "month": 7,
            "scenario": "BAU",
            "anomaly": {
                "dT_mean": 3.1,
                "dT_max": 4.2,
                "dP_wetProb": 0.05,
                "dP_intensity": 0.2,
                "dHotDays90F": 12,
            },
        },
        {
            "gridCell": {"latitude": 40.0, "longitude": -75.0},
            "month": 7,
            "scenario": "Mitigation",
            "anomaly": {
                "dT_mean": 1.9,
                "dT_max": 2.4,
                "dP_wetProb": 0.03,
                "dP_intensity": 0.1,
                "dDrySpellDays": 2,
            },
        },
    ]
    path = tmp_path / "anomalies.json"
    path.write_text(json.dumps(records))
    return path


class TestGridCell:
    """Test nearest-cell snapping."""

    def test_nearest_rounding_not_truncation(self):
        """Nearby points on either side of a half-degree go to different cells."""
        assert GridCell.from_coordinates(40.3, -74.7) == GridCell(40.0, -75.0)
        assert GridCell.from_coordinates(40.7, -74.3) == GridCell(41.0, -74.0)

    def test_halfway_rounds_away_from_zero(self):
        """Exact halves round away from zero in both hemispheres."""
        assert GridCell.from_coordinates(40.5, -74.5) == GridCell(41.0, -75.0)
        assert GridCell.from_coordinates(-0.5, 0.5) == GridCell(-1.0, 1.0)

    def test_fractional_resolution(self):
        """Half-degree grid snaps to half-degree centres."""
        assert GridCell.from_coordinates(40.3, -74.2, resolution=0.5) == GridCell(40.5, -74.0)

    @pytest.mark.parametrize(
        "latitude,longitude,expected",
        [
            (0.15, 0.35, GridCell(0.2, 0.4)),
            (0.25, 0.45, GridCell(0.3, 0.5)),
            (-0.15, -0.35, GridCell(-0.2, -0.4)),
            (40.05, -74.65, GridCell(40.1, -74.7)),
        ],
    )
    def test_tenth_degree_halves_round_away_from_zero(self, latitude, longitude, expected):
        """Float error in the quotient does not flip the direction of a half."""
        assert GridCell.from_coordinates(latitude, longitude, resolution=0.1) == expected

    def test_negative_zero_folded(self):
        """Points just south/west of the origin share the origin cell key."""
        cell = GridCell.from_coordinates(-0.2, -0.2)
        assert cell == GridCell(0.0, 0.0)
        assert str(cell.latitude) == "0.0"


class TestParametricModel:
    """Test the regional and seasonal scaling fallback."""

    @pytest.mark.parametrize(
        "latitude,expected",
        [(70, 1.5), (-61, 1.5), (50, 1.1), (40, 0.95), (10, 0.85), (-30, 0.85)],
    )
    def test_latitude_factor(self, latitude, expected):
        assert latitude_scaling_factor(latitude) == expected

    def test_polar_winter_amplified(self):
        """Polar winters warm more; hemispheres are reversed."""
        assert seasonal_scaling_factor(70, 1) == 1.3
        assert seasonal_scaling_factor(70, 7) == 1.0
        assert seasonal_scaling_factor(-70, 7) == 1.3
        assert seasonal_scaling_factor(-70, 1) == 1.0

    def test_midlatitude_summer_amplified(self):
        assert seasonal_scaling_factor(40, 7) == 1.1
        assert seasonal_scaling_factor(-40, 1) == 1.1
        assert seasonal_scaling_factor(40, 1) == 1.0

    def test_tropics_no_seasonal_adjustment(self):
        for month in range(1, 13):
            assert seasonal_scaling_factor(10, month) == 1.0

    def test_bau_midlatitude_summer_values(self):
        """New York-like cell in July under business-as-usual."""
        anomaly = parametric_anomaly(41.0, 7, Scenario.BAU)
        assert anomaly.delta_t_mean_c == pytest.approx(2.6125)
        assert anomaly.delta_t_max_c == pytest.approx(2.6125 * 1.3)
        assert anomaly.delta_wet_probability == pytest.approx(2.6125 * 0.03)
        assert anomaly.delta_intensity_fraction == pytest.approx(2.6125 * 0.07)
        assert anomaly.delta_hot_days_90f == 13
        assert anomaly.delta_dry_spell_days == 5

    def test_mitigation_dry_spell_rate(self):
        anomaly = parametric_anomaly(41.0, 7, Scenario.MITIGATION)
        assert anomaly.delta_t_mean_c == pytest.approx(1.881)
        assert anomaly.delta_dry_spell_days == 2
        assert anomaly.delta_hot_days_90f == 9

    def test_bau_never_below_mitigation(self):
        """Mitigation never warms more than business-as-usual."""
        for latitude in (-75, -50, -35, 0, 20, 40, 55, 80):
            for month in range(1, 13):
                bau = parametric_anomaly(latitude, month, Scenario.BAU)
                mit = parametric_anomaly(latitude, month, Scenario.MITIGATION)
                assert bau.delta_t_mean_c >= mit.delta_t_mean_c

    def test_polar_amplification(self):
        for month in range(1, 13):
            polar = parametric_anomaly(70, month, Scenario.BAU)
            tropical = parametric_anomaly(10, month, Scenario.BAU)
            assert polar.delta_t_mean_c > tropical.delta_t_mean_c

    def test_base_warming_override(self):
        config = ProjectionConfig(base_warming_bau_c=3.0)
        anomaly = parametric_anomaly(10, 3, Scenario.BAU, config)
        assert anomaly.delta_t_mean_c == pytest.approx(2.55)


class TestAnomalyProvider:
    """Test lookup order, caching and validation."""

    def test_repeated_lookup_identical(self, provider):
        """Identical requests return the same object regardless of other lookups."""
        first = provider.get_anomaly(40.7, -74.0, 7, Scenario.BAU)
        provider.get_anomaly(-33.9, 151.2, 1, Scenario.MITIGATION)
        provider.get_anomaly(64.8, -147.7, 12, Scenario.BAU)
        second = provider.get_anomaly(40.7, -74.0, 7, Scenario.BAU)
        assert first is second
        assert first == second

    def test_same_cell_shares_result(self, provider):
        """Coordinates in one cell share one cached anomaly."""
        a = provider.get_anomaly(40.6, -74.4, 7, Scenario.BAU)
        b = provider.get_anomaly(41.4, -73.6, 7, Scenario.BAU)
        assert a is b

    def test_fallback_uses_cell_centre(self, provider):
        """Raw latitude 60.4 sits in the 60° cell, which is not polar."""
        anomaly = provider.get_anomaly(60.4, 10.0, 1, Scenario.BAU)
        assert anomaly.delta_t_mean_c == pytest.approx(2.5 * 1.1)

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month_raises(self, provider, month):
        with pytest.raises(ValueError):
            provider.get_anomaly(40.0, -74.0, month, Scenario.BAU)

    def test_non_integer_month_raises(self, provider):
        with pytest.raises(ValueError):
            provider.get_anomaly(40.0, -74.0, 7.5, Scenario.BAU)

    def test_injected_cache_store(self):
        """The provider writes through to the supplied mapping."""
        store = {}
        provider = AnomalyProvider(cache=store)
        anomaly = provider.get_anomaly(40.3, -74.7, 7, Scenario.BAU)
        assert store[key_to_string((40.0, -75.0, 7, "BAU"))] is anomaly
        assert all(isinstance(k, str) for k in store)

    def test_cache_hit_is_returned_unchanged(self):
        """A pre-populated cache entry wins over dataset and model."""
        sentinel = Anomaly(9.0, 9.0, 0.0, 0.0)
        provider = AnomalyProvider(cache={key_to_string((40.0, -75.0, 7, "BAU")): sentinel})
        assert provider.get_anomaly(40.0, -75.0, 7, Scenario.BAU) is sentinel

    def test_key_to_string(self):
        key = key_to_string((40.0, -75.0, 7, "BAU"))
        assert json.loads(key) == {"lat": 40.0, "lon": -75.0, "month": 7, "scenario": "BAU"}
        assert key != key_to_string((40.0, -75.0, 7, "Mitigation"))

    def test_shelve_backed_cache_persists(self, tmp_path):
        """A shelf works as the cache store and survives a new provider."""
        path = str(tmp_path / "anomaly_cache")
        with shelve.open(path) as shelf:
            first = AnomalyProvider(cache=shelf).get_anomaly(40.3, -74.7, 7, Scenario.BAU)

        sentinel = Anomaly(9.0, 9.0, 0.0, 0.0)
        with shelve.open(path) as shelf:
            assert shelf[key_to_string((40.0, -75.0, 7, "BAU"))] == first
            shelf[key_to_string((41.0, -74.0, 1, "BAU"))] = sentinel
            provider = AnomalyProvider(cache=shelf)
            assert provider.get_anomaly(40.3, -74.7, 7, Scenario.BAU) == first
            assert provider.get_anomaly(40.7, -74.3, 1, Scenario.BAU) == sentinel

    def test_instances_do_not_share_cache(self):
        a = AnomalyProvider()
        b = AnomalyProvider()
        a.get_anomaly(10.0, 10.0, 3, Scenario.BAU)
        assert len(a.cache) == 1
        assert len(b.cache) == 0

    def test_resolution_fixed_from_config(self):
        provider = AnomalyProvider(ProjectionConfig(grid_resolution=0.5))
        assert provider.resolution == 0.5
        assert provider.grid_cell(40.3, -74.2) == GridCell(40.5, -74.0)

    def test_concurrent_callers_see_one_object(self, provider):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(
                pool.map(
                    lambda _: provider.get_anomaly(52.5, 13.4, 1, Scenario.BAU),
                    range(50),
                )
            )
        assert all(r is results[0] for r in results)
        assert len(provider.cache) == 1


class TestDatasetLoading:
    """Test JSON/CSV dataset loading and fallback."""

    def test_json_dataset_record_used(self, json_dataset):
        provider = AnomalyProvider(dataset=json_dataset)
        assert provider.dataset_size == 2

        anomaly = provider.get_anomaly(40.3, -74.7, 7, Scenario.BAU)
        assert anomaly.delta_t_mean_c == 3.1
        assert anomaly.delta_hot_days_90f == 12
        assert anomaly.delta_dry_spell_days is None

        mitigation = provider.get_anomaly(40.3, -74.7, 7, Scenario.MITIGATION)
        assert mitigation.delta_dry_spell_days == 2

    def test_missing_record_falls_back(self, json_dataset):
        """A different month is not in the dataset and uses the model."""
        provider = AnomalyProvider(dataset=json_dataset)
        anomaly = provider.get_anomaly(40.3, -74.7, 1, Scenario.BAU)
        assert anomaly == parametric_anomaly(40.0, 1, Scenario.BAU)

    def test_missing_file_falls_back(self, tmp_path):
        provider = AnomalyProvider(dataset=tmp_path / "nope.json")
        assert provider.dataset_size == 0
        anomaly = provider.get_anomaly(40.3, -74.7, 7, Scenario.BAU)
        assert anomaly == parametric_anomaly(40.0, 7, Scenario.BAU)

    def test_malformed_file_falls_back(self, tmp_path):
        path = tmp_path / "anomalies.json"
        path.write_text("{not json")
        provider = AnomalyProvider(dataset=path)
        assert provider.dataset_size == 0
        assert provider.get_anomaly(10.0, 10.0, 3, Scenario.BAU).delta_t_mean_c == pytest.approx(2.125)

    def test_unsupported_format_is_empty(self, tmp_path):
        path = tmp_path / "anomalies.xml"
        path.write_text("<a/>")
        assert load_anomaly_dataset(path) == {}

    def test_csv_bad_rows_skipped(self, tmp_path):
        df = pd.DataFrame(
            {
                "latitude": [51.5, 51.5, 51.5],
                "longitude": [-0.1, -0.1, -0.1],
                "month": [1, 2, 14],
                "scenario": ["bau", "SSP9", "bau"],
                "dT_mean": [1.5, 1.6, 1.7],
                "dT_max": [2.0, 2.1, 2.2],
                "dP_wetProb": [0.01, 0.01, 0.01],
                "dP_intensity": [0.05, 0.05, 0.05],
                "dDrySpellDays": [3, None, None],
            }
        )
        path = tmp_path / "anomalies.csv"
        df.to_csv(path, index=False)

        records = load_anomaly_dataset(path)
        assert len(records) == 1
        anomaly = records[(52.0, 0.0, 1, "BAU")]
        assert anomaly.delta_t_mean_c == 1.5
        assert anomaly.delta_dry_spell_days == 3

    def test_csv_missing_columns_is_empty(self, tmp_path):
        path = tmp_path / "anomalies.csv"
        pd.DataFrame({"latitude": [1.0], "longitude": [2.0]}).to_csv(path, index=False)
        assert load_anomaly_dataset(path) == {}

    def test_prebuilt_mapping(self):
        sentinel = Anomaly(0.5, 0.6, 0.0, 0.01)
        provider = AnomalyProvider(dataset={(0.0, 0.0, 6, "Mitigation"): sentinel})
        assert provider.get_anomaly(0.1, -0.2, 6, Scenario.MITIGATION) is sentinel
