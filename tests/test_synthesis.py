"""
Unit tests for 2045 weather synthesis.
"""

import pytest

from weather2045.config import ProjectionConfig
from weather2045.core.synthesis import (
    apply_interventions_to_precipitation,
    synthesize,
    synthesize_dew_point,
    synthesize_max_temperature,
    synthesize_precipitation,
    synthesize_temperature,
    synthesize_unchanged,
    synthesize_wet_probability,
)
from weather2045.models.weather import (
    Anomaly,
    InterventionBasket,
    ObservedWeather,
    Scenario,
)
from weather2045.utils.weather_utils import calculate_dew_point

NONE = InterventionBasket.preset("none")
MEDIUM = InterventionBasket.preset("medium")


@pytest.fixture
def dry_observation():
    return ObservedWeather(
        temp_c=20.0,
        relative_humidity=0.6,
        wind_speed_ms=3.0,
        cloud_cover_fraction=0.4,
        precip_probability=0.2,
        precip_mm=0.0,
    )


@pytest.fixture
def anomaly():
    return Anomaly(
        delta_t_mean_c=2.0,
        delta_t_max_c=2.6,
        delta_wet_probability=0.06,
        delta_intensity_fraction=0.14,
    )


class TestTemperature:
    def test_no_interventions(self):
        assert synthesize_temperature(20.0, 2.5, NONE) == pytest.approx(22.5, abs=0.01)

    def test_interventions_reduce_warming(self):
        """Cooling offsets are subtracted from the warming delta."""
        assert synthesize_temperature(20.0, 2.5, MEDIUM) == pytest.approx(21.7)
        assert synthesize_temperature(20.0, 2.5, InterventionBasket.preset("high")) == pytest.approx(21.2)

    def test_max_temperature(self):
        assert synthesize_max_temperature(25.0, 3.0, NONE) == pytest.approx(28.0)
        assert synthesize_max_temperature(25.0, 3.0, MEDIUM) == pytest.approx(27.2)


class TestDewPoint:
    def test_magnus_value(self):
        assert synthesize_dew_point(20.0, 0.5) == pytest.approx(9.25, abs=0.01)

    def test_saturated_air(self):
        """At 100% RH the dew point equals the air temperature."""
        assert synthesize_dew_point(23.4, 1.0) == pytest.approx(23.4)

    def test_dew_point_rises_with_temperature(self):
        assert synthesize_dew_point(25.0, 0.6) > synthesize_dew_point(20.0, 0.6)


class TestWetProbability:
    def test_clamped_high(self):
        assert synthesize_wet_probability(0.9, 0.2) == 1.0

    def test_clamped_low(self):
        assert synthesize_wet_probability(0.1, -0.2) == 0.0

    @pytest.mark.parametrize("observed", [0.0, 0.25, 0.5, 0.75, 1.0])
    @pytest.mark.parametrize("delta", [-1.5, -0.3, 0.0, 0.3, 1.5])
    def test_always_in_unit_interval(self, observed, delta):
        assert 0.0 <= synthesize_wet_probability(observed, delta) <= 1.0


class TestPrecipitation:
    def test_wet_day_scales_by_intensity(self):
        assert synthesize_precipitation(10.0, 0.8, 0.85, 0.2) == pytest.approx(12.0)

    def test_dry_day_becoming_wetter(self):
        """Expected value of a median wet day at the new probability."""
        assert synthesize_precipitation(0.0, 0.2, 0.3, 0.1) == pytest.approx(0.3 * 5.0 * 1.1)

    def test_median_wet_day_override(self):
        assert synthesize_precipitation(0.0, 0.2, 0.3, 0.1, median_wet_day_mm=8.0) == pytest.approx(0.3 * 8.0 * 1.1)

    def test_stays_dry(self):
        assert synthesize_precipitation(0.0, 0.2, 0.2, 0.3) == 0.0
        assert synthesize_precipitation(0.0, 0.2, 0.1, 0.3) == 0.0

    def test_never_negative(self):
        assert synthesize_precipitation(10.0, 0.8, 0.8, -1.5) == 0.0


class TestInterventionDamping:
    def test_damped_below_bau(self):
        assert apply_interventions_to_precipitation(10.0, 9.0, 1.0) == pytest.approx(8.55)

    def test_never_exceeds_bau(self):
        assert apply_interventions_to_precipitation(5.0, 9.0, 0.6) == 5.0

    def test_custom_alpha(self):
        assert apply_interventions_to_precipitation(10.0, 8.0, 1.0, alpha=0.1) == pytest.approx(7.2)

    def test_no_srm_no_change(self):
        assert apply_interventions_to_precipitation(10.0, 8.0, 0.0) == pytest.approx(8.0)


class TestSynthesize:
    def test_pass_through_fields(self):
        assert synthesize_unchanged(4.2) == 4.2

    def test_full_synthesis(self, dry_observation, anomaly):
        result = synthesize(dry_observation, anomaly, Scenario.BAU, NONE)

        assert result.temp_c == pytest.approx(22.0)
        assert result.max_temp_c == pytest.approx(27.6)
        assert result.relative_humidity == 0.6
        assert result.dew_point_c == pytest.approx(calculate_dew_point(22.0, 0.6))
        assert result.precip_probability == pytest.approx(0.26)
        assert result.precip_mm == pytest.approx(0.26 * 5.0 * 1.14)
        assert result.wind_speed_ms == 3.0
        assert result.cloud_cover_fraction == 0.4
        assert result.scenario is Scenario.BAU
        assert result.intervention_basket == NONE

    def test_full_synthesis_with_interventions(self, dry_observation, anomaly):
        result = synthesize(dry_observation, anomaly, Scenario.MITIGATION, MEDIUM)
        assert result.temp_c == pytest.approx(21.2)
        assert result.max_temp_c == pytest.approx(26.8)
        assert result.scenario is Scenario.MITIGATION

    def test_config_median_wet_day(self, dry_observation, anomaly):
        config = ProjectionConfig(median_wet_day_mm=10.0)
        result = synthesize(dry_observation, anomaly, Scenario.BAU, NONE, config)
        assert result.precip_mm == pytest.approx(0.26 * 10.0 * 1.14)

    def test_deterministic(self, dry_observation, anomaly):
        a = synthesize(dry_observation, anomaly, Scenario.BAU, MEDIUM)
        b = synthesize(dry_observation, anomaly, Scenario.BAU, MEDIUM)
        assert a == b
