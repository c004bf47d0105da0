"""
2045 Weather Synthesis

Produces a SynthesizedWeather from an ObservedWeather, an Anomaly, a Scenario
and an InterventionBasket by delta mapping: the climate change signal is added
to today's observation.

- Temperature: T' = T_obs + ΔT_mean − SRM_cooling − CDR_cooling
- Max temperature: same, using ΔT_max against T_obs + 5°C (diurnal-range proxy)
- Dew point: relative humidity held constant, recomputed with Magnus
- Wet probability: p' = clamp(p_obs + ΔP_wetProb, 0, 1)
- Precipitation: wet days scale by (1 + ΔP_intensity); dry days that become
  wetter get p' × median wet-day amount × (1 + ΔP_intensity); otherwise 0
- Wind and cloud cover: passed through unchanged (low-confidence placeholders)

All functions are pure; identical inputs always give identical outputs.
"""

from weather2045.config import DEFAULT_CONFIG, ProjectionConfig
from weather2045.models.weather import (
    Anomaly,
    InterventionBasket,
    ObservedWeather,
    Scenario,
    SynthesizedWeather,
)
from weather2045.utils.weather_utils import calculate_dew_point, clamp

# Observed max is not available from current conditions
DIURNAL_RANGE_PROXY_C = 5.0


def synthesize_temperature(
    observed: float, anomaly: float, intervention_basket: InterventionBasket
) -> float:
    """
    Delta-map a temperature; interventions reduce the warming.

    :param observed: Observed temperature (°C)
    :param anomaly: Temperature anomaly (°C)
    :param intervention_basket: Cooling offsets
    :return: 2045 temperature (°C)
    """
    return observed + anomaly - intervention_basket.total_cooling_c


def synthesize_max_temperature(
    observed_max: float, anomaly_max: float, intervention_basket: InterventionBasket
) -> float:
    """Delta-map a maximum temperature using the max-temperature anomaly."""
    return observed_max + anomaly_max - intervention_basket.total_cooling_c


def synthesize_dew_point(synthesized_temp_c: float, relative_humidity: float) -> float:
    """Recompute dew point at the new temperature, holding RH constant."""
    return calculate_dew_point(synthesized_temp_c, relative_humidity)


def synthesize_wet_probability(observed: float, anomaly_delta: float) -> float:
    """p' = clamp(p_obs + ΔP_wetProb, 0, 1)"""
    return clamp(observed + anomaly_delta, 0.0, 1.0)


def synthesize_precipitation(
    observed_mm: float,
    observed_wet_prob: float,
    synthesized_wet_prob: float,
    intensity_fraction: float,
    median_wet_day_mm: float = DEFAULT_CONFIG.median_wet_day_mm,
) -> float:
    """
    Synthesize a precipitation amount.

    Uses the expected value (probability × median wet-day amount) rather than
    sampling when a currently dry day becomes more likely to be wet.

    :param observed_mm: Observed precipitation (mm)
    :param observed_wet_prob: Observed precipitation probability
    :param synthesized_wet_prob: 2045 precipitation probability
    :param intensity_fraction: Precipitation intensity anomaly (fraction)
    :param median_wet_day_mm: Typical wet-day accumulation (mm)
    :return: 2045 precipitation (mm), never negative
    """
    if observed_mm > 0:
        precip = observed_mm * (1.0 + intensity_fraction)
    elif synthesized_wet_prob > observed_wet_prob:
        precip = synthesized_wet_prob * median_wet_day_mm * (1.0 + intensity_fraction)
    else:
        precip = 0.0
    return max(precip, 0.0)


def apply_interventions_to_precipitation(
    bau_precip: float,
    mitigation_precip: float,
    srm_cooling_c: float,
    alpha: float = DEFAULT_CONFIG.intervention_damping_alpha,
) -> float:
    """
    Damp a mitigation-trajectory precipitation value by k = 1 − α·SRM_cooling.

    Interventions may reduce precipitation but never push it above the
    business-as-usual value.

    :param bau_precip: Business-as-usual precipitation (mm)
    :param mitigation_precip: Mitigation-scenario precipitation (mm)
    :param srm_cooling_c: Solar radiation management cooling (°C)
    :param alpha: Damping per °C of SRM cooling
    :return: Adjusted precipitation (mm)
    """
    scaling_factor = 1.0 - alpha * srm_cooling_c
    adjusted = mitigation_precip * scaling_factor
    return max(min(adjusted, bau_precip), 0.0)


def synthesize_unchanged(observed: float) -> float:
    """Pass-through for variables with no projection yet (wind, clouds)."""
    return observed


def synthesize(
    observed: ObservedWeather,
    anomaly: Anomaly,
    scenario: Scenario,
    intervention_basket: InterventionBasket,
    config: ProjectionConfig = DEFAULT_CONFIG,
) -> SynthesizedWeather:
    """
    Synthesize complete 2045 weather from an observation and an anomaly.

    :param observed: Current observation
    :param anomaly: Anomaly for the location, month and scenario
    :param scenario: Scenario the anomaly belongs to
    :param intervention_basket: Cooling offsets
    :param config: Calibration (median wet-day amount)
    :return: SynthesizedWeather
    """
    synth_temp_c = synthesize_temperature(
        observed.temp_c, anomaly.delta_t_mean_c, intervention_basket
    )
    synth_max_temp_c = synthesize_max_temperature(
        observed.temp_c + DIURNAL_RANGE_PROXY_C,
        anomaly.delta_t_max_c,
        intervention_basket,
    )
    synth_dew_point_c = synthesize_dew_point(synth_temp_c, observed.relative_humidity)

    synth_wet_prob = synthesize_wet_probability(
        observed.precip_probability, anomaly.delta_wet_probability
    )
    synth_precip_mm = synthesize_precipitation(
        observed.precip_mm,
        observed.precip_probability,
        synth_wet_prob,
        anomaly.delta_intensity_fraction,
        median_wet_day_mm=config.median_wet_day_mm,
    )

    return SynthesizedWeather(
        temp_c=synth_temp_c,
        max_temp_c=synth_max_temp_c,
        dew_point_c=synth_dew_point_c,
        relative_humidity=observed.relative_humidity,
        wind_speed_ms=synthesize_unchanged(observed.wind_speed_ms),
        cloud_cover_fraction=synthesize_unchanged(observed.cloud_cover_fraction),
        precip_probability=synth_wet_prob,
        precip_mm=synth_precip_mm,
        scenario=scenario,
        intervention_basket=intervention_basket,
    )
