"""
Climate Impact Calculators

Derives human-relevant indicators from observed and synthesized weather and
wraps them into ImpactCards for the presentation layer.

Indicators:
- Heat index (NWS/Steadman regression above 80°F) and tropical-night risk
- Cloudburst index: (1 + ΔP_intensity) × (1 + 0.07·ΔT), Clausius-Clapeyron
- Dry-spell days from a simplified moisture balance (P − PET, PET +5%/°C)
- Ozone risk: sigmoid of heat × sunshine, May-September only
- Mosquito season: ~1 month per 2°C of warming above an 18°C threshold
- Pollen season: ~2 weeks per °C of minimum-temperature warming

Severity thresholds:
- Heat index delta: >4°C high, >2°C moderate
- Cloudburst increase: >30% high, >15% moderate
- Ozone risk: >0.7 high, >0.4 moderate
- Dry-spell days: >5 high, >2 moderate
- Mosquito season: >60 days high, >30 days moderate
- Pollen season: >28 days high, >14 days moderate
"""

import math
from typing import Optional

import numpy as np

from weather2045.config import OZONE_SEASON_MONTHS
from weather2045.models.weather import (
    Anomaly,
    ImpactCard,
    ImpactType,
    ObservedWeather,
    Severity,
    SynthesizedWeather,
)
from weather2045.utils.weather_utils import c_to_f, f_to_c

HEAT_INDEX_THRESHOLD_F = 80.0
TROPICAL_NIGHT_THRESHOLD_C = 24.0
CLAUSIUS_CLAPEYRON_RATE = 0.07
PET_PERCENT_PER_C = 5.0
OZONE_THRESHOLD_F = 90.0
MOSQUITO_THRESHOLD_C = 18.0
POLLEN_DAYS_PER_C = 14.0

# Steadman / NWS heat index regression coefficients (°F, %RH)
HEAT_INDEX_COEFFICIENTS = (
    -42.379,
    2.04901523,
    10.14333127,
    -0.22475541,
    -0.00683783,
    -0.05481717,
    0.00122874,
    0.00085282,
    -0.00000199,
)


# ---------- thermal comfort ----------


def calculate_heat_index(temp_c: float, relative_humidity: float) -> float:
    """
    Heat index (feels-like temperature) in °C.

    Below 80°F the heat index is taken to be the air temperature; 80°F itself
    uses the regression.

    :param temp_c: Air temperature (°C)
    :param relative_humidity: Relative humidity (0-1)
    :return: Heat index (°C)
    """
    temp_f = c_to_f(temp_c)
    # °C -> °F round trip noise must not move 80°F below the threshold
    if round(temp_f, 9) < HEAT_INDEX_THRESHOLD_F:
        return temp_c

    rh = relative_humidity * 100.0
    c1, c2, c3, c4, c5, c6, c7, c8, c9 = HEAT_INDEX_COEFFICIENTS
    t2 = temp_f * temp_f
    rh2 = rh * rh
    hi_f = (
        c1
        + c2 * temp_f
        + c3 * rh
        + c4 * temp_f * rh
        + c5 * t2
        + c6 * rh2
        + c7 * t2 * rh
        + c8 * temp_f * rh2
        + c9 * t2 * rh2
    )
    return f_to_c(hi_f)


def heat_index_delta(observed: ObservedWeather, synthesized: SynthesizedWeather) -> float:
    """Heat index change from today to 2045 (°C)."""
    current_hi = calculate_heat_index(observed.temp_c, observed.relative_humidity)
    future_hi = calculate_heat_index(synthesized.temp_c, synthesized.relative_humidity)
    return future_hi - current_hi


def has_tropical_night_risk(min_temp_c: float) -> bool:
    """True when the night minimum stays above 24°C (75°F)."""
    return min_temp_c > TROPICAL_NIGHT_THRESHOLD_C


# ---------- cloudburst ----------


def calculate_burst_index(intensity_fraction: float, global_temp_delta_c: float) -> float:
    """
    Heavy-rain burst index.

    The temperature term uses the realized (post-intervention) warming so
    intervention cooling is not discounted twice.

    :param intensity_fraction: Anomaly precipitation intensity fraction
    :param global_temp_delta_c: Realized temperature change (°C)
    :return: Multiplicative index (1.0 = no change)
    """
    return (1.0 + intensity_fraction) * (1.0 + CLAUSIUS_CLAPEYRON_RATE * global_temp_delta_c)


def extreme_precipitation_increase(current_precip_mm: float, future_precip_mm: float) -> float:
    """Percentage change between two precipitation totals (0 when baseline is 0)."""
    if current_precip_mm <= 0:
        return 0.0
    return (future_precip_mm - current_precip_mm) / current_precip_mm * 100.0


# ---------- dry spells ----------


def estimate_pet_change(temp_delta_c: float) -> float:
    """Potential evapotranspiration change (%), ~5% per °C."""
    return temp_delta_c * PET_PERCENT_PER_C


def moisture_balance_change(
    precip_change: float, pet_change_percent: float, baseline_precip: float
) -> float:
    """Change in P − PET (mm)."""
    pet_change = baseline_precip * (pet_change_percent / 100.0)
    return precip_change - pet_change


def estimate_drought_days(
    moisture_balance_change: float, anomaly_dry_spell_days: Optional[int]
) -> int:
    """
    Additional drought-prone days per month.

    Explicit anomaly data always wins over the moisture-balance estimate.
    """
    if anomaly_dry_spell_days is not None:
        return int(anomaly_dry_spell_days)
    if moisture_balance_change < -10:
        return 5
    elif moisture_balance_change < -5:
        return 3
    elif moisture_balance_change < 0:
        return 1
    return 0


# ---------- air quality ----------


def is_ozone_season(month: int) -> bool:
    return month in OZONE_SEASON_MONTHS


def calculate_ozone_risk(max_temp_c: float, cloud_cover_fraction: float, month: int) -> float:
    """
    Ozone formation risk score in [0, 1].

    :param max_temp_c: Maximum temperature (°C)
    :param cloud_cover_fraction: Cloud cover (0-1); sunshine proxy is 1 − clouds
    :param month: Month 1-12; outside May-September the score is 0.0
    :return: Risk score
    """
    if not is_ozone_season(month):
        return 0.0
    sunny_hours_proxy = 1.0 - cloud_cover_fraction
    raw_score = (c_to_f(max_temp_c) - OZONE_THRESHOLD_F) * sunny_hours_proxy
    return float(1.0 / (1.0 + np.exp(-raw_score / 10.0)))


# ---------- vector and allergy seasons ----------


def estimate_mosquito_season_extension(temp_delta_c: float) -> int:
    """Extra days of mosquito-suitable (>18°C) conditions, ~30 per 2°C."""
    return math.floor(temp_delta_c / 2.0) * 30


def estimate_pollen_season_extension(temp_delta_min_c: float) -> int:
    """Extra pollen-season days from frost-free period growth, ~14 per °C."""
    return int(temp_delta_min_c * POLLEN_DAYS_PER_C)


# ---------- severity ----------


def severity_from_delta(delta: float) -> Severity:
    if delta > 4.0:
        return Severity.HIGH
    if delta > 2.0:
        return Severity.MODERATE
    return Severity.LOW


def severity_from_percent(percent: float) -> Severity:
    if percent > 30.0:
        return Severity.HIGH
    if percent > 15.0:
        return Severity.MODERATE
    return Severity.LOW


def severity_from_risk(risk: float) -> Severity:
    if risk > 0.7:
        return Severity.HIGH
    if risk > 0.4:
        return Severity.MODERATE
    return Severity.LOW


def severity_from_days(days: int, moderate_above: int, high_above: int) -> Severity:
    if days > high_above:
        return Severity.HIGH
    if days > moderate_above:
        return Severity.MODERATE
    return Severity.LOW


# ---------- impact cards ----------


def thermal_comfort_impact(
    observed: ObservedWeather, synthesized: SynthesizedWeather
) -> ImpactCard:
    """Heat index card; the night minimum is approximated as T' − 5°C."""
    delta = heat_index_delta(observed, synthesized)
    if has_tropical_night_risk(synthesized.temp_c - 5.0):
        description = "Heat index increases significantly. Tropical night risk elevated."
    else:
        description = "Heat index increases, affecting thermal comfort."

    return ImpactCard(
        type=ImpactType.THERMAL_COMFORT,
        value=f"Feels {delta:+.1f}°C",
        description=description,
        severity=severity_from_delta(delta),
    )


def cloudburst_impact(
    anomaly: Anomaly, global_temp_delta_c: float, has_cso_risk: bool = False
) -> ImpactCard:
    burst_index = calculate_burst_index(
        anomaly.delta_intensity_fraction, global_temp_delta_c
    )
    increase_percent = (burst_index - 1.0) * 100.0
    description = "Big-storm rainfall intensity increases."
    if has_cso_risk:
        description += " Sewer overflow risk ↑"

    return ImpactCard(
        type=ImpactType.CLOUDBURST,
        value=f"{increase_percent:+.0f}%",
        description=description,
        severity=severity_from_percent(increase_percent),
    )


def dry_spell_impact(
    observed: ObservedWeather,
    synthesized: SynthesizedWeather,
    anomaly: Anomaly,
    is_wildfire_prone: bool = False,
) -> ImpactCard:
    pet_change = estimate_pet_change(synthesized.temp_c - observed.temp_c)
    precip_change = synthesized.precip_mm - observed.precip_mm
    balance = moisture_balance_change(precip_change, pet_change, observed.precip_mm)
    drought_days = estimate_drought_days(balance, anomaly.delta_dry_spell_days)
    description = "Monthly drought-prone days increase."
    if is_wildfire_prone:
        description += " Wildfire risk ↑"

    return ImpactCard(
        type=ImpactType.DRY_SPELL,
        value=f"{drought_days:+d} days",
        description=description,
        severity=severity_from_days(drought_days, moderate_above=2, high_above=5),
    )


def air_quality_impact(synthesized: SynthesizedWeather, month: int) -> Optional[ImpactCard]:
    """Ozone card, or None outside the warm season."""
    if not is_ozone_season(month):
        return None

    ozone_risk = calculate_ozone_risk(
        synthesized.max_temp_c, synthesized.cloud_cover_fraction, month
    )
    if ozone_risk > 0.7:
        value = "High"
    elif ozone_risk > 0.4:
        value = "Elevated"
    else:
        value = "Moderate"

    return ImpactCard(
        type=ImpactType.AIR_QUALITY,
        value=value,
        description="Smog-alert likelihood increases with heat.",
        severity=severity_from_risk(ozone_risk),
    )


def vector_season_impact(
    observed: ObservedWeather, synthesized: SynthesizedWeather
) -> ImpactCard:
    extension = estimate_mosquito_season_extension(synthesized.temp_c - observed.temp_c)
    if synthesized.temp_c > MOSQUITO_THRESHOLD_C >= observed.temp_c:
        description = "Mosquito season extends with warming. Today's conditions cross into the active range."
    else:
        description = "Mosquito season extends with warming."

    return ImpactCard(
        type=ImpactType.VECTOR_SEASON,
        value=f"{extension:+d} days",
        description=description,
        severity=severity_from_days(extension, moderate_above=30, high_above=60),
    )


def allergy_season_impact(temp_delta_c: float) -> ImpactCard:
    extension = estimate_pollen_season_extension(temp_delta_c)

    return ImpactCard(
        type=ImpactType.ALLERGY_SEASON,
        value=f"{extension:+d} days",
        description="Pollen season extends as frost-free period increases.",
        severity=severity_from_days(extension, moderate_above=14, high_above=28),
    )
