# config.py
"""
Configurations for the Weather 2045 projection package.

This module contains the calibration defaults for the anomaly model and the
synthesis engine, the impact-card presentation table, and the weather-source
settings shared across the application. Components never read these
constants directly: they receive a ProjectionConfig at construction so that
tests and recalibration can override any knob.
"""

from dataclasses import dataclass, fields, replace
from typing import Optional

# Anomaly lookup grid (degrees)
DEFAULT_GRID_RESOLUTION = 1.0

# Typical accumulation of a wet day, used when a dry day turns wet (mm)
DEFAULT_MEDIAN_WET_DAY_MM = 5.0

# Precipitation damping per °C of solar radiation management cooling
DEFAULT_INTERVENTION_DAMPING_ALPHA = 0.05

# Global mean warming by 2045 (°C)
DEFAULT_BASE_WARMING_BAU_C = 2.5
DEFAULT_BASE_WARMING_MITIGATION_C = 1.8

# Impact cards handed to the presentation layer
MIN_IMPACT_CARDS = 2
MAX_IMPACT_CARDS = 4

# Warm-season window for ozone formation (inclusive months)
OZONE_SEASON_MONTHS = range(5, 10)

# Weather source
OPENWEATHER_ENDPOINT = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_SECRET_NAME = "OPENWEATHER_API_KEY"
REQUEST_TIMEOUT_S = 10.0
DEFAULT_PRESSURE_HPA = 1013.0

# Precipitation probability heuristic for current conditions
WET_NOW_PRECIP_PROBABILITY = 0.8
DRY_NOW_PRECIP_PROBABILITY = 0.2

# Condition name when the payload has no weather entry
UNKNOWN_CONDITION = "Unknown"

# Display table for impact cards: type value -> (label, icon)
IMPACT_DISPLAY = {
    "thermal_comfort": ("Heat Index", "🌡️"),
    "cloudburst": ("Heavy Rain", "🌧️"),
    "dry_spell": ("Dry Spells", "🏜️"),
    "air_quality": ("Air Quality", "😷"),
    "vector_season": ("Mosquito Season", "🦟"),
    "allergy_season": ("Allergy Season", "🤧"),
}

SEVERITY_COLORS = {
    "low": "green",
    "moderate": "yellow",
    "high": "red",
}


@dataclass(frozen=True)
class ProjectionConfig:
    """Calibration knobs for the anomaly model and synthesis engine."""

    grid_resolution: float = DEFAULT_GRID_RESOLUTION
    median_wet_day_mm: float = DEFAULT_MEDIAN_WET_DAY_MM
    intervention_damping_alpha: float = DEFAULT_INTERVENTION_DAMPING_ALPHA
    base_warming_bau_c: float = DEFAULT_BASE_WARMING_BAU_C
    base_warming_mitigation_c: float = DEFAULT_BASE_WARMING_MITIGATION_C

    def __post_init__(self):
        if self.grid_resolution <= 0:
            raise ValueError(
                f"grid_resolution must be positive, got {self.grid_resolution}"
            )

    def with_overrides(self, **overrides: Optional[float]) -> "ProjectionConfig":
        """
        Return a copy with the given knobs replaced.

        None values are ignored so CLI arguments can be passed straight through.

        :raises TypeError: if an override names an unknown knob
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown configuration knob(s): {sorted(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def base_warming_c(self, scenario) -> float:
        """Baseline 2045 warming for a Scenario."""
        if scenario.value == "BAU":
            return self.base_warming_bau_c
        return self.base_warming_mitigation_c


DEFAULT_CONFIG = ProjectionConfig()
