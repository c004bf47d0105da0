"""
Weather data models and type definitions.

This module provides immutable data structures for observed weather, climate
anomalies, scenarios, interventions and the projected 2045 weather, plus the
impact cards handed to the presentation layer.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from weather2045.config import IMPACT_DISPLAY, SEVERITY_COLORS, UNKNOWN_CONDITION
from weather2045.utils.weather_utils import (
    calculate_dew_point,
    clamp,
    round_half_away,
)


class Scenario(Enum):
    """Emissions trajectory to 2045."""

    BAU = "BAU"
    MITIGATION = "Mitigation"

    @classmethod
    def from_name(cls, name: str) -> "Scenario":
        """
        Parse a scenario name case-insensitively.

        Accepts 'BAU', 'business_as_usual', 'business-as-usual' and 'mitigation'.

        :raises ValueError: for unknown names
        """
        key = str(name).strip().lower().replace("-", "_")
        if key in ("bau", "business_as_usual"):
            return cls.BAU
        if key == "mitigation":
            return cls.MITIGATION
        raise ValueError(f"Unknown scenario: {name}. Valid: BAU, Mitigation")


@dataclass(frozen=True)
class InterventionBasket:
    """Cooling offsets (°C) from climate interventions."""

    srm_cooling_c: float = 0.0  # solar radiation management
    cdr_cooling_c: float = 0.0  # carbon dioxide removal

    @property
    def total_cooling_c(self) -> float:
        return self.srm_cooling_c + self.cdr_cooling_c

    @classmethod
    def preset(cls, name: str) -> "InterventionBasket":
        """
        Return one of the canonical presets: none, low, medium, high.

        :raises ValueError: for unknown preset names
        """
        try:
            return INTERVENTION_PRESETS[str(name).strip().lower()]
        except KeyError:
            raise ValueError(
                f"Unknown intervention preset: {name}. "
                f"Valid: {list(INTERVENTION_PRESETS.keys())}"
            ) from None


INTERVENTION_PRESETS: Dict[str, InterventionBasket] = {
    "none": InterventionBasket(0.0, 0.0),
    "low": InterventionBasket(0.3, 0.1),
    "medium": InterventionBasket(0.6, 0.2),
    "high": InterventionBasket(1.0, 0.3),
}


@dataclass(frozen=True)
class GridCell:
    """Latitude/longitude snapped to the nearest cell centre."""

    latitude: float
    longitude: float

    @classmethod
    def from_coordinates(
        cls, latitude: float, longitude: float, resolution: float = 1.0
    ) -> "GridCell":
        """
        Snap raw coordinates to the nearest grid cell.

        Nearest-cell rounding (not truncation), so points within half a cell of
        each other share a cell. The quotient is rounded to 9 decimals before
        snapping so 0.15 / 0.1 counts as an exact half, and the result to 6
        decimals to remove float noise from fractional resolutions.
        """
        lat = round(round_half_away(round(latitude / resolution, 9)) * resolution, 6)
        lon = round(round_half_away(round(longitude / resolution, 9)) * resolution, 6)
        # + 0.0 folds -0.0 into 0.0 so cache keys match
        return cls(latitude=lat + 0.0, longitude=lon + 0.0)


@dataclass(frozen=True)
class ObservedWeather:
    """Current conditions from the weather source, created once per fetch."""

    temp_c: float
    relative_humidity: float
    wind_speed_ms: float
    cloud_cover_fraction: float
    precip_probability: float
    precip_mm: float
    dew_point_c: Optional[float] = None
    pressure_hpa: Optional[float] = None
    condition: str = UNKNOWN_CONDITION

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "relative_humidity", clamp(self.relative_humidity))
        object.__setattr__(self, "precip_probability", clamp(self.precip_probability))
        if self.dew_point_c is None:
            object.__setattr__(
                self,
                "dew_point_c",
                calculate_dew_point(self.temp_c, self.relative_humidity),
            )


@dataclass(frozen=True)
class Anomaly:
    """Projected 2045 climate change signal for one cell, month and scenario."""

    delta_t_mean_c: float
    delta_t_max_c: float
    delta_wet_probability: float
    delta_intensity_fraction: float
    delta_dry_spell_days: Optional[int] = None
    delta_hot_days_90f: Optional[int] = None


@dataclass(frozen=True)
class SynthesizedWeather:
    """Projected 2045 analog of an ObservedWeather."""

    temp_c: float
    max_temp_c: float
    dew_point_c: float
    relative_humidity: float
    wind_speed_ms: float
    cloud_cover_fraction: float
    precip_probability: float
    precip_mm: float
    scenario: Scenario
    intervention_basket: InterventionBasket


class ImpactType(Enum):
    THERMAL_COMFORT = "thermal_comfort"
    CLOUDBURST = "cloudburst"
    DRY_SPELL = "dry_spell"
    AIR_QUALITY = "air_quality"
    VECTOR_SEASON = "vector_season"
    ALLERGY_SEASON = "allergy_season"

    @property
    def label(self) -> str:
        return IMPACT_DISPLAY[self.value][0]

    @property
    def icon(self) -> str:
        return IMPACT_DISPLAY[self.value][1]


class Severity(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def color(self) -> str:
        return SEVERITY_COLORS[self.value]


@dataclass(frozen=True)
class ImpactCard:
    """One impact indicator, ready for display."""

    type: ImpactType
    value: str
    description: str
    severity: Severity

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "label": self.type.label,
            "icon": self.type.icon,
            "value": self.value,
            "description": self.description,
            "severity": self.severity.value,
            "color": self.severity.color,
        }


@dataclass(frozen=True)
class CityFlags:
    """Location traits that tailor impact cards."""

    is_coastal: bool = False
    is_wildfire_prone: bool = False
    has_cso_risk: bool = False  # combined sewer overflow


@dataclass(frozen=True)
class ProjectionResult:
    """Everything the presentation layer needs for one location."""

    observed: ObservedWeather
    synthesized: SynthesizedWeather
    anomaly: Anomaly
    month: int
    location_name: str
    impact_cards: List[ImpactCard] = field(default_factory=list)
    city_flags: CityFlags = field(default_factory=CityFlags)
    forecast: str = ""
    warming_color: str = "green"
    projected_condition: str = UNKNOWN_CONDITION

    @property
    def temperature_delta_c(self) -> float:
        return self.synthesized.temp_c - self.observed.temp_c

    @property
    def current_condition(self) -> str:
        return self.observed.condition

    def to_dict(self) -> Dict:
        return {
            "location_name": self.location_name,
            "month": self.month,
            "observed": asdict(self.observed),
            "synthesized": {
                **asdict(self.synthesized),
                "scenario": self.synthesized.scenario.value,
            },
            "anomaly": asdict(self.anomaly),
            "temperature_delta_c": self.temperature_delta_c,
            "current_condition": self.current_condition,
            "projected_condition": self.projected_condition,
            "impact_cards": [card.to_dict() for card in self.impact_cards],
            "city_flags": asdict(self.city_flags),
            "forecast": self.forecast,
            "warming_color": self.warming_color,
        }
