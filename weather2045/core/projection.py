"""
2045 Projection Orchestration

Wires the collaborators together for one location:

    location -> weather source -> AnomalyProvider -> synthesis -> impact cards

Card selection (capped at MAX_IMPACT_CARDS):
1. Thermal comfort, always
2. Cloudburst, when it is raining now or in 2045
3. Dry spells, when precipitation decreases or warming exceeds 1.5°C
4. Air quality, in the May-September ozone season
Mosquito and pollen season cards fill in when fewer than MIN_IMPACT_CARDS
qualify.

Usage:
    service = ProjectionService(OpenWeatherClient(api_key), AnomalyProvider())
    result = service.project(45.5, -122.7, Scenario.BAU, InterventionBasket.preset("none"))
"""

from dataclasses import replace
from typing import List, Optional, Tuple

import pandas as pd

from weather2045.api.openweather_client import observed_from_openweather
from weather2045.config import (
    DEFAULT_CONFIG,
    MAX_IMPACT_CARDS,
    MIN_IMPACT_CARDS,
    ProjectionConfig,
)
from weather2045.core import impacts
from weather2045.core.anomaly_provider import AnomalyProvider
from weather2045.core.narrative import (
    generate_forecast,
    project_2045_condition,
    temperature_color,
)
from weather2045.core.synthesis import apply_interventions_to_precipitation, synthesize
from weather2045.models.weather import (
    Anomaly,
    CityFlags,
    ImpactCard,
    InterventionBasket,
    ObservedWeather,
    ProjectionResult,
    Scenario,
    SynthesizedWeather,
)
from weather2045.utils.log_util import app_logger

logger = app_logger(__name__)

# (lat_min, lat_max, lon_min, lon_max)
WILDFIRE_REGIONS = [
    (30.0, 50.0, -125.0, -100.0),  # western North America
    (-40.0, -25.0, 110.0, 155.0),  # south-east Australia
    (35.0, 45.0, -10.0, 30.0),  # Mediterranean
]


def settings_for_toggle(with_interventions: bool) -> Tuple[Scenario, InterventionBasket]:
    """Map the single interventions toggle to a scenario and basket."""
    if with_interventions:
        return Scenario.MITIGATION, InterventionBasket.preset("medium")
    return Scenario.BAU, InterventionBasket.preset("none")


def determine_city_flags(latitude: float, longitude: float) -> CityFlags:
    """
    Coarse location traits from coordinates.

    Combined sewer overflow risk needs a city database and is always False.
    """
    is_wildfire_prone = any(
        lat_min < latitude < lat_max and lon_min < longitude < lon_max
        for lat_min, lat_max, lon_min, lon_max in WILDFIRE_REGIONS
    )
    return CityFlags(
        is_coastal=abs(latitude) < 60,
        is_wildfire_prone=is_wildfire_prone,
        has_cso_risk=False,
    )


def build_impact_cards(
    observed: ObservedWeather,
    synthesized: SynthesizedWeather,
    anomaly: Anomaly,
    month: int,
    city_flags: CityFlags = CityFlags(),
    max_cards: int = MAX_IMPACT_CARDS,
) -> List[ImpactCard]:
    """
    Select and build the impact cards in display priority order.

    :return: Between MIN_IMPACT_CARDS and max_cards cards
    """
    global_temp_delta = synthesized.temp_c - observed.temp_c
    cards = [impacts.thermal_comfort_impact(observed, synthesized)]

    if observed.precip_mm > 0 or synthesized.precip_mm > 0:
        cards.append(
            impacts.cloudburst_impact(anomaly, global_temp_delta, city_flags.has_cso_risk)
        )

    if synthesized.precip_mm < observed.precip_mm or global_temp_delta > 1.5:
        cards.append(
            impacts.dry_spell_impact(
                observed, synthesized, anomaly, city_flags.is_wildfire_prone
            )
        )

    air_quality = impacts.air_quality_impact(synthesized, month)
    if air_quality is not None:
        cards.append(air_quality)

    fillers = [
        impacts.vector_season_impact(observed, synthesized),
        impacts.allergy_season_impact(global_temp_delta),
    ]
    while len(cards) < MIN_IMPACT_CARDS and fillers:
        cards.append(fillers.pop(0))

    return cards[:max_cards]


def current_month() -> int:
    return pd.Timestamp.now(tz="UTC").month


class ProjectionService:
    """Fetches current conditions and projects them to 2045."""

    def __init__(
        self,
        weather_client,
        anomaly_provider: Optional[AnomalyProvider] = None,
        config: Optional[ProjectionConfig] = None,
    ):
        self.weather_client = weather_client
        if anomaly_provider is None:
            anomaly_provider = AnomalyProvider(config or DEFAULT_CONFIG)
        self.anomaly_provider = anomaly_provider
        self.config = config or anomaly_provider.config

    def project(
        self,
        latitude: float,
        longitude: float,
        scenario: Scenario,
        intervention_basket: InterventionBasket,
        month: Optional[int] = None,
    ) -> Optional[ProjectionResult]:
        """
        Fetch current weather and project it to 2045.

        :return: ProjectionResult, or None when the weather source fails
        """
        payload = self.weather_client.fetch_current(latitude, longitude)
        if not payload:
            logger.error(f"No current conditions for lat={latitude}, lon={longitude}")
            return None

        try:
            observed, location_name = observed_from_openweather(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Failed to decode weather data: {e}")
            return None

        return self.project_observed(
            observed,
            latitude,
            longitude,
            current_month() if month is None else month,
            scenario,
            intervention_basket,
            location_name=location_name,
        )

    def project_observed(
        self,
        observed: ObservedWeather,
        latitude: float,
        longitude: float,
        month: int,
        scenario: Scenario,
        intervention_basket: InterventionBasket,
        location_name: str = "",
    ) -> ProjectionResult:
        """
        Project an already-fetched observation to 2045.

        :raises ValueError: if month is outside 1-12
        """
        anomaly = self.anomaly_provider.get_anomaly(latitude, longitude, month, scenario)
        synthesized = synthesize(
            observed, anomaly, scenario, intervention_basket, self.config
        )
        synthesized = self._damp_precipitation(
            observed, synthesized, latitude, longitude, month
        )

        city_flags = determine_city_flags(latitude, longitude)
        cards = build_impact_cards(observed, synthesized, anomaly, month, city_flags)

        delta = synthesized.temp_c - observed.temp_c
        with_interventions = intervention_basket.total_cooling_c > 0
        logger.info(
            f"Projected {location_name or (latitude, longitude)} to 2045: "
            f"ΔT={delta:+.2f}°C, scenario={scenario.value}, cards={len(cards)}"
        )

        return ProjectionResult(
            observed=observed,
            synthesized=synthesized,
            anomaly=anomaly,
            month=month,
            location_name=location_name,
            impact_cards=cards,
            city_flags=city_flags,
            forecast=generate_forecast(location_name, delta, with_interventions),
            warming_color=temperature_color(delta),
            projected_condition=project_2045_condition(observed.condition, delta),
        )

    def _damp_precipitation(
        self,
        observed: ObservedWeather,
        synthesized: SynthesizedWeather,
        latitude: float,
        longitude: float,
        month: int,
    ) -> SynthesizedWeather:
        """Cap mitigation-with-SRM precipitation against the BAU trajectory."""
        basket = synthesized.intervention_basket
        if synthesized.scenario is not Scenario.MITIGATION or basket.srm_cooling_c <= 0:
            return synthesized

        bau_anomaly = self.anomaly_provider.get_anomaly(
            latitude, longitude, month, Scenario.BAU
        )
        bau = synthesize(
            observed, bau_anomaly, Scenario.BAU, InterventionBasket(), self.config
        )
        damped = apply_interventions_to_precipitation(
            bau.precip_mm,
            synthesized.precip_mm,
            basket.srm_cooling_c,
            alpha=self.config.intervention_damping_alpha,
        )
        return replace(synthesized, precip_mm=damped)
