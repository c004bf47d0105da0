#!/usr/bin/env python3
"""
project_2045.py: Project today's weather at a location into 2045.

Fetches current conditions from OpenWeatherMap, applies the climate anomaly
for the location, month and scenario, and prints the observed vs. 2045
comparison, the outlook text and the impact cards.

Usage:
    python -m weather2045.cli.project_2045 --lat 45.52 --lon -122.68 \
        [--scenario bau|mitigation] [--interventions none|low|medium|high] \
        [--with-interventions] [--month 7] [--dataset anomalies.json]
"""

import argparse
import sys
from typing import List, Optional

import pandas as pd

from weather2045.api.openweather_client import OpenWeatherClient, get_api_key
from weather2045.config import DEFAULT_CONFIG
from weather2045.core.anomaly_provider import AnomalyProvider
from weather2045.core.narrative import condition_icon
from weather2045.core.projection import ProjectionService, settings_for_toggle
from weather2045.core.synthesis import DIURNAL_RANGE_PROXY_C
from weather2045.models.weather import (
    INTERVENTION_PRESETS,
    InterventionBasket,
    ProjectionResult,
    Scenario,
)
from weather2045.utils.log_util import app_logger
from weather2045.utils.weather_utils import (
    format_fraction_pct,
    format_precip,
    format_temp,
    format_wind_speed,
)

logger = app_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Project current weather into 2045")
    parser.add_argument("--lat", type=float, required=True, help="Latitude (decimal degrees)")
    parser.add_argument("--lon", type=float, required=True, help="Longitude (decimal degrees)")
    parser.add_argument(
        "--scenario",
        choices=["bau", "mitigation"],
        default="bau",
        help="Emissions scenario (default: bau)",
    )
    parser.add_argument(
        "--interventions",
        choices=list(INTERVENTION_PRESETS.keys()),
        default="none",
        help="Intervention basket preset (default: none)",
    )
    parser.add_argument(
        "--with-interventions",
        action="store_true",
        help="Shortcut for --scenario mitigation --interventions medium",
    )
    parser.add_argument("--month", type=int, help="Month 1-12 (default: current month)")
    parser.add_argument("--dataset", help="Anomaly dataset (.json, .csv or .parquet)")
    parser.add_argument("--grid-resolution", type=float, help="Grid resolution in degrees")
    parser.add_argument("--median-wet-day-mm", type=float, help="Median wet-day precipitation (mm)")
    parser.add_argument("--damping-alpha", type=float, help="Intervention precipitation damping α")
    parser.add_argument("--api-key", help="OpenWeatherMap API key (default: Streamlit secrets)")
    return parser.parse_args(argv)


def comparison_table(result: ProjectionResult) -> pd.DataFrame:
    """Observed vs. 2045 values as display strings."""
    obs = result.observed
    syn = result.synthesized
    rows = [
        ("Condition", result.current_condition, result.projected_condition),
        ("Temperature", format_temp(obs.temp_c), format_temp(syn.temp_c)),
        (
            "Max temperature",
            format_temp(obs.temp_c + DIURNAL_RANGE_PROXY_C),
            format_temp(syn.max_temp_c),
        ),
        ("Dew point", format_temp(obs.dew_point_c), format_temp(syn.dew_point_c)),
        (
            "Humidity",
            format_fraction_pct(obs.relative_humidity),
            format_fraction_pct(syn.relative_humidity),
        ),
        (
            "Rain chance",
            format_fraction_pct(obs.precip_probability),
            format_fraction_pct(syn.precip_probability),
        ),
        ("Precipitation", format_precip(obs.precip_mm), format_precip(syn.precip_mm)),
        ("Wind", format_wind_speed(obs.wind_speed_ms), format_wind_speed(syn.wind_speed_ms)),
        (
            "Cloud cover",
            format_fraction_pct(obs.cloud_cover_fraction),
            format_fraction_pct(syn.cloud_cover_fraction),
        ),
    ]
    return pd.DataFrame(rows, columns=["metric", "today", "2045"]).set_index("metric")


def print_result(result: ProjectionResult) -> None:
    name = result.location_name or "Selected location"
    print(f"\n📍 {name}, month {result.month}, scenario {result.synthesized.scenario.value}")
    print(
        f"{condition_icon(result.projected_condition)} 2045: "
        f"{result.projected_condition}, {format_temp(result.synthesized.temp_c)}\n"
    )
    print(comparison_table(result).to_string())
    print(f"\n{result.forecast}")
    print("\nImpacts:")
    for card in result.impact_cards:
        print(
            f"  {card.type.icon} {card.type.label}: {card.value} "
            f"[{card.severity.value}] {card.description}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.with_interventions:
        scenario, basket = settings_for_toggle(True)
    else:
        scenario = Scenario.from_name(args.scenario)
        basket = InterventionBasket.preset(args.interventions)

    if args.month is not None and not 1 <= args.month <= 12:
        print(f"❌ Month must be 1-12, got {args.month}")
        return 1

    try:
        config = DEFAULT_CONFIG.with_overrides(
            grid_resolution=args.grid_resolution,
            median_wet_day_mm=args.median_wet_day_mm,
            intervention_damping_alpha=args.damping_alpha,
        )
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    api_key = args.api_key or get_api_key()
    if not api_key:
        print("❌ No OpenWeatherMap API key. Pass --api-key or set OPENWEATHER_API_KEY in secrets.")
        return 1

    provider = AnomalyProvider(config, dataset=args.dataset)
    service = ProjectionService(OpenWeatherClient(api_key), provider, config)

    result = service.project(args.lat, args.lon, scenario, basket, month=args.month)
    if result is None:
        print("❌ Could not fetch current conditions.")
        return 1

    print_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
