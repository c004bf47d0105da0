"""
openweather_client.py: Lightweight interface for current conditions from the
OpenWeatherMap API using direct requests.

Functions:
- OpenWeatherClient.fetch_current(latitude, longitude)
- observed_from_openweather(payload)
- get_api_key()

Requires:
- Streamlit secrets: OPENWEATHER_API_KEY (or an explicit key)
"""

from typing import Dict, Optional, Tuple

import requests
import streamlit as st

from weather2045.config import (
    DEFAULT_PRESSURE_HPA,
    DRY_NOW_PRECIP_PROBABILITY,
    OPENWEATHER_ENDPOINT,
    OPENWEATHER_SECRET_NAME,
    REQUEST_TIMEOUT_S,
    UNKNOWN_CONDITION,
    WET_NOW_PRECIP_PROBABILITY,
)
from weather2045.models.weather import ObservedWeather
from weather2045.utils.log_util import app_logger

logger = app_logger(__name__)


def get_api_key() -> Optional[str]:
    """
    Read the OpenWeatherMap key from Streamlit secrets.

    :return: API key or None when no secret is configured
    """
    try:
        return st.secrets[OPENWEATHER_SECRET_NAME]
    except (KeyError, FileNotFoundError) as e:
        logger.error(f"OpenWeatherMap API key not configured ({OPENWEATHER_SECRET_NAME}): {e}")
        return None


class OpenWeatherClient:
    """Fetches current conditions for a coordinate."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENWEATHER_ENDPOINT,
        timeout: float = REQUEST_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_current(self, latitude: float, longitude: float) -> Optional[Dict]:
        """
        Fetch current weather in metric units.

        :param latitude: Latitude in decimal degrees
        :param longitude: Longitude in decimal degrees
        :return: Decoded JSON payload or None on failure
        """
        params = {
            "lat": latitude,
            "lon": longitude,
            "appid": self.api_key,
            "units": "metric",
        }
        logger.info(f"Fetching current conditions: lat={latitude}, lon={longitude}")

        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request error while fetching current conditions: {e}")
            return None

        if resp.status_code != 200:
            logger.error(f"Current conditions fetch failed: {resp.status_code} {resp.text}")
            return None

        try:
            return resp.json()
        except ValueError as e:
            logger.error(f"Failed to decode weather data: {e}")
            return None


def observed_from_openweather(payload: Dict) -> Tuple[ObservedWeather, str]:
    """
    Convert an OpenWeatherMap current-weather payload to an ObservedWeather.

    Precipitation probability is not part of the payload; it is set to 0.8
    when it is raining now and 0.2 otherwise. The sky condition comes from
    weather[0].main ('Rain', 'Clouds', 'Clear', ...), 'Unknown' when absent.

    :param payload: Decoded JSON (metric units)
    :return: Tuple of (ObservedWeather, location name)
    :raises KeyError: if the payload has no main.temp / main.humidity
    """
    main = payload["main"]
    rain = payload.get("rain") or {}
    precip_mm = float(rain.get("1h", rain.get("3h", 0.0)) or 0.0)
    conditions = payload.get("weather") or [{}]
    condition = conditions[0].get("main") or UNKNOWN_CONDITION

    observed = ObservedWeather(
        temp_c=float(main["temp"]),
        relative_humidity=float(main["humidity"]) / 100.0,
        wind_speed_ms=float((payload.get("wind") or {}).get("speed", 0.0)),
        cloud_cover_fraction=float((payload.get("clouds") or {}).get("all", 0)) / 100.0,
        precip_probability=(
            WET_NOW_PRECIP_PROBABILITY if precip_mm > 0 else DRY_NOW_PRECIP_PROBABILITY
        ),
        precip_mm=precip_mm,
        pressure_hpa=float(main.get("pressure") or DEFAULT_PRESSURE_HPA),
        condition=condition,
    )
    return observed, payload.get("name", "")
