"""
Climate Anomaly Provider

Resolves a (latitude, longitude, month, scenario) request to the projected
2045 climate change signal for the surrounding grid cell.

Lookup order:
1. Instance cache (string key of grid cell, month, scenario; see key_to_string)
2. Bundled anomaly dataset, if one was supplied and contains the exact key
3. Parametric fallback model (regional and seasonal scaling of a global
   baseline warming)

Parametric model:
- Latitude factor (polar amplification): >60° 1.5, >45° 1.1, >30° 0.95, else 0.85
- Seasonal factor: polar winters 1.3, mid-latitude summers 1.1, else 1.0
- ΔT_mean = base warming × latitude factor × seasonal factor
- ΔT_max = 1.3 × ΔT_mean (extremes warm faster than the mean)
- Wet probability +3% and intensity +7% per °C (Clausius-Clapeyron proxy)

A missing or malformed dataset never raises: it is logged and the parametric
model is used instead.

Usage:
    provider = AnomalyProvider(dataset="data/anomalies.json")
    anomaly = provider.get_anomaly(40.7, -74.0, 7, Scenario.BAU)
"""

import json
import threading
from pathlib import Path
from typing import Dict, MutableMapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from weather2045.config import DEFAULT_CONFIG, ProjectionConfig
from weather2045.models.weather import Anomaly, GridCell, Scenario
from weather2045.utils.log_util import app_logger
from weather2045.utils.weather_utils import round_half_away

logger = app_logger(__name__)

AnomalyKey = Tuple[float, float, int, str]

# Dataset column names (original bundle field names)
ANOMALY_COLUMNS = {
    "dT_mean": "delta_t_mean_c",
    "dT_max": "delta_t_max_c",
    "dP_wetProb": "delta_wet_probability",
    "dP_intensity": "delta_intensity_fraction",
    "dDrySpellDays": "delta_dry_spell_days",
    "dHotDays90F": "delta_hot_days_90f",
}
REQUIRED_ANOMALY_COLUMNS = ["dT_mean", "dT_max", "dP_wetProb", "dP_intensity"]

NORTHERN_WINTER = (12, 1, 2)
NORTHERN_SUMMER = (6, 7, 8)


def make_key(cell: GridCell, month: int, scenario: Scenario) -> AnomalyKey:
    """Dataset key for a grid cell, month and scenario."""
    return (cell.latitude, cell.longitude, int(month), scenario.value)


def key_to_string(key: AnomalyKey) -> str:
    """
    String form of an anomaly key, used to address the cache store.

    String keys let any str-keyed mapping back the cache (a dict, or a
    ``shelve`` file for a cache that outlives the process).
    """
    latitude, longitude, month, scenario = key
    payload = {
        "lat": round(latitude, 6),
        "lon": round(longitude, 6),
        "month": int(month),
        "scenario": scenario,
    }
    return json.dumps(payload, sort_keys=True)


def _validate_month(month: int) -> None:
    if not isinstance(month, (int, np.integer)) or isinstance(month, bool):
        raise ValueError(f"month must be an integer 1-12, got {month!r}")
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1-12, got {month}")


# ---------- parametric fallback model ----------


def latitude_scaling_factor(latitude: float) -> float:
    """
    Regional warming multiplier; polar regions warm more, tropics less.

    :param latitude: Latitude in decimal degrees
    :return: Scaling factor
    """
    abs_lat = abs(latitude)
    if abs_lat > 60:
        return 1.5
    elif abs_lat > 45:
        return 1.1
    elif abs_lat > 30:
        return 0.95
    else:
        return 0.85


def seasonal_scaling_factor(latitude: float, month: int) -> float:
    """
    Seasonal warming multiplier.

    High-latitude winters warm more; mid-latitude summers warm slightly more;
    the tropics get no seasonal adjustment. Seasons are reversed in the
    Southern Hemisphere.

    :param latitude: Latitude in decimal degrees
    :param month: Month 1-12
    :return: Scaling factor
    """
    abs_lat = abs(latitude)
    if latitude >= 0:
        is_winter = month in NORTHERN_WINTER
        is_summer = month in NORTHERN_SUMMER
    else:
        is_winter = month in NORTHERN_SUMMER
        is_summer = month in NORTHERN_WINTER

    if abs_lat > 60:
        return 1.3 if is_winter else 1.0
    elif abs_lat > 30:
        return 1.1 if is_summer else 1.0
    else:
        return 1.0


def parametric_anomaly(
    latitude: float,
    month: int,
    scenario: Scenario,
    config: ProjectionConfig = DEFAULT_CONFIG,
) -> Anomaly:
    """
    Estimate the 2045 anomaly from regional and seasonal scaling.

    :param latitude: Latitude in decimal degrees (grid cell centre)
    :param month: Month 1-12
    :param scenario: Emissions scenario
    :param config: Calibration (base warming per scenario)
    :return: Anomaly
    """
    base_warming = config.base_warming_c(scenario)
    delta_t_mean = (
        base_warming
        * latitude_scaling_factor(latitude)
        * seasonal_scaling_factor(latitude, month)
    )
    dry_spell_rate = 2 if scenario is Scenario.BAU else 1

    return Anomaly(
        delta_t_mean_c=delta_t_mean,
        delta_t_max_c=delta_t_mean * 1.3,
        delta_wet_probability=delta_t_mean * 0.03,
        delta_intensity_fraction=delta_t_mean * 0.07,
        delta_dry_spell_days=round_half_away(delta_t_mean * dry_spell_rate),
        delta_hot_days_90f=round_half_away(delta_t_mean * 5),
    )


# ---------- dataset loading ----------


def _read_dataset_frame(path: Path) -> pd.DataFrame:
    """Read a dataset file into a flat frame with latitude/longitude columns."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        df = pd.json_normalize(raw)
        df = df.rename(
            columns={
                "gridCell.latitude": "latitude",
                "gridCell.longitude": "longitude",
                **{f"anomaly.{k}": k for k in ANOMALY_COLUMNS},
            }
        )
        return df
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix == ".parquet":
        return pd.read_parquet(path)
    raise ValueError(f"Unsupported anomaly dataset format: {suffix}")


def _optional_int(value) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    return int(value)


def anomaly_records_from_frame(
    df: pd.DataFrame, resolution: float = 1.0
) -> Dict[AnomalyKey, Anomaly]:
    """
    Convert a flat anomaly table into keyed Anomaly records.

    Rows with a bad scenario, month or missing required value are skipped.

    :param df: Frame with latitude, longitude, month, scenario and anomaly columns
    :param resolution: Grid resolution the records are snapped to
    :return: Dict of key -> Anomaly
    """
    required = ["latitude", "longitude", "month", "scenario"] + REQUIRED_ANOMALY_COLUMNS
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Anomaly dataset missing columns: {missing}")

    records: Dict[AnomalyKey, Anomaly] = {}
    skipped = 0
    for row in df.to_dict(orient="records"):
        try:
            month = int(row["month"])
            _validate_month(month)
            scenario = Scenario.from_name(row["scenario"])
            if any(pd.isna(row[c]) for c in REQUIRED_ANOMALY_COLUMNS):
                raise ValueError("missing anomaly value")
            cell = GridCell.from_coordinates(
                float(row["latitude"]), float(row["longitude"]), resolution
            )
            records[make_key(cell, month, scenario)] = Anomaly(
                delta_t_mean_c=float(row["dT_mean"]),
                delta_t_max_c=float(row["dT_max"]),
                delta_wet_probability=float(row["dP_wetProb"]),
                delta_intensity_fraction=float(row["dP_intensity"]),
                delta_dry_spell_days=_optional_int(row.get("dDrySpellDays")),
                delta_hot_days_90f=_optional_int(row.get("dHotDays90F")),
            )
        except (TypeError, ValueError) as e:
            skipped += 1
            logger.debug(f"Skipping anomaly row {row}: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} malformed anomaly dataset rows")
    return records


def load_anomaly_dataset(
    path: Union[str, Path], resolution: float = 1.0
) -> Dict[AnomalyKey, Anomaly]:
    """
    Load anomaly records from a JSON, CSV or Parquet file.

    Never raises: a missing or unreadable file yields an empty dataset.

    :param path: Dataset file path
    :param resolution: Grid resolution of the provider using the records
    :return: Dict of key -> Anomaly (empty on failure)
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Anomaly dataset {path} not found, using fallback model")
        return {}

    try:
        df = _read_dataset_frame(path)
        records = anomaly_records_from_frame(df, resolution)
    except Exception as e:
        logger.warning(f"Error loading anomaly dataset {path}: {e}, using fallback model")
        return {}

    logger.info(f"Loaded {len(records)} anomaly records from {path}")
    return records


# ---------- provider ----------


class AnomalyProvider:
    """
    Memoizing anomaly lookup with dataset and parametric fallback.

    Each instance owns its cache and its grid resolution; neither changes for
    the lifetime of the instance. The cache is any str-keyed MutableMapping
    (default a fresh dict); a ``shelve`` shelf persists it across runs.
    """

    def __init__(
        self,
        config: ProjectionConfig = DEFAULT_CONFIG,
        dataset: Union[str, Path, Dict[AnomalyKey, Anomaly], None] = None,
        cache: Optional[MutableMapping[str, Anomaly]] = None,
    ):
        self.config = config
        self._resolution = config.grid_resolution
        self.cache: MutableMapping[str, Anomaly] = (
            cache if cache is not None else {}
        )
        self._lock = threading.Lock()

        if dataset is None:
            self._dataset: Dict[AnomalyKey, Anomaly] = {}
        elif isinstance(dataset, (str, Path)):
            self._dataset = load_anomaly_dataset(dataset, self._resolution)
        else:
            self._dataset = dict(dataset)

    @property
    def resolution(self) -> float:
        return self._resolution

    @property
    def dataset_size(self) -> int:
        return len(self._dataset)

    def grid_cell(self, latitude: float, longitude: float) -> GridCell:
        return GridCell.from_coordinates(latitude, longitude, self._resolution)

    def get_anomaly(
        self, latitude: float, longitude: float, month: int, scenario: Scenario
    ) -> Anomaly:
        """
        Get the anomaly for a location, month and scenario.

        :param latitude: Latitude in decimal degrees
        :param longitude: Longitude in decimal degrees
        :param month: Month 1-12
        :param scenario: Emissions scenario
        :return: Anomaly (identical object for repeated identical requests)
        :raises ValueError: if month is outside 1-12
        """
        _validate_month(month)
        cell = self.grid_cell(latitude, longitude)
        key = make_key(cell, month, scenario)
        store_key = key_to_string(key)

        with self._lock:
            cached = self.cache.get(store_key)
        if cached is not None:
            return cached

        anomaly = self._dataset.get(key)
        if anomaly is None:
            anomaly = parametric_anomaly(cell.latitude, month, scenario, self.config)
            logger.debug(
                f"Parametric anomaly for {cell}, month={month}, "
                f"scenario={scenario.value}: ΔT={anomaly.delta_t_mean_c:.2f}°C"
            )

        # First writer wins so concurrent callers all see one object
        with self._lock:
            existing = self.cache.get(store_key)
            if existing is not None:
                return existing
            self.cache[store_key] = anomaly
        return anomaly
