"""
Weather utility functions for unit conversion, rounding and formatting.

This module provides the small numeric helpers shared by the anomaly
provider, the synthesis engine and the impact calculators.
"""

import math

import numpy as np

# Magnus formula constants (°C)
MAGNUS_A = 17.27
MAGNUS_B = 237.7

# log(0) is undefined; drier air than this is treated as 1% RH
MIN_RELATIVE_HUMIDITY = 0.01


def c_to_f(temp_c: float) -> float:
    """Convert Celsius to Fahrenheit."""
    return temp_c * 9.0 / 5.0 + 32.0


def f_to_c(temp_f: float) -> float:
    """Convert Fahrenheit to Celsius."""
    return (temp_f - 32.0) * 5.0 / 9.0


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """
    Clamp a value into [lower, upper].

    :param value: Value to clamp
    :param lower: Lower bound (inclusive)
    :param upper: Upper bound (inclusive)
    :return: Clamped value as a plain float
    """
    return float(np.clip(value, lower, upper))


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3).

    Python's built-in round() rounds halves to even, which would put two
    coordinates half a cell apart into the same bucket inconsistently.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def calculate_dew_point(temp_c: float, relative_humidity: float) -> float:
    """
    Calculate dew point from temperature and relative humidity (Magnus formula).

    :param temp_c: Air temperature in °C
    :param relative_humidity: Relative humidity as a fraction (0-1)
    :return: Dew point in °C
    """
    rh = clamp(relative_humidity, MIN_RELATIVE_HUMIDITY, 1.0)
    alpha = (MAGNUS_A * temp_c) / (MAGNUS_B + temp_c) + float(np.log(rh))
    return (MAGNUS_B * alpha) / (MAGNUS_A - alpha)


def format_signed_temp(delta_c: float) -> str:
    """Format a temperature delta with explicit sign, e.g. '+2.3°C'."""
    return f"{delta_c:+.1f}°C"


def format_temp(temp_c: float) -> str:
    """Format a temperature, e.g. '21.4°C'."""
    return f"{temp_c:.1f}°C"


def format_precip(precip_mm: float) -> str:
    """Format a precipitation amount, e.g. '3.2 mm'."""
    return f"{precip_mm:.1f} mm"


def format_wind_speed(wind_ms: float) -> str:
    """Format a wind speed, e.g. '4.0 m/s'."""
    return f"{wind_ms:.1f} m/s"


def format_fraction_pct(fraction: float) -> str:
    """Format a 0-1 fraction as a whole percentage, e.g. '65%'."""
    return f"{fraction * 100:.0f}%"
