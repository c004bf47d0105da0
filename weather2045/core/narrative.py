"""
Plain-language summaries of a 2045 projection.

Thresholds are relative to the +1.5°C Paris-Agreement guardrail.
"""

from weather2045.utils.weather_utils import format_signed_temp


def describe_warming(temperature_delta: float) -> str:
    if temperature_delta < 1.0:
        return "slightly warmer"
    elif temperature_delta < 1.5:
        return "moderately warmer"
    elif temperature_delta < 2.5:
        return "significantly warmer"
    else:
        return "much hotter"


def generate_forecast(
    location_name: str, temperature_delta: float, with_interventions: bool
) -> str:
    """
    Build the one-paragraph 2045 outlook shown under the projection.

    :param location_name: Display name, empty when unknown
    :param temperature_delta: Projected minus observed temperature (°C)
    :param with_interventions: Whether intervention cooling was applied
    :return: Forecast text
    """
    name = location_name or "this location"
    forecast = (
        f"By 2045, {name} is projected to be {describe_warming(temperature_delta)} "
        f"({format_signed_temp(temperature_delta)}). "
    )

    if temperature_delta > 1.5:
        forecast += "Expect more extreme weather events including intense storms and heat waves. "
    else:
        forecast += "Weather patterns will shift with increased variability. "

    if with_interventions:
        forecast += "Climate interventions help reduce the worst impacts."
    else:
        forecast += "Without intervention, impacts could worsen further."

    return forecast


def temperature_color(delta: float) -> str:
    """Colour name for a warming delta: green, yellow, orange or red."""
    if delta < 1.5:
        return "green"
    elif delta < 2.0:
        return "yellow"
    elif delta < 2.5:
        return "orange"
    else:
        return "red"


# Checked in order; the first substring found in the lowercased condition wins
PROJECTED_CONDITIONS = [
    ("rain", "Heavy Rain"),
    ("cloud", "Stormy"),
    ("clear", "Hot & Clear"),
]

CONDITION_ICONS = [
    ("clear", "☀️"),
    ("cloud", "☁️"),
    ("rain", "🌧️"),
    ("storm", "⛈️"),
    ("snow", "🌨️"),
    ("hot", "☀️"),
]
DEFAULT_CONDITION_ICON = "🌤️"

# Warming above which today's condition is intensified
CONDITION_INTENSIFY_ABOVE_C = 1.5


def project_2045_condition(current_condition: str, temperature_delta: float) -> str:
    """
    Project today's sky condition (e.g. 'Clouds') to 2045.

    Above 1.5°C of warming rain becomes 'Heavy Rain', clouds become 'Stormy'
    and clear skies 'Hot & Clear'; anything else is returned unchanged.

    :param current_condition: Current condition name from the weather source
    :param temperature_delta: Projected minus observed temperature (°C)
    :return: Projected condition name
    """
    if temperature_delta > CONDITION_INTENSIFY_ABOVE_C:
        condition = current_condition.lower()
        for keyword, projected in PROJECTED_CONDITIONS:
            if keyword in condition:
                return projected
    return current_condition


def condition_icon(condition: str) -> str:
    """Emoji for a condition name."""
    condition = condition.lower()
    for keyword, icon in CONDITION_ICONS:
        if keyword in condition:
            return icon
    return DEFAULT_CONDITION_ICON
