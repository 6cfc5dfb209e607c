"""WMO weather code lookup tables.

Maps Open-Meteo weather codes to icon tokens and bilingual descriptions.
Icon tokens are a two-digit family code followed by ``d`` or ``n``.
"""

from dataclasses import dataclass

# Icon families
CLEAR = "01"
CLOUDY = "02"
SHOWERS = "09"
RAIN = "10"
THUNDER = "11"
SNOW = "13"
FOG = "50"

# code -> (icon family, english, hebrew)
WEATHER_CODES: dict[int, tuple[str, str, str]] = {
    # Clear sky
    0: (CLEAR, "Clear sky", "שמיים בהירים"),
    # Mainly clear, partly cloudy, overcast
    1: (CLOUDY, "Mainly clear", "בהיר ברובו"),
    2: (CLOUDY, "Partly cloudy", "מעונן חלקית"),
    3: (CLOUDY, "Overcast", "מעונן"),
    # Fog
    45: (FOG, "Fog", "ערפל"),
    48: (FOG, "Depositing rime fog", "ערפל עם קרח"),
    # Drizzle
    51: (SHOWERS, "Light drizzle", "טפטוף קל"),
    53: (SHOWERS, "Moderate drizzle", "טפטוף בינוני"),
    55: (SHOWERS, "Dense drizzle", "טפטוף כבד"),
    # Freezing drizzle
    56: (SNOW, "Light freezing drizzle", "טפטוף קל קפוא"),
    57: (SNOW, "Dense freezing drizzle", "טפטוף כבד קפוא"),
    # Rain
    61: (RAIN, "Slight rain", "גשם קל"),
    63: (RAIN, "Moderate rain", "גשם בינוני"),
    65: (RAIN, "Heavy rain", "גשם כבד"),
    # Freezing rain
    66: (SNOW, "Light freezing rain", "גשם קל קפוא"),
    67: (SNOW, "Heavy freezing rain", "גשם כבד קפוא"),
    # Snow fall
    71: (SNOW, "Slight snow fall", "שלג קל"),
    73: (SNOW, "Moderate snow fall", "שלג בינוני"),
    75: (SNOW, "Heavy snow fall", "שלג כבד"),
    # Snow grains
    77: (SNOW, "Snow grains", "גרגירי שלג"),
    # Rain showers
    80: (SHOWERS, "Slight rain showers", "ממטרים קלים"),
    81: (SHOWERS, "Moderate rain showers", "ממטרים בינוניים"),
    82: (SHOWERS, "Violent rain showers", "ממטרים חזקים"),
    # Snow showers
    85: (SNOW, "Slight snow showers", "ממטרי שלג קלים"),
    86: (SNOW, "Heavy snow showers", "ממטרי שלג כבדים"),
    # Thunderstorm
    95: (THUNDER, "Thunderstorm", "סופת רעמים"),
    # Thunderstorm with hail
    96: (THUNDER, "Thunderstorm with slight hail", "סופת רעמים עם ברד קל"),
    99: (THUNDER, "Thunderstorm with heavy hail", "סופת רעמים עם ברד כבד"),
}

UNKNOWN_EN = "Unknown"
UNKNOWN_HE = "לא ידוע"


@dataclass(frozen=True)
class WeatherCodeInfo:
    """Icon and descriptions for a single weather code."""

    icon: str
    description_en: str
    description_he: str


def icon_for(weather_code: int | None, is_day: bool | None = True) -> str:
    """Return the icon token for a weather code.

    Unknown codes use the clear-sky family. ``is_day=None`` renders as day.
    """
    suffix = "n" if is_day is False else "d"
    family = WEATHER_CODES.get(weather_code, (CLEAR,))[0] if weather_code is not None else CLEAR
    return f"{family}{suffix}"


def map_code(weather_code: int | None, is_day: bool | None = True) -> WeatherCodeInfo:
    """Map a WMO weather code to its icon and bilingual descriptions."""
    entry = WEATHER_CODES.get(weather_code) if weather_code is not None else None
    if entry is None:
        return WeatherCodeInfo(
            icon=icon_for(None, is_day),
            description_en=UNKNOWN_EN,
            description_he=UNKNOWN_HE,
        )
    return WeatherCodeInfo(
        icon=icon_for(weather_code, is_day),
        description_en=entry[1],
        description_he=entry[2],
    )

