"""Shape a raw forecast bundle into the exposed forecast arrays."""

from citycast.api.schemas import (
    BilingualText,
    CurrentWeather,
    DailyForecast,
    HourlyForecast,
)
from citycast.services.open_meteo import DailyPoint, HourlyPoint, RawBundle
from citycast.services.time_resolver import local_to_utc_ms
from citycast.services.weather_codes import map_code

DAILY_DAYS = 5
HOURLY_HOURS = 24


def _description(weather_code: int | None) -> BilingualText:
    info = map_code(weather_code)
    return BilingualText(en=info.description_en, he=info.description_he)


def project_daily(daily: list[DailyPoint], utc_offset_seconds: int) -> list[DailyForecast]:
    """Forecast for the days after today.

    ``daily[0]`` is today and is covered by current conditions, so it is
    skipped. Daily icons always use the daytime variant.
    """
    return [
        DailyForecast(
            date=local_to_utc_ms(day.date, utc_offset_seconds),
            min=day.min,
            max=day.max,
            weatherCodeId=day.weather_code,
            icon=map_code(day.weather_code, is_day=True).icon,
            description=_description(day.weather_code),
            windSpeed=day.wind_speed_max,
            precipitationProbability=day.precipitation_probability_max,
            uvIndexMax=day.uv_index_max,
            sunrise=day.sunrise,
            sunset=day.sunset,
        )
        for day in daily[1 : 1 + DAILY_DAYS]
    ]


def project_hourly(
    hourly: list[HourlyPoint],
    current_hour_index: int,
    utc_offset_seconds: int,
) -> list[HourlyForecast]:
    """Up to 24 hours starting at the current hour.

    An index past the end of the series yields an empty list.
    """
    start = max(0, current_hour_index)
    return [
        HourlyForecast(
            timeEpoch=local_to_utc_ms(hour.time, utc_offset_seconds),
            temp=hour.temp,
            feelsLike=hour.feels_like,
            weatherCodeId=hour.weather_code,
            icon=map_code(hour.weather_code, hour.is_day).icon,
            description=_description(hour.weather_code),
            windSpeed=hour.wind_speed,
            humidity=hour.humidity,
        )
        for hour in hourly[start : start + HOURLY_HOURS]
    ]


def project_current(bundle: RawBundle) -> CurrentWeather:
    """Current conditions from ``current_weather`` plus the current hourly entry."""
    meta = bundle.meta
    index = meta.current_hour_index
    hour = bundle.hourly[index] if 0 <= index < len(bundle.hourly) else HourlyPoint(time="")
    today = bundle.daily[0] if bundle.daily else DailyPoint(date="")
    code = bundle.current.weather_code

    def to_epoch(local: str | None) -> int | None:
        return local_to_utc_ms(local, meta.utc_offset_seconds) if local else None

    return CurrentWeather(
        weatherCodeId=code,
        temp=bundle.current.temp,
        feelsLike=hour.feels_like,
        tempMin=today.min,
        tempMax=today.max,
        description=_description(code),
        icon=map_code(code, hour.is_day).icon,
        humidity=hour.humidity,
        windSpeed=bundle.current.wind_speed,
        windDirection=bundle.current.wind_direction,
        pressure=hour.pressure,
        visibility=hour.visibility,
        clouds=hour.clouds,
        sunriseEpoch=to_epoch(today.sunrise),
        sunsetEpoch=to_epoch(today.sunset),
        timezone=meta.timezone,
        uvIndex=hour.uv_index,
        precipitationProbability=hour.precipitation_probability,
    )
