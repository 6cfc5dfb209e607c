"""Open-Meteo API client."""

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from prometheus_client import Counter, Histogram

from citycast.config import Settings

logger = structlog.get_logger()

HOURLY_FIELDS = (
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "dew_point_2m",
    "pressure_msl",
    "cloud_cover",
    "precipitation",
    "precipitation_probability",
    "rain",
    "snowfall",
    "wind_speed_10m",
    "wind_gusts_10m",
    "wind_direction_10m",
    "uv_index",
    "is_day",
    "weathercode",
    "visibility",
)

DAILY_FIELDS = (
    "temperature_2m_max",
    "temperature_2m_min",
    "apparent_temperature_max",
    "apparent_temperature_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "sunrise",
    "sunset",
    "uv_index_max",
    "windspeed_10m_max",
    "windgusts_10m_max",
    "weathercode",
)


class OpenMeteoError(Exception):
    """Base exception for Open-Meteo client errors."""


class OpenMeteoTimeoutError(OpenMeteoError):
    """Raised when upstream request times out."""


class OpenMeteoAPIError(OpenMeteoError):
    """Raised when upstream returns a non-2xx status."""

    def __init__(self, message: str, status_code: int, status_text: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class OpenMeteoParseError(OpenMeteoError):
    """Raised when the upstream body is not a usable forecast document."""


# Metrics
upstream_requests = Counter(
    "upstream_requests_total",
    "Total upstream API requests",
    ["status"],
)
upstream_duration = Histogram(
    "upstream_request_duration_seconds",
    "Upstream request duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 4.0],
)


@dataclass
class CurrentConditions:
    """The provider's ``current_weather`` block."""

    time: str | None
    temp: float | None
    wind_speed: float | None
    wind_direction: float | None
    weather_code: int | None


@dataclass
class HourlyPoint:
    """One entry of the hourly series, keyed by local wall-clock time."""

    time: str
    temp: float | None = None
    feels_like: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    clouds: float | None = None
    precipitation_probability: float | None = None
    precipitation: float | None = None
    rain: float | None = None
    snowfall: float | None = None
    wind_speed: float | None = None
    wind_gust: float | None = None
    wind_direction: float | None = None
    uv_index: float | None = None
    dew_point: float | None = None
    visibility: float | None = None
    weather_code: int | None = None
    is_day: bool | None = None


@dataclass
class DailyPoint:
    """One entry of the daily series, keyed by local date."""

    date: str
    min: float | None = None
    max: float | None = None
    feels_like_min: float | None = None
    feels_like_max: float | None = None
    precipitation_sum: float | None = None
    precipitation_probability_max: float | None = None
    wind_speed_max: float | None = None
    wind_gust_max: float | None = None
    sunrise: str | None = None
    sunset: str | None = None
    uv_index_max: float | None = None
    weather_code: int | None = None


@dataclass
class BundleMeta:
    """Location metadata for a bundle.

    ``utc_offset_seconds`` applies to the whole bundle.
    ``current_hour_index`` is filled in by the time resolver.
    """

    lat: float
    lon: float
    timezone: str
    utc_offset_seconds: int
    current_hour_index: int = 0


@dataclass
class RawBundle:
    """Parsed forecast document from Open-Meteo."""

    current: CurrentConditions
    meta: BundleMeta
    hourly: list[HourlyPoint] = field(default_factory=list)
    daily: list[DailyPoint] = field(default_factory=list)


class OpenMeteoClient:
    """HTTP client for Open-Meteo Forecast API."""

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._base_url = settings.upstream_url
        self._timeout = settings.upstream_timeout_seconds

    def build_params(self, lat: float, lon: float) -> dict[str, str | float]:
        """Query parameters for a forecast request."""
        return {
            "latitude": lat,
            "longitude": lon,
            "current_weather": "true",
            "timezone": "auto",
            "hourly": ",".join(HOURLY_FIELDS),
            "daily": ",".join(DAILY_FIELDS),
        }

    async def fetch(self, lat: float, lon: float) -> RawBundle:
        """Fetch the forecast bundle for coordinates.

        A single attempt bounded by the configured timeout; nothing is retried.

        Args:
            lat: Latitude (-90 to 90)
            lon: Longitude (-180 to 180)

        Returns:
            Parsed forecast bundle

        Raises:
            OpenMeteoTimeoutError: If request times out
            OpenMeteoAPIError: If upstream returns a non-2xx status
            OpenMeteoParseError: If the body is not valid forecast JSON
            OpenMeteoError: On any other transport failure
        """
        params = self.build_params(lat, lon)

        with upstream_duration.time():
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self._base_url, params=params)

            except httpx.TimeoutException as e:
                upstream_requests.labels(status="timeout").inc()
                raise OpenMeteoTimeoutError(
                    f"Open-Meteo API request timed out after {self._timeout}s"
                ) from e

            except httpx.RequestError as e:
                upstream_requests.labels(status="error").inc()
                raise OpenMeteoError(f"Open-Meteo API request failed: {e}") from e

        if not response.is_success:
            upstream_requests.labels(status="error").inc()
            raise OpenMeteoAPIError(
                f"Open-Meteo API error: {response.status_code} {response.reason_phrase}",
                response.status_code,
                response.reason_phrase,
            )

        try:
            data = response.json()
        except ValueError as e:
            upstream_requests.labels(status="invalid").inc()
            raise OpenMeteoParseError(f"Open-Meteo API returned malformed JSON: {e}") from e

        upstream_requests.labels(status="success").inc()
        return parse_forecast(data, lat, lon)


def _series_value(series: dict[str, Any], key: str, index: int) -> Any:
    values = series.get(key) or []
    return values[index] if index < len(values) else None


def _as_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def parse_forecast(data: Any, lat: float, lon: float) -> RawBundle:
    """Parse an Open-Meteo forecast document into a bundle.

    Missing per-field values become ``None``; missing sections are an error.

    Raises:
        OpenMeteoParseError: If required sections are missing from response
    """
    if not isinstance(data, dict):
        raise OpenMeteoParseError("Forecast response is not a JSON object")

    timezone = data.get("timezone")
    if not timezone:
        raise OpenMeteoParseError("Missing 'timezone' field in response")

    current = data.get("current_weather")
    if not isinstance(current, dict):
        raise OpenMeteoParseError("Missing 'current_weather' field in response")

    hourly = data.get("hourly")
    daily = data.get("daily")
    if not isinstance(hourly, dict) or not isinstance(daily, dict):
        raise OpenMeteoParseError("Missing 'hourly' or 'daily' series in response")

    def hourly_point(i: int, t: Any) -> HourlyPoint:
        if not isinstance(t, str):
            raise TypeError(f"hourly time at index {i} is not a string: {t!r}")
        is_day = _series_value(hourly, "is_day", i)
        return HourlyPoint(
            time=t,
            temp=_series_value(hourly, "temperature_2m", i),
            feels_like=_series_value(hourly, "apparent_temperature", i),
            humidity=_series_value(hourly, "relative_humidity_2m", i),
            pressure=_series_value(hourly, "pressure_msl", i),
            clouds=_series_value(hourly, "cloud_cover", i),
            precipitation_probability=_series_value(hourly, "precipitation_probability", i),
            precipitation=_series_value(hourly, "precipitation", i),
            rain=_series_value(hourly, "rain", i),
            snowfall=_series_value(hourly, "snowfall", i),
            wind_speed=_series_value(hourly, "wind_speed_10m", i),
            wind_gust=_series_value(hourly, "wind_gusts_10m", i),
            wind_direction=_series_value(hourly, "wind_direction_10m", i),
            uv_index=_series_value(hourly, "uv_index", i),
            dew_point=_series_value(hourly, "dew_point_2m", i),
            visibility=_series_value(hourly, "visibility", i),
            weather_code=_as_int(_series_value(hourly, "weathercode", i)),
            is_day=None if is_day is None else is_day == 1,
        )

    def daily_point(i: int, d: Any) -> DailyPoint:
        if not isinstance(d, str):
            raise TypeError(f"daily date at index {i} is not a string: {d!r}")
        return DailyPoint(
            date=d,
            min=_series_value(daily, "temperature_2m_min", i),
            max=_series_value(daily, "temperature_2m_max", i),
            feels_like_min=_series_value(daily, "apparent_temperature_min", i),
            feels_like_max=_series_value(daily, "apparent_temperature_max", i),
            precipitation_sum=_series_value(daily, "precipitation_sum", i),
            precipitation_probability_max=_series_value(daily, "precipitation_probability_max", i),
            wind_speed_max=_series_value(daily, "windspeed_10m_max", i),
            wind_gust_max=_series_value(daily, "windgusts_10m_max", i),
            sunrise=_series_value(daily, "sunrise", i),
            sunset=_series_value(daily, "sunset", i),
            uv_index_max=_series_value(daily, "uv_index_max", i),
            weather_code=_as_int(_series_value(daily, "weathercode", i)),
        )

    try:
        bundle = RawBundle(
            current=CurrentConditions(
                time=current.get("time"),
                temp=current.get("temperature"),
                wind_speed=current.get("windspeed"),
                wind_direction=current.get("winddirection"),
                weather_code=_as_int(current.get("weathercode")),
            ),
            meta=BundleMeta(
                lat=lat,
                lon=lon,
                timezone=timezone,
                utc_offset_seconds=int(data.get("utc_offset_seconds") or 0),
            ),
            hourly=[hourly_point(i, t) for i, t in enumerate(hourly.get("time") or [])],
            daily=[daily_point(i, d) for i, d in enumerate(daily.get("time") or [])],
        )
    except (TypeError, ValueError) as e:
        raise OpenMeteoParseError(f"Unexpected value in forecast response: {e}") from e

    logger.debug(
        "Parsed forecast bundle",
        timezone=timezone,
        hourly_points=len(bundle.hourly),
        daily_points=len(bundle.daily),
    )
    return bundle
