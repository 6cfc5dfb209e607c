"""Test fixtures."""

from datetime import datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from citycast.api.dependencies import reset_singletons
from citycast.api.schemas import BilingualText, CanonicalWeather, CurrentWeather
from citycast.config import Settings, get_settings
from citycast.main import create_app
from citycast.services.cache import InMemoryCacheStore
from citycast.services.directory import CityRecord, StaticCityDirectory
from citycast.services.open_meteo import OpenMeteoClient

# 2024-01-01T03:20:00Z, which is 05:20 in Asia/Jerusalem (UTC+2 in winter)
NOW = 1704079200.0
JERUSALEM_OFFSET = 7200

TEL_AVIV_ID = "city:32.1_34.8"
TEL_AVIV = CityRecord(
    name_en="Tel Aviv",
    name_he="תל אביב",
    country_en="Israel",
    country_he="ישראל",
)


def forecast_document(
    hours: int = 48,
    days: int = 7,
    start: str = "2024-01-01T00:00",
    timezone: str = "Asia/Jerusalem",
    utc_offset_seconds: int = JERUSALEM_OFFSET,
) -> dict[str, Any]:
    """Build an Open-Meteo forecast body with ``hours`` hourly and ``days`` daily points."""
    first = datetime.fromisoformat(start)
    times = [(first + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours)]
    dates = [(first + timedelta(days=i)).strftime("%Y-%m-%d") for i in range(days)]

    return {
        "latitude": 32.08,
        "longitude": 34.78,
        "timezone": timezone,
        "timezone_abbreviation": "IST",
        "utc_offset_seconds": utc_offset_seconds,
        "current_weather": {
            "temperature": 14.2,
            "windspeed": 9.4,
            "winddirection": 250,
            "weathercode": 2,
            "time": times[5] if hours > 5 else start,
        },
        "hourly": {
            "time": times,
            "temperature_2m": [10.0 + i * 0.5 for i in range(hours)],
            "apparent_temperature": [9.0 + i * 0.5 for i in range(hours)],
            "relative_humidity_2m": [70 - (i % 20) for i in range(hours)],
            "dew_point_2m": [6.0] * hours,
            "pressure_msl": [1015.0] * hours,
            "cloud_cover": [40] * hours,
            "precipitation": [0.0] * hours,
            "precipitation_probability": [10] * hours,
            "rain": [0.0] * hours,
            "snowfall": [0.0] * hours,
            "wind_speed_10m": [8.0] * hours,
            "wind_gusts_10m": [15.0] * hours,
            "wind_direction_10m": [250] * hours,
            "uv_index": [1.5] * hours,
            "is_day": [1 if 6 <= (i % 24) < 17 else 0 for i in range(hours)],
            "weathercode": [61 if i % 2 else 3 for i in range(hours)],
            "visibility": [24000] * hours,
        },
        "daily": {
            "time": dates,
            "temperature_2m_max": [18.0 + i for i in range(days)],
            "temperature_2m_min": [9.0 + i for i in range(days)],
            "apparent_temperature_max": [17.0 + i for i in range(days)],
            "apparent_temperature_min": [7.0 + i for i in range(days)],
            "precipitation_sum": [0.0] * days,
            "precipitation_probability_max": [20] * days,
            "sunrise": [f"{d}T06:38" for d in dates],
            "sunset": [f"{d}T16:46" for d in dates],
            "uv_index_max": [3.1] * days,
            "windspeed_10m_max": [20.0 + i for i in range(days)],
            "windgusts_10m_max": [35.0] * days,
            "weathercode": [3, 61, 0, 95, 71, 45, 99][:days] + [0] * max(0, days - 7),
        },
    }


def make_payload(city_id: str = TEL_AVIV_ID, temp: float = 14.2) -> CanonicalWeather:
    """Minimal canonical payload for cache tests."""
    return CanonicalWeather(
        id=city_id,
        lat=32.08,
        lon=34.78,
        name=BilingualText(en="Tel Aviv", he="תל אביב"),
        country=BilingualText(en="Israel", he="ישראל"),
        current=CurrentWeather(
            weatherCodeId=0,
            temp=temp,
            description=BilingualText(en="Clear sky", he="שמיים בהירים"),
            icon="01d",
            timezone="Asia/Jerusalem",
        ),
        lastUpdatedEpoch=int(NOW * 1000),
    )


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        upstream_timeout_seconds=4.0,
        cache_ttl_seconds=20 * 60,
        cache_max_size=1000,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def cache_store(settings: Settings) -> InMemoryCacheStore:
    """Create test in-memory cache store."""
    return InMemoryCacheStore(settings)


@pytest.fixture
def open_meteo_client(settings: Settings) -> OpenMeteoClient:
    """Create test Open-Meteo client."""
    return OpenMeteoClient(settings)


@pytest.fixture
def directory() -> StaticCityDirectory:
    """Directory that knows Tel Aviv only."""
    return StaticCityDirectory({TEL_AVIV_ID: TEL_AVIV})


@pytest.fixture
def app():
    """Create test application."""
    # Reset singletons before each test
    reset_singletons()
    # Clear settings cache
    get_settings.cache_clear()
    return create_app()


@pytest.fixture
def client(app) -> TestClient:
    """Create test client."""
    return TestClient(app)
