"""Tests for Open-Meteo client."""

import httpx
import pytest
import respx
from conftest import JERUSALEM_OFFSET, forecast_document
from httpx import Response

from citycast.config import Settings
from citycast.services.open_meteo import (
    DAILY_FIELDS,
    HOURLY_FIELDS,
    OpenMeteoAPIError,
    OpenMeteoClient,
    OpenMeteoError,
    OpenMeteoParseError,
    OpenMeteoTimeoutError,
    parse_forecast,
)


class TestOpenMeteoClient:
    """Tests for OpenMeteoClient."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_success(self) -> None:
        """Test successful forecast fetch."""
        settings = Settings()
        client = OpenMeteoClient(settings)

        respx.get(settings.upstream_url).mock(
            return_value=Response(200, json=forecast_document())
        )

        bundle = await client.fetch(32.08, 34.78)

        assert bundle.meta.timezone == "Asia/Jerusalem"
        assert bundle.meta.utc_offset_seconds == JERUSALEM_OFFSET
        assert bundle.meta.lat == 32.08
        assert bundle.meta.lon == 34.78
        assert len(bundle.hourly) == 48
        assert len(bundle.daily) == 7
        assert bundle.current.temp == 14.2
        assert bundle.current.weather_code == 2

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_request_parameters(self) -> None:
        """Test the request asks for local times and the fixed field sets."""
        settings = Settings()
        client = OpenMeteoClient(settings)

        route = respx.get(settings.upstream_url).mock(
            return_value=Response(200, json=forecast_document())
        )

        await client.fetch(32.08, 34.78)

        params = route.calls.last.request.url.params
        assert params["latitude"] == "32.08"
        assert params["longitude"] == "34.78"
        assert params["current_weather"] == "true"
        assert params["timezone"] == "auto"
        assert params["hourly"].split(",") == list(HOURLY_FIELDS)
        assert params["daily"].split(",") == list(DAILY_FIELDS)

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_timeout(self) -> None:
        """Test timeout handling."""
        settings = Settings(upstream_timeout_seconds=0.1)
        client = OpenMeteoClient(settings)

        respx.get(settings.upstream_url).mock(side_effect=httpx.TimeoutException("timeout"))

        with pytest.raises(OpenMeteoTimeoutError):
            await client.fetch(32.08, 34.78)

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_api_error(self) -> None:
        """Test non-2xx status carries status code and text."""
        settings = Settings()
        client = OpenMeteoClient(settings)

        respx.get(settings.upstream_url).mock(
            return_value=Response(500, text="Internal Server Error")
        )

        with pytest.raises(OpenMeteoAPIError) as exc_info:
            await client.fetch(32.08, 34.78)

        assert exc_info.value.status_code == 500
        assert exc_info.value.status_text == "Internal Server Error"
        assert "500" in str(exc_info.value)

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_400_error(self) -> None:
        """Test 400 error handling."""
        settings = Settings()
        client = OpenMeteoClient(settings)

        respx.get(settings.upstream_url).mock(
            return_value=Response(400, json={"reason": "Latitude must be in range"})
        )

        with pytest.raises(OpenMeteoAPIError) as exc_info:
            await client.fetch(999, 999)

        assert exc_info.value.status_code == 400

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_malformed_json(self) -> None:
        """Test a body that is not JSON raises a parse error."""
        settings = Settings()
        client = OpenMeteoClient(settings)

        respx.get(settings.upstream_url).mock(
            return_value=Response(200, text="<html>gateway</html>")
        )

        with pytest.raises(OpenMeteoParseError):
            await client.fetch(32.08, 34.78)

    @respx.mock
    @pytest.mark.asyncio
    async def test_fetch_connection_error(self) -> None:
        """Test transport failures raise the base error."""
        settings = Settings()
        client = OpenMeteoClient(settings)

        respx.get(settings.upstream_url).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(OpenMeteoError) as exc_info:
            await client.fetch(32.08, 34.78)

        assert not isinstance(exc_info.value, OpenMeteoTimeoutError)


class TestParseForecast:
    """Tests for parse_forecast."""

    def test_hourly_fields(self) -> None:
        """Test hourly series are zipped into points."""
        bundle = parse_forecast(forecast_document(), 32.08, 34.78)

        first = bundle.hourly[0]
        assert first.time == "2024-01-01T00:00"
        assert first.temp == 10.0
        assert first.feels_like == 9.0
        assert first.pressure == 1015.0
        assert first.weather_code == 3
        assert first.is_day is False
        assert bundle.hourly[7].is_day is True
        assert bundle.hourly[1].weather_code == 61

    def test_daily_fields(self) -> None:
        """Test daily series are zipped into points."""
        bundle = parse_forecast(forecast_document(), 32.08, 34.78)

        tomorrow = bundle.daily[1]
        assert tomorrow.date == "2024-01-02"
        assert tomorrow.min == 10.0
        assert tomorrow.max == 19.0
        assert tomorrow.wind_speed_max == 21.0
        assert tomorrow.sunrise == "2024-01-02T06:38"
        assert tomorrow.weather_code == 61

    def test_null_values_tolerated(self) -> None:
        """Test null and missing per-field values become None."""
        document = forecast_document(hours=1, days=1)
        document["hourly"]["apparent_temperature"] = [None]
        document["hourly"]["is_day"] = [None]
        document["hourly"]["weathercode"] = [None]
        del document["hourly"]["visibility"]
        document["daily"]["sunrise"] = [None]

        bundle = parse_forecast(document, 32.08, 34.78)

        assert bundle.hourly[0].feels_like is None
        assert bundle.hourly[0].is_day is None
        assert bundle.hourly[0].weather_code is None
        assert bundle.hourly[0].visibility is None
        assert bundle.daily[0].sunrise is None

    def test_missing_offset_defaults_to_zero(self) -> None:
        """Test a document without utc_offset_seconds is treated as UTC."""
        document = forecast_document()
        del document["utc_offset_seconds"]

        bundle = parse_forecast(document, 32.08, 34.78)

        assert bundle.meta.utc_offset_seconds == 0

    def test_missing_current_raises_error(self) -> None:
        """Test parsing response with missing current_weather raises error."""
        document = forecast_document()
        del document["current_weather"]

        with pytest.raises(OpenMeteoParseError, match="Missing 'current_weather' field"):
            parse_forecast(document, 32.08, 34.78)

    def test_missing_series_raises_error(self) -> None:
        """Test parsing response without hourly data raises error."""
        document = forecast_document()
        del document["hourly"]

        with pytest.raises(OpenMeteoParseError, match="Missing 'hourly' or 'daily'"):
            parse_forecast(document, 32.08, 34.78)

    def test_non_object_raises_error(self) -> None:
        """Test a JSON array is rejected."""
        with pytest.raises(OpenMeteoParseError):
            parse_forecast([1, 2, 3], 32.08, 34.78)

    def test_non_string_hourly_time_raises_error(self) -> None:
        """Test numeric hourly timestamps are rejected."""
        document = forecast_document(hours=3)
        document["hourly"]["time"] = [1704060000, 1704063600, 1704067200]

        with pytest.raises(OpenMeteoParseError, match="hourly time at index 0"):
            parse_forecast(document, 32.08, 34.78)

    def test_non_string_daily_date_raises_error(self) -> None:
        """Test a null daily date is rejected."""
        document = forecast_document(days=2)
        document["daily"]["time"][1] = None

        with pytest.raises(OpenMeteoParseError, match="daily date at index 1"):
            parse_forecast(document, 32.08, 34.78)
