"""API request and response schemas."""

from typing import Literal

from pydantic import BaseModel, Field

Language = Literal["en", "he"]


class BilingualText(BaseModel):
    """Text available in English and Hebrew."""

    en: str
    he: str


class CurrentWeather(BaseModel):
    """Current conditions at the location."""

    weatherCodeId: int | None = Field(None, description="WMO weather code")  # noqa: N815
    temp: float | None = Field(None, description="Temperature in Celsius")
    feelsLike: float | None = Field(None, description="Apparent temperature")  # noqa: N815
    tempMin: float | None = Field(None, description="Today's minimum")  # noqa: N815
    tempMax: float | None = Field(None, description="Today's maximum")  # noqa: N815
    description: BilingualText
    icon: str = Field(..., description="Icon token, e.g. 01d")
    humidity: float | None = None
    windSpeed: float | None = Field(None, description="Wind speed in km/h")  # noqa: N815
    windDirection: float | None = Field(None, description="Wind direction in degrees")  # noqa: N815
    pressure: float | None = Field(None, description="Sea level pressure in hPa")
    visibility: float | None = Field(None, description="Visibility in meters")
    clouds: float | None = Field(None, description="Cloud cover in percent")
    sunriseEpoch: int | None = Field(None, description="Sunrise, UTC epoch ms")  # noqa: N815
    sunsetEpoch: int | None = Field(None, description="Sunset, UTC epoch ms")  # noqa: N815
    timezone: str = Field(..., description="IANA timezone name")
    uvIndex: float | None = None  # noqa: N815
    precipitationProbability: float | None = None  # noqa: N815


class DailyForecast(BaseModel):
    """Forecast summary for one future day."""

    date: int = Field(..., description="Local midnight, UTC epoch ms")
    min: float | None = None
    max: float | None = None
    weatherCodeId: int | None = None  # noqa: N815
    icon: str
    description: BilingualText
    windSpeed: float | None = None  # noqa: N815
    precipitationProbability: float | None = None  # noqa: N815
    uvIndexMax: float | None = None  # noqa: N815
    sunrise: str | None = Field(None, description="Provider local time string")
    sunset: str | None = Field(None, description="Provider local time string")


class HourlyForecast(BaseModel):
    """Forecast for one hour."""

    timeEpoch: int = Field(..., description="Start of the hour, UTC epoch ms")  # noqa: N815
    temp: float | None = None
    feelsLike: float | None = None  # noqa: N815
    weatherCodeId: int | None = None  # noqa: N815
    icon: str
    description: BilingualText
    windSpeed: float | None = None  # noqa: N815
    humidity: float | None = None


class CanonicalWeather(BaseModel):
    """Normalized weather payload for a city."""

    id: str
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lon: float = Field(..., ge=-180, le=180, description="Longitude")
    name: BilingualText
    country: BilingualText
    current: CurrentWeather
    forecastDaily: list[DailyForecast] = Field(default_factory=list)  # noqa: N815
    forecastHourly: list[HourlyForecast] = Field(default_factory=list)  # noqa: N815
    lastUpdatedEpoch: int = Field(..., description="Retrieval time, UTC epoch ms")  # noqa: N815
    unit: Literal["metric"] = "metric"


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, str] = Field(default_factory=dict, description="Component checks")
