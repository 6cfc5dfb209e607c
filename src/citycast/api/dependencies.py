"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from citycast.api.schemas import ErrorDetail, ErrorResponse
from citycast.config import Settings, get_settings
from citycast.services.cache import CachePort, create_cache_store
from citycast.services.directory import CityDirectory, StaticCityDirectory
from citycast.services.open_meteo import OpenMeteoClient
from citycast.services.rate_limit import RateLimiter, RateLimitExceeded
from citycast.services.weather import WeatherService

RATE_LIMIT_MESSAGES = {
    "en": "Too many requests. Please try again later.",
    "he": "חרגת ממגבלת הבקשות. נסה שוב בעוד דקה.",
}

# Singleton instances for services
_cache_store: CachePort | None = None
_open_meteo_client: OpenMeteoClient | None = None
_city_directory: CityDirectory | None = None
_weather_service: WeatherService | None = None
_rate_limiter: RateLimiter | None = None


def get_cache_store(settings: Annotated[Settings, Depends(get_settings)]) -> CachePort:
    """Get cache store instance (singleton)."""
    global _cache_store
    if _cache_store is None:
        _cache_store = create_cache_store(settings)
    return _cache_store


def get_open_meteo_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> OpenMeteoClient:
    """Get Open-Meteo client instance (singleton)."""
    global _open_meteo_client
    if _open_meteo_client is None:
        _open_meteo_client = OpenMeteoClient(settings)
    return _open_meteo_client


def get_city_directory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CityDirectory:
    """Get city directory instance (singleton)."""
    global _city_directory
    if _city_directory is None:
        if settings.cities_file:
            _city_directory = StaticCityDirectory.from_file(settings.cities_file)
        else:
            _city_directory = StaticCityDirectory()
    return _city_directory


def get_weather_service(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[CachePort, Depends(get_cache_store)],
    client: Annotated[OpenMeteoClient, Depends(get_open_meteo_client)],
    directory: Annotated[CityDirectory, Depends(get_city_directory)],
) -> WeatherService:
    """Get weather service instance (singleton, shares in-flight refreshes)."""
    global _weather_service
    if _weather_service is None:
        _weather_service = WeatherService(store, client, directory, settings)
    return _weather_service


def get_rate_limiter(settings: Annotated[Settings, Depends(get_settings)]) -> RateLimiter:
    """Get rate limiter instance (singleton, counts are process-wide)."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter.from_settings(settings)
    return _rate_limiter


def client_ip(request: Request) -> str:
    """Client address, preferring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client is not None:
        return request.client.host
    return "unknown"


def enforce_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Reject the request with 429 once the client's window is used up."""
    try:
        limiter.consume(client_ip(request))
    except RateLimitExceeded as e:
        lang = "en" if request.query_params.get("lang") == "en" else "he"
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=ErrorResponse(
                error=ErrorDetail(code="RATE_LIMITED", message=RATE_LIMIT_MESSAGES[lang])
            ).model_dump(),
            headers={"Retry-After": str(e.retry_after)},
        ) from e


# Type aliases for dependency injection
CacheDep = Annotated[CachePort, Depends(get_cache_store)]
WeatherServiceDep = Annotated[WeatherService, Depends(get_weather_service)]


def reset_singletons() -> None:
    """Reset singleton instances (for testing)."""
    global _cache_store, _open_meteo_client, _city_directory, _weather_service, _rate_limiter
    _cache_store = None
    _open_meteo_client = None
    _city_directory = None
    _weather_service = None
    _rate_limiter = None


async def close_singletons() -> None:
    """Release backend connections held by singletons."""
    if _cache_store is not None:
        await _cache_store.close()
    reset_singletons()
