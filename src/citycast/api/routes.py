"""API route definitions."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from citycast.api.dependencies import CacheDep, WeatherServiceDep, enforce_rate_limit
from citycast.api.schemas import (
    CanonicalWeather,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    Language,
    ReadinessResponse,
)

logger = structlog.get_logger()

# API router for weather endpoints
api_router = APIRouter(prefix="/api/v1", tags=["weather"])

# Health router for health checks
health_router = APIRouter(prefix="/health", tags=["health"])


@api_router.get(
    "/weather",
    response_model=CanonicalWeather,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        404: {"model": ErrorResponse, "description": "Weather temporarily unavailable"},
        429: {"model": ErrorResponse, "description": "Too many requests from this client"},
    },
)
async def get_weather(
    weather_service: WeatherServiceDep,
    id: Annotated[str, Query(min_length=1, description="City identifier")],  # noqa: A002
    lat: Annotated[float, Query(ge=-90, le=90, description="Latitude")],
    lon: Annotated[float, Query(ge=-180, le=180, description="Longitude")],
    lang: Annotated[Language, Query(description="Display language")] = "he",
) -> CanonicalWeather:
    """Get current conditions and forecast for a city.

    Payloads are cached per city for 20 minutes. When the upstream provider
    fails, the last stored payload is returned even if it is older.
    """
    weather = await weather_service.get_weather(id, lat, lon, lang)
    if weather is None:
        logger.warning("Weather data not available", city_id=id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ErrorResponse(
                error=ErrorDetail(
                    code="WEATHER_UNAVAILABLE",
                    message="Weather data not available",
                )
            ).model_dump(),
        )
    return weather


@health_router.get("/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe - checks if the service is running."""
    return HealthResponse(status="ok")


@health_router.get("/ready", response_model=ReadinessResponse)
async def readiness(cache: CacheDep) -> ReadinessResponse:
    """Readiness probe - checks if the cache store is reachable."""
    cache_status = "ok" if await cache.is_healthy() else "unhealthy"

    overall_status = "ok" if cache_status == "ok" else "unhealthy"

    response = ReadinessResponse(
        status=overall_status,
        checks={"cache": cache_status},
    )

    if overall_status != "ok":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response.model_dump(),
        )

    return response
