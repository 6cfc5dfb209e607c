"""Weather service orchestrating cache and upstream client."""

import asyncio
import time
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from prometheus_client import Counter

from citycast.api.schemas import BilingualText, CanonicalWeather, Language
from citycast.config import Settings
from citycast.services.cache import CacheEntry, CachePort, CacheStoreError
from citycast.services.directory import CityDirectory, CityRecord, DirectoryLookupError
from citycast.services.open_meteo import OpenMeteoClient, OpenMeteoError, RawBundle
from citycast.services.projector import project_current, project_daily, project_hourly
from citycast.services.time_resolver import resolve_current_hour_index

logger = structlog.get_logger()

UNKNOWN_CITY = BilingualText(en="Unknown City", he="עיר לא ידועה")
UNKNOWN_COUNTRY = BilingualText(en="Unknown", he="לא ידוע")

# Metrics
cache_hits = Counter("cache_hits_total", "Total cache hits")
cache_misses = Counter("cache_misses_total", "Total cache misses, including stale entries")
stale_served = Counter("cache_stale_served_total", "Stale payloads served after a failed refresh")
payload_absent = Counter("weather_absent_total", "Requests with no payload to serve")
refresh_joins = Counter("refresh_joins_total", "Requests that joined an in-flight refresh")


class WeatherService:
    """Cache-aside access to city weather with stale fallback.

    Fresh entries are served without touching the network. Stale or missing
    entries are refreshed from upstream; if the refresh fails the last stored
    payload is served instead, or ``None`` when there is nothing stored.
    Concurrent refreshes for the same city share a single upstream call.
    """

    def __init__(
        self,
        store: CachePort,
        client: OpenMeteoClient,
        directory: CityDirectory,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize service with its collaborators."""
        self._store = store
        self._client = client
        self._directory = directory
        self._ttl = settings.cache_ttl_seconds
        self._schema_version = settings.cache_schema_version
        self._clock = clock
        self._inflight: dict[str, asyncio.Task[CanonicalWeather | None]] = {}

    async def get_weather(
        self,
        city_id: str,
        lat: float,
        lon: float,
        lang: Language = "he",
    ) -> CanonicalWeather | None:
        """Get weather for a city.

        Args:
            city_id: Stable city identifier, used as the cache key
            lat: Latitude, already validated
            lon: Longitude, already validated
            lang: Display language of the caller

        Returns:
            Fresh or stale payload, or None if nothing can be served
        """
        log = logger.bind(city_id=city_id, lat=lat, lon=lon, lang=lang)

        try:
            entry = await self._read(city_id)
        except CacheStoreError as e:
            log.error("Cache unavailable, treating as miss", error=str(e))
            entry = None

        if entry is not None and entry.age(self._clock()) < self._ttl:
            cache_hits.inc()
            log.info("Cache hit for weather request", cache_hit=True)
            return entry.payload

        cache_misses.inc()
        log.info(
            "Cache miss, fetching from upstream",
            cache_hit=False,
            stale=entry is not None,
        )

        task = self._inflight.get(city_id)
        if task is None:
            task = asyncio.ensure_future(self._refresh(city_id, lat, lon))
            self._inflight[city_id] = task
            task.add_done_callback(lambda _: self._inflight.pop(city_id, None))
        else:
            refresh_joins.inc()
            log.debug("Joining in-flight refresh")

        # A cancelled caller must not cancel the shared refresh
        return await asyncio.shield(task)

    async def _refresh(self, city_id: str, lat: float, lon: float) -> CanonicalWeather | None:
        try:
            bundle = await self._client.fetch(lat, lon)
            record = await self._directory.lookup(city_id)
            payload = self._assemble(city_id, lat, lon, bundle, record)
        except (OpenMeteoError, DirectoryLookupError) as e:
            logger.warning(
                "Weather refresh failed, falling back to stored payload",
                city_id=city_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return await self._fallback(city_id)
        except Exception as e:
            # Callers only ever see a payload or None
            logger.exception(
                "Unexpected error refreshing weather, falling back to stored payload",
                city_id=city_id,
                error_type=type(e).__name__,
            )
            return await self._fallback(city_id)

        entry = CacheEntry(
            city_id=city_id,
            payload=payload,
            updated_at=self._clock(),
            schema_version=self._schema_version,
        )
        try:
            await self._store.upsert(entry)
        except CacheStoreError as e:
            logger.error("Failed to store weather payload", city_id=city_id, error=str(e))

        return payload

    async def _read(self, city_id: str) -> CacheEntry | None:
        """Read an entry, ignoring ones written under another schema version."""
        entry = await self._store.read(city_id)
        if entry is not None and entry.schema_version != self._schema_version:
            logger.info(
                "Ignoring cache entry with outdated schema",
                city_id=city_id,
                entry_version=entry.schema_version,
                current_version=self._schema_version,
            )
            return None
        return entry

    async def _fallback(self, city_id: str) -> CanonicalWeather | None:
        try:
            entry = await self._read(city_id)
        except CacheStoreError as e:
            logger.error("Cache unavailable for fallback read", city_id=city_id, error=str(e))
            entry = None

        if entry is None:
            payload_absent.inc()
            logger.warning("No stored weather payload to serve", city_id=city_id)
            return None

        stale_served.inc()
        logger.info(
            "Serving stale weather payload",
            city_id=city_id,
            age_seconds=round(entry.age(self._clock()), 1),
        )
        return entry.payload

    def _assemble(
        self,
        city_id: str,
        lat: float,
        lon: float,
        bundle: RawBundle,
        record: CityRecord | None,
    ) -> CanonicalWeather:
        meta = bundle.meta
        now = self._clock()
        meta.current_hour_index = resolve_current_hour_index(
            [hour.time for hour in bundle.hourly],
            meta.timezone,
            now=datetime.fromtimestamp(now, UTC),
        )

        if record is None:
            logger.info("City not in directory, using placeholder names", city_id=city_id)
            name, country = UNKNOWN_CITY, UNKNOWN_COUNTRY
        else:
            name = BilingualText(en=record.name_en, he=record.name_he)
            country = BilingualText(en=record.country_en, he=record.country_he)

        return CanonicalWeather(
            id=city_id,
            lat=lat,
            lon=lon,
            name=name,
            country=country,
            current=project_current(bundle),
            forecastDaily=project_daily(bundle.daily, meta.utc_offset_seconds),
            forecastHourly=project_hourly(
                bundle.hourly,
                meta.current_hour_index,
                meta.utc_offset_seconds,
            ),
            lastUpdatedEpoch=int(now * 1000),
        )
