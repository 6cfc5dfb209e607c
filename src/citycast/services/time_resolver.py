"""Resolve provider local-time strings against real instants.

Open-Meteo returns hourly and daily keys as naive local wall-clock strings
(``YYYY-MM-DDTHH:MM``) for the location's timezone. This module finds the
entry that represents "now" and converts local strings back to UTC epoch
milliseconds using the bundle's fixed UTC offset.
"""

import calendar
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

logger = structlog.get_logger()

LOCAL_HOUR_FORMAT = "%Y-%m-%dT%H:00"

# An hour that started up to this long ago still counts as the current hour
PAST_TOLERANCE = timedelta(minutes=30)


def _zone(timezone: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone, using UTC", timezone=timezone)
        return ZoneInfo("UTC")


def current_local_hour(timezone: str, now: datetime | None = None) -> datetime:
    """Wall-clock time in ``timezone``, truncated to the hour, as a naive datetime."""
    instant = now or datetime.now(UTC)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    local = instant.astimezone(_zone(timezone))
    return local.replace(minute=0, second=0, microsecond=0, tzinfo=None)


def parse_local(value: str) -> datetime:
    """Parse a provider local timestamp or date into a naive datetime."""
    return datetime.fromisoformat(value)


def resolve_current_hour_index(
    times: Sequence[str],
    timezone: str,
    now: datetime | None = None,
) -> int:
    """Find the index of the hourly entry that represents "now".

    An exact match on the truncated local hour wins. Otherwise the entry
    closest to now is chosen among those no more than 30 minutes in the past.
    When a past and a future entry are equally close, the future entry wins.
    When nothing qualifies the result is 0.
    """
    now_local = current_local_hour(timezone, now)
    key = now_local.strftime(LOCAL_HOUR_FORMAT)

    for i, t in enumerate(times):
        if t[:16] == key:
            return i

    best_index: int | None = None
    best_rank: tuple[timedelta, bool] | None = None
    for i, t in enumerate(times):
        try:
            diff = parse_local(t) - now_local
        except ValueError:
            continue
        if diff < -PAST_TOLERANCE:
            continue
        rank = (abs(diff), diff < timedelta(0))
        if best_rank is None or rank < best_rank:
            best_index, best_rank = i, rank

    if best_index is None:
        logger.warning(
            "No hourly entry near current time, using first entry",
            timezone=timezone,
            now_local=key,
            first=times[0] if times else None,
        )
        return 0
    return best_index


def local_to_utc_ms(local: str, utc_offset_seconds: int) -> int:
    """Convert a local wall-clock string to absolute epoch milliseconds.

    Date-only strings resolve to local midnight.
    """
    parsed = parse_local(local)
    wall_seconds = calendar.timegm(parsed.timetuple())
    return (wall_seconds - utc_offset_seconds) * 1000
