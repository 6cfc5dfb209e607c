"""City directory used to attach bilingual names to weather payloads."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()


class DirectoryLookupError(Exception):
    """Raised when the directory cannot be queried."""


@dataclass(frozen=True)
class CityRecord:
    """Bilingual city and country names."""

    name_en: str
    name_he: str
    country_en: str
    country_he: str


class CityDirectory(Protocol):
    """Lookup of display names by city id."""

    async def lookup(self, city_id: str) -> CityRecord | None: ...


class StaticCityDirectory:
    """In-process directory backed by a mapping of city id to record."""

    def __init__(self, records: dict[str, CityRecord] | None = None) -> None:
        self._records = dict(records or {})

    async def lookup(self, city_id: str) -> CityRecord | None:
        return self._records.get(city_id)

    def add(self, city_id: str, record: CityRecord) -> None:
        self._records[city_id] = record

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticCityDirectory":
        """Load records from a JSON file.

        The file maps city ids to objects with ``nameEn``, ``nameHe``,
        ``countryEn`` and ``countryHe``.

        Raises:
            DirectoryLookupError: If the file is missing or malformed
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            records = {
                city_id: CityRecord(
                    name_en=item["nameEn"],
                    name_he=item["nameHe"],
                    country_en=item["countryEn"],
                    country_he=item["countryHe"],
                )
                for city_id, item in data.items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise DirectoryLookupError(f"Cannot load city directory from {path}: {e}") from e

        logger.info("Loaded city directory", path=str(path), cities=len(records))
        return cls(records)
