"""
Location geocoding with a persistent cache and a manual override table.

Keys are ``"<location>|<community>"``. Resolution order, first hit wins:

1. cache (a cached ``None`` means "no physical address" and is final)
2. override ``null`` → never geocode, cache ``None``
3. override address → Nominatim search for that address
4. Nominatim search for ``"<location>, <community>, <region suffix>"``

Every outcome is cached, so a key reaches the network at most once across
runs. Nominatim allows one request per second; batches are resolved strictly
one after the other with ``geocode_delay_seconds`` between requests.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable, Iterable, Mapping

import httpx

from summer_camps.ingestion.config import ingest_settings
from summer_camps.ingestion.schemas import Coordinates

logger = logging.getLogger(__name__)

_MISSING = object()


def cache_key(location: str, community: str) -> str:
    return f"{location}|{community}"


class GeocodeCache:
    """``key → Coordinates | None`` persisted as a flat JSON object."""

    def __init__(
        self,
        entries: Mapping[str, Coordinates | None] | None = None,
        path: Path | None = None,
    ) -> None:
        self.path = path
        self._entries: dict[str, Coordinates | None] = dict(entries or {})
        self._dirty = False

    @classmethod
    def load(cls, path: Path) -> GeocodeCache:
        """Read *path*; a missing file yields an empty cache."""
        path = Path(path)
        if not path.exists():
            logger.info("No geocode cache at %s – starting empty.", path)
            return cls(path=path)

        raw = json.loads(path.read_text(encoding="utf-8"))
        entries = {
            key: Coordinates.model_validate(value) if value is not None else None
            for key, value in raw.items()
        }
        logger.info("Loaded %d cached geocode results.", len(entries))
        return cls(entries, path=path)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Coordinates | None:
        return self._entries.get(key)

    def set(self, key: str, value: Coordinates | None) -> None:
        """Record an outcome. An existing ``None`` entry is never replaced."""
        if key in self._entries and self._entries[key] is None:
            return
        self._entries[key] = value
        self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def to_json(self) -> dict[str, dict[str, float] | None]:
        return {
            key: value.model_dump() if value is not None else None
            for key, value in self._entries.items()
        }

    def save(self, path: Path | None = None) -> None:
        target = path or self.path
        if target is None:
            return
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_json(), indent=2), encoding="utf-8")
        self._dirty = False
        logger.debug("Saved %d geocode entries to %s.", len(self._entries), target)


class AddressOverrides:
    """Read-only ``key → address | None`` table maintained by hand."""

    def __init__(self, entries: Mapping[str, str | None] | None = None) -> None:
        self._entries: dict[str, str | None] = dict(entries or {})

    @classmethod
    def load(cls, path: Path) -> AddressOverrides:
        path = Path(path)
        if not path.exists():
            return cls()
        entries = json.loads(path.read_text(encoding="utf-8"))
        logger.info("Loaded %d address mappings.", len(entries))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, key: str) -> str | None | object:
        """Address string, ``None`` for "never geocode", or ``_MISSING``."""
        return self._entries.get(key, _MISSING)


class NominatimClient:
    """Single-result OpenStreetMap Nominatim search."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url = url or ingest_settings.geocode_url
        self._client = client or httpx.Client(
            headers={"User-Agent": user_agent or ingest_settings.geocode_user_agent},
            timeout=timeout or ingest_settings.geocode_timeout,
        )

    def search(self, query: str) -> Coordinates | None:
        """Return the best match for *query*, or ``None`` on no result or error."""
        try:
            resp = self._client.get(
                self.url,
                params={"q": query, "format": "json", "limit": 1},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Nominatim search failed for %r: %s", query, e)
            return None

        if not data:
            return None
        try:
            return Coordinates(lat=float(data[0]["lat"]), lng=float(data[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Unexpected Nominatim payload for %r: %s", query, e)
            return None

    def close(self) -> None:
        self._client.close()


class GeocodingResolver:
    """Resolves ``(location, community)`` pairs through cache, overrides and Nominatim."""

    def __init__(
        self,
        cache: GeocodeCache,
        overrides: AddressOverrides | None = None,
        client: NominatimClient | None = None,
        *,
        region_suffix: str | None = None,
        delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cache = cache
        self.overrides = overrides or AddressOverrides()
        self.client = client or NominatimClient()
        self.region_suffix = region_suffix or ingest_settings.geocode_region_suffix
        self.delay_seconds = (
            ingest_settings.geocode_delay_seconds if delay_seconds is None else delay_seconds
        )
        self._sleep = sleep

    def resolve(self, location: str, community: str) -> Coordinates | None:
        key = cache_key(location, community)
        if key in self.cache:
            return self.cache.get(key)

        override = self.overrides.lookup(key)
        if override is None:
            logger.debug("  %s marked as having no physical address.", key)
            self.cache.set(key, None)
            return None

        if isinstance(override, str) and override:
            result = self.client.search(override)
            if result is not None:
                logger.info("    Found via address mapping: %s", override)
                self.cache.set(key, result)
                return result

        result = self.client.search(f"{location}, {community}, {self.region_suffix}")
        if result is None:
            logger.warning("    No coordinates for %s", key)
        self.cache.set(key, result)
        return result

    def pending(self, pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Distinct not-yet-cached pairs, in first-seen order."""
        seen: set[str] = set()
        todo: list[tuple[str, str]] = []
        for location, community in pairs:
            key = cache_key(location, community)
            if key in seen or key in self.cache:
                continue
            seen.add(key)
            todo.append((location, community))
        return todo

    def resolve_batch(self, pairs: Iterable[tuple[str, str]]) -> int:
        """Warm the cache for *pairs*, one request at a time. Returns lookups made."""
        todo = self.pending(pairs)
        if not todo:
            return 0

        logger.info("Geocoding %d new locations…", len(todo))
        for i, (location, community) in enumerate(todo):
            self.resolve(location, community)
            logger.info("  [%d/%d] %s", i + 1, len(todo), location)
            if i < len(todo) - 1:
                self._sleep(self.delay_seconds)

        self.cache.save()
        return len(todo)

    def close(self) -> None:
        """Flush the cache and release the HTTP client."""
        if self.cache.dirty:
            self.cache.save()
        self.client.close()
