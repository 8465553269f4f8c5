"""Availability sources: Track PMS over HTTP, static tables, and a caching wrapper"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from stay_pricing.core.cache import CacheBackend, cache_get, cache_set
from stay_pricing.core.config import Settings
from stay_pricing.core.errors import AvailabilityServiceError, PropertyNotFound
from stay_pricing.core.metrics import availability_requests
from stay_pricing.schemas.availability import AvailabilityDay

logger = logging.getLogger(__name__)

_days_adapter = TypeAdapter(List[AvailabilityDay])


class AvailabilitySource(Protocol):
    async def get_availability(self, property_id: str, start: date, end: date) -> List[AvailabilityDay]:
        ...


class TrackAvailabilitySource:
    """Availability calendar from the Track PMS REST API"""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrackAvailabilitySource":
        return cls(settings.TRACK_API_URL, settings.TRACK_API_KEY, settings.TRACK_TIMEOUT)

    async def get_availability(self, property_id: str, start: date, end: date) -> List[AvailabilityDay]:
        params = {"start": start.isoformat(), "end": end.isoformat()}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                transport=self.transport,
            ) as client:
                response = await client.get(
                    f"/properties/{quote(property_id, safe='')}/availability", params=params
                )
        except httpx.HTTPError as e:
            availability_requests.labels(status="error").inc()
            logger.error(f"Failed to get availability for property {property_id}: {e}")
            raise AvailabilityServiceError(f"Availability lookup failed for {property_id}") from e

        if response.status_code == 404:
            availability_requests.labels(status="not_found").inc()
            raise PropertyNotFound(property_id)
        if not 200 <= response.status_code < 300:
            availability_requests.labels(status="error").inc()
            logger.error(
                f"Availability lookup for property {property_id} returned status {response.status_code}"
            )
            raise AvailabilityServiceError(
                f"Availability lookup failed for {property_id}: status {response.status_code}"
            )

        try:
            body = response.json()
            if body.get("success") is False:
                raise AvailabilityServiceError(
                    f"Availability lookup failed for {property_id}: {body.get('error')}"
                )
            data = body.get("data") or {}
            days = _days_adapter.validate_python(data.get("dates") or [])
        except (ValueError, ValidationError, AttributeError) as e:
            availability_requests.labels(status="error").inc()
            logger.error(f"Malformed availability payload for property {property_id}: {e}")
            raise AvailabilityServiceError(f"Malformed availability payload for {property_id}") from e
        except AvailabilityServiceError:
            availability_requests.labels(status="error").inc()
            raise

        availability_requests.labels(status="success").inc()
        return days


class StaticAvailabilitySource:
    """Availability from an in-memory table, for seeding and tests"""

    def __init__(self, calendars: Optional[Dict[str, Iterable[AvailabilityDay]]] = None):
        self.calendars = {pid: list(days) for pid, days in (calendars or {}).items()}

    async def get_availability(self, property_id: str, start: date, end: date) -> List[AvailabilityDay]:
        if property_id not in self.calendars:
            raise PropertyNotFound(property_id)
        return [day for day in self.calendars[property_id] if start <= day.date <= end]


class CachedAvailabilitySource:
    """Short-TTL cache in front of another availability source.

    Entries expire after ``ttl`` seconds so a day booked elsewhere stops
    being quoted as available within that window. ``invalidate`` drops a
    property's entries at once when its calendar is known to have changed.
    """

    namespace = "availability"

    def __init__(self, source: AvailabilitySource, cache: CacheBackend, ttl: int):
        self.source = source
        self.cache = cache
        self.ttl = ttl

    def _key(self, property_id: str, start: date, end: date) -> str:
        return f"{self.namespace}:{property_id}:{start.isoformat()}:{end.isoformat()}"

    async def get_availability(self, property_id: str, start: date, end: date) -> List[AvailabilityDay]:
        key = self._key(property_id, start, end)
        cached = await cache_get(self.cache, key, self.namespace)
        if cached is not None:
            try:
                return _days_adapter.validate_json(cached)
            except ValidationError as e:
                logger.warning(f"Ignoring unreadable availability cache entry {key}: {e}")

        days = await self.source.get_availability(property_id, start, end)
        await cache_set(self.cache, key, _days_adapter.dump_json(days, by_alias=True).decode(), self.ttl)
        return days

    async def invalidate(self, property_id: str) -> int:
        """Drop every cached range for a property after its calendar changes"""
        removed = await self.cache.delete_prefix(f"{self.namespace}:{property_id}:")
        logger.info(f"Invalidated {removed} cached availability ranges for property {property_id}")
        return removed
