"""Best-effort IP geolocation for the session list, with a shared TTL cache."""
import asyncio
import ipaddress
import logging
import time
from collections.abc import Callable, Iterable

import httpx

logger = logging.getLogger(__name__)

LOCAL_NETWORK_LABEL = "Local Network"
DEFAULT_CACHE_TTL_SECONDS = 60 * 60 * 24
DEFAULT_TIMEOUT_SECONDS = 2.0
DEFAULT_GEOLOCATION_URL = "http://ip-api.com/json"

_LOCAL_NETWORKS = (
    ipaddress.ip_network("127.0.0.1/32"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/16"),
    ipaddress.ip_network("192.168.0.0/16"),
)


def is_local_address(ip_str: str) -> bool:
    """Check if an address is loopback or on one of the private ranges we label locally."""
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(ip.version == net.version and ip in net for net in _LOCAL_NETWORKS)


class GeoCache:
    """
    Process-wide location cache keyed by IP, with a per-entry timestamp.

    Safe for concurrent use from many requests: all reads and writes go
    through one asyncio.Lock.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, ip: str) -> str | None:
        """Return the cached location, or None if absent or older than the TTL."""
        async with self._lock:
            entry = self._entries.get(ip)
            if entry is None:
                return None
            location, stored_at = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[ip]
                return None
            return location

    async def set(self, ip: str, location: str) -> None:
        """Store a location for an IP, stamped with the current time."""
        async with self._lock:
            self._entries[ip] = (location, self._clock())

    async def clear(self) -> None:
        """Drop all entries."""
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class GeoLocator:
    """
    Resolve IP addresses to "City, Region, Country" strings.

    Lookups go to an ip-api.com compatible endpoint and are bounded by a short
    timeout. Failures of any kind resolve to None; they are logged and never
    raised, since location is decoration on the session list.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: GeoCache,
        base_url: str = DEFAULT_GEOLOCATION_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.client = client
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def locate(self, ip: str | None) -> str | None:
        """Resolve one IP. Local addresses short-circuit without a network call."""
        if not ip:
            return None
        if is_local_address(ip):
            return LOCAL_NETWORK_LABEL

        cached = await self.cache.get(ip)
        if cached is not None:
            return cached

        location = await self._lookup(ip)
        if location:
            await self.cache.set(ip, location)
        return location

    async def locate_many(self, ips: Iterable[str | None]) -> dict[str, str | None]:
        """Resolve each distinct IP concurrently."""
        unique_ips = list(dict.fromkeys(ip for ip in ips if ip))
        locations = await asyncio.gather(*(self.locate(ip) for ip in unique_ips))
        return dict(zip(unique_ips, locations, strict=True))

    async def _lookup(self, ip: str) -> str | None:
        try:
            ipaddress.ip_address(ip)
        except ValueError:
            logger.warning("Skipping geolocation for unparseable address %r", ip)
            return None

        try:
            response = await self.client.get(
                f"{self.base_url}/{ip}",
                params={"fields": "status,city,regionName,country"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geolocation lookup failed for %s: %s", ip, e)
            return None

        if not isinstance(data, dict) or data.get("status") != "success":
            return None

        parts = [data.get("city"), data.get("regionName"), data.get("country")]
        location = ", ".join(part for part in parts if part)
        return location or None
