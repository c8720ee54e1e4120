"""Best-effort IP geolocation with ordered provider fallback."""

import logging
from collections.abc import Sequence

import geoip2.database
import httpx

from beacon.models.visits import UNKNOWN, GeoResult

logger = logging.getLogger("beacon.geo")


class GeoLookupError(Exception):
    """A single provider could not resolve an IP."""


def _value(data: dict, key: str) -> str:
    return data.get(key) or UNKNOWN


class GeoProvider:
    """One source of IP geolocation. ``lookup`` raises on any failure."""

    name = "provider"

    async def lookup(self, ip: str) -> GeoResult:
        raise NotImplementedError


class HTTPGeoProvider(GeoProvider):
    def __init__(self, client: httpx.AsyncClient, url_template: str, timeout: float = 5.0):
        self._client = client
        self.url_template = url_template
        self.timeout = timeout

    async def lookup(self, ip: str) -> GeoResult:
        resp = await self._client.get(self.url_template.format(ip=ip), timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise GeoLookupError(f"unexpected response body from {self.name}")
        return self.parse(ip, data)

    def parse(self, ip: str, data: dict) -> GeoResult:
        raise NotImplementedError


class IpWhoIsProvider(HTTPGeoProvider):
    """ipwho.is; reports failures in-band with ``success: false``."""

    name = "ipwho.is"

    def parse(self, ip: str, data: dict) -> GeoResult:
        if not data.get("success"):
            raise GeoLookupError(data.get("message") or "lookup not successful")
        return GeoResult(
            ip=ip,
            country=_value(data, "country"),
            city=_value(data, "city"),
            postal=_value(data, "postal"),
            provider=self.name,
        )


class IpApiCoProvider(HTTPGeoProvider):
    """ipapi.co; reports failures in-band with ``error: true``. No postal data."""

    name = "ipapi.co"

    def parse(self, ip: str, data: dict) -> GeoResult:
        if data.get("error"):
            raise GeoLookupError(data.get("reason") or "lookup returned an error")
        return GeoResult(
            ip=ip,
            country=_value(data, "country_name"),
            city=_value(data, "city"),
            provider=self.name,
        )


class GeoIPDatabaseProvider(GeoProvider):
    """Local MaxMind GeoLite2 City database."""

    name = "geoip2"

    def __init__(self, reader: geoip2.database.Reader):
        self._reader = reader

    async def lookup(self, ip: str) -> GeoResult:
        response = self._reader.city(ip)
        return GeoResult(
            ip=ip,
            country=response.country.name or UNKNOWN,
            city=response.city.name or UNKNOWN,
            postal=response.postal.code or UNKNOWN,
            provider=self.name,
        )


class GeoResolver:
    """Tries each provider once, in order; the first success wins.

    ``resolve`` never raises. When every provider fails the result carries the
    original IP and ``Unknown`` for everything else.
    """

    def __init__(self, providers: Sequence[GeoProvider]):
        self.providers = list(providers)

    async def resolve(self, ip: str) -> GeoResult:
        if ip == UNKNOWN:
            return GeoResult.unknown(ip)
        for provider in self.providers:
            try:
                result = await provider.lookup(ip)
            except Exception as e:
                logger.warning("geo.lookup_failed provider=%s ip=%s err=%r", provider.name, ip, e)
                continue
            logger.debug(
                "geo.lookup_ok provider=%s ip=%s country=%s city=%s",
                provider.name, ip, result.country, result.city,
            )
            return result
        logger.warning("geo.unresolved ip=%s providers=%d", ip, len(self.providers))
        return GeoResult.unknown(ip)
