"""Lifespan management for the beacon application.

Builds the outbound HTTP client, geo providers and webhook forwarder on
startup, and closes them on shutdown.
"""

import logging
import os
from dataclasses import dataclass, field

import geoip2.database
import httpx

from beacon.config import Settings
from beacon.geo import (
    GeoIPDatabaseProvider,
    GeoProvider,
    GeoResolver,
    IpApiCoProvider,
    IpWhoIsProvider,
)
from beacon.webhook import WebhookForwarder

logger = logging.getLogger("beacon.lifespan")

USER_AGENT = "visit-beacon/1.0"


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    http_client: httpx.AsyncClient | None = None
    geoip_reader: geoip2.database.Reader | None = None
    resolver: GeoResolver | None = None
    forwarder: WebhookForwarder | None = None
    providers: list[GeoProvider] = field(default_factory=list)


def init_http_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.geo.timeout_sec,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


def init_geoip(settings: Settings) -> geoip2.database.Reader | None:
    """Initialize GeoIP reader if database file exists.

    Returns:
        GeoIP reader or None if not available.
    """
    geoip_db_path = settings.geoip.db_path

    if geoip_db_path and os.path.exists(geoip_db_path):
        return geoip2.database.Reader(geoip_db_path)
    return None


def build_providers(
    settings: Settings,
    client: httpx.AsyncClient,
    geoip_reader: geoip2.database.Reader | None = None,
) -> list[GeoProvider]:
    """Primary, secondary, then the local database when one is loaded."""
    timeout = settings.geo.timeout_sec
    providers: list[GeoProvider] = [
        IpWhoIsProvider(client, settings.geo.primary_url, timeout=timeout),
        IpApiCoProvider(client, settings.geo.secondary_url, timeout=timeout),
    ]
    if geoip_reader is not None:
        providers.append(GeoIPDatabaseProvider(geoip_reader))
    return providers


async def setup_resources(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LifespanResources:
    """Set up all shared resources.

    Args:
        settings: Application settings.
        transport: Optional httpx transport, used by tests to fake providers.
    """
    resources = LifespanResources()
    resources.http_client = init_http_client(settings, transport=transport)
    resources.geoip_reader = init_geoip(settings)
    resources.providers = build_providers(settings, resources.http_client, resources.geoip_reader)
    resources.resolver = GeoResolver(resources.providers)

    if settings.webhook.enabled:
        resources.forwarder = WebhookForwarder(
            resources.http_client,
            settings.webhook.url,
            timeout=settings.webhook.timeout_sec,
        )

    logger.info(
        "lifespan.ready providers=%s webhook=%s postal=%s",
        ",".join(p.name for p in resources.providers),
        "on" if resources.forwarder else "off",
        "on" if settings.geo.include_postal else "off",
    )
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    """Clean up all resources on shutdown.

    Args:
        resources: The resources to clean up.
    """
    # Let in-flight webhook forwards finish before the client goes away
    if resources.forwarder:
        await resources.forwarder.drain()

    if resources.http_client:
        await resources.http_client.aclose()

    if resources.geoip_reader:
        resources.geoip_reader.close()
