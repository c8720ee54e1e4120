"""Dependency injection for FastAPI endpoints.

Shared resources are built by ``beacon.main.create_app`` and its lifespan and
stored on ``app.state``; these dependencies hand them to the controllers so
nothing reads module-level globals.

Usage in controllers:
    from beacon.dependencies import Store

    @router.get("/example")
    async def example(store: Store):
        return {"exists": store.exists()}
"""

from typing import Annotated

from fastapi import Depends, Request

from beacon.config import Settings
from beacon.db.visit_log import VisitLogStore
from beacon.errors import ServiceUnavailableError
from beacon.geo import GeoResolver
from beacon.models.visits import UNKNOWN
from beacon.webhook import WebhookForwarder


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> VisitLogStore:
    return request.app.state.store


def get_resolver(request: Request) -> GeoResolver:
    """Get the geo resolver.

    Raises:
        ServiceUnavailableError: If the lifespan has not initialized it.
    """
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise ServiceUnavailableError(detail="Geo resolver not initialized")
    return resolver


def get_optional_forwarder(request: Request) -> WebhookForwarder | None:
    """Get the webhook forwarder, or None when forwarding is disabled."""
    return getattr(request.app.state, "forwarder", None)


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when proxies are trusted, else the peer address."""
    settings: Settings = request.app.state.settings
    if settings.server.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host.removeprefix("::ffff:")
    return UNKNOWN


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[VisitLogStore, Depends(get_store)]
Resolver = Annotated[GeoResolver, Depends(get_resolver)]
OptionalForwarder = Annotated[WebhookForwarder | None, Depends(get_optional_forwarder)]
ClientIP = Annotated[str, Depends(get_client_ip)]
