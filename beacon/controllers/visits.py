import logging
from typing import Any

from fastapi import APIRouter, Body, Response

from beacon.dependencies import AppSettings, ClientIP, OptionalForwarder, Resolver, Store
from beacon.models.visits import TrackResponse, VisitStats
from beacon.producers.visit_producer import ingest_visit, replay_visits
from beacon.stats import summarize_visits

router = APIRouter(tags=["visits"])

_logger = logging.getLogger("beacon.track")


@router.post("/track", response_model=TrackResponse)
async def track(
    client_ip: ClientIP,
    resolver: Resolver,
    store: Store,
    forwarder: OptionalForwarder,
    settings: AppSettings,
    payload: dict[str, Any] | None = Body(default=None),
) -> TrackResponse:
    _logger.debug("track.receive ip=%s keys=%s", client_ip, sorted(payload or {}))
    await ingest_visit(
        payload or {},
        client_ip,
        resolver=resolver,
        store=store,
        forwarder=forwarder,
        include_postal=settings.geo.include_postal,
    )
    return TrackResponse(message="OK")


@router.options("/track")
async def track_preflight() -> Response:
    return Response(status_code=200)


@router.get("/visits")
async def get_visits(store: Store) -> list[dict[str, Any]]:
    return await replay_visits(store)


@router.get("/visits/stats", response_model=VisitStats)
async def get_visit_stats(store: Store) -> VisitStats:
    return summarize_visits(await replay_visits(store))
