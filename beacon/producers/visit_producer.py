import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from beacon.db.visit_log import VisitLogCorruptError, VisitLogStore, encode_record
from beacon.errors import LogParseError, PersistenceError
from beacon.geo import GeoResolver
from beacon.models.visits import GeoResult
from beacon.webhook import WebhookForwarder

logger = logging.getLogger("beacon.track")


def build_record(
    payload: dict[str, Any],
    geo: GeoResult,
    include_postal: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Overlay server-derived fields on the client payload; server keys win."""
    record = dict(payload)
    record.update(geo.record_fields(include_postal))
    record["timestamp"] = (now or datetime.now(timezone.utc)).isoformat()
    return record


async def ingest_visit(
    payload: dict[str, Any],
    client_ip: str,
    resolver: GeoResolver,
    store: VisitLogStore,
    forwarder: WebhookForwarder | None = None,
    include_postal: bool = False,
) -> dict[str, Any]:
    geo = await resolver.resolve(client_ip)
    record = build_record(payload, geo, include_postal=include_postal)
    try:
        line = encode_record(record)
    except UnicodeError as e:
        logger.warning("track.unencodable ip=%s err=%r", record["ip"], e)
        raise PersistenceError(detail="Failed to save visit") from e
    if forwarder is not None:
        forwarder.schedule(record)
    try:
        await asyncio.to_thread(store.append_line, line)
    except OSError as e:
        logger.error("track.append_failed path=%s err=%r", store.path, e)
        raise PersistenceError(detail="Failed to save visit") from e
    logger.info(
        "track.saved ip=%s country=%s city=%s path=%s",
        record["ip"], record["country"], record["city"], record.get("path", "-"),
    )
    return record


async def replay_visits(store: VisitLogStore) -> list[dict[str, Any]]:
    try:
        return await asyncio.to_thread(store.read_all)
    except OSError as e:
        logger.error("visits.read_failed path=%s err=%r", store.path, e)
        raise PersistenceError(detail="Failed to read visits") from e
    except VisitLogCorruptError as e:
        logger.error("visits.parse_failed err=%s", e)
        raise LogParseError(detail="Failed to read visits", line=e.line_no) from e
    except UnicodeDecodeError as e:
        logger.error("visits.decode_failed path=%s err=%s", store.path, e)
        raise LogParseError(detail="Failed to read visits") from e
