from typing import Dict

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from beacon.dependencies import Store

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Monitoring server is running!"


@router.get("/health")
async def health(store: Store) -> Dict[str, str]:
    return {"status": "ok", "visit_log": "present" if store.exists() else "absent"}
