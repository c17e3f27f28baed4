from typing import Any, Dict

from fastapi import APIRouter

from comit import db, state
from comit.config import get_settings

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, Any]:
    storage = "disconnected"
    if state.repository is not None:
        storage = "postgres" if get_settings().features.database else "memory"
    body: Dict[str, Any] = {"status": "ok", "storage": storage}
    if storage == "postgres":
        body["database"] = db.get_pool_stats()
    return body
