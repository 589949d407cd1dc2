"""Admin API routes for cache inspection."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.core.remo_client import RemoClient
from app.dependencies import get_remo_client

router = APIRouter(prefix="/admin/cache", tags=["admin", "cache"])


@router.get("", response_model=List[Dict[str, Any]])
def inspect_cache(
    client: RemoClient = Depends(get_remo_client),
) -> List[Dict[str, Any]]:
    """Inspect the cached devices and appliances responses.

    Returns one entry per resource kind with its last status code,
    rate-limit meta, item count and remaining validity.
    """
    return client.cache_status()
