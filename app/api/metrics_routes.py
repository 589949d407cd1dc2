"""Prometheus scrape endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from app.dependencies import get_registry


def build_metrics_router(metrics_path: str) -> APIRouter:
    """Build the scrape router at the configured path.

    The handler is a plain function so FastAPI runs it on the thread pool;
    collection blocks on the Remo API while the cache is cold.
    """
    router = APIRouter(tags=["metrics"])

    @router.get(metrics_path)
    def get_metrics(registry: CollectorRegistry = Depends(get_registry)) -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    return router
