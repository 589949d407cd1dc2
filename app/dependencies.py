"""FastAPI dependency helpers for shared services."""

from __future__ import annotations

from fastapi import Request
from prometheus_client import CollectorRegistry

from app.core.remo_client import RemoClient


def get_remo_client(request: Request) -> RemoClient:
    client = getattr(request.app.state, "remo_client", None)
    if client is None:
        raise RuntimeError("Remo client is not initialized")
    return client


def get_registry(request: Request) -> CollectorRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Metrics registry is not initialized")
    return registry
