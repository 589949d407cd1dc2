from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from prometheus_client import CollectorRegistry

from app.api.cache_routes import router as cache_router
from app.api.metrics_routes import build_metrics_router
from app.core.auth_http import AuthHttpClient
from app.core.config import settings
from app.core.logging_config import get_logger, setup_logging
from app.core.remo_client import RemoClient
from app.services.exporter import RemoExporter

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI application.
    Builds the Remo client and metrics registry, and closes the transport on shutdown.
    """
    # --- STARTUP LOGIC ---
    setup_logging(
        log_level=settings.LOG_LEVEL,
        use_json=settings.LOG_JSON,
        include_caller_info=settings.LOG_INCLUDE_CALLER,
        service=settings.APP_NAME,
    )
    logger.info("exporter_starting", message="Starting Nature Remo Exporter")

    # ConfigurationError propagates and aborts startup
    token = settings.resolve_oauth_token()

    auth_client = AuthHttpClient(token, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    app.state.auth_client = auth_client
    app.state.remo_client = RemoClient(
        auth_client,
        base_url=settings.API_BASE_URL,
        cache_invalidation_seconds=settings.CACHE_INVALIDATION_SECONDS,
    )

    registry = CollectorRegistry()
    registry.register(RemoExporter(app.state.remo_client))
    app.state.registry = registry

    logger.info(
        "exporter_ready",
        base_url=settings.API_BASE_URL,
        cache_invalidation_seconds=settings.CACHE_INVALIDATION_SECONDS,
        metrics_path=settings.METRICS_PATH,
    )

    yield  # Application is running...

    # --- SHUTDOWN LOGIC ---
    logger.info("exporter_stopping", message="Shutting down Nature Remo Exporter")
    auth_client.close()


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)
app.include_router(build_metrics_router(settings.METRICS_PATH))
app.include_router(cache_router, prefix="/api")


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> str:
    return f"""<html>
<head><title>Nature Remo Exporter</title></head>
<body>
<h1>Nature Remo Prometheus Metrics Exporter</h1>
<p><a href="{settings.METRICS_PATH}">Metrics</a></p>
</body>
</html>
"""


@app.get("/health", tags=["system"])
def healthcheck(request: Request) -> dict:
    """Health check endpoint.

    Reports the state of the devices and appliances caches. The exporter
    stays "ok" while the upstream API is unreachable; failed fetches surface
    as missing metrics and in the HTTP request counter instead.
    """
    remo_client = getattr(request.app.state, "remo_client", None)
    if remo_client is None:
        return {
            "status": "starting",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "cache": [],
        }
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": remo_client.cache_status(),
    }


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
