"""Cached client for the Nature Remo cloud API."""

from __future__ import annotations

import time
from typing import Callable, List, Protocol, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from app.core.auth_http import AuthHttpDoer
from app.core.cache import CacheEntry, FetchResult
from app.core.logging_config import get_logger
from app.core.rate_limit import extract_meta
from app.schemas import Appliance, ApplianceList, Device, DeviceList

logger = get_logger(__name__)

T = TypeVar("T")

DEVICES_PATH = "/1/devices"
APPLIANCES_PATH = "/1/appliances"
HTTP_OK = 200


class RemoClientError(Exception):
    """Base exception for failed fetches from the Remo API."""

    def __init__(self, resource: str, message: str) -> None:
        self.resource = resource
        super().__init__(f"Fetching {resource} failed: {message}")


class RemoTransportError(RemoClientError):
    """The request never produced an HTTP response."""


class RemoDecodeError(RemoClientError):
    """A successful response carried a body that is not the expected JSON array."""


class RemoGatherer(Protocol):
    """What the exporter needs from a Remo API client."""

    def get_devices(self) -> FetchResult[List[Device]]:
        ...

    def get_appliances(self) -> FetchResult[List[Appliance]]:
        ...


class RemoClient:
    """
    Fetches devices and appliances, serving repeated calls from a per-resource cache.
    Each resource kind owns one CacheEntry and its fetch lock; the two never block each other.
    """

    def __init__(
        self,
        auth_client: AuthHttpDoer,
        base_url: str,
        cache_invalidation_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._auth_client = auth_client
        self._base_url = base_url.rstrip("/")
        self._ttl = cache_invalidation_seconds
        self._clock = clock
        self._devices: CacheEntry[List[Device]] = CacheEntry("devices", payload=[])
        self._appliances: CacheEntry[List[Appliance]] = CacheEntry("appliances", payload=[])

    def get_devices(self) -> FetchResult[List[Device]]:
        """Get the devices from the Remo API, or from cache while it is valid."""
        return self._fetch(self._devices, DEVICES_PATH, DeviceList)

    def get_appliances(self) -> FetchResult[List[Appliance]]:
        """Get the appliances from the Remo API, or from cache while it is valid."""
        return self._fetch(self._appliances, APPLIANCES_PATH, ApplianceList)

    def cache_status(self) -> List[dict]:
        """Return a snapshot of both cache entries without waiting on a fetch in flight."""
        now = self._clock()
        return [entry.get_stats(now) for entry in (self._devices, self._appliances)]

    def _fetch(
        self,
        entry: CacheEntry[List[T]],
        path: str,
        adapter: TypeAdapter,
    ) -> FetchResult[List[T]]:
        with entry.fetch_lock:
            now = self._clock()
            if entry.is_valid(now):
                logger.info(
                    "remo_cache_hit",
                    api=entry.resource,
                    seconds_remaining=round(entry.seconds_remaining(now), 3),
                    message="Returning cache",
                )
                return entry.to_result()

            url = self._base_url + path
            try:
                response = self._auth_client.get(url)
            except httpx.HTTPError as exc:
                logger.warning(
                    "remo_request_failed",
                    api=entry.resource,
                    url=url,
                    exception_type=type(exc).__name__,
                    exception=str(exc),
                )
                raise RemoTransportError(entry.resource, str(exc)) from exc

            # Header parsing is best effort; body decoding below is not.
            meta = extract_meta(response.headers)

            if response.status_code != HTTP_OK:
                logger.warning(
                    "remo_unexpected_status",
                    api=entry.resource,
                    status_code=response.status_code,
                    message="Keeping previous cache",
                )
                return FetchResult(
                    status_code=response.status_code,
                    meta=meta,
                    payload=[],
                    from_cache=False,
                )

            try:
                payload = adapter.validate_json(response.content)
            except ValidationError as exc:
                logger.error(
                    "remo_decode_failed",
                    api=entry.resource,
                    error_count=exc.error_count(),
                    exception=str(exc),
                )
                raise RemoDecodeError(entry.resource, f"invalid response body: {exc}") from exc

            entry.store(response.status_code, meta, payload, now + self._ttl)
            logger.info(
                "remo_fetch_complete",
                api=entry.resource,
                items=len(payload),
                cache_expires_at=entry.expires_at,
                message="Fetched data from the remote API",
            )
            return FetchResult(
                status_code=response.status_code,
                meta=meta,
                payload=payload,
                from_cache=False,
            )
