"""Single-slot TTL cache for one upstream resource kind."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from app.core.rate_limit import RateLimitMeta

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one fetch, either fresh from the API or served from cache."""

    status_code: int
    meta: Optional[RateLimitMeta]
    payload: T
    from_cache: bool = False


@dataclass
class CacheEntry(Generic[T]):
    """Last known response for a single resource kind.

    Holds the status code, rate-limit meta and decoded payload of the last
    successful fetch, plus the epoch second until which they may be served.

    Locking:
    - ``fetch_lock`` is held by the fetcher across the whole
      check-fetch-store sequence, including the upstream request
    - the stored fields are guarded by a separate short lock, so
      ``get_stats`` never waits on a request in flight

    ``expires_at`` starts at 0 so the first call is always a miss.
    """

    resource: str
    payload: T
    status_code: int = 0
    meta: Optional[RateLimitMeta] = None
    expires_at: float = 0.0
    fetch_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)
    _state_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def is_valid(self, now: float) -> bool:
        """Check if the stored payload may still be served at ``now``."""
        return now < self.expires_at

    def seconds_remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)

    def store(
        self,
        status_code: int,
        meta: Optional[RateLimitMeta],
        payload: T,
        expires_at: float,
    ) -> None:
        """Replace the cached response. Only called for successful fetches."""
        with self._state_lock:
            self.status_code = status_code
            self.meta = meta
            self.payload = payload
            self.expires_at = expires_at

    def to_result(self) -> FetchResult[T]:
        with self._state_lock:
            return FetchResult(
                status_code=self.status_code,
                meta=self.meta,
                payload=self.payload,
                from_cache=True,
            )

    def get_stats(self, now: float) -> dict:
        """Describe the entry for the admin and health endpoints."""
        with self._state_lock:
            status_code, meta, payload, expires_at = (
                self.status_code,
                self.meta,
                self.payload,
                self.expires_at,
            )
        return {
            "resource": self.resource,
            "status_code": status_code or None,
            "meta": (
                {
                    "limit": meta.limit,
                    "remaining": meta.remaining,
                    "reset": meta.reset,
                }
                if meta
                else None
            ),
            "items": len(payload) if hasattr(payload, "__len__") else None,
            "expires_at": expires_at or None,
            "valid": now < expires_at,
            "seconds_remaining": round(max(0.0, expires_at - now), 3),
        }
