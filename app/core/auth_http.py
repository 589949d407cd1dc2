"""Bearer-token HTTP transport for the Nature Remo cloud API."""

from __future__ import annotations

from typing import Optional, Protocol

import httpx


class AuthHttpDoer(Protocol):
    """Anything that can perform an authenticated GET."""

    def get(self, url: str) -> httpx.Response:
        ...


class AuthHttpClient:
    """Thin wrapper over httpx.Client that attaches the OAuth bearer token.

    Timeouts are enforced here; the client never retries.
    """

    def __init__(
        self,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    def get(self, url: str) -> httpx.Response:
        return self._client.get(url)

    def close(self) -> None:
        self._client.close()
