"""
LLM Proxy Gateway: Upstream Client

One pooled httpx.AsyncClient per process, opened and closed by the app
lifespan. Each proxied request makes exactly one call; nothing is retried.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from gateway.vendors import Vendor

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The upstream call failed before a usable response was received."""


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class UpstreamClient:
    """Forwards raw request bodies to vendor APIs."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        self._http_client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
        )
        logger.info("--> [UPSTREAM] Client started (timeout %.0fs)", self.timeout)

    async def stop(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.info("--> [UPSTREAM] Client stopped")

    async def forward(self, vendor: Vendor, api_key: str, body: bytes) -> UpstreamResponse:
        """
        POST `body` unmodified to the vendor endpoint with its auth headers.

        Non-2xx statuses are returned, not raised. Raises UpstreamError on
        transport failure or when the vendor answers with non-JSON content.
        """
        if self._http_client is None:
            raise RuntimeError("UpstreamClient used before start()")

        try:
            response = await self._http_client.post(
                vendor.url,
                content=body,
                headers=vendor.build_headers(api_key),
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{vendor.label} request failed: {exc!r}") from exc

        try:
            response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"{vendor.label} returned a non-JSON body (status {response.status_code})"
            ) from exc

        return UpstreamResponse(status_code=response.status_code, content=response.content)
