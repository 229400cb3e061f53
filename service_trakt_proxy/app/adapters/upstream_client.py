"""
HTTP client for proxied upstream calls.
"""

import time
from typing import Optional

import httpx

from shared.errors import UpstreamUnavailableError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from service_trakt_proxy.app.domain.models import OutboundRequest


class UpstreamClient:
    """Sends outbound requests over one shared ``httpx.AsyncClient``.

    No retries are attempted; a transport failure ends the request.
    """

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics
        self.logger = get_logger("trakt_proxy.upstream_client")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)
        return self._client

    async def send(self, outbound: OutboundRequest, upstream: str) -> httpx.Response:
        """Perform ``outbound`` and return the raw upstream response."""
        client = await self._get_client()
        start = time.time()
        try:
            response = await client.request(
                outbound.method,
                outbound.url,
                params=outbound.params,
                headers=outbound.headers,
                content=outbound.content,
            )
        except httpx.HTTPError as e:
            self.logger.error(
                "Upstream request failed",
                upstream=upstream,
                method=outbound.method,
                url=outbound.url,
                error=str(e),
            )
            if self.metrics:
                self.metrics.record_error(type(e).__name__)
            raise UpstreamUnavailableError(upstream, str(e) or f"{upstream} request failed") from e

        duration = time.time() - start
        if self.metrics:
            self.metrics.record_upstream_request(upstream, outbound.method, response.status_code, duration)
        self.logger.debug(
            "Upstream response",
            upstream=upstream,
            method=outbound.method,
            url=outbound.url,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        return response

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
