"""
Edge gateway service for the Trakt and TMDB APIs.
"""

from typing import Dict, Optional

import httpx

from shared.base_service import BaseService
from shared.config import GatewayConfig
from shared.errors import ConfigurationMissingError
from service_trakt_proxy.app.adapters.request_builder import TmdbRequestBuilder, TraktRequestBuilder
from service_trakt_proxy.app.adapters.upstream_client import UpstreamClient
from service_trakt_proxy.app.auth.shared_secret import SharedSecretAuthenticator
from service_trakt_proxy.app.domain.allowlist import TMDB_ALLOWED_PATHS, TRAKT_ALLOWED_PATHS, PathAllowlist
from service_trakt_proxy.app.domain.proxy_handler import TmdbProxyHandler, TraktProxyHandler
from service_trakt_proxy.app.ratelimit.fixed_window import FixedWindowRateLimiter
from service_trakt_proxy.app.ratelimit.sweeper import IdleRecordSweeper

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class TraktProxyService(BaseService):
    """Gateway service wiring the proxy pipeline for each upstream."""

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)

        self.trakt_rate_limiter = FixedWindowRateLimiter(
            limit=self.config.rate_limit_requests,
            window_ms=self.config.rate_limit_window_ms,
            name="trakt",
        )
        self.tmdb_rate_limiter = FixedWindowRateLimiter(
            limit=self.config.rate_limit_requests,
            window_ms=self.config.rate_limit_window_ms,
            name="tmdb",
        )
        self.sweeper = IdleRecordSweeper(
            [self.trakt_rate_limiter, self.tmdb_rate_limiter],
            interval_ms=self.config.rate_limit_sweep_interval_ms,
            metrics=self.metrics,
        )
        self.authenticator = SharedSecretAuthenticator(self.config.app_anon_key)
        self.upstream_client = UpstreamClient(
            timeout_seconds=self.config.upstream_timeout_seconds,
            metrics=self.metrics,
            transport=transport,
        )

        self.trakt_handler = TraktProxyHandler(
            config=self.config,
            rate_limiter=self.trakt_rate_limiter,
            authenticator=self.authenticator,
            allowlist=PathAllowlist(TRAKT_ALLOWED_PATHS),
            builder=TraktRequestBuilder(self.config.trakt_base_url),
            upstream_client=self.upstream_client,
            metrics=self.metrics,
        )
        self.tmdb_handler = TmdbProxyHandler(
            config=self.config,
            rate_limiter=self.tmdb_rate_limiter,
            authenticator=self.authenticator,
            allowlist=PathAllowlist(TMDB_ALLOWED_PATHS),
            builder=TmdbRequestBuilder(self.config.tmdb_base_url),
            upstream_client=self.upstream_client,
            metrics=self.metrics,
        )

        self._setup_proxy_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    def _setup_proxy_routes(self):
        """Register the proxy and informational routes."""

        @self.app.get("/")
        async def root():
            return {
                "service": self.service_name,
                "message": "Trakt Edge Gateway",
                "routes": ["/trakt-proxy", "/tmdb-proxy"],
            }

        self.app.add_api_route("/trakt-proxy", self.trakt_handler.handle, methods=PROXY_METHODS)
        self.app.add_api_route("/tmdb-proxy", self.tmdb_handler.handle, methods=PROXY_METHODS)

    async def startup(self) -> None:
        await self.sweeper.start()
        self.logger.info(
            "Gateway started",
            rate_limit=self.config.rate_limit_requests,
            window_ms=self.config.rate_limit_window_ms,
        )

    async def shutdown(self) -> None:
        await self.sweeper.stop()
        await self.upstream_client.close()
        self.logger.info("Gateway stopped")

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report which upstream credentials are configured."""
        status = {}
        for name, loader in (("trakt", self.config.trakt_credentials), ("tmdb", self.config.tmdb_credentials)):
            try:
                loader()
                status[name] = "configured"
            except ConfigurationMissingError:
                status[name] = "missing_credentials"
        status["caller_key"] = "configured" if self.config.app_anon_key else "missing"
        return status


def create_app(config: Optional[GatewayConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create the FastAPI application."""
    service = TraktProxyService(config, transport=transport)
    return service.app


if __name__ == "__main__":
    TraktProxyService().run()
