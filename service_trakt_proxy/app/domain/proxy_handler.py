"""
Request pipeline for the proxy routes.

Every proxied request runs the same fixed sequence: rate limit, shared-secret
authentication, credential check, path allowlist, request building, upstream
call and response normalization. Gateway failures are raised as
``GatewayException`` subclasses and rendered at the end of ``handle``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from shared.config import GatewayConfig, TmdbCredentials, TraktCredentials
from shared.errors import (
    BadGatewayRequestError,
    GatewayException,
    PathNotAllowedError,
    RateLimitExceededError,
    UnauthorizedError,
)
from shared.logging import get_logger, set_client_context
from shared.metrics import MetricsCollector
from service_trakt_proxy.app.adapters.request_builder import (
    BODY_METHODS,
    TmdbRequestBuilder,
    TraktRequestBuilder,
    parse_json_object,
)
from service_trakt_proxy.app.adapters.response_normalizer import normalize_response
from service_trakt_proxy.app.adapters.upstream_client import UpstreamClient
from service_trakt_proxy.app.auth.shared_secret import SharedSecretAuthenticator
from service_trakt_proxy.app.domain.allowlist import PathAllowlist
from service_trakt_proxy.app.domain.models import OutboundRequest, ProxyRequestDescriptor
from service_trakt_proxy.app.ratelimit.fixed_window import FixedWindowRateLimiter, RateLimitDecision

# Statuses that must not carry a response body.
NULL_BODY_STATUSES = (204, 304)


def get_client_identifier(request: Request, trust_forwarded: bool = True) -> str:
    """Extract the caller address used as the rate-limit key.

    The forwarding headers (X-Forwarded-For, X-Real-IP, CF-Connecting-IP) are
    only trustworthy when the gateway sits behind a proxy that overwrites them.
    Exposed directly, a caller can rotate them to get a fresh budget on every
    request, so deployments without such a proxy should pass
    ``trust_forwarded=False`` to key on the socket peer alone.
    """
    if trust_forwarded:
        forwarded = _forwarded_client(request)
        if forwarded:
            return forwarded
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _forwarded_client(request: Request) -> Optional[str]:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.headers.get("cf-connecting-ip") or None


class RequestBuilder(Protocol):
    """Turns a descriptor plus upstream credentials into an outbound request."""

    def build(self, descriptor: ProxyRequestDescriptor, credentials: Any) -> OutboundRequest: ...


class ProxyHandler(ABC):
    """Runs the gateway pipeline for one upstream."""

    upstream_name = "upstream"
    cors_allow_headers = "authorization, x-client-info, apikey, content-type"

    def __init__(
        self,
        config: GatewayConfig,
        rate_limiter: FixedWindowRateLimiter,
        authenticator: SharedSecretAuthenticator,
        allowlist: PathAllowlist,
        builder: RequestBuilder,
        upstream_client: UpstreamClient,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.rate_limiter = rate_limiter
        self.authenticator = authenticator
        self.allowlist = allowlist
        self.builder = builder
        self.upstream_client = upstream_client
        self.metrics = metrics
        self.logger = get_logger(f"trakt_proxy.handler.{self.upstream_name}")

    @property
    def cors_headers(self) -> Dict[str, str]:
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": self.cors_allow_headers,
        }

    async def handle(self, request: Request) -> Response:
        """Entry point bound to the proxy route."""
        if request.method == "OPTIONS":
            return PlainTextResponse("ok", headers=self.cors_headers)

        try:
            return await self._proxy(request)
        except GatewayException as exc:
            return self.error_response(exc)
        except Exception as exc:
            self.logger.error("Unhandled proxy error", error=str(exc), exc_info=True)
            if self.metrics:
                self.metrics.record_error(type(exc).__name__)
            return self.error_response(GatewayException(str(exc)))

    async def _proxy(self, request: Request) -> Response:
        client_id = get_client_identifier(request, self.config.trust_forwarded_headers)
        set_client_context(client_id)

        decision = self.rate_limiter.check(client_id)
        if not decision.allowed:
            if self.metrics:
                self.metrics.record_rate_limit_rejection(self.upstream_name)
            raise RateLimitExceededError(
                retry_after=decision.reset_in_seconds,
                headers=self._rejection_headers(decision),
            )

        if not self.authenticator.authenticate(request.headers):
            self.logger.warning("Rejected unauthenticated request", client_id=client_id)
            raise UnauthorizedError()

        credentials = self.credentials()

        path = request.query_params.get("path")
        if not path:
            raise BadGatewayRequestError("Missing path parameter")

        if not self.allowlist.is_allowed(path):
            self.logger.warning("Rejected path outside allowlist", client_id=client_id, path=path)
            raise PathNotAllowedError(path)

        descriptor = await self.describe(request, path)
        outbound = self.builder.build(descriptor, credentials)
        upstream_response = await self.upstream_client.send(outbound, self.upstream_name)

        normalized = normalize_response(
            upstream_response,
            {
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": str(decision.remaining),
            },
        )
        headers = {**self.cors_headers, **normalized.rate_limit_headers}
        if normalized.status_code in NULL_BODY_STATUSES:
            return Response(status_code=normalized.status_code, headers=headers)
        return JSONResponse(content=normalized.body, status_code=normalized.status_code, headers=headers)

    @abstractmethod
    def credentials(self) -> Any:
        """Credentials for this upstream; raises when they are not configured."""

    @abstractmethod
    async def describe(self, request: Request, path: str) -> ProxyRequestDescriptor:
        """Describe the inbound request in upstream terms."""

    def error_response(self, exc: GatewayException) -> JSONResponse:
        return JSONResponse(
            content=exc.to_response().to_content(),
            status_code=exc.status_code,
            headers={**self.cors_headers, **exc.headers},
        )

    def _rejection_headers(self, decision: RateLimitDecision) -> Dict[str, str]:
        retry_after = str(decision.reset_in_seconds)
        return {
            "Retry-After": retry_after,
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": retry_after,
        }


class TraktProxyHandler(ProxyHandler):
    """Proxy for the Trakt API with OAuth client-credential injection."""

    upstream_name = "trakt"
    cors_allow_headers = "authorization, x-client-info, apikey, content-type, x-user-token"

    builder: TraktRequestBuilder

    def credentials(self) -> TraktCredentials:
        return self.config.trakt_credentials()

    async def describe(self, request: Request, path: str) -> ProxyRequestDescriptor:
        method = (request.query_params.get("method") or "GET").upper()
        body = None
        if method in BODY_METHODS:
            body = parse_json_object(await request.body())
        return ProxyRequestDescriptor(
            upstream_path=path,
            method=method,
            query_params=list(request.query_params.multi_items()),
            forwarded_user_token=request.headers.get("x-user-token") or None,
            body=body,
        )


class TmdbProxyHandler(ProxyHandler):
    """Read-only proxy for the TMDB catalog API."""

    upstream_name = "tmdb"

    builder: TmdbRequestBuilder

    def credentials(self) -> TmdbCredentials:
        return self.config.tmdb_credentials()

    async def describe(self, request: Request, path: str) -> ProxyRequestDescriptor:
        return ProxyRequestDescriptor(
            upstream_path=path,
            method="GET",
            query_params=list(request.query_params.multi_items()),
        )
