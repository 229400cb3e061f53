"""
Upstream request builders.

Builders turn a validated ``ProxyRequestDescriptor`` into an ``OutboundRequest``
and are the only place server-side secrets are attached to outbound traffic.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shared.config import TmdbCredentials, TraktCredentials
from shared.logging import get_logger
from service_trakt_proxy.app.domain.models import OutboundRequest, ProxyRequestDescriptor

CONTROL_PARAMS = ("path", "method")
BODY_METHODS = ("POST", "DELETE")
TRAKT_API_VERSION = "2"

# Ordered by specificity; first matching family wins.
TRAKT_CREDENTIAL_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("/oauth/device/code", ("client_id",)),
    ("/oauth/device/token", ("client_id", "client_secret")),
    ("/oauth/token", ("client_id", "client_secret")),
)


def parse_json_object(raw: Optional[bytes]) -> Dict[str, Any]:
    """Parse an inbound body, degrading to ``{}`` when it is missing or unusable."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def forwardable_params(
    query_params: Iterable[Tuple[str, str]], excluded: Iterable[str] = CONTROL_PARAMS
) -> List[Tuple[str, str]]:
    """Keep caller query parameters in order, minus the proxy control parameters."""
    skip = set(excluded)
    return [(key, value) for key, value in query_params if key not in skip]


class UpstreamRequestBuilder:
    """Common URL handling for an upstream base URL."""

    upstream_name = "upstream"

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger(f"trakt_proxy.request_builder.{self.upstream_name}")

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"


class TraktRequestBuilder(UpstreamRequestBuilder):
    """Builds Trakt API calls and injects OAuth client credentials."""

    upstream_name = "trakt"

    def build(self, descriptor: ProxyRequestDescriptor, credentials: TraktCredentials) -> OutboundRequest:
        method = descriptor.method.upper()
        headers = {
            "Content-Type": "application/json",
            "trakt-api-key": credentials.client_id,
            "trakt-api-version": TRAKT_API_VERSION,
        }
        if descriptor.forwarded_user_token:
            headers["Authorization"] = f"Bearer {descriptor.forwarded_user_token}"

        content = None
        if method in BODY_METHODS:
            content = self._build_body(descriptor.upstream_path, dict(descriptor.body or {}), credentials)

        return OutboundRequest(
            method=method,
            url=self.url_for(descriptor.upstream_path),
            params=forwardable_params(descriptor.query_params),
            headers=headers,
            content=content,
        )

    def credential_fields(self, path: str) -> Tuple[str, ...]:
        """Return the credential fields injected for ``path``'s endpoint family."""
        for prefix, fields in TRAKT_CREDENTIAL_RULES:
            if path.startswith(prefix):
                return fields
        return ()

    def _build_body(self, path: str, body: Dict[str, Any], credentials: TraktCredentials) -> Optional[str]:
        fields = self.credential_fields(path)
        if fields:
            secrets = {"client_id": credentials.client_id, "client_secret": credentials.client_secret}
            for name in fields:
                body[name] = secrets[name]
            self.logger.debug("Injected client credentials", path=path, fields=list(fields))
            return json.dumps(body)

        if body:
            return json.dumps(body)
        return None


class TmdbRequestBuilder(UpstreamRequestBuilder):
    """Builds read-only TMDB calls with the API key as a query parameter."""

    upstream_name = "tmdb"

    def build(self, descriptor: ProxyRequestDescriptor, credentials: TmdbCredentials) -> OutboundRequest:
        params = forwardable_params(descriptor.query_params, excluded=("path", "api_key"))
        params.insert(0, ("api_key", credentials.api_key))
        return OutboundRequest(
            method="GET",
            url=self.url_for(descriptor.upstream_path),
            params=params,
            headers={"Content-Type": "application/json"},
        )
