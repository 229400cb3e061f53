"""
Shared-secret authentication for inbound callers.
"""

import hmac
from typing import Mapping, Optional

from shared.logging import get_logger

BEARER_PREFIX = "Bearer "


class SharedSecretAuthenticator:
    """Accepts a caller presenting the configured key via ``apikey`` or a bearer token.

    This only proves the caller is the legitimate client application. End-user
    identity travels separately in ``x-user-token`` and is checked upstream.
    """

    def __init__(self, expected_caller_key: Optional[str]):
        self.expected_caller_key = expected_caller_key
        self.logger = get_logger("trakt_proxy.authenticator")

    def authenticate(self, headers: Mapping[str, str]) -> bool:
        if not self.expected_caller_key:
            self.logger.warning("Rejecting request, no caller key configured")
            return False

        api_key = headers.get("apikey")
        if api_key and self._matches(api_key):
            return True

        auth_header = headers.get("authorization")
        if auth_header and auth_header.startswith(BEARER_PREFIX):
            return self._matches(auth_header[len(BEARER_PREFIX):])

        return False

    def _matches(self, candidate: str) -> bool:
        return hmac.compare_digest(candidate.encode("utf-8"), self.expected_caller_key.encode("utf-8"))
