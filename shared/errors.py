"""
Shared error handling for the Trakt Edge Gateway.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")

    def to_content(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GatewayException(Exception):
    """Base exception for gateway failures; terminal for the request."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class RateLimitExceededError(GatewayException):
    """Caller has used up its request budget for the current window."""

    status_code = 429

    def __init__(self, retry_after: int, headers: Optional[Dict[str, str]] = None):
        self.retry_after = retry_after
        super().__init__("Rate limit exceeded", headers=headers)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, retry_after=self.retry_after)


class UnauthorizedError(GatewayException):
    """Missing or invalid shared secret."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class PathNotAllowedError(GatewayException):
    """Upstream path is not on the allowlist."""

    status_code = 403

    def __init__(self, path: str, message: str = "Path not allowed"):
        self.path = path
        super().__init__(message)


class ConfigurationMissingError(GatewayException):
    """Required server-side configuration is absent."""

    status_code = 500


class BadGatewayRequestError(GatewayException):
    """Inbound request is missing a required control parameter."""

    status_code = 500


class UpstreamUnavailableError(GatewayException):
    """Transport-level failure talking to the upstream service."""

    status_code = 500

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(message)
