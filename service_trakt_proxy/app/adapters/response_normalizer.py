"""
Normalizes upstream replies into a single JSON envelope.
"""

import json
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from service_trakt_proxy.app.domain.models import (
    EmptyBody,
    NormalizedResponse,
    RawTextBody,
    StructuredBody,
    UpstreamBody,
)

JSON_CONTENT_TYPE = "application/json"

logger = get_logger("trakt_proxy.response_normalizer")


def classify_body(text: str, content_type: Optional[str]) -> UpstreamBody:
    """Sort an upstream body into structured JSON, raw text or empty."""
    if not text:
        return EmptyBody()

    if content_type and JSON_CONTENT_TYPE in content_type.lower():
        try:
            return StructuredBody(json.loads(text))
        except ValueError:
            logger.warning("Upstream declared JSON but body did not parse", length=len(text))
            return RawTextBody(text)

    return RawTextBody(text)


def envelope_for(body: UpstreamBody, status_code: int) -> Any:
    if isinstance(body, StructuredBody):
        return body.value
    if isinstance(body, RawTextBody):
        return {"raw": body.text}
    if isinstance(body, EmptyBody):
        return {"status": status_code}
    raise TypeError(f"Unknown upstream body type: {type(body).__name__}")


def normalize_response(
    response: httpx.Response, rate_limit_headers: Optional[Dict[str, str]] = None
) -> NormalizedResponse:
    """Build the envelope for ``response``, keeping the upstream status code."""
    body = classify_body(response.text, response.headers.get("content-type"))
    return NormalizedResponse(
        status_code=response.status_code,
        body=envelope_for(body, response.status_code),
        rate_limit_headers=dict(rate_limit_headers or {}),
    )
