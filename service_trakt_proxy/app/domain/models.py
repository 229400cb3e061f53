"""
Value objects passed between pipeline stages.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass
class ProxyRequestDescriptor:
    """What the caller asked the gateway to send upstream."""

    upstream_path: str
    method: str = "GET"
    query_params: List[Tuple[str, str]] = field(default_factory=list)
    forwarded_user_token: Optional[str] = None
    body: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class OutboundRequest:
    """Fully formed upstream HTTP call."""

    method: str
    url: str
    params: List[Tuple[str, str]]
    headers: Dict[str, str]
    content: Optional[str] = None


@dataclass(frozen=True)
class StructuredBody:
    """Upstream declared JSON and it parsed."""

    value: Any


@dataclass(frozen=True)
class RawTextBody:
    """Upstream body that is not usable JSON."""

    text: str


@dataclass(frozen=True)
class EmptyBody:
    """Upstream sent no body at all."""


UpstreamBody = Union[StructuredBody, RawTextBody, EmptyBody]


@dataclass
class NormalizedResponse:
    status_code: int
    body: Any
    rate_limit_headers: Dict[str, str] = field(default_factory=dict)
