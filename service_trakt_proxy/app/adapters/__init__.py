"""
Adapters for the upstream APIs behind the gateway.

- request_builder: outbound URL/header/body composition and credential injection.
- upstream_client: the shared httpx client used for proxied calls.
- response_normalizer: canonical JSON envelope for upstream replies.
"""
