"""
Edge gateway service package.

The gateway fronts the client application's calls to third-party APIs,
enforcing:
- Rate limiting: per-client fixed windows with a background sweeper
- Authentication: a shared secret presented as ``apikey`` or bearer token
- Path allowlisting: fixed tables of reachable upstream route families
- Credential injection: OAuth client secrets added server-side

Structure:
- app.main: FastAPI app, routes and lifecycle wiring.
- app.adapters: request building, the upstream client and response normalization.
- app.auth: shared-secret authenticator.
- app.domain: value objects, allowlists and the proxy pipeline.
- app.ratelimit: fixed-window limiter and sweeper.
"""
