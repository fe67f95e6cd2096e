"""
Edge Auth service package.

This package exposes the FastAPI application that authenticates requests
carrying an identity token injected by an upstream identity-aware proxy:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.jwks: Key cache, JWKS fetcher and single-flight key resolver.
- app.validation: Token extraction and verification.
- app.domain: Auth middleware and logout flow.

Design notes:
- Module import must not perform network calls. All IO happens in
  request handling; keys are fetched on demand, never in the background.
- Use the shared/ utilities for logging, metrics, configuration and errors.
- Verified identities live only for the request that carried them.
"""
