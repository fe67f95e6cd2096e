"""
Shared utilities for the Edge Auth service.

This package aggregates common building blocks consumed by the service:

- config: Process configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding (health, metrics, handlers)

Any cross-cutting logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
