"""
Shared utilities for the X API access service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request/identity correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- circuit_breaker: Fail-fast protection around the document store
- secrets_manager: Encrypted secrets file and startup loader

Do not import from service packages into shared/ (test_helpers excepted).
"""
