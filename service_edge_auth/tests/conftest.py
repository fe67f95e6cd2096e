"""
Shared fixtures for Edge Auth tests.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest

from shared.test_helpers import (
    TEST_AUDIENCE,
    TEST_ISSUER,
    TEST_JWKS_URI,
    create_access_claims,
    create_ec_signing_key,
    create_jwks,
    create_rsa_signing_key,
)
from service_edge_auth.app.config import ValidatorConfig


class FakeClock:
    """Manually advanced clock usable for both monotonic and wall time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockJwksEndpoint:
    """In-process JWKS endpoint served through httpx.MockTransport."""

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self.status_code = 200
        self.body: Optional[bytes] = None
        self.delay = 0.0
        self.error: Optional[Exception] = None
        self.requests: List[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.document)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture(scope="session")
def signing_key():
    """RSA key published in the test key set."""
    return create_rsa_signing_key(kid="test-key-1")


@pytest.fixture(scope="session")
def unpublished_key():
    """RSA key that the key set does not publish."""
    return create_rsa_signing_key(kid="rotated-key-9")


@pytest.fixture(scope="session")
def ec_key():
    """EC key published next to the RSA key."""
    return create_ec_signing_key(kid="test-ec-1")


@pytest.fixture
def jwks_endpoint(signing_key, ec_key):
    """Mock JWKS endpoint publishing the RSA and EC test keys."""
    return MockJwksEndpoint(create_jwks(signing_key, ec_key))


@pytest.fixture
def clock():
    """Fake clock shared by cache, resolver and verifier."""
    return FakeClock()


@pytest.fixture
def validator_config():
    """Validator options matching the test issuer and audience."""
    return ValidatorConfig(
        jwks_uri=TEST_JWKS_URI,
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
        algorithms=("RS256", "ES256"),
    )


@pytest.fixture
def valid_claims(clock):
    """Claims valid at the fake clock's current time."""
    return create_access_claims(now=clock.now)
