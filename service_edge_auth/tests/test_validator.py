"""
Unit tests for AccessValidator.
"""

import pytest

from shared.test_helpers import TEST_JWKS_URI
from service_edge_auth.app.errors import JwksUnavailable
from service_edge_auth.app.validator import AccessValidator


class TestAccessValidator:
    """Test cases for AccessValidator."""

    @pytest.fixture
    def validator(self, validator_config, jwks_endpoint, clock):
        """Create AccessValidator on the fake clock."""
        return AccessValidator(
            validator_config,
            http_client=jwks_endpoint.client(),
            monotonic=clock,
            wall_clock=clock,
        )

    @pytest.mark.asyncio
    async def test_validate_jwt(self, validator, signing_key, valid_claims):
        """Test a valid token is verified through the assembled pipeline."""
        result = await validator.validate_jwt(signing_key.sign(valid_claims))

        assert result.claims.to_dict() == valid_claims
        assert validator.status() == {
            "jwks_uri": TEST_JWKS_URI,
            "cached_keys": 1,
            "in_flight_fetches": 0,
            "last_fetch_error": None,
        }

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, validator, signing_key, valid_claims, jwks_endpoint):
        """Test clearing the cache drops keys and the remembered key set."""
        token = signing_key.sign(valid_claims)
        await validator.validate_jwt(token)

        validator.clear_cache()
        assert validator.status()["cached_keys"] == 0

        await validator.validate_jwt(token)
        assert jwks_endpoint.calls == 2

    @pytest.mark.asyncio
    async def test_status_reports_fetch_error(self, validator, signing_key, valid_claims, jwks_endpoint):
        """Test the last fetch failure is reported without a new request."""
        jwks_endpoint.status_code = 500

        with pytest.raises(JwksUnavailable):
            await validator.validate_jwt(signing_key.sign(valid_claims))

        assert validator.status()["last_fetch_error"] == "Error fetching JWKS: 500"
        assert jwks_endpoint.calls == 1
