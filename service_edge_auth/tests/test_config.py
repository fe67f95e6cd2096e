"""
Unit tests for validator and service configuration.
"""

import pytest

from shared.config import get_config, split_csv
from shared.test_helpers import TEST_AUDIENCE, TEST_ISSUER, TEST_JWKS_URI
from service_edge_auth.app.config import ValidatorConfig
from service_edge_auth.app.errors import ConfigurationError


class TestValidatorConfig:
    """Test cases for ValidatorConfig."""

    def test_defaults(self):
        """Test default options."""
        config = ValidatorConfig(jwks_uri=TEST_JWKS_URI)

        assert config.algorithms == ("RS256",)
        assert config.fetch_timeout == 5.0
        assert config.cache_ttl == 600.0
        assert config.cooldown == 30.0
        assert config.clock_skew_seconds == 30
        assert config.allow_cookie_fallback is True
        assert config.token_header == "Cf-Access-Jwt-Assertion"
        assert config.token_cookie == "CF_Authorization"
        assert config.expected_audiences == ()

    @pytest.mark.parametrize("jwks_uri", ["", "/cdn-cgi/access/certs", "ftp://example.com/certs", "https://"])
    def test_invalid_jwks_uri(self, jwks_uri):
        """Test a non-absolute JWKS URI is rejected."""
        with pytest.raises(ConfigurationError, match="absolute"):
            ValidatorConfig(jwks_uri=jwks_uri)

    @pytest.mark.parametrize("algorithms", [(), ("HS256",), ("RS256", "none")])
    def test_invalid_algorithms(self, algorithms):
        """Test empty and symmetric allow-lists are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            ValidatorConfig(jwks_uri=TEST_JWKS_URI, algorithms=algorithms)

        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_single_algorithm_string(self):
        """Test a single algorithm may be given as a string."""
        assert ValidatorConfig(jwks_uri=TEST_JWKS_URI, algorithms="ES256").algorithms == ("ES256",)

    @pytest.mark.parametrize("field", ["fetch_timeout_ms", "cache_ttl_ms"])
    def test_non_positive_durations(self, field):
        """Test zero timeouts and TTLs are rejected."""
        with pytest.raises(ConfigurationError):
            ValidatorConfig(jwks_uri=TEST_JWKS_URI, **{field: 0})

    def test_negative_skew(self):
        """Test a negative clock skew is rejected."""
        with pytest.raises(ConfigurationError):
            ValidatorConfig(jwks_uri=TEST_JWKS_URI, clock_skew_seconds=-1)

    def test_audience_list(self):
        """Test several audiences are accepted."""
        config = ValidatorConfig(jwks_uri=TEST_JWKS_URI, audience=["app-a", "app-b"])

        assert config.expected_audiences == ("app-a", "app-b")

    def test_from_settings(self):
        """Test validator options are built from process configuration."""
        settings = get_config(
            "edge_auth",
            3000,
            jwks_uri=TEST_JWKS_URI,
            issuer=TEST_ISSUER,
            audience=f"{TEST_AUDIENCE}, second-app",
            algorithms="RS256,ES256",
            fetch_timeout_ms=2000,
            allow_cookie_fallback=False,
        )

        config = ValidatorConfig.from_settings(settings)

        assert config.issuer == TEST_ISSUER
        assert config.expected_audiences == (TEST_AUDIENCE, "second-app")
        assert config.algorithms == ("RS256", "ES256")
        assert config.fetch_timeout == 2.0
        assert config.allow_cookie_fallback is False

    def test_from_settings_requires_jwks_uri(self):
        """Test a missing JWKS URI is a configuration error."""
        with pytest.raises(ConfigurationError, match="jwks_uri"):
            ValidatorConfig.from_settings(get_config("edge_auth", 3000))


class TestServiceConfig:
    """Test cases for the process configuration."""

    def test_environment_overrides(self, monkeypatch):
        """Test EDGE_AUTH_ environment variables are read."""
        monkeypatch.setenv("EDGE_AUTH_JWKS_URI", TEST_JWKS_URI)
        monkeypatch.setenv("EDGE_AUTH_CACHE_TTL_MS", "1000")
        monkeypatch.setenv("EDGE_AUTH_ALLOW_COOKIE_FALLBACK", "false")

        config = get_config("edge_auth", 3000)

        assert config.jwks_uri == TEST_JWKS_URI
        assert config.cache_ttl_ms == 1000
        assert config.allow_cookie_fallback is False
        assert config.service_name == "edge_auth"
        assert config.port == 3000

    def test_split_csv(self):
        """Test comma separated settings are split and trimmed."""
        assert split_csv(" /protected, /admin ,,") == ["/protected", "/admin"]
        assert split_csv(None) == []
