"""
Per-validator options.

A `ValidatorConfig` describes one key set, its expected issuer/audience and
the cache policy. Process configuration lives in `shared.config`; use
`ValidatorConfig.from_settings` to bridge the two.
"""

from typing import Any, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from shared.config import BaseConfig, split_csv

from .errors import ConfigurationError

# Only asymmetric signatures are accepted; HMAC and "none" are refused even
# when explicitly configured.
ASYMMETRIC_ALGORITHMS = frozenset({
    "RS256", "RS384", "RS512",
    "PS256", "PS384", "PS512",
    "ES256", "ES384", "ES512",
})

DEFAULT_TOKEN_HEADER = "Cf-Access-Jwt-Assertion"
DEFAULT_TOKEN_COOKIE = "CF_Authorization"


class ValidatorConfig(BaseModel):
    """Options recognized by a token validator."""

    model_config = ConfigDict(frozen=True)

    jwks_uri: str
    issuer: Optional[str] = None
    audience: Optional[Union[str, Tuple[str, ...]]] = None
    algorithms: Tuple[str, ...] = ("RS256",)
    fetch_timeout_ms: int = 5000
    cache_ttl_ms: int = 10 * 60 * 1000
    cooldown_ms: int = 30 * 1000
    clock_skew_seconds: int = 30
    allow_cookie_fallback: bool = True
    token_header: str = DEFAULT_TOKEN_HEADER
    token_cookie: str = DEFAULT_TOKEN_COOKIE

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid validator configuration: {exc.errors()[0]['msg']}",
                details={"errors": [error["msg"] for error in exc.errors()]},
            ) from exc

    @field_validator("jwks_uri")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        parsed = urlparse(value or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("jwks_uri must be an absolute http(s) URL")
        return value

    @field_validator("audience", mode="before")
    @classmethod
    def _normalize_audience(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value or None
        audiences = tuple(value)
        return audiences or None

    @field_validator("algorithms", mode="before")
    @classmethod
    def _check_algorithms(cls, value: Any) -> Tuple[str, ...]:
        algorithms = (value,) if isinstance(value, str) else tuple(value or ())
        if not algorithms:
            raise ValueError("algorithms allow-list must not be empty")
        rejected = [alg for alg in algorithms if alg not in ASYMMETRIC_ALGORITHMS]
        if rejected:
            raise ValueError(f"algorithms must be asymmetric signature algorithms, got {rejected}")
        return algorithms

    @field_validator("fetch_timeout_ms", "cache_ttl_ms")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("fetch_timeout_ms and cache_ttl_ms must be positive")
        return value

    @field_validator("cooldown_ms", "clock_skew_seconds")
    @classmethod
    def _not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("cooldown_ms and clock_skew_seconds must not be negative")
        return value

    @property
    def fetch_timeout(self) -> float:
        return self.fetch_timeout_ms / 1000.0

    @property
    def cache_ttl(self) -> float:
        return self.cache_ttl_ms / 1000.0

    @property
    def cooldown(self) -> float:
        return self.cooldown_ms / 1000.0

    @property
    def expected_audiences(self) -> Tuple[str, ...]:
        if self.audience is None:
            return ()
        if isinstance(self.audience, str):
            return (self.audience,)
        return self.audience

    @classmethod
    def from_settings(cls, settings: BaseConfig) -> "ValidatorConfig":
        """Build validator options from process configuration."""
        if not settings.jwks_uri:
            raise ConfigurationError("jwks_uri is required")

        audiences = split_csv(settings.audience)
        return cls(
            jwks_uri=settings.jwks_uri,
            issuer=settings.issuer or None,
            audience=audiences[0] if len(audiences) == 1 else tuple(audiences),
            algorithms=tuple(split_csv(settings.algorithms)),
            fetch_timeout_ms=settings.fetch_timeout_ms,
            cache_ttl_ms=settings.cache_ttl_ms,
            cooldown_ms=settings.cooldown_ms,
            clock_skew_seconds=settings.clock_skew_seconds,
            allow_cookie_fallback=settings.allow_cookie_fallback,
            token_header=settings.token_header,
            token_cookie=settings.token_cookie,
        )
