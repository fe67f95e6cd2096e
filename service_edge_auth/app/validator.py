"""
Validator assembly: one key set, one cache, one pipeline.
"""

import time
from typing import Any, Callable, Dict, Optional

import httpx
from starlette.requests import HTTPConnection

from shared.metrics import MetricsCollector

from .config import ValidatorConfig
from .jwks import JWKSFetcher, KeyCache, KeyResolver
from .models import ExtractedToken, VerificationResult
from .validation import TokenExtractor, TokenVerifier


class AccessValidator:
    """Bundles the cache, fetcher, resolver, verifier and extractor for one config.

    Validators share no state, so several can run side by side (for example
    one per tenant).
    """

    def __init__(
        self,
        config: ValidatorConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
        monotonic: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.cache = KeyCache(clock=monotonic)
        self.fetcher = JWKSFetcher(http_client, metrics=metrics)
        self.resolver = KeyResolver(
            config.jwks_uri,
            self.fetcher,
            self.cache,
            cache_ttl=config.cache_ttl,
            fetch_timeout=config.fetch_timeout,
            cooldown=config.cooldown,
            clock=monotonic,
            metrics=metrics,
        )
        self.verifier = TokenVerifier(config, self.resolver, clock=wall_clock, metrics=metrics)
        self.extractor = TokenExtractor(
            header_name=config.token_header,
            cookie_name=config.token_cookie,
            allow_cookie_fallback=config.allow_cookie_fallback,
        )

    async def validate_jwt(self, token: Any) -> VerificationResult:
        return await self.verifier.verify(token)

    def get_token_from_request(self, request: HTTPConnection) -> Optional[ExtractedToken]:
        return self.extractor.extract_token(request)

    def clear_cache(self) -> None:
        self.resolver.clear()

    def status(self) -> Dict[str, Any]:
        """Validator state for health reporting; performs no network call."""
        return {
            "jwks_uri": self.config.jwks_uri,
            "cached_keys": len(self.cache),
            "in_flight_fetches": self.resolver.in_flight(),
            "last_fetch_error": self.resolver.last_fetch_error,
        }

    async def aclose(self) -> None:
        await self.fetcher.close()
