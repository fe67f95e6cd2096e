"""
JWKS fetcher for the identity-aware proxy's published key set.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..errors import FetchFailed, FetchTimeout


class JWKSFetcher:
    """Fetches a key set over HTTP with a bounded timeout.

    A fetch is a single GET: no retries happen here. Retry policy belongs to
    whoever calls the verification pipeline.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self.metrics = metrics
        self.logger = get_logger("edge_auth.jwks.fetcher")

    async def close(self) -> None:
        """Close the underlying HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_key_set(self, uri: str, timeout: float) -> List[Dict[str, Any]]:
        """Return the raw key entries published at ``uri``.

        Raises `FetchTimeout` when the whole call takes longer than
        ``timeout`` seconds, and `FetchFailed` on a non-success status, a
        transport error, or a body that is not a JSON key set.
        """
        if self.metrics is None:
            return await self._fetch(uri, timeout)
        with self.metrics.time_jwks_fetch():
            return await self._fetch(uri, timeout)

    async def _fetch(self, uri: str, timeout: float) -> List[Dict[str, Any]]:
        self.logger.info("Fetching JWKS", jwks_uri=uri)
        started = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self._client.get(
                    uri,
                    headers={"Accept": "application/json"},
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            self.logger.error("JWKS fetch timed out", jwks_uri=uri, timeout_seconds=timeout)
            raise FetchTimeout(uri, timeout) from exc
        except httpx.HTTPError as exc:
            self.logger.error("Failed to fetch JWKS", jwks_uri=uri, error=str(exc))
            raise FetchFailed(uri, f"Error fetching JWKS: {exc}") from exc

        if not response.is_success:
            self.logger.error("JWKS endpoint returned an error", jwks_uri=uri, status_code=response.status_code)
            raise FetchFailed(
                uri,
                f"Error fetching JWKS: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchFailed(uri, "JWKS response is not valid JSON") from exc

        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, list):
            raise FetchFailed(uri, "JWKS response missing 'keys' array")

        entries = [key for key in keys if isinstance(key, dict)]
        self.logger.info(
            "JWKS fetched",
            jwks_uri=uri,
            keys_count=len(entries),
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return entries
