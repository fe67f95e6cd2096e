"""
Key resolution: cache first, JWKS fetch on miss, one fetch per key id at a time.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..errors import KeyNotFound
from ..models import KeyRecord
from .cache import KeyCache
from .fetcher import JWKSFetcher

# Key type expected for each algorithm family.
_KEY_TYPES = {"RS": "RSA", "PS": "RSA", "ES": "EC"}


class KeyResolver:
    """Answers "give me the public key for kid K".

    Concurrent misses for the same kid share a single in-flight fetch and
    observe its outcome; different kids are fetched independently. A fetch
    that fails leaves the cache untouched.
    """

    def __init__(
        self,
        jwks_uri: str,
        fetcher: JWKSFetcher,
        cache: Optional[KeyCache] = None,
        *,
        cache_ttl: float = 600.0,
        fetch_timeout: float = 5.0,
        cooldown: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.jwks_uri = jwks_uri
        self.fetcher = fetcher
        self.cache = cache if cache is not None else KeyCache(clock=clock)
        self.cache_ttl = cache_ttl
        self.fetch_timeout = fetch_timeout
        # A remembered key set never outlives the keys cached from it.
        self.cooldown = min(cooldown, cache_ttl)
        self.metrics = metrics
        self.logger = get_logger("edge_auth.jwks.resolver")

        self._clock = clock
        self._in_flight: Dict[str, "asyncio.Task[KeyRecord]"] = {}

        # Last successfully fetched key set, reused for misses within the cooldown.
        self._key_set: Optional[List[Dict[str, Any]]] = None
        self._key_set_fetched_at: float = 0.0
        self.last_fetch_error: Optional[str] = None

    async def resolve_key(self, kid: str, header_alg: Optional[str]) -> KeyRecord:
        """Return the key for ``kid`` usable with ``header_alg``.

        Raises `KeyNotFound` when the key set does not publish an applicable
        key, and propagates `FetchTimeout`/`FetchFailed` from the fetcher.
        """
        record = self.cache.get(kid)
        if self.metrics is not None:
            self.metrics.record_cache_lookup(hit=record is not None)

        if record is None:
            task = self._in_flight.get(kid)
            if task is None:
                task = asyncio.ensure_future(self._load_and_release(kid))
                task.add_done_callback(_consume_exception)
                self._in_flight[kid] = task
            else:
                self.logger.debug("Joining in-flight JWKS fetch", kid=kid)
            # A cancelled waiter must not cancel the fetch other waiters share.
            record = await asyncio.shield(task)

        self._check_applicable(record, header_alg)
        return record

    def in_flight(self) -> int:
        """Number of key ids with a pending fetch."""
        return len(self._in_flight)

    def clear(self) -> None:
        """Drop cached keys and the remembered key set."""
        self.cache.clear()
        self._key_set = None
        self._key_set_fetched_at = 0.0

    async def _load_and_release(self, kid: str) -> KeyRecord:
        try:
            return await self._load(kid)
        finally:
            self._in_flight.pop(kid, None)

    async def _load(self, kid: str) -> KeyRecord:
        keys = self._recent_key_set()
        if keys is None:
            try:
                keys = await self.fetcher.fetch_key_set(self.jwks_uri, self.fetch_timeout)
            except Exception as exc:
                self.last_fetch_error = str(exc)
                raise
            self._key_set = keys
            self._key_set_fetched_at = self._clock()
            self.last_fetch_error = None
        else:
            self.logger.debug("Using recently fetched key set", kid=kid)

        entry = next((key for key in keys if key.get("kid") == kid), None)
        if entry is None:
            self.logger.warning("Key not found in JWKS", kid=kid, jwks_uri=self.jwks_uri)
            raise KeyNotFound(kid)

        record = KeyRecord.from_jwk(entry)
        # Keys taken from a remembered set keep only the TTL left on that set.
        ttl = self.cache_ttl - (self._clock() - self._key_set_fetched_at)
        self.cache.put(kid, record, ttl)
        return record

    def _recent_key_set(self) -> Optional[List[Dict[str, Any]]]:
        if self._key_set is None or self.cooldown <= 0:
            return None
        if self._clock() - self._key_set_fetched_at >= self.cooldown:
            return None
        return self._key_set

    def _check_applicable(self, record: KeyRecord, header_alg: Optional[str]) -> None:
        if not header_alg:
            return
        if record.algorithm and record.algorithm != header_alg:
            raise KeyNotFound(
                record.key_id,
                f"Key {record.key_id} declares alg {record.algorithm}, token uses {header_alg}",
            )
        expected_kty = _KEY_TYPES.get(header_alg[:2])
        if expected_kty and record.key_type and record.key_type != expected_kty:
            raise KeyNotFound(
                record.key_id,
                f"Key {record.key_id} has type {record.key_type}, not usable with {header_alg}",
            )


def _consume_exception(task: "asyncio.Task[Any]") -> None:
    # Mark the outcome as retrieved even when every waiter went away.
    if not task.cancelled():
        task.exception()
