"""
JWKS package.

Contains logic for retrieving and caching the JSON Web Key Set used to
verify token signatures:

- cache: TTL-bounded key id -> KeyRecord store.
- fetcher: single bounded-timeout GET of the key set, no retries.
- resolver: cache lookup, fetch on miss, single-flight per key id.

Prefer kid (key id) selection; this package never guesses a key.
"""

from .cache import KeyCache
from .fetcher import JWKSFetcher
from .resolver import KeyResolver

__all__ = [
    "JWKSFetcher",
    "KeyCache",
    "KeyResolver",
]
