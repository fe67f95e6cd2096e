"""
Unit tests for KeyCache.
"""

import pytest

from service_edge_auth.app.jwks.cache import KeyCache
from service_edge_auth.app.models import KeyRecord


class TestKeyCache:
    """Test cases for KeyCache."""

    @pytest.fixture
    def cache(self, clock):
        """Create KeyCache driven by the fake clock."""
        return KeyCache(clock=clock)

    @pytest.fixture
    def record(self, signing_key):
        """Key record for the published RSA key."""
        return KeyRecord.from_jwk(signing_key.public_jwk)

    def test_get_missing(self, cache):
        """Test lookup of an unknown kid."""
        assert cache.get("unknown") is None

    def test_put_then_get(self, cache, record):
        """Test a stored record is returned unchanged."""
        cache.put(record.key_id, record, ttl=60)

        assert cache.get(record.key_id) is record
        assert len(cache) == 1

    def test_entry_expires_at_ttl(self, cache, record, clock):
        """Test an entry is absent once its TTL has elapsed."""
        cache.put(record.key_id, record, ttl=60)

        clock.advance(59.9)
        assert cache.get(record.key_id) is record

        clock.advance(0.1)
        assert cache.get(record.key_id) is None
        # Expired entries are evicted on lookup
        assert len(cache) == 0

    def test_put_replaces_entry_and_expiry(self, cache, record, clock):
        """Test a later put overwrites the record and restarts its TTL."""
        cache.put(record.key_id, record, ttl=10)
        clock.advance(8)

        replacement = KeyRecord.from_jwk(dict(record.jwk))
        cache.put(record.key_id, replacement, ttl=10)
        clock.advance(8)

        assert cache.get(record.key_id) is replacement

    def test_clear(self, cache, record):
        """Test clear drops every entry."""
        cache.put(record.key_id, record, ttl=60)
        cache.clear()

        assert cache.get(record.key_id) is None
        assert len(cache) == 0
