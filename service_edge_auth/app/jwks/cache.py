"""
In-memory, TTL-bounded store of signing keys.
"""

import threading
import time
from typing import Callable, Dict, Optional

from ..models import CacheEntry, KeyRecord


class KeyCache:
    """Maps a key id to its `KeyRecord` until the entry's TTL runs out.

    Expired entries are treated as absent and evicted on the next lookup.
    No network or cryptographic work happens here.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, kid: str) -> Optional[KeyRecord]:
        with self._lock:
            entry = self._entries.get(kid)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[kid]
                return None
            return entry.record

    def put(self, kid: str, record: KeyRecord, ttl: float) -> None:
        entry = CacheEntry(record=record, expires_at=self._clock() + ttl)
        with self._lock:
            self._entries[kid] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
