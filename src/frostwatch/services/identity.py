"""Anonymous voter identity.

There are no accounts. A voter is approximated by the pair of one-way hashes of
their device fingerprint and IP address.
"""

from __future__ import annotations

import hashlib
import logging
import re
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from threading import Lock
from typing import Final

logger = logging.getLogger(__name__)

_HASH_RE: Final = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)


@dataclass(frozen=True)
class VoterIdentity:
    """Hashed ``(fingerprint, ip)`` pair used as a voter / author key."""

    fingerprint_hash: str
    ip_hash: str


def hash_value(raw: str) -> str:
    """Return the SHA-256 hex digest of ``raw``."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def is_valid_hash(value: str) -> bool:
    """Return True for a 64 character hexadecimal digest."""
    return bool(_HASH_RE.match(value))


class IdentityCache:
    """TTL cache of resolved identities.

    Owned by the application composition root and passed to consumers; entries
    expire ``ttl_seconds`` after they were stored. Each ``put`` drops every
    expired entry, so the cache never holds more than one TTL worth of keys.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, VoterIdentity]] = {}
        self._lock = Lock()

    def get(self, key: Hashable) -> VoterIdentity | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, identity = entry
            if now - stored_at >= self.ttl_seconds:
                self._entries.pop(key, None)
                return None
            return identity

    def put(self, key: Hashable, identity: VoterIdentity) -> None:
        now = self._clock()
        with self._lock:
            self._prune(now)
            self._entries[key] = (now, identity)

    def _prune(self, now: float) -> None:
        stale = [
            key for key, (stored_at, _) in self._entries.items()
            if now - stored_at >= self.ttl_seconds
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Pruned %d expired identities", len(stale))

    def get_or_create(self, key: Hashable, factory: Callable[[], VoterIdentity]) -> VoterIdentity:
        """Return the cached identity for ``key``, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            logger.debug("Using cached identity")
            return cached
        identity = factory()
        self.put(key, identity)
        return identity

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class IdentityService:
    """Resolves raw fingerprint / IP pairs into hashed voter identities."""

    def __init__(self, cache: IdentityCache) -> None:
        self.cache = cache

    def resolve(self, fingerprint: str, ip: str) -> VoterIdentity:
        """Hash the fingerprint and IP, reusing a cached result within the TTL."""
        return self.cache.get_or_create(
            (fingerprint, ip),
            lambda: VoterIdentity(
                fingerprint_hash=hash_value(fingerprint),
                ip_hash=hash_value(ip),
            ),
        )
