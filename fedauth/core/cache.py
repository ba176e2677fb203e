"""
In-memory credential caches.

CredentialCache maps a cache key to the latest holder produced by a flow.
It is constructed once and handed to every plugin that should share it,
so independent connections with identical configuration deduplicate
upstream calls.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from .credentials import Holder, utc_now


logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = timedelta(seconds=60)


class CredentialCache:
    """
    Process-lifetime credential cache.

    Entries are replaced, never mutated. ``is_expired`` treats a holder as
    expired ``grace_period`` before its real expiration to absorb clock skew
    and request latency.
    """

    def __init__(
        self,
        grace_period: timedelta = DEFAULT_GRACE_PERIOD,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize credential cache.

        Args:
            grace_period: Time before expiration at which holders are stale
            clock: Time source, mainly for tests
        """
        self._store: Dict[str, Holder] = {}
        self._lock = threading.RLock()
        self.grace_period = grace_period
        self._clock = clock or utc_now

    def now(self) -> datetime:
        return self._clock()

    def get(self, key: str) -> Optional[Holder]:
        """Get the holder stored under ``key``."""
        with self._lock:
            return self._store.get(key)

    def put(self, key: str, holder: Holder) -> None:
        """Store ``holder`` under ``key``, replacing any prior entry."""
        with self._lock:
            self._store[key] = holder
        logger.debug(f"Cached credentials expiring at {holder.expiration.isoformat()}")

    def is_expired(self, holder: Holder, now: Optional[datetime] = None) -> bool:
        """Check whether ``holder`` is past its expiration minus the grace period."""
        return holder.is_expired(self.grace_period, now or self.now())

    def get_valid(self, key: str) -> Optional[Holder]:
        """Get the holder under ``key`` only if it has not expired."""
        holder = self.get(key)
        if holder is None or self.is_expired(holder):
            return None
        return holder

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store


@dataclass(frozen=True)
class RegisteredClient:
    """OAuth client registration returned by the OIDC service."""
    client_id: str
    client_secret: str = field(repr=False)
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) >= self.expires_at


class RegisteredClientCache:
    """Cache of registered OAuth clients, independent of credentials."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clients: Dict[str, RegisteredClient] = {}
        self._lock = threading.RLock()
        self._clock = clock or utc_now

    def get(self, key: str) -> Optional[RegisteredClient]:
        """Get a registered client that is still valid."""
        with self._lock:
            client = self._clients.get(key)
            if client is not None and client.is_expired(self._clock()):
                logger.debug(f"Registered client for {key} has expired")
                del self._clients[key]
                return None
            return client

    def put(self, key: str, client: RegisteredClient) -> None:
        with self._lock:
            self._clients[key] = client

    def clear(self) -> None:
        with self._lock:
            self._clients.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)
