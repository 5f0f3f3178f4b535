"""Clarity Proxy — Quota-aware response cache.

The Clarity export allows only a handful of calls per project per day, so
responses are kept for a long TTL keyed by the exact query shape. Entries are
only ever replaced whole; a failed fetch leaves the previous entry alone.

Concurrent misses on the same signature each call upstream. There is no
in-flight coalescing.
"""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from clarity_proxy.core.logging import get_logger

logger = get_logger("cache")

MIN_DAYS = 1
MAX_DAYS = 3


def clamp_days(days: Any, default: int = MAX_DAYS) -> int:
    """Clamp a day count into [1, 3]; unparseable input uses ``default``."""
    try:
        value = int(days)
    except (TypeError, ValueError):
        value = default
    if value == 0:
        value = default
    return min(max(value, MIN_DAYS), MAX_DAYS)


@dataclass(frozen=True)
class QuerySignature:
    """Shape of an upstream export query."""

    days: int
    dimension1: str
    dimension2: Optional[str] = None
    dimension3: Optional[str] = None

    @classmethod
    def build(
        cls,
        days: Any,
        dimension1: str,
        dimension2: Optional[str] = None,
        dimension3: Optional[str] = None,
    ) -> "QuerySignature":
        return cls(clamp_days(days), dimension1, dimension2 or None, dimension3 or None)

    @property
    def dimensions(self) -> List[str]:
        return [d for d in (self.dimension1, self.dimension2, self.dimension3) if d]

    def __str__(self) -> str:
        return "|".join([str(self.days), *self.dimensions])


@dataclass(frozen=True)
class CacheEntry:
    expires_at: float
    payload: Any
    stored_at: float = 0.0


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    fetches: int = 0
    failures: int = 0
    forced: int = 0


FetchFn = Callable[[], Awaitable[Any]]


class QuotaCache:
    """Signature → payload cache with expiry and forced refresh."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[QuerySignature, CacheEntry] = {}
        self.stats = CacheStats()

    def peek(self, signature: QuerySignature) -> Optional[CacheEntry]:
        """Return the live entry for ``signature`` without fetching."""
        entry = self._entries.get(signature)
        if entry is not None and entry.expires_at > self._clock():
            return entry
        return None

    async def get_or_fetch(
        self, signature: QuerySignature, fetch_fn: FetchFn, force: bool = False
    ) -> Any:
        """Return the cached payload, calling ``fetch_fn`` on miss or ``force``.

        Errors from ``fetch_fn`` propagate and nothing is stored.
        """
        if not force:
            entry = self.peek(signature)
            if entry is not None:
                self.stats.hits += 1
                logger.debug(
                    f"Cache hit for {signature}",
                    extra={"signature": str(signature), "cache": "hit"},
                )
                return entry.payload
            self.stats.misses += 1
        else:
            self.stats.forced += 1

        self.stats.fetches += 1
        try:
            payload = await fetch_fn()
        except Exception:
            self.stats.failures += 1
            logger.warning(
                f"Fetch failed for {signature}; keeping existing entry",
                extra={"signature": str(signature), "cache": "error"},
            )
            raise

        now = self._clock()
        self._entries[signature] = CacheEntry(
            expires_at=now + self.ttl_seconds, payload=payload, stored_at=now
        )
        logger.info(
            f"Cached {signature} for {self.ttl_seconds}s",
            extra={"signature": str(signature), "cache": "forced" if force else "miss"},
        )
        return payload

    def invalidate(self, signature: Optional[QuerySignature] = None) -> int:
        """Drop one entry, or all entries when no signature is given."""
        if signature is None:
            count = len(self._entries)
            self._entries = {}
            return count
        return 1 if self._entries.pop(signature, None) is not None else 0

    def entries(self) -> List[Dict[str, Any]]:
        """Snapshot of entries for diagnostics."""
        now = self._clock()
        return [
            {
                "signature": str(sig),
                "stored_at": entry.stored_at,
                "expires_at": entry.expires_at,
                "expired": entry.expires_at <= now,
            }
            for sig, entry in self._entries.items()
        ]
