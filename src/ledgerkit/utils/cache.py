"""Small in-process key/value cache with per-entry expiry."""

import time
from typing import Any, Callable, Optional


class TTLCache:
    """Dict-backed cache storing (expires_at, value) per key.

    ``clock`` returns seconds; tests inject a fake one.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._next_expiry = float("inf")

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or default when missing or expired."""
        if key not in self._entries:
            return default

        expires_at, value = self._entries[key]
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key; expired entries are swept first when due."""
        now = self._clock()
        if now >= self._next_expiry:
            self.purge_expired(now)
        expires_at = now + ttl_seconds
        self._entries[key] = (expires_at, value)
        self._next_expiry = min(self._next_expiry, expires_at)

    def purge_expired(self, now: Optional[float] = None) -> int:
        """Drop every expired entry and return how many were dropped."""
        now = self._clock() if now is None else now
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_expiry = min((e for e, _ in self._entries.values()), default=float("inf"))
        return len(expired)

    def remember(self, key: str, ttl_seconds: float, compute: Callable[[], Any]) -> Any:
        """Return the cached value for key, computing and storing it on a miss."""
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            value = compute()
            self.put(key, value, ttl_seconds)
        return value

    def forget(self, key: str) -> None:
        self._entries.pop(key, None)

    def forget_prefix(self, prefix: str) -> int:
        """Drop every key starting with prefix and return how many were dropped."""
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._next_expiry = float("inf")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel


