"""In-memory registry of issued session tokens."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class _TokenEntry(Generic[T]):
    value: T
    last_seen: float


class TokenStore(Generic[T]):
    """Very small token registry with sliding TTL eviction."""

    def __init__(self, ttl_seconds: int = 3600) -> None:
        self._ttl = ttl_seconds
        self._tokens: Dict[str, _TokenEntry[T]] = {}

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._tokens)

    def get(self, token: str) -> Optional[T]:
        self._evict_expired()
        entry = self._tokens.get(token)
        if not entry:
            return None
        entry.last_seen = time.time()
        return entry.value

    def save(self, token: str, value: T) -> None:
        self._evict_expired()
        self._tokens[token] = _TokenEntry(value=value, last_seen=time.time())

    def pop(self, token: str) -> Optional[T]:
        entry = self._tokens.pop(token, None)
        return entry.value if entry else None

    def clear(self) -> None:
        self._tokens.clear()

    def _evict_expired(self) -> None:
        now = time.time()
        expired = [key for key, entry in self._tokens.items() if now - entry.last_seen > self._ttl]
        for key in expired:
            self._tokens.pop(key, None)
