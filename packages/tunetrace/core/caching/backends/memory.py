"""In-memory session cache.

Lives for one run. Satisfies the ``Cache`` protocol.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from tunetrace.core.caching.models import HIT_ABSENT, MISS, Hit, LookupResult

K = TypeVar("K")
V = TypeVar("V")


class MemoryCache(Generic[K, V]):
    """Dict-backed cache with explicit negative entries.

    Args:
        key_fn: Normalizes a caller key to its canonical string form
        name: Cache name used in logs and repr

    Example:
        >>> cache: MemoryCache[str, int] = MemoryCache(key_fn=str.lower)
        >>> cache.set("A", 1)
        >>> cache.get("a")
        Hit(value=1)
    """

    def __init__(self, key_fn: Callable[[K], str] = str, *, name: str = "memory") -> None:
        self._key_fn = key_fn
        self.name = name
        self._entries: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"MemoryCache(name={self.name!r}, size={self.size})"

    def has(self, key: K) -> bool:
        return self._key_fn(key) in self._entries

    def get(self, key: K) -> LookupResult:
        normalized = self._key_fn(key)
        if normalized not in self._entries:
            return MISS
        value = self._entries[normalized]
        if value is None:
            return HIT_ABSENT
        return Hit(value=value)

    def set(self, key: K, value: V | None) -> None:
        self._entries[self._key_fn(key)] = value

    def delete(self, key: K) -> bool:
        return self._entries.pop(self._key_fn(key), MISS) is not MISS

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)
