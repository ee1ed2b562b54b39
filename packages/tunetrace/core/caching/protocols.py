"""Protocol for cache backends.

Session (in-memory) and persistent (SQLite) caches both satisfy ``Cache`` so
resolution stages never depend on where values are stored.
"""

from typing import Protocol, TypeVar, runtime_checkable

from .models import LookupResult

K = TypeVar("K", contravariant=True)
V = TypeVar("V")


@runtime_checkable
class Cache(Protocol[K, V]):
    """
    Protocol for key/value caches with explicit negative entries.

    All implementations must support:
    - Key normalization before every operation
    - Three-valued lookup (Hit / HitAbsent / Miss)
    - Idempotent writes (setting the same key twice leaves ``size`` unchanged)
    - Miss-on-error semantics (an unreadable entry is a miss, never an exception)
    """

    def has(self, key: K) -> bool:
        """
        Check whether anything (value or explicit absence) is cached for key.

        Args:
            key: Cache key (normalized by the implementation)

        Returns:
            True for Hit and HitAbsent, False for Miss
        """
        ...

    def get(self, key: K) -> LookupResult:
        """
        Look up key.

        Returns:
            Hit(value), HIT_ABSENT for a cached "does not exist", or MISS
        """
        ...

    def set(self, key: K, value: V | None) -> None:
        """
        Store value for key; ``None`` records an explicit absence.

        Args:
            key: Cache key
            value: Value to cache, or None for a negative entry
        """
        ...

    def delete(self, key: K) -> bool:
        """
        Remove key.

        Returns:
            True if an entry was removed
        """
        ...

    def clear(self) -> None:
        """Remove every entry."""
        ...

    @property
    def size(self) -> int:
        """Number of cached entries (including negative entries)."""
        ...
