"""Persistent caches backed by ``SQLiteCacheStore``.

Each adapter exposes one store namespace through the ``Cache`` protocol, so
a stage can swap a session ``MemoryCache`` for a persistent cache unchanged.
Values are pydantic models serialized with ``model_dump(mode="json")``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from tunetrace.core.caching.backends.sqlite import SQLiteCacheStore
from tunetrace.core.caching.keys import path_key
from tunetrace.core.caching.models import MISS, CacheNamespace, Hit, LookupResult

logger = logging.getLogger(__name__)

K = TypeVar("K")
M = TypeVar("M", bound=BaseModel)


class PersistentCache(Generic[K, M]):
    """One namespace of the SQLite store as a ``Cache``.

    Args:
        store: Initialized SQLite cache store
        namespace: Store namespace this cache owns
        model_cls: Pydantic model used to validate values on load
        key_fn: Normalizes a caller key to the stored key
    """

    def __init__(
        self,
        store: SQLiteCacheStore,
        namespace: CacheNamespace,
        model_cls: type[M],
        key_fn: Callable[[K], str] = str,
    ) -> None:
        self._store = store
        self.namespace = namespace
        self._model_cls = model_cls
        self._key_fn = key_fn

    def __repr__(self) -> str:
        return f"{type(self).__name__}(namespace={self.namespace.value!r})"

    def _key(self, key: K) -> str:
        return self._key_fn(key)

    def has(self, key: K) -> bool:
        return self._store.has(self.namespace, self._key(key))

    def get(self, key: K) -> LookupResult:
        return self._decode(self._store.get(self.namespace, self._key(key)))

    def _decode(self, result: LookupResult) -> LookupResult:
        if not isinstance(result, Hit):
            return result
        try:
            return Hit(value=self._model_cls.model_validate(result.value))
        except ValidationError as e:
            # Stale shape from an older release
            logger.warning(f"Discarding invalid {self.namespace.value} cache entry: {e}")
            return MISS

    def set(self, key: K, value: M | None) -> None:
        payload = None if value is None else value.model_dump(mode="json")
        self._store.set(self.namespace, self._key(key), payload)

    def delete(self, key: K) -> bool:
        return self._store.delete(self.namespace, self._key(key))

    def clear(self) -> None:
        self._store.clear(self.namespace)

    @property
    def size(self) -> int:
        return self._store.count(self.namespace)


class PersistentFingerprintCache(PersistentCache[str | Path, M]):
    """Fingerprint results keyed by file path, stored by content identity.

    Keeps a run-scoped ``path -> identity`` map so each path is hashed at
    most once per run. The map itself is never persisted.

    Args:
        store: Initialized SQLite cache store
        model_cls: Pydantic model for cached fingerprint records
        identity_fn: Computes the content identity of a file path
    """

    def __init__(
        self,
        store: SQLiteCacheStore,
        model_cls: type[M],
        identity_fn: Callable[[str | Path], str],
    ) -> None:
        super().__init__(store, CacheNamespace.FINGERPRINTS, model_cls)
        self._identity_fn = identity_fn
        self._identities: dict[str, str] = {}

    def register_identity(self, path: str | Path, identity: str) -> None:
        """Remember the identity of ``path`` for the rest of the run."""
        self._identities[path_key(path)] = identity

    def identity_for(self, path: str | Path, *, compute: bool = True) -> str | None:
        """Identity of ``path``, hashing the file on first use when ``compute``."""
        normalized = path_key(path)
        identity = self._identities.get(normalized)
        if identity is None and compute:
            identity = self._identity_fn(normalized)
            self._identities[normalized] = identity
        return identity

    def _key(self, key: str | Path) -> str:
        return self.identity_for(key)  # type: ignore[return-value]

    def has(self, key: str | Path) -> bool:
        try:
            return super().has(key)
        except OSError as e:
            logger.debug(f"Cannot hash {key}: {e}")
            return False

    def get(self, key: str | Path) -> LookupResult:
        try:
            return super().get(key)
        except OSError as e:
            logger.debug(f"Cannot hash {key}: {e}")
            return MISS

    def delete(self, key: str | Path) -> bool:
        try:
            identity = self.identity_for(key)
        except OSError as e:
            logger.debug(f"Cannot hash {key}: {e}")
            return False
        self._identities.pop(path_key(key), None)
        return self._store.delete(self.namespace, identity)

    def clear(self) -> None:
        self._identities.clear()
        super().clear()

    def get_by_identity(self, identity: str) -> LookupResult:
        """Look up a record directly by content identity."""
        return self._decode(self._store.get(self.namespace, identity))

    def set_with_identity(self, path: str | Path, identity: str, value: M | None) -> None:
        """Register ``path -> identity`` and store ``value`` under the identity."""
        self.register_identity(path, identity)
        payload = None if value is None else value.model_dump(mode="json")
        self._store.set(self.namespace, identity, payload)
