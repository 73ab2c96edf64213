# src/cache/base_cache_store.py
"""Abstract render cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from noiengine.cache.models import CacheEntry, CacheEntryMeta, Fingerprint
from noiengine.core.models import GeneratedDocument


class BaseCacheStore(ABC):
    """Unified interface for render cache backends."""

    @abstractmethod
    async def lookup(self, fingerprint: Fingerprint) -> CacheEntry | None:
        """Return the live entry for a fingerprint, or None if absent or expired."""

    @abstractmethod
    async def store(
        self,
        fingerprint: Fingerprint,
        source_artifact: Path,
        meta: CacheEntryMeta | None = None,
    ) -> CacheEntry | None:
        """Persist a durable copy of a rendered artifact, replacing any prior entry."""

    @abstractmethod
    async def materialize(self, entry: CacheEntry, destination: Path) -> GeneratedDocument:
        """Copy a cached artifact to a fresh output path.

        Raises:
            CacheCorruptionError: If the cached artifact cannot be copied.
        """

    @abstractmethod
    async def delete(self, fingerprint: Fingerprint) -> None:
        """Remove an entry (missing entries are ignored)."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Remove every expired entry; return how many were removed."""
