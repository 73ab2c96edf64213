# src/cache/null_store.py
"""No-op cache used when caching is disabled (CACHE_ENABLED=false)."""

from __future__ import annotations

from pathlib import Path

from noiengine.cache.base_cache_store import BaseCacheStore
from noiengine.cache.models import CacheEntry, CacheEntryMeta, Fingerprint
from noiengine.core.errors import CacheCorruptionError
from noiengine.core.models import GeneratedDocument


class NullCacheStore(BaseCacheStore):
    """Every lookup misses and nothing is stored."""

    async def lookup(self, fingerprint: Fingerprint) -> CacheEntry | None:
        return None

    async def store(
        self,
        fingerprint: Fingerprint,
        source_artifact: Path,
        meta: CacheEntryMeta | None = None,
    ) -> CacheEntry | None:
        return None

    async def materialize(self, entry: CacheEntry, destination: Path) -> GeneratedDocument:
        raise CacheCorruptionError("NullCacheStore holds no artifacts")

    async def delete(self, fingerprint: Fingerprint) -> None:
        return None

    async def purge_expired(self) -> int:
        return 0
