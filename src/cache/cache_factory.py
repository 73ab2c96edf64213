# src/cache/cache_factory.py
"""Factory for cache store instantiation."""

from __future__ import annotations

from noiengine.cache.base_cache_store import BaseCacheStore
from noiengine.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to a file cache under
            uploads/noi/cache with a 24-hour TTL.

    Returns:
        Configured BaseCacheStore implementation.
    """
    if settings is not None and (
        not settings.cache_enabled or settings.cache_backend == "none"
    ):
        from noiengine.cache.null_store import NullCacheStore
        return NullCacheStore()

    backend = "file" if settings is None else settings.cache_backend

    if backend == "file":
        from noiengine.cache.file_store import DEFAULT_TTL, FileCacheStore
        if settings is None:
            return FileCacheStore(cache_root="uploads/noi/cache", ttl=DEFAULT_TTL)
        return FileCacheStore(cache_root=settings.cache_root, ttl=settings.cache_ttl)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
