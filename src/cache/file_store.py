# src/cache/file_store.py
"""File-based render cache (default CACHE_BACKEND=file).

Layout under CACHE_ROOT:
    {fingerprint}.{ext}    the rendered artifact (immutable once written)
    {fingerprint}.json     sidecar with the field dictionary used

An entry's age is the artifact's modification time. Entries are
replaced whole via temp-file rename, never edited in place, so
concurrent readers never see a torn file. Expired entries are removed
lazily on lookup, or in bulk by purge_expired().
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from noiengine.cache.base_cache_store import BaseCacheStore
from noiengine.cache.models import CacheEntry, CacheEntryMeta, Fingerprint
from noiengine.core.errors import CacheCorruptionError
from noiengine.core.fields import FORMAT_EXTENSIONS, extension_for
from noiengine.core.models import GeneratedDocument
from noiengine.storage.files import atomic_copy, atomic_write_text, remove_quietly

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileCacheStore(BaseCacheStore):
    """Fingerprint-keyed artifact cache on the local filesystem."""

    def __init__(
        self,
        cache_root: Path | str,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._ttl = ttl
        self._clock = clock

    @property
    def root(self) -> Path:
        return self._root

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def lookup(self, fingerprint: Fingerprint) -> CacheEntry | None:
        """Return the live entry, deleting it first if it has expired."""
        return await asyncio.to_thread(self._lookup, fingerprint)

    async def store(
        self,
        fingerprint: Fingerprint,
        source_artifact: Path,
        meta: CacheEntryMeta | None = None,
    ) -> CacheEntry:
        """Copy ``source_artifact`` into the cache under ``fingerprint``."""
        meta = meta or CacheEntryMeta(
            fingerprint=fingerprint.value, format=fingerprint.format
        )
        return await asyncio.to_thread(self._store, fingerprint, Path(source_artifact), meta)

    async def materialize(self, entry: CacheEntry, destination: Path) -> GeneratedDocument:
        """Copy the cached artifact to ``destination``; never hand out the cache file."""
        destination = Path(destination)
        try:
            await asyncio.to_thread(_copy_artifact, entry.artifact_path, destination)
        except OSError as e:
            raise CacheCorruptionError(
                f"Failed to copy cached artifact {entry.artifact_path.name}: {e}"
            ) from e

        logger.info("Using cached document: %s -> %s", entry.artifact_path.name, destination)
        return GeneratedDocument(
            path=destination,
            file_name=destination.name,
            from_cache=True,
            fields=dict(entry.fields),
            format=entry.format,
            fingerprint=entry.fingerprint.value,
        )

    async def delete(self, fingerprint: Fingerprint) -> None:
        await asyncio.to_thread(
            remove_quietly, self._artifact_path(fingerprint), self._meta_path(fingerprint)
        )

    async def purge_expired(self) -> int:
        """Remove every artifact older than the TTL (and its sidecar).

        Sidecars left without an artifact by an interrupted store are
        removed as well but not counted.
        """
        removed = await asyncio.to_thread(self._purge_expired)
        if removed:
            logger.info("Purged %d expired cache entr%s", removed, "y" if removed == 1 else "ies")
        return removed

    def _lookup(self, fingerprint: Fingerprint) -> CacheEntry | None:
        artifact = self._artifact_path(fingerprint)
        try:
            stat = artifact.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot stat cache entry %s: %s", artifact.name, e)
            return None

        entry = CacheEntry(
            fingerprint=fingerprint,
            artifact_path=artifact,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            format=fingerprint.format,
        )
        if not entry.is_valid(self._ttl, self._clock()):
            logger.info("Cache entry %s expired; removing", artifact.name)
            remove_quietly(artifact, self._meta_path(fingerprint))
            return None

        meta = self._read_meta(fingerprint)
        if meta is not None:
            entry.fields = dict(meta.fields)
        return entry

    def _store(
        self, fingerprint: Fingerprint, source_artifact: Path, meta: CacheEntryMeta
    ) -> CacheEntry:
        artifact = self._artifact_path(fingerprint)
        # A sidecar never exists without its artifact.
        atomic_copy(source_artifact, artifact)
        atomic_write_text(self._meta_path(fingerprint), meta.model_dump_json(indent=2))
        logger.debug("Stored cache entry %s", artifact.name)

        return CacheEntry(
            fingerprint=fingerprint,
            artifact_path=artifact,
            created_at=datetime.fromtimestamp(artifact.stat().st_mtime, tz=timezone.utc),
            format=fingerprint.format,
            fields=dict(meta.fields),
        )

    def _purge_expired(self) -> int:
        now = self._clock()
        removed = 0
        for template_format, ext in FORMAT_EXTENSIONS.items():
            for artifact in self._root.glob(f"*.{ext}"):
                if artifact.name.startswith("."):
                    continue
                try:
                    mtime = artifact.stat().st_mtime
                except OSError:
                    continue
                created_at = datetime.fromtimestamp(mtime, tz=timezone.utc)
                if now - created_at < self._ttl:
                    continue
                fingerprint = Fingerprint(value=artifact.stem, format=template_format)
                remove_quietly(artifact, self._meta_path(fingerprint))
                removed += 1

        for sidecar in self._root.glob("*.json"):
            if sidecar.name.startswith("."):
                continue
            if not any(
                sidecar.with_suffix(f".{ext}").exists() for ext in FORMAT_EXTENSIONS.values()
            ):
                logger.debug("Removing orphaned cache sidecar %s", sidecar.name)
                remove_quietly(sidecar)
        return removed

    def _read_meta(self, fingerprint: Fingerprint) -> CacheEntryMeta | None:
        path = self._meta_path(fingerprint)
        if not path.is_file():
            return None
        try:
            return CacheEntryMeta.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Failed to read cache sidecar %s: %s", path.name, e)
            return None

    def _artifact_path(self, fingerprint: Fingerprint) -> Path:
        return self._root / f"{_safe_key(fingerprint.value)}.{extension_for(fingerprint.format)}"

    def _meta_path(self, fingerprint: Fingerprint) -> Path:
        return self._root / f"{_safe_key(fingerprint.value)}.json"


def _safe_key(key: str) -> str:
    return key.replace("/", "_").replace("\\", "_")


def _copy_artifact(artifact: Path, destination: Path) -> None:
    if artifact.stat().st_size == 0:
        raise CacheCorruptionError(f"Cached artifact {artifact.name} is empty")
    atomic_copy(artifact, destination)
