# src/rendering/engine.py
"""Render engine: resolve template → fingerprint → cache → map → merge → persist.

Usage:
    engine = RenderEngine.from_settings(settings)
    document = await engine.generate("64f1c2...", claim, "word-merge")

A cache hit short-circuits mapping and merging and hands back a fresh
copy of the cached artifact. Cache problems are logged and treated as
misses; only a missing template and disk errors fail a call.

Two concurrent misses for the same fingerprint both render and both
store (last write wins). Renders are idempotent for identical inputs,
so the only cost is duplicated work.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

from noiengine.cache.base_cache_store import BaseCacheStore
from noiengine.cache.fingerprint import compute_fingerprint
from noiengine.cache.models import CacheEntryMeta, Fingerprint
from noiengine.config.settings import Settings
from noiengine.core.errors import (
    CacheCorruptionError,
    RenderIOError,
    UnsupportedFormatError,
)
from noiengine.core.fields import TEMPLATE_FORMATS
from noiengine.core.models import ClaimData, FieldDictionary, GeneratedDocument, Template
from noiengine.logging.context import clear_context, set_render_context, set_step
from noiengine.mapping.field_mapper import CompanyProfile, coerce_claim, to_field_dictionary
from noiengine.mapping.sample_data import sample_fields
from noiengine.rendering.base_renderer import BaseRenderer
from noiengine.rendering.renderer_factory import default_renderers
from noiengine.storage import layout
from noiengine.storage.files import atomic_write_bytes
from noiengine.templates.registry import TemplateRegistry
from noiengine.templates.validator import detect_format

logger = logging.getLogger(__name__)


class RenderEngine:
    """Generates notice documents for both template formats."""

    def __init__(
        self,
        registry: TemplateRegistry,
        cache_store: BaseCacheStore,
        generated_root: Path | str,
        *,
        renderers: Mapping[str, BaseRenderer] | None = None,
        company: CompanyProfile | None = None,
        output_prefix: str = "NOI",
        today: Callable[[], date] = date.today,
    ) -> None:
        self._registry = registry
        self._cache = cache_store
        self._generated_root = Path(generated_root).expanduser()
        self._renderers = dict(renderers) if renderers is not None else default_renderers()
        self._company = company or CompanyProfile()
        self._prefix = output_prefix
        self._today = today

    @classmethod
    def from_settings(cls, settings: Settings) -> RenderEngine:
        """Wire registry, cache store and renderers from settings."""
        from noiengine.cache.cache_factory import create_cache_store

        return cls(
            registry=TemplateRegistry(settings.template_root),
            cache_store=create_cache_store(settings),
            generated_root=settings.generated_root,
            company=CompanyProfile.from_settings(settings),
            output_prefix=settings.output_prefix,
        )

    @property
    def registry(self) -> TemplateRegistry:
        return self._registry

    @property
    def cache(self) -> BaseCacheStore:
        return self._cache

    @property
    def generated_root(self) -> Path:
        return self._generated_root

    # --- Public API ---

    async def generate(
        self,
        entity_id: str,
        entity_data: ClaimData | Mapping[str, Any] | None,
        template_format: str,
    ) -> GeneratedDocument:
        """Produce a notice for one entity with the current template.

        Raises:
            TemplateNotFoundError: No template is installed for the format.
            RenderIOError: The template could not be read/rendered or the
                output could not be written.
            UnsupportedFormatError: Unknown template format.
        """
        entity_id = str(entity_id)
        renderer = self._renderer_for(template_format)
        set_render_context(entity_id, uuid.uuid4().hex[:12], template_format)
        try:
            set_step("resolve")
            template = await asyncio.to_thread(self._registry.resolve_current, template_format)

            set_step("cache")
            fingerprint = compute_fingerprint(entity_id, template)
            claim = coerce_claim(entity_data)
            cached = await self._from_cache(fingerprint, claim)
            if cached is not None:
                return cached

            set_step("map")
            fields = to_field_dictionary(claim, company=self._company, today=self._today())

            set_step("merge")
            destination = layout.output_path(
                self._generated_root, self._output_name(claim, renderer.extension)
            )
            await asyncio.to_thread(
                _render_and_write, renderer, template.path, fields, destination
            )

            set_step("persist")
            await self._store(fingerprint, destination, entity_id, template, fields)

            logger.info(
                "NOI document generated: %s", destination.name,
                extra={"data": {"fingerprint": fingerprint.value, "template": template.name}},
            )
            return GeneratedDocument(
                path=destination,
                file_name=destination.name,
                from_cache=False,
                fields=fields,
                format=template.format,
                fingerprint=fingerprint.value,
            )
        finally:
            clear_context()

    async def preview_with_sample_data(
        self,
        template_path: Path | str,
        overrides: Mapping[str, object] | None = None,
        template_format: str | None = None,
    ) -> GeneratedDocument:
        """Render any template with the built-in sample data. Never cached.

        Raises:
            UnsupportedFormatError: Format not given and not inferable.
            RenderIOError: Template unreadable or preview not writable.
        """
        path = Path(template_path)
        template_format = template_format or detect_format(path)
        if template_format is None:
            raise UnsupportedFormatError(f"Cannot infer template format of {path.name}")
        renderer = self._renderer_for(template_format)

        fields = sample_fields(dict(overrides or {}), today=self._today())
        stem = layout.safe_fragment(path.stem, "template")
        destination = (
            layout.previews_dir(self._registry.root, template_format)
            / f"preview-{stem}-{int(time.time() * 1000)}.{renderer.extension}"
        )
        await asyncio.to_thread(_render_and_write, renderer, path, fields, destination)
        logger.info("Template preview generated: %s", destination.name)
        return GeneratedDocument(
            path=destination,
            file_name=destination.name,
            from_cache=False,
            fields=fields,
            format=template_format,
        )

    async def purge_cache(self) -> int:
        """Remove expired cache entries."""
        return await self._cache.purge_expired()

    # --- Internals ---

    def _renderer_for(self, template_format: str) -> BaseRenderer:
        try:
            return self._renderers[template_format]
        except KeyError:
            raise UnsupportedFormatError(
                f"Unsupported template format: {template_format!r} "
                f"(expected one of {', '.join(TEMPLATE_FORMATS)})"
            ) from None

    async def _from_cache(
        self, fingerprint: Fingerprint, claim: ClaimData
    ) -> GeneratedDocument | None:
        try:
            entry = await self._cache.lookup(fingerprint)
            if entry is None:
                logger.debug("Cache miss for %s", fingerprint.value[:12])
                return None
            destination = layout.output_path(
                self._generated_root,
                self._output_name(claim, entry.artifact_path.suffix.lstrip("."), cached=True),
            )
            document = await self._cache.materialize(entry, destination)
        except CacheCorruptionError as exc:
            logger.warning("Discarding unusable cache entry: %s", exc)
            await self._cache.delete(fingerprint)
            return None
        except OSError as exc:
            logger.warning("Cache unavailable, rendering fresh: %s", exc)
            return None

        logger.info("Cache hit for %s", fingerprint.value[:12])
        return document

    async def _store(
        self,
        fingerprint: Fingerprint,
        artifact: Path,
        entity_id: str,
        template: Template,
        fields: FieldDictionary,
    ) -> None:
        meta = CacheEntryMeta(
            fingerprint=fingerprint.value,
            format=fingerprint.format,
            entity_id=entity_id,
            template_path=str(template.path),
            template_last_modified_ms=template.last_modified_epoch_millis,
            fields=fields,
        )
        try:
            await self._cache.store(fingerprint, artifact, meta)
        except OSError as exc:
            logger.warning("Failed to cache %s: %s", artifact.name, exc)

    def _output_name(self, claim: ClaimData, extension: str, *, cached: bool = False) -> str:
        label = "Cached" if cached else layout.safe_fragment(
            (claim.claim_number or "").replace("-", ""), "claim"
        )
        stamp = int(time.time() * 1000)
        return f"{self._prefix}-{label}-{stamp}-{uuid.uuid4().hex[:6]}.{extension}"


def _render_and_write(
    renderer: BaseRenderer,
    template_path: Path,
    fields: FieldDictionary,
    destination: Path,
) -> Path:
    """Render and atomically publish the output; partial files are removed on failure."""
    try:
        data = renderer.render(template_path, fields)
    except ImportError:
        raise
    except OSError as exc:
        logger.error("Cannot read template %s: %s", template_path, exc)
        raise RenderIOError(f"Failed to read template: {exc}", template_path) from exc
    except Exception as exc:
        logger.error("Template %s could not be merged: %s", template_path, exc)
        raise RenderIOError(f"Failed to render template: {exc}", template_path) from exc

    try:
        return atomic_write_bytes(destination, data)
    except OSError as exc:
        logger.error("Cannot write output %s: %s", destination, exc)
        raise RenderIOError(f"Failed to write output: {exc}", destination) from exc
