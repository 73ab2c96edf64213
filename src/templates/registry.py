# src/templates/registry.py
"""Template registry: one current template per format plus archived versions.

Lifecycle of a template file:
    unregistered --promote()--> current --superseded by promote()--> archived

Archived versions are never overwritten or deleted here. The current
template is always installed with write-to-temp-then-rename, so
resolve_current() never observes a half-written file. The template file
and its current.json manifest change together under the registry lock,
which readers of the current slot also take.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from noiengine.core.errors import RenderIOError, TemplateNotFoundError
from noiengine.core.fields import extension_for
from noiengine.core.models import (
    CurrentTemplateManifest,
    PromotionResult,
    Template,
)
from noiengine.storage import layout
from noiengine.storage.files import atomic_copy, atomic_write_text
from noiengine.templates.validator import (
    TemplateStructureError,
    TemplateValidator,
    detect_format,
)

logger = logging.getLogger(__name__)

UNVERSIONED = "unversioned"


class TemplateRegistry:
    """Owns the current-template pointer and version history for each format."""

    def __init__(
        self,
        template_root: Path | str,
        validator: TemplateValidator | None = None,
    ) -> None:
        self._root = Path(template_root).expanduser()
        self._validator = validator or TemplateValidator()
        self._lock = threading.RLock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def validator(self) -> TemplateValidator:
        return self._validator

    # --- Queries ---

    def resolve_current(self, template_format: str) -> Template:
        """Return the current template for a format.

        When nothing is installed yet, the newest archived version is
        copied into the current slot and returned.

        Raises:
            TemplateNotFoundError: If no template of this format exists.
            RenderIOError: If the first-use copy cannot be written.
        """
        current = layout.current_template_path(self._root, template_format)
        with self._lock:
            if current.is_file():
                return self._describe(current, template_format, is_current=True)

            versions = self._archived(template_format)
            if not versions:
                raise TemplateNotFoundError(template_format)

            latest = versions[0]
            logger.info(
                "No current %s template; installing latest version %s",
                template_format, latest.path.name,
            )
            try:
                self._install(latest.path, template_format, latest.version)
            except OSError as exc:
                raise RenderIOError(
                    f"Failed to install {template_format} template: {exc}", current
                ) from exc
            return self._describe(current, template_format, is_current=True)

    def list_templates(self, template_format: str) -> list[Template]:
        """Current template (if any) followed by archived versions, newest first."""
        templates: list[Template] = []
        current = layout.current_template_path(self._root, template_format)
        with self._lock:
            if current.is_file():
                templates.append(
                    self._describe(current, template_format, is_current=True, with_fields=True)
                )
        templates.extend(self._archived(template_format, with_fields=True))
        return templates

    # --- Transitions ---

    def promote(
        self,
        candidate_path: Path | str,
        version: str,
        template_format: str | None = None,
    ) -> PromotionResult:
        """Validate a candidate and install it as the current template.

        On success the previous current template is first archived into
        versions/<old-version>-<timestamp>.<ext>. An invalid candidate
        leaves the registry untouched.

        Raises:
            RenderIOError: If archiving or installation fails on disk.
        """
        candidate = Path(candidate_path)
        validation = self._validator.validate(candidate, template_format)
        if not validation.success:
            message = validation.error or (
                "Template validation failed; missing fields: "
                + ", ".join(validation.missing_fields)
            )
            return PromotionResult(success=False, message=message, validation=validation)

        # validate() already rejected unrecognized suffixes
        template_format = template_format or detect_format(candidate)  # type: ignore[assignment]
        current = layout.current_template_path(self._root, template_format)

        archived: Template | None = None
        with self._lock:
            try:
                if current.is_file():
                    archived = self._archive_current(template_format)
                self._install(candidate, template_format, version)
            except OSError as exc:
                logger.error("Promotion of %s failed: %s", candidate, exc)
                raise RenderIOError(f"Failed to promote template: {exc}", candidate) from exc

            installed = self._describe(
                current, template_format, is_current=True, with_fields=True
            )
        logger.info(
            "Promoted %s as current %s template (version %s)",
            candidate.name, template_format, installed.version,
        )
        return PromotionResult(
            success=True,
            message=f"NOI template updated to version {version}",
            validation=validation,
            template=installed,
            archived=archived,
        )

    # --- Internals ---

    def _archive_current(self, template_format: str) -> Template:
        current = layout.current_template_path(self._root, template_format)
        manifest = self._read_manifest(template_format)
        label = manifest.version if manifest else UNVERSIONED

        timestamp_ms = int(time.time() * 1000)
        slot = layout.version_path(self._root, template_format, label, timestamp_ms)
        while slot.exists():
            timestamp_ms += 1
            slot = layout.version_path(self._root, template_format, label, timestamp_ms)

        atomic_copy(current, slot)
        logger.info("Archived current %s template as %s", template_format, slot.name)
        return self._describe(slot, template_format, is_current=False, with_fields=True)

    def _install(self, source: Path, template_format: str, version: str) -> None:
        current = layout.current_template_path(self._root, template_format)
        atomic_copy(source, current)
        manifest = CurrentTemplateManifest(
            version=version,
            installed_at=datetime.now(timezone.utc),
            source_name=source.name,
        )
        atomic_write_text(
            layout.current_manifest_path(self._root, template_format),
            manifest.model_dump_json(indent=2),
        )

    def _read_manifest(self, template_format: str) -> CurrentTemplateManifest | None:
        path = layout.current_manifest_path(self._root, template_format)
        if not path.is_file():
            return None
        try:
            return CurrentTemplateManifest.model_validate_json(
                path.read_text(encoding="utf-8")
            )
        except (OSError, ValidationError) as exc:
            logger.warning("Ignoring unreadable template manifest %s: %s", path, exc)
            return None

    def _archived(self, template_format: str, with_fields: bool = False) -> list[Template]:
        directory = layout.versions_dir(self._root, template_format)
        if not directory.is_dir():
            return []
        ext = extension_for(template_format)
        templates = [
            self._describe(path, template_format, is_current=False, with_fields=with_fields)
            for path in directory.glob(f"*.{ext}")
            if path.is_file() and not path.name.startswith(".")
        ]
        templates.sort(key=lambda t: (t.last_modified, t.path.name), reverse=True)
        return templates

    def _describe(
        self,
        path: Path,
        template_format: str,
        *,
        is_current: bool,
        with_fields: bool = False,
    ) -> Template:
        stat = path.stat()
        if is_current:
            manifest = self._read_manifest(template_format)
            version = manifest.version if manifest else UNVERSIONED
        else:
            version = layout.parse_version_label(path)
        merge_fields: list[str] = []
        if with_fields:
            try:
                merge_fields = sorted(self._validator.scan_fields(path, template_format))
            except TemplateStructureError:
                logger.warning("Could not read merge fields of %s", path)
        return Template(
            path=path.resolve(),
            format=template_format,
            version=version,
            is_current=is_current,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            merge_fields=merge_fields,
        )


