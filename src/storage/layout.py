# src/storage/layout.py
"""Filesystem layout for templates, generated notices and the render cache.

    {template_root}/{format}/current.{ext}
    {template_root}/{format}/current.json
    {template_root}/{format}/versions/{version}-{timestamp}.{ext}
    {template_root}/{format}/uploads/{uuid}.{ext}
    {template_root}/{format}/previews/preview-{stem}-{timestamp}.{ext}
    {generated_root}/{file_name}.{ext}
    {generated_root}/cache/{fingerprint}.{ext}
    {generated_root}/cache/{fingerprint}.json
"""

from __future__ import annotations

import re
from pathlib import Path

from noiengine.core.fields import extension_for

CURRENT_STEM = "current"
VERSIONS_DIR = "versions"
UPLOADS_DIR = "uploads"
PREVIEWS_DIR = "previews"
CACHE_DIR = "cache"

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_fragment(text: str, default: str = "x") -> str:
    """Reduce ``text`` to characters safe inside a file name."""
    cleaned = _UNSAFE_CHARS_RE.sub("", text).strip(".")
    return cleaned or default


# --- Templates ---

def format_dir(template_root: Path, template_format: str) -> Path:
    """Return templates/<format>/."""
    extension_for(template_format)
    return template_root / template_format


def current_template_path(template_root: Path, template_format: str) -> Path:
    ext = extension_for(template_format)
    return format_dir(template_root, template_format) / f"{CURRENT_STEM}.{ext}"


def current_manifest_path(template_root: Path, template_format: str) -> Path:
    return format_dir(template_root, template_format) / f"{CURRENT_STEM}.json"


def versions_dir(template_root: Path, template_format: str) -> Path:
    return format_dir(template_root, template_format) / VERSIONS_DIR


def version_path(
    template_root: Path, template_format: str, version: str, timestamp_ms: int
) -> Path:
    """Return the archive slot versions/<version>-<timestamp>.<ext>."""
    ext = extension_for(template_format)
    name = f"{safe_fragment(version, 'unversioned')}-{timestamp_ms}.{ext}"
    return versions_dir(template_root, template_format) / name


def parse_version_label(path: Path) -> str:
    """Recover the version label from a versions/ file name."""
    stem = path.stem
    label, sep, timestamp = stem.rpartition("-")
    if sep and timestamp.isdigit() and label:
        return label
    return stem


def uploads_dir(template_root: Path, template_format: str) -> Path:
    return format_dir(template_root, template_format) / UPLOADS_DIR


def previews_dir(template_root: Path, template_format: str) -> Path:
    return format_dir(template_root, template_format) / PREVIEWS_DIR


# --- Generated output ---

def output_path(generated_root: Path, file_name: str) -> Path:
    return generated_root / file_name


def cache_dir(generated_root: Path) -> Path:
    return generated_root / CACHE_DIR


def ensure_directories(template_root: Path, generated_root: Path, formats: tuple[str, ...]) -> None:
    """Create every standard directory for the given formats."""
    for template_format in formats:
        versions_dir(template_root, template_format).mkdir(parents=True, exist_ok=True)
    cache_dir(generated_root).mkdir(parents=True, exist_ok=True)
