# src/cache/fingerprint.py
"""Render fingerprints: the cache key for a (entity, template state) pair.

The fingerprint hashes the entity id, the template's absolute path and
its modification time in epoch milliseconds. Editing or replacing the
template changes its mtime and therefore every fingerprint derived from
it; rendered bytes are never hashed, so no render is needed to decide
whether one is needed.
"""

from __future__ import annotations

import hashlib
import json

from noiengine.cache.models import Fingerprint
from noiengine.core.models import Template


def fingerprint_material(entity_id: str, template: Template) -> bytes:
    """Canonical byte encoding of the fingerprint inputs."""
    return json.dumps(
        [str(entity_id), str(template.path), template.last_modified_epoch_millis],
        ensure_ascii=False,
        separators=(",", ":"),
    ).encode("utf-8")


def compute_fingerprint(entity_id: str, template: Template) -> Fingerprint:
    """SHA-256 fingerprint of (entity_id, template path, template mtime)."""
    digest = hashlib.sha256(fingerprint_material(entity_id, template)).hexdigest()
    return Fingerprint(value=digest, format=template.format)
