# src/cache/models.py
"""Cache domain models: Fingerprint, CacheEntry, CacheEntryMeta."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from noiengine.core.fields import TemplateFormat
from noiengine.core.models import FieldDictionary


class Fingerprint(BaseModel):
    """Cache key derived from entity identity and exact template state."""

    model_config = ConfigDict(frozen=True)

    value: str
    format: TemplateFormat

    def __str__(self) -> str:
        return self.value


class CacheEntry(BaseModel):
    """A rendered artifact stored under its fingerprint."""

    fingerprint: Fingerprint
    artifact_path: Path
    created_at: datetime
    format: TemplateFormat
    fields: FieldDictionary = Field(default_factory=dict)

    def age(self, now: datetime) -> timedelta:
        return now - self.created_at

    def is_valid(self, ttl: timedelta, now: datetime) -> bool:
        """Valid only while age < TTL."""
        return self.age(now) < ttl


class CacheEntryMeta(BaseModel):
    """Sidecar JSON written next to a cached artifact."""

    fingerprint: str
    format: TemplateFormat
    entity_id: str | None = None
    template_path: str | None = None
    template_last_modified_ms: int | None = None
    fields: FieldDictionary = Field(default_factory=dict)
