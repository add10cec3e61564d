"""Migration run records: backup snapshot, per-record failures, summaries."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from projtrack.models.project import new_id, utc_now

BACKUP_COLLECTION = "migrationbackups"


class MigrationState(StrEnum):
    NOT_STARTED = "not-started"
    CONNECTED = "connected"
    BACKED_UP = "backed-up"
    MIGRATING_INTERNAL_PREPARATION = "migrating-internal-preparation"
    MIGRATING_OTHER = "migrating-other"
    SUMMARIZED = "summarized"
    CLOSED = "closed"
    FAILED = "failed"


class LegacySource(StrEnum):
    INTERNAL_PREPARATION = "internal-preparation"
    OTHER = "other"


class BackupSnapshot(BaseModel):
    """Full copy of both legacy collections taken before any unified write."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_id)
    timestamp: str = Field(default_factory=utc_now)
    internal_preparations: list[dict[str, Any]] = Field(default_factory=list)
    type2_projects: list[dict[str, Any]] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_records(self) -> int:
        return len(self.internal_preparations) + len(self.type2_projects)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_storage(cls, data: dict[str, Any]) -> BackupSnapshot:
        return cls.model_validate(data)


class RecordFailure(BaseModel):
    """Why one legacy record did not make it into the unified collection."""

    source: LegacySource
    source_id: str
    name: str | None = None
    reason: str
    violated_field: str | None = None


class SourceResult(BaseModel):
    source: LegacySource
    total: int = 0
    success: int = 0
    failed: int = 0
    failures: list[RecordFailure] = Field(default_factory=list)


class MigrationResult(BaseModel):
    success: int
    failed: int
    elapsed_seconds: float
    dry_run: bool
    sources: list[SourceResult] = Field(default_factory=list)
    backup_id: str | None = None
    backup_records: int = 0

    @property
    def failures(self) -> list[RecordFailure]:
        return [failure for result in self.sources for failure in result.failures]


class RollbackResult(BaseModel):
    deleted: int
    snapshot_id: str | None = None
    restored: dict[str, int] = Field(default_factory=dict)
