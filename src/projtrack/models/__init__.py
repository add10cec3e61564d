"""projtrack data models."""

from projtrack.models.migration import (
    BackupSnapshot,
    LegacySource,
    MigrationResult,
    MigrationState,
    RecordFailure,
    RollbackResult,
    SourceResult,
)
from projtrack.models.project import (
    AIReport,
    GeneralProject,
    InternalPreparationProject,
    UnifiedProject,
    parse_project,
)

__all__ = [
    "AIReport",
    "BackupSnapshot",
    "GeneralProject",
    "InternalPreparationProject",
    "LegacySource",
    "MigrationResult",
    "MigrationState",
    "RecordFailure",
    "RollbackResult",
    "SourceResult",
    "UnifiedProject",
    "parse_project",
]
