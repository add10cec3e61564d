"""Migration pipeline and project repository."""

from projtrack.core.mapper import map_internal_preparation, map_other_project
from projtrack.core.migration import (
    BackupError,
    MigrationConnectionError,
    MigrationError,
    MigrationOrchestrator,
)
from projtrack.core.projects import ProjectRepository, ProjectValidationError
from projtrack.core.rollback import latest_snapshot, rollback
from projtrack.core.validator import Violation, check, validate

__all__ = [
    "BackupError",
    "MigrationConnectionError",
    "MigrationError",
    "MigrationOrchestrator",
    "ProjectRepository",
    "ProjectValidationError",
    "Violation",
    "check",
    "latest_snapshot",
    "map_internal_preparation",
    "map_other_project",
    "rollback",
    "validate",
]
