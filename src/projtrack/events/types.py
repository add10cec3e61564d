"""Event type constants for projtrack."""

from enum import StrEnum


class EventType(StrEnum):
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_DELETED = "project.deleted"
    AI_REPORT_UPDATED = "project.ai_report_updated"

    MIGRATION_STARTED = "migration.started"
    MIGRATION_STATE_CHANGED = "migration.state_changed"
    BACKUP_CREATED = "migration.backup_created"
    RECORD_MIGRATED = "migration.record_migrated"
    RECORD_FAILED = "migration.record_failed"
    SOURCE_COMPLETED = "migration.source_completed"
    MIGRATION_COMPLETED = "migration.completed"
    MIGRATION_FAILED = "migration.failed"
    ROLLED_BACK = "migration.rolled_back"
