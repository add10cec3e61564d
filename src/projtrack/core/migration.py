"""Migration orchestrator: legacy collections → unified collection.

One run walks ``not-started → connected → backed-up →
migrating-internal-preparation → migrating-other → summarized → closed``.
Connection and backup failures are fatal and move the run to ``failed``;
a record that cannot be mapped, validated or stored is counted and
skipped, and the batch carries on.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from projtrack.config import MigrationConfig
from projtrack.core.mapper import map_internal_preparation, map_other_project
from projtrack.core.projects import ProjectRepository
from projtrack.core.validator import Violation, check, violations_from_error
from projtrack.events.bus import EventBus
from projtrack.events.types import EventType
from projtrack.log import SUCCESS
from projtrack.models.legacy import INTERNAL_PREPARATION_COLLECTION, TYPE2_COLLECTION
from projtrack.models.migration import (
    BACKUP_COLLECTION,
    BackupSnapshot,
    LegacySource,
    MigrationResult,
    MigrationState,
    RecordFailure,
    SourceResult,
)
from projtrack.models.project import UNIFIED_COLLECTION, parse_project
from projtrack.storage.base import DocumentStore

logger = logging.getLogger(__name__)

Mapper = Callable[[Mapping[str, Any]], dict[str, Any]]

_SOURCES: dict[LegacySource, tuple[str, Mapper, MigrationState]] = {
    LegacySource.INTERNAL_PREPARATION: (
        INTERNAL_PREPARATION_COLLECTION,
        map_internal_preparation,
        MigrationState.MIGRATING_INTERNAL_PREPARATION,
    ),
    LegacySource.OTHER: (
        TYPE2_COLLECTION,
        map_other_project,
        MigrationState.MIGRATING_OTHER,
    ),
}


class MigrationError(Exception):
    """A fatal error that aborted the migration run."""


class MigrationConnectionError(MigrationError):
    """The document store could not be opened."""


class BackupError(MigrationError):
    """The legacy collections could not be backed up."""


class MigrationOrchestrator:
    """Runs one migration over an exclusively owned store connection."""

    def __init__(
        self,
        store: DocumentStore,
        config: MigrationConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._store = store
        self._config = config or MigrationConfig()
        self._event_bus = event_bus or EventBus()
        self._projects = ProjectRepository(store, self._event_bus)
        self.state = MigrationState.NOT_STARTED
        self.snapshot: BackupSnapshot | None = None

    @property
    def config(self) -> MigrationConfig:
        return self._config

    async def connect(self) -> None:
        """Open the store.

        Raises:
            MigrationConnectionError: If the store cannot be opened
        """
        try:
            await self._store.initialize()
        except Exception as e:
            self._log(logging.ERROR, "Database connection failed: %s", e)
            raise MigrationConnectionError(f"Could not connect to the database: {e}") from e
        await self._set_state(MigrationState.CONNECTED)
        self._log(logging.INFO, "Database connection established")

    async def backup(self) -> BackupSnapshot:
        """Read both legacy collections fully and keep them as a snapshot.

        The snapshot is written to the backup collection unless the run is
        a dry run or ``persist_backup`` is off. Only the newest
        ``keep_backups`` snapshots are kept.

        Raises:
            BackupError: If reading the legacy collections or writing the
                snapshot fails
        """
        self._log(logging.INFO, "Creating backup of legacy collections...")
        persist = self._config.persist_backup and not self._config.dry_run
        try:
            snapshot = BackupSnapshot(
                internal_preparations=await self._store.find_documents(
                    INTERNAL_PREPARATION_COLLECTION
                ),
                type2_projects=await self._store.find_documents(TYPE2_COLLECTION),
            )
            if persist:
                await self._store.insert_document(BACKUP_COLLECTION, snapshot.to_storage())
                await self._prune_backups()
        except Exception as e:
            self._log(logging.ERROR, "Backup failed: %s", e)
            raise BackupError(f"Backup failed: {e}") from e

        self.snapshot = snapshot
        await self._set_state(MigrationState.BACKED_UP)
        self._log(
            SUCCESS,
            "Backup complete: %d internal preparation(s), %d type-2 project(s)%s",
            len(snapshot.internal_preparations),
            len(snapshot.type2_projects),
            f" (snapshot {snapshot.id})" if persist else " (in memory only)",
        )
        await self._event_bus.emit(
            EventType.BACKUP_CREATED,
            {
                "snapshot_id": snapshot.id,
                "internal_preparations": len(snapshot.internal_preparations),
                "type2_projects": len(snapshot.type2_projects),
                "persisted": persist,
            },
        )
        return snapshot

    async def migrate_source(
        self, source: LegacySource, mapper: Mapper | None = None
    ) -> SourceResult:
        """Map, validate and persist every record of one legacy collection.

        Records are read ``batch_size`` at a time and handled one by one.
        """
        collection, default_mapper, state = _SOURCES[source]
        mapper = mapper or default_mapper
        await self._set_state(state)

        result = SourceResult(source=source)
        total = await self._store.count_documents(collection)
        self._log(logging.INFO, "Migrating %d %s record(s)...", total, source)
        if total == 0:
            self._log(logging.WARNING, "No %s records to migrate", source)

        offset = 0
        while True:
            page = await self._store.find_documents(
                collection, limit=self._config.batch_size, offset=offset
            )
            if not page:
                break
            for position, document in enumerate(page, start=offset):
                await self._migrate_record(source, document, mapper, result, position)
            offset += len(page)

        self._log(
            logging.INFO,
            "Finished %s: %d migrated, %d failed",
            source,
            result.success,
            result.failed,
        )
        await self._event_bus.emit(
            EventType.SOURCE_COMPLETED,
            {"source": str(source), "success": result.success, "failed": result.failed},
        )
        return result

    async def run(self) -> MigrationResult:
        """Execute the full migration and return its summary.

        The store is closed whatever happens.

        Raises:
            MigrationError: If connecting, backing up or reading a legacy
                collection fails
        """
        started = time.perf_counter()
        self._log(
            logging.INFO,
            "Starting migration (backup=%s, dry_run=%s, batch_size=%d)",
            self._config.backup_enabled,
            self._config.dry_run,
            self._config.batch_size,
        )
        await self._event_bus.emit(
            EventType.MIGRATION_STARTED,
            {"dry_run": self._config.dry_run, "backup_enabled": self._config.backup_enabled},
        )

        try:
            await self.connect()

            existing = await self._store.count_documents(UNIFIED_COLLECTION)
            if existing:
                self._log(
                    logging.WARNING,
                    "Unified collection already holds %d record(s); "
                    "continuing may create duplicates",
                    existing,
                )

            if self._config.backup_enabled:
                await self.backup()
            else:
                self._log(logging.WARNING, "Backup disabled, skipping backup step")

            sources = [
                await self.migrate_source(LegacySource.INTERNAL_PREPARATION),
                await self.migrate_source(LegacySource.OTHER),
            ]

            result = MigrationResult(
                success=sum(s.success for s in sources),
                failed=sum(s.failed for s in sources),
                elapsed_seconds=round(time.perf_counter() - started, 3),
                dry_run=self._config.dry_run,
                sources=sources,
                backup_id=self.snapshot.id if self.snapshot else None,
                backup_records=self.snapshot.total_records if self.snapshot else 0,
            )
            await self._set_state(MigrationState.SUMMARIZED)
            self._summarize(result)
            await self._event_bus.emit(
                EventType.MIGRATION_COMPLETED,
                {"success": result.success, "failed": result.failed},
            )
            return result
        except Exception as e:
            await self._set_state(MigrationState.FAILED)
            self._log(logging.ERROR, "Migration aborted: %s", e)
            await self._event_bus.emit(EventType.MIGRATION_FAILED, {"error": str(e)})
            if isinstance(e, MigrationError):
                raise
            raise MigrationError(f"Migration aborted: {e}") from e
        finally:
            await self.close()

    async def close(self) -> None:
        """Release the store connection; ``failed`` stays ``failed``."""
        try:
            await self._store.close()
        except Exception as e:
            logger.warning("Error while closing database connection: %s", e)
        if self.state != MigrationState.FAILED:
            await self._set_state(MigrationState.CLOSED)
        self._log(logging.INFO, "Database connection closed")

    # --- Internals ---

    async def _migrate_record(
        self,
        source: LegacySource,
        document: dict[str, Any],
        mapper: Mapper,
        result: SourceResult,
        position: int,
    ) -> None:
        source_id = str(document.get("id") or document.get("_id") or f"{source}#{position}")
        name = document.get("name") if isinstance(document.get("name"), str) else None
        result.total += 1

        try:
            candidate = mapper(document)
            violations = check(candidate, follow_up_field=self._config.follow_up_field)
            if violations:
                await self._record_failure(result, source_id, name, violations)
                return
            project = parse_project(candidate)
            if not self._config.dry_run:
                project = await self._projects.insert(project)
        except ValidationError as e:
            await self._record_failure(result, source_id, name, violations_from_error(e))
            return
        except Exception as e:
            # Any single-record error is tallied; the batch continues
            reason = f"{type(e).__name__}: {e}"
            await self._record_failure(result, source_id, name, [Violation("", reason)])
            return

        result.success += 1
        self._log(SUCCESS, "Migrated %s record %s: %s", source, source_id, project.name)
        await self._event_bus.emit(
            EventType.RECORD_MIGRATED,
            {
                "source": str(source),
                "source_id": source_id,
                "project_id": project.id,
                "dry_run": self._config.dry_run,
            },
        )

    async def _prune_backups(self) -> None:
        stale = await self._store.find_documents(
            BACKUP_COLLECTION, newest_first=True, offset=self._config.keep_backups
        )
        for document in stale:
            await self._store.delete_document(BACKUP_COLLECTION, document["id"])
        if stale:
            self._log(logging.INFO, "Pruned %d old backup snapshot(s)", len(stale))

    async def _record_failure(
        self,
        result: SourceResult,
        source_id: str,
        name: str | None,
        violations: list[Violation],
    ) -> None:
        failure = RecordFailure(
            source=result.source,
            source_id=source_id,
            name=name,
            reason="; ".join(v.message for v in violations),
            violated_field=violations[0].field or None if violations else None,
        )
        result.failed += 1
        result.failures.append(failure)
        self._log(
            logging.ERROR,
            "Failed to migrate %s record %s (%s): %s",
            result.source,
            source_id,
            name or "unnamed",
            failure.reason,
        )
        await self._event_bus.emit(EventType.RECORD_FAILED, failure.model_dump(mode="json"))

    def _summarize(self, result: MigrationResult) -> None:
        self._log(logging.INFO, "Migration summary:")
        self._log(logging.INFO, "  migrated: %d", result.success)
        self._log(logging.INFO, "  failed:   %d", result.failed)
        self._log(logging.INFO, "  elapsed:  %.2fs", result.elapsed_seconds)
        if result.dry_run:
            self._log(logging.WARNING, "Dry run: no data was written")
        else:
            self._log(SUCCESS, "Migration complete")

    async def _set_state(self, state: MigrationState) -> None:
        previous, self.state = self.state, state
        logger.debug("Migration state: %s -> %s", previous, state)
        await self._event_bus.emit(
            EventType.MIGRATION_STATE_CHANGED,
            {"from": str(previous), "to": str(state)},
        )

    def _log(self, level: int, msg: str, *args: Any) -> None:
        if self._config.log_enabled:
            logger.log(level, msg, *args)
