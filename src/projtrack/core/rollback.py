"""Undo a migration: clear the unified collection, optionally restore legacy data."""

from __future__ import annotations

import logging
from typing import Any

from projtrack.events.bus import EventBus
from projtrack.events.types import EventType
from projtrack.models.legacy import INTERNAL_PREPARATION_COLLECTION, TYPE2_COLLECTION
from projtrack.models.migration import BACKUP_COLLECTION, BackupSnapshot, RollbackResult
from projtrack.models.project import UNIFIED_COLLECTION
from projtrack.storage.base import DocumentStore

logger = logging.getLogger(__name__)


async def latest_snapshot(store: DocumentStore) -> BackupSnapshot | None:
    """Most recently stored backup snapshot, if any."""
    rows = await store.find_documents(BACKUP_COLLECTION, limit=1, newest_first=True)
    if not rows:
        return None
    return BackupSnapshot.from_storage(rows[0])


async def rollback(
    store: DocumentStore,
    *,
    snapshot: BackupSnapshot | None = None,
    restore_latest: bool = False,
    event_bus: EventBus | None = None,
) -> RollbackResult:
    """Delete every unified project.

    With a snapshot (given, or the latest stored one when ``restore_latest``
    is set) both legacy collections are replaced by the snapshot's copies.
    Without one the legacy collections are left untouched.

    Args:
        store: An initialized document store
        snapshot: Backup to restore the legacy collections from
        restore_latest: Look up the newest stored backup when no snapshot is given
        event_bus: Optional event bus for emitting events

    Returns:
        Counts of deleted unified records and restored legacy records
    """
    deleted = await store.delete_all(UNIFIED_COLLECTION)
    logger.info("Deleted %d unified project(s)", deleted)

    if snapshot is None and restore_latest:
        snapshot = await latest_snapshot(store)
        if snapshot is None:
            logger.warning("No backup snapshot found; legacy collections left as they are")

    restored: dict[str, int] = {}
    if snapshot is not None:
        restored[INTERNAL_PREPARATION_COLLECTION] = await _restore(
            store, INTERNAL_PREPARATION_COLLECTION, snapshot.internal_preparations
        )
        restored[TYPE2_COLLECTION] = await _restore(
            store, TYPE2_COLLECTION, snapshot.type2_projects
        )
        logger.info(
            "Restored legacy collections from snapshot %s (%s)",
            snapshot.id,
            snapshot.timestamp,
        )

    result = RollbackResult(
        deleted=deleted,
        snapshot_id=snapshot.id if snapshot else None,
        restored=restored,
    )
    if event_bus:
        await event_bus.emit(EventType.ROLLED_BACK, result.model_dump())
    return result


async def _restore(store: DocumentStore, collection: str, documents: list[dict[str, Any]]) -> int:
    await store.delete_all(collection)
    for document in documents:
        await store.insert_document(collection, dict(document))
    return len(documents)
