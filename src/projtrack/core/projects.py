"""Project repository: schema-layer entry point for unified projects."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from projtrack.core.validator import Violation, check, violations_from_error
from projtrack.events.bus import EventBus
from projtrack.events.types import EventType
from projtrack.models.project import (
    UNIFIED_COLLECTION,
    AIReport,
    GeneralProject,
    InternalPreparationProject,
    parse_project,
    utc_now,
)
from projtrack.storage.base import DocumentStore

logger = logging.getLogger(__name__)

Project = InternalPreparationProject | GeneralProject

# Set once at creation; edits may not change them
_IMMUTABLE_FIELDS = ("id", "createdBy", "createTime")


class ProjectValidationError(ValueError):
    """A project record breaks the unified schema's invariants."""

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = violations
        super().__init__("; ".join(v.message for v in violations))


class ProjectRepository:
    """Creates, edits and removes unified project records."""

    def __init__(self, store: DocumentStore, event_bus: EventBus | None = None) -> None:
        """Initialize ProjectRepository.

        Args:
            store: Document store holding the unified collection
            event_bus: Optional event bus for emitting events
        """
        self._store = store
        self._event_bus = event_bus or EventBus()

    async def create(self, data: dict[str, Any], *, created_by: str) -> Project:
        """Validate and insert a new project.

        Args:
            data: Project fields keyed by stored (camelCase) names
            created_by: Identity of the creating user

        Returns:
            The stored project, with its assigned id

        Raises:
            ProjectValidationError: If the record breaks a schema invariant
        """
        record = {k: v for k, v in data.items() if k not in _IMMUTABLE_FIELDS}
        record["createdBy"] = created_by
        project = _build(record)
        return await self.insert(project)

    async def insert(self, project: Project) -> Project:
        """Persist an already validated project as a new record.

        ``createTime`` is kept when present; ``updateTime`` is always reset.
        """
        data = project.to_storage()
        data.pop("id", None)
        data["updateTime"] = utc_now()
        stored = await self._store.insert_document(UNIFIED_COLLECTION, data)
        created = parse_project(stored)
        logger.debug("Created project: %s (id=%s)", created.name, created.id)

        await self._event_bus.emit(
            EventType.PROJECT_CREATED,
            {"project_id": created.id, "name": created.name, "project_type": created.project_type},
        )
        return created

    async def get(self, project_id: str) -> Project | None:
        """Get a project by ID.

        Returns:
            Project instance if found, None otherwise
        """
        data = await self._store.get_document(UNIFIED_COLLECTION, project_id)
        if not data:
            return None
        return parse_project(data)

    async def update(self, project_id: str, updates: dict[str, Any]) -> Project | None:
        """Apply field edits and re-check the whole record.

        Args:
            project_id: Project identifier
            updates: Changed fields keyed by stored (camelCase) names

        Returns:
            Updated project if found, None otherwise

        Raises:
            ValueError: If an immutable field would change
            ProjectValidationError: If the edited record breaks an invariant
        """
        current = await self._store.get_document(UNIFIED_COLLECTION, project_id)
        if not current:
            return None

        for key in _IMMUTABLE_FIELDS:
            if key in updates and updates[key] != current.get(key):
                raise ValueError(f"{key} cannot be changed after creation")

        merged = {**current, **updates, "updateTime": utc_now()}
        project = _build(merged)
        stored = await self._store.replace_document(
            UNIFIED_COLLECTION, project_id, project.to_storage()
        )
        if stored is None:
            return None

        updated = parse_project(stored)
        logger.info("Updated project: %s (id=%s)", updated.name, project_id)
        await self._event_bus.emit(
            EventType.PROJECT_UPDATED,
            {"project_id": project_id, "fields": sorted(updates)},
        )
        return updated

    async def set_ai_report(
        self, project_id: str, report: AIReport | dict[str, Any]
    ) -> Project | None:
        """Store the report sub-record written by the report generator.

        Status transitions are not checked; the generator owns them.
        """
        if isinstance(report, dict):
            report = AIReport.model_validate(report)
        current = await self._store.get_document(UNIFIED_COLLECTION, project_id)
        if not current:
            return None

        current["aiReport"] = report.model_dump(by_alias=True, mode="json")
        current["updateTime"] = utc_now()
        stored = await self._store.replace_document(UNIFIED_COLLECTION, project_id, current)
        if stored is None:
            return None

        await self._event_bus.emit(
            EventType.AI_REPORT_UPDATED,
            {"project_id": project_id, "status": report.status},
        )
        return parse_project(stored)

    async def delete(self, project_id: str) -> bool:
        """Delete a project. Referenced attachments are left to their owner."""
        deleted = await self._store.delete_document(UNIFIED_COLLECTION, project_id)
        if deleted:
            logger.info("Deleted project: id=%s", project_id)
            await self._event_bus.emit(EventType.PROJECT_DELETED, {"project_id": project_id})
        return deleted

    async def list_projects(
        self,
        *,
        project_type: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Project]:
        """List projects in insertion order, optionally of one type."""
        filters = {"projectType": project_type} if project_type else None
        rows = await self._store.find_documents(
            UNIFIED_COLLECTION, filters=filters, limit=limit, offset=offset
        )
        return [parse_project(row) for row in rows]

    async def count(self, *, project_type: str | None = None) -> int:
        filters = {"projectType": project_type} if project_type else None
        return await self._store.count_documents(UNIFIED_COLLECTION, filters=filters)

    async def clear(self) -> int:
        """Delete every unified project. Returns the number removed."""
        return await self._store.delete_all(UNIFIED_COLLECTION)


def _build(record: dict[str, Any]) -> Project:
    violations = check(record, require_follow_up=False)
    if violations:
        raise ProjectValidationError(violations)
    try:
        return parse_project(record)
    except ValidationError as e:
        raise ProjectValidationError(violations_from_error(e)) from e
