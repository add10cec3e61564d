"""Legacy record → unified candidate translation.

Both mappers are total: they return a plain dict for any mapping, however
incomplete, and never mutate their input. Whether the result is a valid
project is the validator's business.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from projtrack import enums
from projtrack.enums import (
    Department,
    Importance,
    Leader,
    ProjectStatus,
    ProjectType,
    TransformRequirement,
)
from projtrack.models.legacy import PreparationStatus, Type2Status

PREPARATION_STATUS_MAP: dict[str, str] = {
    PreparationStatus.ACTIVE: ProjectStatus.EARLY_STAGE,
    PreparationStatus.COMPLETED: ProjectStatus.MARKET_PRODUCT,
    PreparationStatus.PAUSED: ProjectStatus.EARLY_STAGE,
}

TYPE2_STATUS_MAP: dict[str, str] = {
    Type2Status.INITIAL_ASSESSMENT: ProjectStatus.EARLY_STAGE,
    Type2Status.PROJECT_APPROVAL: ProjectStatus.PRECLINICAL,
    Type2Status.IMPLEMENTATION: ProjectStatus.CLINICAL_STAGE,
}

TYPE2_IMPORTANCE = frozenset(
    {Importance.VERY_IMPORTANT, Importance.IMPORTANT, Importance.NORMAL}
)

# Keys copied as-is from either legacy shape when present
SYSTEM_FIELDS = ("attachments", "createTime", "updateTime", "createdBy", "aiReport")


def map_internal_preparation(legacy: Mapping[str, Any]) -> dict[str, Any]:
    """Translate an internal-preparation record into a unified candidate."""
    candidate: dict[str, Any] = {
        "department": _department(legacy.get("department")),
        "name": legacy.get("name"),
        "projectType": str(ProjectType.INTERNAL_PREPARATION),
        "source": legacy.get("source"),
        # No importance concept in this legacy shape
        "importance": str(Importance.VERY_IMPORTANT),
        "status": _recode(legacy.get("status"), PREPARATION_STATUS_MAP),
        "leader": _leader(legacy.get("leader")) or str(Leader.TO_BE_DETERMINED),
        "composition": legacy.get("composition"),
        "function": legacy.get("function"),
        "specification": legacy.get("specification"),
        "duration": legacy.get("duration"),
        "recordNumber": legacy.get("recordNumber"),
        "patent": legacy.get("patent"),
    }
    candidate.update(_system_fields(legacy))
    return candidate


def map_other_project(legacy: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a type-2 project record into a unified candidate.

    The free-text ``transformMethod`` has no structured counterpart and is
    replaced by the ``to-be-determined`` requirement tag.
    """
    importance = legacy.get("importance")
    if not _is_tag(importance, TYPE2_IMPORTANCE):
        importance = str(Importance.NORMAL)
    candidate: dict[str, Any] = {
        "department": _department(legacy.get("department")),
        "name": legacy.get("name"),
        "projectType": str(ProjectType.OTHER),
        "source": legacy.get("source"),
        "importance": importance,
        "status": _recode(legacy.get("status"), TYPE2_STATUS_MAP),
        "leader": _leader(legacy.get("leader")),
        "startDate": legacy.get("startDate"),
        "indication": legacy.get("indication"),
        "followUpWeeks": legacy.get("followUpWeeks"),
        "transformRequirement": str(TransformRequirement.TO_BE_DETERMINED),
        "hospitalDoctor": legacy.get("hospitalPI"),
        "conclusion": legacy.get("projectConclusion"),
    }
    candidate.update(_system_fields(legacy))
    return candidate


def _is_tag(value: Any, allowed: Any) -> bool:
    return isinstance(value, str) and value in allowed


def _recode(status: Any, table: dict[str, str]) -> str:
    if _is_tag(status, table):
        return str(table[status])
    return str(ProjectStatus.EARLY_STAGE)


def _department(value: Any) -> Any:
    if value is None or value == "":
        return str(Department.DEPT_ONE)
    if isinstance(value, str):
        return enums.tag_for_label("department", value.strip()) or value
    return value


def _leader(value: Any) -> Any:
    """Leader tag for a legacy leader; legacy records often hold the display name."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        name = value.strip()
        if enums.is_valid("leader", name):
            return name
        return enums.tag_for_label("leader", name) or name
    return value


def _system_fields(legacy: Mapping[str, Any]) -> dict[str, Any]:
    copied: dict[str, Any] = {}
    for key in SYSTEM_FIELDS:
        if legacy.get(key) is not None:
            copied[key] = copy.deepcopy(legacy[key])
    return copied
