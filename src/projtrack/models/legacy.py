"""Record shapes of the two legacy project collections.

Both collections are read-only inputs to the migration. The shapes are
``TypedDict``s rather than models because legacy documents are handled as
raw mappings: the mapper must cope with any of these keys being absent or
malformed.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, TypedDict

INTERNAL_PREPARATION_COLLECTION = "internalpreparationprojects"
TYPE2_COLLECTION = "type2projects"


class PreparationStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class Type2Status(StrEnum):
    INITIAL_ASSESSMENT = "initial-assessment"
    PROJECT_APPROVAL = "project-approval"
    IMPLEMENTATION = "implementation"


class LegacyInternalPreparation(TypedDict, total=False):
    id: str
    department: str
    source: str
    name: str
    composition: str
    function: str
    specification: str
    duration: str
    dosage: str
    recordNumber: str  # unique within this collection only
    patent: str
    remarks: str
    attachments: list[str]
    status: str
    createTime: str
    updateTime: str
    createdBy: str
    aiReport: dict[str, Any]


class LegacyType2Project(TypedDict, total=False):
    id: str
    department: str
    source: str
    name: str
    category: str
    leader: str
    startDate: str
    indication: str
    followUpWeeks: int
    importance: str
    status: str
    transformMethod: str
    hospitalPI: str
    projectConclusion: str
    attachments: list[str]
    createTime: str
    updateTime: str
    createdBy: str
    aiReport: dict[str, Any]
