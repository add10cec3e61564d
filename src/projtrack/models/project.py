"""Unified project model: one variant per kind of project.

Stored documents use camelCase keys; attributes are snake_case. The
``projectType`` tag selects the variant, and each variant declares the
fields it requires, so the type-conditional rules live in the types
instead of in cross-field validators.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from projtrack import enums
from projtrack.enums import (
    AIReportStatus,
    Department,
    Importance,
    Leader,
    ProjectStatus,
    ProjectType,
)

UNIFIED_COLLECTION = "unifiedprojects"

GeneralProjectType = Literal[
    "ai-medical-research",
    "diagnostic-detection",
    "cell-therapy",
    "drug",
    "medical-device",
    "medical-material",
    "other",
]


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def parse_date(value: Any) -> date | None:
    """Coerce a stored date value to a ``date``.

    Accepts ``date``/``datetime`` objects and ISO-8601 date or datetime
    strings (a trailing ``Z`` is understood). Returns None for anything
    that is not a recognisable date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


class AIReport(_Document):
    """Externally generated report, tracked only by URL and status tag."""

    report_url: str | None = None
    status: AIReportStatus = AIReportStatus.IDLE
    first_generated_at: str | None = None
    last_generated_at: str | None = None


class _ProjectBase(_Document):
    id: str | None = None
    department: Department = Department.DEPT_ONE
    name: str = Field(min_length=1, max_length=200)
    source: str = Field(min_length=1, max_length=200)
    importance: Importance = Importance.VERY_IMPORTANT
    status: ProjectStatus
    leader: Leader = Leader.TO_BE_DETERMINED

    indication: str | None = Field(default=None, max_length=200)
    transform_requirement: str | None = None
    transform_progress: str | None = None
    hospital_doctor: str | None = None
    patent: str | None = None
    clinical_data: str | None = None
    market_size: str | None = None
    competitor_status: str | None = None
    conclusion: str | None = None

    # Internal-preparation details; never rejected on other types
    specification: str | None = None
    duration: str | None = None
    record_number: str | None = None

    follow_up_weeks: int | None = Field(default=None, gt=0)

    attachments: list[str] = Field(default_factory=list)
    create_time: str = Field(default_factory=utc_now)
    update_time: str = Field(default_factory=utc_now)
    created_by: str = Field(min_length=1)
    ai_report: AIReport = Field(default_factory=AIReport)

    @field_validator("attachments", mode="before")
    @classmethod
    def _stringify_attachments(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    @field_validator("created_by", mode="before")
    @classmethod
    def _stringify_created_by(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("create_time", "update_time", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value if value is not None else utc_now()

    def is_internal_preparation(self) -> bool:
        return self.project_type == ProjectType.INTERNAL_PREPARATION

    def can_generate_ai_report(self) -> bool:
        return self.is_internal_preparation()

    def display_status(self) -> str:
        return enums.label_for("status", self.status)

    def display_importance(self) -> str:
        return enums.label_for("importance", self.importance)

    def display_project_type(self) -> str:
        return enums.label_for("projectType", self.project_type)

    def to_storage(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, mode="json")
        if data.get("id") is None:
            data.pop("id", None)
        return data

    def to_response(self, *, detail: str = "summary") -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "projectType": self.project_type,
            "status": self.status,
            "importance": self.importance,
        }
        if detail != "summary":
            data.update(self.to_storage())
            data["statusLabel"] = self.display_status()
            data["importanceLabel"] = self.display_importance()
            data["projectTypeLabel"] = self.display_project_type()
        return data


class InternalPreparationProject(_ProjectBase):
    """Hospital internal preparation: composition and function are mandatory."""

    project_type: Literal["internal-preparation"]
    composition: str = Field(min_length=1)
    function: str = Field(min_length=1)
    start_date: date | None = None

    @field_validator("start_date", mode="before")
    @classmethod
    def _optional_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return parse_date(value) or value


class GeneralProject(_ProjectBase):
    """Any other project type: a start date is mandatory."""

    project_type: GeneralProjectType
    start_date: date
    composition: str | None = None
    function: str | None = None

    @field_validator("start_date", mode="before")
    @classmethod
    def _required_date(cls, value: Any) -> Any:
        return parse_date(value) or value


UnifiedProject = Annotated[
    InternalPreparationProject | GeneralProject,
    Field(discriminator="project_type"),
]

_adapter: TypeAdapter[InternalPreparationProject | GeneralProject] = TypeAdapter(UnifiedProject)


def parse_project(data: dict[str, Any]) -> InternalPreparationProject | GeneralProject:
    """Build the variant selected by ``data["projectType"]``.

    Raises:
        pydantic.ValidationError: On an unknown or missing project type, or
            when the variant's required fields are missing or invalid.
    """
    return _adapter.validate_python(data)
