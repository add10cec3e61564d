"""Record-level checks for unified project candidates.

Violations are collected, never raised, and the candidate is never
modified. The same checks back the migration's pre-persistence gate and
the repository's field edits.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from projtrack import enums
from projtrack.enums import ProjectType
from projtrack.models.project import parse_date

DEFAULT_FOLLOW_UP_FIELD = "followUpWeeks"

_FIELD_NAMES = {
    "name": "project name",
    "projectType": "project type",
    "source": "project source",
    "composition": "composition",
    "function": "function",
    "leader": "leader",
    "startDate": "start date",
}

# Enumerated fields checked only when a value is present
_OPTIONAL_ENUMS = ("department", "importance", "status", "leader", "transformRequirement")


@dataclass(frozen=True)
class Violation:
    field: str
    message: str

    def __str__(self) -> str:
        return self.message


def check(
    candidate: Mapping[str, Any],
    *,
    follow_up_field: str = DEFAULT_FOLLOW_UP_FIELD,
    require_follow_up: bool = True,
) -> list[Violation]:
    """Collect every rule ``candidate`` breaks, in a fixed order."""
    violations: list[Violation] = []

    for field in ("name", "projectType", "source"):
        if _blank(candidate.get(field)):
            violations.append(Violation(field, f"{_FIELD_NAMES[field]} is missing"))

    project_type = candidate.get("projectType")
    if not _blank(project_type) and not enums.is_valid("projectType", project_type):
        violations.append(Violation("projectType", f"unknown project type: {project_type!r}"))

    if project_type == ProjectType.INTERNAL_PREPARATION:
        for field in ("composition", "function"):
            if _blank(candidate.get(field)):
                violations.append(
                    Violation(field, f"internal preparation {_FIELD_NAMES[field]} is missing")
                )
    else:
        if _blank(candidate.get("leader")):
            violations.append(Violation("leader", "leader is missing"))
        start_date = candidate.get("startDate")
        if _blank(start_date):
            violations.append(Violation("startDate", "start date is missing"))
        elif parse_date(start_date) is None:
            violations.append(Violation("startDate", f"start date is not a date: {start_date!r}"))
        if require_follow_up and not _positive(candidate.get(follow_up_field)):
            violations.append(Violation(follow_up_field, "follow-up duration must be positive"))

    for field in _OPTIONAL_ENUMS:
        value = candidate.get(field)
        if not _blank(value) and not enums.is_valid(field, value):
            violations.append(Violation(field, f"invalid {field}: {value!r}"))

    ai_report = candidate.get("aiReport")
    if isinstance(ai_report, Mapping):
        status = ai_report.get("status")
        if status is not None and not enums.is_valid("aiReportStatus", status):
            violations.append(Violation("aiReport.status", f"invalid aiReport status: {status!r}"))

    return violations


def validate(
    candidate: Mapping[str, Any],
    *,
    follow_up_field: str = DEFAULT_FOLLOW_UP_FIELD,
    require_follow_up: bool = True,
) -> list[str]:
    """Violation messages for ``candidate``; an empty list means valid."""
    return [
        violation.message
        for violation in check(
            candidate, follow_up_field=follow_up_field, require_follow_up=require_follow_up
        )
    ]


def violations_from_error(error: ValidationError) -> list[Violation]:
    """Translate a pydantic schema error into violations keyed by stored field name."""
    violations = []
    for item in error.errors():
        loc = [str(part) for part in item["loc"]]
        # Tagged-union errors are prefixed with the variant tag
        if loc and enums.is_valid("projectType", loc[0]):
            loc = loc[1:]
        field = ".".join(loc) or "projectType"
        violations.append(Violation(field, f"{field}: {item['msg']}"))
    return violations


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _positive(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return value > 0
    if isinstance(value, str):
        try:
            return float(value) > 0
        except ValueError:
            return False
    return False
