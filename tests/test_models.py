"""Tests for the unified project model and migration records."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from projtrack.models import (
    BackupSnapshot,
    GeneralProject,
    InternalPreparationProject,
    LegacySource,
    MigrationResult,
    RecordFailure,
    SourceResult,
    parse_project,
)
from projtrack.models.project import parse_date


def _internal(**overrides):
    data = {
        "name": "舒肝和胃丸",
        "projectType": "internal-preparation",
        "source": "中医科",
        "status": "early-stage",
        "composition": "柴胡",
        "function": "疏肝",
        "createdBy": "user-1",
    }
    data.update(overrides)
    return data


def _general(**overrides):
    data = {
        "name": "AI辅助诊断系统",
        "projectType": "ai-medical-research",
        "source": "影像科",
        "status": "preclinical",
        "leader": "wangliyan",
        "startDate": "2024-03-01",
        "createdBy": "user-2",
    }
    data.update(overrides)
    return data


# --- Variant selection ---


def test_parse_internal_preparation():
    project = parse_project(_internal())
    assert isinstance(project, InternalPreparationProject)
    assert project.is_internal_preparation()
    assert project.can_generate_ai_report()
    assert project.start_date is None


def test_parse_general_project():
    project = parse_project(_general())
    assert isinstance(project, GeneralProject)
    assert not project.is_internal_preparation()
    assert not project.can_generate_ai_report()
    assert project.start_date == date(2024, 3, 1)


def test_defaults():
    project = parse_project(_internal())
    assert project.department == "transfer-investment-dept-1"
    assert project.importance == "very-important"
    assert project.leader == "to-be-determined"
    assert project.attachments == []
    assert project.ai_report.status == "idle"
    assert project.create_time
    assert project.update_time


@pytest.mark.parametrize("field", ["composition", "function"])
def test_internal_preparation_requires_field(field):
    with pytest.raises(ValidationError):
        parse_project(_internal(**{field: ""}))
    with pytest.raises(ValidationError):
        parse_project(_internal(**{field: "   "}))


def test_general_project_requires_start_date():
    data = _general()
    del data["startDate"]
    with pytest.raises(ValidationError):
        parse_project(data)


def test_general_project_rejects_bad_date():
    with pytest.raises(ValidationError):
        parse_project(_general(startDate="next spring"))


def test_general_project_ignores_empty_composition():
    project = parse_project(_general(composition="", function=""))
    assert project.composition == ""


def test_unknown_project_type():
    with pytest.raises(ValidationError):
        parse_project(_general(projectType="spaceship"))


def test_invalid_enum_tag():
    with pytest.raises(ValidationError):
        parse_project(_general(status="active"))


def test_name_length_limit():
    with pytest.raises(ValidationError):
        parse_project(_general(name="x" * 201))


def test_follow_up_weeks_must_be_positive():
    assert parse_project(_general(followUpWeeks=12)).follow_up_weeks == 12
    with pytest.raises(ValidationError):
        parse_project(_general(followUpWeeks=0))


def test_attachments_and_created_by_are_opaque_strings():
    project = parse_project(_internal(attachments=[1, "b"], createdBy=42))
    assert project.attachments == ["1", "b"]
    assert project.created_by == "42"


# --- Serialization ---


def test_to_storage_uses_camel_case():
    data = parse_project(_general(hospitalDoctor="张医生")).to_storage()
    assert data["projectType"] == "ai-medical-research"
    assert data["startDate"] == "2024-03-01"
    assert data["hospitalDoctor"] == "张医生"
    assert data["aiReport"]["status"] == "idle"
    assert "id" not in data


def test_storage_round_trip_keeps_variant():
    project = parse_project(_internal(id="abc"))
    again = parse_project(project.to_storage())
    assert again == project


def test_to_response_summary_and_full():
    project = parse_project(_general(id="p1"))
    summary = project.to_response()
    assert summary["id"] == "p1"
    assert summary["projectType"] == "ai-medical-research"
    assert set(summary) == {"id", "name", "projectType", "status", "importance"}
    assert "leader" not in summary

    full = project.to_response(detail="full")
    assert full["leader"] == "wangliyan"
    assert full["statusLabel"] == "临床前"
    assert full["projectTypeLabel"] == "AI医疗及系统研究"


def test_display_labels():
    project = parse_project(_internal(status="market-product", importance="normal"))
    assert project.display_status() == "上市产品"
    assert project.display_importance() == "一般"
    assert project.display_project_type() == "院内制剂"


# --- Dates ---


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-03-01", date(2024, 3, 1)),
        ("2024-03-01T10:00:00Z", date(2024, 3, 1)),
        ("2024-03-01T10:00:00+08:00", date(2024, 3, 1)),
        (date(2024, 3, 1), date(2024, 3, 1)),
        ("", None),
        ("not a date", None),
        (None, None),
        (20240301, None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected


# --- Migration records ---


def test_backup_snapshot_storage():
    snapshot = BackupSnapshot(
        internal_preparations=[{"id": "a"}, {"id": "b"}],
        type2_projects=[{"id": "c"}],
    )
    assert snapshot.total_records == 3
    stored = snapshot.to_storage()
    assert stored["internalPreparations"] == [{"id": "a"}, {"id": "b"}]
    assert stored["type2Projects"] == [{"id": "c"}]
    assert BackupSnapshot.from_storage(stored).id == snapshot.id


def test_migration_result_failures():
    failure = RecordFailure(
        source=LegacySource.OTHER, source_id="x", reason="leader is missing"
    )
    result = MigrationResult(
        success=1,
        failed=1,
        elapsed_seconds=0.1,
        dry_run=False,
        sources=[
            SourceResult(source=LegacySource.INTERNAL_PREPARATION, total=1, success=1),
            SourceResult(source=LegacySource.OTHER, total=1, failed=1, failures=[failure]),
        ],
    )
    assert result.failures == [failure]
