"""Tests for the projtrack CLI."""

from __future__ import annotations

import asyncio
import json

import pytest
from click.testing import CliRunner

from projtrack.cli import main
from projtrack.models.legacy import INTERNAL_PREPARATION_COLLECTION, TYPE2_COLLECTION
from projtrack.models.migration import BACKUP_COLLECTION
from projtrack.models.project import UNIFIED_COLLECTION
from projtrack.storage.sqlite_store import SQLiteStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("PROJTRACK_DATABASE_URL", "PROJTRACK_LOG_LEVEL", "PROJTRACK_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner(tmp_db):
    return CliRunner(env={"PROJTRACK_DATABASE_URL": f"sqlite:///{tmp_db}"})


def _insert(db_path, collection, documents):
    async def insert():
        store = SQLiteStore(db_path)
        await store.initialize()
        try:
            for document in documents:
                await store.insert_document(collection, document)
        finally:
            await store.close()

    asyncio.run(insert())


def _count(db_path, collection):
    async def count():
        store = SQLiteStore(db_path)
        await store.initialize()
        try:
            return await store.count_documents(collection)
        finally:
            await store.close()

    return asyncio.run(count())


def _unified(**overrides):
    data = {
        "name": "新药",
        "projectType": "drug",
        "source": "s",
        "status": "preclinical",
        "leader": "chenlong",
        "startDate": "2024-03-01",
        "createdBy": "user-1",
    }
    data.update(overrides)
    return data


@pytest.fixture
def legacy_data(tmp_db, internal_prep, type2_project):
    _insert(tmp_db, INTERNAL_PREPARATION_COLLECTION, [internal_prep(), internal_prep(function="")])
    _insert(tmp_db, TYPE2_COLLECTION, [type2_project()])


# --- migrate ---


def test_no_arguments_runs_migration(runner, tmp_db, legacy_data):
    result = runner.invoke(main, [])
    assert result.exit_code == 0, result.output
    assert "Migration Summary" in result.output
    assert _count(tmp_db, UNIFIED_COLLECTION) == 2
    assert _count(tmp_db, BACKUP_COLLECTION) == 1


def test_migrate_reports_failures_but_exits_zero(runner, legacy_data):
    result = runner.invoke(main, ["migrate"])
    assert result.exit_code == 0, result.output
    assert "Failed Records" in result.output


def test_migrate_dry_run(runner, tmp_db, legacy_data):
    result = runner.invoke(main, ["migrate", "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "Dry run" in result.output
    assert _count(tmp_db, UNIFIED_COLLECTION) == 0
    assert _count(tmp_db, BACKUP_COLLECTION) == 0


def test_migrate_no_backup(runner, tmp_db, legacy_data):
    result = runner.invoke(main, ["migrate", "--no-backup"])
    assert result.exit_code == 0, result.output
    assert "Backup: skipped" in result.output
    assert _count(tmp_db, BACKUP_COLLECTION) == 0


def test_apply_overrides_config_file(runner, tmp_path, tmp_db, legacy_data):
    (tmp_path / "projtrack.yaml").write_text("migration:\n  dry_run: true\n")

    runner.invoke(main, ["migrate"])
    assert _count(tmp_db, UNIFIED_COLLECTION) == 0

    result = runner.invoke(main, ["migrate", "--apply"])
    assert result.exit_code == 0, result.output
    assert _count(tmp_db, UNIFIED_COLLECTION) == 2


def test_batch_size_must_be_positive(runner):
    result = runner.invoke(main, ["migrate", "--batch-size", "0"])
    assert result.exit_code == 2


def test_missing_database_url_is_config_error():
    result = CliRunner().invoke(main, ["migrate"])
    assert result.exit_code == 2
    assert "No database configured" in result.output


def test_missing_config_file_is_config_error(runner, tmp_path):
    result = runner.invoke(main, ["--config", str(tmp_path / "nope.yaml"), "status"])
    assert result.exit_code == 2
    assert "Config file not found" in result.output


def test_missing_env_config_file_is_config_error(runner, tmp_path):
    result = runner.invoke(
        main, ["status"], env={"PROJTRACK_CONFIG": str(tmp_path / "nope.yaml")}
    )
    assert result.exit_code == 2
    assert "Config file not found" in result.output


def test_unknown_log_level_is_config_error(runner):
    result = runner.invoke(main, ["status"], env={"PROJTRACK_LOG_LEVEL": "verbose"})
    assert result.exit_code == 2
    assert "Unknown log level" in result.output


def test_unreachable_database_exits_one(tmp_path):
    # A directory cannot be opened as a database file
    result = CliRunner().invoke(
        main, ["migrate"], env={"PROJTRACK_DATABASE_URL": f"sqlite:///{tmp_path}"}
    )
    assert result.exit_code == 1
    assert "Could not connect to the database" in result.output


# --- rollback ---


def test_rollback(runner, tmp_db, legacy_data):
    runner.invoke(main, ["migrate"])
    result = runner.invoke(main, ["rollback", "--yes"])
    assert result.exit_code == 0, result.output
    assert "Deleted 2 unified project(s)" in result.output
    assert _count(tmp_db, UNIFIED_COLLECTION) == 0


def test_rollback_restore_latest(runner, tmp_db, legacy_data):
    runner.invoke(main, ["migrate"])
    _insert(tmp_db, TYPE2_COLLECTION, [{"name": "added later"}])

    result = runner.invoke(main, ["rollback", "--yes", "--restore-latest"])
    assert result.exit_code == 0, result.output
    assert "Restored from snapshot" in result.output
    assert _count(tmp_db, TYPE2_COLLECTION) == 1
    assert _count(tmp_db, INTERNAL_PREPARATION_COLLECTION) == 2


def test_rollback_asks_for_confirmation(runner, tmp_db, legacy_data):
    runner.invoke(main, ["migrate"])
    result = runner.invoke(main, ["rollback"], input="n\n")
    assert result.exit_code == 1
    assert _count(tmp_db, UNIFIED_COLLECTION) == 2


# --- verify / status ---


def test_verify_valid(runner, legacy_data):
    runner.invoke(main, ["migrate"])
    result = runner.invoke(main, ["verify"])
    assert result.exit_code == 0, result.output
    assert "Unified projects: 2" in result.output
    assert "internal-preparation" in result.output
    assert "All unified projects are valid" in result.output


def test_verify_reports_invalid_records(runner, tmp_db):
    _insert(
        tmp_db,
        UNIFIED_COLLECTION,
        [{"id": "bad", "name": "x", "projectType": "drug", "source": "s", "status": "bogus"}],
    )
    result = runner.invoke(main, ["verify"])
    assert result.exit_code == 1
    assert "Invalid records (1)" in result.output


def test_verify_checks_model_constraints(runner, tmp_db):
    # Passes the business rules but breaks length and required-field constraints
    record = {
        "id": "long",
        "name": "x" * 500,
        "projectType": "drug",
        "source": "s",
        "status": "preclinical",
        "leader": "chenlong",
        "startDate": "2024-03-01",
    }
    _insert(tmp_db, UNIFIED_COLLECTION, [record])
    result = runner.invoke(main, ["verify"])
    assert result.exit_code == 1
    assert "Invalid records (1)" in result.output
    assert "All unified projects are valid" not in result.output


def test_show(runner, tmp_db):
    _insert(tmp_db, UNIFIED_COLLECTION, [_unified(id="p1")])
    result = runner.invoke(main, ["show", "p1"])
    assert result.exit_code == 0, result.output
    shown = json.loads(result.output)
    assert shown["id"] == "p1"
    assert shown["leader"] == "chenlong"
    assert shown["projectTypeLabel"] == "药物"


def test_show_summary(runner, tmp_db):
    _insert(tmp_db, UNIFIED_COLLECTION, [_unified(id="p1")])
    result = runner.invoke(main, ["show", "p1", "--summary"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "id": "p1",
        "name": "新药",
        "projectType": "drug",
        "status": "preclinical",
        "importance": "very-important",
    }


def test_show_missing_project(runner):
    result = runner.invoke(main, ["show", "nope"])
    assert result.exit_code == 1
    assert "Project not found: nope" in result.output


def test_show_invalid_record(runner, tmp_db):
    _insert(tmp_db, UNIFIED_COLLECTION, [_unified(id="p1", createdBy=None)])
    result = runner.invoke(main, ["show", "p1"])
    assert result.exit_code == 1
    assert "is invalid" in result.output


def test_status(runner, tmp_db, legacy_data):
    result = runner.invoke(main, ["status"])
    assert result.exit_code == 0, result.output
    stats = json.loads(result.output)
    assert stats["collections"][INTERNAL_PREPARATION_COLLECTION] == 2
    assert stats["collections"][TYPE2_COLLECTION] == 1
    assert stats["collections"][UNIFIED_COLLECTION] == 0
