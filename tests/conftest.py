"""Shared test fixtures for projtrack."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from projtrack.config import Config
from projtrack.events import EventBus, EventRecorder
from projtrack.models.legacy import INTERNAL_PREPARATION_COLLECTION, TYPE2_COLLECTION
from projtrack.storage.sqlite_store import SQLiteStore


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
async def store(tmp_db: Path) -> SQLiteStore:
    s = SQLiteStore(tmp_db)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def config(tmp_db: Path) -> Config:
    return Config(database_url=f"sqlite:///{tmp_db}")


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(event_bus: EventBus) -> EventRecorder:
    recorder = EventRecorder()
    event_bus.on_all(recorder)
    return recorder


@pytest.fixture
def internal_prep():
    """Factory for a complete legacy internal-preparation record."""

    def make(**overrides: Any) -> dict[str, Any]:
        record = {
            "department": "transfer-investment-dept-1",
            "source": "中医科",
            "name": "舒肝和胃丸",
            "composition": "柴胡、白芍",
            "function": "疏肝理气",
            "specification": "6g/丸",
            "duration": "24个月",
            "dosage": "每日两次",
            "recordNumber": "苏药制备字Z001",
            "patent": "无",
            "remarks": "备注",
            "attachments": ["file-1"],
            "status": "active",
            "createTime": "2024-01-05T08:00:00+00:00",
            "updateTime": "2024-02-01T08:00:00+00:00",
            "createdBy": "user-1",
        }
        record.update(overrides)
        return record

    return make


@pytest.fixture
def type2_project():
    """Factory for a complete legacy type-2 project record."""

    def make(**overrides: Any) -> dict[str, Any]:
        record = {
            "department": "transfer-investment-dept-2",
            "source": "影像科",
            "name": "AI辅助诊断系统",
            "category": "ai-medical-research",
            "leader": "王立言",
            "startDate": "2024-03-01",
            "indication": "肺结节",
            "followUpWeeks": 12,
            "importance": "important",
            "status": "project-approval",
            "transformMethod": "许可转让",
            "hospitalPI": "张医生",
            "projectConclusion": "推进中",
            "attachments": [],
            "createdBy": "user-2",
        }
        record.update(overrides)
        return record

    return make


@pytest.fixture
def seed(store: SQLiteStore):
    """Insert legacy records into their collections."""

    async def insert(
        internal: list[dict[str, Any]] | None = None,
        type2: list[dict[str, Any]] | None = None,
    ) -> None:
        for record in internal or []:
            await store.insert_document(INTERNAL_PREPARATION_COLLECTION, record)
        for record in type2 or []:
            await store.insert_document(TYPE2_COLLECTION, record)

    return insert
