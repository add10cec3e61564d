"""Closed vocabularies for every enumerated project field.

Each vocabulary is a ``StrEnum`` plus a tag → display-label table. The
module-level registry maps the stored (camelCase) field name to that table,
so adding a tag only touches this file.
"""

from __future__ import annotations

from enum import StrEnum


class Department(StrEnum):
    DEPT_ONE = "transfer-investment-dept-1"
    DEPT_TWO = "transfer-investment-dept-2"
    DEPT_THREE = "transfer-investment-dept-3"


class ProjectType(StrEnum):
    INTERNAL_PREPARATION = "internal-preparation"
    AI_MEDICAL_RESEARCH = "ai-medical-research"
    DIAGNOSTIC_DETECTION = "diagnostic-detection"
    CELL_THERAPY = "cell-therapy"
    DRUG = "drug"
    MEDICAL_DEVICE = "medical-device"
    MEDICAL_MATERIAL = "medical-material"
    OTHER = "other"


class Importance(StrEnum):
    VERY_IMPORTANT = "very-important"
    IMPORTANT = "important"
    NORMAL = "normal"
    NOT_IMPORTANT = "not-important"


class ProjectStatus(StrEnum):
    EARLY_STAGE = "early-stage"
    PRECLINICAL = "preclinical"
    CLINICAL_STAGE = "clinical-stage"
    MARKET_PRODUCT = "market-product"


class TransformRequirement(StrEnum):
    LICENSE_TRANSFER = "license-transfer"
    EQUITY_INVESTMENT = "equity-investment"
    TRUST_HOLDING = "trust-holding"
    TRUST_MANAGEMENT = "trust-management"
    COMPANY_OPERATION = "company-operation"
    LICENSE_TRANSFER_CASH = "license-transfer-cash"
    TO_BE_DETERMINED = "to-be-determined"


class TransformProgress(StrEnum):
    POTENTIAL = "potential"
    NEGOTIATING = "negotiating"
    HOSPITAL_APPROVED = "hospital-approved"
    CONTRACT_COMPLETED = "contract-completed"


class Leader(StrEnum):
    YANGFENG = "yangfeng"
    QINQINGSONG = "qinqingsong"
    HAOJINGJING = "haojingjing"
    CHENLONG = "chenlong"
    WANGLIYAN = "wangliyan"
    MAOSHIWEI = "maoshiwei"
    XIAOLANCHUAN = "xiaolanchuan"
    TO_BE_DETERMINED = "to-be-determined"


class AIReportStatus(StrEnum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


DEPARTMENT_LABELS: dict[str, str] = {
    Department.DEPT_ONE: "转移转化与投资一部",
    Department.DEPT_TWO: "转移转化与投资二部",
    Department.DEPT_THREE: "转移转化与投资三部",
}

PROJECT_TYPE_LABELS: dict[str, str] = {
    ProjectType.INTERNAL_PREPARATION: "院内制剂",
    ProjectType.AI_MEDICAL_RESEARCH: "AI医疗及系统研究",
    ProjectType.DIAGNOSTIC_DETECTION: "检测诊断",
    ProjectType.CELL_THERAPY: "细胞治疗",
    ProjectType.DRUG: "药物",
    ProjectType.MEDICAL_DEVICE: "医疗器械",
    ProjectType.MEDICAL_MATERIAL: "医用材料",
    ProjectType.OTHER: "其他",
}

IMPORTANCE_LABELS: dict[str, str] = {
    Importance.VERY_IMPORTANT: "非常重要",
    Importance.IMPORTANT: "重要",
    Importance.NORMAL: "一般",
    Importance.NOT_IMPORTANT: "不重要",
}

STATUS_LABELS: dict[str, str] = {
    ProjectStatus.EARLY_STAGE: "早期",
    ProjectStatus.PRECLINICAL: "临床前",
    ProjectStatus.CLINICAL_STAGE: "临床阶段",
    ProjectStatus.MARKET_PRODUCT: "上市产品",
}

TRANSFORM_REQUIREMENT_LABELS: dict[str, str] = {
    TransformRequirement.LICENSE_TRANSFER: "许可转让",
    TransformRequirement.EQUITY_INVESTMENT: "代价入股",
    TransformRequirement.TRUST_HOLDING: "代持",
    TransformRequirement.TRUST_MANAGEMENT: "代持托管",
    TransformRequirement.COMPANY_OPERATION: "公司化运营",
    TransformRequirement.LICENSE_TRANSFER_CASH: "许可转让现金",
    TransformRequirement.TO_BE_DETERMINED: "待定",
}

TRANSFORM_PROGRESS_LABELS: dict[str, str] = {
    TransformProgress.POTENTIAL: "潜在待推进",
    TransformProgress.NEGOTIATING: "医企实质性谈判",
    TransformProgress.HOSPITAL_APPROVED: "院端已过会",
    TransformProgress.CONTRACT_COMPLETED: "已完成",
}

LEADER_LABELS: dict[str, str] = {
    Leader.YANGFENG: "杨锋",
    Leader.QINQINGSONG: "秦青松",
    Leader.HAOJINGJING: "郝菁菁",
    Leader.CHENLONG: "陈栊",
    Leader.WANGLIYAN: "王立言",
    Leader.MAOSHIWEI: "毛世伟",
    Leader.XIAOLANCHUAN: "肖蓝川",
    Leader.TO_BE_DETERMINED: "待定",
}

AI_REPORT_STATUS_LABELS: dict[str, str] = {
    AIReportStatus.IDLE: "未生成",
    AIReportStatus.GENERATING: "生成中",
    AIReportStatus.COMPLETED: "已生成",
    AIReportStatus.ERROR: "生成失败",
}

# Stored field name -> {tag: label}, keyed by plain strings
_REGISTRY: dict[str, dict[str, str]] = {
    field: {str(tag): label for tag, label in labels.items()}
    for field, labels in (
        ("department", DEPARTMENT_LABELS),
        ("projectType", PROJECT_TYPE_LABELS),
        ("importance", IMPORTANCE_LABELS),
        ("status", STATUS_LABELS),
        ("transformRequirement", TRANSFORM_REQUIREMENT_LABELS),
        ("transformProgress", TRANSFORM_PROGRESS_LABELS),
        ("leader", LEADER_LABELS),
        ("aiReportStatus", AI_REPORT_STATUS_LABELS),
    )
}


def fields() -> tuple[str, ...]:
    """Names of all enumerated fields known to the registry."""
    return tuple(_REGISTRY)


def tags(field: str) -> tuple[str, ...]:
    """Valid tags for ``field``.

    Raises:
        KeyError: If ``field`` is not an enumerated field.
    """
    return tuple(_REGISTRY[field])


def is_valid(field: str, tag: object) -> bool:
    """True if ``tag`` belongs to the closed vocabulary of ``field``."""
    vocabulary = _REGISTRY.get(field)
    if vocabulary is None or not isinstance(tag, str):
        return False
    return tag in vocabulary


def label_for(field: str, tag: str) -> str:
    """Human-readable label for ``tag``, or the raw tag when unmapped."""
    vocabulary = _REGISTRY.get(field, {})
    return vocabulary.get(tag, tag)


def tag_for_label(field: str, label: str) -> str | None:
    """Reverse lookup: the tag whose display label is ``label``."""
    for tag, candidate in _REGISTRY.get(field, {}).items():
        if candidate == label:
            return tag
    return None
