# File: ddlgen/advisor.py
"""
ddlgen - Advanced Schema Heuristics
=====================================
Optional, informational passes run on top of ``validate_for_export``:

- **performance**: unindexed wide tables, very wide tables, oversized
  variable-length strings, heap tables;
- **best practice**: audit columns, ``id`` key naming, ``*_id`` typing;
- **security**: password column sizing, nullable personal data.

Nothing here changes ``can_export_schema``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ddlgen.catalog import DataType, TypeCategory, category_of
from ddlgen.models import Column, IndexType, Project, Table
from ddlgen.results import ValidationIssue, ValidationResult
from ddlgen.validators import SchemaValidationResult, validate_for_export

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.advisor")

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

UNINDEXED_COLUMN_THRESHOLD: int = 5
WIDE_TABLE_COLUMN_THRESHOLD: int = 50
LARGE_STRING_THRESHOLD: int = 4000
MIN_PASSWORD_LENGTH: int = 60

_VARIABLE_STRING_TYPES = frozenset({DataType.VARCHAR, DataType.NVARCHAR})
_PASSWORD_MARKERS = ("password", "pwd")
_PERSONAL_DATA_MARKERS = ("email", "phone", "ssn")


@dataclass(slots=True)
class AdvancedValidationResult:
    """Base validation plus the three heuristic finding lists."""

    base: SchemaValidationResult
    performance: ValidationResult = field(default_factory=ValidationResult)
    best_practice: ValidationResult = field(default_factory=ValidationResult)
    security: ValidationResult = field(default_factory=ValidationResult)

    @property
    def can_export_schema(self) -> bool:
        return self.base.can_export_schema

    @property
    def performance_warnings(self) -> List[ValidationIssue]:
        return self.performance.warnings

    @property
    def best_practice_warnings(self) -> List[ValidationIssue]:
        return self.best_practice.warnings

    @property
    def security_warnings(self) -> List[ValidationIssue]:
        return self.security.warnings

    @property
    def security_info(self) -> List[ValidationIssue]:
        return self.security.infos

    @property
    def advisory_count(self) -> int:
        return len(self.performance) + len(self.best_practice) + len(self.security)

    def format_report(self) -> str:
        lines: List[str] = [self.base.format_report()]
        sections = (
            ("Performance", self.performance),
            ("Best practice", self.best_practice),
            ("Security", self.security),
        )
        for title, bucket in sections:
            if not len(bucket):
                continue
            lines.append("")
            lines.append(f"  {title} ({len(bucket)}):")
            for item in bucket.all_items:
                icon: str = "ℹ" if item.is_info else "⚠"
                lines.append(f"    {icon} {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bounded_length(column: Column) -> Optional[int]:
    return column.max_length if isinstance(column.max_length, int) else None


def _is_category(column: Column, category: TypeCategory) -> bool:
    return column.data_type is not None and category_of(column.data_type) is category


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def check_performance(table: Table) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    context: Dict[str, Any] = {"table": table.name}

    if not table.indexes and len(table.columns) > UNINDEXED_COLUMN_THRESHOLD:
        result.add_warning(
            "PERF_NO_INDEX",
            f"Table '{table.name}' has {len(table.columns)} columns but no indexes.",
            context,
        )

    if len(table.columns) > WIDE_TABLE_COLUMN_THRESHOLD:
        result.add_warning(
            "PERF_WIDE_TABLE",
            f"Table '{table.name}' has {len(table.columns)} columns; consider "
            "splitting it.",
            context,
        )

    for column in table.sorted_columns():
        length: Optional[int] = _bounded_length(column)
        if (
            column.data_type in _VARIABLE_STRING_TYPES
            and length is not None
            and length > LARGE_STRING_THRESHOLD
        ):
            result.add_warning(
                "PERF_LARGE_STRING",
                f"Column '{table.name}.{column.name}' is {column.data_type.value}"
                f"({length}); large strings slow down scans.",
                {**context, "column": column.name},
            )

    has_clustered: bool = any(i.index_type is IndexType.CLUSTERED for i in table.indexes)
    if not has_clustered and not table.has_primary_key:
        result.add_warning(
            "PERF_HEAP_TABLE",
            f"Table '{table.name}' has neither a clustered index nor a primary key.",
            context,
        )

    return result


def check_best_practice(table: Table) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    context: Dict[str, Any] = {"table": table.name}
    lowered: List[str] = [c.name.lower() for c in table.columns]

    if not any("created" in name for name in lowered):
        result.add_warning(
            "BEST_NO_CREATED_COLUMN",
            f"Table '{table.name}' has no creation timestamp column.",
            context,
        )
    if not any("updated" in name for name in lowered):
        result.add_warning(
            "BEST_NO_UPDATED_COLUMN",
            f"Table '{table.name}' has no update timestamp column.",
            context,
        )

    if not any(c.name.lower() == "id" for c in table.primary_key_columns):
        result.add_warning(
            "BEST_NO_ID_KEY",
            f"Table '{table.name}' has no primary key column named 'id'.",
            context,
        )

    for column in table.sorted_columns():
        name: str = column.name.lower()
        if name.endswith("_id") and name != "id" and not _is_category(column, TypeCategory.INTEGER):
            type_label: str = column.data_type.value if column.data_type else "undefined"
            result.add_warning(
                "BEST_NON_INTEGER_REFERENCE",
                f"Column '{table.name}.{column.name}' looks like a reference but "
                f"is typed {type_label}.",
                {**context, "column": column.name},
            )

    return result


def check_security(table: Table) -> ValidationResult:
    result: ValidationResult = ValidationResult()

    for column in table.sorted_columns():
        name: str = column.name.lower()
        context: Dict[str, Any] = {"table": table.name, "column": column.name}

        if any(marker in name for marker in _PASSWORD_MARKERS):
            if not _is_category(column, TypeCategory.STRING):
                result.add_warning(
                    "SEC_PASSWORD_TYPE",
                    f"Password column '{table.name}.{column.name}' should be a string type.",
                    context,
                )
            length: Optional[int] = _bounded_length(column)
            if length is not None and length < MIN_PASSWORD_LENGTH:
                result.add_warning(
                    "SEC_PASSWORD_LENGTH",
                    f"Password column '{table.name}.{column.name}' holds {length} "
                    f"characters; hashes need at least {MIN_PASSWORD_LENGTH}.",
                    context,
                )

        if column.nullable and any(marker in name for marker in _PERSONAL_DATA_MARKERS):
            result.add_info(
                "SEC_PERSONAL_DATA_NULLABLE",
                f"Personal data column '{table.name}.{column.name}' is nullable; "
                "check the data protection requirements.",
                context,
            )

    return result


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def validate_advanced(
    project: Project, base: Optional[SchemaValidationResult] = None
) -> AdvancedValidationResult:
    """
    Run the export validation (unless *base* is given) plus the three
    heuristic passes.
    """
    outcome: AdvancedValidationResult = AdvancedValidationResult(
        base=base if base is not None else validate_for_export(project)
    )

    for table in project.tables:
        outcome.performance.merge(check_performance(table))
        outcome.best_practice.merge(check_best_practice(table))
        outcome.security.merge(check_security(table))

    logger.info(
        "Advanced checks: %d performance, %d best-practice, %d security finding(s).",
        len(outcome.performance),
        len(outcome.best_practice),
        len(outcome.security),
    )
    return outcome


__all__: List[str] = [
    "AdvancedValidationResult",
    "check_performance",
    "check_best_practice",
    "check_security",
    "validate_advanced",
]
