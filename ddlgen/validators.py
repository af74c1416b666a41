# File: ddlgen/validators.py
"""
ddlgen - Structural & Datatype Validator
==========================================
Pure-function validation of a ``Project`` before DDL is generated.

Pydantic guards per-field shape at construction time.  This module adds
the checks that need the whole graph: table and column name uniqueness,
primary-key presence, index-to-column references, per-type constraints
(delegated to ``ddlgen.catalog``) and the nullability rules for identity
and primary-key columns.

Findings land in three buckets:

- **structural**: shape of the schema graph (blocking errors);
- **datatype**: type parameters and column flags (blocking errors);
- **naming**: conventions from ``ddlgen.naming`` (advisory only).

Usage::

    from ddlgen.validators import validate_for_export
    result = validate_for_export(project)
    if result.can_export_schema:
        ...
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Set

from ddlgen.catalog import TypeCheck, validate_column
from ddlgen.models import Index, IndexType, Project, Table
from ddlgen.naming import validate_naming
from ddlgen.results import ValidationIssue, ValidationResult

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.validators")


# ---------------------------------------------------------------------------
# Categorised result
# ---------------------------------------------------------------------------


class SchemaValidationResult:
    """
    Findings of ``validate_for_export`` split into structural, datatype and
    naming buckets.  Only structural and datatype errors block export.
    """

    __slots__ = ("structural", "datatype", "naming")

    def __init__(self) -> None:
        self.structural: ValidationResult = ValidationResult()
        self.datatype: ValidationResult = ValidationResult()
        self.naming: ValidationResult = ValidationResult()

    # -- Buckets ------------------------------------------------------------

    @property
    def structural_errors(self) -> List[ValidationIssue]:
        return self.structural.errors

    @property
    def structural_warnings(self) -> List[ValidationIssue]:
        return self.structural.warnings

    @property
    def datatype_errors(self) -> List[ValidationIssue]:
        return self.datatype.errors

    @property
    def datatype_warnings(self) -> List[ValidationIssue]:
        return self.datatype.warnings

    @property
    def naming_errors(self) -> List[ValidationIssue]:
        return self.naming.errors

    @property
    def naming_warnings(self) -> List[ValidationIssue]:
        return self.naming.warnings

    # -- Aggregates ---------------------------------------------------------

    @property
    def can_export_schema(self) -> bool:
        """True when there are no structural and no datatype errors."""
        return not self.structural.has_errors and not self.datatype.has_errors

    @property
    def blocking_errors(self) -> List[ValidationIssue]:
        return self.structural_errors + self.datatype_errors

    @property
    def total_error_count(self) -> int:
        return (
            self.structural.error_count
            + self.datatype.error_count
            + self.naming.error_count
        )

    @property
    def total_warning_count(self) -> int:
        return (
            self.structural.warning_count
            + self.datatype.warning_count
            + self.naming.warning_count
        )

    def summary(self) -> str:
        verdict: str = "export allowed" if self.can_export_schema else "export blocked"
        return (
            f"Validation: {self.total_error_count} error(s), "
            f"{self.total_warning_count} warning(s); {verdict}."
        )

    def format_report(self) -> str:
        """Human-readable multi-line report, one section per non-empty bucket."""
        lines: List[str] = [self.summary()]
        sections = (
            ("Structural errors", self.structural_errors, "✗"),
            ("Structural warnings", self.structural_warnings, "⚠"),
            ("Data type errors", self.datatype_errors, "✗"),
            ("Data type warnings", self.datatype_warnings, "⚠"),
            ("Naming errors", self.naming_errors, "✗"),
            ("Naming warnings", self.naming_warnings, "⚠"),
        )
        for title, items, icon in sections:
            if not items:
                continue
            lines.append("")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                line: str = f"    {icon} {item.message}"
                if item.suggestion:
                    line += f" (suggestion: {item.suggestion})"
                lines.append(line)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canExport": self.can_export_schema,
            "totalErrors": self.total_error_count,
            "totalWarnings": self.total_warning_count,
            "structuralErrors": [i.message for i in self.structural_errors],
            "structuralWarnings": [i.message for i in self.structural_warnings],
            "dataTypeErrors": [i.message for i in self.datatype_errors],
            "dataTypeWarnings": [i.message for i in self.datatype_warnings],
            "namingErrors": [i.message for i in self.naming_errors],
            "namingWarnings": [i.message for i in self.naming_warnings],
        }

    def __repr__(self) -> str:
        return f"<SchemaValidationResult {self.summary()}>"


# ---------------------------------------------------------------------------
# Structural checks
# ---------------------------------------------------------------------------


def validate_table_names(project: Project) -> ValidationResult:
    """Table names must be unique, case-insensitively.  One error per repeat."""
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()
    for table in project.tables:
        key: str = table.name.lower()
        if key in seen:
            result.add_error(
                "STRUCT_DUPLICATE_TABLE",
                f"Duplicate table name: '{table.name}'.",
                {"table": table.name},
            )
        seen.add(key)
    return result


def validate_table_structure(table: Table) -> ValidationResult:
    """
    Column presence, column name uniqueness, primary key presence and
    index references for one table.
    """
    result: ValidationResult = ValidationResult()
    context: Dict[str, Any] = {"table": table.name}

    if not table.columns:
        result.add_error(
            "STRUCT_NO_COLUMNS",
            f"Table '{table.name}' has no columns.",
            context,
        )
        return result

    seen: Set[str] = set()
    for column in table.columns:
        key: str = column.name.lower()
        if key in seen:
            result.add_error(
                "STRUCT_DUPLICATE_COLUMN",
                f"Table '{table.name}' has duplicate column name: '{column.name}'.",
                {**context, "column": column.name},
            )
        seen.add(key)

    if not table.has_primary_key:
        result.add_warning(
            "STRUCT_NO_PRIMARY_KEY",
            f"Table '{table.name}' has no primary key.",
            context,
        )

    for index in table.indexes:
        result.merge(validate_index(table, index))

    return result


def validate_index(table: Table, index: Index) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    context: Dict[str, Any] = {"table": table.name, "index": index.name}

    if not index.columns:
        result.add_error(
            "STRUCT_INDEX_NO_COLUMNS",
            f"Index '{index.name}' on table '{table.name}' has no columns.",
            context,
        )
        return result

    for key in index.columns:
        if table.get_column(key.column_id) is None:
            result.add_error(
                "STRUCT_INDEX_UNKNOWN_COLUMN",
                f"Index '{index.name}' on table '{table.name}' references "
                f"an unknown column (id {key.column_id}).",
                {**context, "column_id": str(key.column_id)},
            )

    if index.index_type is IndexType.CLUSTERED and table.has_primary_key:
        result.add_warning(
            "STRUCT_CLUSTERED_WITH_PK",
            f"Index '{index.name}' on table '{table.name}' is CLUSTERED but the "
            "primary key is already clustered.",
            context,
        )

    return result


# ---------------------------------------------------------------------------
# Datatype checks
# ---------------------------------------------------------------------------


def validate_column_types(table: Table) -> ValidationResult:
    """Catalog rules plus identity/primary-key nullability for every column."""
    result: ValidationResult = ValidationResult()

    for column in table.sorted_columns():
        prefix: str = f"Table '{table.name}' column '{column.name}': "
        context: Dict[str, Any] = {"table": table.name, "column": column.name}

        check: TypeCheck = validate_column(column)
        for message in check.errors:
            result.add_error("TYPE_COLUMN", prefix + message, context)
        for message in check.warnings:
            result.add_warning("TYPE_COLUMN", prefix + message, context)

        if column.is_identity and column.nullable:
            result.add_error(
                "TYPE_IDENTITY_NULLABLE",
                prefix + "identity columns cannot be nullable.",
                context,
            )
        if column.is_primary_key and column.nullable:
            result.add_error(
                "TYPE_PK_NULLABLE",
                prefix + "primary key columns cannot be nullable.",
                context,
            )

    return result


# ---------------------------------------------------------------------------
# Master entry point
# ---------------------------------------------------------------------------


def validate_for_export(project: Project) -> SchemaValidationResult:
    """
    **Validate a project before export.**

    Runs the naming pass, then the structural and datatype checks.  Never
    raises for data problems and never mutates *project*.
    """
    logger.info(
        "Validating project '%s' (%d tables).", project.name, len(project.tables)
    )

    outcome: SchemaValidationResult = SchemaValidationResult()
    outcome.naming.merge(validate_naming(project))

    if not project.tables:
        outcome.structural.add_error(
            "STRUCT_NO_TABLES",
            "No tables defined.",
            {"project": project.name},
        )
        logger.error("Validation FAILED: project '%s' has no tables.", project.name)
        return outcome

    outcome.structural.merge(validate_table_names(project))

    for table in project.tables:
        outcome.structural.merge(validate_table_structure(table))
        if table.columns:
            outcome.datatype.merge(validate_column_types(table))

    if outcome.can_export_schema:
        logger.info("Validation PASSED. %s", outcome.summary())
    else:
        logger.error(
            "Validation FAILED with %d blocking error(s). %s",
            len(outcome.blocking_errors),
            outcome.summary(),
        )
    return outcome


__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "SchemaValidationResult",
    "validate_table_names",
    "validate_table_structure",
    "validate_index",
    "validate_column_types",
    "validate_for_export",
]

logger.debug("ddlgen.validators loaded: %d public symbols.", len(__all__))
