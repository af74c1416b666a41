# File: ddlgen/naming.py
"""
ddlgen - Naming Rule Engine
============================
Validates table, column and index names against a ``NamingRules`` object
and proposes best-effort fixes.

For each object kind the checks run in this order and are ANDed:

1. the name is not empty or whitespace-only;
2. (tables only) the configured prefix and suffix are present;
3. the kind-specific regex fully matches (an empty pattern matches nothing);
4. the name has the canonical shape of the configured case style.

A rule that is ``None`` is not checked.  ``validate_naming`` runs the engine
over a whole project, adds the SQL Server house-style checks switched on in
the rules, and returns advisory findings that never block export.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ddlgen.models import CaseStyle, Column, Index, NamingRules, Project, Table
from ddlgen.results import ValidationResult

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.naming")


class ObjectKind(str, Enum):
    TABLE = "table"
    COLUMN = "column"
    INDEX = "index"


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_PASCAL_SHAPE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_SNAKE_SHAPE_RE: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9_]*$")
_WORD_BOUNDARY_RE: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATOR_RE: re.Pattern[str] = re.compile(r"[^A-Za-z0-9]+")

AUDIT_COLUMNS: Tuple[str, ...] = ("REG_ID", "REG_DT", "CHG_ID", "CHG_DT")
SINGLE_WORD_KEYS: Tuple[str, ...] = ("ID", "SEQ_NO", "HIST_NO")


# ---------------------------------------------------------------------------
# Case transforms
# ---------------------------------------------------------------------------


def to_pascal_case(name: str) -> str:
    """``user_account`` / ``user-account`` / ``userAccount`` → ``UserAccount``."""
    spaced: str = _WORD_BOUNDARY_RE.sub(r"\1_\2", name)
    parts: List[str] = [p for p in _SEPARATOR_RE.split(spaced) if p]
    return "".join(p[0].upper() + p[1:].lower() for p in parts)


def to_snake_case(name: str) -> str:
    """``UserAccount`` / ``user-account`` → ``user_account``."""
    spaced: str = _WORD_BOUNDARY_RE.sub(r"\1_\2", name)
    return _SEPARATOR_RE.sub("_", spaced).strip("_").lower()


def apply_case(name: str, style: Optional[CaseStyle]) -> str:
    if style is None:
        return name
    if style is CaseStyle.UPPER:
        return name.upper()
    if style is CaseStyle.LOWER:
        return name.lower()
    if style is CaseStyle.PASCAL:
        return to_pascal_case(name)
    return to_snake_case(name)


def matches_case(name: str, style: CaseStyle) -> bool:
    """True when *name* already has the canonical shape of *style*."""
    if style is CaseStyle.UPPER:
        return name == name.upper()
    if style is CaseStyle.LOWER:
        return name == name.lower()
    if style is CaseStyle.PASCAL:
        return _PASCAL_SHAPE_RE.match(name) is not None
    return _SNAKE_SHAPE_RE.match(name) is not None


# ---------------------------------------------------------------------------
# Rule lookup
# ---------------------------------------------------------------------------


def case_style_for(kind: ObjectKind, rules: Optional[NamingRules]) -> Optional[CaseStyle]:
    """Per-kind override if set, otherwise the global case style."""
    if rules is None:
        return None
    override: Optional[CaseStyle] = {
        ObjectKind.TABLE: rules.table_case,
        ObjectKind.COLUMN: rules.column_case,
        ObjectKind.INDEX: rules.index_case,
    }[kind]
    return override if override is not None else rules.enforce_case


def pattern_for(kind: ObjectKind, rules: Optional[NamingRules]) -> Optional[str]:
    if rules is None:
        return None
    return {
        ObjectKind.TABLE: rules.table_pattern,
        ObjectKind.COLUMN: rules.column_pattern,
        ObjectKind.INDEX: rules.index_pattern,
    }[kind]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def name_violations(
    kind: ObjectKind, name: Optional[str], rules: Optional[NamingRules]
) -> List[str]:
    """
    Return the reasons *name* breaks *rules*; an empty list means it passes.
    """
    if name is None or not name.strip():
        return ["name is empty"]
    if rules is None:
        return []

    reasons: List[str] = []

    if kind is ObjectKind.TABLE:
        if rules.table_prefix and not name.startswith(rules.table_prefix):
            reasons.append(f"must start with '{rules.table_prefix}'")
        if rules.table_suffix and not name.endswith(rules.table_suffix):
            reasons.append(f"must end with '{rules.table_suffix}'")

    pattern: Optional[str] = pattern_for(kind, rules)
    if pattern is not None:
        if pattern == "" or re.fullmatch(pattern, name) is None:
            reasons.append(f"must match pattern '{pattern}'")

    style: Optional[CaseStyle] = case_style_for(kind, rules)
    if style is not None and not matches_case(name, style):
        reasons.append(f"must be {style.value} case")

    return reasons


def validate_name(kind: ObjectKind, name: Optional[str], rules: Optional[NamingRules]) -> bool:
    return not name_violations(kind, name, rules)


def validate_table_name(name: Optional[str], rules: Optional[NamingRules]) -> bool:
    return validate_name(ObjectKind.TABLE, name, rules)


def validate_column_name(name: Optional[str], rules: Optional[NamingRules]) -> bool:
    return validate_name(ObjectKind.COLUMN, name, rules)


def validate_index_name(name: Optional[str], rules: Optional[NamingRules]) -> bool:
    return validate_name(ObjectKind.INDEX, name, rules)


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def suggest_name(
    kind: ObjectKind, name: Optional[str], rules: Optional[NamingRules]
) -> Optional[str]:
    """
    Best-effort fix for *name*: case transform first, then (tables only)
    the missing prefix and suffix.  Returns None only for a None input.
    """
    if name is None:
        return None

    suggestion: str = apply_case(name, case_style_for(kind, rules))

    if kind is ObjectKind.TABLE and rules is not None:
        if rules.table_prefix and not suggestion.startswith(rules.table_prefix):
            suggestion = rules.table_prefix + suggestion
        if rules.table_suffix and not suggestion.endswith(rules.table_suffix):
            suggestion = suggestion + rules.table_suffix

    return name if suggestion == name else suggestion


def suggest_table_name(name: Optional[str], rules: Optional[NamingRules]) -> Optional[str]:
    return suggest_name(ObjectKind.TABLE, name, rules)


def suggest_column_name(name: Optional[str], rules: Optional[NamingRules]) -> Optional[str]:
    return suggest_name(ObjectKind.COLUMN, name, rules)


def suggest_index_name(
    table_name: Optional[str], column_name: Optional[str], rules: Optional[NamingRules]
) -> Optional[str]:
    """``Ix`` + table + column, passed through the index case style."""
    if table_name is None or column_name is None:
        return None
    return apply_case(f"Ix{table_name}{column_name}", case_style_for(ObjectKind.INDEX, rules))


# ---------------------------------------------------------------------------
# Project-wide naming pass
# ---------------------------------------------------------------------------


def _check_object(
    result: ValidationResult,
    kind: ObjectKind,
    name: str,
    rules: NamingRules,
    context: Dict[str, str],
    suggestion: Optional[str],
) -> None:
    reasons: List[str] = name_violations(kind, name, rules)
    if not reasons:
        return
    label: str = kind.value.capitalize()
    result.add_error(
        f"NAMING_{kind.name}",
        f"{label} name '{name}' {'; '.join(reasons)}.",
        {**context, "suggestion": suggestion},
    )


def _first_index_column_name(table: Table, index: Index) -> str:
    for key in index.columns:
        column: Optional[Column] = table.get_column(key.column_id)
        if column is not None:
            return column.name
    return ""


def _check_house_style(result: ValidationResult, table: Table, rules: NamingRules) -> None:
    column_names: Dict[str, Column] = {c.name.upper(): c for c in table.columns}

    if rules.enforce_upper_case:
        if case_style_for(ObjectKind.TABLE, rules) is not CaseStyle.UPPER and table.name != table.name.upper():
            result.add_error(
                "NAMING_UPPER_CASE",
                f"Table name '{table.name}' must be upper case.",
                {"table": table.name, "suggestion": table.name.upper()},
            )
        if case_style_for(ObjectKind.COLUMN, rules) is not CaseStyle.UPPER:
            for column in table.sorted_columns():
                if column.name != column.name.upper():
                    result.add_error(
                        "NAMING_UPPER_CASE",
                        f"Column name '{table.name}.{column.name}' must be upper case.",
                        {"table": table.name, "column": column.name, "suggestion": column.name.upper()},
                    )

    if rules.require_description:
        if not (table.description or "").strip():
            result.add_error(
                "NAMING_DESCRIPTION_REQUIRED",
                f"Table '{table.name}' has no description.",
                {"table": table.name},
            )
        for column in table.primary_key_columns:
            if not (column.description or "").strip():
                result.add_error(
                    "NAMING_DESCRIPTION_REQUIRED",
                    f"Primary key column '{table.name}.{column.name}' has no description.",
                    {"table": table.name, "column": column.name},
                )

    if rules.recommend_audit_columns:
        missing: List[str] = [name for name in AUDIT_COLUMNS if name not in column_names]
        if missing:
            result.add_warning(
                "NAMING_AUDIT_COLUMNS",
                f"Table '{table.name}' is missing audit columns: {', '.join(missing)}.",
                {"table": table.name, "missing": missing},
            )

    if rules.enforce_single_word_key_naming:
        for column in table.primary_key_columns:
            if column.name.upper() in SINGLE_WORD_KEYS:
                result.add_warning(
                    "NAMING_SINGLE_WORD_KEY",
                    f"Primary key column '{table.name}.{column.name}' should carry "
                    "the table name.",
                    {
                        "table": table.name,
                        "column": column.name,
                        "suggestion": f"{table.name}_{column.name}",
                    },
                )

    if rules.enforce_constraint_naming:
        for index in table.indexes:
            prefix: str = "UX_" if index.unique else "IX_"
            if not index.name.upper().startswith(prefix):
                first_column: str = _first_index_column_name(table, index)
                result.add_warning(
                    "NAMING_CONSTRAINT_PREFIX",
                    f"Index '{index.name}' on '{table.name}' should start with '{prefix}'.",
                    {
                        "table": table.name,
                        "index": index.name,
                        "suggestion": f"{prefix}{table.name}_{first_column}".rstrip("_"),
                    },
                )


def validate_naming(project: Project) -> ValidationResult:
    """
    Naming pass over every table, column and index of *project*.

    Returns an empty result when the project has no naming rules.
    """
    result: ValidationResult = ValidationResult()
    rules: Optional[NamingRules] = project.naming_rules
    if rules is None:
        return result

    for table in project.tables:
        _check_object(
            result, ObjectKind.TABLE, table.name, rules,
            {"table": table.name},
            suggest_table_name(table.name, rules),
        )
        for column in table.sorted_columns():
            _check_object(
                result, ObjectKind.COLUMN, column.name, rules,
                {"table": table.name, "column": column.name},
                suggest_column_name(column.name, rules),
            )
        for index in table.indexes:
            _check_object(
                result, ObjectKind.INDEX, index.name, rules,
                {"table": table.name, "index": index.name},
                suggest_index_name(table.name, _first_index_column_name(table, index), rules),
            )
        _check_house_style(result, table, rules)

    logger.debug("Naming pass: %s", result.summary())
    return result


__all__: List[str] = [
    "ObjectKind",
    "AUDIT_COLUMNS",
    "SINGLE_WORD_KEYS",
    "to_pascal_case",
    "to_snake_case",
    "apply_case",
    "matches_case",
    "case_style_for",
    "pattern_for",
    "name_violations",
    "validate_name",
    "validate_table_name",
    "validate_column_name",
    "validate_index_name",
    "suggest_name",
    "suggest_table_name",
    "suggest_column_name",
    "suggest_index_name",
    "validate_naming",
]
