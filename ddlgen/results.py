# File: ddlgen/results.py
"""
ddlgen - Validation Findings
=============================
Lightweight containers for the findings produced by the naming engine, the
structural/datatype validator and the advanced heuristics.

A finding never raises: checks append ``ValidationIssue`` records to a
``ValidationResult`` and the caller decides what to do with them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.results")

LEVEL_ERROR: str = "error"
LEVEL_WARNING: str = "warning"
LEVEL_INFO: str = "info"


class ValidationIssue:
    """Lightweight finding descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == LEVEL_ERROR

    @property
    def is_warning(self) -> bool:
        return self.level == LEVEL_WARNING

    @property
    def is_info(self) -> bool:
        return self.level == LEVEL_INFO

    @property
    def suggestion(self) -> Optional[str]:
        return self.context.get("suggestion")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationIssue):
            return NotImplemented
        return (
            self.level == other.level
            and self.code == other.code
            and self.message == other.message
            and self.context == other.context
        )

    def __hash__(self) -> int:
        return hash((self.level, self.code, self.message))

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """
    Accumulates ``ValidationIssue`` instances in insertion order.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue(LEVEL_ERROR, code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue(LEVEL_WARNING, code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue(LEVEL_INFO, code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        """Append every finding of *other* to this result."""
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def infos(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_info]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.is_info:
                continue
            prefix: str = {
                LEVEL_ERROR: "❌",
                LEVEL_WARNING: "⚠️",
                LEVEL_INFO: "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.suggestion:
                lines.append(f"       suggestion: {item.suggestion}")
        return "\n".join(lines)


__all__: List[str] = [
    "LEVEL_ERROR",
    "LEVEL_WARNING",
    "LEVEL_INFO",
    "ValidationIssue",
    "ValidationResult",
]
