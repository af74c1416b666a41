# File: ddlgen/exporters.py
"""
ddlgen - Schema Document Exporters
====================================

Responsible for:
    1. Rendering a validated project as SQL, SQL with a validation header,
       Markdown, HTML, JSON or CSV.
    2. Substituting a readable error report for DDL when the validation
       result blocks export (SQL / Markdown / HTML).
    3. Keeping the JSON and CSV shapes intact for blocked schemas, with
       the export status marked inside them.

Renderers are pure: they consume the project plus an existing
``SchemaValidationResult`` and never validate on their own.  Only
``SchemaExporter.export`` runs validation, and only when the caller did not
pass a result in.

Escaping: HTML via ``html.escape``, JSON via ``json.dumps``, CSV via the
``csv`` module (embedded quotes doubled), Markdown cells escape ``|``.
"""

from __future__ import annotations

import csv
import html
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ddlgen.models import Column, Index, Project, SchemaGenerationOptions, Table
from ddlgen.naming import to_snake_case
from ddlgen.results import ValidationIssue
from ddlgen.sql import TIMESTAMP_FORMAT, SqlGenerator
from ddlgen.validators import SchemaValidationResult, validate_for_export

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.exporters")

STATUS_OK: str = "OK"
STATUS_HAS_ERRORS: str = "HAS_ERRORS"

CSV_HEADER: Tuple[str, ...] = (
    "name",
    "description",
    "columnCount",
    "indexCount",
    "primaryKeyColumns",
    "validationStatus",
)


class ExportFormat(str, Enum):
    """Artifact kinds the exporter can produce."""

    SQL = "sql"
    SQL_WITH_VALIDATION = "sql_with_validation"
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"
    CSV = "csv"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def file_suffix(self) -> str:
        """Stem suffix keeping the two SQL flavours apart on disk."""
        return "_validated" if self is ExportFormat.SQL_WITH_VALIDATION else ""


_EXTENSIONS: Dict[ExportFormat, str] = {
    ExportFormat.SQL: ".sql",
    ExportFormat.SQL_WITH_VALIDATION: ".sql",
    ExportFormat.MARKDOWN: ".md",
    ExportFormat.HTML: ".html",
    ExportFormat.JSON: ".json",
    ExportFormat.CSV: ".csv",
}


@dataclass(frozen=True, slots=True)
class ExportResult:
    """
    Final result returned by ``SchemaExporter.export()``.

    ``success`` mirrors ``validation.can_export_schema``; ``content`` is
    always set (an error report when export was blocked).
    """

    format: ExportFormat
    content: str
    success: bool
    validation: SchemaValidationResult
    filename: str


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def export_filename(project: Project, fmt: ExportFormat) -> str:
    stem: str = to_snake_case(project.name) or "schema"
    return f"{stem}{fmt.file_suffix}{fmt.extension}"


def _type_label(column: Column) -> str:
    return column.rendered_type if column.data_type is not None else "(undefined)"


def _index_column_names(table: Table, index: Index) -> List[str]:
    names: List[str] = []
    for key in index.columns:
        column: Optional[Column] = table.get_column(key.column_id)
        names.append(column.name if column is not None else "unknown")
    return names


def _validation_sections(
    validation: SchemaValidationResult,
) -> List[Tuple[str, List[ValidationIssue]]]:
    sections: List[Tuple[str, List[ValidationIssue]]] = [
        ("Structural errors", validation.structural_errors),
        ("Structural warnings", validation.structural_warnings),
        ("Data type errors", validation.datatype_errors),
        ("Data type warnings", validation.datatype_warnings),
        ("Naming errors", validation.naming_errors),
        ("Naming warnings", validation.naming_warnings),
    ]
    return [(title, items) for title, items in sections if items]


def render_error_report(project: Project, validation: SchemaValidationResult) -> str:
    """SQL comment block listing the blocking errors; valid as a no-op script."""
    lines: List[str] = [
        f"-- Schema export failed for project '{project.name}'.",
        "-- Fix the errors below and export again.",
    ]
    blocking: Sequence[Tuple[str, List[ValidationIssue]]] = (
        ("Structural errors", validation.structural_errors),
        ("Data type errors", validation.datatype_errors),
    )
    for title, items in blocking:
        if not items:
            continue
        lines.append("--")
        lines.append(f"-- {title} ({len(items)}):")
        lines.extend(f"--   - {item.message}" for item in items)
    return "\n".join(lines) + "\n"


def _md_cell(value: Any) -> str:
    if value is None:
        return ""
    text: str = str(value)
    return text.replace("\\", "\\\\").replace("|", "\\|").replace("\r", "").replace("\n", "<br>")


def _md_row(cells: Sequence[Any]) -> str:
    return "| " + " | ".join(_md_cell(c) for c in cells) + " |"


def _yes(flag: Optional[bool]) -> str:
    return "Yes" if flag else ""


# ---------------------------------------------------------------------------
# SchemaExporter
# ---------------------------------------------------------------------------


class SchemaExporter:
    """
    Renders one project into any ``ExportFormat``.

    Usage::

        exporter = SchemaExporter(SchemaGenerationOptions.production())
        result = exporter.export(project, ExportFormat.MARKDOWN)
        if result.success:
            Path(result.filename).write_text(result.content)
    """

    def __init__(
        self,
        options: Optional[SchemaGenerationOptions] = None,
        generator: Optional[SqlGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.options: SchemaGenerationOptions = options or SchemaGenerationOptions()
        self.generator: SqlGenerator = generator or SqlGenerator()
        self._clock: Callable[[], datetime] = clock or datetime.now
        self._renderers: Dict[
            ExportFormat, Callable[[Project, SchemaValidationResult, datetime], str]
        ] = {
            ExportFormat.SQL: self.render_sql,
            ExportFormat.SQL_WITH_VALIDATION: self.render_sql_with_validation,
            ExportFormat.MARKDOWN: self.render_markdown,
            ExportFormat.HTML: self.render_html,
            ExportFormat.JSON: self.render_json,
            ExportFormat.CSV: self.render_csv,
        }

    # -- Public API ---------------------------------------------------------

    def export(
        self,
        project: Project,
        fmt: ExportFormat,
        validation: Optional[SchemaValidationResult] = None,
    ) -> ExportResult:
        """Validate (unless *validation* is given) and render *project*."""
        fmt = ExportFormat(fmt)
        if validation is None:
            validation = validate_for_export(project)
        content: str = self._renderers[fmt](project, validation, self._clock())
        if not validation.can_export_schema:
            logger.warning(
                "Export of '%s' as %s blocked by %d validation error(s).",
                project.name,
                fmt.value,
                len(validation.blocking_errors),
            )
        return ExportResult(
            format=fmt,
            content=content,
            success=validation.can_export_schema,
            validation=validation,
            filename=export_filename(project, fmt),
        )

    def export_many(
        self,
        project: Project,
        formats: Sequence[ExportFormat],
        validation: Optional[SchemaValidationResult] = None,
    ) -> List[ExportResult]:
        """Export several formats from one validation run."""
        if validation is None:
            validation = validate_for_export(project)
        return [self.export(project, fmt, validation) for fmt in formats]

    # -- SQL ----------------------------------------------------------------

    def render_sql(
        self, project: Project, validation: SchemaValidationResult, generated_at: datetime
    ) -> str:
        if not validation.can_export_schema:
            return render_error_report(project, validation)
        return self.generator.generate_validated(project, validation, self.options, generated_at)

    def render_sql_with_validation(
        self, project: Project, validation: SchemaValidationResult, generated_at: datetime
    ) -> str:
        lines: List[str] = [
            "-- ==========================================================",
            f"-- Validation report: {project.name}",
            f"-- Generated: {generated_at.strftime(TIMESTAMP_FORMAT)}",
            f"-- {validation.summary()}",
        ]
        for title, items in _validation_sections(validation):
            lines.append("--")
            lines.append(f"-- {title} ({len(items)}):")
            lines.extend(f"--   - {item.message}" for item in items)
        lines.append("-- ==========================================================")
        return "\n".join(lines) + "\n\n" + self.render_sql(project, validation, generated_at)

    # -- Markdown -----------------------------------------------------------

    def render_markdown(
        self, project: Project, validation: SchemaValidationResult, generated_at: datetime
    ) -> str:
        out: List[str] = [f"# {project.name} Database Schema", ""]
        if project.description:
            out.extend([f"> {_md_cell(project.description)}", ""])

        status: str = "PASSED" if validation.can_export_schema else "FAILED"
        out.extend(
            [
                f"- **Generated:** {generated_at.strftime(TIMESTAMP_FORMAT)}",
                f"- **Tables:** {len(project.tables)}",
                f"- **Validation:** {status} ({validation.total_error_count} error(s), "
                f"{validation.total_warning_count} warning(s))",
                "",
                "## Tables",
                "",
                _md_row(["Table", "Description", "Columns", "Indexes"]),
                "|---|---|---|---|",
            ]
        )
        for table in project.tables:
            out.append(
                _md_row([table.name, table.description, len(table.columns), len(table.indexes)])
            )

        for table in project.tables:
            out.extend(["", f"## {table.name}", ""])
            if table.description:
                out.extend([_md_cell(table.description), ""])
            out.extend(
                [
                    "### Columns",
                    "",
                    _md_row(["#", "Column", "Type", "Nullable", "PK", "Identity", "Default", "Description"]),
                    "|---|---|---|---|---|---|---|---|",
                ]
            )
            for position, column in enumerate(table.sorted_columns(), start=1):
                identity: str = (
                    f"({column.identity_seed},{column.identity_increment})"
                    if column.is_identity
                    else ""
                )
                out.append(
                    _md_row(
                        [
                            position,
                            column.name,
                            _type_label(column),
                            _yes(column.nullable),
                            _yes(column.is_primary_key),
                            identity,
                            column.default_value,
                            column.description,
                        ]
                    )
                )
            if table.indexes:
                out.extend(
                    [
                        "",
                        "### Indexes",
                        "",
                        _md_row(["Index", "Type", "Unique", "Columns"]),
                        "|---|---|---|---|",
                    ]
                )
                for index in table.indexes:
                    out.append(
                        _md_row(
                            [
                                index.name,
                                index.index_type.value,
                                _yes(index.unique),
                                ", ".join(_index_column_names(table, index)),
                            ]
                        )
                    )

        sections = _validation_sections(validation)
        if sections:
            out.extend(["", "## Validation"])
            for title, items in sections:
                out.extend(["", f"### {title}", ""])
                out.extend(f"- {_md_cell(item.message)}" for item in items)

        out.extend(["", "## SQL", ""])
        if validation.can_export_schema:
            out.extend(["```sql", self.render_sql(project, validation, generated_at).rstrip("\n"), "```"])
        else:
            out.extend(["```text", render_error_report(project, validation).rstrip("\n"), "```"])
        return "\n".join(out) + "\n"

    # -- HTML ---------------------------------------------------------------

    def render_html(
        self, project: Project, validation: SchemaValidationResult, generated_at: datetime
    ) -> str:
        e = html.escape
        status: str = "PASSED" if validation.can_export_schema else "FAILED"
        out: List[str] = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8">',
            f"<title>{e(project.name)} Database Schema</title>",
            "<style>",
            "body { font-family: sans-serif; margin: 2em; }",
            "table { border-collapse: collapse; margin-bottom: 1.5em; }",
            "th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: left; }",
            "pre { background: #f6f8fa; padding: 1em; overflow-x: auto; }",
            ".error { color: #b00020; }",
            "</style>",
            "</head>",
            "<body>",
            f"<h1>{e(project.name)} Database Schema</h1>",
        ]
        if project.description:
            out.append(f"<p>{e(project.description)}</p>")
        out.extend(
            [
                "<ul>",
                f"<li><strong>Generated:</strong> {e(generated_at.strftime(TIMESTAMP_FORMAT))}</li>",
                f"<li><strong>Tables:</strong> {len(project.tables)}</li>",
                f"<li><strong>Validation:</strong> {status} "
                f"({validation.total_error_count} error(s), "
                f"{validation.total_warning_count} warning(s))</li>",
                "</ul>",
                "<h2>Tables</h2>",
                "<table>",
                "<tr><th>Table</th><th>Description</th><th>Columns</th><th>Indexes</th></tr>",
            ]
        )
        for table in project.tables:
            out.append(
                f"<tr><td>{e(table.name)}</td><td>{e(table.description or '')}</td>"
                f"<td>{len(table.columns)}</td><td>{len(table.indexes)}</td></tr>"
            )
        out.append("</table>")

        for table in project.tables:
            out.append(f"<h2>{e(table.name)}</h2>")
            if table.description:
                out.append(f"<p>{e(table.description)}</p>")
            out.extend(
                [
                    "<table>",
                    "<tr><th>Column</th><th>Type</th><th>Nullable</th><th>PK</th>"
                    "<th>Identity</th><th>Default</th><th>Description</th></tr>",
                ]
            )
            for column in table.sorted_columns():
                cells: List[str] = [
                    column.name,
                    _type_label(column),
                    _yes(column.nullable),
                    _yes(column.is_primary_key),
                    _yes(column.is_identity),
                    column.default_value or "",
                    column.description or "",
                ]
                out.append("<tr>" + "".join(f"<td>{e(c)}</td>" for c in cells) + "</tr>")
            out.append("</table>")
            if table.indexes:
                out.extend(
                    [
                        "<table>",
                        "<tr><th>Index</th><th>Type</th><th>Unique</th><th>Columns</th></tr>",
                    ]
                )
                for index in table.indexes:
                    cells = [
                        index.name,
                        index.index_type.value,
                        _yes(index.unique),
                        ", ".join(_index_column_names(table, index)),
                    ]
                    out.append("<tr>" + "".join(f"<td>{e(c)}</td>" for c in cells) + "</tr>")
                out.append("</table>")

        sections = _validation_sections(validation)
        if sections:
            out.append("<h2>Validation</h2>")
            for title, items in sections:
                out.append(f"<h3>{e(title)}</h3>")
                out.append("<ul>")
                out.extend(f"<li>{e(item.message)}</li>" for item in items)
                out.append("</ul>")

        out.append("<h2>SQL</h2>")
        if validation.can_export_schema:
            sql: str = self.render_sql(project, validation, generated_at)
            out.append(f"<pre><code>{e(sql)}</code></pre>")
        else:
            report: str = render_error_report(project, validation)
            out.append(f'<pre class="error">{e(report)}</pre>')

        out.extend(["</body>", "</html>"])
        return "\n".join(out) + "\n"

    # -- JSON ---------------------------------------------------------------

    def render_json(
        self, project: Project, validation: SchemaValidationResult, generated_at: datetime
    ) -> str:
        tables: List[Dict[str, Any]] = []
        for table in project.tables:
            tables.append(
                {
                    "name": table.name,
                    "description": table.description,
                    "columns": [
                        {
                            "name": c.name,
                            "dataType": c.data_type.value if c.data_type else None,
                            "maxLength": c.max_length,
                            "precision": c.precision,
                            "scale": c.scale,
                            "nullable": bool(c.nullable),
                            "primaryKey": c.is_primary_key,
                            "identity": c.is_identity,
                            "defaultValue": c.default_value,
                            "description": c.description,
                        }
                        for c in table.sorted_columns()
                    ],
                    "indexes": [
                        {
                            "name": i.name,
                            "type": i.index_type.value,
                            "unique": i.unique,
                            "columns": _index_column_names(table, i),
                        }
                        for i in table.indexes
                    ],
                }
            )

        payload: Dict[str, Any] = {
            "project": {
                "name": project.name,
                "description": project.description,
                "generatedAt": generated_at.isoformat(timespec="seconds"),
                "validation": {
                    "totalErrors": validation.total_error_count,
                    "totalWarnings": validation.total_warning_count,
                    "canExport": validation.can_export_schema,
                },
                "tables": tables,
            }
        }
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    # -- CSV ----------------------------------------------------------------

    def render_csv(
        self, project: Project, validation: SchemaValidationResult, generated_at: datetime
    ) -> str:
        buffer: io.StringIO = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        status: str = STATUS_OK if validation.can_export_schema else STATUS_HAS_ERRORS
        for table in project.tables:
            writer.writerow(
                [
                    table.name,
                    table.description or "",
                    len(table.columns),
                    len(table.indexes),
                    "; ".join(c.name for c in table.primary_key_columns),
                    status,
                ]
            )
        return buffer.getvalue()


__all__: List[str] = [
    "STATUS_OK",
    "STATUS_HAS_ERRORS",
    "CSV_HEADER",
    "ExportFormat",
    "ExportResult",
    "SchemaExporter",
    "export_filename",
    "render_error_report",
]

logger.debug("ddlgen.exporters loaded: %d public symbols.", len(__all__))
