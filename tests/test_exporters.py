"""
tests/test_exporters.py
Unit tests for ddlgen.exporters.

Tests cover:
- Format metadata and file naming
- SQL export and the error report substituted for blocked schemas
- Markdown / HTML / JSON / CSV document shapes and escaping
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from typing import Any, Callable, Dict, Tuple

import pytest

from ddlgen.catalog import DataType
from ddlgen.exporters import (
    CSV_HEADER,
    STATUS_HAS_ERRORS,
    STATUS_OK,
    ExportFormat,
    SchemaExporter,
    export_filename,
)
from ddlgen.generator import parse_raw_schema
from ddlgen.models import Column, Project, SchemaGenerationOptions, Table


@pytest.fixture()
def exporter(fixed_clock: Callable[[], datetime]) -> SchemaExporter:
    return SchemaExporter(clock=fixed_clock)


@pytest.fixture()
def broken_project(invalid_schema_dict: Dict[str, Any]) -> Project:
    project, _ = parse_raw_schema(invalid_schema_dict)
    return project


# ===========================================================================
# Format metadata
# ===========================================================================


class TestFormats:
    """Tests for ExportFormat and export_filename."""

    def test_extensions(self) -> None:
        assert ExportFormat.SQL.extension == ".sql"
        assert ExportFormat.MARKDOWN.extension == ".md"
        assert ExportFormat.HTML.extension == ".html"
        assert ExportFormat.JSON.extension == ".json"
        assert ExportFormat.CSV.extension == ".csv"

    def test_filenames(self, example_project: Tuple[Project, SchemaGenerationOptions]) -> None:
        project, _ = example_project
        assert export_filename(project, ExportFormat.SQL) == "order_management.sql"
        assert export_filename(project, ExportFormat.SQL_WITH_VALIDATION) == "order_management_validated.sql"

    def test_blank_project_name_falls_back(self) -> None:
        assert export_filename(Project(name="  "), ExportFormat.JSON) == "schema.json"

    def test_format_from_string(self, exporter: SchemaExporter, minimal_project: Project) -> None:
        assert exporter.export(minimal_project, "csv").format is ExportFormat.CSV  # type: ignore[arg-type]


# ===========================================================================
# SQL
# ===========================================================================


class TestSqlExport:
    """Tests for SQL and SQL-with-validation exports."""

    def test_sql_success(self, exporter: SchemaExporter, minimal_project: Project) -> None:
        result = exporter.export(minimal_project, ExportFormat.SQL)
        assert result.success
        assert result.validation.can_export_schema
        assert "CREATE TABLE [ITEM] (" in result.content
        assert "-- Generated: 2024-01-15 10:30:00" in result.content

    def test_sql_blocked_returns_error_report(self, exporter: SchemaExporter, broken_project: Project) -> None:
        result = exporter.export(broken_project, ExportFormat.SQL)
        assert not result.success
        assert "CREATE TABLE" not in result.content
        assert result.content.startswith("-- Schema export failed for project 'Broken'.")
        assert "--   - Table 'BAD_TYPES' column 'LABEL': VARCHAR requires a length (max_length)." in result.content
        assert all(line.startswith("--") for line in result.content.splitlines())

    def test_sql_uses_exporter_options(self, fixed_clock: Callable[[], datetime], minimal_project: Project) -> None:
        exporter = SchemaExporter(SchemaGenerationOptions.production(), clock=fixed_clock)
        content = exporter.export(minimal_project, ExportFormat.SQL).content
        assert content.startswith("SET NOCOUNT ON;")

    def test_sql_with_validation_header(self, exporter: SchemaExporter, minimal_project: Project) -> None:
        content = exporter.export(minimal_project, ExportFormat.SQL_WITH_VALIDATION).content
        assert content.startswith("-- ====")
        assert "-- Validation report: Minimal" in content
        assert "export allowed" in content
        assert "CREATE TABLE [ITEM] (" in content

    def test_precomputed_validation_is_reused(self, exporter: SchemaExporter, broken_project: Project) -> None:
        from ddlgen.validators import validate_for_export

        validation = validate_for_export(broken_project)
        results = exporter.export_many(broken_project, [ExportFormat.SQL, ExportFormat.JSON], validation)
        assert all(r.validation is validation for r in results)


# ===========================================================================
# Markdown / HTML
# ===========================================================================


class TestDocuments:
    """Tests for Markdown and HTML documents."""

    def test_markdown_structure(self, exporter: SchemaExporter, example_project: Tuple[Project, SchemaGenerationOptions]) -> None:
        project, _ = example_project
        content = exporter.export(project, ExportFormat.MARKDOWN).content
        assert content.startswith("# Order Management Database Schema\n")
        assert "- **Tables:** 3" in content
        assert "## TB_ORDER_ITEM" in content
        assert "| 1 | CUSTOMER_ID | INT |  | Yes | (1,1) |  | Surrogate key. |" in content
        assert "```sql" in content

    def test_markdown_escapes_pipes(self, exporter: SchemaExporter) -> None:
        project = Project(
            name="P",
            tables=[
                Table(
                    name="T",
                    columns=[Column(name="A", data_type=DataType.INT, is_primary_key=True, description="a|b")],
                )
            ],
        )
        assert "a\\|b" in exporter.export(project, ExportFormat.MARKDOWN).content

    def test_markdown_blocked_shows_errors(self, exporter: SchemaExporter, broken_project: Project) -> None:
        content = exporter.export(broken_project, ExportFormat.MARKDOWN).content
        assert "FAILED" in content
        assert "### Data type errors" in content
        assert "```sql" not in content

    def test_html_escapes_content(self, exporter: SchemaExporter) -> None:
        project = Project(
            name="<Shop>",
            tables=[
                Table(
                    name="T",
                    description="a & b",
                    columns=[Column(name="A", data_type=DataType.INT, is_primary_key=True)],
                )
            ],
        )
        content = exporter.export(project, ExportFormat.HTML).content
        assert "<title>&lt;Shop&gt; Database Schema</title>" in content
        assert "a &amp; b" in content
        assert "<Shop>" not in content
        assert content.rstrip().endswith("</html>")

    def test_html_blocked(self, exporter: SchemaExporter, broken_project: Project) -> None:
        content = exporter.export(broken_project, ExportFormat.HTML).content
        assert '<pre class="error">' in content


# ===========================================================================
# JSON / CSV
# ===========================================================================


class TestDataExports:
    """Tests for JSON and CSV exports."""

    def test_json_structure(self, exporter: SchemaExporter, example_project: Tuple[Project, SchemaGenerationOptions]) -> None:
        project, _ = example_project
        data = json.loads(exporter.export(project, ExportFormat.JSON).content)
        root = data["project"]
        assert root["name"] == "Order Management"
        assert root["generatedAt"] == "2024-01-15T10:30:00"
        assert root["validation"] == {"totalErrors": 0, "totalWarnings": 0, "canExport": True}
        customer = root["tables"][0]
        assert customer["name"] == "TB_CUSTOMER"
        first = customer["columns"][0]
        assert first == {
            "name": "CUSTOMER_ID",
            "dataType": "INT",
            "maxLength": None,
            "precision": None,
            "scale": None,
            "nullable": False,
            "primaryKey": True,
            "identity": True,
            "defaultValue": None,
            "description": "Surrogate key.",
        }
        assert customer["indexes"] == [
            {"name": "UX_TB_CUSTOMER_EMAIL", "type": "NONCLUSTERED", "unique": True, "columns": ["EMAIL"]}
        ]
        note = next(c for c in root["tables"][1]["columns"] if c["name"] == "NOTE")
        assert note["maxLength"] == "MAX"

    def test_json_blocked_keeps_shape(self, exporter: SchemaExporter, broken_project: Project) -> None:
        data = json.loads(exporter.export(broken_project, ExportFormat.JSON).content)
        assert data["project"]["validation"]["canExport"] is False
        assert data["project"]["tables"][0]["name"] == "BAD_TYPES"

    def test_csv_rows(self, exporter: SchemaExporter, example_project: Tuple[Project, SchemaGenerationOptions]) -> None:
        project, _ = example_project
        rows = list(csv.reader(io.StringIO(exporter.export(project, ExportFormat.CSV).content)))
        assert tuple(rows[0]) == CSV_HEADER
        assert rows[3] == ["TB_ORDER_ITEM", "Order lines.", "9", "0", "ORDER_ID; LINE_NO", STATUS_OK]

    def test_csv_quotes_special_characters(self, exporter: SchemaExporter) -> None:
        project = Project(
            name="P",
            tables=[
                Table(
                    name="T",
                    description='say "hi", then leave',
                    columns=[Column(name="A", data_type=DataType.INT, is_primary_key=True)],
                )
            ],
        )
        content = exporter.export(project, ExportFormat.CSV).content
        assert '"say ""hi"", then leave"' in content

    def test_csv_blocked_status(self, exporter: SchemaExporter, broken_project: Project) -> None:
        rows = list(csv.reader(io.StringIO(exporter.export(broken_project, ExportFormat.CSV).content)))
        assert rows[1][-1] == STATUS_HAS_ERRORS
