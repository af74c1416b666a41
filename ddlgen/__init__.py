# File: ddlgen/__init__.py
"""
ddlgen - Schema Validation and SQL Server DDL Generation
=========================================================

Turns a declarative schema definition (JSON/YAML) into SQL Server DDL,
after checking it against the data type catalogue, the structural rules
and the project's naming conventions.  Also renders Markdown, HTML, JSON
and CSV documentation, and ALTER scripts between two schema versions.

Architecture overview::

    ┌──────────────┐     ┌─────────────────┐     ┌────────────────┐
    │  CLI / Entry │────▶│ SchemaGenerator │────▶│ SchemaExporter │
    │   (cli.py)   │     │ (generator.py)  │     │ (exporters.py) │
    └──────────────┘     └────────┬────────┘     └───────┬────────┘
                                  │                      ▼
                                  │              ┌──────────────┐
                                  │              │ SqlGenerator │
                                  │              │   (sql.py)   │
                                  │              └──────────────┘
                    ┌─────────────┼─────────────┐
                    ▼             ▼             ▼
             ┌────────────┐ ┌──────────┐ ┌───────────┐
             │ validators │ │  naming  │ │  catalog  │
             │  advisor   │ │  (.py)   │ │   (.py)   │
             └────────────┘ └──────────┘ └───────────┘

Usage::

    # As a library
    from ddlgen import SqlGenerator, load_project, validate_for_export
    project, options = load_project(Path("schema.yaml"))
    if validate_for_export(project).can_export_schema:
        print(SqlGenerator().generate_project(project, options))

    # From the command line
    python -m ddlgen --schema schema.yaml --output ./out --verbose
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from ddlgen.catalog import (
    DataType,
    TypeCategory,
    TypeSpec,
    get_spec,
    is_compatible,
    render_type,
    validate_column,
)
from ddlgen.models import (
    CaseStyle,
    Column,
    Index,
    IndexColumn,
    IndexType,
    NamingRules,
    Project,
    SchemaGenerationOptions,
    SortOrder,
    Table,
)
from ddlgen.results import ValidationIssue, ValidationResult
from ddlgen.naming import (
    suggest_column_name,
    suggest_index_name,
    suggest_table_name,
    validate_column_name,
    validate_index_name,
    validate_naming,
    validate_table_name,
)
from ddlgen.validators import SchemaValidationResult, validate_for_export
from ddlgen.advisor import AdvancedValidationResult, validate_advanced
from ddlgen.sql import SchemaExportError, SqlGenerator
from ddlgen.exporters import ExportFormat, ExportResult, SchemaExporter
from ddlgen.generator import (
    GenerationReport,
    SchemaGenerator,
    generate_alter_script,
    load_project,
    parse_raw_schema,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Catalogue
    "DataType",
    "TypeCategory",
    "TypeSpec",
    "get_spec",
    "is_compatible",
    "render_type",
    "validate_column",
    # Models
    "CaseStyle",
    "Column",
    "Index",
    "IndexColumn",
    "IndexType",
    "NamingRules",
    "Project",
    "SchemaGenerationOptions",
    "SortOrder",
    "Table",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    "SchemaValidationResult",
    "AdvancedValidationResult",
    "validate_for_export",
    "validate_advanced",
    "validate_naming",
    "validate_table_name",
    "validate_column_name",
    "validate_index_name",
    "suggest_table_name",
    "suggest_column_name",
    "suggest_index_name",
    # Generation
    "SqlGenerator",
    "SchemaExportError",
    "SchemaExporter",
    "ExportFormat",
    "ExportResult",
    "SchemaGenerator",
    "GenerationReport",
    "load_project",
    "parse_raw_schema",
    "generate_alter_script",
]
