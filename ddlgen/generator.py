# File: ddlgen/generator.py
"""
ddlgen - Generation Pipeline
==============================
Loads schema files, turns them into models and drives the pipeline:

    load file → parse → validate → (advanced checks) → render → write

``SchemaGenerator`` is the orchestrator used by the CLI.  It returns a
``GenerationReport`` with per-step timings, findings and the list of files
written (plus a ``manifest.json`` with SHA-256 checksums).

Schema file layout (YAML or JSON)::

    project:
      name: Shop
      naming_rules: {enforce_case: UPPER, table_prefix: TB_}
      tables:
        - name: TB_USER
          columns:
            - {name: USER_ID, type: INT, primary_key: true, identity: true}
            - {name: EMAIL, type: NVARCHAR, length: 255}
          indexes:
            - {name: IX_TB_USER_EMAIL, unique: true, columns: [EMAIL]}
    options:
      generate_batch_script: true

Ids are optional; missing ones are derived from names with ``uuid5`` so two
files describing the same schema get the same ids (used by ALTER diffs).
Index columns may be given by column name.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from ddlgen.advisor import AdvancedValidationResult, validate_advanced
from ddlgen.exporters import ExportFormat, ExportResult, SchemaExporter
from ddlgen.models import Project, SchemaGenerationOptions
from ddlgen.sql import SqlGenerator
from ddlgen.utils import Timer, count_lines, ensure_directory, read_file, sha256_hex, write_file
from ddlgen.validators import SchemaValidationResult, validate_for_export

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.generator")

ID_NAMESPACE: uuid.UUID = uuid.uuid5(uuid.NAMESPACE_URL, "ddlgen://schema")
MANIFEST_FILENAME: str = "manifest.json"

DEFAULT_FORMATS: Tuple[ExportFormat, ...] = (
    ExportFormat.SQL,
    ExportFormat.MARKDOWN,
)


# ---------------------------------------------------------------------------
# Report data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of every written artifact, serialisable to JSON."""

    project_name: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    can_export: bool = False
    files: List[FileRecord] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "can_export": self.can_export,
            "total_files": len(self.files),
            "total_bytes": self.total_bytes,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``SchemaGenerator.generate()``.

    ``validation_errors`` holds only the blocking (structural and datatype)
    errors; naming findings are listed with the warnings.
    """

    success: bool = False
    project_name: str = ""
    output_directory: str = ""

    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_tables_processed: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    advisories: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    validation: Optional[SchemaValidationResult] = None
    exports: List[ExportResult] = field(default_factory=list)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append("=" * 60)
        lines.append("  ddlgen - Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Tables processed: {self.total_tables_processed}")
        lines.append(f"  Files written:    {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        sections = (
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Advisories", self.advisories, "ℹ"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
        )
        for title, items, icon in sections:
            if not items:
                continue
            lines.append("─" * 60)
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(read_file(path))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(read_file(path))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema definition file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    # YAML is a superset of JSON
    logger.info("Unknown extension '%s'; parsing as YAML.", suffix)
    return _load_yaml_file(path)


# ---------------------------------------------------------------------------
# Raw dict → model normalisation
# ---------------------------------------------------------------------------

_COLUMN_ALIASES: Dict[str, str] = {
    "type": "data_type",
    "length": "max_length",
    "primary_key": "is_primary_key",
    "pk": "is_primary_key",
    "default": "default_value",
    "order": "order_index",
}


def derive_id(*parts: str) -> uuid.UUID:
    """Stable id for a schema object that has none in the source file."""
    return uuid.uuid5(ID_NAMESPACE, "/".join(p.lower() for p in parts))


def _normalise_column(raw: Dict[str, Any], table_name: str, position: int) -> Dict[str, Any]:
    data: Dict[str, Any] = {_COLUMN_ALIASES.get(k, k): v for k, v in raw.items()}

    identity: Any = data.pop("identity", None)
    if isinstance(identity, dict):
        data["is_identity"] = True
        data["identity_seed"] = identity.get("seed", 1)
        data["identity_increment"] = identity.get("increment", 1)
    elif identity is not None:
        data["is_identity"] = bool(identity)

    if data.get("default_value") is not None:
        data["default_value"] = str(data["default_value"])

    data.setdefault("order_index", position)
    data.setdefault("id", derive_id("column", table_name, str(data.get("name", position))))
    return data


def _normalise_index(
    raw: Dict[str, Any], table_name: str, column_ids: Dict[str, Any]
) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(raw)
    keys: List[Dict[str, Any]] = []

    for entry in data.pop("columns", []) or []:
        if isinstance(entry, str):
            entry = {"column": entry}
        entry = dict(entry)
        order: Any = entry.pop("order", entry.pop("sort_order", "ASC"))
        if "column_id" not in entry:
            name: str = str(entry.pop("column", ""))
            entry["column_id"] = column_ids.get(name.lower(), derive_id("column", table_name, name))
        keys.append({"column_id": entry["column_id"], "sort_order": str(order).upper()})

    data["columns"] = keys
    data.setdefault("id", derive_id("index", table_name, str(data.get("name", ""))))
    return data


def _normalise_table(raw: Dict[str, Any]) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(raw)
    table_name: str = str(data.get("name", ""))

    columns: List[Dict[str, Any]] = [
        _normalise_column(dict(col), table_name, position)
        for position, col in enumerate(data.get("columns", []) or [])
    ]
    column_ids: Dict[str, Any] = {str(c.get("name", "")).lower(): c["id"] for c in columns}

    data["columns"] = columns
    data["indexes"] = [
        _normalise_index(dict(idx), table_name, column_ids)
        for idx in data.get("indexes", []) or []
    ]
    data.setdefault("id", derive_id("table", table_name))
    return data


def parse_raw_schema(raw: Dict[str, Any]) -> Tuple[Project, SchemaGenerationOptions]:
    """
    Parse a raw dictionary (from JSON/YAML) into validated Pydantic models.

    Expected top-level keys:
        - "project": the project with its tables (required)
        - "options": generation options (optional; defaults otherwise)

    Raises:
        ValueError: If required keys are missing or model validation fails.
    """
    project_data: Any = raw.get("project")
    if not isinstance(project_data, dict):
        raise ValueError(
            "Cannot find project definition in input. Expected a top-level "
            "'project' mapping."
        )

    project_data = dict(project_data)
    project_data["tables"] = [
        _normalise_table(dict(t)) for t in project_data.get("tables", []) or []
    ]

    options_data: Any = raw.get("options") or {}
    if not isinstance(options_data, dict):
        raise ValueError("'options' must be a mapping.")
    if not options_data:
        logger.info("No generation options found in input; using defaults.")

    try:
        project: Project = Project.model_validate(project_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Project validation failed: {exc}") from exc

    try:
        options: SchemaGenerationOptions = SchemaGenerationOptions.model_validate(options_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Options validation failed: {exc}") from exc

    return project, options


def load_project(path: Path) -> Tuple[Project, SchemaGenerationOptions]:
    """Shortcut for ``parse_raw_schema(load_schema_file(path))``."""
    return parse_raw_schema(load_schema_file(path))


def generate_alter_script(original_path: Path, modified_path: Path) -> str:
    """ALTER script turning the schema in *original_path* into *modified_path*."""
    original, _ = load_project(original_path)
    modified, options = load_project(modified_path)
    return SqlGenerator().alter_project(original, modified, options.include_comments)


# ---------------------------------------------------------------------------
# SchemaGenerator: pipeline orchestrator
# ---------------------------------------------------------------------------


class SchemaGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = SchemaGenerator(formats=[ExportFormat.SQL, ExportFormat.HTML])
        report = generator.generate_from_file(Path("schema.yaml"), Path("./out"))
        print(report.summary())

    The generator is reusable: create once, call ``generate()`` many times.
    """

    def __init__(
        self,
        *,
        formats: Sequence[ExportFormat] = DEFAULT_FORMATS,
        run_advanced: bool = False,
        fail_on_warnings: bool = False,
        dry_run: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._formats: Tuple[ExportFormat, ...] = tuple(ExportFormat(f) for f in formats)
        self._run_advanced: bool = run_advanced
        self._fail_on_warnings: bool = fail_on_warnings
        self._dry_run: bool = dry_run
        self._clock: Callable[[], datetime] = clock or datetime.now

        logger.debug(
            "SchemaGenerator initialised: formats=%s, advanced=%s, "
            "fail_on_warnings=%s, dry_run=%s.",
            [f.value for f in self._formats],
            run_advanced,
            fail_on_warnings,
            dry_run,
        )

    # -- Public -------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Path,
        *,
        option_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """Full pipeline: load file → validate → render → write."""
        report: GenerationReport = GenerationReport()
        report.output_directory = str(output_dir.resolve())

        failure: Optional[str] = None
        with Timer("load_schema") as t_load:
            try:
                project, options = load_project(schema_path)
                if option_overrides:
                    options = SchemaGenerationOptions.model_validate(
                        {**options.model_dump(), **option_overrides}
                    )
            except (FileNotFoundError, ValueError) as exc:
                failure = str(exc)

        if failure is not None:
            report.generation_errors.append(failure)
            report.step_metrics.append(
                GenerationStepMetric("Load Schema File", False, t_load.elapsed, failure)
            )
            return self._finalise_report(report, t_load.elapsed)

        report.step_metrics.append(
            GenerationStepMetric(
                "Load Schema File",
                True,
                t_load.elapsed,
                f"{schema_path.name}: {len(project.tables)} tables",
            )
        )
        logger.info("Loaded schema file: %s (%d tables).", schema_path, len(project.tables))
        return self._run_pipeline(project, options, output_dir, report)

    def generate(
        self,
        project: Project,
        options: Optional[SchemaGenerationOptions],
        output_dir: Path,
    ) -> GenerationReport:
        """Full pipeline from an in-memory project."""
        report: GenerationReport = GenerationReport()
        report.output_directory = str(output_dir.resolve())
        return self._run_pipeline(
            project, options or SchemaGenerationOptions(), output_dir, report
        )

    # -- Pipeline -----------------------------------------------------------

    def _run_pipeline(
        self,
        project: Project,
        options: SchemaGenerationOptions,
        output_dir: Path,
        report: GenerationReport,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()
        report.project_name = project.name
        report.total_tables_processed = len(project.tables)

        validation: SchemaValidationResult = self._step_validate(project, report)

        if self._run_advanced:
            self._step_advanced(project, validation, report)

        if not validation.can_export_schema:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        if self._fail_on_warnings and report.validation_warnings:
            report.generation_errors.append(
                f"{len(report.validation_warnings)} warning(s) treated as errors."
            )
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        exports: List[ExportResult] = self._step_render(project, options, validation, report)

        if not self._dry_run:
            self._step_write(project, exports, validation, output_dir, report)
        else:
            logger.info("Dry run: %d artifact(s) rendered, nothing written.", len(exports))

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    def _step_validate(self, project: Project, report: GenerationReport) -> SchemaValidationResult:
        with Timer("validation") as t:
            validation: SchemaValidationResult = validate_for_export(project)

        report.validation = validation
        report.validation_errors.extend(i.message for i in validation.blocking_errors)
        report.validation_warnings.extend(
            i.message
            for i in (
                validation.structural_warnings
                + validation.datatype_warnings
                + validation.naming_errors
                + validation.naming_warnings
            )
        )

        report.step_metrics.append(
            GenerationStepMetric(
                "Validate Schema",
                validation.can_export_schema,
                t.elapsed,
                f"{validation.total_error_count} error(s), "
                f"{validation.total_warning_count} warning(s)",
            )
        )

        for message in report.validation_errors:
            logger.error("  ✗ %s", message)
        for message in report.validation_warnings:
            logger.warning("  ⚠ %s", message)
        return validation

    def _step_advanced(
        self,
        project: Project,
        validation: SchemaValidationResult,
        report: GenerationReport,
    ) -> None:
        with Timer("advanced") as t:
            advanced: AdvancedValidationResult = validate_advanced(project, validation)

        for bucket in (advanced.performance, advanced.best_practice, advanced.security):
            report.advisories.extend(i.message for i in bucket.all_items)

        report.step_metrics.append(
            GenerationStepMetric(
                "Advanced Checks", True, t.elapsed, f"{advanced.advisory_count} finding(s)"
            )
        )

    def _step_render(
        self,
        project: Project,
        options: SchemaGenerationOptions,
        validation: SchemaValidationResult,
        report: GenerationReport,
    ) -> List[ExportResult]:
        exporter: SchemaExporter = SchemaExporter(options, clock=self._clock)

        with Timer("render") as t:
            exports: List[ExportResult] = exporter.export_many(project, self._formats, validation)

        report.exports = exports
        report.total_lines = sum(count_lines(e.content) for e in exports)
        report.step_metrics.append(
            GenerationStepMetric(
                "Render Artifacts",
                True,
                t.elapsed,
                ", ".join(e.filename for e in exports),
            )
        )
        return exports

    def _step_write(
        self,
        project: Project,
        exports: List[ExportResult],
        validation: SchemaValidationResult,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        from ddlgen import __version__

        manifest: ExportManifest = ExportManifest(
            project_name=project.name,
            generator_version=__version__,
            export_timestamp=self._clock().isoformat(timespec="seconds"),
            output_directory=str(output_dir.resolve()),
            can_export=validation.can_export_schema,
        )

        with Timer("write") as t:
            try:
                ensure_directory(output_dir)
                for export in exports:
                    target: Path = output_dir / export.filename
                    size: int = write_file(target, export.content)
                    manifest.files.append(
                        FileRecord(
                            relative_path=export.filename,
                            absolute_path=str(target.resolve()),
                            size_bytes=size,
                            line_count=count_lines(export.content),
                            sha256=sha256_hex(export.content),
                        )
                    )
                write_file(output_dir / MANIFEST_FILENAME, manifest.to_json() + "\n")
            except OSError as exc:
                report.export_errors.append(f"Failed to write artifacts: {exc}")
                logger.error("Failed to write artifacts to %s: %s", output_dir, exc)

        report.manifest = manifest
        report.total_files = len(manifest.files)
        report.total_bytes = manifest.total_bytes
        report.step_metrics.append(
            GenerationStepMetric(
                "Write Files",
                not report.export_errors,
                t.elapsed,
                f"{report.total_files} files, {report.total_bytes:,} bytes",
            )
        )
        logger.info("Wrote %d file(s) to %s.", report.total_files, output_dir)

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.validation_errors or report.generation_errors or report.export_errors
        )
        return report


__all__: List[str] = [
    "DEFAULT_FORMATS",
    "MANIFEST_FILENAME",
    "FileRecord",
    "ExportManifest",
    "GenerationStepMetric",
    "GenerationReport",
    "derive_id",
    "load_schema_file",
    "parse_raw_schema",
    "load_project",
    "generate_alter_script",
    "SchemaGenerator",
]

logger.debug("ddlgen.generator loaded.")
