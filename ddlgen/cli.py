# File: ddlgen/cli.py
"""
ddlgen - Command-Line Interface
=================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate DDL + Markdown docs
    python -m ddlgen --schema schema.yaml --output ./out

    # Every artifact, production preset, verbose
    python -m ddlgen -s schema.yaml -o ./out -f all --preset production -v

    # Validate only, including the advanced heuristics
    python -m ddlgen -s schema.yaml --validate-only --advanced

    # ALTER script from an older snapshot of the same schema
    python -m ddlgen -s schema_v2.yaml --alter-from schema_v1.yaml

Exit codes:
    0 - success
    1 - validation error
    2 - generation error
    3 - export error
    4 - input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_FORMAT_CHOICES: List[str] = [
    "sql", "sql_with_validation", "markdown", "html", "json", "csv", "all",
]


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``ddlgen`` logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("ddlgen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from ddlgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="ddlgen",
        description=(
            "ddlgen: schema validation and SQL Server DDL generation.\n\n"
            "Validates a schema definition (JSON/YAML) and renders DDL plus "
            "Markdown/HTML/JSON/CSV documentation."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.yaml -o ./out\n"
            "  %(prog)s -s schema.yaml -o ./out -f all --preset production\n"
            "  %(prog)s -s schema.yaml --validate-only --advanced\n"
            "  %(prog)s -s schema_v2.yaml --alter-from schema_v1.yaml\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ddlgen v{__version__}",
    )

    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the schema definition file (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory. Required unless --validate-only or --alter-from is set.",
    )
    parser.add_argument(
        "-f", "--format",
        dest="formats",
        action="append",
        choices=_FORMAT_CHOICES,
        default=None,
        help="Artifact to produce; repeatable. Default: sql and markdown.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the schema; write nothing.",
    )
    mode_group.add_argument(
        "--advanced",
        action="store_true",
        default=False,
        help="Also run the performance / best-practice / security heuristics.",
    )
    mode_group.add_argument(
        "--alter-from",
        type=str,
        default=None,
        metavar="PATH",
        help="Emit an ALTER script from this older schema file to --schema.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    # --- Option overrides ---
    options_group = parser.add_argument_group("DDL options")
    options_group.add_argument(
        "--preset",
        type=str,
        default=None,
        choices=["default", "production", "development"],
        help="Start from a predefined option set instead of the file's options.",
    )
    options_group.add_argument(
        "--drop",
        action="store_true",
        default=False,
        help="Emit DROP TABLE statements before the creates.",
    )
    options_group.add_argument(
        "--no-existence-checks",
        action="store_true",
        default=False,
        help="Emit plain CREATE TABLE without IF NOT EXISTS guards.",
    )
    options_group.add_argument(
        "--batch",
        action="store_true",
        default=False,
        help="Wrap the script in a single transaction.",
    )
    options_group.add_argument(
        "--no-comments",
        action="store_true",
        default=False,
        help="Omit SQL comments.",
    )
    options_group.add_argument(
        "--no-indexes",
        action="store_true",
        default=False,
        help="Omit CREATE INDEX statements.",
    )
    options_group.add_argument(
        "--no-constraints",
        action="store_true",
        default=False,
        help="Omit CHECK and UNIQUE constraints.",
    )
    options_group.add_argument(
        "--schema-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Create this database schema if it does not exist.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Option override builder
# ---------------------------------------------------------------------------


def _build_option_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """Build an options override dictionary from CLI arguments."""
    from ddlgen.models import SchemaGenerationOptions

    overrides: Dict[str, object] = {}

    if args.preset is not None:
        overrides.update(SchemaGenerationOptions.preset(args.preset).model_dump())

    if args.drop:
        overrides["include_drop_statements"] = True
    if args.no_existence_checks:
        overrides["include_existence_checks"] = False
    if args.batch:
        overrides["generate_batch_script"] = True
    if args.no_comments:
        overrides["include_comments"] = False
    if args.no_indexes:
        overrides["include_indexes"] = False
    if args.no_constraints:
        overrides["include_constraints"] = False
    if args.schema_name is not None:
        overrides["schema_name"] = args.schema_name

    return overrides


def _selected_formats(args: argparse.Namespace) -> List[str]:
    if not args.formats:
        return ["sql", "markdown"]
    if "all" in args.formats:
        return [c for c in _FORMAT_CHOICES if c != "all"]
    # Keep first occurrence order, drop repeats
    return list(dict.fromkeys(args.formats))


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(schema_path: Path, advanced: bool, fail_on_warnings: bool) -> int:
    """Run validation only and print the report.  Returns the exit code."""
    from ddlgen.advisor import validate_advanced
    from ddlgen.generator import load_project
    from ddlgen.utils import Timer
    from ddlgen.validators import validate_for_export

    logger.info("Running validation-only mode for: %s", schema_path)

    try:
        project, _ = load_project(schema_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load schema: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_for_export(project)
        report_text: str = (
            validate_advanced(project, result).format_report()
            if advanced
            else result.format_report()
        )

    print(f"\n{'=' * 50}")
    print("  Schema Validation Report")
    print(f"{'=' * 50}")
    print(f"  File:       {schema_path.name}")
    print(f"  Tables:     {len(project.tables)}")
    print(f"  Time:       {t.elapsed:.3f}s")
    print(f"  Exportable: {'Yes' if result.can_export_schema else 'No'}")
    print()
    print(report_text)
    print(f"{'=' * 50}\n")

    if not result.can_export_schema:
        return EXIT_VALIDATION_ERROR
    if fail_on_warnings and result.total_warning_count:
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# ALTER mode
# ---------------------------------------------------------------------------


def _run_alter(schema_path: Path, original_path: Path, output_dir: Optional[Path]) -> int:
    from ddlgen.exporters import ExportFormat, export_filename
    from ddlgen.generator import generate_alter_script, load_project
    from ddlgen.utils import write_file

    try:
        script: str = generate_alter_script(original_path, schema_path)
        project, _ = load_project(schema_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to build ALTER script: %s", exc)
        return EXIT_INPUT_ERROR

    if not script.strip():
        logger.warning("No differences between %s and %s.", original_path.name, schema_path.name)

    if output_dir is None:
        sys.stdout.write(script)
        return EXIT_SUCCESS

    target: Path = output_dir / export_filename(project, ExportFormat.SQL).replace(".sql", "_alter.sql")
    try:
        write_file(target, script)
    except OSError as exc:
        logger.error("Failed to write %s: %s", target, exc)
        return EXIT_EXPORT_ERROR
    logger.info("ALTER script written to %s.", target)
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(schema_path: Path, output_dir: Path, args: argparse.Namespace) -> int:
    """Run the full generation pipeline.  Returns the exit code."""
    from ddlgen.exporters import ExportFormat
    from ddlgen.generator import GenerationReport, SchemaGenerator

    generator: SchemaGenerator = SchemaGenerator(
        formats=[ExportFormat(f) for f in _selected_formats(args)],
        run_advanced=args.advanced,
        fail_on_warnings=args.fail_on_warnings,
        dry_run=args.dry_run,
    )

    overrides: Dict[str, object] = _build_option_overrides(args)
    report: GenerationReport = generator.generate_from_file(
        schema_path,
        output_dir,
        option_overrides=overrides or None,
    )

    print(report.summary())

    if not report.success:
        if report.validation_errors:
            return EXIT_VALIDATION_ERROR
        if args.fail_on_warnings and report.validation_warnings and not report.exports:
            return EXIT_VALIDATION_ERROR
        if report.export_errors:
            return EXIT_EXPORT_ERROR
        if report.step_metrics and not report.step_metrics[0].success:
            return EXIT_INPUT_ERROR
        return EXIT_GENERATION_ERROR

    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, args.advanced, args.fail_on_warnings))

    output_dir: Optional[Path] = Path(args.output).resolve() if args.output else None

    if args.alter_from is not None:
        original_path: Path = Path(args.alter_from).resolve()
        if not original_path.is_file():
            logger.error("Original schema file not found: %s", original_path)
            sys.exit(EXIT_INPUT_ERROR)
        sys.exit(_run_alter(schema_path, original_path, output_dir))

    if output_dir is None:
        if not args.dry_run:
            logger.error(
                "Output directory is required for generation. "
                "Use -o/--output, --dry-run or --validate-only."
            )
            parser.print_usage(sys.stderr)
            sys.exit(EXIT_INPUT_ERROR)
        output_dir = Path.cwd()

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", output_dir)

    exit_code: int = _run_generation(schema_path, output_dir, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


__all__: List[str] = [
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
