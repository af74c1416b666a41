"""
tests/test_cli.py
Tests for the ddlgen command-line interface (exit codes and side effects).
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict, List

import pytest
import yaml

from ddlgen.cli import (
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    _build_option_overrides,
    _build_parser,
    _selected_formats,
    cli_main,
)


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return int(exc_info.value.code)


# ===========================================================================
# Argument handling
# ===========================================================================


class TestArguments:
    """Tests for parser helpers."""

    def test_default_formats(self) -> None:
        args = _build_parser().parse_args(["-s", "x.yaml"])
        assert _selected_formats(args) == ["sql", "markdown"]

    def test_all_formats_expand(self) -> None:
        args = _build_parser().parse_args(["-s", "x.yaml", "-f", "json", "-f", "all"])
        assert _selected_formats(args) == [
            "sql", "sql_with_validation", "markdown", "html", "json", "csv",
        ]

    def test_repeated_formats_deduplicated(self) -> None:
        args = _build_parser().parse_args(["-s", "x.yaml", "-f", "csv", "-f", "sql", "-f", "csv"])
        assert _selected_formats(args) == ["csv", "sql"]

    def test_no_flags_no_overrides(self) -> None:
        args = _build_parser().parse_args(["-s", "x.yaml"])
        assert _build_option_overrides(args) == {}

    def test_flags_applied_over_preset(self) -> None:
        args = _build_parser().parse_args(
            ["-s", "x.yaml", "--preset", "production", "--no-comments", "--schema-name", "sales"]
        )
        overrides = _build_option_overrides(args)
        assert overrides["generate_batch_script"] is True
        assert overrides["include_comments"] is False
        assert overrides["schema_name"] == "sales"

    def test_schema_is_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args([])
        assert exc_info.value.code == 2


# ===========================================================================
# Exit codes
# ===========================================================================


class TestExitCodes:
    """End-to-end CLI runs."""

    def test_missing_schema_file(self, tmp_path: pathlib.Path) -> None:
        assert _run(["-s", str(tmp_path / "nope.yaml"), "-o", str(tmp_path)]) == EXIT_INPUT_ERROR

    def test_validate_only_success(
        self, schema_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["-s", str(schema_yaml_path), "--validate-only", "-q"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Schema Validation Report" in out
        assert "Exportable: Yes" in out

    def test_validate_only_advanced(
        self, schema_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run(["-s", str(schema_yaml_path), "--validate-only", "--advanced", "-q"])
        assert code == EXIT_SUCCESS
        assert "Best practice" in capsys.readouterr().out

    def test_validate_only_invalid(self, invalid_schema_yaml_path: pathlib.Path) -> None:
        code = _run(["-s", str(invalid_schema_yaml_path), "--validate-only", "-q"])
        assert code == EXIT_VALIDATION_ERROR

    def test_validate_only_unparseable(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert _run(["-s", str(path), "--validate-only", "-q"]) == EXIT_INPUT_ERROR

    def test_generation_writes_files(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-s", str(schema_yaml_path), "-o", str(output_dir), "-f", "sql", "-f", "json", "-q"])
        assert code == EXIT_SUCCESS
        assert sorted(p.name for p in output_dir.iterdir()) == [
            "manifest.json",
            "order_management.json",
            "order_management.sql",
        ]

    def test_generation_applies_flags(
        self, minimal_schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(
            ["-s", str(minimal_schema_yaml_path), "-o", str(output_dir), "-f", "sql", "--batch", "-q"]
        )
        assert code == EXIT_SUCCESS
        content = (output_dir / "minimal.sql").read_text(encoding="utf-8")
        assert content.startswith("SET NOCOUNT ON;")

    def test_generation_invalid_schema(
        self, invalid_schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run(["-s", str(invalid_schema_yaml_path), "-o", str(output_dir), "-q"])
        assert code == EXIT_VALIDATION_ERROR
        assert list(output_dir.iterdir()) == []

    def test_fail_on_warnings(
        self,
        minimal_schema_dict: Dict[str, Any],
        tmp_path: pathlib.Path,
        output_dir: pathlib.Path,
    ) -> None:
        column = minimal_schema_dict["project"]["tables"][0]["columns"][0]
        column["primary_key"] = False
        column["nullable"] = False
        path = tmp_path / "nopk.yaml"
        path.write_text(yaml.dump(minimal_schema_dict), encoding="utf-8")

        code = _run(["-s", str(path), "-o", str(output_dir), "--fail-on-warnings", "-q"])
        assert code == EXIT_VALIDATION_ERROR

    def test_output_required_without_dry_run(self, schema_yaml_path: pathlib.Path) -> None:
        assert _run(["-s", str(schema_yaml_path), "-q"]) == EXIT_INPUT_ERROR

    def test_dry_run_without_output(
        self,
        schema_yaml_path: pathlib.Path,
        tmp_path: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        workdir = tmp_path / "cwd"
        workdir.mkdir()
        monkeypatch.chdir(workdir)
        assert _run(["-s", str(schema_yaml_path), "--dry-run", "-q"]) == EXIT_SUCCESS
        assert list(workdir.iterdir()) == []


# ===========================================================================
# ALTER mode
# ===========================================================================


class TestAlterMode:
    """Tests for --alter-from."""

    @pytest.fixture()
    def modified_path(self, schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
        modified = copy.deepcopy(schema_dict)
        customer = modified["project"]["tables"][0]
        customer["columns"] = [c for c in customer["columns"] if c["name"] != "PHONE"]
        path = tmp_path / "modified.yaml"
        path.write_text(yaml.dump(modified), encoding="utf-8")
        return path

    def test_alter_to_stdout(
        self,
        schema_yaml_path: pathlib.Path,
        modified_path: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = _run(["-s", str(modified_path), "--alter-from", str(schema_yaml_path), "-q"])
        assert code == EXIT_SUCCESS
        assert "ALTER TABLE [TB_CUSTOMER] DROP COLUMN [PHONE];" in capsys.readouterr().out

    def test_alter_to_file(
        self,
        schema_yaml_path: pathlib.Path,
        modified_path: pathlib.Path,
        output_dir: pathlib.Path,
    ) -> None:
        code = _run(
            [
                "-s", str(modified_path),
                "--alter-from", str(schema_yaml_path),
                "-o", str(output_dir),
                "-q",
            ]
        )
        assert code == EXIT_SUCCESS
        script = (output_dir / "order_management_alter.sql").read_text(encoding="utf-8")
        assert "DROP COLUMN [PHONE]" in script

    def test_alter_missing_original(self, schema_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        code = _run(["-s", str(schema_yaml_path), "--alter-from", str(tmp_path / "old.yaml"), "-q"])
        assert code == EXIT_INPUT_ERROR
