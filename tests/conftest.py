"""
tests/conftest.py
Shared fixtures for the ddlgen test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from datetime import datetime
from typing import Any, Callable, Dict, Tuple

import pytest
import yaml

from ddlgen.generator import parse_raw_schema
from ddlgen.models import Project, SchemaGenerationOptions


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"

FIXED_TIME: datetime = datetime(2024, 1, 15, 10, 30, 0)


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def example_project(schema_dict: Dict[str, Any]) -> Tuple[Project, SchemaGenerationOptions]:
    """The reference schema parsed into models."""
    return parse_raw_schema(schema_dict)


# ---------------------------------------------------------------------------
# Minimal / edge-case schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_schema_dict() -> Dict[str, Any]:
    """Smallest valid schema: one table, one identity key, one text column."""
    return {
        "project": {
            "name": "Minimal",
            "description": "Minimal test project",
            "tables": [
                {
                    "name": "ITEM",
                    "description": "A simple item",
                    "columns": [
                        {"name": "ITEM_ID", "type": "INT", "primary_key": True, "identity": True},
                        {"name": "TITLE", "type": "NVARCHAR", "length": 100, "nullable": False},
                    ],
                }
            ],
        }
    }


@pytest.fixture()
def minimal_schema_yaml_path(
    minimal_schema_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    """Write minimal schema to a temp YAML and return the path."""
    path = tmp_path / "minimal_schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(minimal_schema_dict, fh, default_flow_style=False)
    return path


@pytest.fixture()
def minimal_project(minimal_schema_dict: Dict[str, Any]) -> Project:
    project, _ = parse_raw_schema(minimal_schema_dict)
    return project


# ---------------------------------------------------------------------------
# Invalid schema fixtures (for negative testing)
# ---------------------------------------------------------------------------


@pytest.fixture()
def invalid_schema_dict() -> Dict[str, Any]:
    """Schema with blocking data type errors (missing length, bad scale)."""
    return {
        "project": {
            "name": "Broken",
            "tables": [
                {
                    "name": "BAD_TYPES",
                    "columns": [
                        {"name": "ID", "type": "INT", "primary_key": True},
                        {"name": "LABEL", "type": "VARCHAR"},
                        {"name": "AMOUNT", "type": "DECIMAL", "precision": 5, "scale": 8},
                    ],
                }
            ],
        }
    }


@pytest.fixture()
def invalid_schema_yaml_path(
    invalid_schema_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    path = tmp_path / "invalid_schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(invalid_schema_dict, fh, default_flow_style=False)
    return path


@pytest.fixture()
def schema_missing_project() -> Dict[str, Any]:
    """Schema with the 'project' section entirely missing."""
    return {
        "options": {"include_comments": True},
        "tables": [
            {"name": "DUMMY", "columns": [{"name": "ID", "type": "INT", "primary_key": True}]}
        ],
    }


# ---------------------------------------------------------------------------
# Clock fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def fixed_clock() -> Callable[[], datetime]:
    """Clock returning FIXED_TIME, for deterministic output."""
    return lambda: FIXED_TIME


# ---------------------------------------------------------------------------
# Output directory fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Return a fresh temporary output directory for generated artifacts."""
    out = tmp_path / "out"
    out.mkdir(parents=True, exist_ok=True)
    return out
