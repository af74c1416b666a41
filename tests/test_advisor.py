"""
tests/test_advisor.py
Unit tests for ddlgen.advisor (performance / best-practice / security
heuristics).
"""

from __future__ import annotations

from typing import List, Tuple

from ddlgen.advisor import (
    check_best_practice,
    check_performance,
    check_security,
    validate_advanced,
)
from ddlgen.catalog import DataType
from ddlgen.models import Column, Index, IndexType, Project, SchemaGenerationOptions, Table


def _columns(count: int) -> List[Column]:
    return [
        Column(name=f"C{i}", data_type=DataType.INT, order_index=i) for i in range(count)
    ]


# ===========================================================================
# Performance
# ===========================================================================


class TestPerformance:
    """Tests for check_performance."""

    def test_unindexed_table_with_many_columns(self) -> None:
        table = Table(name="T", columns=_columns(6))
        assert "PERF_NO_INDEX" in check_performance(table).codes()

    def test_five_columns_without_index_is_fine(self) -> None:
        cols = _columns(5)
        cols[0].set_primary_key(True)
        table = Table(name="T", columns=cols)
        assert check_performance(table).codes() == []

    def test_wide_table(self) -> None:
        table = Table(name="T", columns=_columns(51))
        assert "PERF_WIDE_TABLE" in check_performance(table).codes()

    def test_large_string(self) -> None:
        table = Table(
            name="T",
            columns=[
                Column(name="ID", data_type=DataType.INT, is_primary_key=True),
                Column(name="BODY", data_type=DataType.VARCHAR, max_length=5000, order_index=1),
                Column(name="NOTE", data_type=DataType.NVARCHAR, max_length="MAX", order_index=2),
            ],
        )
        codes = check_performance(table).codes()
        assert codes == ["PERF_LARGE_STRING"]

    def test_heap_table(self) -> None:
        table = Table(name="T", columns=_columns(2))
        assert "PERF_HEAP_TABLE" in check_performance(table).codes()

    def test_clustered_index_is_not_a_heap(self) -> None:
        table = Table(name="T", columns=_columns(2))
        idx = table.add_index(Index(name="IX_T", index_type=IndexType.CLUSTERED))
        idx.add_column(table.columns[0].id)
        assert "PERF_HEAP_TABLE" not in check_performance(table).codes()


# ===========================================================================
# Best practice
# ===========================================================================


class TestBestPractice:
    """Tests for check_best_practice."""

    def test_missing_timestamps_and_id(self) -> None:
        table = Table(name="T", columns=[Column(name="CODE", data_type=DataType.INT, is_primary_key=True)])
        codes = check_best_practice(table).codes()
        assert codes == ["BEST_NO_CREATED_COLUMN", "BEST_NO_UPDATED_COLUMN", "BEST_NO_ID_KEY"]

    def test_conventional_table_is_clean(self) -> None:
        table = Table(
            name="users",
            columns=[
                Column(name="id", data_type=DataType.INT, is_primary_key=True),
                Column(name="created_at", data_type=DataType.DATETIME2, precision=7, order_index=1),
                Column(name="updated_at", data_type=DataType.DATETIME2, precision=7, order_index=2),
                Column(name="team_id", data_type=DataType.BIGINT, order_index=3),
            ],
        )
        assert check_best_practice(table).codes() == []

    def test_non_integer_reference(self) -> None:
        table = Table(
            name="T",
            columns=[
                Column(name="id", data_type=DataType.INT, is_primary_key=True),
                Column(name="owner_id", data_type=DataType.UNIQUEIDENTIFIER, order_index=1),
            ],
        )
        assert "BEST_NON_INTEGER_REFERENCE" in check_best_practice(table).codes()


# ===========================================================================
# Security
# ===========================================================================


class TestSecurity:
    """Tests for check_security."""

    def test_short_password_column(self) -> None:
        table = Table(name="T", columns=[Column(name="password_hash", data_type=DataType.VARCHAR, max_length=32)])
        result = check_security(table)
        assert result.codes() == ["SEC_PASSWORD_LENGTH"]

    def test_password_wrong_type(self) -> None:
        table = Table(name="T", columns=[Column(name="pwd", data_type=DataType.VARBINARY, max_length=64)])
        assert "SEC_PASSWORD_TYPE" in check_security(table).codes()

    def test_adequate_password_column(self) -> None:
        table = Table(name="T", columns=[Column(name="PASSWORD", data_type=DataType.NVARCHAR, max_length=255)])
        assert check_security(table).codes() == []

    def test_nullable_personal_data_is_info(self) -> None:
        table = Table(name="T", columns=[Column(name="EMAIL", data_type=DataType.NVARCHAR, max_length=255)])
        result = check_security(table)
        assert [i.code for i in result.infos] == ["SEC_PERSONAL_DATA_NULLABLE"]
        assert result.warnings == []


# ===========================================================================
# validate_advanced
# ===========================================================================


class TestValidateAdvanced:
    """Tests for the combined advanced validation."""

    def test_advisories_never_block_export(
        self, example_project: Tuple[Project, SchemaGenerationOptions]
    ) -> None:
        project, _ = example_project
        outcome = validate_advanced(project)
        assert outcome.can_export_schema
        assert outcome.advisory_count > 0
        assert outcome.best_practice_warnings
        assert [i.code for i in outcome.security_info] == ["SEC_PERSONAL_DATA_NULLABLE"]

    def test_reuses_given_base_result(self, minimal_project: Project) -> None:
        from ddlgen.validators import validate_for_export

        base = validate_for_export(minimal_project)
        outcome = validate_advanced(minimal_project, base)
        assert outcome.base is base

    def test_format_report_sections(self, minimal_project: Project) -> None:
        report = validate_advanced(minimal_project).format_report()
        assert "Best practice" in report
        assert "export allowed" in report
