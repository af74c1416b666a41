"""
tests/test_models.py
Unit tests for ddlgen.models.

Tests cover:
- Column construction, nullability resolution and update operations
- Index key management
- Table column ordering, column / index management
- Project table management
- NamingRules pattern validation
- SchemaGenerationOptions presets
"""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError as PydanticValidationError

from ddlgen.catalog import DataType
from ddlgen.models import (
    CaseStyle,
    Column,
    Index,
    IndexType,
    NamingRules,
    Project,
    SchemaGenerationOptions,
    SortOrder,
    Table,
)


# ===========================================================================
# Column
# ===========================================================================


class TestColumn:
    """Tests for the Column model."""

    def test_nullable_defaults_to_not_primary_key(self) -> None:
        assert Column(name="A").nullable is True
        assert Column(name="A", is_primary_key=True).nullable is False

    def test_nullable_primary_key_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Column(name="A", is_primary_key=True, nullable=True)

    def test_max_length_accepts_max_case_insensitively(self) -> None:
        assert Column(name="A", max_length="max").max_length == "MAX"

    def test_max_length_rejects_other_strings(self) -> None:
        with pytest.raises(PydanticValidationError):
            Column(name="A", max_length="huge")

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Column(name="A", colour="red")

    def test_rename_and_retype(self) -> None:
        col = Column(name="A", data_type=DataType.VARCHAR, max_length=10)
        col.rename("B")
        col.retype(DataType.DECIMAL, precision=18, scale=2)
        assert col.name == "B"
        assert col.max_length is None
        assert col.rendered_type == "DECIMAL(18,2)"

    def test_set_primary_key_forces_not_null(self) -> None:
        col = Column(name="A", data_type=DataType.INT)
        assert col.nullable is True
        col.set_primary_key(True)
        assert col.is_primary_key
        assert col.nullable is False

    def test_set_nullable_on_primary_key_raises(self) -> None:
        col = Column(name="A", is_primary_key=True)
        with pytest.raises(ValueError):
            col.set_nullable(True)
        assert col.nullable is False

    def test_rejected_nullable_assignment_keeps_state(self) -> None:
        col = Column(name="ID", data_type=DataType.INT, is_primary_key=True)
        with pytest.raises(ValueError):
            col.nullable = True
        assert col.nullable is False
        assert repr(col) == "<Column ID INT PK NOT NULL>"

    def test_rejected_primary_key_assignment_keeps_state(self) -> None:
        col = Column(name="X", data_type=DataType.INT)
        with pytest.raises(ValueError):
            col.is_primary_key = True
        assert col.is_primary_key is False
        assert col.nullable is True

    def test_failed_retype_changes_nothing(self) -> None:
        col = Column(name="A", data_type=DataType.INT)
        with pytest.raises(ValueError):
            col.retype(DataType.VARCHAR, max_length="huge")
        assert col.data_type is DataType.INT
        assert col.max_length is None

    def test_failed_set_identity_changes_nothing(self) -> None:
        col = Column(name="A", data_type=DataType.INT)
        with pytest.raises(ValueError):
            col.set_identity(True, seed="first")  # type: ignore[arg-type]
        assert col.is_identity is False
        assert col.identity_seed == 1

    def test_unset_primary_key_then_nullable(self) -> None:
        col = Column(name="A", is_primary_key=True)
        col.set_primary_key(False)
        col.set_nullable(True)
        assert col.nullable is True

    def test_identity_and_default(self) -> None:
        col = Column(name="A", data_type=DataType.INT)
        col.set_identity(True, seed=100, increment=5)
        col.set_default("0")
        assert (col.is_identity, col.identity_seed, col.identity_increment) == (True, 100, 5)
        assert col.default_value == "0"

    def test_repr(self) -> None:
        col = Column(name="A", data_type=DataType.INT, is_primary_key=True)
        assert repr(col) == "<Column A INT PK NOT NULL>"


# ===========================================================================
# Index
# ===========================================================================


class TestIndex:
    """Tests for the Index model."""

    def test_type_alias(self) -> None:
        idx = Index(name="IX_A", type="CLUSTERED")
        assert idx.index_type is IndexType.CLUSTERED
        assert Index(name="IX_B").index_type is IndexType.NONCLUSTERED

    def test_add_column_is_idempotent(self) -> None:
        idx = Index(name="IX_A")
        cid = uuid.uuid4()
        assert idx.add_column(cid) is not None
        assert idx.add_column(cid, SortOrder.DESC) is None
        assert idx.column_ids == [cid]
        assert not idx.is_composite

    def test_remove_column(self) -> None:
        idx = Index(name="IX_A")
        a, b = uuid.uuid4(), uuid.uuid4()
        idx.add_column(a)
        idx.add_column(b)
        assert idx.is_composite
        assert idx.remove_column(a)
        assert not idx.remove_column(a)
        assert idx.column_ids == [b]

    def test_reorder_columns(self) -> None:
        idx = Index(name="IX_A")
        a, b = uuid.uuid4(), uuid.uuid4()
        idx.add_column(a)
        idx.add_column(b, SortOrder.DESC)
        idx.reorder_columns([b, a])
        assert idx.column_ids == [b, a]
        assert idx.columns[0].sort_order is SortOrder.DESC

    def test_reorder_requires_permutation(self) -> None:
        idx = Index(name="IX_A")
        a = uuid.uuid4()
        idx.add_column(a)
        with pytest.raises(ValueError):
            idx.reorder_columns([a, uuid.uuid4()])


# ===========================================================================
# Table
# ===========================================================================


class TestTable:
    """Tests for the Table model."""

    def test_children_adopt_table_id(self) -> None:
        table = Table(name="T", columns=[Column(name="A")], indexes=[Index(name="IX")])
        assert table.columns[0].table_id == table.id
        assert table.indexes[0].table_id == table.id

    def test_add_column_appends_order_index(self) -> None:
        table = Table(name="T")
        first = table.add_column(Column(name="A"))
        second = table.add_column(Column(name="B"))
        assert first.order_index == 0
        assert second.order_index == 1
        assert second.table_id == table.id

    def test_add_column_keeps_explicit_order_index(self) -> None:
        table = Table(name="T")
        table.add_column(Column(name="A"))
        col = table.add_column(Column(name="B", order_index=0))
        assert col.order_index == 0

    def test_sorted_columns_is_stable_on_ties(self) -> None:
        table = Table(
            name="T",
            columns=[
                Column(name="C", order_index=1),
                Column(name="A", order_index=0),
                Column(name="B", order_index=1),
            ],
        )
        assert [c.name for c in table.sorted_columns()] == ["A", "C", "B"]

    def test_reorder_columns(self) -> None:
        table = Table(name="T", columns=[Column(name="A"), Column(name="B", order_index=1)])
        a, b = table.columns
        table.reorder_columns([b.id, a.id])
        assert [c.name for c in table.sorted_columns()] == ["B", "A"]

    def test_reorder_unknown_column_raises(self) -> None:
        table = Table(name="T", columns=[Column(name="A")])
        with pytest.raises(ValueError):
            table.reorder_columns([uuid.uuid4()])

    def test_remove_column_strips_index_keys(self) -> None:
        table = Table(name="T", columns=[Column(name="A"), Column(name="B", order_index=1)])
        a, b = table.columns
        idx = table.add_index(Index(name="IX_T"))
        idx.add_column(a.id)
        idx.add_column(b.id)
        removed = table.remove_column(a.id)
        assert removed is a
        assert idx.column_ids == [b.id]
        assert table.remove_column(a.id) is None

    def test_primary_key_columns_follow_order(self) -> None:
        table = Table(
            name="T",
            columns=[
                Column(name="B", is_primary_key=True, order_index=1),
                Column(name="A", is_primary_key=True, order_index=0),
                Column(name="C", order_index=2),
            ],
        )
        assert [c.name for c in table.primary_key_columns] == ["A", "B"]
        assert table.has_primary_key

    def test_lookup_by_name_is_case_insensitive(self) -> None:
        table = Table(name="T", columns=[Column(name="Email")])
        assert table.get_column_by_name("EMAIL") is table.columns[0]
        assert table.get_column_by_name("missing") is None

    def test_index_management(self) -> None:
        table = Table(name="T")
        idx = table.add_index(Index(name="IX"))
        assert table.get_index(idx.id) is idx
        assert table.remove_index(idx.id) is idx
        assert table.indexes == []

    def test_rename_and_move(self) -> None:
        table = Table(name="T")
        table.rename("U")
        table.move_to(10, 20)
        assert (table.name, table.position_x, table.position_y) == ("U", 10, 20)


# ===========================================================================
# Project
# ===========================================================================


class TestProject:
    """Tests for the Project model."""

    def test_tables_adopt_project_id(self) -> None:
        project = Project(name="P", tables=[Table(name="T")])
        assert project.tables[0].project_id == project.id

    def test_table_management(self) -> None:
        project = Project(name="P")
        table = project.add_table(Table(name="Users"))
        assert table.project_id == project.id
        assert project.get_table(table.id) is table
        assert project.get_table_by_name("USERS") is table
        assert project.remove_table(table.id) is table
        assert project.remove_table(table.id) is None

    def test_update_naming_rules(self) -> None:
        project = Project(name="P")
        project.update_naming_rules(NamingRules(enforce_case=CaseStyle.UPPER))
        assert project.naming_rules.enforce_case is CaseStyle.UPPER
        project.update_naming_rules(None)
        assert project.naming_rules is None


# ===========================================================================
# NamingRules
# ===========================================================================


class TestNamingRules:
    """Tests for NamingRules."""

    def test_defaults_are_unconstrained(self) -> None:
        rules = NamingRules()
        assert rules.enforce_case is None
        assert rules.table_prefix is None
        assert not rules.enforce_upper_case

    def test_invalid_pattern_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            NamingRules(table_pattern="([A-Z")

    def test_empty_pattern_allowed(self) -> None:
        assert NamingRules(column_pattern="").column_pattern == ""

    def test_house_style(self) -> None:
        rules = NamingRules.mssql_house_style()
        assert rules.enforce_case is CaseStyle.UPPER
        assert rules.recommend_audit_columns and rules.enforce_constraint_naming


# ===========================================================================
# SchemaGenerationOptions
# ===========================================================================


class TestOptions:
    """Tests for SchemaGenerationOptions and its presets."""

    def test_defaults(self) -> None:
        opts = SchemaGenerationOptions()
        assert not opts.include_drop_statements
        assert opts.include_comments and opts.include_indexes
        assert opts.include_constraints and opts.include_existence_checks
        assert not opts.generate_batch_script
        assert opts.schema_name is None

    def test_production_preset(self) -> None:
        opts = SchemaGenerationOptions.production()
        assert opts.generate_batch_script
        assert opts.include_existence_checks
        assert not opts.include_drop_statements

    def test_development_preset(self) -> None:
        opts = SchemaGenerationOptions.development()
        assert opts.include_drop_statements
        assert not opts.include_existence_checks

    def test_preset_by_name(self) -> None:
        assert SchemaGenerationOptions.preset("Production").generate_batch_script
        with pytest.raises(ValueError):
            SchemaGenerationOptions.preset("staging")

    def test_blank_schema_name_is_none(self) -> None:
        assert SchemaGenerationOptions(schema_name="  ").schema_name is None
        assert SchemaGenerationOptions(schema_name="sales").schema_name == "sales"
