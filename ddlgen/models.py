# File: ddlgen/models.py
"""
ddlgen - Core Data Models
==========================
Pydantic V2 models describing a relational schema (project, tables,
columns, indexes), the naming conventions applied to it, and the options
record that steers SQL generation.  These models are the single source of
truth for the whole pipeline: Schema Loading → Validation → Generation →
Export.

Entities are built with a minimal set of fields and then changed through
explicit update methods (``rename``, ``retype``, ``set_primary_key``,
``add_column`` ...).  Every assignment is re-validated, so a state that
breaks an invariant is rejected at the call that introduces it.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, List, Literal, Optional, Sequence, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ddlgen.catalog import UNBOUNDED, DataType, render_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class IndexType(str, Enum):
    """Physical index kind."""

    CLUSTERED = "CLUSTERED"
    NONCLUSTERED = "NONCLUSTERED"


class SortOrder(str, Enum):
    """Sort direction of an index key column."""

    ASC = "ASC"
    DESC = "DESC"


class CaseStyle(str, Enum):
    """Identifier case conventions understood by the naming engine."""

    UPPER = "UPPER"
    LOWER = "LOWER"
    PASCAL = "PASCAL"
    SNAKE = "SNAKE"


# ---------------------------------------------------------------------------
# Shared config
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Naming rules
# ---------------------------------------------------------------------------


class NamingRules(BaseModel):
    """
    Naming conventions for tables, columns and indexes.

    ``None`` means "no constraint" for every rule.  An empty-string pattern
    is different: it matches nothing, so every name fails it.
    """

    model_config = _SHARED_CONFIG

    table_prefix: Optional[str] = Field(default=None, description="Required table name prefix.")
    table_suffix: Optional[str] = Field(default=None, description="Required table name suffix.")
    table_pattern: Optional[str] = Field(default=None, description="Full-match regex for table names.")
    column_pattern: Optional[str] = Field(default=None, description="Full-match regex for column names.")
    index_pattern: Optional[str] = Field(default=None, description="Full-match regex for index names.")

    enforce_case: Optional[CaseStyle] = Field(
        default=None, description="Case style applied to every object kind."
    )
    table_case: Optional[CaseStyle] = Field(default=None, description="Override for tables.")
    column_case: Optional[CaseStyle] = Field(default=None, description="Override for columns.")
    index_case: Optional[CaseStyle] = Field(default=None, description="Override for indexes.")

    # SQL Server house-style toggles (advisory only)
    enforce_upper_case: bool = False
    recommend_audit_columns: bool = False
    require_description: bool = False
    enforce_single_word_key_naming: bool = False
    enforce_constraint_naming: bool = False

    @field_validator("table_pattern", "column_pattern", "index_pattern")
    @classmethod
    def _pattern_must_compile(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return v
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"Invalid naming pattern {v!r}: {exc}") from exc
        return v

    @classmethod
    def mssql_house_style(cls) -> "NamingRules":
        """Upper-case names with the full set of advisory checks switched on."""
        return cls(
            enforce_case=CaseStyle.UPPER,
            enforce_upper_case=True,
            recommend_audit_columns=True,
            require_description=True,
            enforce_single_word_key_naming=True,
            enforce_constraint_naming=True,
        )


# ---------------------------------------------------------------------------
# Column
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """
    A single table column.

    ``nullable`` may be omitted; it then resolves to ``not is_primary_key``.
    A primary-key column can never be nullable.
    """

    model_config = _SHARED_CONFIG

    id: UUID = Field(default_factory=uuid4)
    table_id: Optional[UUID] = None
    name: str = Field(..., description="Column name as emitted in DDL.")
    description: Optional[str] = None
    data_type: Optional[DataType] = Field(
        default=None, description="Catalog type; None means not chosen yet."
    )
    max_length: Optional[Union[int, Literal["MAX"]]] = Field(
        default=None, description=f"Length, or '{UNBOUNDED}' for unbounded types."
    )
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: Optional[bool] = None
    is_primary_key: bool = False
    is_identity: bool = False
    identity_seed: int = 1
    identity_increment: int = 1
    default_value: Optional[str] = Field(
        default=None, description="Raw DEFAULT literal, emitted verbatim."
    )
    order_index: int = Field(default=0, description="Render position within the table.")

    @field_validator("max_length", mode="before")
    @classmethod
    def _normalise_unbounded(cls, v: object) -> object:
        if isinstance(v, str) and v.strip().upper() == UNBOUNDED:
            return UNBOUNDED
        return v

    @field_validator("nullable")
    @classmethod
    def _nullable_not_on_key(cls, v: Optional[bool], info: ValidationInfo) -> Optional[bool]:
        # is_primary_key is declared later, so it is only present on assignment
        if v and info.data.get("is_primary_key"):
            raise ValueError(
                f"Primary key column '{info.data.get('name')}' cannot be nullable."
            )
        return v

    @field_validator("is_primary_key")
    @classmethod
    def _key_not_nullable(cls, v: bool, info: ValidationInfo) -> bool:
        if v and info.data.get("nullable"):
            raise ValueError(
                f"Primary key column '{info.data.get('name')}' cannot be nullable."
            )
        return v

    @model_validator(mode="after")
    def _resolve_nullability(self) -> "Column":
        if self.nullable is None:
            object.__setattr__(self, "nullable", not self.is_primary_key)
        return self

    # -- Update operations --------------------------------------------------

    def _apply(self, **changes: object) -> None:
        """Validate *changes* against a copy first, then assign them."""
        candidate: Column = Column.model_validate({**self.model_dump(), **changes})
        for field_name in changes:
            setattr(self, field_name, getattr(candidate, field_name))

    def rename(self, name: str) -> None:
        self.name = name

    def retype(
        self,
        data_type: Optional[DataType],
        max_length: Optional[Union[int, str]] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> None:
        """
        Replace the type and all of its parameters in one step.

        Nothing changes when any of the new values is rejected.
        """
        self._apply(
            data_type=data_type, max_length=max_length, precision=precision, scale=scale
        )

    def set_primary_key(self, flag: bool) -> None:
        """Mark or unmark the column as part of the primary key (forces NOT NULL)."""
        if flag:
            self.nullable = False
        self.is_primary_key = flag

    def set_nullable(self, flag: bool) -> None:
        """
        Change nullability.

        Raises:
            ValueError: When making a primary-key column nullable.
        """
        if flag and self.is_primary_key:
            raise ValueError(
                f"Primary key column '{self.name}' cannot be nullable."
            )
        self.nullable = flag

    def set_identity(self, flag: bool, seed: int = 1, increment: int = 1) -> None:
        self._apply(is_identity=flag, identity_seed=seed, identity_increment=increment)

    def set_default(self, value: Optional[str]) -> None:
        self.default_value = value

    @property
    def rendered_type(self) -> str:
        """T-SQL type string, e.g. ``NVARCHAR(100)``."""
        return render_type(self.data_type, self.max_length, self.precision, self.scale)

    def __repr__(self) -> str:
        type_str: str = self.data_type.value if self.data_type else "?"
        pk_flag: str = " PK" if self.is_primary_key else ""
        null_flag: str = " NULL" if self.nullable else " NOT NULL"
        return f"<Column {self.name} {type_str}{pk_flag}{null_flag}>"


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class IndexColumn(BaseModel):
    """Reference from an index to a column of the same table, by id."""

    model_config = _SHARED_CONFIG

    column_id: UUID
    sort_order: SortOrder = SortOrder.ASC


class Index(BaseModel):
    """A table index.  Key columns are referenced by column id."""

    model_config = _SHARED_CONFIG

    id: UUID = Field(default_factory=uuid4)
    table_id: Optional[UUID] = None
    name: str
    index_type: IndexType = Field(default=IndexType.NONCLUSTERED, alias="type")
    unique: bool = False
    columns: List[IndexColumn] = Field(default_factory=list)

    @property
    def column_ids(self) -> List[UUID]:
        return [ic.column_id for ic in self.columns]

    @property
    def is_composite(self) -> bool:
        return len(self.columns) > 1

    def add_column(
        self, column_id: UUID, sort_order: SortOrder = SortOrder.ASC
    ) -> Optional[IndexColumn]:
        """Append a key column; returns None if it is already part of the index."""
        if column_id in self.column_ids:
            return None
        entry: IndexColumn = IndexColumn(column_id=column_id, sort_order=sort_order)
        self.columns.append(entry)
        return entry

    def remove_column(self, column_id: UUID) -> bool:
        before: int = len(self.columns)
        self.columns[:] = [ic for ic in self.columns if ic.column_id != column_id]
        return len(self.columns) != before

    def reorder_columns(self, column_ids: Sequence[UUID]) -> None:
        """
        Reorder key columns.

        Raises:
            ValueError: If *column_ids* is not a permutation of the current keys.
        """
        by_id: Dict[UUID, IndexColumn] = {ic.column_id: ic for ic in self.columns}
        if sorted(map(str, column_ids)) != sorted(map(str, by_id)):
            raise ValueError(
                f"Index '{self.name}': reorder must list every key column exactly once."
            )
        self.columns[:] = [by_id[cid] for cid in column_ids]

    def rename(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        unique_flag: str = " UNIQUE" if self.unique else ""
        return f"<Index {self.name}{unique_flag} {self.index_type.value} ({len(self.columns)} cols)>"


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class Table(BaseModel):
    """A table: ordered columns plus its indexes."""

    model_config = _SHARED_CONFIG

    id: UUID = Field(default_factory=uuid4)
    project_id: Optional[UUID] = None
    name: str
    description: Optional[str] = None
    position_x: int = Field(default=0, description="Diagram canvas X (UI only).")
    position_y: int = Field(default=0, description="Diagram canvas Y (UI only).")
    columns: List[Column] = Field(default_factory=list)
    indexes: List[Index] = Field(default_factory=list)

    @model_validator(mode="after")
    def _adopt_children(self) -> "Table":
        for column in self.columns:
            if column.table_id != self.id:
                column.table_id = self.id
        for index in self.indexes:
            if index.table_id != self.id:
                index.table_id = self.id
        return self

    # -- Queries ------------------------------------------------------------

    def sorted_columns(self) -> List[Column]:
        """Columns by ``order_index``; equal indexes keep insertion order."""
        return sorted(self.columns, key=lambda c: c.order_index)

    @property
    def primary_key_columns(self) -> List[Column]:
        return [c for c in self.sorted_columns() if c.is_primary_key]

    @property
    def has_primary_key(self) -> bool:
        return any(c.is_primary_key for c in self.columns)

    def get_column(self, column_id: UUID) -> Optional[Column]:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def get_column_by_name(self, name: str) -> Optional[Column]:
        wanted: str = name.lower()
        for column in self.columns:
            if column.name.lower() == wanted:
                return column
        return None

    def get_index(self, index_id: UUID) -> Optional[Index]:
        for index in self.indexes:
            if index.id == index_id:
                return index
        return None

    # -- Update operations --------------------------------------------------

    def add_column(self, column: Column) -> Column:
        """Attach *column*; without an explicit ``order_index`` it goes last."""
        column.table_id = self.id
        if "order_index" not in column.model_fields_set and self.columns:
            column.order_index = max(c.order_index for c in self.columns) + 1
        self.columns.append(column)
        return column

    def remove_column(self, column_id: UUID) -> Optional[Column]:
        """Detach a column and drop it from every index key."""
        column: Optional[Column] = self.get_column(column_id)
        if column is None:
            return None
        self.columns.remove(column)
        for index in self.indexes:
            index.remove_column(column_id)
        return column

    def reorder_columns(self, column_ids: Sequence[UUID]) -> None:
        """
        Assign ``order_index`` 0..n-1 following *column_ids*.

        Raises:
            ValueError: If an id does not belong to this table.
        """
        for position, column_id in enumerate(column_ids):
            column: Optional[Column] = self.get_column(column_id)
            if column is None:
                raise ValueError(f"Table '{self.name}' has no column {column_id}.")
            column.order_index = position

    def add_index(self, index: Index) -> Index:
        index.table_id = self.id
        self.indexes.append(index)
        return index

    def remove_index(self, index_id: UUID) -> Optional[Index]:
        index: Optional[Index] = self.get_index(index_id)
        if index is not None:
            self.indexes.remove(index)
        return index

    def rename(self, name: str) -> None:
        self.name = name

    def move_to(self, x: int, y: int) -> None:
        self.position_x = x
        self.position_y = y

    def __repr__(self) -> str:
        return f"<Table {self.name} ({len(self.columns)} columns, {len(self.indexes)} indexes)>"


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


class Project(BaseModel):
    """Root aggregate: owns its tables exclusively."""

    model_config = _SHARED_CONFIG

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: Optional[str] = None
    naming_rules: Optional[NamingRules] = None
    tables: List[Table] = Field(default_factory=list)

    @model_validator(mode="after")
    def _adopt_tables(self) -> "Project":
        for table in self.tables:
            if table.project_id != self.id:
                table.project_id = self.id
        return self

    def get_table(self, table_id: UUID) -> Optional[Table]:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def get_table_by_name(self, name: str) -> Optional[Table]:
        wanted: str = name.lower()
        for table in self.tables:
            if table.name.lower() == wanted:
                return table
        return None

    def add_table(self, table: Table) -> Table:
        table.project_id = self.id
        self.tables.append(table)
        return table

    def remove_table(self, table_id: UUID) -> Optional[Table]:
        table: Optional[Table] = self.get_table(table_id)
        if table is not None:
            self.tables.remove(table)
        return table

    def rename(self, name: str) -> None:
        self.name = name

    def update_naming_rules(self, rules: Optional[NamingRules]) -> None:
        self.naming_rules = rules

    def __repr__(self) -> str:
        return f"<Project {self.name} ({len(self.tables)} tables)>"


# ---------------------------------------------------------------------------
# Generation options
# ---------------------------------------------------------------------------


class SchemaGenerationOptions(BaseModel):
    """
    Switches that shape the generated DDL script.

    Every flag is independent; no combination is invalid.
    """

    model_config = _SHARED_CONFIG

    include_drop_statements: bool = False
    include_comments: bool = True
    include_indexes: bool = True
    include_constraints: bool = True
    include_existence_checks: bool = True
    generate_batch_script: bool = False
    schema_name: Optional[str] = Field(
        default=None, description="Create this schema up front when set."
    )

    @field_validator("schema_name")
    @classmethod
    def _blank_schema_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def default(cls) -> "SchemaGenerationOptions":
        return cls()

    @classmethod
    def production(cls) -> "SchemaGenerationOptions":
        """Existence-guarded creates wrapped in a single transaction."""
        return cls(generate_batch_script=True)

    @classmethod
    def development(cls) -> "SchemaGenerationOptions":
        """Drop and recreate everything on each run."""
        return cls(include_drop_statements=True, include_existence_checks=False)

    @classmethod
    def preset(cls, name: str) -> "SchemaGenerationOptions":
        factories = {
            "default": cls.default,
            "production": cls.production,
            "development": cls.development,
        }
        try:
            return factories[name.lower()]()
        except KeyError:
            raise ValueError(
                f"Unknown options preset '{name}'. Expected one of: {', '.join(factories)}."
            ) from None


__all__: List[str] = [
    "IndexType",
    "SortOrder",
    "CaseStyle",
    "NamingRules",
    "Column",
    "IndexColumn",
    "Index",
    "Table",
    "Project",
    "SchemaGenerationOptions",
]

logger.debug("ddlgen.models loaded: %d public symbols.", len(__all__))
