# File: ddlgen/sql.py
"""
ddlgen - T-SQL DDL Generator
==============================
Turns ``Project`` / ``Table`` / ``Index`` models into SQL Server DDL text:

    1. ``CREATE TABLE`` with inline column definitions and a clustered
       primary key constraint
    2. ``CREATE [UNIQUE] {CLUSTERED|NONCLUSTERED} INDEX``
    3. Full project scripts (transaction wrapper, schema guard, drops,
       existence-guarded creates, CHECK / UNIQUE constraints, indexes)
    4. ``ALTER`` scripts diffed by column / index id between two snapshots

**Contract:**
    - The generator does not validate.  Run ``validate_for_export`` first,
      or call ``generate_validated`` which refuses a blocked result.
    - Output is deterministic for a given model, options and timestamp.
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ddlgen.catalog import DataType, is_compatible
from ddlgen.models import Column, Index, Project, SchemaGenerationOptions, Table
from ddlgen.utils import indent, quote_identifier, quote_string_literal, single_line

if TYPE_CHECKING:  # pragma: no cover
    from ddlgen.validators import SchemaValidationResult

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.sql")

TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S"

_BATCH_HEADER: str = "SET NOCOUNT ON;\nSET XACT_ABORT ON;\nBEGIN TRANSACTION;\n"
_BATCH_FOOTER: str = (
    "COMMIT TRANSACTION;\n"
    "PRINT 'Schema creation completed successfully.';\n"
)

# Value ranges enforced with CHECK constraints
_CHECK_RANGES: Dict[DataType, str] = {
    DataType.BIT: "{col} IN (0, 1)",
    DataType.TINYINT: "{col} >= 0 AND {col} <= 255",
    DataType.SMALLINT: "{col} >= -32768 AND {col} <= 32767",
}


class SchemaExportError(ValueError):
    """Raised when DDL is requested for a schema that failed validation."""


def _nstring(value: str) -> str:
    return "N" + quote_string_literal(value)


# ---------------------------------------------------------------------------
# SqlGenerator
# ---------------------------------------------------------------------------


class SqlGenerator:
    """
    Stateless T-SQL emitter.  One instance can be shared freely.

    Usage::

        gen = SqlGenerator()
        script = gen.generate_project(project, SchemaGenerationOptions.production())
    """

    # -- Columns ------------------------------------------------------------

    def column_definition(self, column: Column) -> str:
        """``[name] TYPE [IDENTITY(s,i)] NULL|NOT NULL [DEFAULT v]`` (no comment)."""
        parts: List[str] = [quote_identifier(column.name), column.rendered_type]
        if column.is_identity:
            parts.append(f"IDENTITY({column.identity_seed},{column.identity_increment})")
        parts.append("NULL" if column.nullable else "NOT NULL")
        if column.default_value is not None and column.default_value.strip():
            parts.append(f"DEFAULT {column.default_value.strip()}")
        return " ".join(parts)

    def _alter_column_definition(self, column: Column) -> str:
        nullability: str = "NULL" if column.nullable else "NOT NULL"
        return f"{quote_identifier(column.name)} {column.rendered_type} {nullability}"

    # -- Tables -------------------------------------------------------------

    def create_table(self, table: Table, include_comments: bool = True) -> str:
        """
        ``CREATE TABLE`` statement.

        Columns are emitted by ``order_index`` (ties keep insertion order),
        followed by ``CONSTRAINT [PK_<table>] PRIMARY KEY CLUSTERED`` when the
        table has key columns.
        """
        lines: List[str] = []
        if include_comments:
            header: str = f"-- Table: {single_line(table.name)}"
            if table.description:
                header += f" - {single_line(table.description)}"
            lines.append(header)
        lines.append(f"CREATE TABLE {quote_identifier(table.name)} (")

        entries: List[Tuple[str, Optional[str]]] = []
        for column in table.sorted_columns():
            comment: Optional[str] = None
            if include_comments and column.description:
                comment = single_line(column.description)
            entries.append((self.column_definition(column), comment))

        pk_columns: List[Column] = table.primary_key_columns
        if pk_columns:
            keys: str = ", ".join(f"{quote_identifier(c.name)} ASC" for c in pk_columns)
            entries.append(
                (
                    f"CONSTRAINT {quote_identifier('PK_' + table.name)} "
                    f"PRIMARY KEY CLUSTERED ({keys})",
                    None,
                )
            )

        last: int = len(entries) - 1
        for position, (definition, comment) in enumerate(entries):
            line: str = f"    {definition}{',' if position < last else ''}"
            if comment:
                line += f" -- {comment}"
            lines.append(line)

        lines.append(");")
        return "\n".join(lines) + "\n"

    def drop_table(self, table: Table) -> str:
        ref: str = quote_identifier(table.name)
        return f"IF OBJECT_ID({_nstring(ref)}, N'U') IS NOT NULL\n    DROP TABLE {ref};\n"

    def existence_check(self, table: Table, body: str) -> str:
        """Wrap *body* so it only runs when the table does not exist yet."""
        ref: str = quote_identifier(table.name)
        inner: str = indent(body.rstrip("\n"))
        return (
            f"IF NOT EXISTS (SELECT * FROM sys.objects WHERE object_id = "
            f"OBJECT_ID({_nstring(ref)}) AND type in (N'U'))\n"
            "BEGIN\n"
            f"{inner}\n"
            "END\n"
        )

    # -- Indexes ------------------------------------------------------------

    def _index_key(self, table: Table, column_id: UUID, sort_order: str) -> str:
        column: Optional[Column] = table.get_column(column_id)
        if column is None:
            return f"/* unknown column {column_id} */"
        return f"{quote_identifier(column.name)} {sort_order}"

    def create_index(self, table: Table, index: Index, include_comments: bool = True) -> str:
        """
        ``CREATE [UNIQUE] {CLUSTERED|NONCLUSTERED} INDEX``.

        A key column id that does not resolve in *table* becomes a
        ``/* unknown column ... */`` marker instead of raising.
        """
        lines: List[str] = []
        if include_comments:
            lines.append(
                f"-- Index: {single_line(index.name)}{' (unique)' if index.unique else ''}"
            )
        keys: str = ", ".join(
            self._index_key(table, ic.column_id, ic.sort_order.value) for ic in index.columns
        )
        unique: str = "UNIQUE " if index.unique else ""
        lines.append(
            f"CREATE {unique}{index.index_type.value} INDEX {quote_identifier(index.name)} "
            f"ON {quote_identifier(table.name)} ({keys});"
        )
        return "\n".join(lines) + "\n"

    def drop_index(self, table: Table, index: Index) -> str:
        return f"DROP INDEX {quote_identifier(index.name)} ON {quote_identifier(table.name)};\n"

    # -- Constraints --------------------------------------------------------

    def check_constraints(self, table: Table) -> List[str]:
        """Range CHECK constraints for BIT, TINYINT and SMALLINT columns."""
        statements: List[str] = []
        ref: str = quote_identifier(table.name)
        for column in table.sorted_columns():
            template: Optional[str] = _CHECK_RANGES.get(column.data_type)
            if template is None:
                continue
            name: str = quote_identifier(f"CK_{table.name}_{column.name}")
            predicate: str = template.format(col=quote_identifier(column.name))
            statements.append(f"ALTER TABLE {ref} ADD CONSTRAINT {name} CHECK ({predicate});")
        return statements

    def unique_constraints(self, table: Table) -> List[str]:
        """One UNIQUE constraint per unique index, named ``UQ_<table>_<index>``."""
        statements: List[str] = []
        ref: str = quote_identifier(table.name)
        for index in table.indexes:
            if not index.unique:
                continue
            names: List[str] = []
            for key in index.columns:
                column: Optional[Column] = table.get_column(key.column_id)
                if column is not None:
                    names.append(quote_identifier(column.name))
            if not names:
                continue
            suffix: str = index.name[3:] if index.name.upper().startswith("IX_") else index.name
            name: str = quote_identifier(f"UQ_{table.name}_{suffix}")
            statements.append(
                f"ALTER TABLE {ref} ADD CONSTRAINT {name} UNIQUE ({', '.join(names)});"
            )
        return statements

    # -- Project scripts ----------------------------------------------------

    def _schema_guard(self, schema_name: str) -> str:
        create: str = quote_string_literal(f"CREATE SCHEMA {quote_identifier(schema_name)}")
        return (
            f"IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = {_nstring(schema_name)})\n"
            "BEGIN\n"
            f"    EXEC({create});\n"
            "END\n"
        )

    def _header(self, project: Project, generated_at: datetime) -> str:
        lines: List[str] = [
            f"-- Project: {single_line(project.name)}",
            f"-- Generated: {generated_at.strftime(TIMESTAMP_FORMAT)}",
        ]
        if project.description:
            lines.append(f"-- Description: {single_line(project.description)}")
        return "\n".join(lines) + "\n"

    def generate_project(
        self,
        project: Project,
        options: Optional[SchemaGenerationOptions] = None,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """
        Full DDL script for *project*.

        Block order: transaction header, comment header, schema guard,
        drops, table creates, constraints, indexes, commit footer.  Each
        block is controlled by its own option.
        """
        opts: SchemaGenerationOptions = options or SchemaGenerationOptions()
        stamp: datetime = generated_at or datetime.now()
        comments: bool = opts.include_comments
        blocks: List[str] = []

        if opts.generate_batch_script:
            blocks.append(_BATCH_HEADER)

        if comments:
            blocks.append(self._header(project, stamp))

        if opts.schema_name:
            blocks.append(self._schema_guard(opts.schema_name))

        if opts.include_drop_statements and project.tables:
            drops: List[str] = ["-- Drop existing tables"] if comments else []
            drops.extend(self.drop_table(t).rstrip("\n") for t in project.tables)
            blocks.append("\n".join(drops) + "\n")

        for table in project.tables:
            body: str = self.create_table(table, include_comments=comments)
            if opts.include_existence_checks:
                body = self.existence_check(table, body)
            blocks.append(body)

        if opts.include_constraints:
            for table in project.tables:
                statements: List[str] = self.check_constraints(table) + self.unique_constraints(table)
                if not statements:
                    continue
                if comments:
                    statements.insert(0, f"-- Constraints: {single_line(table.name)}")
                blocks.append("\n".join(statements) + "\n")

        if opts.include_indexes:
            for table in project.tables:
                for index in table.indexes:
                    blocks.append(self.create_index(table, index, include_comments=comments))

        if opts.generate_batch_script:
            blocks.append(_BATCH_FOOTER)

        script: str = "\n".join(blocks)
        logger.debug(
            "Generated DDL for '%s': %d tables, %d characters.",
            project.name,
            len(project.tables),
            len(script),
        )
        return script

    def generate_validated(
        self,
        project: Project,
        validation: "SchemaValidationResult",
        options: Optional[SchemaGenerationOptions] = None,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """
        Same as ``generate_project`` but only for a result that can export.

        Raises:
            SchemaExportError: If *validation* has blocking errors.
        """
        if not validation.can_export_schema:
            raise SchemaExportError(
                f"Project '{project.name}' has {len(validation.blocking_errors)} "
                "blocking validation error(s); DDL was not generated."
            )
        return self.generate_project(project, options, generated_at)

    # -- ALTER scripts ------------------------------------------------------

    def _column_changed(self, before: Column, after: Column) -> bool:
        return (
            before.name != after.name
            or before.data_type != after.data_type
            or before.max_length != after.max_length
            or before.precision != after.precision
            or before.scale != after.scale
            or bool(before.nullable) != bool(after.nullable)
            or (before.default_value or None) != (after.default_value or None)
        )

    def alter_table(self, original: Table, modified: Table, include_comments: bool = True) -> str:
        """
        Statements turning *original* into *modified*, matched by id.

        Identity and primary-key flag changes are not part of the diff.
        Returns an empty string when nothing changed.
        """
        statements: List[str] = []
        ref: str = quote_identifier(modified.name)

        if original.name != modified.name:
            statements.append(
                f"EXEC sp_rename {_nstring(quote_identifier(original.name))}, "
                f"{_nstring(modified.name)};"
            )

        old_columns: Dict[UUID, Column] = {c.id: c for c in original.columns}
        new_columns: Dict[UUID, Column] = {c.id: c for c in modified.columns}

        for column in modified.sorted_columns():
            if column.id not in old_columns:
                statements.append(f"ALTER TABLE {ref} ADD {self.column_definition(column)};")

        for column in original.sorted_columns():
            if column.id not in new_columns:
                statements.append(
                    f"ALTER TABLE {ref} DROP COLUMN {quote_identifier(column.name)};"
                )

        for column in modified.sorted_columns():
            before: Optional[Column] = old_columns.get(column.id)
            if before is None or not self._column_changed(before, column):
                continue
            statements.extend(self._alter_column(modified, before, column, include_comments))

        old_indexes: Dict[UUID, Index] = {i.id: i for i in original.indexes}
        new_indexes: Dict[UUID, Index] = {i.id: i for i in modified.indexes}
        for index in original.indexes:
            if index.id not in new_indexes:
                statements.append(self.drop_index(modified, index).rstrip("\n"))

        for index in modified.indexes:
            if index.id not in old_indexes:
                statements.append(
                    self.create_index(modified, index, include_comments).rstrip("\n")
                )

        if not statements:
            return ""
        return "\n".join(statements) + "\n"

    def _alter_column(
        self, table: Table, before: Column, after: Column, include_comments: bool
    ) -> List[str]:
        ref: str = quote_identifier(table.name)
        statements: List[str] = []

        if before.name != after.name:
            target: str = f"{ref}.{quote_identifier(before.name)}"
            statements.append(
                f"EXEC sp_rename {_nstring(target)}, {_nstring(after.name)}, N'COLUMN';"
            )

        if (
            include_comments
            and before.data_type is not None
            and after.data_type is not None
            and not is_compatible(before.data_type, after.data_type)
        ):
            statements.append(
                f"-- WARNING: {quote_identifier(after.name)} changes from "
                f"{before.rendered_type} to {after.rendered_type}; existing data may "
                "not convert."
            )

        statements.append(
            f"ALTER TABLE {ref} ALTER COLUMN {self._alter_column_definition(after)};"
        )

        old_default: Optional[str] = (before.default_value or "").strip() or None
        new_default: Optional[str] = (after.default_value or "").strip() or None
        if old_default != new_default:
            if new_default is not None:
                statements.append(
                    f"ALTER TABLE {ref} ADD DEFAULT {new_default} "
                    f"FOR {quote_identifier(after.name)};"
                )
            elif include_comments:
                statements.append(
                    f"-- DEFAULT removed from {quote_identifier(after.name)}; drop its "
                    "default constraint."
                )
        return statements

    def update_statistics(self, tables: Sequence[Table]) -> str:
        return "".join(f"UPDATE STATISTICS {quote_identifier(t.name)};\n" for t in tables)

    def alter_project(
        self, original: Project, modified: Project, include_comments: bool = True
    ) -> str:
        """
        Migration script between two project snapshots, matched by table id:
        new tables are created, missing ones dropped, common ones altered.
        """
        blocks: List[str] = []
        old_tables: Dict[UUID, Table] = {t.id: t for t in original.tables}
        new_ids = {t.id for t in modified.tables}
        altered: List[Table] = []

        for table in original.tables:
            if table.id not in new_ids:
                blocks.append(self.drop_table(table))

        for table in modified.tables:
            before: Optional[Table] = old_tables.get(table.id)
            if before is None:
                blocks.append(self.create_table(table, include_comments))
                for index in table.indexes:
                    blocks.append(self.create_index(table, index, include_comments))
                continue
            diff: str = self.alter_table(before, table, include_comments)
            if diff:
                if include_comments:
                    diff = f"-- Alter table: {single_line(table.name)}\n{diff}"
                blocks.append(diff)
                altered.append(table)

        if altered:
            blocks.append(self.update_statistics(altered))

        logger.info(
            "ALTER script for '%s': %d block(s), %d altered table(s).",
            modified.name,
            len(blocks),
            len(altered),
        )
        return "\n".join(blocks)


__all__: List[str] = [
    "TIMESTAMP_FORMAT",
    "SchemaExportError",
    "SqlGenerator",
]
