# File: ddlgen/catalog.py
"""
ddlgen - SQL Server Type Catalog
==================================
Static lookup table of every supported T-SQL data type together with its
capability flags (length / precision / scale requirements, IDENTITY and
PRIMARY KEY eligibility), size bounds and default-literal rules.

The catalog is the single place that knows how a type behaves.  The model
layer only stores a ``DataType`` member, the validator asks the catalog to
check a column, and the SQL generator asks it to render the type string.

Usage::

    from ddlgen.catalog import DataType, render_type, validate_column
    render_type(DataType.DECIMAL, precision=18, scale=2)   # "DECIMAL(18,2)"
    check = validate_column(column)
    check.errors, check.warnings
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional, Tuple, Union

if TYPE_CHECKING:  # pragma: no cover
    from ddlgen.models import Column

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ddlgen.catalog")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNBOUNDED: str = "MAX"
"""Length sentinel for ``VARCHAR(MAX)``, ``NVARCHAR(MAX)`` and ``VARBINARY(MAX)``."""

LengthValue = Union[int, str, None]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DataType(str, Enum):
    """Closed set of SQL Server column types."""

    # Character
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    NCHAR = "NCHAR"
    NVARCHAR = "NVARCHAR"
    TEXT = "TEXT"
    NTEXT = "NTEXT"

    # Exact / approximate numerics
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INT = "INT"
    BIGINT = "BIGINT"
    DECIMAL = "DECIMAL"
    NUMERIC = "NUMERIC"
    FLOAT = "FLOAT"
    REAL = "REAL"
    MONEY = "MONEY"
    SMALLMONEY = "SMALLMONEY"

    # Date / time
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    DATETIME2 = "DATETIME2"
    SMALLDATETIME = "SMALLDATETIME"
    DATETIMEOFFSET = "DATETIMEOFFSET"

    # Binary
    BINARY = "BINARY"
    VARBINARY = "VARBINARY"
    IMAGE = "IMAGE"

    # Other
    BIT = "BIT"
    UNIQUEIDENTIFIER = "UNIQUEIDENTIFIER"
    XML = "XML"
    JSON = "JSON"

    @classmethod
    def _missing_(cls, value: object) -> Optional["DataType"]:
        # Accept "varchar" / " Varchar " from hand-written schema files.
        if isinstance(value, str):
            key: str = value.strip().upper()
            for member in cls:
                if member.value == key:
                    return member
        return None


class TypeCategory(str, Enum):
    """Coarse grouping used for compatibility checks and heuristics."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    BINARY = "binary"
    BOOLEAN = "boolean"
    OTHER = "other"


class LiteralKind(str, Enum):
    """How a DEFAULT literal is sanity-checked for a type."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    BIT = "bit"
    CHARACTER = "character"
    NONE = "none"


# ---------------------------------------------------------------------------
# Type specification table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TypeSpec:
    """Capability flags and bounds for a single data type."""

    data_type: DataType
    category: TypeCategory
    requires_length: bool = False
    requires_precision: bool = False
    requires_scale: bool = False
    supports_identity: bool = False
    can_be_primary_key: bool = True
    max_length: Optional[int] = None
    allows_unbounded: bool = False
    precision_range: Optional[Tuple[int, int]] = None
    literal_kind: LiteralKind = LiteralKind.NONE


@dataclass(slots=True)
class TypeCheck:
    """Errors and warnings produced by :func:`validate_column`."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _char(data_type: DataType, max_length: int, unbounded: bool) -> TypeSpec:
    return TypeSpec(
        data_type,
        TypeCategory.STRING,
        requires_length=True,
        max_length=max_length,
        allows_unbounded=unbounded,
        literal_kind=LiteralKind.CHARACTER,
    )


def _integer(data_type: DataType) -> TypeSpec:
    return TypeSpec(
        data_type,
        TypeCategory.INTEGER,
        supports_identity=True,
        literal_kind=LiteralKind.INTEGER,
    )


_CATALOG: Dict[DataType, TypeSpec] = {
    DataType.CHAR: _char(DataType.CHAR, 8000, False),
    DataType.VARCHAR: _char(DataType.VARCHAR, 8000, True),
    DataType.NCHAR: _char(DataType.NCHAR, 8000, False),
    DataType.NVARCHAR: _char(DataType.NVARCHAR, 4000, True),
    DataType.TEXT: TypeSpec(
        DataType.TEXT, TypeCategory.STRING,
        can_be_primary_key=False, literal_kind=LiteralKind.CHARACTER,
    ),
    DataType.NTEXT: TypeSpec(
        DataType.NTEXT, TypeCategory.STRING,
        can_be_primary_key=False, literal_kind=LiteralKind.CHARACTER,
    ),
    DataType.TINYINT: _integer(DataType.TINYINT),
    DataType.SMALLINT: _integer(DataType.SMALLINT),
    DataType.INT: _integer(DataType.INT),
    DataType.BIGINT: _integer(DataType.BIGINT),
    DataType.DECIMAL: TypeSpec(
        DataType.DECIMAL, TypeCategory.DECIMAL,
        requires_precision=True, requires_scale=True, supports_identity=True,
        precision_range=(1, 38), literal_kind=LiteralKind.DECIMAL,
    ),
    DataType.NUMERIC: TypeSpec(
        DataType.NUMERIC, TypeCategory.DECIMAL,
        requires_precision=True, requires_scale=True, supports_identity=True,
        precision_range=(1, 38), literal_kind=LiteralKind.DECIMAL,
    ),
    DataType.FLOAT: TypeSpec(
        DataType.FLOAT, TypeCategory.DECIMAL,
        requires_precision=True, precision_range=(1, 53),
        literal_kind=LiteralKind.DECIMAL,
    ),
    DataType.REAL: TypeSpec(
        DataType.REAL, TypeCategory.DECIMAL, literal_kind=LiteralKind.DECIMAL,
    ),
    DataType.MONEY: TypeSpec(
        DataType.MONEY, TypeCategory.DECIMAL, literal_kind=LiteralKind.DECIMAL,
    ),
    DataType.SMALLMONEY: TypeSpec(
        DataType.SMALLMONEY, TypeCategory.DECIMAL, literal_kind=LiteralKind.DECIMAL,
    ),
    DataType.DATE: TypeSpec(DataType.DATE, TypeCategory.DATETIME),
    DataType.TIME: TypeSpec(
        DataType.TIME, TypeCategory.DATETIME,
        requires_precision=True, precision_range=(0, 7),
    ),
    DataType.DATETIME: TypeSpec(DataType.DATETIME, TypeCategory.DATETIME),
    DataType.DATETIME2: TypeSpec(
        DataType.DATETIME2, TypeCategory.DATETIME,
        requires_precision=True, precision_range=(0, 7),
    ),
    DataType.SMALLDATETIME: TypeSpec(DataType.SMALLDATETIME, TypeCategory.DATETIME),
    DataType.DATETIMEOFFSET: TypeSpec(
        DataType.DATETIMEOFFSET, TypeCategory.DATETIME,
        requires_precision=True, precision_range=(0, 7),
    ),
    DataType.BINARY: TypeSpec(
        DataType.BINARY, TypeCategory.BINARY,
        requires_length=True, max_length=8000,
    ),
    DataType.VARBINARY: TypeSpec(
        DataType.VARBINARY, TypeCategory.BINARY,
        requires_length=True, max_length=8000, allows_unbounded=True,
    ),
    DataType.IMAGE: TypeSpec(
        DataType.IMAGE, TypeCategory.BINARY, can_be_primary_key=False,
    ),
    DataType.BIT: TypeSpec(
        DataType.BIT, TypeCategory.BOOLEAN, literal_kind=LiteralKind.BIT,
    ),
    DataType.UNIQUEIDENTIFIER: TypeSpec(DataType.UNIQUEIDENTIFIER, TypeCategory.OTHER),
    DataType.XML: TypeSpec(DataType.XML, TypeCategory.OTHER, can_be_primary_key=False),
    DataType.JSON: TypeSpec(DataType.JSON, TypeCategory.OTHER),
}

_COMPATIBILITY_GROUPS: Tuple[FrozenSet[TypeCategory], ...] = (
    frozenset({TypeCategory.INTEGER, TypeCategory.DECIMAL}),
    frozenset({TypeCategory.STRING}),
    frozenset({TypeCategory.DATETIME}),
)

_INTEGER_LITERAL_RE: re.Pattern[str] = re.compile(r"^[+-]?\d+$")
_DECIMAL_LITERAL_RE: re.Pattern[str] = re.compile(
    r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$"
)
_QUOTED_LITERAL_RE: re.Pattern[str] = re.compile(r"^N?'.*'$", re.DOTALL)


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def get_spec(data_type: Union[DataType, str]) -> TypeSpec:
    """
    Return the :class:`TypeSpec` for *data_type*.

    Raises:
        ValueError: If the value is not a member of the closed type set.
    """
    if data_type is None:
        raise ValueError("Data type is undefined.")
    return _CATALOG[DataType(data_type)]


def category_of(data_type: Union[DataType, str]) -> TypeCategory:
    return get_spec(data_type).category


def is_unbounded(length: LengthValue) -> bool:
    return isinstance(length, str) and length.strip().upper() == UNBOUNDED


def is_compatible(a: Union[DataType, str], b: Union[DataType, str]) -> bool:
    """
    Coarse compatibility between two types.

    Same type, or both numeric, both character, or both date/time.
    """
    spec_a: TypeSpec = get_spec(a)
    spec_b: TypeSpec = get_spec(b)
    if spec_a.data_type == spec_b.data_type:
        return True
    return any(
        spec_a.category in group and spec_b.category in group
        for group in _COMPATIBILITY_GROUPS
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_type(
    data_type: Optional[Union[DataType, str]],
    length: LengthValue = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
) -> str:
    """
    Render the T-SQL type string.

    Parameters are only emitted for the properties the type takes:
    ``VARCHAR(50)``, ``NVARCHAR(MAX)``, ``DECIMAL(18,2)``, ``TIME(7)``,
    ``INT``.

    Raises:
        ValueError: If *data_type* is None or unknown.
    """
    if data_type is None:
        raise ValueError("Cannot render an undefined data type.")
    spec: TypeSpec = get_spec(data_type)
    name: str = spec.data_type.value

    if spec.requires_length and length is not None:
        if is_unbounded(length):
            return f"{name}({UNBOUNDED})"
        if isinstance(length, int) and length > 0:
            return f"{name}({length})"
        return name

    if spec.requires_precision and precision is not None:
        if spec.requires_scale and scale is not None:
            return f"{name}({precision},{scale})"
        return f"{name}({precision})"

    return name


# ---------------------------------------------------------------------------
# Column validation
# ---------------------------------------------------------------------------


def _check_length(spec: TypeSpec, length: LengthValue, check: TypeCheck) -> None:
    name: str = spec.data_type.value
    if is_unbounded(length):
        if not spec.allows_unbounded:
            check.errors.append(f"{name} does not support {UNBOUNDED} length.")
        return
    if not isinstance(length, int) or length <= 0:
        check.errors.append(f"{name} requires a length (max_length).")
        return
    if spec.max_length is not None and length > spec.max_length:
        hint: str = f" (use {UNBOUNDED} for larger values)" if spec.allows_unbounded else ""
        check.errors.append(
            f"{name} length must not exceed {spec.max_length}{hint}, got {length}."
        )


def _check_precision_scale(
    spec: TypeSpec,
    precision: Optional[int],
    scale: Optional[int],
    check: TypeCheck,
) -> None:
    name: str = spec.data_type.value

    if precision is None:
        check.errors.append(f"{name} requires a precision.")
    elif spec.precision_range is not None:
        low, high = spec.precision_range
        if not low <= precision <= high:
            check.errors.append(
                f"{name} precision must be between {low} and {high}, got {precision}."
            )

    if not spec.requires_scale:
        return

    if scale is None:
        check.errors.append(f"{name} requires a scale.")
    elif scale < 0:
        check.errors.append(f"{name} scale must not be negative, got {scale}.")
    elif precision is not None and scale > precision:
        check.errors.append(
            f"{name} scale ({scale}) must not exceed precision ({precision})."
        )


def _unwrap_parentheses(literal: str) -> str:
    # SQL Server reports defaults as "((0))"; accept the same form on input.
    while literal.startswith("(") and literal.endswith(")"):
        literal = literal[1:-1].strip()
    return literal


def _check_default(spec: TypeSpec, default_value: str, check: TypeCheck) -> None:
    name: str = spec.data_type.value
    literal: str = _unwrap_parentheses(default_value.strip())

    if spec.literal_kind is LiteralKind.INTEGER:
        if not _INTEGER_LITERAL_RE.match(literal):
            check.errors.append(
                f"Default value '{default_value}' is not a valid integer for {name}."
            )
    elif spec.literal_kind is LiteralKind.DECIMAL:
        if not _DECIMAL_LITERAL_RE.match(literal):
            check.errors.append(
                f"Default value '{default_value}' is not a valid number for {name}."
            )
    elif spec.literal_kind is LiteralKind.BIT:
        if literal not in ("0", "1"):
            check.errors.append(
                f"Default value for BIT must be 0 or 1, got '{default_value}'."
            )
    elif spec.literal_kind is LiteralKind.CHARACTER:
        if not _QUOTED_LITERAL_RE.match(literal):
            check.warnings.append(
                f"Default value '{default_value}' for {name} should be "
                "wrapped in single quotes."
            )


def validate_column(column: "Column") -> TypeCheck:
    """
    Check one column against its type's rules.

    Never raises for data problems: every finding is returned as a message
    in :attr:`TypeCheck.errors` or :attr:`TypeCheck.warnings`.
    """
    check: TypeCheck = TypeCheck()

    if column.data_type is None:
        check.errors.append("Data type is not defined.")
        return check

    spec: TypeSpec = get_spec(column.data_type)
    name: str = spec.data_type.value

    if spec.requires_length:
        _check_length(spec, column.max_length, check)

    if spec.requires_precision:
        _check_precision_scale(spec, column.precision, column.scale, check)

    if column.is_identity and not spec.supports_identity:
        check.errors.append(f"{name} does not support IDENTITY.")

    if column.is_primary_key and not spec.can_be_primary_key:
        check.errors.append(f"{name} cannot be used as a primary key.")

    if column.default_value is not None and column.default_value.strip():
        _check_default(spec, column.default_value, check)

    return check


__all__: List[str] = [
    "UNBOUNDED",
    "DataType",
    "TypeCategory",
    "LiteralKind",
    "TypeSpec",
    "TypeCheck",
    "get_spec",
    "category_of",
    "is_unbounded",
    "is_compatible",
    "render_type",
    "validate_column",
]

logger.debug("ddlgen.catalog loaded: %d types.", len(_CATALOG))
