"""Building blocks shared by every reference table definition.

Column definitions follow one dictionary shape:

    {
        "type": "VARCHAR",           # DuckDB column type
        "nullable": False,           # NOT NULL when False
        "default": "'active'",       # SQL default expression (optional)
        "length": 2,                 # exact character length (optional)
        "allowed": ("ltr", "rtl"),   # closed set of values (optional)
        "description": "...",
    }
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

STATUS_VALUES = ("active", "deprecated")
DIRECTION_VALUES = ("ltr", "rtl")

STATUS_COLUMNS = {
    "status": {
        "type": "VARCHAR",
        "nullable": False,
        "default": "'active'",
        "allowed": STATUS_VALUES,
        "description": "Lifecycle flag; rows are deprecated, never deleted",
    },
    "metadata": {
        "type": "JSON",
        "nullable": False,
        "default": "'{}'",
        "description": "Free-form attributes",
    },
}

AUDIT_COLUMNS = {
    "created_at": {
        "type": "TIMESTAMPTZ",
        "nullable": False,
        "default": "current_timestamp",
        "description": "When the row was created",
    },
    "created_by": {
        "type": "VARCHAR",
        "nullable": False,
        "default": "'seed'",
        "description": "Who created the row",
    },
    "updated_at": {
        "type": "TIMESTAMPTZ",
        "nullable": True,
        "description": "Last administrative update",
    },
    "updated_by": {
        "type": "VARCHAR",
        "nullable": True,
        "description": "Who performed the last administrative update",
    },
}


@dataclass(frozen=True)
class ForeignKey:
    """A reference from columns of one table to the key of another."""

    columns: Tuple[str, ...]
    references: str
    ref_columns: Tuple[str, ...]


@dataclass(frozen=True)
class SelfReference:
    """A parent link back into the same table.

    DuckDB cannot insert rows into a table whose foreign key points at
    itself, so these links are enforced by the store before writing.
    ``scope_column`` names the column a parent must share with its child
    (the classification domain); ``level_column`` carries tree depth.
    """

    column: str
    ref_column: str
    scope_column: Optional[str] = None
    level_column: Optional[str] = None

    @property
    def columns(self) -> Tuple[str, ...]:
        if self.scope_column:
            return (self.scope_column, self.column)
        return (self.column,)

    @property
    def ref_columns(self) -> Tuple[str, ...]:
        if self.scope_column:
            return (self.scope_column, self.ref_column)
        return (self.ref_column,)


@dataclass
class TableDefinition:
    """Declarative definition of one reference table."""

    name: str
    columns: Dict[str, Dict[str, Any]]
    primary_key: Tuple[str, ...]
    comment: str = ""
    unique: List[Tuple[str, ...]] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    self_reference: Optional[SelfReference] = None
    indexes: List[Tuple[str, ...]] = field(default_factory=list)
    name_column: str = "name"

    @property
    def column_names(self) -> List[str]:
        return list(self.columns)

    @property
    def data_columns(self) -> List[str]:
        """Columns a caller may supply when inserting a row."""
        return [c for c in self.columns if c not in AUDIT_COLUMNS]

    @property
    def has_status(self) -> bool:
        return "status" in self.columns

    def required_columns(self) -> List[str]:
        """Non-nullable columns without a default."""
        return [
            name
            for name, col in self.columns.items()
            if not col.get("nullable", True) and "default" not in col
        ]

    def key_of(self, row: Dict[str, Any]) -> Tuple[Any, ...]:
        return tuple(row.get(c) for c in self.primary_key)


def with_common_columns(
    columns: Dict[str, Dict[str, Any]], status: bool = True
) -> Dict[str, Dict[str, Any]]:
    """Append the status/metadata and audit columns to a table's own columns."""
    merged = dict(columns)
    if status:
        merged.update(STATUS_COLUMNS)
    merged.update(AUDIT_COLUMNS)
    return merged
