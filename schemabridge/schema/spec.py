"""Schema IR - the dialect-neutral table representation.

A TableSpec is built once per table (from introspection or from a parsed
model), never mutated, and handed to exactly one emitter.
"""

from dataclasses import dataclass, field, replace

from schemabridge.diagnostics import AmbiguousSoftDeleteColumn, SchemaInvariantError
from schemabridge.schema.types import ScalarType


@dataclass(frozen=True)
class CompositeMembership:
    """A column's slot in a named multi-column index."""

    group: str
    position: int

    def encode(self) -> str:
        return f"{self.group}:{self.position}"


@dataclass(frozen=True)
class ColumnSpec:
    """Represents a table column with type, constraints and index flags."""

    name: str
    scalar_type: ScalarType
    nullable: bool = True
    default: str | None = None
    length: int | None = None
    is_primary_key: bool = False
    is_auto_increment: bool = False
    is_unique: bool = False
    is_indexed: bool = False
    is_soft_delete: bool = False
    composite_indexes: tuple[CompositeMembership, ...] = ()
    comment: str | None = None
    index_name: str | None = None
    source_type: str | None = None

    def __post_init__(self):
        if not isinstance(self.composite_indexes, tuple):
            object.__setattr__(self, "composite_indexes", tuple(self.composite_indexes))

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def effectively_indexed(self) -> bool:
        """Unique columns always count as indexed."""
        return self.is_indexed or self.is_unique


@dataclass(frozen=True)
class IndexSpec:
    """Index derived from column flags; never stored on the table."""

    name: str
    columns: tuple[str, ...]
    unique: bool = False
    composite: bool = False


@dataclass(frozen=True)
class TableSpec:
    """Represents a complete table schema."""

    name: str
    columns: tuple[ColumnSpec, ...] = field(default_factory=tuple)
    comment: str | None = None

    def __post_init__(self):
        if not isinstance(self.columns, tuple):
            object.__setattr__(self, "columns", tuple(self.columns))
        self._validate()

    def _validate(self) -> None:
        if not self.name:
            raise SchemaInvariantError("Table name must not be empty")

        seen: set[str] = set()
        for col in self.columns:
            if col.name in seen:
                raise SchemaInvariantError(
                    f"Duplicate column '{col.name}'", table=self.name, column=col.name
                )
            seen.add(col.name)

        pk_cols = [c.name for c in self.columns if c.is_primary_key]
        if len(pk_cols) > 1:
            raise SchemaInvariantError(
                f"More than one primary key column: {', '.join(pk_cols)}", table=self.name
            )

        soft_cols = [c.name for c in self.columns if c.is_soft_delete]
        if len(soft_cols) > 1:
            raise AmbiguousSoftDeleteColumn(
                f"More than one soft-delete column: {', '.join(soft_cols)}", table=self.name
            )

    def column_names(self) -> list[str]:
        """Get list of column names in definition order."""
        return [col.name for col in self.columns]

    def column(self, name: str) -> ColumnSpec | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    @property
    def primary_key(self) -> str | None:
        for col in self.columns:
            if col.is_primary_key:
                return col.name
        return None

    @property
    def soft_delete(self) -> str | None:
        for col in self.columns:
            if col.is_soft_delete:
                return col.name
        return None

    def with_soft_delete(self, name: str | None) -> "TableSpec":
        """Return a copy with exactly `name` marked as the soft-delete column."""
        columns = tuple(replace(col, is_soft_delete=(col.name == name)) for col in self.columns)
        return replace(self, columns=columns)

    def single_indexes(self) -> list[IndexSpec]:
        """Single-column unique constraints and plain indexes, in column order."""
        indexes = []
        for col in self.columns:
            if col.is_unique:
                name = col.index_name or f"uk_{self.name}_{col.name}"
                indexes.append(IndexSpec(name, (col.name,), unique=True))
            elif col.is_indexed:
                name = col.index_name or f"idx_{self.name}_{col.name}"
                indexes.append(IndexSpec(name, (col.name,)))
        return indexes

    def composite_indexes(self) -> list[IndexSpec]:
        """Named multi-column groups, members in ascending position.

        Groups appear in the order their first member is declared. Equal
        positions keep declaration order.
        """
        groups: dict[str, list[tuple[int, int, str]]] = {}
        for decl_index, col in enumerate(self.columns):
            for membership in col.composite_indexes:
                groups.setdefault(membership.group, []).append(
                    (membership.position, decl_index, col.name)
                )

        indexes = []
        for group, members in groups.items():
            ordered = tuple(name for _, _, name in sorted(members))
            indexes.append(IndexSpec(group, ordered, composite=True))
        return indexes

    def indexes(self) -> list[IndexSpec]:
        return self.single_indexes() + self.composite_indexes()
