"""Shape of the rows an introspection collaborator hands to the core.

The core never issues introspection queries itself; it only consumes
these values.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from schemabridge.schema.types import Dialect


def _text(data: dict[str, Any], *keys: str, required: bool = False) -> str | None:
    """First present value among keys, which must be a string or None."""
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
        if value or not required:
            return value
    if required:
        raise ValueError(f"'{keys[0]}' is required")
    return None


@dataclass(frozen=True)
class IntrospectedColumn:
    """One column as reported by the database."""

    name: str
    raw_type: str
    nullable: bool = True
    default: str | None = None
    extra: str = ""
    comment: str | None = None
    is_primary_key: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IntrospectedColumn":
        return cls(
            name=_text(data, "name", required=True),
            raw_type=_text(data, "type", "raw_type") or "",
            nullable=bool(data.get("nullable", True)),
            default=_text(data, "default"),
            extra=_text(data, "extra") or "",
            comment=_text(data, "comment"),
            is_primary_key=bool(data.get("primary_key", data.get("is_primary_key", False))),
        )


@dataclass(frozen=True)
class IntrospectedIndex:
    """One index with its member columns in key order."""

    name: str
    columns: tuple[str, ...]
    unique: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IntrospectedIndex":
        columns = tuple(data.get("columns", ()))
        if not all(isinstance(c, str) and c for c in columns):
            raise TypeError(f"index columns must be non-empty strings: {columns!r}")
        return cls(
            name=_text(data, "name", required=True),
            columns=columns,
            unique=bool(data.get("unique", False)),
        )


@dataclass(frozen=True)
class IntrospectedTable:
    """Everything the core needs to build one TableSpec."""

    name: str
    columns: tuple[IntrospectedColumn, ...]
    indexes: tuple[IntrospectedIndex, ...] = field(default_factory=tuple)
    comment: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IntrospectedTable":
        return cls(
            name=_text(data, "name", required=True),
            columns=tuple(IntrospectedColumn.from_dict(c) for c in data.get("columns", ())),
            indexes=tuple(IntrospectedIndex.from_dict(i) for i in data.get("indexes", ())),
            comment=_text(data, "comment"),
        )


class Introspector(Protocol):
    """External collaborator that describes live tables."""

    dialect: Dialect

    def list_tables(self) -> list[str]: ...

    def describe_table(self, name: str) -> IntrospectedTable: ...
