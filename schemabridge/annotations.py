"""Runtime side of the annotation micro-language.

Generated model modules import everything they use from here:

    from schemabridge.annotations import Int32, column, model

`model(...)` and `column(...)` only record metadata; the model parser reads
the same calls statically from source, so the runtime never has to be
imported to turn a model into DDL.
"""

import dataclasses
from datetime import datetime
from typing import Any, NewType

Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
AwareDateTime = NewType("AwareDateTime", datetime)
JsonValue = Any

MODEL_KEYS = frozenset({"table", "pk", "soft_delete", "comment", "table_comment"})

COLUMN_FLAG_KEYS = frozenset({
    "primary_key",
    "pk",
    "auto_increment",
    "not_null",
    "unique",
    "soft_delete",
    "skip",
})
COLUMN_VALUE_KEYS = frozenset({"index", "combine_index", "default", "length", "comment", "name"})
COLUMN_KEYS = COLUMN_FLAG_KEYS | COLUMN_VALUE_KEYS

META_ATTR = "__schemabridge_model__"
FIELD_META_KEY = "schemabridge"

MODEL_REGISTRY: dict[str, type] = {}


@dataclasses.dataclass(frozen=True)
class ModelMeta:
    """Table-level annotation values recorded on a model class."""

    table: str
    pk: str | None = None
    soft_delete: str | None = None
    comment: str | None = None


def column(*flags: str, **options: Any) -> Any:
    """Declare a model field with column annotations.

    Bare flags may be passed positionally: column("unique", length=64).
    """
    unknown = [key for key in (*flags, *options) if key not in COLUMN_KEYS]
    if unknown:
        raise TypeError(f"Unknown column annotation(s): {', '.join(unknown)}")

    metadata: dict[str, Any] = {flag: True for flag in flags}
    metadata.update(options)
    return dataclasses.field(default=None, metadata={FIELD_META_KEY: metadata})


def model(
    table: str,
    pk: str | None = None,
    soft_delete: str | None = None,
    comment: str | None = None,
    table_comment: str | None = None,
):
    """Class decorator recording the table-level annotation."""

    def decorator(cls):
        setattr(cls, META_ATTR, ModelMeta(table, pk, soft_delete, comment or table_comment))
        return cls

    return decorator


def model_meta(cls) -> ModelMeta:
    meta = getattr(cls, META_ATTR, None)
    if meta is None:
        raise TypeError(f"{cls.__name__} is not decorated with @model")
    return meta


def column_name(f: dataclasses.Field) -> str:
    """Database column name for a dataclass field."""
    return f.metadata.get(FIELD_META_KEY, {}).get("name") or f.name


def _model_fields(cls) -> list[dataclasses.Field]:
    return [
        f for f in dataclasses.fields(cls)
        if not f.metadata.get(FIELD_META_KEY, {}).get("skip")
    ]


def serializable(cls):
    """Add to_dict()/from_dict() keyed by database column name."""

    def to_dict(self) -> dict[str, Any]:
        return {column_name(f): getattr(self, f.name) for f in _model_fields(type(self))}

    @classmethod
    def from_dict(klass, data: dict[str, Any]):
        values = {}
        for f in _model_fields(klass):
            key = column_name(f)
            if key in data:
                values[f.name] = data[key]
        return klass(**values)

    cls.to_dict = to_dict
    cls.from_dict = from_dict
    return cls


def crud(cls):
    """Register the model by table name and expose its table metadata."""
    meta = model_meta(cls)
    MODEL_REGISTRY[meta.table] = cls

    @classmethod
    def table_name(klass) -> str:
        return model_meta(klass).table

    @classmethod
    def primary_key(klass) -> str | None:
        return model_meta(klass).pk

    @classmethod
    def column_names(klass) -> list[str]:
        return [column_name(f) for f in _model_fields(klass)]

    def is_deleted(self) -> bool:
        """True when the soft-delete column holds a set flag or timestamp."""
        soft = model_meta(type(self)).soft_delete
        if soft is None:
            return False
        for f in _model_fields(type(self)):
            if column_name(f) == soft:
                return bool(getattr(self, f.name))
        return False

    cls.table_name = table_name
    cls.primary_key = primary_key
    cls.column_names = column_names
    cls.is_deleted = is_deleted
    return cls


__all__ = [
    "AwareDateTime",
    "Int16",
    "Int32",
    "Int64",
    "JsonValue",
    "MODEL_REGISTRY",
    "ModelMeta",
    "column",
    "crud",
    "model",
    "model_meta",
    "serializable",
]
