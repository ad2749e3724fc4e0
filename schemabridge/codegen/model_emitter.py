"""TableSpec -> annotated Python dataclass module.

Output shape (one module per table):

    @crud
    @serializable
    @model(table="user", pk="id", soft_delete="is_del")
    @dataclass
    class User:
        #: id (bigint) | not null
        id: Optional[int] = column(primary_key=True, auto_increment=True)

Every ColumnSpec flag is re-encoded in the column(...) call so that
parse_models() rebuilds an equivalent TableSpec.
"""

import json
import keyword
import re
from dataclasses import dataclass

from schemabridge.schema.spec import ColumnSpec, TableSpec
from schemabridge.schema.types import ScalarType

# (type expression, import module, imported name)
PYTHON_TYPES = {
    ScalarType.INT16: ("Int16", "schemabridge.annotations", "Int16"),
    ScalarType.INT32: ("Int32", "schemabridge.annotations", "Int32"),
    ScalarType.INT64: ("int", None, None),
    ScalarType.BOOL: ("bool", None, None),
    ScalarType.FLOAT64: ("float", None, None),
    ScalarType.TEXT: ("str", None, None),
    ScalarType.DATE: ("date", "datetime", "date"),
    ScalarType.DATETIME_NAIVE: ("datetime", "datetime", "datetime"),
    ScalarType.DATETIME_WITH_ZONE: ("AwareDateTime", "schemabridge.annotations", "AwareDateTime"),
    ScalarType.BINARY: ("bytes", None, None),
    ScalarType.JSON: ("JsonValue", "schemabridge.annotations", "JsonValue"),
    ScalarType.UUID: ("UUID", "uuid", "UUID"),
}

# Attributes the runtime decorators install on the class, plus the column() helper
RESERVED_ATTRIBUTES = frozenset({
    "column",
    "to_dict",
    "from_dict",
    "table_name",
    "primary_key",
    "column_names",
    "is_deleted",
})

_IMPORTABLE_NAMES = frozenset({
    "annotations", "dataclass", "Optional", "column", "model", "crud", "serializable",
    "Int16", "Int32", "AwareDateTime", "JsonValue", "date", "datetime", "UUID",
})

_NON_WORD = re.compile(r"\W")


@dataclass(frozen=True)
class EmissionOptions:
    """Toggles for the emitted model module."""

    include_serialization: bool = True
    include_crud: bool = True


def literal(value: str) -> str:
    """Render a str as a Python string literal."""
    return json.dumps(value, ensure_ascii=False)


def class_name_for(table: str) -> str:
    """PascalCase class name for a table ('user_role' -> 'UserRole')."""
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", table) if p]
    name = "".join(p[:1].upper() + p[1:] for p in parts) or "Model"
    if name[0].isdigit():
        name = "T" + name
    if keyword.iskeyword(name) or name in _IMPORTABLE_NAMES:
        name += "Model"
    return name


def module_name_for(table: str) -> str:
    """Importable module name for a table's generated file."""
    name = _NON_WORD.sub("_", table.lower()) or "model"
    if name[0].isdigit():
        name = "m_" + name
    if keyword.iskeyword(name):
        name += "_"
    return name


def attribute_name_for(column: str, taken: set[str]) -> str:
    """Python attribute for a column; keywords and reserved names gain a trailing underscore."""
    name = _NON_WORD.sub("_", column) or "_"
    if name[0].isdigit() or name.startswith("__"):
        name = "f_" + name
    while keyword.iskeyword(name) or name in RESERVED_ATTRIBUTES or name in taken:
        name += "_"
    return name


def _doc_text(text: str) -> str:
    return " ".join(text.split())


def _docstring_text(text: str) -> str:
    """Text that can sit inside a triple-quoted docstring."""
    return _doc_text(text).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def _doc_line(col: ColumnSpec) -> str:
    source = col.source_type or col.scalar_type.value
    parts = [f"{col.name} ({_doc_text(source)})"]
    parts.append("nullable" if col.nullable else "not null")
    if col.default is not None:
        parts.append(f"default: {_doc_text(col.default) or repr('')}")
    if col.comment:
        parts.append(_doc_text(col.comment))
    return "#: " + " | ".join(parts)


def _column_args(col: ColumnSpec, attr: str) -> list[str]:
    args = []
    if attr != col.name:
        args.append(f"name={literal(col.name)}")
    if col.is_primary_key:
        args.append("primary_key=True")
    if col.is_auto_increment:
        args.append("auto_increment=True")
    if not col.nullable and not col.is_primary_key:
        args.append("not_null=True")
    if col.is_unique:
        args.append(f"unique={literal(col.index_name)}" if col.index_name else "unique=True")
    if col.is_indexed:
        if col.index_name and not col.is_unique:
            args.append(f"index={literal(col.index_name)}")
        else:
            args.append("index=True")
    if col.composite_indexes:
        encoded = [literal(m.encode()) for m in col.composite_indexes]
        if len(encoded) == 1:
            args.append(f"combine_index={encoded[0]}")
        else:
            args.append(f"combine_index=[{', '.join(encoded)}]")
    if col.default is not None:
        args.append(f"default={literal(col.default)}")
    if col.length is not None:
        args.append(f"length={col.length}")
    if col.comment:
        args.append(f"comment={literal(col.comment)}")
    if col.is_soft_delete:
        args.append("soft_delete=True")
    return args


def _needs_optional(col: ColumnSpec) -> bool:
    return col.nullable or col.has_default or col.is_auto_increment or col.is_primary_key


def emit_model(spec: TableSpec, options: EmissionOptions = EmissionOptions()) -> str:
    """Render the model module for one table."""
    class_name = class_name_for(spec.name)
    imports: dict[str, set[str]] = {
        "dataclasses": {"dataclass"},
        "schemabridge.annotations": {"model"},
    }
    if options.include_crud:
        imports["schemabridge.annotations"].add("crud")
    if options.include_serialization:
        imports["schemabridge.annotations"].add("serializable")

    body: list[str] = []
    taken: set[str] = set()
    for col in spec.columns:
        attr = attribute_name_for(col.name, taken)
        taken.add(attr)

        type_expr, module, imported = PYTHON_TYPES[col.scalar_type]
        if module:
            imports.setdefault(module, set()).add(imported)
        if _needs_optional(col):
            imports.setdefault("typing", set()).add("Optional")
            type_expr = f"Optional[{type_expr}]"

        imports["schemabridge.annotations"].add("column")
        body.append(f"    {_doc_line(col)}")
        body.append(f"    {attr}: {type_expr} = column({', '.join(_column_args(col, attr))})")

    if not body:
        body.append("    pass")

    model_args = [f"table={literal(spec.name)}"]
    if spec.primary_key:
        model_args.append(f"pk={literal(spec.primary_key)}")
    if spec.soft_delete:
        model_args.append(f"soft_delete={literal(spec.soft_delete)}")
    if spec.comment:
        model_args.append(f"comment={literal(spec.comment)}")

    decorators = []
    if options.include_crud:
        decorators.append("@crud")
    if options.include_serialization:
        decorators.append("@serializable")
    decorators.append(f"@model({', '.join(model_args)})")
    decorators.append("@dataclass")

    table_label = repr(_doc_text(spec.name)).replace('"""', '\\"\\"\\"')
    lines = [
        f'"""Model for table {table_label}.',
        "",
        f"Class: {class_name}",
        f"Primary key: {_docstring_text(spec.primary_key or '-')}",
        f"Soft delete: {_docstring_text(spec.soft_delete or '-')}",
        f"Columns: {len(spec.columns)}",
        '"""',
        "",
        "from __future__ import annotations",
        "",
    ]
    lines.extend(_render_imports(imports))
    lines.append("")
    lines.append("")
    lines.extend(decorators)
    lines.append(f"class {class_name}:")
    lines.extend(body)
    return "\n".join(lines) + "\n"


def _render_imports(imports: dict[str, set[str]]) -> list[str]:
    """stdlib imports, a blank line, then schemabridge imports; both sorted."""
    stdlib = sorted(m for m in imports if not m.startswith("schemabridge"))
    local = sorted(m for m in imports if m.startswith("schemabridge"))

    lines = [f"from {m} import {', '.join(sorted(imports[m]))}" for m in stdlib]
    if local:
        lines.append("")
        lines.extend(f"from {m} import {', '.join(sorted(imports[m]))}" for m in local)
    return lines


def render_package_index(specs: list[TableSpec]) -> str:
    """__init__.py that re-exports every generated model class."""
    entries = sorted((module_name_for(s.name), class_name_for(s.name)) for s in specs)
    lines = ['"""Generated models."""', ""]
    lines.extend(f"from .{module} import {cls}" for module, cls in entries)
    lines.append("")
    lines.append("__all__ = [")
    lines.extend(f"    {literal(cls)}," for _, cls in entries)
    lines.append("]")
    return "\n".join(lines) + "\n"
