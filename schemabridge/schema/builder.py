"""Build a TableSpec from introspection rows.

This is the "generate" direction's first half: raw rows go through the
Type Mapper and the Soft-Delete Detector and come out as an immutable IR
value plus whatever non-fatal diagnostics were recorded on the way.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from schemabridge.diagnostics import Diagnostic, DiagnosticCode, warning
from schemabridge.introspection.contract import IntrospectedIndex, IntrospectedTable
from schemabridge.schema.soft_delete import SOFT_DELETE_CANDIDATES, detect_soft_delete
from schemabridge.schema.spec import ColumnSpec, CompositeMembership, TableSpec
from schemabridge.schema.type_mapper import map_raw_type, parse_bool_literal
from schemabridge.schema.types import Dialect, ScalarType
from schemabridge.utils.logging import logger

_AUTO_INCREMENT_MARKERS = ("auto_increment", "autoincrement", "identity")


@dataclass(frozen=True)
class BuildResult:
    """A built TableSpec together with its non-fatal diagnostics."""

    spec: TableSpec
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)


def normalize_default(raw: str | None, scalar_type: ScalarType) -> str | None:
    """Turn a dialect-specific default expression into the neutral IR literal.

    Handles NULL, sequence defaults, Postgres casts ('x'::character varying),
    quoted literals, and bool spellings (1/0, b'1', true/false).
    """
    if raw is None:
        return None

    value = raw.strip()
    upper = value.upper()
    if upper == "NULL" or upper.startswith("NULL::") or value.lower().startswith("nextval("):
        return None

    if "::" in value and not value.startswith("'") or value.startswith("'") and "'::" in value:
        value = value.rsplit("::", 1)[0].strip()
        if value.startswith("(") and value.endswith(")"):
            value = value[1:-1].strip()

    if len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1].replace("''", "'")

    if scalar_type == ScalarType.BOOL:
        parsed = parse_bool_literal(value)
        if parsed is not None:
            return "true" if parsed else "false"

    return value


def _is_auto_increment(extra: str, default: str | None) -> bool:
    lowered = extra.lower()
    if any(marker in lowered for marker in _AUTO_INCREMENT_MARKERS):
        return True
    return bool(default and default.strip().lower().startswith("nextval("))


def _index_flags(
    table: IntrospectedTable, pk_names: set[str], diagnostics: list[Diagnostic]
) -> dict[str, dict]:
    """Fold index rows into per-column flag dicts."""
    known = {c.name for c in table.columns}
    flags: dict[str, dict] = {name: {"memberships": []} for name in known}

    for index in table.indexes:
        if _is_primary_index(index, pk_names):
            continue

        missing = [c for c in index.columns if c not in known]
        if missing or not index.columns:
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                f"Index '{index.name}' references unknown columns {missing}; skipped",
                table=table.name,
            ))
            continue

        if len(index.columns) == 1:
            _apply_single_index(table.name, index, flags[index.columns[0]])
            continue

        if index.unique:
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                f"Composite unique index '{index.name}' kept as a plain composite index",
                table=table.name,
            ))
        for position, col_name in enumerate(index.columns):
            flags[col_name]["memberships"].append(CompositeMembership(index.name, position))

    return flags


def _is_primary_index(index: IntrospectedIndex, pk_names: set[str]) -> bool:
    if index.name.upper() == "PRIMARY" or index.name.endswith("_pkey"):
        return True
    return bool(pk_names) and set(index.columns) == pk_names and index.unique


def _apply_single_index(table_name: str, index: IntrospectedIndex, flags: dict) -> None:
    col_name = index.columns[0]
    if index.unique:
        if flags.get("unique"):
            return
        flags["unique"] = True
        conventional = f"uk_{table_name}_{col_name}"
        implicit = index.name.startswith("sqlite_autoindex_")
        flags["index_name"] = None if implicit or index.name == conventional else index.name
    elif not flags.get("indexed"):
        flags["indexed"] = True
        if not flags.get("unique"):
            conventional = f"idx_{table_name}_{col_name}"
            flags["index_name"] = None if index.name == conventional else index.name


def build_table_spec(
    table: IntrospectedTable,
    dialect: Dialect,
    soft_delete_override: str | None = None,
    candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
) -> BuildResult:
    """Build the IR for one introspected table.

    Raises:
        AmbiguousSoftDeleteColumn: several candidate columns and no override
    """
    diagnostics: list[Diagnostic] = []

    pk_cols = [c.name for c in table.columns if c.is_primary_key]
    pk_name = pk_cols[0] if pk_cols else None
    if len(pk_cols) > 1:
        diagnostics.append(warning(
            DiagnosticCode.MISSING_PRIMARY_KEY,
            f"Composite primary key ({', '.join(pk_cols)}) is not representable; using '{pk_name}'",
            table=table.name,
        ))
    elif not pk_cols:
        diagnostics.append(warning(
            DiagnosticCode.MISSING_PRIMARY_KEY,
            "Table has no primary key",
            table=table.name,
        ))

    soft_delete, soft_diags = detect_soft_delete(
        [c.name for c in table.columns],
        override=soft_delete_override,
        candidates=candidates,
        table=table.name,
    )
    diagnostics.extend(soft_diags)

    index_flags = _index_flags(table, set(pk_cols), diagnostics)

    columns = []
    for raw in table.columns:
        mapping = map_raw_type(raw.raw_type, dialect, table=table.name, column=raw.name)
        if mapping.diagnostic:
            diagnostics.append(mapping.diagnostic)

        auto_increment = mapping.auto_increment or _is_auto_increment(raw.extra, raw.default)
        default = None if auto_increment else normalize_default(raw.default, mapping.scalar_type)
        is_pk = raw.name == pk_name
        flags = index_flags[raw.name]

        columns.append(ColumnSpec(
            name=raw.name,
            scalar_type=mapping.scalar_type,
            nullable=raw.nullable and not is_pk,
            default=default,
            length=mapping.length,
            is_primary_key=is_pk,
            is_auto_increment=auto_increment,
            is_unique=flags.get("unique", False),
            is_indexed=flags.get("indexed", False),
            is_soft_delete=raw.name == soft_delete,
            composite_indexes=tuple(flags["memberships"]),
            comment=raw.comment or None,
            index_name=flags.get("index_name"),
            source_type=raw.raw_type,
        ))

    spec = TableSpec(name=table.name, columns=tuple(columns), comment=table.comment or None)
    logger.debug(
        "Built spec for {table}: {count} columns, {diags} diagnostics",
        table=table.name,
        count=len(columns),
        diags=len(diagnostics),
    )
    return BuildResult(spec, tuple(diagnostics))
