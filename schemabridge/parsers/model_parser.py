"""Parser for annotated model modules.

Reads the `@model(...)` / `column(...)` micro-language statically with the
ast module and rebuilds a TableSpec for every model class. Nothing in the
parsed source is imported or executed; argument values must be literals.

Per-field problems are recorded as MalformedFieldAnnotation warnings and
parsing continues with best-effort flags. A class without a usable table
annotation fails on its own; other classes in the module still parse.
"""

import ast
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from schemabridge.annotations import COLUMN_KEYS, MODEL_KEYS
from schemabridge.diagnostics import (
    AmbiguousSoftDeleteColumn,
    Diagnostic,
    DiagnosticCode,
    MissingTableAnnotation,
    SchemaBridgeError,
    error,
    warning,
)
from schemabridge.schema.soft_delete import SOFT_DELETE_CANDIDATES, detect_soft_delete
from schemabridge.schema.spec import ColumnSpec, CompositeMembership, TableSpec
from schemabridge.schema.types import ScalarType
from schemabridge.utils.logging import logger

TYPE_NAMES = {
    "bool": ScalarType.BOOL,
    "int": ScalarType.INT64,
    "Int16": ScalarType.INT16,
    "Int32": ScalarType.INT32,
    "Int64": ScalarType.INT64,
    "float": ScalarType.FLOAT64,
    "Decimal": ScalarType.FLOAT64,
    "str": ScalarType.TEXT,
    "date": ScalarType.DATE,
    "datetime": ScalarType.DATETIME_NAIVE,
    "AwareDateTime": ScalarType.DATETIME_WITH_ZONE,
    "bytes": ScalarType.BINARY,
    "JsonValue": ScalarType.JSON,
    "dict": ScalarType.JSON,
    "Dict": ScalarType.JSON,
    "list": ScalarType.JSON,
    "List": ScalarType.JSON,
    "Any": ScalarType.JSON,
    "UUID": ScalarType.UUID,
}

_BOOL_KEYS = frozenset({"primary_key", "pk", "auto_increment", "not_null", "soft_delete", "skip"})


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one model class."""

    class_name: str
    spec: TableSpec | None
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.spec is not None


def get_node_name(node: Any) -> str:
    """Dotted name of a Name/Attribute/Call node."""
    if isinstance(node, ast.Name):
        return node.id
    elif isinstance(node, ast.Attribute):
        return f"{get_node_name(node.value)}.{node.attr}"
    elif isinstance(node, ast.Call):
        return get_node_name(node.func)
    else:
        return "unknown"


def _short_name(node: Any) -> str:
    return get_node_name(node).rsplit(".", 1)[-1]


class ModelParser:
    """Parse model classes out of one source unit."""

    def __init__(
        self,
        candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
        soft_delete_overrides: dict[str, str] | None = None,
    ):
        self.candidates = tuple(candidates)
        self.soft_delete_overrides = soft_delete_overrides or {}

    def parse(self, source: str, filename: str = "<string>") -> list[ParseResult]:
        """Parse every @model class in source.

        Raises:
            MissingTableAnnotation: the unit is not valid Python or has no model class
        """
        try:
            tree = ast.parse(source, filename=filename)
        except SyntaxError as e:
            raise MissingTableAnnotation(f"Cannot parse {filename}: {e.msg} (line {e.lineno})") from e

        results = []
        for node in tree.body:
            if not isinstance(node, ast.ClassDef):
                continue
            decorator = self._model_decorator(node)
            if decorator is None:
                continue
            results.append(self._parse_class(node, decorator))

        if not results:
            raise MissingTableAnnotation(f"No @model class found in {filename}")

        logger.debug(
            "Parsed {count} model classes from {file}", count=len(results), file=filename
        )
        return results

    @staticmethod
    def _model_decorator(node: ast.ClassDef) -> ast.expr | None:
        for decorator in node.decorator_list:
            if _short_name(decorator) == "model":
                return decorator
        return None

    def _parse_class(self, node: ast.ClassDef, decorator: ast.expr) -> ParseResult:
        diagnostics: list[Diagnostic] = []
        meta = self._parse_model_args(node.name, decorator, diagnostics)

        table = meta.get("table")
        if not isinstance(table, str) or not table:
            diagnostics.append(error(
                DiagnosticCode.MISSING_TABLE_ANNOTATION,
                f"Class {node.name} has no table name in @model",
            ))
            return ParseResult(node.name, None, tuple(diagnostics))

        try:
            spec = self._build_spec(node, table, meta, diagnostics)
        except SchemaBridgeError as e:
            diagnostics.append(e.diagnostic)
            return ParseResult(node.name, None, tuple(diagnostics))

        return ParseResult(node.name, spec, tuple(diagnostics))

    def _parse_model_args(
        self, class_name: str, decorator: ast.expr, diagnostics: list[Diagnostic]
    ) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if not isinstance(decorator, ast.Call):
            return meta

        pairs = [("table", arg) for arg in decorator.args[:1]]
        pairs.extend((kw.arg, kw.value) for kw in decorator.keywords)
        for key, value_node in pairs:
            if key not in MODEL_KEYS:
                diagnostics.append(warning(
                    DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                    f"Unknown @model key '{key}' on {class_name}",
                ))
                continue
            try:
                value = ast.literal_eval(value_node)
            except (ValueError, SyntaxError):
                diagnostics.append(warning(
                    DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                    f"@model {key} on {class_name} is not a literal",
                ))
                continue
            if value is not None and not isinstance(value, str):
                diagnostics.append(warning(
                    DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                    f"@model {key} on {class_name} must be a string",
                ))
                continue
            if key == "table_comment":
                key = "comment"
            meta[key] = value
        return meta

    def _build_spec(
        self,
        node: ast.ClassDef,
        table: str,
        meta: dict[str, Any],
        diagnostics: list[Diagnostic],
    ) -> TableSpec:
        columns: list[dict[str, Any]] = []
        for stmt in node.body:
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue
            if _is_classvar(stmt.annotation):
                continue
            col = self._parse_field(table, stmt, len(columns), diagnostics)
            if col is not None:
                columns.append(col)

        self._resolve_primary_key(table, meta.get("pk"), columns, diagnostics)
        self._resolve_soft_delete(table, meta.get("soft_delete"), columns, diagnostics)

        return TableSpec(
            name=table,
            columns=tuple(ColumnSpec(**col) for col in columns),
            comment=meta.get("comment") or None,
        )

    def _parse_field(
        self,
        table: str,
        stmt: ast.AnnAssign,
        decl_index: int,
        diagnostics: list[Diagnostic],
    ) -> dict[str, Any] | None:
        attr = stmt.target.id
        options = self._column_options(table, attr, stmt.value, diagnostics)
        if options.get("skip"):
            return None

        name = options.get("name") or attr
        scalar, optional = self._resolve_type(table, name, stmt.annotation, diagnostics)
        is_pk = bool(options.get("primary_key") or options.get("pk"))

        unique = options.get("unique", False)
        index = options.get("index", False)
        index_name = None
        if isinstance(unique, str):
            index_name = unique
        elif isinstance(index, str) and not unique:
            index_name = index
        if unique and isinstance(index, str):
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                f"Index name '{index}' ignored on unique column",
                table=table,
                column=name,
            ))

        memberships = []
        combine = options.get("combine_index")
        if combine is not None:
            entries = [combine] if isinstance(combine, str) else list(combine)
            for entry in entries:
                memberships.append(self._membership(table, name, entry, decl_index, diagnostics))

        default = options.get("default")
        auto_increment = bool(options.get("auto_increment"))

        return {
            "name": name,
            "scalar_type": scalar,
            "nullable": optional and not options.get("not_null") and not is_pk,
            "default": None if auto_increment else default,
            "length": options.get("length"),
            "is_primary_key": is_pk,
            "is_auto_increment": auto_increment,
            "is_unique": bool(unique),
            "is_indexed": bool(index),
            "is_soft_delete": bool(options.get("soft_delete")),
            "composite_indexes": tuple(memberships),
            "comment": options.get("comment") or None,
            "index_name": index_name,
        }

    def _column_options(
        self,
        table: str,
        attr: str,
        value: ast.expr | None,
        diagnostics: list[Diagnostic],
    ) -> dict[str, Any]:
        if not isinstance(value, ast.Call) or _short_name(value.func) != "column":
            return {}

        def malformed(message: str) -> None:
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION, message, table=table, column=attr
            ))

        pairs: list[tuple[str, Any]] = []
        for arg in value.args:
            if isinstance(arg, ast.Constant) and isinstance(arg.value, str):
                pairs.append((arg.value, True))
            else:
                malformed("Positional column() arguments must be string flag names")

        for kw in value.keywords:
            if kw.arg is None:
                malformed("**kwargs in column() is not supported")
                continue
            try:
                pairs.append((kw.arg, ast.literal_eval(kw.value)))
            except (ValueError, SyntaxError):
                malformed(f"Value for '{kw.arg}' is not a literal; ignored")

        options: dict[str, Any] = {}
        for key, raw in pairs:
            if key not in COLUMN_KEYS:
                malformed(f"Unknown column key '{key}'; ignored")
                continue
            checked = _check_value(key, raw)
            if checked is _INVALID:
                malformed(f"Invalid value {raw!r} for '{key}'; ignored")
                continue
            options[key] = checked
        return options

    def _resolve_type(
        self,
        table: str,
        column: str,
        annotation: ast.expr,
        diagnostics: list[Diagnostic],
    ) -> tuple[ScalarType, bool]:
        inner, optional = _unwrap_optional(annotation)
        if isinstance(inner, ast.Subscript):
            inner = inner.value

        type_name = _short_name(inner)
        scalar = TYPE_NAMES.get(type_name)
        if scalar is None:
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                f"Unknown field type '{ast.unparse(annotation)}', mapped to text",
                table=table,
                column=column,
            ))
            scalar = ScalarType.TEXT
        return scalar, optional

    @staticmethod
    def _membership(
        table: str, column: str, entry: str, decl_index: int, diagnostics: list[Diagnostic]
    ) -> CompositeMembership:
        if ":" not in entry:
            return CompositeMembership(entry, decl_index)

        group, _, position = entry.rpartition(":")
        try:
            return CompositeMembership(group, int(position))
        except ValueError:
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                f"Unparsable combine_index position '{position}'; using 0",
                table=table,
                column=column,
            ))
            return CompositeMembership(group, 0)

    @staticmethod
    def _resolve_primary_key(
        table: str,
        declared: str | None,
        columns: list[dict[str, Any]],
        diagnostics: list[Diagnostic],
    ) -> None:
        flagged = [c["name"] for c in columns if c["is_primary_key"]]
        names = [c["name"] for c in columns]

        chosen = None
        if declared:
            if declared in names:
                chosen = declared
            else:
                diagnostics.append(warning(
                    DiagnosticCode.MISSING_PRIMARY_KEY,
                    f"@model pk '{declared}' names no field",
                    table=table,
                ))
        if chosen is None and flagged:
            chosen = flagged[0]

        for col in columns:
            if col["is_primary_key"] and col["name"] != chosen:
                diagnostics.append(warning(
                    DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                    f"Primary key flag on '{col['name']}' conflicts with '{chosen}'; cleared",
                    table=table,
                    column=col["name"],
                ))
            col["is_primary_key"] = col["name"] == chosen
            if col["is_primary_key"]:
                col["nullable"] = False

        if chosen is None:
            diagnostics.append(warning(
                DiagnosticCode.MISSING_PRIMARY_KEY, "Table has no primary key", table=table
            ))

    def _resolve_soft_delete(
        self,
        table: str,
        declared: str | None,
        columns: list[dict[str, Any]],
        diagnostics: list[Diagnostic],
    ) -> None:
        names = [c["name"] for c in columns]
        flagged = [c["name"] for c in columns if c["is_soft_delete"]]

        if len(flagged) > 1:
            raise AmbiguousSoftDeleteColumn(
                f"Several fields flagged soft_delete: {', '.join(flagged)}", table=table
            )

        if declared and declared not in names:
            diagnostics.append(warning(
                DiagnosticCode.MALFORMED_FIELD_ANNOTATION,
                f"@model soft_delete '{declared}' names no field; ignored",
                table=table,
            ))
            declared = None

        if declared and flagged and flagged[0] != declared:
            raise AmbiguousSoftDeleteColumn(
                f"@model soft_delete '{declared}' disagrees with field flag on '{flagged[0]}'",
                table=table,
            )

        chosen = declared or (flagged[0] if flagged else None)
        if chosen is None:
            chosen, detected_diags = detect_soft_delete(
                names,
                override=self.soft_delete_overrides.get(table),
                candidates=self.candidates,
                table=table,
            )
            diagnostics.extend(detected_diags)

        for col in columns:
            col["is_soft_delete"] = col["name"] == chosen


_INVALID = object()


def _check_value(key: str, value: Any) -> Any:
    """Validate one column() value; returns _INVALID when the type is wrong."""
    if key in _BOOL_KEYS:
        return value if isinstance(value, bool) else _INVALID
    if key in ("unique", "index"):
        if isinstance(value, bool) or (isinstance(value, str) and value):
            return value
        return _INVALID
    if key == "combine_index":
        if isinstance(value, str) and value:
            return value
        if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) and v for v in value):
            return tuple(value)
        return _INVALID
    if key == "default":
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return _INVALID
    if key == "length":
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        return _INVALID
    if key in ("comment", "name"):
        if isinstance(value, str) and (key == "comment" or value):
            return value
        return _INVALID
    return value


def _is_classvar(annotation: ast.expr) -> bool:
    target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    return _short_name(target) == "ClassVar"


def _unwrap_optional(annotation: ast.expr) -> tuple[ast.expr, bool]:
    """Strip Optional[...], Union[..., None] and X | None; report whether any was found."""
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        try:
            annotation = ast.parse(annotation.value, mode="eval").body
        except SyntaxError:
            return annotation, False

    if isinstance(annotation, ast.Subscript):
        wrapper = _short_name(annotation.value)
        if wrapper == "Optional":
            inner, _ = _unwrap_optional(annotation.slice)
            return inner, True
        if wrapper == "Union":
            members = annotation.slice.elts if isinstance(annotation.slice, ast.Tuple) else [annotation.slice]
            return _strip_none(members)

    if isinstance(annotation, ast.BinOp) and isinstance(annotation.op, ast.BitOr):
        return _strip_none(_flatten_bitor(annotation))

    return annotation, False


def _flatten_bitor(node: ast.expr) -> list[ast.expr]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _flatten_bitor(node.left) + _flatten_bitor(node.right)
    return [node]


def _strip_none(members: list[ast.expr]) -> tuple[ast.expr, bool]:
    kept = [m for m in members if not (isinstance(m, ast.Constant) and m.value is None)]
    optional = len(kept) != len(members)
    if len(kept) == 1:
        return kept[0], optional
    # Union of several concrete types has no single column type
    return ast.Name(id="Union", ctx=ast.Load()), optional


def parse_models(
    source: str,
    filename: str = "<string>",
    candidates: Iterable[str] = SOFT_DELETE_CANDIDATES,
    soft_delete_overrides: dict[str, str] | None = None,
) -> list[ParseResult]:
    """Parse every @model class in one source unit."""
    return ModelParser(candidates, soft_delete_overrides).parse(source, filename)
