"""TableSpec -> DDL for one dialect.

Statement order: CREATE TABLE (columns, primary key, unique clauses),
then CREATE INDEX for plain single-column indexes in column order, then
one CREATE INDEX per composite group, then comment statements. The
soft-delete marker has no DDL of its own.
"""

from collections.abc import Iterable

from schemabridge.schema.dialects import DialectPolicy, UniqueStyle, policy_for
from schemabridge.schema.spec import ColumnSpec, IndexSpec, TableSpec
from schemabridge.schema.type_mapper import ddl_type, format_default
from schemabridge.schema.types import Dialect

INDENT = "  "


def _line_text(text: str) -> str:
    """Collapse a comment onto one line for a -- comment."""
    return " ".join(text.split())


def _column_clause(col: ColumnSpec, dialect: Dialect, policy: DialectPolicy) -> tuple[str, str | None, bool]:
    """Render one column definition.

    Returns (definition, trailing line comment, primary key rendered inline).
    """
    rendered = ddl_type(col, dialect)
    parts = [policy.quote(col.name), rendered.token]

    if not col.nullable and not col.is_primary_key:
        parts.append("NOT NULL")

    default = format_default(col, dialect)
    if default is not None:
        parts.append(f"DEFAULT {default}")

    if col.comment and policy.inline_comments:
        parts.append(f"COMMENT {policy.string_literal(col.comment)}")

    notes = []
    if rendered.note:
        notes.append(rendered.note)
    if col.comment and not policy.supports_comments:
        notes.append(_line_text(col.comment))

    return " ".join(parts), " | ".join(notes) or None, rendered.inline_primary_key


def _unique_clause(index: IndexSpec, policy: DialectPolicy) -> str:
    cols = ", ".join(policy.quote(c) for c in index.columns)
    if policy.unique_style == UniqueStyle.KEY:
        return f"UNIQUE KEY {policy.quote(index.name)} ({cols})"
    return f"CONSTRAINT {policy.quote(index.name)} UNIQUE ({cols})"


def _create_table(spec: TableSpec, dialect: Dialect, policy: DialectPolicy) -> str:
    items: list[tuple[str, str | None]] = []
    pk_inline = False
    for col in spec.columns:
        clause, note, inline = _column_clause(col, dialect, policy)
        pk_inline = pk_inline or inline
        items.append((clause, note))

    if spec.primary_key and not pk_inline:
        items.append((f"PRIMARY KEY ({policy.quote(spec.primary_key)})", None))

    for index in spec.single_indexes():
        if index.unique:
            items.append((_unique_clause(index, policy), None))

    lines = [f"CREATE TABLE {policy.quote(spec.name)} ("]
    for position, (clause, note) in enumerate(items):
        line = INDENT + clause
        if position < len(items) - 1:
            line += ","
        if note:
            line += f" -- {note}"
        lines.append(line)

    closing = ")"
    if spec.comment and policy.inline_comments:
        closing += f" COMMENT={policy.string_literal(spec.comment)}"
    lines.append(closing + ";")
    return "\n".join(lines)


def _create_indexes(spec: TableSpec, policy: DialectPolicy) -> list[str]:
    table = policy.quote(spec.name)
    statements = []
    indexes = [i for i in spec.single_indexes() if not i.unique] + spec.composite_indexes()
    for index in indexes:
        cols = ", ".join(policy.quote(c) for c in index.columns)
        statements.append(f"CREATE INDEX {policy.quote(index.name)} ON {table} ({cols});")
    return statements


def _comment_statements(spec: TableSpec, policy: DialectPolicy) -> list[str]:
    table = policy.quote(spec.name)
    if policy.comment_statements:
        statements = [
            f"COMMENT ON COLUMN {table}.{policy.quote(col.name)} IS {policy.string_literal(col.comment)};"
            for col in spec.columns
            if col.comment
        ]
        if spec.comment:
            statements.append(f"COMMENT ON TABLE {table} IS {policy.string_literal(spec.comment)};")
        return statements

    if not policy.supports_comments and spec.comment:
        return [f"-- table comment: {_line_text(spec.comment)}"]
    return []


def emit_sql(spec: TableSpec, dialect: Dialect) -> str:
    """Render the full DDL statement set for one table."""
    policy = policy_for(dialect)
    sections = [
        _create_table(spec, dialect, policy),
        "\n".join(_create_indexes(spec, policy)),
        "\n".join(_comment_statements(spec, policy)),
    ]
    return "\n\n".join(s for s in sections if s) + "\n"


def emit_sql_many(specs: Iterable[TableSpec], dialect: Dialect) -> str:
    """Render several tables, separated by a blank line."""
    return "\n".join(emit_sql(spec, dialect) for spec in specs)
