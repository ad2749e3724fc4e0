"""Live introspection of a SQLite database file.

Every call opens its own read-only connection so a single introspector can
be shared by the worker threads of the generate pipeline.
"""

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from schemabridge.diagnostics import IntrospectionUnavailable
from schemabridge.introspection.contract import (
    IntrospectedColumn,
    IntrospectedIndex,
    IntrospectedTable,
)
from schemabridge.schema.types import Dialect
from schemabridge.utils.logging import logger

_AUTOINCREMENT_RE = re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE)


def sqlite_path_from_url(url: str) -> Path:
    """Resolve 'sqlite:///rel.db', 'sqlite:////abs.db' or 'sqlite:rel.db' to a path."""
    rest = url.strip()[len("sqlite:"):]
    if rest.startswith("//"):
        rest = rest[2:]
        # sqlite:///rel.db is relative, sqlite:////abs.db is absolute
        if rest.startswith("/"):
            rest = rest[1:]
    if not rest:
        raise IntrospectionUnavailable(f"No database path in URL '{url}'")
    return Path(rest)


class SQLiteIntrospector:
    """Describe tables of an existing SQLite database via PRAGMA queries."""

    dialect = Dialect.SQLITE

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        if not self.db_path.exists():
            raise IntrospectionUnavailable(f"SQLite database not found: {self.db_path}")

    @classmethod
    def from_url(cls, url: str) -> "SQLiteIntrospector":
        return cls(sqlite_path_from_url(url))

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise IntrospectionUnavailable(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn.cursor()
        except sqlite3.Error as e:
            raise IntrospectionUnavailable(f"Introspection query failed: {e}") from e
        finally:
            conn.close()

    def list_tables(self) -> list[str]:
        with self._connect() as cursor:
            cursor.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            )
            return [row[0] for row in cursor.fetchall()]

    def describe_table(self, name: str) -> IntrospectedTable:
        with self._connect() as cursor:
            cursor.execute(
                "SELECT sql FROM sqlite_master WHERE type='table' AND name=?", (name,)
            )
            row = cursor.fetchone()
            if not row:
                raise IntrospectionUnavailable(f"Table '{name}' does not exist", table=name)
            create_sql = row[0] or ""

            quoted = name.replace('"', '""')
            cursor.execute(f'PRAGMA table_info("{quoted}")')
            column_rows = cursor.fetchall()

            cursor.execute(f'PRAGMA index_list("{quoted}")')
            index_rows = cursor.fetchall()

            indexes = []
            for _seq, index_name, unique, origin, *_rest in index_rows:
                if origin == "pk":
                    continue
                quoted_index = index_name.replace('"', '""')
                cursor.execute(f'PRAGMA index_info("{quoted_index}")')
                members = tuple(r[2] for r in sorted(cursor.fetchall(), key=lambda r: r[0]))
                indexes.append(IntrospectedIndex(index_name, members, unique=bool(unique)))

        has_autoincrement = bool(_AUTOINCREMENT_RE.search(create_sql))
        pk_count = sum(1 for r in column_rows if r[5])

        columns = []
        for _cid, col_name, col_type, notnull, default, pk in column_rows:
            extra = ""
            if pk and pk_count == 1 and has_autoincrement:
                extra = "autoincrement"
            columns.append(IntrospectedColumn(
                name=col_name,
                raw_type=col_type or "",
                nullable=not notnull,
                default=default,
                extra=extra,
                is_primary_key=bool(pk),
            ))

        logger.debug(
            "Introspected {table}: {cols} columns, {idx} indexes",
            table=name,
            cols=len(columns),
            idx=len(indexes),
        )
        return IntrospectedTable(name=name, columns=tuple(columns), indexes=tuple(indexes))
