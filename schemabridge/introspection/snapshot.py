"""Introspection from a JSON snapshot captured by an external tool.

Snapshot layout::

    {
      "dialect": "mysql",
      "tables": [
        {
          "name": "user",
          "comment": "Users",
          "columns": [
            {"name": "id", "type": "bigint", "nullable": false,
             "extra": "auto_increment", "primary_key": true}
          ],
          "indexes": [{"name": "uk_user_email", "columns": ["email"], "unique": true}]
        }
      ]
    }
"""

import json
from pathlib import Path
from typing import Any

from schemabridge.diagnostics import IntrospectionUnavailable
from schemabridge.introspection.contract import IntrospectedTable
from schemabridge.schema.types import Dialect


class SnapshotIntrospector:
    """Serve tables from an in-memory snapshot document."""

    def __init__(self, document: dict[str, Any], dialect: Dialect | None = None):
        if not isinstance(document, dict) or not isinstance(document.get("tables"), list):
            raise IntrospectionUnavailable("Snapshot must be an object with a 'tables' list")

        if dialect is None:
            declared = document.get("dialect")
            if not declared:
                raise IntrospectionUnavailable(
                    "Snapshot does not declare a dialect; pass one explicitly"
                )
            dialect = Dialect.parse(declared)
        self.dialect = dialect

        self._tables: dict[str, dict[str, Any]] = {}
        for entry in document["tables"]:
            if not isinstance(entry, dict) or not entry.get("name"):
                raise IntrospectionUnavailable("Snapshot table entry without a name")
            self._tables[entry["name"]] = entry

    @classmethod
    def from_file(cls, path: Path, dialect: Dialect | None = None) -> "SnapshotIntrospector":
        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise IntrospectionUnavailable(f"Cannot read snapshot {path}: {e}") from e
        return cls(document, dialect)

    def list_tables(self) -> list[str]:
        return list(self._tables)

    def describe_table(self, name: str) -> IntrospectedTable:
        entry = self._tables.get(name)
        if entry is None:
            raise IntrospectionUnavailable(f"Table '{name}' is not in the snapshot", table=name)
        try:
            return IntrospectedTable.from_dict(entry)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise IntrospectionUnavailable(
                f"Malformed snapshot entry: {e}", table=name
            ) from e
