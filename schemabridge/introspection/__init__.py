"""Introspection collaborators: live SQLite and JSON snapshots."""

from .contract import IntrospectedColumn, IntrospectedIndex, IntrospectedTable, Introspector
from .snapshot import SnapshotIntrospector
from .factory import open_introspector
from .sqlite import SQLiteIntrospector

__all__ = [
    "IntrospectedColumn",
    "IntrospectedIndex",
    "IntrospectedTable",
    "Introspector",
    "SQLiteIntrospector",
    "SnapshotIntrospector",
    "open_introspector",
]
