"""
Schema module: dialect-neutral table IR plus the type and soft-delete policies.

Both directions meet here. Introspection rows are built into a TableSpec
by schemabridge.schema.builder (imported directly, it depends on the
introspection contract); parsed models produce the same TableSpec.
"""

from .soft_delete import SOFT_DELETE_CANDIDATES, detect_soft_delete
from .spec import ColumnSpec, CompositeMembership, IndexSpec, TableSpec
from .types import Dialect, ScalarType

__all__ = [
    "ColumnSpec",
    "CompositeMembership",
    "Dialect",
    "IndexSpec",
    "SOFT_DELETE_CANDIDATES",
    "ScalarType",
    "TableSpec",
    "detect_soft_delete",
]
